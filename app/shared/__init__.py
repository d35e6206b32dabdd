"""Shared components for the Mock Interview API.

This package contains HTTP plumbing shared across the application.
"""
