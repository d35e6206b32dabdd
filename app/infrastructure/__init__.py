"""Infrastructure layer for the Mock Interview API.

This package contains implementations of external dependencies
like the document store and the collaboration provider.
"""
