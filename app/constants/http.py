"""HTTP and API constants."""

# CORS Configuration
CORS_MAX_AGE = 86400  # 24 hours in seconds
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = ["GET", "POST", "OPTIONS"]
CORS_ALLOW_HEADERS = [
    "Accept",
    "Accept-Language",
    "Content-Language",
    "Content-Type",
    "Authorization",
    "X-Requested-With",
    "X-Request-ID",
]

# Headers
HEADER_AUTHORIZATION = "Authorization"
HEADER_X_REQUEST_ID = "X-Request-ID"
HEADER_WWW_AUTHENTICATE = "WWW-Authenticate"

# Security Headers
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'",
}

# Error codes for errors raised outside the domain layer
ERROR_VALIDATION = "VALIDATION_ERROR"
ERROR_HTTP = "HTTP_ERROR"
ERROR_RATE_LIMITED = "RATE_LIMIT_EXCEEDED"
ERROR_INTERNAL = "INTERNAL_SERVER_ERROR"
