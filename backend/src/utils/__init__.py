"""
Utility modules for the lightchurch backend.

This package contains shared utilities used across the application:
- logging_config: Structured logging setup and named loggers
- rate_limit: Shared slowapi limiter for the public surface
"""
