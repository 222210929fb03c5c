"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: File types, upload statuses, error codes
- exceptions: Custom exception hierarchy
"""
