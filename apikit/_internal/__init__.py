"""Internal modules for apikit.

WARNING: This package contains system-level modules used by the API roots and
the dispatcher. These are not intended for direct use in application code.

Modules:
    http - Shared HTTP client configuration
    registry - Process-wide (instance, session) registry
    urlencoded - URL-encoded form serialization
"""
