"""
Infrastructure exceptions

Raised by storage and configuration code. API-facing errors live in
src/core/errors.py.
"""


class StorageError(Exception):
    """Blob storage operation failed"""

    pass


class ConfigurationError(Exception):
    """Missing or invalid configuration"""

    pass
