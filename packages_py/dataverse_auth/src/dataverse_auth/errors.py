"""
Exception types for dataverse_auth.
"""


class DataverseAuthError(Exception):
    """Base class for all dataverse_auth errors."""


class ConfigurationError(DataverseAuthError, ValueError):
    """Raised when setup options or a resource URL have the wrong shape."""


class UrlValidationError(DataverseAuthError, ValueError):
    """Raised when a URL fails syntax, scheme, domain or injection checks."""


class ProductionEnvironmentError(DataverseAuthError):
    """Raised when the process environment is marked as production."""


class SetupError(DataverseAuthError):
    """Raised when setup_dataverse() cannot complete."""
