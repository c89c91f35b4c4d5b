"""
Development-only enforcement.
"""
import logging
import os
from typing import Mapping, Optional

from ..errors import ProductionEnvironmentError

logger = logging.getLogger(__name__)

PRODUCTION_MARKER = "production"
ENVIRONMENT_VARIABLES = ("APP_ENV", "ENVIRONMENT")


def is_production_environment(environ: Optional[Mapping[str, str]] = None) -> bool:
    """True if any environment marker variable equals ``production``."""
    environ = os.environ if environ is None else environ
    for name in ENVIRONMENT_VARIABLES:
        value = environ.get(name)
        if value and value.strip().lower() == PRODUCTION_MARKER:
            return True
    return False


def assert_non_production(environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Refuse to continue in a production process.

    Raises:
        ProductionEnvironmentError: If APP_ENV or ENVIRONMENT is ``production``
    """
    if is_production_environment(environ):
        logger.error("assert_non_production: production environment detected")
        raise ProductionEnvironmentError(
            "SECURITY: dataverse_auth must NOT be used in production environments. "
            "It is designed for development and testing only."
        )
    return True
