"""
Custom error types and exit codes for CV Site.
"""

import logging
import sys
from typing import NoReturn

logger = logging.getLogger(__name__)


class CVSiteError(Exception):
    """Base exception for CV Site errors."""

    exit_code = 1

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(CVSiteError):
    """Configuration, path or database-location errors."""

    exit_code = 2


class TemplateError(CVSiteError):
    """Template rendering errors."""

    exit_code = 3


class ValidationError(CVSiteError):
    """Invalid profile documents (bad JSON, unknown language, duplicates)."""

    exit_code = 5


# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_TEMPLATE_ERROR = 3
EXIT_NOT_FOUND = 4
EXIT_VALIDATION_ERROR = 5


def fatal_error(message: str, exit_code: int = EXIT_ERROR) -> NoReturn:
    """Log an error message and exit with the given code."""
    logger.error(message)
    sys.exit(exit_code)
