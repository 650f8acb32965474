"""
Configuration module: Settings, logging, constants.
"""

from shared.config.settings import settings, get_settings, DATABASE_URL
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    AuditFields,
    QueryParams,
    NO_ACTOR,
    IS_DELETED_FIELD,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "AuditFields",
    "QueryParams",
    "NO_ACTOR",
    "IS_DELETED_FIELD",
]
