"""Core module exports."""
from app.core.config import settings, get_settings
from app.core.logging import get_logger, setup_logging
from app.core.exceptions import (
    APIException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ValidationException,
    InvalidTokenException,
    JobAlertNotFoundException,
    AlertValidationException,
    AlertLimitExceededException,
    QueueNotFoundException,
    PipelineError,
    SearchIndexError,
    EmailDeliveryError,
    InvalidJobPayloadError,
    UnsupportedDatabaseError,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Logging
    "get_logger",
    "setup_logging",
    # API exceptions
    "APIException",
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "InvalidTokenException",
    "JobAlertNotFoundException",
    "AlertValidationException",
    "AlertLimitExceededException",
    "QueueNotFoundException",
    # Pipeline exceptions
    "PipelineError",
    "SearchIndexError",
    "EmailDeliveryError",
    "InvalidJobPayloadError",
    "UnsupportedDatabaseError",
]
