from core.exceptions.base import (
    CustomException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    InvalidTransitionException,
    ValidationException,
    StorageUnavailableException,
)

__all__ = [
    "CustomException",
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "InvalidTransitionException",
    "ValidationException",
    "StorageUnavailableException",
]
