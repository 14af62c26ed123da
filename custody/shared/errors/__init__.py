from .base import (
    AppError,
    DomainError,
    InfrastructureError,
    StorageUnavailableError,
    ValidationError,
)
from .http import handle_app_error, register_error_handler

__all__ = [
    "AppError",
    "DomainError",
    "InfrastructureError",
    "StorageUnavailableError",
    "ValidationError",
    "handle_app_error",
    "register_error_handler",
]
