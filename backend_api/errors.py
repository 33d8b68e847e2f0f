"""
Tagged error values returned by the transport boundary.

Every failed backend call produces exactly one of these inside ApiResult.error.
Callers branch on the type (or on `category`) instead of inspecting HTTP codes.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from enums.error_category import ErrorCategory


class ApiError(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str | None = None
    status_code: int | None = None

    category: ClassVar[ErrorCategory] = ErrorCategory.SERVER


class ValidationError(ApiError):
    """HTTP 400 carrying a field -> messages map."""
    field_errors: dict[str, list[str]] = Field(default_factory=dict)

    category: ClassVar[ErrorCategory] = ErrorCategory.VALIDATION

    def flat_messages(self) -> list[str]:
        messages = []
        for field_messages in self.field_errors.values():
            messages.extend(field_messages)
        return messages


class BusinessRuleError(ApiError):
    """Backend refused the request and said why (duplicate, illegal transition, ...)."""
    category: ClassVar[ErrorCategory] = ErrorCategory.BUSINESS_RULE


class AuthError(ApiError):
    category: ClassVar[ErrorCategory] = ErrorCategory.AUTH


class TransportError(ApiError):
    """Connection refused, DNS failure, timeout: the request never got an answer."""
    category: ClassVar[ErrorCategory] = ErrorCategory.TRANSPORT


class NotFoundError(ApiError):
    category: ClassVar[ErrorCategory] = ErrorCategory.NOT_FOUND


class ServerError(ApiError):
    category: ClassVar[ErrorCategory] = ErrorCategory.SERVER
