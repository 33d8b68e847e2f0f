"""
Response envelope normalization.

The backend wraps every payload in a service envelope whose keys arrive either
PascalCase (`Succeeded`, `Data`, `Message`, `StatusCode`) or camelCase. This
module turns any raw body into one canonical ApiResult so nothing downstream
has to care about casing or HTTP codes.
"""

from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from backend_api.errors import (
    ApiError,
    AuthError,
    BusinessRuleError,
    NotFoundError,
    ServerError,
    ValidationError,
)

T = TypeVar("T")
U = TypeVar("U")

DEFAULT_FAILURE_MESSAGE = "Something went wrong. Please try again later."


class ApiResult(BaseModel, Generic[T]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: T | None = None
    error: ApiError | None = None
    status_code: int | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T, status_code: int | None = 200, message: str | None = None) -> "ApiResult[T]":
        return cls(data=data, status_code=status_code, message=message)

    @classmethod
    def failure(cls, error: ApiError) -> "ApiResult[T]":
        return cls(error=error, status_code=error.status_code, message=error.message)

    def map(self, transform: Callable[[T], U]) -> "ApiResult[U]":
        """Apply transform to the payload of a successful result, pass failures through."""
        if not self.ok:
            return ApiResult(error=self.error, status_code=self.status_code, message=self.message)
        return ApiResult(data=transform(self.data), status_code=self.status_code, message=self.message)


def _camel_key(key: Any) -> Any:
    if not isinstance(key, str) or not key or not key[0].isupper():
        return key
    # ID, URL
    if key.isupper():
        return key.lower()
    return key[0].lower() + key[1:]


def _message(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _status_code(value: Any, default: int) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else default


def _succeeded(value: Any) -> bool:
    """Only a real true (or the string "true") marks success."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def normalize_keys(value: Any) -> Any:
    """Recursively rewrite PascalCase dict keys to camelCase."""
    if isinstance(value, dict):
        return {_camel_key(k): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_keys(item) for item in value]
    return value


def normalize_envelope(payload: Any, http_status: int, fallback_message: str = DEFAULT_FAILURE_MESSAGE) -> ApiResult:
    """
    Interpret a 2xx response body.

    A missing success flag counts as failure, and so does a successful envelope
    without data.
    """
    body = normalize_keys(payload) if isinstance(payload, dict) else {}

    succeeded = _succeeded(body.get("succeeded"))
    data = body.get("data")
    message = _message(body.get("message"))
    status_code = _status_code(body.get("statusCode"), http_status)

    if not succeeded or data is None:
        text = (message or "").strip() or fallback_message
        return ApiResult.failure(BusinessRuleError(message=text, status_code=status_code))

    return ApiResult.success(data, status_code=status_code, message=message)


def _coerce_field_errors(errors: dict) -> dict[str, list[str]]:
    field_errors = {}
    for field_name, messages in errors.items():
        if isinstance(messages, list):
            field_errors[field_name] = [str(m) for m in messages]
        elif messages:
            field_errors[field_name] = [str(messages)]
    return field_errors


def classify_http_error(http_status: int, payload: Any, fallback_message: str = DEFAULT_FAILURE_MESSAGE) -> ApiError:
    """Turn a non-2xx response into its tagged error."""
    body = normalize_keys(payload) if isinstance(payload, dict) else {}
    message = _message(body.get("message")) or None
    errors = body.get("errors")

    if http_status == 401:
        return AuthError(message=message, status_code=http_status)

    if http_status in (400, 422):
        if isinstance(errors, dict) and errors:
            return ValidationError(
                message=message,
                status_code=http_status,
                field_errors=_coerce_field_errors(errors),
            )
        return BusinessRuleError(message=message or fallback_message, status_code=http_status)

    if http_status == 404:
        return NotFoundError(message=message, status_code=http_status)

    return ServerError(message=message, status_code=http_status)


def parse_result(result: ApiResult, parser: Callable[[Any], U]) -> ApiResult[U]:
    """
    Map a successful result through a DTO parser.

    A payload that does not match the DTO (pydantic raises a ValueError
    subclass) becomes a ServerError instead of escaping as an exception.
    """
    try:
        return result.map(parser)
    except (ValueError, TypeError) as e:
        return ApiResult.failure(ServerError(message=f"Unexpected response format: {e}",
                                             status_code=result.status_code))
