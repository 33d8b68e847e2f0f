from backend_api.client import ApiClient
from backend_api.envelope import ApiResult, normalize_envelope, normalize_keys, parse_result
from backend_api.errors import (
    ApiError,
    AuthError,
    BusinessRuleError,
    NotFoundError,
    ServerError,
    TransportError,
    ValidationError,
)

__all__ = [
    'ApiClient',
    'ApiResult',
    'normalize_envelope',
    'normalize_keys',
    'parse_result',
    'ApiError',
    'AuthError',
    'BusinessRuleError',
    'NotFoundError',
    'ServerError',
    'TransportError',
    'ValidationError',
]
