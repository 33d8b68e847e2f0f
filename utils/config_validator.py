"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional
from urllib.parse import urlparse


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_base_url(url: Optional[str], name: str = "API_BASE_URL") -> None:
    """
    Validate that a URL is absolute http(s).

    Raises:
        ConfigValidationError: If the URL is missing or not http(s)
    """
    if not url:
        raise ConfigValidationError(
            f"{name} is required but not set!\n"
            f"Add to .env: {name}=https://shop-backend.example.com"
        )

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigValidationError(
            f"{name} must be an absolute http(s) URL (got: {url})"
        )


def validate_positive(value: float, name: str) -> None:
    if value is None or value <= 0:
        raise ConfigValidationError(f"{name} must be positive (got: {value})")


def validate_non_negative(value: float, name: str) -> None:
    if value is None or value < 0:
        raise ConfigValidationError(f"{name} must not be negative (got: {value})")


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Args:
        config_module: The config module to validate

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_base_url(getattr(config_module, 'API_BASE_URL', None))
    validate_base_url(getattr(config_module, 'PAYOS_CHECKOUT_BASE_URL', None), 'PAYOS_CHECKOUT_BASE_URL')

    validate_positive(getattr(config_module, 'API_TIMEOUT_SECONDS', None), 'API_TIMEOUT_SECONDS')
    validate_positive(getattr(config_module, 'PAYMENT_STATUS_POLL_SECONDS', None), 'PAYMENT_STATUS_POLL_SECONDS')
    validate_positive(getattr(config_module, 'PAYMENT_LINK_TTL_MINUTES', None), 'PAYMENT_LINK_TTL_MINUTES')
    validate_positive(getattr(config_module, 'CART_MAX_QUANTITY', None), 'CART_MAX_QUANTITY')

    validate_non_negative(getattr(config_module, 'PAYMENT_CONFIRMATION_GRACE_SECONDS', None),
                          'PAYMENT_CONFIRMATION_GRACE_SECONDS')
    validate_non_negative(getattr(config_module, 'PAYMENT_REFETCH_DELAY_SECONDS', None),
                          'PAYMENT_REFETCH_DELAY_SECONDS')


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.

    Args:
        config_module: The config module to validate
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nStartup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
