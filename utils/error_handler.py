"""
Error Handler Utility

Turns failures into localized, user-facing messages:
- ApiError variants returned by the backend boundary (describe_api_error)
- ShopClientException raised by local pre-flight checks (handle_service_error)
- Anything else (handle_unexpected_error)

Usage:
    from utils.error_handler import describe_api_error, handle_service_error

    result = await OrderService.cancel_order(order, client)
    if not result.ok:
        print(describe_api_error(result.error))
"""

import logging
from typing import Optional

from backend_api.errors import (
    ApiError,
    AuthError,
    BusinessRuleError,
    NotFoundError,
    ServerError,
    TransportError,
    ValidationError,
)
from enums.message_entity import MessageEntity
from exceptions import (
    ShopClientException,
    EmptyCartException,
    UnresolvableShopException,
    InvalidCartLineException,
    MissingAddressException,
    CheckoutInProgressException,
    InvalidOrderStateException,
    OrderActionNotAllowedException,
    PaymentActionNotAllowedException,
)
from utils.localizator import Localizator


def describe_api_error(error: ApiError, lang: Optional[str] = None) -> str:
    """
    Convert a backend error into the message shown for its category.

    Validation errors show the concatenated field messages, business rule
    errors the backend message verbatim. Auth, transport and server errors
    never expose raw backend detail.
    """
    match error:
        case ValidationError():
            messages = error.flat_messages()
            if messages:
                return "; ".join(messages)
            return error.message or Localizator.get_text(MessageEntity.COMMON, "error_validation", lang=lang)
        case BusinessRuleError():
            return error.message or Localizator.get_text(MessageEntity.COMMON, "error_unexpected", lang=lang)
        case AuthError():
            return Localizator.get_text(MessageEntity.COMMON, "error_session_expired", lang=lang)
        case TransportError():
            return Localizator.get_text(MessageEntity.COMMON, "error_network", lang=lang)
        case NotFoundError():
            return Localizator.get_text(MessageEntity.COMMON, "error_not_found", lang=lang)
        case ServerError() if error.status_code == 403:
            return Localizator.get_text(MessageEntity.COMMON, "error_forbidden", lang=lang)
        case _:
            return Localizator.get_text(MessageEntity.COMMON, "error_server", lang=lang)


def extract_error_message(error: ApiError | None, lang: Optional[str] = None) -> str:
    """
    Most specific reason available for a failed call.

    Order of preference: backend message, joined field errors, category
    message, "unknown error".
    """
    if error is None:
        return Localizator.get_text(MessageEntity.COMMON, "error_unknown", lang=lang)
    if isinstance(error, (AuthError, TransportError)):
        return describe_api_error(error, lang)
    if error.message and error.message.strip():
        return error.message.strip()
    if isinstance(error, ValidationError) and error.flat_messages():
        return "; ".join(error.flat_messages())
    return describe_api_error(error, lang)


def describe_payment_fetch_error(error: ApiError, lang: Optional[str] = None) -> str:
    """Payment lookups get their own wording for permission and server failures."""
    if error.status_code == 403:
        return Localizator.get_text(MessageEntity.CUSTOMER, "error_payment_forbidden", lang=lang)
    if error.status_code is not None and error.status_code >= 500:
        return Localizator.get_text(MessageEntity.CUSTOMER, "error_payment_server", lang=lang)
    return extract_error_message(error, lang)


def handle_service_error(exception: ShopClientException, entity: MessageEntity = MessageEntity.CUSTOMER,
                         lang: Optional[str] = None) -> str:
    """
    Convert a locally raised exception to a localized user-friendly message.

    Args:
        exception: The custom exception raised by a service
        entity: Message entity for localization (CUSTOMER or MANAGER)
        lang: Optional language override

    Returns:
        Localized error message string
    """
    logging.warning(f"Service error handled: {type(exception).__name__} - {str(exception)}")

    error_mapping = {
        # Cart exceptions
        EmptyCartException: "error_empty_cart",
        UnresolvableShopException: "error_unresolvable_shop",
        InvalidCartLineException: "error_invalid_cart_line",

        # Checkout exceptions
        MissingAddressException: "error_missing_address",
        CheckoutInProgressException: "error_checkout_in_progress",

        # Order exceptions
        InvalidOrderStateException: "error_order_invalid_state",
        OrderActionNotAllowedException: "error_order_action_not_allowed",

        # Payment exceptions
        PaymentActionNotAllowedException: "error_payment_action_not_allowed",
    }

    localization_key = error_mapping.get(type(exception))

    if not localization_key:
        logging.error(f"Unmapped exception type: {type(exception).__name__}")
        return Localizator.get_text(MessageEntity.COMMON, "error_unexpected", lang=lang)

    exception_data = {}
    for attribute in ('order_id', 'current_state', 'required_state', 'action', 'reason', 'product_id'):
        if hasattr(exception, attribute):
            exception_data[attribute] = getattr(exception, attribute)
    if hasattr(exception, 'product_ids'):
        exception_data['product_ids'] = ", ".join(exception.product_ids)

    try:
        return Localizator.get_text(entity, localization_key, lang=lang).format(**exception_data)
    except KeyError as e:
        logging.error(f"Missing format parameter in error message: {e}")
        return Localizator.get_text(entity, localization_key, lang=lang)


def handle_unexpected_error(exception: Exception, lang: Optional[str] = None) -> str:
    """
    Handle unexpected exceptions (non-ShopClientException).

    Note:
        Also logs the full exception for debugging
    """
    logging.error(f"Unexpected error: {type(exception).__name__} - {str(exception)}", exc_info=True)
    return Localizator.get_text(MessageEntity.COMMON, "error_unexpected", lang=lang)
