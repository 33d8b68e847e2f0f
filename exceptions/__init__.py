"""
Custom exceptions for the marketplace order client.

This module provides a hierarchy of exceptions for failures detected locally,
before any request reaches the backend. Backend failures are returned as
ApiResult.error values (see backend_api.errors) and never raised.

Exception Hierarchy:
--------------------
ShopClientException (base)
├── CartException
│   ├── EmptyCartException
│   ├── UnresolvableShopException
│   └── InvalidCartLineException
├── CheckoutException
│   ├── MissingAddressException
│   └── CheckoutInProgressException
├── OrderException
│   ├── InvalidOrderStateException
│   └── OrderActionNotAllowedException
└── PaymentException
    └── PaymentActionNotAllowedException

Usage:
------
Services raise specific exceptions:
    raise MissingAddressException()

Callers catch and display user-friendly messages:
    try:
        outcome = await CheckoutService.checkout(...)
    except ShopClientException as e:
        print(handle_service_error(e))
"""

from .base import ShopClientException
from .cart import CartException, EmptyCartException, UnresolvableShopException, InvalidCartLineException
from .checkout import CheckoutException, MissingAddressException, CheckoutInProgressException
from .order import OrderException, InvalidOrderStateException, OrderActionNotAllowedException
from .payment import PaymentException, PaymentActionNotAllowedException

__all__ = [
    # Base
    'ShopClientException',

    # Cart
    'CartException',
    'EmptyCartException',
    'UnresolvableShopException',
    'InvalidCartLineException',

    # Checkout
    'CheckoutException',
    'MissingAddressException',
    'CheckoutInProgressException',

    # Order
    'OrderException',
    'InvalidOrderStateException',
    'OrderActionNotAllowedException',

    # Payment
    'PaymentException',
    'PaymentActionNotAllowedException',
]
