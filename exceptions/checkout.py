"""
Checkout-related exceptions.
"""

from .base import ShopClientException


class CheckoutException(ShopClientException):
    """Base exception for checkout errors."""
    pass


class MissingAddressException(CheckoutException):
    """Raised when checkout is attempted without a delivery address."""

    def __init__(self):
        super().__init__("Missing address")


class CheckoutInProgressException(CheckoutException):
    """Raised when a second submission starts while the first is still in flight."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Checkout {session_id} is already submitting",
            details={'session_id': session_id}
        )
        self.session_id = session_id
