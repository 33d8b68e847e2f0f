"""
Payment-related exceptions.
"""

from .base import ShopClientException


class PaymentException(ShopClientException):
    """Base exception for payment-related errors."""
    pass


class PaymentActionNotAllowedException(PaymentException):
    """Raised when a payment action is requested outside its gating conditions."""

    def __init__(self, order_id: str, action: str, reason: str):
        super().__init__(
            f"Payment action '{action}' is not available for order {order_id}: {reason}",
            details={'order_id': order_id, 'action': action, 'reason': reason}
        )
        self.order_id = order_id
        self.action = action
        self.reason = reason
