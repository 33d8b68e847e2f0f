"""
Order-related exceptions.
"""

from .base import ShopClientException


class OrderException(ShopClientException):
    """Base exception for order-related errors."""
    pass


class InvalidOrderStateException(OrderException):
    """Raised when a status change is not in the transition table."""

    def __init__(self, order_id: str, current_state: str, required_state: str):
        super().__init__(
            f"Order {order_id} is in state '{current_state}', cannot move to '{required_state}'",
            details={'order_id': order_id, 'current_state': current_state, 'required_state': required_state}
        )
        self.order_id = order_id
        self.current_state = current_state
        self.required_state = required_state


class OrderActionNotAllowedException(OrderException):
    """Raised when an actor requests an action the order's state does not offer them."""

    def __init__(self, order_id: str, action: str, reason: str):
        super().__init__(
            f"Action '{action}' is not available for order {order_id}: {reason}",
            details={'order_id': order_id, 'action': action, 'reason': reason}
        )
        self.order_id = order_id
        self.action = action
        self.reason = reason
