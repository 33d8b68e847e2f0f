"""
Cart-related exceptions.
"""

from .base import ShopClientException


class CartException(ShopClientException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartException(CartException):
    """Raised when trying to check out with nothing selected."""

    def __init__(self):
        super().__init__("Cart is empty")


class UnresolvableShopException(CartException):
    """Raised when cart lines cannot be attributed to a shop."""

    def __init__(self, product_ids: list[str]):
        super().__init__(
            f"Unresolvable shop for products: {', '.join(product_ids) or '(none)'}",
            details={'product_ids': product_ids}
        )
        self.product_ids = product_ids


class InvalidCartLineException(CartException):
    """Raised when a cart line violates the quantity/product constraints."""

    def __init__(self, product_id: str, reason: str):
        super().__init__(
            f"Invalid cart line '{product_id}': {reason}",
            details={'product_id': product_id, 'reason': reason}
        )
        self.product_id = product_id
        self.reason = reason
