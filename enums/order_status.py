from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "Pending"        # Created, waiting for the shop to confirm
    CONFIRMED = "Confirmed"    # Shop accepted the order (online payment link becomes available)
    SHIPPED = "Shipped"        # Handed over to the carrier
    DELIVERED = "Delivered"    # Final state
    CANCELED = "Canceled"      # Final state
