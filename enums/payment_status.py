from enum import Enum


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PaymentStatus.PAID, PaymentStatus.FAILED)
