from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "Customer"
    SELLER = "Seller"
    ADMIN = "Admin"

    @property
    def can_manage_orders(self) -> bool:
        return self in (UserRole.SELLER, UserRole.ADMIN)
