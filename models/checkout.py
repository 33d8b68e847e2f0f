"""
Transient checkout structures.

Nothing here is sent over the wire or persisted: groups are rebuilt on every
checkout attempt and reports live until the caller has rendered them.
"""

import uuid

from pydantic import BaseModel, Field

from backend_api.errors import ApiError
from enums.checkout_state import CheckoutState
from models.cart import CartLineDTO
from models.order import OrderDTO


class ShopOrderGroup(BaseModel):
    shop_id: str
    shop_name: str = ""
    lines: list[CartLineDTO] = Field(default_factory=list)

    @property
    def subtotal(self) -> float:
        return round(sum(line.item_total for line in self.lines), 2)

    @property
    def shipping_fee(self) -> float:
        # No carrier integration yet
        return 0.0

    @property
    def total(self) -> float:
        return self.subtotal + self.shipping_fee


class CartPartition(BaseModel):
    groups: dict[str, ShopOrderGroup] = Field(default_factory=dict)
    unresolved: list[CartLineDTO] = Field(default_factory=list)

    @property
    def grand_total(self) -> float:
        return round(sum(group.total for group in self.groups.values()), 2)

    @property
    def has_unresolved(self) -> bool:
        return len(self.unresolved) > 0


class FailedShopOrder(BaseModel):
    shop_id: str
    shop_name: str
    error: ApiError | None
    message: str


class OrderSubmissionReport(BaseModel):
    successful_orders: list[OrderDTO] = Field(default_factory=list)
    failed_orders: list[FailedShopOrder] = Field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        return len(self.successful_orders) == 0

    @property
    def partially_failed(self) -> bool:
        return len(self.successful_orders) > 0 and len(self.failed_orders) > 0


class PaymentLink(BaseModel):
    order_id: str
    checkout_url: str
    shop_name: str | None = None


class PaymentFailure(BaseModel):
    order_id: str
    message: str
    error: ApiError | None = None


class PaymentInitiationReport(BaseModel):
    links: list[PaymentLink] = Field(default_factory=list)
    failures: list[PaymentFailure] = Field(default_factory=list)


class CheckoutOutcome(BaseModel):
    state: CheckoutState
    message: str
    submission: OrderSubmissionReport | None = None
    payment: PaymentInitiationReport | None = None
    warnings: list[str] = Field(default_factory=list)
    navigate_to: str | None = None   # In-app route, e.g. /orders/<id>
    redirect_url: str | None = None  # External payment page


class CheckoutSession(BaseModel):
    """
    Holds the state of one checkout screen.

    The state doubles as the mutual exclusion boundary: while it is SUBMITTING
    the address, payment method and submit controls are disabled and a second
    submission is rejected.
    """
    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    state: CheckoutState = CheckoutState.IDLE
    last_outcome: CheckoutOutcome | None = None

    @property
    def is_submitting(self) -> bool:
        return self.state.is_busy
