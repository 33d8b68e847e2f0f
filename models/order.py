from datetime import datetime

from pydantic import ConfigDict, Field

from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.base import CamelModel


class OrderItemDTO(CamelModel):
    product_id: str
    product_name: str = ""
    quantity: int = 0
    unit_price: float = 0.0
    line_total: float = 0.0


class OrderDTO(CamelModel):
    order_id: str
    shop_id: str | None = None
    shop_name: str | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    status: OrderStatus
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod
    total_amount: float = 0.0
    shipping_fee: float = 0.0
    discount_amount: float = 0.0
    promotion_code_used: str | None = None
    tracking_number: str | None = None
    address_id: str | None = None
    items: list[OrderItemDTO] = []
    # Newer backends send isPaid explicitly, older ones only paymentStatus
    paid_flag: bool | None = Field(default=None, alias="isPaid")
    payment_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_paid(self) -> bool:
        if self.paid_flag is not None:
            return self.paid_flag
        return self.payment_status == PaymentStatus.PAID


class OrderItemCreateDTO(CamelModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    quantity: int


class OrderCreateRequestDTO(CamelModel):
    """One per shop and checkout attempt; never modified after it is built."""
    model_config = ConfigDict(frozen=True)

    shop_id: str
    address_id: str
    items: tuple[OrderItemCreateDTO, ...]
    payment_method: PaymentMethod
    shipping_fee: float = 0.0
    discount_amount: float = 0.0
    promotion_code: str | None = None


class OrderFilterDTO(CamelModel):
    page: int | None = None
    page_size: int | None = None
    keyword: str | None = None
    status: OrderStatus | None = None
    shop_id: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    min_amount: float | None = None
    max_amount: float | None = None
    sort_by: str | None = None
    sort_order: str | None = None

    def to_query_params(self) -> dict:
        # Falsy values (0, "") are left out, the backend treats them as "no filter"
        return {k: v for k, v in self.to_payload().items() if v}


class PagedOrdersDTO(CamelModel):
    data: list[OrderDTO] = []
    page: int = 1
    page_size: int = 0
    total_count: int = 0
    total_pages: int = 0
    has_previous_page: bool = False
    has_next_page: bool = False
