from pydantic import model_validator

from models.base import CamelModel


class CartLineDTO(CamelModel):
    product_id: str
    product_name: str = ""
    shop_id: str | None = None  # Older carts may not carry it
    shop_name: str = ""
    quantity: int
    unit_price: float = 0.0
    item_total: float = 0.0
    image_url: str | None = None

    @model_validator(mode="after")
    def _derive_item_total(self) -> "CartLineDTO":
        if not self.item_total and self.unit_price:
            self.item_total = round(self.unit_price * self.quantity, 2)
        return self


class CartDTO(CamelModel):
    cart_id: str | None = None
    customer_id: str | None = None
    sub_total: float = 0.0
    items: list[CartLineDTO] = []
