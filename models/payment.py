from datetime import datetime

from pydantic import model_validator

from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.base import CamelModel


class PaymentDTO(CamelModel):
    id: str
    order_id: str
    amount: float = 0.0
    method: PaymentMethod
    status: PaymentStatus
    payment_link_id: str | None = None
    order_code: int | None = None
    checkout_url: str | None = None
    expired_at: int | None = None  # Unix seconds
    created_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _legacy_payment_id(cls, data):
        # Older payloads name the primary key paymentId
        if isinstance(data, dict) and not data.get("id") and data.get("paymentId"):
            data = {**data, "id": data["paymentId"]}
        return data


class PaymentLinkDataDTO(CamelModel):
    payment_link_id: str | None = None
    order_code: int | None = None
    amount: float | None = None
    currency: str | None = None
    status: str | None = None
    expired_at: int | None = None
    # Usually a URL, some backend versions put a timestamp here
    checkout_url: str | int | None = None
    qr_code: str | None = None


class PaymentLinkResponseDTO(CamelModel):
    """Body of process/retry calls: {code, desc, data: {checkoutUrl, ...}}."""
    code: int | None = None
    desc: str | None = None
    data: PaymentLinkDataDTO | None = None

    def resolve_checkout_url(self, checkout_base_url: str) -> str | None:
        """
        Extract a usable redirect URL.

        Returns the URL itself when it is an http(s) string, a URL built from the
        payment link id when the backend sent a non-URL value, otherwise None.
        """
        if self.data is None or self.data.checkout_url is None:
            return None
        url = self.data.checkout_url
        if isinstance(url, str) and url.startswith(("http://", "https://")):
            return url
        if self.data.payment_link_id:
            return f"{checkout_base_url.rstrip('/')}/{self.data.payment_link_id}"
        return None


class PaymentHistoryDTO(CamelModel):
    id: str
    payment_id: str
    status: str
    changed_by: str | None = None
    reason: str | None = None
    created_at: datetime | None = None


class RefundRequestDTO(CamelModel):
    payment_id: str
    amount: float
    reason: str
