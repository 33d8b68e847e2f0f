import logging

from backend_api.client import ApiClient
from backend_api.envelope import ApiResult, parse_result
from backend_api.errors import NotFoundError
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.payment import PaymentDTO, PaymentHistoryDTO, PaymentLinkResponseDTO, RefundRequestDTO

logger = logging.getLogger(__name__)


class PaymentRepository:
    @staticmethod
    async def process(order_id: str, method: PaymentMethod, client: ApiClient) -> ApiResult[PaymentLinkResponseDTO]:
        result = await client.post(f"/api/Payment/{order_id}/process", json={"method": method.value},
                                   fallback_message="Failed to process payment")
        return parse_result(result, PaymentLinkResponseDTO.model_validate)

    @staticmethod
    async def get_by_order(order_id: str, client: ApiClient) -> ApiResult[PaymentDTO | None]:
        """A 404 is a normal answer here (COD orders have no payment before delivery)."""
        result = await client.get(f"/api/Payment/order/{order_id}",
                                  fallback_message="Failed to load payment information")
        if isinstance(result.error, NotFoundError):
            logger.info(f"No payment record for order {order_id}")
            return ApiResult.success(None, status_code=404)
        return parse_result(result, PaymentDTO.model_validate)

    @staticmethod
    async def cancel_link(payment_id: str, client: ApiClient) -> ApiResult[bool]:
        return await client.post(f"/api/Payment/{payment_id}/cancel", fallback_message="Failed to cancel payment link")

    @staticmethod
    async def retry(payment_id: str, client: ApiClient) -> ApiResult[PaymentLinkResponseDTO]:
        result = await client.post(f"/api/Payment/{payment_id}/retry", fallback_message="Failed to retry payment")
        return parse_result(result, PaymentLinkResponseDTO.model_validate)

    @staticmethod
    async def get_history(payment_id: str, client: ApiClient) -> ApiResult[list[PaymentHistoryDTO]]:
        result = await client.get(f"/api/Payment/{payment_id}/history",
                                  fallback_message="Failed to load payment history")
        return parse_result(result, lambda data: [PaymentHistoryDTO.model_validate(item) for item in data])

    @staticmethod
    async def update_status(payment_id: str, status: PaymentStatus, reason: str | None,
                            client: ApiClient) -> ApiResult[bool]:
        body = {"status": status.value}
        if reason:
            body["reason"] = reason
        return await client.put(f"/api/Payment/{payment_id}/status", json=body,
                                fallback_message="Failed to update payment status")

    @staticmethod
    async def refund(request: RefundRequestDTO, client: ApiClient) -> ApiResult[bool]:
        return await client.post("/api/Payment/refund", json=request.to_payload(), fallback_message="Refund failed")
