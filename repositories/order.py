import logging

from backend_api.client import ApiClient
from backend_api.envelope import ApiResult, parse_result
from enums.order_status import OrderStatus
from models.order import OrderCreateRequestDTO, OrderDTO, OrderFilterDTO, PagedOrdersDTO

logger = logging.getLogger(__name__)


def _order_list(data) -> list[OrderDTO]:
    # Create returns a list of orders, older backends a single order
    if isinstance(data, list):
        return [OrderDTO.model_validate(item) for item in data]
    return [OrderDTO.model_validate(data)]


def _paged_orders(data) -> PagedOrdersDTO:
    if isinstance(data, list):
        orders = [OrderDTO.model_validate(item) for item in data]
        return PagedOrdersDTO(data=orders, page=1, page_size=len(orders), total_count=len(orders), total_pages=1)
    return PagedOrdersDTO.model_validate(data)


def _query(order_filter: OrderFilterDTO | None) -> dict:
    return order_filter.to_query_params() if order_filter else {}


class OrderRepository:
    @staticmethod
    async def create(request: OrderCreateRequestDTO, client: ApiClient) -> ApiResult[list[OrderDTO]]:
        logger.info(f"Creating order for shop {request.shop_id}: {len(request.items)} item(s), "
                    f"method={request.payment_method.value}")
        result = await client.post("/api/Order/create", json=request.to_payload(),
                                   fallback_message="Failed to create order")
        return parse_result(result, _order_list)

    @staticmethod
    async def get_by_id(order_id: str, client: ApiClient) -> ApiResult[OrderDTO]:
        result = await client.get(f"/api/Order/{order_id}", fallback_message="Failed to load order details")
        return parse_result(result, OrderDTO.model_validate)

    @staticmethod
    async def get_my_orders(order_filter: OrderFilterDTO | None, client: ApiClient) -> ApiResult[PagedOrdersDTO]:
        result = await client.get("/api/Order/myOrders", params=_query(order_filter),
                                  fallback_message="Failed to load orders")
        return parse_result(result, _paged_orders)

    @staticmethod
    async def get_shop_orders(shop_id: str, order_filter: OrderFilterDTO | None,
                              client: ApiClient) -> ApiResult[PagedOrdersDTO]:
        params = {"shopId": shop_id, **_query(order_filter)}
        result = await client.get("/api/Order/shopOrders", params=params,
                                  fallback_message="Failed to load shop orders")
        return parse_result(result, _paged_orders)

    @staticmethod
    async def get_all(order_filter: OrderFilterDTO | None, client: ApiClient) -> ApiResult[PagedOrdersDTO]:
        result = await client.get("/api/Order/all", params=_query(order_filter),
                                  fallback_message="Failed to load orders")
        return parse_result(result, _paged_orders)

    @staticmethod
    async def search(order_filter: OrderFilterDTO, client: ApiClient) -> ApiResult[PagedOrdersDTO]:
        result = await client.get("/api/Order/search", params=_query(order_filter),
                                  fallback_message="Failed to search orders")
        return parse_result(result, _paged_orders)

    @staticmethod
    async def update_status(order_id: str, status: OrderStatus, client: ApiClient) -> ApiResult[bool]:
        return await client.put(f"/api/Order/updateStatus/{order_id}", json={"status": status.value},
                                fallback_message="Failed to update order status")

    @staticmethod
    async def update_tracking_number(order_id: str, tracking_number: str, client: ApiClient) -> ApiResult[bool]:
        return await client.put(f"/api/Order/{order_id}/tracking-number", json={"trackingNumber": tracking_number},
                                fallback_message="Failed to update tracking number")

    @staticmethod
    async def update_address(order_id: str, address_id: str, client: ApiClient) -> ApiResult[bool]:
        return await client.put(f"/api/Order/{order_id}/update-address", json={"addressId": address_id},
                                fallback_message="Failed to update delivery address")

    @staticmethod
    async def cancel(order_id: str, client: ApiClient) -> ApiResult[bool]:
        return await client.post(f"/api/Order/{order_id}/cancel", fallback_message="Failed to cancel order")

    @staticmethod
    async def confirm_delivery(order_id: str, client: ApiClient) -> ApiResult[bool]:
        return await client.post(f"/api/Order/{order_id}/confirm-delivery",
                                 fallback_message="Failed to confirm delivery")
