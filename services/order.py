import logging
from typing import Optional

from backend_api.client import ApiClient
from backend_api.envelope import ApiResult
from enums.order_status import OrderStatus
from enums.user_role import UserRole
from exceptions.order import InvalidOrderStateException, OrderActionNotAllowedException
from models.order import OrderDTO, OrderFilterDTO, PagedOrdersDTO
from models.payment import PaymentDTO
from repositories.order import OrderRepository
from services.payment import payment_key
from services.query_cache import QueryCache, query_cache
from utils.order_state_machine import OrderActionPolicy, OrderStateMachine


def order_key(order_id: str) -> tuple:
    return ("orders", "detail", order_id)


def _filter_key(order_filter: OrderFilterDTO | None) -> tuple:
    if order_filter is None:
        return ()
    return tuple(sorted(order_filter.to_query_params().items()))


class OrderService:
    """
    Order reads and the order mutations offered on the order pages.

    Every mutation is checked against the state machine before anything is
    sent, is one remote call, and on success drops the cached order detail,
    order lists and payment record. Nothing is patched locally.
    """

    @staticmethod
    async def get_order(order_id: str, client: ApiClient, cache: QueryCache = query_cache) -> ApiResult[OrderDTO]:
        return await cache.get_or_fetch(order_key(order_id), lambda: OrderRepository.get_by_id(order_id, client))

    @staticmethod
    async def get_my_orders(client: ApiClient, order_filter: OrderFilterDTO | None = None,
                            cache: QueryCache = query_cache) -> ApiResult[PagedOrdersDTO]:
        key = ("orders", "my") + _filter_key(order_filter)
        return await cache.get_or_fetch(key, lambda: OrderRepository.get_my_orders(order_filter, client))

    @staticmethod
    async def get_shop_orders(shop_id: str, client: ApiClient, order_filter: OrderFilterDTO | None = None,
                              cache: QueryCache = query_cache) -> ApiResult[PagedOrdersDTO]:
        key = ("orders", "shop", shop_id) + _filter_key(order_filter)
        return await cache.get_or_fetch(key, lambda: OrderRepository.get_shop_orders(shop_id, order_filter, client))

    @staticmethod
    async def get_all_orders(client: ApiClient, order_filter: OrderFilterDTO | None = None,
                             cache: QueryCache = query_cache) -> ApiResult[PagedOrdersDTO]:
        key = ("orders", "all") + _filter_key(order_filter)
        return await cache.get_or_fetch(key, lambda: OrderRepository.get_all(order_filter, client))

    @staticmethod
    async def search_orders(order_filter: OrderFilterDTO, client: ApiClient,
                            cache: QueryCache = query_cache) -> ApiResult[PagedOrdersDTO]:
        key = ("orders", "search") + _filter_key(order_filter)
        return await cache.get_or_fetch(key, lambda: OrderRepository.search(order_filter, client))

    @staticmethod
    def invalidate_order(order_id: str, cache: QueryCache = query_cache) -> None:
        cache.invalidate("orders")
        cache.invalidate(*payment_key(order_id))

    @staticmethod
    def get_available_statuses(order: OrderDTO, role: UserRole) -> list[OrderStatus]:
        """Next statuses to offer in the status picker. Customers never get one."""
        if not role.can_manage_orders:
            return []
        return OrderStateMachine.get_valid_transitions(order.status)

    @staticmethod
    def get_available_actions(order: OrderDTO, role: UserRole, payment: Optional[PaymentDTO] = None) -> list[str]:
        return OrderActionPolicy.available_actions(order, role, payment)

    @staticmethod
    async def update_status(order: OrderDTO, new_status: OrderStatus, role: UserRole, client: ApiClient,
                            cache: QueryCache = query_cache) -> ApiResult[bool]:
        """
        Move an order to the next status.

        Raises:
            OrderActionNotAllowedException: If a customer asks for a manager status change
            InvalidOrderStateException: If new_status is not offered from the current status
        """
        if not role.can_manage_orders:
            raise OrderActionNotAllowedException(order.order_id, "update_status", "seller or admin only")
        if not OrderStateMachine.validate_and_log_transition(order.order_id, order.status, new_status, role):
            raise InvalidOrderStateException(order.order_id, order.status.value, new_status.value)

        result = await OrderRepository.update_status(order.order_id, new_status, client)
        if result.ok:
            logging.info(f"✅ Order {order.order_id} status updated {order.status.value} -> {new_status.value}")
            OrderService.invalidate_order(order.order_id, cache)
        else:
            logging.warning(f"⚠️ Status update failed for order {order.order_id}: {result.error.message}")
        return result

    @staticmethod
    async def update_tracking_number(order: OrderDTO, tracking_number: str, role: UserRole, client: ApiClient,
                                     cache: QueryCache = query_cache) -> ApiResult[bool]:
        if not role.can_manage_orders:
            raise OrderActionNotAllowedException(order.order_id, "tracking", "seller or admin only")
        if not OrderActionPolicy.can_update_tracking(order):
            raise InvalidOrderStateException(order.order_id, order.status.value, OrderStatus.CONFIRMED.value)
        tracking_number = (tracking_number or "").strip()
        if not tracking_number:
            raise OrderActionNotAllowedException(order.order_id, "tracking", "tracking number is empty")

        result = await OrderRepository.update_tracking_number(order.order_id, tracking_number, client)
        if result.ok:
            logging.info(f"🚚 Tracking number set for order {order.order_id}")
            OrderService.invalidate_order(order.order_id, cache)
        return result

    @staticmethod
    async def update_address(order: OrderDTO, address_id: str, client: ApiClient,
                             cache: QueryCache = query_cache) -> ApiResult[bool]:
        if not address_id:
            raise OrderActionNotAllowedException(order.order_id, "change_address", "no address selected")
        if not OrderActionPolicy.can_change_address(order):
            raise OrderActionNotAllowedException(order.order_id, "change_address",
                                                 f"order is {order.status.value}")

        result = await OrderRepository.update_address(order.order_id, address_id, client)
        if result.ok:
            logging.info(f"🏠 Delivery address changed for order {order.order_id}")
            OrderService.invalidate_order(order.order_id, cache)
        return result

    @staticmethod
    async def cancel_order(order: OrderDTO, client: ApiClient, cache: QueryCache = query_cache) -> ApiResult[bool]:
        """Customer cancellation, only while Pending or Confirmed."""
        if not OrderActionPolicy.can_customer_cancel(order):
            raise InvalidOrderStateException(order.order_id, order.status.value, OrderStatus.CANCELED.value)
        OrderStateMachine.validate_and_log_transition(order.order_id, order.status, OrderStatus.CANCELED,
                                                      UserRole.CUSTOMER)

        result = await OrderRepository.cancel(order.order_id, client)
        if result.ok:
            logging.info(f"🚫 Order {order.order_id} canceled by customer")
            OrderService.invalidate_order(order.order_id, cache)
        return result

    @staticmethod
    async def confirm_delivery(order: OrderDTO, client: ApiClient, cache: QueryCache = query_cache) -> ApiResult[bool]:
        """
        Customer confirms receipt.

        Raises:
            OrderActionNotAllowedException: Unless the order is Shipped and paid
        """
        if not OrderActionPolicy.can_confirm_delivery(order):
            reason = "order is not shipped" if order.status != OrderStatus.SHIPPED else "order is not paid"
            raise OrderActionNotAllowedException(order.order_id, "confirm_delivery", reason)

        result = await OrderRepository.confirm_delivery(order.order_id, client)
        if result.ok:
            logging.info(f"📦 Delivery confirmed for order {order.order_id}")
            OrderService.invalidate_order(order.order_id, cache)
        return result
