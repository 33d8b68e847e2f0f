import asyncio
import logging
import time
from typing import Callable, Optional

from pydantic import BaseModel

import config
from backend_api.client import ApiClient
from backend_api.envelope import ApiResult
from backend_api.errors import ApiError, BusinessRuleError
from enums.message_entity import MessageEntity
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from enums.user_role import UserRole
from exceptions.payment import PaymentActionNotAllowedException
from models.checkout import PaymentLink
from models.order import OrderDTO
from models.payment import PaymentDTO, PaymentHistoryDTO, PaymentLinkResponseDTO, RefundRequestDTO
from repositories.payment import PaymentRepository
from services.query_cache import QueryCache, query_cache
from utils.error_handler import describe_payment_fetch_error
from utils.localizator import Localizator
from utils.order_state_machine import OrderActionPolicy


def payment_key(order_id: str) -> tuple:
    return ("payments", "order", order_id)


class ConfirmationWindows:
    """
    Per-order error suppression windows opened by a successful payment confirmation.

    Right after a cash confirmation the backend may not have committed the
    payment record yet, so a refetch can still fail. Errors from such a refetch
    are swallowed until the window closes. Windows expire on their own, there
    is no timer to cancel.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._deadlines: dict[str, float] = {}

    def open(self, order_id: str, seconds: float) -> None:
        self._deadlines[order_id] = self._clock() + seconds
        logging.debug(f"Payment error suppression open for order {order_id} ({seconds}s)")

    def is_open(self, order_id: str) -> bool:
        deadline = self._deadlines.get(order_id)
        if deadline is None:
            return False
        if self._clock() >= deadline:
            del self._deadlines[order_id]
            return False
        return True

    def close(self, order_id: str) -> None:
        self._deadlines.pop(order_id, None)


confirmation_windows = ConfirmationWindows()


class PaymentLookup(BaseModel):
    """Outcome of loading the payment shown on an order page."""
    payment: Optional[PaymentDTO] = None
    error: Optional[ApiError] = None
    error_message: Optional[str] = None  # None means nothing to show the user
    suppressed: bool = False


class PaymentService:

    @staticmethod
    async def get_payment_for_order(order_id: str, client: ApiClient,
                                    cache: QueryCache = query_cache) -> ApiResult[PaymentDTO | None]:
        return await cache.get_or_fetch(payment_key(order_id),
                                        lambda: PaymentRepository.get_by_order(order_id, client))

    @staticmethod
    async def load_payment(order_id: str, client: ApiClient, cache: QueryCache = query_cache,
                           windows: ConfirmationWindows = confirmation_windows) -> PaymentLookup:
        """
        Load the payment record and decide whether a failure should be shown.

        A missing record is an empty lookup, never an error. Any failure while a
        confirmation window is open for the order is suppressed. Other failures
        carry a message for the user.
        """
        result = await PaymentService.get_payment_for_order(order_id, client, cache)
        if result.ok:
            return PaymentLookup(payment=result.data)

        if windows.is_open(order_id):
            logging.info(f"🔇 Suppressed payment fetch error for order {order_id} "
                         f"(recent confirmation): {result.error.message}")
            return PaymentLookup(error=result.error, suppressed=True)

        logging.warning(f"⚠️ Payment fetch failed for order {order_id}: {result.error.message}")
        return PaymentLookup(error=result.error, error_message=describe_payment_fetch_error(result.error))

    @staticmethod
    def resolve_checkout_url(response: PaymentLinkResponseDTO) -> str | None:
        return response.resolve_checkout_url(config.PAYOS_CHECKOUT_BASE_URL)

    @staticmethod
    async def initiate_payment(order_id: str, method: PaymentMethod, client: ApiClient,
                               shop_name: str | None = None) -> ApiResult[PaymentLink]:
        """
        Ask the backend for a payment link and extract a redirect URL.

        A successful call without a usable URL is reported as a failure.
        """
        result = await PaymentRepository.process(order_id, method, client)
        if not result.ok:
            return ApiResult.failure(result.error)

        checkout_url = PaymentService.resolve_checkout_url(result.data)
        if checkout_url is None:
            logging.warning(f"⚠️ Payment for order {order_id} returned no usable checkout URL")
            message = Localizator.get_text(MessageEntity.CUSTOMER, "payment_no_link").format(order_id=order_id)
            return ApiResult.failure(BusinessRuleError(message=message, status_code=result.status_code))

        logging.info(f"💳 Payment link ready for order {order_id}")
        return ApiResult.success(PaymentLink(order_id=order_id, checkout_url=checkout_url, shop_name=shop_name))

    @staticmethod
    async def start_online_payment(order: OrderDTO, client: ApiClient, payment: Optional[PaymentDTO] = None,
                                   cache: QueryCache = query_cache) -> ApiResult[str]:
        """
        Pay a confirmed Bank/Wallet order.

        Retries the existing payment link when a pending payment with an order
        code exists, otherwise creates a new one.

        Raises:
            PaymentActionNotAllowedException: If the order is not payable right now
        """
        if not OrderActionPolicy.can_pay_online(order, payment):
            raise PaymentActionNotAllowedException(
                order.order_id, "pay",
                f"status={order.status.value}, payment={order.payment_status.value}, method={order.payment_method.value}"
            )

        if OrderActionPolicy.should_retry_payment(payment):
            result = await PaymentService.retry_payment(payment.id, client)
        else:
            link = await PaymentService.initiate_payment(order.order_id, order.payment_method, client)
            result = link.map(lambda value: value.checkout_url)

        if result.ok:
            cache.invalidate(*payment_key(order.order_id))
        return result

    @staticmethod
    async def retry_payment(payment_id: str, client: ApiClient) -> ApiResult[str]:
        result = await PaymentRepository.retry(payment_id, client)
        if not result.ok:
            return ApiResult.failure(result.error)
        checkout_url = PaymentService.resolve_checkout_url(result.data)
        if checkout_url is None:
            message = Localizator.get_text(MessageEntity.CUSTOMER, "payment_no_link").format(order_id=payment_id)
            return ApiResult.failure(BusinessRuleError(message=message, status_code=result.status_code))
        return ApiResult.success(checkout_url)

    @staticmethod
    async def confirm_cash_payment(order: OrderDTO, client: ApiClient, cache: QueryCache = query_cache,
                                   windows: ConfirmationWindows = confirmation_windows) -> ApiResult[PaymentLinkResponseDTO]:
        """
        Confirm that a delivered COD/Cash order has been paid.

        On success the order and payment views are invalidated and a
        suppression window is opened that covers the delayed refetch done by
        refresh_after_confirmation.

        Raises:
            PaymentActionNotAllowedException: Unless the order is Delivered with a pending payment
        """
        if not OrderActionPolicy.can_confirm_cash_payment(order):
            raise PaymentActionNotAllowedException(
                order.order_id, "confirm_payment",
                f"status={order.status.value}, payment={order.payment_status.value}, method={order.payment_method.value}"
            )

        result = await PaymentRepository.process(order.order_id, order.payment_method, client)
        if not result.ok:
            logging.warning(f"⚠️ Cash confirmation failed for order {order.order_id}: {result.error.message}")
            return result

        windows.open(order.order_id,
                     config.PAYMENT_REFETCH_DELAY_SECONDS + config.PAYMENT_CONFIRMATION_GRACE_SECONDS)
        cache.invalidate("orders")
        cache.invalidate(*payment_key(order.order_id))
        logging.info(f"✅ Cash payment confirmed for order {order.order_id}")
        return result

    @staticmethod
    async def refresh_after_confirmation(order_id: str, client: ApiClient, cache: QueryCache = query_cache,
                                         windows: ConfirmationWindows = confirmation_windows) -> PaymentLookup:
        """Wait for the backend to commit, then refetch the payment record."""
        await asyncio.sleep(config.PAYMENT_REFETCH_DELAY_SECONDS)
        cache.invalidate(*payment_key(order_id))
        cache.invalidate("orders")
        return await PaymentService.load_payment(order_id, client, cache, windows)

    @staticmethod
    async def wait_for_settlement(order_id: str, client: ApiClient, timeout_seconds: float | None = None,
                                  cache: QueryCache = query_cache) -> PaymentStatus:
        """
        Poll the payment record until it is Paid or Failed.

        Fetch errors are logged and polling continues. Returns the last known
        status when the timeout elapses first.
        """
        interval = config.PAYMENT_STATUS_POLL_SECONDS
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_seconds if timeout_seconds is not None else None
        status = PaymentStatus.PENDING

        while True:
            cache.invalidate(*payment_key(order_id))
            result = await PaymentService.get_payment_for_order(order_id, client, cache)
            if not result.ok:
                logging.error(f"Error checking payment status for order {order_id}: {result.error.message}")
            elif result.data is not None:
                status = result.data.status
                if status.is_terminal:
                    logging.info(f"💳 Payment for order {order_id} settled: {status.value}")
                    cache.invalidate("orders")
                    return status

            if deadline is not None and loop.time() + interval > deadline:
                logging.info(f"⏱️ Stopped polling payment for order {order_id}, last status {status.value}")
                return status
            await asyncio.sleep(interval)

    @staticmethod
    async def cancel_payment_link(payment: PaymentDTO, client: ApiClient,
                                  cache: QueryCache = query_cache) -> ApiResult[bool]:
        if payment.status != PaymentStatus.PENDING:
            raise PaymentActionNotAllowedException(payment.order_id, "cancel_link", f"payment is {payment.status.value}")
        result = await PaymentRepository.cancel_link(payment.id, client)
        if result.ok:
            cache.invalidate(*payment_key(payment.order_id))
        return result

    @staticmethod
    async def get_history(payment_id: str, client: ApiClient) -> ApiResult[list[PaymentHistoryDTO]]:
        return await PaymentRepository.get_history(payment_id, client)

    @staticmethod
    async def update_status(payment: PaymentDTO, status: PaymentStatus, role: UserRole, client: ApiClient,
                            reason: str | None = None, cache: QueryCache = query_cache) -> ApiResult[bool]:
        if role != UserRole.ADMIN:
            raise PaymentActionNotAllowedException(payment.order_id, "update_status", "admin only")
        result = await PaymentRepository.update_status(payment.id, status, reason, client)
        if result.ok:
            logging.info(f"💳 Payment {payment.id} status set to {status.value} by admin")
            cache.invalidate(*payment_key(payment.order_id))
            cache.invalidate("orders")
        return result

    @staticmethod
    async def refund(payment: PaymentDTO, amount: float, reason: str, role: UserRole, client: ApiClient,
                     cache: QueryCache = query_cache) -> ApiResult[bool]:
        if not role.can_manage_orders:
            raise PaymentActionNotAllowedException(payment.order_id, "refund", "seller or admin only")
        if payment.status != PaymentStatus.PAID:
            raise PaymentActionNotAllowedException(payment.order_id, "refund", f"payment is {payment.status.value}")
        if amount <= 0 or amount > payment.amount:
            raise PaymentActionNotAllowedException(payment.order_id, "refund", f"invalid amount {amount}")

        request = RefundRequestDTO(payment_id=payment.id, amount=amount, reason=reason)
        result = await PaymentRepository.refund(request, client)
        if result.ok:
            logging.info(f"💸 Refunded {amount:.2f} on payment {payment.id}")
            cache.invalidate(*payment_key(payment.order_id))
            cache.invalidate("orders")
        return result
