import logging
from typing import Iterable, Optional

from backend_api.client import ApiClient
from backend_api.envelope import ApiResult
from enums.checkout_policy import PostCreationPolicy
from enums.checkout_state import CheckoutState
from enums.message_entity import MessageEntity
from enums.payment_method import PaymentMethod
from exceptions.cart import EmptyCartException, UnresolvableShopException
from exceptions.checkout import CheckoutInProgressException, MissingAddressException
from models.cart import CartLineDTO
from models.checkout import (
    CartPartition,
    CheckoutOutcome,
    CheckoutSession,
    FailedShopOrder,
    OrderSubmissionReport,
    PaymentFailure,
    PaymentInitiationReport,
)
from models.order import OrderCreateRequestDTO, OrderDTO, OrderItemCreateDTO
from repositories.order import OrderRepository
from services.cart import CartService
from services.payment import PaymentService
from services.query_cache import QueryCache, query_cache
from utils.batch import settle_all
from utils.error_handler import extract_error_message
from utils.localizator import Localizator

# Placeholder some cart payloads carry instead of a real shop id
UNKNOWN_SHOP_ID = "unknown"


def _text(key: str, **kwargs) -> str:
    text = Localizator.get_text(MessageEntity.CUSTOMER, key)
    return text.format(**kwargs) if kwargs else text


class CheckoutService:

    @staticmethod
    def validate(partition: CartPartition, address_id: str | None) -> None:
        """
        Pre-submission checks. Nothing has been sent when one of these raises.

        Raises:
            EmptyCartException: Nothing selected
            UnresolvableShopException: No line can be attributed to a shop, or a group has a placeholder shop id
            MissingAddressException: No delivery address selected
        """
        if not partition.groups and not partition.unresolved:
            raise EmptyCartException()
        if not address_id or not address_id.strip():
            raise MissingAddressException()
        if not partition.groups:
            raise UnresolvableShopException([line.product_id for line in partition.unresolved])

        invalid_groups = [shop_id for shop_id in partition.groups
                          if not shop_id.strip() or shop_id.strip().lower() == UNKNOWN_SHOP_ID]
        if invalid_groups:
            product_ids = [line.product_id for shop_id in invalid_groups for line in partition.groups[shop_id].lines]
            raise UnresolvableShopException(product_ids)

    @staticmethod
    def build_order_requests(partition: CartPartition, address_id: str, payment_method: PaymentMethod,
                             promotion_code: str | None = None) -> list[OrderCreateRequestDTO]:
        """One frozen create request per shop group, all sharing address and payment method."""
        requests = []
        for group in partition.groups.values():
            requests.append(OrderCreateRequestDTO(
                shop_id=group.shop_id,
                address_id=address_id,
                items=tuple(OrderItemCreateDTO(product_id=line.product_id, quantity=line.quantity)
                            for line in group.lines),
                payment_method=payment_method,
                shipping_fee=group.shipping_fee,
                discount_amount=0.0,
                promotion_code=promotion_code,
            ))
        return requests

    @staticmethod
    async def submit_orders(requests: list[OrderCreateRequestDTO], client: ApiClient,
                            shop_names: Optional[dict[str, str]] = None) -> OrderSubmissionReport:
        """
        Create every shop's order concurrently and wait for all of them.

        One shop's failure never cancels another's request; the report is
        assembled only once every request has settled.
        """
        shop_names = shop_names or {}
        outcomes = await settle_all(
            (OrderRepository.create(request, client) for request in requests),
            label="create-orders",
        )

        report = OrderSubmissionReport()
        for request, outcome in zip(requests, outcomes):
            shop_name = shop_names.get(request.shop_id) or request.shop_id
            if not outcome.fulfilled:
                # A bug below the transport boundary, still only this shop's failure
                report.failed_orders.append(FailedShopOrder(
                    shop_id=request.shop_id, shop_name=shop_name, error=None,
                    message=str(outcome.exception) or extract_error_message(None),
                ))
                continue

            result: ApiResult[list[OrderDTO]] = outcome.value
            if result.ok:
                logging.info(f"✅ Shop {request.shop_id}: {len(result.data)} order(s) created")
                report.successful_orders.extend(result.data)
            else:
                message = extract_error_message(result.error)
                logging.warning(f"❌ Shop {request.shop_id}: order creation failed: {message}")
                report.failed_orders.append(FailedShopOrder(
                    shop_id=request.shop_id, shop_name=shop_name, error=result.error, message=message,
                ))

        logging.info(f"📊 Order submission: {len(report.successful_orders)} created, "
                     f"{len(report.failed_orders)} shop(s) failed")
        return report

    @staticmethod
    async def initiate_online_payments(orders: list[OrderDTO], payment_method: PaymentMethod,
                                       client: ApiClient) -> PaymentInitiationReport:
        """Request a payment link for every order concurrently, all-settled like order creation."""
        outcomes = await settle_all(
            (PaymentService.initiate_payment(order.order_id, payment_method, client, order.shop_name)
             for order in orders),
            label="initiate-payments",
        )

        report = PaymentInitiationReport()
        for order, outcome in zip(orders, outcomes):
            if not outcome.fulfilled:
                report.failures.append(PaymentFailure(
                    order_id=order.order_id,
                    message=str(outcome.exception) or extract_error_message(None),
                ))
            elif outcome.value.ok:
                report.links.append(outcome.value.data)
            else:
                report.failures.append(PaymentFailure(
                    order_id=order.order_id,
                    message=extract_error_message(outcome.value.error),
                    error=outcome.value.error,
                ))

        logging.info(f"💳 Payment initiation: {len(report.links)} link(s), {len(report.failures)} failure(s)")
        return report

    @staticmethod
    def _failure_summary(report: OrderSubmissionReport) -> str:
        return "\n".join(_text("checkout_failed_shop", shop=f.shop_name, reason=f.message)
                         for f in report.failed_orders)

    @staticmethod
    async def checkout(session: CheckoutSession, lines: Iterable[CartLineDTO], address_id: str | None,
                       payment_method: PaymentMethod, client: ApiClient,
                       selected_product_ids: Optional[Iterable[str]] = None,
                       policy: PostCreationPolicy = PostCreationPolicy.DEFERRED,
                       promotion_code: str | None = None,
                       cache: QueryCache = query_cache) -> CheckoutOutcome:
        """
        Run one checkout attempt end to end.

        Partition, validate, create one order per shop concurrently, reconcile,
        then apply the post-creation payment policy. Local validation problems
        raise before any request is made; remote failures end up in the
        returned outcome. Zero created orders is a FAILED outcome and no
        payment call is made.

        Raises:
            CheckoutInProgressException: The session is already submitting
            EmptyCartException / MissingAddressException / UnresolvableShopException /
            InvalidCartLineException: Pre-submission validation failed
        """
        if session.is_submitting:
            raise CheckoutInProgressException(session.session_id)

        partition = CartService.partition(lines, selected_product_ids)
        CheckoutService.validate(partition, address_id)

        warnings = []
        if partition.has_unresolved:
            warnings.append(_text("checkout_unresolved_warning", count=len(partition.unresolved)))

        requests = CheckoutService.build_order_requests(partition, address_id, payment_method, promotion_code)
        shop_names = {shop_id: group.shop_name for shop_id, group in partition.groups.items()}

        session.state = CheckoutState.SUBMITTING
        logging.info(f"🧾 Checkout {session.session_id}: submitting {len(requests)} order(s), "
                     f"method={payment_method.value}, policy={policy.value}")
        try:
            outcome = await CheckoutService._submit_and_settle(
                requests, shop_names, payment_method, policy, warnings, client, cache
            )
        except BaseException:
            # Cancellation included: an interrupted submission must release the session
            session.state = CheckoutState.FAILED
            raise

        session.state = outcome.state
        session.last_outcome = outcome
        logging.info(f"🧾 Checkout {session.session_id} finished: {outcome.state.value}")
        return outcome

    @staticmethod
    async def _submit_and_settle(requests: list[OrderCreateRequestDTO], shop_names: dict[str, str],
                                 payment_method: PaymentMethod, policy: PostCreationPolicy,
                                 warnings: list[str], client: ApiClient, cache: QueryCache) -> CheckoutOutcome:
        submission = await CheckoutService.submit_orders(requests, client, shop_names)

        if submission.all_failed:
            return CheckoutOutcome(
                state=CheckoutState.FAILED,
                message=_text("checkout_failed", details=CheckoutService._failure_summary(submission)),
                submission=submission,
                warnings=warnings,
            )

        if submission.partially_failed:
            warnings.append(_text(
                "checkout_partial_warning",
                failed=len(submission.failed_orders),
                created=len(submission.successful_orders),
                details=CheckoutService._failure_summary(submission),
            ))
        state = CheckoutState.PARTIALLY_FAILED if submission.partially_failed else CheckoutState.SUCCEEDED
        first_order_id = submission.successful_orders[0].order_id
        cache.invalidate("orders")

        if policy == PostCreationPolicy.IMMEDIATE_REDIRECT and payment_method.is_online:
            payment = await CheckoutService.initiate_online_payments(
                submission.successful_orders, payment_method, client
            )
            if payment.failures:
                details = "\n".join(_text("payment_failed_order", order_id=f.order_id, reason=f.message)
                                    for f in payment.failures)
                warnings.append(_text("payment_partial_warning", count=len(payment.failures), details=details))
            await CartService.refresh(client, cache)

            if payment.links:
                return CheckoutOutcome(
                    state=state,
                    message=_text("checkout_redirecting", count=len(submission.successful_orders)),
                    submission=submission,
                    payment=payment,
                    warnings=warnings,
                    redirect_url=payment.links[0].checkout_url,
                )
            return CheckoutOutcome(
                state=state,
                message=_text("payment_no_links"),
                submission=submission,
                payment=payment,
                warnings=warnings,
                navigate_to=f"/orders/{first_order_id}",
            )

        # Deferred: cash settles on delivery, online links open after the shop confirms
        await CartService.refresh(client, cache)
        key = "checkout_success_cash" if payment_method.is_cash_on_delivery else "checkout_success_online"
        return CheckoutOutcome(
            state=state,
            message=_text(key, count=len(submission.successful_orders)),
            submission=submission,
            warnings=warnings,
            navigate_to=f"/orders/{first_order_id}",
        )
