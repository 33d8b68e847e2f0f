"""
Command line entry point for the order/checkout flows.

Examples:
  # Check out the whole cart with cash on delivery
  python run.py checkout --address A1 --method COD

  # Check out two products and go straight to the payment page
  python run.py checkout --address A1 --method Bank --product P1 --product P2 --redirect

  # Show an order with the actions available to a seller
  python run.py show 3fa85f64 --role Seller

  # Ship an order
  python run.py status 3fa85f64 Shipped --role Seller

  # Search every order (admin)
  python run.py orders --scope all --keyword lamp --status Pending
"""

import argparse
import asyncio
import logging
import sys

import config
from backend_api.client import ApiClient
from backend_api.envelope import ApiResult
from enums.checkout_policy import PostCreationPolicy
from enums.message_entity import MessageEntity
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.user_role import UserRole
from exceptions import ShopClientException
from models.checkout import CheckoutSession
from models.order import OrderFilterDTO
from services.cart import CartService
from services.checkout import CheckoutService
from services.order import OrderService
from services.payment import PaymentService
from utils.config_validator import validate_or_exit
from utils.error_handler import describe_api_error, handle_service_error
from utils.localizator import Localizator
from utils.logging_config import setup_logging


def _fail(result: ApiResult) -> int:
    print(f"❌ {describe_api_error(result.error)}", file=sys.stderr)
    return 1


async def cmd_checkout(args, client: ApiClient) -> int:
    cart = await CartService.get_cart(client)
    if not cart.ok:
        return _fail(cart)

    outcome = await CheckoutService.checkout(
        CheckoutSession(),
        cart.data.items,
        args.address,
        PaymentMethod(args.method),
        client,
        selected_product_ids=args.product or None,
        policy=PostCreationPolicy.IMMEDIATE_REDIRECT if args.redirect else PostCreationPolicy.DEFERRED,
        promotion_code=args.promotion_code,
    )
    for warning in outcome.warnings:
        print(warning)
    print(outcome.message)
    if outcome.redirect_url:
        print(f"➡️  {outcome.redirect_url}")
    elif outcome.navigate_to:
        print(f"➡️  {outcome.navigate_to}")
    return 0 if outcome.submission and not outcome.submission.all_failed else 1


async def cmd_show(args, client: ApiClient) -> int:
    order = await OrderService.get_order(args.order_id, client)
    if not order.ok:
        return _fail(order)
    lookup = await PaymentService.load_payment(args.order_id, client)
    if lookup.error_message:
        print(f"⚠️ {lookup.error_message}")

    o = order.data
    print(f"Order {o.order_id} | shop {o.shop_name or o.shop_id}")
    print(f"  Status:  {Localizator.get_status_text(o.status.value)}")
    print(f"  Payment: {o.payment_method.value} / {Localizator.get_status_text(o.payment_status.value)}"
          f"{' (paid)' if o.is_paid else ''}")
    print(f"  Total:   {o.total_amount:.2f}")
    if o.tracking_number:
        print(f"  Tracking: {o.tracking_number}")
    for item in o.items:
        print(f"  - {item.product_name or item.product_id} x{item.quantity}")
    role = UserRole(args.role)
    actions = OrderService.get_available_actions(o, role, lookup.payment)
    print(f"  Actions: {', '.join(actions) if actions else '-'}")
    return 0


async def cmd_status(args, client: ApiClient) -> int:
    order = await OrderService.get_order(args.order_id, client)
    if not order.ok:
        return _fail(order)
    role = UserRole(args.role)
    if not OrderService.get_available_statuses(order.data, role):
        print(Localizator.get_text(MessageEntity.MANAGER, "no_next_status"))
        return 1
    result = await OrderService.update_status(order.data, OrderStatus(args.status), role, client)
    if not result.ok:
        return _fail(result)
    print(Localizator.get_text(MessageEntity.MANAGER, "status_updated").format(status=args.status))
    return 0


async def cmd_tracking(args, client: ApiClient) -> int:
    order = await OrderService.get_order(args.order_id, client)
    if not order.ok:
        return _fail(order)
    result = await OrderService.update_tracking_number(order.data, args.tracking_number, UserRole(args.role), client)
    if not result.ok:
        return _fail(result)
    print(Localizator.get_text(MessageEntity.MANAGER, "tracking_updated"))
    return 0


async def cmd_cancel(args, client: ApiClient) -> int:
    order = await OrderService.get_order(args.order_id, client)
    if not order.ok:
        return _fail(order)
    result = await OrderService.cancel_order(order.data, client)
    if not result.ok:
        return _fail(result)
    print(Localizator.get_text(MessageEntity.CUSTOMER, "order_canceled"))
    return 0


async def cmd_address(args, client: ApiClient) -> int:
    order = await OrderService.get_order(args.order_id, client)
    if not order.ok:
        return _fail(order)
    result = await OrderService.update_address(order.data, args.address, client)
    if not result.ok:
        return _fail(result)
    print(Localizator.get_text(MessageEntity.CUSTOMER, "address_updated"))
    return 0


async def cmd_confirm_delivery(args, client: ApiClient) -> int:
    order = await OrderService.get_order(args.order_id, client)
    if not order.ok:
        return _fail(order)
    result = await OrderService.confirm_delivery(order.data, client)
    if not result.ok:
        return _fail(result)
    print(Localizator.get_text(MessageEntity.CUSTOMER, "delivery_confirmed"))
    return 0


async def cmd_pay(args, client: ApiClient) -> int:
    order = await OrderService.get_order(args.order_id, client)
    if not order.ok:
        return _fail(order)
    o = order.data

    if o.payment_method.is_cash_on_delivery:
        result = await PaymentService.confirm_cash_payment(o, client)
        if not result.ok:
            return _fail(result)
        print(Localizator.get_text(MessageEntity.CUSTOMER, "payment_confirmed"))
        lookup = await PaymentService.refresh_after_confirmation(o.order_id, client)
        if lookup.error_message:
            print(f"⚠️ {lookup.error_message}")
        return 0

    lookup = await PaymentService.load_payment(o.order_id, client)
    result = await PaymentService.start_online_payment(o, client, lookup.payment)
    if not result.ok:
        return _fail(result)
    print(f"➡️  {result.data}")
    if args.wait:
        status = await PaymentService.wait_for_settlement(o.order_id, client, timeout_seconds=args.wait)
        print(Localizator.get_status_text(status.value))
    return 0


async def cmd_orders(args, client: ApiClient) -> int:
    order_filter = OrderFilterDTO(
        page=args.page,
        page_size=args.page_size,
        keyword=args.keyword,
        status=OrderStatus(args.status) if args.status else None,
    )
    if args.scope == "shop":
        if not args.shop_id:
            print("❌ --shop-id is required for --scope shop", file=sys.stderr)
            return 2
        result = await OrderService.get_shop_orders(args.shop_id, client, order_filter)
    elif args.scope == "all":
        result = await OrderService.get_all_orders(client, order_filter)
    elif args.keyword:
        result = await OrderService.search_orders(order_filter, client)
    else:
        result = await OrderService.get_my_orders(client, order_filter)
    if not result.ok:
        return _fail(result)

    page = result.data
    for o in page.data:
        print(f"{o.order_id} | {o.shop_name or o.shop_id or '-'} | "
              f"{Localizator.get_status_text(o.status.value)} | {o.total_amount:.2f}")
    print(f"Page {page.page}/{max(page.total_pages, 1)}, {page.total_count} order(s)")
    return 0


async def cmd_payment_history(args, client: ApiClient) -> int:
    lookup = await PaymentService.load_payment(args.order_id, client)
    if lookup.error_message:
        print(f"❌ {lookup.error_message}", file=sys.stderr)
        return 1
    if lookup.payment is None:
        print(Localizator.get_text(MessageEntity.CUSTOMER, "payment_not_found"))
        return 1

    result = await PaymentService.get_history(lookup.payment.id, client)
    if not result.ok:
        return _fail(result)
    for entry in result.data:
        when = entry.created_at.isoformat(timespec="seconds") if entry.created_at else "-"
        reason = f" | {entry.reason}" if entry.reason else ""
        print(f"{when} | {entry.status} | {entry.changed_by or '-'}{reason}")
    return 0


COMMANDS = {
    "checkout": cmd_checkout,
    "show": cmd_show,
    "status": cmd_status,
    "tracking": cmd_tracking,
    "cancel": cmd_cancel,
    "address": cmd_address,
    "confirm-delivery": cmd_confirm_delivery,
    "pay": cmd_pay,
    "orders": cmd_orders,
    "payment-history": cmd_payment_history,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Marketplace order and checkout client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    checkout = sub.add_parser("checkout", help="Place orders for the cart, one per shop")
    checkout.add_argument("--address", required=True, help="Delivery address id")
    checkout.add_argument("--method", required=True, choices=[m.value for m in PaymentMethod])
    checkout.add_argument("--product", action="append", help="Only check out this product id (repeatable)")
    checkout.add_argument("--promotion-code")
    checkout.add_argument("--redirect", action="store_true",
                          help="Create payment links right away and print the first one (Bank/Wallet)")

    roles = [r.value for r in UserRole]

    show = sub.add_parser("show", help="Show an order and the actions available")
    show.add_argument("order_id")
    show.add_argument("--role", choices=roles, default=UserRole.CUSTOMER.value)

    status = sub.add_parser("status", help="Move an order to its next status (seller/admin)")
    status.add_argument("order_id")
    status.add_argument("status", choices=[s.value for s in OrderStatus])
    status.add_argument("--role", choices=roles, default=UserRole.SELLER.value)

    tracking = sub.add_parser("tracking", help="Attach a tracking number to a confirmed order")
    tracking.add_argument("order_id")
    tracking.add_argument("tracking_number")
    tracking.add_argument("--role", choices=roles, default=UserRole.SELLER.value)

    cancel = sub.add_parser("cancel", help="Cancel a pending or confirmed order")
    cancel.add_argument("order_id")

    address = sub.add_parser("address", help="Change the delivery address of an order")
    address.add_argument("order_id")
    address.add_argument("address")

    confirm = sub.add_parser("confirm-delivery", help="Confirm a shipped and paid order was received")
    confirm.add_argument("order_id")

    pay = sub.add_parser("pay", help="Confirm cash payment or open the online payment link")
    pay.add_argument("order_id")
    pay.add_argument("--wait", type=float, metavar="SECONDS",
                     help="Poll the payment until it settles or SECONDS elapse")

    orders = sub.add_parser("orders", help="List orders (my orders, a shop's orders or every order)")
    orders.add_argument("--scope", choices=["my", "shop", "all"], default="my")
    orders.add_argument("--shop-id", help="Shop id for --scope shop")
    orders.add_argument("--status", choices=[s.value for s in OrderStatus])
    orders.add_argument("--keyword", help="Search by keyword")
    orders.add_argument("--page", type=int)
    orders.add_argument("--page-size", type=int)

    history = sub.add_parser("payment-history", help="Show the status history of an order's payment")
    history.add_argument("order_id")
    return parser


async def run(args) -> int:
    async with ApiClient() as client:
        try:
            return await COMMANDS[args.command](args, client)
        except ShopClientException as e:
            print(f"❌ {handle_service_error(e)}", file=sys.stderr)
            return 2


def main():
    args = build_parser().parse_args()
    validate_or_exit(config)
    setup_logging()
    logging.info(f"🚀 Running '{args.command}' against {config.API_BASE_URL}")
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
