"""
Unit Tests: Order status transitions and action gating

Tests for utils/order_state_machine.py covering:
- OrderStateMachine transition table and role checks
- OrderActionPolicy gates for customer and payment actions
- available_actions() per role

Run with: pytest tests/order/unit/test_order_state_machine.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest

from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from enums.user_role import UserRole
from models.payment import PaymentDTO
from utils.order_state_machine import (
    OrderActionPolicy,
    OrderStateMachine,
    get_next_valid_statuses,
    validate_order_transition,
)


def _payment(status=PaymentStatus.PENDING, order_code=None, **extra):
    return PaymentDTO(id="pay-1", order_id="o-1", amount=100.0, method=PaymentMethod.BANK,
                      status=status, order_code=order_code, **extra)


class TestTransitionTable:
    """The manager status picker only ever offers table entries."""

    @pytest.mark.parametrize("current, expected", [
        (OrderStatus.PENDING, [OrderStatus.CONFIRMED, OrderStatus.CANCELED]),
        (OrderStatus.CONFIRMED, [OrderStatus.SHIPPED, OrderStatus.CANCELED]),
        (OrderStatus.SHIPPED, [OrderStatus.DELIVERED, OrderStatus.CANCELED]),
        (OrderStatus.DELIVERED, []),
        (OrderStatus.CANCELED, []),
    ])
    def test_next_statuses(self, current, expected):
        assert OrderStateMachine.get_valid_transitions(current) == expected
        assert get_next_valid_statuses(current) == expected

    def test_current_status_never_offered(self):
        for status in OrderStatus:
            assert status not in OrderStateMachine.get_valid_transitions(status)
            assert not OrderStateMachine.is_valid_transition(status, status)

    def test_final_statuses(self):
        assert OrderStateMachine.is_final_status(OrderStatus.DELIVERED)
        assert OrderStateMachine.is_final_status(OrderStatus.CANCELED)
        assert not OrderStateMachine.is_final_status(OrderStatus.SHIPPED)

    def test_backward_and_skipping_transitions_rejected(self):
        assert not OrderStateMachine.is_valid_transition(OrderStatus.SHIPPED, OrderStatus.CONFIRMED)
        assert not OrderStateMachine.is_valid_transition(OrderStatus.PENDING, OrderStatus.SHIPPED)
        assert not OrderStateMachine.is_valid_transition(OrderStatus.PENDING, OrderStatus.DELIVERED)
        assert not OrderStateMachine.is_valid_transition(OrderStatus.CANCELED, OrderStatus.PENDING)

    def test_string_status_values_accepted(self):
        assert OrderStateMachine.get_valid_transitions("Pending") == [OrderStatus.CONFIRMED, OrderStatus.CANCELED]

    def test_summary(self):
        summary = OrderStateMachine.get_status_summary()

        assert summary['total_statuses'] == 5
        assert summary['total_transitions'] == 6
        assert summary['customer_transitions'] == 2
        assert sorted(summary['final_statuses']) == ["Canceled", "Delivered"]


class TestRoleChecks:
    """validate_and_log_transition() per actor."""

    def test_manager_may_take_any_table_transition(self):
        assert validate_order_transition("o-1", OrderStatus.CONFIRMED, OrderStatus.SHIPPED, UserRole.SELLER)
        assert validate_order_transition("o-1", OrderStatus.SHIPPED, OrderStatus.CANCELED, UserRole.ADMIN)

    def test_customer_may_only_cancel_before_shipping(self):
        assert OrderStateMachine.validate_and_log_transition(
            "o-1", OrderStatus.PENDING, OrderStatus.CANCELED, UserRole.CUSTOMER)
        assert OrderStateMachine.validate_and_log_transition(
            "o-1", OrderStatus.CONFIRMED, OrderStatus.CANCELED, UserRole.CUSTOMER)
        assert not OrderStateMachine.validate_and_log_transition(
            "o-1", OrderStatus.SHIPPED, OrderStatus.CANCELED, UserRole.CUSTOMER)
        assert not OrderStateMachine.validate_and_log_transition(
            "o-1", OrderStatus.PENDING, OrderStatus.CONFIRMED, UserRole.CUSTOMER)

    def test_invalid_transition_rejected_for_everyone(self):
        for role in UserRole:
            assert not OrderStateMachine.validate_and_log_transition(
                "o-1", OrderStatus.DELIVERED, OrderStatus.SHIPPED, role)


class TestActionPolicy:
    """Per-action gates on an order snapshot."""

    @pytest.mark.parametrize("status, allowed", [
        ("Pending", True), ("Confirmed", True), ("Shipped", False), ("Delivered", False), ("Canceled", False),
    ])
    def test_customer_cancel(self, make_order, status, allowed):
        assert OrderActionPolicy.can_customer_cancel(make_order(status=status)) is allowed

    def test_confirm_delivery_requires_shipped_and_paid(self, make_order):
        assert OrderActionPolicy.can_confirm_delivery(make_order(status="Shipped", isPaid=True))
        assert not OrderActionPolicy.can_confirm_delivery(make_order(status="Shipped", isPaid=False))
        assert not OrderActionPolicy.can_confirm_delivery(make_order(status="Confirmed", isPaid=True))

    def test_is_paid_falls_back_to_payment_status(self, make_order):
        assert make_order(status="Shipped", payment_status="Paid").is_paid
        assert not make_order(status="Shipped", payment_status="Pending").is_paid
        # An explicit flag wins over the status
        assert not make_order(status="Shipped", payment_status="Paid", isPaid=False).is_paid

    def test_address_locked_once_shipped(self, make_order):
        assert OrderActionPolicy.can_change_address(make_order(status="Pending"))
        assert OrderActionPolicy.can_change_address(make_order(status="Confirmed"))
        for status in ("Shipped", "Delivered", "Canceled"):
            assert not OrderActionPolicy.can_change_address(make_order(status=status))

    def test_tracking_only_when_confirmed(self, make_order):
        assert OrderActionPolicy.can_update_tracking(make_order(status="Confirmed"))
        assert not OrderActionPolicy.can_update_tracking(make_order(status="Pending"))

    @pytest.mark.parametrize("method", ["COD", "Cash"])
    def test_cash_confirmation_after_delivery(self, make_order, method):
        assert OrderActionPolicy.can_confirm_cash_payment(
            make_order(status="Delivered", payment_method=method, payment_status="Pending"))
        assert not OrderActionPolicy.can_confirm_cash_payment(
            make_order(status="Shipped", payment_method=method, payment_status="Pending"))
        assert not OrderActionPolicy.can_confirm_cash_payment(
            make_order(status="Delivered", payment_method=method, payment_status="Paid"))

    def test_cash_confirmation_not_for_online_methods(self, make_order):
        assert not OrderActionPolicy.can_confirm_cash_payment(
            make_order(status="Delivered", payment_method="Bank", payment_status="Pending"))

    @pytest.mark.parametrize("method", ["Bank", "Wallet"])
    def test_online_payment_after_confirmation(self, make_order, method):
        assert OrderActionPolicy.can_pay_online(make_order(status="Confirmed", payment_method=method))
        assert not OrderActionPolicy.can_pay_online(make_order(status="Pending", payment_method=method))
        assert not OrderActionPolicy.can_pay_online(
            make_order(status="Confirmed", payment_method=method, payment_status="Paid"))

    def test_online_payment_blocked_by_settled_payment_record(self, make_order):
        order = make_order(status="Confirmed", payment_method="Bank")

        assert OrderActionPolicy.can_pay_online(order, _payment(PaymentStatus.PENDING))
        assert not OrderActionPolicy.can_pay_online(order, _payment(PaymentStatus.PAID))
        assert not OrderActionPolicy.can_pay_online(order, _payment(PaymentStatus.FAILED))

    def test_online_payment_not_for_cash(self, make_order):
        assert not OrderActionPolicy.can_pay_online(make_order(status="Confirmed", payment_method="COD"))

    def test_retry_needs_pending_payment_with_order_code(self):
        assert OrderActionPolicy.should_retry_payment(_payment(order_code=123456))
        assert not OrderActionPolicy.should_retry_payment(_payment())
        assert not OrderActionPolicy.should_retry_payment(_payment(PaymentStatus.PAID, order_code=123456))
        assert not OrderActionPolicy.should_retry_payment(None)

    def test_review_after_paid_delivery(self, make_order):
        delivered = make_order(status="Delivered", payment_status="Pending")

        assert not OrderActionPolicy.can_review(delivered)
        assert OrderActionPolicy.can_review(delivered, _payment(PaymentStatus.PAID))
        assert OrderActionPolicy.can_review(make_order(status="Delivered", isPaid=True))
        assert not OrderActionPolicy.can_review(make_order(status="Shipped", isPaid=True))


class TestPaymentLinkStaleness:
    """is_payment_link_stale() uses expiredAt first, record age second."""

    def test_expired_at_in_the_past(self):
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        payment = _payment(expired_at=int((now - timedelta(seconds=1)).timestamp()))

        assert OrderActionPolicy.is_payment_link_stale(payment, ttl_minutes=15, now=now)

    def test_expired_at_in_the_future(self):
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        payment = _payment(expired_at=int((now + timedelta(minutes=5)).timestamp()))

        assert not OrderActionPolicy.is_payment_link_stale(payment, ttl_minutes=15, now=now)

    def test_age_fallback(self):
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

        old = _payment(created_at=datetime(2025, 1, 1, 11, 30))
        fresh = _payment(created_at=datetime(2025, 1, 1, 11, 50))

        assert OrderActionPolicy.is_payment_link_stale(old, ttl_minutes=15, now=now)
        assert not OrderActionPolicy.is_payment_link_stale(fresh, ttl_minutes=15, now=now)

    def test_settled_payment_never_stale(self):
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        payment = _payment(PaymentStatus.PAID, expired_at=0)

        assert not OrderActionPolicy.is_payment_link_stale(payment, ttl_minutes=15, now=now)


class TestAvailableActions:
    """available_actions() lists what each actor may do right now."""

    def test_manager_actions(self, make_order):
        actions = OrderActionPolicy.available_actions(make_order(status="Confirmed"), UserRole.SELLER)

        assert actions == ["status:Shipped", "status:Canceled", "tracking"]

    def test_manager_actions_on_final_order(self, make_order):
        assert OrderActionPolicy.available_actions(make_order(status="Delivered"), UserRole.ADMIN) == []

    def test_customer_pending_cod(self, make_order):
        actions = OrderActionPolicy.available_actions(make_order(status="Pending"), UserRole.CUSTOMER)

        assert actions == ["cancel", "change_address"]

    def test_customer_confirmed_bank_without_payment(self, make_order):
        order = make_order(status="Confirmed", payment_method="Bank")

        assert OrderActionPolicy.available_actions(order, UserRole.CUSTOMER) == ["cancel", "change_address", "pay"]

    def test_customer_confirmed_bank_with_retryable_payment(self, make_order):
        order = make_order(status="Confirmed", payment_method="Bank")
        actions = OrderActionPolicy.available_actions(order, UserRole.CUSTOMER, _payment(order_code=42))

        assert "retry_payment" in actions
        assert "pay" not in actions

    def test_customer_delivered_cod_unpaid(self, make_order):
        order = make_order(status="Delivered", payment_method="COD", payment_status="Pending")

        assert OrderActionPolicy.available_actions(order, UserRole.CUSTOMER) == ["confirm_payment"]

    def test_customer_shipped_paid(self, make_order):
        order = make_order(status="Shipped", payment_method="Bank", payment_status="Paid")

        assert OrderActionPolicy.available_actions(order, UserRole.CUSTOMER) == ["confirm_delivery"]

    def test_customer_delivered_paid(self, make_order):
        order = make_order(status="Delivered", payment_method="Bank", payment_status="Paid")

        assert OrderActionPolicy.available_actions(order, UserRole.CUSTOMER) == ["review"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
