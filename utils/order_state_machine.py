"""
Order State Machine for validating order status transitions and gating order actions.

This module is the single place that decides which next statuses a manager is
offered and which customer/payment actions an order currently allows. Services
never build a status change request without asking it first.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from enums.user_role import UserRole
from models.order import OrderDTO
from models.payment import PaymentDTO

logger = logging.getLogger(__name__)


class OrderStatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus, customer_allowed: bool = False,
                 description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.customer_allowed = customer_allowed
        self.description = description

    def __repr__(self):
        customer_flag = " (Customer)" if self.customer_allowed else ""
        return f"{self.from_status.value} -> {self.to_status.value}{customer_flag}"


class OrderStateMachine:
    """
    Finite state machine for order status transitions.

    Valid status transitions:
    - Pending -> Confirmed (shop accepts the order)
    - Pending -> Canceled (customer or manager)
    - Confirmed -> Shipped (manager)
    - Confirmed -> Canceled (customer or manager)
    - Shipped -> Delivered (manager)
    - Shipped -> Canceled (manager only)

    Delivered and Canceled are final. Staying in the same status is not a
    transition and is never offered.
    """

    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        # From Pending
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            description="Order confirmed by shop"
        ),
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.CANCELED,
            customer_allowed=True,
            description="Order canceled before confirmation"
        ),

        # From Confirmed
        OrderStatusTransition(
            OrderStatus.CONFIRMED,
            OrderStatus.SHIPPED,
            description="Order handed over to the carrier"
        ),
        OrderStatusTransition(
            OrderStatus.CONFIRMED,
            OrderStatus.CANCELED,
            customer_allowed=True,
            description="Confirmed order canceled"
        ),

        # From Shipped
        OrderStatusTransition(
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            description="Order delivered"
        ),
        OrderStatusTransition(
            OrderStatus.SHIPPED,
            OrderStatus.CANCELED,
            description="Shipped order canceled by shop"
        ),
    ]

    # Statuses in which the delivery address can no longer change
    ADDRESS_LOCKED_STATUSES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELED}

    _transition_map: Dict[OrderStatus, List[OrderStatus]] = {}
    _customer_transitions: Set[tuple] = set()
    _transition_descriptions: Dict[tuple, str] = {}

    @classmethod
    def _build_transition_map(cls):
        """Build internal transition maps for fast lookup"""
        if cls._transition_map:
            return

        for status in OrderStatus:
            cls._transition_map[status] = []

        for transition in cls.VALID_TRANSITIONS:
            # List keeps table order, so options are offered in a stable order
            cls._transition_map[transition.from_status].append(transition.to_status)
            if transition.customer_allowed:
                cls._customer_transitions.add((transition.from_status, transition.to_status))
            cls._transition_descriptions[(transition.from_status, transition.to_status)] = transition.description

    @classmethod
    def is_valid_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """
        Check if a status transition is in the transition table.

        Args:
            from_status: Current order status
            to_status: Desired new status

        Returns:
            True if transition is valid, False otherwise
        """
        cls._build_transition_map()
        return to_status in cls._transition_map.get(OrderStatus(from_status), [])

    @classmethod
    def get_valid_transitions(cls, from_status: OrderStatus) -> List[OrderStatus]:
        """
        Get all next statuses a manager may be offered from the current status.

        Args:
            from_status: Current order status

        Returns:
            List of valid next statuses (empty for final statuses)
        """
        cls._build_transition_map()
        return list(cls._transition_map.get(OrderStatus(from_status), []))

    @classmethod
    def is_customer_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        cls._build_transition_map()
        return (OrderStatus(from_status), OrderStatus(to_status)) in cls._customer_transitions

    @classmethod
    def get_transition_description(cls, from_status: OrderStatus, to_status: OrderStatus) -> str:
        cls._build_transition_map()
        return cls._transition_descriptions.get(
            (from_status, to_status),
            f"Transition from {from_status} to {to_status}"
        )

    @classmethod
    def is_final_status(cls, status: OrderStatus) -> bool:
        """
        Check if a status is final (no transitions allowed from it).

        Args:
            status: Order status to check

        Returns:
            True if status is final, False otherwise
        """
        return len(cls.get_valid_transitions(status)) == 0

    @classmethod
    def validate_and_log_transition(cls, order_id: str, from_status: OrderStatus, to_status: OrderStatus,
                                    role: UserRole = UserRole.SELLER) -> bool:
        """
        Validate a status transition for the given actor and log it.

        Managers may take any transition in the table, customers only the
        cancellations flagged as customer-allowed.

        Args:
            order_id: ID of the order being transitioned
            from_status: Current order status
            to_status: Desired new status
            role: Role of the actor requesting the transition

        Returns:
            True if transition is valid and logged, False otherwise
        """
        if not cls.is_valid_transition(from_status, to_status):
            logger.error(f"Invalid status transition for order {order_id}: {from_status} -> {to_status}")
            return False

        if not role.can_manage_orders and not cls.is_customer_transition(from_status, to_status):
            logger.error(f"Manager role required for transition {from_status} -> {to_status} on order {order_id}")
            return False

        transition_desc = cls.get_transition_description(from_status, to_status)
        logger.info(
            f"ORDER_STATUS_TRANSITION: Order {order_id} {from_status.value} -> {to_status.value} "
            f"by {role.value}: {transition_desc}"
        )
        return True

    @classmethod
    def get_status_summary(cls) -> dict:
        """
        Get a summary of the state machine configuration.

        Returns:
            Dictionary with state machine statistics and configuration
        """
        cls._build_transition_map()
        return {
            'total_statuses': len(cls._transition_map),
            'total_transitions': len(cls.VALID_TRANSITIONS),
            'customer_transitions': len(cls._customer_transitions),
            'final_statuses': [status.value for status in OrderStatus if cls.is_final_status(status)],
            'transition_map': {k.value: [v.value for v in vs] for k, vs in cls._transition_map.items()},
            'valid_transitions': [str(t) for t in cls.VALID_TRANSITIONS],
        }


class OrderActionPolicy:
    """
    Which actions an order currently offers.

    Every check is a pure function of the order snapshot (and the payment record
    where relevant); nothing here talks to the backend.
    """

    @staticmethod
    def can_customer_cancel(order: OrderDTO) -> bool:
        return order.status in (OrderStatus.PENDING, OrderStatus.CONFIRMED)

    @staticmethod
    def can_confirm_delivery(order: OrderDTO) -> bool:
        return order.status == OrderStatus.SHIPPED and order.is_paid

    @staticmethod
    def can_update_tracking(order: OrderDTO) -> bool:
        return order.status == OrderStatus.CONFIRMED

    @staticmethod
    def can_change_address(order: OrderDTO) -> bool:
        return order.status not in OrderStateMachine.ADDRESS_LOCKED_STATUSES

    @staticmethod
    def can_review(order: OrderDTO, payment: Optional[PaymentDTO] = None) -> bool:
        if order.status != OrderStatus.DELIVERED:
            return False
        if payment is not None and payment.status == PaymentStatus.PAID:
            return True
        return order.is_paid

    @staticmethod
    def can_confirm_cash_payment(order: OrderDTO) -> bool:
        """Cash settlement is confirmed only after the shop has marked the order delivered."""
        return (order.payment_method.is_cash_on_delivery
                and order.status == OrderStatus.DELIVERED
                and order.payment_status == PaymentStatus.PENDING)

    @staticmethod
    def can_pay_online(order: OrderDTO, payment: Optional[PaymentDTO] = None) -> bool:
        """Online payment opens once the shop confirms, and only while nothing is settled yet."""
        if not order.payment_method.is_online:
            return False
        if order.status != OrderStatus.CONFIRMED or order.payment_status != PaymentStatus.PENDING:
            return False
        return payment is None or payment.status == PaymentStatus.PENDING

    @staticmethod
    def should_retry_payment(payment: Optional[PaymentDTO]) -> bool:
        """An existing pending payment with a PayOS order code is retried instead of processed again."""
        return payment is not None and payment.status == PaymentStatus.PENDING and payment.order_code is not None

    @staticmethod
    def is_payment_link_stale(payment: PaymentDTO, ttl_minutes: int,
                              now: Optional[datetime] = None) -> bool:
        """
        Whether a pending payment link should be offered for retry.

        Uses expiredAt when the backend sent it, otherwise the record age.
        """
        if payment.status != PaymentStatus.PENDING:
            return False
        now = now or datetime.now(timezone.utc)
        if payment.expired_at is not None:
            return now.timestamp() >= payment.expired_at
        if payment.created_at is None:
            return False
        created_at = payment.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return now - created_at > timedelta(minutes=ttl_minutes)

    @staticmethod
    def available_actions(order: OrderDTO, role: UserRole, payment: Optional[PaymentDTO] = None) -> List[str]:
        """
        List the action names the given actor may invoke right now.

        Manager actions are named "status:<Next>" and "tracking", customer actions
        "cancel", "confirm_delivery", "change_address", "confirm_payment", "pay",
        "retry_payment" and "review".
        """
        actions = []
        if role.can_manage_orders:
            actions.extend(f"status:{s.value}" for s in OrderStateMachine.get_valid_transitions(order.status))
            if OrderActionPolicy.can_update_tracking(order):
                actions.append("tracking")
            return actions

        if OrderActionPolicy.can_customer_cancel(order):
            actions.append("cancel")
        if OrderActionPolicy.can_change_address(order):
            actions.append("change_address")
        if OrderActionPolicy.can_confirm_delivery(order):
            actions.append("confirm_delivery")
        if OrderActionPolicy.can_confirm_cash_payment(order):
            actions.append("confirm_payment")
        if OrderActionPolicy.can_pay_online(order, payment):
            actions.append("retry_payment" if OrderActionPolicy.should_retry_payment(payment) else "pay")
        if OrderActionPolicy.can_review(order, payment):
            actions.append("review")
        return actions


# Convenience functions for common operations
def validate_order_transition(order_id: str, current_status: OrderStatus, new_status: OrderStatus,
                              role: UserRole = UserRole.SELLER) -> bool:
    return OrderStateMachine.validate_and_log_transition(order_id, current_status, new_status, role)


def get_next_valid_statuses(current_status: OrderStatus) -> List[OrderStatus]:
    return OrderStateMachine.get_valid_transitions(current_status)

