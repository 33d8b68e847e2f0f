"""
Models Package

Wire DTOs (pydantic) for the backend resources plus the transient checkout
structures built on top of them.
"""

from models.cart import CartDTO, CartLineDTO
from models.checkout import (
    CartPartition,
    CheckoutOutcome,
    CheckoutSession,
    FailedShopOrder,
    OrderSubmissionReport,
    PaymentFailure,
    PaymentInitiationReport,
    PaymentLink,
    ShopOrderGroup,
)
from models.order import OrderCreateRequestDTO, OrderDTO, OrderFilterDTO, OrderItemCreateDTO, OrderItemDTO, PagedOrdersDTO
from models.payment import PaymentDTO, PaymentHistoryDTO, PaymentLinkDataDTO, PaymentLinkResponseDTO, RefundRequestDTO

__all__ = [
    'CartDTO',
    'CartLineDTO',
    'CartPartition',
    'CheckoutOutcome',
    'CheckoutSession',
    'FailedShopOrder',
    'OrderSubmissionReport',
    'PaymentFailure',
    'PaymentInitiationReport',
    'PaymentLink',
    'ShopOrderGroup',
    'OrderCreateRequestDTO',
    'OrderDTO',
    'OrderFilterDTO',
    'OrderItemCreateDTO',
    'OrderItemDTO',
    'PagedOrdersDTO',
    'PaymentDTO',
    'PaymentHistoryDTO',
    'PaymentLinkDataDTO',
    'PaymentLinkResponseDTO',
    'RefundRequestDTO',
]
