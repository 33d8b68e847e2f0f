"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
from unittest.mock import AsyncMock, MagicMock
import pytest

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Mock config module completely before any imports (no .env needed)
config_mock = MagicMock()
config_mock.API_BASE_URL = "http://backend.test"
config_mock.API_TIMEOUT_SECONDS = 5.0
config_mock.API_ACCESS_TOKEN = ""
config_mock.APP_LANGUAGE = "en"  # For Localizator
config_mock.PAYMENT_CONFIRMATION_GRACE_SECONDS = 1.5
config_mock.PAYMENT_REFETCH_DELAY_SECONDS = 0.5
config_mock.PAYMENT_LINK_TTL_MINUTES = 15
config_mock.PAYMENT_STATUS_POLL_SECONDS = 0.01
config_mock.PAYOS_CHECKOUT_BASE_URL = "https://pay.payos.vn/web/"
config_mock.CART_MAX_QUANTITY = 999
config_mock.LOG_LEVEL = "INFO"
config_mock.LOG_MASK_SECRETS = True
config_mock.LOG_RETENTION_DAYS = 7

sys.modules['config'] = config_mock


# ============================================================================
# Backend Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clean_query_cache():
    """Services default to the module-level cache; start every test empty."""
    from services.query_cache import query_cache
    query_cache.clear()
    yield query_cache
    query_cache.clear()


@pytest.fixture
def mock_client():
    """ApiClient stand-in; repositories are patched, so it is never really called."""
    client = MagicMock()
    client.get = AsyncMock()
    client.post = AsyncMock()
    client.put = AsyncMock()
    return client


@pytest.fixture
def make_order():
    """Factory for OrderDTO snapshots with sensible defaults."""
    from models.order import OrderDTO

    def _make(order_id="o-1", status="Pending", payment_method="COD", payment_status="Pending", **extra):
        return OrderDTO.model_validate({
            "orderId": order_id,
            "shopId": extra.pop("shop_id", "shop-1"),
            "shopName": extra.pop("shop_name", "Shop One"),
            "status": status,
            "paymentMethod": payment_method,
            "paymentStatus": payment_status,
            "totalAmount": extra.pop("total_amount", 100.0),
            **extra,
        })

    return _make


@pytest.fixture
def make_line():
    """Factory for cart lines."""
    from models.cart import CartLineDTO

    def _make(product_id, shop_id="shop-1", shop_name="Shop One", quantity=1, unit_price=10.0):
        return CartLineDTO(
            product_id=product_id,
            product_name=f"Product {product_id}",
            shop_id=shop_id,
            shop_name=shop_name,
            quantity=quantity,
            unit_price=unit_price,
        )

    return _make
