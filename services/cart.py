import logging
from typing import Iterable, Optional

import config
from backend_api.client import ApiClient
from backend_api.envelope import ApiResult
from exceptions.cart import InvalidCartLineException
from models.cart import CartDTO, CartLineDTO
from models.checkout import CartPartition, ShopOrderGroup
from repositories.cart import CartRepository
from services.query_cache import QueryCache, query_cache

CART_KEY = ("cart",)


class CartService:

    @staticmethod
    async def get_cart(client: ApiClient, cache: QueryCache = query_cache) -> ApiResult[CartDTO]:
        return await cache.get_or_fetch(CART_KEY, lambda: CartRepository.get(client))

    @staticmethod
    async def refresh(client: ApiClient, cache: QueryCache = query_cache) -> ApiResult[CartDTO]:
        """Drop the cached cart and load it again (after a checkout consumed some lines)."""
        cache.invalidate(*CART_KEY)
        result = await CartService.get_cart(client, cache)
        if not result.ok:
            logging.warning(f"⚠️ Cart refresh failed: {result.error.message}")
        return result

    @staticmethod
    def validate_line(line: CartLineDTO) -> None:
        if not line.product_id or not line.product_id.strip():
            raise InvalidCartLineException(line.product_id, "product id is required")
        if line.quantity < 1:
            raise InvalidCartLineException(line.product_id, "quantity must be at least 1")
        if line.quantity > config.CART_MAX_QUANTITY:
            raise InvalidCartLineException(line.product_id, f"quantity must not exceed {config.CART_MAX_QUANTITY}")

    @staticmethod
    def filter_selected(lines: Iterable[CartLineDTO],
                        selected_product_ids: Optional[Iterable[str]] = None) -> list[CartLineDTO]:
        """Keep only the lines the customer ticked. No selection means the whole cart."""
        lines = list(lines)
        if selected_product_ids is None:
            return lines
        selected = set(selected_product_ids)
        return [line for line in lines if line.product_id in selected]

    @staticmethod
    def partition(lines: Iterable[CartLineDTO],
                  selected_product_ids: Optional[Iterable[str]] = None) -> CartPartition:
        """
        Group cart lines by owning shop.

        Single pass over the (selected) lines. Lines whose shop id is missing or
        blank after trimming go to the unresolved side list instead of being
        dropped; callers must warn about them before submitting.

        Raises:
            InvalidCartLineException: If a line has no product id or an out-of-range quantity
        """
        partition = CartPartition()
        for line in CartService.filter_selected(lines, selected_product_ids):
            CartService.validate_line(line)
            shop_id = (line.shop_id or "").strip()
            if not shop_id:
                logging.warning(f"⚠️ Cart line {line.product_id} ({line.product_name}) has no shop id")
                partition.unresolved.append(line)
                continue

            group = partition.groups.get(shop_id)
            if group is None:
                group = ShopOrderGroup(shop_id=shop_id, shop_name=line.shop_name)
                partition.groups[shop_id] = group
            elif not group.shop_name and line.shop_name:
                group.shop_name = line.shop_name
            group.lines.append(line)

        logging.info(
            f"🛒 Partitioned cart into {len(partition.groups)} shop group(s), "
            f"{len(partition.unresolved)} unresolved line(s), total {partition.grand_total:.2f}"
        )
        return partition
