from backend_api.client import ApiClient
from backend_api.envelope import ApiResult, parse_result
from models.cart import CartDTO


class CartRepository:
    @staticmethod
    async def get(client: ApiClient) -> ApiResult[CartDTO]:
        result = await client.get("/api/Cart", fallback_message="Failed to load cart")
        return parse_result(result, CartDTO.model_validate)
