import asyncio
import logging
from typing import Any

import aiohttp

import config
from backend_api.envelope import (
    DEFAULT_FAILURE_MESSAGE,
    ApiResult,
    classify_http_error,
    normalize_envelope,
)
from backend_api.errors import TransportError

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Thin aiohttp wrapper around the marketplace REST backend.

    Never raises for remote failures: every call resolves to an ApiResult whose
    error is one of the tagged variants in backend_api.errors. One client owns one
    ClientSession; use it as an async context manager or call close().
    """

    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None,
                 access_token: str | None = None, session: aiohttp.ClientSession | None = None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds or config.API_TIMEOUT_SECONDS
        self.access_token = access_token if access_token is not None else config.API_ACCESS_TOKEN
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                headers={"Content-Type": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    @staticmethod
    async def _read_payload(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return None

    async def request(self, method: str, path: str, *, json: Any = None, params: dict | None = None,
                      fallback_message: str = DEFAULT_FAILURE_MESSAGE) -> ApiResult:
        """
        Send one request and normalize whatever comes back.

        Args:
            method: HTTP verb
            path: Path below the base URL, starting with '/'
            json: Optional JSON body
            params: Optional query parameters (None values are dropped)
            fallback_message: Message used when a failed envelope carries none

        Returns:
            ApiResult with the envelope's data on success, or a tagged error
        """
        url = f"{self.base_url}{path}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        logger.info(f"📤 {method} {path}")

        try:
            async with self._get_session().request(
                method, url, json=json, params=query or None, headers=self._headers()
            ) as response:
                status = response.status
                payload = await self._read_payload(response)
        except asyncio.TimeoutError:
            logger.error(f"❌ {method} {path} timed out after {self.timeout_seconds}s")
            return ApiResult.failure(TransportError(message=f"Request timed out after {self.timeout_seconds}s"))
        except aiohttp.ClientError as e:
            logger.error(f"❌ {method} {path} transport error: {str(e)}")
            return ApiResult.failure(TransportError(message=str(e) or type(e).__name__))

        if 200 <= status < 300:
            result = normalize_envelope(payload, status, fallback_message)
        else:
            result = ApiResult.failure(classify_http_error(status, payload, fallback_message))

        if result.ok:
            logger.info(f"📥 {method} {path} -> {status}")
        else:
            logger.warning(
                f"📥 {method} {path} -> {status} {type(result.error).__name__}: {result.error.message}"
            )
        return result

    async def get(self, path: str, params: dict | None = None,
                  fallback_message: str = DEFAULT_FAILURE_MESSAGE) -> ApiResult:
        return await self.request("GET", path, params=params, fallback_message=fallback_message)

    async def post(self, path: str, json: Any = None,
                   fallback_message: str = DEFAULT_FAILURE_MESSAGE) -> ApiResult:
        return await self.request("POST", path, json=json, fallback_message=fallback_message)

    async def put(self, path: str, json: Any = None,
                  fallback_message: str = DEFAULT_FAILURE_MESSAGE) -> ApiResult:
        return await self.request("PUT", path, json=json, fallback_message=fallback_message)
