"""
Opinion Trade API Client
Async access to the Opinion Trade OpenAPI (markets, token prices, order books)

API Docs: https://docs.opinion.trade/developer-guide/opinion-open-api
Auth: apikey header required

Successful payloads arrive in one of two envelopes, {code, msg, result} or
{errno, errmsg, result}, or unwrapped. The same endpoint has been seen using
either envelope, so the shape is detected from the decoded body, never from
the path.
"""
import httpx
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from opinion_iq.config import settings
from opinion_iq.exceptions import UpstreamError
from opinion_iq.utils import fields as f

logger = logging.getLogger(__name__)

MARKETS_PATH = "/market"
MARKET_DETAIL_PATHS = (
    "/market/{market_id}",
    "/market/categorical/{market_id}",
)
LATEST_PRICE_PATH = "/token/latest-price"
ORDERBOOK_PATH = "/token/orderbook"
PRICE_HISTORY_PATH = "/token/price-history"

# (status key, message key) pairs, checked in order
ENVELOPES: Tuple[Tuple[str, str], ...] = (
    ("code", "msg"),
    ("errno", "errmsg"),
)


def unwrap_envelope(payload: Any) -> Any:
    """
    Strip a response envelope, detected by key inspection.

    Returns the ``result`` of a successful envelope, or the payload itself
    when no envelope is present.

    Raises:
        UpstreamError: envelope status is non-zero
    """
    if not isinstance(payload, dict):
        return payload

    for status_key, message_key in ENVELOPES:
        if status_key not in payload:
            continue
        if message_key not in payload and "result" not in payload:
            continue
        status = payload.get(status_key)
        if status not in (0, "0"):
            message = payload.get(message_key) or f"Opinion API error ({status_key}={status})"
            raise UpstreamError(str(message), status=None, body=json.dumps(payload, default=str))
        return payload.get("result")

    return payload


@dataclass
class CachedDocument:
    """A fetched document with its age bookkeeping"""
    value: Any = None
    fetched_at: float = 0.0
    ttl: float = 3600.0

    def is_fresh(self, now: Optional[float] = None) -> bool:
        if self.value is None:
            return False
        now = time.time() if now is None else now
        return now - self.fetched_at < self.ttl

    def store(self, value: Any, now: Optional[float] = None) -> None:
        self.value = value
        self.fetched_at = time.time() if now is None else now


class OpinionAPIClient:
    """Async client for the Opinion Trade OpenAPI."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        spec_path: Optional[str] = None,
        spec_ttl: Optional[float] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.openapi_base).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.OPINION_API_KEY
        self._timeout = timeout if timeout is not None else settings.OPINION_HTTP_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._spec_path = spec_path or settings.OPENAPI_SPEC_PATH
        self.spec_cache = CachedDocument(
            ttl=spec_ttl if spec_ttl is not None else settings.OPENAPI_SPEC_TTL
        )
        if not self._api_key:
            logger.warning("OPINION_API_KEY not set - Opinion API calls will be rejected")

    @property
    def has_key(self) -> bool:
        return bool(self._api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "User-Agent": "OpinionIQ/1.0",
                "Accept": "application/json",
            }
            if self._api_key:
                headers["apikey"] = self._api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "OpinionAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a path under the OpenAPI base and return the unwrapped payload.

        Raises:
            UpstreamError: transport failure, non-2xx status, non-JSON body,
                or an envelope with a non-zero status
        """
        client = await self._get_client()
        url = f"{self.base_url}{path}"
        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"Opinion API timeout for {url}: {e}")
            raise UpstreamError(f"Opinion API request timed out: {path}") from e
        except httpx.HTTPError as e:
            logger.error(f"Opinion API transport error for {url}: {e}")
            raise UpstreamError(f"Opinion API request failed: {e}") from e

        text = response.text
        if not response.is_success:
            logger.error(f"HTTP error for {url}: {response.status_code} {text[:300]}")
            raise UpstreamError(
                f"Request failed ({response.status_code}): {text[:300]}",
                status=response.status_code,
                body=text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Non-JSON response for {url}: {text[:300]}")
            raise UpstreamError(
                f"Non-JSON response from API: {text[:300]}",
                status=response.status_code,
                body=text,
                malformed=True,
            ) from e

        result = unwrap_envelope(payload)
        if result is payload:
            logger.debug(f"Response without envelope for {url}")
        return result

    async def list_markets(self, page: int, limit: int, market_type: Optional[int] = None) -> Any:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if market_type is not None:
            params["marketType"] = market_type
        return await self.get(MARKETS_PATH, params=params)

    async def fetch_market_detail(
        self, market_id: str, prefer_categorical: bool = False
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch detailed market data by market ID.

        Tries each known detail path in order and returns the first non-empty
        object. Variant failures are logged and skipped; None when all fail.
        """
        paths = MARKET_DETAIL_PATHS[::-1] if prefer_categorical else MARKET_DETAIL_PATHS
        for template in paths:
            path = template.format(market_id=market_id)
            try:
                result = await self.get(path)
            except UpstreamError as e:
                logger.warning(f"Market detail variant {path} failed: {e.message}")
                continue
            detail = f.probe_object(result, f.DETAIL_KEYS) if isinstance(result, dict) else None
            detail = detail or result
            if isinstance(detail, dict) and detail:
                logger.debug(f"Market detail for {market_id} found at {path}")
                return detail
        return None

    async def latest_price(self, token_id: str) -> Any:
        return await self.get(LATEST_PRICE_PATH, params={"token_id": token_id})

    async def orderbook(self, token_id: str) -> Any:
        return await self.get(ORDERBOOK_PATH, params={"token_id": token_id})

    async def price_history(self, token_id: str, interval: str = "1h") -> Any:
        return await self.get(PRICE_HISTORY_PATH, params={"token_id": token_id, "interval": interval})

    async def get_openapi_spec(self, force: bool = False) -> Any:
        """Return the upstream API description, refetched once stale"""
        if not force and self.spec_cache.is_fresh():
            logger.debug("Returning cached Opinion OpenAPI spec")
            return self.spec_cache.value
        spec = await self.get(self._spec_path)
        self.spec_cache.store(spec)
        return spec


# Singleton client instance
_client: Optional[OpinionAPIClient] = None


def get_opinion_client() -> OpinionAPIClient:
    """Get or create Opinion API client."""
    global _client
    if _client is None:
        _client = OpinionAPIClient()
    return _client


async def close_opinion_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None
