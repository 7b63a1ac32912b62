"""
Field probing for Opinion Trade payloads

The upstream API has drifted across versions, so one logical field can show up
under several spellings. Each logical field is declared once as an ordered
tuple of candidate keys; candidates are tried in priority order and the first
present, non-empty value wins.
"""
import logging
from typing import Any, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Market record fields
MARKET_ID_KEYS = ("marketId", "market_id", "id")
TOPIC_ID_KEYS = ("topicId", "topic_id")
TITLE_KEYS = ("marketTitle", "title", "question", "name")
YES_TOKEN_KEYS = ("yesTokenId", "yes_token_id", "yesToken", "yesTokenID")
NO_TOKEN_KEYS = ("noTokenId", "no_token_id", "noToken", "noTokenID")
VOLUME_24H_KEYS = ("volume24h", "volume_24h", "volume24H", "dailyVolume")
TOTAL_VOLUME_KEYS = ("volume", "totalVolume", "tradeVolume", "volumeNum")
CHILDREN_KEYS = ("childMarkets", "child_markets", "children", "subMarkets", "markets")

# Listing and detail envelopes
LIST_KEYS = ("list", "items", "markets", "data")
TOTAL_KEYS = ("total", "totalCount", "total_count")
DETAIL_KEYS = ("data", "market", "detail")

# Token endpoints
LATEST_PRICE_KEYS = ("price", "latestPrice", "lastPrice", "latest_price", "last_price")
BIDS_KEYS = ("bids", "bid", "buys")
ASKS_KEYS = ("asks", "ask", "sells")
ORDERBOOK_KEYS = ("orderbook", "orderBook", "data", "book")
LEVEL_PRICE_KEYS = ("price", "p")
LEVEL_SIZE_KEYS = ("size", "quantity", "amount", "qty", "s")
HISTORY_KEYS = ("history", "data", "list", "prices", "points")
POINT_PRICE_KEYS = ("price", "p", "value", "close")


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def probe(raw: Any, keys: Sequence[str], default: Any = None) -> Any:
    """Return the first non-empty value among keys, else default"""
    if not isinstance(raw, dict):
        return default
    for key in keys:
        value = raw.get(key)
        if not _is_empty(value):
            return value
    return default


def to_float(value: Any, default: float = 0.0) -> float:
    """
    Coerce a loosely-typed numeric field to float.

    Accepts numbers and numeric strings (with "," and "$" stripped).
    Anything else, including NaN and infinities, degrades to default.
    """
    if isinstance(value, bool) or _is_empty(value):
        return default
    if isinstance(value, str):
        value = value.replace(",", "").replace("$", "").strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return number


def probe_float(raw: Any, keys: Sequence[str], default: float = 0.0) -> float:
    return to_float(probe(raw, keys), default)


def probe_id(raw: Any, keys: Sequence[str]) -> Optional[str]:
    """Ids are opaque: numeric or string upstream, always str internally"""
    value = probe(raw, keys)
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def probe_list(payload: Any, keys: Iterable[str]) -> Optional[List[Any]]:
    """
    Find a list in a payload that is either a bare array or an object
    holding the array under one of keys. Returns None when neither shape
    matches.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return None


def probe_object(payload: Any, keys: Iterable[str]) -> Optional[dict]:
    """Return the nested object under the first matching key, if any"""
    if not isinstance(payload, dict):
        return None
    for key in keys:
        value = payload.get(key)
        if isinstance(value, dict) and value:
            return value
    return None
