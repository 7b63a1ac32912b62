"""
Market and token models

Normalized views over raw Opinion Trade payloads. Raw dicts are converted once
at the boundary (``from_raw`` / ``from_payload``) so the resolver and the
metrics calculator never touch upstream field spellings directly.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from opinion_iq.utils import fields as f


class MarketRecord(BaseModel):
    """One market (or child market) from the listing or detail endpoints"""

    model_config = ConfigDict(frozen=True)

    market_id: Optional[str] = None
    topic_id: Optional[str] = None
    title: str = ""
    volume_24h: float = 0.0
    total_volume: float = 0.0
    yes_token_id: Optional[str] = None
    no_token_id: Optional[str] = None
    children: List["MarketRecord"] = []
    raw: Dict[str, Any] = Field(default_factory=dict, repr=False)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "MarketRecord":
        raw = raw if isinstance(raw, dict) else {}
        children_raw = f.probe_list(raw, f.CHILDREN_KEYS) or []
        return cls(
            market_id=f.probe_id(raw, f.MARKET_ID_KEYS),
            topic_id=f.probe_id(raw, f.TOPIC_ID_KEYS),
            title=str(f.probe(raw, f.TITLE_KEYS, "")),
            volume_24h=f.probe_float(raw, f.VOLUME_24H_KEYS),
            total_volume=f.probe_float(raw, f.TOTAL_VOLUME_KEYS),
            yes_token_id=f.probe_id(raw, f.YES_TOKEN_KEYS),
            no_token_id=f.probe_id(raw, f.NO_TOKEN_KEYS),
            children=[cls.from_raw(c) for c in children_raw if isinstance(c, dict)],
            raw=raw,
        )

    @property
    def is_tradable(self) -> bool:
        return bool(self.yes_token_id and self.no_token_id)

    def matches(self, target: str, match_fields) -> bool:
        return any(getattr(self, name) == target for name in match_fields)

    def merged_with(self, detail: Dict[str, Any]) -> "MarketRecord":
        """Overlay the non-empty fields of a detail payload onto this record"""
        merged = dict(self.raw)
        for key, value in detail.items():
            if value is not None and value != "":
                merged[key] = value
        return MarketRecord.from_raw(merged)

    def summary(self) -> Dict[str, Any]:
        return {
            "marketId": self.market_id,
            "topicId": self.topic_id,
            "title": self.title,
            "yesTokenId": self.yes_token_id,
            "noTokenId": self.no_token_id,
            "volume24h": self.volume_24h,
            "totalVolume": self.total_volume,
            "tradable": self.is_tradable,
        }


MarketRecord.model_rebuild()


class ResolvedMarket(BaseModel):
    """A market narrowed down to one tradable YES/NO token pair"""

    model_config = ConfigDict(frozen=True)

    market: MarketRecord
    parent: Optional[MarketRecord] = None
    yes_token_id: str
    no_token_id: str
    volume_24h: float = 0.0


class OrderLevel(BaseModel):
    price: float
    size: float


class OrderBook(BaseModel):
    """Bids and asks with no ordering assumed from upstream"""

    bids: List[OrderLevel] = []
    asks: List[OrderLevel] = []

    @classmethod
    def from_payload(cls, payload: Any) -> "OrderBook":
        book = payload if isinstance(payload, dict) else {}
        if not any(key in book for key in f.BIDS_KEYS + f.ASKS_KEYS):
            book = f.probe_object(book, f.ORDERBOOK_KEYS) or {}
        return cls(
            bids=_parse_levels(_side(book, f.BIDS_KEYS)),
            asks=_parse_levels(_side(book, f.ASKS_KEYS)),
        )

    @property
    def best_bid(self) -> float:
        return max((level.price for level in self.bids), default=0.0)

    @property
    def best_ask(self) -> float:
        return min((level.price for level in self.asks), default=0.0)


class PriceHistoryPoint(BaseModel):
    price: float
    timestamp: Optional[float] = None


def _side(book: Dict[str, Any], keys) -> List[Any]:
    for key in keys:
        value = book.get(key)
        if isinstance(value, list):
            return value
    return []


def _parse_levels(entries: Optional[List[Any]]) -> List[OrderLevel]:
    levels = []
    for entry in entries or []:
        if isinstance(entry, dict):
            price = f.probe_float(entry, f.LEVEL_PRICE_KEYS)
            size = f.probe_float(entry, f.LEVEL_SIZE_KEYS)
        elif isinstance(entry, (list, tuple)) and len(entry) >= 2:
            price, size = f.to_float(entry[0]), f.to_float(entry[1])
        else:
            continue
        if price > 0:
            levels.append(OrderLevel(price=price, size=size))
    return levels


def parse_history_points(payload: Any) -> List[PriceHistoryPoint]:
    """Accept a bare array or an object carrying the array under a known key"""
    points = []
    for entry in f.probe_list(payload, f.HISTORY_KEYS) or []:
        if isinstance(entry, dict):
            points.append(PriceHistoryPoint(
                price=f.probe_float(entry, f.POINT_PRICE_KEYS),
                timestamp=f.to_float(f.probe(entry, ("t", "timestamp", "time")), 0.0) or None,
            ))
        elif isinstance(entry, (list, tuple)) and len(entry) >= 2:
            points.append(PriceHistoryPoint(price=f.to_float(entry[1]), timestamp=f.to_float(entry[0]) or None))
        else:
            points.append(PriceHistoryPoint(price=f.to_float(entry)))
    return points


def parse_latest_price(payload: Any) -> float:
    if not isinstance(payload, dict):
        return f.to_float(payload)
    price = f.probe_float(payload, f.LATEST_PRICE_KEYS)
    if price:
        return price
    nested = f.probe_object(payload, ("data", "result"))
    return f.probe_float(nested, f.LATEST_PRICE_KEYS) if nested else 0.0
