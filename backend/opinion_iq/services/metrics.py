"""
Metrics Calculator
Derives mid price, spread %, 1% depth and 1h move % for one outcome token.

Pure: no I/O, never raises. Missing or malformed upstream fields degrade to
zero so the scoring engine can still render a (conservative) verdict.
"""
from typing import Any, List, Optional

from opinion_iq.config import settings
from opinion_iq.models.analysis import TokenMetrics
from opinion_iq.models.market import (
    OrderBook,
    PriceHistoryPoint,
    parse_history_points,
    parse_latest_price,
)
from opinion_iq.utils.fields import to_float


def sum_depth_within_percent(book: OrderBook, mid: float, percent: float) -> float:
    """
    Resting size within +/- percent of mid.

    With both sides present, mid is the touch average and the band always
    reaches the best bid and best ask. A one-sided book uses the plain band.
    """
    if not mid:
        return 0.0

    threshold = mid * (percent / 100)
    min_price = mid - threshold
    max_price = mid + threshold
    if book.bids and book.asks:
        min_price = min(min_price, book.best_bid)
        max_price = max(max_price, book.best_ask)

    bid_depth = sum(level.size for level in book.bids if level.price >= min_price)
    ask_depth = sum(level.size for level in book.asks if level.price <= max_price)
    return bid_depth + ask_depth


def move_percent(points: List[PriceHistoryPoint]) -> float:
    """Absolute % change between the last two chronological points"""
    if len(points) < 2:
        return 0.0
    latest = points[-1].price
    prior = points[-2].price
    if not prior:
        return 0.0
    return abs((latest - prior) / prior * 100)


def compute_metrics(
    latest_price: Any,
    orderbook: Any,
    history: Any,
    volume_24h: Any,
    depth_band_percent: Optional[float] = None,
) -> TokenMetrics:
    """
    Compute TokenMetrics from raw latest-price, order-book and history payloads.

    Args:
        latest_price: latest-price payload (object or bare number)
        orderbook: order-book payload, or an OrderBook
        history: price-history payload (bare array or wrapped)
        volume_24h: market 24h volume, shared by both tokens
        depth_band_percent: depth band around mid, defaults to settings
    """
    band = settings.DEPTH_BAND_PERCENT if depth_band_percent is None else depth_band_percent
    book = orderbook if isinstance(orderbook, OrderBook) else OrderBook.from_payload(orderbook)
    fallback = parse_latest_price(latest_price)

    best_bid = book.best_bid if book.bids else fallback
    best_ask = book.best_ask if book.asks else fallback

    if book.bids and book.asks and best_bid and best_ask:
        mid = (best_bid + best_ask) / 2
    else:
        mid = fallback

    spread = max(0.0, (best_ask - best_bid) / mid * 100) if mid else 0.0

    return TokenMetrics(
        best_bid=best_bid,
        best_ask=best_ask,
        mid=mid,
        spread_percent=spread,
        depth=sum_depth_within_percent(book, mid, band),
        move_percent=move_percent(parse_history_points(history)),
        volume_24h=to_float(volume_24h),
    )
