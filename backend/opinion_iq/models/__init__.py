from .market import MarketRecord, ResolvedMarket, OrderBook, OrderLevel, PriceHistoryPoint
from .analysis import (
    Verdict,
    Side,
    TokenMetrics,
    ScoreResult,
    Fact,
    TokenVerdict,
    TokenAnalysis,
    OverallVerdict,
    MarketAnalysis,
)

__all__ = [
    "MarketRecord",
    "ResolvedMarket",
    "OrderBook",
    "OrderLevel",
    "PriceHistoryPoint",
    "Verdict",
    "Side",
    "TokenMetrics",
    "ScoreResult",
    "Fact",
    "TokenVerdict",
    "TokenAnalysis",
    "OverallVerdict",
    "MarketAnalysis",
]
