from .opinion_client import OpinionAPIClient, get_opinion_client, unwrap_envelope
from .market_resolver import MarketResolver
from .metrics import compute_metrics
from .scoring import ScoringPolicy, score_token
from .analysis import MarketAnalyzer, get_market_analyzer

__all__ = [
    "OpinionAPIClient",
    "get_opinion_client",
    "unwrap_envelope",
    "MarketResolver",
    "compute_metrics",
    "ScoringPolicy",
    "score_token",
    "MarketAnalyzer",
    "get_market_analyzer",
]
