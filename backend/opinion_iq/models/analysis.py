"""
Analysis models
Per-token metrics, scores and verdicts, and the final market analysis response.
Serialized in camelCase for the browser UI.
"""
from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Verdict(str, Enum):
    OK = "OK"
    WAIT = "WAIT"
    NO_TRADE = "NO TRADE"


class Side(str, Enum):
    YES = "YES"
    NO = "NO"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenMetrics(CamelModel):
    """Normalized metrics for one outcome token"""
    best_bid: float = 0.0
    best_ask: float = 0.0
    mid: float = 0.0
    spread_percent: float = 0.0
    depth: float = 0.0
    move_percent: float = 0.0
    volume_24h: float = Field(0.0, alias="volume24h")  # to_camel would give volume24H


class ScoreResult(CamelModel):
    label: Verdict
    score: int  # +1, 0 or -1


class Fact(CamelModel):
    label: str
    value: str
    status: Verdict


class MetricsView(CamelModel):
    """Metrics as exposed on the wire"""
    spread: float
    depth: float
    move_1h: float = Field(alias="move1h")
    best_bid: float = 0.0
    best_ask: float = 0.0
    mid: float = 0.0
    volume_24h: float = Field(0.0, alias="volume24h")


class TokenVerdict(CamelModel):
    verdict: Verdict
    confidence: int  # 0-100
    total_score: int  # -4..+4
    scores: Dict[str, ScoreResult] = {}
    facts: List[Fact] = []
    why: List[str] = []


class TokenAnalysis(TokenVerdict):
    side: Side
    token_label: str
    token_id: str
    metrics: MetricsView


class OverallVerdict(CamelModel):
    verdict: Verdict
    confidence: int
    total_score: float


class MarketAnalysis(CamelModel):
    """Final analysis response"""
    market_id: Optional[str] = None
    topic_id: Optional[str] = None
    title: str = ""
    parent_market_id: Optional[str] = None
    volume_24h: float = Field(0.0, alias="volume24h")
    overall: OverallVerdict
    tokens: List[TokenAnalysis]
    summary: str = ""
    market: Dict[str, Any] = {}
