"""
Scoring Engine

Each metric maps to a three-level step: OK (+1), WAIT (0), NO TRADE (-1).
The four contributions sum to a total in [-4, +4]; confidence is that total
rescaled linearly to 0-100. It is a display heuristic, not a probability.
"""
import math
from typing import List, Optional, Union

from pydantic import BaseModel

from opinion_iq.config import settings
from opinion_iq.models.analysis import Fact, ScoreResult, TokenMetrics, TokenVerdict, Verdict

Number = Union[int, float]


class ScoringPolicy(BaseModel):
    """Thresholds for the four metric checks"""
    depth_ok: float = 25000
    depth_wait: float = 10000
    spread_ok: float = 2.5
    spread_wait: float = 5
    move_ok: float = 6
    move_wait: float = 12
    volume_ok: float = 50000
    volume_wait: float = 20000

    @classmethod
    def from_settings(cls) -> "ScoringPolicy":
        return cls(
            depth_ok=settings.SCORE_DEPTH_OK,
            depth_wait=settings.SCORE_DEPTH_WAIT,
            spread_ok=settings.SCORE_SPREAD_OK,
            spread_wait=settings.SCORE_SPREAD_WAIT,
            move_ok=settings.SCORE_MOVE_OK,
            move_wait=settings.SCORE_MOVE_WAIT,
            volume_ok=settings.SCORE_VOLUME_OK,
            volume_wait=settings.SCORE_VOLUME_WAIT,
        )


def score_metric(value: Number, ok: Number, wait: Number) -> ScoreResult:
    """Higher is better"""
    if value >= ok:
        return ScoreResult(label=Verdict.OK, score=1)
    if value >= wait:
        return ScoreResult(label=Verdict.WAIT, score=0)
    return ScoreResult(label=Verdict.NO_TRADE, score=-1)


def score_inverse_metric(value: Number, ok: Number, wait: Number) -> ScoreResult:
    """Lower is better"""
    if value <= ok:
        return ScoreResult(label=Verdict.OK, score=1)
    if value <= wait:
        return ScoreResult(label=Verdict.WAIT, score=0)
    return ScoreResult(label=Verdict.NO_TRADE, score=-1)


def get_verdict(total: Number) -> Verdict:
    # A fractional mean in (0, 1) is still WAIT
    if total >= 1:
        return Verdict.OK
    if total >= 0:
        return Verdict.WAIT
    return Verdict.NO_TRADE


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def confidence_from_total(total: Number) -> int:
    return round_half_up((total + 4) / 8 * 100)


def format_number(value: Number) -> str:
    """Thousands separators, at most two decimals: 60000 -> 60,000"""
    text = f"{float(value or 0):,.2f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def score_token(metrics: TokenMetrics, policy: Optional[ScoringPolicy] = None) -> TokenVerdict:
    """Score one token's metrics into a verdict with facts and rationale"""
    policy = policy or ScoringPolicy.from_settings()

    liquidity = score_metric(metrics.depth, policy.depth_ok, policy.depth_wait)
    spread = score_inverse_metric(metrics.spread_percent, policy.spread_ok, policy.spread_wait)
    move = score_inverse_metric(metrics.move_percent, policy.move_ok, policy.move_wait)
    volume = score_metric(metrics.volume_24h, policy.volume_ok, policy.volume_wait)

    total = liquidity.score + spread.score + move.score + volume.score

    facts = [
        Fact(label="Liquidity (top 1% depth)", value=f"${format_number(metrics.depth)}", status=liquidity.label),
        Fact(label="Spread", value=f"{metrics.spread_percent:.2f}%", status=spread.label),
        Fact(label="1h move", value=f"{metrics.move_percent:.2f}%", status=move.label),
        Fact(label="24h volume", value=f"${format_number(metrics.volume_24h)}", status=volume.label),
    ]

    why = [
        "Orderbook depth inside 1% meets the aggressive target."
        if liquidity.label == Verdict.OK
        else "Orderbook depth inside 1% is below the target for aggressive entries.",
        "Spread is tight enough for aggressive entries."
        if spread.label == Verdict.OK
        else "Spread is wider than ideal, indicating higher entry cost.",
        "Recent 1h move is within the aggressive tolerance."
        if move.label == Verdict.OK
        else "Recent 1h move is large, increasing short-term volatility risk.",
    ]

    return TokenVerdict(
        verdict=get_verdict(total),
        confidence=confidence_from_total(total),
        total_score=total,
        scores={"liquidity": liquidity, "spread": spread, "move1h": move, "volume24h": volume},
        facts=facts,
        why=why[:3],
    )


def build_summary(
    verdict: Verdict,
    confidence: int,
    facts: List[Fact],
    why: List[str],
    token_label: Optional[str] = None,
) -> str:
    """Plain-text summary for copy/paste"""
    lines = [
        f"Opinion IQ Verdict: {Verdict(verdict).value}",
        f"Confidence: {confidence}%",
    ]
    if token_label:
        lines.append(f"Token: {token_label}")
    lines.append("Facts:")
    lines.extend(f"- {fact.label}: {fact.value} ({fact.status.value})" for fact in facts)
    lines.append("Why:")
    lines.extend(f"- {item}" for item in why)
    return "\n".join(lines)
