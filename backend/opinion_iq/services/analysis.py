"""
Analysis Orchestrator
Resolve a market, fetch both outcome tokens' data concurrently, score them,
and assemble the MarketAnalysis response.
"""
import asyncio
import logging
from typing import Optional, Union

from opinion_iq.config import settings
from opinion_iq.exceptions import UpstreamError
from opinion_iq.models.analysis import (
    MarketAnalysis,
    MetricsView,
    OverallVerdict,
    Side,
    TokenAnalysis,
)
from opinion_iq.models.market import ResolvedMarket
from opinion_iq.services.market_resolver import MarketResolver
from opinion_iq.services.metrics import compute_metrics
from opinion_iq.services.opinion_client import OpinionAPIClient, get_opinion_client
from opinion_iq.services.scoring import (
    ScoringPolicy,
    build_summary,
    get_verdict,
    round_half_up,
    score_token,
)
from opinion_iq.utils.identifiers import KIND_TOPIC, MarketIdentifier, parse_identifier

logger = logging.getLogger(__name__)


class MarketAnalyzer:
    """Runs the resolve -> fetch -> metrics -> score pipeline for one market"""

    def __init__(
        self,
        client: OpinionAPIClient,
        resolver: Optional[MarketResolver] = None,
        policy: Optional[ScoringPolicy] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client
        self.resolver = resolver or MarketResolver(client)
        self.policy = policy or ScoringPolicy.from_settings()
        self.timeout = timeout if timeout is not None else settings.ANALYSIS_TIMEOUT

    async def analyze(self, identifier: Union[str, MarketIdentifier]) -> MarketAnalysis:
        """
        Analyze the market behind identifier.

        Raises:
            InvalidIdentifierError, NotFoundError, AmbiguousTokensError: from resolution
            UpstreamError: any upstream failure, or the analysis timing out
        """
        try:
            return await asyncio.wait_for(self._analyze(identifier), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Analysis of {identifier!r} timed out after {self.timeout}s")
            raise UpstreamError(f"Analysis timed out after {self.timeout:g}s") from e

    async def _analyze(self, identifier: Union[str, MarketIdentifier]) -> MarketAnalysis:
        target = identifier if isinstance(identifier, MarketIdentifier) else parse_identifier(identifier)
        resolved = await self.resolver.resolve(target)

        tokens = await asyncio.gather(
            self.analyze_token(Side.YES, resolved.yes_token_id, resolved.volume_24h),
            self.analyze_token(Side.NO, resolved.no_token_id, resolved.volume_24h),
        )

        overall_total = sum(t.total_score for t in tokens) / len(tokens)
        overall = OverallVerdict(
            verdict=get_verdict(overall_total),
            confidence=round_half_up(sum(t.confidence for t in tokens) / len(tokens)),
            total_score=overall_total,
        )

        primary = tokens[0]
        summary = build_summary(
            verdict=overall.verdict,
            confidence=overall.confidence,
            facts=primary.facts,
            why=primary.why,
            token_label=primary.token_label,
        )

        logger.info(
            f"Analysis for market {resolved.market.market_id}: {overall.verdict.value} "
            f"({overall.confidence}%)"
        )
        return self._assemble(target, resolved, overall, list(tokens), summary)

    async def analyze_token(self, side: Side, token_id: str, volume_24h: float) -> TokenAnalysis:
        latest_price, orderbook, history = await asyncio.gather(
            self.client.latest_price(token_id),
            self.client.orderbook(token_id),
            self.client.price_history(token_id, interval="1h"),
        )

        metrics = compute_metrics(latest_price, orderbook, history, volume_24h)
        verdict = score_token(metrics, self.policy)
        logger.debug(f"{side.value} token {token_id}: total={verdict.total_score} metrics={metrics}")

        return TokenAnalysis(
            side=side,
            token_label=side.value,
            token_id=token_id,
            metrics=MetricsView(
                spread=metrics.spread_percent,
                depth=metrics.depth,
                move_1h=metrics.move_percent,
                best_bid=metrics.best_bid,
                best_ask=metrics.best_ask,
                mid=metrics.mid,
                volume_24h=metrics.volume_24h,
            ),
            **verdict.model_dump(),
        )

    @staticmethod
    def _assemble(
        target: MarketIdentifier, resolved: ResolvedMarket, overall, tokens, summary: str
    ) -> MarketAnalysis:
        market = resolved.market
        parent = resolved.parent
        # A topic URL names the topic even when the listing omits topic ids
        topic_id = market.topic_id or (parent.topic_id if parent else None)
        if not topic_id and target.kind == KIND_TOPIC:
            topic_id = target.value
        return MarketAnalysis(
            market_id=market.market_id,
            topic_id=topic_id,
            title=market.title or (parent.title if parent else ""),
            parent_market_id=parent.market_id if parent else None,
            volume_24h=resolved.volume_24h,
            overall=overall,
            tokens=tokens,
            summary=summary,
            market=market.raw,
        )


def get_market_analyzer() -> MarketAnalyzer:
    """Analyzer bound to the shared Opinion API client"""
    return MarketAnalyzer(get_opinion_client())
