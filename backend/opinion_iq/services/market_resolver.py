"""
Market Resolver
Maps a topic URL / topic id / market id to a tradable YES/NO token pair.

Flow:
1. Parse the identifier
2. Scan the market listing page by page (roots first, then their children)
3. Use the match directly when it carries both token ids, otherwise pick the
   best tradable child, otherwise merge in a market-detail fetch and re-check
   the match and its re-ranked children
"""
import logging
import math
from typing import List, Optional, Tuple, Union

from opinion_iq.config import settings
from opinion_iq.exceptions import AmbiguousTokensError, NotFoundError, UpstreamError
from opinion_iq.models.market import MarketRecord, ResolvedMarket
from opinion_iq.services.opinion_client import OpinionAPIClient
from opinion_iq.utils import fields as f
from opinion_iq.utils.identifiers import MarketIdentifier, parse_identifier

logger = logging.getLogger(__name__)


def rank_children(children: List[MarketRecord]) -> List[MarketRecord]:
    """
    Order child markets best-first: tradable before non-tradable, then higher
    24h volume, then higher total volume. Ties keep listing order.
    """
    return sorted(
        children,
        key=lambda c: (not c.is_tradable, -c.volume_24h, -c.total_volume),
    )


def parse_market_page(payload) -> Tuple[List[MarketRecord], int]:
    """
    Extract (records, total) from one listing page.

    Raises:
        UpstreamError: payload is neither a list nor an object holding one
    """
    items = f.probe_list(payload, f.LIST_KEYS)
    if items is None:
        keys = list(payload.keys())[:30] if isinstance(payload, dict) else type(payload).__name__
        raise UpstreamError(
            f"Markets endpoint returned unexpected format (expected array). keys={keys}",
            malformed=True,
        )
    records = [MarketRecord.from_raw(item) for item in items if isinstance(item, dict)]
    total = int(f.probe_float(payload, f.TOTAL_KEYS)) if isinstance(payload, dict) else 0
    return records, total


def _match_page(
    records: List[MarketRecord], value: str, match_fields: Tuple[str, ...]
) -> Optional[Tuple[MarketRecord, Optional[MarketRecord]]]:
    """First (record, parent) on a page matching value, roots before children"""
    for record in records:
        if record.matches(value, match_fields):
            return record, None
    for record in records:
        for child in record.children:
            if child.matches(value, match_fields):
                return child, record
    return None


class MarketResolver:
    """Resolves user identifiers against the Opinion Trade market listing"""

    def __init__(
        self,
        client: OpinionAPIClient,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        market_type: Optional[int] = None,
        detail_fallback: Optional[bool] = None,
    ):
        self.client = client
        self.page_size = page_size or settings.MARKET_PAGE_SIZE
        self.max_pages = max_pages or settings.MARKET_MAX_PAGES
        self.market_type = market_type if market_type is not None else settings.MARKET_TYPE
        self.detail_fallback = (
            detail_fallback if detail_fallback is not None else settings.RESOLVER_DETAIL_FALLBACK
        )

    async def resolve(self, identifier: Union[str, MarketIdentifier]) -> ResolvedMarket:
        """
        Resolve an identifier to a tradable market.

        Raises:
            InvalidIdentifierError: identifier has no usable id
            NotFoundError: no listing record matches
            AmbiguousTokensError: match found but no token pair derivable
            UpstreamError: a listing page could not be fetched
        """
        target = identifier if isinstance(identifier, MarketIdentifier) else parse_identifier(identifier)
        match, parent, pages_scanned = await self.find_market(target)
        if match is None:
            raise NotFoundError(
                f"Market not found for {target.kind} id {target.value}.",
                target_id=target.value,
                pages_scanned=pages_scanned,
            )

        selected, parent = await self._select_tradable(match, parent, target)

        volume_24h = selected.volume_24h or (parent.volume_24h if parent else 0.0)
        logger.info(
            f"Resolved {target.value} -> market {selected.market_id} "
            f"(parent={parent.market_id if parent else None}, volume24h={volume_24h})"
        )
        return ResolvedMarket(
            market=selected,
            parent=parent,
            yes_token_id=selected.yes_token_id,
            no_token_id=selected.no_token_id,
            volume_24h=volume_24h,
        )

    async def find_market(
        self, target: MarketIdentifier
    ) -> Tuple[Optional[MarketRecord], Optional[MarketRecord], int]:
        """
        Scan listing pages sequentially until the target is found.

        A record matching on the identifier's primary fields wins outright.
        A fallback match (topic id against market id) is kept and returned
        once the scan ends, or right away when the listing carries no topic
        ids at all.

        Returns (match, parent, pages_scanned); parent is set when the match
        is a child record.
        """
        fallback: Optional[Tuple[MarketRecord, Optional[MarketRecord], int]] = None
        seen_topic_ids = False
        page = 1
        last_page = self.max_pages
        while page <= last_page:
            payload = await self.client.list_markets(page, self.page_size, self.market_type)
            records, total = parse_market_page(payload)
            if page == 1 and total > 0:
                last_page = min(math.ceil(total / self.page_size), self.max_pages)
            logger.debug(f"Scanned market page {page}/{last_page}: {len(records)} records (total={total})")

            if not records:
                break

            found = _match_page(records, target.value, target.primary_fields)
            if found:
                return found[0], found[1], page

            if fallback is None and target.fallback_fields:
                found = _match_page(records, target.value, target.fallback_fields)
                if found:
                    fallback = (found[0], found[1], page)
            seen_topic_ids = seen_topic_ids or any(
                record.topic_id or any(child.topic_id for child in record.children)
                for record in records
            )
            if fallback and not seen_topic_ids:
                break

            # Short page with no reported total means the listing is exhausted
            if total <= 0 and len(records) < self.page_size:
                break
            page += 1

        pages_scanned = min(page, last_page)
        if fallback:
            logger.info(f"No topic id match for {target.value}; using market id match")
            return fallback[0], fallback[1], fallback[2]
        return None, None, pages_scanned

    async def _select_tradable(
        self,
        match: MarketRecord,
        parent: Optional[MarketRecord],
        target: MarketIdentifier,
    ) -> Tuple[MarketRecord, Optional[MarketRecord]]:
        if match.is_tradable:
            return match, parent

        best = self._best_child(match)
        if best is not None:
            return best, match

        if self.detail_fallback and match.market_id:
            detail = await self.client.fetch_market_detail(
                match.market_id, prefer_categorical=target.multi
            )
            if detail:
                match = match.merged_with(detail)
                logger.info(f"Merged detail fields into market {match.market_id}")
                if match.is_tradable:
                    return match, parent
                best = self._best_child(match)
                if best is not None:
                    return best, match

        if match.children:
            ranked = rank_children(match.children)
            raise AmbiguousTokensError(
                f"Market {match.market_id} has {len(ranked)} child markets but none exposes yes/no token IDs.",
                market_id=match.market_id or "",
                candidates=[child.summary() for child in ranked],
            )

        raise AmbiguousTokensError(
            "Market data missing yes/no token IDs.",
            market_id=match.market_id or "",
            candidates=[match.summary()],
        )

    @staticmethod
    def _best_child(match: MarketRecord) -> Optional[MarketRecord]:
        if not match.children:
            return None
        ranked = rank_children(match.children)
        best = ranked[0]
        if not best.is_tradable:
            return None
        logger.info(
            f"Selected child market {best.market_id} of {match.market_id} "
            f"({len(ranked)} candidates)"
        )
        return best
