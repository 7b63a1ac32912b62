"""
Identifier parsing for market lookups

Users paste opinion.trade topic URLs such as
``https://app.opinion.trade/detail?topicId=61&type=multi``; a bare id is
accepted too. The query parameter names are fixed: ``topicId`` and
``marketId``.
"""
import re
from dataclasses import dataclass
from typing import Tuple
from urllib.parse import urlparse, parse_qs

from opinion_iq.exceptions import InvalidIdentifierError

TOPIC_PARAM = "topicId"
MARKET_PARAM = "marketId"

KIND_TOPIC = "topic"
KIND_MARKET = "market"
KIND_ANY = "any"

_DIGITS = re.compile(r"^\d+$")
_PARAM_PATTERNS = (
    (KIND_TOPIC, re.compile(rf"[?&]?{TOPIC_PARAM}=(\d+)")),
    (KIND_MARKET, re.compile(rf"[?&]?{MARKET_PARAM}=(\d+)")),
)


@dataclass(frozen=True)
class MarketIdentifier:
    """A parsed lookup key: the target id and which record ids it may match"""

    value: str
    kind: str = KIND_ANY
    multi: bool = False

    @property
    def primary_fields(self) -> Tuple[str, ...]:
        if self.kind == KIND_TOPIC:
            return ("topic_id",)
        if self.kind == KIND_MARKET:
            return ("market_id",)
        return ("market_id", "topic_id")

    @property
    def fallback_fields(self) -> Tuple[str, ...]:
        # Topic URLs carry the market id under topicId when no record has a topic id
        if self.kind == KIND_TOPIC:
            return ("market_id",)
        return ()

    @property
    def match_fields(self) -> Tuple[str, ...]:
        return self.primary_fields + self.fallback_fields


def parse_identifier(raw: str) -> MarketIdentifier:
    """
    Parse user input into a MarketIdentifier.

    Args:
        raw: Topic URL, text containing ``topicId=``/``marketId=``, or a bare id

    Returns:
        MarketIdentifier

    Raises:
        InvalidIdentifierError: when no id can be extracted
    """
    text = str(raw or "").strip()
    if not text:
        raise InvalidIdentifierError("Invalid URL. Could not find topicId.")

    if _DIGITS.match(text):
        return MarketIdentifier(value=text, kind=KIND_ANY)

    parsed = urlparse(text)
    if parsed.scheme and parsed.netloc:
        params = parse_qs(parsed.query)
        multi = "multi" in [v.lower() for v in params.get("type", [])]
        for kind, name in ((KIND_TOPIC, TOPIC_PARAM), (KIND_MARKET, MARKET_PARAM)):
            value = (params.get(name) or [""])[0].strip()
            if _DIGITS.match(value):
                return MarketIdentifier(value=value, kind=kind, multi=multi)

    for kind, pattern in _PARAM_PATTERNS:
        match = pattern.search(text)
        if match:
            return MarketIdentifier(value=match.group(1), kind=kind, multi="type=multi" in text.lower())

    raise InvalidIdentifierError("Invalid URL. Could not find topicId.")
