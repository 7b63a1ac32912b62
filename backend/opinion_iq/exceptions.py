"""
Error taxonomy for market resolution and analysis.

Every failure surfaced by the resolver, the upstream client or the analyzer
is one of these, so the HTTP layer can map each kind to a status code.
"""
from typing import Any, Dict, List, Optional


class OpinionIQError(Exception):
    """Base error with a human-readable message"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidIdentifierError(OpinionIQError):
    """Input is not a topic URL, topic id or market id"""

    status_code = 400


class NotFoundError(OpinionIQError):
    """No market in the listing matches the requested id"""

    status_code = 404

    def __init__(self, message: str, target_id: str = "", pages_scanned: int = 0):
        super().__init__(message)
        self.target_id = target_id
        self.pages_scanned = pages_scanned

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "targetId": self.target_id,
            "pagesScanned": self.pages_scanned,
        }


class AmbiguousTokensError(OpinionIQError):
    """A market matched but no YES/NO token pair could be derived from it"""

    status_code = 422

    def __init__(
        self,
        message: str,
        market_id: str = "",
        candidates: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.market_id = market_id
        self.candidates = candidates or []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "marketId": self.market_id,
            "candidates": self.candidates,
        }


class UpstreamError(OpinionIQError):
    """Network, HTTP or envelope failure from the Opinion Trade API"""

    status_code = 502

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: str = "",
        malformed: bool = False,
    ):
        super().__init__(message)
        self.status = status
        self.body = body[:300] if body else ""
        self.malformed = malformed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "upstreamStatus": self.status,
            "malformed": self.malformed,
        }
