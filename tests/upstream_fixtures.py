"""
Fake Opinion Trade upstream for tests.

Routes requests by path to canned payloads via httpx.MockTransport and
records every request it sees.
"""
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from opinion_iq.services.opinion_client import OpinionAPIClient

BASE_URL = "https://openapi.test/openapi"

Handler = Union[Any, Callable[[httpx.Request], httpx.Response]]


def envelope(result: Any, code: int = 0, msg: str = "success") -> Dict[str, Any]:
    return {"code": code, "msg": msg, "result": result}


def errno_envelope(result: Any, errno: int = 0, errmsg: str = "") -> Dict[str, Any]:
    return {"errno": errno, "errmsg": errmsg, "result": result}


class FakeUpstream:
    """
    routes maps a path (relative to the OpenAPI base) to either a JSON-able
    payload or a callable taking the request and returning an httpx.Response.
    Token endpoints may be keyed as "/token/orderbook?token_id=1".
    """

    def __init__(self, routes: Optional[Dict[str, Handler]] = None):
        self.routes: Dict[str, Handler] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def paths(self) -> List[str]:
        return [self._relative(r) for r in self.requests]

    @staticmethod
    def _relative(request: httpx.Request) -> str:
        return request.url.path.replace("/openapi", "", 1)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = self._relative(request)
        token_id = request.url.params.get("token_id")
        page = request.url.params.get("page")

        candidates = []
        if token_id is not None:
            candidates.append(f"{path}?token_id={token_id}")
        if page is not None:
            candidates.append(f"{path}?page={page}")
        candidates.append(path)

        for key in candidates:
            if key in self.routes:
                route = self.routes[key]
                if callable(route):
                    return route(request)
                return httpx.Response(200, json=route)
        return httpx.Response(404, text=f"no route for {path}")

    def client(self, **kwargs) -> OpinionAPIClient:
        return OpinionAPIClient(
            base_url=BASE_URL,
            api_key="test-key",
            timeout=5,
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )


def market(market_id, yes=None, no=None, volume24h=None, topic_id=None, children=None, **extra):
    raw: Dict[str, Any] = {"marketId": market_id, "marketTitle": f"Market {market_id}"}
    if topic_id is not None:
        raw["topicId"] = topic_id
    if yes is not None:
        raw["yesTokenId"] = yes
    if no is not None:
        raw["noTokenId"] = no
    if volume24h is not None:
        raw["volume24h"] = volume24h
    if children is not None:
        raw["childMarkets"] = children
    raw.update(extra)
    return raw


def token_routes(token_id: str, bids, asks, history, price=None) -> Dict[str, Any]:
    return {
        f"/token/latest-price?token_id={token_id}": envelope({"price": price}),
        f"/token/orderbook?token_id={token_id}": envelope({"bids": bids, "asks": asks}),
        f"/token/price-history?token_id={token_id}": envelope({"history": history}),
    }
