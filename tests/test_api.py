"""
Tests for the analyze HTTP API, using FastAPI's TestClient against a fake
upstream.
"""

import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from opinion_iq.api.analyze import router
from opinion_iq.services.analysis import MarketAnalyzer, get_market_analyzer
from opinion_iq.services.opinion_client import OpinionAPIClient, get_opinion_client
from opinion_iq.services.scoring import ScoringPolicy

from upstream_fixtures import FakeUpstream, envelope, market, token_routes

BOOK = ([{"price": 0.40, "size": 30000}], [{"price": 0.41, "size": 30000}])
HISTORY = [{"price": 0.39}, {"price": 0.40}]


def build_app(upstream: FakeUpstream, api_key: str = "test-key") -> FastAPI:
    client = upstream.client()
    if not api_key:
        client = OpinionAPIClient(base_url=client.base_url, api_key="", transport=client._transport)

    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_opinion_client] = lambda: client
    app.dependency_overrides[get_market_analyzer] = lambda: MarketAnalyzer(client, policy=ScoringPolicy())
    return app


def listing(*records):
    return {"/market": envelope({"total": len(records), "list": list(records)})}


class TestAnalyzeEndpoint(unittest.TestCase):

    def test_analyze_success(self):
        routes = listing(market(61, yes="Y", no="N", volume24h=60000))
        routes.update(token_routes("Y", *BOOK, HISTORY))
        routes.update(token_routes("N", *BOOK, HISTORY))
        http = TestClient(build_app(FakeUpstream(routes)))

        response = http.post("/api/analyze", json={"url": "https://app.opinion.trade/detail?topicId=61"})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["marketId"], "61")
        self.assertEqual(data["overall"], {"verdict": "OK", "confidence": 100, "totalScore": 4.0})
        self.assertEqual(len(data["tokens"]), 2)
        self.assertEqual(data["tokens"][1]["side"], "NO")
        self.assertLessEqual(len(data["tokens"][0]["why"]), 3)
        self.assertIn("summary", data)

    def test_invalid_url_is_400(self):
        http = TestClient(build_app(FakeUpstream()))
        response = http.post("/api/analyze", json={"url": "https://example.com/nothing"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid URL. Could not find topicId.")

    def test_missing_body_url_is_400(self):
        http = TestClient(build_app(FakeUpstream()))
        response = http.post("/api/analyze", json={})
        self.assertEqual(response.status_code, 400)

    def test_not_found_is_404(self):
        http = TestClient(build_app(FakeUpstream(listing(market(1, yes="a", no="b")))))
        response = http.post("/api/analyze", json={"url": "999"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["targetId"], "999")

    def test_ambiguous_tokens_is_422_with_candidates(self):
        parent = market(5, children=[market(6), market(7, volume24h=10)])
        http = TestClient(build_app(FakeUpstream(listing(parent))))
        response = http.post("/api/analyze", json={"url": "5"})
        self.assertEqual(response.status_code, 422)
        self.assertEqual([c["marketId"] for c in response.json()["candidates"]], ["7", "6"])

    def test_upstream_failure_is_502(self):
        http = TestClient(build_app(FakeUpstream({"/market": envelope(None, code=500, msg="internal")})))
        response = http.post("/api/analyze", json={"url": "5"})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"], "internal")

    def test_missing_api_key_is_500(self):
        http = TestClient(build_app(FakeUpstream(), api_key=""))
        response = http.post("/api/analyze", json={"url": "5"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Missing API key.")

    def test_invalid_url_without_api_key_is_400(self):
        upstream = FakeUpstream()
        http = TestClient(build_app(upstream, api_key=""))
        response = http.post("/api/analyze", json={"url": "https://example.com/nothing"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid URL. Could not find topicId.")
        self.assertEqual(upstream.requests, [])


class TestSupportEndpoints(unittest.TestCase):

    def test_health(self):
        http = TestClient(build_app(FakeUpstream()))
        data = http.get("/api/health").json()
        self.assertTrue(data["ok"])
        self.assertTrue(data["hasKey"])
        self.assertTrue(data["openapiBase"].endswith("/openapi"))

    def test_debug(self):
        routes = listing(market(1, yes="a", no="b"))
        routes["/openapi.json"] = {"paths": {"/market": {}, "/token/orderbook": {}}}
        http = TestClient(build_app(FakeUpstream(routes)))

        data = http.get("/api/debug").json()
        self.assertEqual(data["marketsCount"], 1)
        self.assertIn("marketId", data["sampleKeys"])
        self.assertEqual(data["specPaths"], ["/market", "/token/orderbook"])

    def test_debug_without_spec(self):
        http = TestClient(build_app(FakeUpstream(listing(market(1)))))
        data = http.get("/api/debug").json()
        self.assertTrue(data["ok"])
        self.assertIsNone(data["specPaths"])

    def test_resolve(self):
        parent = market(5, volume24h=900, children=[market(6, yes="Y", no="N")])
        http = TestClient(build_app(FakeUpstream(listing(parent))))

        data = http.get("/api/resolve", params={"url": "6"}).json()
        self.assertEqual(data["market"]["marketId"], "6")
        self.assertEqual(data["parent"]["marketId"], "5")
        self.assertEqual(data["yesTokenId"], "Y")
        self.assertEqual(data["volume24h"], 900)


if __name__ == "__main__":
    unittest.main()
