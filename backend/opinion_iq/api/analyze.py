"""
Analyze API
Topic URL in, trade / wait / avoid verdict out.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
from pydantic import BaseModel
import logging

from opinion_iq.config import settings
from opinion_iq.exceptions import InvalidIdentifierError, OpinionIQError
from opinion_iq.models.analysis import MarketAnalysis
from opinion_iq.services.analysis import MarketAnalyzer, get_market_analyzer
from opinion_iq.services.market_resolver import MarketResolver, parse_market_page
from opinion_iq.services.opinion_client import OpinionAPIClient, get_opinion_client
from opinion_iq.utils.identifiers import parse_identifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analyze"])


class AnalyzeRequest(BaseModel):
    url: Optional[str] = None


def error_response(error: OpinionIQError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@router.get("/health")
async def health(client: OpinionAPIClient = Depends(get_opinion_client)):
    return {
        "ok": True,
        "rawBase": settings.OPINION_API_BASE,
        "openapiBase": client.base_url,
        "hasKey": client.has_key,
    }


@router.get("/debug")
async def debug(client: OpinionAPIClient = Depends(get_opinion_client)):
    """First listing page and the upstream API paths, for diagnosing schema drift"""
    try:
        payload = await client.list_markets(1, settings.MARKET_PAGE_SIZE, settings.MARKET_TYPE)
        records, total = parse_market_page(payload)
    except OpinionIQError as e:
        logger.error(f"Debug listing failed: {e.message}")
        return JSONResponse(status_code=500, content={"ok": False, "error": e.message})

    sample = records[0].raw if records else None

    spec_paths = None
    try:
        spec = await client.get_openapi_spec()
        if isinstance(spec, dict) and isinstance(spec.get("paths"), dict):
            spec_paths = sorted(spec["paths"].keys())
    except OpinionIQError as e:
        logger.warning(f"Could not load Opinion OpenAPI spec: {e.message}")

    return {
        "ok": True,
        "openapiBase": client.base_url,
        "marketsCount": len(records),
        "total": total,
        "sampleKeys": list(sample.keys())[:40] if sample else None,
        "sample": sample,
        "specPaths": spec_paths,
    }


@router.get("/resolve")
async def resolve(
    url: str = Query(..., description="Topic URL, topic id or market id"),
    client: OpinionAPIClient = Depends(get_opinion_client),
):
    try:
        resolved = await MarketResolver(client).resolve(url)
    except OpinionIQError as e:
        return error_response(e)

    return {
        "market": resolved.market.summary(),
        "parent": resolved.parent.summary() if resolved.parent else None,
        "yesTokenId": resolved.yes_token_id,
        "noTokenId": resolved.no_token_id,
        "volume24h": resolved.volume_24h,
    }


@router.post("/analyze", response_model=MarketAnalysis)
async def analyze(
    request: AnalyzeRequest,
    analyzer: MarketAnalyzer = Depends(get_market_analyzer),
):
    try:
        target = parse_identifier(request.url or "")
    except InvalidIdentifierError as e:
        logger.warning(f"Rejected analyze input {request.url!r}: {e.message}")
        return error_response(e)

    if not analyzer.client.has_key:
        return JSONResponse(status_code=500, content={"error": "Missing API key."})
    if not analyzer.client.base_url:
        return JSONResponse(status_code=500, content={"error": "Missing OPINION_API_BASE."})

    try:
        return await analyzer.analyze(target)
    except OpinionIQError as e:
        logger.warning(f"Analyze failed for {request.url!r}: {type(e).__name__}: {e.message}")
        return error_response(e)
