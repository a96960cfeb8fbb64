from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def prometheus_metrics(_: Request) -> PlainTextResponse:
    body = generate_latest(REGISTRY).decode("utf-8")
    return PlainTextResponse(content=body, media_type=CONTENT_TYPE_LATEST)
