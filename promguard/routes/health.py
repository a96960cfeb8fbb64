from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from promguard import config

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz(request: Request) -> Dict[str, Any]:
    settings = request.app.state.settings
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": settings.VERSION,
        "git_sha": config.GIT_SHA,
        "guardrails_enabled": request.app.state.guardrails is not None,
    }
