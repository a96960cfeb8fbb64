from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from promguard.guardrails.config import load_guardrails
from promguard.guardrails.engine import validate
from promguard.models import ValidateRequest, VerdictResponse
from promguard.timeutil import TimeRange

router = APIRouter(prefix="/v1", tags=["guardrails"])


@router.post("/validate", response_model=VerdictResponse)
async def validate_query(body: ValidateRequest, request: Request) -> Dict[str, Any]:
    """
    Run the guardrails against a query. Verdicts, safe or not, are HTTP 200.

    A bad ``start``/``end`` or an unknown rule in ``guardrails`` is a request
    error (400, ``invalid_time_range`` / ``invalid_guardrails``).
    """
    state = request.app.state
    time_range = TimeRange.parse(body.start, body.end)
    config = (
        state.guardrails
        if body.guardrails is None
        else load_guardrails(state.settings, body.guardrails)
    )

    verdict = await validate(
        body.query,
        state.metadata_provider,
        config,
        time_range=time_range,
        timeout_s=state.settings.METADATA_TIMEOUT_S,
    )
    return verdict.to_dict()


@router.get("/guardrails")
def current_guardrails(request: Request) -> Dict[str, Any]:
    config = request.app.state.guardrails
    if config is None:
        return {"enabled": False}
    return {"enabled": True, "rules": config.enabled_rules(), **config.to_dict()}
