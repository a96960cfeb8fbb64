# promguard/models.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ValidateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str = Field(min_length=1)
    # NOW, NOW-5m, RFC3339 or unix seconds; defaults to the last hour
    start: Optional[str] = None
    end: Optional[str] = None
    # rule list for this call only ("all", "none", or names); thresholds come from settings
    guardrails: Optional[str] = None


class VerdictResponse(BaseModel):
    safe: bool
    reason: Optional[str] = None
    rule: Optional[str] = None
