# promguard/config.py
from __future__ import annotations

import os
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
GIT_SHA = os.getenv("GIT_SHA", "")


class Settings(BaseSettings):
    # --- Identity / Build ---
    APP_NAME: str = Field(default="PromQL Guardrails")
    ENV: str = Field(default=os.environ.get("ENV", "dev"))
    VERSION: str = Field(default=APP_VERSION)

    # --- Metrics backend ---
    PROMETHEUS_URL: str = Field(default="http://localhost:9090")
    PROMETHEUS_TOKEN: Optional[str] = None
    PROMETHEUS_INSECURE: bool = Field(default=False)  # skip TLS verification
    TSDB_STATS_LIMIT: int = Field(default=10000, ge=1)  # entries per TSDB statistic

    # --- Guardrails ---
    # "all", "none", or a comma-separated list of rule names
    GUARDRAILS: str = Field(default="all")
    GUARDRAILS_MAX_METRIC_CARDINALITY: int = Field(default=20000, ge=0)
    GUARDRAILS_MAX_LABEL_CARDINALITY: int = Field(default=500, ge=0)

    # --- Metadata fetch ---
    METADATA_TIMEOUT_S: float = Field(default=30.0, gt=0)
    METADATA_CACHE_TTL_S: int = Field(default=0, ge=0)  # 0 disables caching

    # --- Metrics / logging ---
    METRICS_ENABLED: bool = Field(default=True)
    LOG_JSON: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")

    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


def get_settings() -> Settings:
    return Settings()
