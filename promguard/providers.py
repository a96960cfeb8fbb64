"""Build the metadata provider and guardrail config from settings."""

from __future__ import annotations

from typing import Optional

from promguard.config import Settings
from promguard.guardrails.config import GuardrailsConfig, load_guardrails
from promguard.metadata import CachingMetadataProvider, MetadataProvider, PrometheusTSDBProvider


def build_provider(settings: Settings) -> MetadataProvider:
    provider: MetadataProvider = PrometheusTSDBProvider(
        settings.PROMETHEUS_URL,
        token=settings.PROMETHEUS_TOKEN,
        timeout_s=settings.METADATA_TIMEOUT_S,
        verify_tls=not settings.PROMETHEUS_INSECURE,
        limit=settings.TSDB_STATS_LIMIT,
    )
    if settings.METADATA_CACHE_TTL_S > 0:
        provider = CachingMetadataProvider(provider, settings.METADATA_CACHE_TTL_S)
    return provider


def build_guardrails(settings: Settings) -> Optional[GuardrailsConfig]:
    return load_guardrails(settings)
