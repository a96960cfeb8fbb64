"""Backend metadata providers feeding the guardrail engine."""

from .base import MetadataProvider, MetadataSnapshot, MetadataUnavailable, StaticMetadataProvider
from .cache import CachingMetadataProvider
from .prometheus import PrometheusTSDBProvider

__all__ = [
    "CachingMetadataProvider",
    "MetadataProvider",
    "MetadataSnapshot",
    "MetadataUnavailable",
    "PrometheusTSDBProvider",
    "StaticMetadataProvider",
]
