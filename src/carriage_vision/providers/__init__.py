"""Vision providers for multi-backend congestion analysis."""

from .base import ANALYSIS_PROMPT, ProviderConfig, VisionProvider
from .registry import ProviderRegistry, default_registry

__all__ = [
    "ANALYSIS_PROMPT",
    "ProviderConfig",
    "ProviderRegistry",
    "VisionProvider",
    "default_registry",
]
