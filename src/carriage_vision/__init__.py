"""Train carriage congestion analysis with multi-provider fallback."""

from .analyzer import CongestionAnalyzer, ProviderChain, ProviderCheck, build_provider_chain
from .config import Settings, load_settings
from .result import AnalysisResult, CongestionStatus, validate_result

__version__ = "0.1.0"
__all__ = [
    "AnalysisResult",
    "CongestionAnalyzer",
    "CongestionStatus",
    "ProviderChain",
    "ProviderCheck",
    "Settings",
    "build_provider_chain",
    "load_settings",
    "validate_result",
]
