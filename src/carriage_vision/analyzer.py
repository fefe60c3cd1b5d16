"""Congestion analysis with ordered provider fallback."""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import Settings, load_settings
from .exceptions import NoProvidersAvailableError
from .providers.base import VisionProvider
from .providers.registry import ProviderRegistry, default_registry
from .result import AnalysisResult, degraded_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderChain:
    """Ordered, filtered providers built once at startup."""

    primary: str
    fallback: Optional[str]
    providers: tuple[VisionProvider, ...]


@dataclass(frozen=True)
class ProviderCheck:
    """Outcome of running one provider during a health check."""

    provider: str
    success: bool
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None


def _usable(provider: VisionProvider) -> bool:
    return provider.is_configured() and provider.enabled


def build_provider_chain(
    settings: Settings,
    registry: Optional[ProviderRegistry] = None,
) -> ProviderChain:
    """Instantiate registered providers and order them for fallback.

    Order is: primary, explicit fallback (if set), then every other
    registered provider in registry order. Providers that are not both
    configured and enabled are left out.

    Args:
        settings: Resolved configuration
        registry: Provider registry (default: all built-in backends)

    Returns:
        ProviderChain ready for the analyzer

    Raises:
        NoProvidersAvailableError: If no provider is usable
    """
    registry = registry or default_registry()
    primary = settings.primary_provider
    fallback = settings.fallback_provider

    if primary not in registry:
        logger.warning(f"[Analyzer] Primary provider '{primary}' is not registered")
    if fallback and fallback not in registry:
        logger.warning(f"[Analyzer] Fallback provider '{fallback}' is not registered")

    instances: dict[str, VisionProvider] = {}
    for name, factory in registry:
        instances[name] = factory(settings)

    ordered: list[str] = []
    for name, role in ((primary, "Primary"), (fallback, "Fallback")):
        if not name or name not in instances or name in ordered:
            continue
        provider = instances[name]
        if _usable(provider):
            ordered.append(name)
            logger.info(f"[Analyzer] {role} provider: {provider.name} ({provider.model})")
        else:
            logger.warning(f"[Analyzer] {role} provider {name} not configured or disabled")

    for name, provider in instances.items():
        if name in ordered or not _usable(provider):
            continue
        ordered.append(name)
        logger.info(f"[Analyzer] Fallback provider available: {provider.name}")

    if not ordered:
        raise NoProvidersAvailableError(
            "No AI providers configured. Please set up at least one provider in .env.local"
        )

    return ProviderChain(
        primary=primary,
        fallback=fallback,
        providers=tuple(instances[name] for name in ordered),
    )


class CongestionAnalyzer:
    """Classifies carriage congestion, falling back across providers.

    Providers are tried one at a time in chain order. The first success
    wins; if every provider fails a neutral degraded result is returned
    instead of raising.

    Examples:
        analyzer = CongestionAnalyzer.from_settings()
        result = await analyzer.analyze("data:image/jpeg;base64,...")
        print(result.status, result.capacity)
    """

    def __init__(self, chain: ProviderChain):
        self.chain = chain

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        registry: Optional[ProviderRegistry] = None,
    ) -> "CongestionAnalyzer":
        """Build an analyzer, reading the environment if no settings are given.

        Raises:
            NoProvidersAvailableError: If no provider is usable
        """
        settings = settings or load_settings()
        return cls(build_provider_chain(settings, registry))

    @property
    def providers(self) -> tuple[VisionProvider, ...]:
        return self.chain.providers

    async def analyze(self, image: str) -> AnalysisResult:
        """Analyze a frame with automatic fallback.

        Args:
            image: Base64 data URL or http(s) URL of the frame

        Returns:
            The first provider's successful result, or the degraded
            result when all providers fail
        """
        errors: list[tuple[str, str]] = []
        total = len(self.providers)

        logger.info(f"[Analyzer] Starting analysis with {total} provider(s)")

        for index, provider in enumerate(self.providers):
            try:
                logger.info(f"[Analyzer] Attempting analysis with {provider.name}...")
                result = await provider.analyze_image(image)
            except Exception as e:
                errors.append((provider.name, str(e)))
                logger.error(f"[Analyzer] {provider.name} failed: {e}")
                if index < total - 1:
                    logger.info("[Analyzer] Falling back to next provider...")
                continue

            logger.info(f"[Analyzer] Successfully analyzed with {provider.name}")
            return result

        logger.error("[Analyzer] All providers failed")
        summary = "; ".join(f"{name}: {message}" for name, message in errors)
        return degraded_result(summary)

    def describe_providers(self) -> dict:
        """Summarize the provider chain for introspection."""
        return {
            "primary": self.chain.primary,
            "fallback": self.chain.fallback,
            "available": [provider.describe() for provider in self.providers],
            "total": len(self.providers),
        }

    async def test_all_providers(self, image: str) -> list[ProviderCheck]:
        """Run every provider on the same frame, without short-circuiting.

        Meant for health checks and debugging, not for serving requests.
        """
        checks = []

        for provider in self.providers:
            try:
                result = await provider.analyze_image(image)
            except Exception as e:
                checks.append(ProviderCheck(provider=provider.name, success=False, error=str(e)))
                continue
            checks.append(ProviderCheck(provider=provider.name, success=True, result=result))

        return checks
