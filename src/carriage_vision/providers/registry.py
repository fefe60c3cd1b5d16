"""Provider registry: identifier -> factory."""

import logging
from typing import Callable, Iterator, Optional

from ..config import Settings
from .base import VisionProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Settings], VisionProvider]


class ProviderRegistry:
    """Insertion-ordered mapping of provider ids to factories.

    Holds no selection logic; ordering and filtering belong to the
    analyzer. Iteration order is registration order.
    """

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        key = name.strip().lower()
        if key in self._factories:
            raise ValueError(f"Provider already registered: {key}")
        self._factories[key] = factory

    def get(self, name: str) -> Optional[ProviderFactory]:
        return self._factories.get(name.strip().lower())

    def names(self) -> list[str]:
        return list(self._factories)

    def create(self, name: str, settings: Settings) -> VisionProvider:
        """Instantiate a registered provider.

        Raises:
            ValueError: If the provider is not registered
        """
        factory = self.get(name)
        if factory is None:
            raise ValueError(
                f"Unknown provider: {name}. Expected one of: {self.names()}"
            )
        return factory(settings)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __iter__(self) -> Iterator[tuple[str, ProviderFactory]]:
        return iter(list(self._factories.items()))

    def __len__(self) -> int:
        return len(self._factories)


# SDK modules are imported inside each factory so an unused backend's
# library is never loaded.

def _create_sambanova(settings: Settings) -> VisionProvider:
    from .sambanova import SambaNovaProvider
    return SambaNovaProvider.from_settings(settings)


def _create_bedrock(settings: Settings) -> VisionProvider:
    from .bedrock import BedrockProvider
    return BedrockProvider.from_settings(settings)


def _create_openai(settings: Settings) -> VisionProvider:
    from .openai import OpenAIProvider
    return OpenAIProvider.from_settings(settings)


def _create_anthropic(settings: Settings) -> VisionProvider:
    from .anthropic import AnthropicProvider
    return AnthropicProvider.from_settings(settings)


def _create_google(settings: Settings) -> VisionProvider:
    from .google import GoogleProvider
    return GoogleProvider.from_settings(settings)


def default_registry() -> ProviderRegistry:
    """Registry with every built-in backend.

    Add new providers here to make them available.
    """
    registry = ProviderRegistry()
    registry.register("sambanova", _create_sambanova)
    registry.register("bedrock", _create_bedrock)
    registry.register("openai", _create_openai)
    registry.register("anthropic", _create_anthropic)
    registry.register("google", _create_google)
    return registry
