"""SambaNova Llama vision provider with API key rotation."""

import logging
import threading
from typing import Any, Optional, Sequence

import openai
from openai import AsyncOpenAI

from ..config import DEFAULT_SAMBANOVA_BASE_URL, Settings
from ..exceptions import TransportError
from ..frames import ImageInput
from .base import MAX_TOKENS, TEMPERATURE, ProviderConfig, VisionProvider, chat_messages

logger = logging.getLogger(__name__)


class SambaNovaProvider(VisionProvider):
    """SambaNova Cloud implementation over its OpenAI-compatible API.

    Accepts a pool of equivalent API keys and cycles through them one call
    at a time to spread requests across rate limits.
    """

    provider_id = "sambanova"

    DEFAULT_MODEL = "Llama-4-Maverick-17B-128E-Instruct"

    def __init__(
        self,
        api_keys: Sequence[str] = (),
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_SAMBANOVA_BASE_URL,
        enabled: bool = True,
        clients: Optional[Sequence[Any]] = None,
    ) -> None:
        """Initialize SambaNova provider.

        Args:
            api_keys: Rotation pool of API keys
            model: Model identifier
            base_url: OpenAI-compatible endpoint
            enabled: Static feature flag
            clients: Prebuilt clients, one per key (tests)
        """
        super().__init__(ProviderConfig(name="SambaNova", model=model, enabled=enabled))
        self.api_keys = tuple(api_keys)

        if clients is not None:
            self._clients = list(clients)
        else:
            self._clients = [AsyncOpenAI(api_key=key, base_url=base_url) for key in self.api_keys]

        self._rotation_index = 0
        self._rotation_lock = threading.Lock()

        if len(self._clients) > 1:
            logger.info(f"[{self.name}] Rotating across {len(self._clients)} API keys")

    @classmethod
    def from_settings(cls, settings: Settings) -> "SambaNovaProvider":
        return cls(
            api_keys=settings.sambanova_api_keys,
            model=settings.model_for(cls.provider_id, cls.DEFAULT_MODEL),
            base_url=settings.sambanova_base_url,
            enabled=settings.is_enabled(cls.provider_id),
        )

    @property
    def pool_size(self) -> int:
        return len(self._clients)

    def is_configured(self) -> bool:
        return len(self.api_keys) > 0

    @property
    def missing_credentials_message(self) -> str:
        return "SambaNova API key not configured. Set SAMBANOVA_API_KEY in .env.local"

    def _next_index(self) -> int:
        with self._rotation_lock:
            index = self._rotation_index
            self._rotation_index = (index + 1) % self.pool_size
        return index

    def _select_client(self) -> Any:
        index = self._next_index()
        logger.debug(f"[{self.name}] Using API key {index + 1}/{self.pool_size}")
        return self._clients[index]

    async def _complete(self, client: Any, image: ImageInput, prompt: str) -> str:
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=chat_messages(image, prompt),
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
        except openai.OpenAIError as e:
            raise TransportError(f"SambaNova request failed: {e}") from e

        return response.choices[0].message.content or ""
