"""OpenAI GPT-4o vision provider."""

import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from ..config import Settings
from ..exceptions import TransportError
from ..frames import ImageInput
from .base import MAX_TOKENS, TEMPERATURE, ProviderConfig, VisionProvider, chat_messages

logger = logging.getLogger(__name__)


class OpenAIProvider(VisionProvider):
    """OpenAI vision implementation."""

    provider_id = "openai"

    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        enabled: bool = True,
        client: Any = None,
    ) -> None:
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model identifier (default: gpt-4o)
            enabled: Static feature flag
            client: Prebuilt async client (tests)
        """
        super().__init__(ProviderConfig(name="OpenAI", model=model, enabled=enabled))
        self.api_key = api_key
        if client is None and api_key:
            client = AsyncOpenAI(api_key=api_key)
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIProvider":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.model_for(cls.provider_id, cls.DEFAULT_MODEL),
            enabled=settings.is_enabled(cls.provider_id),
        )

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def missing_credentials_message(self) -> str:
        return "OpenAI API key not configured. Set OPENAI_API_KEY in .env.local"

    async def _complete(self, client: Any, image: ImageInput, prompt: str) -> str:
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=chat_messages(image, prompt),
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
        except openai.OpenAIError as e:
            raise TransportError(f"OpenAI request failed: {e}") from e

        return response.choices[0].message.content or ""
