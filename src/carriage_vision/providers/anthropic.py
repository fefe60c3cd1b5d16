"""Anthropic Claude vision provider."""

import logging
from typing import Any, Optional

import anthropic
from anthropic import AsyncAnthropic

from ..config import Settings
from ..exceptions import TransportError
from ..frames import ImageInput
from .base import MAX_TOKENS, TEMPERATURE, ProviderConfig, VisionProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(VisionProvider):
    """Anthropic Claude vision implementation."""

    provider_id = "anthropic"

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        enabled: bool = True,
        client: Any = None,
    ) -> None:
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Model identifier (default: claude-sonnet-4-20250514)
            enabled: Static feature flag
            client: Prebuilt async client (tests)
        """
        super().__init__(ProviderConfig(name="Anthropic", model=model, enabled=enabled))
        self.api_key = api_key
        if client is None and api_key:
            client = AsyncAnthropic(api_key=api_key)
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnthropicProvider":
        return cls(
            api_key=settings.anthropic_api_key,
            model=settings.model_for(cls.provider_id, cls.DEFAULT_MODEL),
            enabled=settings.is_enabled(cls.provider_id),
        )

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def missing_credentials_message(self) -> str:
        return "Anthropic API key not configured. Set ANTHROPIC_API_KEY in .env.local"

    @staticmethod
    def _image_block(image: ImageInput) -> dict:
        if image.is_url:
            source = {"type": "url", "url": image.url}
        else:
            source = {
                "type": "base64",
                "media_type": image.media_type,
                "data": image.base64_data,
            }
        return {"type": "image", "source": source}

    async def _complete(self, client: Any, image: ImageInput, prompt: str) -> str:
        try:
            response = await client.messages.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            self._image_block(image),
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
        except anthropic.AnthropicError as e:
            raise TransportError(f"Anthropic request failed: {e}") from e

        result_text = ""
        for block in response.content:
            if block.type == "text":
                result_text += block.text
        return result_text
