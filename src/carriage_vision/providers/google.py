"""Google Gemini vision provider."""

import logging
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..config import Settings
from ..exceptions import TransportError
from ..frames import ImageInput, fetch_image
from .base import MAX_TOKENS, TEMPERATURE, ProviderConfig, VisionProvider

logger = logging.getLogger(__name__)


class GoogleProvider(VisionProvider):
    """Google Gemini vision implementation.

    Gemini takes inline bytes, so URL frames are downloaded first.
    """

    provider_id = "google"

    DEFAULT_MODEL = "gemini-1.5-flash"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        enabled: bool = True,
        client: Any = None,
    ) -> None:
        """Initialize Google provider.

        Args:
            api_key: Google API key
            model: Model identifier (default: gemini-1.5-flash)
            enabled: Static feature flag
            client: Prebuilt ``GenerativeModel``-like object (tests)
        """
        super().__init__(ProviderConfig(name="Google Gemini", model=model, enabled=enabled))
        self.api_key = api_key
        if client is None and api_key:
            genai.configure(api_key=api_key)
            client = genai.GenerativeModel(model_name=model)
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleProvider":
        return cls(
            api_key=settings.google_api_key,
            model=settings.model_for(cls.provider_id, cls.DEFAULT_MODEL),
            enabled=settings.is_enabled(cls.provider_id),
        )

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def missing_credentials_message(self) -> str:
        return "Google API key not configured. Set GOOGLE_API_KEY or GEMINI_API_KEY in .env.local"

    async def _complete(self, client: Any, image: ImageInput, prompt: str) -> str:
        image = await fetch_image(image)
        content = [
            {"mime_type": image.media_type, "data": image.data},
            prompt,
        ]

        try:
            response = await client.generate_content_async(
                content,
                generation_config=genai.GenerationConfig(
                    temperature=TEMPERATURE,
                    max_output_tokens=MAX_TOKENS,
                ),
            )
        except google_exceptions.GoogleAPIError as e:
            raise TransportError(f"Gemini request failed: {e}") from e

        return response.text
