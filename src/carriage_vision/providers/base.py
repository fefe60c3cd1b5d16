"""Base classes and contracts for vision providers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..exceptions import ConfigurationError, ProviderAnalysisError
from ..frames import ImageInput, parse_image_reference
from ..result import AnalysisResult, parse_analysis_response

logger = logging.getLogger(__name__)

# Low temperature keeps replies literal and close to the requested format
TEMPERATURE = 0.3
MAX_TOKENS = 512

ANALYSIS_PROMPT = """You are an AI assistant analyzing train carriage occupancy. Analyze this image and determine:

1. The congestion status (choose ONE):
   - "empty": 0-25% capacity, very few or no people visible
   - "few_people": 25-50% capacity, some people but plenty of space
   - "moderate": 50-85% capacity, many people but still some standing room
   - "full": 85%+ capacity, crowded with little to no space or over capacity

2. Estimate the capacity percentage (0-150, where >100 means over capacity)

3. Your confidence level (0-100)

4. One sentence of reasoning for your assessment

Respond ONLY with a single JSON object in this exact format, with no other text:
{
  "status": "empty|few_people|moderate|full",
  "capacity": <number 0-150>,
  "confidence": <number 0-100>,
  "reasoning": "<one sentence explanation>"
}"""


def chat_messages(image: ImageInput, prompt: str) -> list[dict]:
    """Build an OpenAI-style chat payload with one image and the prompt."""
    image_url = image.url if image.is_url else image.data_url
    return [
        {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": image_url}},
                {"type": "text", "text": prompt},
            ],
        }
    ]


@dataclass(frozen=True)
class ProviderConfig:
    """Static identity of a provider."""

    name: str
    model: str
    enabled: bool = True


class VisionProvider(ABC):
    """Abstract base class for vision API providers.

    Subclasses only implement credential checks and the single backend
    call; prompting, JSON extraction, normalization and error wrapping are
    shared here.
    """

    provider_id: str  # registry key: "sambanova", "bedrock", ...

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @abstractmethod
    def is_configured(self) -> bool:
        """True if every credential this provider needs is present."""
        ...

    @property
    @abstractmethod
    def missing_credentials_message(self) -> str:
        """Error text used when the provider is called unconfigured."""
        ...

    def _select_client(self) -> Any:
        """Return the SDK client for the next call."""
        return self._client

    @abstractmethod
    async def _complete(self, client: Any, image: ImageInput, prompt: str) -> str:
        """Send one vision request and return the reply text.

        Args:
            client: SDK client returned by ``_select_client``
            image: Decoded frame or URL reference
            prompt: Instruction text

        Raises:
            TransportError: If the backend call fails
        """
        ...

    async def analyze_image(self, image: str) -> AnalysisResult:
        """Classify carriage congestion in a single frame.

        Args:
            image: Base64 data URL or http(s) URL of the frame

        Returns:
            Normalized analysis result

        Raises:
            ConfigurationError: If credentials are missing
            ProviderAnalysisError: If the request, or parsing its reply, fails
        """
        if not self.is_configured():
            raise ConfigurationError(self.missing_credentials_message)

        client = self._select_client()

        try:
            logger.info(f"[{self.name}] Analyzing image with model {self.model}")

            frame = parse_image_reference(image)
            text = await self._complete(client, frame, ANALYSIS_PROMPT)
            result = parse_analysis_response(text)

        except Exception as e:
            logger.error(f"[{self.name}] Analysis failed: {e}")
            raise ProviderAnalysisError(self.name, e) from e

        logger.info(
            f"[{self.name}] Analysis complete: status={result.status.value} "
            f"capacity={result.capacity} confidence={result.confidence}"
        )
        return result

    def describe(self) -> dict:
        return {
            "name": self.name,
            "model": self.model,
            "configured": self.is_configured(),
            "enabled": self.enabled,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, model={self.model!r})"
