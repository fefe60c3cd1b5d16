"""Shared test fixtures and fakes."""

import base64
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from carriage_vision.config import Settings
from carriage_vision.frames import ImageInput
from carriage_vision.providers.base import ProviderConfig, VisionProvider
from carriage_vision.providers.registry import ProviderRegistry
from carriage_vision.result import AnalysisResult, CongestionStatus

FRAME_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-frame"
FRAME_DATA_URL = "data:image/jpeg;base64," + base64.b64encode(FRAME_BYTES).decode()
FRAME_URL = "https://cams.example.com/carriage/3/latest.jpg"

GOOD_REPLY = (
    "Here is my assessment of the carriage:\n"
    '{"status": "full", "capacity": 120, "confidence": 90, "reasoning": "crowded"}\n'
    "Let me know if you need anything else."
)


# =============================================================================
# Providers
# =============================================================================


class StubProvider(VisionProvider):
    """Provider whose analyze_image returns or raises a scripted outcome."""

    provider_id = "stub"

    def __init__(
        self,
        name: str,
        result: Optional[AnalysisResult] = None,
        error: Optional[Exception] = None,
        configured: bool = True,
        enabled: bool = True,
    ) -> None:
        super().__init__(ProviderConfig(name=name, model=f"{name.lower()}-model", enabled=enabled))
        self._result = result
        self._error = error
        self._configured = configured
        self.calls: list[str] = []

    def is_configured(self) -> bool:
        return self._configured

    @property
    def missing_credentials_message(self) -> str:
        return f"{self.name} not configured"

    async def _complete(self, client: Any, image: ImageInput, prompt: str) -> str:
        raise NotImplementedError

    async def analyze_image(self, image: str) -> AnalysisResult:
        self.calls.append(image)
        if self._error is not None:
            raise self._error
        return self._result


class ReplyProvider(VisionProvider):
    """Provider that goes through the shared pipeline with a canned reply."""

    provider_id = "reply"

    def __init__(self, reply: Any = GOOD_REPLY, configured: bool = True) -> None:
        super().__init__(ProviderConfig(name="Reply", model="reply-model"))
        self.reply = reply
        self._configured = configured
        self._client = object()
        self.frames: list[ImageInput] = []
        self.prompts: list[str] = []

    def is_configured(self) -> bool:
        return self._configured

    @property
    def missing_credentials_message(self) -> str:
        return "Reply provider not configured"

    async def _complete(self, client: Any, image: ImageInput, prompt: str) -> str:
        self.frames.append(image)
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


def make_result(
    status: CongestionStatus = CongestionStatus.FULL,
    capacity: int = 120,
    confidence: int = 90,
    reasoning: str = "crowded",
) -> AnalysisResult:
    return AnalysisResult(status=status, capacity=capacity, confidence=confidence, reasoning=reasoning)


def registry_of(*providers: VisionProvider) -> ProviderRegistry:
    """Registry keyed by lowercased provider name, returning the given instances."""
    registry = ProviderRegistry()
    for provider in providers:
        registry.register(provider.name.lower(), lambda settings, p=provider: p)
    return registry


# =============================================================================
# SDK client fakes
# =============================================================================


class FakeChatClient:
    """Stands in for openai.AsyncOpenAI's chat.completions.create."""

    def __init__(self, text: Optional[str] = GOOD_REPLY, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.text)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeMessagesClient:
    """Stands in for anthropic.AsyncAnthropic's messages.create."""

    def __init__(self, text: str = GOOD_REPLY, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []
        self.messages = SimpleNamespace(create=self._create)

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


class FakeConverseClient:
    """Stands in for a boto3 bedrock-runtime client."""

    def __init__(self, text: str = GOOD_REPLY, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    def converse(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"output": {"message": {"role": "assistant", "content": [{"text": self.text}]}}}


class FakeGenerativeModel:
    """Stands in for google.generativeai.GenerativeModel."""

    def __init__(self, text: str = GOOD_REPLY, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[tuple] = []

    async def generate_content_async(self, content, generation_config=None):
        self.calls.append((content, generation_config))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def frame() -> str:
    return FRAME_DATA_URL
