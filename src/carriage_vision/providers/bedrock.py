"""AWS Bedrock Llama vision provider."""

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import DEFAULT_AWS_REGION, Settings
from ..exceptions import TransportError
from ..frames import ImageInput, fetch_image
from .base import MAX_TOKENS, TEMPERATURE, ProviderConfig, VisionProvider

logger = logging.getLogger(__name__)

# Image formats accepted by the Converse API
SUPPORTED_FORMATS = {"png", "jpeg", "gif", "webp"}


class BedrockProvider(VisionProvider):
    """AWS Bedrock implementation using the Converse API.

    boto3 is synchronous, so each call runs in a worker thread. Converse
    only takes inline bytes; URL frames are downloaded first.
    """

    provider_id = "bedrock"

    DEFAULT_MODEL = "us.meta.llama3-2-11b-instruct-v1:0"

    def __init__(
        self,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session_token: Optional[str] = None,
        region: str = DEFAULT_AWS_REGION,
        model: str = DEFAULT_MODEL,
        enabled: bool = True,
        client: Any = None,
    ) -> None:
        """Initialize Bedrock provider.

        Args:
            access_key_id: AWS access key id
            secret_access_key: AWS secret access key
            session_token: Optional STS session token
            region: AWS region hosting the model
            model: Bedrock model or inference profile id
            enabled: Static feature flag
            client: Prebuilt ``bedrock-runtime`` client (tests)
        """
        super().__init__(ProviderConfig(name="AWS Bedrock", model=model, enabled=enabled))
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.region = region

        if client is None and access_key_id and secret_access_key:
            client = boto3.client(
                "bedrock-runtime",
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                aws_session_token=session_token,
            )
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "BedrockProvider":
        return cls(
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            session_token=settings.aws_session_token,
            region=settings.aws_region,
            model=settings.model_for(cls.provider_id, cls.DEFAULT_MODEL),
            enabled=settings.is_enabled(cls.provider_id),
        )

    def is_configured(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    @property
    def missing_credentials_message(self) -> str:
        return (
            "AWS Bedrock credentials not configured. "
            "Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY in .env.local"
        )

    async def _complete(self, client: Any, image: ImageInput, prompt: str) -> str:
        image = await fetch_image(image)

        image_format = image.format
        if image_format == "jpg":
            image_format = "jpeg"
        if image_format not in SUPPORTED_FORMATS:
            raise ValueError(f"Bedrock does not accept {image.media_type} images")

        try:
            response = await asyncio.to_thread(
                client.converse,
                modelId=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"image": {"format": image_format, "source": {"bytes": image.data}}},
                            {"text": prompt},
                        ],
                    }
                ],
                inferenceConfig={"temperature": TEMPERATURE, "maxTokens": MAX_TOKENS},
            )
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f"Bedrock request failed: {e}") from e

        blocks = response.get("output", {}).get("message", {}).get("content", [])
        return "".join(block.get("text", "") for block in blocks)
