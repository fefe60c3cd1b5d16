"""Frame references: parsing data URLs, fetching remote frames, loading local files."""

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx
from PIL import Image

from .exceptions import TransportError

logger = logging.getLogger(__name__)

# Quality presets: (max_dimension, jpeg_quality)
QUALITY_PRESETS = {
    "quick": (512, 75),
    "normal": (1024, 85),
    "detailed": (1568, 90),
    "full": (None, 95),
}

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp"}
IMAGE_MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}

DEFAULT_MEDIA_TYPE = "image/jpeg"
FETCH_TIMEOUT = 30.0


@dataclass(frozen=True)
class ImageInput:
    """A frame ready to hand to a backend.

    Exactly one of ``data`` (raw decoded bytes) or ``url`` is set.
    """

    media_type: str
    data: Optional[bytes] = None
    url: Optional[str] = None

    @property
    def is_url(self) -> bool:
        return self.url is not None

    @property
    def base64_data(self) -> str:
        if self.data is None:
            raise ValueError("Image has no inline data")
        return base64.standard_b64encode(self.data).decode("utf-8")

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.base64_data}"

    @property
    def format(self) -> str:
        """Short format name, e.g. ``jpeg`` or ``png``."""
        return self.media_type.split("/", 1)[-1].lower()


def _media_type_from_path(path: str) -> str:
    path = path.lower()
    for ext, media_type in IMAGE_MEDIA_TYPES.items():
        if path.endswith(ext):
            return media_type
    return DEFAULT_MEDIA_TYPE


def parse_image_reference(image: str) -> ImageInput:
    """Turn a frame reference into an ImageInput.

    Data URLs (``data:image/jpeg;base64,...``) are decoded to raw bytes.
    Anything else must be an absolute http(s) URL and is passed through.

    Args:
        image: Data URL or remote URL

    Returns:
        ImageInput with either bytes or a URL

    Raises:
        ValueError: If the reference is neither a valid data URL nor a URL
    """
    if not image:
        raise ValueError("Empty image reference")

    if image.startswith("data:"):
        header, sep, payload = image.partition(",")
        if not sep:
            raise ValueError("Malformed data URL: missing ',' separator")

        media_type = header[len("data:"):].split(";", 1)[0] or DEFAULT_MEDIA_TYPE
        # MIME-wrapped base64 carries line breaks
        payload = "".join(payload.split())
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Malformed data URL: {e}") from e

        return ImageInput(media_type=media_type, data=data)

    parsed = urlparse(image)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL: {image}")

    return ImageInput(media_type=_media_type_from_path(parsed.path), url=image)


async def fetch_image(
    image: ImageInput,
    client: Optional[httpx.AsyncClient] = None,
) -> ImageInput:
    """Download a URL frame so it can be sent inline.

    Backends that only accept raw bytes use this. Inline frames are
    returned unchanged.

    Raises:
        TransportError: If the download fails or returns an error status
    """
    if not image.is_url:
        return image

    logger.debug(f"Fetching remote frame: {image.url}")

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as owned:
                response = await owned.get(image.url)
        else:
            response = await client.get(image.url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise TransportError(f"Failed to fetch image {image.url}: {e}") from e

    content_type = response.headers.get("content-type", "").split(";", 1)[0].strip()
    media_type = content_type if content_type.startswith("image/") else image.media_type

    return ImageInput(media_type=media_type, data=response.content)


class FrameLoader:
    """Loads local image files as data URLs, resized for the vision APIs."""

    def __init__(
        self,
        quality: str = "normal",
        max_dimension: Optional[int] = None,
        jpeg_quality: Optional[int] = None,
    ):
        """Initialize frame loader.

        Args:
            quality: Quality preset - "quick", "normal", "detailed", "full"
            max_dimension: Override max image dimension in pixels
            jpeg_quality: JPEG compression quality 1-100
        """
        preset = QUALITY_PRESETS.get(quality, QUALITY_PRESETS["normal"])

        self.quality = quality
        self.max_dimension = max_dimension or preset[0]
        self.jpeg_quality = jpeg_quality or preset[1]

    def load(self, file_path: Path) -> str:
        """Read a local image and return it as a data URL.

        Args:
            file_path: Path to image file

        Returns:
            ``data:<media type>;base64,<payload>`` string
        """
        path = Path(file_path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Image not found: {file_path}")

        if not path.is_file():
            raise ValueError(f"Not a file: {file_path}")

        ext = path.suffix.lower()
        if ext not in IMAGE_EXTENSIONS:
            raise ValueError(f"Unsupported image format: {ext}")

        file_bytes = path.read_bytes()
        optimized_bytes, media_type = self._optimize_image(file_bytes)

        logger.info(
            f"Loaded frame: {path.name} "
            f"({len(file_bytes):,} -> {len(optimized_bytes):,} bytes)"
        )

        return ImageInput(media_type=media_type, data=optimized_bytes).data_url

    def _optimize_image(self, image_bytes: bytes) -> tuple[bytes, str]:
        """Resize and compress a frame.

        Returns: (optimized_bytes, media_type)
        """
        img = Image.open(io.BytesIO(image_bytes))
        original_size = img.size

        if self.max_dimension and max(img.size) > self.max_dimension:
            ratio = self.max_dimension / max(img.size)
            new_size = (int(img.size[0] * ratio), int(img.size[1] * ratio))
            img = img.resize(new_size, Image.Resampling.LANCZOS)
            logger.debug(f"Resized: {original_size} -> {new_size}")

        has_transparency = img.mode in ("RGBA", "LA") or (
            img.mode == "P" and "transparency" in img.info
        )

        output = io.BytesIO()

        if has_transparency:
            if img.mode == "P":
                img = img.convert("RGBA")
            img.save(output, format="PNG", optimize=True)
            media_type = "image/png"
        else:
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.save(output, format="JPEG", quality=self.jpeg_quality, optimize=True)
            media_type = "image/jpeg"

        return output.getvalue(), media_type
