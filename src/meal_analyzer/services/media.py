"""Media encoding for image and audio uploads.

Turns raw uploaded bytes into base64 payloads for the AI providers, shrinking
large photos first to bound request size and latency.
"""

import base64
import io
import logging
import re

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# Images at or above this size are downscaled and recompressed
COMPRESSION_THRESHOLD_BYTES = 500 * 1024
MAX_IMAGE_WIDTH = 1024
MAX_IMAGE_HEIGHT = 1024
JPEG_QUALITY = 80

_DATA_URL_MIME = re.compile(r"^data:([^;,]+)[;,]")


class MediaEncodingError(Exception):
    """Raw media could not be decoded or re-encoded."""


class EncodedMedia(BaseModel):
    """Base64 payload ready to attach to a provider call."""

    data_base64: str
    mime_type: str
    size_bytes: int = Field(ge=0, description="Size of the encoded binary payload")
    original_size_bytes: int = Field(ge=0, description="Size of the raw upload")

    @property
    def was_compressed(self) -> bool:
        return self.size_bytes != self.original_size_bytes


def create_data_url(data_base64: str, mime_type: str) -> str:
    """Build a data URL from a base64 payload."""
    return f"data:{mime_type};base64,{data_base64}"


def get_mime_type_from_data_url(data_url: str | None) -> str | None:
    """Extract the MIME type from a data URL, None if it is not one."""
    if not data_url or not isinstance(data_url, str):
        return None
    match = _DATA_URL_MIME.match(data_url)
    return match.group(1) if match else None


def strip_data_url_prefix(value: str) -> str:
    """Return the bare base64 payload of a data URL (or the value unchanged)."""
    if value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value


def is_image_mime(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("image/")


def is_audio_mime(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("audio/")


class MediaEncoder:
    """
    Encodes uploaded media for the analysis service.

    Small files are passed through untouched. Photos at or above the
    compression threshold are fitted into max_width x max_height, keeping the
    aspect ratio, and re-encoded as JPEG.
    """

    def __init__(
        self,
        max_width: int = MAX_IMAGE_WIDTH,
        max_height: int = MAX_IMAGE_HEIGHT,
        quality: int = JPEG_QUALITY,
        compression_threshold: int = COMPRESSION_THRESHOLD_BYTES,
    ):
        self.max_width = max_width
        self.max_height = max_height
        self.quality = quality
        self.compression_threshold = compression_threshold

    def encode(self, data: bytes, mime_type: str) -> EncodedMedia:
        """Base64-encode raw bytes without modification."""
        return EncodedMedia(
            data_base64=base64.b64encode(data).decode("utf-8"),
            mime_type=mime_type,
            size_bytes=len(data),
            original_size_bytes=len(data),
        )

    def encode_image(self, data: bytes, mime_type: str) -> EncodedMedia:
        """
        Encode an image, compressing it when it is large.

        Raises:
            MediaEncodingError: If a large image cannot be decoded
        """
        if len(data) < self.compression_threshold:
            logger.debug(f"Image is small ({len(data) // 1024} KB), skipping compression")
            return self.encode(data, mime_type)

        logger.info(f"Image is large ({len(data) // 1024} KB), compressing")
        compressed = self.compress_image(data)

        logger.info(f"Compression done: {len(data) // 1024} KB -> {len(compressed) // 1024} KB")
        return EncodedMedia(
            data_base64=base64.b64encode(compressed).decode("utf-8"),
            mime_type="image/jpeg",
            size_bytes=len(compressed),
            original_size_bytes=len(data),
        )

    def encode_audio(self, data: bytes, mime_type: str) -> EncodedMedia:
        """Encode an audio recording as-is."""
        return self.encode(data, mime_type)

    def compress_image(self, data: bytes) -> bytes:
        """Downscale to fit the configured bounds and re-encode as JPEG."""
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.thumbnail((self.max_width, self.max_height))
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")

                output = io.BytesIO()
                image.save(output, format="JPEG", quality=self.quality)
                return output.getvalue()
        except (UnidentifiedImageError, OSError) as e:
            raise MediaEncodingError(f"Could not process image: {e}") from e
