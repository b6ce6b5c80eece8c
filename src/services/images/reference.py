"""Reference image handling for generation requests.

Clients attach an optional reference image as a data URI
(``data:<mime>;base64,<payload>``). Anything that cannot be turned into a
usable image is dropped so the generation proceeds text-only; a bad image is
never a reason to fail the request.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass

from PIL import Image, ImageOps
from PIL.Image import Image as PILImage
from pydantic_ai.messages import BinaryContent


logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)

# Media types both providers accept for inline images
ALLOWED_MEDIA_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

MAX_IMAGE_DIMENSION = 2048  # Maximum width or height in pixels
JPEG_QUALITY = 85
MAX_REFERENCE_BYTES = 8 * 1024 * 1024  # 8 MiB decoded
MAX_IMAGE_PIXELS = 40_000_000  # Checked from the header before decoding


class ImageValidationError(Exception):
    """Raised when image bytes cannot be processed."""

    pass


@dataclass(frozen=True, slots=True)
class ReferenceImage:
    data: bytes
    media_type: str

    def to_binary_content(self) -> BinaryContent:
        return BinaryContent(data=self.data, media_type=self.media_type)


def _flatten_to_rgb(image: PILImage) -> PILImage:
    if image.mode == "RGB":
        return image
    if image.mode in ("RGBA", "LA", "P"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return image.convert("RGB")


def fit_image(
    image_bytes: bytes,
    media_type: str,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    jpeg_quality: int = JPEG_QUALITY,
    max_pixels: int = MAX_IMAGE_PIXELS,
) -> tuple[bytes, str]:
    """Return image bytes no larger than ``max_dimension`` on either side.

    Images already within bounds, and GIFs (which may be animated), are
    returned unchanged once Pillow confirms they decode. Larger still images
    are EXIF-rotated, flattened to RGB, downscaled and re-encoded as JPEG.
    Images over ``max_pixels`` are rejected from their header, before any
    pixel data is decoded.

    Raises:
        ImageValidationError: If Pillow cannot read or re-encode the image.
    """
    try:
        image: PILImage = Image.open(io.BytesIO(image_bytes))
        width, height = image.size
        if width * height > max_pixels:
            raise ImageValidationError(
                f"Image of {width}x{height} exceeds {max_pixels} pixels"
            )
        image.load()

        if media_type == "image/gif" or (
            width <= max_dimension and height <= max_dimension
        ):
            return image_bytes, media_type

        image = _flatten_to_rgb(ImageOps.exif_transpose(image))
        image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
        logger.debug(
            "Downscaled reference image from %dx%d to %dx%d",
            width,
            height,
            image.size[0],
            image.size[1],
        )

        output = io.BytesIO()
        image.save(output, format="JPEG", quality=jpeg_quality, optimize=True)
        return output.getvalue(), "image/jpeg"

    except ImageValidationError:
        raise
    # Pillow's DecompressionBombError is a plain Exception subclass
    except Exception as e:
        raise ImageValidationError(f"Failed to read image: {e}") from e


def parse_reference_image(data_uri: str | None) -> ReferenceImage | None:
    """Decode a data URI into a provider-ready image, or ``None`` to skip it."""
    if not data_uri:
        return None

    match = DATA_URI_PATTERN.match(data_uri.strip())
    if match is None:
        logger.debug("Ignoring reference image: not a base64 data URI")
        return None

    media_type = match.group(1).strip().lower()
    if media_type not in ALLOWED_MEDIA_TYPES:
        logger.debug("Ignoring reference image with media type %s", media_type)
        return None

    try:
        raw = base64.b64decode(match.group(2), validate=False)
    except (binascii.Error, ValueError):
        logger.debug("Ignoring reference image: invalid base64 payload")
        return None

    if not raw or len(raw) > MAX_REFERENCE_BYTES:
        logger.debug("Ignoring reference image of %d bytes", len(raw))
        return None

    try:
        data, media_type = fit_image(raw, media_type)
    except ImageValidationError as e:
        logger.debug("Ignoring reference image: %s", e)
        return None

    return ReferenceImage(data=data, media_type=media_type)
