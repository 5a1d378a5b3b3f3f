"""Ring overlay compositing.

The overlay defines the working canvas. Before compositing it is scaled to the
side of the avatar's centred square crop, so the result always has the same
side as the shorter edge of the uploaded picture. The avatar is then fitted
into the transparent hole of the ring, the ring is alpha-composited on top and
everything outside the ring's circle is made transparent.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import FrozenSet

from PIL import Image, ImageChops, ImageDraw, ImageOps, UnidentifiedImageError

from .errors import UnprocessableImage

logger = logging.getLogger("chaosbot.compositor")

SUPPORTED_FORMATS: FrozenSet[str] = frozenset({"PNG", "JPEG", "MPO", "WEBP", "GIF", "BMP"})
DEFAULT_MAX_IMAGE_PIXELS = 4096 * 4096
OVERLAY_MAX_PIXELS = 8192 * 8192
OUTPUT_FORMAT = "PNG"


def decode_image(data: bytes, *, max_pixels: int = DEFAULT_MAX_IMAGE_PIXELS) -> "Image.Image":
    """Decode raw bytes into an RGBA image or raise UnprocessableImage."""
    if not data:
        raise UnprocessableImage("empty image payload")
    try:
        image = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        raise UnprocessableImage(f"unrecognised image data: {exc}") from exc
    except (OSError, SyntaxError, ValueError) as exc:
        raise UnprocessableImage(f"unreadable image data: {exc}") from exc

    if image.format not in SUPPORTED_FORMATS:
        raise UnprocessableImage(f"unsupported image format {image.format}")
    width, height = image.size
    if width <= 0 or height <= 0 or width * height > max_pixels:
        raise UnprocessableImage(
            f"image is {width}x{height}, limit is {max_pixels} pixels",
            user_message="That image is too large. Please upload a smaller picture.",
        )

    try:
        if getattr(image, "is_animated", False):
            image.seek(0)
        image.load()
        image = ImageOps.exif_transpose(image)
        return image.convert("RGBA")
    except (OSError, SyntaxError, ValueError) as exc:
        raise UnprocessableImage(f"corrupt image data: {exc}") from exc


def load_overlay(path: Path) -> bytes:
    """Read an overlay file and make sure it decodes; returns the raw bytes."""
    data = path.read_bytes()
    overlay = decode_image(data, max_pixels=OVERLAY_MAX_PIXELS)
    if overlay.getextrema()[3][0] == 255:
        logger.warning("Overlay %s has no transparent pixels; the avatar will be hidden.", path)
    return data


def measure_ring_width(overlay: "Image.Image") -> int:
    """Count opaque pixels down the top half of the overlay's centre column."""
    alpha = overlay.getchannel("A")
    x = overlay.width // 2
    return sum(1 for y in range(overlay.height // 2) if alpha.getpixel((x, y)) != 0)


def _apply_round_mask(canvas: "Image.Image") -> "Image.Image":
    mask = Image.new("L", canvas.size, 0)
    ImageDraw.Draw(mask).ellipse((0, 0, canvas.width - 1, canvas.height - 1), fill=255)
    canvas.putalpha(ImageChops.multiply(canvas.getchannel("A"), mask))
    return canvas


def overlay_ring(avatar: "Image.Image", ring: "Image.Image") -> "Image.Image":
    side = min(avatar.size)
    ring = ImageOps.fit(ring, (side, side), Image.LANCZOS, centering=(0.5, 0.5))
    band = measure_ring_width(ring)
    inner = side - 2 * band
    if inner < 1:
        band, inner = 0, side
    logger.debug(
        "Compositing avatar %sx%s into ring %sx%s (band %s)",
        avatar.width,
        avatar.height,
        side,
        side,
        band,
    )

    fitted = ImageOps.fit(avatar, (inner, inner), Image.LANCZOS, centering=(0.5, 0.5))
    canvas = Image.new("RGBA", (side, side), (0, 0, 0, 0))
    canvas.paste(fitted, (band, band))
    canvas = Image.alpha_composite(canvas, ring)
    return _apply_round_mask(canvas)


def composite_ring(
    avatar_bytes: bytes,
    overlay_bytes: bytes,
    *,
    max_pixels: int = DEFAULT_MAX_IMAGE_PIXELS,
) -> bytes:
    """Blend the overlay onto the avatar and return PNG bytes.

    Blocking and CPU bound; callers on the event loop should use
    ``asyncio.to_thread``.
    """
    avatar = decode_image(avatar_bytes, max_pixels=max_pixels)
    ring = decode_image(overlay_bytes, max_pixels=OVERLAY_MAX_PIXELS)
    result = overlay_ring(avatar, ring)
    output = io.BytesIO()
    result.save(output, format=OUTPUT_FORMAT)
    return output.getvalue()


__all__ = [
    "DEFAULT_MAX_IMAGE_PIXELS",
    "SUPPORTED_FORMATS",
    "composite_ring",
    "decode_image",
    "load_overlay",
    "measure_ring_width",
    "overlay_ring",
]
