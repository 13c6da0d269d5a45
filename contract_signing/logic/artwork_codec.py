# contract_signing/logic/artwork_codec.py
from __future__ import annotations
import base64
import binascii
import io
import re
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..exceptions.errors import ArtworkDecodeError, EmptyInputError

_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
_DATA_URL_RE = re.compile(r"^data:image/(?P<fmt>[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)

WHITE = (255, 255, 255, 255)


def sniff_format(data: bytes) -> Optional[str]:
    """Return "PNG", "JPEG" or "GIF" from the magic number, None otherwise."""
    if data[:8] == _PNG_MAGIC:
        return "PNG"
    if data[:3] == b"\xff\xd8\xff":
        return "JPEG"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "GIF"
    return None


def decode_image(data: bytes) -> Image.Image:
    """Open and fully load raster bytes; any decoder failure becomes ArtworkDecodeError."""
    if not data:
        raise EmptyInputError("No image data supplied.")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ArtworkDecodeError(f"Artwork could not be decoded: {exc}") from exc
    if img.width <= 0 or img.height <= 0:
        raise ArtworkDecodeError("Artwork has no pixels.")
    return img


def flatten_on_white(img: Image.Image) -> Image.Image:
    """Composite onto an opaque white RGBA background (transparent pixels become paper)."""
    rgba = img.convert("RGBA")
    bg = Image.new("RGBA", rgba.size, WHITE)
    bg.alpha_composite(rgba)
    return bg


def encode_png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


def from_data_url(url: str) -> bytes:
    """Inverse of :func:`to_data_url`; also accepts jpeg/gif data URLs."""
    m = _DATA_URL_RE.match((url or "").strip())
    if not m:
        raise ArtworkDecodeError("Not an image data URL.")
    try:
        return base64.b64decode(m.group("payload"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ArtworkDecodeError(f"Malformed base64 payload in data URL: {exc}") from exc
