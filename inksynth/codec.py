"""Image codec adapter: base64 transport form plus the Pillow-backed resize, crop and flip."""

import base64
import binascii
import io
import math
import re
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import CodecError, InputValidationError

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*),(?P<data>.*)$", re.DOTALL)

# Pillow writes these directly; anything else (MPO from phone cameras, GIF, ...) is re-encoded.
_WRITABLE_FORMATS = {"JPEG", "PNG", "WEBP"}


@dataclass(frozen=True)
class EncodedImage:
    mime_type: str
    data: str
    declared_scheme: str | None = None  # header of the data URI the client sent, if any

    @classmethod
    def from_data_uri(cls, uri: str) -> "EncodedImage":
        match = _DATA_URI_RE.match(uri)
        if not match or ";base64" not in match.group("params"):
            raise CodecError("Not a base64 data URI.")
        header = uri.split(",", 1)[0]
        return cls(mime_type=match.group("mime"), data=match.group("data"), declared_scheme=header)

    @classmethod
    def from_payload(cls, obj, field: str) -> "EncodedImage":
        """Build from the JSON shape ``{mimeType, data}`` sent by the UI."""
        if not isinstance(obj, dict):
            raise InputValidationError(field, f"{field} must be an object with mimeType and data.")
        mime_type = obj.get("mimeType")
        data = obj.get("data")
        if not isinstance(mime_type, str) or not mime_type:
            raise InputValidationError(field, f"{field}.mimeType is required.")
        if not isinstance(data, str):
            raise InputValidationError(field, f"{field}.data is required.")

        if data.startswith("data:"):
            try:
                parsed = cls.from_data_uri(data)
            except CodecError:
                raise InputValidationError(field, f"{field}.data is not a valid base64 data URI.")
            return cls(mime_type=mime_type, data=parsed.data, declared_scheme=parsed.declared_scheme)
        return cls(mime_type=mime_type, data=data)

    @property
    def decoded_size(self) -> int:
        return len(self.data) * 3 // 4

    def to_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise CodecError(f"Invalid base64 image data: {e}") from e

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def encode(raw: bytes, mime_type: str) -> EncodedImage:
    return EncodedImage(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))


def sniff_mime_type(raw: bytes) -> str:
    """Return the MIME type Pillow detects for ``raw``."""
    img = _open(raw)
    return Image.MIME.get(img.format or "", "application/octet-stream")


# ---------------------------------------------------------------------------
# Pixel operations
# ---------------------------------------------------------------------------

def _open(raw: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise CodecError(f"Could not decode image: {e}") from e
    return img


def _save(img: Image.Image, fmt: str, quality: int = 95) -> bytes:
    fmt = fmt if fmt in _WRITABLE_FORMATS else ("JPEG" if fmt == "MPO" else "PNG")
    if fmt == "JPEG" and img.mode not in ("RGB", "L"):
        img = _flatten(img)
    buf = io.BytesIO()
    try:
        if fmt == "PNG":
            img.save(buf, format="PNG")
        else:
            img.save(buf, format=fmt, quality=quality)
    except (OSError, ValueError) as e:
        raise CodecError(f"Could not encode image as {fmt}: {e}") from e
    return buf.getvalue()


def _flatten(img: Image.Image) -> Image.Image:
    """Composite transparent pixels onto white, the way a canvas export to JPEG does."""
    rgba = img.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background


def resize(raw: bytes, max_width: int = 1024, max_height: int = 1024, quality: float = 0.8) -> bytes:
    """Downscale to fit ``max_width`` x ``max_height`` and re-encode as JPEG.

    Aspect ratio is preserved and images already inside the bounds keep their
    size, but they are still recompressed so the payload is bounded. Lossy.
    """
    img = ImageOps.exif_transpose(_open(raw))
    img.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
    return _save(img, "JPEG", quality=max(1, min(95, round(quality * 100))))


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in on-screen (display) pixels."""

    x: float
    y: float
    width: float
    height: float


def display_scale(natural_size: tuple, display_size: tuple) -> tuple:
    nw, nh = natural_size
    dw, dh = display_size
    if dw <= 0 or dh <= 0:
        raise CodecError("Display size must be positive.")
    return nw / dw, nh / dh


def crop(raw: bytes, rect: CropRect, scale: tuple = (1.0, 1.0), pixel_ratio: float = 1.0) -> bytes:
    """Cut ``rect`` out of the image, mapping display coordinates to source pixels.

    ``scale`` is the natural/display ratio per axis. The result is
    ``floor(w * sx * pixel_ratio)`` by ``floor(h * sy * pixel_ratio)`` pixels; the
    pixel ratio only changes resolution, never which region is extracted.
    """
    img = _open(raw)
    fmt = img.format or "PNG"
    sx, sy = scale

    left = max(0.0, rect.x * sx)
    top = max(0.0, rect.y * sy)
    right = min(float(img.width), (rect.x + rect.width) * sx)
    bottom = min(float(img.height), (rect.y + rect.height) * sy)

    out_w = math.floor((right - left) * pixel_ratio)
    out_h = math.floor((bottom - top) * pixel_ratio)
    if out_w <= 0 or out_h <= 0:
        raise CodecError("Crop rectangle does not overlap the image.")

    region = img.crop((round(left), round(top), round(right), round(bottom)))
    if region.size != (out_w, out_h):
        region = region.resize((out_w, out_h), Image.Resampling.LANCZOS)
    return _save(region, fmt)


def flip(raw: bytes) -> bytes:
    """Mirror across the vertical axis.

    The result is always PNG: flipping twice gives back exactly the
    decoded pixels of ``raw``, whatever its source format.
    """
    img = _open(raw)
    if img.mode not in ("1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"):
        img = img.convert("RGB")
    return _save(ImageOps.mirror(img), "PNG")


def flip_data_uri(uri: str) -> str:
    image = EncodedImage.from_data_uri(uri)
    return encode(flip(image.to_bytes()), "image/png").to_data_uri()
