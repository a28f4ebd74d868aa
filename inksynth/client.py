"""Python client for the InkSynth API.

Does on the caller's side what the web UI does in the browser: shrinks photos
before upload, base64-encodes them, and mirrors right-side body photos so the
model always works on a left-side placement.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import httpx

from . import codec
from .models import DEFAULT_PLACEMENT

logger = logging.getLogger(__name__)


class InkSynthAPIError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class GenerationOutcome:
    image: str
    flipped: bool = False

    def for_display(self) -> str:
        """The image in the orientation of the photo the user uploaded."""
        return codec.flip_data_uri(self.image) if self.flipped else self.image


class InkSynthClient:
    def __init__(self, base_url: str, http: httpx.Client | None = None, mirror_right_side: bool = True,
                 max_dimension: int = 1024, quality: float = 0.8, timeout: float = 180.0):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.mirror_right_side = mirror_right_side
        self.max_dimension = max_dimension
        self.quality = quality

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _prepare(self, source) -> bytes:
        raw = Path(source).read_bytes() if isinstance(source, (str, Path)) else bytes(source)
        return codec.resize(raw, self.max_dimension, self.max_dimension, self.quality)

    @staticmethod
    def _payload_image(raw: bytes) -> dict:
        image = codec.encode(raw, codec.sniff_mime_type(raw))
        return {"mimeType": image.mime_type, "data": image.data}

    def _post(self, request_type: str, payload: dict) -> str:
        response = self.http.post("/api/generate", json={"type": request_type, "payload": payload})
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_error:
            message = body.get("error") or f"Server responded with status: {response.status_code}"
            raise InkSynthAPIError(response.status_code, message)
        if not body.get("image"):
            raise InkSynthAPIError(response.status_code, "API response did not contain an image.")
        return body["image"]

    def simulate(self, body_part, tattoo_design, target_area: str) -> GenerationOutcome:
        body_raw = self._prepare(body_part)
        was_right = self.mirror_right_side and "Right" in target_area
        if was_right:
            body_raw = codec.flip(body_raw)
            target_area = target_area.replace("Right", "Left", 1)
            logger.debug("Mirrored body photo; targeting %s", target_area)

        image = self._post("simulator", {
            "bodyPartImage": self._payload_image(body_raw),
            "tattooDesignImage": self._payload_image(self._prepare(tattoo_design)),
            "targetArea": target_area,
            "wasOriginallyRight": was_right,
        })
        return GenerationOutcome(image=image, flipped=was_right)

    def design(self, images, prompt: str, is_color: bool = False,
               placement: str = DEFAULT_PLACEMENT) -> GenerationOutcome:
        image = self._post("designer", {
            "images": [self._payload_image(self._prepare(img)) for img in images],
            "prompt": prompt,
            "isColor": is_color,
            "placement": placement,
        })
        return GenerationOutcome(image=image)

    def multi_tattoo(self, body_part, tattoo1, target_area1: str, tattoo2, target_area2: str) -> GenerationOutcome:
        image = self._post("multi-tattoo", {
            "bodyPartImage": self._payload_image(self._prepare(body_part)),
            "tattoo1": self._payload_image(self._prepare(tattoo1)),
            "targetArea1": target_area1,
            "tattoo2": self._payload_image(self._prepare(tattoo2)),
            "targetArea2": target_area2,
        })
        return GenerationOutcome(image=image)
