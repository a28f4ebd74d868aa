from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
from google.genai import types
from PIL import Image

from inksynth.codec import EncodedImage, encode
from inksynth.config import Settings
from inksynth.gemini import GenerationClient
from inksynth.server import create_app

CANONICAL_ORIGIN = "https://inksynth.example"
ALLOWED_ORIGIN = "https://app.inksynth.example"


def make_image_bytes(size=(64, 32), fmt="PNG", color=None) -> bytes:
    """A small image with a left/right asymmetric pattern so flips are observable."""
    img = Image.new("RGB", size, color or (255, 255, 255))
    w, h = size
    img.paste((200, 10, 10), (0, 0, w // 4, h))
    img.putpixel((w - 1, 0), (0, 0, 255))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def image_part(data: bytes = b"\x89PNG-output", mime_type: str = "image/png") -> types.Part:
    return types.Part(inline_data=types.Blob(data=data, mime_type=mime_type))


def text_part(text: str) -> types.Part:
    return types.Part(text=text)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def png_image(png_bytes: bytes) -> EncodedImage:
    return encode(png_bytes, "image/png")


@pytest.fixture
def png_payload(png_image: EncodedImage) -> dict:
    return {"mimeType": png_image.mime_type, "data": png_image.data}


@pytest.fixture
def fake_genai() -> MagicMock:
    client = MagicMock()
    client.models.generate_content.return_value = make_response(image_part(), text_part("Here you go."))
    return client


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gemini_api_key="test-key",
        app_env="production",
        model="test-image-model",
        canonical_origin=CANONICAL_ORIGIN,
        allowed_origins=(ALLOWED_ORIGIN,),
        cors_max_age=600,
    )


@pytest.fixture
def app(settings: Settings, fake_genai: MagicMock):
    app = create_app(settings, GenerationClient(fake_genai, settings.model))
    return app


@pytest.fixture
def client(app):
    return app.test_client()
