from __future__ import annotations

import io
import os
from dataclasses import replace
from unittest.mock import MagicMock

import pytest
from PIL import Image

from conftest import ALLOWED_ORIGIN, CANONICAL_ORIGIN, make_response, text_part
from inksynth.codec import encode
from inksynth.config import Settings
from inksynth.errors import ConfigurationError
from inksynth.gemini import GenerationClient
from inksynth.server import create_app


@pytest.fixture
def large_jpeg_payload() -> dict:
    """A noisy ~2 MB JPEG: realistic upload size, still under the ceiling."""
    img = Image.frombytes("RGB", (1000, 1000), os.urandom(1000 * 1000 * 3))
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=95)
    image = encode(buf.getvalue(), "image/jpeg")
    return {"mimeType": image.mime_type, "data": image.data}


def _designer_body(images: list, prompt: str) -> dict:
    return {
        "type": "designer",
        "payload": {"images": images, "prompt": prompt, "isColor": False, "placement": "Forearm / Calf"},
    }


class TestGenerate:
    def test_designer_end_to_end(self, client, fake_genai: MagicMock, large_jpeg_payload: dict) -> None:
        resp = client.post("/api/generate", json=_designer_body([large_jpeg_payload], "skull design"))
        assert resp.status_code == 200
        assert resp.get_json()["image"].startswith("data:image/")
        fake_genai.models.generate_content.assert_called_once()

    def test_empty_prompt_is_rejected_before_model_call(self, client, fake_genai: MagicMock,
                                                        large_jpeg_payload: dict) -> None:
        resp = client.post("/api/generate", json=_designer_body([large_jpeg_payload], ""))
        assert resp.status_code == 400
        assert "Prompt cannot be empty." in resp.get_json()["error"]
        fake_genai.models.generate_content.assert_not_called()

    def test_simulator(self, client, png_payload: dict) -> None:
        resp = client.post("/api/generate", json={
            "type": "simulator",
            "payload": {"bodyPartImage": png_payload, "tattooDesignImage": png_payload, "targetArea": "Neck"},
        })
        assert resp.status_code == 200
        assert set(resp.get_json()) == {"image"}

    def test_duplicate_target_areas_never_reach_model(self, client, fake_genai: MagicMock,
                                                      png_payload: dict) -> None:
        resp = client.post("/api/generate", json={
            "type": "multi-tattoo",
            "payload": {"bodyPartImage": png_payload, "tattoo1": png_payload, "targetArea1": "Chest",
                        "tattoo2": png_payload, "targetArea2": "Chest"},
        })
        assert resp.status_code == 400
        assert "different target areas" in resp.get_json()["error"]
        fake_genai.models.generate_content.assert_not_called()

    def test_unknown_type(self, client) -> None:
        resp = client.post("/api/generate", json={"type": "portrait", "payload": {}})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid generation type specified."}

    def test_non_json_body(self, client) -> None:
        resp = client.post("/api/generate", data="hello", content_type="text/plain")
        assert resp.status_code == 400
        assert "JSON object" in resp.get_json()["error"]

    def test_unsupported_mime_type_names_field(self, client, png_payload: dict) -> None:
        gif = dict(png_payload, mimeType="image/gif")
        resp = client.post("/api/generate", json={
            "type": "simulator",
            "payload": {"bodyPartImage": png_payload, "tattooDesignImage": gif, "targetArea": "Neck"},
        })
        assert resp.status_code == 400
        assert "tattooDesignImage" in resp.get_json()["error"]


class TestErrorDisclosure:
    def _simulate(self, client, png_payload: dict):
        return client.post("/api/generate", json={
            "type": "simulator",
            "payload": {"bodyPartImage": png_payload, "tattooDesignImage": png_payload, "targetArea": "Back"},
        })

    def test_refusal_is_generic_in_production(self, client, fake_genai: MagicMock, png_payload: dict) -> None:
        fake_genai.models.generate_content.return_value = make_response(text_part("Policy reasons."))
        resp = self._simulate(client, png_payload)
        assert resp.status_code == 500
        assert "Policy reasons" not in resp.get_json()["error"]
        assert "declined" in resp.get_json()["error"]

    def test_transport_detail_hidden_in_production(self, client, fake_genai: MagicMock,
                                                   png_payload: dict) -> None:
        fake_genai.models.generate_content.side_effect = RuntimeError("API key AIza-secret invalid")
        resp = self._simulate(client, png_payload)
        assert resp.status_code == 500
        assert "AIza-secret" not in resp.get_json()["error"]

    def test_no_output(self, client, fake_genai: MagicMock, png_payload: dict) -> None:
        fake_genai.models.generate_content.return_value = make_response()
        resp = self._simulate(client, png_payload)
        assert resp.status_code == 500
        assert "No image was generated" in resp.get_json()["error"]

    def test_development_exposes_details(self, settings: Settings, fake_genai: MagicMock,
                                         png_payload: dict) -> None:
        dev = replace(settings, app_env="development")
        client = create_app(dev, GenerationClient(fake_genai, dev.model)).test_client()

        fake_genai.models.generate_content.return_value = make_response(text_part("Policy reasons."))
        assert "Policy reasons." in self._simulate(client, png_payload).get_json()["error"]

        fake_genai.models.generate_content.side_effect = RuntimeError("upstream 503")
        assert "upstream 503" in self._simulate(client, png_payload).get_json()["error"]

    def test_unexpected_error_is_generic_in_production(self, app, png_payload: dict, monkeypatch) -> None:
        def boom(*args, **kwargs):
            raise ValueError("internal state dump")

        monkeypatch.setattr("inksynth.server.parse_request", boom)
        resp = app.test_client().post("/api/generate", json={"type": "simulator", "payload": {}})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "An unexpected server error occurred."}


class TestMethodsAndCors:
    def test_get_is_not_allowed(self, client) -> None:
        resp = client.get("/api/generate")
        assert resp.status_code == 405
        assert resp.get_json() == {"error": "Method Not Allowed"}

    def test_preflight_is_empty_200(self, client) -> None:
        resp = client.options("/api/generate", headers={
            "Origin": ALLOWED_ORIGIN,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        })
        assert resp.status_code == 200
        assert resp.data == b""
        assert resp.headers["Access-Control-Allow-Origin"] == ALLOWED_ORIGIN
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]
        assert resp.headers["Access-Control-Max-Age"] == "600"

    def test_allowed_origin_is_echoed(self, client) -> None:
        resp = client.post("/api/generate", json={"type": "nope"}, headers={"Origin": ALLOWED_ORIGIN})
        assert resp.headers["Access-Control-Allow-Origin"] == ALLOWED_ORIGIN

    def test_unknown_origin_gets_canonical_origin(self, client) -> None:
        resp = client.post("/api/generate", json={"type": "nope"}, headers={"Origin": "https://evil.example"})
        assert resp.headers["Access-Control-Allow-Origin"] == CANONICAL_ORIGIN
        assert resp.headers["Access-Control-Allow-Origin"] != "*"

    def test_missing_origin_gets_canonical_origin(self, settings: Settings, fake_genai: MagicMock) -> None:
        several = replace(settings, allowed_origins=("https://a.example", "https://b.example"))
        client = create_app(several, GenerationClient(fake_genai, several.model)).test_client()
        resp = client.post("/api/generate", json={"type": "nope"})
        assert resp.headers.getlist("Access-Control-Allow-Origin") == [CANONICAL_ORIGIN]

    def test_cors_headers_on_every_response(self, client) -> None:
        resp = client.get("/health")
        assert resp.headers["Access-Control-Allow-Origin"] == CANONICAL_ORIGIN
        assert resp.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
        assert resp.headers["Access-Control-Allow-Headers"] == "Content-Type"


def test_health(client) -> None:
    assert client.get("/health").get_json() == {"status": "ok", "model": "test-image-model"}


def test_oversized_body_is_413(settings: Settings, fake_genai: MagicMock) -> None:
    small = replace(settings, max_content_length=1024)
    client = create_app(small, GenerationClient(fake_genai, small.model)).test_client()
    resp = client.post("/api/generate", json={"type": "designer", "payload": {"prompt": "x" * 4096}})
    assert resp.status_code == 413
    assert "error" in resp.get_json()


def test_missing_api_key_fails_at_startup(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        create_app()
