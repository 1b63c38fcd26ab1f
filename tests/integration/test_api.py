"""Integration tests for the FastAPI endpoints.

Provider clients are either left unconfigured (mock fallback path) or
replaced with scripted fakes, so no network access happens.
"""

import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from conftest import FakeTextClient, FakeTransport, build_image_client, make_image_response, make_png

from backend.app.config import Settings
from backend.app.main import create_app
from backend.app.prompt_builder import ASPECT_RATIO_DIMENSIONS, TemplateLibrary


def _payload(image, **overrides) -> dict:
    payload = {
        "image": image,
        "prompt": "My speedrun world record",
        "category": "gaming",
        "style": "cinematic",
        "aspectRatio": "16:9",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# POST /api/generate
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_missing_image_is_400(self, test_client):
        resp = test_client.post("/api/generate", json={"prompt": "hello"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Image is required"}

    def test_empty_body_is_400(self, test_client):
        resp = test_client.post("/api/generate")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Image is required"}

    def test_null_aspect_ratio_without_image_is_400(self, test_client):
        resp = test_client.post("/api/generate", json={"aspectRatio": None})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Image is required"}

    def test_null_aspect_ratio_uses_16_9(self, test_client, image_data_uri):
        data = test_client.post(
            "/api/generate", json=_payload(image_data_uri, aspectRatio=None)
        ).json()
        assert data["metadata"]["aspectRatio"] == "16:9"

    def test_wrongly_typed_field_is_400(self, test_client):
        resp = test_client.post("/api/generate", json={"prompt": 5})
        assert resp.status_code == 400
        assert set(resp.json()) == {"error"}
        assert "prompt" in resp.json()["error"]

    def test_invalid_image_is_400(self, test_client):
        resp = test_client.post(
            "/api/generate",
            json={"image": base64.b64encode(b"not an image").decode()},
        )
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_oversized_image_is_400(self, image_data_uri):
        client = TestClient(create_app(settings=Settings(max_upload_bytes=16)))
        resp = client.post("/api/generate", json=_payload(image_data_uri))
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("File too large")

    @pytest.mark.parametrize("ratio", list(ASPECT_RATIO_DIMENSIONS))
    def test_without_credentials_returns_three_mock_thumbnails(
        self, test_client, image_data_uri, ratio
    ):
        resp = test_client.post("/api/generate", json=_payload(image_data_uri, aspectRatio=ratio))

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert len(data["thumbnails"]) == 3
        for thumb in data["thumbnails"]:
            assert thumb["url"] == image_data_uri
            assert thumb["metadata"]["model"] == "Mock Generator"
            assert thumb["metadata"]["aspectRatio"] == ratio
            assert "cssFilter" in thumb

        width, height = ASPECT_RATIO_DIMENSIONS[ratio]
        assert f"{width}x{height}" in data["optimizedPrompt"]
        assert data["metadata"]["dimensions"] == {"width": width, "height": height}

    def test_response_shape(self, test_client, image_data_uri):
        data = test_client.post(
            "/api/generate", json=_payload(image_data_uri, aspectRatio="9:16")
        ).json()

        assert data["originalPrompt"] == "My speedrun world record"
        assert "gaming content" in data["optimizedPrompt"]
        assert "cinematic lighting" in data["optimizedPrompt"]
        assert "1080x1920" in data["optimizedPrompt"]
        assert data["metadata"]["category"] == "gaming"
        assert data["metadata"]["aspectRatio"] == "9:16"
        first = data["thumbnails"][0]
        assert set(first) >= {
            "id", "url", "prompt", "originalPrompt", "optimizationScore", "timestamp", "metadata"
        }

    def test_bare_base64_image_comes_back_as_data_uri(self, test_client, png_bytes):
        bare = base64.b64encode(png_bytes).decode()
        data = test_client.post("/api/generate", json=_payload(bare)).json()
        assert all(
            t["url"] == "data:image/png;base64," + bare for t in data["thumbnails"]
        )

    def test_unknown_aspect_ratio_uses_16_9(self, test_client, image_data_uri):
        data = test_client.post(
            "/api/generate", json=_payload(image_data_uri, aspectRatio="7:3")
        ).json()
        assert data["metadata"]["aspectRatio"] == "16:9"
        assert "1280x720" in data["optimizedPrompt"]

    def test_template_request(self, test_client, image_data_uri):
        data = test_client.post(
            "/api/generate",
            json=_payload(image_data_uri, selectedTemplate="gamer", prompt=None),
        ).json()
        assert data["optimizedPrompt"].startswith("Design an epic gaming thumbnail")
        assert data["metadata"]["template"] == "gamer"

    def test_with_gemini_returns_primary_and_variations(self, image_data_uri):
        transport = FakeTransport([make_image_response(bytes([i + 1])) for i in range(4)])
        app = create_app(settings=Settings(), image_client=build_image_client(transport))
        data = TestClient(app).post("/api/generate", json=_payload(image_data_uri)).json()

        thumbs = data["thumbnails"]
        assert [t["metadata"]["variation"] for t in thumbs] == [
            "primary", "dramatic", "vibrant", "professional"
        ]
        assert thumbs[0]["optimizationScore"] == 0.95
        assert all("cssFilter" not in t for t in thumbs)
        assert len(transport.calls) == 4

    def test_crop_uploads_sends_canonical_size(self):
        transport = FakeTransport([make_image_response()] * 4)
        app = create_app(
            settings=Settings(crop_uploads=True),
            image_client=build_image_client(transport),
        )
        image = "data:image/png;base64," + base64.b64encode(make_png(300, 300)).decode()

        TestClient(app).post("/api/generate", json=_payload(image, aspectRatio="4:3"))

        sent = transport.calls[0]
        assert sent["mime_type"] == "image/jpeg"
        with Image.open(io.BytesIO(sent["image"])) as img:
            assert img.size == (1440, 1080)

    def test_unexpected_orchestrator_error_falls_back_to_mock(self, image_data_uri):
        class ExplodingClient:
            async def generate(self, *args, **kwargs):
                raise ValueError("unexpected")

        app = create_app(settings=Settings(), image_client=ExplodingClient())
        resp = TestClient(app).post("/api/generate", json=_payload(image_data_uri))

        assert resp.status_code == 200
        assert all(t["metadata"]["model"] == "Mock Generator" for t in resp.json()["thumbnails"])

    def test_internal_error_is_generic_500(self, image_data_uri):
        class BrokenTemplates(TemplateLibrary):
            def get(self, template_id):
                raise RuntimeError("disk on fire")

        app = create_app(settings=Settings(), templates=BrokenTemplates({}))
        resp = TestClient(app).post(
            "/api/generate", json=_payload(image_data_uri, selectedTemplate="gamer")
        )

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate thumbnails"}

    def test_status_endpoint(self, test_client):
        data = test_client.get("/api/generate").json()
        assert data["status"] == "healthy"
        assert data["apiConfigured"] is False
        assert "gamer" in data["templates"]
        assert data["aspectRatios"]["21:9"] == {"width": 1920, "height": 823}


# ---------------------------------------------------------------------------
# POST /api/rewrite
# ---------------------------------------------------------------------------


class TestRewrite:
    def test_missing_prompt_is_400(self, test_client):
        resp = test_client.post("/api/rewrite", json={"industry": "tech"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Prompt is required"}

    @pytest.mark.parametrize("body", [None, {"iterations": None}])
    def test_empty_or_null_body_fields_are_400(self, test_client, body):
        resp = test_client.post("/api/rewrite", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Prompt is required"}

    def test_rewrite_success(self):
        text_client = FakeTextClient(
            ["Shocking tech reveal with neon color, red arrow, high resolution"]
        )
        app = create_app(settings=Settings(), text_client=text_client)

        resp = TestClient(app).post(
            "/api/rewrite",
            json={"prompt": "new phone", "industry": "tech", "targetAudience": "teens", "iterations": 2},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert set(data) == {
            "success",
            "originalPrompt",
            "rewrittenPrompt",
            "optimizationScore",
            "variations",
            "metadata",
            "qualityInsights",
        }
        assert data["originalPrompt"] == "new phone"
        assert data["rewrittenPrompt"].endswith("with What happens next will shock you elements")
        assert len(data["variations"]) == 4
        assert len(text_client.calls) == 1

    def test_without_openai_key_returns_fallback_payload(self, test_client):
        resp = test_client.post("/api/rewrite", json={"prompt": "cats", "industry": "pets"})

        assert resp.status_code == 500
        data = resp.json()
        assert data["error"] == "Failed to rewrite prompt"
        assert "OPENAI_API_KEY" in data["details"]
        assert data["fallbackPrompt"] == (
            "Enhanced YouTube thumbnail: cats with high contrast, bold text, "
            "engaging composition, optimized for pets audience"
        )

    def test_capabilities(self, test_client):
        data = test_client.get("/api/rewrite").json()
        assert "Corrective RAG Analysis" in data["availableTools"]
        assert "gaming" in data["supportedIndustries"]


# ---------------------------------------------------------------------------
# POST /api/iterate
# ---------------------------------------------------------------------------


class TestIterate:
    @pytest.mark.parametrize(
        "body",
        [
            {"iterationType": "add_text"},
            {"originalPrompt": "p"},
            {"originalPrompt": "", "iterationType": "add_text"},
        ],
    )
    def test_missing_fields_are_400(self, test_client, body):
        resp = test_client.post("/api/iterate", json=body)
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_prompt_only_iteration(self, test_client):
        resp = test_client.post(
            "/api/iterate",
            json={
                "originalPrompt": "Base prompt.",
                "iterationType": "change_background",
                "originalThumbnailId": "thumb_1",
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["message"] == "Iteration generated successfully"
        iteration = data["iteration"]
        assert iteration["originalThumbnailId"] == "thumb_1"
        assert iteration["prompt"].startswith("Base prompt. Change the background")
        assert iteration["status"] == "prompt_ready"

    def test_iteration_with_image(self, image_data_uri):
        transport = FakeTransport([make_image_response(b"next")])
        app = create_app(settings=Settings(), image_client=build_image_client(transport))

        data = TestClient(app).post(
            "/api/iterate",
            json={
                "originalPrompt": "Base.",
                "iterationType": "custom",
                "modifications": "Add fireworks",
                "image": image_data_uri,
            },
        ).json()

        assert data["iteration"]["status"] == "generated"
        assert data["iteration"]["url"].startswith("data:image/png;base64,")
        assert transport.calls[0]["prompt"] == "Base. Add fireworks"


# ---------------------------------------------------------------------------
# Health + metrics
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health(self, test_client):
        data = test_client.get("/health").json()
        assert data["status"] == "ok"
        assert data["imageGeneration"] is False
        assert data["templates"] == 5

    def test_metrics_count_requests(self, test_client, image_data_uri):
        test_client.post("/api/generate", json=_payload(image_data_uri))
        data = test_client.get("/metrics").json()
        assert data["generate_requests"] == 1
        assert data["mock_fallbacks"] == 1

    def test_metrics_report_loaded_templates(self, test_client):
        assert test_client.get("/metrics").json()["templates_loaded"] == 5

    def test_rejected_bodies_are_counted(self, test_client):
        test_client.post("/api/iterate")
        assert test_client.get("/metrics").json()["invalid_requests"] == 1
