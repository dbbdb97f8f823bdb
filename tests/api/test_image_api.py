"""
API Integration Tests for Image and System Endpoints
"""

import base64
import io

import pytest
from PIL import Image


def decode_result(data):
    return Image.open(io.BytesIO(base64.b64decode(data["image"])))


class TestSystemAPI:
    """Integration tests for system endpoints"""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["services"]["backend"] is True

    def test_system_info(self, client):
        response = client.get("/api/system/info")

        assert response.status_code == 200
        data = response.json()
        assert data["formats"] == ["jpeg", "png", "gif", "webp"]
        assert "watermark" in data["operations"]
        assert "pixelate" in data["filters"]
        assert "center_bottom" in data["alignments"]
        assert data["defaults"]["text"]["size"] == 18

    def test_system_status(self, client):
        response = client.get("/api/system/status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "process_mb" in data["memory_usage"]

    def test_system_health(self, client):
        response = client.get("/api/system/health")
        assert response.status_code == 200
        assert "timestamp" in response.json()


class TestImageInfoAPI:
    """Integration tests for image inspection"""

    def test_info(self, client, png_payload):
        response = client.post("/api/image/info", json={"image": png_payload})

        assert response.status_code == 200
        data = response.json()
        assert (data["width"], data["height"]) == (200, 100)
        assert data["type"] == "png"
        assert data["mime"] == "image/png"
        assert data["supports_alpha"] is True

    def test_info_with_data_url(self, client, png_payload):
        response = client.post("/api/image/info", json={"image": f"data:image/png;base64,{png_payload}"})
        assert response.status_code == 200

    def test_info_invalid_base64(self, client):
        response = client.post("/api/image/info", json={"image": "not base64!!"})

        assert response.status_code == 400
        assert response.json()["error_type"] == "input_validation"

    def test_info_not_an_image(self, client):
        payload = base64.b64encode(b"plain text").decode("utf-8")
        response = client.post("/api/image/info", json={"image": payload})
        assert response.status_code == 400

    def test_info_missing_field(self, client):
        response = client.post("/api/image/info", json={})
        assert response.status_code == 422


class TestProcessAPI:
    """Integration tests for processing pipelines"""

    def test_resize(self, client, png_payload):
        request = {
            "image": png_payload,
            "operations": [{"op": "resize", "params": {"width": 100, "height": 100}}],
        }
        response = client.post("/api/image/process", json=request)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert (data["width"], data["height"]) == (100, 50)
        assert data["steps"] == [{"op": "resize", "width": 100, "height": 50, "placement": None}]
        assert decode_result(data).size == (100, 50)

    def test_pipeline_with_output_format(self, client, png_payload):
        request = {
            "image": png_payload,
            "operations": [
                {"op": "rotate", "params": {"degrees": 90}},
                {"op": "crop", "params": {"width": 50, "height": 50}},
                {"op": "flip", "params": {"mode": "horizontal"}},
                {"op": "frame", "params": {"thickness": 2, "color": "#00ff00"}},
            ],
            "output_format": "jpg",
            "quality": 80,
        }
        response = client.post("/api/image/process", json=request)

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "jpeg"
        assert data["mime"] == "image/jpeg"
        assert [step["op"] for step in data["steps"]] == ["rotate", "crop", "flip", "frame"]
        assert decode_result(data).format == "JPEG"

    def test_text_returns_placement(self, client, png_payload):
        request = {
            "image": png_payload,
            "operations": [
                {"op": "text", "params": {"content": "Hello", "align": "left-top", "left": 10, "top": 10}}
            ],
        }
        response = client.post("/api/image/process", json=request)

        assert response.status_code == 200
        placement = response.json()["steps"][0]["placement"]
        assert placement["x"] == 10
        assert placement["y"] == 10 + placement["height"]

    def test_filter(self, client, png_payload):
        request = {
            "image": png_payload,
            "operations": [
                {"op": "filter", "params": {"type": "grayscale"}},
                {"op": "filter", "params": {"type": "brightness", "args": [20]}},
            ],
        }
        response = client.post("/api/image/process", json=request)
        assert response.status_code == 200

    def test_watermark(self, client, png_payload, logo_payload):
        request = {
            "image": png_payload,
            "operations": [{"op": "watermark", "params": {"image": logo_payload, "opacity": 0.5}}],
        }
        response = client.post("/api/image/process", json=request)

        assert response.status_code == 200
        placement = response.json()["steps"][0]["placement"]
        assert placement == {"x": 175, "y": 85, "width": 20, "height": 10, "opacity": 50}

    def test_convert(self, client, png_payload):
        request = {"image": png_payload, "operations": [{"op": "convert", "params": {"type": "webp"}}]}
        response = client.post("/api/image/process", json=request)

        assert response.status_code == 200
        assert response.json()["type"] == "webp"
        assert decode_result(response.json()).format == "WEBP"

    def test_convert_requires_type(self, client, png_payload):
        request = {"image": png_payload, "operations": [{"op": "convert", "params": {}}]}
        response = client.post("/api/image/process", json=request)

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidStyleOption"

    def test_operation_limit_from_settings(self, client, png_payload):
        client.app.state.settings.api.max_operations = 2
        operations = [{"op": "flip", "params": {"mode": "horizontal"}}] * 3

        response = client.post("/api/image/process", json={"image": png_payload, "operations": operations})
        assert response.status_code == 400
        assert response.json()["error_type"] == "input_validation"

        response = client.post("/api/image/process", json={"image": png_payload, "operations": operations[:2]})
        assert response.status_code == 200

    def test_operation_limit_can_be_raised(self, client, png_payload):
        client.app.state.settings.api.max_operations = 60
        operations = [{"op": "flip", "params": {"mode": "horizontal"}}] * 55

        response = client.post("/api/image/process", json={"image": png_payload, "operations": operations})
        assert response.status_code == 200
        assert len(response.json()["steps"]) == 55

    def test_unknown_operation(self, client, png_payload):
        request = {"image": png_payload, "operations": [{"op": "sharpen"}]}
        response = client.post("/api/image/process", json=request)

        assert response.status_code == 400
        data = response.json()
        assert data["error_type"] == "input_validation"
        assert data["error"] == "InvalidOperation"

    @pytest.mark.parametrize(
        "operation",
        [
            {"op": "resize", "params": {"width": 10}},
            {"op": "resize", "params": {"width": 10, "height": 10, "mode": "fast"}},
            {"op": "rotate", "params": {"degrees": 45}},
            {"op": "flip", "params": {"mode": "diagonal"}},
            {"op": "text", "params": {"content": "Hi", "color": "#12"}},
            {"op": "filter", "params": {"type": "scatter"}},
            {"op": "filter", "params": {}},
            {"op": "watermark", "params": {"opacity": 0.5}},
        ],
    )
    def test_invalid_params(self, client, png_payload, operation):
        response = client.post("/api/image/process", json={"image": png_payload, "operations": [operation]})

        assert response.status_code == 400
        assert response.json()["error_type"] == "input_validation"

    def test_crop_too_large(self, client, png_payload):
        request = {"image": png_payload, "operations": [{"op": "crop", "params": {"width": 500, "height": 50}}]}
        response = client.post("/api/image/process", json=request)

        assert response.status_code == 500
        data = response.json()
        assert data["error_type"] == "backend_failure"
        assert data["error"] == "CropFailed"

    def test_quality_out_of_range(self, client, png_payload):
        response = client.post("/api/image/process", json={"image": png_payload, "quality": 101})
        assert response.status_code == 422
