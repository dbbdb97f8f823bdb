"""
Pytest configuration for API integration tests
"""

import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image


def encode_base64(width, height, fmt="PNG", color=(255, 0, 0, 255)) -> str:
    """Base64 payload of a solid-color image"""
    mode = "RGBA" if len(color) == 4 else "RGB"
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=fmt)
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


@pytest.fixture(scope="function")
def client():
    """
    Create a test client with properly initialized app state.
    Each test gets a fresh backend and settings.
    """
    from imagemanip.config import Settings
    from imagemanip.core.image.opencv_backend import OpenCVBackend
    from imagemanip.main import app

    settings = Settings()

    # Set in app state
    app.state.backend = OpenCVBackend()
    app.state.settings = settings
    app.state.config = settings.to_dict()

    # Create test client (no context manager so the lifespan does not run)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def png_payload():
    """200x100 opaque red PNG"""
    return encode_base64(200, 100)


@pytest.fixture
def logo_payload():
    """20x10 opaque green PNG"""
    return encode_base64(20, 10, color=(0, 255, 0, 255))
