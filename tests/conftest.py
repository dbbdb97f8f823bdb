"""
Pytest configuration and fixtures for imagemanip tests
"""

import io
from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest
from PIL import Image

from imagemanip.config import Settings
from imagemanip.core.image.backend import RasterHandle
from imagemanip.core.image.opencv_backend import OpenCVBackend
from imagemanip.core.image_session import ImageSession
from imagemanip.core.overlay_renderer import OverlayRenderer
from imagemanip.core.transform_engine import TransformEngine


def encode_image(width, height, fmt="PNG", color=(255, 0, 0), mode="RGB") -> bytes:
    """Encode a solid-color image with Pillow"""
    fill = color if mode == "RGB" else tuple(color) + (255,)
    buffer = io.BytesIO()
    Image.new(mode, (width, height), fill).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def settings():
    """Default settings, independent of the environment"""
    return Settings()


@pytest.fixture
def backend():
    """Create OpenCVBackend instance for testing"""
    return OpenCVBackend()


@pytest.fixture
def spy_backend(backend):
    """Backend mock that records calls and forwards them to a real backend"""
    return MagicMock(wraps=backend)


@pytest.fixture
def engine(backend):
    """Create TransformEngine instance for testing"""
    return TransformEngine(backend)


@pytest.fixture
def renderer(backend):
    """Create OverlayRenderer instance for testing"""
    return OverlayRenderer(backend)


@pytest.fixture
def session(backend, settings):
    """Create an empty ImageSession"""
    image_session = ImageSession(backend=backend, settings=settings)
    yield image_session
    image_session.clean()


@pytest.fixture
def test_image():
    """Create a 200x100 BGR test image with some content"""
    image = np.zeros((100, 200, 3), dtype=np.uint8)
    cv2.rectangle(image, (20, 20), (80, 80), (255, 255, 255), -1)
    cv2.circle(image, (150, 50), 20, (128, 128, 128), -1)
    return image


@pytest.fixture
def gradient_handle():
    """4x4 BGR handle whose pixel values encode their position"""
    values = np.arange(16, dtype=np.uint8).reshape(4, 4)
    return RasterHandle(np.dstack([values, values, values]).copy())


@pytest.fixture
def png_path(tmp_path):
    """100x100 opaque red PNG on disk"""
    path = tmp_path / "red.png"
    path.write_bytes(encode_image(100, 100, "PNG", mode="RGBA"))
    return path


@pytest.fixture
def jpeg_path(tmp_path):
    """200x100 blue JPEG on disk"""
    path = tmp_path / "photo.jpg"
    path.write_bytes(encode_image(200, 100, "JPEG", color=(0, 0, 255)))
    return path


@pytest.fixture
def logo_path(tmp_path):
    """40x20 green PNG used as watermark asset"""
    path = tmp_path / "logo.png"
    path.write_bytes(encode_image(40, 20, "PNG", color=(0, 255, 0)))
    return path
