"""
Tests for ImageSession
"""

import math

import numpy as np
import pytest
from PIL import Image

from imagemanip.core.enums import ImageType
from imagemanip.core.exceptions import (
    CropFailed,
    InputValidationError,
    InvalidColorFormat,
    InvalidDimensions,
    InvalidImageType,
    ResourceStateError,
    UnknownAlignment,
    UnreadableImage,
)
from imagemanip.core.image_session import ImageSession
from imagemanip.schemas.styles import TextStyle


class TestLoadAndCreate:
    """Test loading and canvas creation"""

    def test_load_png(self, session, png_path):
        session.load(png_path)
        assert (session.width, session.height) == (100, 100)
        assert session.type is ImageType.PNG
        assert session.mime == "image/png"
        assert session.format.supports_alpha
        assert session.handle.has_alpha
        assert session.path == png_path

    def test_load_jpeg(self, session, jpeg_path):
        session.set_image(jpeg_path)
        assert session.size.as_tuple() == (200, 100)
        assert session.type is ImageType.JPEG
        assert session.extension == "jpeg"
        assert not session.handle.has_alpha

    def test_with_image(self, jpeg_path, backend, settings):
        image = ImageSession.with_image(jpeg_path, backend=backend, settings=settings)
        assert image.width == 200

    def test_load_missing_file(self, session, tmp_path):
        with pytest.raises(UnreadableImage):
            session.load(tmp_path / "missing.png")

    def test_load_non_image(self, session, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("not an image")
        with pytest.raises(UnreadableImage):
            session.load(path)

    def test_reload_releases_previous_buffer(self, session, png_path, jpeg_path):
        session.load(png_path)
        first = session.handle
        session.load(jpeg_path)
        assert first.released

    def test_create_png_is_transparent(self, session):
        session.create(30, 20, "png")
        assert session.type is ImageType.PNG
        assert session.handle.pixels[0, 0].tolist() == [255, 255, 255, 0]

    def test_create_jpeg_is_black(self, session):
        session.create(30, 20)
        assert session.type is ImageType.JPEG
        assert session.handle.pixels[5, 5].tolist() == [0, 0, 0]

    def test_create_with_background(self, session):
        session.create(30, 20, ImageType.GIF, background="#ff0000")
        assert session.handle.pixels[5, 5].tolist() == [0, 0, 255]
        assert session.mime == "image/gif"

    def test_with_create(self, backend, settings):
        image = ImageSession.with_create(10, 10, "webp", backend=backend, settings=settings)
        assert image.type is ImageType.WEBP
        assert image.handle.has_alpha

    @pytest.mark.parametrize("image_type", ["bmp", "unknown", 3])
    def test_create_rejects_type(self, session, image_type):
        with pytest.raises(InvalidImageType):
            session.create(10, 10, image_type)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, -1), (10.5, 10), ("10", 10), (10, None)])
    def test_create_rejects_dimensions(self, session, width, height):
        with pytest.raises(InvalidDimensions):
            session.create(width, height)
        assert not session.is_loaded

    def test_create_rejects_color(self, session):
        with pytest.raises(InvalidColorFormat):
            session.create(10, 10, background="#12")


class TestTransforms:
    """Test chaining, swapping and failure behavior"""

    def test_operations_chain(self, session):
        result = session.create(200, 100).resize(100, 100).frame(1).fill("#fff").flip("both")
        assert result is session

    def test_resize_preserves_aspect(self, session):
        """100x100 resized into (50, 100) is 50x50"""
        session.create(100, 100).resize(50, 100, crop=False)
        assert (session.width, session.height) == (50, 50)

    def test_swap_releases_old_handle(self, session):
        session.create(100, 100)
        old = session.handle
        session.strict_resize(10, 20)
        assert old.released
        assert (session.width, session.height) == (10, 20)
        assert session.handle.size.as_tuple() == (10, 20)

    def test_failed_crop_keeps_buffer(self, session):
        session.create(100, 100)
        before = session.handle
        with pytest.raises(CropFailed):
            session.crop(150, 50)
        assert session.handle is before
        assert not before.released
        assert (session.width, session.height) == (100, 100)

    def test_crop(self, session):
        session.create(100, 80).crop(40, 30, offset_x=5)
        assert (session.width, session.height) == (40, 30)

    def test_rotate_adds_alpha_and_swaps(self, session):
        session.create(200, 100, "jpeg").rotate(90)
        assert (session.width, session.height) == (100, 200)
        assert session.handle.has_alpha

    def test_rotation_dimensions_compose(self, session):
        session.create(120, 40).rotate(90).rotate(90)
        twice = session.size
        session.create(120, 40).rotate(180)
        assert session.size == twice

    def test_resize_helpers(self, session):
        session.create(200, 100)
        session.resize_to_width(100)
        assert session.size.as_tuple() == (100, 50)
        session.resize_to_height(100)
        assert session.size.as_tuple() == (200, 100)
        session.resize_scale(25)
        assert session.size.as_tuple() == (50, 25)

    def test_color_to_transparent(self, session):
        session.create(10, 10, background="#ffffff").color_to_transparent("#ffffff")
        assert np.all(session.handle.pixels[:, :, 3] == 0)

    def test_filter(self, session):
        session.create(10, 10, background="#102030").filter("negate")
        assert session.handle.pixels[0, 0].tolist() == [255 - 0x30, 255 - 0x20, 255 - 0x10]

    def test_operation_without_image(self, session):
        with pytest.raises(ResourceStateError):
            session.resize(10, 10)


class TestOverlays:
    """Test text and watermark through the session"""

    def test_text_end_to_end(self, session, backend):
        session.create(200, 100, "png")
        session.text("Hi", align="center-bottom", left=5, right=5, top=5, bottom=5)

        box = backend.measure_text(None, session.text_defaults.size, 0, "Hi")
        placement = session.last_text_placement
        assert placement.y == 100 - box.height - 5
        assert placement.x == math.ceil((200 - box.width) / 2)

    def test_text_with_style_and_overrides(self, session):
        session.create(200, 100)
        session.text("Hi", TextStyle(size=30, align="left-top"), x=3)
        placement = session.last_text_placement
        assert placement.x == 5 + 3

    def test_configure_text_defaults(self, session):
        session.create(200, 100).configure_text(align="right-top", size=12)
        assert session.text_defaults.size == 12
        session.text("Hi")
        placement = session.last_text_placement
        assert placement.x == 200 - placement.width - 5

    def test_text_rejects_bad_alignment(self, session):
        session.create(200, 100)
        before = session.handle
        with pytest.raises(UnknownAlignment):
            session.text("Hi", align="middle")
        assert session.handle is before

    def test_watermark_from_path(self, session, logo_path):
        session.create(200, 100, background="#ffffff").watermark(logo_path)
        placement = session.last_watermark_placement
        assert (placement.x, placement.y) == (200 - 40 - 5, 100 - 20 - 5)
        assert session.handle.pixels[placement.y + 5, placement.x + 5].tolist() == [0, 255, 0]

    @pytest.mark.parametrize(
        "options,transparent,opaque",
        [({}, (80, 160), (80, 185)), ({"width": 20}, (90, 177), (90, 192))],
    )
    def test_watermark_transparent_gif(self, session, tmp_path, options, transparent, opaque):
        """Transparent GIF areas stay transparent whether or not the asset is rescaled"""
        path = tmp_path / "logo.gif"
        logo = Image.new("P", (40, 20), 0)
        logo.putpalette([255, 255, 255, 0, 255, 0] + [0, 0, 0] * 254)
        logo.paste(1, (20, 0, 40, 20))
        logo.save(path, format="GIF", transparency=0)

        session.create(200, 100, background="#0000ff").watermark(path, **options)

        assert session.handle.pixels[transparent].tolist() == [255, 0, 0]
        assert session.handle.pixels[opaque].tolist() == [0, 255, 0]

    def test_watermark_from_session_keeps_asset(self, session, backend, settings):
        logo = ImageSession(backend=backend, settings=settings).create(20, 10, background="#00ff00")
        session.create(200, 100).watermark(logo, opacity=0.5, width=10)

        assert session.last_watermark_placement.opacity == 50
        assert (session.last_watermark_placement.width, session.last_watermark_placement.height) == (10, 5)
        assert logo.is_loaded
        assert logo.width == 20

    def test_watermark_from_handle(self, session, backend):
        asset = backend.create_buffer(10, 10, alpha=False)
        session.create(50, 50).watermark(asset, align="center-center", opacity=150)
        assert session.last_watermark_placement.opacity == 100
        assert not asset.released

    def test_watermark_rejects_asset_type(self, session):
        session.create(50, 50)
        with pytest.raises(InputValidationError):
            session.watermark(42)


class TestPersistence:
    """Test save, to_bytes and file operations"""

    def test_save_to_file_releases_buffer(self, session, tmp_path):
        target = tmp_path / "out.png"
        handle = session.create(30, 20, "png").handle

        assert session.save(target) is True
        assert target.exists()
        assert handle.released
        with pytest.raises(ResourceStateError):
            _ = session.width

        reloaded = ImageSession(backend=session.backend, settings=session.settings).load(target)
        assert reloaded.size.as_tuple() == (30, 20)

    def test_save_into_new_directory(self, session, jpeg_path, tmp_path):
        session.load(jpeg_path)
        target_dir = tmp_path / "exports" / "small"
        session.save(target_dir)
        assert (target_dir / jpeg_path.name).exists()

    def test_save_overwrites_source(self, session, jpeg_path):
        session.load(jpeg_path).resize(100, 50)
        assert session.save() is True
        assert ImageSession(backend=session.backend, settings=session.settings).load(jpeg_path).width == 100

    def test_save_uses_conversion_target(self, session, jpeg_path, tmp_path):
        target = tmp_path / "converted.bin"
        session.load(jpeg_path).convert_to("png")
        session.save(target)
        assert target.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_save_caps_quality(self, spy_backend, settings, tmp_path):
        image = ImageSession(backend=spy_backend, settings=settings).create(10, 10)
        image.save(tmp_path / "q.jpg", quality=500)
        assert spy_backend.encode.call_args[0][3] == 100

    def test_save_without_path(self, session):
        session.create(10, 10)
        with pytest.raises(InputValidationError):
            session.save()

    def test_to_bytes_keeps_session(self, session):
        session.create(10, 10, "png")
        data = session.to_bytes()
        assert data[:4] == b"\x89PNG"
        jpeg = session.to_bytes(quality=80, image_type="jpg")
        assert jpeg[:2] == b"\xff\xd8"
        assert session.width == 10

    def test_copy_appends_extension(self, session, jpeg_path, tmp_path):
        session.load(jpeg_path).copy("duplicate", tmp_path / "copies")
        expected = tmp_path / "copies" / "duplicate.jpeg"
        assert expected.exists()
        assert session.path == expected
        assert jpeg_path.exists()

    def test_move(self, session, jpeg_path, tmp_path):
        session.load(jpeg_path).move("moved.jpg", tmp_path / "archive")
        assert not jpeg_path.exists()
        assert session.path == tmp_path / "archive" / "moved.jpg"
        assert session.path.exists()
        assert session.width == 200

    def test_copy_requires_source_file(self, session):
        session.create(10, 10)
        with pytest.raises(InputValidationError):
            session.copy("x")


class TestLifecycle:
    """Test clean and context manager"""

    def test_clean_resets(self, session, png_path):
        session.load(png_path).configure_text(size=40)
        handle = session.handle
        session.clean()
        assert handle.released
        assert session.path is None
        assert session.type is ImageType.UNKNOWN
        assert session.text_defaults.size == 18
        with pytest.raises(ResourceStateError):
            _ = session.handle

    def test_context_manager(self, backend, settings):
        with ImageSession(backend=backend, settings=settings) as image:
            handle = image.create(10, 10).handle
        assert handle.released
        assert not image.is_loaded
