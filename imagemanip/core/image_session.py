"""
Image session: the public editing surface.

A session owns one pixel buffer at a time together with its dimensions,
format, conversion target and source path. Every mutating operation builds a
new buffer, swaps it in and releases the old one, and returns the session for
chaining:

    with ImageSession.with_image("photo.jpg") as image:
        image.resize(800, 600).text("Hello", align="center-bottom").save("out/")
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Optional, Union

from imagemanip.config import Settings, get_settings
from imagemanip.core.constants import DrawingConstants, ErrorMessages, ImageConstants
from imagemanip.core.enums import ImageType
from imagemanip.core.exceptions import (
    FileOperationFailed,
    InputValidationError,
    InvalidImageType,
    ResourceStateError,
)
from imagemanip.core.image.backend import DecodedImage, RasterBackend, RasterHandle
from imagemanip.core.image.geometry import check_dimensions, coerce_color
from imagemanip.core.image.opencv_backend import OpenCVBackend
from imagemanip.core.overlay_renderer import OverlayRenderer
from imagemanip.core.transform_engine import TransformEngine
from imagemanip.schemas.common import FormatInfo, Size, TextPlacement, WatermarkPlacement
from imagemanip.schemas.styles import TextStyle, WatermarkStyle
from imagemanip.utils.params_processor import merge_style

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ImageSession:
    """
    Stateful wrapper around one image buffer.

    Not thread-safe; use one session per thread.
    """

    def __init__(self, backend: Optional[RasterBackend] = None, settings: Optional[Settings] = None):
        """
        Initialize an empty session.

        Args:
            backend: Raster backend (OpenCVBackend if None)
            settings: Settings supplying style defaults and save quality
                (process settings if None)
        """
        self.backend = backend or OpenCVBackend()
        self.settings = settings or get_settings()
        self.engine = TransformEngine(self.backend)
        self.renderer = OverlayRenderer(self.backend, self.engine)

        self._handle: Optional[RasterHandle] = None
        self._reset_state()

    def _reset_state(self) -> None:
        self._path: Optional[Path] = None
        self._format = FormatInfo()
        self._convert: Optional[ImageType] = None
        self.text_defaults: TextStyle = self.settings.text.model_copy(deep=True)
        self.watermark_defaults: WatermarkStyle = self.settings.watermark.model_copy(deep=True)
        self.last_text_placement: Optional[TextPlacement] = None
        self.last_watermark_placement: Optional[WatermarkPlacement] = None

    # Buffer ownership

    @property
    def handle(self) -> RasterHandle:
        """The live buffer; ResourceStateError when there is none."""
        if self._handle is None or self._handle.released:
            raise ResourceStateError()
        return self._handle

    @property
    def is_loaded(self) -> bool:
        return self._handle is not None and not self._handle.released

    def _swap(self, new_handle: RasterHandle) -> None:
        old, self._handle = self._handle, new_handle
        if old is not new_handle:
            self.backend.release(old)

    def _apply(self, transform: Callable[..., RasterHandle], *args: Any, **kwargs: Any) -> "ImageSession":
        self._swap(transform(self.handle, *args, **kwargs))
        return self

    def _adopt(self, decoded: DecodedImage, path: Optional[Path]) -> None:
        self._swap(decoded.handle)
        self._path = path
        self._format = FormatInfo.for_type(decoded.image_type, decoded.mime)

    # Loading and creation

    def load(self, path: PathLike) -> "ImageSession":
        """
        Decode an image file into the session.

        Raises:
            UnreadableImage: If the file is missing or not a supported image
        """
        path = Path(path)
        decoded = self.backend.decode(path)
        self._adopt(decoded, path)
        logger.info(f"Loaded {path}: {decoded.width}x{decoded.height} {decoded.image_type.value}")
        return self

    set_image = load

    def load_bytes(self, data: bytes, source: str = "<bytes>") -> "ImageSession":
        """Decode an in-memory image; the session has no source path."""
        decoded = self.backend.decode_bytes(data, source=source)
        self._adopt(decoded, None)
        logger.info(f"Loaded {source}: {decoded.width}x{decoded.height} {decoded.image_type.value}")
        return self

    @classmethod
    def with_image(cls, path: PathLike, **kwargs: Any) -> "ImageSession":
        """Create a new session loaded from path."""
        return cls(**kwargs).load(path)

    def create(
        self,
        width: int,
        height: int,
        image_type: Any = ImageType.JPEG,
        background: Any = None,
    ) -> "ImageSession":
        """
        Start from a blank canvas.

        Alpha formats (PNG, WEBP) without a background start fully
        transparent; other formats start black unless a background is given.
        """
        image_type = ImageType.parse(image_type)
        if image_type not in ImageConstants.SUPPORTED_TYPES:
            raise InvalidImageType(image_type)
        check_dimensions(width, height)
        color = coerce_color(background) if background is not None else None

        handle = self.backend.create_buffer(
            width, height, image_type in ImageConstants.ALPHA_TYPES, color
        )
        self._swap(handle)
        self._path = None
        self._format = FormatInfo.for_type(image_type)
        logger.info(f"Created {width}x{height} {image_type.value} canvas")
        return self

    @classmethod
    def with_create(
        cls,
        width: int,
        height: int,
        image_type: Any = ImageType.JPEG,
        background: Any = None,
        **kwargs: Any,
    ) -> "ImageSession":
        """Create a new session holding a blank canvas."""
        return cls(**kwargs).create(width, height, image_type, background)

    # File operations

    def _target_path(self, name: str, directory: Optional[PathLike]) -> Path:
        if self._path is None:
            raise InputValidationError(ErrorMessages.NO_SOURCE_PATH)
        folder = Path(directory) if directory is not None else self._path.parent
        folder.mkdir(parents=True, exist_ok=True)
        name = name.lstrip("/")
        if "." not in name and self.extension is not None:
            name = f"{name}.{self.extension}"
        return folder / name

    def copy(self, name: str, directory: Optional[PathLike] = None) -> "ImageSession":
        """
        Copy the source file and continue working on the copy.

        Without an extension in name, the current format's extension is used;
        without a directory, the source directory is used.
        """
        target = self._target_path(name, directory)
        try:
            shutil.copyfile(self._path, target)
        except OSError as e:
            logger.error(f"Failed to copy {self._path} to {target}: {e}")
            raise FileOperationFailed(ErrorMessages.COPY_FAILED.format(error=e)) from e
        return self.load(target)

    def move(self, name: str, directory: Optional[PathLike] = None) -> "ImageSession":
        """Move the source file; the session keeps its buffer and tracks the new path."""
        target = self._target_path(name, directory)
        try:
            shutil.move(str(self._path), str(target))
        except OSError as e:
            logger.error(f"Failed to move {self._path} to {target}: {e}")
            raise FileOperationFailed(ErrorMessages.MOVE_FAILED.format(error=e)) from e
        logger.info(f"Moved {self._path} to {target}")
        self._path = target
        return self

    # Transforms

    def fill(self, color: Any = DrawingConstants.DEFAULT_COLOR) -> "ImageSession":
        return self._apply(self.engine.fill, color)

    def color_to_transparent(self, color: Any) -> "ImageSession":
        return self._apply(self.engine.color_to_transparent, color)

    def resize(self, width: int, height: int, crop: bool = False) -> "ImageSession":
        return self._apply(self.engine.resize, width, height, crop)

    def strict_resize(self, width: int, height: int) -> "ImageSession":
        return self._apply(self.engine.strict_resize, width, height)

    def crop(self, width: int, height: int, offset_x: int = 0, offset_y: int = 0) -> "ImageSession":
        return self._apply(self.engine.crop, width, height, offset_x, offset_y)

    def resize_to_height(self, height: int) -> "ImageSession":
        return self._apply(self.engine.resize_to_height, height)

    def resize_to_width(self, width: int) -> "ImageSession":
        return self._apply(self.engine.resize_to_width, width)

    def resize_scale(self, percent: float) -> "ImageSession":
        return self._apply(self.engine.resize_scale, percent)

    def rotate(self, degrees: Any) -> "ImageSession":
        return self._apply(self.engine.rotate, degrees)

    def flip(self, mode: Any) -> "ImageSession":
        return self._apply(self.engine.flip, mode)

    def filter(self, kind: Any, *args: Any) -> "ImageSession":
        return self._apply(self.engine.filter, kind, *args)

    def frame(self, thickness: int, color: Any = DrawingConstants.DEFAULT_COLOR) -> "ImageSession":
        return self._apply(self.engine.frame, thickness, color)

    # Overlays

    def configure_text(self, **options: Any) -> "ImageSession":
        """Update the session text defaults (same keys as TextStyle and its aliases)."""
        self.text_defaults = merge_style(self.text_defaults, **options)
        return self

    def configure_watermark(self, **options: Any) -> "ImageSession":
        """Update the session watermark defaults."""
        self.watermark_defaults = merge_style(self.watermark_defaults, **options)
        return self

    def text(self, content: str, style: Optional[TextStyle] = None, **options: Any) -> "ImageSession":
        """
        Draw text using the session defaults overridden by style and options.

        The resolved placement is kept in last_text_placement.
        """
        resolved = merge_style(self.text_defaults, style, **options)
        new_handle, placement = self.renderer.render_text(self.handle, content, resolved)
        self._swap(new_handle)
        self.last_text_placement = placement
        return self

    def watermark(
        self,
        asset: Union[PathLike, "ImageSession", RasterHandle],
        style: Optional[WatermarkStyle] = None,
        **options: Any,
    ) -> "ImageSession":
        """
        Blend another image onto this one.

        Args:
            asset: Image path, another ImageSession or a RasterHandle. Buffers
                owned elsewhere are never released here; a path is decoded into
                a temporary buffer that is.
            style: Explicit style layered over the session defaults
            **options: Per-call overrides (align/position, margins, opacity,
                width, height)
        """
        resolved = merge_style(self.watermark_defaults, style, **options)
        target = self.handle

        owned = False
        if isinstance(asset, ImageSession):
            asset_handle = asset.handle
            asset_alpha = asset.handle.has_alpha
        elif isinstance(asset, RasterHandle):
            asset_handle = asset
            asset_alpha = asset.has_alpha
        elif isinstance(asset, (str, Path)):
            decoded = self.backend.decode(asset)
            asset_handle = decoded.handle
            asset_alpha = decoded.handle.has_alpha
            owned = True
        else:
            raise InputValidationError(
                f"Watermark must be an image path, ImageSession or RasterHandle, got {type(asset).__name__}"
            )

        try:
            new_handle, placement = self.renderer.render_watermark(target, asset_handle, resolved, asset_alpha)
        finally:
            if owned:
                self.backend.release(asset_handle)

        self._swap(new_handle)
        self.last_watermark_placement = placement
        return self

    # Properties

    @property
    def width(self) -> int:
        return self.handle.width

    @property
    def height(self) -> int:
        return self.handle.height

    @property
    def size(self) -> Size:
        return self.handle.size

    @property
    def format(self) -> FormatInfo:
        return self._format

    @property
    def type(self) -> ImageType:
        return self._format.type

    @property
    def mime(self) -> str:
        return self._format.mime or ImageConstants.DEFAULT_MIME

    @property
    def extension(self) -> Optional[str]:
        return self._format.extension

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def convert(self) -> Optional[ImageType]:
        """Format used by save/to_bytes instead of the source format (None = keep)."""
        return self._convert

    @convert.setter
    def convert(self, image_type: Any) -> None:
        if image_type is None:
            self._convert = None
            return
        image_type = ImageType.parse(image_type)
        if image_type not in ImageConstants.SUPPORTED_TYPES:
            raise InvalidImageType(image_type)
        self._convert = image_type

    def convert_to(self, image_type: Any) -> "ImageSession":
        self.convert = image_type
        return self

    @property
    def output_type(self) -> ImageType:
        return self._convert or self._format.type

    # Persistence

    def _resolve_save_path(self, path: Optional[PathLike]) -> Path:
        if path is None:
            if self._path is None:
                raise InputValidationError(ErrorMessages.NO_TARGET_PATH)
            return self._path

        target = Path(path)
        is_directory = target.is_dir() or (not target.exists() and target.suffix == "")
        if not is_directory:
            return target
        if self._path is None:
            raise InputValidationError(ErrorMessages.NO_SOURCE_PATH)
        target.mkdir(parents=True, exist_ok=True)
        return target / self._path.name

    def save(self, path: Optional[PathLike] = None, quality: Optional[int] = None) -> bool:
        """
        Encode the buffer to disk and release it.

        Args:
            path: Target file, or a directory (the source file name is
                appended). None overwrites the source file.
            quality: 0-100, capped at 100 (settings default if None)

        Returns:
            Whether the file was written. The buffer is released either way;
            load or create again before further edits.
        """
        handle = self.handle
        target = self._resolve_save_path(path)
        quality = self.settings.image.default_quality if quality is None else quality
        quality = min(int(quality), ImageConstants.MAX_QUALITY)
        output_type = self.output_type
        if output_type not in ImageConstants.SUPPORTED_TYPES:
            raise InvalidImageType(output_type)

        try:
            saved = self.backend.encode(handle, output_type, target, quality)
        finally:
            self.backend.release(handle)
            self._handle = None

        if saved:
            logger.info(f"Saved {target} as {output_type.value} (quality {quality})")
        return saved

    def to_bytes(self, quality: Optional[int] = None, image_type: Any = None) -> bytes:
        """Encode the buffer in memory; the session stays usable."""
        quality = self.settings.image.default_quality if quality is None else quality
        quality = min(int(quality), ImageConstants.MAX_QUALITY)
        output_type = ImageType.parse(image_type) if image_type is not None else self.output_type
        if output_type not in ImageConstants.SUPPORTED_TYPES:
            raise InvalidImageType(output_type)
        return self.backend.encode_bytes(self.handle, output_type, quality)

    # Lifecycle

    def clean(self) -> None:
        """Release the buffer and reset path, format and style defaults."""
        self.backend.release(self._handle)
        self._handle = None
        self._reset_state()

    close = clean

    def __enter__(self) -> "ImageSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.clean()

    def __repr__(self) -> str:
        if not self.is_loaded:
            return "ImageSession(empty)"
        return f"ImageSession({self.width}x{self.height}, {self.type.value}, path={self._path})"
