"""
Overlay rendering for text and watermarks.

Measures the content box, resolves its position on the anchor grid and issues
draw / blend calls against the backend. Drawing happens on a copy of the
current buffer so a failed overlay leaves the image untouched.
"""

import logging
from typing import Optional, Tuple

from imagemanip.core.alignment import AlignmentResolver
from imagemanip.core.constants import TextDefaults
from imagemanip.core.image.backend import RasterBackend, RasterHandle
from imagemanip.core.image.geometry import normalize_opacity, proportional_scale
from imagemanip.core.transform_engine import TransformEngine
from imagemanip.schemas.common import Rect, Size, TextPlacement, WatermarkPlacement
from imagemanip.schemas.styles import TextStyle, WatermarkStyle

logger = logging.getLogger(__name__)


class OverlayRenderer:
    """
    Renders text and watermark overlays onto image buffers.

    Each render returns the new buffer together with the resolved placement;
    the caller owns the returned buffer.
    """

    def __init__(
        self,
        backend: RasterBackend,
        engine: Optional[TransformEngine] = None,
        resolver: Optional[AlignmentResolver] = None,
    ):
        """
        Initialize overlay renderer.

        Args:
            backend: Raster backend used for measuring, drawing and blending
            engine: Transform engine providing buffer staging (created if None)
            resolver: Anchor resolver (created if None)
        """
        self.backend = backend
        self.engine = engine or TransformEngine(backend)
        self.resolver = resolver or AlignmentResolver()

    def place_text(self, container: Size, text: str, style: TextStyle) -> TextPlacement:
        """
        Resolve where text would be drawn without touching any buffer.

        The returned x, y is the baseline origin. When the style has a
        background color, the background box spans
        [x - padding_x, y - height - padding_y] to [x + width + padding_x, y + padding_y].
        """
        box = self.backend.measure_text(style.font, style.size, style.angle, text)
        origin = self.resolver.resolve(
            container,
            box.as_size(),
            style.alignment_spec(),
            offset=(style.offset_x, style.offset_y),
            baseline=True,
        )

        background = None
        if style.background is not None:
            background = Rect(
                x=origin.x - style.padding_x,
                y=origin.y - box.height - style.padding_y,
                width=box.width + 2 * style.padding_x,
                height=box.height + 2 * style.padding_y,
            )

        return TextPlacement(
            x=origin.x,
            y=origin.y,
            width=box.width,
            height=box.height,
            background=background,
        )

    def render_text(self, handle: RasterHandle, text: str, style: TextStyle) -> Tuple[RasterHandle, TextPlacement]:
        """
        Draw text onto a copy of handle.

        Order: background box, shadow one pixel up-left, then the glyphs.

        Returns:
            Tuple of (new buffer, resolved placement)
        """
        placement = self.place_text(handle.size, text, style)
        x, y = placement.x, placement.y

        with self.engine.staging("text") as staged:
            dst = self.engine.clone(handle, staged)

            if placement.background is not None:
                bg = placement.background
                self.backend.fill_rectangle(dst, bg.x, bg.y, bg.x2, bg.y2, style.background)

            if style.shadow:
                offset = TextDefaults.SHADOW_OFFSET
                self.backend.draw_text(
                    dst, x - offset, y - offset, style.shadow_color, style.font, style.size, style.angle, text
                )

            self.backend.draw_text(dst, x, y, style.color, style.font, style.size, style.angle, text)

        logger.debug(f"Text {text!r} at ({x}, {y}) size {placement.width}x{placement.height}")
        return dst, placement

    def place_watermark(self, container: Size, asset: Size, style: WatermarkStyle) -> WatermarkPlacement:
        """
        Resolve the watermark box.

        A requested width/height (each defaulting to the asset's own) is fitted
        with the asset aspect ratio preserved. The box is not clamped to the
        container.
        """
        target_width = style.width or asset.width
        target_height = style.height or asset.height

        if (target_width, target_height) != (asset.width, asset.height):
            fitted = proportional_scale(asset.width, asset.height, target_width, target_height)
            size = Size(width=max(1, fitted.width), height=max(1, fitted.height))
        else:
            size = asset

        origin = self.resolver.resolve(container, size, style.alignment_spec())
        return WatermarkPlacement(
            x=origin.x,
            y=origin.y,
            width=size.width,
            height=size.height,
            opacity=normalize_opacity(style.opacity),
        )

    def render_watermark(
        self,
        handle: RasterHandle,
        asset: RasterHandle,
        style: WatermarkStyle,
        asset_alpha: bool = False,
    ) -> Tuple[RasterHandle, WatermarkPlacement]:
        """
        Blend a watermark asset onto a copy of handle.

        Args:
            handle: Target image buffer
            asset: Watermark buffer (not released here)
            style: Resolved watermark style
            asset_alpha: Whether the asset buffer carries transparency; a
                rescaled asset keeps its alpha channel only in that case

        Returns:
            Tuple of (new buffer, resolved placement)
        """
        placement = self.place_watermark(handle.size, asset.size, style)
        scaled: Optional[RasterHandle] = None

        try:
            source = asset
            if (placement.width, placement.height) != (asset.width, asset.height):
                with self.engine.staging("watermark") as staged:
                    scaled = self.backend.create_buffer(placement.width, placement.height, asset_alpha)
                    staged.append(scaled)
                    self.backend.resample(
                        scaled,
                        asset,
                        Rect(x=0, y=0, width=placement.width, height=placement.height),
                        Rect.from_size(asset.size),
                    )
                source = scaled

            with self.engine.staging("watermark") as staged:
                dst = self.engine.clone(handle, staged)
                self.backend.merge_blend(
                    dst, source, placement.x, placement.y, placement.width, placement.height, placement.opacity
                )
        finally:
            self.backend.release(scaled)

        logger.debug(
            f"Watermark {placement.width}x{placement.height} at ({placement.x}, {placement.y}) "
            f"opacity {placement.opacity}"
        )
        return dst, placement
