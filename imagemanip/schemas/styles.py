"""
Style models for overlays.

Session-wide defaults are held as TextStyle / WatermarkStyle instances;
per-call overrides are merged over them (see utils.params_processor).
Legacy option names ("x", "left", "position", ...) are accepted as aliases.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from imagemanip.core.constants import PlacementDefaults, TextDefaults, WatermarkDefaults
from imagemanip.core.enums import Alignment
from imagemanip.core.image.geometry import coerce_color
from imagemanip.schemas.common import RGB


class AlignmentSpec(BaseModel):
    """Anchor and margins for a single placement."""

    model_config = ConfigDict(frozen=True)

    anchor: Alignment = Alignment.NONE
    margin_left: int = 0
    margin_right: int = 0
    margin_top: int = 0
    margin_bottom: int = 0

    @field_validator("anchor", mode="before")
    @classmethod
    def _parse_anchor(cls, value: Any) -> Alignment:
        return Alignment.parse(value)


class _PlacementStyle(BaseModel):
    """Anchor and margin fields shared by text and watermark styles."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    margin_left: int = Field(
        default=PlacementDefaults.MARGIN,
        validation_alias=AliasChoices("margin_left", "left"),
        description="Left margin",
    )
    margin_right: int = Field(
        default=PlacementDefaults.MARGIN,
        validation_alias=AliasChoices("margin_right", "right"),
        description="Right margin",
    )
    margin_top: int = Field(
        default=PlacementDefaults.MARGIN,
        validation_alias=AliasChoices("margin_top", "top"),
        description="Top margin",
    )
    margin_bottom: int = Field(
        default=PlacementDefaults.MARGIN,
        validation_alias=AliasChoices("margin_bottom", "bottom"),
        description="Bottom margin",
    )

    def alignment_spec(self) -> AlignmentSpec:
        return AlignmentSpec(
            anchor=self.align,
            margin_left=self.margin_left,
            margin_right=self.margin_right,
            margin_top=self.margin_top,
            margin_bottom=self.margin_bottom,
        )


class TextStyle(_PlacementStyle):
    """Text overlay style."""

    font: Optional[str] = Field(
        default=TextDefaults.FONT, description="TrueType font path (None = bundled default)"
    )
    size: int = Field(default=TextDefaults.SIZE, gt=0, description="Font size in pixels")
    angle: float = Field(default=TextDefaults.ANGLE, description="Counter-clockwise angle")
    offset_x: int = Field(
        default=TextDefaults.OFFSET_X,
        validation_alias=AliasChoices("offset_x", "x", "coordinate_x"),
        description="Extra x offset applied after alignment",
    )
    offset_y: int = Field(
        default=TextDefaults.OFFSET_Y,
        validation_alias=AliasChoices("offset_y", "y", "coordinate_y"),
        description="Extra y offset applied after alignment",
    )
    align: Alignment = Field(
        default=TextDefaults.ALIGN, validation_alias=AliasChoices("align", "position")
    )
    color: RGB = Field(default_factory=lambda: coerce_color(TextDefaults.COLOR))
    shadow: bool = TextDefaults.SHADOW
    shadow_color: RGB = Field(default_factory=lambda: coerce_color(TextDefaults.SHADOW_COLOR))
    background: Optional[RGB] = TextDefaults.BACKGROUND
    padding_x: int = Field(default=TextDefaults.PADDING_X, ge=0)
    padding_y: int = Field(default=TextDefaults.PADDING_Y, ge=0)

    @field_validator("align", mode="before")
    @classmethod
    def _parse_align(cls, value: Any) -> Alignment:
        return Alignment.parse(value)

    @field_validator("color", "shadow_color", "background", mode="before")
    @classmethod
    def _parse_color(cls, value: Any) -> Optional[RGB]:
        if value is None:
            return None
        return coerce_color(value)


class WatermarkStyle(_PlacementStyle):
    """Watermark overlay style."""

    align: Alignment = Field(
        default=WatermarkDefaults.ALIGN, validation_alias=AliasChoices("align", "position")
    )
    opacity: float = Field(
        default=WatermarkDefaults.OPACITY,
        description="Fraction in [0, 1] or percentage (capped at 100)",
    )
    width: Optional[int] = Field(default=None, gt=0, description="Target watermark width")
    height: Optional[int] = Field(default=None, gt=0, description="Target watermark height")

    @field_validator("align", mode="before")
    @classmethod
    def _parse_align(cls, value: Any) -> Alignment:
        return Alignment.parse(value)
