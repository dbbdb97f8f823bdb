"""
Anchor-based placement.

Resolves where a content box lands inside a container given one of the nine
anchors, per-side margins and a free offset. Used for both text (baseline
origin) and watermark (top-left origin) placement.
"""

import math
from typing import Tuple

from imagemanip.core.enums import Alignment
from imagemanip.schemas.common import Point, Size
from imagemanip.schemas.styles import AlignmentSpec


class AlignmentResolver:
    """
    Utility class computing content origins on the 9-point anchor grid.

    Results are not clamped: content may extend past the container when the
    margins or offsets push it there.
    """

    @staticmethod
    def center(container_dim: int, content_dim: int) -> int:
        """Centered origin on one axis, rounded up."""
        return math.ceil((container_dim - content_dim) / 2)

    @staticmethod
    def resolve(
        container: Size,
        content: Size,
        spec: AlignmentSpec,
        offset: Tuple[int, int] = (0, 0),
        baseline: bool = False,
    ) -> Point:
        """
        Resolve the origin of content inside container.

        Args:
            container: Size of the target image
            content: Size of the thing being placed
            spec: Anchor and margins
            offset: Free (dx, dy) added after alignment
            baseline: When True, y is a text baseline; top anchors then move
                the origin down by the content height so the glyphs sit below
                the top margin

        Returns:
            Integer origin

        Example:
            >>> spec = AlignmentSpec(anchor=Alignment.CENTER_CENTER)
            >>> AlignmentResolver.resolve(Size(width=100, height=100), Size(width=20, height=10), spec)
            Point(x=40, y=45)
        """
        anchor = Alignment.parse(spec.anchor)

        horizontal = anchor.horizontal
        if horizontal == "left":
            x = spec.margin_left
        elif horizontal == "center":
            x = AlignmentResolver.center(container.width, content.width)
        else:
            x = container.width - content.width - spec.margin_right

        vertical = anchor.vertical
        if vertical == "top":
            y = spec.margin_top + (content.height if baseline else 0)
        elif vertical == "center":
            y = AlignmentResolver.center(container.height, content.height)
        else:
            y = container.height - content.height - spec.margin_bottom

        dx, dy = offset
        return Point(x=int(x + dx), y=int(y + dy))
