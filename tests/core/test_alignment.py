"""
Tests for anchor resolution
"""

import pytest

from imagemanip.core.alignment import AlignmentResolver
from imagemanip.core.enums import Alignment
from imagemanip.core.exceptions import UnknownAlignment
from imagemanip.schemas.common import Point, Size
from imagemanip.schemas.styles import AlignmentSpec

CONTAINER = Size(width=200, height=100)
CONTENT = Size(width=20, height=10)


def spec(anchor, left=1, right=2, top=3, bottom=4):
    return AlignmentSpec(
        anchor=anchor, margin_left=left, margin_right=right, margin_top=top, margin_bottom=bottom
    )


class TestAlignmentResolver:
    """Test the 9-point grid"""

    def test_center_center(self):
        result = AlignmentResolver.resolve(
            Size(width=100, height=100), Size(width=20, height=10), AlignmentSpec(anchor="center-center")
        )
        assert result == Point(x=40, y=45)

    @pytest.mark.parametrize(
        "anchor,expected",
        [
            (Alignment.NONE, (1, 3)),
            (Alignment.LEFT_TOP, (1, 3)),
            (Alignment.CENTER_TOP, (90, 3)),
            (Alignment.RIGHT_TOP, (178, 3)),
            (Alignment.LEFT_CENTER, (1, 45)),
            (Alignment.CENTER_CENTER, (90, 45)),
            (Alignment.RIGHT_CENTER, (178, 45)),
            (Alignment.LEFT_BOTTOM, (1, 86)),
            (Alignment.CENTER_BOTTOM, (90, 86)),
            (Alignment.RIGHT_BOTTOM, (178, 86)),
        ],
    )
    def test_anchor_table(self, anchor, expected):
        assert AlignmentResolver.resolve(CONTAINER, CONTENT, spec(anchor)).as_tuple() == expected

    @pytest.mark.parametrize(
        "anchor,expected_y",
        [
            (Alignment.LEFT_TOP, 13),
            (Alignment.CENTER_TOP, 13),
            (Alignment.RIGHT_TOP, 13),
            (Alignment.CENTER_CENTER, 45),
            (Alignment.CENTER_BOTTOM, 86),
        ],
    )
    def test_baseline_only_moves_top_anchors(self, anchor, expected_y):
        result = AlignmentResolver.resolve(CONTAINER, CONTENT, spec(anchor), baseline=True)
        assert result.y == expected_y

    def test_center_rounds_up(self):
        result = AlignmentResolver.resolve(
            Size(width=101, height=51), CONTENT, AlignmentSpec(anchor=Alignment.CENTER_CENTER)
        )
        assert result == Point(x=41, y=21)

    def test_offset_added_after_alignment(self):
        result = AlignmentResolver.resolve(CONTAINER, CONTENT, spec(Alignment.RIGHT_BOTTOM), offset=(5, -5))
        assert result == Point(x=183, y=81)

    def test_no_clamping(self):
        """Content larger than the container yields negative coordinates"""
        result = AlignmentResolver.resolve(
            Size(width=10, height=10), Size(width=30, height=30), spec(Alignment.RIGHT_BOTTOM)
        )
        assert result == Point(x=-22, y=-24)


class TestAlignmentParsing:
    """Test anchor parsing"""

    @pytest.mark.parametrize(
        "value", ["center-bottom", "center_bottom", "CENTER_BOTTOM", "Center Bottom", 8, "8", Alignment.CENTER_BOTTOM]
    )
    def test_spellings(self, value):
        assert Alignment.parse(value) is Alignment.CENTER_BOTTOM

    @pytest.mark.parametrize("value", ["middle", "center", 10, -1, True, None, 2.0])
    def test_unknown(self, value):
        with pytest.raises(UnknownAlignment):
            Alignment.parse(value)

    def test_axes(self):
        assert Alignment.RIGHT_TOP.horizontal == "right"
        assert Alignment.RIGHT_TOP.vertical == "top"
        assert Alignment.NONE.horizontal == "left"
        assert Alignment.NONE.vertical == "top"
