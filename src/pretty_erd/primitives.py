from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeVar, Union

from .types import Point, Rect

# ============================================================================
# Draw primitives
#
# The geometry engine emits an ordered list of these; a rendering surface
# turns them into pixels or markup. Style tags name what is drawn, never how.
# ============================================================================

BoxStyle = Literal["strong-entity", "weak-entity"]
PathStyle = Literal["identifying", "non-identifying", "generalization"]
TextStyle = Literal["relationship-label", "cardinality", "discriminator"]
TextAnchor = Literal["start", "middle", "end"]
CircleStyle = Literal["cardinality-dot", "generalization-junction"]
LineStyle = Literal["generalization-underline"]
MarkerStyle = Literal["non-identifying-optional"]


@dataclass(slots=True)
class Box:
    """Entity container; rows are plain text stacked top to bottom."""

    rect: Rect
    style: BoxStyle
    title: str
    key_rows: list[str] = field(default_factory=list)
    attribute_rows: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Path:
    """Axis-aligned polyline."""

    points: list[Point]
    style: PathStyle

    def to_path_data(self) -> str:
        """SVG path data using M/H/V commands."""
        if not self.points:
            return ""
        first = self.points[0]
        parts = [f"M {first.x:g} {first.y:g}"]
        for prev, curr in zip(self.points, self.points[1:]):
            if curr.y == prev.y:
                parts.append(f"H {curr.x:g}")
            elif curr.x == prev.x:
                parts.append(f"V {curr.y:g}")
            else:
                parts.append(f"L {curr.x:g} {curr.y:g}")
        return " ".join(parts)


@dataclass(slots=True)
class Text:
    point: Point
    content: str
    anchor: TextAnchor
    style: TextStyle


@dataclass(slots=True)
class Circle:
    center: Point
    radius: float
    style: CircleStyle


@dataclass(slots=True)
class Line:
    a: Point
    b: Point
    style: LineStyle


@dataclass(slots=True)
class RectMarker:
    # Top-left corner of the square
    point: Point
    size: float
    style: MarkerStyle


Primitive = Union[Box, Path, Text, Circle, Line, RectMarker]
_P = TypeVar("_P", Box, Path, Text, Circle, Line, RectMarker)


class PrimitiveBuilder:
    """Collects primitives in emission order, one factory method per kind."""

    def __init__(self) -> None:
        self.primitives: list[Primitive] = []

    def box(
        self,
        rect: Rect,
        style: BoxStyle,
        title: str,
        key_rows: list[str] | None = None,
        attribute_rows: list[str] | None = None,
    ) -> Box:
        return self._add(Box(rect, style, title, list(key_rows or []), list(attribute_rows or [])))

    def path(self, points: list[Point], style: PathStyle) -> Path:
        return self._add(Path(list(points), style))

    def text(self, point: Point, content: str, anchor: TextAnchor, style: TextStyle) -> Text:
        return self._add(Text(point, content, anchor, style))

    def circle(self, center: Point, radius: float, style: CircleStyle) -> Circle:
        return self._add(Circle(center, radius, style))

    def line(self, a: Point, b: Point, style: LineStyle) -> Line:
        return self._add(Line(a, b, style))

    def rect_marker(self, point: Point, size: float, style: MarkerStyle) -> RectMarker:
        return self._add(RectMarker(point, size, style))

    def extend(self, other: PrimitiveBuilder) -> None:
        self.primitives.extend(other.primitives)

    def _add(self, primitive: _P) -> _P:
        self.primitives.append(primitive)
        return primitive
