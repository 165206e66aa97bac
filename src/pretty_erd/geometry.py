from __future__ import annotations

import math
from dataclasses import dataclass, field

from .errors import GeometryError
from .primitives import Circle, Line, Path, Primitive, PrimitiveBuilder, Text
from .types import Point, Rect

# ============================================================================
# Geometry engine
#
# Pure functions of entity rectangles. Nothing here keeps state between
# calls, so every redraw recomputes all connectors from current positions.
#
# Coordinates use a top-left origin with y growing downward.
# ============================================================================

# Connector endpoints are pulled back inside the entity border by this much
BORDER_INSET = 1

# Cardinality symbols near the target endpoint
CARDINALITY_DOT_RADIUS = 4
GLYPH_OFFSET_ALONG = 8
GLYPH_OFFSET_ACROSS = 16
OPTIONAL_MARKER_SIZE = 8

# Relationship label sits this far above the route midpoint
LABEL_RAISE = 12

# Generalization junction
JUNCTION_RADIUS = 8
JUNCTION_GAP = 18
UNDERLINE_GAP = 8
UNDERLINE_HALF_WIDTH = 20
UNDERLINE_SPACING = 6
DISCRIMINATOR_GAP = 12
DISCRIMINATOR_BASELINE_SHIFT = 4


def _check_finite(subject: str | None, *coords: float) -> None:
    if not all(math.isfinite(c) for c in coords):
        raise GeometryError("non-finite coordinate", subject=subject, coordinates=tuple(coords))


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


# ============================================================================
# Connection points
# ============================================================================


def connection_point(from_rect: Rect, to_rect: Rect, subject: str | None = None) -> Point:
    """Point where the line between both centers leaves from_rect.

    The dominant axis of the center-to-center delta picks the edge (left/right
    when |dx| > |dy|, top/bottom otherwise); the other coordinate is
    interpolated and clamped to that edge. The result is inset by one unit
    toward the inside of from_rect so the connector does not cover the border.
    """
    _check_finite(subject, from_rect.x, from_rect.y, from_rect.width, from_rect.height)
    _check_finite(subject, to_rect.x, to_rect.y, to_rect.width, to_rect.height)

    start = from_rect.center
    end = to_rect.center
    dx = end.x - start.x
    dy = end.y - start.y

    if dx == 0 and dy == 0:
        raise GeometryError(
            "entities share the same center", subject=subject, coordinates=(start.x, start.y)
        )

    half_w = from_rect.width / 2
    half_h = from_rect.height / 2

    if abs(dx) > abs(dy):
        x = start.x + (half_w if dx > 0 else -half_w)
        y = start.y + half_h * (dy / abs(dx))
        y = min(max(y, from_rect.y), from_rect.bottom)
        x += -BORDER_INSET if dx > 0 else BORDER_INSET
    else:
        y = start.y + (half_h if dy > 0 else -half_h)
        x = start.x + half_w * (dx / abs(dy))
        x = min(max(x, from_rect.x), from_rect.right)
        y += -BORDER_INSET if dy > 0 else BORDER_INSET

    _check_finite(subject, x, y)
    return Point(x=x, y=y)


# ============================================================================
# Orthogonal routing
# ============================================================================


@dataclass(slots=True)
class Route:
    # start, two bends, end
    points: list[Point]
    # Middle of the connecting segment, where the label goes
    midpoint: Point


def route_orthogonal(start: Point, end: Point, subject: str | None = None) -> Route:
    """Two-bend axis-aligned path from start to end.

    Bends horizontally first when |dx| > |dy| (H V H through the middle x),
    otherwise vertically first (V H V through the middle y).
    """
    dx = end.x - start.x
    dy = end.y - start.y

    if abs(dx) > abs(dy):
        mid_x = start.x + dx / 2
        points = [
            Point(x=start.x, y=start.y),
            Point(x=mid_x, y=start.y),
            Point(x=mid_x, y=end.y),
            Point(x=end.x, y=end.y),
        ]
        midpoint = Point(x=mid_x, y=(start.y + end.y) / 2)
    else:
        mid_y = start.y + dy / 2
        points = [
            Point(x=start.x, y=start.y),
            Point(x=start.x, y=mid_y),
            Point(x=end.x, y=mid_y),
            Point(x=end.x, y=end.y),
        ]
        midpoint = Point(x=(start.x + end.x) / 2, y=mid_y)

    for p in points:
        _check_finite(subject, p.x, p.y)
    _check_finite(subject, midpoint.x, midpoint.y)
    return Route(points=points, midpoint=midpoint)


# ============================================================================
# Cardinality symbols
# ============================================================================

# (optional, many) -> glyph drawn next to the target endpoint
CARDINALITY_GLYPHS: dict[tuple[bool, bool], str] = {
    (False, False): "",
    (False, True): "P",
    (True, False): "Z",
    (True, True): "",
}


def relationship_symbols(
    target: Point,
    source: Point,
    optional: bool,
    many: bool,
    identifying: bool,
    subject: str | None = None,
) -> list[Primitive]:
    """Cardinality dot and glyph at the target, optional marker at the source.

    The glyph is offset along the dominant axis of the source->target delta,
    away from the connector, and across it by a fixed amount.
    """
    dx = target.x - source.x
    dy = target.y - source.y
    if dx == 0 and dy == 0:
        raise GeometryError(
            "relationship endpoints coincide", subject=subject, coordinates=(target.x, target.y)
        )

    if abs(dx) > abs(dy):
        offset_x = GLYPH_OFFSET_ALONG * -math.copysign(1, dx)
        offset_y = GLYPH_OFFSET_ACROSS
    else:
        offset_x = GLYPH_OFFSET_ACROSS
        offset_y = GLYPH_OFFSET_ALONG * -math.copysign(1, dy)

    builder = PrimitiveBuilder()

    if optional or many:
        builder.circle(Point(x=target.x, y=target.y), CARDINALITY_DOT_RADIUS, "cardinality-dot")
        glyph = CARDINALITY_GLYPHS[(optional, many)]
        if glyph:
            builder.text(
                Point(x=target.x + offset_x, y=target.y + offset_y),
                glyph,
                "start",
                "cardinality",
            )

    if optional and not identifying:
        builder.rect_marker(
            Point(x=source.x, y=source.y), OPTIONAL_MARKER_SIZE, "non-identifying-optional"
        )

    return builder.primitives


def relationship_label_point(route: Route) -> Point:
    return Point(x=route.midpoint.x, y=route.midpoint.y - LABEL_RAISE)


# ============================================================================
# Generalization hierarchy
# ============================================================================


@dataclass(slots=True)
class GeneralizationHub:
    """Junction drawn below the generic entity."""

    circle: Circle
    underlines: list[Line]
    discriminator: Text | None
    # Where category connectors start (center of the first underline)
    anchor: Point

    def primitives(self) -> list[Primitive]:
        result: list[Primitive] = [self.circle, *self.underlines]
        if self.discriminator is not None:
            result.append(self.discriminator)
        return result


@dataclass(slots=True)
class GeneralizationPlan:
    hub: GeneralizationHub
    connectors: list[Path] = field(default_factory=list)

    def primitives(self) -> list[Primitive]:
        return self.hub.primitives() + list(self.connectors)


def generalization_hub(
    generic: Rect,
    complete: bool,
    discriminator: str | None = None,
    subject: str | None = None,
) -> GeneralizationHub:
    """Junction circle, one or two underlines, and the discriminator label.

    Two underlines mark a complete generalization, one an incomplete one.
    """
    _check_finite(subject, generic.x, generic.y, generic.width, generic.height)

    center_x = _round_half_up(generic.x + generic.width / 2)
    bottom_y = _round_half_up(generic.bottom)
    center = Point(x=center_x, y=bottom_y + JUNCTION_GAP)

    underline_y = center.y + JUNCTION_RADIUS + UNDERLINE_GAP
    underline_ys = [underline_y]
    if complete:
        underline_ys.append(underline_y + UNDERLINE_SPACING)

    underlines = [
        Line(
            a=Point(x=center.x - UNDERLINE_HALF_WIDTH, y=y),
            b=Point(x=center.x + UNDERLINE_HALF_WIDTH, y=y),
            style="generalization-underline",
        )
        for y in underline_ys
    ]

    label = None
    if discriminator:
        label = Text(
            point=Point(
                x=center.x + JUNCTION_RADIUS + DISCRIMINATOR_GAP,
                y=center.y + DISCRIMINATOR_BASELINE_SHIFT,
            ),
            content=discriminator,
            anchor="start",
            style="discriminator",
        )

    return GeneralizationHub(
        circle=Circle(center=center, radius=JUNCTION_RADIUS, style="generalization-junction"),
        underlines=underlines,
        discriminator=label,
        anchor=Point(x=center.x, y=underline_y),
    )


def category_connector(anchor: Point, category: Rect, subject: str | None = None) -> Path:
    """Down from the hub anchor, across to the category's center, down to its top."""
    _check_finite(subject, category.x, category.y, category.width, category.height)

    end_x = _round_half_up(category.x + category.width / 2)
    end_y = _round_half_up(category.y)
    mid_y = _round_half_up(anchor.y + (end_y - anchor.y) / 2)

    return Path(
        points=[
            Point(x=anchor.x, y=anchor.y),
            Point(x=anchor.x, y=mid_y),
            Point(x=end_x, y=mid_y),
            Point(x=end_x, y=end_y),
        ],
        style="generalization",
    )


def generalization_geometry(
    generic: Rect,
    categories: list[Rect],
    complete: bool,
    discriminator: str | None = None,
) -> GeneralizationPlan:
    hub = generalization_hub(generic, complete, discriminator)
    return GeneralizationPlan(
        hub=hub,
        connectors=[category_connector(hub.anchor, rect) for rect in categories],
    )
