"""Tests for the geometry engine -- connection points, orthogonal routing,
cardinality symbols and generalization connector trees.
"""
from __future__ import annotations

import math

import pytest

from pretty_erd.errors import GeometryError
from pretty_erd.geometry import (
    category_connector,
    connection_point,
    generalization_geometry,
    generalization_hub,
    relationship_label_point,
    relationship_symbols,
    route_orthogonal,
)
from pretty_erd.primitives import Circle, Line, Path, RectMarker, Text
from pretty_erd.types import Point, Rect


def is_axis_aligned(points: list[Point]) -> bool:
    return all(a.x == b.x or a.y == b.y for a, b in zip(points, points[1:]))


# ============================================================================
# connection_point
# ============================================================================


class TestConnectionPoint:
    box = Rect(x=0, y=0, width=100, height=50)

    def test_exits_right_edge_toward_entity_on_the_right(self):
        p = connection_point(self.box, Rect(x=300, y=0, width=100, height=50))
        assert p == Point(x=99, y=25)

    def test_exits_left_edge_toward_entity_on_the_left(self):
        p = connection_point(self.box, Rect(x=-300, y=0, width=100, height=50))
        assert p == Point(x=1, y=25)

    def test_exits_bottom_edge_toward_entity_below(self):
        p = connection_point(self.box, Rect(x=0, y=300, width=100, height=50))
        assert p == Point(x=50, y=49)

    def test_exits_top_edge_toward_entity_above(self):
        p = connection_point(self.box, Rect(x=0, y=-300, width=100, height=50))
        assert p == Point(x=50, y=1)

    def test_interpolates_the_perpendicular_coordinate(self):
        square = Rect(x=0, y=0, width=100, height=100)
        # centers (50, 50) -> (250, 150): dx=200, dy=100
        p = connection_point(square, Rect(x=200, y=100, width=100, height=100))
        assert p == Point(x=99, y=75)

    def test_equal_deltas_use_top_bottom_edge(self):
        square = Rect(x=0, y=0, width=100, height=100)
        p = connection_point(square, Rect(x=100, y=100, width=100, height=100))
        assert p == Point(x=100, y=99)

    def test_stays_on_the_from_rectangle(self):
        wide = Rect(x=0, y=0, width=400, height=20)
        p = connection_point(wide, Rect(x=150, y=300, width=100, height=50))
        assert wide.x <= p.x <= wide.right
        assert wide.y <= p.y <= wide.bottom

    def test_coincident_centers_are_a_geometry_error(self):
        with pytest.raises(GeometryError, match="same center"):
            connection_point(self.box, Rect(x=25, y=-25, width=50, height=100))

    def test_non_finite_rectangle_is_a_geometry_error(self):
        with pytest.raises(GeometryError):
            connection_point(self.box, Rect(x=math.nan, y=0, width=100, height=50))

    def test_error_names_the_subject(self):
        with pytest.raises(GeometryError) as info:
            connection_point(self.box, self.box, subject="A.x -> B.y")
        assert info.value.subject == "A.x -> B.y"
        assert "A.x -> B.y" in str(info.value)


# ============================================================================
# route_orthogonal
# ============================================================================


class TestRouteOrthogonal:
    def test_bends_horizontally_first_when_wider(self):
        route = route_orthogonal(Point(x=0, y=0), Point(x=100, y=20))
        assert route.points == [
            Point(x=0, y=0),
            Point(x=50, y=0),
            Point(x=50, y=20),
            Point(x=100, y=20),
        ]
        assert route.midpoint == Point(x=50, y=10)

    def test_bends_vertically_first_when_taller(self):
        route = route_orthogonal(Point(x=0, y=0), Point(x=20, y=100))
        assert route.points == [
            Point(x=0, y=0),
            Point(x=0, y=50),
            Point(x=20, y=50),
            Point(x=20, y=100),
        ]
        assert route.midpoint == Point(x=10, y=50)

    def test_midpoint_lies_on_the_connecting_segment(self):
        route = route_orthogonal(Point(x=10, y=40), Point(x=310, y=-60))
        a, b = route.points[1], route.points[2]
        assert route.midpoint.x == a.x == b.x
        assert min(a.y, b.y) <= route.midpoint.y <= max(a.y, b.y)

    def test_is_deterministic(self):
        first = route_orthogonal(Point(x=3, y=7), Point(x=-40, y=90))
        second = route_orthogonal(Point(x=3, y=7), Point(x=-40, y=90))
        assert first == second

    def test_all_segments_are_axis_aligned(self):
        route = route_orthogonal(Point(x=-12.5, y=3), Point(x=77, y=-41))
        assert is_axis_aligned(route.points)

    def test_non_finite_input_is_a_geometry_error(self):
        with pytest.raises(GeometryError):
            route_orthogonal(Point(x=0, y=0), Point(x=math.inf, y=10))

    def test_path_data(self):
        route = route_orthogonal(Point(x=0, y=0), Point(x=100, y=20))
        assert Path(route.points, "identifying").to_path_data() == "M 0 0 H 50 V 20 H 100"

    def test_label_sits_above_midpoint(self):
        route = route_orthogonal(Point(x=0, y=0), Point(x=100, y=20))
        assert relationship_label_point(route) == Point(x=50, y=-2)


# ============================================================================
# relationship_symbols
# ============================================================================


def glyphs(primitives) -> list[str]:
    return [p.content for p in primitives if isinstance(p, Text)]


class TestRelationshipSymbols:
    target = Point(x=100, y=0)
    source = Point(x=0, y=0)

    def test_mandatory_many_draws_p(self):
        symbols = relationship_symbols(self.target, self.source, False, True, False)
        assert glyphs(symbols) == ["P"]
        assert any(isinstance(p, Circle) for p in symbols)

    def test_optional_single_draws_z(self):
        symbols = relationship_symbols(self.target, self.source, True, False, True)
        assert glyphs(symbols) == ["Z"]
        assert any(isinstance(p, Circle) for p in symbols)

    def test_optional_many_draws_dot_without_glyph(self):
        symbols = relationship_symbols(self.target, self.source, True, True, True)
        assert glyphs(symbols) == []
        assert [type(p) for p in symbols] == [Circle]

    def test_mandatory_single_draws_nothing(self):
        assert relationship_symbols(self.target, self.source, False, False, False) == []

    def test_dot_is_centered_on_target(self):
        dot = relationship_symbols(self.target, self.source, True, False, True)[0]
        assert dot.center == self.target
        assert dot.radius == 4

    def test_optional_non_identifying_marks_the_source(self):
        symbols = relationship_symbols(self.target, self.source, True, False, False)
        markers = [p for p in symbols if isinstance(p, RectMarker)]
        assert len(markers) == 1
        assert markers[0].point == self.source
        assert markers[0].size == 8

    def test_identifying_never_gets_the_source_marker(self):
        for many in (False, True):
            symbols = relationship_symbols(self.target, self.source, True, many, True)
            assert not any(isinstance(p, RectMarker) for p in symbols)

    def test_mandatory_non_identifying_has_no_source_marker(self):
        symbols = relationship_symbols(self.target, self.source, False, True, False)
        assert not any(isinstance(p, RectMarker) for p in symbols)

    def test_glyph_offset_when_approaching_from_the_left(self):
        text = relationship_symbols(Point(x=100, y=0), Point(x=0, y=0), False, True, False)[1]
        assert text.point == Point(x=92, y=16)

    def test_glyph_offset_when_approaching_from_the_right(self):
        text = relationship_symbols(Point(x=0, y=0), Point(x=100, y=0), False, True, False)[1]
        assert text.point == Point(x=8, y=16)

    def test_glyph_offset_when_approaching_from_above(self):
        text = relationship_symbols(Point(x=0, y=100), Point(x=0, y=0), False, True, False)[1]
        assert text.point == Point(x=16, y=92)

    def test_glyph_offset_when_approaching_from_below(self):
        text = relationship_symbols(Point(x=0, y=0), Point(x=0, y=100), False, True, False)[1]
        assert text.point == Point(x=16, y=8)

    def test_coincident_endpoints_are_a_geometry_error(self):
        with pytest.raises(GeometryError):
            relationship_symbols(Point(x=5, y=5), Point(x=5, y=5), True, False, False)


# ============================================================================
# Generalization geometry
# ============================================================================


class TestGeneralizationGeometry:
    generic = Rect(x=100, y=100, width=200, height=100)

    def test_junction_sits_below_the_generic(self):
        hub = generalization_hub(self.generic, complete=False)
        assert hub.circle.center == Point(x=200, y=218)
        assert hub.circle.radius == 8

    def test_complete_draws_two_underlines(self):
        hub = generalization_hub(self.generic, complete=True)
        assert len(hub.underlines) == 2
        first, second = hub.underlines
        assert first.a.y == first.b.y == 234
        assert second.a.y == second.b.y == 240
        assert (first.a.x, first.b.x) == (second.a.x, second.b.x) == (180, 220)

    def test_incomplete_draws_one_underline(self):
        hub = generalization_hub(self.generic, complete=False)
        assert len(hub.underlines) == 1
        assert all(isinstance(line, Line) for line in hub.underlines)

    def test_discriminator_right_of_junction(self):
        hub = generalization_hub(self.generic, complete=False, discriminator="Role")
        assert hub.discriminator.content == "Role"
        assert hub.discriminator.point == Point(x=220, y=222)
        assert hub.discriminator.anchor == "start"

    def test_no_discriminator_label_without_name(self):
        hub = generalization_hub(self.generic, complete=True)
        assert hub.discriminator is None
        assert len(hub.primitives()) == 3

    def test_category_connector_is_a_three_segment_z(self):
        hub = generalization_hub(self.generic, complete=False)
        path = category_connector(hub.anchor, Rect(x=0, y=400, width=100, height=50))
        assert path.points == [
            Point(x=200, y=234),
            Point(x=200, y=317),
            Point(x=50, y=317),
            Point(x=50, y=400),
        ]
        assert is_axis_aligned(path.points)

    def test_connector_rounds_half_up(self):
        path = category_connector(Point(x=200, y=234), Rect(x=0, y=301, width=101, height=50))
        assert path.points[-1] == Point(x=51, y=301)
        assert path.points[1].y == 268

    def test_plan_has_one_connector_per_category(self):
        plan = generalization_geometry(
            self.generic,
            [Rect(x=0, y=400, width=100, height=50), Rect(x=300, y=400, width=100, height=50)],
            complete=True,
            discriminator="Kind",
        )
        assert len(plan.connectors) == 2
        assert all(c.points[0] == plan.hub.anchor for c in plan.connectors)
        # circle, two underlines, label, two connectors
        assert len(plan.primitives()) == 6

    def test_is_recomputed_from_scratch(self):
        categories = [Rect(x=0, y=400, width=100, height=50)]
        first = generalization_geometry(self.generic, categories, complete=False)
        second = generalization_geometry(self.generic, categories, complete=False)
        assert first == second
        assert len(second.hub.underlines) == 1

    def test_non_finite_generic_is_a_geometry_error(self):
        with pytest.raises(GeometryError):
            generalization_hub(Rect(x=0, y=math.nan, width=10, height=10), complete=False)
