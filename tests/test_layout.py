"""Layout tests -- grid placement and grandalf layered placement."""
from __future__ import annotations

import math

import pytest

from pretty_erd.layout import auto_layout, grid_columns, layered_layout
from pretty_erd.measure import measure_model
from pretty_erd.model import Entity
from pretty_erd.parser import parse
from pretty_erd.types import Point, RenderOptions


def entities(n: int) -> list[Entity]:
    return [Entity(name=f"E{i}") for i in range(n)]


# ============================================================================
# Grid layout
# ============================================================================


class TestGridLayout:
    def test_five_entities_use_three_columns(self):
        assert grid_columns(5) == 3

    def test_index_three_of_five_starts_the_second_row(self):
        ents = entities(5)
        auto_layout(ents)
        # padding 150, cell 200
        assert ents[3].position == Point(x=150, y=150 + 200 + 150)
        assert ents[0].position == Point(x=150, y=150)
        assert ents[2].position == Point(x=150 + 2 * 350, y=150)

    def test_single_entity(self):
        ents = entities(1)
        auto_layout(ents)
        assert ents[0].position == Point(x=150, y=150)

    def test_empty_list(self):
        auto_layout([])

    def test_is_idempotent(self):
        ents = entities(7)
        auto_layout(ents)
        first = [Point(x=e.position.x, y=e.position.y) for e in ents]
        ents[2].position = Point(x=-1, y=-1)
        auto_layout(ents)
        assert [e.position for e in ents] == first

    def test_options_override_pitch(self):
        ents = entities(4)
        auto_layout(ents, RenderOptions(padding=10, cell_width=100, cell_height=50))
        assert ents[1].position == Point(x=10 + 110, y=10)
        assert ents[2].position == Point(x=10, y=10 + 60)

    def test_zero_padding_is_honoured(self):
        ents = entities(2)
        auto_layout(ents, RenderOptions(padding=0))
        assert ents[0].position == Point(x=0, y=0)
        assert ents[1].position == Point(x=200, y=0)

    @pytest.mark.parametrize("n", [1, 2, 4, 9, 10, 17])
    def test_every_entity_gets_its_own_cell(self, n):
        ents = entities(n)
        auto_layout(ents)
        cells = {(e.position.x, e.position.y) for e in ents}
        assert len(cells) == n
        cols = math.ceil(math.sqrt(n))
        assert len({e.position.x for e in ents}) == min(cols, n)


# ============================================================================
# Layered layout
# ============================================================================

CHAIN = """
Entity Country {
  +code: string
}
Entity City {
  +id: number
  country: string FK -> Country.code
}
Entity Street {
  +id: number
  city_id: number FK -> City.id
}
Entity Loner {
  +id: number
}
"""


class TestLayeredLayout:
    def test_places_every_entity(self):
        model = parse(CHAIN)
        measure_model(model)
        layered_layout(model)
        for e in model.entities:
            assert e.position is not None
            assert math.isfinite(e.position.x) and math.isfinite(e.position.y)

    def test_referenced_entities_sit_above(self):
        model = parse(CHAIN)
        measure_model(model)
        layered_layout(model)
        country = model.entity("Country").position
        city = model.entity("City").position
        street = model.entity("Street").position
        assert country.y < city.y < street.y

    def test_unconnected_entities_go_below(self):
        model = parse(CHAIN)
        measure_model(model)
        layered_layout(model)
        street = model.entity("Street").rect()
        assert model.entity("Loner").position.y > street.bottom

    def test_respects_padding(self):
        model = parse(CHAIN)
        measure_model(model)
        layered_layout(model, RenderOptions(padding=20))
        assert min(e.position.x for e in model.entities) == pytest.approx(20)
        assert min(e.position.y for e in model.entities) == pytest.approx(20)

    def test_only_isolated_entities(self):
        model = parse("Entity A {}\nEntity B {}")
        layered_layout(model)
        assert model.entity("A").position == Point(x=150, y=150)
        assert model.entity("B").position == Point(x=150 + 200 + 150, y=150)

    def test_generalizations_layer_categories_below(self):
        model = parse(
            "Entity Person {\n  +name: string\n}\n"
            "Entity Student {\n  +name: string\n}\n"
            "Generalization Person {\n  Student\n}"
        )
        measure_model(model)
        layered_layout(model)
        assert model.entity("Person").position.y < model.entity("Student").position.y
