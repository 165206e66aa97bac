"""Integration tests -- end-to-end parse -> layout -> geometry -> SVG."""
from __future__ import annotations

import re

import pytest

from pretty_erd import ErdReferenceError, ErdSyntaxError, render_erd
from pretty_erd.types import RenderOptions

LIBRARY = """
Entity Book {
  +ISBN: string
  title: string
  ?year: number
  category_id: number FK -> Category.id
}

Entity Category {
  +id: number
  name: string
}

Entity Person {
  +name: string
}

Entity Student {
  +name: string
}

Entity Employee {
  +name: string
}

Generalization Person {
  Student
  Employee
} complete discriminator=Role
"""


class TestRenderErd:
    def test_renders_valid_svg(self):
        svg = render_erd(LIBRARY)
        assert svg.startswith("<svg")
        assert svg.rstrip().endswith("</svg>")

    def test_renders_entity_names_and_rows(self):
        svg = render_erd(LIBRARY)
        for name in ("Book", "Category", "Person", "Student", "Employee"):
            assert f">{name}</text>" in svg
        assert "ISBN : string" in svg
        assert "year (O) : number" in svg

    def test_primary_key_rows_are_underlined(self):
        svg = render_erd(LIBRARY)
        assert 'text-decoration="underline">ISBN : string</text>' in svg

    def test_renders_relationship_connector_and_label(self):
        svg = render_erd(LIBRARY)
        assert 'class="non-identifying"' in svg
        assert "stroke-dasharray" in svg
        assert "category_id → id" in svg

    def test_renders_generalization(self):
        svg = render_erd(LIBRARY)
        assert 'class="generalization-junction"' in svg
        assert len(re.findall(r"<line [^>]*stroke-linecap", svg)) == 2
        assert len(re.findall(r'class="generalization"', svg)) == 2
        assert ">Role</text>" in svg

    def test_incomplete_generalization_has_one_underline(self):
        svg = render_erd(LIBRARY.replace("} complete", "} incomplete"))
        assert len(re.findall(r"<line [^>]*stroke-linecap", svg)) == 1

    def test_weak_entity_has_rounded_corners(self):
        svg = render_erd("Entity Note {\n  text: string\n}")
        assert 'rx="8"' in svg
        assert 'class="weak-entity"' in svg

    def test_cardinality_glyphs(self):
        svg = render_erd(
            "Entity A {\n  +id: number\n}\n"
            "Entity B {\n  +id: number\n  *a_id: number FK -> A.id\n}\n"
            "Entity C {\n  +id: number\n  ?a_id: number FK -> A.id\n}"
        )
        assert 'class="cardinality">P</text>' in svg
        assert 'class="cardinality">Z</text>' in svg
        assert 'class="non-identifying-optional"' in svg

    def test_escapes_text(self):
        svg = render_erd(
            "Entity A {\n  +id: number\n}\n"
            'Entity B {\n  +id: number\n  a_id: number FK -> A.id "<owns> & more"\n}'
        )
        assert "&lt;owns&gt; &amp; more" in svg

    def test_viewbox_contains_every_entity(self):
        svg = render_erd(LIBRARY)
        width, height = map(float, re.search(r'width="([\d.]+)" height="([\d.]+)"', svg).groups())
        for x, y, w, h in re.findall(
            r'<rect x="([\d.]+)" y="([\d.]+)" width="([\d.]+)" height="([\d.]+)" rx', svg
        ):
            assert float(x) + float(w) <= width
            assert float(y) + float(h) <= height

    def test_transparent_option_drops_background(self):
        assert "background" not in render_erd(LIBRARY, RenderOptions(transparent=True)).split("\n")[0]

    def test_layered_layout_option(self):
        svg = render_erd(LIBRARY, RenderOptions(layout="layered"))
        assert "<svg" in svg
        assert "category_id → id" in svg

    def test_self_reference_renders_everything_else(self):
        svg = render_erd(
            "Entity Employee {\n  +id: number\n  ?manager_id: number FK -> Employee.id\n}\n"
            "Entity Team {\n  +id: number\n}"
        )
        assert ">Employee</text>" in svg
        assert ">Team</text>" in svg
        assert "manager_id → id" not in svg

    def test_syntax_errors_propagate(self):
        with pytest.raises(ErdSyntaxError):
            render_erd("Entity A {\n  +id number\n}")

    def test_reference_errors_propagate(self):
        with pytest.raises(ErdReferenceError):
            render_erd("Entity A {}\nEntity A {}")
