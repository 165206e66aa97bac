"""pretty-erd: parse a small ER modelling language and lay it out as an IDEF1X-style diagram."""

from __future__ import annotations

import logging

from .types import Point, Rect, Size, RenderOptions
from .errors import (
    ErdError,
    ErdSyntaxError,
    ErdReferenceError,
    GeometryError,
    ConsistencyError,
    SessionError,
)
from .model import (
    Attribute,
    DomainModel,
    Entity,
    FkTarget,
    Generalization,
    Relationship,
    RelationshipEnd,
    is_identifying,
    relationship_cardinality,
    validate_model,
)
from .parser import parse
from .layout import auto_layout, layered_layout
from .geometry import (
    connection_point,
    route_orthogonal,
    relationship_symbols,
    generalization_geometry,
)
from .diagram import DrawResult, draw_diagram
from .session import DiagramSession
from .svg import canvas_size, render_svg

logger = logging.getLogger(__name__)

__all__ = [
    "render_erd",
    "parse",
    "auto_layout",
    "layered_layout",
    "connection_point",
    "route_orthogonal",
    "relationship_symbols",
    "generalization_geometry",
    "draw_diagram",
    "is_identifying",
    "relationship_cardinality",
    "validate_model",
    "DiagramSession",
    "DrawResult",
    "RenderOptions",
    "Point",
    "Rect",
    "Size",
    "Attribute",
    "DomainModel",
    "Entity",
    "FkTarget",
    "Generalization",
    "Relationship",
    "RelationshipEnd",
    "ErdError",
    "ErdSyntaxError",
    "ErdReferenceError",
    "GeometryError",
    "ConsistencyError",
    "SessionError",
]


def render_erd(
    text: str,
    options: RenderOptions | None = None,
) -> str:
    """Render ER DSL text to an SVG string.

    Parse errors propagate. Geometry errors for individual relationships are
    logged and the rest of the diagram is still rendered.
    """
    if options is None:
        options = RenderOptions()

    result = DiagramSession(options=options).load(text)
    if result.errors:
        logger.warning("Rendered with %d skipped part(s)", len(result.errors))

    width, height = canvas_size(result.primitives)
    return render_svg(
        result.primitives,
        width,
        height,
        font=options.font or "Inter",
        transparent=options.transparent or False,
    )
