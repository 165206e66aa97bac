from __future__ import annotations

import logging
import math

from grandalf.graphs import Vertex, Edge, Graph
from grandalf.layouts import SugiyamaLayout

from .model import DomainModel, Entity
from .types import Point, RenderOptions

logger = logging.getLogger(__name__)

# ============================================================================
# Entity placement
#
# Two strategies, both mutating Entity.position in place:
#   auto_layout     row-major grid, ceil(sqrt(n)) columns, declaration order
#   layered_layout  grandalf Sugiyama layering along foreign keys and
#                   generalizations (parents above children)
#
# Neither strategy avoids connector crossings or checks for collisions
# beyond what the strategy itself guarantees.
# ============================================================================

GRID_PADDING = 150
GRID_CELL_WIDTH = 200
GRID_CELL_HEIGHT = 200
LAYERED_NODE_SPACING = 60
LAYERED_LAYER_SPACING = 90


def grid_columns(count: int) -> int:
    return max(1, math.ceil(math.sqrt(count)))


def auto_layout(entities: list[Entity], options: RenderOptions | None = None) -> None:
    """Place entities on a grid in the order given.

    Re-running with the same entities and options yields the same positions.
    """
    if options is None:
        options = RenderOptions()
    padding = options.padding if options.padding is not None else GRID_PADDING
    cell_width = options.cell_width or GRID_CELL_WIDTH
    cell_height = options.cell_height or GRID_CELL_HEIGHT

    cols = grid_columns(len(entities))
    for index, entity in enumerate(entities):
        col = index % cols
        row = index // cols
        entity.position = Point(
            x=padding + col * (cell_width + padding),
            y=padding + row * (cell_height + padding),
        )

    logger.debug("Grid layout placed %d entities in %d columns", len(entities), cols)


# ============================================================================
# Layered layout (grandalf)
# ============================================================================


class _VertexView:
    """Minimal view object required by grandalf's SugiyamaLayout."""

    def __init__(self, w: float, h: float) -> None:
        self.w = w
        self.h = h
        # xy is set by the layout engine (center coordinates)
        self.xy = (0.0, 0.0)


def layered_layout(model: DomainModel, options: RenderOptions | None = None) -> None:
    """Place entities in layers so referenced entities sit above referencing ones.

    Each connected component is laid out separately and components are placed
    left to right. Entities without any connection go in a row underneath.
    """
    if options is None:
        options = RenderOptions()
    padding = options.padding if options.padding is not None else GRID_PADDING
    node_spacing = options.node_spacing or LAYERED_NODE_SPACING
    layer_spacing = options.layer_spacing or LAYERED_LAYER_SPACING
    default_w = options.cell_width or GRID_CELL_WIDTH
    default_h = options.cell_height or GRID_CELL_HEIGHT

    if not model.entities:
        return

    # 1. Build grandalf graph
    vertices: dict[str, Vertex] = {}
    for entity in model.entities:
        v = Vertex(entity.name)
        if entity.bounds is not None:
            v.view = _VertexView(entity.bounds.width, entity.bounds.height)
        else:
            v.view = _VertexView(default_w, default_h)
        vertices[entity.name] = v

    pairs: list[tuple[str, str]] = []
    for rel in model.relationships:
        pairs.append((rel.target.entity, rel.source.entity))
    for gen in model.generalizations:
        for category in gen.categories:
            pairs.append((gen.generic, category))

    edges: list[Edge] = []
    seen: set[tuple[str, str]] = set()
    for upper, lower in pairs:
        # Self references and repeated pairs add nothing to the layering
        if upper == lower or (upper, lower) in seen or (lower, upper) in seen:
            continue
        if upper not in vertices or lower not in vertices:
            continue
        seen.add((upper, lower))
        edges.append(Edge(vertices[upper], vertices[lower]))

    g = Graph(list(vertices.values()), edges)

    # 2. Lay out each connected component
    x_cursor = float(padding)
    row_bottom = float(padding)
    isolated: list[Vertex] = []

    for component in g.C:
        component_vertices = list(component.sV)
        if len(component_vertices) == 1:
            isolated.append(component_vertices[0])
            continue

        try:
            sug = SugiyamaLayout(component)
            sug.xspace = node_spacing
            sug.yspace = layer_spacing
            sug.init_all()
            sug.draw()
        except Exception as err:
            raise RuntimeError(f"Grandalf layout failed (ER diagram): {err}") from err

        min_x = min(v.view.xy[0] - v.view.w / 2 for v in component_vertices)
        min_y = min(v.view.xy[1] - v.view.h / 2 for v in component_vertices)
        max_x = max(v.view.xy[0] + v.view.w / 2 for v in component_vertices)
        max_y = max(v.view.xy[1] + v.view.h / 2 for v in component_vertices)

        for v in component_vertices:
            left = v.view.xy[0] - v.view.w / 2 - min_x + x_cursor
            top = v.view.xy[1] - v.view.h / 2 - min_y + padding
            model.entity(v.data).position = Point(x=left, y=top)

        x_cursor += (max_x - min_x) + padding
        row_bottom = max(row_bottom, padding + (max_y - min_y))

    # 3. Unconnected entities in declaration order
    y = row_bottom + padding if len(isolated) < len(vertices) else float(padding)
    x = float(padding)
    order = {entity.name: i for i, entity in enumerate(model.entities)}
    for v in sorted(isolated, key=lambda v: order[v.data]):
        model.entity(v.data).position = Point(x=x, y=y)
        x += v.view.w + padding

    logger.debug(
        "Layered layout placed %d entities (%d unconnected)", len(vertices), len(isolated)
    )
