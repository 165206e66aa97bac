from __future__ import annotations

import logging
from dataclasses import dataclass

from .diagram import DrawResult, draw_diagram
from .errors import SessionError
from .layout import auto_layout, layered_layout
from .measure import measure_model
from .model import DomainModel, Entity
from .parser import parse
from .types import Point, RenderOptions, Size

logger = logging.getLogger(__name__)

# ============================================================================
# Diagram session
#
# Owns the view state an interactive caller needs: zoom scale and the one
# entity currently being dragged. Only one drag may be active at a time, and
# every position change is followed by a full redraw.
# ============================================================================

ZOOM_STEP = 1.2
MIN_SCALE = 0.3
MAX_SCALE = 3.0


@dataclass(slots=True)
class _Drag:
    entity: str
    # Pointer position relative to the entity's top-left corner
    offset: Point


class DiagramSession:
    def __init__(self, model: DomainModel | None = None, options: RenderOptions | None = None) -> None:
        self.options = options or RenderOptions()
        self.model = model or DomainModel()
        self.scale = 1.0
        self._drag: _Drag | None = None

    @classmethod
    def from_source(cls, source: str, options: RenderOptions | None = None) -> DiagramSession:
        session = cls(options=options)
        session.load(source)
        return session

    def load(self, source: str) -> DrawResult:
        """Replace the whole document, measure and lay it out, then redraw.

        A parse error leaves the previous model untouched.
        """
        model = parse(source)
        self.model = model
        self._drag = None
        measure_model(model)
        return self.auto_layout()

    def auto_layout(self) -> DrawResult:
        if self.options.layout == "layered":
            layered_layout(self.model, self.options)
        else:
            auto_layout(self.model.entities, self.options)
        return self.redraw()

    def redraw(self) -> DrawResult:
        return draw_diagram(self.model)

    # ------------------------------------------------------------------------
    # Zoom
    # ------------------------------------------------------------------------

    def zoom_in(self) -> float:
        self.scale = min(self.scale * ZOOM_STEP, MAX_SCALE)
        return self.scale

    def zoom_out(self) -> float:
        self.scale = max(self.scale / ZOOM_STEP, MIN_SCALE)
        return self.scale

    def reset_zoom(self) -> float:
        self.scale = 1.0
        return self.scale

    def to_diagram(self, screen: Point) -> Point:
        """Convert a pointer position on screen to diagram coordinates."""
        return Point(x=screen.x / self.scale, y=screen.y / self.scale)

    # ------------------------------------------------------------------------
    # Dragging
    # ------------------------------------------------------------------------

    @property
    def dragging(self) -> str | None:
        return self._drag.entity if self._drag else None

    def begin_drag(self, name: str, pointer: Point) -> None:
        if self._drag is not None:
            raise SessionError(f'"{self._drag.entity}" is already being dragged')
        entity = self._entity(name)
        if entity.position is None:
            raise SessionError(f'"{name}" has not been laid out yet')
        at = self.to_diagram(pointer)
        self._drag = _Drag(
            entity=name,
            offset=Point(x=at.x - entity.position.x, y=at.y - entity.position.y),
        )

    def drag_to(self, pointer: Point, area: Size | None = None) -> DrawResult:
        """Move the dragged entity under the pointer, keeping it inside area."""
        if self._drag is None:
            raise SessionError("no drag in progress")
        entity = self._entity(self._drag.entity)
        at = self.to_diagram(pointer)
        x = at.x - self._drag.offset.x
        y = at.y - self._drag.offset.y

        if area is not None:
            width = entity.bounds.width if entity.bounds else 0
            height = entity.bounds.height if entity.bounds else 0
            x = max(0.0, min(x, area.width - width))
            y = max(0.0, min(y, area.height - height))

        entity.position = Point(x=x, y=y)
        return self.redraw()

    def end_drag(self) -> None:
        if self._drag is None:
            return
        logger.debug("Finished dragging %s", self._drag.entity)
        self._drag = None

    def _entity(self, name: str) -> Entity:
        entity = self.model.entity(name)
        if entity is None:
            raise SessionError(f'unknown entity "{name}"')
        return entity
