from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

# ============================================================================
# Geometry value types
# ============================================================================


@dataclass(slots=True)
class Point:
    x: float
    y: float


@dataclass(slots=True)
class Size:
    width: float
    height: float


@dataclass(slots=True)
class Rect:
    """Axis-aligned rectangle with a top-left origin."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(x=self.x + self.width / 2, y=self.y + self.height / 2)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


# ============================================================================
# Render options: user-facing configuration
# ============================================================================

LayoutMode = Literal["grid", "layered"]


@dataclass(slots=True)
class RenderOptions:
    # Grid layout: margin and gap between cells
    padding: int | None = None
    # Grid layout: fixed entity footprint
    cell_width: int | None = None
    cell_height: int | None = None
    layout: LayoutMode | None = None
    # Layered layout spacing
    node_spacing: int | None = None
    layer_spacing: int | None = None
    font: str | None = None
    transparent: bool | None = None
