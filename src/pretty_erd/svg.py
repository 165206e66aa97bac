from __future__ import annotations

from urllib.parse import quote

from .primitives import Box, Circle, Line, Path, Primitive, RectMarker, Text
from .styles import (
    ENTITY_HEADER_HEIGHT,
    ENTITY_PAD_X,
    ENTITY_ROW_HEIGHT,
    ENTITY_SEPARATOR_HEIGHT,
    FONT_SIZES,
    FONT_WEIGHTS,
    MONO_FONT_STACK,
    STROKE_WIDTHS,
    TEXT_BASELINE_SHIFT,
)

# ============================================================================
# SVG surface
#
# Writes draw primitives as SVG elements in the order they were emitted.
# Notation (IDEF1X):
#   strong entity  square corners
#   weak entity    rounded corners
#   identifying    solid connector
#   non-identifying dashed connector
# ============================================================================

FG = "#27272A"
BG = "#FFFFFF"
MUTED = "#71717A"
CANVAS_PADDING = 40
WEAK_ENTITY_RADIUS = 8


def render_svg(
    primitives: list[Primitive],
    width: float,
    height: float,
    font: str = "Inter",
    transparent: bool = False,
) -> str:
    """Render draw primitives as an SVG string."""
    parts: list[str] = [svg_open_tag(width, height, transparent), _style_block(font)]

    for primitive in primitives:
        if isinstance(primitive, Box):
            parts.append(_render_box(primitive))
        elif isinstance(primitive, Path):
            parts.append(_render_path(primitive))
        elif isinstance(primitive, Text):
            parts.append(_render_text(primitive))
        elif isinstance(primitive, Circle):
            parts.append(_render_circle(primitive))
        elif isinstance(primitive, Line):
            parts.append(
                f'<line x1="{primitive.a.x:g}" y1="{primitive.a.y:g}" '
                f'x2="{primitive.b.x:g}" y2="{primitive.b.y:g}" stroke="{FG}" '
                f'stroke-width="{STROKE_WIDTHS["generalization"]}" stroke-linecap="round" />'
            )
        elif isinstance(primitive, RectMarker):
            parts.append(
                f'<rect x="{primitive.point.x:g}" y="{primitive.point.y:g}" '
                f'width="{primitive.size:g}" height="{primitive.size:g}" '
                f'fill="{BG}" stroke="{FG}" stroke-width="1" class="{primitive.style}" />'
            )

    parts.append("</svg>")
    return "\n".join(parts)


def canvas_size(primitives: list[Primitive], padding: float = CANVAS_PADDING) -> tuple[float, float]:
    """Width and height that contain every primitive plus padding."""
    max_x = 0.0
    max_y = 0.0
    for primitive in primitives:
        if isinstance(primitive, Box):
            max_x = max(max_x, primitive.rect.right)
            max_y = max(max_y, primitive.rect.bottom)
        elif isinstance(primitive, Path):
            for p in primitive.points:
                max_x = max(max_x, p.x)
                max_y = max(max_y, p.y)
        elif isinstance(primitive, Text):
            max_x = max(max_x, primitive.point.x)
            max_y = max(max_y, primitive.point.y)
        elif isinstance(primitive, Circle):
            max_x = max(max_x, primitive.center.x + primitive.radius)
            max_y = max(max_y, primitive.center.y + primitive.radius)
        elif isinstance(primitive, Line):
            max_x = max(max_x, primitive.a.x, primitive.b.x)
            max_y = max(max_y, primitive.a.y, primitive.b.y)
        elif isinstance(primitive, RectMarker):
            max_x = max(max_x, primitive.point.x + primitive.size)
            max_y = max(max_y, primitive.point.y + primitive.size)
    return max_x + padding, max_y + padding


def svg_open_tag(width: float, height: float, transparent: bool = False) -> str:
    bg_style = "" if transparent else f' style="background:{BG}"'
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width:g} {height:g}" '
        f'width="{width:g}" height="{height:g}"{bg_style}>'
    )


def _style_block(font: str) -> str:
    return "\n".join([
        "<style>",
        f"  @import url('https://fonts.googleapis.com/css2?family={quote(font)}:wght@400;700&amp;display=swap');",
        f"  text {{ font-family: '{font}', system-ui, sans-serif; }}",
        f"  .mono {{ font-family: {MONO_FONT_STACK}; }}",
        "</style>",
    ])


# ============================================================================
# Entity boxes
# ============================================================================


def _render_box(box: Box) -> str:
    x = box.rect.x
    y = box.rect.y
    width = box.rect.width
    radius = WEAK_ENTITY_RADIUS if box.style == "weak-entity" else 0

    parts: list[str] = []

    parts.append(
        f'<rect x="{x:g}" y="{y:g}" width="{width:g}" height="{box.rect.height:g}" '
        f'rx="{radius}" ry="{radius}" fill="{BG}" stroke="{FG}" '
        f'stroke-width="{STROKE_WIDTHS["entity"]}" class="{box.style}" />'
    )

    parts.append(
        f'<text x="{x + width / 2:g}" y="{y + ENTITY_HEADER_HEIGHT / 2:g}" text-anchor="middle" '
        f'dy="{TEXT_BASELINE_SHIFT}" font-size="{FONT_SIZES["entity_title"]}" '
        f'font-weight="{FONT_WEIGHTS["entity_title"]}" fill="{FG}">{_escape_xml(box.title)}</text>'
    )

    row_top = y + ENTITY_HEADER_HEIGHT
    for row in box.key_rows:
        parts.append(_render_row(row, x, row_top, underline=True))
        row_top += ENTITY_ROW_HEIGHT

    if box.key_rows or box.attribute_rows:
        sep_y = row_top + ENTITY_SEPARATOR_HEIGHT / 2
        parts.append(
            f'<line x1="{x:g}" y1="{sep_y:g}" x2="{x + width:g}" y2="{sep_y:g}" '
            f'stroke="{FG}" stroke-width="{STROKE_WIDTHS["separator"]}" />'
        )
        row_top += ENTITY_SEPARATOR_HEIGHT

    for row in box.attribute_rows:
        parts.append(_render_row(row, x, row_top, underline=False))
        row_top += ENTITY_ROW_HEIGHT

    return "\n".join(parts)


def _render_row(row: str, box_x: float, row_top: float, underline: bool) -> str:
    decoration = ' text-decoration="underline"' if underline else ""
    return (
        f'<text x="{box_x + ENTITY_PAD_X:g}" y="{row_top + ENTITY_ROW_HEIGHT / 2:g}" class="mono" '
        f'dy="{TEXT_BASELINE_SHIFT}" font-size="{FONT_SIZES["attribute"]}" '
        f'font-weight="{FONT_WEIGHTS["attribute"]}" fill="{FG}"{decoration}>{_escape_xml(row)}</text>'
    )


# ============================================================================
# Connectors and symbols
# ============================================================================


def _render_path(path: Path) -> str:
    if path.style == "generalization":
        stroke_width = STROKE_WIDTHS["generalization"]
    else:
        stroke_width = STROKE_WIDTHS["connector"]
    dash_array = ' stroke-dasharray="6 4"' if path.style == "non-identifying" else ""
    return (
        f'<path d="{path.to_path_data()}" fill="none" stroke="{FG}" '
        f'stroke-width="{stroke_width}"{dash_array} class="{path.style}" />'
    )


def _render_text(text: Text) -> str:
    fill = MUTED if text.style == "relationship-label" else FG
    return (
        f'<text x="{text.point.x:g}" y="{text.point.y:g}" text-anchor="{text.anchor}" '
        f'font-size="{FONT_SIZES["edge_label"]}" font-weight="{FONT_WEIGHTS["edge_label"]}" '
        f'fill="{fill}" class="{text.style}">{_escape_xml(text.content)}</text>'
    )


def _render_circle(circle: Circle) -> str:
    fill = FG if circle.style == "cardinality-dot" else BG
    return (
        f'<circle cx="{circle.center.x:g}" cy="{circle.center.y:g}" r="{circle.radius:g}" '
        f'fill="{fill}" stroke="{FG}" stroke-width="1.5" class="{circle.style}" />'
    )


def _escape_xml(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )
