from __future__ import annotations

# ============================================================================
# Text metrics for entity boxes
#
# Entity titles are set in Inter; at 700 weight a glyph averages about 0.58em,
# regular text about 0.52em. Attribute rows ("name (O) : type") use a
# monospace stack at 0.6em so the ":" columns line up. The estimates only
# need to keep boxes from clipping their rows; the geometry engine never
# measures text.
# ============================================================================


def estimate_text_width(text: str, font_size: float, font_weight: int) -> float:
    """Approximate width in px of an entity title or label set in Inter."""
    width_ratio = 0.58 if font_weight >= 600 else 0.52
    return len(text) * font_size * width_ratio


def estimate_mono_text_width(text: str, font_size: float) -> float:
    """Width in px of an attribute row; every glyph is 0.6em wide."""
    return len(text) * font_size * 0.6


MONO_FONT_STACK = "'JetBrains Mono', 'SF Mono', 'Fira Code', ui-monospace, monospace"

# Fixed font sizes (px)
FONT_SIZES = {
    "entity_title": 13,
    "attribute": 11,
    "edge_label": 11,
}

# Font weights per element type
FONT_WEIGHTS = {
    "entity_title": 700,
    "attribute": 400,
    "edge_label": 400,
}

# ============================================================================
# Entity box sizing
# ============================================================================

ENTITY_PAD_X = 12
ENTITY_HEADER_HEIGHT = 32
ENTITY_ROW_HEIGHT = 22
ENTITY_SEPARATOR_HEIGHT = 6
ENTITY_MIN_WIDTH = 140

STROKE_WIDTHS = {
    "entity": 1,
    "separator": 0.75,
    "connector": 1.5,
    "generalization": 2,
}

TEXT_BASELINE_SHIFT = "0.35em"
