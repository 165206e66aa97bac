from __future__ import annotations

from .diagram import attribute_row
from .model import DomainModel, Entity
from .styles import (
    ENTITY_HEADER_HEIGHT,
    ENTITY_MIN_WIDTH,
    ENTITY_PAD_X,
    ENTITY_ROW_HEIGHT,
    ENTITY_SEPARATOR_HEIGHT,
    FONT_SIZES,
    FONT_WEIGHTS,
    estimate_mono_text_width,
    estimate_text_width,
)
from .types import Size

# ============================================================================
# Entity measurement for the bundled SVG surface
#
# Each entity box has:
#   1. Header (entity name)
#   2. Primary key rows
#   3. Separator (only when the entity has any attribute)
#   4. Non-key attribute rows
# ============================================================================


def measure_entity(entity: Entity) -> Size:
    """Estimate the box an entity needs from its title and rows."""
    title_w = estimate_text_width(
        entity.name, FONT_SIZES["entity_title"], FONT_WEIGHTS["entity_title"]
    )

    max_row_w = 0.0
    for attr in entity.all_attributes():
        w = estimate_mono_text_width(attribute_row(attr), FONT_SIZES["attribute"])
        if w > max_row_w:
            max_row_w = w

    width = max(ENTITY_MIN_WIDTH, title_w + ENTITY_PAD_X * 2, max_row_w + ENTITY_PAD_X * 2)

    rows = len(entity.primary_key) + len(entity.attributes)
    height = ENTITY_HEADER_HEIGHT + max(rows, 1) * ENTITY_ROW_HEIGHT
    if rows:
        height += ENTITY_SEPARATOR_HEIGHT

    return Size(width=width, height=height)


def measure_model(model: DomainModel) -> None:
    """Fill in bounds for every entity."""
    for entity in model.entities:
        entity.bounds = measure_entity(entity)
