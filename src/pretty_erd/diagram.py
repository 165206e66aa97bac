from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import ConsistencyError, ErdError, GeometryError
from .geometry import (
    category_connector,
    connection_point,
    generalization_hub,
    relationship_label_point,
    relationship_symbols,
    route_orthogonal,
)
from .model import (
    Attribute,
    DomainModel,
    Entity,
    Generalization,
    Relationship,
    is_identifying,
    relationship_cardinality,
)
from .primitives import Primitive, PrimitiveBuilder

logger = logging.getLogger(__name__)

# ============================================================================
# Redraw pass
#
# Turns a laid-out, measured model into draw primitives.
#
# Emission order:
#   1. Entity boxes
#   2. Relationships (connector, cardinality symbols, label)
#   3. Generalizations (junction, underlines, discriminator, connectors)
#
# Every relationship and every generalization category is computed into its
# own builder and only committed when it succeeds, so one broken edge never
# hides the rest of the diagram. Failures are returned alongside.
# ============================================================================


@dataclass(slots=True)
class DrawResult:
    primitives: list[Primitive] = field(default_factory=list)
    errors: list[ErdError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def draw_diagram(model: DomainModel) -> DrawResult:
    """Compute all draw primitives from current entity positions and bounds."""
    result = DrawResult()
    out = PrimitiveBuilder()

    for entity in model.entities:
        try:
            _draw_entity(out, entity)
        except GeometryError as err:
            _record(result, err)

    for rel in model.relationships:
        edge = PrimitiveBuilder()
        try:
            _draw_relationship(edge, model, rel)
        except (GeometryError, ConsistencyError) as err:
            _record(result, err)
            continue
        out.extend(edge)

    for gen in model.generalizations:
        _draw_generalization(out, result, model, gen)

    result.primitives = out.primitives
    return result


def _record(result: DrawResult, err: ErdError) -> None:
    logger.warning("Skipped part of the diagram: %s", err)
    result.errors.append(err)


# ============================================================================
# Entities
# ============================================================================


def attribute_row(attr: Attribute) -> str:
    name = attr.name
    if attr.optional:
        name += " (O)"
    if attr.many:
        name += " (M)"
    return f"{name} : {attr.type}"


def _draw_entity(out: PrimitiveBuilder, entity: Entity) -> None:
    out.box(
        entity.rect(),
        "weak-entity" if entity.weak else "strong-entity",
        entity.name,
        key_rows=[attribute_row(a) for a in entity.primary_key],
        attribute_rows=[attribute_row(a) for a in entity.attributes],
    )


# ============================================================================
# Relationships
# ============================================================================


def _require_entity(model: DomainModel, name: str, subject: str) -> Entity:
    entity = model.entity(name)
    if entity is None:
        raise ConsistencyError(f'{subject}: unknown entity "{name}"', entity=name)
    return entity


def _draw_relationship(out: PrimitiveBuilder, model: DomainModel, rel: Relationship) -> None:
    subject = (
        f"{rel.source.entity}.{rel.source.attribute} -> "
        f"{rel.target.entity}.{rel.target.attribute}"
    )
    source = _require_entity(model, rel.source.entity, subject)
    target = _require_entity(model, rel.target.entity, subject)
    optional, many = relationship_cardinality(model, rel)
    identifying = is_identifying(model, rel)

    source_rect = source.rect()
    target_rect = target.rect()
    source_point = connection_point(source_rect, target_rect, subject)
    target_point = connection_point(target_rect, source_rect, subject)

    route = route_orthogonal(source_point, target_point, subject)
    out.path(route.points, "identifying" if identifying else "non-identifying")

    out.primitives.extend(
        relationship_symbols(target_point, source_point, optional, many, identifying, subject)
    )

    label = rel.label or f"{rel.source.attribute} → {rel.target.attribute}"
    out.text(relationship_label_point(route), label, "middle", "relationship-label")


# ============================================================================
# Generalizations
# ============================================================================


def _draw_generalization(
    out: PrimitiveBuilder,
    result: DrawResult,
    model: DomainModel,
    gen: Generalization,
) -> None:
    subject = f"generalization {gen.generic}"
    try:
        generic = _require_entity(model, gen.generic, subject)
        hub = generalization_hub(generic.rect(), gen.complete, gen.discriminator, subject)
    except (GeometryError, ConsistencyError) as err:
        _record(result, err)
        return

    out.primitives.extend(hub.primitives())

    for name in gen.categories:
        category_subject = f"{subject} -> {name}"
        try:
            category = _require_entity(model, name, category_subject)
            connector = category_connector(hub.anchor, category.rect(), category_subject)
        except (GeometryError, ConsistencyError) as err:
            _record(result, err)
            continue
        out.primitives.append(connector)
