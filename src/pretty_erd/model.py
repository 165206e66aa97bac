from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from .errors import ConsistencyError, ErdReferenceError, GeometryError
from .types import Point, Rect, Size

# ============================================================================
# Domain model
#
# Plain data produced atomically by one parse call. After creation only
# Entity.position (and the measured Entity.bounds) change; identity and
# structure never do.
#
# Relationship identification and cardinality are derived from the
# attributes on every call instead of being stored on the relationship.
# ============================================================================


@dataclass(slots=True)
class FkTarget:
    """The (entity, attribute) a foreign key points at."""

    entity: str
    attribute: str


@dataclass(slots=True)
class Attribute:
    name: str
    # Free-form type name (string, number, varchar(20), ...)
    type: str
    optional: bool = False
    # Multi-valued attribute
    many: bool = False
    fk_target: FkTarget | None = None


@dataclass(slots=True)
class Entity:
    name: str
    # Ordered primary key attributes
    primary_key: list[Attribute] = field(default_factory=list)
    # Ordered non-key attributes
    attributes: list[Attribute] = field(default_factory=list)
    # Top-left corner; None until laid out
    position: Point | None = None
    # Width/height measured by the rendering surface
    bounds: Size | None = None

    @property
    def weak(self) -> bool:
        """An entity without a primary key of its own depends on another for identity."""
        return not self.primary_key

    def all_attributes(self) -> Iterator[Attribute]:
        yield from self.primary_key
        yield from self.attributes

    def rect(self) -> Rect:
        """Current rectangle; both position and measured bounds are required."""
        if self.position is None:
            raise GeometryError("entity has no position", subject=self.name)
        if self.bounds is None:
            raise GeometryError("entity has no measured bounds", subject=self.name)
        return Rect(
            x=self.position.x,
            y=self.position.y,
            width=self.bounds.width,
            height=self.bounds.height,
        )


@dataclass(slots=True)
class RelationshipEnd:
    entity: str
    attribute: str


@dataclass(slots=True)
class Relationship:
    """Directed edge derived from a foreign-key attribute (source -> target)."""

    source: RelationshipEnd
    target: RelationshipEnd
    # Optional relationship name shown at the middle of the connector
    label: str | None = None


@dataclass(slots=True)
class Generalization:
    generic: str
    categories: list[str] = field(default_factory=list)
    # Complete (total) generalizations get a double underline
    complete: bool = False
    discriminator: str | None = None


@dataclass(slots=True)
class DomainModel:
    entities: list[Entity] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    generalizations: list[Generalization] = field(default_factory=list)

    def entity(self, name: str) -> Entity | None:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None


# ============================================================================
# Derivations
# ============================================================================


def find_attribute(entity: Entity, name: str) -> Attribute | None:
    """Look up an attribute among the key and non-key attributes."""
    for attr in entity.all_attributes():
        if attr.name == name:
            return attr
    return None


def _resolve_end(model: DomainModel, end: RelationshipEnd) -> tuple[Entity, Attribute]:
    entity = model.entity(end.entity)
    if entity is None:
        raise ConsistencyError(
            f'relationship refers to unknown entity "{end.entity}"',
            entity=end.entity,
        )
    attr = find_attribute(entity, end.attribute)
    if attr is None:
        raise ConsistencyError(
            f'entity "{end.entity}" has no attribute "{end.attribute}"',
            entity=end.entity,
            attribute=end.attribute,
        )
    return entity, attr


def is_identifying(model: DomainModel, rel: Relationship) -> bool:
    """Whether the child's primary key includes the referencing foreign key.

    Recomputed on every call so that changes to primary or foreign keys are
    reflected immediately.
    """
    source = model.entity(rel.source.entity)
    if source is None:
        return False
    for pk in source.primary_key:
        if (
            pk.name == rel.source.attribute
            and pk.fk_target is not None
            and pk.fk_target.entity == rel.target.entity
            and pk.fk_target.attribute == rel.target.attribute
        ):
            return True
    return False


def relationship_cardinality(model: DomainModel, rel: Relationship) -> tuple[bool, bool]:
    """Return (optional, many) read from the source attribute's flags.

    Both ends must resolve; raises ConsistencyError otherwise.
    """
    _, source_attr = _resolve_end(model, rel.source)
    _resolve_end(model, rel.target)
    return source_attr.optional, source_attr.many


# ============================================================================
# Validation
# ============================================================================


def validate_model(model: DomainModel) -> None:
    """Check the structural invariants of a model.

    Raises ErdReferenceError on the first violation.
    """
    names: set[str] = set()
    for entity in model.entities:
        if entity.name in names:
            raise ErdReferenceError(f'duplicate entity "{entity.name}"', token=entity.name)
        names.add(entity.name)

        attr_names: set[str] = set()
        for attr in entity.all_attributes():
            if attr.name in attr_names:
                raise ErdReferenceError(
                    f'duplicate attribute "{attr.name}" in entity "{entity.name}"',
                    token=attr.name,
                )
            attr_names.add(attr.name)

    for rel in model.relationships:
        for end in (rel.source, rel.target):
            entity = model.entity(end.entity)
            if entity is None:
                raise ErdReferenceError(f'unknown entity "{end.entity}"', token=end.entity)
            if find_attribute(entity, end.attribute) is None:
                raise ErdReferenceError(
                    f'entity "{end.entity}" has no attribute "{end.attribute}"',
                    token=f"{end.entity}.{end.attribute}",
                )

    for gen in model.generalizations:
        if gen.generic not in names:
            raise ErdReferenceError(
                f'generalization refers to unknown entity "{gen.generic}"', token=gen.generic
            )
        for category in gen.categories:
            if category not in names:
                raise ErdReferenceError(
                    f'generalization "{gen.generic}" refers to unknown category "{category}"',
                    token=category,
                )
            if category == gen.generic:
                raise ErdReferenceError(
                    f'entity "{category}" cannot be a category of itself', token=category
                )

    cycle = find_generalization_cycle(model)
    if cycle:
        raise ErdReferenceError(
            "generalization cycle: " + " -> ".join(cycle), token=cycle[0]
        )


def find_generalization_cycle(model: DomainModel) -> list[str] | None:
    """Return the entity names along a generic -> category cycle, if any."""
    children: dict[str, list[str]] = {}
    for gen in model.generalizations:
        children.setdefault(gen.generic, []).extend(gen.categories)

    # 0 = unvisited, 1 = on stack, 2 = done
    state: dict[str, int] = {}
    stack: list[str] = []

    def visit(name: str) -> list[str] | None:
        state[name] = 1
        stack.append(name)
        for child in children.get(name, []):
            mark = state.get(child, 0)
            if mark == 1:
                return stack[stack.index(child):] + [child]
            if mark == 0:
                found = visit(child)
                if found:
                    return found
        stack.pop()
        state[name] = 2
        return None

    for name in children:
        if state.get(name, 0) == 0:
            found = visit(name)
            if found:
                return found
    return None
