from __future__ import annotations

import logging
import re

from .errors import ErdReferenceError, ErdSyntaxError
from .model import (
    Attribute,
    DomainModel,
    Entity,
    FkTarget,
    Generalization,
    Relationship,
    RelationshipEnd,
    find_attribute,
    find_generalization_cycle,
)

logger = logging.getLogger(__name__)

# ============================================================================
# ER DSL parser
#
# Parses entity and generalization blocks into a DomainModel.
#
# Supported syntax:
#   Entity Book {
#     +ISBN: string
#     title: string
#     ?year: number
#     *tags: string
#     category_id: number FK -> Category.id "files under"
#   }
#
#   Generalization Person {
#     Student
#     Employee
#   } complete discriminator=Role
#
#   Entity Tag { +id: number }
#
# Attributes may share a line with the opening or the closing brace.
#
# Attribute markers (any order):
#   +  part of the primary key
#   ?  optional
#   *  multi-valued
#
# Blocks may appear in any order; references are resolved after the whole
# source has been read. Any error aborts the parse.
# ============================================================================

_IDENT = r"\w+"

_ENTITY_HEADER = re.compile(rf"^Entity\s+({_IDENT})(.*)$")
_GENERALIZATION_HEADER = re.compile(rf"^Generalization\s+({_IDENT})(.*)$")

_ATTRIBUTE = re.compile(
    rf"^(?P<markers>[+?*\s]*?)\s*(?P<name>{_IDENT})\s*:\s*(?P<type>.+?)"
    rf"(?:\s+FK\s*->\s*(?P<fk_entity>{_IDENT})\s*\.\s*(?P<fk_attr>{_IDENT})"
    r'(?:\s+"(?P<label>[^"]*)")?)?\s*$'
)

_GEN_TOKEN = re.compile(r'\{|\}|=|,|[^\s{}=,]+')

_MODIFIERS = ("complete", "incomplete", "discriminator")

_BLOCK_START = re.compile(rf"^(?:Entity|Generalization)\s+{_IDENT}")


def parse(source: str) -> DomainModel:
    """Parse DSL source text into a DomainModel.

    Raises ErdSyntaxError for malformed structure and ErdReferenceError for
    unresolved or duplicated names.
    """
    lines: list[tuple[int, str]] = []
    for number, raw in enumerate(source.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("//") or line.startswith("#"):
            continue
        lines.append((number, line))

    model = _Parser(lines).run()
    logger.debug(
        "Parsed %d entities, %d relationships, %d generalizations",
        len(model.entities),
        len(model.relationships),
        len(model.generalizations),
    )
    return model


class _Parser:
    def __init__(self, lines: list[tuple[int, str]]) -> None:
        self.lines = lines
        self.pos = 0
        self.model = DomainModel()
        # Line numbers for reporting unresolved references after the first pass
        self.entity_lines: dict[str, int] = {}
        self.relationship_lines: list[int] = []
        self.generalization_lines: list[int] = []
        # Last generalization block, still accepting trailing modifiers
        self.open_generalization: Generalization | None = None
        self.seen_modifiers: set[str] = set()

    def run(self) -> DomainModel:
        while self.pos < len(self.lines):
            number, line = self.lines[self.pos]
            self.pos += 1

            if re.match(r"^Entity\b", line):
                self.open_generalization = None
                self._parse_entity(number, line)
                continue

            if re.match(r"^Generalization\b", line):
                self._parse_generalization(number, line)
                continue

            first = line.split()[0].split("=")[0]
            if self.open_generalization is not None and first in _MODIFIERS:
                tokens = [(number, m.group(0)) for m in _GEN_TOKEN.finditer(line)]
                self._apply_modifiers(self.open_generalization, tokens)
                continue

            raise ErdSyntaxError("unexpected line outside of a block", number, line.split()[0])

        self._resolve()
        return self.model

    # ------------------------------------------------------------------------
    # Entity blocks
    # ------------------------------------------------------------------------

    def _parse_entity(self, number: int, line: str) -> None:
        match = _ENTITY_HEADER.match(line)
        if not match:
            raise ErdSyntaxError("malformed entity header", number, line)

        name = match.group(1)
        if name in self.entity_lines:
            raise ErdReferenceError(
                f'duplicate entity "{name}" (first declared on line {self.entity_lines[name]})',
                number,
                name,
            )
        self.entity_lines[name] = number
        entity = Entity(name=name)
        self.model.entities.append(entity)

        rest = match.group(2).strip()
        rest_number = number
        if not rest:
            if self.pos >= len(self.lines) or not self.lines[self.pos][1].startswith("{"):
                raise ErdSyntaxError(f'expected "{{" after "{name}"', number, name)
            rest_number, rest = self.lines[self.pos]
            self.pos += 1
        elif not rest.startswith("{"):
            raise ErdSyntaxError(f'expected "{{" after "{name}"', number, rest.split()[0])

        # Text after "{" on the same line is the first attribute line
        first: tuple[int, str] | None = (rest_number, rest[1:].strip())
        while True:
            if first is not None:
                attr_number, attr_line = first
                first = None
            elif self.pos < len(self.lines):
                attr_number, attr_line = self.lines[self.pos]
                self.pos += 1
                if _BLOCK_START.match(attr_line):
                    raise ErdSyntaxError(
                        f'missing closing brace for entity "{name}"',
                        attr_number,
                        attr_line.split()[0],
                    )
            else:
                raise ErdSyntaxError(f'missing closing brace for entity "{name}"', number, name)

            closes = attr_line.endswith("}")
            if closes:
                attr_line = attr_line[:-1].rstrip()
            if attr_line:
                self._parse_attribute(entity, attr_number, attr_line)
            if closes:
                return

    def _expect_open_brace(self, name: str, number: int) -> None:
        if self.pos >= len(self.lines) or self.lines[self.pos][1] != "{":
            raise ErdSyntaxError(f'expected "{{" after "{name}"', number, name)
        self.pos += 1

    def _parse_attribute(self, entity: Entity, number: int, line: str) -> None:
        match = _ATTRIBUTE.match(line)
        if not match:
            raise ErdSyntaxError("unrecognized attribute line", number, line)

        markers = "".join(match.group("markers").split())
        for marker in "+?*":
            if markers.count(marker) > 1:
                raise ErdSyntaxError(f'marker "{marker}" repeated', number, markers)

        attr_type = match.group("type").strip()
        if re.search(r"\bFK\b", attr_type) or "->" in attr_type:
            raise ErdSyntaxError("malformed foreign key reference", number, attr_type)
        if "{" in attr_type or "}" in attr_type:
            raise ErdSyntaxError("unexpected brace in attribute type", number, attr_type)

        name = match.group("name")
        if find_attribute(entity, name) is not None:
            raise ErdReferenceError(
                f'duplicate attribute "{name}" in entity "{entity.name}"', number, name
            )

        attr = Attribute(
            name=name,
            type=attr_type,
            optional="?" in markers,
            many="*" in markers,
        )

        fk_entity = match.group("fk_entity")
        if fk_entity:
            attr.fk_target = FkTarget(entity=fk_entity, attribute=match.group("fk_attr"))
            self.model.relationships.append(
                Relationship(
                    source=RelationshipEnd(entity=entity.name, attribute=name),
                    target=RelationshipEnd(entity=fk_entity, attribute=match.group("fk_attr")),
                    label=match.group("label") or None,
                )
            )
            self.relationship_lines.append(number)

        if "+" in markers:
            entity.primary_key.append(attr)
        else:
            entity.attributes.append(attr)

    # ------------------------------------------------------------------------
    # Generalization blocks
    # ------------------------------------------------------------------------

    def _parse_generalization(self, number: int, line: str) -> None:
        match = _GENERALIZATION_HEADER.match(line)
        if not match:
            raise ErdSyntaxError("malformed generalization header", number, line)

        gen = Generalization(generic=match.group(1))
        self.model.generalizations.append(gen)
        self.generalization_lines.append(number)
        self.open_generalization = gen
        self.seen_modifiers = set()

        tokens = [(number, m.group(0)) for m in _GEN_TOKEN.finditer(match.group(2))]
        if not tokens:
            self._expect_open_brace(gen.generic, number)
            tokens = [(number, "{")]
        if tokens[0][1] != "{":
            raise ErdSyntaxError(f'expected "{{" after "{gen.generic}"', number, tokens[0][1])
        tokens = tokens[1:]

        # Collect category names until the closing brace, possibly across lines
        while True:
            while tokens:
                token_number, token = tokens.pop(0)
                if token == "}":
                    self._apply_modifiers(gen, tokens)
                    return
                if token == ",":
                    continue
                if token in ("{", "=") or not re.fullmatch(_IDENT, token):
                    raise ErdSyntaxError("unexpected token in generalization", token_number, token)
                if token in gen.categories:
                    logger.warning(
                        'Category "%s" listed twice in generalization "%s" (line %d)',
                        token,
                        gen.generic,
                        token_number,
                    )
                    continue
                gen.categories.append(token)

            if self.pos >= len(self.lines):
                raise ErdSyntaxError(
                    f'missing closing brace for generalization "{gen.generic}"', number, gen.generic
                )
            next_number, next_line = self.lines[self.pos]
            if _BLOCK_START.match(next_line):
                raise ErdSyntaxError(
                    f'missing closing brace for generalization "{gen.generic}"',
                    next_number,
                    next_line.split()[0],
                )
            self.pos += 1
            tokens = [(next_number, m.group(0)) for m in _GEN_TOKEN.finditer(next_line)]

    def _apply_modifiers(self, gen: Generalization, tokens: list[tuple[int, str]]) -> None:
        """Apply complete/incomplete and discriminator=Name after a closing brace."""
        i = 0
        while i < len(tokens):
            number, token = tokens[i]
            if token in ("complete", "incomplete"):
                if "completeness" in self.seen_modifiers:
                    raise ErdSyntaxError("completeness given twice", number, token)
                self.seen_modifiers.add("completeness")
                gen.complete = token == "complete"
                i += 1
                continue
            if token == "discriminator":
                if "discriminator" in self.seen_modifiers:
                    raise ErdSyntaxError("discriminator given twice", number, token)
                if (
                    i + 2 >= len(tokens)
                    or tokens[i + 1][1] != "="
                    or not re.fullmatch(_IDENT, tokens[i + 2][1])
                ):
                    raise ErdSyntaxError('expected "discriminator=Name"', number, token)
                self.seen_modifiers.add("discriminator")
                gen.discriminator = tokens[i + 2][1]
                i += 3
                continue
            raise ErdSyntaxError("unknown generalization modifier", number, token)

    # ------------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------------

    def _resolve(self) -> None:
        model = self.model

        for rel, number in zip(model.relationships, self.relationship_lines):
            target = model.entity(rel.target.entity)
            if target is None:
                raise ErdReferenceError(
                    f'foreign key refers to undeclared entity "{rel.target.entity}"',
                    number,
                    rel.target.entity,
                )
            if find_attribute(target, rel.target.attribute) is None:
                raise ErdReferenceError(
                    f'entity "{target.name}" has no attribute "{rel.target.attribute}"',
                    number,
                    f"{rel.target.entity}.{rel.target.attribute}",
                )

        for gen, number in zip(model.generalizations, self.generalization_lines):
            if gen.generic not in self.entity_lines:
                raise ErdReferenceError(
                    f'generalization refers to undeclared entity "{gen.generic}"',
                    number,
                    gen.generic,
                )
            for category in gen.categories:
                if category not in self.entity_lines:
                    raise ErdReferenceError(
                        f'generalization "{gen.generic}" refers to undeclared category "{category}"',
                        number,
                        category,
                    )
                if category == gen.generic:
                    raise ErdReferenceError(
                        f'entity "{category}" cannot be a category of itself', number, category
                    )

        cycle = find_generalization_cycle(model)
        if cycle:
            number = next(
                n
                for gen, n in zip(model.generalizations, self.generalization_lines)
                if gen.generic == cycle[0]
            )
            raise ErdReferenceError("generalization cycle: " + " -> ".join(cycle), number, cycle[0])
