from __future__ import annotations

# ============================================================================
# Error taxonomy
#
# Parse-time errors (ErdSyntaxError, ErdReferenceError) abort the whole parse.
# Geometry-time errors (GeometryError, ConsistencyError) are raised per
# relationship or generalization category and collected by the redraw pass.
# Parse-time errors are also ValueErrors, so `except ValueError` around
# parse() keeps working.
# ============================================================================


class ErdError(Exception):
    """Base class for every error raised by pretty-erd."""


class ErdSyntaxError(ErdError, ValueError):
    """Malformed block structure or unrecognized line in DSL source."""

    def __init__(self, message: str, line: int | None = None, token: str | None = None) -> None:
        self.line = line
        self.token = token
        super().__init__(_with_location(message, line, token))


class ErdReferenceError(ErdError, ValueError):
    """A name in DSL source does not resolve, or is declared twice."""

    def __init__(self, message: str, line: int | None = None, token: str | None = None) -> None:
        self.line = line
        self.token = token
        super().__init__(_with_location(message, line, token))


class GeometryError(ErdError):
    """A computed coordinate is non-finite, or a required rectangle is missing."""

    def __init__(
        self,
        message: str,
        subject: str | None = None,
        coordinates: tuple[float, ...] | None = None,
    ) -> None:
        self.subject = subject
        self.coordinates = coordinates
        text = message
        if subject:
            text = f"{subject}: {text}"
        if coordinates:
            text += " (" + ", ".join(f"{c:g}" for c in coordinates) + ")"
        super().__init__(text)


class ConsistencyError(ErdError):
    """A relationship names an entity or attribute missing from the model."""

    def __init__(self, message: str, entity: str | None = None, attribute: str | None = None) -> None:
        self.entity = entity
        self.attribute = attribute
        super().__init__(message)


class SessionError(ErdError):
    """A diagram session was driven out of order (e.g. two drags at once)."""


def _with_location(message: str, line: int | None, token: str | None) -> str:
    if line is not None:
        message = f"line {line}: {message}"
    if token:
        message += f' (near "{token}")'
    return message
