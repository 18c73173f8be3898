"""
Error types raised by the extraction engine.

Every failure leaving the engine is a ``ReadabilityError`` subclass tagged with
an ``ErrorKind``. Callers can match on the class or on ``error.kind``.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    HTML_PARSE = "HtmlParseError"
    READABILITY_CHECK = "ReadabilityCheckFailed"
    EXTRACTION = "ExtractionError"
    ENGINE_EVALUATION = "EngineEvaluationError"
    INVALID_OPTIONS = "InvalidOptions"


class ReadabilityError(Exception):
    """Base class for all extraction failures."""

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class HtmlParseError(ReadabilityError):
    """The input could not be turned into a document tree."""

    kind = ErrorKind.HTML_PARSE

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to parse HTML: {detail}")
        self.detail = detail


class ReadabilityCheckFailed(ReadabilityError):
    """The extracted content is too short to be considered readable."""

    kind = ErrorKind.READABILITY_CHECK

    def __init__(self) -> None:
        super().__init__("Content failed readability check")


class ExtractionError(ReadabilityError):
    """Unexpected failure inside one of the pipeline stages."""

    kind = ErrorKind.EXTRACTION

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to extract readable content: {detail}")
        self.detail = detail


class EngineEvaluationError(ReadabilityError):
    """The engine could not be constructed or evaluated."""

    kind = ErrorKind.ENGINE_EVALUATION

    def __init__(self, context: str, source: BaseException | None = None) -> None:
        super().__init__(f"Failed to evaluate extraction engine: {context}")
        self.context = context
        self.source = source


class InvalidOptions(ReadabilityError):
    """Caller-supplied options or base URL were rejected."""

    kind = ErrorKind.INVALID_OPTIONS

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid options: {detail}")
        self.detail = detail


__all__ = [
    "ErrorKind",
    "ReadabilityError",
    "HtmlParseError",
    "ReadabilityCheckFailed",
    "ExtractionError",
    "EngineEvaluationError",
    "InvalidOptions",
]
