"""
readercore - Readable article extraction from untrusted HTML.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config, ReadabilityOptions, ScoringConfig
from .exceptions import (
    EngineEvaluationError,
    ErrorKind,
    ExtractionError,
    HtmlParseError,
    InvalidOptions,
    ReadabilityCheckFailed,
    ReadabilityError,
)
from .extractor import Article, Direction, Readability

__all__ = [
    "__version__",
    "Article",
    "Config",
    "Direction",
    "EngineEvaluationError",
    "ErrorKind",
    "ExtractionError",
    "HtmlParseError",
    "InvalidOptions",
    "Readability",
    "ReadabilityCheckFailed",
    "ReadabilityError",
    "ReadabilityOptions",
    "ScoringConfig",
]
