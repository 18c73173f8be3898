"""
Readability extraction engine.

One ``Readability`` instance compiles its pattern tables once and can then
serve any number of sequential extraction calls. Each call re-parses the input
for every attempt, so nothing but the compiled configuration outlives a call.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

import structlog
from bs4 import Tag
from pydantic import ValidationError

from readercore.config import ResolvedOptions, ScoringConfig
from readercore.dom.tree import DocumentTree
from readercore.exceptions import (
    EngineEvaluationError,
    ExtractionError,
    HtmlParseError,
    ReadabilityCheckFailed,
    ReadabilityError,
)
from readercore.metadata import MetadataExtractor
from readercore.observability import histogram, increment
from readercore.validation import OptionsInput, resolve_options, validate_base_url

from .assembler import ContentAssembler
from .builder import ArticleBuilder
from .cleaner import Sanitizer
from .gate import ReadabilityGate
from .models import Article, Direction, ExtractionFlags
from .patterns import PatternTable
from .preprocessor import Preprocessor
from .scorer import NodeScorer, ScoreTable
from .selector import CandidateSelector

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class AttemptResult:
    content: Tag
    direction: Optional[Direction]
    byline: Optional[str]
    scores: ScoreTable


class Readability:
    """Extracts the main readable content of HTML documents."""

    def __init__(self, config: Union[ScoringConfig, Mapping[str, Any], None] = None) -> None:
        if config is None:
            config = ScoringConfig()
        elif not isinstance(config, ScoringConfig):
            try:
                config = ScoringConfig.model_validate(dict(config))
            except (TypeError, ValueError, ValidationError) as e:
                raise EngineEvaluationError("invalid scoring configuration", e) from e
        self.config = config
        self.patterns = PatternTable.from_config(config)

        self.metadata_extractor = MetadataExtractor()
        self.preprocessor = Preprocessor(self.patterns, config)
        self.scorer = NodeScorer(self.patterns, config)
        self.selector = CandidateSelector(self.scorer, config)
        self.assembler = ContentAssembler(config)
        self.sanitizer = Sanitizer(config)
        self.builder = ArticleBuilder()

        self._busy = threading.Lock()
        self.logger = logger.bind(component="readability")
        self.logger.debug("Extraction engine initialized", tags_to_score=len(config.tags_to_score))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, html: str) -> Article:
        return self.extract(html)

    def parse_with_url(self, html: str, base_url: Optional[str]) -> Article:
        return self.extract(html, base_url=base_url)

    def parse_with_options(self, html: str, base_url: Optional[str], options: OptionsInput) -> Article:
        return self.extract(html, base_url=base_url, options=options)

    def extract(self, html: str, base_url: Optional[str] = None, options: OptionsInput = None) -> Article:
        """Extract the article from ``html``.

        Raises a ``ReadabilityError`` subclass on every failure path; no
        partial article is ever returned.
        """
        if not self._busy.acquire(blocking=False):
            raise EngineEvaluationError("engine is already running an extraction on another thread")

        start = time.perf_counter()
        try:
            article = self._extract(html, base_url, options)
        except ReadabilityError as e:
            increment("extractions_total", labels={"outcome": e.kind.value})
            self.logger.info("Extraction failed", kind=e.kind.value, error=str(e))
            raise
        except (RecursionError, MemoryError) as e:
            increment("extractions_total", labels={"outcome": EngineEvaluationError.kind.value})
            self.logger.error("Extraction exhausted interpreter resources", error=type(e).__name__)
            raise EngineEvaluationError("extraction exhausted interpreter resources", e) from e
        except Exception as e:
            increment("extractions_total", labels={"outcome": ExtractionError.kind.value})
            self.logger.exception("Unexpected extraction failure")
            raise ExtractionError(str(e) or type(e).__name__) from e
        finally:
            self._busy.release()
            histogram("extraction_duration_seconds", time.perf_counter() - start)

        increment("extractions_total", labels={"outcome": "success"})
        histogram("content_length_chars", article.length)
        return article

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _extract(self, html: str, base_url: Optional[str], options: OptionsInput) -> Article:
        base = validate_base_url(base_url)
        resolved = resolve_options(options)
        if isinstance(html, bytes):
            html = html.decode("utf-8", errors="replace")
        if not isinstance(html, str):
            raise HtmlParseError(f"expected text input, got {type(html).__name__}")

        tree = DocumentTree.parse(html, resolved.max_elems_to_parse)
        metadata = self.metadata_extractor.extract(tree, disable_jsonld=resolved.disable_jsonld)
        document_base = tree.base_href

        for attempt, flags in enumerate(ExtractionFlags.attempts()):
            if attempt:
                tree = DocumentTree.parse(html, resolved.max_elems_to_parse)
            result = self._attempt(tree, flags, resolved, base, document_base, metadata.byline is None)

            gate = ReadabilityGate(resolved.char_threshold)
            gate.evaluate(result.content)
            increment("extraction_attempts_total", labels={"accepted": str(gate.accepted).lower()})
            self.logger.debug(
                "Extraction attempt finished",
                attempt=attempt,
                flags=str(flags),
                length=gate.length,
                state=gate.state.value,
            )
            if gate.accepted:
                return self.builder.build(result.content, metadata, result.direction, result.byline, result.scores)

        raise ReadabilityCheckFailed()

    def _attempt(
        self,
        tree: DocumentTree,
        flags: ExtractionFlags,
        options: ResolvedOptions,
        base_url: Optional[str],
        document_base: Optional[str],
        capture_byline: bool,
    ) -> AttemptResult:
        self.preprocessor.prepare(tree)
        pruned = self.preprocessor.prune(tree, flags, capture_byline=capture_byline)
        table = self.scorer.score(tree, pruned.elements_to_score, flags)
        selection = self.selector.select(tree, table, options, flags)
        assembled = self.assembler.assemble(tree, selection, table, options)
        self.sanitizer.sanitize(
            assembled.root,
            options,
            base_url=base_url,
            clean_conditionally=ExtractionFlags.CLEAN_CONDITIONALLY in flags,
            document_base=document_base,
        )
        return AttemptResult(
            content=assembled.root,
            direction=assembled.direction,
            byline=pruned.byline,
            scores=table,
        )
