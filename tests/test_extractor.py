"""
End-to-end tests for the Readability extraction engine.
"""

from __future__ import annotations

import threading
import time

import pytest

from readercore import (
    Article,
    Direction,
    EngineEvaluationError,
    ErrorKind,
    ExtractionError,
    HtmlParseError,
    InvalidOptions,
    Readability,
    ReadabilityCheckFailed,
    ReadabilityOptions,
)
from readercore.observability import METRICS

from tests.helpers.documents import ASIDE_TEXT, NAV_TEXT, PARAGRAPHS, article_html, make_soup
from tests.helpers.metric_delta import histogram_observes, metric_delta


@pytest.mark.integration
class TestArticleExtraction:
    """A regular article page with navigation and a sponsored aside."""

    def test_keeps_paragraphs_and_drops_chrome(self, engine, sample_html):
        article = engine.extract(sample_html)

        for paragraph in PARAGRAPHS:
            assert paragraph in article.text_content
        assert NAV_TEXT not in article.text_content
        assert ASIDE_TEXT not in article.text_content
        assert article.content.startswith("<div>")

    def test_title_and_excerpt(self, engine, sample_html):
        article = engine.extract(sample_html)

        assert article.title == "Life in the Valley"
        assert article.excerpt == PARAGRAPHS[0]

    def test_length_matches_text_content(self, engine, sample_html):
        article = engine.extract(sample_html)

        assert article.length == len(article.text_content)
        assert article.length >= 140
        assert "<" not in article.text_content

    def test_text_content_is_projection_of_content(self, engine, sample_html):
        article = engine.extract(sample_html)

        assert make_soup(article.content).get_text().strip() == article.text_content

    def test_to_dict(self, engine, sample_html):
        data = engine.extract(sample_html).to_dict()

        assert data["title"] == "Life in the Valley"
        assert data["length"] == len(data["text_content"])
        assert data["direction"] is None

    def test_accepts_bytes(self, engine, sample_html):
        article = engine.extract(sample_html.encode("utf-8"))
        assert PARAGRAPHS[1] in article.text_content

    def test_parse_entry_points_agree(self, engine, sample_html):
        plain = engine.parse(sample_html)
        with_url = engine.parse_with_url(sample_html, None)
        with_options = engine.parse_with_options(sample_html, None, None)

        assert plain == with_url == with_options


@pytest.mark.integration
class TestShortDocuments:
    """Documents below the readability threshold."""

    def test_short_body_rejected_with_default_threshold(self, engine):
        with pytest.raises(ReadabilityCheckFailed) as exc_info:
            engine.extract("<html><body>Hi</body></html>")
        assert exc_info.value.kind is ErrorKind.READABILITY_CHECK

    def test_short_body_accepted_with_low_threshold(self, engine):
        article = engine.extract("<html><body>Hi</body></html>", options={"char_threshold": 1})

        assert article.text_content == "Hi"
        assert article.length == 2

    def test_zero_threshold_accepts_empty_body(self, engine):
        article = engine.extract("<html><body><div></div></body></html>", options={"char_threshold": 0})
        assert article.length == 0

    def test_acceptance_is_monotonic_in_threshold(self, engine, sample_html):
        accepted = []
        for threshold in [0, 10, 100, 300, 500, 700, 1000, 5000]:
            try:
                article = engine.extract(sample_html, options={"char_threshold": threshold})
            except ReadabilityCheckFailed:
                accepted.append(False)
            else:
                assert article.length >= threshold
                accepted.append(True)

        assert accepted[0] is True
        assert accepted[-1] is False
        first_rejection = accepted.index(False)
        assert not any(accepted[first_rejection:])


@pytest.mark.integration
class TestAttemptFallback:
    """Later attempts relax the heuristics when the first one comes up short."""

    def test_content_inside_unlikely_container_is_recovered(self, engine):
        html = (
            "<html><body><div class=\"sidebar\">"
            f"<p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p>"
            "</div></body></html>"
        )
        article = engine.extract(html)

        assert PARAGRAPHS[0] in article.text_content
        assert PARAGRAPHS[1] in article.text_content


@pytest.mark.integration
class TestBaseUrl:
    """Base URL validation and link resolution."""

    def test_javascript_base_url_rejected(self, engine, sample_html):
        with pytest.raises(InvalidOptions) as exc_info:
            engine.extract(sample_html, base_url="javascript:alert(1)")
        assert "Invalid base URL scheme" in str(exc_info.value)

    def test_data_base_url_rejected(self, engine, sample_html):
        with pytest.raises(InvalidOptions):
            engine.extract(sample_html, base_url="data:text/html,hello")

    def test_non_http_base_url_rejected(self, engine, sample_html):
        with pytest.raises(InvalidOptions):
            engine.extract(sample_html, base_url="ftp://example.com/file")

    def test_http_base_url_accepted(self, engine, sample_html):
        article = engine.extract(sample_html, base_url="https://example.com/a")
        assert article.length > 0

    def test_relative_links_resolved(self, engine):
        paragraphs = list(PARAGRAPHS)
        paragraphs[0] = paragraphs[0] + ' See the <a href="/about">about page</a> for more.'
        paragraphs[1] = paragraphs[1] + ' <img src="img/market.png" alt="Market">'
        article = engine.extract(article_html(paragraphs), base_url="https://example.com/posts/1")

        assert 'href="https://example.com/about"' in article.content
        assert 'src="https://example.com/posts/img/market.png"' in article.content

    def test_document_base_href_applies(self, engine):
        paragraphs = list(PARAGRAPHS)
        paragraphs[0] = paragraphs[0] + ' See the <a href="/about">about page</a> for more.'
        html = article_html(paragraphs, head='<title>Life in the Valley</title><base href="https://cdn.example.org/">')
        article = engine.extract(html, base_url="https://example.com/posts/1")

        assert 'href="https://cdn.example.org/about"' in article.content

    def test_javascript_links_unwrapped(self, engine):
        paragraphs = list(PARAGRAPHS)
        paragraphs[2] = paragraphs[2] + ' <a href="javascript:void(0)">Read more</a>.'
        article = engine.extract(article_html(paragraphs))

        assert "javascript:" not in article.content
        assert "Read more" in article.text_content


@pytest.mark.integration
class TestInvalidInput:
    """Inputs that never produce an article."""

    @pytest.mark.parametrize("html", ["", "just some text without markup", "   "])
    def test_documents_without_elements(self, engine, html):
        with pytest.raises(HtmlParseError):
            engine.extract(html)

    def test_non_text_input(self, engine):
        with pytest.raises(HtmlParseError):
            engine.extract(12345)  # type: ignore[arg-type]

    def test_element_cap(self, engine, sample_html):
        with pytest.raises(HtmlParseError) as exc_info:
            engine.extract(sample_html, options={"max_elems_to_parse": 5})
        assert "more than 5 elements found" in str(exc_info.value)

    def test_element_cap_not_reached(self, engine, sample_html):
        article = engine.extract(sample_html, options={"max_elems_to_parse": 1000})
        assert article.length > 0

    def test_invalid_option_values(self, engine, sample_html):
        with pytest.raises(InvalidOptions):
            engine.extract(sample_html, options={"char_threshold": -1})
        with pytest.raises(InvalidOptions):
            engine.extract(sample_html, options={"nb_top_candidates": 0})

    def test_unsupported_options_type(self, engine, sample_html):
        with pytest.raises(InvalidOptions):
            engine.extract(sample_html, options="fast")  # type: ignore[arg-type]


@pytest.mark.integration
class TestClassHandling:
    """Class attributes are stripped unless kept or preserved."""

    ATTRS = [' class="intro highlight"', ' class="lead"', ' class="highlight note"']

    def test_classes_stripped_by_default(self, engine):
        article = engine.extract(article_html(paragraph_attrs=self.ATTRS))
        assert "class=" not in article.content

    def test_preserved_classes_survive(self, engine):
        html = article_html(paragraph_attrs=self.ATTRS)
        article = engine.extract(html, options=ReadabilityOptions(classes_to_preserve=["highlight"]))

        assert article.content.count('class="highlight"') == 2
        assert "intro" not in article.content
        assert "lead" not in article.content
        assert "note" not in article.content

    def test_keep_classes(self, engine):
        html = article_html(paragraph_attrs=self.ATTRS)
        article = engine.extract(html, options={"keep_classes": True})

        assert 'class="intro highlight"' in article.content
        assert 'class="lead"' in article.content


@pytest.mark.integration
class TestMetadataIntegration:
    """Metadata and byline reach the article."""

    def test_byline_from_document(self, engine):
        paragraphs = ["By Jane Doe"] + PARAGRAPHS
        attrs = [' class="byline"', "", "", ""]
        article = engine.extract(article_html(paragraphs, paragraph_attrs=attrs))

        assert article.byline == "By Jane Doe"
        assert "Jane Doe" not in article.text_content

    def test_meta_author_wins_over_document_byline(self, engine):
        paragraphs = ["By Jane Doe"] + PARAGRAPHS
        attrs = [' class="byline"', "", "", ""]
        head = '<title>Life in the Valley</title><meta name="author" content="Meta Author">'
        article = engine.extract(article_html(paragraphs, head=head, paragraph_attrs=attrs))

        assert article.byline == "Meta Author"

    def test_open_graph_fields(self, engine):
        head = (
            "<title>Ignored</title>"
            '<meta property="og:title" content="Valley Life">'
            '<meta property="og:site_name" content="Valley Times">'
            '<meta property="og:description" content="A day by the river.">'
            '<meta property="og:locale" content="en_GB">'
        )
        article = engine.extract(article_html(head=head))

        assert article.title == "Valley Life"
        assert article.site_name == "Valley Times"
        assert article.excerpt == "A day by the river."
        assert article.language == "en-GB"

    def test_rtl_direction(self, engine):
        html = article_html().replace("<html>", '<html dir="rtl">')
        article = engine.extract(html)
        assert article.direction is Direction.RTL


@pytest.mark.integration
class TestEngineBehaviour:
    """Determinism, concurrency guard and error mapping."""

    def test_deterministic(self, sample_html):
        first = Readability().extract(sample_html)
        second = Readability().extract(sample_html)
        assert first == second

    def test_engine_is_reusable(self, engine, sample_html):
        first = engine.extract(sample_html)
        engine.extract("<html><body>Hi</body></html>", options={"char_threshold": 1})
        assert engine.extract(sample_html) == first

    def test_concurrent_use_rejected(self, engine, sample_html):
        assert engine._busy.acquire(blocking=False)
        try:
            with pytest.raises(EngineEvaluationError):
                engine.extract(sample_html)
        finally:
            engine._busy.release()
        assert isinstance(engine.extract(sample_html), Article)

    def test_separate_engines_run_in_parallel(self, sample_html):
        results = []

        def run():
            results.append(Readability().extract(sample_html))

        threads = [threading.Thread(target=run) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 4
        assert all(r == results[0] for r in results)

    def test_unexpected_error_wrapped(self, engine, sample_html, monkeypatch):
        def boom(*args, **kwargs):
            raise ValueError("scoring exploded")

        monkeypatch.setattr(engine.scorer, "score", boom)
        with pytest.raises(ExtractionError) as exc_info:
            engine.extract(sample_html)
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert "scoring exploded" in str(exc_info.value)

    def test_recursion_error_mapped_to_engine_error(self, engine, sample_html, monkeypatch):
        def too_deep(*args, **kwargs):
            raise RecursionError("maximum recursion depth exceeded")

        monkeypatch.setattr(engine.scorer, "score", too_deep)
        with pytest.raises(EngineEvaluationError):
            engine.extract(sample_html)

    def test_lock_released_after_failure(self, engine, sample_html):
        with pytest.raises(InvalidOptions):
            engine.extract(sample_html, base_url="javascript:x")
        assert engine.extract(sample_html).length > 0

    def test_invalid_scoring_config(self):
        with pytest.raises(EngineEvaluationError):
            Readability({"level_dividers": []})

    def test_invalid_pattern(self):
        with pytest.raises(EngineEvaluationError) as exc_info:
            Readability({"positive_patterns": ["(unclosed"]})
        assert "positive" in str(exc_info.value)

    def test_scoring_config_mapping(self, sample_html):
        engine = Readability({"min_text_length": 10})
        assert engine.config.min_text_length == 10
        assert engine.extract(sample_html).length > 0


@pytest.mark.slow
class TestDeepDocuments:
    """Nesting deeper than the interpreter recursion limit."""

    def test_deeply_nested_document(self, engine):
        depth = 1100
        text = " ".join(PARAGRAPHS)
        html = "<html><body>" + "<div>" * depth + f"<p>{text}</p>" + "</div>" * depth + "</body></html>"

        article = engine.extract(html)
        assert article.text_content == text

    def test_nested_paragraph_chain_stays_fast(self, engine):
        depth = 2000
        sentence = "The river bends here, and the path follows it through the reeds toward the old mill house."
        html = "<html><body>" + f"<div><p>{sentence}</p>" * depth + "</div>" * depth + "</body></html>"

        start = time.perf_counter()
        article = engine.extract(html)
        elapsed = time.perf_counter() - start

        assert sentence in article.text_content
        assert elapsed < 15.0


@pytest.mark.integration
class TestMetrics:
    """Extraction outcomes are recorded in Prometheus metrics."""

    def test_success_counted(self, engine, sample_html):
        with metric_delta(METRICS["extractions_total"].labels(outcome="success")):
            with histogram_observes(METRICS["extraction_duration_seconds"]):
                engine.extract(sample_html)

    def test_failure_counted_by_kind(self, engine):
        counter = METRICS["extractions_total"].labels(outcome=ErrorKind.READABILITY_CHECK.value)
        with metric_delta(counter):
            with pytest.raises(ReadabilityCheckFailed):
                engine.extract("<html><body>Hi</body></html>")

    def test_every_attempt_counted(self, engine):
        with metric_delta(METRICS["extraction_attempts_total"].labels(accepted="false"), 4):
            with pytest.raises(ReadabilityCheckFailed):
                engine.extract("<html><body>Hi</body></html>")
