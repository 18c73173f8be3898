"""
Unit tests for document preparation and pruning.
"""

from __future__ import annotations

import pytest

from readercore.dom.tree import DocumentTree
from readercore.extractor.models import ExtractionFlags
from readercore.extractor.preprocessor import Preprocessor

FULL = ExtractionFlags.attempts()[0]


@pytest.fixture
def preprocessor(patterns, scoring_config) -> Preprocessor:
    return Preprocessor(patterns, scoring_config)


def _prepared(preprocessor: Preprocessor, body: str) -> DocumentTree:
    tree = DocumentTree.parse(f"<html><head><title>T</title></head><body>{body}</body></html>")
    preprocessor.prepare(tree)
    return tree


@pytest.mark.unit
class TestPrepare:
    def test_noise_removed(self, preprocessor):
        tree = _prepared(
            preprocessor,
            "<script>var x = 1;</script><style>p {}</style><noscript>enable js</noscript>"
            "<!-- comment --><p>Kept</p>",
        )
        html = str(tree.soup)

        for fragment in ("var x", "p {}", "enable js", "comment", "<title>"):
            assert fragment not in html
        assert "<p>Kept</p>" in html

    def test_font_becomes_span(self, preprocessor):
        tree = _prepared(preprocessor, '<p><font color="red">red</font></p>')
        assert tree.soup.find("font") is None
        assert tree.soup.find("span").get_text() == "red"

    def test_br_runs_become_paragraphs(self, preprocessor):
        tree = _prepared(preprocessor, "<div>First line<br><br>Second line</div>")

        assert tree.soup.find("br") is None
        assert tree.soup.find("p").get_text() == "Second line"
        assert tree.soup.div.contents[0] == "First line"

    def test_single_br_kept(self, preprocessor):
        tree = _prepared(preprocessor, "<div>First line<br>Second line</div>")
        assert tree.soup.find("br") is not None
        assert tree.soup.find("p") is None

    def test_empty_forms_removed(self, preprocessor):
        tree = _prepared(preprocessor, "<form> </form><nav></nav><form><img src='a.png'></form>")

        assert tree.soup.find("nav") is None
        assert len(tree.soup.find_all("form")) == 1


@pytest.mark.unit
class TestPrune:
    def test_hidden_nodes_removed(self, preprocessor):
        tree = _prepared(
            preprocessor,
            '<div style="display: none">a</div><p hidden>b</p><p aria-hidden="true">c</p><p>visible</p>',
        )
        preprocessor.prune(tree, FULL)

        assert tree.body.get_text() == "visible"

    def test_unlikely_candidates_removed(self, preprocessor):
        tree = _prepared(
            preprocessor,
            '<div class="sidebar"><p>side</p></div><nav><p>nav</p></nav><div role="dialog"><p>dialog</p></div>'
            '<div class="sidebar article"><p>main</p></div>',
        )
        preprocessor.prune(tree, FULL)

        assert tree.body.get_text() == "main"

    def test_unlikely_kept_when_flag_off(self, preprocessor):
        tree = _prepared(preprocessor, '<div class="sidebar"><p>side</p><p>more</p></div>')
        preprocessor.prune(tree, ExtractionFlags.NONE)

        assert "side" in tree.body.get_text()

    def test_unlikely_inside_table_kept(self, preprocessor):
        tree = _prepared(preprocessor, '<table><tr><td><div class="comment"><p>cell</p></div></td></tr></table>')
        preprocessor.prune(tree, FULL)

        assert "cell" in tree.body.get_text()

    def test_byline_captured_and_removed(self, preprocessor):
        tree = _prepared(preprocessor, '<p class="byline">By Jane Doe</p><p>Body</p>')
        result = preprocessor.prune(tree, FULL, capture_byline=True)

        assert result.byline == "By Jane Doe"
        assert "Jane" not in tree.body.get_text()

    def test_byline_left_alone_when_not_requested(self, preprocessor):
        tree = _prepared(preprocessor, '<p class="byline">By Jane Doe</p>')
        result = preprocessor.prune(tree, FULL)

        assert result.byline is None
        assert "Jane" in tree.body.get_text()

    def test_empty_containers_removed(self, preprocessor):
        tree = _prepared(preprocessor, "<div><br></div><section> </section><h2></h2><p>text</p>")
        preprocessor.prune(tree, FULL)

        assert [t.name for t in tree.body.find_all(True)] == ["p"]

    def test_elements_to_score_in_document_order(self, preprocessor):
        tree = _prepared(preprocessor, "<section><h2>Head</h2><p>one</p></section><pre>code</pre><ul><li>x</li></ul>")
        result = preprocessor.prune(tree, FULL)

        assert [e.name for e in result.elements_to_score] == ["section", "h2", "p", "pre"]

    def test_div_with_only_inline_content_becomes_paragraph(self, preprocessor):
        tree = _prepared(preprocessor, "<div>Just some inline <b>text</b></div>")
        result = preprocessor.prune(tree, FULL)

        assert tree.body.find("div") is None
        assert tree.body.p.get_text() == "Just some inline text"
        assert result.elements_to_score == [tree.body.p]

    def test_div_wrapping_single_paragraph_replaced(self, preprocessor):
        tree = _prepared(preprocessor, '<div id="wrap"><p>inner</p></div>')
        result = preprocessor.prune(tree, FULL)

        assert tree.body.find("div") is None
        assert result.elements_to_score[0] is tree.body.p

    def test_phrasing_runs_wrapped(self, preprocessor):
        tree = _prepared(preprocessor, "<div>loose text<p>para</p>more loose</div>")
        preprocessor.prune(tree, FULL)

        div = tree.body.div
        assert [c.name for c in div.contents] == ["p", "p", "p"]
        assert div.contents[0].get_text() == "loose text"
        assert div.contents[2].get_text() == "more loose"

    def test_body_itself_never_pruned(self, preprocessor):
        tree = DocumentTree.parse('<html><body class="sidebar"><p>text</p></body></html>')
        preprocessor.prepare(tree)
        preprocessor.prune(tree, FULL)

        assert tree.body.name == "body"
        assert tree.body.p is not None
