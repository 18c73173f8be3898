"""
Assembly of the final ``Article`` value.
"""

from __future__ import annotations

from typing import Optional

from bs4 import Tag

from readercore.dom.tree import inner_text
from readercore.metadata import ArticleMetadata

from .gate import text_projection
from .models import Article, Direction
from .scorer import ScoreTable

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def best_heading(content: Tag, scores: Optional[ScoreTable] = None) -> Optional[str]:
    """Highest-scoring heading in the content; by rank when none was scored."""
    headings = [h for h in content.find_all(HEADING_TAGS) if inner_text(h)]
    if not headings:
        return None
    if scores is not None:
        scored = [(scores.get(h), i) for i, h in enumerate(headings)]
        scored = [(s, i) for s, i in scored if s is not None]
        if scored:
            _, i = max(scored, key=lambda item: (item[0], -item[1]))
            return inner_text(headings[i])
    ranked = sorted(enumerate(headings), key=lambda item: (HEADING_TAGS.index(item[1].name), item[0]))
    return inner_text(ranked[0][1])


def first_paragraph(content: Tag) -> Optional[str]:
    for paragraph in content.find_all("p"):
        text = inner_text(paragraph)
        if text:
            return text
    return None


class ArticleBuilder:
    def build(
        self,
        content: Tag,
        metadata: ArticleMetadata,
        direction: Optional[Direction] = None,
        byline: Optional[str] = None,
        scores: Optional[ScoreTable] = None,
    ) -> Article:
        text_content = text_projection(content)
        return Article(
            title=metadata.title or best_heading(content, scores) or "",
            content=str(content),
            text_content=text_content,
            length=len(text_content),
            byline=metadata.byline or byline,
            direction=direction,
            excerpt=metadata.excerpt or first_paragraph(content),
            site_name=metadata.site_name,
            language=metadata.language,
            published_time=metadata.published_time,
        )
