"""
readercore Content Extraction Module

Pipeline stages, in order:
1. Preprocessor: strips scripts, styles and comments, prunes hidden and unlikely nodes
2. NodeScorer: scores paragraph-like nodes and propagates to container ancestors
3. CandidateSelector: picks the article root
4. ContentAssembler: merges qualifying siblings of the root into one container
5. Sanitizer: removes unwanted elements and attributes until a fixpoint
6. ReadabilityGate: minimum-length acceptance
7. ArticleBuilder: the final ``Article``
"""

from .engine import Readability
from .gate import GateState, ReadabilityGate
from .models import Article, Direction, ExtractionFlags

__all__ = [
    "Readability",
    "Article",
    "Direction",
    "ExtractionFlags",
    "GateState",
    "ReadabilityGate",
]
