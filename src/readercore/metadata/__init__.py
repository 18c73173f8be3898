"""
Article metadata from <meta> tags, JSON-LD and the document title.
"""

from .metadata_extractor import ArticleMetadata, MetadataExtractor
from .structured_data_parser import SchemaOrgParser, StructuredDataResult, text_similarity

__all__ = ["ArticleMetadata", "MetadataExtractor", "SchemaOrgParser", "StructuredDataResult", "text_similarity"]
