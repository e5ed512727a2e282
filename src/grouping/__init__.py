"""
Grouping stage: semantic grouping, role classification, region merging and
document assembly.

- Input: ExtractedDocument (per-page RawLines in source order)
- Output: Document of ContentLines tagged Q/R/I with merged regions
- The classifier only ever sees a dense per-page re-indexed view; its answer
  is validated as a partition and translated back to original line indices
  before any region lookup.
"""

from .assemble import assemble_document, assemble_page, build_content_line, count_roles
from .classifier import ClassifierProvider, OpenAiClassifierProvider
from .classify import classify_document
from .config import ClassifierConfig
from .merge import merge_regions
from .parse import DenseGroup, parse_classifier_response
from .reindex import DenseItem, DensePage, build_dense_page

__all__ = [
    "ClassifierConfig",
    "ClassifierProvider",
    "DenseGroup",
    "DenseItem",
    "DensePage",
    "OpenAiClassifierProvider",
    "assemble_document",
    "assemble_page",
    "build_content_line",
    "build_dense_page",
    "classify_document",
    "count_roles",
    "merge_regions",
    "parse_classifier_response",
]
