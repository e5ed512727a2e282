"""
Request orchestration.

One call processes one stored PDF end to end and reports a machine-readable
result. Only the CLI reads environment variables; everything below it takes
explicit configuration.
"""

from .artifacts import load_document, serialize_document
from .config import PipelineConfig
from .contracts import ParseDocumentResult, ParseRequest
from .indexing import IndexingConfig, SearchIndexClient
from .module import run_parse_document

__all__ = [
    "IndexingConfig",
    "ParseDocumentResult",
    "ParseRequest",
    "PipelineConfig",
    "SearchIndexClient",
    "load_document",
    "run_parse_document",
    "serialize_document",
]
