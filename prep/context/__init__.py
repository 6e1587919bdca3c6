"""Context retrieval - finds vault notes relevant to a meeting."""

from .documents import NoteSource, VaultDocument, VaultLoader, build_documents, parse_note
from .errors import ContextError, IndexNotReadyError, ParseError, VaultIOError
from .index import FullTextIndex, IndexHit, tokenize
from .indexer import ContextIndexer, IndexingProgress, IndexingStage, IndexStats
from .scorer import ContextMatch, Query, RelevanceScorer
from .service import (
    ContextConfiguration,
    ContextRetrievalResult,
    ContextRetrievalService,
    Meeting,
)
from .snippets import extract_snippets
from .weights import DEFAULT_RELEVANCE_WEIGHTS, RelevanceWeights, WeightsStorage

__all__ = [
    "ContextConfiguration",
    "ContextError",
    "ContextIndexer",
    "ContextMatch",
    "ContextRetrievalResult",
    "ContextRetrievalService",
    "DEFAULT_RELEVANCE_WEIGHTS",
    "FullTextIndex",
    "IndexHit",
    "IndexNotReadyError",
    "IndexStats",
    "IndexingProgress",
    "IndexingStage",
    "Meeting",
    "NoteSource",
    "ParseError",
    "Query",
    "RelevanceScorer",
    "RelevanceWeights",
    "VaultDocument",
    "VaultIOError",
    "VaultLoader",
    "WeightsStorage",
    "build_documents",
    "extract_snippets",
    "parse_note",
    "tokenize",
]
