"""Context indexer - indexes a vault and finds notes relevant to a meeting."""

import logging
import threading
from collections import Counter
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from .documents import NoteSource, VaultDocument, VaultLoader, build_documents
from .errors import IndexNotReadyError, ParseError, VaultIOError
from .index import FullTextIndex
from .scorer import (
    DEFAULT_HALF_LIFE_DAYS,
    ContextMatch,
    Query,
    RelevanceScorer,
    term_counts,
)
from .snippets import DEFAULT_MAX_LENGTH, DEFAULT_MAX_SNIPPETS, extract_snippets
from .weights import DEFAULT_RELEVANCE_WEIGHTS, RelevanceWeights

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 10
DEFAULT_MIN_RELEVANCE_SCORE = 0.15


class IndexingStage(str, Enum):
    """Stage of a vault indexing run."""

    SCANNING = "scanning"
    INDEXING = "indexing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class IndexingProgress:
    """Progress of a vault indexing run, reported to the caller."""

    stage: IndexingStage
    current: int = 0
    total: int = 0
    current_file: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        data = {"stage": self.stage.value, "current": self.current, "total": self.total}
        if self.current_file is not None:
            data["currentFile"] = self.current_file
        if self.error is not None:
            data["error"] = self.error
        return data


ProgressCallback = Callable[[IndexingProgress], None]


@dataclass(frozen=True)
class IndexStats:
    """Summary of the active index."""

    total_documents: int = 0
    skipped_files: int = 0
    indexed_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "totalDocuments": self.total_documents,
            "skippedFiles": self.skipped_files,
            "indexedAt": self.indexed_at.isoformat() if self.indexed_at else None,
        }


@dataclass
class IndexSnapshot:
    """Everything one query needs, built once per indexing run."""

    vault_path: str
    documents: dict[str, VaultDocument]
    index: FullTextIndex
    content_counts: dict[str, Counter] = field(default_factory=dict)
    errors: list[ParseError] = field(default_factory=list)
    indexed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def build(
        cls,
        vault_path: str,
        documents: dict[str, VaultDocument],
        errors: list[ParseError] | None = None,
    ) -> "IndexSnapshot":
        return cls(
            vault_path=vault_path,
            documents=documents,
            index=FullTextIndex.build(documents.values()),
            content_counts={path: term_counts(doc.content) for path, doc in documents.items()},
            errors=list(errors or []),
        )

    @property
    def stats(self) -> IndexStats:
        return IndexStats(
            total_documents=len(self.documents),
            skipped_files=len(self.errors),
            indexed_at=self.indexed_at,
        )


class ContextIndexer:
    """Indexes a vault and ranks its notes against meetings.

    Queries run against the snapshot produced by the last successful
    index_vault call. A new snapshot is built completely before it replaces
    the active one, so a failed or in-progress re-index never affects queries.
    """

    def __init__(
        self,
        weights: RelevanceWeights = DEFAULT_RELEVANCE_WEIGHTS,
        min_relevance_score: float = DEFAULT_MIN_RELEVANCE_SCORE,
        max_results: int = DEFAULT_MAX_RESULTS,
        max_snippets: int = DEFAULT_MAX_SNIPPETS,
        snippet_length: int = DEFAULT_MAX_LENGTH,
        half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
        max_files: int = 5000,
        max_file_bytes: int = 1_000_000,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.weights = weights
        self.min_relevance_score = min_relevance_score
        self.max_results = max_results
        self.max_snippets = max_snippets
        self.snippet_length = snippet_length
        self.half_life_days = half_life_days
        self.max_files = max_files
        self.max_file_bytes = max_file_bytes
        self._clock = clock or (lambda: datetime.now(UTC))
        self._snapshot: IndexSnapshot | None = None
        self._swap_lock = threading.Lock()
        self.progress: IndexingProgress | None = None

    def _report(self, progress: IndexingProgress, on_progress: ProgressCallback | None) -> None:
        self.progress = progress
        if on_progress:
            on_progress(progress)

    def index_vault(
        self,
        vault_path: str | Path,
        on_progress: ProgressCallback | None = None,
    ) -> IndexStats:
        """Scan a vault and make its notes searchable.

        Raises VaultIOError when the vault itself cannot be read. Notes that
        cannot be read or parsed are logged and skipped.
        """
        vault_path = Path(vault_path)
        logger.info(f"Indexing vault: {vault_path}")
        self._report(IndexingProgress(IndexingStage.SCANNING), on_progress)

        loader = VaultLoader(vault_path, self.max_files, self.max_file_bytes)
        try:
            files = loader.scan()
        except VaultIOError as e:
            logger.error(f"Vault indexing failed: {e}")
            self._report(IndexingProgress(IndexingStage.ERROR, error=str(e)), on_progress)
            raise

        total = len(files)
        sources = self._track(loader.iter_sources(files), total, on_progress)
        snapshot = self.build_snapshot(str(vault_path), sources)

        with self._swap_lock:
            self._snapshot = snapshot

        self._report(IndexingProgress(IndexingStage.COMPLETE, total, total), on_progress)
        stats = snapshot.stats
        logger.info(
            f"Indexed {stats.total_documents} documents ({stats.skipped_files} skipped)"
        )
        return stats

    def index_sources(self, vault_path: str, sources: Iterable[NoteSource]) -> IndexStats:
        """Index notes that were read elsewhere (no filesystem access)."""
        snapshot = self.build_snapshot(vault_path, sources)
        with self._swap_lock:
            self._snapshot = snapshot
        return snapshot.stats

    def build_snapshot(self, vault_path: str, sources: Iterable[NoteSource]) -> IndexSnapshot:
        result = build_documents(sources)
        return IndexSnapshot.build(vault_path, result.documents, result.errors)

    def _track(
        self,
        sources: Iterator[NoteSource],
        total: int,
        on_progress: ProgressCallback | None,
    ) -> Iterator[NoteSource]:
        for i, source in enumerate(sources, start=1):
            self._report(
                IndexingProgress(IndexingStage.INDEXING, i, total, current_file=source.path),
                on_progress,
            )
            yield source

    def is_indexed(self) -> bool:
        return self._snapshot is not None

    def require_snapshot(self) -> IndexSnapshot:
        """Return the active snapshot, raising IndexNotReadyError if none."""
        snapshot = self._snapshot
        if snapshot is None:
            raise IndexNotReadyError("No vault has been indexed yet")
        return snapshot

    def get_document(self, path: str) -> VaultDocument:
        return self.require_snapshot().documents[path]

    def get_stats(self) -> IndexStats:
        snapshot = self._snapshot
        return snapshot.stats if snapshot else IndexStats()

    def rank(
        self,
        query: Query,
        weights: RelevanceWeights | None = None,
        min_score: float | None = None,
    ) -> list[ContextMatch]:
        """Score every candidate for a query, without snippets or a result limit.

        Raises IndexNotReadyError before any vault has been indexed.
        """
        snapshot = self.require_snapshot()
        if query.is_empty():
            return []

        threshold = self.min_relevance_score if min_score is None else min_score
        scorer = RelevanceScorer(weights or self.weights, self.half_life_days, self._clock())
        matches: list[ContextMatch] = []

        for hit in snapshot.index.search(query.search_tokens):
            document = snapshot.documents[hit.path]
            score, signals = scorer.score(
                document, query, hit.strength, snapshot.content_counts.get(hit.path)
            )
            if score < threshold:
                continue
            matches.append(ContextMatch(document, score, signals.matched_fields()))

        matches.sort(
            key=lambda m: (
                -m.relevance_score,
                -m.document.reference_date.timestamp(),
                m.document.path,
            )
        )
        return matches

    def add_snippets(
        self,
        matches: Iterable[ContextMatch],
        query: Query,
        snippet_length: int | None = None,
    ) -> None:
        """Fill in preview snippets for the matched query terms."""
        terms = [*query.topic_keywords, *query.attendee_names, *query.search_tokens]
        for match in matches:
            match.snippets = extract_snippets(
                match.document.content,
                terms,
                self.max_snippets,
                snippet_length or self.snippet_length,
            )

    def find_relevant_context(
        self,
        meeting_title: str,
        attendee_names: Sequence[str] = (),
        topic_keywords: Sequence[str] = (),
        weights: RelevanceWeights | None = None,
        *,
        extra_terms: Sequence[str] = (),
        limit: int | None = None,
    ) -> list[ContextMatch]:
        """Rank indexed notes against a meeting.

        Results are sorted by relevance score (highest first), then by note
        date (newest first), then by path. Notes scoring below
        min_relevance_score are left out. Returns [] before any vault has
        been indexed.
        """
        query = Query(
            meeting_title=meeting_title or "",
            attendee_names=attendee_names,
            topic_keywords=topic_keywords,
            extra_terms=extra_terms,
        )

        try:
            matches = self.rank(query, weights)
        except IndexNotReadyError as e:
            logger.warning(f"Context search skipped: {e}")
            return []

        matches = matches[: self.max_results if limit is None else limit]
        self.add_snippets(matches, query)

        logger.info(f"Found {len(matches)} relevant documents for '{meeting_title}'")
        return matches
