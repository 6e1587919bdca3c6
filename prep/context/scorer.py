"""Relevance scoring - combines weighted signals into one score per note."""

import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .documents import VaultDocument
from .index import tokenize, unique_tokens
from .weights import DEFAULT_RELEVANCE_WEIGHTS, RelevanceWeights

logger = logging.getLogger(__name__)

# Only the start of long notes is compared against the query
CONTENT_SAMPLE_CHARS = 10_000

DEFAULT_HALF_LIFE_DAYS = 30.0

WORD_PATTERN = re.compile(r"[^\W_]+")


@dataclass(frozen=True)
class Query:
    """What we know about a meeting when looking for context."""

    meeting_title: str = ""
    attendee_names: tuple[str, ...] = ()
    topic_keywords: tuple[str, ...] = ()
    extra_terms: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept any sequence from callers but keep the value hashable
        object.__setattr__(self, "attendee_names", _clean(self.attendee_names))
        object.__setattr__(self, "topic_keywords", _clean(self.topic_keywords))
        object.__setattr__(self, "extra_terms", _clean(self.extra_terms))

    @property
    def title_tokens(self) -> list[str]:
        return unique_tokens([self.meeting_title])

    @property
    def content_terms(self) -> list[str]:
        """Query words compared against note content, with repetitions."""
        terms = tokenize(self.meeting_title)
        for text in self.topic_keywords + self.extra_terms:
            terms.extend(tokenize(text))
        return terms

    @property
    def search_tokens(self) -> list[str]:
        """Distinct tokens used to look up candidates in the index."""
        return unique_tokens(
            [self.meeting_title, *self.attendee_names, *self.topic_keywords, *self.extra_terms]
        )

    def is_empty(self) -> bool:
        return not self.search_tokens


@dataclass(frozen=True)
class Signals:
    """Raw signal values for one document, each in [0, 1]."""

    title: float = 0.0
    content: float = 0.0
    tags: float = 0.0
    attendees: float = 0.0
    flex_search_bonus: float = 0.0
    recency_bonus: float = 0.0

    def weighted_total(self, weights: RelevanceWeights) -> float:
        return (
            self.title * weights.title
            + self.content * weights.content
            + self.tags * weights.tags
            + self.attendees * weights.attendees
            + self.flex_search_bonus * weights.flex_search_bonus
            + self.recency_bonus * weights.recency_bonus
        )

    def matched_fields(self) -> list[str]:
        candidates = (
            ("title", self.title),
            ("content", self.content),
            ("tags", self.tags),
            ("attendees", self.attendees),
        )
        return [name for name, value in candidates if value > 0]


@dataclass
class ContextMatch:
    """A vault note found relevant to a meeting."""

    document: VaultDocument
    relevance_score: float
    matched_fields: list[str] = field(default_factory=list)
    snippets: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "file": self.document.to_dict(),
            "relevanceScore": self.relevance_score,
            "matchedFields": list(self.matched_fields),
            "snippets": list(self.snippets),
        }


def term_counts(text: str) -> Counter:
    """Term frequencies of the sampled start of a text."""
    return Counter(tokenize(text[:CONTENT_SAMPLE_CHARS]))


def cosine_similarity(left: Counter, right: Counter) -> float:
    """Cosine similarity of two term-frequency vectors."""
    if not left or not right:
        return 0.0
    if len(left) > len(right):
        left, right = right, left
    dot = sum(count * right[term] for term, count in left.items() if term in right)
    if not dot:
        return 0.0
    norm = math.sqrt(sum(c * c for c in left.values())) * math.sqrt(
        sum(c * c for c in right.values())
    )
    return dot / norm


def recency_factor(
    when: datetime,
    now: datetime | None = None,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
) -> float:
    """Exponential decay: 2^(-age_days / half_life), 1.0 for zero or negative age."""
    if now is None:
        now = datetime.now(UTC)

    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    age_days = (now - when).total_seconds() / 86400.0
    if age_days <= 0:
        return 1.0
    if half_life_days <= 0:
        return 0.0
    return math.pow(2, -age_days / half_life_days)


def _words(text: str) -> tuple[str, ...]:
    return tuple(WORD_PATTERN.findall(text.lower()))


def _clean(values) -> tuple[str, ...]:
    if isinstance(values, str):
        values = [values]
    return tuple(str(v).strip() for v in values or () if v and str(v).strip())


class RelevanceScorer:
    """Scores documents against a query with a fixed weights snapshot."""

    def __init__(
        self,
        weights: RelevanceWeights = DEFAULT_RELEVANCE_WEIGHTS,
        half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
        now: datetime | None = None,
    ) -> None:
        self.weights = weights
        self.half_life_days = half_life_days
        self.now = now or datetime.now(UTC)

    def signals(
        self,
        document: VaultDocument,
        query: Query,
        hit_strength: float = 0.0,
        content_counts: Counter | None = None,
    ) -> Signals:
        """Compute the raw signals for a document."""
        if content_counts is None:
            content_counts = term_counts(document.content)

        return Signals(
            title=self.title_signal(document, query),
            content=cosine_similarity(Counter(query.content_terms), content_counts),
            tags=self.tag_signal(document, query),
            attendees=self.attendee_signal(document, query),
            flex_search_bonus=min(max(hit_strength, 0.0), 1.0),
            recency_bonus=recency_factor(document.reference_date, self.now, self.half_life_days),
        )

    def score(
        self,
        document: VaultDocument,
        query: Query,
        hit_strength: float = 0.0,
        content_counts: Counter | None = None,
    ) -> tuple[float, Signals]:
        signals = self.signals(document, query, hit_strength, content_counts)
        score = signals.weighted_total(self.weights)
        logger.debug(f"Scored {document.path}: {score:.3f} {signals}")
        return score, signals

    def title_signal(self, document: VaultDocument, query: Query) -> float:
        """Fraction of meeting title words found in the note title."""
        query_tokens = query.title_tokens
        if not query_tokens:
            return 0.0
        title_tokens = set(tokenize(document.title))
        overlap = sum(1 for token in query_tokens if token in title_tokens)
        return overlap / len(query_tokens)

    def tag_signal(self, document: VaultDocument, query: Query) -> float:
        """Fraction of topic keywords matching one of the note's tags."""
        topics = [words for words in map(_words, query.topic_keywords) if words]
        if not topics or not document.tags:
            return 0.0
        tag_words = [set(_words(tag)) for tag in document.tags]
        matched = sum(1 for topic in topics if any(set(topic) <= tag for tag in tag_words))
        return matched / len(topics)

    def attendee_signal(self, document: VaultDocument, query: Query) -> float:
        """1.0 when any attendee is named in the note or its attendee list."""
        if not query.attendee_names:
            return 0.0
        content = document.content.lower()
        listed = {name.lower() for name in document.attendees}
        for name in query.attendee_names:
            name = name.lower()
            if name in listed or name in content:
                return 1.0
        return 0.0
