"""Meeting-level context retrieval used by the brief generator."""

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .errors import IndexNotReadyError
from .indexer import DEFAULT_MAX_RESULTS, DEFAULT_MIN_RELEVANCE_SCORE, ContextIndexer
from .scorer import ContextMatch, Query
from .weights import DEFAULT_RELEVANCE_WEIGHTS, RelevanceWeights, WeightsStorage

logger = logging.getLogger(__name__)

# Lines from conference invites after which a description is boilerplate
INVITE_MARKERS = re.compile(
    r"hi there|is inviting you|join zoom|join with google meet|microsoft teams|"
    r"meeting url|meeting id|password|passcode|telephone|dial-in",
    re.IGNORECASE,
)

MAX_ATTENDEE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 200


@dataclass
class Meeting:
    """A calendar meeting as imported by the app."""

    title: str
    description: str = ""
    attendees: list[str] = field(default_factory=list)
    location: str = ""
    start: datetime | None = None
    topics: list[str] = field(default_factory=list)


@dataclass
class ContextConfiguration:
    """How much context to retrieve for a meeting."""

    enabled: bool = True
    max_results: int = DEFAULT_MAX_RESULTS
    min_relevance_score: float = DEFAULT_MIN_RELEVANCE_SCORE
    include_snippets: bool = True
    snippet_length: int = 200


@dataclass
class ContextRetrievalResult:
    """Matches for one meeting plus timing information."""

    matches: list[ContextMatch] = field(default_factory=list)
    total_matches: int = 0
    search_time_ms: float = 0.0
    retrieved_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "totalMatches": self.total_matches,
            "searchTime": self.search_time_ms,
            "retrievedAt": self.retrieved_at.isoformat(),
        }


def parse_attendee(attendee: str) -> tuple[str, str]:
    """Split 'Name <email>' style attendee strings into (name, email)."""
    attendee = attendee.strip()
    if len(attendee) > MAX_ATTENDEE_LENGTH:
        return attendee[:50], ""

    angle = attendee.find("<")
    if angle != -1 and attendee.endswith(">"):
        return attendee[:angle].strip().strip('"'), attendee[angle + 1 : -1].strip()
    if "@" in attendee:
        return "", attendee
    return attendee, ""


def email_domain(email: str) -> str:
    """Company part of an email domain ('sarah@acme.com' -> 'acme')."""
    match = re.search(r"@([^.>\s]+)", email)
    return match.group(1) if match else ""


def clean_description(description: str) -> str:
    """Keep the human-written start of a meeting description."""
    lines = []
    for line in description.splitlines():
        line = line.strip()
        if INVITE_MARKERS.search(line):
            break
        if len(line) > 5 and not line.startswith(("[", "<", "http")):
            lines.append(line)

    text = re.sub(r"\[.*?\]", "", " ".join(lines))
    text = re.sub(r"https?://\S+", "", text)
    return re.sub(r"\s+", " ", text).strip()[:MAX_DESCRIPTION_LENGTH]


def clean_location(location: str) -> str:
    """Physical locations are useful search terms, meeting links are not."""
    location = location.strip()
    if "http" in location or "zoom.us" in location or "meet.google" in location:
        return ""
    return location


class ContextRetrievalService:
    """Finds vault notes for a meeting with the user's saved weights."""

    def __init__(
        self,
        indexer: ContextIndexer | None = None,
        weights_storage: WeightsStorage | None = None,
        config: ContextConfiguration | None = None,
    ) -> None:
        self.indexer = indexer
        self.weights_storage = weights_storage
        self.config = config or ContextConfiguration()

    def set_indexer(self, indexer: ContextIndexer) -> None:
        self.indexer = indexer

    def is_indexed(self) -> bool:
        return self.indexer is not None and self.indexer.is_indexed()

    def get_indexed_file_count(self) -> int:
        return self.indexer.get_stats().total_documents if self.indexer else 0

    def get_weights(self) -> RelevanceWeights:
        """Current saved weights, or the defaults when they cannot be loaded."""
        if self.weights_storage is None:
            return DEFAULT_RELEVANCE_WEIGHTS
        try:
            return self.weights_storage.get()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load relevance weights, using defaults: {e}")
            return DEFAULT_RELEVANCE_WEIGHTS

    def build_query(self, meeting: Meeting) -> Query:
        """Turn a calendar meeting into a context query.

        Attendee names come from 'Name <email>' strings. Email domains, the
        human-written part of the description and a physical location become
        extra search terms.
        """
        names: list[str] = []
        extra_terms: list[str] = []

        for attendee in meeting.attendees:
            name, email = parse_attendee(attendee)
            if name and "@" not in name and name not in names:
                names.append(name)
            domain = email_domain(email or name)
            if domain and domain not in extra_terms:
                extra_terms.append(domain)

        if meeting.description:
            description = clean_description(meeting.description)
            if description:
                extra_terms.append(description)

        if meeting.location:
            location = clean_location(meeting.location)
            if location:
                extra_terms.append(location)

        return Query(
            meeting_title=meeting.title or "",
            attendee_names=tuple(names),
            topic_keywords=tuple(meeting.topics),
            extra_terms=tuple(extra_terms),
        )

    def find_relevant_context(self, meeting: Meeting) -> ContextRetrievalResult:
        """Ranked notes for a meeting; failures yield an empty result."""
        start = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - start) * 1000

        if self.indexer is None or not self.config.enabled:
            return ContextRetrievalResult(search_time_ms=elapsed())

        try:
            query = self.build_query(meeting)
            logger.debug(f"Context query for '{meeting.title}': {query}")

            matches = self.indexer.rank(
                query,
                self.get_weights(),
                min_score=self.config.min_relevance_score,
            )
            total = len(matches)
            matches = matches[: self.config.max_results]

            if self.config.include_snippets:
                self.indexer.add_snippets(matches, query, self.config.snippet_length)
        except IndexNotReadyError as e:
            logger.warning(f"Context search skipped: {e}")
            return ContextRetrievalResult(search_time_ms=elapsed())
        except Exception as e:
            logger.error(f"Context retrieval failed: {e}")
            return ContextRetrievalResult(search_time_ms=elapsed())

        return ContextRetrievalResult(
            matches=matches,
            total_matches=total,
            search_time_ms=elapsed(),
        )
