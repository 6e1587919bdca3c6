"""Inverted index over vault documents with forward (prefix) tokenization."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from .documents import VaultDocument

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"[^\W_]+")

# Fields in the order they are reported back to callers
INDEXED_FIELDS = ("title", "content", "tags", "attendees")

MIN_TOKEN_LENGTH = 2
MIN_PREFIX_LENGTH = 3

STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has",
        "have", "in", "is", "it", "its", "of", "on", "or", "that", "the", "this",
        "to", "was", "were", "will", "with",
    }
)


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens, without stop words or one-letter tokens."""
    return [
        token
        for token in TOKEN_PATTERN.findall(text.lower())
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS
    ]


def unique_tokens(texts: Iterable[str]) -> list[str]:
    """Tokens of several texts, de-duplicated in first-seen order."""
    seen: dict[str, None] = {}
    for text in texts:
        for token in tokenize(text):
            seen.setdefault(token)
    return list(seen)


def _prefixes(token: str) -> list[str]:
    if len(token) <= MIN_PREFIX_LENGTH:
        return [token]
    return [token[:end] for end in range(MIN_PREFIX_LENGTH, len(token) + 1)]


@dataclass(frozen=True)
class IndexHit:
    """A candidate document returned by an index lookup."""

    path: str
    strength: float
    fields: tuple[str, ...]


class FullTextIndex:
    """Maps token prefixes to the documents and fields containing them."""

    def __init__(self) -> None:
        self._postings: dict[str, dict[str, set[str]]] = {}
        self._size = 0

    @classmethod
    def build(cls, documents: Iterable[VaultDocument]) -> "FullTextIndex":
        index = cls()
        for document in documents:
            index._add(document)
        logger.info(f"Built full-text index: {index._size} documents, {len(index)} terms")
        return index

    def __len__(self) -> int:
        return len(self._postings)

    @property
    def document_count(self) -> int:
        return self._size

    def _add(self, document: VaultDocument) -> None:
        field_texts = {
            "title": [document.title],
            "content": [document.content],
            "tags": sorted(document.tags),
            "attendees": list(document.attendees),
        }

        for field_name, texts in field_texts.items():
            terms: set[str] = set()
            for text in texts:
                for token in tokenize(text):
                    terms.update(_prefixes(token))
            for term in terms:
                self._postings.setdefault(term, {}).setdefault(document.path, set()).add(
                    field_name
                )

        self._size += 1

    def lookup(self, token: str) -> dict[str, set[str]]:
        """Documents (and the fields) containing a word starting with token."""
        return self._postings.get(token.lower(), {})

    def search(self, tokens: Iterable[str], limit: int | None = None) -> list[IndexHit]:
        """Find candidate documents for a set of query tokens.

        Strength is the fraction of distinct query tokens found in the
        document, in any field. An empty or unmatched query returns [].
        """
        query = list(dict.fromkeys(token.lower() for token in tokens if token))
        if not query:
            return []

        hit_counts: dict[str, int] = {}
        hit_fields: dict[str, set[str]] = {}

        for token in query:
            for path, fields in self.lookup(token).items():
                hit_counts[path] = hit_counts.get(path, 0) + 1
                hit_fields.setdefault(path, set()).update(fields)

        hits = [
            IndexHit(
                path=path,
                strength=count / len(query),
                fields=tuple(f for f in INDEXED_FIELDS if f in hit_fields[path]),
            )
            for path, count in hit_counts.items()
        ]
        hits.sort(key=lambda h: (-h.strength, h.path))

        if limit is not None:
            hits = hits[:limit]
        return hits
