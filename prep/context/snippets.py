"""Snippet extraction - short previews around matched query terms."""

import re
from collections.abc import Iterable

# A sentence runs up to terminal punctuation or the end of a line
SENTENCE_PATTERN = re.compile(r"[^.!?\n]+[.!?]*")

DEFAULT_MAX_SNIPPETS = 3
DEFAULT_MAX_LENGTH = 200
ELLIPSIS = "..."


def clean_markdown(text: str) -> str:
    """Strip the markdown syntax that makes a preview hard to read."""
    text = re.sub(r"!?\[([^\]]+)\]\([^)]+\)", r"\1", text)  # Links and images
    text = re.sub(r"\[\[([^\]|]+)\|([^\]]+)\]\]", r"\2", text)  # Aliased wikilinks
    text = re.sub(r"\[\[([^\]]+)\]\]", r"\1", text)  # Wikilinks
    text = re.sub(r"`([^`]+)`", r"\1", text)  # Inline code
    text = re.sub(r"(?<!\w)(\*\*|__|\*|_|~~)(\S(?:.*?\S)?)\1(?!\w)", r"\2", text)  # Emphasis
    text = re.sub(r"^\s*(#{1,6}\s+|>\s*|[-*+]\s+(\[[ xX]\]\s+)?|\d+\.\s+)", "", text)
    return re.sub(r"\s+", " ", text).strip()


def _term_pattern(term: str) -> re.Pattern:
    # Terms match at word starts so "auth" finds "authentication" but not "oauth"
    return re.compile(r"(?<!\w)" + re.escape(term), re.IGNORECASE)


def _window(text: str, start: int, end: int, max_length: int) -> str:
    """Fixed-width window centred on text[start:end]."""
    padding = max(0, (max_length - (end - start)) // 2)
    left = max(0, start - padding)
    right = min(len(text), end + padding)

    snippet = re.sub(r"\s+", " ", text[left:right]).strip()
    if left > 0:
        snippet = ELLIPSIS + snippet
    if right < len(text):
        snippet = snippet + ELLIPSIS
    return snippet


def visible_text(content: str) -> str:
    """Content as a reader sees it, cleaned line by line."""
    return "\n".join(clean_markdown(line) for line in content.splitlines())


def extract_snippets(
    content: str,
    terms: Iterable[str],
    max_snippets: int = DEFAULT_MAX_SNIPPETS,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> list[str]:
    """Excerpts around the first occurrence of each term, in document order.

    Terms are looked up in the cleaned text, so every excerpt shows the term it
    was made for. Each excerpt is the sentence (or line) holding the match.
    Sentences longer than max_length fall back to a character window around
    the match. A term that only occurs inside markup, such as a link target,
    gets a window over the raw content instead.
    """
    if not content or max_snippets <= 0:
        return []

    wanted = list(dict.fromkeys(t.strip().lower() for t in terms if t and t.strip()))
    if not wanted:
        return []

    text = visible_text(content)
    sentences = [(m.start(), m.end()) for m in SENTENCE_PATTERN.finditer(text)]

    # position -> snippet; markup-only matches sort after the visible text
    found: dict[int, str] = {}
    for term in wanted:
        pattern = _term_pattern(term)
        match = pattern.search(text)
        if not match:
            raw = pattern.search(content)
            if raw:
                found[len(text) + raw.start()] = _window(
                    content, raw.start(), raw.end(), max_length
                )
            continue

        span = next((s for s in sentences if s[0] <= match.start() < s[1]), None)
        if span is not None:
            if span[0] in found:
                continue
            sentence = text[span[0] : span[1]].strip()
            if sentence and len(sentence) <= max_length and match.end() <= span[1]:
                found[span[0]] = sentence
                continue

        found[match.start()] = _window(text, match.start(), match.end(), max_length)

    return [found[position] for position in sorted(found)][:max_snippets]
