"""Vault document store - turns markdown notes into immutable documents."""

import logging
import os
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import yaml

from .errors import ParseError, VaultIOError

logger = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r"^---\n(.*?)\n---\n?(.*)", re.DOTALL)
H1_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
INLINE_TAG_PATTERN = re.compile(r"(?<!\S)#([a-zA-Z][a-zA-Z0-9_/-]*)")

# Frontmatter keys checked, in order, for the note's own date
DATE_FIELDS = ("date", "created", "updated", "modified")
ATTENDEE_FIELDS = ("attendees", "stakeholders")


@dataclass(frozen=True)
class VaultDocument:
    """Snapshot of a single note at index time."""

    path: str
    title: str
    content: str
    tags: frozenset[str] = frozenset()
    modified_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    attendees: tuple[str, ...] = ()
    date: datetime | None = None
    frontmatter: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def reference_date(self) -> datetime:
        """Date used for recency: the note's own date, else its mtime."""
        return self.date or self.modified_at

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "title": self.title,
            "content": self.content,
            "tags": sorted(self.tags),
            "attendees": list(self.attendees),
            "modified": self.modified_at.isoformat(),
            "date": self.date.isoformat() if self.date else None,
            "frontmatter": _json_safe(self.frontmatter),
        }


@dataclass
class NoteSource:
    """Raw note text as read from disk, or the reason it could not be read."""

    path: str
    text: str | None
    mtime: float = 0.0
    error: str | None = None


@dataclass
class ScanResult:
    """Outcome of folding a batch of notes into documents."""

    documents: dict[str, VaultDocument] = field(default_factory=dict)
    errors: list[ParseError] = field(default_factory=list)


def parse_frontmatter(path: str, text: str) -> tuple[dict[str, Any], str]:
    """Split a note into (frontmatter, body).

    Notes without a frontmatter block return an empty dict and the full text.
    A block that is not valid YAML raises ParseError. A block that parses to
    something other than a mapping is treated as part of the body.
    """
    if not text.startswith("---"):
        return {}, text

    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return {}, text

    try:
        data = yaml.safe_load(match.group(1))
    except (yaml.YAMLError, ValueError) as e:
        # Out-of-range timestamps such as 2024-13-45 raise a plain ValueError
        raise ParseError(path, f"invalid frontmatter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        # A thematic break followed by prose, not a metadata block
        logger.debug(f"{path}: leading block is not a mapping, reading it as body text")
        return {}, text

    return data, match.group(2)


def parse_note(path: str, text: str, mtime: float = 0.0) -> VaultDocument:
    """Build a VaultDocument from the raw text of one note."""
    text = text.replace("\r\n", "\n")
    frontmatter, body = parse_frontmatter(path, text)

    title = str(frontmatter.get("title") or "").strip()
    if not title:
        h1_match = H1_PATTERN.search(body)
        title = h1_match.group(1).strip() if h1_match else Path(path).stem

    return VaultDocument(
        path=path,
        title=title,
        content=body,
        tags=frozenset(_extract_tags(body, frontmatter)),
        modified_at=datetime.fromtimestamp(mtime, UTC),
        attendees=tuple(_extract_attendees(frontmatter)),
        date=_extract_date(frontmatter),
        frontmatter=frontmatter,
    )


def build_documents(sources: Iterable[NoteSource]) -> ScanResult:
    """Fold note sources into documents, collecting failures separately."""
    result = ScanResult()

    for source in sources:
        if source.text is None:
            error = ParseError(source.path, source.error or "unreadable")
        else:
            try:
                document = parse_note(source.path, source.text, source.mtime)
            except ParseError as e:
                error = e
            else:
                result.documents[document.path] = document
                continue

        logger.warning(f"Skipping {error.path}: {error.reason}")
        result.errors.append(error)

    return result


class VaultLoader:
    """Reads the markdown notes of a vault from disk."""

    def __init__(
        self,
        vault_path: Path,
        max_files: int = 5000,
        max_file_bytes: int = 1_000_000,
    ) -> None:
        self.vault_path = Path(vault_path)
        self.max_files = max_files
        self.max_file_bytes = max_file_bytes

    def scan(self) -> list[Path]:
        """List the markdown files of the vault, skipping hidden folders."""
        if not self.vault_path.exists():
            raise VaultIOError(str(self.vault_path), "path does not exist")
        if not self.vault_path.is_dir():
            raise VaultIOError(str(self.vault_path), "path is not a directory")

        files: list[Path] = []
        try:
            for root, dirnames, filenames in os.walk(self.vault_path, onerror=self._walk_error):
                # Pruning in place stops os.walk from descending into hidden folders
                dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
                for name in sorted(filenames):
                    if name.startswith(".") or not name.endswith(".md"):
                        continue
                    md_file = Path(root) / name
                    if not md_file.is_file():
                        continue
                    if len(files) >= self.max_files:
                        logger.warning(
                            f"Vault has more than {self.max_files} notes, ignoring the rest"
                        )
                        return sorted(files)
                    files.append(md_file)
        except OSError as e:
            raise VaultIOError(str(self.vault_path), str(e)) from e

        return sorted(files)

    def _walk_error(self, error: OSError) -> None:
        if error.filename and Path(error.filename) == self.vault_path:
            raise error
        logger.warning(f"Skipping unreadable folder {error.filename}: {error.strerror}")

    def iter_sources(self, files: Iterable[Path]) -> Iterator[NoteSource]:
        """Read each file, turning per-file failures into error sources."""
        for md_file in files:
            rel_path = md_file.relative_to(self.vault_path).as_posix()
            try:
                stat = md_file.stat()
                if stat.st_size > self.max_file_bytes:
                    yield NoteSource(
                        rel_path,
                        None,
                        stat.st_mtime,
                        f"file is larger than {self.max_file_bytes} bytes",
                    )
                    continue
                text = md_file.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                yield NoteSource(rel_path, None, error=str(e))
                continue

            yield NoteSource(rel_path, text, stat.st_mtime)

    def load(self) -> ScanResult:
        """Scan and parse the whole vault."""
        return build_documents(self.iter_sources(self.scan()))


def _extract_tags(body: str, frontmatter: dict[str, Any]) -> set[str]:
    """Collect tags from frontmatter and inline #tags."""
    tags = set()

    fm_tags = frontmatter.get("tags") or []
    if isinstance(fm_tags, str):
        fm_tags = re.split(r"[,\s]+", fm_tags)
    if isinstance(fm_tags, list):
        for tag in fm_tags:
            tag = str(tag).strip().lstrip("#")
            if tag:
                tags.add(tag)

    tags.update(INLINE_TAG_PATTERN.findall(body))
    return tags


def _extract_attendees(frontmatter: dict[str, Any]) -> list[str]:
    attendees: list[str] = []
    for key in ATTENDEE_FIELDS:
        value = frontmatter.get(key)
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            continue
        for name in value:
            name = str(name).strip()
            if name and name not in attendees:
                attendees.append(name)
    return attendees


def _extract_date(frontmatter: dict[str, Any]) -> datetime | None:
    """Return the first usable frontmatter date as an aware datetime."""
    for key in DATE_FIELDS:
        value = frontmatter.get(key)
        if not value:
            continue
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        else:
            try:
                parsed = datetime.fromisoformat(str(value).strip())
            except ValueError:
                continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
    return None


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
