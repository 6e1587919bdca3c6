"""Shared test fixtures."""

import os
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Fixed "now" so recency scores do not depend on when tests run
NOW = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)


SAMPLE_NOTES = {
    "Meetings/Sarah Johnson Product Strategy.md": """---
title: Meeting with Sarah Johnson - Product Strategy
tags: [product-strategy, meetings]
attendees: [Sarah Johnson]
date: 2024-03-01
---
# Meeting with Sarah Johnson

Discussed the product strategy for Q2. Sarah wants the roadmap to focus on enterprise customers.

## Action items
- Draft the updated roadmap by Friday.
""",
    "Projects/Product Roadmap.md": """---
tags: [roadmap, product]
date: 2024-02-20
---
# Product Roadmap

The roadmap lists Q2 priorities: billing, onboarding and reporting.
Reviewed with [[Sarah Johnson]] last month.
""",
    "Engineering/Authentication Architecture.md": """---
title: Authentication Architecture
tags: [authentication, security]
attendees: [Mike Chen]
date: 2024-01-15
---
The login flow uses OAuth with refresh tokens. Mike Chen owns the authentication service.

Security review is planned before launch.
""",
    "Design/Design System.md": """---
tags: [design-system, ui]
stakeholders: Alex Rodriguez
date: 2023-11-02
---
# Design System

Alex Rodriguez leads the component library. Buttons and forms come first.
""",
    "Groceries.md": "# Groceries\n\nBuy milk, eggs and bread.\n",
}


def write_vault(vault: Path, notes: dict[str, str]) -> None:
    for rel_path, text in notes.items():
        note = vault / rel_path
        note.parent.mkdir(parents=True, exist_ok=True)
        note.write_text(text, encoding="utf-8")
        mtime = datetime(2024, 1, 1, tzinfo=UTC).timestamp()
        os.utime(note, (mtime, mtime))


@pytest.fixture
def tmp_vault(tmp_path: Path) -> Path:
    """Create a temporary vault directory with sample meeting notes."""
    vault = tmp_path / "vault"
    vault.mkdir()
    write_vault(vault, SAMPLE_NOTES)

    # Obsidian settings live in a hidden folder and must be ignored
    hidden = vault / ".obsidian"
    hidden.mkdir()
    (hidden / "workspace.md").write_text("Sarah Johnson product strategy roadmap")

    return vault


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def indexer(tmp_vault: Path, clock):
    """A context indexer over the sample vault."""
    from prep.context import ContextIndexer

    context_indexer = ContextIndexer(clock=clock)
    context_indexer.index_vault(tmp_vault)
    return context_indexer
