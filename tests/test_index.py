"""Tests for the full-text index."""

from prep.context.documents import parse_note
from prep.context.index import FullTextIndex, IndexHit, tokenize, unique_tokens


def make_index() -> FullTextIndex:
    return FullTextIndex.build(
        [
            parse_note(
                "auth.md",
                "---\ntitle: Authentication Architecture\ntags: [security]\n"
                "attendees: [Mike Chen]\n---\nThe login flow uses OAuth.",
            ),
            parse_note("design.md", "# Design System\n\nComponents and buttons. #ui"),
            parse_note("groceries.md", "Buy milk and eggs."),
        ]
    )


class TestTokenize:
    """Tests for tokenize."""

    def test_lowercases_and_splits(self):
        assert tokenize("Product-Strategy Meeting!") == ["product", "strategy", "meeting"]

    def test_drops_stop_words_and_single_letters(self):
        assert tokenize("A review of the Q2 plan") == ["review", "q2", "plan"]

    def test_underscores_split_words(self):
        assert tokenize("snake_case") == ["snake", "case"]

    def test_unique_tokens_keeps_first_order(self):
        assert unique_tokens(["Roadmap review", "review the roadmap"]) == ["roadmap", "review"]


class TestFullTextIndex:
    """Tests for FullTextIndex."""

    def test_document_count(self):
        index = make_index()
        assert index.document_count == 3
        assert len(index) > 0

    def test_exact_token_match(self):
        hits = make_index().search(["oauth"])
        assert [h.path for h in hits] == ["auth.md"]
        assert hits[0].fields == ("content",)

    def test_prefix_match(self):
        hits = make_index().search(["auth"])
        assert [h.path for h in hits] == ["auth.md"]
        assert "title" in hits[0].fields

    def test_case_insensitive(self):
        hits = make_index().search(["DESIGN"])
        assert [h.path for h in hits] == ["design.md"]

    def test_tag_and_attendee_fields(self):
        hits = make_index().search(["security", "mike"])
        assert hits == [IndexHit("auth.md", 1.0, ("tags", "attendees"))]

    def test_strength_is_fraction_of_tokens(self):
        hits = make_index().search(["login", "components", "nothing"])
        strengths = {h.path: h.strength for h in hits}
        assert strengths == {"auth.md": 1 / 3, "design.md": 1 / 3}

    def test_sorted_by_strength_then_path(self):
        hits = make_index().search(["design", "components", "milk"])
        assert [h.path for h in hits] == ["design.md", "groceries.md"]

    def test_no_matches(self):
        assert make_index().search(["nonexistent"]) == []

    def test_empty_query(self):
        assert make_index().search([]) == []

    def test_duplicate_tokens_count_once(self):
        hits = make_index().search(["milk", "milk"])
        assert hits[0].strength == 1.0

    def test_limit(self):
        hits = make_index().search(["login", "components"], limit=1)
        assert len(hits) == 1

    def test_empty_index(self):
        assert FullTextIndex.build([]).search(["anything"]) == []
