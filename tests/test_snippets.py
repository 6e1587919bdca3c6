"""Tests for snippet extraction."""

from prep.context.snippets import clean_markdown, extract_snippets


class TestCleanMarkdown:
    """Tests for clean_markdown."""

    def test_strips_list_emphasis_and_wikilinks(self):
        text = "- [ ] Call **Sarah Johnson** about [[Roadmap Q2|the roadmap]]."
        assert clean_markdown(text) == "Call Sarah Johnson about the roadmap."

    def test_strips_links_and_headings(self):
        assert clean_markdown("## See [the docs](https://example.com)") == "See the docs"

    def test_keeps_snake_case(self):
        assert clean_markdown("set max_file_bytes") == "set max_file_bytes"

    def test_collapses_whitespace(self):
        assert clean_markdown("  a \n\t b  ") == "a b"


class TestExtractSnippets:
    """Tests for extract_snippets."""

    def test_returns_sentence_with_term(self):
        content = "Alpha beta. The authentication service is down! Gamma."
        assert extract_snippets(content, ["authentication"]) == [
            "The authentication service is down!"
        ]

    def test_case_insensitive(self):
        snippets = extract_snippets("Notes from the ROADMAP review.", ["roadmap"])
        assert snippets == ["Notes from the ROADMAP review."]

    def test_document_order(self):
        content = "First mentions the roadmap. Then Sarah appears."
        assert extract_snippets(content, ["sarah", "roadmap"]) == [
            "First mentions the roadmap.",
            "Then Sarah appears.",
        ]

    def test_one_snippet_per_sentence(self):
        content = "Sarah reviewed the roadmap. Nothing else."
        assert extract_snippets(content, ["sarah", "roadmap"]) == ["Sarah reviewed the roadmap."]

    def test_lines_are_boundaries(self):
        content = "# Budget\nSpending is on track\nHiring paused"
        assert extract_snippets(content, ["spending"]) == ["Spending is on track"]

    def test_prefix_terms_match_word_starts(self):
        content = "We use OAuth. The authentication flow changed."
        assert extract_snippets(content, ["auth"]) == ["The authentication flow changed."]

    def test_max_snippets(self):
        content = "One alpha. Two beta. Three gamma. Four delta."
        snippets = extract_snippets(content, ["alpha", "beta", "gamma", "delta"], max_snippets=3)
        assert snippets == ["One alpha.", "Two beta.", "Three gamma."]

    def test_window_fallback_without_boundaries(self):
        content = "word " * 200 + "needle " + "word " * 200
        snippets = extract_snippets(content, ["needle"], max_length=80)

        assert len(snippets) == 1
        assert "needle" in snippets[0]
        assert snippets[0].startswith("...")
        assert snippets[0].endswith("...")
        assert len(snippets[0]) <= 80 + 6

    def test_window_at_start_has_no_leading_ellipsis(self):
        content = "needle " + "word " * 200
        snippet = extract_snippets(content, ["needle"], max_length=60)[0]
        assert snippet.startswith("needle")
        assert snippet.endswith("...")

    def test_no_match(self):
        assert extract_snippets("Nothing relevant here.", ["roadmap"]) == []

    def test_empty_inputs(self):
        assert extract_snippets("", ["roadmap"]) == []
        assert extract_snippets("Some text.", []) == []
        assert extract_snippets("Some text.", ["", "  "]) == []

    def test_multi_word_term(self):
        content = "Intro. Met Sarah Johnson at the office. Outro."
        assert extract_snippets(content, ["Sarah Johnson"]) == [
            "Met Sarah Johnson at the office."
        ]

    def test_skips_occurrence_hidden_in_link_target(self):
        content = "See [the plan](https://wiki/roadmap) for details. The roadmap slipped."
        assert extract_snippets(content, ["roadmap"]) == ["The roadmap slipped."]

    def test_term_only_in_link_target_uses_raw_text(self):
        content = "See [the plan](https://wiki/roadmap) for more details."
        snippets = extract_snippets(content, ["roadmap"])

        assert len(snippets) == 1
        assert "roadmap" in snippets[0]

    def test_term_only_in_wikilink_target(self):
        content = "Notes from [[Roadmap Q2|the planning call]]."
        snippets = extract_snippets(content, ["roadmap"])

        assert snippets
        assert all("roadmap" in s.lower() for s in snippets)

    def test_snippets_are_cleaned(self):
        content = "- [ ] Ask **Sarah** about [[Budget|the budget]]."
        assert extract_snippets(content, ["sarah"]) == ["Ask Sarah about the budget."]
