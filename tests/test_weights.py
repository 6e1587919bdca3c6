"""Tests for relevance weights and their storage."""

import json
from pathlib import Path

import pytest

from prep.context.weights import DEFAULT_RELEVANCE_WEIGHTS, RelevanceWeights, WeightsStorage


class TestRelevanceWeights:
    """Tests for RelevanceWeights."""

    def test_defaults(self):
        assert DEFAULT_RELEVANCE_WEIGHTS.to_dict() == {
            "title": 0.4,
            "content": 0.3,
            "tags": 0.2,
            "attendees": 0.1,
            "flexSearchBonus": 0.2,
            "recencyBonus": 0.15,
        }

    def test_rejects_out_of_range(self):
        with pytest.raises(ValueError, match="between 0 and 1"):
            RelevanceWeights(title=1.5)
        with pytest.raises(ValueError, match="between 0 and 1"):
            RelevanceWeights(recency_bonus=-0.1)

    def test_rejects_non_numbers(self):
        with pytest.raises(ValueError, match="must be a number"):
            RelevanceWeights(tags="high")
        with pytest.raises(ValueError, match="must be a number"):
            RelevanceWeights(tags=True)

    def test_ints_become_floats(self):
        weights = RelevanceWeights(title=1, content=0)
        assert weights.title == 1.0
        assert isinstance(weights.content, float)

    def test_from_dict_fills_missing_keys(self):
        weights = RelevanceWeights.from_dict({"title": 0.9, "flexSearchBonus": 0.0})
        assert weights.title == 0.9
        assert weights.flex_search_bonus == 0.0
        assert weights.content == DEFAULT_RELEVANCE_WEIGHTS.content

    def test_from_dict_accepts_field_names(self):
        weights = RelevanceWeights.from_dict({"recency_bonus": 0.5})
        assert weights.recency_bonus == 0.5

    def test_round_trip(self):
        weights = RelevanceWeights(0.1, 0.2, 0.3, 0.4, 0.5, 0.6)
        assert RelevanceWeights.from_dict(weights.to_dict()) == weights

    def test_with_updates_returns_new_snapshot(self):
        updated = DEFAULT_RELEVANCE_WEIGHTS.with_updates(attendees=0.8)
        assert updated.attendees == 0.8
        assert DEFAULT_RELEVANCE_WEIGHTS.attendees == 0.1

    def test_immutable(self):
        with pytest.raises(AttributeError):
            DEFAULT_RELEVANCE_WEIGHTS.title = 0.9


class TestWeightsStorage:
    """Tests for WeightsStorage."""

    def test_defaults_when_missing(self, tmp_vault: Path):
        storage = WeightsStorage(tmp_vault)
        assert storage.get() == DEFAULT_RELEVANCE_WEIGHTS
        assert not storage.settings_file.exists()

    def test_update_persists(self, tmp_vault: Path):
        WeightsStorage(tmp_vault).update(title=0.9, recency_bonus=0.0)

        weights = WeightsStorage(tmp_vault).get()
        assert weights.title == 0.9
        assert weights.recency_bonus == 0.0
        assert weights.content == DEFAULT_RELEVANCE_WEIGHTS.content

    def test_storage_location(self, tmp_vault: Path):
        storage = WeightsStorage(tmp_vault)
        storage.update(tags=0.5)

        data = json.loads((tmp_vault / ".prep" / "settings.json").read_text())
        assert data["relevanceWeights"]["tags"] == 0.5

    def test_keeps_other_settings(self, tmp_vault: Path):
        settings_file = tmp_vault / ".prep" / "settings.json"
        settings_file.parent.mkdir()
        settings_file.write_text(json.dumps({"debugMode": True}))

        WeightsStorage(tmp_vault).update(tags=0.5)

        data = json.loads(settings_file.read_text())
        assert data["debugMode"] is True
        assert data["relevanceWeights"]["tags"] == 0.5

    def test_corrupted_file_uses_defaults(self, tmp_vault: Path):
        settings_file = tmp_vault / ".prep" / "settings.json"
        settings_file.parent.mkdir()
        settings_file.write_text("{not json")

        assert WeightsStorage(tmp_vault).get() == DEFAULT_RELEVANCE_WEIGHTS

    def test_invalid_weights_use_defaults(self, tmp_vault: Path):
        settings_file = tmp_vault / ".prep" / "settings.json"
        settings_file.parent.mkdir()
        settings_file.write_text(json.dumps({"relevanceWeights": {"title": 7}}))

        assert WeightsStorage(tmp_vault).get() == DEFAULT_RELEVANCE_WEIGHTS

    def test_reset(self, tmp_vault: Path):
        storage = WeightsStorage(tmp_vault)
        storage.update(title=0.0)

        assert storage.reset() == DEFAULT_RELEVANCE_WEIGHTS
        assert WeightsStorage(tmp_vault).get() == DEFAULT_RELEVANCE_WEIGHTS

    def test_invalid_update_not_saved(self, tmp_vault: Path):
        storage = WeightsStorage(tmp_vault)
        with pytest.raises(ValueError):
            storage.update(title=2.0)
        assert not storage.settings_file.exists()
