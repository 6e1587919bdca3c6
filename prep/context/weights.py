"""Relevance weights and their persistence in the vault."""

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Python field name -> key used by the settings file and the UI
WIRE_KEYS = {
    "title": "title",
    "content": "content",
    "tags": "tags",
    "attendees": "attendees",
    "flex_search_bonus": "flexSearchBonus",
    "recency_bonus": "recencyBonus",
}


@dataclass(frozen=True)
class RelevanceWeights:
    """Independent multipliers for each relevance signal, each in [0, 1]."""

    title: float = 0.4
    content: float = 0.3
    tags: float = 0.2
    attendees: float = 0.1
    flex_search_bonus: float = 0.2
    recency_bonus: float = 0.15

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Weight '{f.name}' must be a number, got {value!r}")
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Weight '{f.name}' must be between 0 and 1, got {value}")
            object.__setattr__(self, f.name, float(value))

    def with_updates(self, **changes: float) -> "RelevanceWeights":
        """Return a new snapshot with some weights changed."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, float]:
        return {WIRE_KEYS[name]: value for name, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RelevanceWeights":
        """Build weights from wire keys, falling back to defaults per key."""
        defaults = cls()
        values = {}
        for name, key in WIRE_KEYS.items():
            if key in data:
                values[name] = data[key]
            elif name in data:
                values[name] = data[name]
            else:
                values[name] = getattr(defaults, name)
        return cls(**values)


DEFAULT_RELEVANCE_WEIGHTS = RelevanceWeights()


class WeightsStorage:
    """Stores relevance weights in .prep/settings.json inside the vault."""

    SETTINGS_KEY = "relevanceWeights"

    def __init__(self, vault_path: Path) -> None:
        self.vault_path = Path(vault_path)
        self.prep_dir = self.vault_path / ".prep"
        self.settings_file = self.prep_dir / "settings.json"
        self._weights: RelevanceWeights | None = None

    def get(self) -> RelevanceWeights:
        """Get current weights, loading from disk or using defaults."""
        if self._weights is None:
            self._weights = self._load()
        return self._weights

    def save(self, weights: RelevanceWeights) -> RelevanceWeights:
        """Persist a new weights snapshot."""
        self._save(weights)
        self._weights = weights
        return weights

    def update(self, **changes: float) -> RelevanceWeights:
        """Change some weights and save to disk."""
        return self.save(self.get().with_updates(**changes))

    def reset(self) -> RelevanceWeights:
        """Restore the default weights."""
        return self.save(DEFAULT_RELEVANCE_WEIGHTS)

    def _read_settings(self) -> dict[str, Any]:
        if not self.settings_file.exists():
            return {}
        try:
            data = json.loads(self.settings_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to read settings file: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _load(self) -> RelevanceWeights:
        """Load weights from disk, using defaults if missing or invalid."""
        data = self._read_settings().get(self.SETTINGS_KEY)
        if not isinstance(data, dict):
            return DEFAULT_RELEVANCE_WEIGHTS

        try:
            return RelevanceWeights.from_dict(data)
        except ValueError as e:
            logger.warning(f"Invalid relevance weights, using defaults: {e}")
            return DEFAULT_RELEVANCE_WEIGHTS

    def _save(self, weights: RelevanceWeights) -> None:
        """Write weights, keeping any other settings in the file."""
        settings = self._read_settings()
        settings[self.SETTINGS_KEY] = weights.to_dict()
        try:
            self.prep_dir.mkdir(parents=True, exist_ok=True)
            self.settings_file.write_text(
                json.dumps(settings, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error(f"Failed to save relevance weights: {e}")
