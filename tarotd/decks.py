"""Bundled tarot decks.

- Loads each registered deck JSON from tarotd/data/
- Provides: DeckStore.get_deck(deck_id), DeckStore.list_decks()

Decks are read once per process, on first use, and are read-only after that.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from tarotd.errors import DeckLoadError, DeckNotFound
from tarotd.models import Card, Deck

log = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

DEFAULT_DECK_ID = "major_arcana"

# deck id -> (file inside data dir, display name)
REGISTRY: Dict[str, Tuple[str, str]] = {
    "major_arcana": ("major_arcana.json", "Major Arcana"),
}


def _load_deck(deck_id: str, path: Path, name: str) -> Deck:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise DeckLoadError(f"Deck data file not found at: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise DeckLoadError(f"Cannot read deck data {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DeckLoadError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, list):
        raise DeckLoadError(f"Deck {deck_id} must be a JSON array of cards.")

    try:
        cards = [Card.model_validate(c) for c in data]
    except ValidationError as e:
        raise DeckLoadError(f"Invalid card in deck {deck_id}: {e}") from e

    ids = [c.id for c in cards]
    if len(ids) != len(set(ids)):
        raise DeckLoadError(f"Duplicate card ids detected in deck {deck_id}.")

    return Deck(id=deck_id, name=name, cards=cards)


class DeckStore:
    """Lazily loads every registered deck exactly once.

    Concurrent first callers wait on the lock until the single load finishes.
    A failed load is remembered and raised to every caller afterwards.
    """

    def __init__(
        self,
        data_dir: Path = DATA_DIR,
        registry: Optional[Dict[str, Tuple[str, str]]] = None,
    ):
        self.data_dir = Path(data_dir)
        self.registry = dict(REGISTRY if registry is None else registry)
        self._lock = threading.Lock()
        self._loaded = False
        self._decks: Dict[str, Deck] = {}
        self._error: Optional[DeckLoadError] = None

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            try:
                decks = {}
                for deck_id, (filename, name) in self.registry.items():
                    decks[deck_id] = _load_deck(deck_id, self.data_dir / filename, name)
                self._decks = decks
                log.info("loaded %d deck(s) from %s", len(decks), self.data_dir)
            except DeckLoadError as e:
                log.error("deck load failed: %s", e)
                self._error = e
            self._loaded = True

    def _raise_load_error(self) -> None:
        # fresh exception per call; re-raising the cached one grows its traceback
        if self._error is not None:
            raise DeckLoadError(self._error.message) from self._error

    def get_deck(self, deck_id: str) -> Deck:
        self._ensure_loaded()
        self._raise_load_error()
        deck = self._decks.get(deck_id)
        if deck is None:
            raise DeckNotFound()
        return deck

    def list_decks(self) -> List[Deck]:
        self._ensure_loaded()
        self._raise_load_error()
        return list(self._decks.values())
