"""Reading orchestration: deck -> spread -> interpretation."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from tarotd.ai import Interpreter
from tarotd.decks import DeckStore
from tarotd.models import (
    SPREAD_GENERIC,
    SPREAD_THREE_CARD,
    CardView,
    DrawnCard,
    InterpretRequest,
    ReadingResult,
)
from tarotd.spread import generate_spread
from tarotd.utils.rng import RandomSource, new_random_source

log = logging.getLogger(__name__)


def resolve_spread_type(hint: str, n: int) -> str:
    if hint == SPREAD_THREE_CARD:
        return SPREAD_THREE_CARD
    if hint in ("", SPREAD_GENERIC):
        return SPREAD_THREE_CARD if n == 3 else SPREAD_GENERIC
    # caller-defined tag
    return hint


def to_card_views(cards: List[DrawnCard]) -> List[CardView]:
    return [
        CardView(
            name=c.name,
            position=c.position,
            orientation=str(c.orientation),
            keywords=list(c.keywords),
            short=c.short,
        )
        for c in cards
    ]


class ReadingService:
    """Draws a spread and has it interpreted.

    ``rng_factory`` is called once per reading with the optional seed, so no
    RandomSource is ever shared between concurrent requests.
    """

    def __init__(
        self,
        decks: DeckStore,
        interpreter: Interpreter,
        model: str,
        rng_factory: Callable[[Optional[str]], RandomSource] = new_random_source,
    ):
        self.decks = decks
        self.interpreter = interpreter
        self.model = model
        self.rng_factory = rng_factory

    def read_spread(
        self,
        question: str,
        n: int,
        deck_id: str,
        spread_type: str,
        lang: Optional[str] = None,
        seed: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ReadingResult:
        deck = self.decks.get_deck(deck_id)

        st = resolve_spread_type(spread_type, n)
        spread = generate_spread(deck, n, st, self.rng_factory(seed))

        request = InterpretRequest(
            deck_id=deck_id,
            spread=st,
            question=question or "",
            cards=to_card_views(spread.cards),
            lang=lang,
        )

        start = time.perf_counter()
        try:
            interpretation = self.interpreter.interpret(request, cancel)
        finally:
            latency_ms = int((time.perf_counter() - start) * 1000)
            log.debug("interpret deck=%s spread=%s n=%d took %dms", deck_id, st, n, latency_ms)

        return ReadingResult(
            spread_type=st,
            deck_id=deck_id,
            cards=spread.cards,
            interpretation=interpretation,
            model=interpretation.model or self.model,
            latency_ms=latency_ms,
        )
