"""Drawing spreads from a deck."""

from typing import List

from tarotd.errors import CountExceedsDeck, InvalidCount
from tarotd.models import Deck, DrawnCard, Spread
from tarotd.utils.rng import RandomSource

MAX_CARDS = 10


def generate_spread(deck: Deck, n: int, spread_type: str, rng: RandomSource) -> Spread:
    """Draw ``n`` distinct cards from ``deck``, each with a position and orientation.

    The whole deck is shuffled (``len(deck) - 1`` draws from ``rng``) before the
    first ``n`` cards are taken, then one more draw per card decides its
    orientation. Keep both phases as they are: a given sequence from ``rng``
    must always produce the same spread.
    """
    if n < 1 or n > MAX_CARDS:
        raise InvalidCount()
    if n > len(deck.cards):
        raise CountExceedsDeck()

    indices: List[int] = list(range(len(deck.cards)))
    for i in range(len(indices) - 1, 0, -1):
        j = rng.next_int(i + 1)
        indices[i], indices[j] = indices[j], indices[i]

    cards: List[DrawnCard] = []
    for pos, idx in enumerate(indices[:n], start=1):
        orientation = "reversed" if rng.next_int(2) == 1 else "upright"
        cards.append(
            DrawnCard(
                **deck.cards[idx].model_dump(),
                position=pos,
                orientation=orientation,
            )
        )

    return Spread(type=spread_type, cards=cards)
