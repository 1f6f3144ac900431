"""FastAPI routes for browsing the bundled decks.

Endpoints:
- GET /v1/decks
- GET /v1/decks/{deck_id}
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

from tarotd.models import Deck, DeckSummary

router = APIRouter(prefix="/v1/decks", tags=["decks"])


@router.get("")
def list_decks(request: Request) -> Dict[str, Any]:
    decks = request.app.state.deck_store.list_decks()
    return {
        "decks": [
            DeckSummary(id=d.id, name=d.name, card_count=len(d.cards)).model_dump()
            for d in decks
        ]
    }


@router.get("/{deck_id}", response_model=Deck)
def get_deck(deck_id: str, request: Request) -> Deck:
    return request.app.state.deck_store.get_deck(deck_id)
