"""FastAPI routes for drawing and interpreting a reading."""

import asyncio
import logging
import threading
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.concurrency import run_in_threadpool

from tarotd.decks import DEFAULT_DECK_ID
from tarotd.middleware import request_id
from tarotd.models import (
    SPREAD_GENERIC,
    CardResponse,
    InterpretationResponse,
    MetaResponse,
    ReadingResult,
    TarotResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["reading"])

MAX_QUESTION_CHARS = 500
DISCONNECT_POLL_SECONDS = 0.25


def to_response(result: ReadingResult, rid: str) -> TarotResponse:
    return TarotResponse(
        spread=result.spread_type,
        deck=result.deck_id,
        cards=[
            CardResponse(
                id=c.id,
                name=c.name,
                position=c.position,
                orientation=c.orientation,
                keywords=c.keywords,
                short=c.short,
            )
            for c in result.cards
        ],
        interpretation=InterpretationResponse(
            style=result.interpretation.style,
            text=result.interpretation.text,
            disclaimer=result.interpretation.disclaimer,
        ),
        meta=MetaResponse(model=result.model, request_id=rid, latency_ms=result.latency_ms),
    )


async def watch_disconnect(request: Request, cancel: threading.Event) -> None:
    """Set ``cancel`` as soon as the client has gone away."""
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.info("client disconnected request_id=%s, cancelling reading", request_id(request))
            cancel.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.get("/tarot", response_model=TarotResponse)
async def read_tarot(
    request: Request,
    q: str = Query("", max_length=MAX_QUESTION_CHARS, description="Optional question for the reading"),
    n: int = Query(3, ge=1, le=10, description="Number of cards to draw (1-10)"),
    deck: str = Query(DEFAULT_DECK_ID, description="Deck identifier"),
    spread: str = Query(SPREAD_GENERIC, description="Spread type: 'generic', 'three_card' or a custom tag"),
    lang: Optional[str] = Query(None, description="Language code for the interpretation, e.g. 'en', 'ru'"),
    seed: Optional[str] = Query(None, max_length=200, description="Optional seed for a reproducible draw"),
) -> TarotResponse:
    """Draw a spread and interpret it.

    The reading runs in the threadpool; a client disconnect stops any model
    attempt that has not started yet.
    """
    service = request.app.state.reading_service
    cancel = threading.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel))
    try:
        result = await run_in_threadpool(
            service.read_spread,
            question=q,
            n=n,
            deck_id=deck or DEFAULT_DECK_ID,
            spread_type=spread,
            lang=lang or None,
            seed=seed or None,
            cancel=cancel,
        )
    finally:
        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)
    return to_response(result, request_id(request))
