from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Literal

Orientation = Literal["upright", "reversed"]

SPREAD_GENERIC = "generic"
SPREAD_THREE_CARD = "three_card"

DEFAULT_STYLE = "neutral"
DEFAULT_DISCLAIMER = "For reflection/entertainment; not medical/legal/financial advice."


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    keywords: List[str] = Field(default_factory=list)
    short: str = ""


class Deck(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    cards: List[Card]


class DrawnCard(Card):
    position: int
    orientation: Orientation


class Spread(BaseModel):
    type: str
    cards: List[DrawnCard]


class CardView(BaseModel):
    """What the interpreter gets to see of a drawn card."""
    name: str
    position: int
    orientation: str
    keywords: List[str] = Field(default_factory=list)
    short: str = ""


class InterpretRequest(BaseModel):
    deck_id: str
    spread: str
    question: str = ""
    cards: List[CardView]
    lang: Optional[str] = None


class InterpretResult(BaseModel):
    text: str
    style: str = DEFAULT_STYLE
    disclaimer: str = DEFAULT_DISCLAIMER
    model: str = ""


class ReadingResult(BaseModel):
    spread_type: str
    deck_id: str
    cards: List[DrawnCard]
    interpretation: InterpretResult
    model: str
    latency_ms: int


# Wire shapes for GET /v1/tarot

class CardResponse(BaseModel):
    id: str
    name: str
    position: int
    orientation: Orientation
    keywords: List[str]
    short: str


class InterpretationResponse(BaseModel):
    style: str
    text: str
    disclaimer: str


class MetaResponse(BaseModel):
    model: str
    request_id: str
    latency_ms: int


class TarotResponse(BaseModel):
    spread: str
    deck: str
    cards: List[CardResponse]
    interpretation: InterpretationResponse
    meta: MetaResponse


class DeckSummary(BaseModel):
    id: str
    name: str
    card_count: int


class ErrorResponse(BaseModel):
    error: str
    request_id: str = ""
