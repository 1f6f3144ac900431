"""Shared fakes: deterministic random sources, decks, and a fake LLM server."""

import json
import threading
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from openai import OpenAI

from tarotd.models import Card, Deck, InterpretRequest, InterpretResult


class SequenceRNG:
    """Replays a fixed list of values (each taken modulo n), cycling at the end."""

    def __init__(self, values: List[int]):
        self.values = values
        self.idx = 0

    def next_int(self, n: int) -> int:
        v = self.values[self.idx % len(self.values)] % n
        self.idx += 1
        return v


class RecordingRNG:
    """Always answers ``n - 1`` and remembers every bound it was asked for."""

    def __init__(self):
        self.bounds: List[int] = []

    def next_int(self, n: int) -> int:
        self.bounds.append(n)
        return n - 1


def make_deck(size: int, deck_id: str = "test") -> Deck:
    cards = [
        Card(
            id="card_" + chr(ord("a") + i),
            name="Card " + chr(ord("A") + i),
            keywords=["kw1", "kw2"],
            short="Short description.",
        )
        for i in range(size)
    ]
    return Deck(id=deck_id, name="Test Deck", cards=cards)


class FakeInterpreter:
    def __init__(self, result: Optional[InterpretResult] = None, error: Optional[Exception] = None):
        self.result = result or InterpretResult(text="An insightful interpretation.")
        self.error = error
        self.requests: List[InterpretRequest] = []
        self.cancels: List[Optional[threading.Event]] = []

    def interpret(self, request: InterpretRequest, cancel: Optional[threading.Event] = None) -> InterpretResult:
        self.requests.append(request)
        self.cancels.append(cancel)
        if self.error is not None:
            raise self.error
        return self.result


def chat_completion(content: Optional[str], model: str) -> Dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


def interpretation_json(text: str, style: str = "neutral", disclaimer: str = "For reflection only.") -> str:
    return json.dumps({"text": text, "style": style, "disclaimer": disclaimer})


class FakeLLM:
    """OpenAI-compatible chat completions endpoint behind httpx.MockTransport.

    Each reply is used for one call, in order; the last reply repeats. A reply
    is message content (str), a full ``httpx.Response``, or an exception to raise.
    ``on_call`` runs inside every call, before the reply is chosen.
    """

    base_url = "http://llm.test/api/v1"

    def __init__(self, *replies: Any, on_call: Optional[Callable[[], None]] = None):
        self.replies = list(replies)
        self.on_call = on_call
        self.calls: List[Dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(
            {
                "method": request.method,
                "path": request.url.path,
                "authorization": request.headers.get("authorization"),
                "content_type": request.headers.get("content-type"),
                "body": body,
            }
        )
        if self.on_call is not None:
            self.on_call()
        reply = self.replies[min(len(self.calls), len(self.replies)) - 1]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=chat_completion(reply, body["model"]))

    @property
    def models_called(self) -> List[str]:
        return [c["body"]["model"] for c in self.calls]

    def client(self) -> OpenAI:
        return OpenAI(
            api_key="test-key",
            base_url=self.base_url,
            max_retries=0,
            http_client=httpx.Client(transport=httpx.MockTransport(self.handler)),
        )


@pytest.fixture
def deck22() -> Deck:
    return make_deck(22, deck_id="major_arcana")
