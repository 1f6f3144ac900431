"""LLM interpretation of a drawn spread.

Talks to any OpenAI-compatible chat completions endpoint (OpenRouter by
default), walks through the configured models until one answers with
usable JSON, and gives each model a single chance to repair bad JSON.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Dict, List, Optional, Protocol

import httpx
from openai import APIError, OpenAI
from pydantic import BaseModel, ValidationError

from tarotd.config import Settings
from tarotd.errors import InvalidStructuredOutput, LLMError, ReadingCancelled, UpstreamFailure
from tarotd.models import DEFAULT_DISCLAIMER, DEFAULT_STYLE, InterpretRequest, InterpretResult

log = logging.getLogger(__name__)


class Interpreter(Protocol):
    def interpret(self, request: InterpretRequest, cancel: Optional[threading.Event] = None) -> InterpretResult:
        ...


class _ModelOutput(BaseModel):
    """The JSON object the model is told to answer with."""
    text: str = ""
    style: str = ""
    disclaimer: str = ""


LANG_NAMES: Dict[str, str] = {
    "en": "English",
    "ru": "Russian",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "hi": "Hindi",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "pl": "Polish",
}

_SCHEMA = f"""{{
  "text": "<your interpretation>",
  "style": "{DEFAULT_STYLE}",
  "disclaimer": "{DEFAULT_DISCLAIMER}"
}}"""


def build_system_prompt(lang: Optional[str] = None) -> str:
    lang_instruction = ""
    if lang and lang != "en":
        lang_instruction = f"\n- Respond entirely in {LANG_NAMES.get(lang, lang)}."

    return f"""You are a tarot reader providing neutral, reflective interpretations.

Rules:
- Be maximally neutral and balanced.
- Never provide medical, legal, or financial advice.
- Never predict specific outcomes or disasters.
- Never command actions or diagnose conditions.
- Offer balanced possibilities and reflective questions.
- If a question is provided, incorporate it but never guarantee outcomes.{lang_instruction}

Respond with ONLY a JSON object (no markdown, no code fences, no extra text) matching this exact schema:
{_SCHEMA}"""


def build_user_prompt(request: InterpretRequest) -> str:
    lines = [f"Deck: {request.deck_id}", f"Spread: {request.spread}", "", "Cards drawn:"]
    for card in request.cards:
        lines.append(f"  Position {card.position}: {card.name} ({card.orientation})")
        lines.append(f"    Keywords: {', '.join(card.keywords)}")
        lines.append(f"    Meaning: {card.short}")

    if request.question:
        lines.append("")
        lines.append(f"The querent asks: {json.dumps(request.question, ensure_ascii=False)}")

    lines.append("")
    lines.append("Provide a cohesive interpretation as a single JSON object.")
    return "\n".join(lines)


def build_retry_prompt(bad_output: str) -> str:
    return f"""Your previous response was not valid JSON. Here is what you returned:
{bad_output}

Return ONLY the corrected JSON object matching this schema (no markdown, no code fences):
{_SCHEMA}"""


class OpenRouterInterpreter:
    """Interpreter backed by an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        client: OpenAI,
        model: str,
        fallback_models: Optional[List[str]] = None,
    ):
        self.client = client
        self.model = model
        self.fallback_models = list(fallback_models or [])

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.Client] = None) -> "OpenRouterInterpreter":
        client = OpenAI(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            timeout=settings.llm_timeout,
            max_retries=0,
            http_client=http_client,
        )
        return cls(client, settings.llm_model, settings.llm_fallback_models)

    @property
    def models(self) -> List[str]:
        return [self.model] + self.fallback_models

    def interpret(self, request: InterpretRequest, cancel: Optional[threading.Event] = None) -> InterpretResult:
        """Try each model in turn.

        ``cancel`` is checked before every remote call; once it is set no
        further attempt starts and ``ReadingCancelled`` is raised.
        """
        models = self.models
        last_error: Optional[LLMError] = None
        for model in models:
            try:
                return self._interpret_with_model(request, model, cancel)
            except LLMError as e:
                last_error = e
                if len(models) > 1:
                    log.warning("model %s failed, trying next: %s", model, e)

        raise last_error

    def _interpret_with_model(
        self,
        request: InterpretRequest,
        model: str,
        cancel: Optional[threading.Event] = None,
    ) -> InterpretResult:
        system_prompt = build_system_prompt(request.lang)
        user_prompt = build_user_prompt(request)

        content = self._complete(model, system_prompt, user_prompt, cancel)
        try:
            out = _ModelOutput.model_validate_json(content)
        except ValidationError:
            log.warning("model %s returned invalid JSON, retrying", model)
            content = self._complete(model, system_prompt, build_retry_prompt(content), cancel)
            try:
                out = _ModelOutput.model_validate_json(content)
            except ValidationError as e:
                raise InvalidStructuredOutput(f"{model}: LLM returned invalid JSON after retry") from e

        return InterpretResult(
            text=out.text,
            style=out.style or DEFAULT_STYLE,
            disclaimer=out.disclaimer or DEFAULT_DISCLAIMER,
            model=model,
        )

    def _complete(self, model: str, system: str, user: str, cancel: Optional[threading.Event] = None) -> str:
        """One chat completion round trip; returns the stripped message content."""
        if cancel is not None and cancel.is_set():
            log.info("reading cancelled before calling %s", model)
            raise ReadingCancelled()
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except APIError as e:
            raise UpstreamFailure(f"{model}: {e}") from e

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise UpstreamFailure(f"{model}: no choices in response")
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None) if message is not None else None
        if content is None:
            raise UpstreamFailure(f"{model}: no message content in response")

        return content.strip()
