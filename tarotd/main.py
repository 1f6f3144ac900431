"""
tarotd - tarot readings over HTTP
"""
import logging
import sys
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from tarotd.ai import OpenRouterInterpreter
from tarotd.config import Settings, load_settings
from tarotd.decks import DeckStore
from tarotd.errors import TarotError
from tarotd.middleware import request_context_middleware, request_id
from tarotd.models import ErrorResponse
from tarotd.reading import ReadingService
from tarotd.routes.deck_routes import router as deck_router
from tarotd.routes.reading_routes import MAX_QUESTION_CHARS, router as reading_router

logger = logging.getLogger(__name__)

# Client-facing messages for query parameters that fail validation
PARAM_ERRORS = {
    "q": f"q must be at most {MAX_QUESTION_CHARS} characters",
    "n": "n must be an integer between 1 and 10",
    "seed": "seed must be at most 200 characters",
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


async def tarot_error_handler(request: Request, exc: TarotError) -> JSONResponse:
    rid = request_id(request)
    if exc.status_code >= 500:
        # keep the cause server-side, keyed by request id
        logger.error("%s request_id=%s: %s", type(exc).__name__, rid, exc.message, exc_info=exc)
        message = exc.public_message
    else:
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=message, request_id=rid).model_dump())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = "invalid request"
    errors = exc.errors()
    if errors:
        # first failure only
        loc = errors[0].get("loc") or ()
        field = loc[-1] if loc else ""
        message = PARAM_ERRORS.get(field) or f"{field}: {errors[0].get('msg', 'invalid value')}"
    return JSONResponse(status_code=400, content=ErrorResponse(error=message, request_id=request_id(request)).model_dump())


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[ReadingService] = None,
    deck_store: Optional[DeckStore] = None,
) -> FastAPI:
    """Build the application.

    Anything not passed in is built from ``settings`` (loaded from the
    environment when omitted).
    """
    if settings is None:
        settings = load_settings() if service is None else Settings()
    deck_store = deck_store or (service.decks if service is not None else DeckStore())
    if service is None:
        service = ReadingService(
            deck_store,
            OpenRouterInterpreter.from_settings(settings),
            settings.llm_model,
        )

    app = FastAPI(title="tarotd", version="0.1.0")
    app.state.settings = settings
    app.state.deck_store = deck_store
    app.state.reading_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )
    app.middleware("http")(request_context_middleware)

    app.add_exception_handler(TarotError, tarot_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz():
        return "OK"

    app.include_router(reading_router)
    app.include_router(deck_router)

    return app


def main() -> None:
    import uvicorn

    load_dotenv()
    settings = load_settings()
    configure_logging(settings.log_level)
    logger.info("starting server on %s:%d", settings.host, settings.port)
    uvicorn.run(
        "tarotd.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
