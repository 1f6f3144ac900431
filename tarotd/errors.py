"""Error taxonomy for readings.

Each error carries the message shown to clients and the HTTP status the
transport maps it to.
"""


class TarotError(Exception):
    """Base class for every error the reading pipeline raises."""

    status_code = 500
    public_message = "internal error"

    def __init__(self, message: str = ""):
        self.message = message or self.public_message
        super().__init__(self.message)


class DeckNotFound(TarotError):
    status_code = 404
    public_message = "deck not found"


class DeckLoadError(TarotError):
    """Bundled deck data could not be read or is malformed."""


class InvalidCount(TarotError):
    status_code = 400
    public_message = "n must be between 1 and 10"


class CountExceedsDeck(TarotError):
    status_code = 400
    public_message = "n exceeds number of cards in deck"


class LLMError(TarotError):
    """The text-generation dependency let us down; details stay server-side."""

    status_code = 502
    public_message = "upstream LLM failure"


class UpstreamFailure(LLMError):
    """Transport, HTTP status or empty-response failure of the remote call."""


class InvalidStructuredOutput(LLMError):
    """The model answered, but not with valid JSON, even after one retry."""


class ReadingCancelled(TarotError):
    """The client went away before the reading finished."""

    # nginx's "client closed request"; nobody is left to read the body
    status_code = 499
    public_message = "request cancelled"


class ConfigError(ValueError):
    pass
