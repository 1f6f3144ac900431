import pytest

from tarotd.config import load_settings, parse_duration, parse_list
from tarotd.errors import ConfigError

BASE_ENV = {"OPENROUTER_API_KEY": "sk-test"}


def test_defaults():
    s = load_settings(BASE_ENV)
    assert s.port == 8080
    assert s.log_level == "INFO"
    assert s.llm_provider == "openrouter"
    assert s.llm_model == "qwen/qwen3-4b:free"
    assert s.llm_fallback_models == []
    assert s.llm_timeout == 10.0
    assert s.openrouter_base_url == "https://openrouter.ai/api/v1"
    assert s.cors_origins == ["*"]


def test_overrides():
    s = load_settings({
        **BASE_ENV,
        "PORT": "9000",
        "LOG_LEVEL": "warn",
        "LLM_MODEL": "main/model",
        "LLM_FALLBACK_MODELS": " a/one , ,b/two,",
        "LLM_TIMEOUT": "1500ms",
        "OPENROUTER_BASE_URL": "http://localhost:1234/v1",
    })
    assert s.port == 9000
    assert s.log_level == "WARNING"
    assert s.llm_model == "main/model"
    assert s.llm_fallback_models == ["a/one", "b/two"]
    assert s.llm_timeout == 1.5
    assert s.openrouter_base_url == "http://localhost:1234/v1"


def test_missing_api_key():
    with pytest.raises(ConfigError, match="OPENROUTER_API_KEY"):
        load_settings({})


def test_unsupported_provider():
    with pytest.raises(ConfigError, match="LLM_PROVIDER"):
        load_settings({**BASE_ENV, "LLM_PROVIDER": "carrier-pigeon"})


@pytest.mark.parametrize("key,value", [
    ("LOG_LEVEL", "loud"),
    ("LLM_TIMEOUT", "soon"),
    ("LLM_TIMEOUT", "0s"),
    ("PORT", "eighty"),
])
def test_invalid_values(key, value):
    with pytest.raises(ConfigError):
        load_settings({**BASE_ENV, key: value})


@pytest.mark.parametrize("raw,expected", [("10", 10.0), ("10s", 10.0), ("2.5s", 2.5), ("250ms", 0.25)])
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


def test_parse_list():
    assert parse_list(None) == []
    assert parse_list("") == []
    assert parse_list("x, y") == ["x", "y"]
