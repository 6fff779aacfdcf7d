"""Unit tests for crisis detection and settings loading"""

from dataclasses import FrozenInstanceError

import pytest

from mindjournal.config import (
    BACKEND_GEMINI_API,
    BACKEND_VERTEX,
    DEFAULT_GEMINI_MODELS,
    load_settings,
    parse_model_ids,
)
from mindjournal.safety import detect_crisis


@pytest.mark.parametrize(
    "text",
    ["I want to die", "Sometimes I think about suicide", "I keep wanting to hurt myself", "I CAN'T GO ON anymore"],
)
def test_crisis_language_is_detected(text):
    flagged, matched = detect_crisis(text)
    assert flagged
    assert matched


@pytest.mark.parametrize(
    "text",
    ["", "   ", None, "Had a lovely dinner with friends", "I can't go on with these work tasks today"],
)
def test_ordinary_text_is_not_flagged(text):
    assert detect_crisis(text) == (False, None)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("I can't go on with these work tasks and honestly I want to die", "want to die"),
        ("I can't go on at work anymore and honestly I want to die", "can't go on"),
        ("I can’t go on", "can't go on"),
    ],
)
def test_workload_phrase_does_not_hide_crisis_language(text, expected):
    assert detect_crisis(text) == (True, expected)


def test_parse_model_ids_keeps_order_and_drops_blanks():
    assert parse_model_ids("b-model, a-model,, c-model ") == ("b-model", "a-model", "c-model")
    assert parse_model_ids("") == DEFAULT_GEMINI_MODELS
    assert parse_model_ids(" , ") == DEFAULT_GEMINI_MODELS


def test_load_settings_from_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "abc")
    monkeypatch.setenv("GEMINI_MODELS", "m1,m2")
    monkeypatch.setenv("GENERATION_BACKEND", "VERTEX")
    monkeypatch.setenv("GEMINI_ENDPOINT", "https://example.test/models/")
    monkeypatch.setenv("GENERATION_TIMEOUT_SECONDS", "12.5")

    settings = load_settings()
    assert settings.gemini_api_key == "abc"
    assert settings.model_ids == ("m1", "m2")
    assert settings.generation_backend == BACKEND_VERTEX
    assert settings.gemini_endpoint == "https://example.test/models"
    assert settings.generation_timeout_seconds == 12.5


def test_log_level_is_read_into_settings(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert load_settings().log_level == "DEBUG"


def test_unknown_backend_and_bad_timeout_fall_back(monkeypatch):
    monkeypatch.setenv("GENERATION_BACKEND", "openai")
    monkeypatch.setenv("GENERATION_TIMEOUT_SECONDS", "soon")

    settings = load_settings()
    assert settings.generation_backend == BACKEND_GEMINI_API
    assert settings.generation_timeout_seconds == 60.0


def test_settings_are_immutable():
    settings = load_settings()
    with pytest.raises(FrozenInstanceError):
        settings.model_ids = ("other",)
