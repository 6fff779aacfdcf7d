"""
Pytest configuration for the Mind Journal tests

Provides a scripted generation backend and a FastAPI client wired to it, so
no test talks to a real model or to Firestore.
"""

import json

import pytest
from fastapi.testclient import TestClient

from mindjournal.journal_store import InMemoryJournalStore, get_journal_store
from mindjournal.model_clients import ModelResponse
from mindjournal.pipeline import ResponsePipeline

MODEL_IDS = ("model-pro", "model-flash", "model-lite")


class StubInvoker:
    """
    Generation backend driven by a handler(model_id, prompt) that returns the
    model text, or None to simulate a failed call. Every call is recorded.
    """

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    @property
    def called_models(self):
        return [model_id for model_id, _, _ in self.calls]

    async def invoke(self, model_id, prompt, generation):
        self.calls.append((model_id, prompt, generation))
        text = self.handler(model_id, prompt)
        if text is None:
            return ModelResponse.failure(model_id, "HTTP 503", 503)
        return ModelResponse.success(model_id, text, 200)


def is_gate_prompt(prompt):
    return "You screen entries for a mood journal" in prompt


def scripted(gate=None, analysis=None):
    """
    Build a handler that answers validation-gate prompts with `gate` and every
    other prompt with `analysis`. Dicts are serialised to JSON.
    """

    def _encode(value):
        if isinstance(value, dict):
            return json.dumps(value)
        return value

    def handler(model_id, prompt):
        if is_gate_prompt(prompt):
            return _encode(gate)
        return _encode(analysis)

    return handler


VALID_ANALYSIS = {
    "mood": "Anxious",
    "summary": "Worried about tomorrow's exam.",
    "advice": "1. Breathe slowly. 2. Review one topic. 3. Sleep early. 4. Eat well. 5. Be kind to yourself.",
}


@pytest.fixture
def store():
    return InMemoryJournalStore()


@pytest.fixture
def api(store):
    """
    Returns a factory: api(handler) -> (TestClient, StubInvoker).
    Lifespan is not run; pipeline and store are injected via dependency overrides.
    """
    from mindjournal.main import app, get_pipeline

    def _make(handler=None):
        invoker = StubInvoker(handler or scripted(gate={"isValid": True}, analysis=VALID_ANALYSIS))
        pipeline = ResponsePipeline(invoker, MODEL_IDS)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        app.dependency_overrides[get_journal_store] = lambda: store
        client = TestClient(app)
        return client, invoker

    yield _make
    app.dependency_overrides.clear()
