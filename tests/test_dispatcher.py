"""Unit tests for the model fallback dispatcher"""

import asyncio

import pytest

from mindjournal.dispatcher import dispatch
from mindjournal.errors import AllModelsFailed
from mindjournal.prompts import JOURNAL_GENERATION

from .conftest import MODEL_IDS, StubInvoker


def run(invoker, model_ids=MODEL_IDS):
    return asyncio.run(dispatch(invoker, model_ids, "prompt", JOURNAL_GENERATION))


def test_first_model_success_short_circuits():
    invoker = StubInvoker(lambda model_id, prompt: "ok")
    result = run(invoker)

    assert result.ok
    assert result.text == "ok"
    assert invoker.called_models == ["model-pro"]
    assert [a.model_id for a in result.attempts] == ["model-pro"]
    assert result.attempts[0].succeeded is True


def test_falls_back_in_order_until_success():
    invoker = StubInvoker(lambda model_id, prompt: "from lite" if model_id == "model-lite" else None)
    result = run(invoker)

    assert result.ok
    assert result.response.model_id == "model-lite"
    assert invoker.called_models == ["model-pro", "model-flash", "model-lite"]
    assert [a.succeeded for a in result.attempts] == [False, False, True]
    assert result.attempts[0].status_code == 503


def test_all_models_fail_each_attempted_once_in_order():
    invoker = StubInvoker(lambda model_id, prompt: None)
    result = run(invoker)

    assert not result.ok
    assert result.text == ""
    assert invoker.called_models == list(MODEL_IDS)
    assert all(not a.succeeded for a in result.attempts)

    with pytest.raises(AllModelsFailed) as exc_info:
        result.raise_for_failure()
    assert [a.model_id for a in exc_info.value.attempts] == list(MODEL_IDS)


def test_empty_model_list_is_all_models_failed():
    invoker = StubInvoker(lambda model_id, prompt: "never")
    result = run(invoker, model_ids=())

    assert not result.ok
    assert invoker.calls == []


def test_prompt_and_generation_are_forwarded_unchanged():
    invoker = StubInvoker(lambda model_id, prompt: "ok")
    run(invoker)

    _, prompt, generation = invoker.calls[0]
    assert prompt == "prompt"
    assert generation is JOURNAL_GENERATION
