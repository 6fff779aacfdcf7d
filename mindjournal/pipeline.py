"""
pipeline.py - End-to-end AI response pipeline

Two operations, both stateless and free of persistence side effects (saving
the result is the caller's job):

analyze_journal(text)
    validation gate -> journal prompt -> fallback dispatch -> parse -> schema check
    Rejected text returns AnalysisResult(mood=None, ...) with a clarification
    message. Malformed model output returns JOURNAL_FALLBACK.

analyze_chat(text, history)
    context window (last 10 turns) -> crisis check -> chat prompt -> dispatch
    -> parse -> schema check. Malformed output returns CHAT_FALLBACK.

Failure policy:
- Every model failing on the analysis call raises AllModelsFailed; it is the
  only error the caller has to handle (the HTTP layer maps it to 503).
- Malformed output is logged and replaced with fixed fallback content, so the
  user always gets an answer.
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from .context_window import build_context_window
from .dispatcher import dispatch
from .errors import EmptyInput, MalformedOutput
from .output_parser import coerce_analysis_result, parse_model_output
from .prompts import (
    CHAT_GENERATION,
    DEFAULT_COUNSELOR_NAME,
    JOURNAL_GENERATION,
    compose_chat_prompt,
    compose_journal_prompt,
)
from .safety import detect_crisis
from .schemas import AnalysisResult, PriorExchange
from .validation_gate import run_validation_gate

_logger = logging.getLogger(__name__)

JOURNAL_FALLBACK = AnalysisResult(
    mood="Neutral",
    summary="No summary provided.",
    advice="Keep journaling. Self-expression brings healing and clarity.",
)

CHAT_FALLBACK = AnalysisResult(
    mood="Neutral",
    summary="Chat",
    advice=(
        "I'm sorry, I had a little trouble processing that just now. "
        "I'm still here with you, though. Could you tell me a bit more?"
    ),
)

History = Sequence[Union[PriorExchange, Mapping[str, Any]]]


def _require_text(text: Optional[str]) -> str:
    if text is None or not text.strip():
        raise EmptyInput()
    return text.strip()


def _to_analysis(raw_text: str) -> AnalysisResult:
    """Parse and schema-check model text; raise MalformedOutput if either step fails."""
    result = coerce_analysis_result(parse_model_output(raw_text))
    if result is None:
        raise MalformedOutput(raw_text)
    return result


async def analyze_journal(text: str, invoker, model_ids: Sequence[str]) -> AnalysisResult:
    """
    Gate, then analyze a single journal entry.

    Raises:
        EmptyInput: text is empty or whitespace only.
        AllModelsFailed: the analysis call exhausted every model.
    """
    text = _require_text(text)

    outcome = await run_validation_gate(text, invoker, model_ids)
    if not outcome.is_valid:
        return outcome.to_result()

    result = await dispatch(invoker, model_ids, compose_journal_prompt(text), JOURNAL_GENERATION)
    result.raise_for_failure()

    try:
        return _to_analysis(result.text)
    except MalformedOutput:
        _logger.warning("Journal analysis from %s was malformed; using fallback.", result.response.model_id)
        _logger.debug("Malformed journal output: %r", result.text)
        return JOURNAL_FALLBACK


async def analyze_chat(
    text: str,
    history: Optional[History],
    invoker,
    model_ids: Sequence[str],
    counselor_name: str = DEFAULT_COUNSELOR_NAME,
) -> AnalysisResult:
    """
    Answer one chat turn with up to 10 previous exchanges as context.

    Raises:
        EmptyInput: text is empty or whitespace only.
        AllModelsFailed: the call exhausted every model.
    """
    text = _require_text(text)

    context_block = build_context_window(history or [], assistant_name=counselor_name)
    crisis, matched = detect_crisis(text)
    if crisis:
        _logger.warning("Crisis language detected in chat message (matched '%s'); escalating prompt.", matched)

    prompt = compose_chat_prompt(text, context_block, counselor_name=counselor_name, crisis=crisis)
    result = await dispatch(invoker, model_ids, prompt, CHAT_GENERATION)
    result.raise_for_failure()

    try:
        return _to_analysis(result.text)
    except MalformedOutput:
        _logger.warning("Chat reply from %s was malformed; using fallback.", result.response.model_id)
        _logger.debug("Malformed chat output: %r", result.text)
        return CHAT_FALLBACK


class ResponsePipeline:
    """
    Binds a generation backend and the model fallback order so the HTTP layer
    can call analyze_journal / analyze_chat without passing them around.
    Holds no per-call state; one instance serves concurrent requests.
    """

    def __init__(self, invoker, model_ids: Sequence[str], counselor_name: str = DEFAULT_COUNSELOR_NAME):
        self.invoker = invoker
        self.model_ids = tuple(model_ids)
        self.counselor_name = counselor_name

    async def analyze_journal(self, text: str) -> AnalysisResult:
        return await analyze_journal(text, self.invoker, self.model_ids)

    async def analyze_chat(self, text: str, history: Optional[History]) -> AnalysisResult:
        return await analyze_chat(text, history, self.invoker, self.model_ids, counselor_name=self.counselor_name)

    async def analyze(self, text: str, history: Optional[History] = None) -> AnalysisResult:
        """Journal mode when history is None, chat mode otherwise."""
        if history is None:
            return await self.analyze_journal(text)
        return await self.analyze_chat(text, history)
