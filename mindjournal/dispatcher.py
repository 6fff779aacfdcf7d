"""
dispatcher.py - Horizontal fallback across an ordered list of models

The model ids are tried strictly in order, one request in flight at a time,
so a call never pays for more than one model concurrently. The first
successful response wins. There is no per-model retry and no backoff; the
only resilience strategy is moving on to the next (cheaper) model.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .errors import AllModelsFailed, TransportFailure
from .model_clients import GenerationConfig, ModelResponse

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelAttempt:
    model_id: str
    succeeded: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass
class DispatchResult:
    response: Optional[ModelResponse]
    attempts: List[ModelAttempt] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.response is not None

    @property
    def text(self) -> str:
        return self.response.text if self.response is not None else ""

    def raise_for_failure(self) -> None:
        if self.response is None:
            raise AllModelsFailed(self.attempts)


async def dispatch(invoker, model_ids: Sequence[str], prompt: str, generation: GenerationConfig) -> DispatchResult:
    """
    Try each model id in order until one succeeds.

    Returns a DispatchResult whose `response` is the first successful
    ModelResponse, or None when every model failed (AllModelsFailed).
    `attempts` records what was tried, in order.
    """
    attempts: List[ModelAttempt] = []

    for model_id in model_ids:
        response = await invoker.invoke(model_id, prompt, generation)
        try:
            response.raise_for_failure()
        except TransportFailure as e:
            _logger.warning("%s; trying next model", e)
            attempts.append(ModelAttempt(model_id, False, e.status_code, e.reason))
            continue

        attempts.append(ModelAttempt(model_id, True, response.status_code))
        if len(attempts) > 1:
            _logger.info("Model %s succeeded after %d failed attempt(s)", model_id, len(attempts) - 1)
        return DispatchResult(response=response, attempts=attempts)

    _logger.error("All %d model(s) failed: %s", len(attempts), ", ".join(a.model_id for a in attempts))
    return DispatchResult(response=None, attempts=attempts)
