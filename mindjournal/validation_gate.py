"""
validation_gate.py - Reject unintelligible journal text before full analysis

The gate is a two-step state machine: PENDING -> VALID | INVALID.
It spends one cheap model call (low temperature, small output budget) asking
only whether the text is meaningful. Anything short of an explicit
`"isValid": true` -- a parse failure, `false`, a non-boolean, or every model
failing -- ends in INVALID, and the pipeline answers with a clarification
message instead of an analysis.

Only the single-shot journal mode is gated. Chat turns are part of an ongoing
conversation and go straight to analysis.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .dispatcher import dispatch
from .output_parser import parse_model_output
from .prompts import VALIDATION_GENERATION, compose_validation_prompt
from .schemas import AnalysisResult

_logger = logging.getLogger(__name__)

DEFAULT_CLARIFICATION = (
    "I couldn't quite understand that entry. Could you tell me a little more about "
    "how you're feeling or what happened today?"
)


class GateState(str, Enum):
    PENDING = "pending"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class GateOutcome:
    state: GateState
    message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.state is GateState.VALID

    def to_result(self) -> AnalysisResult:
        """The short-circuit result returned to the caller on rejection."""
        return AnalysisResult(mood=None, summary=None, advice=self.message or DEFAULT_CLARIFICATION)


def _invalid(message: Optional[str] = None) -> GateOutcome:
    if not isinstance(message, str) or not message.strip():
        message = DEFAULT_CLARIFICATION
    return GateOutcome(GateState.INVALID, message.strip())


async def run_validation_gate(text: str, invoker, model_ids: Sequence[str]) -> GateOutcome:
    """Classify text as reflective writing (VALID) or noise (INVALID)."""
    state = GateState.PENDING
    _logger.debug("Validation gate %s for %d chars", state.value, len(text))

    result = await dispatch(invoker, model_ids, compose_validation_prompt(text), VALIDATION_GENERATION)
    if not result.ok:
        _logger.warning("Validation gate could not reach any model; treating entry as invalid.")
        return _invalid()

    parsed = parse_model_output(result.text)
    if parsed is None:
        _logger.warning("Validation gate output was not parseable JSON; treating entry as invalid.")
        return _invalid()

    if parsed.get("isValid") is True:
        return GateOutcome(GateState.VALID)

    _logger.info("Validation gate rejected entry (isValid=%r)", parsed.get("isValid"))
    return _invalid(parsed.get("message"))
