"""
errors.py - Failure taxonomy for the AI response pipeline

Only AllModelsFailed is meant to reach the pipeline's caller. The other
classes name failure modes that are recovered inside the pipeline:

- TransportFailure: one model attempt failed (HTTP error, timeout, blocked).
  The fallback dispatcher reacts by trying the next model.
- MalformedOutput: the model answered but the text could not be turned into
  an AnalysisResult. Recovered with fixed fallback content.
- Invalid input (validation gate rejection) is not an exception at all: it
  is GateState.INVALID, answered with a clarification message.
- EmptyInput: the caller broke the precondition that text is non-empty.
"""

from typing import List, Optional


class PipelineError(Exception):
    """Base class for errors raised by the response pipeline."""


class EmptyInput(PipelineError, ValueError):
    def __init__(self, message: str = "Text must not be empty."):
        super().__init__(message)


class TransportFailure(PipelineError):
    def __init__(self, model_id: str, reason: str, status_code: Optional[int] = None):
        self.model_id = model_id
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Model '{model_id}' failed: {reason}")


class AllModelsFailed(PipelineError):
    """Every model in the fallback list failed for a single call."""

    def __init__(self, attempts: Optional[List] = None):
        self.attempts = list(attempts or [])
        tried = ", ".join(a.model_id for a in self.attempts) or "none"
        super().__init__(f"All models failed (tried: {tried})")


class MalformedOutput(PipelineError):
    def __init__(self, raw_text: Optional[str] = None):
        self.raw_text = raw_text
        super().__init__("Model output could not be parsed into an analysis result.")

