"""
output_parser.py - Recover a JSON object from raw model text

Models are told to answer with a single JSON object, but they still wrap it in
Markdown fences, bold markers, or a sentence of prose. `parse_model_output`
removes those artifacts and parses what is left. It is a recovery layer, not a
JSON repair tool: unbalanced braces, trailing commas, and prose *after* the
object are not fixed and yield None.

`coerce_analysis_result` then checks the parsed object against the strict
ModelAnalysis schema before anything downstream trusts it.
"""

import json
import re
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .schemas import AnalysisResult, ModelAnalysis

_logger = logging.getLogger(__name__)

_FENCE_JSON_RE = re.compile(r"```json", re.IGNORECASE)
_NEWLINE_RUN_RE = re.compile(r"\n+")


def sanitize_model_text(raw: Optional[str]) -> str:
    """Strip fences and bold markup, collapse newline runs, trim, cut to first '{'."""
    if not raw:
        return ""
    cleaned = _FENCE_JSON_RE.sub("", raw)
    cleaned = cleaned.replace("```", "").replace("**", "")
    cleaned = _NEWLINE_RUN_RE.sub("\n", cleaned).strip()

    start = cleaned.find("{")
    if start != -1:
        cleaned = cleaned[start:]
    return cleaned


def parse_model_output(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Return the JSON object contained in raw model text, or None if it cannot
    be parsed or is not an object.
    """
    cleaned = sanitize_model_text(raw)
    if not cleaned:
        return None
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        _logger.debug("Model output is not valid JSON: %s", e)
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def coerce_analysis_result(parsed: Optional[Dict[str, Any]]) -> Optional[AnalysisResult]:
    """
    Validate that a parsed object carries non-empty string mood, summary and
    advice. Extra keys are ignored. Returns None when the shape is wrong.
    """
    if parsed is None:
        return None
    try:
        checked = ModelAnalysis.model_validate(parsed)
    except ValidationError as e:
        _logger.warning("Model output failed schema check: %d error(s)", e.error_count())
        return None
    return AnalysisResult(mood=checked.mood, summary=checked.summary, advice=checked.advice)
