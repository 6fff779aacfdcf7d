"""
safety.py - Crisis language detection for chat turns

The chat prompt always tells the counselor persona to escalate to
professional help on any sign of danger. This module adds a deterministic
check on the user's latest message so that, when explicit crisis language is
present, the prompt composer can put the escalation instruction at the top of
the header instead of relying on the model to notice it.

Example:
- "I want to die" is flagged.
- "I can't go on with these work tasks" is not (work frustration, not crisis).
"""

import re
from typing import Optional, Tuple

# Phrases that indicate self-harm, suicidal ideation, or immediate danger.
SAFETY_KEYWORDS = [
    "suicide", "suicidal", "kill myself", "end my life", "hurt myself", "want to die",
    "i wish i was dead", "no reason to live", "better off dead", "can't go on",
    "put an end to it", "cut myself", "self-harm", "self harm", "hurting myself",
    "harm myself", "self injury", "overdose", "hang myself", "not safe", "in danger",
]

_SAFETY_RE = re.compile(
    r"\b(" + r"|".join(re.escape(k) for k in SAFETY_KEYWORDS) + r")\b",
    flags=re.IGNORECASE,
)


def detect_crisis(text: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Return (True, matched_phrase) if the text contains crisis language,
    otherwise (False, None). Every match is checked, so a workload phrase
    cannot hide a later one.
    """
    if not text or not text.strip():
        return False, None

    # Mobile keyboards send the typographic apostrophe
    normalized = text.replace("’", "'")
    context = normalized.lower()
    work_context = "work" in context and "tasks" in context

    for m in _SAFETY_RE.finditer(normalized):
        matched = m.group(0)
        # "can't go on" about workload is frustration, not crisis
        if matched.lower() == "can't go on" and work_context:
            continue
        return True, matched

    return False, None
