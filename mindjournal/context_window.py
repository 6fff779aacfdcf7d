"""
context_window.py - Render recent chat turns as a prompt-ready history block
"""

from typing import Any, Mapping, Sequence, Union

from .prompts import DEFAULT_COUNSELOR_NAME
from .schemas import PriorExchange

MAX_CONTEXT_EXCHANGES = 10


def _as_exchange(item: Union[PriorExchange, Mapping[str, Any]]) -> PriorExchange:
    if isinstance(item, PriorExchange):
        return item
    return PriorExchange(user=str(item.get("user", "")), ai=str(item.get("ai", "")))


def build_context_window(
    history: Sequence[Union[PriorExchange, Mapping[str, Any]]],
    assistant_name: str = DEFAULT_COUNSELOR_NAME,
    limit: int = MAX_CONTEXT_EXCHANGES,
) -> str:
    """
    Keep the `limit` most recent exchanges (oldest of those first) and render
    each as a "User:" line and an "<assistant_name>:" line. Blocks are
    separated by a blank line. Empty history gives "".

    Only the count is capped: messages are not truncated or de-duplicated.
    """
    if not history or limit <= 0:
        return ""

    recent = [_as_exchange(item) for item in list(history)[-limit:]]
    return "\n\n".join(f"User: {ex.user}\n{assistant_name}: {ex.ai}" for ex in recent)
