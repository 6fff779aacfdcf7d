"""
wellness.py - Dashboard activity statistics for journal entries

This module provides:
- `aggregate_stats`, a pure function that turns a user's entries into the
  dashboard numbers: total count, current streak, average entries per week,
  dominant mood, per-mood counts, per-day counts and a 14-day timeline.
- A small API router exposing those stats for the current user.

Design notes:
- Entries are bucketed by calendar day in the configured local timezone; time
  of day is discarded. Naive timestamps are treated as UTC.
- The streak only counts if the most recent active day is today or
  yesterday; it then walks backwards and stops at the first gap.
- Moods are normalised to Capitalised form ("anxious" -> "Anxious") before
  counting; a missing mood counts as "Neutral".
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

import pytz
from fastapi import APIRouter, Depends, Header, HTTPException

from .config import get_settings
from .journal_store import get_journal_store
from .schemas import TimelinePoint, WellnessStats

_logger = logging.getLogger(__name__)
router = APIRouter()

NO_DATA_MOOD = "No Data"
DEFAULT_MOOD = "Neutral"
TIMELINE_DAYS = 14


# -------------------------
# Dependency helpers
# -------------------------
def get_current_user_id(x_user_id: Optional[str] = Header(None)):
    """
    FastAPI dependency that reads the signed-in user's id from the X-User-Id
    header set by the auth layer in front of this service.
    Raises HTTPException(401) if missing.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()


# -------------------------
# Entry field helpers
# -------------------------
def _field(entry: Any, name: str, default=None):
    if isinstance(entry, dict):
        return entry.get(name, default)
    return getattr(entry, name, default)


def _to_datetime(value: Union[datetime, str]) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value


def normalize_mood(mood: Optional[str]) -> str:
    mood = (mood or "").strip()
    if not mood:
        return DEFAULT_MOOD
    return mood[0].upper() + mood[1:].lower()


def current_streak(active_days: Iterable[date], today: date) -> int:
    """
    Count consecutive active calendar days ending at today or yesterday.
    Returns 0 if the most recent active day is older than yesterday.
    """
    days = sorted(set(active_days), reverse=True)
    if not days:
        return 0

    if days[0] not in (today, today - timedelta(days=1)):
        return 0

    streak = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days == 1:
            streak += 1
        else:
            break
    return streak


# -------------------------
# Aggregation
# -------------------------
def aggregate_stats(
    entries: Iterable[Any],
    now: Optional[datetime] = None,
    tz: Union[str, Any, None] = None,
) -> WellnessStats:
    """
    Aggregate entries (dicts or objects with `mood` and `created_at`) into
    dashboard statistics.

    - avg_per_week = total / max(1, days since first entry) * 7, one decimal.
    - dominant_mood: highest count; ties go to the mood seen first while
      iterating. NO_DATA_MOOD when there are no entries.
    """
    if tz is None:
        tz = get_settings().local_timezone
    if isinstance(tz, str):
        tz = pytz.timezone(tz)

    now = _to_datetime(now) if now is not None else datetime.now(pytz.utc)
    today = now.astimezone(tz).date()

    total = 0
    mood_counts: "OrderedDict[str, int]" = OrderedDict()
    day_counts: Dict[date, int] = {}
    first_created: Optional[datetime] = None

    for entry in entries:
        created_raw = _field(entry, "created_at")
        if created_raw is None:
            _logger.warning("Skipping entry without created_at")
            continue
        created = _to_datetime(created_raw)
        total += 1

        mood = normalize_mood(_field(entry, "mood"))
        mood_counts[mood] = mood_counts.get(mood, 0) + 1

        day = created.astimezone(tz).date()
        day_counts[day] = day_counts.get(day, 0) + 1

        if first_created is None or created < first_created:
            first_created = created

    streak = current_streak(day_counts.keys(), today)

    if total == 0:
        avg_per_week = 0.0
    else:
        days_since_start = max(1.0, (now - first_created).total_seconds() / 86400.0)
        avg_per_week = round(total / days_since_start * 7, 1)

    dominant = NO_DATA_MOOD
    best = 0
    for mood, count in mood_counts.items():
        if count > best:
            best, dominant = count, mood

    timeline: List[TimelinePoint] = []
    for offset in range(TIMELINE_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        timeline.append(TimelinePoint(date=day.isoformat(), count=day_counts.get(day, 0)))

    return WellnessStats(
        total_count=total,
        current_streak=streak,
        avg_per_week=avg_per_week,
        dominant_mood=dominant,
        mood_counts=dict(mood_counts),
        daily_counts={d.isoformat(): c for d, c in sorted(day_counts.items())},
        timeline=timeline,
    )


# -------------------------
# API endpoint
# -------------------------
@router.get("/stats", response_model=WellnessStats)
async def get_stats(user_id: str = Depends(get_current_user_id), store=Depends(get_journal_store)):
    """
    Dashboard statistics for the current user's journal entries.
    """
    try:
        entries = store.list_entries(user_id)
    except Exception as e:
        _logger.exception("Failed to load entries for stats (user %s): %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch journals")
    return aggregate_stats(entries)
