"""Unit tests for streak and activity aggregation"""

from datetime import date, datetime

import pytz

from mindjournal.wellness import NO_DATA_MOOD, aggregate_stats, current_streak, normalize_mood

NOW = datetime(2024, 1, 3, 18, 0, tzinfo=pytz.utc)


def entry(day, mood="Happy", hour=9):
    return {"mood": mood, "created_at": datetime(2024, 1, day, hour, 0, tzinfo=pytz.utc)}


def stats(entries, now=NOW, tz="UTC"):
    return aggregate_stats(entries, now=now, tz=tz)


def test_three_consecutive_days_ending_today():
    result = stats([entry(1), entry(2), entry(3)])
    assert result.current_streak == 3
    assert result.total_count == 3


def test_gap_breaks_the_streak():
    assert stats([entry(1), entry(3)]).current_streak == 1


def test_no_entries():
    result = stats([])
    assert result.current_streak == 0
    assert result.total_count == 0
    assert result.avg_per_week == 0.0
    assert result.dominant_mood == NO_DATA_MOOD
    assert result.mood_counts == {}


def test_streak_anchored_at_yesterday_still_counts():
    now = datetime(2024, 1, 4, 8, 0, tzinfo=pytz.utc)
    assert stats([entry(2), entry(3)], now=now).current_streak == 2


def test_streak_is_zero_when_last_entry_is_older_than_yesterday():
    now = datetime(2024, 1, 10, 8, 0, tzinfo=pytz.utc)
    assert stats([entry(1), entry(2), entry(3)], now=now).current_streak == 0


def test_multiple_entries_on_one_day_count_once_for_streak():
    result = stats([entry(3, hour=8), entry(3, hour=20), entry(2)])
    assert result.current_streak == 2
    assert result.daily_counts == {"2024-01-02": 1, "2024-01-03": 2}


def test_calendar_day_uses_local_timezone():
    # 2024-01-02 20:00 UTC is already 2024-01-03 in Kolkata
    late = {"mood": "Calm", "created_at": datetime(2024, 1, 2, 20, 0, tzinfo=pytz.utc)}
    result = stats([late], tz="Asia/Kolkata")
    assert result.daily_counts == {"2024-01-03": 1}
    assert result.current_streak == 1


def test_naive_and_iso_string_timestamps_are_accepted():
    entries = [
        {"mood": "calm", "created_at": "2024-01-03T07:00:00Z"},
        {"mood": "calm", "created_at": datetime(2024, 1, 2, 7, 0)},
    ]
    result = stats(entries)
    assert result.current_streak == 2


def test_average_per_week():
    # First entry 2024-01-01 09:00, now 2024-01-03 18:00 -> 2.375 days
    result = stats([entry(1), entry(2), entry(3)])
    assert result.avg_per_week == round(3 / 2.375 * 7, 1)


def test_average_uses_at_least_one_day():
    result = stats([entry(3, hour=17)])
    assert result.avg_per_week == 7.0


def test_dominant_mood_and_normalisation():
    entries = [entry(1, "sad"), entry(2, "HAPPY"), entry(3, "happy"), entry(3, None)]
    result = stats(entries)
    assert result.mood_counts == {"Sad": 1, "Happy": 2, "Neutral": 1}
    assert result.dominant_mood == "Happy"


def test_dominant_mood_tie_goes_to_first_encountered():
    result = stats([entry(1, "Calm"), entry(2, "Anxious"), entry(3, "Anxious"), entry(3, "Calm")])
    assert result.dominant_mood == "Calm"


def test_timeline_covers_fourteen_days_oldest_first():
    result = stats([entry(3), entry(3), entry(1)])
    assert len(result.timeline) == 14
    assert result.timeline[0].date == "2023-12-21"
    assert result.timeline[-1].date == "2024-01-03"
    assert result.timeline[-1].count == 2
    assert result.timeline[-3].count == 1


def test_objects_with_attributes_are_accepted():
    class Row:
        def __init__(self, mood, created_at):
            self.mood = mood
            self.created_at = created_at

    result = stats([Row("Excited", datetime(2024, 1, 3, 10, 0, tzinfo=pytz.utc))])
    assert result.dominant_mood == "Excited"


def test_current_streak_helper():
    today = date(2024, 1, 3)
    assert current_streak([], today) == 0
    assert current_streak([date(2024, 1, 3), date(2024, 1, 2), date(2023, 12, 31)], today) == 2


def test_normalize_mood():
    assert normalize_mood("aNXIOUS") == "Anxious"
    assert normalize_mood("  ") == "Neutral"
    assert normalize_mood(None) == "Neutral"
