from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from .models import UserProfile


def next_streak(last_note_date: Optional[str], streak: int, today: date) -> int:
    """Streak after writing on ``today``, given the previous writing day.

    Dates are compared as local ``YYYY-MM-DD`` strings; timezone skew is not handled.
    """
    if not last_note_date:
        return 1
    if last_note_date == today.isoformat():
        return streak
    if last_note_date == (today - timedelta(days=1)).isoformat():
        return streak + 1
    return 1


def award_first_save(profile: UserProfile, points: int, today: Optional[date] = None) -> UserProfile:
    """Credit a newly created note: add points, recompute the streak, stamp today."""
    today = today or date.today()
    profile.points += points
    profile.streak = next_streak(profile.last_note_date, profile.streak, today)
    profile.last_note_date = today.isoformat()
    return profile
