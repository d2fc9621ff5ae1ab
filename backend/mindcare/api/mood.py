"""
Mood API endpoints - Mood logging, history and statistics.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Tuple
from fastapi import APIRouter, Depends, Query, status

from .dependencies import get_mood_storage, get_notifier
from .errors import handle_service_errors
from ..core.exceptions import ValidationError
from ..models import MoodCreate, MoodEntry, MoodStats
from ..services.event_notifier import EventNotifier, send_mood_update_event
from ..storage.record_storage import RecordStorage
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mood", tags=["mood"])

STATS_PERIODS = {"week": 7, "month": 30, "year": 365}


def day_bounds(target: date) -> Tuple[datetime, datetime]:
    """Start and end (inclusive) of a UTC calendar day."""
    start = datetime.combine(target, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def range_bounds(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    if end_date < start_date:
        raise ValidationError("endDate must not be before startDate")
    return day_bounds(start_date)[0], day_bounds(end_date)[1]


def summarize_moods(entries: Iterable[MoodEntry], period: str) -> MoodStats:
    """Aggregate mood scores over a period; no entries gives empty stats."""
    scores = [e.score for e in entries]
    if not scores:
        return MoodStats(period=period)
    return MoodStats(
        period=period,
        count=len(scores),
        average=round(sum(scores) / len(scores), 1),
        highest=max(scores),
        lowest=min(scores),
    )


def _dump(entries) -> list:
    return [e.model_dump(mode="json", by_alias=True) for e in entries]


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def create_mood(
    mood: MoodCreate,
    user_id: str = Depends(get_current_user_id),
    moods: RecordStorage[MoodEntry] = Depends(get_mood_storage),
    notifier: EventNotifier = Depends(get_notifier)
):
    """Log a mood entry for the caller."""
    entry = await moods.add(MoodEntry(id=uuid.uuid4().hex, user_id=user_id, **mood.model_dump()))
    logger.info(f"Mood logged for user {user_id}")

    await send_mood_update_event(notifier, {
        "userId": user_id,
        "mood": entry.score,
        "context": entry.context,
        "activities": entry.activities,
        "notes": entry.note,
    })
    return {"success": True, "data": entry.model_dump(mode="json", by_alias=True)}


@router.get("")
@handle_service_errors
async def get_mood_data(
    target_date: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    moods: RecordStorage[MoodEntry] = Depends(get_mood_storage)
):
    """
    Mood entries for a day (default today) or a date range, newest first.
    """
    if target_date is not None:
        start, end = day_bounds(target_date)
    elif start_date is not None and end_date is not None:
        start, end = range_bounds(start_date, end_date)
    else:
        start, end = day_bounds(datetime.now(timezone.utc).date())

    entries = await moods.list_for_user(user_id, start, end, newest_first=True)
    logger.info(f"Retrieved {len(entries)} mood entries for user {user_id}")
    return {"success": True, "data": _dump(entries), "count": len(entries)}


@router.get("/history")
@handle_service_errors
async def get_mood_history(
    days: int = Query(30, ge=1, le=365),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    moods: RecordStorage[MoodEntry] = Depends(get_mood_storage)
):
    """Mood history for charts, oldest first (default: last 30 days)."""
    if start_date is not None and end_date is not None:
        start, end = range_bounds(start_date, end_date)
    else:
        end = datetime.now(timezone.utc)
        start = end - timedelta(days=days)

    entries = await moods.list_for_user(user_id, start, end, newest_first=False)
    return {"success": True, "data": _dump(entries), "count": len(entries)}


@router.get("/stats")
@handle_service_errors
async def get_mood_stats(
    period: str = Query("week"),
    user_id: str = Depends(get_current_user_id),
    moods: RecordStorage[MoodEntry] = Depends(get_mood_storage)
):
    """Average, highest and lowest mood score over a week, month or year."""
    if period not in STATS_PERIODS:
        raise ValidationError(f"period must be one of: {', '.join(STATS_PERIODS)}")

    end = datetime.now(timezone.utc)
    start = end - timedelta(days=STATS_PERIODS[period])
    entries = await moods.list_for_user(user_id, start, end)
    return {"success": True, "data": summarize_moods(entries, period).model_dump()}
