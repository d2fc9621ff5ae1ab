"""
Activity API endpoints - Log and list wellness activities.
"""

import logging
import uuid
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status

from .dependencies import get_activity_storage, get_notifier
from .errors import handle_service_errors
from .mood import day_bounds
from ..models import ActivityCreate, ActivityEntry
from ..services.event_notifier import EventNotifier, send_activity_completion_event
from ..storage.record_storage import RecordStorage
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def log_activity(
    activity: ActivityCreate,
    user_id: str = Depends(get_current_user_id),
    activities: RecordStorage[ActivityEntry] = Depends(get_activity_storage),
    notifier: EventNotifier = Depends(get_notifier)
):
    """Log a completed activity and emit an activity/completed event."""
    entry = await activities.add(
        ActivityEntry(id=uuid.uuid4().hex, user_id=user_id, **activity.model_dump())
    )
    logger.info(f"Activity logged for user {user_id}")

    data = entry.model_dump(mode="json", by_alias=True)
    await send_activity_completion_event(notifier, data)
    return {"success": True, "data": data}


@router.get("")
@handle_service_errors
async def get_activities(
    user_id: str = Depends(get_current_user_id),
    activities: RecordStorage[ActivityEntry] = Depends(get_activity_storage)
):
    entries = await activities.list_for_user(user_id)
    return [e.model_dump(mode="json", by_alias=True) for e in entries]


@router.get("/today")
@handle_service_errors
async def get_today_activities(
    user_id: str = Depends(get_current_user_id),
    activities: RecordStorage[ActivityEntry] = Depends(get_activity_storage)
):
    start, end = day_bounds(datetime.now(timezone.utc).date())
    entries = await activities.list_for_user(user_id, start, end)
    logger.debug(f"Found {len(entries)} activities today for user {user_id}")
    return [e.model_dump(mode="json", by_alias=True) for e in entries]
