"""
Event Notifier - Best-effort delivery of domain events to the event bus.

Events are posted to an Inngest-compatible event API
(POST <event_bus_url>/e/<event_key>). Delivery is at-most-once: a failed send
is logged and dropped, and never propagates to the caller.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

SESSION_CREATED = "therapy/session.created"
SESSION_MESSAGE = "therapy/session.message"
ACTIVITY_COMPLETED = "activity/completed"
MOOD_UPDATED = "mood/updated"


class EventNotifier:
    """Fire-and-forget emitter for named events."""

    def __init__(
        self,
        event_key: Optional[str] = None,
        base_url: str = "https://inn.gs",
        timeout: float = 3.0
    ):
        """
        Args:
            event_key: Event bus key. When not set the notifier is disabled.
            base_url: Event API base URL
            timeout: Upper bound in seconds for a single send
        """
        self.event_key = event_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.event_key)

    async def emit(self, name: str, data: Dict[str, Any]) -> bool:
        """
        Send one event. Never raises.

        Returns:
            bool: True if the bus accepted the event
        """
        if not self.enabled:
            logger.debug(f"Event bus disabled, dropping event {name}")
            return False

        payload = {
            "name": name,
            "data": data,
            "ts": int(time.time() * 1000),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(f"{self.base_url}/e/{self.event_key}", json=payload)
                resp.raise_for_status()
        except Exception as e:
            logger.warning(
                f"Failed to send event {name}: {e}",
                extra={"extra_fields": {"event": name, "error": str(e)}}
            )
            return False

        logger.info(f"Event sent: {name}")
        return True


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def send_therapy_session_event(
    notifier: EventNotifier,
    session_id: str,
    user_id: str,
    **extra: Any
) -> bool:
    data = {
        "sessionId": session_id,
        "userId": user_id,
        "timestamp": _now_iso(),
        "requiresFollowUp": extra.pop("requires_follow_up", False),
    }
    data.update(extra)
    return await notifier.emit(SESSION_CREATED, data)


async def send_session_message_event(
    notifier: EventNotifier,
    session_id: str,
    user_id: str,
    message: str,
    analysis: Dict[str, Any],
    degraded: bool = False
) -> bool:
    return await notifier.emit(SESSION_MESSAGE, {
        "sessionId": session_id,
        "userId": user_id,
        "message": message,
        "analysis": analysis,
        "degraded": degraded,
        "timestamp": _now_iso(),
    })


async def send_activity_completion_event(notifier: EventNotifier, activity: Dict[str, Any]) -> bool:
    data = {
        "userId": activity.get("userId"),
        "activityId": activity.get("id"),
        "timestamp": _now_iso(),
    }
    data.update({k: v for k, v in activity.items() if k not in ("id", "userId")})
    return await notifier.emit(ACTIVITY_COMPLETED, data)


async def send_mood_update_event(notifier: EventNotifier, mood: Dict[str, Any]) -> bool:
    data = {"timestamp": _now_iso()}
    data.update(mood)
    return await notifier.emit(MOOD_UPDATED, data)


# Global notifier instance
_event_notifier: Optional[EventNotifier] = None


def get_event_notifier() -> EventNotifier:
    """Get the global event notifier, created from settings on first use."""
    global _event_notifier
    if _event_notifier is None:
        _event_notifier = EventNotifier(
            event_key=settings.event_key,
            base_url=settings.event_bus_url,
            timeout=settings.event_bus_timeout_seconds,
        )
    return _event_notifier
