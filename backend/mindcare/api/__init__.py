"""API module."""

from .auth import router as auth_router
from .chat import router as chat_router
from .mood import router as mood_router
from .activity import router as activity_router

__all__ = ['auth_router', 'chat_router', 'mood_router', 'activity_router']
