"""Models module."""

from .user import User, UserCreate, UserLogin, Token, TokenData
from .chat import (
    ChatMessage, ChatSession, MessageAnalysis, MessageMetadata, MessageRole,
    ProgressSnapshot, SessionStatus, SendMessageRequest, SessionStatusUpdate, utc_now
)
from .wellness import MoodCreate, MoodEntry, MoodStats, ActivityCreate, ActivityEntry

__all__ = [
    'User', 'UserCreate', 'UserLogin', 'Token', 'TokenData',
    'ChatMessage', 'ChatSession', 'MessageAnalysis', 'MessageMetadata', 'MessageRole',
    'ProgressSnapshot', 'SessionStatus', 'SendMessageRequest', 'SessionStatusUpdate', 'utc_now',
    'MoodCreate', 'MoodEntry', 'MoodStats', 'ActivityCreate', 'ActivityEntry',
]
