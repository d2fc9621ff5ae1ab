"""
Wellness Models - Mood entries and logged activities.
"""

from datetime import datetime
from typing import List, Optional, Union
from pydantic import BaseModel, Field

from .chat import CamelModel, utc_now


class MoodCreate(BaseModel):
    """Mood entry submitted by the user."""
    score: int = Field(..., ge=0, le=100)
    note: Optional[str] = None
    context: Optional[str] = None
    activities: List[str] = Field(default_factory=list)


class MoodEntry(CamelModel):
    """Stored mood entry."""
    id: str
    user_id: str
    score: int = Field(..., ge=0, le=100)
    note: Optional[str] = None
    context: Optional[str] = None
    activities: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)


class MoodStats(BaseModel):
    """Aggregated mood statistics over a period."""
    period: str
    count: int = 0
    average: Optional[float] = None
    highest: Optional[int] = None
    lowest: Optional[int] = None


class ActivityCreate(BaseModel):
    """Activity submitted by the user."""
    type: str
    name: str
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)  # minutes
    difficulty: Optional[Union[int, str]] = None
    feedback: Optional[str] = None


class ActivityEntry(CamelModel):
    """Stored activity entry."""
    id: str
    user_id: str
    type: str
    name: str
    description: Optional[str] = None
    duration: Optional[int] = None
    difficulty: Optional[Union[int, str]] = None
    feedback: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
