"""
Chat Models - Therapy chat sessions, messages and message analysis.

Models serialize with camelCase aliases (sessionId, riskLevel, ...) to keep the
JSON shape the web frontend consumes; Python code uses the snake_case names.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model that accepts both field names and camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class MessageAnalysis(CamelModel):
    """Structured analysis of a user message produced by the model."""
    emotional_state: str
    themes: List[str] = Field(default_factory=list)
    risk_level: float = Field(..., ge=0, le=10)
    recommended_approach: str
    progress_indicators: List[str] = Field(default_factory=list)

    @classmethod
    def neutral(cls) -> "MessageAnalysis":
        """Default analysis used whenever the model output is unavailable."""
        return cls(
            emotional_state="neutral",
            themes=["general"],
            risk_level=0,
            recommended_approach="supportive",
            progress_indicators=["engagement"],
        )


class ProgressSnapshot(CamelModel):
    emotional_state: Optional[str] = None
    risk_level: Optional[float] = None


class MessageMetadata(CamelModel):
    """Metadata attached to assistant messages."""
    analysis: Optional[MessageAnalysis] = None
    current_goal: Optional[str] = None
    progress: Optional[ProgressSnapshot] = None

    @classmethod
    def from_analysis(cls, analysis: Optional[MessageAnalysis]) -> "MessageMetadata":
        if analysis is None:
            return cls()
        return cls(
            analysis=analysis,
            progress=ProgressSnapshot(
                emotional_state=analysis.emotional_state,
                risk_level=analysis.risk_level,
            ),
        )


class ChatMessage(CamelModel):
    """A single message in a chat session."""
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: Optional[MessageMetadata] = None


class ChatSession(CamelModel):
    """
    A therapy chat session.

    `id` is the internal document key used by storage; `session_id` is the
    opaque identifier handed to clients.
    """
    id: str
    session_id: str
    owner_id: str = Field(..., alias="userId")
    status: SessionStatus = SessionStatus.ACTIVE
    start_time: datetime = Field(default_factory=utc_now)
    messages: List[ChatMessage] = Field(default_factory=list)


# Request / response schemas

class SendMessageRequest(BaseModel):
    message: str


class SessionStatusUpdate(BaseModel):
    status: SessionStatus
