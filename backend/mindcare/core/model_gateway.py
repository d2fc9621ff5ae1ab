"""
Model Gateway - Generates the therapist reply and message analysis.

The gateway never raises for generation problems. A failed, timed out or
empty reply is replaced by FALLBACK_REPLY with the neutral analysis, and an
analysis that cannot be decoded into MessageAnalysis is replaced by the
neutral analysis. Each external call is attempted once.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pydantic

from ..llm.base import LLMMessage, LLMProvider
from ..models.chat import ChatMessage, MessageAnalysis

logger = logging.getLogger(__name__)


THERAPIST_SYSTEM_PROMPT = """You are an AI therapist assistant. Your role is to:
1. Provide empathetic and supportive responses
2. Use evidence-based therapeutic techniques
3. Maintain professional boundaries
4. Monitor for risk factors
5. Guide users toward their therapeutic goals

Keep your responses concise and focused on helping the user."""

ANALYSIS_PROMPT = """Analyze the user's latest message in the context of a supportive therapy conversation.

Respond with ONLY a JSON object in this format:
{
  "emotionalState": "one or two words, e.g. anxious, sad, hopeful, neutral",
  "themes": ["short topic labels"],
  "riskLevel": 0-10,
  "recommendedApproach": "a therapeutic approach, e.g. grounding, cognitive reframing, validation",
  "progressIndicators": ["signs of engagement or progress"]
}

riskLevel is 0 when there is no indication of harm to self or others and 10 for imminent danger."""

FALLBACK_REPLY = (
    "I understand you're reaching out, and I'm here to listen and support you. "
    "Sometimes I have technical difficulties, but your feelings and experiences are always "
    "valid and important. Could you tell me more about what's on your mind right now?"
)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass
class GatewayResult:
    reply: str
    analysis: MessageAnalysis
    degraded: bool = False


def parse_analysis(raw: Optional[str]) -> Optional[MessageAnalysis]:
    """
    Decode model output into a MessageAnalysis.

    Tolerates surrounding whitespace and a markdown code fence. Returns None
    if the text is not a JSON object matching the schema.
    """
    if not raw:
        return None
    text = _CODE_FENCE.sub("", raw.strip()).strip()
    try:
        return MessageAnalysis.model_validate_json(text)
    except pydantic.ValidationError as e:
        logger.warning(f"Model analysis did not match schema: {e.error_count()} errors")
        return None


class TherapyModelGateway:
    """Wraps the generative text provider for the therapy chat."""

    def __init__(self, provider: Optional[LLMProvider], timeout: float = 30.0):
        """
        Args:
            provider: Configured LLM provider, or None when no API key is set
            timeout: Upper bound in seconds for each provider call
        """
        self.provider = provider
        self.timeout = timeout

    def _build_messages(
        self,
        message: str,
        history: Sequence[ChatMessage],
        system_prompt: str
    ) -> List[LLMMessage]:
        messages = [LLMMessage.text("system", system_prompt)]
        for past in history:
            messages.append(LLMMessage.text(past.role.value, past.content))
        messages.append(LLMMessage.text("user", message))
        return messages

    async def _complete(self, messages: List[LLMMessage], **kwargs) -> Optional[str]:
        """Single bounded provider call. Returns None on any failure."""
        try:
            response = await asyncio.wait_for(
                self.provider.chat_completion(messages, **kwargs),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"LLM call timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.warning(f"LLM call failed: {e}")
            return None
        return response.content

    async def generate_reply(
        self,
        message: str,
        history: Sequence[ChatMessage],
        system_prompt: str = THERAPIST_SYSTEM_PROMPT
    ) -> Optional[str]:
        """Reply text, or None if generation failed or came back empty."""
        if self.provider is None:
            logger.warning("LLM provider not configured, using fallback reply")
            return None
        reply = await self._complete(self._build_messages(message, history, system_prompt))
        if reply is None or not reply.strip():
            return None
        return reply.strip()

    async def analyze(self, message: str, history: Sequence[ChatMessage]) -> MessageAnalysis:
        """Structured analysis of the message, or the neutral analysis."""
        if self.provider is None:
            return MessageAnalysis.neutral()
        raw = await self._complete(
            self._build_messages(message, history, ANALYSIS_PROMPT),
            temperature=0.1,
            json_mode=True,
        )
        return parse_analysis(raw) or MessageAnalysis.neutral()

    async def generate(
        self,
        message: str,
        history: Sequence[ChatMessage],
        system_prompt: str = THERAPIST_SYSTEM_PROMPT
    ) -> GatewayResult:
        """
        Produce the reply and analysis for one user message.

        Args:
            message: The user's message (non-empty)
            history: Prior messages of the session, oldest first
            system_prompt: Persona and behavioural rules for the assistant

        Returns:
            GatewayResult; `degraded` is True when the fallback reply was used
        """
        reply = await self.generate_reply(message, history, system_prompt)
        if reply is None:
            logger.warning(
                "Reply generation degraded, using fallback reply",
                extra={"extra_fields": {"history_length": len(history)}}
            )
            return GatewayResult(reply=FALLBACK_REPLY, analysis=MessageAnalysis.neutral(), degraded=True)

        analysis = await self.analyze(message, history)
        return GatewayResult(reply=reply, analysis=analysis)
