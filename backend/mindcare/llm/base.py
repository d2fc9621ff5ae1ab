"""
LLM Provider Base - Abstract base for all LLM API providers.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field


@dataclass
class LLMMessage:
    """Represents a message in a conversation."""
    role: str  # "system", "user", "assistant"
    content: str

    @staticmethod
    def text(role: str, text: str) -> "LLMMessage":
        """Create a text message."""
        return LLMMessage(role=role, content=text)


@dataclass
class LLMResponse:
    """Response from an LLM API call."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    Abstract base class for LLM API providers.
    All providers must implement chat_completion.
    """

    name = "base"

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.7, default_max_tokens: int = 1024,
                 timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.timeout = timeout

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: Conversation messages, system prompt first
            temperature: Sampling temperature override
            max_tokens: Max tokens override
            json_mode: Ask the provider to return a JSON object
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with the generated content
        """
        pass

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Convert LLMMessage list to OpenAI-style message dicts."""
        return [{"role": m.role, "content": m.content} for m in messages]

    def _log_usage_fields(self, model: str, usage: Dict[str, Any], duration_ms: float) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "model": model,
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
            "duration_ms": round(duration_ms, 2),
        }
