"""
Google Gemini LLM Provider.
Uses the Generative Language REST API (models/<model>:generateContent).
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any

from .base import LLMProvider, LLMMessage, LLMResponse

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """
    Provider for Google Gemini models.
    System messages are sent as systemInstruction; assistant turns use the "model" role.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        default_temperature: float = 0.7,
        default_max_tokens: int = 1024,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, base_url, default_temperature, default_max_tokens, timeout)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def _build_payload(
        self,
        messages: List[LLMMessage],
        temperature: float,
        max_tokens: int,
        json_mode: bool
    ) -> Dict[str, Any]:
        system_parts = [{"text": m.content} for m in messages if m.role == "system"]
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages if m.role != "system"
        ]
        generation_config: Dict[str, Any] = {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        }
        if json_mode:
            generation_config["responseMimeType"] = "application/json"

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return payload

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """Send request to the generateContent endpoint."""
        start_time = time.time()
        model = kwargs.get("model", self.model)
        url = f"{self.base_url}/models/{model}:generateContent"
        payload = self._build_payload(
            messages,
            temperature if temperature is not None else self.default_temperature,
            max_tokens or self.default_max_tokens,
            json_mode,
        )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API call starting: provider=gemini, model={model}, "
                f"{len(payload['contents'])} contents, json_mode={json_mode}"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                resp.raise_for_status()
                data = resp.json()

            candidates = data.get("candidates") or []
            parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
            content = "".join(part.get("text", "") for part in parts)

            usage_meta = data.get("usageMetadata", {})
            usage = {
                "prompt_tokens": usage_meta.get("promptTokenCount", 0),
                "completion_tokens": usage_meta.get("candidatesTokenCount", 0),
                "total_tokens": usage_meta.get("totalTokenCount", 0),
            }
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                "LLM API call completed",
                extra={"extra_fields": self._log_usage_fields(
                    data.get("modelVersion", model), usage, duration_ms
                )}
            )

            return LLMResponse(
                content=content,
                model=data.get("modelVersion", model),
                usage=usage,
                raw=data,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"LLM API call failed: {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "provider": "gemini",
                    "model": model,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise
