"""OpenAI chat completions provider used for content analysis."""

from typing import Any

import httpx

from vidgen_engine.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from vidgen_engine.config import settings
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI API provider for GPT models."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_model
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

        if not self.api_key:
            logger.warning("openai_api_key_missing")

    @property
    def name(self) -> str:
        return f"openai:{self.model}"

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

    def _build_payload(
        self,
        messages: list[LLMMessage],
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate completion using OpenAI API."""
        if not self.api_key:
            raise ValueError("OpenAI API key not configured")

        payload = self._build_payload(messages, temperature, max_tokens, json_mode)
        logger.debug("openai_request", model=self.model, message_count=len(messages))

        async with self._client(self.timeout) as client:
            response = await client.post("/chat/completions", json=payload)
            if response.is_error:
                logger.error(
                    "openai_api_error",
                    status_code=response.status_code,
                    body=response.text[:500],
                )
            response.raise_for_status()
            data = response.json()

        choice = data["choices"][0]
        usage = data.get("usage", {})

        logger.info(
            "openai_response",
            model=data.get("model", self.model),
            tokens_used=usage.get("total_tokens", 0),
            finish_reason=choice.get("finish_reason"),
        )

        return LLMResponse(
            content=choice["message"]["content"] or "",
            model=data.get("model", self.model),
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
            raw_response=data,
            finish_reason=choice.get("finish_reason"),
        )

    async def health_check(self) -> bool:
        """Check if OpenAI API is accessible."""
        if not self.api_key:
            return False

        try:
            async with self._client(10.0) as client:
                response = await client.get("/models")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("openai_health_check_failed", error=str(e))
            return False
