"""Gemini generation client.

Gemini is reached through its OpenAI-compatible endpoint, so the OpenAI SDK
handles transport, retries and streaming.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from portfolio_chatbot.config import Settings, get_settings
from portfolio_chatbot.exceptions import UpstreamError
from portfolio_chatbot.interfaces.generation_interface import GenerationClientInterface
from portfolio_chatbot.models.chat import Prompt

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a helpful AI assistant for a portfolio website. You help users with "
    "their queries about the portfolio owner's skills, projects, and experience."
)

# Prompt turns use Gemini's role names; the OpenAI-compatible wire format
# calls the generated role "assistant".
_WIRE_ROLES = {"user": "user", "model": "assistant"}


class GeminiClient(GenerationClientInterface):
    """Chat completions against Gemini."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str | None = None,
        temperature: float = 0.3,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key
            model: Gemini model name
            base_url: OpenAI-compatible endpoint for Gemini
            temperature: Sampling temperature
            system_instruction: System prompt sent with every request
        """
        self.model = model
        self.temperature = temperature
        self.system_instruction = system_instruction
        self._client = (
            AsyncOpenAI(api_key=api_key, base_url=base_url) if api_key else None
        )
        if self._client is None:
            logger.warning("GEMINI_API_KEY is not set; generation requests will fail.")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "GeminiClient":
        """Build a client from application settings."""
        settings = settings or get_settings()
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            temperature=settings.gemini_temperature,
        )

    async def generate(self, prompt: Prompt) -> str:
        """Generate a complete reply.

        Raises:
            UpstreamError: If the API call fails or returns no text.
        """
        client = self._require_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=self._to_messages(prompt),
            )
        except OpenAIError as exc:
            raise UpstreamError(f"Gemini request failed: {exc}") from exc

        _log_token_usage(getattr(response, "usage", None))
        message = response.choices[0].message.content if response.choices else None
        if not message:
            raise UpstreamError("Gemini returned an empty response")
        return message.strip()

    async def generate_stream(self, prompt: Prompt) -> AsyncIterator[str]:
        """Stream reply fragments as Gemini produces them.

        Raises:
            UpstreamError: If the request fails before or during streaming.
        """
        client = self._require_client()
        try:
            stream = await client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=self._to_messages(prompt),
                stream=True,
            )
        except OpenAIError as exc:
            raise UpstreamError(f"Gemini request failed: {exc}") from exc

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                fragment = chunk.choices[0].delta.content
                if fragment:
                    yield fragment
        except OpenAIError as exc:
            raise UpstreamError(f"Gemini stream failed: {exc}") from exc
        finally:
            await stream.close()

    def _require_client(self) -> AsyncOpenAI:
        if self._client is None:
            raise UpstreamError("GEMINI_API_KEY is not configured")
        return self._client

    def _to_messages(self, prompt: Prompt) -> list[dict[str, str]]:
        system = prompt.system_instruction or self.system_instruction
        messages = [{"role": "system", "content": system}]
        messages.extend(
            {"role": _WIRE_ROLES[turn.role], "content": turn.text} for turn in prompt.history
        )
        messages.append({"role": "user", "content": prompt.message})
        return messages


def _log_token_usage(usage: Any) -> None:
    """Log token counts from a completion response."""
    if not usage:
        return
    prompt_tokens = getattr(usage, "prompt_tokens", None)
    completion_tokens = getattr(usage, "completion_tokens", None)
    total_tokens = getattr(usage, "total_tokens", None)
    if (
        total_tokens is None
        and prompt_tokens is not None
        and completion_tokens is not None
    ):
        total_tokens = prompt_tokens + completion_tokens

    logger.info(
        "Gemini token usage - prompt: %s, completion: %s, total: %s",
        prompt_tokens,
        completion_tokens,
        total_tokens,
    )
