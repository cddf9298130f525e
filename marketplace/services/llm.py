"""LLM completion client (Ollama-compatible chat API)."""

import json
import logging
from typing import Any

import httpx

from marketplace.config import get_settings

logger = logging.getLogger(__name__)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


class LLMService:
    """Thin async wrapper over the chat completion endpoint."""

    def __init__(self, base_url: str | None = None, model: str | None = None) -> None:
        settings = get_settings()
        self.base_url = base_url or settings.ollama_base_url
        self.model = model or settings.llm_model
        self.timeout = 120.0

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.2,
        json_mode: bool = False,
    ) -> str:
        """Return the assistant message for a single-turn prompt."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": temperature},
        }
        if json_mode:
            body["format"] = "json"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(f"{self.base_url}/api/chat", json=body)
            response.raise_for_status()
            return response.json()["message"]["content"]

    async def complete_json(
        self, prompt: str, system_prompt: str | None = None
    ) -> dict[str, Any]:
        """Return the completion parsed as a JSON object."""
        raw = await self.complete(
            prompt, system_prompt=system_prompt, temperature=0.1, json_mode=True
        )
        try:
            parsed = json.loads(strip_code_fences(raw))
        except json.JSONDecodeError:
            logger.warning(f"LLM returned non-JSON content: {raw[:200]}")
            raise
        if not isinstance(parsed, dict):
            raise ValueError("Expected a JSON object from the LLM")
        return parsed
