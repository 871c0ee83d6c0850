import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import GenerationError


ALLOWED_ROLES = {"system", "user", "assistant"}

logger = logging.getLogger(__name__)


def _message_content(data: Dict[str, Any]) -> str:
    choices = data.get("choices") or []
    if not choices:
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content")
    if content is None or content == "":
        # Reasoning models sometimes leave content empty and answer in the reasoning field.
        content = message.get("reasoning") or message.get("reasoning_content") or ""
    return str(content)


class GenerationClient:
    """Stateless client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.2,
        max_output_tokens: Optional[int] = None,
        timeout: float = 120.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = httpx.AsyncClient(timeout=timeout, headers=headers)

    async def list_models(self) -> Dict[str, Any]:
        resp = await self.client.get(f"{self.base_url}/models")
        resp.raise_for_status()
        return resp.json()

    def _sanitize_messages(self, messages: List[Dict[str, Any]]) -> List[Dict[str, str]]:
        sanitized: List[Dict[str, str]] = []
        for msg in messages:
            role = msg.get("role")
            content = msg.get("content")
            if role not in ALLOWED_ROLES or not isinstance(content, str) or not content.strip():
                continue
            sanitized.append({"role": role, "content": content})
        return sanitized

    def _extract_error_detail(self, response: httpx.Response) -> str:
        try:
            data = response.json()
            if isinstance(data, dict):
                return json.dumps(data, ensure_ascii=True)
        except Exception:
            pass
        try:
            return response.text
        except Exception:
            return ""

    async def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        temperature: Optional[float] = None,
        max_tokens: int = 2048,
    ) -> Dict[str, Any]:
        final_max_tokens = max_tokens
        if self.max_output_tokens:
            final_max_tokens = min(max_tokens, self.max_output_tokens)
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": self._sanitize_messages(messages),
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": final_max_tokens,
            "stream": False,
        }
        if not payload["messages"]:
            raise ValueError("messages must include at least one non-empty entry")
        try:
            resp = await self.client.post(f"{self.base_url}/chat/completions", json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Generation request failed with HTTP %s: %s",
                exc.response.status_code,
                self._extract_error_detail(exc.response),
            )
            raise
        return resp.json()

    async def complete(self, prompt: str, system: Optional[str] = None, max_tokens: int = 2048) -> str:
        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        data = await self.chat_completion(messages, max_tokens=max_tokens)
        content = _message_content(data if isinstance(data, dict) else {})
        if not content.strip():
            raise GenerationError("Generation service returned an empty response")
        return content

    async def close(self) -> None:
        if not self.client.is_closed:
            await self.client.aclose()
