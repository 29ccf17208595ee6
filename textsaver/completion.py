from typing import Any, Dict, Optional

import requests

from textsaver.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from textsaver.errors import CompletionError


class CompletionClient:
    """Single-turn calls against an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def complete(self, prompt: str, *, max_tokens: int, temperature: float, model: str) -> str:
        if not self.api_key:
            raise CompletionError("OpenAI API key is not configured")

        payload: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": int(max_tokens),
            "temperature": float(temperature),
        }
        try:
            resp = requests.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise CompletionError(f"Chat completion request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise CompletionError(f"Chat completion error ({resp.status_code}): {resp.text}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise CompletionError(f"Unexpected chat completion response: {resp.text[:200]}") from exc

        return _first_choice_text(data)


def _first_choice_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices") or []
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        return ""
    return content.strip()
