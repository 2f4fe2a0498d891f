"""OpenAI-compatible text backend."""

from __future__ import annotations

import json
import time
from typing import Any
from urllib.parse import urlparse, urlunparse

import httpx

from agentguard.models.base import BackendError, TextBackend


class OpenAICompatBackend(TextBackend):
    """HTTP client for OpenAI-compatible chat/completions endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: int = 30,
        max_tokens: int = 256,
        max_response_bytes: int = 2_000_000,
        transport: httpx.BaseTransport | None = None,
        retry_delay_seconds: float = 1.0,
    ) -> None:
        normalized = base_url.strip()
        if not normalized.startswith(("http://", "https://")):
            normalized = f"http://{normalized}"
        self.base_url = normalized.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.max_response_bytes = max_response_bytes
        self.transport = transport
        self.retry_delay_seconds = retry_delay_seconds

    def _build_url(self) -> str:
        parsed = urlparse(self.base_url)
        path = (parsed.path or "").rstrip("/")
        if path.endswith("/chat/completions"):
            final_path = path
        else:
            segments = [segment for segment in path.split("/") if segment]
            if "v1" not in segments:
                path = f"{path}/v1"
            final_path = f"{path}/chat/completions"
        return urlunparse(parsed._replace(path=final_path, params="", query="", fragment=""))

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
        }

    def generate(self, prompt: str) -> str:
        url = self._build_url()
        headers = {"Authorization": f"Bearer {self.api_key}"}
        timeout = httpx.Timeout(self.timeout_seconds)

        last_error: Exception | None = None
        for attempt in range(3):
            try:
                with httpx.Client(timeout=timeout, transport=self.transport) as client:
                    response = client.post(url, headers=headers, json=self._payload(prompt))
                if response.status_code == 429 or response.status_code >= 500:
                    raise BackendError(
                        f"Retryable error {response.status_code}: {response.text[:200]}"
                    )
                response.raise_for_status()
                if len(response.content) > self.max_response_bytes:
                    raise BackendError("Response too large")
                try:
                    data = response.json()
                except json.JSONDecodeError as exc:
                    raise BackendError("Malformed JSON response") from exc
                choice = (data.get("choices") or [{}])[0]
                content = choice.get("message", {}).get("content")
                return content if isinstance(content, str) else ""
            except httpx.HTTPStatusError as exc:
                raise BackendError(f"Request rejected: {exc.response.status_code}") from exc
            except (httpx.HTTPError, BackendError) as exc:
                last_error = exc
                if attempt == 2:
                    break
                time.sleep(self.retry_delay_seconds * 2**attempt)
        raise BackendError(f"OpenAI-compatible request failed: {last_error}")
