from __future__ import annotations

import json

import httpx
import pytest

from agentguard.models.base import BackendError
from agentguard.models.openai_compat import OpenAICompatBackend


def _backend(handler, base_url: str = "https://example.com/v1/") -> OpenAICompatBackend:
    return OpenAICompatBackend(
        base_url=base_url,
        api_key="test-key",
        model="gpt-test",
        transport=httpx.MockTransport(handler),
        retry_delay_seconds=0,
    )


def test_generate_posts_prompt_and_returns_content():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    assert _backend(handler).generate("hi") == "ok"
    sent = json.loads(requests[0].content.decode())
    assert sent["messages"] == [{"role": "user", "content": "hi"}]
    assert sent["model"] == "gpt-test"
    assert requests[0].url == httpx.URL("https://example.com/v1/chat/completions")
    assert requests[0].headers["Authorization"] == "Bearer test-key"


@pytest.mark.parametrize(
    "base_url,expected",
    [
        ("example.com", "http://example.com/v1/chat/completions"),
        ("https://example.com/proxy", "https://example.com/proxy/v1/chat/completions"),
        ("https://example.com/v1/chat/completions", "https://example.com/v1/chat/completions"),
    ],
)
def test_url_normalization(base_url, expected):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": [{"message": {"content": "x"}}]})

    assert _backend(handler, base_url)._build_url() == expected


def test_retries_server_errors_then_succeeds():
    statuses = iter([503, 429, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        status = next(statuses)
        if status != 200:
            return httpx.Response(status, text="busy")
        return httpx.Response(200, json={"choices": [{"message": {"content": "done"}}]})

    assert _backend(handler).generate("hi") == "done"


def test_gives_up_after_three_attempts():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, text="down")

    with pytest.raises(BackendError):
        _backend(handler).generate("hi")
    assert len(calls) == 3


def test_client_errors_are_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(401, text="unauthorized")

    with pytest.raises(BackendError):
        _backend(handler).generate("hi")
    assert len(calls) == 1
