from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from llm_playground.playground.client import (
    BackendStatusError,
    BackendUnavailableError,
    CompletionClient,
    MalformedCompletionError,
    parse_completion,
    send_completion,
)
from llm_playground.playground.state import Message, PlaygroundState


def _clock(*ticks: float) -> Callable[[], float]:
    return iter(ticks).__next__


def _client(handler: Callable[[httpx.Request], httpx.Response], *ticks: float) -> CompletionClient:
    return CompletionClient("http://proxy.test", transport=httpx.MockTransport(handler), clock=_clock(*ticks or (0.0, 2.0)))


def test_complete_posts_request_and_measures() -> None:
    seen: list[httpx.Request] = []

    def handler(req: httpx.Request) -> httpx.Response:
        seen.append(req)
        return httpx.Response(200, json={"choices": [{"text": "hi there"}], "usage": {"completion_tokens": 8}})

    msg = _client(handler, 10.0, 12.0).complete("hello", "llama3.2", 150)

    assert str(seen[0].url) == "http://proxy.test/v1/completions"
    assert json.loads(seen[0].content) == {"model": "llama3.2", "prompt": "hello", "max_tokens": 150}
    assert msg.role == "assistant"
    assert msg.content == "hi there"
    assert msg.metrics is not None
    assert msg.metrics.latency_seconds == pytest.approx(2.0)
    assert msg.metrics.tokens == 8
    assert msg.metrics.tokens_per_second == pytest.approx(4.0)


def test_missing_usage_falls_back_to_word_count() -> None:
    msg = _client(lambda req: httpx.Response(200, json={"choices": [{"text": "one two three"}]})).complete("p", "m", 50)
    assert msg.metrics is not None
    assert msg.metrics.tokens == 3


def test_zero_latency_gives_zero_throughput() -> None:
    ok = lambda req: httpx.Response(200, json={"choices": [{"text": "a b"}], "usage": {"completion_tokens": 2}})  # noqa: E731
    msg = _client(ok, 5.0, 5.0).complete("p", "m", 50)
    assert msg.metrics is not None
    assert msg.metrics.tokens_per_second == 0


def test_non_success_status_raises() -> None:
    with pytest.raises(BackendStatusError) as info:
        _client(lambda req: httpx.Response(502, text="Ollama error: refused")).complete("p", "m", 50)
    assert str(info.value) == "Error: API returned 502"


def test_unreachable_proxy_raises() -> None:
    def refuse(req: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused")

    with pytest.raises(BackendUnavailableError) as info:
        _client(refuse).complete("p", "m", 50)
    assert str(info.value) == "Error: Could not connect to backend"


@pytest.mark.parametrize("body", [b'{"choices": []}', b"not json", b'{"usage": {"completion_tokens": 1}}'])
def test_unusable_body_is_malformed(body: bytes) -> None:
    with pytest.raises(MalformedCompletionError):
        parse_completion(body)


def test_send_completion_success_appends_user_then_assistant() -> None:
    ok = lambda req: httpx.Response(200, json={"choices": [{"text": "hi"}], "usage": {"completion_tokens": 1}})  # noqa: E731
    state = send_completion(PlaygroundState(), "hello", _client(ok))
    assert [(m.role, m.content) for m in state.messages] == [("user", "hello"), ("assistant", "hi")]
    assert state.messages[-1].metrics is not None
    assert not state.is_loading


def test_send_completion_distinguishes_proxy_failures() -> None:
    def refuse(req: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused")

    bad_gateway = send_completion(PlaygroundState(), "hi", _client(lambda req: httpx.Response(502, text="Ollama error")))
    unreachable = send_completion(PlaygroundState(), "hi", _client(refuse))

    assert bad_gateway.messages[-1] == Message(role="assistant", content="Error: API returned 502")
    assert unreachable.messages[-1] == Message(role="assistant", content="Error: Could not connect to backend")
    assert not bad_gateway.is_loading and not unreachable.is_loading


def test_send_completion_empty_choices_becomes_error_reply() -> None:
    state = send_completion(PlaygroundState(), "hi", _client(lambda req: httpx.Response(200, json={"choices": []})))
    assert state.messages[-1].content == "Error: Malformed response from backend"
    assert state.messages[-1].metrics is None
    assert not state.is_loading


@pytest.mark.parametrize("state,prompt", [(PlaygroundState(), "   "), (PlaygroundState(is_loading=True), "hello")])
def test_send_completion_skips_network(state: PlaygroundState, prompt: str) -> None:
    def fail_if_called(req: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert send_completion(state, prompt, _client(fail_if_called)) is state


def test_negative_reported_count_falls_back_to_word_count() -> None:
    ok = lambda req: httpx.Response(200, json={"choices": [{"text": "a b"}], "usage": {"completion_tokens": -5}})  # noqa: E731
    msg = _client(ok, 0.0, 2.0).complete("p", "m", 50)
    assert msg.metrics is not None
    assert msg.metrics.tokens == 2
    assert msg.metrics.tokens_per_second == pytest.approx(1.0)
