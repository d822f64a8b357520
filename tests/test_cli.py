from __future__ import annotations

from llm_playground.common.metrics import ResponseMetrics
from llm_playground.playground.cli import run_command
from llm_playground.playground.client import BackendUnavailableError
from llm_playground.playground.config import PlaygroundConfig
from llm_playground.playground.state import Message, PlaygroundState

CFG = PlaygroundConfig(models=("llama3.2", "qwen"))


class _FakeClient:
    def __init__(self, reply: Message | None = None) -> None:
        self.reply = reply
        self.calls: list[tuple[str, str, int]] = []

    def complete(self, prompt: str, model: str, max_tokens: int) -> Message:
        self.calls.append((prompt, model, max_tokens))
        if self.reply is None:
            raise BackendUnavailableError()
        return self.reply


def _run(state: PlaygroundState, line: str, client: _FakeClient) -> tuple[PlaygroundState, bool, list[str]]:
    lines: list[str] = []
    new_state, running = run_command(state, line, client, CFG, out=lines.append)  # type: ignore[arg-type]
    return new_state, running, lines


def test_prompt_prints_reply_and_metrics() -> None:
    client = _FakeClient(Message("assistant", "hi there", ResponseMetrics.measure(2.0, 2)))
    state, running, lines = _run(PlaygroundState(), "hello", client)
    assert running
    assert client.calls == [("hello", "llama3.2", 150)]
    assert lines == ["hi there", "2.00s | 2 tokens | 1.0 tok/s"]
    assert len(state.messages) == 2


def test_error_reply_has_no_metrics_line() -> None:
    state, _, lines = _run(PlaygroundState(), "hello", _FakeClient())
    assert lines == ["Error: Could not connect to backend"]
    assert state.messages[-1].metrics is None


def test_blank_line_does_nothing() -> None:
    client = _FakeClient()
    state = PlaygroundState()
    new_state, running, lines = _run(state, "   ", client)
    assert new_state is state and running
    assert lines == [] and client.calls == []


def test_settings_commands() -> None:
    state, _, _ = _run(PlaygroundState(), "/model qwen", _FakeClient())
    state, _, _ = _run(state, "/max-tokens 300", _FakeClient())
    assert (state.model, state.max_tokens) == ("qwen", 300)

    same, _, lines = _run(state, "/max-tokens 301", _FakeClient())
    assert same.max_tokens == 300
    assert "between 50 and 500" in lines[0]


def test_clear_metrics_and_quit() -> None:
    state = PlaygroundState(messages=(Message("user", "a"), Message("assistant", "b", ResponseMetrics.measure(1.0, 4))))
    _, _, lines = _run(state, "/metrics", _FakeClient())
    assert "Total Tokens    4" in lines[0]

    cleared, running, _ = _run(state, "/clear", _FakeClient())
    assert cleared.messages == () and running

    _, running, _ = _run(cleared, "/quit", _FakeClient())
    assert not running


def test_unknown_command_is_not_sent() -> None:
    client = _FakeClient()
    _, running, lines = _run(PlaygroundState(), "/bogus", client)
    assert running and client.calls == []
    assert lines[0].startswith("Unknown command /bogus")


def test_help_lists_every_command() -> None:
    _, running, lines = _run(PlaygroundState(), "/help", _FakeClient())
    assert running
    for cmd in ("/model", "/max-tokens", "/metrics", "/clear", "/help", "/quit"):
        assert cmd in lines[0]
