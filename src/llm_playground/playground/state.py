"""Playground session state and its transitions.

State is immutable; every action returns a new `PlaygroundState`. Actions that
do not apply (blank prompt, send while busy) return the state unchanged.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Literal, Sequence

from llm_playground.common.metrics import ResponseMetrics, SessionMetrics
from llm_playground.playground.config import PlaygroundConfig

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    metrics: ResponseMetrics | None = None


@dataclass(frozen=True)
class PlaygroundState:
    messages: tuple[Message, ...] = ()
    model: str = "llama3.2"
    max_tokens: int = 150
    is_loading: bool = False


def initial_state(config: PlaygroundConfig) -> PlaygroundState:
    return PlaygroundState(model=config.default_model, max_tokens=config.default_max_tokens)


def begin_send(state: PlaygroundState, prompt: str) -> PlaygroundState:
    """Append the user message and mark the session busy."""
    if not prompt.strip() or state.is_loading:
        return state
    return replace(
        state,
        messages=state.messages + (Message(role="user", content=prompt),),
        is_loading=True,
    )


def receive(state: PlaygroundState, message: Message) -> PlaygroundState:
    return replace(state, messages=state.messages + (message,), is_loading=False)


def fail(state: PlaygroundState, content: str) -> PlaygroundState:
    """Append an error reply; error replies never carry metrics."""
    return receive(state, Message(role="assistant", content=content))


def clear_session(state: PlaygroundState) -> PlaygroundState:
    return replace(state, messages=())


def select_model(state: PlaygroundState, model: str, available: Sequence[str]) -> PlaygroundState:
    if model not in available:
        raise ValueError(f"Unknown model {model!r}; choose from {', '.join(available)}")
    return replace(state, model=model)


def set_max_tokens(
    state: PlaygroundState,
    value: int,
    minimum: int = 50,
    maximum: int = 500,
    step: int = 50,
) -> PlaygroundState:
    """
    Set the max-tokens slider.

    Args:
        value: New value; must lie within [minimum, maximum] on a step boundary.

    Raises:
        ValueError: If the value is off the slider.
    """
    if not minimum <= value <= maximum or (value - minimum) % step:
        raise ValueError(f"max_tokens must be between {minimum} and {maximum} in steps of {step}")
    return replace(state, max_tokens=value)


def session_metrics(state: PlaygroundState, cost_per_token: float = 0.000001) -> SessionMetrics:
    """Recompute the session summary from the message log."""
    return SessionMetrics.from_metrics(
        (m.metrics for m in state.messages if m.metrics is not None),
        cost_per_token=cost_per_token,
    )
