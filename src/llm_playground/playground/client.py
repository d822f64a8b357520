"""HTTP client for the completions proxy.

`CompletionClient.complete` performs one timed exchange and raises a
`CompletionError` subclass on failure; `send_completion` runs it as a session
action so failures become error replies in the log.
"""
from __future__ import annotations
import logging
import time
from typing import Callable

import httpx
from pydantic import ValidationError

from llm_playground.common.metrics import ResponseMetrics, count_words
from llm_playground.common.schema import CompletionRequest, CompletionResponse
from llm_playground.playground.state import Message, PlaygroundState, begin_send, fail, receive

LOGGER = logging.getLogger("llm_playground.playground.client")


class CompletionError(Exception):
    """Base class; the message is the text shown as the assistant reply."""


class BackendUnavailableError(CompletionError):
    def __init__(self) -> None:
        super().__init__("Error: Could not connect to backend")


class BackendStatusError(CompletionError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Error: API returned {status_code}")
        self.status_code = status_code


class MalformedCompletionError(CompletionError):
    def __init__(self) -> None:
        super().__init__("Error: Malformed response from backend")


def parse_completion(body: bytes) -> tuple[str, int | None]:
    """
    Extract the first choice's text and the reported token count.

    Raises:
        MalformedCompletionError: Body is not a completion response or has no choices.
    """
    try:
        data = CompletionResponse.model_validate_json(body)
    except ValidationError as e:
        LOGGER.error("Malformed completion response: %s", e)
        raise MalformedCompletionError() from e
    if not data.choices:
        LOGGER.error("Completion response has no choices")
        raise MalformedCompletionError()
    tokens = data.usage.completion_tokens if data.usage else None
    return data.choices[0].text, tokens


class CompletionClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.base_url = base_url
        self._transport = transport
        self._clock = clock

    def complete(self, prompt: str, model: str, max_tokens: int) -> Message:
        """
        Send one completion request and measure its round trip.

        Args:
            prompt: User text, sent as typed.
            model: Model name passed through to the proxy.
            max_tokens: Requested generation cap.

        Returns:
            Assistant message with latency and throughput metrics.

        Raises:
            BackendUnavailableError: The proxy could not be reached.
            BackendStatusError: The proxy answered with a non-2xx status.
            MalformedCompletionError: A 2xx body could not be used.
        """
        payload = CompletionRequest(model=model, prompt=prompt, max_tokens=max_tokens).model_dump()
        start = self._clock()
        try:
            with httpx.Client(base_url=self.base_url, transport=self._transport, timeout=None) as client:
                r = client.post("/v1/completions", json=payload)
        except httpx.TransportError as e:
            LOGGER.error("Proxy request failed: %s", e)
            raise BackendUnavailableError() from e
        latency = self._clock() - start

        if not r.is_success:
            LOGGER.warning("Proxy returned %s: %s", r.status_code, r.text)
            raise BackendStatusError(r.status_code)

        text, reported = parse_completion(r.content)
        # A missing or negative count falls back to the word-count estimate.
        tokens = reported if reported is not None and reported >= 0 else count_words(text)
        return Message(role="assistant", content=text, metrics=ResponseMetrics.measure(latency, tokens))


def send_completion(state: PlaygroundState, prompt: str, client: CompletionClient) -> PlaygroundState:
    """
    Run one send action against the session.

    Blank prompts and sends while busy return `state` unchanged without any
    request. Otherwise the returned state holds the user message followed by
    the reply and is no longer busy.
    """
    busy = begin_send(state, prompt)
    if busy is state:
        return state
    try:
        message = client.complete(prompt, busy.model, busy.max_tokens)
    except CompletionError as e:
        return fail(busy, str(e))
    return receive(busy, message)
