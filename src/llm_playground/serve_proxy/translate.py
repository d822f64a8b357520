"""Translation between the completions API and Ollama's generate API.

The proxy accepts `{model, prompt, max_tokens}`, forwards `{model, prompt,
stream: false}` to Ollama, and answers with one choice plus a word-count
token estimate. `max_tokens` is not forwarded unless FORWARD_MAX_TOKENS is set,
in which case it becomes Ollama's `options.num_predict`.

OLLAMA_GENERATE_URL and FORWARD_MAX_TOKENS are local-development overrides;
with neither set the proxy talks to http://localhost:11434/api/generate and
drops `max_tokens`.
"""
from __future__ import annotations
import logging
import os
import time
from typing import Protocol

import httpx
from pydantic import ValidationError

from llm_playground.common.metrics import count_words
from llm_playground.common.schema import (
    Choice,
    CompletionRequest,
    CompletionResponse,
    UpstreamRequest,
    UpstreamResponse,
    Usage,
)

LOGGER = logging.getLogger("llm_playground.proxy.exchange")

OLLAMA_GENERATE_URL = os.getenv("OLLAMA_GENERATE_URL", "http://localhost:11434/api/generate")
FORWARD_MAX_TOKENS = os.getenv("FORWARD_MAX_TOKENS", "").lower() in {"1", "true", "yes", "on"}


class ProxyError(Exception):
    """A failed exchange, carrying the HTTP status and plain-text detail to return."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class ExchangeLogger(Protocol):
    def record(self, model: str, elapsed_seconds: float, tokens: int) -> None: ...


class LoggingExchangeLogger:
    """Writes one line per completed exchange."""

    def __init__(self, logger: logging.Logger = LOGGER) -> None:
        self._logger = logger

    def record(self, model: str, elapsed_seconds: float, tokens: int) -> None:
        self._logger.info("Model: %s | Latency: %.3fs | Tokens: %d", model, elapsed_seconds, tokens)


def build_upstream_request(req: CompletionRequest, forward_max_tokens: bool = False) -> UpstreamRequest:
    """
    Map a completion request onto an Ollama generate request.

    Args:
        req: Decoded client request.
        forward_max_tokens: Pass `max_tokens` through as `options.num_predict`.
    """
    options = None
    if forward_max_tokens and req.max_tokens > 0:
        options = {"num_predict": req.max_tokens}
    return UpstreamRequest(model=req.model, prompt=req.prompt, stream=False, options=options)


def build_completion_response(upstream: UpstreamResponse) -> CompletionResponse:
    """Wrap Ollama's text as a single choice. Ollama's eval_count is ignored."""
    tokens = count_words(upstream.response)
    return CompletionResponse(
        choices=[Choice(text=upstream.response)],
        usage=Usage(completion_tokens=tokens),
    )


class CompletionProxy:
    """Forwards one completion request to Ollama per call. Holds no per-request state."""

    def __init__(
        self,
        upstream_url: str = OLLAMA_GENERATE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        exchange_logger: ExchangeLogger | None = None,
        forward_max_tokens: bool = FORWARD_MAX_TOKENS,
    ) -> None:
        self.upstream_url = upstream_url
        self._transport = transport
        self._exchange_logger = exchange_logger or LoggingExchangeLogger()
        self.forward_max_tokens = forward_max_tokens

    async def complete(self, body: bytes) -> CompletionResponse:
        """
        Run one exchange from raw request body to completion response.

        Args:
            body: Raw JSON body sent by the client.

        Returns:
            Completion response with exactly one choice.

        Raises:
            ProxyError: 400 for an undecodable body, 502 when Ollama is
                unreachable, 500 for build, read or decode failures.
        """
        try:
            req = CompletionRequest.model_validate_json(body)
        except ValidationError as e:
            raise ProxyError(400, "Invalid request body") from e

        upstream_req = build_upstream_request(req, self.forward_max_tokens)
        try:
            payload = upstream_req.model_dump_json(exclude_none=True)
        except ValueError as e:
            raise ProxyError(500, "Failed to build request") from e

        # Server-side timing only; the client measures its own latency.
        start = time.perf_counter()
        # No timeout: a hung Ollama hangs the request.
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            request = client.build_request(
                "POST",
                self.upstream_url,
                content=payload,
                headers={"Content-Type": "application/json"},
            )
            try:
                resp = await client.send(request, stream=True)
            except httpx.TransportError as e:
                LOGGER.error("Ollama request failed: %s", e)
                raise ProxyError(502, f"Ollama error: {e}") from e
            try:
                raw = await resp.aread()
            except httpx.HTTPError as e:
                LOGGER.error("Reading Ollama response failed: %s", e)
                raise ProxyError(500, "Failed to read response") from e
            finally:
                await resp.aclose()

        try:
            upstream_resp = UpstreamResponse.model_validate_json(raw)
        except ValidationError as e:
            LOGGER.error("Malformed Ollama response: %s", e)
            raise ProxyError(500, "Failed to parse Ollama response") from e
        elapsed = time.perf_counter() - start

        response = build_completion_response(upstream_resp)
        self._record(req.model, elapsed, response.usage.completion_tokens)
        return response

    def _record(self, model: str, elapsed: float, tokens: int) -> None:
        try:
            self._exchange_logger.record(model, elapsed, tokens)
        except Exception as e:
            LOGGER.warning("Exchange logger failed: %s", e)
