"""Pydantic models for the client-proxy and proxy-Ollama wire formats."""
from __future__ import annotations
from typing import Any

from pydantic import BaseModel, model_validator


class _ZeroValueModel(BaseModel):
    """A null body or a null field leaves the field at its default."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class CompletionRequest(_ZeroValueModel):
    """Body of POST /v1/completions. Missing or null fields take zero values."""
    model: str = ""
    prompt: str = ""
    max_tokens: int = 0


class Choice(BaseModel):
    text: str


class Usage(BaseModel):
    completion_tokens: int | None = None


class CompletionResponse(BaseModel):
    """Body returned by the proxy; `usage` may be absent from other backends."""
    choices: list[Choice]
    usage: Usage | None = None


class UpstreamRequest(BaseModel):
    """Body of Ollama POST /api/generate."""
    model: str
    prompt: str
    stream: bool = False
    options: dict[str, Any] | None = None


class UpstreamResponse(_ZeroValueModel):
    """Non-streaming Ollama generate response. Only `response` is consumed."""
    model: str = ""
    response: str = ""
    done: bool = False
    total_duration: int = 0
    eval_count: int = 0
