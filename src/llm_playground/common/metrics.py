"""Token estimates and derived throughput metrics."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable


def count_words(text: str) -> int:
    """
    Estimate a token count as the number of whitespace-delimited words.

    Args:
        text: Generated text.

    Returns:
        Word count, 0 for empty or whitespace-only text.
    """
    return len(text.split())


def tokens_per_second(tokens: int, latency_seconds: float) -> float:
    """Throughput in tokens/s; 0 when no time elapsed."""
    if latency_seconds > 0:
        return tokens / latency_seconds
    return 0.0


@dataclass(frozen=True)
class ResponseMetrics:
    """Metrics attached to a successful assistant message."""
    latency_seconds: float
    tokens: int
    tokens_per_second: float

    @classmethod
    def measure(cls, latency_seconds: float, tokens: int) -> "ResponseMetrics":
        return cls(
            latency_seconds=latency_seconds,
            tokens=tokens,
            tokens_per_second=tokens_per_second(tokens, latency_seconds),
        )

    def format(self) -> str:
        return (
            f"{self.latency_seconds:.2f}s | {self.tokens} tokens | "
            f"{self.tokens_per_second:.1f} tok/s"
        )


@dataclass(frozen=True)
class SessionMetrics:
    """Summary over every message in a session that carries metrics."""
    average_latency: float
    average_throughput: float
    total_tokens: int
    request_count: int
    estimated_cost: float

    @classmethod
    def from_metrics(
        cls, metrics: Iterable[ResponseMetrics], cost_per_token: float = 0.000001
    ) -> "SessionMetrics":
        """
        Aggregate per-response metrics.

        Args:
            metrics: Metrics blocks of successful exchanges.
            cost_per_token: Price used for the cost estimate.
        """
        items = list(metrics)
        count = len(items)
        total_tokens = sum(m.tokens for m in items)
        if count:
            avg_latency = sum(m.latency_seconds for m in items) / count
            avg_throughput = sum(m.tokens_per_second for m in items) / count
        else:
            avg_latency = avg_throughput = 0.0
        return cls(
            average_latency=avg_latency,
            average_throughput=avg_throughput,
            total_tokens=total_tokens,
            request_count=count,
            estimated_cost=total_tokens * cost_per_token,
        )

    def format(self) -> str:
        return "\n".join(
            [
                f"Avg Latency     {self.average_latency:.2f}s",
                f"Avg Throughput  {self.average_throughput:.1f} tok/s",
                f"Total Tokens    {self.total_tokens}",
                f"Requests        {self.request_count}",
                f"Cost            $ {self.estimated_cost:.6f}",
            ]
        )
