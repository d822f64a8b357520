"""Terminal playground for the completions proxy."""
from __future__ import annotations
import argparse
import logging
from typing import Callable

from llm_playground.common.logging_setup import setup_logging
from llm_playground.playground.client import CompletionClient, send_completion
from llm_playground.playground.config import DEFAULT_CONFIG_PATH, PlaygroundConfig, load_playground_config
from llm_playground.playground.state import (
    PlaygroundState,
    clear_session,
    initial_state,
    select_model,
    session_metrics,
    set_max_tokens,
)

LOGGER = logging.getLogger("llm_playground.playground.cli")

HELP = "Commands: /model <name>, /max-tokens <n>, /metrics, /clear, /help, /quit"


def run_command(
    state: PlaygroundState,
    line: str,
    client: CompletionClient,
    cfg: PlaygroundConfig,
    out: Callable[[str], None] = print,
) -> tuple[PlaygroundState, bool]:
    """
    Apply one line of input.

    Returns:
        The new state and whether the loop should continue.
    """
    cmd, _, arg = line.strip().partition(" ")
    arg = arg.strip()
    if cmd == "/quit":
        return state, False
    if cmd == "/clear":
        out("Session cleared.")
        return clear_session(state), True
    if cmd == "/metrics":
        out(session_metrics(state, cfg.cost_per_token).format())
        return state, True
    if cmd == "/help":
        out(HELP)
        return state, True
    try:
        if cmd == "/model":
            state = select_model(state, arg, cfg.models)
            out(f"Model: {state.model}")
            return state, True
        if cmd == "/max-tokens":
            state = set_max_tokens(
                state, int(arg), cfg.max_tokens_min, cfg.max_tokens_max, cfg.max_tokens_step
            )
            out(f"Max tokens: {state.max_tokens}")
            return state, True
    except ValueError as e:
        out(str(e))
        return state, True
    if cmd.startswith("/"):
        out(f"Unknown command {cmd}. {HELP}")
        return state, True

    new_state = send_completion(state, line, client)
    if new_state is not state:
        reply = new_state.messages[-1]
        out(reply.content)
        if reply.metrics is not None:
            out(reply.metrics.format())
    return new_state, True


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Chat with a model through the completions proxy")
    ap.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Playground YAML config")
    ap.add_argument("--backend", default=None, help="Proxy base URL")
    ap.add_argument("--model", default=None, help="Model name")
    ap.add_argument("--max-tokens", type=int, default=None)
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args(argv)
    setup_logging(args.log_level)

    cfg = load_playground_config(args.config)
    state = initial_state(cfg)
    try:
        if args.model is not None:
            state = select_model(state, args.model, cfg.models)
        if args.max_tokens is not None:
            state = set_max_tokens(
                state, args.max_tokens, cfg.max_tokens_min, cfg.max_tokens_max, cfg.max_tokens_step
            )
    except ValueError as e:
        ap.error(str(e))

    client = CompletionClient(args.backend or cfg.backend_url)
    print(f"{state.model} | Max Output: {state.max_tokens}")
    print(HELP)
    running = True
    while running:
        try:
            line = input("> ")
        except (EOFError, KeyboardInterrupt):
            break
        state, running = run_command(state, line, client, cfg)
    LOGGER.info("Session ended after %d requests", session_metrics(state).request_count)


if __name__ == "__main__":
    main()
