"""Playground defaults loaded from YAML."""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = "configs/playground.yaml"


@dataclass(frozen=True)
class PlaygroundConfig:
    backend_url: str = "http://localhost:8000"
    models: tuple[str, ...] = ("llama3.2",)
    default_model: str = "llama3.2"
    default_max_tokens: int = 150
    max_tokens_min: int = 50
    max_tokens_max: int = 500
    max_tokens_step: int = 50
    cost_per_token: float = 0.000001


def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_playground_config(path: str = DEFAULT_CONFIG_PATH) -> PlaygroundConfig:
    """
    Build the playground config, falling back to built-in defaults.

    Args:
        path: YAML file; a missing file yields the defaults.
    """
    if not Path(path).exists():
        return PlaygroundConfig()
    cfg = load_cfg(path)
    base = PlaygroundConfig()
    slider = cfg.get("max_tokens", {}) or {}
    models = tuple(cfg.get("models") or base.models)
    return PlaygroundConfig(
        backend_url=str(cfg.get("backend_url", base.backend_url)),
        models=models,
        default_model=str(cfg.get("default_model", models[0])),
        default_max_tokens=int(slider.get("default", base.default_max_tokens)),
        max_tokens_min=int(slider.get("min", base.max_tokens_min)),
        max_tokens_max=int(slider.get("max", base.max_tokens_max)),
        max_tokens_step=int(slider.get("step", base.max_tokens_step)),
        cost_per_token=float(cfg.get("cost_per_token", base.cost_per_token)),
    )
