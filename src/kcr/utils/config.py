"""Typed configuration loading for the reconciler."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel

DEFAULT_CONFIG_PATH = "configs/reconciler.yaml"


class ReconcilerConfig(BaseModel):
    kind_path: str = "kind"
    kubectl_path: str = "kubectl"
    docker_path: str = "docker"
    kubeconfig_path: str = ""
    state_path: str = ".kcr/state.yaml"
    log_level: str = "INFO"


def load_yaml(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_reconciler_config(path: Optional[str] = None) -> ReconcilerConfig:
    explicit = path or os.environ.get("KCR_CONFIG")
    config_path = Path(explicit or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        if explicit:
            raise ValueError(f"Config file not found at {config_path}")
        return ReconcilerConfig()
    data = load_yaml(config_path)
    if "reconciler" not in data:
        raise ValueError(f"Invalid config file, expected 'reconciler' root at {config_path}")
    return ReconcilerConfig(**(data["reconciler"] or {}))


def save_config(config: BaseModel, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump({"reconciler": config.model_dump()}, f)
