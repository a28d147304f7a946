"""Durable resource identifiers kept by the orchestration host."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from kcr.utils.io import atomic_write_yaml
from kcr.utils.logging import get_logger
from kcr.utils.time import utc_timestamp

LOG = get_logger(__name__)


@dataclass
class ResourceState:
    clusters: Dict[str, str] = field(default_factory=dict)
    manifests: Dict[str, str] = field(default_factory=dict)
    updated_at: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "clusters": dict(self.clusters),
            "manifests": dict(self.manifests),
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "ResourceState":
        return cls(
            clusters={str(k): str(v) for k, v in (data.get("clusters") or {}).items()},
            manifests={str(k): str(v) for k, v in (data.get("manifests") or {}).items()},
            updated_at=str(data.get("updated_at") or ""),
        )

    def set_cluster(self, key: str, cluster_id: Optional[str]) -> None:
        if cluster_id:
            self.clusters[key] = cluster_id
        else:
            self.clusters.pop(key, None)

    def set_manifest(self, key: str, manifest_id: Optional[str]) -> None:
        if manifest_id:
            self.manifests[key] = manifest_id
        else:
            self.manifests.pop(key, None)


def load_state(path: str | Path) -> ResourceState:
    path = Path(path)
    if not path.exists():
        return ResourceState()
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid state file at {path}, expected a mapping")
    return ResourceState.from_dict(data)


def save_state(state: ResourceState, path: str | Path) -> None:
    state.updated_at = utc_timestamp()
    atomic_write_yaml(path, state.to_dict())
    LOG.debug("Saved state", extra={"path": str(path)})
