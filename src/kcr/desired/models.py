"""Desired state models."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class NodeRole(str, Enum):
    CONTROL_PLANE = "control-plane"
    WORKER = "worker"


class ManifestMode(str, Enum):
    PLAIN = "plain"
    OVERLAY = "overlay"


class ExtraMount(BaseModel):
    model_config = ConfigDict(frozen=True)

    host_path: str
    container_path: str


class NodeSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: NodeRole
    extra_mounts: Tuple[ExtraMount, ...] = ()
    kubeadm_config_patch: Optional[str] = None


class ClusterSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    nodes: Tuple[NodeSpec, ...]
    containerd_config_patches: Tuple[str, ...] = ()

    def host_paths(self) -> List[str]:
        return [m.host_path for n in self.nodes for m in n.extra_mounts]


class ManifestSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Absolute path to a manifest file or overlay directory")
    mode: ManifestMode = ManifestMode.PLAIN
    namespaces: Tuple[str, ...] = ()

    @property
    def is_overlay(self) -> bool:
        return self.mode == ManifestMode.OVERLAY
