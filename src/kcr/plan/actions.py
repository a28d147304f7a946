"""Reconcile actions: immutable descriptions of intent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Union

from kcr.desired.models import ClusterSpec, ManifestSpec


@dataclass(frozen=True)
class CreateCluster:
    spec: ClusterSpec
    kind: ClassVar[str] = "create_cluster"

    @property
    def target(self) -> str:
        return self.spec.name

    def to_dict(self) -> Dict[str, object]:
        return {
            "kind": self.kind,
            "target": self.target,
            "nodes": [n.role.value for n in self.spec.nodes],
        }


@dataclass(frozen=True)
class DeleteCluster:
    name: str
    kind: ClassVar[str] = "delete_cluster"

    @property
    def target(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, object]:
        return {"kind": self.kind, "target": self.target}


@dataclass(frozen=True)
class CreateNamespace:
    name: str
    kind: ClassVar[str] = "create_namespace"

    @property
    def target(self) -> str:
        return f"namespace/{self.name}"

    def to_dict(self) -> Dict[str, object]:
        return {"kind": self.kind, "target": self.target}


@dataclass(frozen=True)
class ApplyManifest:
    spec: ManifestSpec
    kind: ClassVar[str] = "apply_manifest"

    @property
    def target(self) -> str:
        return self.spec.path

    def to_dict(self) -> Dict[str, object]:
        return {"kind": self.kind, "target": self.target, "mode": self.spec.mode.value}


@dataclass(frozen=True)
class DeleteManifest:
    spec: ManifestSpec
    kind: ClassVar[str] = "delete_manifest"

    @property
    def target(self) -> str:
        return self.spec.path

    def to_dict(self) -> Dict[str, object]:
        return {"kind": self.kind, "target": self.target, "mode": self.spec.mode.value}


@dataclass(frozen=True)
class NoOp:
    name: str
    kind: ClassVar[str] = "noop"

    @property
    def target(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, object]:
        return {"kind": self.kind, "target": self.target}


ReconcileAction = Union[CreateCluster, DeleteCluster, CreateNamespace, ApplyManifest, DeleteManifest, NoOp]

DELETE_ACTIONS = (DeleteCluster, DeleteManifest)
