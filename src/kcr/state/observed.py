"""Observed cluster state, read fresh from the provisioning backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from kcr.backends.base import BackendError, ClusterBackend
from kcr.desired.models import NodeRole
from kcr.errors import ProvisionFailure
from kcr.utils.logging import get_logger

LOG = get_logger(__name__)


@dataclass(frozen=True)
class ObservedNode:
    name: str
    role: NodeRole

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "role": self.role.value}


@dataclass(frozen=True)
class ObservedCluster:
    name: str
    nodes: Tuple[ObservedNode, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "nodes": [n.to_dict() for n in self.nodes]}


def resolve_role(raw_role: str) -> NodeRole:
    return NodeRole.CONTROL_PLANE if raw_role.strip() == NodeRole.CONTROL_PLANE.value else NodeRole.WORKER


def probe_cluster(backend: ClusterBackend, name: str) -> Optional[ObservedCluster]:
    """Return the observed cluster, or None when the backend does not list it."""
    try:
        if name not in backend.list():
            LOG.info("Cluster not found", extra={"cluster": name})
            return None
        nodes = []
        for handle in backend.list_nodes(name):
            nodes.append(ObservedNode(name=handle.name, role=resolve_role(handle.role())))
    except BackendError as exc:
        raise ProvisionFailure(f"error reading cluster {name}: {exc.message}") from exc
    return ObservedCluster(name=name, nodes=tuple(nodes))
