"""Cluster-provisioning backend driving the ``kind`` executable."""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from kcr.backends.base import BackendError, ClusterNotFoundError
from kcr.backends.process import Runner, run_command
from kcr.desired.models import ClusterSpec
from kcr.utils.logging import get_logger

LOG = get_logger(__name__)

KIND_API_VERSION = "kind.x-k8s.io/v1alpha4"
ROLE_LABEL = "io.x-k8s.kind.role"


def render_kind_config(spec: ClusterSpec) -> Dict[str, Any]:
    config: Dict[str, Any] = {
        "kind": "Cluster",
        "apiVersion": KIND_API_VERSION,
        "name": spec.name,
    }
    if spec.containerd_config_patches:
        config["containerdConfigPatches"] = list(spec.containerd_config_patches)
    nodes = []
    for node in spec.nodes:
        entry: Dict[str, Any] = {"role": node.role.value}
        if node.extra_mounts:
            entry["extraMounts"] = [
                {"hostPath": m.host_path, "containerPath": m.container_path} for m in node.extra_mounts
            ]
        if node.kubeadm_config_patch:
            entry["kubeadmConfigPatches"] = [node.kubeadm_config_patch]
        nodes.append(entry)
    config["nodes"] = nodes
    return config


def _names(output: str) -> List[str]:
    # names never contain spaces; informational lines like "No kind clusters found." do
    return [line.strip() for line in output.splitlines() if line.strip() and " " not in line.strip()]


@dataclass
class KindNode:
    name: str
    docker_path: str
    runner: Runner

    def role(self) -> str:
        result = self.runner(
            [self.docker_path, "inspect", "--format", "{{ index .Config.Labels \"%s\" }}" % ROLE_LABEL, self.name]
        )
        if not result.ok:
            raise BackendError(f"failed to get role for node {self.name}: {result.output.strip()}")
        return result.output.strip()


class KindBackend:
    def __init__(
        self,
        kind_path: str = "kind",
        docker_path: str = "docker",
        kubeconfig_path: str = "",
        runner: Optional[Runner] = None,
    ) -> None:
        self.kind_path = kind_path
        self.docker_path = docker_path
        self.kubeconfig_path = kubeconfig_path
        self.runner = runner or run_command

    def _kind(self, args: List[str]) -> str:
        result = self.runner([self.kind_path] + args)
        if not result.ok:
            raise BackendError(result.output.strip() or f"kind {' '.join(args)} exited with {result.returncode}")
        return result.output

    def create(self, name: str, spec: ClusterSpec) -> None:
        with tempfile.TemporaryDirectory(prefix="kcr-") as tmp:
            config_path = Path(tmp) / "kind-config.yaml"
            with open(config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(render_kind_config(spec), f, sort_keys=False)
            args = ["create", "cluster", "--name", name, "--config", str(config_path)]
            if self.kubeconfig_path:
                args.extend(["--kubeconfig", self.kubeconfig_path])
            self._kind(args)
        LOG.info("Created kind cluster", extra={"cluster": name, "nodes": len(spec.nodes)})

    def delete(self, name: str, keep_dir: str = "") -> None:
        """Delete ``name``; ``keep_dir`` overrides the kubeconfig path to clean up."""
        if name not in self.list():
            raise ClusterNotFoundError(f"cluster {name} not found")
        args = ["delete", "cluster", "--name", name]
        kubeconfig = keep_dir or self.kubeconfig_path
        if kubeconfig:
            args.extend(["--kubeconfig", kubeconfig])
        self._kind(args)
        LOG.info("Deleted kind cluster", extra={"cluster": name})

    def list(self) -> List[str]:
        return _names(self._kind(["get", "clusters"]))

    def list_nodes(self, name: str) -> List[KindNode]:
        return [
            KindNode(name=node, docker_path=self.docker_path, runner=self.runner)
            for node in _names(self._kind(["get", "nodes", "--name", name]))
        ]
