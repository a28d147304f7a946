from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pytest

from kcr.backends.base import BackendError, ClusterNotFoundError, CommandResult
from kcr.desired.models import ClusterSpec
from kcr.execute.executor import ActionExecutor


@dataclass
class FakeNode:
    name: str
    _role: str

    def role(self) -> str:
        return self._role


class FakeClusterBackend:
    def __init__(self) -> None:
        self.clusters: Dict[str, ClusterSpec] = {}
        self.calls: List[Tuple[str, str]] = []
        self.create_error: Optional[str] = None
        self.delete_error: Optional[str] = None

    def create(self, name: str, spec: ClusterSpec) -> None:
        self.calls.append(("create", name))
        if self.create_error:
            raise BackendError(self.create_error)
        self.clusters[name] = spec

    def delete(self, name: str, keep_dir: str = "") -> None:
        self.calls.append(("delete", name))
        if self.delete_error:
            raise BackendError(self.delete_error)
        if name not in self.clusters:
            raise ClusterNotFoundError(f"cluster {name} not found")
        del self.clusters[name]

    def list(self) -> List[str]:
        return list(self.clusters)

    def list_nodes(self, name: str) -> List[FakeNode]:
        spec = self.clusters[name]
        return [FakeNode(f"{name}-node-{i}", node.role.value) for i, node in enumerate(spec.nodes)]


class FakeManifestBackend:
    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.failures: Dict[str, CommandResult] = {}

    def _result(self, key: str, args: List[str]) -> CommandResult:
        self.calls.append(args)
        return self.failures.get(key, CommandResult(returncode=0, output="ok"))

    def apply(self, path: str, overlay: bool = False) -> CommandResult:
        return self._result(f"apply:{path}", ["apply", "-k" if overlay else "-f", path])

    def delete(self, path: str, overlay: bool = False) -> CommandResult:
        return self._result(f"delete:{path}", ["delete", "-k" if overlay else "-f", path])

    def create_namespace(self, name: str) -> CommandResult:
        return self._result(f"ns:{name}", ["create", "ns", name, "--save-config"])


@pytest.fixture
def cluster_backend() -> FakeClusterBackend:
    return FakeClusterBackend()


@pytest.fixture
def manifest_backend() -> FakeManifestBackend:
    return FakeManifestBackend()


@pytest.fixture
def executor(cluster_backend: FakeClusterBackend, manifest_backend: FakeManifestBackend) -> ActionExecutor:
    return ActionExecutor(cluster_backend, manifest_backend)
