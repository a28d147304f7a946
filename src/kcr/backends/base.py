"""Backend contracts shared by the executor and probes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

from kcr.desired.models import ClusterSpec


class BackendError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ClusterNotFoundError(BackendError):
    pass


class ExecutableNotFoundError(BackendError):
    pass


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class NodeHandle(Protocol):
    name: str

    def role(self) -> str:
        ...


class ClusterBackend(Protocol):
    def create(self, name: str, spec: ClusterSpec) -> None:
        ...

    def delete(self, name: str, keep_dir: str = "") -> None:
        ...

    def list(self) -> List[str]:
        ...

    def list_nodes(self, name: str) -> List[NodeHandle]:
        ...


class ManifestBackend(Protocol):
    def apply(self, path: str, overlay: bool = False) -> CommandResult:
        ...

    def delete(self, path: str, overlay: bool = False) -> CommandResult:
        ...

    def create_namespace(self, name: str) -> CommandResult:
        ...
