"""Sequential, fail-fast execution of reconcile actions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from kcr.backends.base import BackendError, ClusterBackend, ClusterNotFoundError, ManifestBackend
from kcr.errors import ApplyFailure, ProvisionFailure, ReconcileError
from kcr.plan.actions import (
    ApplyManifest,
    CreateCluster,
    CreateNamespace,
    DeleteCluster,
    DeleteManifest,
    NoOp,
    ReconcileAction,
)
from kcr.utils.logging import get_logger

LOG = get_logger(__name__)

ALREADY_EXISTS_MARKERS = ("AlreadyExists", "already exists")


@dataclass(frozen=True)
class ExecutionResult:
    action: ReconcileAction
    error: Optional[ReconcileError] = None
    output: str = ""
    soft_failure: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"action": self.action.to_dict(), "ok": self.ok}
        if self.error is not None:
            data["error"] = self.error.to_dict()
        if self.soft_failure:
            data["soft_failure"] = True
        return data


class ActionExecutor:
    """Runs actions one at a time against explicitly supplied backends."""

    def __init__(self, cluster_backend: ClusterBackend, manifest_backend: ManifestBackend) -> None:
        self.cluster_backend = cluster_backend
        self.manifest_backend = manifest_backend

    def execute(self, action: ReconcileAction) -> ExecutionResult:
        LOG.info("Executing action", extra=action.to_dict())
        if isinstance(action, CreateCluster):
            result = self._create_cluster(action)
        elif isinstance(action, DeleteCluster):
            result = self._delete_cluster(action)
        elif isinstance(action, CreateNamespace):
            result = self._create_namespace(action)
        elif isinstance(action, ApplyManifest):
            result = self._apply_manifest(action)
        elif isinstance(action, DeleteManifest):
            result = self._delete_manifest(action)
        elif isinstance(action, NoOp):
            result = ExecutionResult(action=action)
        else:
            raise TypeError(f"Unsupported action {action!r}")
        if not result.ok:
            LOG.error(
                "Action failed",
                extra={"kind": action.kind, "target": action.target, "error": result.error.message},
            )
        return result

    def run(self, actions: Iterable[ReconcileAction]) -> List[ExecutionResult]:
        """Execute in order and stop at the first hard failure. Nothing is rolled back."""
        results: List[ExecutionResult] = []
        for action in actions:
            result = self.execute(action)
            results.append(result)
            if not result.ok:
                break
        return results

    def _create_cluster(self, action: CreateCluster) -> ExecutionResult:
        spec = action.spec
        missing = [p for p in spec.host_paths() if not os.path.exists(p)]
        if missing:
            return ExecutionResult(
                action=action,
                error=ProvisionFailure(f"extra mount host path does not exist: {', '.join(missing)}"),
            )
        try:
            self.cluster_backend.create(spec.name, spec)
        except BackendError as exc:
            return ExecutionResult(
                action=action,
                error=ProvisionFailure(f"error creating cluster: {exc.message}"),
            )
        return ExecutionResult(action=action)

    def _delete_cluster(self, action: DeleteCluster) -> ExecutionResult:
        try:
            self.cluster_backend.delete(action.name, "")
        except ClusterNotFoundError:
            LOG.info("Cluster already absent", extra={"cluster": action.name})
        except BackendError as exc:
            return ExecutionResult(
                action=action,
                error=ProvisionFailure(f"error deleting cluster {action.name}: {exc.message}"),
            )
        return ExecutionResult(action=action)

    def _create_namespace(self, action: CreateNamespace) -> ExecutionResult:
        try:
            cmd = self.manifest_backend.create_namespace(action.name)
        except BackendError as exc:
            return ExecutionResult(
                action=action,
                error=ApplyFailure(f"failed to create namespace {action.name}: {exc.message}"),
            )
        if cmd.ok:
            return ExecutionResult(action=action, output=cmd.output)
        if any(marker in cmd.output for marker in ALREADY_EXISTS_MARKERS):
            LOG.warning("Namespace already exists", extra={"namespace": action.name})
            return ExecutionResult(action=action, output=cmd.output, soft_failure=True)
        return ExecutionResult(
            action=action,
            output=cmd.output,
            error=ApplyFailure(f"failed to create namespace {action.name}: exit status {cmd.returncode}", cmd.output),
        )

    def _apply_manifest(self, action: ApplyManifest) -> ExecutionResult:
        spec = action.spec
        try:
            cmd = self.manifest_backend.apply(spec.path, overlay=spec.is_overlay)
        except BackendError as exc:
            return ExecutionResult(action=action, error=ApplyFailure(f"failed to apply manifest: {exc.message}"))
        if not cmd.ok:
            return ExecutionResult(
                action=action,
                output=cmd.output,
                error=ApplyFailure(f"failed to apply manifest: exit status {cmd.returncode}", cmd.output),
            )
        return ExecutionResult(action=action, output=cmd.output)

    def _delete_manifest(self, action: DeleteManifest) -> ExecutionResult:
        spec = action.spec
        if not os.path.exists(spec.path):
            # a vanished source counts as already deleted
            LOG.warning("Manifest source missing, treating as deleted", extra={"path": spec.path})
            return ExecutionResult(action=action)
        try:
            cmd = self.manifest_backend.delete(spec.path, overlay=spec.is_overlay)
        except BackendError as exc:
            return ExecutionResult(action=action, error=ApplyFailure(f"failed to delete manifest: {exc.message}"))
        if not cmd.ok:
            return ExecutionResult(
                action=action,
                output=cmd.output,
                error=ApplyFailure(f"failed to delete manifest: exit status {cmd.returncode}", cmd.output),
            )
        return ExecutionResult(action=action, output=cmd.output)
