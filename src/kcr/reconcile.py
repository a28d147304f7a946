"""Reconciliation cycles driven from a desired-state document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kcr.backends.base import ClusterBackend, ManifestBackend
from kcr.backends.kind import KindBackend
from kcr.backends.kubectl import KubectlBackend
from kcr.desired.document import DesiredDocument
from kcr.desired.models import ManifestSpec
from kcr.errors import ReconcileError
from kcr.execute.executor import ActionExecutor
from kcr.plan.comparator import plan_cluster, plan_manifest
from kcr.resources.cluster import ClusterResource
from kcr.resources.manifest import ManifestResource
from kcr.state.store import ResourceState
from kcr.utils.config import ReconcilerConfig
from kcr.utils.logging import get_logger
from kcr.utils.time import current_cycle_id

LOG = get_logger(__name__)

CLUSTER_KEY = "cluster"


@dataclass
class CycleReport:
    cycle_id: str
    operation: str
    steps: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[ReconcileError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "cycle_id": self.cycle_id,
            "operation": self.operation,
            "ok": self.ok,
            "steps": self.steps,
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


class Reconciler:
    """Runs one cycle at a time; backends are injected, never global."""

    def __init__(self, cluster_backend: ClusterBackend, manifest_backend: ManifestBackend) -> None:
        self.cluster_backend = cluster_backend
        self.executor = ActionExecutor(cluster_backend, manifest_backend)
        self.clusters = ClusterResource(cluster_backend, self.executor)
        self.manifests = ManifestResource(self.executor)

    @classmethod
    def from_config(cls, config: ReconcilerConfig) -> "Reconciler":
        return cls(
            KindBackend(
                kind_path=config.kind_path,
                docker_path=config.docker_path,
                kubeconfig_path=config.kubeconfig_path,
            ),
            KubectlBackend(kubectl_path=config.kubectl_path, kubeconfig_path=config.kubeconfig_path),
        )

    def _report(self, operation: str) -> CycleReport:
        report = CycleReport(cycle_id=current_cycle_id(), operation=operation)
        LOG.info("Starting cycle", extra={"cycle_id": report.cycle_id, "operation": operation})
        return report

    def plan(self, document: DesiredDocument, state: ResourceState) -> CycleReport:
        """Compute actions without executing any of them."""
        report = self._report("plan")
        try:
            if document.cluster is not None:
                observed = self.clusters.observe(document.cluster, state.clusters.get(CLUSTER_KEY))
                actions = plan_cluster(document.cluster, observed)
                report.steps.append({"resource": CLUSTER_KEY, "actions": [a.to_dict() for a in actions]})
            for entry in document.manifests:
                actions = plan_manifest(entry.spec(), _previous(state, entry.key))
                report.steps.append({"resource": entry.key, "actions": [a.to_dict() for a in actions]})
        except ReconcileError as exc:
            report.error = exc
        return report

    def apply(self, document: DesiredDocument, state: ResourceState) -> CycleReport:
        """Converge the cluster, then each manifest, stopping at the first failure."""
        report = self._report("apply")
        try:
            if document.cluster is not None:
                outcome = self.clusters.reconcile(document.cluster, state.clusters.get(CLUSTER_KEY))
                state.set_cluster(CLUSTER_KEY, outcome.id)
                report.steps.append({"resource": CLUSTER_KEY, **outcome.to_dict()})
                if not outcome.ok:
                    report.error = outcome.error
                    return report
            for entry in document.manifests:
                outcome = self.manifests.create(entry.spec(), _previous(state, entry.key))
                state.set_manifest(entry.key, outcome.id)
                report.steps.append({"resource": entry.key, **outcome.to_dict()})
                if not outcome.ok:
                    report.error = outcome.error
                    return report
        except ReconcileError as exc:
            report.error = exc
        return report

    def replace(self, document: DesiredDocument, state: ResourceState) -> CycleReport:
        """Force the delete-then-create update path for the cluster."""
        report = self._report("replace")
        if document.cluster is None:
            return report
        current = state.clusters.get(CLUSTER_KEY) or document.cluster.name
        try:
            outcome = self.clusters.update(current, document.cluster)
        except ReconcileError as exc:
            report.error = exc
            return report
        state.set_cluster(CLUSTER_KEY, outcome.id)
        report.steps.append({"resource": CLUSTER_KEY, **outcome.to_dict()})
        report.error = outcome.error
        return report

    def destroy(self, document: DesiredDocument, state: ResourceState) -> CycleReport:
        """Delete applied manifests in reverse order, then the cluster."""
        report = self._report("destroy")
        try:
            for entry in reversed(document.manifests):
                if entry.key not in state.manifests:
                    LOG.info("Manifest never applied, skipping delete", extra={"resource": entry.key})
                    continue
                outcome = self.manifests.delete(entry.spec(check_paths=False))
                state.set_manifest(entry.key, outcome.id)
                report.steps.append({"resource": entry.key, **outcome.to_dict()})
                if not outcome.ok:
                    report.error = outcome.error
                    return report
            if document.cluster is not None:
                cluster_id = state.clusters.get(CLUSTER_KEY) or document.cluster.name
                outcome = self.clusters.delete(cluster_id)
                state.set_cluster(CLUSTER_KEY, outcome.id)
                report.steps.append({"resource": CLUSTER_KEY, **outcome.to_dict()})
                report.error = outcome.error
        except ReconcileError as exc:
            report.error = exc
        return report

    def status(self, state: ResourceState) -> CycleReport:
        """Read every stored resource; an absent cluster clears its id."""
        report = self._report("status")
        try:
            for key, cluster_id in list(state.clusters.items()):
                outcome = self.clusters.read(cluster_id)
                state.set_cluster(key, outcome.id)
                report.steps.append({"resource": key, **outcome.to_dict()})
            for key, manifest_id in list(state.manifests.items()):
                outcome = self.manifests.read(manifest_id)
                report.steps.append({"resource": key, **outcome.to_dict()})
        except ReconcileError as exc:
            report.error = exc
        return report


def _previous(state: ResourceState, key: str) -> Optional[ManifestSpec]:
    manifest_id = state.manifests.get(key)
    return ManifestSpec(path=manifest_id) if manifest_id else None
