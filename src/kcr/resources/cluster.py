"""Cluster resource lifecycle: create, read, update and delete."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from kcr.backends.base import ClusterBackend
from kcr.desired.models import ClusterSpec
from kcr.errors import ProvisionFailure, ReconcileError, RecreateFailure
from kcr.execute.executor import ActionExecutor, ExecutionResult
from kcr.plan.actions import CreateCluster, DeleteCluster, ReconcileAction
from kcr.plan.comparator import plan_cluster, plan_cluster_delete, plan_cluster_replace
from kcr.state.observed import ObservedCluster, probe_cluster
from kcr.utils.logging import get_logger

LOG = get_logger(__name__)


class ClusterPhase(str, Enum):
    ABSENT = "absent"
    CREATING = "creating"
    PRESENT = "present"
    DELETING = "deleting"
    UNKNOWN = "unknown"


@dataclass
class LifecycleOutcome:
    """Result of one lifecycle operation; ``id`` is what the host should persist."""

    id: Optional[str]
    phase: ClusterPhase
    results: List[ExecutionResult] = field(default_factory=list)
    error: Optional[ReconcileError] = None
    observed: Optional[ObservedCluster] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "phase": self.phase.value,
            "ok": self.ok,
            "actions": [r.to_dict() for r in self.results],
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        if self.observed is not None:
            data["observed"] = self.observed.to_dict()
        return data


def _first_error(results: List[ExecutionResult]) -> Optional[ReconcileError]:
    for result in results:
        if result.error is not None:
            return result.error
    return None


class ClusterResource:
    def __init__(self, backend: ClusterBackend, executor: ActionExecutor) -> None:
        self.backend = backend
        self.executor = executor

    def _transition(self, name: str, phase: ClusterPhase) -> None:
        LOG.info("Cluster phase", extra={"cluster": name, "phase": phase.value})

    def _run(self, actions: List[ReconcileAction]) -> List[ExecutionResult]:
        results: List[ExecutionResult] = []
        for action in actions:
            if isinstance(action, DeleteCluster):
                self._transition(action.name, ClusterPhase.DELETING)
            elif isinstance(action, CreateCluster):
                self._transition(action.spec.name, ClusterPhase.CREATING)
            result = self.executor.execute(action)
            results.append(result)
            if not result.ok:
                break
        return results

    def _read_back(self, spec: ClusterSpec, results: List[ExecutionResult]) -> LifecycleOutcome:
        try:
            observed = probe_cluster(self.backend, spec.name)
        except ProvisionFailure as exc:
            self._transition(spec.name, ClusterPhase.UNKNOWN)
            return LifecycleOutcome(id=spec.name, phase=ClusterPhase.UNKNOWN, results=results, error=exc)
        if observed is None:
            self._transition(spec.name, ClusterPhase.UNKNOWN)
            error = ProvisionFailure(f"cluster {spec.name} not found after create")
            return LifecycleOutcome(id=None, phase=ClusterPhase.UNKNOWN, results=results, error=error)
        self._transition(spec.name, ClusterPhase.PRESENT)
        return LifecycleOutcome(id=spec.name, phase=ClusterPhase.PRESENT, results=results, observed=observed)

    def _converge(
        self,
        spec: ClusterSpec,
        actions: List[ReconcileAction],
        previous_id: Optional[str],
    ) -> LifecycleOutcome:
        """Run a planned sequence and map its results onto a lifecycle outcome."""
        results = self._run(actions)
        error = _first_error(results)
        if error is None:
            return self._read_back(spec, results)

        failed = results[-1].action
        deleted_first = any(isinstance(r.action, DeleteCluster) for r in results[:-1])
        if isinstance(failed, CreateCluster) and deleted_first:
            # distinct from a plain create failure: the operator has to recreate
            error = RecreateFailure(spec.name, error.message)
            self._transition(spec.name, ClusterPhase.ABSENT)
            return LifecycleOutcome(id=None, phase=ClusterPhase.ABSENT, results=results, error=error)
        if isinstance(failed, DeleteCluster):
            self._transition(failed.name, ClusterPhase.UNKNOWN)
            return LifecycleOutcome(id=previous_id, phase=ClusterPhase.UNKNOWN, results=results, error=error)
        self._transition(spec.name, ClusterPhase.UNKNOWN)
        return LifecycleOutcome(id=None, phase=ClusterPhase.UNKNOWN, results=results, error=error)

    def create(self, spec: ClusterSpec) -> LifecycleOutcome:
        return self._converge(spec, plan_cluster(spec, None), previous_id=None)

    def read(self, cluster_id: str) -> LifecycleOutcome:
        """An absent cluster clears the id; it is not an error."""
        observed = probe_cluster(self.backend, cluster_id)
        if observed is None:
            return LifecycleOutcome(id=None, phase=ClusterPhase.ABSENT)
        return LifecycleOutcome(id=cluster_id, phase=ClusterPhase.PRESENT, observed=observed)

    def update(self, cluster_id: str, spec: ClusterSpec) -> LifecycleOutcome:
        return self._converge(spec, plan_cluster_replace(spec, cluster_id), previous_id=cluster_id)

    def delete(self, cluster_id: str) -> LifecycleOutcome:
        results = self._run(plan_cluster_delete(cluster_id))
        error = _first_error(results)
        if error is not None:
            self._transition(cluster_id, ClusterPhase.UNKNOWN)
            return LifecycleOutcome(id=cluster_id, phase=ClusterPhase.UNKNOWN, results=results, error=error)
        self._transition(cluster_id, ClusterPhase.ABSENT)
        return LifecycleOutcome(id=None, phase=ClusterPhase.ABSENT, results=results)

    def observe(self, spec: ClusterSpec, stored_id: Optional[str] = None) -> Optional[ObservedCluster]:
        """Probe the stored cluster, falling back to the desired name."""
        observed = probe_cluster(self.backend, stored_id) if stored_id else None
        if observed is None and stored_id != spec.name:
            observed = probe_cluster(self.backend, spec.name)
        return observed

    def reconcile(self, spec: ClusterSpec, stored_id: Optional[str] = None) -> LifecycleOutcome:
        observed = self.observe(spec, stored_id)
        actions = plan_cluster(spec, observed)
        if observed is not None and observed.name == spec.name:
            return LifecycleOutcome(
                id=spec.name,
                phase=ClusterPhase.PRESENT,
                results=self._run(actions),
                observed=observed,
            )
        return self._converge(spec, actions, previous_id=stored_id)
