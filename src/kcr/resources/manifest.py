"""Manifest resource lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kcr.desired.models import ManifestSpec
from kcr.errors import ReconcileError
from kcr.execute.executor import ActionExecutor, ExecutionResult
from kcr.plan.comparator import plan_manifest, plan_manifest_delete
from kcr.utils.logging import get_logger

LOG = get_logger(__name__)


@dataclass
class ManifestOutcome:
    id: Optional[str]
    results: List[ExecutionResult] = field(default_factory=list)
    error: Optional[ReconcileError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "ok": self.ok,
            "actions": [r.to_dict() for r in self.results],
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


class ManifestResource:
    def __init__(self, executor: ActionExecutor) -> None:
        self.executor = executor

    def create(self, spec: ManifestSpec, previous: Optional[ManifestSpec] = None) -> ManifestOutcome:
        results = self.executor.run(plan_manifest(spec, previous))
        failed = next((r for r in results if not r.ok), None)
        if failed is not None:
            # namespaces created before the failure are left in place
            return ManifestOutcome(id=previous.path if previous else None, results=results, error=failed.error)
        LOG.info("Applied manifest", extra={"path": spec.path, "mode": spec.mode.value})
        return ManifestOutcome(id=spec.path, results=results)

    def update(self, spec: ManifestSpec, previous: Optional[ManifestSpec] = None) -> ManifestOutcome:
        return self.create(spec, previous)

    def read(self, manifest_id: str) -> ManifestOutcome:
        """Manifests are not probed; the stored id is returned unchanged."""
        return ManifestOutcome(id=manifest_id)

    def delete(self, spec: ManifestSpec) -> ManifestOutcome:
        results = self.executor.run(plan_manifest_delete(spec))
        failed = next((r for r in results if not r.ok), None)
        if failed is not None:
            return ManifestOutcome(id=spec.path, results=results, error=failed.error)
        return ManifestOutcome(id=None, results=results)
