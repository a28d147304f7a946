"""Diff engine turning desired vs. observed state into ordered actions."""

from __future__ import annotations

from typing import Dict, List, Optional

from kcr.desired.models import ClusterSpec, ManifestSpec
from kcr.plan.actions import (
    DELETE_ACTIONS,
    ApplyManifest,
    CreateCluster,
    CreateNamespace,
    DeleteCluster,
    DeleteManifest,
    NoOp,
    ReconcileAction,
)
from kcr.state.observed import ObservedCluster
from kcr.utils.logging import get_logger

LOG = get_logger(__name__)


def order_actions(actions: List[ReconcileAction]) -> List[ReconcileAction]:
    """Group actions by target and put deletes first within each group.

    Groups keep the order in which their target first appears, so a
    delete/create pair on one identifier stays contiguous and is never
    interleaved with actions on another target.
    """
    groups: Dict[str, List[ReconcileAction]] = {}
    for action in actions:
        groups.setdefault(action.target, []).append(action)
    ordered: List[ReconcileAction] = []
    for group in groups.values():
        ordered.extend(a for a in group if isinstance(a, DELETE_ACTIONS))
        ordered.extend(a for a in group if not isinstance(a, DELETE_ACTIONS))
    return ordered


def plan_cluster(desired: ClusterSpec, observed: Optional[ObservedCluster]) -> List[ReconcileAction]:
    if observed is None:
        actions: List[ReconcileAction] = [CreateCluster(desired)]
    elif observed.name == desired.name:
        # identity is the only compared field; node drift is not detected
        actions = [NoOp(desired.name)]
    else:
        actions = [DeleteCluster(observed.name), CreateCluster(desired)]
        LOG.info(
            "Planned cluster replacement",
            extra={"observed": observed.name, "desired": desired.name},
        )
    LOG.debug("Planned cluster", extra={"cluster": desired.name, "actions": [a.kind for a in actions]})
    return order_actions(actions)


def plan_cluster_replace(desired: ClusterSpec, current_name: str) -> List[ReconcileAction]:
    """Update is always destroy-then-recreate."""
    return order_actions([DeleteCluster(current_name), CreateCluster(desired)])


def plan_cluster_delete(name: str) -> List[ReconcileAction]:
    return [DeleteCluster(name)]


def plan_manifest(desired: ManifestSpec, previous_applied: Optional[ManifestSpec] = None) -> List[ReconcileAction]:
    """Namespaces first in declared order, then a single unconditional apply."""
    if previous_applied is not None and previous_applied.path != desired.path:
        LOG.info(
            "Manifest source changed; previous source is left applied",
            extra={"previous": previous_applied.path, "desired": desired.path},
        )
    # duplicates collapse to their first occurrence
    actions: List[ReconcileAction] = [CreateNamespace(ns) for ns in dict.fromkeys(desired.namespaces)]
    actions.append(ApplyManifest(desired))
    return order_actions(actions)


def plan_manifest_delete(spec: ManifestSpec) -> List[ReconcileAction]:
    return [DeleteManifest(spec)]
