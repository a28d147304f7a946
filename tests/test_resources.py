from pathlib import Path

from kcr.backends.base import CommandResult
from kcr.desired.builder import build_cluster_spec, build_manifest_spec
from kcr.errors import ErrorKind, RecreateFailure
from kcr.resources.cluster import ClusterPhase, ClusterResource
from kcr.resources.manifest import ManifestResource

DEV = build_cluster_spec({"name": "dev", "nodes": [{"role": "control-plane"}, {"role": "worker"}]})


def test_create_stores_cluster_name(executor, cluster_backend) -> None:
    outcome = ClusterResource(cluster_backend, executor).create(DEV)
    assert outcome.ok
    assert outcome.id == "dev"
    assert outcome.phase == ClusterPhase.PRESENT
    assert [n.role.value for n in outcome.observed.nodes] == ["control-plane", "worker"]


def test_create_failure_leaves_unknown(executor, cluster_backend) -> None:
    cluster_backend.create_error = "boom"
    outcome = ClusterResource(cluster_backend, executor).create(DEV)
    assert outcome.error.kind == ErrorKind.PROVISION
    assert not isinstance(outcome.error, RecreateFailure)
    assert outcome.phase == ClusterPhase.UNKNOWN
    assert outcome.id is None


def test_read_absent_clears_id(executor, cluster_backend) -> None:
    outcome = ClusterResource(cluster_backend, executor).read("dev")
    assert outcome.ok
    assert outcome.id is None
    assert outcome.phase == ClusterPhase.ABSENT


def test_update_recreate_failure_is_distinct(executor, cluster_backend) -> None:
    resource = ClusterResource(cluster_backend, executor)
    resource.create(DEV)
    cluster_backend.create_error = "port 6443 already allocated"
    outcome = resource.update("dev", DEV)
    assert isinstance(outcome.error, RecreateFailure)
    assert outcome.error.kind == ErrorKind.RECREATE
    assert outcome.phase == ClusterPhase.ABSENT
    assert outcome.id is None
    assert cluster_backend.calls[-2:] == [("delete", "dev"), ("create", "dev")]


def test_update_delete_failure_keeps_id(executor, cluster_backend) -> None:
    resource = ClusterResource(cluster_backend, executor)
    resource.create(DEV)
    cluster_backend.delete_error = "cannot remove container"
    outcome = resource.update("dev", DEV)
    assert outcome.error.kind == ErrorKind.PROVISION
    assert outcome.id == "dev"
    assert outcome.phase == ClusterPhase.UNKNOWN


def test_update_succeeds(executor, cluster_backend) -> None:
    resource = ClusterResource(cluster_backend, executor)
    resource.create(DEV)
    outcome = resource.update("dev", DEV)
    assert outcome.ok and outcome.id == "dev"


def test_delete(executor, cluster_backend) -> None:
    resource = ClusterResource(cluster_backend, executor)
    resource.create(DEV)
    outcome = resource.delete("dev")
    assert outcome.ok and outcome.id is None
    assert cluster_backend.clusters == {}
    assert resource.delete("dev").ok


def test_reconcile_existing_is_noop(executor, cluster_backend) -> None:
    resource = ClusterResource(cluster_backend, executor)
    resource.create(DEV)
    calls = list(cluster_backend.calls)
    outcome = resource.reconcile(DEV, "dev")
    assert outcome.ok and outcome.id == "dev"
    assert [r.action.kind for r in outcome.results] == ["noop"]
    assert cluster_backend.calls == calls


def test_reconcile_renamed_cluster(executor, cluster_backend) -> None:
    resource = ClusterResource(cluster_backend, executor)
    old = build_cluster_spec({"name": "old", "nodes": [{"role": "control-plane"}]})
    resource.create(old)
    outcome = resource.reconcile(DEV, "old")
    assert outcome.id == "dev"
    assert list(cluster_backend.clusters) == ["dev"]
    assert [r.action.kind for r in outcome.results] == ["delete_cluster", "create_cluster"]


def test_reconcile_renamed_cluster_recreate_failure(executor, cluster_backend) -> None:
    resource = ClusterResource(cluster_backend, executor)
    resource.create(build_cluster_spec({"name": "old", "nodes": [{"role": "control-plane"}]}))
    cluster_backend.create_error = "port 6443 already allocated"
    outcome = resource.reconcile(DEV, "old")
    assert isinstance(outcome.error, RecreateFailure)
    assert outcome.id is None
    assert outcome.phase == ClusterPhase.ABSENT
    assert cluster_backend.clusters == {}


def test_create_without_read_back_is_provision_failure(executor, cluster_backend, monkeypatch) -> None:
    monkeypatch.setattr(cluster_backend, "list", lambda: [])
    outcome = ClusterResource(cluster_backend, executor).create(DEV)
    assert outcome.error.kind == ErrorKind.PROVISION
    assert "not found after create" in outcome.error.message
    assert outcome.id is None
    assert outcome.phase == ClusterPhase.UNKNOWN


def test_manifest_create_and_delete(executor, manifest_backend, tmp_path: Path) -> None:
    manifest = tmp_path / "app.yaml"
    manifest.write_text("kind: ConfigMap\n")
    spec = build_manifest_spec({"path": str(manifest), "namespaces": ["app-ns"]})
    resource = ManifestResource(executor)
    outcome = resource.create(spec)
    assert outcome.ok and outcome.id == str(manifest)
    assert manifest_backend.calls == [
        ["create", "ns", "app-ns", "--save-config"],
        ["apply", "-f", str(manifest)],
    ]
    assert resource.read(outcome.id).id == str(manifest)
    assert resource.delete(spec).id is None


def test_manifest_namespace_failure_skips_apply(executor, manifest_backend, tmp_path: Path) -> None:
    manifest = tmp_path / "app.yaml"
    manifest.write_text("kind: ConfigMap\n")
    spec = build_manifest_spec({"path": str(manifest), "namespaces": ["app-ns"]})
    manifest_backend.failures["ns:app-ns"] = CommandResult(returncode=1, output="forbidden")
    outcome = ManifestResource(executor).create(spec)
    assert outcome.error.kind == ErrorKind.APPLY
    assert outcome.id is None
    assert all(call[0] != "apply" for call in manifest_backend.calls)
