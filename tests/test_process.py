from pathlib import Path

import pytest

from kcr.backends.base import ExecutableNotFoundError
from kcr.backends.kind import KindBackend
from kcr.backends.kubectl import KubectlBackend
from kcr.backends.process import run_command
from kcr.desired.builder import build_cluster_spec
from kcr.desired.models import ManifestSpec
from kcr.errors import ApplyFailure, ProvisionFailure
from kcr.execute.executor import ActionExecutor
from kcr.plan.actions import ApplyManifest, CreateCluster, CreateNamespace, DeleteCluster

DEV = build_cluster_spec({"name": "dev", "nodes": [{"role": "control-plane"}]})


def test_run_command_combines_output() -> None:
    result = run_command(["sh", "-c", "echo out; echo err >&2; exit 3"])
    assert result.returncode == 3
    assert not result.ok
    assert "out" in result.output
    assert "err" in result.output


def test_run_command_success() -> None:
    result = run_command(["sh", "-c", "echo ready"])
    assert result.ok
    assert result.output.strip() == "ready"


def test_run_command_missing_executable(tmp_path: Path) -> None:
    missing = str(tmp_path / "no-such-binary")
    with pytest.raises(ExecutableNotFoundError) as exc:
        run_command([missing, "version"])
    assert missing in exc.value.message


@pytest.fixture
def missing_tools(tmp_path: Path) -> ActionExecutor:
    return ActionExecutor(
        KindBackend(kind_path=str(tmp_path / "kind"), docker_path=str(tmp_path / "docker")),
        KubectlBackend(kubectl_path=str(tmp_path / "kubectl")),
    )


def test_missing_kind_is_provision_failure(missing_tools: ActionExecutor) -> None:
    create = missing_tools.execute(CreateCluster(DEV))
    assert isinstance(create.error, ProvisionFailure)
    assert "executable not found" in create.error.message
    delete = missing_tools.execute(DeleteCluster("dev"))
    assert isinstance(delete.error, ProvisionFailure)


def test_missing_kubectl_is_apply_failure(missing_tools: ActionExecutor) -> None:
    namespace = missing_tools.execute(CreateNamespace("app-ns"))
    assert isinstance(namespace.error, ApplyFailure)
    apply = missing_tools.execute(ApplyManifest(ManifestSpec(path="/tmp/app.yaml")))
    assert isinstance(apply.error, ApplyFailure)
    assert "executable not found" in apply.error.message
