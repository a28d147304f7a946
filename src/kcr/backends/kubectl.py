"""Manifest-applying backend driving the ``kubectl`` executable."""

from __future__ import annotations

from typing import List, Optional

from kcr.backends.base import CommandResult
from kcr.backends.process import Runner, run_command


class KubectlBackend:
    """Thin kubectl wrapper; callers interpret the exit code."""

    def __init__(
        self,
        kubectl_path: str = "kubectl",
        kubeconfig_path: str = "",
        runner: Optional[Runner] = None,
    ) -> None:
        self.kubectl_path = kubectl_path
        self.kubeconfig_path = kubeconfig_path
        self.runner = runner or run_command

    def run_kubectl(self, args: List[str]) -> CommandResult:
        cmd = [self.kubectl_path]
        if self.kubeconfig_path:
            cmd.extend(["--kubeconfig", self.kubeconfig_path])
        return self.runner(cmd + args)

    def apply(self, path: str, overlay: bool = False) -> CommandResult:
        return self.run_kubectl(["apply", "-k" if overlay else "-f", path])

    def delete(self, path: str, overlay: bool = False) -> CommandResult:
        return self.run_kubectl(["delete", "-k" if overlay else "-f", path])

    def create_namespace(self, name: str) -> CommandResult:
        return self.run_kubectl(["create", "ns", name, "--save-config"])
