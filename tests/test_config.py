from pathlib import Path

import pytest

from kcr.utils.config import ReconcilerConfig, load_reconciler_config, save_config


def test_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("KCR_CONFIG", raising=False)
    cfg = load_reconciler_config()
    assert cfg.kind_path == "kind"
    assert cfg.kubectl_path == "kubectl"


def test_config_from_env(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "reconciler.yaml"
    save_config(ReconcilerConfig(kubectl_path="/opt/kubectl", state_path=str(tmp_path / "s.yaml")), path)
    monkeypatch.setenv("KCR_CONFIG", str(path))
    cfg = load_reconciler_config()
    assert cfg.kubectl_path == "/opt/kubectl"


def test_explicit_missing_config_fails(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_reconciler_config(str(tmp_path / "nope.yaml"))


def test_config_requires_root(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("kind_path: kind\n")
    with pytest.raises(ValueError):
        load_reconciler_config(str(path))
