"""Validation and normalization of raw configuration into desired state."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from kcr.desired.models import ClusterSpec, ExtraMount, ManifestMode, ManifestSpec, NodeRole, NodeSpec
from kcr.errors import ValidationError


def _require_mapping(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValidationError(f"{what} must be a mapping, got {type(raw).__name__}")
    return raw


def _require_str_list(raw: Any, what: str) -> List[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ValidationError(f"{what} must be a list of strings")
    return list(raw)


def _build_mounts(node_index: int, raw: Any) -> List[ExtraMount]:
    if raw is None:
        return []
    entries: List[Dict[str, Any]] = []
    if isinstance(raw, dict):
        # container path -> {host_path: ...} or container path -> host path
        for container_path, value in raw.items():
            host_path = value.get("host_path") if isinstance(value, dict) else value
            entries.append({"host_path": host_path, "container_path": container_path})
    elif isinstance(raw, list):
        for item in raw:
            entries.append(_require_mapping(item, f"node {node_index} extra mount"))
    else:
        raise ValidationError(f"node {node_index}: extra_mounts must be a list or mapping")

    mounts: List[ExtraMount] = []
    for entry in entries:
        host_path = entry.get("host_path")
        container_path = entry.get("container_path")
        if not isinstance(host_path, str) or not host_path:
            raise ValidationError(f"node {node_index}: extra mount host path must not be empty")
        if not isinstance(container_path, str) or not container_path:
            raise ValidationError(f"node {node_index}: extra mount container path must not be empty")
        mount = ExtraMount(host_path=host_path, container_path=container_path)
        if mount not in mounts:
            mounts.append(mount)
    return mounts


def _build_node(index: int, raw: Any) -> NodeSpec:
    data = _require_mapping(raw, f"node {index}")
    role_value = str(data.get("role") or "").strip().lower()
    try:
        role = NodeRole(role_value)
    except ValueError:
        raise ValidationError(
            f"node {index}: unknown role {role_value!r}, expected control-plane or worker"
        ) from None

    patch = data.get("kubeadm_config_patch", data.get("kube_adm_config_patches"))
    if patch is not None and not isinstance(patch, str):
        raise ValidationError(f"node {index}: kubeadm config patch must be a string")

    return NodeSpec(
        role=role,
        extra_mounts=tuple(_build_mounts(index, data.get("extra_mounts"))),
        kubeadm_config_patch=patch or None,
    )


def build_cluster_spec(raw: Any) -> ClusterSpec:
    """Validate a raw cluster block and return a :class:`ClusterSpec`.

    Raises :class:`kcr.errors.ValidationError` when the name is empty, when no
    control-plane node is declared or when a mount has an empty host path.
    """
    data = _require_mapping(raw, "cluster config")
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("cluster name must not be empty")

    raw_nodes = data.get("nodes", data.get("node"))
    if not isinstance(raw_nodes, list):
        raise ValidationError(f"cluster {name}: nodes must be a list")
    nodes = [_build_node(i, node) for i, node in enumerate(raw_nodes)]
    if not any(node.role == NodeRole.CONTROL_PLANE for node in nodes):
        raise ValidationError(f"cluster {name}: at least one control-plane node is required")

    patches = _require_str_list(data.get("containerd_config_patches"), "containerd_config_patches")
    try:
        return ClusterSpec(name=name, nodes=tuple(nodes), containerd_config_patches=tuple(patches))
    except PydanticValidationError as exc:
        raise ValidationError(f"cluster {name}: {exc}") from exc


def _resolve_mode(data: Dict[str, Any]) -> ManifestMode:
    if "mode" in data:
        try:
            return ManifestMode(str(data["mode"]).strip().lower())
        except ValueError:
            raise ValidationError(f"unknown manifest mode {data['mode']!r}, expected plain or overlay") from None
    if "kustomize" in data:
        return ManifestMode.OVERLAY if data["kustomize"] else ManifestMode.PLAIN
    return ManifestMode.PLAIN


def _resolve_namespaces(raw: Any) -> List[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("namespaces must be a list")
    names: List[str] = []
    for item in raw:
        name = item.get("namespace") if isinstance(item, dict) else item
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("namespace names must be non-empty strings")
        if name.strip() not in names:
            names.append(name.strip())
    return names


def canonical_path(path: str, base_dir: Optional[str | Path] = None) -> str:
    candidate = Path(os.path.expanduser(path))
    if not candidate.is_absolute():
        candidate = Path(base_dir or Path.cwd()) / candidate
    return os.path.abspath(candidate)


def build_manifest_spec(
    raw: Any,
    base_dir: Optional[str | Path] = None,
    check_paths: bool = True,
) -> ManifestSpec:
    """Validate a raw manifest block and return a :class:`ManifestSpec`.

    The path is made absolute against ``base_dir``. With ``check_paths`` the
    path must exist and, in overlay mode, be a directory.
    """
    data = _require_mapping(raw, "manifest config")
    path_value = data.get("path", data.get("manifest_path"))
    if not isinstance(path_value, str) or not path_value.strip():
        raise ValidationError("manifest path must not be empty")

    abs_path = canonical_path(path_value.strip(), base_dir)
    mode = _resolve_mode(data)
    if check_paths:
        if not os.path.exists(abs_path):
            raise ValidationError(f"manifest source does not exist at: {abs_path}")
        if mode == ManifestMode.OVERLAY and not os.path.isdir(abs_path):
            raise ValidationError(f"overlay mode requires a directory, got file: {abs_path}")

    return ManifestSpec(
        path=abs_path,
        mode=mode,
        namespaces=tuple(_resolve_namespaces(data.get("namespaces", data.get("createns")))),
    )
