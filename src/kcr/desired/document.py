"""Desired-state documents read from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from kcr.desired.builder import build_cluster_spec, build_manifest_spec
from kcr.desired.models import ClusterSpec, ManifestSpec
from kcr.errors import ValidationError


@dataclass
class ManifestEntry:
    key: str
    raw: Dict[str, Any]
    base_dir: Path

    def spec(self, check_paths: bool = True) -> ManifestSpec:
        return build_manifest_spec(self.raw, base_dir=self.base_dir, check_paths=check_paths)


@dataclass
class DesiredDocument:
    cluster: Optional[ClusterSpec] = None
    manifests: List[ManifestEntry] = field(default_factory=list)
    source: Optional[Path] = None


def read_document(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        raise ValidationError(f"desired state document not found at {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ValidationError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"desired state document {path} must be a mapping")
    return data


def load_desired_document(path: str | Path) -> DesiredDocument:
    """Load a document with an optional ``cluster`` block and a ``manifests`` list.

    Manifest paths are resolved relative to the document's directory. Manifest
    specs are built lazily by :meth:`ManifestEntry.spec` because deleting a
    manifest must not require its source to exist.
    """
    path = Path(path)
    data = read_document(path)
    base_dir = path.resolve().parent

    cluster = build_cluster_spec(data["cluster"]) if data.get("cluster") is not None else None

    raw_manifests = data.get("manifests") or []
    if not isinstance(raw_manifests, list):
        raise ValidationError("manifests must be a list")
    entries: List[ManifestEntry] = []
    seen = set()
    for raw in raw_manifests:
        if not isinstance(raw, dict):
            raise ValidationError("each manifest entry must be a mapping")
        key = str(raw.get("name") or raw.get("path") or raw.get("manifest_path") or "")
        if not key:
            raise ValidationError("manifest path must not be empty")
        if key in seen:
            raise ValidationError(f"duplicate manifest entry {key!r}")
        seen.add(key)
        entries.append(ManifestEntry(key=key, raw=raw, base_dir=base_dir))
    return DesiredDocument(cluster=cluster, manifests=entries, source=path)
