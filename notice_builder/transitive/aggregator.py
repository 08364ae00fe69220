"""TransitiveAggregator — merge per-unit scanner manifests into one index."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from notice_builder.exceptions import ManifestIntegrityError
from notice_builder.transitive.models import DependencyIndex, DependencyLicenseManifest

log = structlog.get_logger("notice_builder.transitive")

MANIFEST_GLOB = "*/*-dependency-licenses.json"


def discover_manifests(cache_root: Path) -> list[Path]:
    """Return every scanner manifest one level below *cache_root*, sorted."""
    return [hit for hit in sorted(Path(cache_root).glob(MANIFEST_GLOB)) if hit.is_file()]


def load_manifest(path: Path) -> DependencyLicenseManifest:
    try:
        return DependencyLicenseManifest.model_validate_json(path.read_bytes())
    except ValidationError as exc:
        raise ManifestIntegrityError(f"invalid dependency license manifest {path}: {exc}") from exc


class TransitiveAggregator:
    """Merges scanner manifests from *cache_root* and copies their license files.

    The cache is a one-shot input: it is removed once every manifest has been
    merged, and left in place when any manifest fails.
    """

    def __init__(self, cache_root: Path, output_dir: Path, logger: Any = None) -> None:
        self.cache_root = Path(cache_root)
        self.output_dir = Path(output_dir)
        self._log = logger if logger is not None else log

    def merge(self) -> DependencyIndex:
        index = DependencyIndex()
        manifests = discover_manifests(self.cache_root)

        for manifest_path in manifests:
            manifest = load_manifest(manifest_path)
            manifest_dir = manifest_path.parent

            for manager_name, dependencies in manifest.dependency_managers.items():
                for dependency in dependencies:
                    for license_file in dependency.license_files:
                        self._copy_license_file(manifest_dir, license_file, manifest_path)
                    index.add(manager_name, dependency, manifest.project_name)

        if self.cache_root.exists():
            shutil.rmtree(self.cache_root)
        self._log.info(
            "aggregator.merged",
            manifests=len(manifests),
            dependencies=len(index),
        )
        return index

    def _copy_license_file(self, manifest_dir: Path, license_file: str, manifest: Path) -> None:
        source = (manifest_dir / license_file).resolve()
        target = (self.output_dir / license_file).resolve()
        if not (
            source.is_relative_to(manifest_dir.resolve())
            and target.is_relative_to(self.output_dir.resolve())
        ):
            raise ManifestIntegrityError(
                f"license file '{license_file}' referenced by {manifest} escapes the "
                "manifest or output directory"
            )
        if not source.is_file():
            raise ManifestIntegrityError(
                f"license file '{source}' referenced by {manifest} does not exist"
            )
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
