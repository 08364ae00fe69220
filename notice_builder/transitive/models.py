"""Data models for transitive dependency licensing."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import NamedTuple

from pydantic import BaseModel, Field

# ── scanner manifest schema ──────────────────────────────────────────────


class ManifestDependency(BaseModel):
    name: str
    version: str
    license: str | None = None
    license_files: list[str] = Field(default_factory=list)


class DependencyLicenseManifest(BaseModel):
    """``<unit>/*-dependency-licenses.json`` as written by the scanner."""

    project_name: str
    dependency_managers: dict[str, list[ManifestDependency]] = Field(default_factory=dict)


# ── merged records ───────────────────────────────────────────────────────


class DependencyKey(NamedTuple):
    manager_name: str
    dependency_name: str
    version: str


@dataclass
class DependencyRecord:
    """A transitive dependency, possibly shared by several units."""

    manager_name: str
    dependency_name: str
    version: str
    license_id: str | None
    license_files: tuple[str, ...]
    dependent_units: set[str] = field(default_factory=set)

    @property
    def key(self) -> DependencyKey:
        return DependencyKey(self.manager_name, self.dependency_name, self.version)


class DependencyIndex(Mapping[DependencyKey, DependencyRecord]):
    """Flat, insertion-ordered map of dependency records.

    Merging an entry whose key already exists only adds the dependent unit;
    the license data of the first entry is kept.
    """

    def __init__(self) -> None:
        self._records: dict[DependencyKey, DependencyRecord] = {}

    def add(
        self,
        manager_name: str,
        dependency: ManifestDependency,
        dependent_unit: str,
    ) -> DependencyRecord:
        key = DependencyKey(manager_name, dependency.name, dependency.version)
        record = self._records.get(key)
        if record is None:
            record = DependencyRecord(
                manager_name=manager_name,
                dependency_name=dependency.name,
                version=dependency.version,
                license_id=dependency.license,
                license_files=tuple(dependency.license_files),
            )
            self._records[key] = record
        record.dependent_units.add(dependent_unit)
        return record

    def nested(self) -> dict[str, dict[str, dict[str, DependencyRecord]]]:
        """manager -> dependency -> version -> record, each level in first-seen order."""
        tree: dict[str, dict[str, dict[str, DependencyRecord]]] = {}
        for key, record in self._records.items():
            tree.setdefault(key.manager_name, {}).setdefault(key.dependency_name, {})[
                key.version
            ] = record
        return tree

    def __getitem__(self, key: DependencyKey) -> DependencyRecord:
        return self._records[key]

    def __iter__(self) -> Iterator[DependencyKey]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)
