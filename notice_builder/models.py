"""Domain models shared by the licensing and transitive engines."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

UNSPECIFIED_LICENSE = "Unspecified"
# License value for units that only carry build logic and ship under the
# project's own license.
PROJECT_LICENSE = "project-license"


@dataclass(frozen=True)
class Project:
    """The package being built."""

    name: str
    version: str
    install_dir: Path
    license: str = UNSPECIFIED_LICENSE
    license_file: str | None = None
    third_party_manifest: str | None = None
    project_root: Path = field(default_factory=Path.cwd)
    notice_path: Path | None = None

    @property
    def license_file_path(self) -> Path:
        """Where the merged notice file is written."""
        if self.notice_path is not None:
            return Path(self.notice_path)
        return Path(self.install_dir) / "LICENSE"

    @property
    def has_third_party_manifest(self) -> bool:
        return bool(self.third_party_manifest) and self.third_party_manifest != UNSPECIFIED_LICENSE


@dataclass(frozen=True)
class BuildUnit:
    """One bundled software component."""

    name: str
    version: str
    source_dir: Path
    license: str = UNSPECIFIED_LICENSE
    license_files: tuple[str, ...] = ()
    skip_transitive_dependency_licensing: bool = False
    environment: Mapping[str, str] = field(default_factory=dict)

    @property
    def covered_by_project_license(self) -> bool:
        return self.license == PROJECT_LICENSE


@dataclass(frozen=True)
class LicenseEntry:
    """Resolved license information of a build unit."""

    unit_name: str
    license_id: str
    license_files: tuple[str, ...]
    version: str
    source_dir: Path


@dataclass(frozen=True)
class ThirdPartyEntry:
    origin_name: str
    license_id: str


class WarningChannel(str, Enum):
    LICENSING = "licensing"
    TRANSITIVE = "transitive"


@dataclass(frozen=True)
class RecordedWarning:
    message: str
    channel: WarningChannel
