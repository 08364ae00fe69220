"""LicenseCatalog — per-unit license map built from declared metadata."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType

from notice_builder.licensing.ledger import WarningLedger
from notice_builder.licensing.registry import DEFAULT_REGISTRY, StandardLicenseRegistry
from notice_builder.models import (
    UNSPECIFIED_LICENSE,
    BuildUnit,
    LicenseEntry,
    Project,
    WarningChannel,
)

_OSI_LIST_URL = "https://opensource.org/licenses/alphabetical"


class LicenseCatalog:
    """Resolves the license of every bundled unit and validates declarations."""

    def __init__(
        self,
        project: Project,
        units: Sequence[BuildUnit],
        ledger: WarningLedger,
        registry: StandardLicenseRegistry = DEFAULT_REGISTRY,
    ) -> None:
        self.project = project
        self.units = tuple(units)
        self.ledger = ledger
        self.registry = registry
        self._entries: Mapping[str, LicenseEntry] | None = None

    def entries(self) -> Mapping[str, LicenseEntry]:
        """Map of unit name to :class:`LicenseEntry`, computed once per run.

        Units covered by the project license are left out. A unit with no
        license files and a standard license points at the registry URL.
        """
        if self._entries is None:
            self._entries = MappingProxyType(self._build_entries())
        return self._entries

    def entry_for(self, unit_name: str) -> LicenseEntry | None:
        return self.entries().get(unit_name)

    def _build_entries(self) -> dict[str, LicenseEntry]:
        entries: dict[str, LicenseEntry] = {}
        for unit in self.units:
            if unit.covered_by_project_license:
                continue

            license_files = tuple(unit.license_files)
            url = self.registry.url_for(unit.license)
            if not license_files and url is not None:
                license_files = (url,)

            entries[unit.name] = LicenseEntry(
                unit_name=unit.name,
                license_id=unit.license,
                license_files=license_files,
                version=unit.version,
                source_dir=unit.source_dir,
            )
        return entries

    def validate(self) -> None:
        """Record a licensing warning for every missing or non-standard declaration."""
        project = self.project
        declared = project.license != UNSPECIFIED_LICENSE
        standard = self.registry.is_standard(project.license)

        if not declared:
            self._warn(f"Project '{project.name}' does not contain licensing information.")
        elif not standard:
            if project.license_file is None:
                self._warn(
                    f"Project '{project.name}' does not point to a license file and its "
                    f"license is not standard ({project.license})."
                )
            self.ledger.info(
                f"Project '{project.name}' is using '{project.license}' which is not one of "
                f"the standard licenses identified in {_OSI_LIST_URL}. Consider using one "
                "of the standard licenses."
            )

        for name, entry in self.entries().items():
            if entry.license_id == UNSPECIFIED_LICENSE:
                self._warn(f"Software '{name}' does not contain licensing information.")
                continue
            if self.registry.is_standard(entry.license_id):
                continue
            if not entry.license_files:
                self._warn(
                    f"Software '{name}' does not point to any license files and its "
                    f"license is not standard ({entry.license_id})."
                )
            self.ledger.info(
                f"Software '{name}' uses license '{entry.license_id}' which is not one of "
                f"the standard licenses identified in {_OSI_LIST_URL}. Consider using one "
                "of the standard licenses."
            )

    def _warn(self, message: str) -> None:
        self.ledger.record(WarningChannel.LICENSING, message)
