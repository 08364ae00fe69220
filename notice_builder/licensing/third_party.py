"""ThirdPartyCatalog — origins and licenses declared in the project's CSV manifest."""

from __future__ import annotations

import csv
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from notice_builder.exceptions import ThirdPartyManifestError
from notice_builder.models import Project, ThirdPartyEntry

_ORIGIN_COLUMN = "Origin"
_LICENSE_COLUMN = "License"


class ThirdPartyCatalog:
    def __init__(self, project: Project) -> None:
        self.project = project
        self._rows: list[ThirdPartyEntry] | None = None
        self._entries: Mapping[str, ThirdPartyEntry] | None = None

    @property
    def manifest_path(self) -> Path | None:
        if not self.project.has_third_party_manifest:
            return None
        path = Path(self.project.third_party_manifest)  # type: ignore[arg-type]
        if not path.is_absolute():
            path = Path(self.project.project_root) / path
        return path

    def entries(self) -> Mapping[str, ThirdPartyEntry]:
        """Map of origin to entry; a repeated origin keeps its last row."""
        if self._entries is None:
            self._entries = MappingProxyType({row.origin_name: row for row in self._load()})
        return self._entries

    def license_ids(self) -> list[str]:
        """Distinct license ids in the order they first appear in the manifest."""
        return list(dict.fromkeys(row.license_id for row in self._load()))

    def _load(self) -> list[ThirdPartyEntry]:
        if self._rows is None:
            path = self.manifest_path
            self._rows = [] if path is None else _parse_manifest(path)
        return self._rows


def _parse_manifest(path: Path) -> list[ThirdPartyEntry]:
    # utf-8-sig strips the byte order mark spreadsheet exports put in front of the header.
    with path.open(newline="", encoding="utf-8-sig") as fh:
        reader = csv.DictReader(fh)
        columns = reader.fieldnames or []
        missing = [c for c in (_ORIGIN_COLUMN, _LICENSE_COLUMN) if c not in columns]
        if missing:
            raise ThirdPartyManifestError(
                f"third-party manifest {path} is missing column(s): {', '.join(missing)}"
            )
        rows: list[ThirdPartyEntry] = []
        for row in reader:
            origin = (row[_ORIGIN_COLUMN] or "").strip()
            license_id = (row[_LICENSE_COLUMN] or "").strip()
            if not origin or not license_id:
                raise ThirdPartyManifestError(
                    f"third-party manifest {path} line {reader.line_num} needs both an "
                    f"{_ORIGIN_COLUMN} and a {_LICENSE_COLUMN} value"
                )
            rows.append(ThirdPartyEntry(origin_name=origin, license_id=license_id))
        return rows
