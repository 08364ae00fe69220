"""Scanner collaborator interface and classification of its outcomes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from notice_builder.exceptions import ScannerError, UnsupportedProjectTypeError


@runtime_checkable
class DependencyLicenseScanner(Protocol):
    """Inspects a unit's source tree and writes a dependency license manifest.

    Implementations write ``<output_dir>/<name>-dependency-licenses.json``
    plus the license files it references, and return the list of issues
    found. They raise :class:`UnsupportedProjectTypeError` when the unit's
    dependency manager is unknown and :class:`ScannerError` on other
    detection failures.
    """

    def run(
        self,
        project_name: str,
        source_dir: Path,
        output_dir: Path,
        environment: Mapping[str, str],
    ) -> list[str]: ...


class ScanOutcome(str, Enum):
    UNSUPPORTED = "unsupported"
    SCANNER_ERROR = "scanner_error"
    UNEXPECTED = "unexpected"


def classify_scan_error(exc: Exception) -> ScanOutcome:
    if isinstance(exc, UnsupportedProjectTypeError):
        return ScanOutcome.UNSUPPORTED
    if isinstance(exc, ScannerError):
        return ScanOutcome.SCANNER_ERROR
    return ScanOutcome.UNEXPECTED


def scan_failure_message(outcome: ScanOutcome, unit_name: str, exc: Exception) -> str:
    if outcome is ScanOutcome.UNSUPPORTED:
        return (
            f"Software '{unit_name}' is not supported project type for transitive "
            "dependency license collection. If this project does not have any "
            "transitive dependencies, consider setting "
            "'skip_transitive_dependency_licensing' to 'true' in order to correct "
            "this error."
        )
    if outcome is ScanOutcome.SCANNER_ERROR:
        return (
            f"Can not automatically detect licensing information for '{unit_name}'. "
            f"Error is: '{exc}'"
        )
    return f"Unexpected error while collecting transitive licenses for '{unit_name}': '{exc}'"
