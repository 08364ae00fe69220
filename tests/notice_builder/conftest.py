"""Shared fixtures for notice-builder tests.

Nothing here touches the network: remote downloads go through
:class:`FakeFetcher` and the dependency license scanner is replaced by
:class:`FakeScanner`, which writes canned manifests.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import structlog

from notice_builder.core.config import LicensingSettings
from notice_builder.exceptions import ObjectKeyNotFoundError
from notice_builder.licensing.collector import FileCollector
from notice_builder.licensing.ledger import WarningLedger
from notice_builder.models import BuildUnit, Project


class FakeFetcher:
    """Records downloads and writes a small license text to the destination."""

    def __init__(self, failures: dict[str, Exception] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[tuple[str, Path]] = []

    def download(self, url: str, destination: Path) -> None:
        self.calls.append((url, Path(destination)))
        if url in self.failures:
            raise self.failures[url]
        Path(destination).write_text(f"license text from {url}\n")


class FakeObjectStore:
    bucket = "licenses-cache"

    def __init__(self, missing: set[str] | None = None) -> None:
        self.missing = missing or set()
        self.calls: list[tuple[str, str]] = []

    def key_for(self, unit_name: str, reference: str) -> str:
        return f"{unit_name}/{reference.rsplit('/', 1)[-1]}"

    def fetch(self, unit_name: str, reference: str, destination: Path) -> None:
        self.calls.append((unit_name, reference))
        key = self.key_for(unit_name, reference)
        if key in self.missing:
            raise ObjectKeyNotFoundError(key)
        Path(destination).write_text(f"cached object {key}\n")


def write_manifest(
    directory: Path,
    project_name: str,
    managers: dict[str, list[dict]],
    files: dict[str, str] | None = None,
) -> Path:
    """Write a scanner manifest plus the license files it references."""
    directory.mkdir(parents=True, exist_ok=True)
    for name, content in (files or {}).items():
        target = directory / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    path = directory / f"{project_name}-dependency-licenses.json"
    path.write_text(
        json.dumps({"project_name": project_name, "dependency_managers": managers})
    )
    return path


class FakeScanner:
    """Stands in for the external license scanner, keyed by unit name."""

    def __init__(
        self,
        manifests: dict[str, tuple[dict[str, list[dict]], dict[str, str]]] | None = None,
        errors: dict[str, Exception] | None = None,
        issues: dict[str, list[str]] | None = None,
    ) -> None:
        self.manifests = manifests or {}
        self.errors = errors or {}
        self.issues = issues or {}
        self.calls: list[str] = []
        self.contexts: list[dict] = []

    def run(self, project_name, source_dir, output_dir, environment):
        self.calls.append(project_name)
        self.contexts.append(structlog.contextvars.get_contextvars())
        if project_name in self.errors:
            raise self.errors[project_name]
        if project_name in self.manifests:
            managers, files = self.manifests[project_name]
            write_manifest(Path(output_dir), project_name, managers, files)
        return list(self.issues.get(project_name, []))


# ── fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def logger():
    return MagicMock()


@pytest.fixture
def settings():
    return LicensingSettings()


@pytest.fixture
def ledger(settings, logger):
    return WarningLedger(settings, logger=logger)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def collector(settings, fetcher, logger):
    return FileCollector(settings, fetcher=fetcher, logger=logger, platform="linux")


@pytest.fixture
def install_dir(tmp_path):
    path = tmp_path / "opt" / "acme"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def project_root(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def make_project(install_dir, project_root):
    def _make(**overrides) -> Project:
        defaults = {
            "name": "acme",
            "version": "1.0",
            "license": "MIT",
            "install_dir": install_dir,
            "project_root": project_root,
        }
        defaults.update(overrides)
        return Project(**defaults)

    return _make


@pytest.fixture
def make_unit(tmp_path):
    def _make(name: str, **overrides) -> BuildUnit:
        source_dir = tmp_path / "src" / name
        source_dir.mkdir(parents=True, exist_ok=True)
        defaults = {
            "name": name,
            "version": "1.0.0",
            "license": "MIT",
            "source_dir": source_dir,
        }
        defaults.update(overrides)
        return BuildUnit(**defaults)

    return _make


@pytest.fixture
def fetcher_cls():
    return FakeFetcher


@pytest.fixture
def scanner_cls():
    return FakeScanner


@pytest.fixture
def object_store_cls():
    return FakeObjectStore


@pytest.fixture
def manifest_writer():
    return write_manifest
