"""Licensing lifecycle orchestrator — prepare, per-unit hooks, finalize."""

from __future__ import annotations

import shutil
from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from notice_builder.core.config import LicensingSettings
from notice_builder.exceptions import LifecycleError
from notice_builder.licensing.catalog import LicenseCatalog
from notice_builder.licensing.collector import (
    FetchErrorKind,
    FileCollector,
    resolve_local_reference,
)
from notice_builder.licensing.ledger import WarningLedger
from notice_builder.licensing.registry import DEFAULT_REGISTRY, StandardLicenseRegistry
from notice_builder.licensing.report import ReportComposer, license_package_location
from notice_builder.licensing.third_party import ThirdPartyCatalog
from notice_builder.models import BuildUnit, Project, WarningChannel
from notice_builder.transitive.aggregator import TransitiveAggregator
from notice_builder.transitive.models import DependencyIndex
from notice_builder.transitive.scanner import (
    DependencyLicenseScanner,
    classify_scan_error,
    scan_failure_message,
)

log = structlog.get_logger("notice_builder.orchestrator")

OUTPUT_DIRECTORY = "LICENSES"
CACHE_DIRECTORY = "license-cache"
# Keeps otherwise empty directories in build cache snapshots.
PLACEHOLDER_FILE = ".gitkeep"
THIRD_PARTY_COMPONENT = "THIRD-PARTY"


class LifecycleState(str, Enum):
    CREATED = "created"
    PREPARED = "prepared"
    VALIDATED = "validated"
    BUILDING = "building"
    DONE = "done"
    FAILED = "failed"


class LifecycleOrchestrator:
    """Drive licensing collection across one project build.

    created -> prepare() -> validate() -> execute_pre_build(unit) /
    execute_post_build(unit) for each unit -> finalize()

    The post-build hook runs synchronously and escalates fatal warnings
    before returning, so the build driver never snapshots a unit whose
    licenses could not be collected.
    """

    def __init__(
        self,
        project: Project,
        units: Sequence[BuildUnit],
        *,
        scanner: DependencyLicenseScanner,
        settings: LicensingSettings | None = None,
        collector: FileCollector | None = None,
        registry: StandardLicenseRegistry = DEFAULT_REGISTRY,
        logger: Any = None,
    ) -> None:
        self.project = project
        self.units = tuple(units)
        self.settings = settings or LicensingSettings()
        self.scanner = scanner
        self.registry = registry
        self._logger = logger
        self._log = logger if logger is not None else log
        self._owns_collector = collector is None
        self.collector = collector or FileCollector(self.settings, logger=logger)

        self.ledger = WarningLedger(self.settings, logger=logger)
        self.license_catalog = LicenseCatalog(project, self.units, self.ledger, registry)
        self.third_party = ThirdPartyCatalog(project)
        self.dependencies = DependencyIndex()
        self.state = LifecycleState.CREATED

    @classmethod
    @contextmanager
    def create_incrementally(
        cls,
        project: Project,
        units: Sequence[BuildUnit],
        **kwargs: Any,
    ) -> Iterator[LifecycleOrchestrator]:
        """Prepare and validate, hand the orchestrator to the build, then finalize.

        Example::

            with LifecycleOrchestrator.create_incrementally(project, units, scanner=s) as lic:
                for unit in units:
                    lic.execute_pre_build(unit)
                    build(unit)
                    lic.execute_post_build(unit)
        """
        orchestrator = cls(project, units, **kwargs)
        try:
            orchestrator.prepare()
            orchestrator.validate()
            yield orchestrator
            orchestrator.finalize()
        finally:
            orchestrator.close()

    # ── paths ─────────────────────────────────────────────────────────────

    @property
    def output_dir(self) -> Path:
        return (Path(self.project.install_dir) / OUTPUT_DIRECTORY).resolve()

    @property
    def cache_dir(self) -> Path:
        return (Path(self.project.install_dir) / CACHE_DIRECTORY).resolve()

    # ── lifecycle ─────────────────────────────────────────────────────────

    def prepare(self) -> None:
        """Reset the output and cache directories."""
        self._require(LifecycleState.CREATED)
        with self._failing_on_error():
            for directory in (self.output_dir, self.cache_dir):
                if directory.exists():
                    shutil.rmtree(directory)
                directory.mkdir(parents=True)
                (directory / PLACEHOLDER_FILE).touch()
        self.state = LifecycleState.PREPARED
        self._log.info("orchestrator.prepared", output_dir=str(self.output_dir))

    def validate(self) -> None:
        self._require(LifecycleState.PREPARED)
        with self._bound(phase="validate"), self._failing_on_error():
            self.license_catalog.validate()
        self.state = LifecycleState.VALIDATED

    def execute_pre_build(self, unit: BuildUnit) -> None:
        self._require(LifecycleState.VALIDATED, LifecycleState.BUILDING)
        self.state = LifecycleState.BUILDING

    def execute_post_build(self, unit: BuildUnit) -> None:
        """Collect the unit's license files and transitive dependency licenses.

        Raises :class:`FatalLicensingError` as soon as a failed collection
        trips a fatal gate.
        """
        self._require(LifecycleState.VALIDATED, LifecycleState.BUILDING)
        self.state = LifecycleState.BUILDING
        with self._bound(unit=unit.name, phase="post_build"), self._failing_on_error():
            self._collect_licenses_for(unit)
            if not unit.skip_transitive_dependency_licensing:
                self._collect_transitive_licenses_for(unit)

    def finalize(self) -> Path:
        """Merge transitive data, write the notice, fetch third-party licenses.

        Returns the path of the written notice file.
        """
        self._require(LifecycleState.VALIDATED, LifecycleState.BUILDING)
        try:
            with self._bound(phase="finalize"), self._failing_on_error():
                aggregator = TransitiveAggregator(self.cache_dir, self.output_dir, self._logger)
                self.dependencies = aggregator.merge()
                report = ReportComposer(
                    self.project,
                    self.output_dir,
                    self.license_catalog,
                    self.dependencies,
                    self.third_party,
                )
                notice_path = report.write()
                self._collect_third_party_licenses()
                self.ledger.check_fatal()
        finally:
            self.close()
        self.state = LifecycleState.DONE
        self._log.info(
            "orchestrator.finalized",
            notice=str(notice_path),
            components=len(self.license_catalog.entries()),
            dependencies=len(self.dependencies),
            warnings=len(self.ledger.all_warnings),
        )
        return notice_path

    # ── per-unit steps ────────────────────────────────────────────────────

    def _collect_licenses_for(self, unit: BuildUnit) -> None:
        if unit.covered_by_project_license:
            return
        entry = self.license_catalog.entry_for(unit.name)
        if entry is None:
            raise LifecycleError(
                f"software '{unit.name}' is not one of the units registered for licensing"
            )

        for license_file in entry.license_files:
            if not license_file:
                continue
            destination = license_package_location(self.output_dir, unit.name, license_file)
            result = self.collector.collect(
                license_file,
                destination,
                unit_name=unit.name,
                base_dir=entry.source_dir,
            )
            if result.ok:
                continue
            if result.kind is FetchErrorKind.NOT_FOUND:
                missing = resolve_local_reference(license_file, entry.source_dir)
                message = f"License file '{missing}' does not exist for software '{unit.name}'."
            else:
                message = (
                    f"Can not download license file '{license_file}' for software '{unit.name}'."
                )
            self.ledger.record(WarningChannel.LICENSING, message)
            # Fail before the build driver can snapshot this unit.
            self.ledger.check_fatal()

    def _collect_transitive_licenses_for(self, unit: BuildUnit) -> None:
        output_dir = self.cache_dir / unit.name
        output_dir.mkdir(parents=True, exist_ok=True)
        try:
            issues = self.scanner.run(unit.name, unit.source_dir, output_dir, unit.environment)
        except Exception as exc:
            outcome = classify_scan_error(exc)
            self._log.debug("orchestrator.scan_failed", unit=unit.name, outcome=outcome.value)
            self.ledger.record(
                WarningChannel.TRANSITIVE, scan_failure_message(outcome, unit.name, exc)
            )
            return
        for issue in issues:
            self.ledger.record(WarningChannel.TRANSITIVE, issue)

    # ── finalization steps ────────────────────────────────────────────────

    def _collect_third_party_licenses(self) -> None:
        for license_id in self.third_party.license_ids():
            url = self.registry.url_for(license_id)
            if url is None:
                self.ledger.record(
                    WarningChannel.LICENSING,
                    f"Unknown standard license for third-party license '{license_id}'.",
                )
                continue
            destination = license_package_location(
                self.output_dir, THIRD_PARTY_COMPONENT, license_id
            )
            result = self.collector.collect(url, destination, allow_object_store=False)
            if not result.ok:
                self.ledger.record(
                    WarningChannel.LICENSING,
                    f"Can not download license file '{url}' for third-party license "
                    f"'{license_id}'.",
                )
                self.ledger.check_fatal()

    # ── internal ──────────────────────────────────────────────────────────

    def close(self) -> None:
        """Release the collector if this orchestrator created it."""
        if self._owns_collector:
            self.collector.close()

    def _bound(self, **context: str) -> AbstractContextManager[Any]:
        return structlog.contextvars.bound_contextvars(project=self.project.name, **context)

    def _require(self, *states: LifecycleState) -> None:
        if self.state not in states:
            expected = " or ".join(s.value for s in states)
            raise LifecycleError(
                f"licensing step requires state {expected}, current state is {self.state.value}"
            )

    @contextmanager
    def _failing_on_error(self) -> Iterator[None]:
        try:
            yield
        except Exception:
            self.state = LifecycleState.FAILED
            self._log.error("orchestrator.failed", project=self.project.name)
            raise
