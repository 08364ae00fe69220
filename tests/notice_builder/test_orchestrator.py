"""End-to-end tests for the licensing lifecycle."""

from __future__ import annotations

import pytest
import structlog

from notice_builder.core.config import LicensingSettings
from notice_builder.exceptions import (
    FatalLicensingError,
    LifecycleError,
    ManifestIntegrityError,
    ScannerError,
    UnsupportedProjectTypeError,
)
from notice_builder.licensing.collector import FileCollector
from notice_builder.models import PROJECT_LICENSE, WarningChannel
from notice_builder.orchestrator import LifecycleOrchestrator, LifecycleState


@pytest.fixture
def make_orchestrator(fetcher, logger, scanner_cls):
    def _make(project, units, *, scanner=None, **flags) -> LifecycleOrchestrator:
        settings = LicensingSettings(**flags)
        collector = FileCollector(settings, fetcher=fetcher, logger=logger, platform="linux")
        return LifecycleOrchestrator(
            project,
            units,
            scanner=scanner or scanner_cls(),
            settings=settings,
            collector=collector,
            logger=logger,
        )

    return _make


def _build(orchestrator: LifecycleOrchestrator):
    orchestrator.prepare()
    orchestrator.validate()
    for unit in orchestrator.units:
        orchestrator.execute_pre_build(unit)
        orchestrator.execute_post_build(unit)
    return orchestrator.finalize()


def _transitive(orchestrator):
    return orchestrator.ledger.warnings(WarningChannel.TRANSITIVE)


def _licensing(orchestrator):
    return orchestrator.ledger.warnings(WarningChannel.LICENSING)


# ── prepare ──────────────────────────────────────────────────────────────


class TestPrepare:
    def test_creates_directories_with_placeholder(self, make_project, make_orchestrator):
        orchestrator = make_orchestrator(make_project(), [])
        orchestrator.prepare()
        for directory in (orchestrator.output_dir, orchestrator.cache_dir):
            assert directory.is_dir()
            assert (directory / ".gitkeep").exists()
        assert orchestrator.state is LifecycleState.PREPARED

    def test_clears_previous_output(self, make_project, make_orchestrator, install_dir):
        stale = install_dir / "LICENSES" / "old-LICENSE"
        stale.parent.mkdir()
        stale.write_text("old")
        make_orchestrator(make_project(), []).prepare()
        assert not stale.exists()


# ── per-unit collection ─────────────────────────────────────────────────


class TestUnitCollection:
    def test_standard_license_end_to_end(
        self, make_project, make_unit, make_orchestrator, fetcher, install_dir
    ):
        unit = make_unit("zlib", version="1.2.8", license="Zlib")
        orchestrator = make_orchestrator(make_project(), [unit])

        notice = _build(orchestrator)

        license_copy = orchestrator.output_dir / "zlib-Zlib"
        assert license_copy.exists()
        assert fetcher.calls == [("https://opensource.org/licenses/Zlib", license_copy)]
        assert notice == install_dir / "LICENSE"
        text = notice.read_text()
        assert "This product bundles zlib 1.2.8," in text
        assert f"{license_copy}\n" in text
        assert orchestrator.ledger.all_warnings == []
        assert orchestrator.state is LifecycleState.DONE

    def test_local_license_file_is_copied(self, make_project, make_unit, make_orchestrator):
        unit = make_unit("curl", license_files=("COPYING",))
        (unit.source_dir / "COPYING").write_text("curl license")
        orchestrator = make_orchestrator(make_project(), [unit])

        _build(orchestrator)

        assert (orchestrator.output_dir / "curl-COPYING").read_text() == "curl license"

    def test_project_license_units_are_skipped(
        self, make_project, make_unit, make_orchestrator, fetcher
    ):
        unit = make_unit("build-helpers", license=PROJECT_LICENSE)
        orchestrator = make_orchestrator(make_project(), [unit])
        notice = _build(orchestrator)
        assert fetcher.calls == []
        assert "build-helpers" not in notice.read_text()

    def test_missing_file_is_a_warning(self, make_project, make_unit, make_orchestrator):
        unit = make_unit("curl", license_files=("COPYING",))
        orchestrator = make_orchestrator(make_project(), [unit])

        _build(orchestrator)

        missing = (unit.source_dir / "COPYING").resolve()
        assert _licensing(orchestrator) == [
            f"License file '{missing}' does not exist for software 'curl'."
        ]

    def test_missing_file_fails_fast_when_fatal(
        self, make_project, make_unit, make_orchestrator, install_dir
    ):
        unit = make_unit("curl", license_files=("COPYING",))
        orchestrator = make_orchestrator(make_project(), [unit], fatal_licensing_warnings=True)
        orchestrator.prepare()
        orchestrator.validate()
        orchestrator.execute_pre_build(unit)

        with pytest.raises(FatalLicensingError, match="does not exist for software 'curl'"):
            orchestrator.execute_post_build(unit)

        assert orchestrator.state is LifecycleState.FAILED
        assert not (install_dir / "LICENSE").exists()

    def test_download_failure_is_a_warning(
        self, make_project, make_unit, make_orchestrator, fetcher
    ):
        url = "https://example.com/vendor/EULA.txt"
        fetcher.failures[url] = ConnectionRefusedError()
        unit = make_unit("vendor", license="Vendor EULA", license_files=(url,))
        orchestrator = make_orchestrator(make_project(), [unit])

        _build(orchestrator)

        assert _licensing(orchestrator) == [
            f"Can not download license file '{url}' for software 'vendor'."
        ]


# ── project licensing ────────────────────────────────────────────────────


class TestProjectLicense:
    def test_unspecified_license_is_only_a_warning(self, make_project, make_orchestrator):
        orchestrator = make_orchestrator(make_project(license="Unspecified"), [])
        notice = _build(orchestrator)
        assert notice.exists()
        assert len(_licensing(orchestrator)) == 1

    def test_unspecified_license_fails_when_fatal(self, make_project, make_orchestrator):
        orchestrator = make_orchestrator(
            make_project(license="Unspecified"), [], fatal_licensing_warnings=True
        )
        with pytest.raises(FatalLicensingError):
            _build(orchestrator)
        assert orchestrator.state is LifecycleState.FAILED


# ── transitive dependencies ──────────────────────────────────────────────


class TestTransitiveCollection:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (
                UnsupportedProjectTypeError("no lockfile"),
                "Software 'agent' is not supported project type",
            ),
            (
                ScannerError("bad gemspec"),
                "Can not automatically detect licensing information for 'agent'. "
                "Error is: 'bad gemspec'",
            ),
            (
                RuntimeError("segfault"),
                "Unexpected error while collecting transitive licenses for 'agent': 'segfault'",
            ),
        ],
    )
    def test_scanner_failures(
        self, make_project, make_unit, make_orchestrator, scanner_cls, error, expected
    ):
        scanner = scanner_cls(errors={"agent": error})
        orchestrator = make_orchestrator(make_project(), [make_unit("agent")], scanner=scanner)

        _build(orchestrator)

        warnings = _transitive(orchestrator)
        assert len(warnings) == 1
        assert warnings[0].startswith(expected)

    def test_scanner_issues_are_recorded(
        self, make_project, make_unit, make_orchestrator, scanner_cls
    ):
        scanner = scanner_cls(issues={"agent": ["License missing for dependency 'foo'"]})
        orchestrator = make_orchestrator(make_project(), [make_unit("agent")], scanner=scanner)
        _build(orchestrator)
        assert _transitive(orchestrator) == ["License missing for dependency 'foo'"]

    def test_skip_transitive(self, make_project, make_unit, make_orchestrator, scanner_cls):
        scanner = scanner_cls()
        unit = make_unit("agent", skip_transitive_dependency_licensing=True)
        _build(make_orchestrator(make_project(), [unit], scanner=scanner))
        assert scanner.calls == []

    def test_shared_dependency_across_units(
        self, make_project, make_unit, make_orchestrator, scanner_cls
    ):
        files = {"ruby_bundler-inifile-3.0.0-README.md": "inifile license"}
        managers = {
            "ruby_bundler": [
                {
                    "name": "inifile",
                    "version": "3.0.0",
                    "license": "MIT",
                    "license_files": list(files),
                }
            ]
        }
        scanner = scanner_cls(manifests={"chef": (managers, files), "ohai": (managers, files)})
        units = [make_unit("chef"), make_unit("ohai")]
        orchestrator = make_orchestrator(make_project(), units, scanner=scanner)

        notice = _build(orchestrator)

        assert len(orchestrator.dependencies) == 1
        assert "which is a 'ruby_bundler' dependency of 'chef', 'ohai'," in notice.read_text()
        copied = orchestrator.output_dir / "ruby_bundler-inifile-3.0.0-README.md"
        assert copied.read_text() == "inifile license"
        assert not orchestrator.cache_dir.exists()

    def test_broken_manifest_fails_before_report(
        self, make_project, make_unit, make_orchestrator, scanner_cls, install_dir
    ):
        managers = {
            "go_modules": [
                {"name": "errors", "version": "0.9", "license_files": ["missing-LICENSE"]}
            ]
        }
        scanner = scanner_cls(manifests={"agent": (managers, {})})
        orchestrator = make_orchestrator(make_project(), [make_unit("agent")], scanner=scanner)

        with pytest.raises(ManifestIntegrityError):
            _build(orchestrator)

        assert orchestrator.state is LifecycleState.FAILED
        assert not (install_dir / "LICENSE").exists()

    def test_transitive_gate_fails_at_finalize(
        self, make_project, make_unit, make_orchestrator, scanner_cls
    ):
        scanner = scanner_cls(errors={"agent": ScannerError("bad gemspec")})
        orchestrator = make_orchestrator(
            make_project(),
            [make_unit("agent")],
            scanner=scanner,
            fatal_transitive_dependency_licensing_warnings=True,
        )
        orchestrator.prepare()
        orchestrator.validate()
        orchestrator.execute_post_build(orchestrator.units[0])

        with pytest.raises(FatalLicensingError, match="bad gemspec"):
            orchestrator.finalize()


# ── third-party licenses ─────────────────────────────────────────────────


class TestThirdParty:
    def test_fetches_each_license_once(
        self, make_project, make_orchestrator, project_root, fetcher
    ):
        (project_root / "third_party.csv").write_text(
            "Origin,License\n"
            "github.com/a/a,MIT\n"
            "github.com/b/b,Apache-2.0\n"
            "github.com/c/c,MIT\n"
            "github.com/d/d,Acme-Internal\n"
        )
        orchestrator = make_orchestrator(make_project(third_party_manifest="third_party.csv"), [])

        notice = _build(orchestrator)

        assert [url for url, _ in fetcher.calls] == [
            "https://opensource.org/licenses/MIT",
            "https://opensource.org/licenses/Apache-2.0",
        ]
        assert (orchestrator.output_dir / "THIRD-PARTY-MIT").exists()
        assert _licensing(orchestrator) == [
            "Unknown standard license for third-party license 'Acme-Internal'."
        ]
        assert "third-party transitive dependency github.com/d/d" in notice.read_text()

    def test_download_failure(self, make_project, make_orchestrator, project_root, fetcher):
        url = "https://opensource.org/licenses/MIT"
        fetcher.failures[url] = TimeoutError()
        (project_root / "third_party.csv").write_text("Origin,License\nfoo,MIT\n")
        orchestrator = make_orchestrator(
            make_project(third_party_manifest="third_party.csv"), [], fatal_licensing_warnings=True
        )

        with pytest.raises(FatalLicensingError, match="for third-party license 'MIT'"):
            _build(orchestrator)


# ── lifecycle ordering ───────────────────────────────────────────────────


class TestLifecycle:
    def test_validate_requires_prepare(self, make_project, make_orchestrator):
        with pytest.raises(LifecycleError):
            make_orchestrator(make_project(), []).validate()

    def test_post_build_requires_validate(self, make_project, make_unit, make_orchestrator):
        unit = make_unit("zlib")
        orchestrator = make_orchestrator(make_project(), [unit])
        orchestrator.prepare()
        with pytest.raises(LifecycleError):
            orchestrator.execute_post_build(unit)

    def test_finalize_only_once(self, make_project, make_orchestrator):
        orchestrator = make_orchestrator(make_project(), [])
        _build(orchestrator)
        with pytest.raises(LifecycleError):
            orchestrator.finalize()

    def test_create_incrementally(self, make_project, make_unit, fetcher, logger, scanner_cls):
        unit = make_unit("zlib", license="Zlib")
        settings = LicensingSettings()
        collector = FileCollector(settings, fetcher=fetcher, logger=logger, platform="linux")

        with LifecycleOrchestrator.create_incrementally(
            make_project(), [unit], scanner=scanner_cls(), collector=collector, logger=logger
        ) as orchestrator:
            assert orchestrator.state is LifecycleState.VALIDATED
            orchestrator.execute_pre_build(unit)
            orchestrator.execute_post_build(unit)

        assert orchestrator.state is LifecycleState.DONE
        assert orchestrator.project.license_file_path.exists()

    def test_unregistered_unit_is_rejected(self, make_project, make_unit, make_orchestrator):
        orchestrator = make_orchestrator(
            make_project(), [make_unit("zlib")], fatal_licensing_warnings=True
        )
        orchestrator.prepare()
        orchestrator.validate()
        stray = make_unit("curl", license_files=("COPYING",))

        with pytest.raises(LifecycleError, match="'curl' is not one of the units registered"):
            orchestrator.execute_post_build(stray)

        assert orchestrator.state is LifecycleState.FAILED

    def test_unregistered_project_license_unit_is_accepted(
        self, make_project, make_unit, make_orchestrator
    ):
        orchestrator = make_orchestrator(make_project(), [])
        orchestrator.prepare()
        orchestrator.validate()
        orchestrator.execute_post_build(make_unit("build-helpers", license=PROJECT_LICENSE))
        assert orchestrator.state is LifecycleState.BUILDING

    def test_failed_build_block_closes_owned_collector(self, make_project, scanner_cls):
        with pytest.raises(RuntimeError, match="compiler crashed"):
            with LifecycleOrchestrator.create_incrementally(
                make_project(), [], scanner=scanner_cls()
            ) as orchestrator:
                raise RuntimeError("compiler crashed")

        assert orchestrator.collector.fetcher._client.is_closed
        assert orchestrator.state is LifecycleState.VALIDATED
        assert not orchestrator.project.license_file_path.exists()

    def test_injected_collector_is_left_open(self, make_project, make_orchestrator):
        closed = []
        orchestrator = make_orchestrator(make_project(), [])
        orchestrator.collector.close = lambda: closed.append(True)
        _build(orchestrator)
        assert closed == []


# ── log context ──────────────────────────────────────────────────────────


class TestLogContext:
    def test_post_build_binds_project_and_unit(
        self, make_project, make_unit, make_orchestrator, scanner_cls
    ):
        scanner = scanner_cls()
        orchestrator = make_orchestrator(make_project(), [make_unit("zlib")], scanner=scanner)
        _build(orchestrator)
        assert scanner.contexts == [{"project": "acme", "unit": "zlib", "phase": "post_build"}]

    def test_context_is_unbound_after_the_hook(self, make_project, make_unit, make_orchestrator):
        _build(make_orchestrator(make_project(), [make_unit("zlib")]))
        assert structlog.contextvars.get_contextvars() == {}
