"""Direct licensing — registry, catalogs, file collection, warnings and report."""

from notice_builder.licensing.catalog import LicenseCatalog
from notice_builder.licensing.collector import (
    CollectResult,
    FetchErrorKind,
    Fetcher,
    FileCollector,
    HttpFetcher,
    ObjectStore,
)
from notice_builder.licensing.ledger import WarningLedger
from notice_builder.licensing.registry import (
    DEFAULT_REGISTRY,
    STANDARD_LICENSES,
    StandardLicenseRegistry,
)
from notice_builder.licensing.report import ReportComposer, license_package_location
from notice_builder.licensing.third_party import ThirdPartyCatalog

__all__ = [
    "DEFAULT_REGISTRY",
    "STANDARD_LICENSES",
    "CollectResult",
    "FetchErrorKind",
    "Fetcher",
    "FileCollector",
    "HttpFetcher",
    "LicenseCatalog",
    "ObjectStore",
    "ReportComposer",
    "StandardLicenseRegistry",
    "ThirdPartyCatalog",
    "WarningLedger",
    "license_package_location",
]
