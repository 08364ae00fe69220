"""notice-builder — aggregate and report licensing obligations of a package build."""

from notice_builder.core.config import LicensingSettings
from notice_builder.exceptions import (
    FatalLicensingError,
    LifecycleError,
    ManifestIntegrityError,
    NoticeBuilderError,
    ObjectKeyNotFoundError,
    ScannerError,
    ThirdPartyManifestError,
    UnsupportedProjectTypeError,
)
from notice_builder.models import (
    PROJECT_LICENSE,
    UNSPECIFIED_LICENSE,
    BuildUnit,
    LicenseEntry,
    Project,
    ThirdPartyEntry,
    WarningChannel,
)
from notice_builder.orchestrator import LifecycleOrchestrator, LifecycleState

__all__ = [
    "PROJECT_LICENSE",
    "UNSPECIFIED_LICENSE",
    "BuildUnit",
    "FatalLicensingError",
    "LicenseEntry",
    "LicensingSettings",
    "LifecycleError",
    "LifecycleOrchestrator",
    "LifecycleState",
    "ManifestIntegrityError",
    "NoticeBuilderError",
    "ObjectKeyNotFoundError",
    "Project",
    "ScannerError",
    "ThirdPartyEntry",
    "ThirdPartyManifestError",
    "UnsupportedProjectTypeError",
    "WarningChannel",
]
