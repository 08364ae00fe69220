"""Custom exceptions for notice-builder."""


class NoticeBuilderError(Exception):
    """Base exception for all notice-builder errors."""


class FatalLicensingError(NoticeBuilderError):
    """Raised when gated licensing warnings must abort the build."""

    def __init__(self, warnings: list[str]):
        self.warnings = list(warnings)
        details = "\n    ".join(self.warnings)
        super().__init__(
            "Encountered error(s) with project's licensing information.\n"
            "Failing the build because fatal licensing warnings are enabled "
            "in the configuration.\n"
            f"Error(s):\n    {details}"
        )


class ManifestIntegrityError(NoticeBuilderError):
    """Raised when a scanner manifest is corrupt or references a missing file."""


class ThirdPartyManifestError(NoticeBuilderError):
    """Raised when the third-party CSV manifest is malformed."""


class LifecycleError(NoticeBuilderError):
    """Raised when an orchestrator step is invoked out of order."""


class ScannerError(NoticeBuilderError):
    """Raised by scanner implementations when license detection fails."""


class UnsupportedProjectTypeError(ScannerError):
    """Raised when the scanner does not support the unit's dependency manager."""


class ObjectKeyNotFoundError(NoticeBuilderError):
    """Raised by object store implementations when a key does not exist."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"object key not found: {key}")
