"""Transitive dependency licensing — scanner interface and manifest merging."""

from notice_builder.transitive.aggregator import TransitiveAggregator
from notice_builder.transitive.models import (
    DependencyIndex,
    DependencyKey,
    DependencyLicenseManifest,
    DependencyRecord,
    ManifestDependency,
)
from notice_builder.transitive.scanner import DependencyLicenseScanner, ScanOutcome

__all__ = [
    "DependencyIndex",
    "DependencyKey",
    "DependencyLicenseManifest",
    "DependencyLicenseScanner",
    "DependencyRecord",
    "ManifestDependency",
    "ScanOutcome",
    "TransitiveAggregator",
]
