"""Ambient configuration and logging for notice-builder."""

from notice_builder.core.config import LicensingSettings
from notice_builder.core.logging import setup_logging

__all__ = ["LicensingSettings", "setup_logging"]
