"""WarningLedger — two-channel warning accumulation with fatal escalation."""

from __future__ import annotations

from typing import Any

import structlog

from notice_builder.core.config import LicensingSettings
from notice_builder.exceptions import FatalLicensingError
from notice_builder.models import RecordedWarning, WarningChannel

log = structlog.get_logger("notice_builder.licensing")


class WarningLedger:
    """Collects non-fatal licensing findings for one build run.

    Messages are logged as soon as they are recorded and kept until the end
    of the run. :meth:`check_fatal` may be called any number of times; it
    never clears what was recorded.
    """

    def __init__(self, settings: LicensingSettings, logger: Any = None) -> None:
        self._settings = settings
        self._log = logger if logger is not None else log
        self._warnings: list[RecordedWarning] = []

    def record(self, channel: WarningChannel, message: str) -> None:
        self._warnings.append(RecordedWarning(message=message, channel=channel))
        self._log.warning("licensing.warning", channel=channel.value, message=message)

    def info(self, message: str) -> None:
        self._log.info("licensing.info", message=message)

    def warnings(self, channel: WarningChannel) -> list[str]:
        return [w.message for w in self._warnings if w.channel is channel]

    @property
    def all_warnings(self) -> list[RecordedWarning]:
        return list(self._warnings)

    def _gate_fires(self, channel: WarningChannel) -> bool:
        if channel is WarningChannel.LICENSING:
            enabled = self._settings.fatal_licensing_warnings
        else:
            enabled = self._settings.fatal_transitive_dependency_licensing_warnings
        return enabled and any(w.channel is channel for w in self._warnings)

    def check_fatal(self) -> None:
        """Raise :class:`FatalLicensingError` if any gated channel has warnings.

        Once a gate fires, the error carries the pending messages of both
        channels, licensing first.
        """
        if not any(self._gate_fires(channel) for channel in WarningChannel):
            return
        pending = self.warnings(WarningChannel.LICENSING) + self.warnings(
            WarningChannel.TRANSITIVE
        )
        raise FatalLicensingError(pending)
