"""FileCollector — copy local license files or fetch remote ones."""

from __future__ import annotations

import errno
import os
import shutil
import socket
import ssl
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlparse

import httpx
import structlog

from notice_builder.core.config import LicensingSettings
from notice_builder.exceptions import ObjectKeyNotFoundError

log = structlog.get_logger("notice_builder.collector")

_LICENSE_FILE_MODE = 0o644
_UNREACHABLE_ERRNOS = frozenset({errno.ENETUNREACH, errno.EHOSTUNREACH})


# ── capabilities ─────────────────────────────────────────────────────────


@runtime_checkable
class Fetcher(Protocol):
    """Downloads a URL to a local file, raising on any failure."""

    def download(self, url: str, destination: Path) -> None: ...


@runtime_checkable
class ObjectStore(Protocol):
    """Authenticated object store holding cached license files."""

    bucket: str

    def key_for(self, unit_name: str, reference: str) -> str: ...

    def fetch(self, unit_name: str, reference: str, destination: Path) -> None:
        """Write the object for (unit_name, reference) to *destination*.

        Raises :class:`ObjectKeyNotFoundError` when the key does not exist.
        """
        ...


class HttpFetcher:
    """Plain HTTP(S) fetcher on top of ``httpx.Client``."""

    def __init__(self, timeout: float = 60.0, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def download(self, url: str, destination: Path) -> None:
        """Stream *url* into *destination*, which only appears once complete."""
        destination = Path(destination)
        partial = destination.with_name(f"{destination.name}.part")
        try:
            with self._client.stream("GET", url) as response:
                response.raise_for_status()
                with open(partial, "wb") as fh:
                    for chunk in response.iter_bytes():
                        fh.write(chunk)
            os.replace(partial, destination)
        finally:
            partial.unlink(missing_ok=True)

    # ── lifecycle ──────────────────────────────────────────────────────────

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ── results ──────────────────────────────────────────────────────────────


class FetchErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NETWORK = "network"
    OBJECT_KEY_MISSING = "object_key_missing"


@dataclass(frozen=True)
class CollectResult:
    ok: bool
    kind: FetchErrorKind | None = None
    reason: str = ""

    @classmethod
    def success(cls) -> CollectResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, kind: FetchErrorKind, reason: str) -> CollectResult:
        return cls(ok=False, kind=kind, reason=reason)


def classify_fetch_error(exc: BaseException) -> FetchErrorKind | None:
    """Map a low-level fetch exception to a :class:`FetchErrorKind`.

    Returns None for anything that is not a known transient or lookup
    failure; those are left to propagate.
    """
    if isinstance(exc, ObjectKeyNotFoundError):
        return FetchErrorKind.OBJECT_KEY_MISSING
    if isinstance(
        exc,
        (
            httpx.TransportError,
            httpx.HTTPStatusError,
            ssl.SSLError,
            socket.gaierror,
            ConnectionError,
            TimeoutError,
        ),
    ):
        return FetchErrorKind.NETWORK
    if isinstance(exc, OSError) and exc.errno in _UNREACHABLE_ERRNOS:
        return FetchErrorKind.NETWORK
    return None


def is_local(reference: str) -> bool:
    """True when *reference* is a filesystem path rather than a URL."""
    return not urlparse(reference).scheme


def resolve_local_reference(reference: str, base_dir: Path | None = None) -> Path:
    return (Path(base_dir or ".") / reference).expanduser().resolve()


def reference_basename(reference: str) -> str:
    if is_local(reference):
        return Path(reference).name
    return PurePosixPath(urlparse(reference).path).name


# ── collector ────────────────────────────────────────────────────────────


class FileCollector:
    """Puts one license reference at a destination path.

    Remote references go through the generic *fetcher*, or through the
    *object_store* when both object store switches are enabled. Failures are
    classified and returned, never retried.
    """

    def __init__(
        self,
        settings: LicensingSettings,
        fetcher: Fetcher | None = None,
        object_store: ObjectStore | None = None,
        logger: Any = None,
        platform: str = sys.platform,
    ) -> None:
        if settings.object_store_enabled and object_store is None:
            raise ValueError("object store download is enabled but no object store was given")
        self.settings = settings
        self.fetcher = fetcher or HttpFetcher(timeout=settings.download_timeout)
        self.object_store = object_store
        self._log = logger if logger is not None else log
        self._windows = platform.startswith("win")

    def collect(
        self,
        reference: str,
        destination: Path,
        *,
        unit_name: str | None = None,
        base_dir: Path | None = None,
        allow_object_store: bool = True,
    ) -> CollectResult:
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)

        if is_local(reference):
            source = resolve_local_reference(reference, base_dir)
            if not source.is_file():
                return CollectResult.failure(
                    FetchErrorKind.NOT_FOUND, f"license file '{source}' does not exist"
                )
            shutil.copyfile(source, destination)
        else:
            try:
                if allow_object_store and self.settings.object_store_enabled:
                    self._fetch_object(unit_name or "", reference, destination)
                else:
                    self._log.info("collector.fetch_url", url=reference)
                    self.fetcher.download(reference, destination)
            except Exception as exc:
                # A failed fetch must not leave a truncated file in the package.
                destination.unlink(missing_ok=True)
                kind = classify_fetch_error(exc)
                if kind is None:
                    raise
                if kind is FetchErrorKind.OBJECT_KEY_MISSING:
                    self._log.error(
                        "collector.object_key_missing",
                        unit=unit_name,
                        reference=reference,
                        error=type(exc).__name__,
                    )
                return CollectResult.failure(kind, f"{type(exc).__name__}: {exc}")

        if not self._windows:
            destination.chmod(_LICENSE_FILE_MODE)
        return CollectResult.success()

    def close(self) -> None:
        close = getattr(self.fetcher, "close", None)
        if close is not None:
            close()

    def _fetch_object(self, unit_name: str, reference: str, destination: Path) -> None:
        store = self.object_store
        if store is None:
            raise ValueError("object store download requested but no object store was given")
        self._log.info(
            "collector.fetch_object",
            key=store.key_for(unit_name, reference),
            bucket=store.bucket,
        )
        store.fetch(unit_name, reference, destination)
