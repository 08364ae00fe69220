"""Licensing configuration switches."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict

_ENV_PREFIX = "NOTICE_BUILDER_"


class LicensingSettings(BaseModel):
    """Configuration consumed by the licensing engine.

    Every field can be overridden from the environment with the upper-cased
    field name prefixed by ``NOTICE_BUILDER_``, e.g.
    ``NOTICE_BUILDER_FATAL_LICENSING_WARNINGS=true``.
    """

    model_config = ConfigDict(frozen=True)

    fatal_licensing_warnings: bool = False
    fatal_transitive_dependency_licensing_warnings: bool = False
    use_object_store_cache: bool = False
    object_store_authenticated_download: bool = False
    download_timeout: float = 60.0

    @property
    def object_store_enabled(self) -> bool:
        return self.use_object_store_cache and self.object_store_authenticated_download

    @classmethod
    def from_env(cls) -> LicensingSettings:
        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls.model_validate(values)
