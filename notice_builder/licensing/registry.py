"""Standard license registry — canonical license ids and reference URLs."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

_OSI = "https://opensource.org/licenses"

# Compiled from https://opensource.org/licenses/alphabetical
_OSI_LICENSE_IDS = (
    "AFL-3.0",  # Academic Free License 3.0
    "APL-1.0",  # Adaptive Public License
    "Apache-2.0",  # Apache License 2.0
    "APSL-2.0",  # Apple Public Source License
    "Artistic-2.0",  # Artistic license 2.0
    "AAL",  # Attribution Assurance Licenses
    "BSD-3-Clause",  # BSD 3-Clause "New" or "Revised" License
    "BSD-2-Clause",  # BSD 2-Clause "Simplified" or "FreeBSD" License
    "BSD-1-Clause",
    "BSL-1.0",  # Boost Software License
    "CECILL-2.1",
    "CATOSL-1.1",
    "CDDL-1.0",  # Common Development and Distribution License 1.0
    "CPAL-1.0",
    "CUA-OPL-1.0",
    "EUDatagrid",
    "EPL-1.0",  # Eclipse Public License 1.0
    "eCos-2.0",
    "ECL-2.0",
    "EFL-2.0",
    "Entessa",
    "EUPL-1.1",
    "Fair",
    "Frameworx-1.0",
    "FPL-1.0.0",
    "AGPL-3.0",  # GNU Affero General Public License v3
    "GPL-2.0",
    "GPL-3.0",
    "LGPL-2.0",
    "LGPL-2.1",
    "LGPL-3.0",
    "HPND",
    "IPL-1.0",
    "IPA",
    "ISC",
    "LPPL-1.3c",
    "LiLiQ-P",
    "LiLiQ-R",
    "LiLiQ-R+",
    "LPL-1.02",
    "MirOS",
    "MS-PL",
    "MS-RL",
    "MIT",
    "Motosoto",
    "MPL-2.0",  # Mozilla Public License 2.0
    "Multics",
    "NASA-1.3",
    "NTP",
    "Naumen",
    "NGPL",
    "Nokia",
    "NPOSL-3.0",
    "OCLC-2.0",
    "OGTSL",
    "OSL-3.0",
    "OPL-2.1",
    "PHP-3.0",
    "PostgreSQL",
    "Python-2.0",
    "CNRI-Python",
    "QPL-1.0",
    "RPSL-1.0",
    "RPL-1.5",
    "RSCPL",
    "OFL-1.1",  # SIL Open Font License 1.1
    "SimPL-2.0",
    "Sleepycat",
    "SPL-1.0",
    "Watcom-1.0",
    "NCSA",
    "UPL",
    "VSL-1.0",
    "W3C",
    "WXwindows",
    "Xnet",
    "0BSD",
    "ZPL-2.0",
    "Zlib",  # zlib/libpng license
)

# Licenses outside the OSI list that show up often in bundled components.
_EXTRA_LICENSES = {
    "Public-Domain": "https://en.wikipedia.org/wiki/Public_domain",
    "Ruby": "https://www.ruby-lang.org/en/about/license.txt",
    "Erlang-Public": "https://www.erlang.org/EPLICENSE",
    "Oracle-Binary": "https://www.oracle.com/downloads/licenses/binary-code-license.html",
    "OpenSSL": "https://www.openssl.org/source/license-openssl-ssleay.txt",
}

STANDARD_LICENSES: Mapping[str, str] = MappingProxyType(
    {**{lid: f"{_OSI}/{lid}" for lid in _OSI_LICENSE_IDS}, **_EXTRA_LICENSES}
)


class StandardLicenseRegistry:
    """Read-only lookup of standard license ids to their reference URL."""

    def __init__(self, licenses: Mapping[str, str] = STANDARD_LICENSES) -> None:
        self._licenses = MappingProxyType(dict(licenses))

    def is_standard(self, license_id: str | None) -> bool:
        return license_id is not None and license_id in self._licenses

    def url_for(self, license_id: str) -> str | None:
        return self._licenses.get(license_id)

    def __contains__(self, license_id: object) -> bool:
        return license_id in self._licenses

    def __iter__(self) -> Iterator[str]:
        return iter(self._licenses)

    def __len__(self) -> int:
        return len(self._licenses)


DEFAULT_REGISTRY = StandardLicenseRegistry()
