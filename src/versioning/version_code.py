"""Version code derivation for the Android package manifest."""

from __future__ import annotations

import re
from dataclasses import dataclass

from common.errors import InvalidSemver

_SEMVER_SEPARATORS = re.compile(r"[.\-+]")
_BYTE_MAX = 0xFF


@dataclass(frozen=True)
class VersionCode:
    """``major.minor.patch`` packed into ``android:versionCode``.

    Each component must fit in one byte; the top byte of the packed value is a
    variant discriminant chosen by the caller (one per APK flavor).
    """

    major: int
    minor: int
    patch: int

    def __post_init__(self):
        for field_name in ("major", "minor", "patch"):
            value = getattr(self, field_name)
            if not 0 <= value <= _BYTE_MAX:
                raise ValueError(f"{field_name}={value} does not fit in a byte")

    @classmethod
    def from_semver(cls, version: str) -> "VersionCode":
        """Parse the first three numeric components of a semver string.

        Pre-release and build suffixes are ignored: ``254.254.254-alpha.fix+2``
        gives ``(254, 254, 254)``.

        Raises:
            InvalidSemver: If fewer than three components are present or any of
                them is not a byte-sized decimal integer.
        """
        parts = _SEMVER_SEPARATORS.split(version)
        if len(parts) < 3:
            raise InvalidSemver(version)
        components = []
        for part in parts[:3]:
            if not (part.isascii() and part.isdigit()):
                raise InvalidSemver(version)
            value = int(part)
            if value > _BYTE_MAX:
                raise InvalidSemver(version)
            components.append(value)
        return cls(*components)

    def to_code(self, variant: int) -> int:
        """Return ``variant << 24 | major << 16 | minor << 8 | patch``."""
        if not 0 <= variant <= _BYTE_MAX:
            raise ValueError(f"variant={variant} does not fit in a byte")
        return (variant << 24) | (self.major << 16) | (self.minor << 8) | self.patch
