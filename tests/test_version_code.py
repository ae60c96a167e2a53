"""Tests for semver to android:versionCode conversion."""

import pytest

from common.errors import InvalidSemver
from versioning.version_code import VersionCode


class TestFromSemver:
    """Parsing keeps the first three numeric components."""

    def test_plain(self):
        assert VersionCode.from_semver("1.2.3") == VersionCode(1, 2, 3)

    def test_zero(self):
        assert VersionCode.from_semver("0.0.0") == VersionCode(0, 0, 0)

    def test_prerelease_and_build_metadata_ignored(self):
        assert VersionCode.from_semver("254.254.254-alpha.fix+2") == VersionCode(254, 254, 254)

    def test_build_metadata_only(self):
        assert VersionCode.from_semver("1.0.7+20240101") == VersionCode(1, 0, 7)

    @pytest.mark.parametrize(
        "version",
        ["bad", "", "1", "1.2", "1.2.x", "a.b.c", "1..3", "256.0.0", "1.2.-3", " 1.2.3"],
    )
    def test_invalid(self, version):
        with pytest.raises(InvalidSemver):
            VersionCode.from_semver(version)

    def test_error_carries_value(self):
        with pytest.raises(InvalidSemver) as exc_info:
            VersionCode.from_semver("bad")
        assert exc_info.value.value == "bad"


class TestToCode:
    """Packing places the variant in the top byte."""

    def test_variant_in_top_byte(self):
        assert VersionCode(1, 2, 3).to_code(5) == 0x05010203

    def test_max_values(self):
        assert VersionCode(255, 255, 255).to_code(255) == 0xFFFFFFFF

    def test_variant_out_of_range(self):
        with pytest.raises(ValueError):
            VersionCode(1, 2, 3).to_code(256)

    def test_component_out_of_range(self):
        with pytest.raises(ValueError):
            VersionCode(1, 300, 3)
