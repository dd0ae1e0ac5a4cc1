"""
Tests for platform detection
"""
import pytest

from phlesk.platform.detector import (
    Distribution,
    OsReleaseProductInfo,
    OsVersion,
    Platform,
    PlatformDetector,
    PlatformFamily,
    ProductInfo,
    detect,
    get_family,
)


class StaticProductInfo(ProductInfo):
    def __init__(self, os_name, os_version):
        self._os_name = os_name
        self._os_version = os_version

    def os_name(self):
        return self._os_name

    def os_version(self):
        return self._os_version


def detector_for(os_name, os_version):
    return PlatformDetector(StaticProductInfo(os_name, os_version))


class TestDetect:
    """Name and version to platform mapping"""

    @pytest.mark.parametrize("os_name,os_version,expected", [
        ("CentOS", "5.11", Platform.TIKANGA),
        ("CentOS", "6.10", Platform.SANTIAGO),
        ("CentOS", "7.9.2009", Platform.MAIPO),
        ("RedHat", "el7", Platform.MAIPO),
        ("RedHat", "8.2", Platform.OOTPA),
        ("Debian", "8.11", Platform.JESSIE),
        ("Debian", "9", Platform.STRETCH),
        ("Debian", "10.4", Platform.BUSTER),
        ("Ubuntu", "16.04", Platform.XENIAL),
        ("Ubuntu", "18.04.5", Platform.BIONIC),
        ("Ubuntu", "20.04", Platform.FOCAL),
    ])
    def test_supported(self, os_name, os_version, expected):
        assert detect(os_name, os_version) == expected

    @pytest.mark.parametrize("os_name,os_version", [
        ("CentOS", "9.0"),
        ("CentOS", "4.8"),
        ("Debian", "11"),
        ("Ubuntu", "18.10"),
        ("Ubuntu", "21.04"),
        ("Gentoo", "2.7"),
        ("CentOS", ""),
        (None, None),
    ])
    def test_unknown(self, os_name, os_version):
        assert detect(os_name, os_version) == Platform.UNKNOWN

    def test_name_is_case_insensitive(self):
        assert detect("centos", "7.3") == Platform.MAIPO
        assert detect("UBUNTU", "20.04") == Platform.FOCAL

    def test_unknown_platform_has_uppercase_name(self):
        assert Platform.UNKNOWN.value == "UNKNOWN"


class TestOsVersion:
    def test_zero_padding(self):
        assert OsVersion.parse("7") == OsVersion.parse("7.0.0")
        assert hash(OsVersion.parse("7")) == hash(OsVersion.parse("7.0"))

    def test_ordering(self):
        assert OsVersion.parse("18.04") < OsVersion.parse("18.10")
        assert OsVersion.parse("7.9.2009") < OsVersion.parse("8")
        assert OsVersion.parse("10") >= OsVersion.parse("9.13")

    def test_no_number(self):
        assert OsVersion.parse("rolling") is None
        assert OsVersion.parse(None) is None


class TestFamily:
    def test_families(self):
        assert get_family(Platform.OOTPA) == PlatformFamily.DNF
        assert get_family(Platform.MAIPO) == PlatformFamily.YUM
        assert get_family(Platform.TIKANGA) == PlatformFamily.YUM
        assert get_family(Platform.BUSTER) == PlatformFamily.APT
        assert get_family(Platform.XENIAL) == PlatformFamily.APT
        assert get_family(Platform.UNKNOWN) == PlatformFamily.UNKNOWN


class TestPlatformDetector:
    """Queries on a detector"""

    def test_redhat_strict_predicates(self):
        detector = detector_for("RedHat", "7.6")
        assert detector.is_maipo()
        assert detector.is_maipo(strict=True)
        assert not detector.is_ootpa()

    def test_centos_not_strict(self):
        detector = detector_for("CentOS", "7.6")
        assert detector.is_maipo()
        assert not detector.is_maipo(strict=True)

    def test_debian_and_ubuntu_predicates(self):
        assert detector_for("Debian", "9.13").is_stretch()
        assert not detector_for("Debian", "9.13").is_buster()
        assert detector_for("Ubuntu", "18.04").is_bionic()
        assert not detector_for("Debian", "18.04").is_bionic()

    def test_uses_apt_for_any_debian_version(self):
        assert detector_for("Debian", "12").uses_apt()
        assert detector_for("ubuntu", "22.04").uses_apt()
        assert not detector_for("CentOS", "7").uses_apt()

    def test_uses_yum_and_dnf(self):
        assert detector_for("CentOS", "6.10").uses_yum()
        assert detector_for("CentOS", "8.3").uses_dnf()
        assert not detector_for("CentOS", "8.3").uses_yum()

    def test_is_distribution_and_platform(self):
        detector = detector_for("CentOS", "7.9")
        assert detector.is_distribution("centos")
        assert detector.is_platform("MAIPO")
        assert not detector.is_platform("ootpa")

    def test_os_version_strips_marker(self):
        assert detector_for("RedHat", "el8").get_os_version() == "8"

    def test_detect_collects_everything(self):
        info = detector_for("Ubuntu", "20.04").detect()

        assert info.distribution == Distribution.UBUNTU
        assert info.platform == Platform.FOCAL
        assert info.family == PlatformFamily.APT
        assert info.to_dict()['platform'] == "focal"

    def test_reflects_current_product_info(self):
        product_info = StaticProductInfo("CentOS", "7.9")
        detector = PlatformDetector(product_info)
        assert detector.get_platform() == Platform.MAIPO

        product_info._os_version = "8.1"
        assert detector.get_platform() == Platform.OOTPA


class TestOsRelease:
    def test_reads_os_release(self, tmp_path):
        os_release = tmp_path / "os-release"
        os_release.write_text('NAME="CentOS Linux"\nID="centos"\nVERSION_ID="7"\n')

        info = OsReleaseProductInfo(os_release)
        assert info.os_name() == "CentOS"
        assert info.os_version() == "7"

    def test_missing_file(self, tmp_path):
        info = OsReleaseProductInfo(tmp_path / "missing")
        assert info.os_name() == ""
        assert detect(info.os_name(), info.os_version()) == Platform.UNKNOWN
