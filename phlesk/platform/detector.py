#!/usr/bin/env python3
"""
Phlesk Platform Detection
Maps the reported operating system name and version to a named platform
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Distribution(Enum):
    """Operating system names as reported by the panel"""
    CENTOS = "CentOS"
    DEBIAN = "Debian"
    REDHAT = "RedHat"
    UBUNTU = "Ubuntu"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: Optional[str]) -> 'Distribution':
        """Case-insensitive lookup, UNKNOWN for anything else"""
        if name:
            for distribution in cls:
                if distribution.value.lower() == name.strip().lower():
                    return distribution
        return cls.UNKNOWN


class Platform(Enum):
    """Distribution + major version buckets"""
    UNKNOWN = "UNKNOWN"

    # CentOS and Red Hat Enterprise Linux
    TIKANGA = "tikanga"      # 5
    SANTIAGO = "santiago"    # 6
    MAIPO = "maipo"          # 7
    OOTPA = "ootpa"          # 8

    # Debian
    JESSIE = "jessie"        # 8
    STRETCH = "stretch"      # 9
    BUSTER = "buster"        # 10

    # Ubuntu LTS
    XENIAL = "xenial"        # 16.04
    BIONIC = "bionic"        # 18.04
    FOCAL = "focal"          # 20.04


class PlatformFamily(Enum):
    """Package manager families"""
    APT = "apt"              # Debian/Ubuntu
    YUM = "yum"              # RHEL/CentOS 5-7
    DNF = "dnf"              # RHEL/CentOS 8
    UNKNOWN = "unknown"


ENTERPRISE_LINUX = (Distribution.REDHAT, Distribution.CENTOS)


class OsVersion:
    """Numeric dotted version, compared component by component"""

    _NUMERIC = re.compile(r'\d+(?:\.\d+)*')

    def __init__(self, parts: Tuple[int, ...]):
        self.parts = parts

    @classmethod
    def parse(cls, version: Optional[str]) -> Optional['OsVersion']:
        """
        Parse a version string

        Args:
            version: Version as reported, e.g. '7.9.2009', 'el7', '18.04'

        Returns:
            OsVersion or None if the string holds no number
        """
        if version is None:
            return None
        match = cls._NUMERIC.search(normalize_version(version))
        if not match:
            return None
        return cls(tuple(int(part) for part in match.group(0).split('.')))

    def _key(self, other: 'OsVersion') -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
        width = max(len(self.parts), len(other.parts))
        return (self.parts + (0,) * (width - len(self.parts)),
                other.parts + (0,) * (width - len(other.parts)))

    def __eq__(self, other) -> bool:
        if not isinstance(other, OsVersion):
            return NotImplemented
        left, right = self._key(other)
        return left == right

    def __lt__(self, other: 'OsVersion') -> bool:
        left, right = self._key(other)
        return left < right

    def __le__(self, other: 'OsVersion') -> bool:
        return self < other or self == other

    def __ge__(self, other: 'OsVersion') -> bool:
        return not self < other

    def __hash__(self) -> int:
        parts = list(self.parts)
        while parts and parts[-1] == 0:
            parts.pop()
        return hash(tuple(parts))

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.parts)

    def __repr__(self) -> str:
        return f"OsVersion({self})"


@dataclass(frozen=True)
class PlatformRange:
    """Half-open version range [minimum, maximum) of one platform"""
    platform: Platform
    distributions: Tuple[Distribution, ...]
    minimum: str
    maximum: str

    def matches(self, distribution: Distribution, version: Optional[OsVersion]) -> bool:
        if distribution not in self.distributions or version is None:
            return False
        return OsVersion.parse(self.minimum) <= version < OsVersion.parse(self.maximum)


# Newest first within each distribution; ranges never overlap.
PLATFORM_RANGES: List[PlatformRange] = [
    PlatformRange(Platform.OOTPA, ENTERPRISE_LINUX, '8', '9'),
    PlatformRange(Platform.MAIPO, ENTERPRISE_LINUX, '7', '8'),
    PlatformRange(Platform.SANTIAGO, ENTERPRISE_LINUX, '6', '7'),
    PlatformRange(Platform.TIKANGA, ENTERPRISE_LINUX, '5', '6'),
    PlatformRange(Platform.BUSTER, (Distribution.DEBIAN,), '10', '11'),
    PlatformRange(Platform.STRETCH, (Distribution.DEBIAN,), '9', '10'),
    PlatformRange(Platform.JESSIE, (Distribution.DEBIAN,), '8', '9'),
    PlatformRange(Platform.FOCAL, (Distribution.UBUNTU,), '20.04', '20.10'),
    PlatformRange(Platform.BIONIC, (Distribution.UBUNTU,), '18.04', '18.10'),
    PlatformRange(Platform.XENIAL, (Distribution.UBUNTU,), '16.04', '16.10'),
]

_RANGES_BY_PLATFORM: Dict[Platform, PlatformRange] = {r.platform: r for r in PLATFORM_RANGES}

PLATFORM_FAMILIES: Dict[Platform, PlatformFamily] = {
    Platform.JESSIE: PlatformFamily.APT,
    Platform.STRETCH: PlatformFamily.APT,
    Platform.BUSTER: PlatformFamily.APT,
    Platform.XENIAL: PlatformFamily.APT,
    Platform.BIONIC: PlatformFamily.APT,
    Platform.FOCAL: PlatformFamily.APT,
    Platform.TIKANGA: PlatformFamily.YUM,
    Platform.SANTIAGO: PlatformFamily.YUM,
    Platform.MAIPO: PlatformFamily.YUM,
    Platform.OOTPA: PlatformFamily.DNF,
}


def normalize_version(version: str) -> str:
    """Strip the enterprise Linux marker, which the panel may report as e.g. 'el7'"""
    return version.replace('el', '').strip()


def detect(os_name: Optional[str], os_version: Optional[str]) -> Platform:
    """
    Map an OS name and version to a platform

    Args:
        os_name: Reported OS name ('CentOS', 'Debian', ...)
        os_version: Reported OS version

    Returns:
        The matching Platform, or Platform.UNKNOWN
    """
    distribution = Distribution.from_name(os_name)
    version = OsVersion.parse(os_version)

    for platform_range in PLATFORM_RANGES:
        if platform_range.matches(distribution, version):
            return platform_range.platform

    logger.debug("Platform %s version %s is not supported.", os_name, os_version)
    return Platform.UNKNOWN


def get_family(platform: Platform) -> PlatformFamily:
    """Package manager family for a platform"""
    return PLATFORM_FAMILIES.get(platform, PlatformFamily.UNKNOWN)


class ProductInfo(ABC):
    """Source of the OS name and version"""

    @abstractmethod
    def os_name(self) -> str:
        pass

    @abstractmethod
    def os_version(self) -> str:
        pass


class HostProductInfo(ProductInfo):
    """OS name and version as reported by the panel"""

    def __init__(self, host):
        self.host = host

    def os_name(self) -> str:
        return self.host.os_name()

    def os_version(self) -> str:
        return self.host.os_version()


class OsReleaseProductInfo(ProductInfo):
    """OS name and version read from /etc/os-release"""

    ID_NAMES = {
        'centos': Distribution.CENTOS.value,
        'rhel': Distribution.REDHAT.value,
        'redhat': Distribution.REDHAT.value,
        'debian': Distribution.DEBIAN.value,
        'ubuntu': Distribution.UBUNTU.value,
    }

    def __init__(self, path: Path = Path('/etc/os-release')):
        self.path = path

    def _read(self) -> Dict[str, str]:
        values = {}
        try:
            with open(self.path, 'r') as f:
                for line in f:
                    if '=' not in line:
                        continue
                    key, value = line.split('=', 1)
                    values[key.strip()] = value.strip().strip('"').strip("'")
        except OSError as e:
            logger.debug("Cannot read %s: %s", self.path, e)
        return values

    def os_name(self) -> str:
        os_id = self._read().get('ID', '').lower()
        return self.ID_NAMES.get(os_id, os_id)

    def os_version(self) -> str:
        return self._read().get('VERSION_ID', '')


@dataclass
class PlatformInfo:
    """Detected platform details"""
    distribution: Distribution
    os_name: str
    os_version: str
    platform: Platform
    family: PlatformFamily

    def to_dict(self) -> Dict:
        """Convert to dictionary for display"""
        return {
            'distribution': self.distribution.value,
            'os_name': self.os_name,
            'os_version': self.os_version,
            'platform': self.platform.value,
            'family': self.family.value,
        }


class PlatformDetector:
    """
    Platform queries against a ProductInfo source.

    Nothing is cached: every query reflects what the source reports now.
    """

    def __init__(self, product_info: Optional[ProductInfo] = None):
        self.product_info = product_info or OsReleaseProductInfo()

    def get_distribution(self) -> str:
        """OS name exactly as reported"""
        return self.product_info.os_name()

    def get_os_version(self) -> str:
        """OS version with the enterprise Linux marker removed"""
        return normalize_version(self.product_info.os_version() or '')

    def get_platform(self) -> Platform:
        return detect(self.product_info.os_name(), self.product_info.os_version())

    def get_family(self) -> PlatformFamily:
        return get_family(self.get_platform())

    def detect(self) -> PlatformInfo:
        """Collect all platform details at once"""
        os_name = self.product_info.os_name()
        os_version = self.product_info.os_version()
        platform = detect(os_name, os_version)

        return PlatformInfo(
            distribution=Distribution.from_name(os_name),
            os_name=os_name,
            os_version=os_version,
            platform=platform,
            family=get_family(platform),
        )

    def is_distribution(self, distribution: str) -> bool:
        """Case-insensitive comparison with the reported OS name"""
        return (self.get_distribution() or '').lower() == distribution.lower()

    def is_platform(self, platform: str) -> bool:
        """Case-insensitive comparison with the detected platform name"""
        return self.get_platform().value.lower() == platform.lower()

    def _is(self, platform: Platform, strict: bool = False) -> bool:
        distribution = Distribution.from_name(self.product_info.os_name())
        if strict and distribution != Distribution.REDHAT:
            return False
        version = OsVersion.parse(self.product_info.os_version())
        return _RANGES_BY_PLATFORM[platform].matches(distribution, version)

    def is_tikanga(self, strict: bool = False) -> bool:
        """Red Hat Enterprise Linux 5 or CentOS 5 (only RHEL when strict)"""
        return self._is(Platform.TIKANGA, strict)

    def is_santiago(self, strict: bool = False) -> bool:
        """Red Hat Enterprise Linux 6 or CentOS 6 (only RHEL when strict)"""
        return self._is(Platform.SANTIAGO, strict)

    def is_maipo(self, strict: bool = False) -> bool:
        """Red Hat Enterprise Linux 7 or CentOS 7 (only RHEL when strict)"""
        return self._is(Platform.MAIPO, strict)

    def is_ootpa(self, strict: bool = False) -> bool:
        """Red Hat Enterprise Linux 8 or CentOS 8 (only RHEL when strict)"""
        return self._is(Platform.OOTPA, strict)

    def is_jessie(self) -> bool:
        return self._is(Platform.JESSIE)

    def is_stretch(self) -> bool:
        return self._is(Platform.STRETCH)

    def is_buster(self) -> bool:
        return self._is(Platform.BUSTER)

    def is_xenial(self) -> bool:
        return self._is(Platform.XENIAL)

    def is_bionic(self) -> bool:
        return self._is(Platform.BIONIC)

    def is_focal(self) -> bool:
        return self._is(Platform.FOCAL)

    def uses_apt(self) -> bool:
        """All Debian and Ubuntu systems, whatever their version"""
        return (self.is_distribution(Distribution.DEBIAN.value)
                or self.is_distribution(Distribution.UBUNTU.value))

    def uses_yum(self) -> bool:
        return self.is_maipo() or self.is_santiago() or self.is_tikanga()

    def uses_dnf(self) -> bool:
        return self.is_ootpa()
