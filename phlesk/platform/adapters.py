#!/usr/bin/env python3
"""
Phlesk Package Manager Adapters
Install, installed and available queries for each package manager family
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from phlesk.platform.detector import Platform, PlatformFamily, get_family
from phlesk.runner import CommandRunner

logger = logging.getLogger(__name__)


class PackageManagerAdapter(ABC):
    """
    Abstract base class for package manager invocations

    Queries are run tolerant: a package that is not installed or not
    available is an answer, not an error.
    """

    family: PlatformFamily = PlatformFamily.UNKNOWN

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    @abstractmethod
    def install_command(self) -> List[str]:
        """
        Get the install command prefix

        Returns:
            Command tokens; append package names to install them
        """
        pass

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        """
        Check if a package is already installed

        Args:
            package: Package name to check

        Returns:
            True if package is installed
        """
        pass

    @abstractmethod
    def is_available(self, package: str) -> bool:
        """
        Check if a package can be installed (installed packages count as available)

        Args:
            package: Package name to check

        Returns:
            True if the package manager knows the package
        """
        pass


class AptAdapter(PackageManagerAdapter):
    """Debian/Ubuntu packages through aptitude or apt-get"""

    family = PlatformFamily.APT

    APT_OPTIONS = [
        '--assume-yes',
        '-o', 'Dpkg::Options::=--force-confdef',
        '-o', 'Dpkg::Options::=--force-confold',
        '-o', 'APT::Install-Recommends=no',
    ]

    def uses_aptitude(self) -> bool:
        """Aptitude is only used when it is itself installed"""
        return self.is_installed('aptitude')

    def install_command(self) -> List[str]:
        program = 'aptitude' if self.uses_aptitude() else 'apt-get'
        return [program, *self.APT_OPTIONS, 'install']

    def is_installed(self, package: str) -> bool:
        """dpkg -l also lists removed packages, so look for an 'ii' row"""
        result = self.runner.run('dpkg', ['-l', package], tolerant=True)
        if not result.ok:
            return False
        return any(line.startswith('ii ') for line in result.stdout.splitlines())

    def is_available(self, package: str) -> bool:
        return self.runner.run('apt-cache', ['show', package], tolerant=True).ok


class RpmAdapter(PackageManagerAdapter):
    """Shared rpm based queries"""

    program = 'yum'

    def install_command(self) -> List[str]:
        return [self.program, '-y', 'install']

    def is_installed(self, package: str) -> bool:
        return self.runner.run('rpm', ['-qv', package], tolerant=True).ok

    def is_available(self, package: str) -> bool:
        return self.runner.run(self.program, ['list', package], tolerant=True).ok


class YumAdapter(RpmAdapter):
    """RHEL/CentOS 5 to 7 packages using yum"""

    family = PlatformFamily.YUM
    program = 'yum'


class DnfAdapter(RpmAdapter):
    """RHEL/CentOS 8 packages using dnf"""

    family = PlatformFamily.DNF
    program = 'dnf'


class UnsupportedAdapter(PackageManagerAdapter):
    """Stand-in for platforms without a known package manager"""

    def __init__(self, runner: Optional[CommandRunner] = None, os_name: str = "this platform"):
        super().__init__(runner)
        self.os_name = os_name

    def _unsupported(self):
        logger.error("Phlesk does not support the package manager for %s", self.os_name)

    def install_command(self) -> List[str]:
        self._unsupported()
        return []

    def is_installed(self, package: str) -> bool:
        self._unsupported()
        return False

    def is_available(self, package: str) -> bool:
        self._unsupported()
        return False


ADAPTERS = {
    PlatformFamily.APT: AptAdapter,
    PlatformFamily.YUM: YumAdapter,
    PlatformFamily.DNF: DnfAdapter,
}


def get_adapter(platform: Platform, runner: Optional[CommandRunner] = None,
                os_name: Optional[str] = None) -> PackageManagerAdapter:
    """
    Get the adapter for a platform

    Args:
        platform: Detected platform
        runner: Command runner the adapter executes through
        os_name: Reported OS name, used in diagnostics for unknown platforms

    Returns:
        PackageManagerAdapter (UnsupportedAdapter for Platform.UNKNOWN)
    """
    adapter_class = ADAPTERS.get(get_family(platform))
    if adapter_class is None:
        return UnsupportedAdapter(runner, os_name or platform.value)
    return adapter_class(runner)


def install_command(platform: Platform, runner: Optional[CommandRunner] = None) -> List[str]:
    return get_adapter(platform, runner).install_command()


def is_installed(platform: Platform, package: str, runner: Optional[CommandRunner] = None) -> bool:
    return get_adapter(platform, runner).is_installed(package)


def is_available(platform: Platform, package: str, runner: Optional[CommandRunner] = None) -> bool:
    return get_adapter(platform, runner).is_available(package)
