#!/usr/bin/env python3
"""
Phlesk Package Installation
Install only what is missing and available, in a single package manager run
"""

import logging
from typing import Iterable, List, Optional

from phlesk.platform.adapters import PackageManagerAdapter, UnsupportedAdapter, get_adapter
from phlesk.platform.detector import Distribution, PlatformDetector
from phlesk.runner import CommandRunner

logger = logging.getLogger(__name__)


class PackageInstaller:
    """
    Platform-agnostic package installation.

    Example:
        installer = PackageInstaller(PlatformDetector(HostProductInfo(host)), runner)
        if not installer.is_installed('wget'):
            installer.install(['wget', 'unzip'])
    """

    def __init__(self, detector: Optional[PlatformDetector] = None,
                 runner: Optional[CommandRunner] = None):
        self.detector = detector or PlatformDetector()
        self.runner = runner or CommandRunner()

    def adapter(self) -> PackageManagerAdapter:
        """Adapter for the platform detected right now"""
        return get_adapter(self.detector.get_platform(), self.runner, self.detector.get_distribution())

    def is_installed(self, package: str) -> bool:
        return self.adapter().is_installed(package)

    def is_available(self, package: str) -> bool:
        return self.adapter().is_available(package)

    def install(self, packages: Iterable[str]) -> bool:
        """
        Install the packages that are not installed yet and are available

        Availability is checked first so a package manager never blocks on a
        package it cannot find.

        Args:
            packages: Package names to install

        Returns:
            True if the packages are installed afterwards
        """
        requested = _unique(packages)
        if not requested:
            return True

        adapter = self.adapter()
        if isinstance(adapter, UnsupportedAdapter):
            logger.error(
                "Phlesk does not support the package manager for %s",
                self.detector.get_distribution()
            )
            return False

        batch = []
        unavailable = []

        for package in requested:
            if adapter.is_installed(package):
                logger.debug("Package %s already installed.", package)
                continue

            if not adapter.is_available(package):
                logger.debug("Package %s not available.", package)
                unavailable.append(package)
                continue

            batch.append(package)

        if batch:
            result = self.runner.exec(adapter.install_command() + batch)
            return result.ok

        if len(unavailable) == len(requested):
            logger.error(
                "None of the following packages are available for installation; %s",
                ", ".join(requested)
            )
            return False

        return True

    def import_package_key(self, uri: str, var_dir: str) -> bool:
        """
        Import a GPG public key used for package and/or repository signing

        Args:
            uri: Location of the key
            var_dir: Directory to download the key to (Debian/Ubuntu)

        Returns:
            True if every step succeeded
        """
        distribution = Distribution.from_name(self.detector.get_distribution())

        if distribution in (Distribution.CENTOS, Distribution.REDHAT):
            return self.runner.exec(['rpm', '--import', uri]).ok

        if distribution in (Distribution.DEBIAN, Distribution.UBUNTU):
            key_file = f"{var_dir.rstrip('/')}/gpgkey"
            if not self.runner.exec(['wget', f"-O{key_file}", uri]).ok:
                return False
            return self.runner.exec(['apt-key', 'add', key_file]).ok

        logger.error("Cannot import package keys on %s", self.detector.get_distribution())
        return False


def _unique(packages: Iterable[str]) -> List[str]:
    """Drop duplicates, keep first-seen order"""
    seen = []
    for package in packages:
        if package and package not in seen:
            seen.append(package)
    return seen
