#!/usr/bin/env python3
"""
Phlesk Errors
Exception taxonomy for conditions callers cannot continue from
"""

from typing import Optional


class PhleskError(Exception):
    """Base class for all Phlesk errors"""


class DomainNotFoundError(PhleskError):
    """No domain exists (anymore) for the given GUID"""

    def __init__(self, guid: str):
        super().__init__(f"No domain for GUID {guid} (anymore).")
        self.guid = guid


class PrimaryDomainNotFoundError(PhleskError):
    """The subscription of a domain has no primary domain"""

    def __init__(self, domain_name: str):
        super().__init__(f"Subscription for domain {domain_name} does not have a primary domain")
        self.domain_name = domain_name


# The remaining errors name the soft failure modes. Library code reports these
# as falsy return values plus a log line; they are raised only on request
# (CommandResult.check()) or by the command-line front end.

class UnsupportedPlatformError(PhleskError):
    """The package manager for this platform is not supported"""

    def __init__(self, os_name: str, os_version: Optional[str] = None):
        detail = f"{os_name} {os_version}" if os_version else os_name
        super().__init__(f"Phlesk does not support the package manager for {detail}")
        self.os_name = os_name
        self.os_version = os_version


class CommandFailedError(PhleskError):
    """An external command exited non-zero"""

    def __init__(self, command: str, exit_code: int, stderr: str = ""):
        super().__init__(f"Command '{command}' exited with code {exit_code}: {stderr.strip()}")
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr


class PackageUnavailableError(PhleskError):
    """None of the requested packages can be installed"""

    def __init__(self, packages):
        super().__init__(
            "None of the following packages are available for installation; "
            + ", ".join(packages)
        )
        self.packages = list(packages)


class LicenseUnavailableError(PhleskError):
    """No license could be obtained"""


class LicenseExpiredError(PhleskError):
    """The license is past its expiry date"""


class LicenseInvalidError(PhleskError):
    """The license carries no usable seat limit"""
