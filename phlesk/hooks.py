#!/usr/bin/env python3
"""
Phlesk Panel Hooks
Standard action log events and the custom statistics an extension reports
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from phlesk.context import ExtensionContext
from phlesk.domains import DomainDirectory
from phlesk.extension import ExtensionRegistry

logger = logging.getLogger(__name__)

# Listeners subscribe to 'ext_<module>_enable_domain' / 'ext_<module>_disable_domain'
ACTION_LOG_EVENTS = {
    'enable_domain': 'Enable Integration for Domain',
    'disable_domain': 'Disable Integration for Domain',
}

UPDATE_SETTINGS_QUERY = """
    SELECT param, val FROM misc
    WHERE param IN ('disable_updater', 'automaticSystemPackageUpdates',
                    'autoupgrade_third_party', 'systemPackageUpdatesSafeOnly',
                    'autoupgrade_branch')
"""

VERSION_QUERY = "SELECT version, `release` FROM Modules WHERE name = %s"

BRANCHES = ('current', 'release', 'stable')


@dataclass
class UpdateConfig:
    """Automatic update configuration of the panel"""
    updater_enabled: bool = False
    system_package_updates: bool = False
    third_party_updates: bool = False
    safe_updates_only: bool = False
    branch: Optional[str] = None

    # Bit positions in the reported flag value
    UPDATER_BIT = 0
    SYSTEM_PACKAGES_BIT = 1
    THIRD_PARTY_BIT = 2
    SAFE_ONLY_BIT = 3
    BRANCH_BITS = {branch: 4 + i for i, branch in enumerate(BRANCHES)}

    @classmethod
    def from_settings(cls, settings: Dict[str, str]) -> 'UpdateConfig':
        """Build from the panel's misc parameters"""
        branch = settings.get('autoupgrade_branch')
        return cls(
            updater_enabled=settings.get('disable_updater') == 'false',
            system_package_updates=settings.get('automaticSystemPackageUpdates') == 'true',
            third_party_updates=settings.get('autoupgrade_third_party') == 'true',
            safe_updates_only=settings.get('systemPackageUpdatesSafeOnly') == 'true',
            branch=branch if branch in BRANCHES else None,
        )

    @classmethod
    def from_host(cls, host) -> 'UpdateConfig':
        rows = host.query(UPDATE_SETTINGS_QUERY)
        return cls.from_settings({row['param']: row['val'] for row in rows})

    def to_bitflag(self) -> int:
        flags = 0
        if self.updater_enabled:
            flags |= 1 << self.UPDATER_BIT
        if self.system_package_updates:
            flags |= 1 << self.SYSTEM_PACKAGES_BIT
        if self.third_party_updates:
            flags |= 1 << self.THIRD_PARTY_BIT
        if self.safe_updates_only:
            flags |= 1 << self.SAFE_ONLY_BIT
        if self.branch in self.BRANCH_BITS:
            flags |= 1 << self.BRANCH_BITS[self.branch]
        return flags

    @classmethod
    def from_bitflag(cls, flags: int) -> 'UpdateConfig':
        branch = next(
            (name for name, bit in cls.BRANCH_BITS.items() if flags & (1 << bit)),
            None
        )
        return cls(
            updater_enabled=bool(flags & (1 << cls.UPDATER_BIT)),
            system_package_updates=bool(flags & (1 << cls.SYSTEM_PACKAGES_BIT)),
            third_party_updates=bool(flags & (1 << cls.THIRD_PARTY_BIT)),
            safe_updates_only=bool(flags & (1 << cls.SAFE_ONLY_BIT)),
            branch=branch,
        )


def _counters(permissions) -> Dict[str, Any]:
    return {
        'numTotal': 0,
        'numPrimary': 0,
        'numHosting': 0,
        'numMailservice': 0,
        'numWildcard': 0,
        'numIDN': 0,
        'numEligible': 0,
        'permissions': {permission: 0 for permission in permissions},
    }


class CustomInfo:
    """Statistics the extension reports about itself, as JSON"""

    def __init__(self, host, context: ExtensionContext, directory: DomainDirectory,
                 registry: ExtensionRegistry):
        self.host = host
        self.context = context
        self.directory = directory
        self.registry = registry

    def get_info(self) -> str:
        return json.dumps(self.get_statistics())

    def get_statistics(self) -> Dict[str, Any]:
        """
        Collect the statistics

        * version, license and installation status of the extension
        * the automatic update configuration (bit flags)
        * per domain category (primary, hosting, mail service, wildcard,
          IDN, eligible, each permission) the number of domains and the
          number of mail users on them

        Returns:
            Statistics dict
        """
        module_id = self.context.module_id
        permissions = self.registry.get_permissions(module_id)

        stats = {
            'licensed': self.is_licensed(),
            'numLicensed': self.num_licensed(),
            'version': self.version(),
            'installed': self.registry.is_installed(module_id),
            'updateConfig': UpdateConfig.from_host(self.host).to_bitflag(),
        }

        domains = self.directory.get_all_domains()
        domain_stats = _counters(permissions)
        user_stats = _counters(permissions)
        domain_stats['numTotal'] = len(domains)

        def count(key: str, users: int, permission: Optional[str] = None):
            if permission is None:
                domain_stats[key] += 1
                user_stats[key] += users
            else:
                domain_stats[key][permission] += 1
                user_stats[key][permission] += users

        for domain in domains:
            users = len(self.directory.list_users(domain))
            user_stats['numTotal'] += users

            for permission in permissions:
                if domain.has_permission(permission):
                    count('permissions', users, permission)

            is_primary = self.directory.is_primary(domain)
            has_hosting = self.directory.has_hosting(domain)
            has_mail = self.directory.has_mail_service(domain)
            is_wildcard = self.directory.is_wildcard(domain)

            if is_primary:
                count('numPrimary', users)
            if has_hosting:
                count('numHosting', users)
            if has_mail:
                count('numMailservice', users)
            if is_wildcard:
                count('numWildcard', users)
            if self.directory.is_idn(domain):
                count('numIDN', users)
            if is_primary and has_hosting and has_mail and not is_wildcard:
                count('numEligible', users)

        stats['domains'] = domain_stats
        stats['users'] = user_stats
        return stats

    def is_licensed(self) -> Optional[bool]:
        """None if licensing does not apply to the extension"""
        capability = self.registry.get(self.context.module_id)
        if capability is None:
            return None
        return capability.is_licensed()

    def num_licensed(self):
        capability = self.registry.get(self.context.module_id)
        limit = capability.license_limit() if capability else None
        return "N/A" if limit is None else limit

    def version(self) -> Optional[str]:
        rows = self.host.query(VERSION_QUERY, (self.context.module_id,))
        if not rows:
            logger.debug("No module record for %s", self.context.module_id)
            return None
        return f"{rows[0]['version']}-{rows[0]['release']}"
