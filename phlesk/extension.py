#!/usr/bin/env python3
"""
Phlesk Extension Registry
Lets extensions see whether other extensions are active, installed and enabled

Example:
    registry.register('seafile', SeafileCapability())
    if registry.is_enabled('seafile', domain):
        ...
"""

import logging
from typing import Dict, List, Optional

from phlesk.context import ExtensionContext

logger = logging.getLogger(__name__)


class ExtensionCapability:
    """
    What an extension discloses about itself to other extensions.

    Override what applies; the defaults describe an active extension with
    its software installed, no licensing and no permissions of its own.
    """

    def is_active(self) -> bool:
        return True

    def is_installed(self) -> bool:
        """Whether the extension's software has been installed"""
        return True

    def is_licensed(self) -> Optional[bool]:
        """None if licensing does not apply"""
        return None

    def license_limit(self) -> Optional[int]:
        return None

    def get_permissions(self) -> Dict[str, dict]:
        """Permission name -> attributes"""
        return {}


class ExtensionRegistry:
    """Capabilities by extension id (case-insensitive)"""

    def __init__(self, context: ExtensionContext):
        self.context = context
        self._extensions: Dict[str, ExtensionCapability] = {}

    def register(self, extension_id: str, capability: ExtensionCapability) -> None:
        self._extensions[extension_id.lower()] = capability

    def unregister(self, extension_id: str) -> None:
        self._extensions.pop(extension_id.lower(), None)

    def get(self, extension_id: str) -> Optional[ExtensionCapability]:
        return self._extensions.get(extension_id.lower())

    def is_active(self, target: str) -> bool:
        """
        Verify an extension is active

        Args:
            target: The id of the extension to check

        Returns:
            True if registered and active
        """
        capability = self.get(target)
        if capability is None:
            logger.debug("No extension %s registered", target)
            return False
        return bool(capability.is_active())

    def is_installed(self, target: str) -> bool:
        """Verify the extension is active and has installed its software"""
        if not self.is_active(target):
            logger.debug("Extension %s is not active.", target)
            return False
        return bool(self.get(target).is_installed())

    def get_permissions(self, target: str) -> List[str]:
        """
        Names of the permissions an extension declares

        Args:
            target: The id of the extension

        Returns:
            Permission names, empty if the extension is not active
        """
        if not self.is_active(target):
            logger.debug("Extension %s is not active or not available.", target)
            return []

        with self.context.switched(target):
            permissions = self.get(target).get_permissions()

        return list(permissions.keys())

    def is_enabled(self, target: str, domain) -> bool:
        """
        Verify the extension `target` is enabled for a domain

        The target must be active and have its software installed, the
        extension in context must have its software installed, and the domain
        must have any of the target's permissions (or manage_<target> when the
        target declares none).

        Args:
            target: The id of the extension
            domain: HostDomain to check

        Returns:
            True if enabled
        """
        if not self.is_active(target):
            logger.debug("Extension %s is not active or not available.", target)
            return False

        source = self.context.module_id
        if not self.is_installed(source):
            logger.debug("Extension %s does not have its software installed.", source)
            return False

        with self.context.switched(target):
            if not self.is_installed(target):
                logger.debug("Extension %s does not have its software installed.", target)
                return False

            permissions = self.get(target).get_permissions()
            if not permissions:
                return bool(domain.has_permission(f"manage_{target.lower()}"))

            for permission in permissions:
                logger.debug("Testing permission %s", permission)
                if domain.has_permission(permission):
                    return True

        return False
