#!/usr/bin/env python3
"""
Phlesk Panel Components
Install and query components through the panel's own installer
"""

import logging
from typing import Dict, Iterable, Optional, Union

from phlesk.runner import CommandRunner

logger = logging.getLogger(__name__)


def parse_component_list(output: str) -> Dict[str, str]:
    """
    Parse `packagemng --list` output

    Args:
        output: Lines of 'name: version'

    Returns:
        Component name -> version, for components with a version
    """
    components = {}
    for line in output.splitlines():
        name, _, version = line.partition(':')
        name, version = name.strip(), version.strip()
        if name and version:
            components[name] = version
    return components


class ComponentManager:
    """Panel components (as opposed to OS packages)"""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def install(self, components: Union[str, Iterable[str]]) -> bool:
        """
        Install components

        Args:
            components: Component name or names

        Returns:
            True if the installer succeeded, False for an empty request
        """
        if isinstance(components, str):
            components = [components]
        components = [c for c in components if c]

        if not components:
            return False

        result = self.runner.exec(['plesk', 'installer', 'add', '--components', ','.join(components)])
        return result.ok

    def list_installed(self) -> Dict[str, str]:
        result = self.runner.exec(['plesk', 'sbin', 'packagemng', '--list'], tolerant=True)
        if not result.ok:
            logger.debug("Cannot list components: %s", result.stderr.strip())
            return {}
        return parse_component_list(result.stdout)

    def is_installed(self, component: str) -> bool:
        return component in self.list_installed()
