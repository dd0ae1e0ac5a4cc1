#!/usr/bin/env python3
"""
Phlesk Extension Context
Switch the panel context between extensions calling into one another
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)


class ExtensionContext:
    """
    The extension the panel currently acts on behalf of.

    Extensions calling one another switch into the target's context (so its
    settings, permissions and log namespace apply) and back out when done:

        previous = context.enter('seafile')
        ...
        return context.leave(previous, result)

    or, equivalently:

        with context.switched('seafile'):
            ...
    """

    def __init__(self, host, module_id: str):
        """
        Args:
            host: phlesk.host.Host whose context is switched
            module_id: The extension initially in context
        """
        self.host = host
        self._module_id = module_id.lower()

    @property
    def module_id(self) -> str:
        return self._module_id

    def _switch(self, target: str) -> None:
        target = target.lower()
        if target == self._module_id:
            return

        logger.debug("Switching context from %s to %s", self._module_id, target)
        self.host.switch_context(target)
        self._module_id = target

    def enter(self, target: str) -> str:
        """
        Switch to the target context, if necessary

        Args:
            target: Extension id, e.g. 'kolab', 'seafile'

        Returns:
            The id of the context that was current before
        """
        previous = self._module_id
        self._switch(target)
        return previous

    def leave(self, target: str, value: Any = None) -> Any:
        """
        Switch back to an earlier context, if necessary

        Args:
            target: Extension id returned by enter()
            value: Passed through as the return value

        Returns:
            value
        """
        self._switch(target)
        return value

    @contextmanager
    def switched(self, target: str) -> Iterator[Optional[str]]:
        """Run a block in the target context, switching back afterwards"""
        previous = self.enter(target)
        try:
            yield previous
        finally:
            self.leave(previous)
