#!/usr/bin/env python3
"""
Phlesk System Services
systemd units exposed as panel services
"""

from typing import Optional

from phlesk.runner import CommandRunner

# systemctl status exit code for a unit that does not exist
STATUS_NO_SUCH_UNIT = 4


class SystemdService:
    """A systemd unit as the panel's service list sees it"""

    def __init__(self, name: str, service_name: str, service_id: str,
                 runner: Optional[CommandRunner] = None):
        """
        Args:
            name: Display name
            service_name: systemd unit name
            service_id: Panel service identifier
            runner: Command runner for systemctl
        """
        self.name = name
        self.service_name = service_name
        self.id = service_id
        self.runner = runner or CommandRunner()

    def get_id(self) -> str:
        return self.id

    def get_name(self) -> str:
        return self.name

    def is_configured(self) -> bool:
        return self._systemctl("is-enabled") == 0

    def is_installed(self) -> bool:
        return self._systemctl("status") != STATUS_NO_SUCH_UNIT

    def is_running(self) -> bool:
        return self._systemctl("status") == 0

    def on_start(self) -> bool:
        return self._systemctl("start") == 0

    def on_stop(self) -> bool:
        return self._systemctl("stop") == 0

    def on_restart(self) -> bool:
        return self._systemctl("restart") == 0

    def _systemctl(self, action: str) -> int:
        return self.runner.run("systemctl", [action, self.service_name], tolerant=True).exit_code
