#!/usr/bin/env python3
"""
Phlesk Utilities
Permissions defaults, atomic downloads, templates and installation polling
"""

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Mapping, Optional

from phlesk.config import DEFAULT_RELEASE_URL
from phlesk.runner import CommandRunner

logger = logging.getLogger(__name__)

PERMISSION_DEFAULT_SETTING = 'permission-default'

INSTALLATION_DONE_QUERY = """
    SELECT ms.value FROM ModuleSettings ms
        INNER JOIN Modules m ON m.id = ms.module_id
        WHERE m.name = %s AND
            ms.name = 'installing' AND
            ms.value = 'false'
"""


def can_manage_plans(host) -> bool:
    """Whether the panel license allows managing customer and reseller plans"""
    properties = host.server_license_properties() or {}
    return bool(properties.get('can-manage-customers')) and bool(properties.get('can-manage-resellers'))


def default_permission(host) -> bool:
    """
    Default state of the extension's permission for new plans

    Initializes the setting if not present yet: enabled when no subscriptions
    exist, disabled otherwise. Without plan management the permission could
    never be toggled, so it is always enabled.

    Args:
        host: phlesk.host.Host

    Returns:
        True if the permission is granted by default
    """
    if not can_manage_plans(host):
        host.set_setting(PERMISSION_DEFAULT_SETTING, 1)
        return True

    value = host.get_setting(PERMISSION_DEFAULT_SETTING, None)

    if value is None:
        value = 0 if host.all_domains(True) else 1
        host.set_setting(PERMISSION_DEFAULT_SETTING, value)

    return bool(int(value))


def download_file(url: str, target_dir: str, file_name: str,
                  runner: Optional[CommandRunner] = None) -> bool:
    """
    Download a file into target_dir

    The file appears atomically: it is downloaded to a temporary file in
    target_dir and renamed at the end.

    Args:
        url: The url to download
        target_dir: Directory to download to
        file_name: Target file name

    Returns:
        True if the file is available
    """
    runner = runner or CommandRunner()
    target = Path(target_dir) / file_name

    if target.exists():
        return True

    logger.debug("Downloading %s", target)

    fd, tmp_file = tempfile.mkstemp(prefix=file_name, dir=target_dir)
    os.close(fd)

    result = runner.exec(['wget', f"-O{tmp_file}", url], tolerant=True)

    # No connection to the internet is not necessarily an error
    if not result.ok:
        logger.info("Failed to download %s: '%s'", file_name, result.stderr.strip())
        Path(tmp_file).unlink(missing_ok=True)
        return False

    # Someone else may have completed the same download meanwhile
    if target.exists():
        Path(tmp_file).unlink(missing_ok=True)
        return True

    return runner.exec(['mv', tmp_file, str(target)]).ok


def download_release(filename: str, var_dir: str, runner: Optional[CommandRunner] = None,
                     base_url: str = DEFAULT_RELEASE_URL) -> bool:
    """Download an application release file into the extension's var directory"""
    url = base_url.rstrip('/') + '/' + filename
    return download_file(url, var_dir, filename, runner)


def render_template(template: str, substitutions: Mapping[str, str], var_dir: str) -> str:
    """
    Render the contents of a file from a template in the var directory

    Args:
        template: Template file name, relative to var_dir
        substitutions: Literal text -> replacement

    Returns:
        Rendered text, "" if the template does not exist
    """
    path = Path(var_dir) / template
    if not path.exists():
        return ""

    content = path.read_text()
    for search, replace in substitutions.items():
        content = content.replace(search, str(replace))
    return content


def wait_for_complete_installation(host, module_id: str, interval: float = 3.0,
                                   sleep: Callable[[float], None] = time.sleep,
                                   max_checks: Optional[int] = None) -> bool:
    """
    Wait for the extension's post-install jobs to have completed

    The settings store does not see updates made by other processes, so the
    database is polled directly.

    Args:
        host: phlesk.host.Host
        module_id: Extension id
        interval: Seconds between checks
        max_checks: Give up after this many checks (None = wait indefinitely)

    Returns:
        True once installation is complete, False if max_checks ran out
    """
    if str(host.get_setting('installing', None)).lower() != "true":
        return True

    checks = 0
    while max_checks is None or checks < max_checks:
        logger.debug("Extension %s is not yet completely installed ...", module_id)
        sleep(interval)
        checks += 1

        if host.query(INSTALLATION_DONE_QUERY, (module_id,)):
            return True

    return False
