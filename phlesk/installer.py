#!/usr/bin/env python3
"""
Phlesk Installer Base
Lifecycle hooks an extension's installer overrides
"""


class Installer:
    """
    Extension software installation lifecycle.

    pre_install() runs before the extension is installed, post_install()
    after; install() is invoked explicitly when is_installed() says so.
    """

    def install(self) -> None:
        pass

    def is_installed(self) -> bool:
        return True

    def pre_install(self) -> None:
        pass

    def post_install(self) -> None:
        pass

    def pre_uninstall(self) -> None:
        pass

    def ensure_installed(self) -> bool:
        """Install unless already installed, return the resulting state"""
        if not self.is_installed():
            self.install()
        return self.is_installed()
