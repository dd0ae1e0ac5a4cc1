"""
Phlesk - Helper Library for Control Panel Extensions
Platform detection, package installation, licensing and domain helpers for panel extensions.
"""

__version__ = "0.1.0"
__author__ = "Kolab Systems"
__license__ = "GPL-3.0-or-later"

# Submodules are imported on-demand; most of them expect a host collaborator
# from phlesk.host to be wired in by the embedding extension.

__all__ = ["__version__"]
