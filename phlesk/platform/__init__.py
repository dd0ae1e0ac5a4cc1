"""
Phlesk Platform Detection & Packages
OS platform detection and package-manager agnostic installation
"""

from phlesk.platform.detector import (
    Distribution,
    Platform,
    PlatformFamily,
    PlatformDetector,
    PlatformInfo,
    ProductInfo,
    HostProductInfo,
    OsReleaseProductInfo,
    OsVersion,
    detect,
    get_family,
)
from phlesk.platform.adapters import (
    PackageManagerAdapter,
    AptAdapter,
    YumAdapter,
    DnfAdapter,
    UnsupportedAdapter,
    get_adapter,
)
from phlesk.platform.package import PackageInstaller

__all__ = [
    'Distribution',
    'Platform',
    'PlatformFamily',
    'PlatformDetector',
    'PlatformInfo',
    'ProductInfo',
    'HostProductInfo',
    'OsReleaseProductInfo',
    'OsVersion',
    'detect',
    'get_family',
    'PackageManagerAdapter',
    'AptAdapter',
    'YumAdapter',
    'DnfAdapter',
    'UnsupportedAdapter',
    'get_adapter',
    'PackageInstaller',
]
