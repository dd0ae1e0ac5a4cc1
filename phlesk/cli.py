#!/usr/bin/env python3
"""
Phlesk CLI - Command-line interface
Diagnostics for platform detection, package installation and licenses
"""

import sys
from pathlib import Path
from typing import List, Optional

import click
import yaml
from rich.console import Console
from rich.table import Table

from phlesk import __version__
from phlesk.config import ConfigManager, PhleskConfig
from phlesk.errors import PackageUnavailableError, PhleskError, UnsupportedPlatformError
from phlesk.license import LicenseEvaluator, LicenseProperties, StaticLicenseStore
from phlesk.log import setup_logging
from phlesk.platform import PackageInstaller, PlatformDetector, ProductInfo, UnsupportedAdapter, get_adapter
from phlesk.platform.detector import OsReleaseProductInfo
from phlesk.runner import CommandRunner
from phlesk.utils import download_release

console = Console()


class OverrideProductInfo(ProductInfo):
    """OS name/version given on the command line, falling back to /etc/os-release"""

    def __init__(self, os_name: Optional[str], os_version: Optional[str]):
        self.fallback = OsReleaseProductInfo()
        self._os_name = os_name
        self._os_version = os_version

    def os_name(self) -> str:
        return self._os_name if self._os_name is not None else self.fallback.os_name()

    def os_version(self) -> str:
        return self._os_version if self._os_version is not None else self.fallback.os_version()


def _runner(config: PhleskConfig) -> CommandRunner:
    return CommandRunner(wrapper=config.execute_wrapper)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version and exit')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Configuration file (default: nearest .phlesk.yml)')
@click.option('--debug', is_flag=True, help='Show debug log output')
@click.pass_context
def main(ctx, version, config_path, debug):
    """
    Phlesk - helpers for control panel extensions

    Examples:
        phlesk platform                      # Show the detected platform
        phlesk install wget unzip            # Install missing packages
        phlesk download kolab-16.tar.gz      # Fetch a release into the var directory
        phlesk license cert.pem --count 12   # Evaluate a license certificate
    """
    if version:
        click.echo(f"Phlesk v{__version__}")
        ctx.exit(0)

    config = ConfigManager.load_config(Path(config_path) if config_path else None)
    setup_logging('DEBUG' if debug else config.log_level, config.module_id)
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.option('--os-name', default=None, help='Evaluate this OS name instead of the running system')
@click.option('--os-version', default=None, help='Evaluate this OS version instead of the running system')
@click.pass_obj
def platform(config, os_name, os_version):
    """Show the detected distribution, platform and install command."""
    detector = PlatformDetector(OverrideProductInfo(os_name, os_version))
    info = detector.detect()

    console.print("[bold cyan]Platform Information:[/bold cyan]")
    console.print(f"  OS: {info.os_name or 'unknown'} {info.os_version}")
    console.print(f"  Platform: {info.platform.value}")
    console.print(f"  Package Manager: {info.family.value}")

    command = get_adapter(info.platform, _runner(config), info.os_name).install_command()
    if command:
        console.print(f"  Install Command: {' '.join(command)} <packages>")
    else:
        console.print("[yellow]  No supported package manager for this platform[/yellow]")


def _install(installer: PackageInstaller, packages) -> List[str]:
    """
    Install packages, raising PhleskError with the reason on failure

    Returns:
        Requested packages that were skipped as unavailable
    """
    if isinstance(installer.adapter(), UnsupportedAdapter):
        detector = installer.detector
        raise UnsupportedPlatformError(detector.get_distribution(), detector.get_os_version())

    if installer.install(packages):
        return [package for package in packages
                if not installer.is_installed(package) and not installer.is_available(package)]

    if not any(installer.is_available(package) for package in packages):
        raise PackageUnavailableError(packages)

    raise PhleskError("Package installation failed")


@main.command()
@click.argument('packages', nargs=-1, required=True)
@click.option('--os-name', default=None, help='Install as if running this OS')
@click.option('--os-version', default=None, help='Install as if running this OS version')
@click.pass_obj
def install(config, packages, os_name, os_version):
    """Install PACKAGES that are missing and available, in one run."""
    installer = PackageInstaller(PlatformDetector(OverrideProductInfo(os_name, os_version)), _runner(config))

    packages = list(dict.fromkeys(packages))

    try:
        skipped = _install(installer, packages)
    except PhleskError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    installed = [package for package in packages if package not in skipped]
    if installed:
        console.print(f"[green]Installed: {', '.join(installed)}[/green]")
    if skipped:
        console.print(f"[yellow]Not available: {', '.join(skipped)}[/yellow]")


@main.command(name='import-key')
@click.argument('uri')
@click.option('--os-name', default=None, help='Import as if running this OS')
@click.option('--os-version', default=None, help='Import as if running this OS version')
@click.pass_obj
def import_key(config, uri, os_name, os_version):
    """Import the package signing key at URI (rpm, or apt-key via the var directory)."""
    installer = PackageInstaller(PlatformDetector(OverrideProductInfo(os_name, os_version)), _runner(config))

    if not installer.import_package_key(uri, config.var_dir):
        console.print(f"[red]Failed to import package key {uri}[/red]")
        sys.exit(1)

    console.print(f"[green]Imported package key: {uri}[/green]")


@main.command()
@click.argument('filename')
@click.pass_obj
def download(config, filename):
    """Download release FILENAME from the configured mirror into the var directory."""
    try:
        Path(config.var_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        console.print(f"[red]Cannot create {config.var_dir}: {e}[/red]")
        sys.exit(1)

    if not download_release(filename, config.var_dir, _runner(config), base_url=config.download_base_url):
        console.print(f"[red]Failed to download {filename}[/red]")
        sys.exit(1)

    console.print(f"[green]Downloaded: {Path(config.var_dir) / filename}[/green]")


@main.command()
@click.argument('certificate', type=click.Path(exists=True, dir_okay=False))
@click.option('--app', default=None, help="Application descriptor, e.g. 'kolab 25'")
@click.option('--count', type=int, default=0, help='Seats currently in use')
def license(certificate, app, count):
    """Evaluate a license CERTIFICATE (PEM or DER)."""
    properties = LicenseProperties(key_body=Path(certificate).read_bytes(), app=app)
    evaluator = LicenseEvaluator(StaticLicenseStore(properties), usage_counter=lambda: count)
    summary = evaluator.to_dict()

    table = Table(title="License", show_header=True, header_style="bold cyan")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for key, value in summary.items():
        table.add_row(key, str(value))
    console.print(table)

    try:
        evaluator.check()
    except PhleskError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


@main.command(name='config')
@click.pass_obj
def show_config(config):
    """Show the effective configuration."""
    console.print("[bold cyan]Phlesk Configuration:[/bold cyan]")
    console.print(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False))


if __name__ == '__main__':
    main()
