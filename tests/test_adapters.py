"""
Tests for package manager adapters
"""
import pytest

from phlesk.platform.adapters import (
    AptAdapter,
    DnfAdapter,
    UnsupportedAdapter,
    YumAdapter,
    get_adapter,
    install_command,
    is_available,
    is_installed,
)
from phlesk.platform.detector import Platform

DPKG_INSTALLED = """\
Desired=Unknown/Install/Remove/Purge/Hold
||/ Name           Version      Architecture Description
+++-==============-============-============-=================================
ii  wget           1.20.1-1.1   amd64        retrieves files from the web
"""

DPKG_REMOVED = DPKG_INSTALLED.replace("ii  wget", "rc  wget")


class TestGetAdapter:
    @pytest.mark.parametrize("platform,adapter_class", [
        (Platform.BUSTER, AptAdapter),
        (Platform.FOCAL, AptAdapter),
        (Platform.MAIPO, YumAdapter),
        (Platform.SANTIAGO, YumAdapter),
        (Platform.OOTPA, DnfAdapter),
        (Platform.UNKNOWN, UnsupportedAdapter),
    ])
    def test_adapter_for_platform(self, runner, platform, adapter_class):
        assert isinstance(get_adapter(platform, runner), adapter_class)


class TestAptAdapter:
    def test_install_command_apt_get(self, runner):
        runner.on('dpkg', '-l', 'aptitude', code=1)

        command = AptAdapter(runner).install_command()

        assert command[0] == 'apt-get'
        assert command[-1] == 'install'
        assert '--assume-yes' in command
        assert 'APT::Install-Recommends=no' in command

    def test_install_command_prefers_installed_aptitude(self, runner):
        runner.on('dpkg', '-l', 'aptitude', stdout=DPKG_INSTALLED.replace('wget', 'aptitude'))

        assert AptAdapter(runner).install_command()[0] == 'aptitude'

    def test_is_installed_requires_ii_row(self, runner):
        runner.on('dpkg', '-l', 'wget', stdout=DPKG_INSTALLED)
        assert AptAdapter(runner).is_installed('wget')

        runner.on('dpkg', '-l', 'wget', stdout=DPKG_REMOVED)
        assert not AptAdapter(runner).is_installed('wget')

    def test_is_available(self, runner):
        runner.on('apt-cache', 'show', 'nonexistent', code=100)

        adapter = AptAdapter(runner)
        assert adapter.is_available('wget')
        assert not adapter.is_available('nonexistent')


class TestRpmAdapters:
    def test_yum(self, runner):
        runner.on('rpm', '-qv', 'wget', code=1)
        adapter = YumAdapter(runner)

        assert install_command(Platform.MAIPO, runner) == ['yum', '-y', 'install']
        assert not adapter.is_installed('wget')
        assert adapter.is_available('wget')
        assert ['yum', 'list', 'wget'] in runner.calls

    def test_dnf(self, runner):
        adapter = DnfAdapter(runner)

        assert adapter.install_command() == ['dnf', '-y', 'install']
        assert adapter.is_available('wget')
        assert ['dnf', 'list', 'wget'] in runner.calls


class TestUnsupportedAdapter:
    def test_everything_fails_softly(self, runner, caplog):
        adapter = get_adapter(Platform.UNKNOWN, runner, "Gentoo")

        assert adapter.install_command() == []
        assert not adapter.is_installed('wget')
        assert not adapter.is_available('wget')
        assert runner.calls == []
        assert "Phlesk does not support the package manager for Gentoo" in caplog.text


class TestModuleHelpers:
    def test_helpers_dispatch_on_platform(self, runner):
        runner.on('rpm', '-qv', 'ghost', code=1)
        runner.on('dnf', 'list', 'ghost', code=1)

        assert is_installed(Platform.OOTPA, 'wget', runner)
        assert not is_installed(Platform.OOTPA, 'ghost', runner)
        assert not is_available(Platform.OOTPA, 'ghost', runner)
        assert install_command(Platform.UNKNOWN, runner) == []
