"""
Tests for extension context switching
"""
import pytest

from phlesk.context import ExtensionContext


class TestExtensionContext:
    def test_enter_and_leave(self, host):
        context = ExtensionContext(host, 'Kolab')

        previous = context.enter('seafile')
        assert previous == 'kolab'
        assert context.module_id == 'seafile'

        assert context.leave(previous, "result") == "result"
        assert context.module_id == 'kolab'
        assert host.contexts == ['seafile', 'kolab']

    def test_same_context_is_not_switched(self, host):
        context = ExtensionContext(host, 'kolab')

        previous = context.enter('KOLAB')
        context.leave(previous)

        assert host.contexts == []

    def test_switched_restores_on_error(self, host):
        context = ExtensionContext(host, 'kolab')

        with pytest.raises(RuntimeError):
            with context.switched('seafile'):
                assert context.module_id == 'seafile'
                raise RuntimeError("boom")

        assert context.module_id == 'kolab'
        assert host.contexts == ['seafile', 'kolab']


def test_host_defaults(host):
    assert host.var_dir('kolab') == "/usr/local/psa/var/modules/kolab"
    assert host.os_name() == "CentOS"
