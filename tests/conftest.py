"""
Shared fixtures for Phlesk tests

A recording command runner, an in-memory control panel and self-signed
license certificates.
"""
import base64
import json
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from phlesk.host import Host, HostClient, HostDomain
from phlesk.license import NS_COMMENT_OID
from phlesk.runner import CommandResult, CommandRunner


class FakeRunner(CommandRunner):
    """Records commands; answers from rules matched on the command prefix"""

    def __init__(self):
        super().__init__()
        self.calls: List[List[str]] = []
        self.rules: List[Tuple[Tuple[str, ...], CommandResult]] = []
        self.default = CommandResult(0)

    def on(self, *prefix: str, code: int = 0, stdout: str = "", stderr: str = ""):
        self.rules.insert(0, (tuple(prefix), CommandResult(code, stdout, stderr, tuple(prefix))))
        return self

    def exec(self, command, tolerant=False):
        command = [str(part) for part in command]
        self.calls.append(command)
        for prefix, result in self.rules:
            if tuple(command[:len(prefix)]) == prefix:
                return CommandResult(result.exit_code, result.stdout, result.stderr, tuple(command))
        return CommandResult(self.default.exit_code, "", "", tuple(command))

    def commands_starting(self, *prefix: str) -> List[List[str]]:
        return [call for call in self.calls if tuple(call[:len(prefix)]) == prefix]


class FakeClient(HostClient):
    def __init__(self, role: str = 'client', accessible=()):
        self.role = role
        self.accessible = set(accessible)

    def is_admin(self) -> bool:
        return self.role == 'admin'

    def is_reseller(self) -> bool:
        return self.role == 'reseller'

    def has_access_to_domain(self, domain_id: int) -> bool:
        return domain_id in self.accessible


class FakeDomain(HostDomain):
    def __init__(self, domain_id: int, name: str, owner: Optional[FakeClient] = None,
                 hosting: bool = True, home: Optional[str] = None, primary: bool = True,
                 active: bool = True, permissions=(), display_name: Optional[str] = None):
        self.id = domain_id
        self.guid = f"guid-{domain_id}"
        self.name = name
        self.display_name = display_name or name
        self.owner = owner or FakeClient()
        self.hosting = hosting
        self.home = home or f"/var/www/vhosts/{name}"
        self.primary = primary
        self.active = active
        self.permissions = set(permissions)

    def is_active(self) -> bool:
        return self.active

    def has_hosting(self) -> bool:
        return self.hosting

    def home_path(self) -> Optional[str]:
        return self.home if self.hosting else None

    def client(self) -> HostClient:
        return self.owner

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


class FakeHost(Host):
    """In-memory control panel"""

    def __init__(self, os_name: str = "CentOS", os_version: str = "7.9.2009"):
        self._os_name = os_name
        self._os_version = os_version
        self.domains: List[FakeDomain] = []
        self.client: Optional[FakeClient] = None
        self.actions: List[tuple] = []
        self.settings: Dict[str, object] = {}
        self.queries: List[tuple] = []
        self.query_handler: Callable[[str, tuple], List[dict]] = lambda sql, params: []
        self.rpc_handler: Callable[[str, Optional[str]], str] = lambda request, login: "<packet/>"
        self.licenses: Dict[str, dict] = {}
        self.server_license: Dict[str, object] = {}
        self.contexts: List[str] = []
        self.fresh: Dict[str, FakeDomain] = {}

    def os_name(self) -> str:
        return self._os_name

    def os_version(self) -> str:
        return self._os_version

    def all_domains(self, primary_only: bool = False):
        return [d for d in self.domains if d.primary or not primary_only]

    def domains_by_client(self, client, primary_only: bool = False):
        return [d for d in self.all_domains(primary_only) if d.owner is client]

    def domain_by_guid(self, guid: str):
        if guid in self.fresh:
            return self.fresh[guid]
        return next((d for d in self.domains if d.guid == guid), None)

    def session_client(self):
        return self.client

    def submit_action(self, action, object_id, old_values, new_values):
        self.actions.append((action, object_id, list(old_values), list(new_values)))

    def get_setting(self, name, default=None):
        return self.settings.get(name, default)

    def set_setting(self, name, value):
        self.settings[name] = value

    def query(self, sql, params=()):
        self.queries.append((sql, tuple(params)))
        return self.query_handler(sql, tuple(params))

    def rpc_call(self, request, login=None):
        return self.rpc_handler(request, login)

    def license_properties(self, module_id):
        return self.licenses.get(module_id)

    def server_license_properties(self):
        return self.server_license

    def switch_context(self, module_id):
        self.contexts.append(module_id)

    def decrypt(self, value):
        return f"plain:{value}"


def der_ia5(text: str) -> bytes:
    """DER encode an IA5String"""
    data = text.encode('ascii')
    if len(data) < 0x80:
        return bytes([0x16, len(data)]) + data
    length = len(data).to_bytes((len(data).bit_length() + 7) // 8, 'big')
    return bytes([0x16, 0x80 | len(length)]) + length + data


def make_certificate(valid_from: datetime, valid_to: datetime,
                     users: Optional[int] = None, comment: Optional[str] = None,
                     encoding: serialization.Encoding = serialization.Encoding.PEM) -> bytes:
    """Self-signed certificate, optionally with a seat limit comment"""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "phlesk-test")])

    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(valid_from)
        .not_valid_after(valid_to)
    )

    if users is not None:
        comment = base64.b64encode(json.dumps({'users': users}).encode()).decode()
    if comment is not None:
        builder = builder.add_extension(
            x509.UnrecognizedExtension(NS_COMMENT_OID, der_ia5(comment)),
            critical=False,
        )

    certificate = builder.sign(key, hashes.SHA256())
    return certificate.public_bytes(encoding)


def utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def fixed_clock():
    """Clock factory: fixed_clock(datetime) -> callable"""
    def _make(moment: datetime):
        return lambda: moment
    return _make


@pytest.fixture
def current_certificate():
    """Certificate valid from 30 days ago for one year"""
    def _make(**kwargs) -> bytes:
        now = datetime.now(timezone.utc)
        return make_certificate(now - timedelta(days=30), now + timedelta(days=335), **kwargs)
    return _make
