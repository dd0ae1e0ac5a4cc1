#!/usr/bin/env python3
"""
Phlesk Licensing
Expiry, renewal and seat limit evaluation of an extension's license certificate
"""

import base64
import binascii
import calendar
import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from cryptography import x509
from cryptography.x509.oid import ObjectIdentifier

from phlesk.errors import LicenseExpiredError, LicenseInvalidError, LicenseUnavailableError

logger = logging.getLogger(__name__)

# Netscape comment extension, carries the vendor's JSON payload
NS_COMMENT_OID = ObjectIdentifier("2.16.840.1.113730.1.13")

UNLIMITED = -1
RENEWAL_NOTICE = timedelta(days=14)


class LicenseState(Enum):
    """Lifecycle of the license within one evaluator"""
    NO_LICENSE = "no-license"
    CURRENT = "current"
    PENDING_RENEWAL = "pending-renewal"
    EXPIRED = "expired"


@dataclass(frozen=True)
class LicenseProperties:
    """License payload as handed out by the panel's license store"""
    key_body: Union[bytes, str]
    app: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Optional['LicenseProperties']:
        """Build from the panel's property mapping ('key-body', 'app')"""
        key_body = data.get('key-body') or data.get('key_body')
        if not key_body:
            return None
        return cls(key_body=key_body, app=data.get('app'))


@dataclass(frozen=True)
class License:
    """Parsed license"""
    certificate: x509.Certificate
    seat_limit: int
    valid_from: datetime
    expiry: datetime
    renewal: datetime

    @property
    def is_unlimited(self) -> bool:
        return self.seat_limit < 0


class LicenseStore(ABC):
    """Where a license comes from"""

    @abstractmethod
    def fetch(self) -> Optional[LicenseProperties]:
        """
        Fetch the license

        Returns:
            LicenseProperties, or None when no license is available
        """
        pass


class HostLicenseStore(LicenseStore):
    """Additional license key the panel holds for an extension"""

    def __init__(self, host, module_id: str):
        self.host = host
        self.module_id = module_id

    def fetch(self) -> Optional[LicenseProperties]:
        properties = self.host.license_properties(self.module_id)
        if not properties:
            return None
        return LicenseProperties.from_mapping(properties)


class StaticLicenseStore(LicenseStore):
    """A fixed license, e.g. a development certificate"""

    def __init__(self, properties: Optional[LicenseProperties]):
        self.properties = properties

    def fetch(self) -> Optional[LicenseProperties]:
        return self.properties


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar month addition, clamped to the last day of the target month"""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def renewal_date(valid_from: datetime, valid_to: datetime) -> datetime:
    """
    Renewal is due one month into the certificate, or two weeks before it
    expires, whichever comes last.
    """
    return max(add_months(valid_from, 1), valid_to - RENEWAL_NOTICE)


def warning_threshold(limit: int) -> int:
    """Usage count at which a limit should start warning"""
    if limit <= 20:
        ratio = 0.8
    elif limit <= 200:
        ratio = 0.9
    else:
        ratio = 0.95
    return math.floor(limit * ratio)


def format_date(value: Optional[date]) -> str:
    """Render a date as e.g. 'January 5, 2025'"""
    if value is None:
        return ""
    return f"{value:%B} {value.day}, {value.year}"


def load_certificate(key_body: Union[bytes, str]) -> x509.Certificate:
    """Load a PEM or DER certificate, ValueError if it is neither"""
    data = key_body.encode() if isinstance(key_body, str) else key_body
    if b"-----BEGIN" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def _der_string(data: bytes) -> str:
    """Content of a DER encoded string value (IA5String, UTF8String, ...)"""
    if len(data) < 2 or data[0] not in (0x0c, 0x13, 0x16):
        return data.decode('ascii', errors='ignore')

    length = data[1]
    offset = 2
    if length & 0x80:
        size = length & 0x7f
        length = int.from_bytes(data[2:2 + size], 'big')
        offset = 2 + size
    return data[offset:offset + length].decode('utf-8', errors='ignore')


def comment_seat_limit(certificate: x509.Certificate) -> Optional[int]:
    """Seat limit from the vendor comment extension, None if the certificate has none"""
    try:
        extension = certificate.extensions.get_extension_for_oid(NS_COMMENT_OID)
    except x509.ExtensionNotFound:
        return None

    raw = extension.value
    value = getattr(raw, 'value', raw)
    comment = _der_string(value) if isinstance(value, bytes) else str(value)

    try:
        payload = json.loads(base64.b64decode(comment))
        return int(payload['users'])
    except (binascii.Error, ValueError, TypeError, KeyError) as e:
        logger.warning("Cannot read seat limit from license comment: %s", e)
        return 0


def app_seat_limit(app: Optional[str]) -> int:
    """Seat limit trailing the application descriptor, e.g. 'kolab 25'"""
    try:
        return int(app.split(' ')[1])
    except (AttributeError, IndexError, ValueError):
        logger.warning("Cannot read seat limit from license descriptor %r", app)
        return 0


def parse_license(properties: LicenseProperties) -> License:
    """
    Parse a license payload

    Args:
        properties: Payload from a LicenseStore

    Returns:
        License

    Raises:
        ValueError: The certificate cannot be loaded
    """
    certificate = load_certificate(properties.key_body)
    valid_from = certificate.not_valid_before_utc
    valid_to = certificate.not_valid_after_utc

    seat_limit = comment_seat_limit(certificate)
    if seat_limit is None:
        seat_limit = app_seat_limit(properties.app)

    return License(
        certificate=certificate,
        seat_limit=seat_limit,
        valid_from=valid_from,
        expiry=valid_to,
        renewal=renewal_date(valid_from, valid_to),
    )


def count_mailboxes(domains: Iterable, rpc) -> int:
    """
    Number of mailboxes on the active domains

    Args:
        domains: HostDomain objects
        rpc: phlesk.rpc.RPC used for the per-domain statistics

    Returns:
        Total mailbox count
    """
    count = 0
    for domain in domains:
        if not domain.is_active():
            continue
        count += rpc.mailbox_count(domain.id)
    return count


class LicenseEvaluator:
    """
    License checks for one extension.

    Construct one evaluator per process (or session) and pass it to whoever
    needs license answers. The license is fetched from the store on first use
    only; if that fails, the evaluator stays without a license.

    Subclass and override activate_system() to run the steps that make the
    license effective (e.g. registering package repositories).
    """

    def __init__(self, store: LicenseStore,
                 usage_counter: Optional[Callable[[], int]] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            store: Source of the license
            usage_counter: Returns the number of seats in use
            clock: Returns the current time (timezone aware)
        """
        self.store = store
        self.usage_counter = usage_counter
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self._fetched = False
        self._license: Optional[License] = None
        self._count: Optional[int] = None

    def get_license(self) -> Optional[License]:
        """Fetch the license on first call, return the cached one afterwards"""
        if self._fetched:
            return self._license
        self._fetched = True

        properties = self.store.fetch()
        if properties is None:
            logger.debug("No license available.")
            return None

        try:
            self._license = parse_license(properties)
        except ValueError as e:
            logger.warning("License certificate cannot be parsed: %s", e)
            return None

        self.activate()
        return self._license

    @property
    def state(self) -> LicenseState:
        license = self.get_license()
        if license is None:
            return LicenseState.NO_LICENSE

        now = self.clock()
        if now > license.expiry:
            return LicenseState.EXPIRED
        if now > license.renewal:
            return LicenseState.PENDING_RENEWAL
        return LicenseState.CURRENT

    def is_current(self) -> bool:
        """True for a license that has not expired yet"""
        state = self.state

        if state == LicenseState.NO_LICENSE:
            return False

        if state == LicenseState.EXPIRED:
            logger.debug("License expired.")
            return False

        if state == LicenseState.PENDING_RENEWAL:
            logger.debug("License pending renewal.")

        return True

    def is_licensed(self) -> bool:
        """A license is available and current"""
        if self.get_license() is None:
            logger.debug("Can not validate license.")
            return False

        return self.is_current()

    def is_valid(self) -> bool:
        """A license is available, current and grants seats"""
        if not self.is_licensed():
            return False

        # A license body never carries a limit of 0
        return self.license_limit() != 0

    def license_limit(self) -> int:
        """
        Seat limit of the license

        Returns:
            -1 for unlimited, 0 without a (current) license, the limit otherwise
        """
        license = self.get_license()
        if license is None or not self.is_current():
            return 0
        return license.seat_limit

    def license_count(self) -> int:
        """Seats currently in use (counted once)"""
        if self._count is None:
            self._count = int(self.usage_counter()) if self.usage_counter else 0
        return self._count

    def license_warning_threshold(self) -> bool:
        """Whether usage is close enough to the limit to warn about it

        Without a current license the limit is 0, so any usage (even none)
        warns. An unlimited license (limit -1) never warns.
        """
        limit = self.license_limit()
        if limit < 0:
            return False

        return self.license_count() >= warning_threshold(limit)

    def expire_date(self) -> Optional[date]:
        license = self.get_license()
        if license is None:
            logger.warning("Could not obtain license expiry date. No license available.")
            return None
        return license.expiry.date()

    def renew_date(self) -> Optional[date]:
        license = self.get_license()
        if license is None:
            logger.warning("Could not obtain license renewal date. No license available.")
            return None
        return license.renewal.date()

    def activate(self) -> bool:
        """Make the license effective, such that package repositories and friends work"""
        if self._license is None:
            logger.warning("License could not be activated; no license available")
            return False

        return self.activate_system()

    def activate_system(self) -> bool:
        return True

    def check(self) -> License:
        """
        Require a usable license

        Returns:
            The License

        Raises:
            LicenseUnavailableError: No license could be obtained
            LicenseExpiredError: The license is past its expiry date
            LicenseInvalidError: The license grants no seats
        """
        license = self.get_license()
        if license is None:
            raise LicenseUnavailableError("No license available.")

        if self.state == LicenseState.EXPIRED:
            raise LicenseExpiredError(f"License expired on {format_date(license.expiry.date())}.")

        if license.seat_limit == 0:
            raise LicenseInvalidError("License does not grant any seats.")

        return license

    def to_dict(self) -> Dict[str, Any]:
        """Summary for display and statistics"""
        return {
            'state': self.state.value,
            'licensed': self.is_licensed(),
            'valid': self.is_valid(),
            'limit': self.license_limit(),
            'count': self.license_count(),
            'warning': self.license_warning_threshold(),
            'expires': format_date(self.expire_date()),
            'renews': format_date(self.renew_date()),
        }
