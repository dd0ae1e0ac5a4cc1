#!/usr/bin/env python3
"""
Phlesk Host Interface
Abstract view of the control panel runtime that Phlesk is embedded in
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence


class HostClient(ABC):
    """A panel account (administrator, reseller or customer)"""

    @abstractmethod
    def is_admin(self) -> bool:
        pass

    @abstractmethod
    def is_reseller(self) -> bool:
        pass

    @abstractmethod
    def has_access_to_domain(self, domain_id: int) -> bool:
        pass


class HostDomain(ABC):
    """A domain as known to the panel"""

    id: int
    guid: str
    name: str
    display_name: str

    @abstractmethod
    def is_active(self) -> bool:
        pass

    @abstractmethod
    def has_hosting(self) -> bool:
        pass

    @abstractmethod
    def home_path(self) -> Optional[str]:
        """Webspace home directory (only meaningful with hosting)"""
        pass

    @abstractmethod
    def client(self) -> HostClient:
        pass

    @abstractmethod
    def has_permission(self, permission: str) -> bool:
        pass


class Host(ABC):
    """
    Control panel runtime.

    Phlesk never implements these itself; the embedding extension supplies an
    implementation bridging to the panel's own API.
    """

    # Product information

    @abstractmethod
    def os_name(self) -> str:
        """Operating system name, e.g. 'CentOS', 'Debian'"""
        pass

    @abstractmethod
    def os_version(self) -> str:
        pass

    # Domains and sessions

    @abstractmethod
    def all_domains(self, primary_only: bool = False) -> List[HostDomain]:
        pass

    @abstractmethod
    def domains_by_client(self, client: HostClient, primary_only: bool = False) -> List[HostDomain]:
        pass

    @abstractmethod
    def domain_by_guid(self, guid: str) -> Optional[HostDomain]:
        """Fresh lookup of a domain, None if it no longer exists"""
        pass

    @abstractmethod
    def session_client(self) -> Optional[HostClient]:
        """Client of the current session, None outside a session"""
        pass

    # Events

    @abstractmethod
    def submit_action(self, action: str, object_id: int,
                      old_values: Sequence[str], new_values: Sequence[str]) -> None:
        pass

    # Settings store of the current extension

    @abstractmethod
    def get_setting(self, name: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set_setting(self, name: str, value: Any) -> None:
        pass

    # Panel database and API

    @abstractmethod
    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a query against the panel database, rows as dicts"""
        pass

    @abstractmethod
    def rpc_call(self, request: str, login: Optional[str] = None) -> str:
        """Send an XML API packet, return the response document"""
        pass

    # Licensing

    @abstractmethod
    def license_properties(self, module_id: str) -> Optional[Dict[str, Any]]:
        """Additional license key for an extension ('key-body', 'app', ...)"""
        pass

    @abstractmethod
    def server_license_properties(self) -> Dict[str, Any]:
        """Properties of the panel's own license"""
        pass

    # Extension context

    @abstractmethod
    def switch_context(self, module_id: str) -> None:
        pass

    def var_dir(self, module_id: str) -> str:
        return f"/usr/local/psa/var/modules/{module_id}"

    def decrypt(self, value: str) -> str:
        """Decrypt a value stored encrypted by the panel"""
        return value
