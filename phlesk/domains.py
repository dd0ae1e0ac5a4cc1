#!/usr/bin/env python3
"""
Phlesk Domains
Session-aware domain enumeration and supplemental domain queries
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from phlesk.context import ExtensionContext
from phlesk.errors import DomainNotFoundError, PrimaryDomainNotFoundError
from phlesk.rpc import RPC

logger = logging.getLogger(__name__)

DomainFilter = Callable[[object], bool]

LIST_USERS_QUERY = """
    SELECT
        CONCAT(m.mail_name, '@', d.name) AS email,
        a.password AS password
    FROM mail m
        INNER JOIN accounts a ON m.account_id = a.id
        INNER JOIN domains d ON m.dom_id = d.id
    WHERE d.id = %s
"""


class DomainDirectory:
    """
    Domains visible to the current session, plus what the panel's own domain
    objects do not (reliably) tell.
    """

    def __init__(self, host, context: ExtensionContext, rpc: Optional[RPC] = None):
        """
        Args:
            host: phlesk.host.Host
            context: Context of the calling extension
            rpc: XML API helper (default: one over host)
        """
        self.host = host
        self.context = context
        self.rpc = rpc or RPC(host)

    # Enumeration

    def _session_domains(self, primary_only: bool) -> List:
        client = self.host.session_client()

        if client is None or client.is_admin():
            return list(self.host.all_domains(primary_only))

        if client.is_reseller():
            return [
                domain for domain in self.host.all_domains(primary_only)
                if client.has_access_to_domain(domain.id)
            ]

        return list(self.host.domains_by_client(client, primary_only))

    def get_all_domains(self, primary_only: bool = False, hosting: bool = False,
                        mail: bool = False, filters: Sequence[DomainFilter] = ()) -> List:
        """
        Domains the current session (if any) is able to access

        Args:
            primary_only: Only domains that are primary domains for a subscription
            hosting: Only domains that have hosting
            mail: Only domains that have mail service
            filters: Predicates every returned domain must satisfy

        Returns:
            List of HostDomain objects
        """
        results = []

        for domain in self._session_domains(primary_only):
            if hosting and not self.has_hosting(domain):
                continue

            if mail and not self.has_mail_service(domain):
                continue

            if not all(domain_filter(domain) for domain_filter in filters):
                continue

            results.append(domain)

        return results

    def get_accessible_domains(self, primary_only: bool = True) -> List:
        return self._session_domains(primary_only)

    # Lookups, always across all domains regardless of the session

    def get_domain_by_guid(self, guid: str):
        return next((d for d in self.host.all_domains(False) if d.guid == guid), None)

    def get_domain_by_id(self, domain_id: int):
        return next((d for d in self.host.all_domains(False) if d.id == int(domain_id)), None)

    def get_domain_by_name(self, name: str):
        return next((d for d in self.host.all_domains(False) if d.name == name), None)

    def get_domain_name_by_id(self, domain_id: int) -> Optional[str]:
        domain = self.get_domain_by_id(domain_id)
        return domain.name if domain else None

    # Subscriptions

    def subscription_domains(self, domain, primary_only: bool = True) -> List:
        """
        The (primary) domains of the subscription a domain belongs to

        There is no way up to the subscription, so go through the client and
        match webspaces by home directory.

        Args:
            domain: Any domain of the subscription
            primary_only: Leave out sub-domains and alias domains

        Returns:
            List of HostDomain objects, at least [domain]
        """
        return self._webspace_domains(domain, primary_only) or [domain]

    def _webspace_domains(self, domain, primary_only: bool) -> List:
        if not domain.has_hosting():
            return []

        home_path = domain.home_path()
        return [
            candidate for candidate in self.host.domains_by_client(domain.client(), primary_only)
            if candidate.has_hosting() and candidate.home_path() == home_path
        ]

    def get_primary_domain(self, guid: str):
        """
        The primary domain of the subscription a domain belongs to

        Args:
            guid: GUID of any domain in the subscription

        Returns:
            HostDomain

        Raises:
            DomainNotFoundError: No domain has this GUID (anymore)
            PrimaryDomainNotFoundError: The subscription has no primary domain
        """
        domain = self.get_domain_by_guid(guid)
        if domain is None:
            raise DomainNotFoundError(guid)

        primary = self._webspace_domains(domain, primary_only=True)
        if primary:
            return primary[0]

        # Without hosting there is no webspace to match; the domain may still
        # be the subscription's primary domain itself.
        client_primaries = self.host.domains_by_client(domain.client(), True)
        if any(candidate.guid == domain.guid for candidate in client_primaries):
            return domain

        raise PrimaryDomainNotFoundError(domain.name)

    def is_primary_domain(self, guid: str) -> bool:
        return any(domain.guid == guid for domain in self.get_all_domains(primary_only=True))

    # Supplemental queries

    def has_hosting(self, domain) -> bool:
        """
        Whether a domain currently has hosting

        A domain object may hold on to a stale answer, so a negative one is
        confirmed against a fresh lookup.
        """
        if domain.has_hosting():
            return True

        fresh = self.host.domain_by_guid(domain.guid)
        if fresh is None:
            return False

        if fresh.has_hosting():
            logger.debug("Domain %s gained hosting since it was loaded", domain.name)
            return True

        return False

    def has_mail_service(self, domain) -> bool:
        return self.rpc.request_mail_service_for_domain(domain.id)

    def is_primary(self, domain) -> bool:
        try:
            primary = self.get_primary_domain(domain.guid)
        except (DomainNotFoundError, PrimaryDomainNotFoundError) as e:
            logger.debug("Domain %s isn't a primary? %s", domain.name, e)
            return False

        return primary.guid == domain.guid

    @staticmethod
    def is_wildcard(domain) -> bool:
        return domain.name.startswith('_')

    @staticmethod
    def is_idn(domain) -> bool:
        return domain.name != domain.display_name

    def list_users(self, domain, decrypt: bool = False) -> List[Dict[str, str]]:
        """
        Mail accounts of a domain

        Args:
            domain: The domain to list users for
            decrypt: Decrypt the stored passwords

        Returns:
            List of {'email', 'password'} dicts
        """
        rows = self.host.query(LIST_USERS_QUERY, (domain.id,))

        return [
            {
                'email': row['email'],
                'password': self.host.decrypt(row['password']) if decrypt else row['password'],
            }
            for row in rows
        ]

    # Integration events

    def enable_integration(self, domain) -> None:
        """
        Let other extensions know the extension in context is being enabled
        for the domain (action 'ext_<module>_enable_domain' for listeners)
        """
        logger.debug("Triggering event 'enable_domain'")
        self.host.submit_action('enable_domain', domain.id, [], [self.context.module_id])

    def disable_integration(self, domain) -> None:
        """Counterpart of enable_integration()"""
        logger.debug("Triggering event 'disable_domain'")
        self.host.submit_action('disable_domain', domain.id, [self.context.module_id], [])
