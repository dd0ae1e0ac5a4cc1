#!/usr/bin/env python3
"""
Phlesk RPC Helpers
Queries through the panel's XML API
"""

import logging
from dataclasses import dataclass
from typing import Optional
from xml.etree.ElementTree import Element

from defusedxml import ElementTree

logger = logging.getLogger(__name__)


@dataclass
class MailPrefs:
    """Mail preferences of a site"""
    mailservice: bool
    nonexistent_user: Optional[str] = None
    spam_protect_sign: bool = False
    webmail: Optional[str] = None
    webmail_certificate: Optional[str] = None


def _text(element: Optional[Element], path: str) -> Optional[str]:
    if element is None:
        return None
    found = element.find(path)
    if found is None or found.text is None:
        return None
    return found.text.strip()


class RPC:
    """Typed wrappers around XML API packets"""

    def __init__(self, host):
        self.host = host

    def _call(self, request: str, login: Optional[str] = None) -> Element:
        response = self.host.rpc_call(request, login)
        return ElementTree.fromstring(response)

    def site_mail_prefs(self, domain_id: int) -> MailPrefs:
        request = f"""
            <mail>
                <get_prefs>
                    <filter>
                        <site-id>{int(domain_id)}</site-id>
                    </filter>
                </get_prefs>
            </mail>
        """
        prefs = self._call(request).find('./mail/get_prefs/result/prefs')

        return MailPrefs(
            mailservice=_text(prefs, 'mailservice') == "true",
            nonexistent_user=_text(prefs, 'nonexistent-user'),
            spam_protect_sign=_text(prefs, 'spam-protect-sign') == "true",
            webmail=_text(prefs, 'webmail'),
            webmail_certificate=_text(prefs, 'webmail-certificate'),
        )

    def request_mail_service_for_domain(self, domain_id: int) -> bool:
        return self.site_mail_prefs(domain_id).mailservice

    def is_poweruser_mode_enabled(self) -> bool:
        request = """
            <server>
                <get>
                    <gen_info/>
                </get>
            </server>
        """
        result = self._call(request, 'admin')

        for gen_info in result.findall('./server/get/result/gen_info'):
            if _text(gen_info, 'mode') == "poweruser":
                return True
        return False

    def mailbox_count(self, domain_id: int) -> int:
        """Number of mailboxes in a webspace"""
        request = f"""
            <webspace>
                <get>
                    <filter><id>{int(domain_id)}</id></filter>
                    <dataset><stat/></dataset>
                </get>
            </webspace>
        """
        stat = self._call(request, 'admin').find('./webspace/get/result/data/stat')
        value = _text(stat, 'box')

        try:
            return int(value) if value else 0
        except ValueError:
            logger.warning("Unexpected mailbox count %r for domain %s", value, domain_id)
            return 0
