"""
Tests for the DN helpers and SRV based server discovery.
"""

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import dns.resolver

from ldapclient.errors import NetworkError
from ldapclient.utils import DNS_LIFETIME, dn2domain, domain2dn, first_rdn, get_ldap_servers


def srv(target: str, port: int = 389, priority: int = 0, weight: int = 100):
    return SimpleNamespace(target=f"{target}.", port=port, priority=priority, weight=weight)


class TestDNHelpers(unittest.TestCase):
    def test_domain2dn(self):
        self.assertEqual(domain2dn("example.org"), "DC=example,DC=org")
        self.assertEqual(domain2dn("ad.example.org."), "DC=ad,DC=example,DC=org")

    def test_dn2domain(self):
        self.assertEqual(dn2domain("DC=example,DC=org"), "example.org")
        self.assertEqual(
            dn2domain("CN=Alice,OU=Users,dc=ad,dc=example,dc=org"), "ad.example.org"
        )

    def test_dn2domain_without_dc(self):
        self.assertEqual(dn2domain("cn=admin,o=example"), "")

    def test_first_rdn(self):
        self.assertEqual(first_rdn("uid=alice,ou=users,dc=example,dc=org"), "uid=alice")
        self.assertEqual(first_rdn("dc=org"), "dc=org")

    def test_first_rdn_of_bad_dn(self):
        with self.assertRaises(ValueError):
            first_rdn("")
        with self.assertRaises(ValueError):
            first_rdn("this is not a dn")


class TestGetLDAPServers(unittest.TestCase):
    def setUp(self):
        self.answers = {}
        self.resolver = MagicMock()
        self.resolver.resolve.side_effect = self.resolve
        patcher = patch("dns.resolver.Resolver", return_value=self.resolver)
        patcher.start()
        self.addCleanup(patcher.stop)

    def resolve(self, name, rdtype):
        self.assertEqual(rdtype, "SRV")
        try:
            return self.answers[name]
        except KeyError:
            raise dns.resolver.NXDOMAIN() from None

    def test_domain_records_in_priority_order(self):
        self.answers["_ldap._tcp.example.org"] = [
            srv("dc3.example.org", priority=10),
            srv("dc1.example.org", weight=50),
            srv("dc2.example.org", weight=100),
        ]
        self.assertEqual(
            get_ldap_servers("example.org"),
            ["dc2.example.org:389", "dc1.example.org:389", "dc3.example.org:389"],
        )
        self.assertEqual(self.resolver.lifetime, DNS_LIFETIME)

    def test_site_records_come_first(self):
        self.answers["_ldap._tcp.Pasadena._sites.example.org"] = [srv("dc2.example.org")]
        self.answers["_ldap._tcp.example.org"] = [
            srv("dc1.example.org"),
            srv("dc2.example.org"),
        ]
        self.assertEqual(
            get_ldap_servers("example.org", "Pasadena"),
            ["dc2.example.org:389", "dc1.example.org:389"],
        )

    def test_site_lookup_failure_is_skipped(self):
        self.answers["_ldap._tcp.example.org"] = [srv("dc1.example.org", port=3268)]
        with self.assertLogs("django-ldapclient", level="WARNING") as cm:
            servers = get_ldap_servers("example.org", "Nowhere")
        self.assertEqual(servers, ["dc1.example.org:3268"])
        self.assertIn("site-lookup-failed", cm.output[0])

    def test_domain_lookup_failure(self):
        with self.assertRaises(NetworkError) as cm:
            get_ldap_servers("example.org")
        self.assertIn("_ldap._tcp.example.org", cm.exception.msg)
