"""
Tests for dialing, session options and closing connections.
"""

import logging
import threading
import unittest
from unittest.mock import patch

import django
import ldap
from django.conf import settings
from django.test import override_settings
from ldap_faker.unittest import LDAPFakerMixin

from ldapclient.connection import Connection, default_timeout, dial, parse_address
from ldapclient.constants import DEFAULT_TIMEOUT
from ldapclient.errors import (
    ERROR_NETWORK,
    ConnectionClosedError,
    NetworkError,
)
from ldapclient.requests import SearchRequest
from ldapclient.session import ConnectionState

if not settings.configured:
    settings.configure(
        LDAP_SERVERS={
            "default": {
                "url": "ldap://localhost:389",
                "user": "cn=admin,dc=example,dc=org",
                "password": "admin",
                "basedn": "dc=example,dc=org",
                "secured": False,
            }
        }
    )
    django.setup()


class TestParseAddress(unittest.TestCase):
    def test_schemes(self):
        self.assertEqual(parse_address("ldap://ldap.example.org"), ("ldap", "ldap.example.org"))
        self.assertEqual(
            parse_address("ldaps://ldap.example.org:636"), ("ldaps", "ldap.example.org:636")
        )
        self.assertEqual(
            parse_address("cldap://dc1.example.org"), ("cldap", "dc1.example.org")
        )

    def test_ldapi_needs_no_host(self):
        self.assertEqual(parse_address("ldapi://"), ("ldapi", ""))
        self.assertEqual(
            parse_address("ldapi://%2Fvar%2Frun%2Fslapd%2Fldapi"),
            ("ldapi", "%2Fvar%2Frun%2Fslapd%2Fldapi"),
        )

    def test_unknown_scheme(self):
        with self.assertRaises(NetworkError) as cm:
            parse_address("http://ldap.example.org")
        self.assertEqual(cm.exception.result_code, ERROR_NETWORK)

    def test_missing_host(self):
        with self.assertRaises(NetworkError):
            parse_address("ldap://")

    def test_not_a_url(self):
        with self.assertRaises(NetworkError):
            parse_address("ldap.example.org")


class TestDefaultTimeout(unittest.TestCase):
    def test_default(self):
        self.assertEqual(default_timeout(), DEFAULT_TIMEOUT)

    @override_settings(LDAPCLIENT_DEFAULT_TIMEOUT=5)
    def test_settings_override(self):
        self.assertEqual(default_timeout(), 5)


class TestDial(LDAPFakerMixin, unittest.TestCase):
    ldap_modules = ["ldapclient"]
    ldap_fixtures = [("data.json", "ldap://localhost:389", [])]

    def options(self, conn: Connection) -> dict:
        return {
            call.args["option"]: call.args["invalue"]
            for call in self.ldap_faker.connection_calls(api_name="set_option").calls
        }

    def test_returns_unbound_connection(self):
        conn = dial("ldap://localhost:389")
        self.assertIsInstance(conn, Connection)
        self.assertEqual(conn.state, ConnectionState.UNBOUND)
        self.assertEqual(conn.host, "localhost:389")
        self.assertEqual(conn.scheme, "ldap")
        self.assertEqual(conn.timeout, DEFAULT_TIMEOUT)
        self.assertEqual(len(self.ldap_faker.connections), 1)

    def test_session_options_with_default_timeout(self):
        conn = dial("ldap://localhost:389")
        options = self.options(conn)
        self.assertEqual(options[ldap.OPT_PROTOCOL_VERSION], ldap.VERSION3)
        self.assertEqual(options[ldap.OPT_REFERRALS], 0)
        self.assertEqual(options[ldap.OPT_NETWORK_TIMEOUT], float(DEFAULT_TIMEOUT))
        self.assertEqual(options[ldap.OPT_TIMEOUT], float(DEFAULT_TIMEOUT))
        self.assertNotIn(ldap.OPT_TIMELIMIT, options)

    def test_unbounded_timeout_sets_no_timeout_options(self):
        conn = dial("ldap://localhost:389", timeout=-1, time_limit=30)
        options = self.options(conn)
        self.assertNotIn(ldap.OPT_NETWORK_TIMEOUT, options)
        self.assertNotIn(ldap.OPT_TIMEOUT, options)
        self.assertEqual(options[ldap.OPT_TIMELIMIT], 30)
        self.assertEqual(conn.timeout, -1)
        self.assertEqual(conn.time_limit, 30)

    def test_unknown_server_is_a_network_error(self):
        with self.assertRaises(NetworkError) as cm:
            dial("ldap://nowhere.example.org")
        self.assertEqual(cm.exception.result_code, ERROR_NETWORK)
        self.assertIn("nowhere.example.org", cm.exception.msg)

    def test_bad_scheme_makes_no_session(self):
        with self.assertRaises(NetworkError):
            dial("directory://localhost:389")
        self.assertEqual(self.ldap_faker.connections, [])

    def test_default_logger(self):
        conn = dial("ldap://localhost:389")
        self.assertIs(conn.logger, logging.getLogger("django-ldapclient"))

    def test_uses_given_logger(self):
        with self.assertLogs("ldapclient.tests", level="DEBUG") as cm:
            conn = dial("ldap://localhost:389", logger=logging.getLogger("ldapclient.tests"))
        self.assertEqual(conn.logger.name, "ldapclient.tests")
        self.assertTrue(any("ldapclient.connection.dial" in line for line in cm.output))


class TestClose(LDAPFakerMixin, unittest.TestCase):
    ldap_modules = ["ldapclient"]
    ldap_fixtures = [("data.json", "ldap://localhost:389", [])]

    def test_close_unbinds(self):
        conn = dial("ldap://localhost:389")
        conn.simple_bind("cn=admin,dc=example,dc=org", "admin")
        conn.close()
        self.assertEqual(conn.state, ConnectionState.CLOSED)
        self.assertTrue(conn.closed)
        self.assertEqual(len(self.ldap_faker.connection_calls(api_name="unbind_s").calls), 1)
        self.assertIsNone(self.ldap_faker.connections[0].bound_dn)

    def test_close_is_idempotent(self):
        conn = dial("ldap://localhost:389")
        conn.close()
        conn.close()
        self.assertEqual(len(self.ldap_faker.connection_calls(api_name="unbind_s").calls), 1)

    def test_context_manager_closes(self):
        with dial("ldap://localhost:389") as conn:
            self.assertEqual(conn.state, ConnectionState.UNBOUND)
        self.assertTrue(conn.closed)

    def test_operations_after_close_fail(self):
        conn = dial("ldap://localhost:389")
        conn.close()
        with self.assertRaises(ConnectionClosedError) as cm:
            conn.search(SearchRequest("dc=example,dc=org"))
        self.assertEqual(cm.exception.result_code, ERROR_NETWORK)
        with self.assertRaises(ConnectionClosedError):
            conn.delete("uid=bob,ou=users,dc=example,dc=org")
        with self.assertRaises(ConnectionClosedError):
            conn.simple_bind("cn=admin,dc=example,dc=org", "admin")
        with self.assertRaises(ConnectionClosedError):
            conn.start_tls()

    def test_close_waits_for_in_flight_operation(self):
        conn = dial("ldap://localhost:389")
        conn.simple_bind("cn=admin,dc=example,dc=org", "admin")
        started = threading.Event()
        release = threading.Event()
        order: list[str] = []
        real_search = conn.session.search

        def slow_search(*args, **kwargs):
            started.set()
            release.wait(5)
            result = real_search(*args, **kwargs)
            order.append("search")
            return result

        def closer():
            started.wait(5)
            conn.close()
            order.append("close")

        with patch.object(conn.session, "search", side_effect=slow_search):
            thread = threading.Thread(target=closer)
            thread.start()
            searcher = threading.Thread(
                target=conn.dn_exists, args=("ou=users,dc=example,dc=org",)
            )
            searcher.start()
            started.wait(5)
            release.set()
            searcher.join(5)
            thread.join(5)
        self.assertEqual(order, ["search", "close"])
        self.assertTrue(conn.closed)
