"""
Tests for result code descriptions, error rendering and python-ldap error
translation.
"""

import unittest

import ldap

from ldapclient.errors import (
    ERROR_EMPTY_PASSWORD,
    ERROR_NETWORK,
    LDAP_CONNECT_ERROR,
    LDAP_INVALID_CREDENTIALS,
    LDAP_NO_SUCH_OBJECT,
    LDAP_PARAM_ERROR,
    LDAP_SERVER_DOWN,
    LDAP_SYNC_REFRESH_REQUIRED,
    UNKNOWN_RESULT_CODE,
    ConnectionClosedError,
    ConnectionStateError,
    EmptyPasswordError,
    LDAPError,
    NetworkError,
    ParamError,
    describe,
    parse_error_message,
    translate,
)


class TestDescribe(unittest.TestCase):
    def test_known_server_code(self):
        self.assertEqual(describe(LDAP_INVALID_CREDENTIALS), "Invalid Credentials")

    def test_sync_refresh_required(self):
        self.assertEqual(describe(LDAP_SYNC_REFRESH_REQUIRED), "Refresh Required")

    def test_client_local_codes(self):
        self.assertEqual(describe(ERROR_NETWORK), "Network Error")
        self.assertEqual(
            describe(ERROR_EMPTY_PASSWORD), "Empty password not allowed by the client"
        )

    def test_unknown_code_is_empty(self):
        self.assertEqual(describe(9999), "")
        self.assertEqual(describe(UNKNOWN_RESULT_CODE), "")


class TestLDAPError(unittest.TestCase):
    def test_str_has_code_description_and_message(self):
        error = LDAPError(49, "invalid password")
        rendered = str(error)
        self.assertIn("49", rendered)
        self.assertIn("Invalid Credentials", rendered)
        self.assertIn("invalid password", rendered)
        self.assertEqual(
            rendered, 'LDAP Result Code 49 "Invalid Credentials": invalid password'
        )

    def test_str_with_unknown_code_does_not_fail(self):
        self.assertEqual(str(LDAPError(777, "huh")), 'LDAP Result Code 777 "": huh')

    def test_description_property(self):
        self.assertEqual(LDAPError(32, "").description, "No Such Object")

    def test_subclass_codes(self):
        self.assertEqual(NetworkError("x").result_code, ERROR_NETWORK)
        self.assertEqual(ConnectionClosedError("x").result_code, ERROR_NETWORK)
        self.assertEqual(EmptyPasswordError().result_code, ERROR_EMPTY_PASSWORD)
        self.assertEqual(ParamError("x").result_code, LDAP_PARAM_ERROR)
        self.assertEqual(ConnectionStateError("x").result_code, LDAP_PARAM_ERROR)

    def test_subclass_hierarchy(self):
        self.assertIsInstance(ConnectionClosedError("x"), NetworkError)
        self.assertIsInstance(ConnectionStateError("x"), ParamError)
        self.assertIsInstance(EmptyPasswordError(), LDAPError)


class TestParseErrorMessage(unittest.TestCase):
    def test_code_prefix(self):
        error = parse_error_message("49:invalid password")
        self.assertEqual(error.result_code, 49)
        self.assertEqual(error.msg, "invalid password")

    def test_only_first_colon_splits(self):
        error = parse_error_message("32:no such object: uid=foo,dc=example,dc=org")
        self.assertEqual(error.result_code, 32)
        self.assertEqual(error.msg, "no such object: uid=foo,dc=example,dc=org")

    def test_message_is_kept_as_is(self):
        error = parse_error_message("53: server is unwilling ")
        self.assertEqual(error.result_code, 53)
        self.assertEqual(error.msg, " server is unwilling ")

    def test_negative_code(self):
        self.assertEqual(parse_error_message("-1:oops").result_code, -1)

    def test_code_must_be_a_plain_decimal(self):
        for message in ("4_9:x", " 49:x", "49 :x", "٤٩:x", "0x31:x", ":x"):
            with self.subTest(message=message):
                error = parse_error_message(message)
                self.assertEqual(error.result_code, UNKNOWN_RESULT_CODE)
                self.assertEqual(error.msg, message)

    def test_no_code_prefix(self):
        error = parse_error_message("something broke: badly")
        self.assertEqual(error.result_code, UNKNOWN_RESULT_CODE)
        self.assertEqual(error.msg, "something broke: badly")

    def test_no_colon(self):
        error = parse_error_message("something broke")
        self.assertEqual(error.result_code, UNKNOWN_RESULT_CODE)
        self.assertEqual(error.msg, "something broke")


class TestTranslate(unittest.TestCase):
    def test_result_dict(self):
        exc = ldap.INVALID_CREDENTIALS(  # type: ignore[attr-defined]
            {"result": 49, "desc": "Invalid credentials", "info": "bad password"}
        )
        error = translate(exc)
        self.assertEqual(error.result_code, LDAP_INVALID_CREDENTIALS)
        self.assertEqual(error.msg, "bad password")

    def test_desc_used_without_info(self):
        exc = ldap.NO_SUCH_OBJECT({"result": 32, "desc": "No such object"})  # type: ignore[attr-defined]
        error = translate(exc)
        self.assertEqual(error.result_code, LDAP_NO_SUCH_OBJECT)
        self.assertEqual(error.msg, "No such object")

    def test_errnum_used_without_result(self):
        exc = ldap.SERVER_DOWN({"desc": "Can't contact LDAP server"})  # type: ignore[attr-defined]
        error = translate(exc)
        self.assertEqual(error.result_code, LDAP_SERVER_DOWN)
        self.assertEqual(error.msg, "Can't contact LDAP server")

    def test_connect_error_keeps_its_code(self):
        exc = ldap.CONNECT_ERROR({"desc": "Connect error"})  # type: ignore[attr-defined]
        self.assertEqual(translate(exc).result_code, LDAP_CONNECT_ERROR)

    def test_tuple_info_is_joined(self):
        exc = ldap.LOCAL_ERROR(  # type: ignore[attr-defined]
            {"result": -2, "desc": "Local error", "info": ("Start TLS", "again")}
        )
        error = translate(exc)
        self.assertEqual(error.msg, "Start TLS again")

    def test_string_argument(self):
        error = translate(ldap.LDAPError("53:server is unwilling"))  # type: ignore[attr-defined]
        self.assertEqual(error.result_code, 53)
        self.assertEqual(error.msg, "server is unwilling")

    def test_our_errors_pass_through(self):
        error = ParamError("nope")
        self.assertIs(translate(error), error)

    def test_no_arguments(self):
        error = translate(ldap.LDAPError())  # type: ignore[attr-defined]
        self.assertEqual(error.result_code, UNKNOWN_RESULT_CODE)
        self.assertEqual(error.msg, "LDAPError")
