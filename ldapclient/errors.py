"""
LDAP result codes and the exceptions we raise for them.

Everything that goes wrong below the public API ends up here: python-ldap
exceptions are turned into :py:class:`LDAPError` by :py:func:`translate`,
and bare ``"<code>:<message>"`` strings by :py:func:`parse_error_message`.
"""

import re
from typing import Any

# -----------------------
# Result codes
# -----------------------

# Server result codes, RFC 4511 section 4.1.9 and friends
LDAP_SUCCESS = 0
LDAP_OPERATIONS_ERROR = 1
LDAP_PROTOCOL_ERROR = 2
LDAP_TIME_LIMIT_EXCEEDED = 3
LDAP_SIZE_LIMIT_EXCEEDED = 4
LDAP_COMPARE_FALSE = 5
LDAP_COMPARE_TRUE = 6
LDAP_AUTH_METHOD_NOT_SUPPORTED = 7
LDAP_STRONG_AUTH_REQUIRED = 8
LDAP_REFERRAL = 10
LDAP_ADMIN_LIMIT_EXCEEDED = 11
LDAP_UNAVAILABLE_CRITICAL_EXTENSION = 12
LDAP_CONFIDENTIALITY_REQUIRED = 13
LDAP_SASL_BIND_IN_PROGRESS = 14
LDAP_NO_SUCH_ATTRIBUTE = 16
LDAP_UNDEFINED_ATTRIBUTE_TYPE = 17
LDAP_INAPPROPRIATE_MATCHING = 18
LDAP_CONSTRAINT_VIOLATION = 19
LDAP_ATTRIBUTE_OR_VALUE_EXISTS = 20
LDAP_INVALID_ATTRIBUTE_SYNTAX = 21
LDAP_NO_SUCH_OBJECT = 32
LDAP_ALIAS_PROBLEM = 33
LDAP_INVALID_DN_SYNTAX = 34
LDAP_IS_LEAF = 35
LDAP_ALIAS_DEREFERENCING_PROBLEM = 36
LDAP_INAPPROPRIATE_AUTHENTICATION = 48
LDAP_INVALID_CREDENTIALS = 49
LDAP_INSUFFICIENT_ACCESS_RIGHTS = 50
LDAP_BUSY = 51
LDAP_UNAVAILABLE = 52
LDAP_UNWILLING_TO_PERFORM = 53
LDAP_LOOP_DETECT = 54
LDAP_SORT_CONTROL_MISSING = 60
LDAP_OFFSET_RANGE_ERROR = 61
LDAP_NAMING_VIOLATION = 64
LDAP_OBJECT_CLASS_VIOLATION = 65
LDAP_NOT_ALLOWED_ON_NON_LEAF = 66
LDAP_NOT_ALLOWED_ON_RDN = 67
LDAP_ENTRY_ALREADY_EXISTS = 68
LDAP_OBJECT_CLASS_MODS_PROHIBITED = 69
LDAP_RESULTS_TOO_LARGE = 70
LDAP_AFFECTS_MULTIPLE_DSAS = 71
LDAP_VLV_ERROR = 76
LDAP_OTHER = 80
# Client API codes, RFC 1823 numbering
LDAP_SERVER_DOWN = 81
LDAP_LOCAL_ERROR = 82
LDAP_ENCODING_ERROR = 83
LDAP_DECODING_ERROR = 84
LDAP_TIMEOUT = 85
LDAP_AUTH_UNKNOWN = 86
LDAP_FILTER_ERROR = 87
LDAP_USER_CANCELED = 88
LDAP_PARAM_ERROR = 89
LDAP_NO_MEMORY = 90
LDAP_CONNECT_ERROR = 91
LDAP_NOT_SUPPORTED = 92
LDAP_CONTROL_NOT_FOUND = 93
LDAP_NO_RESULTS_RETURNED = 94
LDAP_MORE_RESULTS_TO_RETURN = 95
LDAP_CLIENT_LOOP = 96
LDAP_REFERRAL_LIMIT_EXCEEDED = 97
LDAP_INVALID_RESPONSE = 100
LDAP_AMBIGUOUS_RESPONSE = 101
LDAP_TLS_NOT_SUPPORTED = 112
LDAP_INTERMEDIATE_RESPONSE = 113
LDAP_UNKNOWN_TYPE = 114
LDAP_CANCELED = 118
LDAP_NO_SUCH_OPERATION = 119
LDAP_TOO_LATE = 120
LDAP_CANNOT_CANCEL = 121
LDAP_ASSERTION_FAILED = 122
LDAP_AUTHORIZATION_DENIED = 123
LDAP_SYNC_REFRESH_REQUIRED = 4096

# Client-local codes
ERROR_NETWORK = 200
ERROR_FILTER_COMPILE = 201
ERROR_FILTER_DECOMPILE = 202
ERROR_DEBUGGING = 203
ERROR_UNEXPECTED_MESSAGE = 204
ERROR_UNEXPECTED_RESPONSE = 205
ERROR_EMPTY_PASSWORD = 206

#: Used when a failure carries no numeric code at all
UNKNOWN_RESULT_CODE = -1

RESULT_CODE_DESCRIPTIONS: dict[int, str] = {
    LDAP_SUCCESS: "Success",
    LDAP_OPERATIONS_ERROR: "Operations Error",
    LDAP_PROTOCOL_ERROR: "Protocol Error",
    LDAP_TIME_LIMIT_EXCEEDED: "Time Limit Exceeded",
    LDAP_SIZE_LIMIT_EXCEEDED: "Size Limit Exceeded",
    LDAP_COMPARE_FALSE: "Compare False",
    LDAP_COMPARE_TRUE: "Compare True",
    LDAP_AUTH_METHOD_NOT_SUPPORTED: "Auth Method Not Supported",
    LDAP_STRONG_AUTH_REQUIRED: "Strong Auth Required",
    LDAP_REFERRAL: "Referral",
    LDAP_ADMIN_LIMIT_EXCEEDED: "Admin Limit Exceeded",
    LDAP_UNAVAILABLE_CRITICAL_EXTENSION: "Unavailable Critical Extension",
    LDAP_CONFIDENTIALITY_REQUIRED: "Confidentiality Required",
    LDAP_SASL_BIND_IN_PROGRESS: "Sasl Bind In Progress",
    LDAP_NO_SUCH_ATTRIBUTE: "No Such Attribute",
    LDAP_UNDEFINED_ATTRIBUTE_TYPE: "Undefined Attribute Type",
    LDAP_INAPPROPRIATE_MATCHING: "Inappropriate Matching",
    LDAP_CONSTRAINT_VIOLATION: "Constraint Violation",
    LDAP_ATTRIBUTE_OR_VALUE_EXISTS: "Attribute Or Value Exists",
    LDAP_INVALID_ATTRIBUTE_SYNTAX: "Invalid Attribute Syntax",
    LDAP_NO_SUCH_OBJECT: "No Such Object",
    LDAP_ALIAS_PROBLEM: "Alias Problem",
    LDAP_INVALID_DN_SYNTAX: "Invalid DN Syntax",
    LDAP_IS_LEAF: "Is Leaf",
    LDAP_ALIAS_DEREFERENCING_PROBLEM: "Alias Dereferencing Problem",
    LDAP_INAPPROPRIATE_AUTHENTICATION: "Inappropriate Authentication",
    LDAP_INVALID_CREDENTIALS: "Invalid Credentials",
    LDAP_INSUFFICIENT_ACCESS_RIGHTS: "Insufficient Access Rights",
    LDAP_BUSY: "Busy",
    LDAP_UNAVAILABLE: "Unavailable",
    LDAP_UNWILLING_TO_PERFORM: "Unwilling To Perform",
    LDAP_LOOP_DETECT: "Loop Detect",
    LDAP_SORT_CONTROL_MISSING: "Sort Control Missing",
    LDAP_OFFSET_RANGE_ERROR: "Result Offset Range Error",
    LDAP_NAMING_VIOLATION: "Naming Violation",
    LDAP_OBJECT_CLASS_VIOLATION: "Object Class Violation",
    LDAP_NOT_ALLOWED_ON_NON_LEAF: "Not Allowed On Non Leaf",
    LDAP_NOT_ALLOWED_ON_RDN: "Not Allowed On RDN",
    LDAP_ENTRY_ALREADY_EXISTS: "Entry Already Exists",
    LDAP_OBJECT_CLASS_MODS_PROHIBITED: "Object Class Mods Prohibited",
    LDAP_RESULTS_TOO_LARGE: "Results Too Large",
    LDAP_AFFECTS_MULTIPLE_DSAS: "Affects Multiple DSAs",
    LDAP_VLV_ERROR: "Failed because of a problem related to the virtual list view",
    LDAP_OTHER: "Other",
    LDAP_SERVER_DOWN: "Cannot establish a connection",
    LDAP_LOCAL_ERROR: "An error occurred",
    LDAP_ENCODING_ERROR: "LDAP encountered an error while encoding",
    LDAP_DECODING_ERROR: "LDAP encountered an error while decoding",
    LDAP_TIMEOUT: "LDAP timeout while waiting for a response from the server",
    LDAP_AUTH_UNKNOWN: "The auth method requested in a bind request is unknown",
    LDAP_FILTER_ERROR: "An error occurred while encoding the given search filter",
    LDAP_USER_CANCELED: "The user canceled the operation",
    LDAP_PARAM_ERROR: "An invalid parameter was specified",
    LDAP_NO_MEMORY: "Out of memory error",
    LDAP_CONNECT_ERROR: "A connection to the server could not be established",
    LDAP_NOT_SUPPORTED: "An attempt has been made to use a feature not supported LDAP",
    LDAP_CONTROL_NOT_FOUND: (
        "The controls required to perform the requested operation were not found"
    ),
    LDAP_NO_RESULTS_RETURNED: "No results were returned from the server",
    LDAP_MORE_RESULTS_TO_RETURN: "There are more results in the chain of results",
    LDAP_CLIENT_LOOP: (
        "A loop has been detected. For example when following referrals"
    ),
    LDAP_REFERRAL_LIMIT_EXCEEDED: "The referral hop limit has been exceeded",
    LDAP_CANCELED: "Operation was canceled",
    LDAP_NO_SUCH_OPERATION: (
        "Server has no knowledge of the operation requested for cancellation"
    ),
    LDAP_TOO_LATE: "Too late to cancel the outstanding operation",
    LDAP_CANNOT_CANCEL: (
        "The identified operation does not support cancellation or the cancel "
        "operation cannot be performed"
    ),
    LDAP_ASSERTION_FAILED: (
        "An assertion control given in the LDAP operation evaluated to false "
        "causing the operation to not be performed"
    ),
    LDAP_SYNC_REFRESH_REQUIRED: "Refresh Required",
    LDAP_INVALID_RESPONSE: "Invalid Response",
    LDAP_AMBIGUOUS_RESPONSE: "Ambiguous Response",
    LDAP_TLS_NOT_SUPPORTED: "Tls Not Supported",
    LDAP_INTERMEDIATE_RESPONSE: "Intermediate Response",
    LDAP_UNKNOWN_TYPE: "Unknown Type",
    LDAP_AUTHORIZATION_DENIED: "Authorization Denied",
    ERROR_NETWORK: "Network Error",
    ERROR_FILTER_COMPILE: "Filter Compile Error",
    ERROR_FILTER_DECOMPILE: "Filter Decompile Error",
    ERROR_DEBUGGING: "Debugging Error",
    ERROR_UNEXPECTED_MESSAGE: "Unexpected Message",
    ERROR_UNEXPECTED_RESPONSE: "Unexpected Response",
    ERROR_EMPTY_PASSWORD: "Empty password not allowed by the client",
}


def describe(result_code: int) -> str:
    """
    Return the human description for ``result_code``, or ``""`` if we don't
    know it.
    """
    return RESULT_CODE_DESCRIPTIONS.get(result_code, "")


# -----------------------
# Exceptions
# -----------------------


class LDAPError(Exception):
    """
    The one exception type that crosses our public API.

    Args:
        result_code: an LDAP result code, one of our client-local codes
            (200-206), or :py:data:`UNKNOWN_RESULT_CODE`
        msg: the diagnostic message

    """

    def __init__(self, result_code: int, msg: str) -> None:
        super().__init__(result_code, msg)
        self.result_code = result_code
        self.msg = msg

    @property
    def description(self) -> str:
        return describe(self.result_code)

    def __str__(self) -> str:
        return f'LDAP Result Code {self.result_code} "{self.description}": {self.msg}'

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(result_code={self.result_code}, msg={self.msg!r})"


class NetworkError(LDAPError):
    """
    We could not reach, or could not even address, a directory server.
    """

    def __init__(self, msg: str) -> None:
        super().__init__(ERROR_NETWORK, msg)


class ConnectionClosedError(NetworkError):
    """
    An operation was attempted on a :py:class:`~ldapclient.connection.Connection`
    after it was closed.
    """


class EmptyPasswordError(LDAPError):
    """
    A password bind was attempted with an empty password.  We refuse these
    ourselves because most servers treat them as an anonymous bind.
    """

    def __init__(self, msg: str = "empty password not allowed") -> None:
        super().__init__(ERROR_EMPTY_PASSWORD, msg)


class ParamError(LDAPError):
    """
    A precondition failed before we talked to the server.
    """

    def __init__(self, msg: str) -> None:
        super().__init__(LDAP_PARAM_ERROR, msg)


class ConnectionStateError(ParamError):
    """
    The connection is in the wrong state for the requested operation, e.g. a
    second bind on an already bound connection.
    """


# -----------------------
# Translation
# -----------------------

#: A plain ASCII decimal, with no whitespace or underscores
_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")


def parse_error_message(message: str) -> LDAPError:
    """
    Decode the ``"<code>:<message>"`` convention.

    If the part before the first colon is a plain decimal integer, it becomes
    the result code and everything after the colon, untouched, becomes the
    message.  Otherwise the whole string is the message and the code is
    :py:data:`UNKNOWN_RESULT_CODE`.

    Args:
        message: the failure message to decode

    Returns:
        The decoded error.

    """
    code, sep, rest = message.partition(":")
    if sep and _DECIMAL_RE.fullmatch(code):
        return LDAPError(int(code), rest)
    return LDAPError(UNKNOWN_RESULT_CODE, message)


def _normalize_code(code: int) -> int:
    # libldap reports its client-side failures as -1 (SERVER_DOWN) through
    # -17 (REFERRAL_LIMIT_EXCEEDED); RFC 1823 numbers those same codes 81-97.
    if -17 <= code <= -1:  # noqa: PLR2004
        return LDAP_OTHER - code
    return code


def translate(exc: Exception) -> LDAPError:
    """
    Convert an exception raised by python-ldap into an :py:class:`LDAPError`.

    python-ldap puts a dict like ``{"result": 49, "desc": "Invalid
    credentials", "info": "..."}`` in ``exc.args[0]``.  We take the code from
    ``result`` (falling back to the exception class's ``errnum``) and the
    message from ``info`` (falling back to ``desc``).

    Args:
        exc: the exception to translate

    Returns:
        The translated error.

    """
    if isinstance(exc, LDAPError):
        return exc
    details: Any = exc.args[0] if exc.args else None
    if isinstance(details, dict):
        code = details.get("result", getattr(exc, "errnum", None))
        if code is None:
            code = UNKNOWN_RESULT_CODE
        info = details.get("info")
        if isinstance(info, (tuple, list)):
            info = " ".join(str(part) for part in info)
        msg = str(info or details.get("desc") or exc.__class__.__name__)
        return LDAPError(_normalize_code(int(code)), msg)
    if isinstance(details, str):
        error = parse_error_message(details)
        errnum = getattr(exc, "errnum", None)
        if error.result_code == UNKNOWN_RESULT_CODE and errnum is not None:
            error = LDAPError(_normalize_code(int(errnum)), error.msg)
        return error
    return LDAPError(UNKNOWN_RESULT_CODE, str(exc) or exc.__class__.__name__)
