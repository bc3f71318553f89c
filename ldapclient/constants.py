"""
Search scope and modify operation constants.

These mirror the values python-ldap (and libldap underneath it) uses, so they
are passed straight through to the session.
"""

from ldapclient import ldap

# -----------------------
# Search scopes
# -----------------------

SCOPE_BASE_OBJECT: int = ldap.SCOPE_BASE  # type: ignore[attr-defined]
SCOPE_SINGLE_LEVEL: int = ldap.SCOPE_ONELEVEL  # type: ignore[attr-defined]
SCOPE_WHOLE_SUBTREE: int = ldap.SCOPE_SUBTREE  # type: ignore[attr-defined]
#: OpenLDAP extension: everything below the base, but not the base itself
SCOPE_SUBORDINATE: int = 3
#: OpenLDAP extension: let libldap pick its configured default scope
SCOPE_DEFAULT: int = -1

SCOPES: frozenset[int] = frozenset(
    {
        SCOPE_BASE_OBJECT,
        SCOPE_SINGLE_LEVEL,
        SCOPE_WHOLE_SUBTREE,
        SCOPE_SUBORDINATE,
        SCOPE_DEFAULT,
    }
)

# -----------------------
# Modify operations
# -----------------------

ADD: int = ldap.MOD_ADD  # type: ignore[attr-defined]
DELETE: int = ldap.MOD_DELETE  # type: ignore[attr-defined]
REPLACE: int = ldap.MOD_REPLACE  # type: ignore[attr-defined]

CHANGE_OPERATIONS: frozenset[int] = frozenset({ADD, DELETE, REPLACE})

# -----------------------
# Connection defaults
# -----------------------

#: Network timeout used by :py:func:`ldapclient.connection.dial` when none is given
DEFAULT_TIMEOUT: int = 60
#: Means "no timeout" / "no time limit"
UNBOUNDED: int = -1

#: URL schemes :py:func:`ldapclient.connection.dial` accepts
SCHEME_LDAP = "ldap"
SCHEME_LDAPS = "ldaps"
SCHEME_LDAPI = "ldapi"
SCHEME_CLDAP = "cldap"
SCHEMES: frozenset[str] = frozenset(
    {SCHEME_LDAP, SCHEME_LDAPS, SCHEME_LDAPI, SCHEME_CLDAP}
)

#: The attribute list that asks the server for no attributes at all (RFC 4511)
NO_ATTRIBUTES = "1.1"
ALL_ATTRIBUTES = "*"
DEFAULT_FILTER = "(objectClass=*)"
