"""
The boundary between us and python-ldap.

:py:class:`Session` is the only thing that calls methods on a python-ldap
``LDAPObject``.  Each of its methods does exactly one python-ldap call, and
any ``ldap.LDAPError`` that call raises is translated into an
:py:class:`~ldapclient.errors.LDAPError` right here, so nothing above this
module ever sees a python-ldap exception.

This module also holds :py:class:`BaseConnection`, the state that the
connection, bind and operations layers share, and the :py:func:`synchronized`
decorator that serializes access to it.
"""

import enum
import logging
import threading
from collections.abc import Callable
from functools import wraps
from typing import Any

from ldapclient import ldap

from .errors import ConnectionClosedError, ConnectionStateError, NetworkError, translate
from .typing import LDAPData, ModifyModList

#: The logger connections log through unless they are handed one
LOGGER_NAME = "django-ldapclient"


# -----------------------
# Decorators
# -----------------------


def translated(func: Callable) -> Callable:
    """
    Decorator for :py:class:`Session` methods: re-raise any python-ldap
    exception as our own :py:class:`~ldapclient.errors.LDAPError`.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> Any:
        try:
            return func(self, *args, **kwargs)
        except ldap.LDAPError as exc:  # type: ignore[attr-defined]
            raise translate(exc) from exc

    return wrapper


def synchronized(func: Callable) -> Callable:
    """
    Decorator for connection methods that touch the session.

    Holds the connection's lock for the duration of the call, so there is at
    most one operation in flight per connection, and refuses to run at all
    on a closed or failed connection.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> Any:
        with self._lock:
            self._ensure_usable()
            return func(self, *args, **kwargs)

    return wrapper


# -----------------------
# Session
# -----------------------


class Session:
    """
    A thin wrapper around one python-ldap ``LDAPObject``.

    Args:
        uri: the LDAP URI to initialize the ``LDAPObject`` with

    Raises:
        NetworkError: python-ldap refused to initialize a handle for ``uri``

    """

    def __init__(self, uri: str) -> None:
        self.uri = uri
        try:
            self._ldap = ldap.initialize(uri)  # type: ignore[attr-defined]
        except ldap.LDAPError as exc:  # type: ignore[attr-defined]
            error = translate(exc)
            msg = f"Error in ldap_initialize to {uri}: {error.msg}"
            raise NetworkError(msg) from exc

    @translated
    def set_option(self, option: int, value: Any) -> None:
        self._ldap.set_option(option, value)

    @translated
    def start_tls(self) -> None:
        self._ldap.start_tls_s()

    @translated
    def simple_bind(self, who: str, cred: str) -> None:
        self._ldap.simple_bind_s(who, cred)

    @translated
    def sasl_bind(self, auth: Any) -> None:
        self._ldap.sasl_interactive_bind_s("", auth)

    @translated
    def search(
        self,
        base: str,
        scope: int,
        filterstr: str,
        attrlist: list[str] | None = None,
    ) -> list[LDAPData]:
        """
        Do a synchronous search and return its ``(dn, attrs)`` records.

        Active Directory appends search continuation references to the
        results; those have no attribute dict, and we drop them.
        """
        data = self._ldap.search_s(base, scope, filterstr, attrlist)
        return [(dn, attrs) for dn, attrs in data if isinstance(attrs, dict)]

    @translated
    def modify(self, dn: str, modlist: ModifyModList) -> None:
        self._ldap.modify_s(dn, modlist)

    @translated
    def rename(
        self, dn: str, newrdn: str, newsuperior: str | None = None, delold: int = 1
    ) -> None:
        self._ldap.rename_s(dn, newrdn, newsuperior, delold)

    @translated
    def delete(self, dn: str) -> None:
        self._ldap.delete_s(dn)

    @translated
    def unbind(self) -> None:
        self._ldap.unbind_s()


# -----------------------
# Shared connection state
# -----------------------


class ConnectionState(enum.Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    FAILED = "failed"
    CLOSED = "closed"


class BaseConnection:
    """
    The state shared by :py:class:`~ldapclient.connection.Connection` and its
    bind and operations mixins.

    Keyword Args:
        uri: the full LDAP URI we dialed
        scheme: the URI scheme (``ldap``, ``ldaps``, ``ldapi`` or ``cldap``)
        host: the ``host[:port]`` part of the URI; empty for ``ldapi``
        session: the :py:class:`Session` this connection owns
        timeout: network timeout in seconds, ``-1`` for none
        time_limit: server-side time limit in seconds, ``-1`` for none
        logger: where to log; defaults to the ``django-ldapclient`` logger

    """

    def __init__(
        self,
        *,
        uri: str,
        scheme: str,
        host: str,
        session: Session,
        timeout: int,
        time_limit: int,
        logger: logging.Logger | None = None,
    ) -> None:
        self.uri = uri
        self.scheme = scheme
        self.host = host
        self.timeout = timeout
        self.time_limit = time_limit
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.state = ConnectionState.UNBOUND
        self._session: Session | None = session
        self._lock = threading.RLock()
        # How the next bind should go; see BindMixin.bind()
        self.domain: str = ""
        self.secured: bool = False
        self.use_gssapi: bool = False
        self.use_ldaps: bool = scheme == "ldaps"
        self.use_starttls: bool = False
        # Filled in by a successful bind
        self.bound_uri: str = ""
        self.login_method: str = ""
        self.bind_method: str = ""
        self.search_base: str = ""

    @property
    def session(self) -> Session:
        """
        The :py:class:`Session` for this connection.

        Raises:
            ConnectionClosedError: the connection has been closed

        """
        if self._session is None:
            msg = f"connection to {self.uri} is closed"
            raise ConnectionClosedError(msg)
        return self._session

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    @property
    def bound(self) -> bool:
        return self.state is ConnectionState.BOUND

    def _ensure_usable(self) -> None:
        if self.state is ConnectionState.CLOSED:
            msg = f"connection to {self.uri} is closed"
            raise ConnectionClosedError(msg)
        if self.state is ConnectionState.FAILED:
            msg = f"bind to {self.uri} failed; dial a new connection"
            raise ConnectionStateError(msg)
