"""
Opening and closing connections to a directory server.

:py:func:`dial` is the way in: hand it an LDAP URL and it hands back an
unbound :py:class:`Connection`.  Bind it with one of the methods from
:py:class:`~ldapclient.auth.BindMixin`, then talk to the directory with the
methods from :py:class:`~ldapclient.operations.OperationsMixin`.
"""

import logging
from urllib.parse import urlsplit

from django.conf import settings

from ldapclient import ldap

from .auth import BindMixin
from .constants import DEFAULT_TIMEOUT, SCHEME_LDAPI, SCHEMES, UNBOUNDED
from .errors import NetworkError
from .operations import OperationsMixin
from .session import LOGGER_NAME, BaseConnection, ConnectionState, Session


class Connection(BindMixin, OperationsMixin, BaseConnection):
    """
    One connection to one directory server.

    Don't build these directly; use :py:func:`dial` or
    :py:func:`~ldapclient.auth.login`.  The caller that dialed a connection
    owns it and is responsible for closing it, either with :py:meth:`close`
    or by using the connection as a context manager:

    Example:
        >>> with dial("ldap://ldap.example.org") as conn:
        ...     conn.simple_bind("cn=admin,dc=example,dc=org", "secret")
        ...     result = conn.search(SearchRequest("dc=example,dc=org", "(uid=alice)"))

    """

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Connection uri={self.uri} state={self.state.value}>"

    def close(self) -> None:
        """
        Unbind and release the session.

        Closing an already closed connection does nothing.  If another thread
        is in the middle of an operation on this connection, we wait for it
        to finish first.
        """
        with self._lock:
            if self.state is ConnectionState.CLOSED:
                return
            session, self._session = self._session, None
            self.state = ConnectionState.CLOSED
            if session is None:
                return
            try:
                session.unbind()
            except NetworkError as exc:
                # The server already hung up on us; there's nothing left to release.
                self.logger.debug(
                    "ldapclient.connection.close.unbind-failed uri=%s error=%s",
                    self.uri,
                    exc,
                )
            else:
                self.logger.debug("ldapclient.connection.close uri=%s", self.uri)


def parse_address(address: str) -> tuple[str, str]:
    """
    Split an LDAP URL into its scheme and ``host[:port]``.

    Args:
        address: the URL to parse, e.g. ``ldaps://ldap.example.org:636``

    Raises:
        NetworkError: the scheme is not one we support, or the URL has no
            host and the scheme is not ``ldapi``

    Returns:
        A 2-tuple of (scheme, host).  ``host`` is ``""`` for ``ldapi`` URLs
        that use the default socket.

    """
    try:
        parts = urlsplit(address)
    except ValueError as exc:
        msg = f"Unable to parse LDAP URL {address!r}: {exc}"
        raise NetworkError(msg) from exc
    scheme = parts.scheme.lower()
    if scheme not in SCHEMES:
        msg = f"Unknown scheme {parts.scheme!r} in LDAP URL {address!r}"
        raise NetworkError(msg)
    host = parts.netloc
    if not host and scheme != SCHEME_LDAPI:
        msg = f"No host in LDAP URL {address!r}"
        raise NetworkError(msg)
    return scheme, host


def default_timeout() -> int:
    """
    The network timeout to use when :py:func:`dial` isn't given one:
    ``settings.LDAPCLIENT_DEFAULT_TIMEOUT`` if Django is configured and sets
    it, otherwise :py:data:`~ldapclient.constants.DEFAULT_TIMEOUT`.
    """
    if settings.configured:
        return int(getattr(settings, "LDAPCLIENT_DEFAULT_TIMEOUT", DEFAULT_TIMEOUT))
    return DEFAULT_TIMEOUT


def dial(
    address: str,
    *,
    timeout: int | None = None,
    time_limit: int = UNBOUNDED,
    logger: logging.Logger | None = None,
) -> Connection:
    """
    Open an unbound connection to the directory server at ``address``.

    Args:
        address: an LDAP URL: ``ldap://``, ``ldaps://``, ``ldapi://`` or
            ``cldap://``

    Keyword Args:
        timeout: network timeout in seconds.  ``None`` means the default
            (see :py:func:`default_timeout`); ``-1`` means wait forever.
        time_limit: server-side time limit for each operation, in seconds.
            ``-1`` means no limit.
        logger: log through this logger instead of ``django-ldapclient``

    Raises:
        NetworkError: the address is not a usable LDAP URL, or python-ldap
            could not initialize a session for it

    Returns:
        An unbound :py:class:`Connection`.

    """
    log = logger or logging.getLogger(LOGGER_NAME)
    scheme, host = parse_address(address)
    if timeout is None:
        timeout = default_timeout()
    session = Session(address)
    session.set_option(ldap.OPT_PROTOCOL_VERSION, ldap.VERSION3)  # type: ignore[attr-defined]
    session.set_option(ldap.OPT_REFERRALS, 0)  # type: ignore[attr-defined]
    if timeout != UNBOUNDED:
        session.set_option(ldap.OPT_NETWORK_TIMEOUT, float(timeout))  # type: ignore[attr-defined]
        session.set_option(ldap.OPT_TIMEOUT, float(timeout))  # type: ignore[attr-defined]
    if time_limit != UNBOUNDED:
        session.set_option(ldap.OPT_TIMELIMIT, int(time_limit))  # type: ignore[attr-defined]
    log.debug(
        "ldapclient.connection.dial uri=%s timeout=%s time_limit=%s",
        address,
        timeout,
        time_limit,
    )
    return Connection(
        uri=address,
        scheme=scheme,
        host=host,
        session=session,
        timeout=timeout,
        time_limit=time_limit,
        logger=log,
    )
