"""
Binding: getting a :py:class:`~ldapclient.connection.Connection` from
``UNBOUNDED`` to ``BOUND``.

A connection gets exactly one bind attempt.  If it works, the connection is
``BOUND``; if it fails for any reason the server (or libldap) gives us, the
connection is ``FAILED`` and can only be closed.  Precondition failures, like
an empty password, are raised before we touch the session and leave the state
alone.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from ldapclient import ldap

from .config import ConnectionParams
from .constants import SCHEME_LDAPS
from .errors import ConnectionStateError, EmptyPasswordError, LDAPError, ParamError
from .session import LOGGER_NAME, ConnectionState, synchronized
from .utils import domain2dn, get_ldap_servers

if TYPE_CHECKING:
    from .connection import Connection

#: The environment variable MIT Kerberos reads the client keytab path from
KRB5_CLIENT_KTNAME = "KRB5_CLIENT_KTNAME"

LOGIN_SIMPLE = "SIMPLE"
LOGIN_DIGEST_MD5 = "DIGEST-MD5"
LOGIN_GSSAPI = "GSSAPI"

BIND_PLAIN = "plain"
BIND_LDAPS = "LDAPS"
BIND_STARTTLS = "StartTLS"


@contextmanager
def client_keytab(keytab: str | None) -> Iterator[None]:
    """
    Point Kerberos at ``keytab`` for the duration of the ``with`` block, then
    put ``KRB5_CLIENT_KTNAME`` back the way it was.

    The environment is shared by the whole process, so a GSSAPI bind running
    in another thread at the same time sees this keytab too.
    """
    if not keytab:
        yield
        return
    saved = os.environ.get(KRB5_CLIENT_KTNAME)
    os.environ[KRB5_CLIENT_KTNAME] = keytab
    try:
        yield
    finally:
        if saved is None:
            os.environ.pop(KRB5_CLIENT_KTNAME, None)
        else:
            os.environ[KRB5_CLIENT_KTNAME] = saved


def check_bind_params(params: ConnectionParams) -> dict[str, str]:
    """
    Check the parts of ``params`` we can check without a server.

    Raises:
        ParamError: both ``use_ldaps`` and ``use_starttls`` are set
        EmptyPasswordError: a password bind was requested with an empty
            password
        OSError: a configured certificate file is missing

    Returns:
        The certificate files from :py:meth:`~ldapclient.config.ConnectionParams.tls_files`.

    """
    if params.use_ldaps and params.use_starttls:
        msg = "use_ldaps and use_starttls are mutually exclusive"
        raise ParamError(msg)
    if not (params.secured and params.use_gssapi) and not params.bindpw:
        raise EmptyPasswordError
    return params.tls_files()


class BindMixin:
    """
    The bind methods of :py:class:`~ldapclient.connection.Connection`.

    You can either call one of :py:meth:`simple_bind`,
    :py:meth:`digest_md5_bind` or :py:meth:`gssapi_bind` yourself, or let
    :py:meth:`bind` pick one for you from a
    :py:class:`~ldapclient.config.ConnectionParams`.
    """

    def _ensure_unbound(self) -> None:
        self._ensure_usable()
        if self.state is ConnectionState.BOUND:
            msg = f"connection to {self.uri} is already bound; rebinding is not supported"
            raise ConnectionStateError(msg)

    @contextmanager
    def _bind_attempt(self, login_method: str) -> Iterator[None]:
        self._ensure_unbound()
        self.login_method = login_method
        try:
            yield
        except LDAPError as exc:
            self.state = ConnectionState.FAILED
            self.logger.error(
                "ldapclient.auth.bind.failed uri=%s method=%s error=%s",
                self.uri,
                login_method,
                exc,
            )
            raise
        self.state = ConnectionState.BOUND
        self.bound_uri = self.uri
        if not self.bind_method:
            self.bind_method = BIND_LDAPS if self.use_ldaps else BIND_PLAIN
        self.logger.debug(
            "ldapclient.auth.bind.success uri=%s method=%s transport=%s",
            self.uri,
            login_method,
            self.bind_method,
        )

    def _simple(self, dn: str, password: str) -> None:
        with self._bind_attempt(LOGIN_SIMPLE):
            self.session.simple_bind(dn, password)

    def _digest_md5(self, dn: str, password: str) -> None:
        with self._bind_attempt(LOGIN_DIGEST_MD5):
            self.session.sasl_bind(ldap.sasl.digest_md5(dn, password))

    def _gssapi(self, keytab: str | None) -> None:
        with self._bind_attempt(LOGIN_GSSAPI), client_keytab(keytab):
            self.session.sasl_bind(ldap.sasl.gssapi())

    @synchronized
    def start_tls(self) -> None:
        """
        Send StartTLS, so that the bind that follows goes over TLS.

        Raises:
            ConnectionStateError: the connection is already bound, or a bind
                on it already failed

        """
        self._ensure_unbound()
        self.session.start_tls()
        self.use_starttls = True
        self.bind_method = BIND_STARTTLS
        self.logger.debug("ldapclient.auth.start_tls uri=%s", self.uri)

    @synchronized
    def simple_bind(self, dn: str, password: str) -> None:
        """
        Bind as ``dn`` with ``password``.

        Raises:
            EmptyPasswordError: ``password`` is empty.  Most servers would
                treat that as an anonymous bind, so we refuse it here.
            ConnectionStateError: the connection is already bound, or a bind
                on it already failed

        """
        if not password:
            raise EmptyPasswordError
        self.secured = False
        self._simple(dn, password)

    @synchronized
    def digest_md5_bind(self, dn: str, password: str) -> None:
        """
        SASL DIGEST-MD5 bind as ``dn`` with ``password``.

        Raises:
            EmptyPasswordError: ``password`` is empty
            ConnectionStateError: the connection is already bound, or a bind
                on it already failed

        """
        if not password:
            raise EmptyPasswordError
        self.secured = True
        self._digest_md5(dn, password)

    @synchronized
    def gssapi_bind(self, realm: str, keytab: str | None = None) -> None:
        """
        SASL GSSAPI (Kerberos) bind.

        Getting a ticket is Kerberos' business, not ours: if ``keytab`` is
        given, we put it in ``KRB5_CLIENT_KTNAME`` so the Kerberos library
        can find our client credentials there, and restore the previous
        value once the bind is done.  That variable is process-wide; see
        :py:func:`client_keytab`.  This bind never uses StartTLS or LDAPS;
        GSSAPI brings its own protection.

        Args:
            realm: the Kerberos realm; it becomes this connection's domain
            keytab: path to the client keytab

        Raises:
            ConnectionStateError: the connection is already bound, or a bind
                on it already failed

        """
        self._ensure_unbound()
        self.domain = realm
        self.secured = True
        self.use_gssapi = True
        self.use_starttls = False
        self.use_ldaps = False
        self._gssapi(keytab)

    def _apply_tls_options(self, tls_verify: str, files: dict[str, str]) -> None:
        if tls_verify == "always":
            require = ldap.OPT_X_TLS_DEMAND  # type: ignore[attr-defined]
        else:
            require = ldap.OPT_X_TLS_NEVER  # type: ignore[attr-defined]
        self.session.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, require)  # type: ignore[attr-defined]
        if "ca_certfile" in files:
            self.session.set_option(ldap.OPT_X_TLS_CACERTFILE, files["ca_certfile"])  # type: ignore[attr-defined]
        if "certfile" in files:
            self.session.set_option(ldap.OPT_X_TLS_CERTFILE, files["certfile"])  # type: ignore[attr-defined]
        if "keyfile" in files:
            self.session.set_option(ldap.OPT_X_TLS_KEYFILE, files["keyfile"])  # type: ignore[attr-defined]
        self.session.set_option(ldap.OPT_X_TLS_NEWCTX, 0)  # type: ignore[attr-defined]

    @synchronized
    def bind(self, params: ConnectionParams) -> None:
        """
        Bind the way ``params`` says to.

        * ``secured`` and ``use_gssapi``: GSSAPI, with ``params.domain`` as
          the realm and ``params.krb5_keytab`` as the keytab
        * ``secured`` alone: DIGEST-MD5 as ``params.binddn``
        * otherwise: a simple bind as ``params.binddn``

        If ``use_starttls`` is set we send StartTLS first.  A StartTLS failure
        counts as a failed bind.

        Raises:
            ParamError: both ``use_ldaps`` and ``use_starttls`` are set
            EmptyPasswordError: a password bind was requested with an empty
                password
            ConnectionStateError: the connection is already bound, or a bind
                on it already failed
            OSError: a configured certificate file is missing

        """
        files = check_bind_params(params)
        gssapi = params.secured and params.use_gssapi
        self._ensure_unbound()
        self.domain = params.domain
        self.secured = params.secured
        self.use_gssapi = gssapi
        self.use_ldaps = params.use_ldaps or self.scheme == SCHEME_LDAPS
        self.search_base = params.search_base or (
            domain2dn(params.domain) if params.domain else ""
        )
        try:
            self._apply_tls_options(params.tls_verify, files)
            if params.use_starttls:
                self.start_tls()
        except LDAPError:
            self.state = ConnectionState.FAILED
            raise
        if gssapi:
            self._gssapi(params.krb5_keytab)
        elif params.secured:
            self._digest_md5(params.binddn, params.bindpw)
        else:
            self._simple(params.binddn, params.bindpw)


def candidate_uris(params: ConnectionParams) -> list[str]:
    """
    The server URIs :py:func:`login` should try, in order.

    These are ``params.uries`` if set, otherwise whatever DNS SRV discovery
    finds for ``params.domain`` and ``params.site``.  Entries without a scheme
    get ``ldaps://`` if ``params.use_ldaps`` is set, ``ldap://`` otherwise.

    Raises:
        NetworkError: SRV discovery for ``params.domain`` failed

    """
    uris = list(params.uries)
    if not uris and params.domain:
        uris = get_ldap_servers(params.domain, params.site)
    prefix = "ldaps://" if params.use_ldaps else "ldap://"
    return [uri if "://" in uri else f"{prefix}{uri}" for uri in uris]


def login(params: ConnectionParams, logger: logging.Logger | None = None) -> "Connection":
    """
    Dial and bind to the first server in ``params`` that will have us.

    We check ``params`` (see :py:func:`check_bind_params`) before dialing
    anything.  Then each candidate from :py:func:`candidate_uris` is dialed
    and bound in turn.  A candidate that fails is closed and logged, and we
    move on to the next one.

    Args:
        params: where to connect and how to bind
        logger: log through this logger instead of ``django-ldapclient``

    Raises:
        ParamError: there are no servers to try, or ``params`` asks for both
            LDAPS and StartTLS
        EmptyPasswordError: a password bind was requested with an empty
            password
        OSError: a configured certificate file is missing
        LDAPError: every server failed; this is the last server's error

    Returns:
        A bound :py:class:`~ldapclient.connection.Connection`.

    """
    from .connection import dial  # noqa: PLC0415

    log = logger or logging.getLogger(LOGGER_NAME)
    check_bind_params(params)
    uris = candidate_uris(params)
    if not uris:
        msg = "No LDAP servers to connect to: set uries, or domain for SRV discovery"
        raise ParamError(msg)
    last_error: LDAPError | None = None
    for uri in uris:
        try:
            conn = dial(
                uri,
                timeout=params.nettimeout,
                time_limit=params.timelimit,
                logger=log,
            )
        except LDAPError as exc:
            log.warning("ldapclient.auth.login.failed uri=%s error=%s", uri, exc)
            last_error = exc
            continue
        try:
            conn.bind(params)
        except LDAPError as exc:
            log.warning("ldapclient.auth.login.failed uri=%s error=%s", uri, exc)
            last_error = exc
            conn.close()
            continue
        except BaseException:
            conn.close()
            raise
        log.info(
            "ldapclient.auth.login.success uri=%s login_method=%s bind_method=%s",
            conn.bound_uri,
            conn.login_method,
            conn.bind_method,
        )
        return conn
    raise last_error  # type: ignore[misc]
