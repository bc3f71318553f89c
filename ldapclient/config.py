"""
Connection parameters, and where they come from.

Usually you'll describe your servers in Django's settings and use
:py:meth:`ConnectionParams.from_settings`::

    LDAP_SERVERS = {
        "default": {
            "url": "ldap://ldap.example.org",
            "user": "cn=admin,dc=example,dc=org",
            "password": "the password",
            "basedn": "dc=example,dc=org",
            "secured": False,
            "use_starttls": True,
            "tls_verify": "always",
        },
    }
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .constants import UNBOUNDED

#: Alternate names :py:meth:`ConnectionParams.from_dict` accepts for some keys
ALIASES: dict[str, str] = {
    "user": "binddn",
    "password": "bindpw",
    "basedn": "search_base",
    "timeout": "nettimeout",
}

TLS_VERIFY_CHOICES: tuple[str, ...] = ("never", "always")


@dataclass
class ConnectionParams:
    """
    Everything :py:func:`~ldapclient.auth.login` and
    :py:meth:`~ldapclient.auth.BindMixin.bind` need to know to get us a bound
    connection.

    ``secured``, ``use_gssapi``, ``use_ldaps`` and ``use_starttls`` choose the
    bind strategy; see :py:meth:`~ldapclient.auth.BindMixin.bind`.  The
    ``krb5_keytab`` and ``tls_*`` settings are passed through to Kerberos and
    to libldap's TLS layer as is.  ``krb5_keytab`` goes into the process-wide
    ``KRB5_CLIENT_KTNAME`` environment variable for the length of a GSSAPI
    bind only; the previous value is restored afterwards.
    """

    domain: str = ""
    site: str = ""
    uries: list[str] = field(default_factory=list)
    binddn: str = ""
    bindpw: str = ""
    search_base: str = ""
    secured: bool = True
    use_gssapi: bool = False
    use_ldaps: bool = False
    use_starttls: bool = False
    nettimeout: int = UNBOUNDED
    timelimit: int = UNBOUNDED
    krb5_keytab: str | None = None
    tls_verify: str = "never"
    tls_ca_certfile: str | None = None
    tls_certfile: str | None = None
    tls_keyfile: str | None = None

    def __post_init__(self) -> None:
        if self.tls_verify not in TLS_VERIFY_CHOICES:
            msg = f"Invalid tls_verify value: {self.tls_verify}"
            raise ValueError(msg)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "ConnectionParams":
        """
        Build a :py:class:`ConnectionParams` from a settings-style dict.

        Besides the field names, this accepts ``user``, ``password``,
        ``basedn`` and ``timeout`` as aliases for ``binddn``, ``bindpw``,
        ``search_base`` and ``nettimeout``, and ``url`` as a one-server
        shorthand for ``uries``.  Unknown keys are ignored, so one
        ``LDAP_SERVERS`` entry can carry settings for other code too.

        Raises:
            ValueError: ``tls_verify`` is not ``"never"`` or ``"always"``

        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in config.items():
            name = ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
        if "url" in config and not kwargs.get("uries"):
            kwargs["uries"] = [config["url"]]
        if isinstance(kwargs.get("uries"), str):
            kwargs["uries"] = kwargs["uries"].split()
        for name in ("nettimeout", "timelimit"):
            if name in kwargs:
                kwargs[name] = int(kwargs[name])
        return cls(**kwargs)

    @classmethod
    def from_settings(cls, key: str = "default") -> "ConnectionParams":
        """
        Build a :py:class:`ConnectionParams` from ``settings.LDAP_SERVERS[key]``.

        Args:
            key: which entry in ``settings.LDAP_SERVERS`` to use

        Raises:
            ImproperlyConfigured: ``LDAP_SERVERS`` is not set, or has no
                ``key`` entry

        """
        servers = getattr(settings, "LDAP_SERVERS", None)
        if servers is None:
            msg = "settings.LDAP_SERVERS is not defined"
            raise ImproperlyConfigured(msg)
        try:
            config = servers[key]
        except KeyError as exc:
            msg = f'settings.LDAP_SERVERS has no "{key}" entry'
            raise ImproperlyConfigured(msg) from exc
        return cls.from_dict(config)

    def tls_files(self) -> dict[str, str]:
        """
        Check the configured certificate files and return the ones that are set.

        Raises:
            OSError: one of the configured files does not exist or is not a file

        Returns:
            A dict mapping ``"ca_certfile"``, ``"certfile"`` and ``"keyfile"``
            to their paths, for those that are configured.

        """
        files: dict[str, str] = {}
        for name, label, path in (
            ("ca_certfile", "CA Certificate", self.tls_ca_certfile),
            ("certfile", "TLS Certificate", self.tls_certfile),
            ("keyfile", "TLS Key", self.tls_keyfile),
        ):
            if not path:
                continue
            p = Path(path)
            if not p.exists():
                msg = f"{label} file does not exist: {path}"
                raise OSError(msg)
            if not p.is_file():
                msg = f"{label} file is not a file: {path}"
                raise OSError(msg)
            files[name] = path
        return files
