"""
DN and domain helpers, and LDAP server discovery through DNS SRV records.
"""

import logging

import dns.exception
import dns.resolver

from ldapclient import ldap

from .errors import NetworkError

logger = logging.getLogger("django-ldapclient")

#: How long to wait for DNS answers, in seconds
DNS_LIFETIME: float = 5.0


def domain2dn(domain: str) -> str:
    """
    Convert a DNS domain name to the matching ``DC=`` base DN.

    Example:
        >>> domain2dn("example.org")
        'DC=example,DC=org'

    """
    return ",".join(f"DC={part}" for part in domain.strip(".").split(".") if part)


def dn2domain(dn: str) -> str:
    """
    Convert a DN to a DNS domain name by joining its ``DC`` components.  Other
    RDNs are ignored.

    Example:
        >>> dn2domain("CN=Alice,OU=Users,DC=example,DC=org")
        'example.org'

    """
    parts = []
    for rdn in ldap.dn.str2dn(dn):
        for attr, value, _ in rdn:
            if attr.lower() == "dc":
                parts.append(value)
    return ".".join(parts)


def first_rdn(dn: str) -> str:
    """
    Return the first RDN of ``dn``, e.g. ``uid=alice`` for
    ``uid=alice,ou=users,dc=example,dc=org``.

    Raises:
        ValueError: ``dn`` is empty or not a valid DN

    """
    try:
        rdns = ldap.dn.explode_dn(dn)
    except ldap.DECODING_ERROR as exc:  # type: ignore[attr-defined]
        msg = f"Invalid DN: {dn!r}"
        raise ValueError(msg) from exc
    if not rdns:
        msg = f"Invalid DN: {dn!r}"
        raise ValueError(msg)
    return rdns[0]


def _srv_hosts(name: str) -> list[str]:
    resolver = dns.resolver.Resolver()
    resolver.lifetime = DNS_LIFETIME
    answers = resolver.resolve(name, "SRV")
    records = sorted(answers, key=lambda r: (r.priority, -r.weight))
    return [f"{str(r.target).rstrip('.')}:{r.port}" for r in records]


def get_ldap_servers(domain: str, site: str = "") -> list[str]:
    """
    Find the LDAP servers for ``domain`` in DNS.

    If ``site`` is given, the servers from the Active Directory site record
    ``_ldap._tcp.<site>._sites.<domain>`` come first; if that lookup fails we
    just skip it.  Then come the servers from ``_ldap._tcp.<domain>`` that we
    haven't already listed.

    Args:
        domain: the DNS domain to look up
        site: the Active Directory site name, if any

    Raises:
        NetworkError: the ``_ldap._tcp.<domain>`` lookup failed

    Returns:
        A list of ``host:port`` strings, with no URL scheme.

    """
    servers: list[str] = []
    if site:
        name = f"_ldap._tcp.{site}._sites.{domain}"
        try:
            servers.extend(_srv_hosts(name))
        except dns.exception.DNSException as exc:
            logger.warning("ldapclient.utils.srv.site-lookup-failed name=%s error=%s", name, exc)
    name = f"_ldap._tcp.{domain}"
    try:
        hosts = _srv_hosts(name)
    except dns.exception.DNSException as exc:
        msg = f"SRV lookup for {name} failed: {exc}"
        raise NetworkError(msg) from exc
    servers.extend(host for host in hosts if host not in servers)
    logger.debug("ldapclient.utils.srv domain=%s site=%s servers=%s", domain, site, servers)
    return servers
