"""
Request value objects for search, modify and modify-DN operations.
"""

from dataclasses import dataclass, field

from .constants import ADD, DELETE, REPLACE, SCOPE_WHOLE_SUBTREE


@dataclass
class SearchRequest:
    """
    What to search for.

    ``filter`` is handed to the server untouched; we don't parse it.  An empty
    ``attributes`` list means "all user attributes" (``*``).
    """

    base_dn: str
    filter: str = "(objectClass=*)"
    scope: int = SCOPE_WHOLE_SUBTREE
    attributes: list[str] = field(default_factory=list)


@dataclass
class PartialAttribute:
    """
    An attribute type and the values a :py:class:`Change` applies to it
    (RFC 4511 section 4.6).
    """

    type: str
    vals: list[str] = field(default_factory=list)


@dataclass
class Change:
    #: one of :py:data:`~ldapclient.constants.ADD`,
    #: :py:data:`~ldapclient.constants.DELETE` or
    #: :py:data:`~ldapclient.constants.REPLACE`
    operation: int
    modification: PartialAttribute


@dataclass
class ModifyRequest:
    """
    An ordered list of changes to apply to one entry.

    Example:
        >>> req = ModifyRequest("uid=alice,ou=users,dc=example,dc=org")
        >>> req.replace("sn", ["Liddell"])
        >>> req.add("mail", ["alice@example.org"])

    """

    dn: str
    changes: list[Change] = field(default_factory=list)

    def _append(self, operation: int, attr_type: str, attr_vals: list[str]) -> None:
        self.changes.append(Change(operation, PartialAttribute(attr_type, list(attr_vals))))

    def add(self, attr_type: str, attr_vals: list[str]) -> None:
        self._append(ADD, attr_type, attr_vals)

    def delete(self, attr_type: str, attr_vals: list[str] | None = None) -> None:
        self._append(DELETE, attr_type, attr_vals or [])

    def replace(self, attr_type: str, attr_vals: list[str]) -> None:
        self._append(REPLACE, attr_type, attr_vals)


@dataclass
class ModifyDNRequest:
    """
    Rename an entry, and optionally move it under a new parent.

    Leave ``new_superior`` empty to rename in place.  To move an entry without
    renaming it, pass the entry's current first RDN as ``new_rdn``.

    Example:
        This renames ``uid=someone,dc=example,dc=org`` to
        ``uid=newname,dc=example,dc=org``:

        >>> ModifyDNRequest("uid=someone,dc=example,dc=org", "uid=newname", True, "")

    """

    dn: str
    new_rdn: str
    delete_old_rdn: bool = True
    new_superior: str = ""
