"""
Directory operations: search, modify, rename, move, delete, and the
single-object attribute helpers built on top of them.
"""

from typing import Any

from .constants import (
    ADD,
    ALL_ATTRIBUTES,
    CHANGE_OPERATIONS,
    DEFAULT_FILTER,
    NO_ATTRIBUTES,
    SCOPE_BASE_OBJECT,
    SCOPE_WHOLE_SUBTREE,
    SCOPES,
)
from .entry import Entry, SearchResult
from .errors import LDAP_NO_SUCH_ATTRIBUTE, LDAP_NO_SUCH_OBJECT, LDAPError, ParamError
from .requests import Change, ModifyDNRequest, ModifyRequest, SearchRequest
from .session import synchronized
from .typing import AttributeMap, ModifyModListEntry
from .utils import first_rdn


def _encode_values(values: list[str]) -> list[bytes] | None:
    if not values:
        return None
    return [value.encode("utf-8") for value in values]


def _validate_change(change: Change) -> ModifyModListEntry:
    """
    Check ``change`` and turn it into a python-ldap modlist entry.

    Raises:
        ParamError: the operation is unknown, the attribute type is empty, or
            an ADD has no values

    """
    if change.operation not in CHANGE_OPERATIONS:
        msg = f"Unknown modify operation {change.operation!r}"
        raise ParamError(msg)
    attr = change.modification
    if not attr.type:
        msg = "Modify change has no attribute type"
        raise ParamError(msg)
    if change.operation == ADD and not attr.vals:
        msg = f"ADD of {attr.type} needs at least one value"
        raise ParamError(msg)
    return (change.operation, attr.type, _encode_values(attr.vals))


class OperationsMixin:
    """
    The directory operations of :py:class:`~ldapclient.connection.Connection`.

    Every one of these checks its arguments before doing anything else, holds
    the connection lock while it talks to the server, and raises
    :py:class:`~ldapclient.errors.LDAPError` (never a python-ldap exception)
    when the server says no.
    """

    # ----------------------
    # Search
    # ----------------------

    def search(self, req: SearchRequest) -> SearchResult:
        """
        Find the entries matching ``req``.

        We do this in two phases: first a search that returns only the DNs of
        the matching entries, then a base-scope read of each of those DNs in
        turn.  If any of the reads fails, the whole search fails and we throw
        away what we have so far.

        Args:
            req: what to search for

        Raises:
            ParamError: ``req.scope`` is not a known scope

        Returns:
            The matching entries, in the order the server listed their DNs.

        """
        if req.scope not in SCOPES:
            msg = f"Unknown search scope {req.scope!r}"
            raise ParamError(msg)
        attrlist = list(req.attributes) or [ALL_ATTRIBUTES]
        return self._search(req.base_dn, req.scope, req.filter, attrlist)

    @synchronized
    def _search(
        self, base: str, scope: int, filterstr: str, attrlist: list[str]
    ) -> SearchResult:
        dns = self._search_dns(base, scope, filterstr)
        entries = []
        for dn in dns:
            for entry_dn, attrs in self.session.search(
                dn, SCOPE_BASE_OBJECT, DEFAULT_FILTER, attrlist
            ):
                entries.append(Entry.from_ldap_data(entry_dn, attrs))
        self.logger.debug(
            "ldapclient.operations.search base=%s scope=%s filter=%s count=%d",
            base,
            scope,
            filterstr,
            len(entries),
        )
        return SearchResult(tuple(entries))

    def _search_dns(self, base: str, scope: int, filterstr: str) -> list[str]:
        return [
            dn for dn, _ in self.session.search(base, scope, filterstr, [NO_ATTRIBUTES])
        ]

    def search_dn(
        self,
        base: str,
        filterstr: str = DEFAULT_FILTER,
        scope: int = SCOPE_WHOLE_SUBTREE,
    ) -> list[str]:
        """
        Return just the DNs of the entries under ``base`` that match
        ``filterstr``.

        Raises:
            ParamError: ``scope`` is not a known scope

        """
        if scope not in SCOPES:
            msg = f"Unknown search scope {scope!r}"
            raise ParamError(msg)
        with self._lock:
            self._ensure_usable()
            return self._search_dns(base, scope, filterstr)

    @synchronized
    def dn_exists(self, dn: str, objectclass: str = "*") -> bool:
        """
        Does ``dn`` exist?  If ``objectclass`` is given, does it exist and
        have that object class?
        """
        try:
            found = self.session.search(
                dn, SCOPE_BASE_OBJECT, f"(objectClass={objectclass})", [NO_ATTRIBUTES]
            )
        except LDAPError as exc:
            if exc.result_code == LDAP_NO_SUCH_OBJECT:
                return False
            raise
        return bool(found)

    # ----------------------
    # Modify
    # ----------------------

    def modify(self, req: ModifyRequest) -> None:
        """
        Apply the changes in ``req`` to ``req.dn``, one at a time and in
        order.

        This is not atomic.  If a change fails we stop there and raise its
        error, but the changes before it stay applied.

        Raises:
            ParamError: one of the changes is malformed.  We check them all
                before sending any of them.

        """
        modlist = [_validate_change(change) for change in req.changes]
        if not modlist:
            self.logger.debug("ldapclient.operations.modify.no-changes dn=%s", req.dn)
            return
        self._modify(req.dn, modlist)

    @synchronized
    def _modify(self, dn: str, modlist: list[ModifyModListEntry]) -> None:
        for entry in modlist:
            self.session.modify(dn, [entry])
        self.logger.debug(
            "ldapclient.operations.modify dn=%s changes=%d", dn, len(modlist)
        )

    @synchronized
    def modify_dn(self, req: ModifyDNRequest) -> None:
        """
        Rename ``req.dn`` to ``req.new_rdn``, moving it under
        ``req.new_superior`` if that is set.
        """
        self.session.rename(
            req.dn,
            req.new_rdn,
            req.new_superior or None,
            int(req.delete_old_rdn),
        )
        self.logger.debug(
            "ldapclient.operations.modify_dn dn=%s new_rdn=%s new_superior=%s",
            req.dn,
            req.new_rdn,
            req.new_superior,
        )

    @synchronized
    def delete(self, dn: str) -> None:
        self.session.delete(dn)
        self.logger.debug("ldapclient.operations.delete dn=%s", dn)

    def rename(self, dn: str, new_rdn: str) -> None:
        """
        Rename ``dn`` in place, dropping the old RDN value.
        """
        self.modify_dn(ModifyDNRequest(dn, new_rdn, delete_old_rdn=True))

    def move(self, dn: str, new_container: str) -> None:
        """
        Move ``dn`` under ``new_container``, keeping its RDN.

        Raises:
            ParamError: ``dn`` is not a valid DN, or ``new_container`` does
                not exist

        """
        try:
            rdn = first_rdn(dn)
        except ValueError as exc:
            msg = f"Cannot move {dn!r}: {exc}"
            raise ParamError(msg) from exc
        with self._lock:
            if not self.dn_exists(new_container):
                msg = f"Cannot move {dn}: {new_container} does not exist"
                raise ParamError(msg)
            self.modify_dn(
                ModifyDNRequest(dn, rdn, delete_old_rdn=True, new_superior=new_container)
            )

    # ----------------------
    # Single object helpers
    # ----------------------

    def get_object_attributes(self, dn: str, *attrs: str) -> AttributeMap:
        """
        Read ``attrs`` (or every user attribute, if none are named) from the
        entry at ``dn``.

        Returns:
            A dict of attribute name to values.  Attributes the entry doesn't
            have are simply not in it.

        """
        result = self.search(SearchRequest(dn, DEFAULT_FILTER, SCOPE_BASE_OBJECT, list(attrs)))
        values: AttributeMap = {}
        for entry in result:
            for attr in entry.attributes:
                values[attr.name] = list(attr.values)
        return values

    def get_object_attribute(self, dn: str, attribute: str) -> list[str]:
        """
        Return the values of ``attribute`` on the entry at ``dn``, or ``[]``
        if it has none.  The attribute name is matched case-insensitively.
        """
        result = self.search(
            SearchRequest(dn, DEFAULT_FILTER, SCOPE_BASE_OBJECT, [attribute])
        )
        for entry in result:
            return entry.get_equal_fold_attribute_values(attribute)
        return []

    def set_object_attribute(self, dn: str, attr: str, *values: Any) -> None:
        """
        Replace every value of ``attr`` on ``dn`` with ``values``.

        Raises:
            ParamError: no values were given.  Use
                :py:meth:`clear_object_attribute` to remove an attribute.

        """
        if not values:
            msg = f"set_object_attribute({dn}, {attr}) needs at least one value"
            raise ParamError(msg)
        req = ModifyRequest(dn)
        req.replace(attr, [str(value) for value in values])
        self.modify(req)

    def clear_object_attribute(self, dn: str, attr: str) -> None:
        """
        Remove ``attr`` from ``dn`` entirely.  Clearing an attribute the entry
        doesn't have is not an error.
        """
        req = ModifyRequest(dn)
        req.delete(attr)
        try:
            self.modify(req)
        except LDAPError as exc:
            if exc.result_code != LDAP_NO_SUCH_ATTRIBUTE:
                raise
            self.logger.debug(
                "ldapclient.operations.clear.no-such-attribute dn=%s attr=%s", dn, attr
            )
