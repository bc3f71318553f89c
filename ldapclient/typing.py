"""
Type aliases for the data python-ldap hands us and the data we hand it.
"""

#: A single ``(dn, {attribute: [value, ...]})`` record from ``search_s``
LDAPData = tuple[str, dict[str, list[bytes]]]
#: One element of a ``modify_s`` modlist
ModifyModListEntry = tuple[int, str, list[bytes] | None]
ModifyModList = list[ModifyModListEntry]
#: What :py:meth:`~ldapclient.operations.OperationsMixin.get_object_attributes` returns
AttributeMap = dict[str, list[str]]
