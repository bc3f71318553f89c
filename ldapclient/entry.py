"""
The directory entry model.

A search hands back :py:class:`SearchResult` objects full of
:py:class:`Entry` objects, each of which holds an ordered tuple of
:py:class:`EntryAttribute` objects.  All three are frozen: once built by a
search they do not change.
"""

import sys
from dataclasses import dataclass, field
from typing import TextIO


@dataclass(frozen=True)
class EntryAttribute:
    """
    One named, multi-valued attribute of an entry.

    ``values`` and ``byte_values`` always have the same length; element ``i``
    of one is element ``i`` of the other, as text and as raw bytes.
    """

    #: the attribute name, as the server returned it
    name: str
    #: the values decoded as UTF-8
    values: tuple[str, ...] = ()
    #: the raw values
    byte_values: tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        if len(self.values) != len(self.byte_values):
            msg = (
                f"EntryAttribute {self.name!r}: got {len(self.values)} values but "
                f"{len(self.byte_values)} byte values"
            )
            raise ValueError(msg)

    @classmethod
    def from_strings(cls, name: str, values: list[str] | tuple[str, ...]) -> "EntryAttribute":
        """
        Build an attribute from text values, encoding each one as UTF-8.
        """
        return cls(
            name=name,
            values=tuple(values),
            byte_values=tuple(value.encode("utf-8") for value in values),
        )

    @classmethod
    def from_bytes(
        cls, name: str, raw: list[bytes] | tuple[bytes, ...]
    ) -> "EntryAttribute":
        """
        Build an attribute from raw values as python-ldap returns them.

        Values that are not valid UTF-8 (``objectSid``, ``jpegPhoto`` and
        friends) get replacement characters in :py:attr:`values`; the
        untouched bytes are always available in :py:attr:`byte_values`.
        """
        return cls(
            name=name,
            values=tuple(value.decode("utf-8", errors="replace") for value in raw),
            byte_values=tuple(raw),
        )

    def pretty_format(self, indent: int = 0) -> str:
        return f"{' ' * indent}{self.name}: {list(self.values)}"

    def pretty_print(self, indent: int = 0, file: TextIO | None = None) -> None:
        print(self.pretty_format(indent), file=file or sys.stdout)


@dataclass(frozen=True)
class Entry:
    """
    A single directory entry: its DN and its attributes.

    All the ``get_*`` accessors return an empty value (``[]``, ``""`` or
    ``b""``) for an attribute the entry doesn't have.  None of them raise.

    The plain accessors match the attribute name exactly; the
    ``get_equal_fold_*`` accessors match it case-insensitively, which is how
    LDAP itself compares attribute names.
    """

    dn: str
    attributes: tuple[EntryAttribute, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.dn:
            msg = "Entry dn must not be empty"
            raise ValueError(msg)
        seen: set[str] = set()
        for attr in self.attributes:
            if attr.name in seen:
                msg = f"Entry {self.dn!r}: duplicate attribute {attr.name!r}"
                raise ValueError(msg)
            seen.add(attr.name)

    @classmethod
    def from_ldap_data(cls, dn: str, attrs: dict[str, list[bytes]]) -> "Entry":
        """
        Build an entry from a python-ldap ``(dn, {name: [bytes, ...]})`` record.

        Attribute order is the order the server returned them in.
        """
        return cls(
            dn=dn,
            attributes=tuple(
                EntryAttribute.from_bytes(name, values) for name, values in attrs.items()
            ),
        )

    def _find(self, attribute: str) -> EntryAttribute | None:
        for attr in self.attributes:
            if attr.name == attribute:
                return attr
        return None

    def _find_fold(self, attribute: str) -> EntryAttribute | None:
        folded = attribute.casefold()
        for attr in self.attributes:
            if attr.name.casefold() == folded:
                return attr
        return None

    # All values

    def get_attribute_values(self, attribute: str) -> list[str]:
        attr = self._find(attribute)
        return list(attr.values) if attr else []

    def get_equal_fold_attribute_values(self, attribute: str) -> list[str]:
        attr = self._find_fold(attribute)
        return list(attr.values) if attr else []

    def get_raw_attribute_values(self, attribute: str) -> list[bytes]:
        attr = self._find(attribute)
        return list(attr.byte_values) if attr else []

    def get_equal_fold_raw_attribute_values(self, attribute: str) -> list[bytes]:
        attr = self._find_fold(attribute)
        return list(attr.byte_values) if attr else []

    # First value

    def get_attribute_value(self, attribute: str) -> str:
        values = self.get_attribute_values(attribute)
        return values[0] if values else ""

    def get_equal_fold_attribute_value(self, attribute: str) -> str:
        values = self.get_equal_fold_attribute_values(attribute)
        return values[0] if values else ""

    def get_raw_attribute_value(self, attribute: str) -> bytes:
        values = self.get_raw_attribute_values(attribute)
        return values[0] if values else b""

    def get_equal_fold_raw_attribute_value(self, attribute: str) -> bytes:
        values = self.get_equal_fold_raw_attribute_values(attribute)
        return values[0] if values else b""

    def pretty_format(self, indent: int = 0) -> str:
        """
        Render the entry for humans, attributes indented two spaces deeper
        than the DN line.
        """
        lines = [f"{' ' * indent}DN: {self.dn}"]
        lines.extend(attr.pretty_format(indent + 2) for attr in self.attributes)
        return "\n".join(lines)

    def pretty_print(self, indent: int = 0, file: TextIO | None = None) -> None:
        print(self.pretty_format(indent), file=file or sys.stdout)


@dataclass(frozen=True)
class SearchResult:
    """
    The entries a search found, in the order their DNs were enumerated.
    """

    entries: tuple[Entry, ...] = ()

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, key: int) -> Entry:
        return self.entries[key]

    @property
    def dns(self) -> list[str]:
        return [entry.dn for entry in self.entries]

    def pretty_format(self, indent: int = 0) -> str:
        return "\n".join(entry.pretty_format(indent) for entry in self.entries)

    def pretty_print(self, indent: int = 0, file: TextIO | None = None) -> None:
        print(self.pretty_format(indent), file=file or sys.stdout)
