"""Constant pool parsing and resolution.

Only the entry kinds the dependency analysis reads are kept as variants:
UTF-8 strings, class references and field/method references.  Every other
tag is skipped by its fixed width.  Lookups resolve straight to strings so
callers never deal with raw tags.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from mainseq.classfile._buffer import ByteReader
from mainseq.classfile.descriptors import class_entry_name
from mainseq.errors import MalformedClassFormatError, UnresolvedConstantPoolReferenceError


CONSTANT_Utf8 = 1
CONSTANT_Integer = 3
CONSTANT_Float = 4
CONSTANT_Long = 5
CONSTANT_Double = 6
CONSTANT_Class = 7
CONSTANT_String = 8
CONSTANT_Fieldref = 9
CONSTANT_Methodref = 10
CONSTANT_InterfaceMethodref = 11
CONSTANT_NameAndType = 12
CONSTANT_MethodHandle = 15
CONSTANT_MethodType = 16
CONSTANT_Dynamic = 17
CONSTANT_InvokeDynamic = 18
CONSTANT_Module = 19
CONSTANT_Package = 20

# Payload width of tags we never interpret.
_SKIPPED_WIDTHS = {
    CONSTANT_Integer: 4,
    CONSTANT_Float: 4,
    CONSTANT_Long: 8,
    CONSTANT_Double: 8,
    CONSTANT_String: 2,
    CONSTANT_NameAndType: 4,
    CONSTANT_MethodHandle: 3,
    CONSTANT_MethodType: 2,
    CONSTANT_Dynamic: 4,
    CONSTANT_InvokeDynamic: 4,
    CONSTANT_Module: 2,
    CONSTANT_Package: 2,
}

_MEMBER_REF_KINDS = {
    CONSTANT_Fieldref: "Fieldref",
    CONSTANT_Methodref: "Methodref",
    CONSTANT_InterfaceMethodref: "InterfaceMethodref",
}


@dataclass(frozen=True)
class Utf8Entry:
    value: str


@dataclass(frozen=True)
class ClassEntry:
    name_index: int


@dataclass(frozen=True)
class MemberRefEntry:
    kind: str  # "Fieldref", "Methodref", "InterfaceMethodref"
    class_index: int


@dataclass(frozen=True)
class OpaqueEntry:
    """Placeholder for a tag that is not interpreted."""

    tag: int


Entry = Union[Utf8Entry, ClassEntry, MemberRefEntry, OpaqueEntry]


def decode_modified_utf8(raw: bytes) -> str:
    """Decode the JVM's modified UTF-8.

    NUL is stored as ``C0 80`` and supplementary characters as two encoded
    surrogates; both are normalised before decoding.
    """
    if b"\xc0\x80" in raw:
        raw = raw.replace(b"\xc0\x80", b"\x00")
    try:
        text = raw.decode("utf-8", errors="surrogatepass")
        return text.encode("utf-16", errors="surrogatepass").decode(
            "utf-16", errors="surrogatepass"
        )
    except UnicodeError as e:
        raise MalformedClassFormatError(f"invalid modified UTF-8: {e}") from e


class ConstantPool:
    """Parsed constant pool; index 0 and the upper slot of Long/Double are empty."""

    def __init__(self, entries: list[Entry | None]) -> None:
        self._entries = entries

    def __len__(self) -> int:
        return len(self._entries)

    def _entry(self, index: int, expected: str) -> Entry:
        if not 0 < index < len(self._entries):
            raise UnresolvedConstantPoolReferenceError(index, expected)
        entry = self._entries[index]
        if entry is None:
            raise UnresolvedConstantPoolReferenceError(index, expected, "an unusable slot")
        return entry

    def utf8(self, index: int) -> str:
        entry = self._entry(index, "Utf8")
        if not isinstance(entry, Utf8Entry):
            raise UnresolvedConstantPoolReferenceError(index, "Utf8", _describe(entry))
        return entry.value

    def class_name(self, index: int) -> str:
        """Dotted name of the ``CONSTANT_Class`` entry at *index*."""
        entry = self._entry(index, "Class")
        if not isinstance(entry, ClassEntry):
            raise UnresolvedConstantPoolReferenceError(index, "Class", _describe(entry))
        return class_entry_name(self.utf8(entry.name_index))

    def member_owner(self, index: int) -> str:
        """Dotted name of the class owning the field or method ref at *index*."""
        entry = self._entry(index, "Fieldref/Methodref")
        if not isinstance(entry, MemberRefEntry):
            raise UnresolvedConstantPoolReferenceError(
                index, "Fieldref/Methodref", _describe(entry)
            )
        return self.class_name(entry.class_index)


def _describe(entry: Entry) -> str:
    if isinstance(entry, MemberRefEntry):
        return entry.kind
    if isinstance(entry, OpaqueEntry):
        return f"tag {entry.tag}"
    return type(entry).__name__.removesuffix("Entry")


def parse_constant_pool(reader: ByteReader) -> ConstantPool:
    """Read ``constant_pool_count`` and the entries that follow it."""
    count = reader.u2()
    if count == 0:
        raise MalformedClassFormatError("constant_pool_count is zero", reader.offset - 2)

    entries: list[Entry | None] = [None] * count
    index = 1
    while index < count:
        tag_offset = reader.offset
        tag = reader.u1()
        if tag == CONSTANT_Utf8:
            length = reader.u2()
            entries[index] = Utf8Entry(decode_modified_utf8(reader.read(length)))
        elif tag == CONSTANT_Class:
            entries[index] = ClassEntry(reader.u2())
        elif tag in _MEMBER_REF_KINDS:
            class_index = reader.u2()
            reader.skip(2)  # name_and_type_index
            entries[index] = MemberRefEntry(_MEMBER_REF_KINDS[tag], class_index)
        elif tag in _SKIPPED_WIDTHS:
            reader.skip(_SKIPPED_WIDTHS[tag])
            entries[index] = OpaqueEntry(tag)
        else:
            raise MalformedClassFormatError(f"unknown constant pool tag {tag}", tag_offset)

        # Long and Double take two slots; the second one is unusable.
        index += 2 if tag in (CONSTANT_Long, CONSTANT_Double) else 1

    return ConstantPool(entries)
