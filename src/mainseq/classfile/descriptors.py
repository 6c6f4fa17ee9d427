"""Field and method descriptor grammar.

Descriptors use single-letter codes for primitives, ``[`` prefixes for array
dimensions and ``L<internal/name>;`` for object types.  Names are returned in
dotted form with ``[]`` per array dimension, e.g. ``[[Lcom/example/Foo;``
becomes ``com.example.Foo[][]``.
"""

from __future__ import annotations

from mainseq.errors import MalformedClassFormatError

PRIMITIVES = {
    "B": "byte",
    "C": "char",
    "D": "double",
    "F": "float",
    "I": "int",
    "J": "long",
    "S": "short",
    "Z": "boolean",
}

PRIMITIVE_NAMES = frozenset(PRIMITIVES.values()) | {"void"}


def internal_to_dotted(internal_name: str) -> str:
    """``com/example/Foo`` -> ``com.example.Foo``."""
    return internal_name.replace("/", ".")


def parse_field_type(descriptor: str, pos: int = 0) -> tuple[str, int]:
    """Parse one field type starting at *pos*; return ``(name, next_pos)``."""
    dims = 0
    while pos < len(descriptor) and descriptor[pos] == "[":
        dims += 1
        pos += 1
    if pos >= len(descriptor):
        raise MalformedClassFormatError(f"truncated descriptor {descriptor!r}")

    code = descriptor[pos]
    if code in PRIMITIVES:
        name = PRIMITIVES[code]
        pos += 1
    elif code == "L":
        end = descriptor.find(";", pos)
        if end == -1 or end == pos + 1:
            raise MalformedClassFormatError(f"bad object type in {descriptor!r}")
        name = internal_to_dotted(descriptor[pos + 1 : end])
        pos = end + 1
    else:
        raise MalformedClassFormatError(
            f"unexpected {code!r} in descriptor {descriptor!r}"
        )
    return name + "[]" * dims, pos


def field_type_name(descriptor: str) -> str:
    """Parse a complete field descriptor such as a local variable's type."""
    name, pos = parse_field_type(descriptor)
    if pos != len(descriptor):
        raise MalformedClassFormatError(f"trailing data in descriptor {descriptor!r}")
    return name


def parse_method_descriptor(descriptor: str) -> tuple[str, list[str]]:
    """Split ``(params)return`` into ``(return_type, [param_types])``."""
    if not descriptor.startswith("("):
        raise MalformedClassFormatError(f"bad method descriptor {descriptor!r}")
    params: list[str] = []
    pos = 1
    while True:
        if pos >= len(descriptor):
            raise MalformedClassFormatError(f"unterminated parameters in {descriptor!r}")
        if descriptor[pos] == ")":
            break
        name, pos = parse_field_type(descriptor, pos)
        params.append(name)
    pos += 1
    if descriptor[pos:] == "V":
        return "void", params
    return field_type_name(descriptor[pos:]), params


def class_entry_name(internal_name: str) -> str:
    """Name of a ``CONSTANT_Class`` entry.

    Class entries hold a bare internal name, except for array classes, which
    hold an array descriptor (``[Ljava/lang/String;``).
    """
    if internal_name.startswith("["):
        return field_type_name(internal_name)
    return internal_to_dotted(internal_name)
