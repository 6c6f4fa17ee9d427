"""Decode a compiled class file into a ``ClassDescriptor``."""

from __future__ import annotations

import logging
from pathlib import Path

from mainseq.classfile._buffer import ByteReader
from mainseq.classfile.bytecode import MEMBER_OPCODES, scan_instructions
from mainseq.classfile.constant_pool import ConstantPool, parse_constant_pool
from mainseq.classfile.descriptors import field_type_name, parse_method_descriptor
from mainseq.errors import (
    ClassFileError,
    FilesystemAccessError,
    MalformedClassFormatError,
)
from mainseq.model import ClassDescriptor, MethodDescriptor

logger = logging.getLogger(__name__)

MAGIC = 0xCAFEBABE


def read_class_file(path: Path) -> ClassDescriptor:
    """Read and decode the class file at *path*."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FilesystemAccessError(path, e) from e
    return decode_class(data)


def decode_class(data: bytes) -> ClassDescriptor:
    """Decode raw class file bytes.

    Raises ``MalformedClassFormatError`` for structural problems and
    ``UnresolvedConstantPoolReferenceError`` when the class's own name cannot
    be resolved.  Unresolvable references inside method bodies are skipped.
    """
    reader = ByteReader(data)
    if reader.remaining < 4 or reader.u4() != MAGIC:
        raise MalformedClassFormatError("bad magic number", 0)
    minor = reader.u2()
    major = reader.u2()

    pool = parse_constant_pool(reader)
    access_flags = reader.u2()
    this_class = reader.u2()
    reader.skip(2)  # super_class
    qualified_name = pool.class_name(this_class)

    interfaces_count = reader.u2()
    reader.skip(2 * interfaces_count)

    for _ in range(reader.u2()):  # fields
        reader.skip(6)  # access_flags, name_index, descriptor_index
        _skip_attributes(reader)

    methods = tuple(
        _read_method(reader, pool, qualified_name) for _ in range(reader.u2())
    )
    _skip_attributes(reader)

    logger.debug(
        "decoded %s (v%d.%d): %d methods", qualified_name, major, minor, len(methods)
    )
    return ClassDescriptor(
        qualified_name=qualified_name,
        access_flags=access_flags,
        methods=methods,
        version=(major, minor),
    )


def _skip_attributes(reader: ByteReader) -> None:
    for _ in range(reader.u2()):
        reader.skip(2)
        reader.skip(reader.u4())


def _resolve(what: str, owner: str, resolve, *args) -> str | None:
    """Call *resolve*; log and return None if the reference is unusable."""
    try:
        return resolve(*args)
    except ClassFileError as e:
        logger.debug("%s: skipping unresolved %s: %s", owner, what, e)
        return None


class _MethodBuilder:
    """Collects attribute data for one method while it is being read."""

    def __init__(self, name: str, descriptor: str) -> None:
        self.name = name
        self.descriptor = descriptor
        self.exceptions: set[str] = set()
        self.operand_types: list[str] = []
        self.local_types: list[str] = []

    def build(self, owner: str) -> MethodDescriptor:
        return_type = "void"
        params: list[str] = []
        if self.descriptor:
            try:
                return_type, params = parse_method_descriptor(self.descriptor)
            except MalformedClassFormatError as e:
                logger.debug("%s.%s: skipping bad descriptor: %s", owner, self.name, e)
        return MethodDescriptor(
            name=self.name,
            descriptor=self.descriptor,
            return_type=return_type,
            parameter_types=tuple(params),
            declared_exceptions=frozenset(self.exceptions),
            instruction_operand_types=tuple(self.operand_types),
            local_variable_types=tuple(self.local_types),
        )


def _read_method(reader: ByteReader, pool: ConstantPool, owner: str) -> MethodDescriptor:
    reader.skip(2)  # access_flags
    name = _resolve("method name", owner, pool.utf8, reader.u2()) or "?"
    descriptor = _resolve("method descriptor", owner, pool.utf8, reader.u2()) or ""
    method = _MethodBuilder(name, descriptor)
    where = f"{owner}.{name}"

    for _ in range(reader.u2()):
        attr_name = _resolve("attribute name", where, pool.utf8, reader.u2())
        length = reader.u4()
        if reader.remaining < length:
            raise MalformedClassFormatError(
                f"attribute length {length} exceeds remaining {reader.remaining}",
                reader.offset,
            )
        body = ByteReader(reader.read(length))
        if attr_name == "Exceptions":
            _read_exceptions(body, pool, method, where)
        elif attr_name == "Code":
            _read_code(body, pool, method, where)

    return method.build(owner)


def _read_exceptions(
    body: ByteReader, pool: ConstantPool, method: _MethodBuilder, where: str
) -> None:
    for _ in range(body.u2()):
        exc = _resolve("exception", where, pool.class_name, body.u2())
        if exc is not None:
            method.exceptions.add(exc)


def _read_code(
    body: ByteReader, pool: ConstantPool, method: _MethodBuilder, where: str
) -> None:
    body.skip(4)  # max_stack, max_locals
    code = body.read(body.u4())
    for opcode, index in scan_instructions(code):
        resolve = pool.member_owner if opcode in MEMBER_OPCODES else pool.class_name
        type_name = _resolve("instruction operand", where, resolve, index)
        if type_name is not None:
            method.operand_types.append(type_name)

    body.skip(8 * body.u2())  # exception_table

    for _ in range(body.u2()):
        attr_name = _resolve("attribute name", where, pool.utf8, body.u2())
        length = body.u4()
        attr = ByteReader(body.read(length))
        if attr_name == "LocalVariableTable":
            _read_local_variables(attr, pool, method, where)


def _read_local_variables(
    attr: ByteReader, pool: ConstantPool, method: _MethodBuilder, where: str
) -> None:
    for _ in range(attr.u2()):
        attr.skip(4)  # start_pc, length
        attr.skip(2)  # name_index
        descriptor = _resolve("local variable", where, pool.utf8, attr.u2())
        attr.skip(2)  # index
        if descriptor is None:
            continue
        try:
            method.local_types.append(field_type_name(descriptor))
        except MalformedClassFormatError as e:
            logger.debug("%s: skipping local variable %r: %s", where, descriptor, e)
