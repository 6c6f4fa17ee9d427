"""Linear scan of a method's instruction stream.

Only instructions that name a class through the constant pool are reported.
Everything else is stepped over with the operand-length table; branch
targets are never followed.
"""

from __future__ import annotations

from collections.abc import Iterator

from mainseq.classfile._buffer import ByteReader
from mainseq.errors import MalformedClassFormatError

GETSTATIC = 0xB2
PUTSTATIC = 0xB3
GETFIELD = 0xB4
PUTFIELD = 0xB5
INVOKEVIRTUAL = 0xB6
INVOKESPECIAL = 0xB7
INVOKESTATIC = 0xB8
INVOKEINTERFACE = 0xB9
INVOKEDYNAMIC = 0xBA
NEW = 0xBB
ANEWARRAY = 0xBD
CHECKCAST = 0xC0
INSTANCEOF = 0xC1
WIDE = 0xC4
TABLESWITCH = 0xAA
LOOKUPSWITCH = 0xAB
IINC = 0x84

# Constant-pool operand points at a Fieldref/Methodref/InterfaceMethodref.
MEMBER_OPCODES = frozenset(
    {
        GETSTATIC,
        PUTSTATIC,
        GETFIELD,
        PUTFIELD,
        INVOKEVIRTUAL,
        INVOKESPECIAL,
        INVOKESTATIC,
        INVOKEINTERFACE,
    }
)

# Constant-pool operand points at a Class entry.
TYPE_OPCODES = frozenset({NEW, ANEWARRAY, CHECKCAST, INSTANCEOF})


def _operand_lengths() -> dict[int, int]:
    lengths: dict[int, int] = {}
    # nop .. dconst_1
    lengths.update(dict.fromkeys(range(0x00, 0x10), 0))
    lengths[0x10] = 1  # bipush
    lengths[0x11] = 2  # sipush
    lengths[0x12] = 1  # ldc
    lengths[0x13] = 2  # ldc_w
    lengths[0x14] = 2  # ldc2_w
    lengths.update(dict.fromkeys(range(0x15, 0x1A), 1))  # iload .. aload
    lengths.update(dict.fromkeys(range(0x1A, 0x36), 0))  # *load_n, *aload
    lengths.update(dict.fromkeys(range(0x36, 0x3B), 1))  # istore .. astore
    lengths.update(dict.fromkeys(range(0x3B, 0x84), 0))  # *store_n .. lxor
    lengths[IINC] = 2
    lengths.update(dict.fromkeys(range(0x85, 0x99), 0))  # conversions, compares
    lengths.update(dict.fromkeys(range(0x99, 0xA9), 2))  # if* .. jsr
    lengths[0xA9] = 1  # ret
    lengths.update(dict.fromkeys(range(0xAC, 0xB2), 0))  # *return
    lengths.update(dict.fromkeys(MEMBER_OPCODES, 2))
    lengths[INVOKEINTERFACE] = 4
    lengths[INVOKEDYNAMIC] = 4
    lengths[NEW] = 2
    lengths[0xBC] = 1  # newarray
    lengths[ANEWARRAY] = 2
    lengths[0xBE] = 0  # arraylength
    lengths[0xBF] = 0  # athrow
    lengths[CHECKCAST] = 2
    lengths[INSTANCEOF] = 2
    lengths[0xC2] = 0  # monitorenter
    lengths[0xC3] = 0  # monitorexit
    lengths[0xC5] = 3  # multianewarray
    lengths[0xC6] = 2  # ifnull
    lengths[0xC7] = 2  # ifnonnull
    lengths[0xC8] = 4  # goto_w
    lengths[0xC9] = 4  # jsr_w
    return lengths


OPERAND_LENGTHS = _operand_lengths()


def _skip_switch(reader: ByteReader, opcode: int, opcode_offset: int) -> None:
    # Operands start at the next multiple of four from the method's code start.
    padding = (4 - (opcode_offset + 1) % 4) % 4
    reader.skip(padding)
    reader.skip(4)  # default
    if opcode == TABLESWITCH:
        low = reader.s4()
        high = reader.s4()
        if high < low:
            raise MalformedClassFormatError("tableswitch high < low", opcode_offset)
        reader.skip(4 * (high - low + 1))
    else:
        npairs = reader.s4()
        if npairs < 0:
            raise MalformedClassFormatError("negative lookupswitch npairs", opcode_offset)
        reader.skip(8 * npairs)


def scan_instructions(code: bytes) -> Iterator[tuple[int, int]]:
    """Yield ``(opcode, constant_pool_index)`` for class-referencing instructions.

    Member opcodes (field access, invocations) yield a field/method ref
    index; type opcodes (``new``, ``anewarray``, ``checkcast``,
    ``instanceof``) yield a class index.
    """
    reader = ByteReader(code)
    while reader.remaining:
        offset = reader.offset
        opcode = reader.u1()
        if opcode in MEMBER_OPCODES or opcode in TYPE_OPCODES:
            index = reader.u2()
            if opcode == INVOKEINTERFACE:
                reader.skip(2)  # count, 0
            yield opcode, index
        elif opcode in (TABLESWITCH, LOOKUPSWITCH):
            _skip_switch(reader, opcode, offset)
        elif opcode == WIDE:
            modified = reader.u1()
            reader.skip(4 if modified == IINC else 2)
        elif opcode in OPERAND_LENGTHS:
            reader.skip(OPERAND_LENGTHS[opcode])
        else:
            raise MalformedClassFormatError(f"unknown opcode 0x{opcode:02x}", offset)
