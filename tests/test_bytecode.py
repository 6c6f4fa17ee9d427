"""Unit tests for instruction scanning and constant pool parsing."""

import pytest

from classgen import s4, u1, u2, u4
from mainseq.classfile._buffer import ByteReader
from mainseq.classfile.bytecode import (
    ANEWARRAY,
    CHECKCAST,
    GETFIELD,
    INVOKEINTERFACE,
    INVOKEVIRTUAL,
    NEW,
    scan_instructions,
)
from mainseq.classfile.constant_pool import decode_modified_utf8, parse_constant_pool
from mainseq.errors import MalformedClassFormatError, UnresolvedConstantPoolReferenceError


class TestScanInstructions:
    """Only class-referencing opcodes are reported; the rest are skipped."""

    def test_reports_member_and_type_opcodes(self):
        code = (
            u1(NEW) + u2(7)
            + u1(0x59)  # dup
            + u1(INVOKEVIRTUAL) + u2(8)
            + u1(INVOKEINTERFACE) + u2(9) + u1(1) + u1(0)
            + u1(GETFIELD) + u2(10)
            + u1(CHECKCAST) + u2(11)
            + u1(ANEWARRAY) + u2(12)
            + u1(0xB1)  # return
        )
        assert list(scan_instructions(code)) == [
            (NEW, 7),
            (INVOKEVIRTUAL, 8),
            (INVOKEINTERFACE, 9),
            (GETFIELD, 10),
            (CHECKCAST, 11),
            (ANEWARRAY, 12),
        ]

    def test_skips_operands_of_other_opcodes(self):
        code = (
            u1(0x10) + u1(0xBB)  # bipush with a byte that looks like `new`
            + u1(0x11) + u2(0xBBBB)  # sipush
            + u1(0x12) + u1(3)  # ldc
            + u1(0x84) + u1(1) + u1(1)  # iinc
            + u1(0xA7) + u2(0)  # goto
            + u1(0xC8) + u4(0)  # goto_w
            + u1(0xC5) + u2(4) + u1(2)  # multianewarray
            + u1(0xBA) + u2(5) + u2(0)  # invokedynamic
            + u1(NEW) + u2(6)
        )
        assert list(scan_instructions(code)) == [(NEW, 6)]

    def test_wide_forms(self):
        code = (
            u1(0xC4) + u1(0x15) + u2(300)  # wide iload
            + u1(0xC4) + u1(0x84) + u2(300) + u2(5)  # wide iinc
            + u1(NEW) + u2(3)
        )
        assert list(scan_instructions(code)) == [(NEW, 3)]

    @pytest.mark.parametrize("prefix_len", [0, 1, 2, 3])
    def test_tableswitch_padding(self, prefix_len):
        prefix = u1(0x00) * prefix_len  # nops shift the switch offset
        opcode_offset = prefix_len
        padding = (4 - (opcode_offset + 1) % 4) % 4
        switch = (
            u1(0xAA)
            + b"\x00" * padding
            + s4(0)  # default
            + s4(1)  # low
            + s4(3)  # high
            + s4(0) * 3
        )
        code = prefix + switch + u1(NEW) + u2(9)
        assert list(scan_instructions(code)) == [(NEW, 9)]

    def test_lookupswitch(self):
        padding = 3  # opcode at 0, operands start at 4
        code = (
            u1(0xAB)
            + b"\x00" * padding
            + s4(0)
            + s4(2)  # npairs
            + s4(1) + s4(0)
            + s4(5) + s4(0)
            + u1(NEW) + u2(4)
        )
        assert list(scan_instructions(code)) == [(NEW, 4)]

    def test_unknown_opcode(self):
        with pytest.raises(MalformedClassFormatError, match="unknown opcode"):
            list(scan_instructions(u1(0xCB)))

    def test_truncated_operand(self):
        with pytest.raises(MalformedClassFormatError, match="truncated"):
            list(scan_instructions(u1(NEW) + u1(0)))

    def test_bad_tableswitch_bounds(self):
        code = u1(0xAA) + b"\x00" * 3 + s4(0) + s4(5) + s4(1)
        with pytest.raises(MalformedClassFormatError):
            list(scan_instructions(code))


class TestConstantPool:
    """Constant pool parsing, skipping and resolution."""

    def _pool(self, count: int, body: bytes):
        return parse_constant_pool(ByteReader(u2(count) + body))

    def test_resolves_class_and_member_refs(self):
        body = (
            u1(1) + u2(11) + b"com/x/Thing"  # 1
            + u1(7) + u2(1)  # 2 Class
            + u1(12) + u2(1) + u2(1)  # 3 NameAndType
            + u1(10) + u2(2) + u2(3)  # 4 Methodref
        )
        pool = self._pool(5, body)
        assert pool.class_name(2) == "com.x.Thing"
        assert pool.member_owner(4) == "com.x.Thing"
        assert pool.utf8(1) == "com/x/Thing"

    def test_long_and_double_take_two_slots(self):
        body = (
            u1(5) + b"\x00" * 8  # 1-2 Long
            + u1(6) + b"\x00" * 8  # 3-4 Double
            + u1(1) + u2(1) + b"A"  # 5
            + u1(7) + u2(5)  # 6
        )
        pool = self._pool(7, body)
        assert pool.class_name(6) == "A"
        with pytest.raises(UnresolvedConstantPoolReferenceError):
            pool.utf8(2)

    def test_skips_uninterpreted_tags(self):
        body = (
            u1(3) + u4(42)  # 1 Integer
            + u1(8) + u2(1)  # 2 String
            + u1(15) + u1(6) + u2(1)  # 3 MethodHandle
            + u1(18) + u2(0) + u2(1)  # 4 InvokeDynamic
            + u1(19) + u2(1)  # 5 Module
            + u1(1) + u2(1) + b"Z"  # 6
            + u1(7) + u2(6)  # 7
        )
        pool = self._pool(8, body)
        assert pool.class_name(7) == "Z"

    def test_out_of_range_index(self):
        pool = self._pool(2, u1(1) + u2(1) + b"A")
        with pytest.raises(UnresolvedConstantPoolReferenceError, match="out of range"):
            pool.class_name(5)
        with pytest.raises(UnresolvedConstantPoolReferenceError):
            pool.class_name(0)

    def test_wrong_tag(self):
        pool = self._pool(2, u1(1) + u2(1) + b"A")
        with pytest.raises(UnresolvedConstantPoolReferenceError, match="expected Class"):
            pool.class_name(1)
        with pytest.raises(UnresolvedConstantPoolReferenceError):
            pool.member_owner(1)

    def test_unknown_tag(self):
        with pytest.raises(MalformedClassFormatError, match="unknown constant pool tag"):
            self._pool(2, u1(2) + u2(0))

    def test_truncated_utf8(self):
        with pytest.raises(MalformedClassFormatError, match="truncated"):
            self._pool(2, u1(1) + u2(10) + b"abc")

    def test_zero_count(self):
        with pytest.raises(MalformedClassFormatError):
            self._pool(0, b"")


class TestModifiedUtf8:
    """The JVM's modified UTF-8 encoding."""

    def test_ascii(self):
        assert decode_modified_utf8(b"com/x/Foo") == "com/x/Foo"

    def test_encoded_nul(self):
        assert decode_modified_utf8(b"a\xc0\x80b") == "a\x00b"

    def test_supplementary_character_as_surrogate_pair(self):
        # U+1F600 as two 3-byte encoded surrogates (D83D DE00).
        raw = b"\xed\xa0\xbd\xed\xb8\x80"
        assert decode_modified_utf8(raw) == "\U0001F600"

    def test_two_byte_sequence(self):
        assert decode_modified_utf8("é".encode("utf-8")) == "é"
