"""Bounds-checked big-endian reader over a class file buffer."""

from __future__ import annotations

import struct

from mainseq.errors import MalformedClassFormatError

_U2 = struct.Struct(">H")
_U4 = struct.Struct(">I")
_S4 = struct.Struct(">i")


class ByteReader:
    """Sequential reader; every read past the end raises ``MalformedClassFormatError``."""

    __slots__ = ("_data", "offset")

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = memoryview(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def _need(self, n: int) -> int:
        if n < 0 or self.offset + n > len(self._data):
            raise MalformedClassFormatError(
                f"truncated: need {n} bytes, {self.remaining} left", self.offset
            )
        start = self.offset
        self.offset += n
        return start

    def u1(self) -> int:
        return self._data[self._need(1)]

    def u2(self) -> int:
        return _U2.unpack_from(self._data, self._need(2))[0]

    def u4(self) -> int:
        return _U4.unpack_from(self._data, self._need(4))[0]

    def s4(self) -> int:
        return _S4.unpack_from(self._data, self._need(4))[0]

    def read(self, n: int) -> bytes:
        start = self._need(n)
        return bytes(self._data[start : start + n])

    def skip(self, n: int) -> None:
        self._need(n)
