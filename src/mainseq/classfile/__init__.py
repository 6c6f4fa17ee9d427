"""Pure-Python decoder for compiled JVM class files."""

from __future__ import annotations

from mainseq.classfile.reader import MAGIC, decode_class, read_class_file

__all__ = ["MAGIC", "decode_class", "read_class_file"]
