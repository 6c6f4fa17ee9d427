"""Exception hierarchy for mainseq.

Hierarchy
---------
MainseqError (base)
├── ClassFileError                        – one class file could not be decoded
│   ├── MalformedClassFormatError         – bad magic, truncation, bad lengths
│   └── UnresolvedConstantPoolReferenceError – index out of range / wrong tag
├── FilesystemAccessError                 – an artifact could not be read
├── ConfigError                           – unreadable or invalid configuration
└── AnalysisError                         – pipeline-level failures

Per-artifact errors (``ClassFileError``, ``FilesystemAccessError``) are
recovered by the scanner; they never abort a scan.
"""

from __future__ import annotations

from pathlib import Path


class MainseqError(Exception):
    """Base exception for mainseq."""


class ClassFileError(MainseqError):
    """A compiled class file could not be decoded."""


class MalformedClassFormatError(ClassFileError):
    """The byte stream does not follow the class file structure."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message)
        self.offset = offset


class UnresolvedConstantPoolReferenceError(ClassFileError):
    """A constant-pool index is out of range or targets an unexpected tag."""

    def __init__(self, index: int, expected: str, actual: str | None = None) -> None:
        if actual is None:
            message = f"constant pool index {index} out of range (expected {expected})"
        else:
            message = f"constant pool index {index} is {actual}, expected {expected}"
        super().__init__(message)
        self.index = index
        self.expected = expected


class FilesystemAccessError(MainseqError):
    """An artifact could not be read from disk."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"cannot read {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class ConfigError(MainseqError):
    """Configuration file is unreadable or holds an invalid value."""


class AnalysisError(MainseqError):
    """The analysis could not be set up (no classes, no packages, ...)."""
