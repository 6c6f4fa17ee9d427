"""Data model for decoded classes and package metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

ACC_INTERFACE = 0x0200
ACC_ABSTRACT = 0x0400


def strip_array(type_name: str) -> str:
    """Return the element type of an array type name (``Foo[][]`` -> ``Foo``)."""
    while type_name.endswith("[]"):
        type_name = type_name[:-2]
    return type_name


def package_of(type_name: str) -> str:
    """Return the package of a dotted type name, or ``""`` for the default package."""
    name = strip_array(type_name)
    pkg, sep, _ = name.rpartition(".")
    return pkg if sep else ""


@dataclass(frozen=True)
class MethodDescriptor:
    """Type references found in one method of a class."""

    name: str
    descriptor: str
    return_type: str
    parameter_types: tuple[str, ...] = ()
    declared_exceptions: frozenset[str] = frozenset()
    instruction_operand_types: tuple[str, ...] = ()
    local_variable_types: tuple[str, ...] = ()

    def all_types(self) -> list[str]:
        """Every type name mentioned by the method, duplicates included."""
        return [
            self.return_type,
            *self.parameter_types,
            *sorted(self.declared_exceptions),
            *self.instruction_operand_types,
            *self.local_variable_types,
        ]


@dataclass(frozen=True)
class ClassDescriptor:
    """Structural summary of one decoded class file."""

    qualified_name: str
    access_flags: int
    methods: tuple[MethodDescriptor, ...] = ()
    version: tuple[int, int] = (0, 0)  # (major, minor)

    @property
    def is_abstract_or_interface(self) -> bool:
        return bool(self.access_flags & (ACC_ABSTRACT | ACC_INTERFACE))

    @property
    def package(self) -> str:
        return package_of(self.qualified_name)


@dataclass(frozen=True)
class PackageMetrics:
    """Final coupling and abstraction numbers for one package."""

    package_name: str
    ce: int = 0
    ca: int = 0
    instability: float = 0.0
    abstractness: float = 0.0
    distance: float = 1.0
    outgoing_dependencies: frozenset[str] = frozenset()
    incoming_dependencies: frozenset[str] = frozenset()
    total_classes: int = 0
    abstract_classes: int = 0

    def to_dict(self) -> dict:
        return {
            "package": self.package_name,
            "ce": self.ce,
            "ca": self.ca,
            "instability": self.instability,
            "abstractness": self.abstractness,
            "distance": self.distance,
            "total_classes": self.total_classes,
            "abstract_classes": self.abstract_classes,
            "outgoing": sorted(self.outgoing_dependencies),
            "incoming": sorted(self.incoming_dependencies),
        }


@dataclass
class SkippedArtifact:
    """A class file that was left out of the scan, with the reason."""

    path: Path
    reason: str


@dataclass
class ScanResult:
    """Bookkeeping for one pass over a classes directory."""

    scanned: int = 0
    decoded: int = 0
    skipped: list[SkippedArtifact] = field(default_factory=list)
    cancelled: bool = False


@dataclass
class AnalysisResult:
    """Everything produced by one pipeline run."""

    root: Path
    packages: list[str]
    metrics: dict[str, PackageMetrics] = field(default_factory=dict)
    scan: ScanResult = field(default_factory=ScanResult)
    cycles: list[list[str]] = field(default_factory=list)
