"""Package coupling metrics (distance from the main sequence) for compiled JVM code."""

from __future__ import annotations

from mainseq.analysis import MetricsEngine, find_cycles
from mainseq.classfile import decode_class, read_class_file
from mainseq.graph import PackageDependencyGraph
from mainseq.model import ClassDescriptor, MethodDescriptor, PackageMetrics
from mainseq.pipeline import calculate_metrics, run
from mainseq.references import class_references, extract_references

__all__ = [
    "ClassDescriptor",
    "MethodDescriptor",
    "MetricsEngine",
    "PackageDependencyGraph",
    "PackageMetrics",
    "calculate_metrics",
    "class_references",
    "decode_class",
    "extract_references",
    "find_cycles",
    "read_class_file",
    "run",
]
