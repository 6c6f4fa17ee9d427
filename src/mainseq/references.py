"""Reduce decoded methods to the set of types they depend on."""

from __future__ import annotations

from collections.abc import Iterable

from mainseq.classfile.descriptors import PRIMITIVE_NAMES
from mainseq.model import ClassDescriptor, MethodDescriptor, package_of, strip_array

# Packages shipped with the Java platform itself.
DEFAULT_BUILTIN_PREFIXES: tuple[str, ...] = (
    "java.",
    "javax.",
    "javafx.",
    "jdk.",
    "sun.",
    "com.sun.",
)


def is_builtin(type_name: str, builtin_prefixes: Iterable[str] = DEFAULT_BUILTIN_PREFIXES) -> bool:
    """True for primitives, ``void`` and types in a platform package."""
    element = strip_array(type_name)
    if element in PRIMITIVE_NAMES:
        return True
    pkg = package_of(element)
    # "java.lang" matches prefix "java." and so does the bare package "java".
    return any(
        pkg.startswith(prefix) or pkg == prefix.rstrip(".") for prefix in builtin_prefixes
    )


def _filter(names: Iterable[str], builtin_prefixes: tuple[str, ...]) -> frozenset[str]:
    elements = {strip_array(name) for name in names}
    return frozenset(n for n in elements if not is_builtin(n, builtin_prefixes))


def extract_references(
    method: MethodDescriptor,
    builtin_prefixes: Iterable[str] = DEFAULT_BUILTIN_PREFIXES,
) -> frozenset[str]:
    """Distinct non-builtin types referenced by *method*, arrays unwrapped."""
    return _filter(method.all_types(), tuple(builtin_prefixes))


def class_references(
    descriptor: ClassDescriptor,
    builtin_prefixes: Iterable[str] = DEFAULT_BUILTIN_PREFIXES,
) -> frozenset[str]:
    """Union of ``extract_references`` over every method of *descriptor*."""
    prefixes = tuple(builtin_prefixes)
    return _filter(
        (name for method in descriptor.methods for name in method.all_types()),
        prefixes,
    )
