"""Walk a classes directory and feed every class file into the graph."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from collections.abc import Collection, Iterable
from pathlib import Path

from mainseq.classfile import read_class_file
from mainseq.errors import ClassFileError, FilesystemAccessError
from mainseq.graph import PackageDependencyGraph
from mainseq.model import ScanResult, SkippedArtifact
from mainseq.references import DEFAULT_BUILTIN_PREFIXES, class_references

logger = logging.getLogger(__name__)


def find_class_files(root: Path) -> list[Path]:
    """All ``*.class`` files below *root*, sorted for stable logging."""
    return sorted(p for p in root.rglob("*.class") if p.is_file())


def process_class_file(
    path: Path,
    target_packages: Collection[str],
    graph: PackageDependencyGraph,
    builtin_prefixes: tuple[str, ...] = DEFAULT_BUILTIN_PREFIXES,
) -> bool:
    """Decode one artifact and record it; return True if it belonged to a target.

    Raises ``ClassFileError`` or ``FilesystemAccessError`` for an unusable
    artifact; nothing is recorded in that case.
    """
    descriptor = read_class_file(path)
    if descriptor.package not in target_packages:
        return False
    refs = class_references(descriptor, builtin_prefixes)
    return graph.record(descriptor, refs, target_packages)


def scan_classes(
    class_files: Iterable[Path],
    target_packages: Collection[str],
    graph: PackageDependencyGraph,
    *,
    workers: int = 0,
    builtin_prefixes: Iterable[str] = DEFAULT_BUILTIN_PREFIXES,
    cancel: threading.Event | None = None,
) -> ScanResult:
    """Decode every class file into *graph*, skipping unreadable or malformed ones.

    ``workers <= 1`` scans sequentially in the calling thread; larger values
    use a thread pool of that size.  Setting *cancel* stops further
    artifacts from being processed; the partially filled graph should then be
    discarded by the caller.
    """
    targets = frozenset(target_packages)
    prefixes = tuple(builtin_prefixes)
    files = list(class_files)
    result = ScanResult()
    if not targets:
        return result

    def _one(path: Path) -> bool:
        return process_class_file(path, targets, graph, prefixes)

    def _handle(path: Path, outcome) -> None:
        try:
            if outcome():
                result.decoded += 1
        except (ClassFileError, FilesystemAccessError) as e:
            logger.warning("Skipping %s: %s", path, e)
            result.skipped.append(SkippedArtifact(path, str(e)))
        result.scanned += 1

    if workers <= 1:
        for path in files:
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                break
            _handle(path, lambda p=path: _one(p))
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_path: dict[concurrent.futures.Future, Path] = {}
            for path in files:
                if cancel is not None and cancel.is_set():
                    break
                future_to_path[executor.submit(_one, path)] = path
            for future in concurrent.futures.as_completed(future_to_path):
                if cancel is not None and cancel.is_set():
                    result.cancelled = True
                    for pending in future_to_path:
                        pending.cancel()
                    break
                _handle(future_to_path[future], future.result)
        if cancel is not None and cancel.is_set():
            result.cancelled = True

    result.skipped.sort(key=lambda s: s.path)
    logger.info(
        "Scanned %d class files: %d in target packages, %d skipped",
        result.scanned,
        result.decoded,
        len(result.skipped),
    )
    return result
