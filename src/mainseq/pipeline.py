"""Orchestrator: locate → scan → compute."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from pathlib import Path

from mainseq.analysis import MetricsEngine, find_cycles
from mainseq.config import AnalysisConfig, load_config
from mainseq.errors import AnalysisError
from mainseq.graph import PackageDependencyGraph
from mainseq.locate import (
    find_classes_dirs,
    find_main_package,
    find_source_root,
    find_top_level_packages,
)
from mainseq.model import AnalysisResult, PackageMetrics, ScanResult
from mainseq.scanner import find_class_files, scan_classes

logger = logging.getLogger(__name__)


def calculate_metrics(
    classes_dir: Path | Sequence[Path],
    packages: Sequence[str],
    config: AnalysisConfig | None = None,
    *,
    cancel: threading.Event | None = None,
) -> tuple[dict[str, PackageMetrics], ScanResult, PackageDependencyGraph]:
    """Compute metrics for *packages* from the class files under *classes_dir*.

    An empty package list yields an empty mapping without touching the disk.
    """
    config = config or AnalysisConfig()
    graph = PackageDependencyGraph(restrict_to_targets=config.restrict_to_targets)
    if not packages:
        return {}, ScanResult(), graph

    roots = [classes_dir] if isinstance(classes_dir, Path) else list(classes_dir)
    class_files = [f for root in roots for f in find_class_files(root)]
    logger.info(
        "Calculating metrics for %d packages over %d class files",
        len(packages),
        len(class_files),
    )

    scan = scan_classes(
        class_files,
        packages,
        graph,
        workers=config.workers,
        builtin_prefixes=config.builtin_prefixes,
        cancel=cancel,
    )
    if scan.cancelled:
        logger.info("Scan cancelled; discarding partial results")
        return {}, scan, graph
    logger.debug("Dependency analysis completed. Calculating final metrics.")
    return MetricsEngine(graph).compute(packages), scan, graph


def _locate_packages(project_dir: Path) -> list[str]:
    source_root = find_source_root(project_dir)
    if source_root is None:
        raise AnalysisError(
            f"no packages given and no src/main/java under {project_dir}"
        )
    main_package = find_main_package(source_root)
    if not main_package:
        raise AnalysisError("No @SpringBootApplication found in the project.")
    logger.debug("Main package found: %s", main_package)

    packages = find_top_level_packages(source_root, main_package)
    if not packages:
        raise AnalysisError(f"No subpackages found below {main_package}.")
    logger.debug("Top-level packages found: %s", packages)
    return packages


def _classes_dirs(project_dir: Path, classes_dir: Path | None) -> list[Path]:
    if classes_dir is not None:
        if not classes_dir.is_dir():
            raise AnalysisError(f"classes directory not found: {classes_dir}")
        return [classes_dir]
    dirs = find_classes_dirs(project_dir)
    if dirs:
        return dirs
    if any(project_dir.rglob("*.class")):
        # A bare directory of class files.
        return [project_dir]
    raise AnalysisError(
        f"no compiled classes under {project_dir}; run `mvn compile` or "
        "`gradle build` first"
    )


def run(
    project_dir: Path,
    *,
    packages: Sequence[str] | None = None,
    classes_dir: Path | None = None,
    config: AnalysisConfig | None = None,
    cancel: threading.Event | None = None,
) -> AnalysisResult:
    """Run the full pipeline on a project (or bare classes directory)."""
    project_dir = project_dir.resolve()
    if not project_dir.is_dir():
        raise AnalysisError(f"not a directory: {project_dir}")

    config = config or load_config(project_dir)
    if packages is None:
        packages = list(config.packages) or _locate_packages(project_dir)
    packages = list(dict.fromkeys(packages))
    if not packages:
        return AnalysisResult(root=project_dir, packages=[])

    roots = _classes_dirs(project_dir, classes_dir)
    logger.debug("Classes dirs: %s", roots)

    metrics, scan, graph = calculate_metrics(roots, packages, config, cancel=cancel)
    if scan.cancelled:
        return AnalysisResult(root=project_dir, packages=packages, scan=scan)
    cycles = find_cycles(graph.edges())
    logger.debug("Cycles detected: %d", len(cycles))

    logger.info("Project scan completed successfully.")
    return AnalysisResult(
        root=project_dir,
        packages=packages,
        metrics=metrics,
        scan=scan,
        cycles=cycles,
    )
