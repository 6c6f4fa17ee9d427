"""Locate compiled classes and the packages worth analyzing in a JVM project."""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

# Annotation marking the application entry class.
DEFAULT_ROOT_ANNOTATION = "SpringBootApplication"

# Regex fallback for sources javalang cannot parse (newer Java syntax).
_PACKAGE_RE = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)


# Build output below a module directory; Maven's layout wins when both exist.
_CLASSES_LAYOUTS = (
    ("target", "classes"),
    ("build", "classes", "java", "main"),
)

# One `include` statement per line; each may name several projects.
_GRADLE_INCLUDE_RE = re.compile(r"^\s*include\b(.*)$", re.MULTILINE)
_QUOTED_RE = re.compile(r"""["']:?([^"']+)["']""")


def _module_dirs(project_dir: Path) -> list[Path]:
    """Submodule directories declared in pom.xml or settings.gradle(.kts)."""
    names: list[str] = []

    pom_path = project_dir / "pom.xml"
    if pom_path.is_file():
        try:
            from jgo.maven import POM

            names.extend(POM(pom_path).values("modules/module"))
        except ImportError:
            logger.debug("jgo.maven unavailable; not reading modules of %s", pom_path)
        except (OSError, ValueError, KeyError) as e:
            logger.debug("Could not read modules of %s: %s", pom_path, e)

    for settings in ("settings.gradle.kts", "settings.gradle"):
        settings_path = project_dir / settings
        if not settings_path.is_file():
            continue
        try:
            text = settings_path.read_text()
        except OSError as e:
            logger.debug("Could not read %s: %s", settings_path, e)
            continue
        for arguments in _GRADLE_INCLUDE_RE.findall(text):
            # ":core:api" is the project at core/api
            names.extend(m.replace(":", "/") for m in _QUOTED_RE.findall(arguments))
        break

    return [project_dir / name for name in dict.fromkeys(names)]


def find_classes_dirs(project_dir: Path) -> list[Path]:
    """Compiled classes directories of *project_dir* and its declared submodules."""
    dirs: list[Path] = []
    for module in [project_dir, *_module_dirs(project_dir)]:
        for layout in _CLASSES_LAYOUTS:
            candidate = module.joinpath(*layout)
            if candidate.is_dir():
                dirs.append(candidate)
                break
    logger.debug("Classes dirs under %s: %s", project_dir, dirs)
    return dirs


def find_source_root(project_dir: Path) -> Path | None:
    """``src/main/java`` of *project_dir*, if present."""
    candidate = project_dir / "src" / "main" / "java"
    return candidate if candidate.is_dir() else None


def _annotation_matches(name: str, annotation: str) -> bool:
    return name == annotation or name.endswith("." + annotation)


def _parse_root_package(source: str, annotation: str) -> str | None:
    """Package of *source* if one of its top-level types carries *annotation*.

    Returns ``""`` for an annotated class in the default package and None
    if no type is annotated.
    """
    import javalang

    try:
        tree = javalang.parse.parse(source)
    except (javalang.parser.JavaSyntaxError, javalang.tokenizer.LexerError) as e:
        logger.debug("javalang failed (%s), falling back to regex", e)
        if "@" + annotation not in source and "." + annotation not in source:
            return None
        m = _PACKAGE_RE.search(source)
        return m.group(1) if m else ""

    for type_decl in tree.types:
        for ann in type_decl.annotations or []:
            if _annotation_matches(ann.name, annotation):
                return tree.package.name if tree.package else ""
    return None


def find_main_package(
    source_root: Path, annotation: str = DEFAULT_ROOT_ANNOTATION
) -> str | None:
    """Package of the first source file (sorted) whose class carries *annotation*."""
    for java_file in sorted(source_root.rglob("*.java")):
        try:
            source = java_file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.error("Error reading file: %s: %s", java_file, e)
            continue
        if annotation not in source:
            continue
        pkg = _parse_root_package(source, annotation)
        if pkg is not None:
            logger.debug("Main package %r found in %s", pkg, java_file)
            return pkg
    return None


def find_top_level_packages(source_root: Path, main_package: str) -> list[str]:
    """Packages exactly one level below *main_package*, sorted."""
    target_depth = len(main_package.split(".")) + 1 if main_package else 1
    prefix = main_package + "." if main_package else ""

    packages: set[str] = set()
    for directory in source_root.rglob("*"):
        if not directory.is_dir():
            continue
        pkg = ".".join(directory.relative_to(source_root).parts)
        if pkg.startswith(prefix) and len(pkg.split(".")) == target_depth:
            packages.add(pkg)

    result = sorted(packages)
    logger.debug("Found %d top-level packages: %s", len(result), result)
    return result
