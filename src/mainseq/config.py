"""Analysis settings, read from ``.mainseq.toml`` or ``[tool.mainseq]``."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from mainseq.errors import ConfigError
from mainseq.references import DEFAULT_BUILTIN_PREFIXES

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {"builtin_prefixes", "packages", "workers", "restrict_to_targets"}


@dataclass(frozen=True)
class AnalysisConfig:
    """Knobs for one analysis run."""

    builtin_prefixes: tuple[str, ...] = DEFAULT_BUILTIN_PREFIXES
    packages: tuple[str, ...] = ()
    workers: int = 4  # 0 or 1 scans sequentially
    restrict_to_targets: bool = True
    source: Path | None = field(default=None, compare=False)

    def with_overrides(self, **overrides) -> AnalysisConfig:
        """Copy with every non-None override applied (CLI flags win over files)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _string_list(table: dict, key: str, source: Path) -> tuple[str, ...] | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{source}: '{key}' must be a list of strings")
    return tuple(value)


def config_from_table(table: dict, source: Path) -> AnalysisConfig:
    """Validate a TOML table and turn it into an ``AnalysisConfig``."""
    if not isinstance(table, dict):
        raise ConfigError(f"{source}: [mainseq] must be a table")
    unknown = set(table) - _KNOWN_KEYS
    if unknown:
        logger.warning("%s: ignoring unknown keys %s", source, sorted(unknown))

    overrides: dict = {
        "builtin_prefixes": _string_list(table, "builtin_prefixes", source),
        "packages": _string_list(table, "packages", source),
    }

    workers = table.get("workers")
    if workers is not None:
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 0:
            raise ConfigError(f"{source}: 'workers' must be a non-negative integer")
        overrides["workers"] = workers

    restrict = table.get("restrict_to_targets")
    if restrict is not None:
        if not isinstance(restrict, bool):
            raise ConfigError(f"{source}: 'restrict_to_targets' must be true or false")
        overrides["restrict_to_targets"] = restrict

    return AnalysisConfig(source=source).with_overrides(**overrides)


def _load_toml(path: Path) -> dict:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"cannot read {path}: {e}") from e


def load_config(project_dir: Path) -> AnalysisConfig:
    """Read settings for *project_dir*, or return defaults if none are present."""
    mainseq_toml = project_dir / ".mainseq.toml"
    if mainseq_toml.is_file():
        data = _load_toml(mainseq_toml)
        return config_from_table(data.get("mainseq", {}), mainseq_toml)

    pyproject = project_dir / "pyproject.toml"
    if pyproject.is_file():
        tool = _load_toml(pyproject).get("tool", {})
        if not isinstance(tool, dict):
            raise ConfigError(f"{pyproject}: [tool] must be a table")
        table = tool.get("mainseq")
        if table is not None:
            return config_from_table(table, pyproject)

    return AnalysisConfig()
