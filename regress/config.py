"""Run configuration: analysis bounds plus adapter settings, from YAML and CLI flags."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml

from .versions import FactorioVersion, iter_versions

DEFAULT_EARLIEST = FactorioVersion(0, 17, 66)
DEFAULT_LATEST = FactorioVersion(0, 18, 45)
DEFAULT_TERMINAL_PATCHES: tuple[FactorioVersion, ...] = (
    FactorioVersion(0, 16, 51),
    FactorioVersion(0, 17, 79),
)
DEFAULT_DB_PATH = Path.home() / ".local/share/factorio-benchmark-helper/regression-testing/regression.db"
DEFAULT_METADATA_URL = (
    "https://raw.githubusercontent.com/technicalfactorio/technicalfactorio/"
    "master/megabase_index_incrementer/megabases.json"
)
CONFIG_KEYS = (
    "earliest",
    "latest",
    "terminal_patches",
    "db_path",
    "metadata_url",
    "metadata_timeout_s",
    "output_dir",
    "y_max_ms",
)


@dataclass(frozen=True)
class AnalysisBounds:
    earliest: FactorioVersion = DEFAULT_EARLIEST
    latest: FactorioVersion = DEFAULT_LATEST
    terminal_patches: frozenset[FactorioVersion] = frozenset(DEFAULT_TERMINAL_PATCHES)

    def __post_init__(self) -> None:
        if self.earliest > self.latest:
            raise ValueError(f"earliest {self.earliest} is after latest {self.latest}")

    def contains(self, version: FactorioVersion) -> bool:
        return self.earliest <= version <= self.latest

    def axis(self) -> list[FactorioVersion]:
        return list(iter_versions(self.earliest, self.latest, self.terminal_patches))


@dataclass
class RunConfig:
    bounds: AnalysisBounds = field(default_factory=AnalysisBounds)
    db_path: Optional[Path] = None
    metadata_url: str = DEFAULT_METADATA_URL
    metadata_timeout_s: float = 30.0
    output_dir: Path = Path(".")
    y_max_ms: float = 20.0


def load_config(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Config file {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return {key: data[key] for key in CONFIG_KEYS if data.get(key) is not None}


def _version(value: Any) -> FactorioVersion:
    if isinstance(value, FactorioVersion):
        return value
    return FactorioVersion.parse(str(value))


def bounds_from_mapping(values: Dict[str, Any]) -> AnalysisBounds:
    terminals: Iterable[Any] = values.get("terminal_patches", DEFAULT_TERMINAL_PATCHES)
    if isinstance(terminals, (str, FactorioVersion)):
        terminals = [terminals]
    elif not isinstance(terminals, (list, tuple, set, frozenset)):
        raise ValueError(f"terminal_patches must be a list of versions, got {terminals!r}")
    return AnalysisBounds(
        earliest=_version(values.get("earliest", DEFAULT_EARLIEST)),
        latest=_version(values.get("latest", DEFAULT_LATEST)),
        terminal_patches=frozenset(_version(v) for v in terminals),
    )


def apply_config(args: argparse.Namespace, config: Dict[str, Any]) -> RunConfig:
    """Merge file config with CLI flags; flags that were given win."""
    merged = dict(config)
    merged.update({k: v for k, v in vars(args).items() if k in CONFIG_KEYS and v is not None})
    if getattr(args, "default", False):
        merged["db_path"] = DEFAULT_DB_PATH
    db_path = merged.get("db_path")
    return RunConfig(
        bounds=bounds_from_mapping(merged),
        db_path=Path(db_path).expanduser() if db_path is not None else None,
        metadata_url=str(merged.get("metadata_url", DEFAULT_METADATA_URL)),
        metadata_timeout_s=float(merged.get("metadata_timeout_s", 30.0)),
        output_dir=Path(merged.get("output_dir", ".")),
        y_max_ms=float(merged.get("y_max_ms", 20.0)),
    )
