"""Per-(map, version) metric records and the per-map sample table builder."""

from __future__ import annotations

import logging
from dataclasses import astuple, dataclass, field, fields
from typing import Dict, Iterable, Tuple

from .config import AnalysisBounds
from .errors import EmptyCohort, OutOfRangeVersion
from .versions import FactorioVersion

LOG = logging.getLogger(__name__)

TOTAL_METRIC = "whole_update"
SUB_PHASE_METRICS: tuple[str, ...] = (
    "circuit_network_update",
    "transport_lines_update",
    "fluids_update",
    "entity_update",
    "electric_network_update",
    "logistic_manager_update",
    "trains",
    "train_path_finder",
)
OTHER_METRIC = "other"


@dataclass(frozen=True)
class MetricSet:
    """Average update durations (ms) for one map on one Factorio version.

    `whole_update` is the total tick time; every other field is a sub-phase of it.
    """

    whole_update: float = 0.0
    circuit_network_update: float = 0.0
    transport_lines_update: float = 0.0
    fluids_update: float = 0.0
    entity_update: float = 0.0
    electric_network_update: float = 0.0
    logistic_manager_update: float = 0.0
    trains: float = 0.0
    train_path_finder: float = 0.0

    def __add__(self, other: "MetricSet") -> "MetricSet":
        if not isinstance(other, MetricSet):
            return NotImplemented
        return MetricSet(*(a + b for a, b in zip(astuple(self), astuple(other))))

    def divided(self, count: int) -> "MetricSet":
        return MetricSet(*(value / count for value in astuple(self)))

    @property
    def other(self) -> float:
        # Noise can push the sub-phases above the total; a negative residual is reported as-is.
        return self.whole_update - sum(getattr(self, name) for name in SUB_PHASE_METRICS)

    def breakdown(self) -> list[tuple[str, float]]:
        """Sub-phases in display order followed by the derived `other`."""
        parts = [(name, getattr(self, name)) for name in SUB_PHASE_METRICS]
        parts.append((OTHER_METRIC, self.other))
        return parts

    @classmethod
    def metric_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass(frozen=True, order=True)
class MapInfo:
    map_name: str
    sha256: str

    @property
    def label(self) -> str:
        return self.map_name.replace(".zip", "")


SampleRow = Tuple[FactorioVersion, MetricSet, MapInfo]
SampleTable = Dict[MapInfo, Dict[FactorioVersion, MetricSet]]


@dataclass
class RunningMean:
    total: MetricSet = field(default_factory=MetricSet)
    count: int = 0

    def add(self, metrics: MetricSet) -> None:
        self.total = self.total + metrics
        self.count += 1

    def mean(self) -> MetricSet:
        if self.count == 0:
            raise EmptyCohort("Cannot average zero samples")
        return self.total.divided(self.count)


def build_sample_table(rows: Iterable[SampleRow], bounds: AnalysisBounds) -> SampleTable:
    """Group rows into one ascending version series per map.

    Rows sharing a (map, version) key are averaged, so both pre-averaged
    repository output and raw per-run rows produce per-pair means.
    """
    sums: Dict[MapInfo, Dict[FactorioVersion, RunningMean]] = {}
    for version, metrics, map_info in rows:
        if not bounds.contains(version):
            raise OutOfRangeVersion(
                f"{map_info.map_name} has a sample for {version}, outside [{bounds.earliest}, {bounds.latest}]"
            )
        sums.setdefault(map_info, {}).setdefault(version, RunningMean()).add(metrics)

    table: SampleTable = {}
    for map_info in sorted(sums):
        per_version = sums[map_info]
        table[map_info] = {version: per_version[version].mean() for version in sorted(per_version)}
    LOG.debug("Built sample table for %d maps", len(table))
    return table
