"""Checkpoint discovery and chain aggregation over a per-map sample table.

Given maps sampled on overlapping version ranges, e.g.

    factorio_version|maps sampled
    0.17.79|4
    0.18.0|5
    0.18.17|6
    0.18.18|6

the checkpoints are 0.17.79, 0.18.0 and 0.18.17. Each checkpoint's series
averages the maps present at that checkpoint over every later version they
were sampled on, so a chart never mixes cohorts of different sizes at its
starting version.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import EmptyCohort
from .samples import MapInfo, MetricSet, RunningMean, SampleTable
from .versions import FactorioVersion

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainAggregate:
    checkpoint: Optional[FactorioVersion]  # None for a single-map series
    cohort: Tuple[MapInfo, ...]
    series: Dict[FactorioVersion, MetricSet]
    contributors: Dict[FactorioVersion, int]

    @property
    def is_standalone(self) -> bool:
        return self.checkpoint is None


def version_counts(table: SampleTable) -> Dict[FactorioVersion, int]:
    """Number of maps holding a sample at each version, ascending by version."""
    counts: Dict[FactorioVersion, int] = {}
    for versions in table.values():
        for version in versions:
            counts[version] = counts.get(version, 0) + 1
    return {version: counts[version] for version in sorted(counts)}


def discover_checkpoints(table: SampleTable) -> List[FactorioVersion]:
    checkpoints: List[FactorioVersion] = []
    previous_max_count = 0
    for version, count in version_counts(table).items():
        # Equal counts are not checkpoints, even if the set of maps changed.
        if count > previous_max_count:
            previous_max_count = count
            checkpoints.append(version)
    return checkpoints


def aggregate_checkpoint(table: SampleTable, checkpoint: FactorioVersion) -> ChainAggregate:
    cohort = tuple(sorted(map_info for map_info, versions in table.items() if checkpoint in versions))
    if not cohort:
        raise EmptyCohort(f"No map has a sample at checkpoint {checkpoint}")

    # Cohort members are visited in MapInfo order so float sums are reproducible.
    accumulators: Dict[FactorioVersion, RunningMean] = {}
    for map_info in cohort:
        for version, metrics in table[map_info].items():
            if version < checkpoint:
                continue
            accumulators.setdefault(version, RunningMean()).add(metrics)

    series: Dict[FactorioVersion, MetricSet] = {}
    contributors: Dict[FactorioVersion, int] = {}
    for version in sorted(accumulators):
        acc = accumulators[version]
        series[version] = acc.mean()
        contributors[version] = acc.count
    LOG.debug(
        "Checkpoint %s: %d maps over %d versions (%s)",
        checkpoint,
        len(cohort),
        len(series),
        ", ".join(m.map_name for m in cohort),
    )
    return ChainAggregate(checkpoint=checkpoint, cohort=cohort, series=series, contributors=contributors)


def aggregate_maps(table: SampleTable) -> List[ChainAggregate]:
    """One averaged series per checkpoint, ascending by checkpoint."""
    return [aggregate_checkpoint(table, checkpoint) for checkpoint in discover_checkpoints(table)]


def standalone_series(table: SampleTable) -> List[ChainAggregate]:
    return [
        ChainAggregate(
            checkpoint=None,
            cohort=(map_info,),
            series={version: table[map_info][version] for version in sorted(table[map_info])},
            contributors={version: 1 for version in table[map_info]},
        )
        for map_info in sorted(table)
    ]
