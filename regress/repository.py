"""Read per-(map, version) averages out of the benchmark helper's regression database."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import List

import pandas as pd

from .errors import RepositoryUnavailable
from .samples import MapInfo, MetricSet, SampleRow
from .versions import FactorioVersion

LOG = logging.getLogger(__name__)

NS_PER_MS = 1_000_000.0

# Timings are stored in nanoseconds per run; one row per test instance (map x version).
SAMPLE_QUERY = f"""
select factorio_version,
avg(wholeUpdate)/{NS_PER_MS} as whole_update,
avg(circuitNetworkUpdate)/{NS_PER_MS} as circuit_network_update,
avg(transportLinesUpdate)/{NS_PER_MS} as transport_lines_update,
avg(fluidsUpdate)/{NS_PER_MS} as fluids_update,
avg(entityUpdate)/{NS_PER_MS} as entity_update,
avg(electricNetworkUpdate)/{NS_PER_MS} as electric_network_update,
avg(logisticManagerUpdate)/{NS_PER_MS} as logistic_manager_update,
avg(trains)/{NS_PER_MS} as trains,
avg(trainPathFinder)/{NS_PER_MS} as train_path_finder,
sha256,
map_name
from verbose join regression_test_instance
on verbose.instance_ID = regression_test_instance.ID
join regression_scenario
on regression_scenario.ID = regression_test_instance.scenario_ID
group by instance_id
order by scenario_ID, factorio_version;
"""


class SampleRepository:
    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def fetch_frame(self) -> pd.DataFrame:
        if not self.db_path.is_file():
            raise RepositoryUnavailable(
                f"Could not find a regression test database at {self.db_path}. "
                "Run factorio-benchmark-helper with --regression-test first."
            )
        try:
            with closing(sqlite3.connect(str(self.db_path))) as conn:
                frame = pd.read_sql_query(SAMPLE_QUERY, conn)
        except (sqlite3.Error, pd.errors.DatabaseError) as exc:
            raise RepositoryUnavailable(f"Failed to query {self.db_path}: {exc}") from exc
        LOG.info("Fetched %d (map, version) rows from %s", len(frame), self.db_path)
        return frame

    def fetch_samples(self) -> List[SampleRow]:
        metric_names = MetricSet.metric_names()
        rows: List[SampleRow] = []
        for record in self.fetch_frame().to_dict(orient="records"):
            version = FactorioVersion.parse(record["factorio_version"])
            metrics = MetricSet(*(float(record[name]) for name in metric_names))
            rows.append((version, metrics, MapInfo(map_name=str(record["map_name"]), sha256=str(record["sha256"]))))
        return rows
