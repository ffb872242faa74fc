import unittest

from regress.config import AnalysisBounds
from regress.errors import EmptyCohort, OutOfRangeVersion
from regress.samples import SUB_PHASE_METRICS, MapInfo, MetricSet, RunningMean, build_sample_table
from regress.versions import FactorioVersion

V = FactorioVersion.parse
BOUNDS = AnalysisBounds(earliest=V("0.17.66"), latest=V("0.18.45"))


def _metrics(total: float, entity: float = 0.0, trains: float = 0.0) -> MetricSet:
    return MetricSet(whole_update=total, entity_update=entity, trains=trains)


class MetricSetTests(unittest.TestCase):
    def test_other_is_total_minus_sub_phases(self) -> None:
        metrics = MetricSet(whole_update=10.0, entity_update=4.0, fluids_update=1.5, trains=0.5)
        self.assertAlmostEqual(metrics.other, 4.0)

    def test_other_is_not_clamped(self) -> None:
        metrics = MetricSet(whole_update=10.0, entity_update=6.0, transport_lines_update=5.0)
        self.assertEqual(metrics.other, -1.0)

    def test_breakdown_lists_sub_phases_then_other(self) -> None:
        names = [name for name, _ in _metrics(3.0, entity=1.0).breakdown()]
        self.assertEqual(names, [*SUB_PHASE_METRICS, "other"])
        self.assertNotIn("whole_update", names)

    def test_addition_is_pointwise(self) -> None:
        total = _metrics(2.0, entity=1.0) + _metrics(4.0, trains=3.0)
        self.assertEqual(total, MetricSet(whole_update=6.0, entity_update=1.0, trains=3.0))

    def test_running_mean(self) -> None:
        acc = RunningMean()
        for value in (1.0, 2.0, 6.0):
            acc.add(_metrics(value))
        self.assertEqual(acc.count, 3)
        self.assertEqual(acc.mean().whole_update, 3.0)

    def test_running_mean_without_samples_raises_empty_cohort(self) -> None:
        with self.assertRaises(EmptyCohort):
            RunningMean().mean()


class MapInfoTests(unittest.TestCase):
    def test_same_name_different_hash_are_distinct(self) -> None:
        a = MapInfo("base.zip", "aaa")
        b = MapInfo("base.zip", "bbb")
        self.assertNotEqual(a, b)
        self.assertLess(a, b)
        self.assertEqual(len({a, b}), 2)

    def test_label_drops_zip_suffix(self) -> None:
        self.assertEqual(MapInfo("Poobers Beautiful Base.zip", "x").label, "Poobers Beautiful Base")


class BuildSampleTableTests(unittest.TestCase):
    def test_groups_rows_per_map_in_version_order(self) -> None:
        m1 = MapInfo("m1.zip", "11")
        m2 = MapInfo("m0.zip", "22")
        rows = [
            (V("0.18.0"), _metrics(3.0), m1),
            (V("0.17.66"), _metrics(1.0), m1),
            (V("0.17.79"), _metrics(2.0), m2),
            (V("0.17.79"), _metrics(2.5), m1),
        ]
        table = build_sample_table(rows, BOUNDS)
        self.assertEqual(list(table), [m2, m1])
        self.assertEqual(list(table[m1]), [V("0.17.66"), V("0.17.79"), V("0.18.0")])
        self.assertEqual(table[m1][V("0.17.79")].whole_update, 2.5)

    def test_pre_averaged_rows_pass_through_unchanged(self) -> None:
        m1 = MapInfo("m1.zip", "11")
        metrics = MetricSet(whole_update=7.3, entity_update=2.1, train_path_finder=0.01)
        table = build_sample_table([(V("0.18.3"), metrics, m1)], BOUNDS)
        self.assertEqual(table[m1][V("0.18.3")], metrics)

    def test_raw_runs_for_same_pair_are_averaged(self) -> None:
        m1 = MapInfo("m1.zip", "11")
        rows = [(V("0.18.3"), _metrics(4.0, entity=2.0), m1), (V("0.18.3"), _metrics(6.0, entity=4.0), m1)]
        table = build_sample_table(rows, BOUNDS)
        self.assertEqual(table[m1][V("0.18.3")], _metrics(5.0, entity=3.0))

    def test_version_below_earliest_aborts(self) -> None:
        m1 = MapInfo("m1.zip", "11")
        rows = [(V("0.17.66"), _metrics(1.0), m1), (V("0.16.50"), _metrics(1.0), m1)]
        with self.assertRaises(OutOfRangeVersion):
            build_sample_table(rows, BOUNDS)

    def test_version_above_latest_aborts(self) -> None:
        with self.assertRaises(OutOfRangeVersion):
            build_sample_table([(V("0.18.46"), _metrics(1.0), MapInfo("m", "h"))], BOUNDS)

    def test_bounds_are_inclusive(self) -> None:
        m1 = MapInfo("m1.zip", "11")
        rows = [(V("0.17.66"), _metrics(1.0), m1), (V("0.18.45"), _metrics(1.0), m1)]
        self.assertEqual(len(build_sample_table(rows, BOUNDS)[m1]), 2)

    def test_empty_rows_give_empty_table(self) -> None:
        self.assertEqual(build_sample_table([], BOUNDS), {})


if __name__ == "__main__":
    unittest.main()
