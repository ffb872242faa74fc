import itertools
import unittest

from regress.errors import MalformedVersion
from regress.versions import FactorioVersion, iter_versions


class FactorioVersionTests(unittest.TestCase):
    def test_parse_then_format_is_identity(self) -> None:
        for text in ("0.17.66", "0.18.0", "1.1.110", "0.0.0"):
            self.assertEqual(str(FactorioVersion.parse(text)), text)

    def test_parse_rejects_malformed_strings(self) -> None:
        for text in ("", "0.17", "0.17.66.1", "0.17.x", "-1.2.3", "a.b.c", "0..1", "0.17.66-rc1"):
            with self.subTest(text=text):
                with self.assertRaises(MalformedVersion):
                    FactorioVersion.parse(text)

    def test_malformed_version_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            FactorioVersion.parse("nope")

    def test_constructor_rejects_negative_components(self) -> None:
        with self.assertRaises(MalformedVersion):
            FactorioVersion(0, -1, 3)

    def test_total_order(self) -> None:
        versions = [FactorioVersion.parse(v) for v in ("0.17.66", "0.17.79", "0.18.0", "0.18.45", "1.0.0", "0.9.100")]
        for a, b in itertools.permutations(versions, 2):
            self.assertNotEqual(a < b, b < a)
        self.assertEqual(
            [str(v) for v in sorted(versions)],
            ["0.9.100", "0.17.66", "0.17.79", "0.18.0", "0.18.45", "1.0.0"],
        )

    def test_versions_are_hashable_and_immutable(self) -> None:
        version = FactorioVersion(0, 18, 2)
        self.assertEqual({version: 1}[FactorioVersion.parse("0.18.2")], 1)
        with self.assertRaises(AttributeError):
            version.patch = 3  # type: ignore[misc]

    def test_successor_increments_patch(self) -> None:
        self.assertEqual(FactorioVersion(0, 17, 66).successor(), FactorioVersion(0, 17, 67))

    def test_successor_rolls_minor_after_terminal_patch(self) -> None:
        terminals = {FactorioVersion(0, 16, 51), FactorioVersion(0, 17, 79)}
        self.assertEqual(FactorioVersion(0, 17, 79).successor(terminals), FactorioVersion(0, 18, 0))
        self.assertEqual(FactorioVersion(0, 16, 51).successor(terminals), FactorioVersion(0, 17, 0))


class IterVersionsTests(unittest.TestCase):
    def test_axis_crosses_minor_boundary(self) -> None:
        axis = list(
            iter_versions(
                FactorioVersion(0, 17, 77),
                FactorioVersion(0, 18, 2),
                [FactorioVersion(0, 17, 79)],
            )
        )
        self.assertEqual([str(v) for v in axis], ["0.17.77", "0.17.78", "0.17.79", "0.18.0", "0.18.1", "0.18.2"])

    def test_axis_is_inclusive_of_single_version(self) -> None:
        version = FactorioVersion(0, 18, 45)
        self.assertEqual(list(iter_versions(version, version)), [version])

    def test_axis_is_empty_when_start_after_end(self) -> None:
        self.assertEqual(list(iter_versions(FactorioVersion(0, 18, 1), FactorioVersion(0, 18, 0))), [])


if __name__ == "__main__":
    unittest.main()
