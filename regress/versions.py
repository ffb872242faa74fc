"""Factorio version identifiers and the dense version axis used for chart ticks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from .errors import MalformedVersion

VERSION_RE = re.compile(r"^([0-9]+)\.([0-9]+)\.([0-9]+)$")


@dataclass(frozen=True, order=True)
class FactorioVersion:
    major: int
    minor: int
    patch: int

    def __post_init__(self) -> None:
        for part in (self.major, self.minor, self.patch):
            if isinstance(part, bool) or not isinstance(part, int) or part < 0:
                raise MalformedVersion(f"Version components must be non-negative integers, got {part!r}")

    @classmethod
    def parse(cls, text: str) -> "FactorioVersion":
        match = VERSION_RE.match(str(text).strip())
        if not match:
            raise MalformedVersion(f"Expected `major.minor.patch`, got {text!r}")
        return cls(*(int(group) for group in match.groups()))

    def successor(self, terminal_patches: Iterable["FactorioVersion"] = ()) -> "FactorioVersion":
        """Next version on the reference axis.

        A version listed in `terminal_patches` is the last patch of its minor
        release, so the axis continues at `<major>.<minor + 1>.0`.
        """
        if self in set(terminal_patches):
            return FactorioVersion(self.major, self.minor + 1, 0)
        return FactorioVersion(self.major, self.minor, self.patch + 1)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def iter_versions(
    start: FactorioVersion,
    end: FactorioVersion,
    terminal_patches: Iterable[FactorioVersion] = (),
) -> Iterator[FactorioVersion]:
    """Yield every version from `start` to `end` inclusive."""
    terminals = frozenset(terminal_patches)
    current = start
    while current <= end:
        yield current
        current = current.successor(terminals)
