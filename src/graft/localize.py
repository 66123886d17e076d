"""Suspicious locations from fault localization, and the target nodes they select."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Sequence, Tuple

from .nodes import GraftError, Node
from .tree import SyntaxTree

logger = logging.getLogger(__name__)


class LocationError(GraftError):
    pass


@dataclass(frozen=True)
class SuspiciousLocation:
    path: str
    start_line: int
    end_line: int
    score: float = 1.0

    def __post_init__(self) -> None:
        if self.start_line < 1 or self.end_line < self.start_line:
            raise LocationError(f"Bad line range {self.start_line}-{self.end_line} for {self.path}")

    @classmethod
    def parse(cls, text: str) -> SuspiciousLocation:
        """Read `PATH:START[-END][,SCORE]`."""
        head, _, score_text = text.strip().partition(",")
        path, sep, lines = head.rpartition(":")
        if not sep or not path:
            raise LocationError(f"Expected PATH:START[-END], got {text!r}")

        start_text, _, end_text = lines.partition("-")
        try:
            start = int(start_text)
            end = int(end_text) if end_text else start
            score = float(score_text) if score_text else 1.0
        except ValueError as exc:
            raise LocationError(f"Malformed location {text!r}") from exc

        return cls(path, start, end, score)


def load_locations(path: str) -> List[SuspiciousLocation]:
    out: List[SuspiciousLocation] = []

    for raw in Path(path).read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        out.append(SuspiciousLocation.parse(line))

    return out

def select_targets(trees: Mapping[str, SyntaxTree], locations: Sequence[SuspiciousLocation]) -> List[Tuple[SuspiciousLocation, Node]]:
    """Smallest covering statement per location, most suspicious first.

    Locations in files without a tree, or covering no statement, are skipped.
    Equal scores keep their input order.
    """
    out: List[Tuple[SuspiciousLocation, Node]] = []

    for loc in sorted(locations, key=lambda l: -l.score):
        tree = trees.get(loc.path)
        if tree is None:
            logger.warning("no syntax tree for %s; skipping", loc.path)
            continue

        node = tree.smallest_statement(loc.start_line, loc.end_line)
        if node is None:
            logger.debug("no statement covers %s:%d-%d", loc.path, loc.start_line, loc.end_line)
            continue

        out.append((loc, node))

    return out
