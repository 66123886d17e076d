from __future__ import annotations

import pytest

from graft.localize import LocationError, SuspiciousLocation, load_locations, select_targets
from tests.support.harness import Kind, tree_of

SOURCE = """
int total = 0;
for (int i = 0; i < n; i++) {
  total += i;
}
return total;
"""


@pytest.mark.parametrize(
    "text, expected",
    [
        pytest.param("A.java:3", SuspiciousLocation("A.java", 3, 3, 1.0), id="single-line"),
        pytest.param("A.java:2-4", SuspiciousLocation("A.java", 2, 4, 1.0), id="range"),
        pytest.param("A.java:5,0.25", SuspiciousLocation("A.java", 5, 5, 0.25), id="scored"),
        pytest.param("C:/src/A.java:7", SuspiciousLocation("C:/src/A.java", 7, 7, 1.0), id="colon-in-path"),
    ],
)
def test_parse_location(text: str, expected: SuspiciousLocation) -> None:
    assert SuspiciousLocation.parse(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        pytest.param("A.java", id="no-line"),
        pytest.param(":3", id="no-path"),
        pytest.param("A.java:x", id="not-a-number"),
        pytest.param("A.java:4-2", id="backwards"),
        pytest.param("A.java:0", id="zero"),
        pytest.param("A.java:3,high", id="bad-score"),
    ],
)
def test_malformed_location(text: str) -> None:
    with pytest.raises(LocationError):
        SuspiciousLocation.parse(text)


def test_load_locations_skips_comments(tmp_path) -> None:
    path = tmp_path / "suspicious.txt"
    path.write_text("# ochiai\nA.java:3,0.9\n\nA.java:5,0.4\n", encoding="utf-8")

    assert load_locations(str(path)) == [
        SuspiciousLocation("A.java", 3, 3, 0.9),
        SuspiciousLocation("A.java", 5, 5, 0.4),
    ]


def test_select_targets_most_suspicious_first() -> None:
    trees = {"A.java": tree_of(SOURCE, path="A.java")}
    locations = [
        SuspiciousLocation("A.java", 5, 5, 0.2),
        SuspiciousLocation("A.java", 2, 4, 0.9),
        SuspiciousLocation("A.java", 3, 3, 0.2),
    ]

    selected = select_targets(trees, locations)

    assert [(loc.start_line, node.KIND) for loc, node in selected] == [
        (2, Kind.FOR),
        (5, Kind.RETURN),
        (3, Kind.EXPR_STMT),
    ]


def test_select_targets_skips_unknown_files_and_empty_lines() -> None:
    trees = {"A.java": tree_of(SOURCE, path="A.java")}
    locations = [
        SuspiciousLocation("B.java", 1, 1),
        SuspiciousLocation("A.java", 40, 40),
    ]

    assert select_targets(trees, locations) == []
