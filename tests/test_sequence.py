from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pytest

from graft.match.sequence import find_anchors
from graft.nodes import Block, Node
from tests.support.harness import (
    Deletion,
    Insertion,
    Modification,
    Overlay,
    Renaming,
    Replacement,
    Slot,
    match_nodes,
    parse_statement,
    squash,
)


def _align(target_code: str, donor_code: str, scope: Optional[Dict[str, str]] = None) -> Tuple[Block, List[Modification]]:
    target = parse_statement(target_code)
    donor = parse_statement(donor_code)
    assert isinstance(target, Block) and isinstance(donor, Block)

    result = match_nodes(target, donor, scope or {})
    assert result.matched, "aligned statement lists always match"
    return target, result.modifications


def test_gap_pair_of_same_kind_recurses() -> None:
    target, mods = _align("{ a(); b(); c(); }", "{ a(); x(); c(); }")

    call = target.statements[1].expression
    assert mods == [Replacement(call, Slot.NODE, "x()")]


def test_trailing_donor_statement_appended_after_last_anchor() -> None:
    target, mods = _align("{ a(); }", "{ a(); b(); }")

    assert mods == [Insertion(target, 1, "b();")]


def test_leading_donor_statement_inserted_before_first_anchor() -> None:
    target, mods = _align("{ b(); }", "{ a(); b(); }")

    assert mods == [Insertion(target, 0, "a();")]


def test_surplus_target_statement_in_gap_is_deleted() -> None:
    target, mods = _align("{ a(); b(); c(); }", "{ a(); c(); }")

    assert mods == [Deletion(target, 1)]


def test_target_statements_outside_anchored_span_are_context() -> None:
    _, mods = _align("{ p(); a(); q(); }", "{ a(); }")

    assert mods == []


def test_surplus_donor_statements_in_gap_become_one_insertion() -> None:
    target, mods = _align("{ a(); c(); }", "{ a(); b(); d(); c(); }")

    assert mods == [Insertion(target, 1, "b();\nd();")]


def test_anchor_requires_clean_match() -> None:
    # f(2) differs from f(1), so only g() anchors and f(2) leads it
    target, mods = _align("{ f(1); g(); }", "{ f(2); g(); }")

    assert mods == [Insertion(target, 1, "f(2);")]


def test_gap_pair_of_different_kind_is_replaced() -> None:
    target, mods = _align(
        "{ a(); x = 1; c(); }",
        "{ a(); if (ok) b(); c(); }",
        {"x": "int", "ok": "boolean"},
    )

    assert mods == [Replacement(target.statements[1], Slot.NODE, "if (ok) b();")]


def test_untranslatable_insertion_is_skipped() -> None:
    _, mods = _align("{ a(); }", "{ a(); y = ghost; }")

    assert mods == []


def test_no_anchor_inserts_everything_at_head() -> None:
    target, mods = _align("{ p(); }", "{ a(); b(); }")

    assert mods == [Insertion(target, 0, "a();\nb();")]


def test_conflicting_gap_pair_is_replaced_not_fatal() -> None:
    # r cannot map to both p and q, so the pair is replaced as a whole
    target, mods = _align(
        "{ a = 1; x = p + q; b = 2; }",
        "{ a = 1; y = r + r; b = 2; }",
        {"a": "int", "b": "int", "x": "int", "p": "int", "q": "int"},
    )

    assert len(mods) == 1
    mod = mods[0]
    assert isinstance(mod, Replacement)
    assert mod.owner is target.statements[1]
    assert mod.slot is Slot.NODE


@pytest.mark.parametrize(
    "targets, donors, expected",
    [
        pytest.param("{ a(); b(); }", "{ a(); b(); }", [(0, 0), (1, 1)], id="identical"),
        pytest.param("{ a(); b(); }", "{ b(); a(); }", [(0, 1)], id="order-preserved"),
        pytest.param("{ a(); a(); }", "{ a(); }", [(0, 0)], id="first-target-wins"),
        pytest.param("{ }", "{ a(); }", [], id="empty-target"),
    ],
)
def test_find_anchors(targets: str, donors: str, expected: List[Tuple[int, int]]) -> None:
    target = parse_statement(targets)
    donor = parse_statement(donors)

    def attempt(t: Node, d: Node, renaming: Renaming, found: List[Modification]) -> bool:
        result = match_nodes(t, d, {})
        found.extend(result.modifications)
        return result.matched

    anchors = find_anchors(target.statements, donor.statements, attempt, Renaming())
    assert anchors == expected


def test_rendered_alignment() -> None:
    target, mods = _align("{ a(); c(); }", "{ a(); b(); c(); }")
    overlay = Overlay()

    assert overlay.adapt(mods[0])
    assert squash(overlay.render(target)) == "{ a(); b(); c(); }"
