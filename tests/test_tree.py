from __future__ import annotations

import pytest

from graft.nodes import (
    Block,
    ExprStmt,
    IfStmt,
    InfixExpr,
    Kind,
    Literal,
    LiteralKind,
    Name,
    ReturnStmt,
    Slot,
    UseType,
)
from graft.tree import (
    SyntaxTree,
    children,
    descendant_levels,
    is_type_reference,
    slot_of,
    use_type,
    walk,
)
from tests.support.harness import MalformedTreeError, first, only, tree_of


def _guard() -> IfStmt:
    return IfStmt(
        InfixExpr(Name("x"), "==", Literal("null", LiteralKind.NULL)),
        Block([ReturnStmt()]),
    )


def test_arena_assigns_handles_in_preorder() -> None:
    guard = _guard()
    tree = SyntaxTree(Block([guard], braced=False))

    assert len(tree) == 7
    assert [n.nid for n in tree] == list(range(7))
    assert [n.KIND for n in walk(tree.root)] == [n.KIND for n in tree]
    assert tree.parent(guard) is tree.root
    assert tree.parent(tree.root) is None
    assert guard.parent_id == tree.root.nid


def test_ancestors_and_depth() -> None:
    tree = tree_of(
        """
        if (ok) {
          while (busy) {
            step();
          }
        }
        """
    )
    call = only(tree, Kind.METHOD_CALL)

    kinds = [n.KIND for n in tree.ancestors(call)]
    assert kinds == [Kind.EXPR_STMT, Kind.BLOCK, Kind.WHILE, Kind.BLOCK, Kind.IF, Kind.BLOCK]
    assert tree.depth(call) == 6
    assert tree.node(call.nid) is call


def test_shared_child_rejected() -> None:
    stmt = ExprStmt(Name("a"))

    with pytest.raises(MalformedTreeError, match="already has an owner"):
        SyntaxTree(Block([stmt, stmt]))


def test_reattaching_a_node_rejected() -> None:
    tree = tree_of("a();")
    stmt = first(tree, Kind.EXPR_STMT)

    with pytest.raises(MalformedTreeError):
        SyntaxTree(Block([stmt]))


def test_missing_required_slot_rejected() -> None:
    with pytest.raises(MalformedTreeError, match="condition"):
        SyntaxTree(IfStmt(None, Block([])))  # type: ignore[arg-type]


def test_foreign_value_rejected() -> None:
    with pytest.raises(MalformedTreeError, match="Unexpected value"):
        SyntaxTree(Block(["x = 1;"]))  # type: ignore[list-item]


def test_node_from_other_tree_is_foreign() -> None:
    left = tree_of("a();")
    right = tree_of("b();")
    stmt = first(right, Kind.EXPR_STMT)

    assert stmt not in left
    with pytest.raises(MalformedTreeError):
        left.parent(stmt)


def test_children_skip_absent_optional_slots() -> None:
    guard = _guard()

    assert [c.KIND for c in children(guard)] == [Kind.INFIX, Kind.BLOCK]
    assert [c.KIND for c in children(ReturnStmt())] == []


def test_descendant_levels_are_shallowest_first() -> None:
    guard = _guard()
    levels = [[n.KIND for n in level] for level in descendant_levels(guard)]

    assert levels == [
        [Kind.INFIX, Kind.BLOCK],
        [Kind.NAME, Kind.LITERAL, Kind.RETURN],
    ]


def test_slot_of_reports_owner_slot() -> None:
    guard = _guard()

    assert slot_of(guard, guard.condition) is Slot.CONDITION
    assert slot_of(guard.then_branch, guard.then_branch.statements[0]) is Slot.BODY
    with pytest.raises(ValueError):
        slot_of(guard, guard.condition.left)


USE_CASES = [
    pytest.param("for (int i = 0; i < n; i++) f(i);", Kind.FOR, 1, UseType.FOR_CONDITION, id="for-condition"),
    pytest.param("for (int i = 0; i < n; i++) f(i);", Kind.FOR, 0, UseType.FOR_INIT, id="for-init"),
    pytest.param("for (int i = 0; i < n; i++) f(i);", Kind.FOR, 2, UseType.FOR_UPDATE, id="for-update"),
    pytest.param("for (int i = 0; i < n; i++) f(i);", Kind.FOR, 3, UseType.FOR_BODY, id="for-body"),
    pytest.param("switch (k) { case 1: f(); }", Kind.SWITCH, 0, UseType.SWITCH, id="switch-selector"),
    pytest.param("switch (k) { case 1: f(); }", Kind.SWITCH, 2, UseType.SWITCH, id="switch-body"),
    pytest.param("x = y;", Kind.ASSIGN, 0, UseType.ASSIGN_LHS, id="assign-lhs"),
    pytest.param("x = y;", Kind.ASSIGN, 1, UseType.ASSIGN_RHS, id="assign-rhs"),
    pytest.param("list.add(v);", Kind.METHOD_CALL, 0, UseType.METHOD_RECEIVER, id="call-receiver"),
    pytest.param("list.add(v);", Kind.METHOD_CALL, 1, UseType.METHOD_ARGUMENT, id="call-argument"),
    pytest.param("for (String s : names) f(s);", Kind.FOREACH, 1, UseType.FOREACH_ITERABLE, id="foreach-iterable"),
]


@pytest.mark.parametrize("code, kind, index, expected", USE_CASES)
def test_use_type(code: str, kind: Kind, index: int, expected: UseType) -> None:
    parent = first(tree_of(code), kind)
    child = children(parent)[index]

    assert use_type(parent, child) is expected


def test_use_type_rejects_non_child() -> None:
    guard = _guard()

    with pytest.raises(ValueError):
        use_type(guard, guard.condition.left)


def test_smallest_statement_covers_span() -> None:
    tree = tree_of(
        """
        int total = 0;
        for (int i = 0; i < n; i++) {
          total += i;
        }
        return total;
        """
    )

    loop = tree.smallest_statement(2, 4)
    assert loop is not None and loop.KIND is Kind.FOR

    inner = tree.smallest_statement(3, 3)
    assert inner is not None and inner.KIND is Kind.EXPR_STMT

    assert [n.KIND for n in tree.statements_at(5)] == [Kind.BLOCK, Kind.RETURN]
    assert tree.smallest_statement(9, 9) is None


@pytest.mark.parametrize(
    "identifier, expected",
    [
        pytest.param("Math", True, id="class-name"),
        pytest.param("count", False, id="variable"),
        pytest.param("_tmp", False, id="underscore"),
    ],
)
def test_type_reference_heuristic(identifier: str, expected: bool) -> None:
    assert is_type_reference(identifier) is expected


def test_pretty_lists_locals() -> None:
    text = tree_of("x = a + 1;").pretty()

    assert "infix operator='+'" in text
    assert "name 'a'" in text
