"""Shared helpers for working with syntax nodes, plus the arena that owns them.

Nodes never point at their parent. A `SyntaxTree` hands out integer handles
when it is built and resolves parent links through its own tables, so a tree
has exactly one owner edge per child and no reference cycles.
"""
from __future__ import annotations

from typing import Iterator, List, Optional, Union
from typing_extensions import TypeGuard

from .nodes import (
    EXPRESSION_TYPES,
    NODE_TYPES,
    STATEMENT_TYPES,
    ArrayAccess,
    Assignment,
    Block,
    CastExpr,
    CatchClause,
    ConditionalExpr,
    DoStmt,
    ExprStmt,
    FieldAccess,
    ForEachStmt,
    ForStmt,
    IfStmt,
    InfixExpr,
    InstanceOfExpr,
    Kind,
    MalformedTreeError,
    MethodCall,
    Name,
    NewObject,
    Node,
    ParenExpr,
    PostfixExpr,
    PrefixExpr,
    ReturnStmt,
    Slot,
    Stmt,
    SwitchCase,
    SwitchStmt,
    ThrowStmt,
    TryStmt,
    UseType,
    VarDecl,
    VarFragment,
    WhileStmt,
)


def is_node(value: object) -> TypeGuard[Node]:
    return isinstance(value, NODE_TYPES)

def is_statement(node: Node) -> bool:
    return isinstance(node, STATEMENT_TYPES)

def is_expression(node: Node) -> bool:
    return isinstance(node, EXPRESSION_TYPES)

def is_name(node: Node) -> TypeGuard[Name]:
    return isinstance(node, Name)

def is_type_reference(identifier: str) -> bool:
    """Upper-case identifiers are read as class names (`Math`, `Integer`)."""
    return bool(identifier) and identifier[0].isupper()

def has_slot(node: Node, slot: Slot) -> bool:
    return any(s is slot for s, _ in node.FIELDS)

def slot_value(node: Node, slot: Slot) -> Union[Node, List[Node], None]:
    for s, attr in node.FIELDS:
        if s is slot:
            return getattr(node, attr)

    raise KeyError(f"{node.KIND.value} node has no slot {slot.value!r}")

def statement_list(node: Node) -> Optional[List[Stmt]]:
    if node.BODY is None:
        return None

    return getattr(node, node.BODY)

def children(node: Node) -> List[Node]:
    """Direct children in syntactic order; absent optional slots are skipped."""
    out: List[Node] = []

    for _, attr in node.FIELDS:
        value = getattr(node, attr)
        if value is None:
            continue
        if isinstance(value, list):
            out.extend(value)
        else:
            out.append(value)

    body = statement_list(node)
    if body is not None:
        out.extend(body)

    return out

def statement_children(node: Node) -> List[Node]:
    return [ch for ch in children(node) if is_statement(ch)]

def slot_of(parent: Node, child: Node) -> Slot:
    """Which slot of `parent` holds `child`; body-list members report BODY."""
    for slot, attr in parent.FIELDS:
        value = getattr(parent, attr)
        if value is child:
            return slot
        if isinstance(value, list) and any(v is child for v in value):
            return slot

    body = statement_list(parent)
    if body is not None and any(s is child for s in body):
        return Slot.BODY

    raise ValueError(f"{child.KIND.value} node is not a direct child of {parent.KIND.value}")

def walk(node: Node) -> Iterator[Node]:
    """Preorder traversal."""
    stack: List[Node] = [node]

    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))

def descendant_levels(node: Node) -> Iterator[List[Node]]:
    """Descendants grouped by depth, shallowest first, excluding `node`."""
    level = children(node)

    while level:
        yield level
        level = [grand for ch in level for grand in children(ch)]

def pretty(node: Node, indent: str = '  ') -> str:
    def _pretty(current: Node, level: int) -> List[str]:
        label = current.KIND.value
        detail = [f"{attr}={getattr(current, attr)!r}" for attr in current.LOCALS]
        if is_name(current):
            detail.append(repr(current.identifier))
        head = f"{indent * level}{label}" + (f" {' '.join(detail)}" if detail else "")
        lines = [head]
        for ch in children(current):
            lines.extend(_pretty(ch, level + 1))
        return lines

    return "\n".join(_pretty(node, 0)) + "\n"


class SyntaxTree:
    """Arena holding every node of one parsed unit."""

    def __init__(self, root: Node, source: Optional[str] = None, path: Optional[str] = None) -> None:
        self.root = root
        self.source = source
        self.path = path
        self._nodes: List[Node] = []
        self._parents: List[Optional[int]] = []
        self._attach(root, None)

    def _attach(self, root: Node, parent_id: Optional[int]) -> None:
        pending: List[tuple[Node, Optional[int]]] = [(root, parent_id)]

        while pending:
            node, pid = pending.pop()

            if not is_node(node):
                raise MalformedTreeError(f"Unexpected value in tree: {type(node).__name__}")
            if node.nid is not None:
                raise MalformedTreeError(f"{node.KIND.value} node already has an owner")

            _check_required(node)

            nid = len(self._nodes)
            node.nid = nid
            node.parent_id = pid
            self._nodes.append(node)
            self._parents.append(pid)

            for child in reversed(children(node)):
                pending.append((child, nid))

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __contains__(self, node: object) -> bool:
        if not is_node(node) or node.nid is None:
            return False

        return node.nid < len(self._nodes) and self._nodes[node.nid] is node

    def node(self, nid: int) -> Node:
        return self._nodes[nid]

    def _require(self, node: Node) -> int:
        if node not in self:
            raise MalformedTreeError(f"{node.KIND.value} node does not belong to this tree")

        assert node.nid is not None
        return node.nid

    def parent(self, node: Node) -> Optional[Node]:
        pid = self._parents[self._require(node)]
        return None if pid is None else self._nodes[pid]

    def ancestors(self, node: Node) -> Iterator[Node]:
        current = self.parent(node)

        while current is not None:
            yield current
            current = self.parent(current)

    def depth(self, node: Node) -> int:
        return sum(1 for _ in self.ancestors(node))

    def find(self, kind: Kind) -> List[Node]:
        return [n for n in self._nodes if n.KIND is kind]

    def statements_at(self, line: int) -> List[Node]:
        return [
            n for n in self._nodes
            if is_statement(n) and n.span.covers(line, line)
        ]

    def smallest_statement(self, start_line: int, end_line: int) -> Optional[Node]:
        """Shortest non-root statement covering the given lines; ties go to the outermost."""
        best: Optional[Node] = None
        best_key: Optional[tuple[int, int]] = None

        for node in self._nodes:
            if node is self.root or not is_statement(node):
                continue
            if not node.span.covers(start_line, end_line):
                continue

            key = (node.span.lines, self.depth(node))
            if best_key is None or key < best_key:
                best = node
                best_key = key

        return best

    def pretty(self) -> str:
        return pretty(self.root)


def _check_required(node: Node) -> None:
    for slot, attr in node.FIELDS:
        if slot in node.OPTIONAL:
            continue
        if getattr(node, attr, None) is None:
            raise MalformedTreeError(
                f"{node.KIND.value} node is missing required {slot.value!r}"
            )


def use_type(parent: Node, child: Node) -> UseType:
    """How `parent` uses its direct child `child`."""
    slot = slot_of(parent, child)

    match parent:
        case Block():
            return UseType.BLOCK
        case IfStmt():
            return UseType.IF
        case SwitchStmt():
            return UseType.SWITCH
        case SwitchCase():
            return UseType.SWITCH_CASE
        case ForStmt():
            return {
                Slot.INIT: UseType.FOR_INIT,
                Slot.CONDITION: UseType.FOR_CONDITION,
                Slot.UPDATE: UseType.FOR_UPDATE,
            }.get(slot, UseType.FOR_BODY)
        case ForEachStmt():
            return {
                Slot.VARIABLE: UseType.FOREACH_VARIABLE,
                Slot.ITERABLE: UseType.FOREACH_ITERABLE,
            }.get(slot, UseType.FOREACH_BODY)
        case WhileStmt():
            return UseType.WHILE
        case DoStmt():
            return UseType.DO
        case TryStmt():
            return UseType.TRY
        case CatchClause():
            return UseType.CATCH
        case ReturnStmt():
            return UseType.RETURN
        case ThrowStmt():
            return UseType.THROW
        case VarDecl() | VarFragment():
            return UseType.VAR_DECL
        case ExprStmt():
            return UseType.EXPR_STMT
        case FieldAccess():
            return UseType.FIELD_ACCESS
        case MethodCall():
            return UseType.METHOD_RECEIVER if slot is Slot.RECEIVER else UseType.METHOD_ARGUMENT
        case InfixExpr():
            return UseType.INFIX
        case PrefixExpr():
            return UseType.PREFIX
        case PostfixExpr():
            return UseType.POSTFIX
        case Assignment():
            return UseType.ASSIGN_LHS if slot is Slot.TARGET else UseType.ASSIGN_RHS
        case ParenExpr():
            return UseType.PARENTHESIZED
        case CastExpr():
            return UseType.CAST
        case InstanceOfExpr():
            return UseType.INSTANCEOF
        case ConditionalExpr():
            return UseType.CONDITIONAL
        case ArrayAccess():
            return UseType.ARRAY_ACCESS
        case NewObject():
            return UseType.NEW_ARGUMENT

    return UseType.UNKNOWN
