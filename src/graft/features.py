"""Structural feature summaries used to rank donors by similarity.

Each extractor yields the node's own contribution followed by the children's,
in child order. `feature_vector` folds the same information into counts and
memoizes the result on the node.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from .nodes import (
    COND_KINDS,
    LOOP_KINDS,
    OPERATOR_KINDS,
    OTHER_KINDS,
    Assignment,
    Block,
    ConditionalExpr,
    IfStmt,
    InfixExpr,
    Kind,
    Literal,
    LiteralKind,
    MethodCall,
    Name,
    Node,
    PostfixExpr,
    PrefixExpr,
    Slot,
    SwitchCase,
    SwitchStmt,
    UseType,
)
from .tree import children, is_type_reference, slot_value, use_type


@dataclass(frozen=True)
class LiteralUse:
    kind: LiteralKind
    value: str

@dataclass(frozen=True)
class VariableUse:
    name: str
    use: UseType

@dataclass(frozen=True)
class LoopShape:
    kind: Kind
    body_size: int

@dataclass(frozen=True)
class CondShape:
    kind: Kind
    branches: int

@dataclass(frozen=True)
class MethodCallUse:
    name: str
    arity: int

@dataclass(frozen=True)
class OperatorUse:
    operator: str
    kind: Kind

@dataclass(frozen=True)
class OtherShape:
    kind: Kind


def _collect(node: Node, own: Callable[[Node], Iterable]) -> List:
    out = list(own(node))

    for ch in children(node):
        out.extend(_collect(ch, own))

    return out

def _body_size(body: Node) -> int:
    if isinstance(body, Block):
        return len(body.statements)

    return 1

def _own_literals(node: Node) -> List[LiteralUse]:
    if isinstance(node, Literal):
        return [LiteralUse(node.literal_kind, node.value)]

    return []

def _own_loops(node: Node) -> List[LoopShape]:
    if node.KIND not in LOOP_KINDS:
        return []

    body = slot_value(node, Slot.BODY)
    assert body is not None and not isinstance(body, list)
    return [LoopShape(node.KIND, _body_size(body))]

def _own_conds(node: Node) -> List[CondShape]:
    match node:
        case IfStmt(else_branch=other):
            return [CondShape(Kind.IF, 1 if other is None else 2)]
        case SwitchStmt(statements=stmts):
            cases = sum(1 for s in stmts if isinstance(s, SwitchCase))
            return [CondShape(Kind.SWITCH, cases)]
        case ConditionalExpr():
            return [CondShape(Kind.CONDITIONAL, 2)]

    return []

def _own_calls(node: Node) -> List[MethodCallUse]:
    if isinstance(node, MethodCall):
        return [MethodCallUse(node.name, len(node.arguments))]

    return []

def _own_operators(node: Node) -> List[OperatorUse]:
    match node:
        case InfixExpr(operator=op) | PrefixExpr(operator=op) | PostfixExpr(operator=op) | Assignment(operator=op):
            return [OperatorUse(op, node.KIND)]

    return []

def _own_others(node: Node) -> List[OtherShape]:
    if node.KIND in OTHER_KINDS:
        return [OtherShape(node.KIND)]

    return []

def literals(node: Node) -> List[LiteralUse]:
    return _collect(node, _own_literals)

def variables(node: Node, use: UseType = UseType.UNKNOWN) -> List[VariableUse]:
    """Variable occurrences tagged with how their parent uses them."""
    out: List[VariableUse] = []

    if isinstance(node, Name) and not is_type_reference(node.identifier):
        out.append(VariableUse(node.identifier, use))

    for ch in children(node):
        out.extend(variables(ch, use_type(node, ch)))

    return out

def loop_structures(node: Node) -> List[LoopShape]:
    return _collect(node, _own_loops)

def cond_structures(node: Node) -> List[CondShape]:
    return _collect(node, _own_conds)

def method_calls(node: Node) -> List[MethodCallUse]:
    return _collect(node, _own_calls)

def operators(node: Node) -> List[OperatorUse]:
    return _collect(node, _own_operators)

def other_structures(node: Node) -> List[OtherShape]:
    return _collect(node, _own_others)


class FeatureVector:
    """Multiset of structural features; combined by addition."""

    def __init__(self, counts: Optional[Mapping[str, int]] = None) -> None:
        self._counts: Counter[str] = Counter(counts or {})

    def __getitem__(self, key: str) -> int:
        return self._counts.get(key, 0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureVector):
            return NotImplemented
        return +self._counts == +other._counts

    def __repr__(self) -> str:
        items = ", ".join(f"{k}={v}" for k, v in sorted(self._counts.items()))
        return f"FeatureVector({items})"

    def combine(self, other: FeatureVector) -> FeatureVector:
        merged = Counter(self._counts)
        merged.update(other._counts)
        return FeatureVector(merged)

    __add__ = combine

    def total(self) -> int:
        return sum(self._counts.values())

    def as_dict(self) -> Dict[str, int]:
        return dict(self._counts)

    def cosine(self, other: FeatureVector) -> float:
        dot = sum(v * other._counts.get(k, 0) for k, v in self._counts.items())
        if dot == 0:
            return 0.0
        norm = math.sqrt(sum(v * v for v in self._counts.values()))
        norm_other = math.sqrt(sum(v * v for v in other._counts.values()))
        return dot / (norm * norm_other)


def own_features(node: Node) -> FeatureVector:
    """Features contributed by `node` alone, including how it uses Name children."""
    counts: Counter[str] = Counter()

    match node:
        case Literal(literal_kind=lit):
            counts[f"literal:{lit.name}"] += 1
        case Name(identifier=ident):
            if not is_type_reference(ident):
                counts["var"] += 1
        case MethodCall(name=name):
            counts["call"] += 1
            counts[f"call:{name}"] += 1

    if node.KIND in LOOP_KINDS:
        counts[f"loop:{node.KIND.name}"] += 1
    if node.KIND in COND_KINDS:
        counts[f"cond:{node.KIND.name}"] += 1
    if node.KIND in OPERATOR_KINDS:
        counts[f"op:{getattr(node, 'operator')}"] += 1
    if node.KIND in OTHER_KINDS:
        counts[f"other:{node.KIND.name}"] += 1

    for ch in children(node):
        if isinstance(ch, Name) and not is_type_reference(ch.identifier):
            counts[f"var:{use_type(node, ch).name}"] += 1

    return FeatureVector(counts)

def feature_vector(node: Node) -> FeatureVector:
    cached = node._fvector
    if cached is not None:
        return cached

    vector = own_features(node)
    for ch in children(node):
        vector = vector.combine(feature_vector(ch))

    node._fvector = vector
    return vector

def similarity(left: Node, right: Node) -> float:
    return feature_vector(left).cosine(feature_vector(right))
