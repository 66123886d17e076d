from __future__ import annotations

import sys
from pathlib import Path
from textwrap import dedent
from typing import Dict, List, Mapping, Optional, Tuple

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from graft.match.context import Renaming
from graft.match.structure import MatchResult, match, match_nodes
from graft.modify import Deletion, Insertion, Modification, Replacement
from graft.nodes import (
    Block,
    Kind,
    MalformedTreeError,
    Node,
    ParseError,
    Slot,
)
from graft.parse import parse_expression, parse_source, parse_statement
from graft.render import Overlay, render
from graft.tree import SyntaxTree


def tree_of(code: str, path: Optional[str] = None) -> SyntaxTree:
    """Parse dedented code into an attached tree."""
    return parse_source(dedent(code).strip() + "\n", path=path)


def only(tree: SyntaxTree, kind: Kind) -> Node:
    """The single node of `kind` in `tree`; fails loudly otherwise."""
    found = tree.find(kind)
    assert len(found) == 1, f"expected one {kind.value}, found {len(found)}"
    return found[0]


def first(tree: SyntaxTree, kind: Kind) -> Node:
    found = tree.find(kind)
    assert found, f"no {kind.value} node in tree"
    return found[0]


def donor_block(code: str) -> Block:
    node = parse_statement(dedent(code).strip())
    assert isinstance(node, Block), f"donor must be a block, got {node.KIND.value}"
    return node


def match_code(
    target_code: str,
    donor_code: str,
    scope: Optional[Mapping[str, str]] = None,
    donor_scope: Optional[Mapping[str, str]] = None,
) -> Tuple[Node, MatchResult]:
    """Match two single statements and return the target with the result."""
    target = parse_statement(dedent(target_code).strip())
    SyntaxTree(target)
    donor = parse_statement(dedent(donor_code).strip())

    return target, match_nodes(target, donor, scope or {}, donor_scope)


def kinds(modifications: List[Modification]) -> List[str]:
    return [type(mod).__name__ for mod in modifications]


def squash(text: str) -> str:
    """Collapse whitespace so rendering assertions ignore layout."""
    return " ".join(text.split())


def scope_of(**entries: str) -> Dict[str, str]:
    return dict(entries)
