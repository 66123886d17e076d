"""Scope constraint sets: variable name -> declared type."""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from .nodes import CatchClause, ForEachStmt, ForStmt, Node, VarDecl
from .tree import SyntaxTree, statement_list, walk

Scope = Dict[str, str]


def types_compatible(left: Optional[str], right: Optional[str]) -> bool:
    """Unknown types are compatible with anything; generics are erased."""
    if left is None or right is None:
        return True

    return _erase(left) == _erase(right)

def _erase(type_name: str) -> str:
    cut = type_name.find("<")
    base = type_name if cut == -1 else type_name[:cut] + type_name[type_name.rfind(">") + 1:]
    return base.replace(" ", "")

def declared_in(node: Node) -> Scope:
    """Variables declared anywhere inside `node`, in source order."""
    found: Scope = {}

    for current in walk(node):
        match current:
            case VarDecl(var_type=var_type, fragments=fragments):
                for frag in fragments:
                    found.setdefault(frag.name.identifier, var_type)
            case ForEachStmt(var_type=var_type, variable=variable):
                found.setdefault(variable.identifier, var_type)
            case CatchClause(exc_type=exc_type, variable=variable):
                found.setdefault(variable.identifier, exc_type)

    return found

def _decls(stmt: Node) -> Scope:
    if isinstance(stmt, VarDecl):
        return {frag.name.identifier: stmt.var_type for frag in stmt.fragments}

    return {}

def scope_at(tree: SyntaxTree, node: Node, extra: Optional[Mapping[str, str]] = None) -> Scope:
    """Variables visible just before `node` runs.

    `extra` seeds the outermost level (method parameters, fields). Inner
    declarations shadow outer ones and move to the end of the ordering.
    """
    levels: List[Scope] = []
    child = node

    for parent in tree.ancestors(node):
        level: Scope = {}

        match parent:
            case ForStmt(init=init):
                if not any(item is child for item in init):
                    for item in init:
                        level.update(_decls(item))
            case ForEachStmt(var_type=var_type, variable=variable):
                if child is not variable:
                    level[variable.identifier] = var_type
            case CatchClause(exc_type=exc_type, variable=variable, body=body):
                if child is body:
                    level[variable.identifier] = exc_type

        stmts = statement_list(parent)
        if stmts is not None:
            for stmt in stmts:
                if stmt is child:
                    break
                level.update(_decls(stmt))

        levels.append(level)
        child = parent

    scope: Scope = dict(extra or {})

    for level in reversed(levels):
        for name, type_name in level.items():
            scope.pop(name, None)
            scope[name] = type_name

    return scope
