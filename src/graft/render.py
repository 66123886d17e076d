"""Source rendering and the overlay that previews modifications.

The canonical tree is never edited. An `Overlay` records textual overrides
keyed by node identity; `render` consults it on the way down and otherwise
renders the underlying children. Give every candidate patch its own overlay.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple, Union

from .modify import Deletion, Insertion, Modification, Replacement
from .nodes import (
    ArrayAccess,
    Assignment,
    Block,
    BreakStmt,
    CastExpr,
    CatchClause,
    ConditionalExpr,
    ContinueStmt,
    DoStmt,
    EmptyStmt,
    ExprStmt,
    FieldAccess,
    ForEachStmt,
    ForStmt,
    IfStmt,
    InfixExpr,
    InstanceOfExpr,
    Literal,
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
    SwitchCase,
    SwitchStmt,
    ThisExpr,
    ThrowStmt,
    TryStmt,
    VarDecl,
    VarFragment,
    WhileStmt,
)
from .tree import has_slot, slot_value, statement_list

NameResolver = Callable[[str], Optional[str]]
ListEdit = Union[Insertion, Deletion]

LIST_SEPARATORS: Dict[Slot, str] = {
    Slot.CATCHES: " ",
}


class Unresolved(Exception):
    """Internal signal: a name has no spelling in the requested scope."""
    def __init__(self, identifier: str):
        super().__init__(identifier)
        self.identifier = identifier


class Overlay:
    """Per-candidate rendering overrides.

    At most one override is kept per (node, slot) and one edit per statement
    list; a later `adapt` for the same position replaces the earlier one. List
    edits are spliced in at render time, so overrides below them stay live.
    """

    def __init__(self) -> None:
        self._slots: Dict[Tuple[Node, Slot], str] = {}
        self._lists: Dict[Node, ListEdit] = {}

    def __len__(self) -> int:
        return len(self._slots) + len(self._lists)

    def is_empty(self) -> bool:
        return not self._slots and not self._lists

    def slot_text(self, node: Node, slot: Slot) -> Optional[str]:
        return self._slots.get((node, slot))

    def list_edit(self, node: Node) -> Optional[ListEdit]:
        return self._lists.get(node)

    def adapt(self, modification: Modification) -> bool:
        match modification:
            case Replacement(owner=owner, slot=slot, text=text):
                if slot is not Slot.NODE and not has_slot(owner, slot):
                    return False
                self._slots[(owner, slot)] = text
                return True

            case Insertion(owner=owner, index=index):
                stmts = statement_list(owner)
                if stmts is None or index < 0 or index > len(stmts):
                    return False
                self._lists[owner] = modification
                return True

            case Deletion(owner=owner, index=index):
                stmts = statement_list(owner)
                if stmts is None or index < 0 or index >= len(stmts):
                    return False
                self._lists[owner] = modification
                return True

        raise TypeError(f"Unknown modification {type(modification).__name__}")

    def restore(self, modification: Modification) -> bool:
        """Drop every override held for the modification's owner."""
        owner = modification.owner
        dropped = False

        for key in [k for k in self._slots if k[0] is owner]:
            del self._slots[key]
            dropped = True

        if owner in self._lists:
            del self._lists[owner]
            dropped = True

        return dropped

    def clear(self) -> None:
        self._slots.clear()
        self._lists.clear()

    def render(self, node: Node) -> str:
        return render(node, self)


def render(node: Node, overlay: Optional[Overlay] = None) -> str:
    return Renderer(overlay).render(node)


class Renderer:
    """Shared source templates.

    With a `resolve` callback every variable name is looked up and an
    unresolvable one raises `Unresolved`. With `drop_failed`, statement lists
    skip members that raise and fail only when nothing is left.
    """

    def __init__(self, overlay: Optional[Overlay], resolve: Optional[NameResolver] = None, drop_failed: bool = False) -> None:
        self.overlay = overlay
        self.resolve = resolve
        self.drop_failed = drop_failed

    def name(self, identifier: str) -> str:
        if self.resolve is None:
            return identifier

        resolved = self.resolve(identifier)
        if resolved is None:
            raise Unresolved(identifier)

        return resolved

    def slot(self, node: Node, slot: Slot) -> str:
        if self.overlay is not None:
            text = self.overlay.slot_text(node, slot)
            if text is not None:
                return text

        value = slot_value(node, slot)
        if value is None:
            return ""
        if isinstance(value, list):
            sep = LIST_SEPARATORS.get(slot, ", ")
            return sep.join(self.render(item) for item in value)

        return self.render(value)

    def member(self, stmt: Node) -> Optional[str]:
        if not self.drop_failed:
            return self.render(stmt)

        try:
            return self.render(stmt)
        except Unresolved:
            return None

    def body(self, node: Node) -> str:
        stmts = statement_list(node)
        if stmts is None:
            raise MalformedTreeError(f"{node.KIND.value} node has no statement list")

        edit = self.overlay.list_edit(node) if self.overlay is not None else None
        parts: List[str] = []

        for index, stmt in enumerate(stmts):
            match edit:
                case Insertion(index=at, text=text) if at == index:
                    parts.append(text)
                case Deletion(index=at) if at == index:
                    continue
            rendered = self.member(stmt)
            if rendered is not None:
                parts.append(rendered)

        match edit:
            case Insertion(index=at, text=text) if at == len(stmts):
                parts.append(text)

        if self.drop_failed and not parts:
            raise Unresolved("")

        return "\n".join(parts)

    def render(self, node: Node) -> str:
        if self.overlay is not None:
            text = self.overlay.slot_text(node, Slot.NODE)
            if text is not None:
                return text

        match node:
            case Block(braced=braced):
                inner = self.body(node)
                if not braced:
                    return inner
                return "{\n" + inner + "\n}" if inner else "{\n}"
            case IfStmt():
                text = f"if ({self.slot(node, Slot.CONDITION)}) {self.slot(node, Slot.THEN)}"
                other = self.slot(node, Slot.ELSE)
                return f"{text} else {other}" if other else text
            case SwitchStmt():
                inner = self.body(node)
                head = f"switch ({self.slot(node, Slot.EXPRESSION)}) {{\n"
                return head + inner + "\n}" if inner else head + "}"
            case SwitchCase():
                expr = self.slot(node, Slot.EXPRESSION)
                return f"case {expr}:" if expr else "default:"
            case ForStmt():
                init = self.slot(node, Slot.INIT)
                cond = self.slot(node, Slot.CONDITION)
                update = self.slot(node, Slot.UPDATE)
                head = f"for ({init};" + (f" {cond};" if cond else ";") + (f" {update}" if update else "")
                return f"{head}) {self.slot(node, Slot.BODY)}"
            case ForEachStmt(var_type=var_type):
                return (
                    f"for ({var_type} {self.slot(node, Slot.VARIABLE)} : "
                    f"{self.slot(node, Slot.ITERABLE)}) {self.slot(node, Slot.BODY)}"
                )
            case WhileStmt():
                return f"while ({self.slot(node, Slot.CONDITION)}) {self.slot(node, Slot.BODY)}"
            case DoStmt():
                return f"do {self.slot(node, Slot.BODY)} while ({self.slot(node, Slot.CONDITION)});"
            case TryStmt():
                text = f"try {self.slot(node, Slot.TRY_BLOCK)}"
                catches = self.slot(node, Slot.CATCHES)
                if catches:
                    text += f" {catches}"
                final = self.slot(node, Slot.FINALLY)
                if final:
                    text += f" finally {final}"
                return text
            case CatchClause(exc_type=exc_type):
                return f"catch ({exc_type} {self.slot(node, Slot.VARIABLE)}) {self.slot(node, Slot.BODY)}"
            case ReturnStmt():
                expr = self.slot(node, Slot.EXPRESSION)
                return f"return {expr};" if expr else "return;"
            case ThrowStmt():
                return f"throw {self.slot(node, Slot.EXPRESSION)};"
            case BreakStmt(label=label):
                return f"break {label};" if label else "break;"
            case ContinueStmt(label=label):
                return f"continue {label};" if label else "continue;"
            case VarDecl(var_type=var_type, terminated=terminated):
                text = f"{var_type} {self.slot(node, Slot.FRAGMENTS)}"
                return text + ";" if terminated else text
            case VarFragment():
                init = self.slot(node, Slot.INITIALIZER)
                name = self.slot(node, Slot.VARIABLE)
                return f"{name} = {init}" if init else name
            case ExprStmt():
                return f"{self.slot(node, Slot.EXPRESSION)};"
            case EmptyStmt():
                return ";"
            case Literal(value=value):
                return value
            case Name(identifier=identifier):
                return self.name(identifier)
            case ThisExpr():
                return "this"
            case FieldAccess(name=name):
                return f"{self.slot(node, Slot.TARGET)}.{name}"
            case MethodCall(name=name):
                receiver = self.slot(node, Slot.RECEIVER)
                call = f"{name}({self.slot(node, Slot.ARGUMENTS)})"
                return f"{receiver}.{call}" if receiver else call
            case InfixExpr(operator=op):
                return f"{self.slot(node, Slot.LEFT)} {op} {self.slot(node, Slot.RIGHT)}"
            case PrefixExpr(operator=op):
                return f"{op}{self.slot(node, Slot.OPERAND)}"
            case PostfixExpr(operator=op):
                return f"{self.slot(node, Slot.OPERAND)}{op}"
            case Assignment(operator=op):
                return f"{self.slot(node, Slot.TARGET)} {op} {self.slot(node, Slot.VALUE)}"
            case ParenExpr():
                return f"({self.slot(node, Slot.EXPRESSION)})"
            case CastExpr(type_name=type_name):
                return f"({type_name}) {self.slot(node, Slot.EXPRESSION)}"
            case InstanceOfExpr(type_name=type_name):
                return f"{self.slot(node, Slot.EXPRESSION)} instanceof {type_name}"
            case ConditionalExpr():
                return (
                    f"{self.slot(node, Slot.CONDITION)} ? {self.slot(node, Slot.THEN)} : "
                    f"{self.slot(node, Slot.ELSE)}"
                )
            case ArrayAccess():
                return f"{self.slot(node, Slot.ARRAY)}[{self.slot(node, Slot.INDEX)}]"
            case NewObject(type_name=type_name):
                return f"new {type_name}({self.slot(node, Slot.ARGUMENTS)})"

        raise MalformedTreeError(f"Cannot render {type(node).__name__}")
