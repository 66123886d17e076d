from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, FrozenSet, List, Optional, Tuple, Union
from typing_extensions import TypeAlias

# ---------- Tags ----------

class Kind(Enum):
    BLOCK = "block"
    IF = "if"
    SWITCH = "switch"
    SWITCH_CASE = "switch_case"
    FOR = "for"
    FOREACH = "foreach"
    WHILE = "while"
    DO = "do"
    TRY = "try"
    CATCH = "catch"
    RETURN = "return"
    THROW = "throw"
    BREAK = "break"
    CONTINUE = "continue"
    VAR_DECL = "var_decl"
    VAR_FRAGMENT = "var_fragment"
    EXPR_STMT = "expr_stmt"
    EMPTY = "empty"
    LITERAL = "literal"
    NAME = "name"
    THIS = "this"
    FIELD_ACCESS = "field_access"
    METHOD_CALL = "method_call"
    INFIX = "infix"
    PREFIX = "prefix"
    POSTFIX = "postfix"
    ASSIGN = "assign"
    PAREN = "paren"
    CAST = "cast"
    INSTANCEOF = "instanceof"
    CONDITIONAL = "conditional"
    ARRAY_ACCESS = "array_access"
    NEW = "new"

class Slot(Enum):
    """Named sub-slot of a node; statement-list positions are plain ints."""
    NODE = "node"
    CONDITION = "condition"
    EXPRESSION = "expression"
    THEN = "then"
    ELSE = "else"
    BODY = "body"
    INIT = "init"
    UPDATE = "update"
    ITERABLE = "iterable"
    VARIABLE = "variable"
    TRY_BLOCK = "try_block"
    CATCHES = "catches"
    FINALLY = "finally"
    FRAGMENTS = "fragments"
    INITIALIZER = "initializer"
    LEFT = "left"
    RIGHT = "right"
    OPERAND = "operand"
    RECEIVER = "receiver"
    ARGUMENTS = "arguments"
    TARGET = "target"
    VALUE = "value"
    INDEX = "index"
    ARRAY = "array"

class UseType(Enum):
    UNKNOWN = "unknown"
    BLOCK = "block"
    IF = "if"
    SWITCH = "switch"
    SWITCH_CASE = "switch_case"
    FOR_INIT = "for_init"
    FOR_CONDITION = "for_condition"
    FOR_UPDATE = "for_update"
    FOR_BODY = "for_body"
    FOREACH_VARIABLE = "foreach_variable"
    FOREACH_ITERABLE = "foreach_iterable"
    FOREACH_BODY = "foreach_body"
    WHILE = "while"
    DO = "do"
    TRY = "try"
    CATCH = "catch"
    RETURN = "return"
    THROW = "throw"
    VAR_DECL = "var_decl"
    EXPR_STMT = "expr_stmt"
    FIELD_ACCESS = "field_access"
    METHOD_RECEIVER = "method_receiver"
    METHOD_ARGUMENT = "method_argument"
    INFIX = "infix"
    PREFIX = "prefix"
    POSTFIX = "postfix"
    ASSIGN_LHS = "assign_lhs"
    ASSIGN_RHS = "assign_rhs"
    PARENTHESIZED = "parenthesized"
    CAST = "cast"
    INSTANCEOF = "instanceof"
    CONDITIONAL = "conditional"
    ARRAY_ACCESS = "array_access"
    NEW_ARGUMENT = "new_argument"

class LiteralKind(Enum):
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    CHAR = "char"
    STRING = "string"
    BOOL = "bool"
    NULL = "null"

@dataclass(frozen=True)
class Span:
    start_line: int = 0
    end_line: int = 0

    def covers(self, start_line: int, end_line: int) -> bool:
        return self.start_line <= start_line and end_line <= self.end_line

    @property
    def lines(self) -> int:
        return self.end_line - self.start_line + 1

NO_SPAN = Span()

# ---------- Node model ----------

@dataclass(eq=False)
class NodeBase:
    """Shared layout for every syntax node.

    FIELDS lists the fixed-arity slots in syntactic order, BODY names the
    statement-list attribute (if any), LOCALS the scalar attributes that take
    part in structural comparison. Identity equality keeps nodes usable as
    overlay keys.
    """
    KIND: ClassVar[Kind]
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ()
    OPTIONAL: ClassVar[FrozenSet[Slot]] = frozenset()
    LOCALS: ClassVar[Tuple[str, ...]] = ()
    BODY: ClassVar[Optional[str]] = None

    span: Span = field(default=NO_SPAN, kw_only=True)
    nid: Optional[int] = field(default=None, init=False, repr=False)
    parent_id: Optional[int] = field(default=None, init=False, repr=False)
    _fvector: Optional[Any] = field(default=None, init=False, repr=False)

    @property
    def kind(self) -> Kind:
        return self.KIND

# ---------- Statements ----------

@dataclass(eq=False)
class Block(NodeBase):
    KIND: ClassVar[Kind] = Kind.BLOCK
    BODY: ClassVar[Optional[str]] = "statements"
    statements: List[Stmt] = field(default_factory=list)
    braced: bool = True

@dataclass(eq=False)
class IfStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.IF
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.CONDITION, "condition"),
        (Slot.THEN, "then_branch"),
        (Slot.ELSE, "else_branch"),
    )
    OPTIONAL: ClassVar[FrozenSet[Slot]] = frozenset({Slot.ELSE})
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None

@dataclass(eq=False)
class SwitchStmt(NodeBase):
    """
    switch ( Expression ) { { SwitchCase | Statement } }

    Case labels live in the same statement list as the statements they guard.
    """
    KIND: ClassVar[Kind] = Kind.SWITCH
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.EXPRESSION, "expression"),)
    BODY: ClassVar[Optional[str]] = "statements"
    expression: Expr
    statements: List[Stmt] = field(default_factory=list)

@dataclass(eq=False)
class SwitchCase(NodeBase):
    KIND: ClassVar[Kind] = Kind.SWITCH_CASE
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.EXPRESSION, "expression"),)
    OPTIONAL: ClassVar[FrozenSet[Slot]] = frozenset({Slot.EXPRESSION})
    expression: Optional[Expr] = None  # None is `default:`

@dataclass(eq=False)
class ForStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.FOR
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.INIT, "init"),
        (Slot.CONDITION, "condition"),
        (Slot.UPDATE, "update"),
        (Slot.BODY, "body"),
    )
    OPTIONAL: ClassVar[FrozenSet[Slot]] = frozenset({Slot.CONDITION})
    init: List[Union[VarDecl, Expr]]
    condition: Optional[Expr]
    update: List[Expr]
    body: Stmt

@dataclass(eq=False)
class ForEachStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.FOREACH
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.VARIABLE, "variable"),
        (Slot.ITERABLE, "iterable"),
        (Slot.BODY, "body"),
    )
    LOCALS: ClassVar[Tuple[str, ...]] = ("var_type",)
    var_type: str
    variable: Name
    iterable: Expr
    body: Stmt

@dataclass(eq=False)
class WhileStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.WHILE
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.CONDITION, "condition"),
        (Slot.BODY, "body"),
    )
    condition: Expr
    body: Stmt

@dataclass(eq=False)
class DoStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.DO
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.BODY, "body"),
        (Slot.CONDITION, "condition"),
    )
    body: Stmt
    condition: Expr

@dataclass(eq=False)
class CatchClause(NodeBase):
    KIND: ClassVar[Kind] = Kind.CATCH
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.VARIABLE, "variable"),
        (Slot.BODY, "body"),
    )
    LOCALS: ClassVar[Tuple[str, ...]] = ("exc_type",)
    exc_type: str
    variable: Name
    body: Block

@dataclass(eq=False)
class TryStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.TRY
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.TRY_BLOCK, "body"),
        (Slot.CATCHES, "catches"),
        (Slot.FINALLY, "finally_block"),
    )
    OPTIONAL: ClassVar[FrozenSet[Slot]] = frozenset({Slot.FINALLY})
    body: Block
    catches: List[CatchClause] = field(default_factory=list)
    finally_block: Optional[Block] = None

@dataclass(eq=False)
class ReturnStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.RETURN
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.EXPRESSION, "expression"),)
    OPTIONAL: ClassVar[FrozenSet[Slot]] = frozenset({Slot.EXPRESSION})
    expression: Optional[Expr] = None

@dataclass(eq=False)
class ThrowStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.THROW
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.EXPRESSION, "expression"),)
    expression: Expr

@dataclass(eq=False)
class BreakStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.BREAK
    LOCALS: ClassVar[Tuple[str, ...]] = ("label",)
    label: Optional[str] = None

@dataclass(eq=False)
class ContinueStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.CONTINUE
    LOCALS: ClassVar[Tuple[str, ...]] = ("label",)
    label: Optional[str] = None

@dataclass(eq=False)
class VarFragment(NodeBase):
    KIND: ClassVar[Kind] = Kind.VAR_FRAGMENT
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.VARIABLE, "name"),
        (Slot.INITIALIZER, "initializer"),
    )
    OPTIONAL: ClassVar[FrozenSet[Slot]] = frozenset({Slot.INITIALIZER})
    name: Name
    initializer: Optional[Expr] = None

@dataclass(eq=False)
class VarDecl(NodeBase):
    KIND: ClassVar[Kind] = Kind.VAR_DECL
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.FRAGMENTS, "fragments"),)
    LOCALS: ClassVar[Tuple[str, ...]] = ("var_type",)
    var_type: str
    fragments: List[VarFragment] = field(default_factory=list)
    terminated: bool = True  # False inside a for-init

@dataclass(eq=False)
class ExprStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.EXPR_STMT
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.EXPRESSION, "expression"),)
    expression: Expr

@dataclass(eq=False)
class EmptyStmt(NodeBase):
    KIND: ClassVar[Kind] = Kind.EMPTY

# ---------- Expressions ----------

@dataclass(eq=False)
class Literal(NodeBase):
    KIND: ClassVar[Kind] = Kind.LITERAL
    LOCALS: ClassVar[Tuple[str, ...]] = ("literal_kind", "value")
    value: str
    literal_kind: LiteralKind

@dataclass(eq=False)
class Name(NodeBase):
    KIND: ClassVar[Kind] = Kind.NAME
    identifier: str

@dataclass(eq=False)
class ThisExpr(NodeBase):
    KIND: ClassVar[Kind] = Kind.THIS

@dataclass(eq=False)
class FieldAccess(NodeBase):
    KIND: ClassVar[Kind] = Kind.FIELD_ACCESS
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.TARGET, "target"),)
    LOCALS: ClassVar[Tuple[str, ...]] = ("name",)
    target: Expr
    name: str

@dataclass(eq=False)
class MethodCall(NodeBase):
    KIND: ClassVar[Kind] = Kind.METHOD_CALL
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.RECEIVER, "receiver"),
        (Slot.ARGUMENTS, "arguments"),
    )
    OPTIONAL: ClassVar[FrozenSet[Slot]] = frozenset({Slot.RECEIVER})
    LOCALS: ClassVar[Tuple[str, ...]] = ("name",)
    receiver: Optional[Expr]
    name: str
    arguments: List[Expr] = field(default_factory=list)

@dataclass(eq=False)
class InfixExpr(NodeBase):
    KIND: ClassVar[Kind] = Kind.INFIX
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.LEFT, "left"),
        (Slot.RIGHT, "right"),
    )
    LOCALS: ClassVar[Tuple[str, ...]] = ("operator",)
    left: Expr
    operator: str
    right: Expr

@dataclass(eq=False)
class PrefixExpr(NodeBase):
    KIND: ClassVar[Kind] = Kind.PREFIX
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.OPERAND, "operand"),)
    LOCALS: ClassVar[Tuple[str, ...]] = ("operator",)
    operator: str
    operand: Expr

@dataclass(eq=False)
class PostfixExpr(NodeBase):
    KIND: ClassVar[Kind] = Kind.POSTFIX
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.OPERAND, "operand"),)
    LOCALS: ClassVar[Tuple[str, ...]] = ("operator",)
    operand: Expr
    operator: str

@dataclass(eq=False)
class Assignment(NodeBase):
    KIND: ClassVar[Kind] = Kind.ASSIGN
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.TARGET, "target"),
        (Slot.VALUE, "value"),
    )
    LOCALS: ClassVar[Tuple[str, ...]] = ("operator",)
    target: Expr
    operator: str
    value: Expr

@dataclass(eq=False)
class ParenExpr(NodeBase):
    KIND: ClassVar[Kind] = Kind.PAREN
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.EXPRESSION, "expression"),)
    expression: Expr

@dataclass(eq=False)
class CastExpr(NodeBase):
    KIND: ClassVar[Kind] = Kind.CAST
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.EXPRESSION, "expression"),)
    LOCALS: ClassVar[Tuple[str, ...]] = ("type_name",)
    type_name: str
    expression: Expr

@dataclass(eq=False)
class InstanceOfExpr(NodeBase):
    KIND: ClassVar[Kind] = Kind.INSTANCEOF
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.EXPRESSION, "expression"),)
    LOCALS: ClassVar[Tuple[str, ...]] = ("type_name",)
    expression: Expr
    type_name: str

@dataclass(eq=False)
class ConditionalExpr(NodeBase):
    KIND: ClassVar[Kind] = Kind.CONDITIONAL
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.CONDITION, "condition"),
        (Slot.THEN, "then_expr"),
        (Slot.ELSE, "else_expr"),
    )
    condition: Expr
    then_expr: Expr
    else_expr: Expr

@dataclass(eq=False)
class ArrayAccess(NodeBase):
    KIND: ClassVar[Kind] = Kind.ARRAY_ACCESS
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = (
        (Slot.ARRAY, "array"),
        (Slot.INDEX, "index"),
    )
    array: Expr
    index: Expr

@dataclass(eq=False)
class NewObject(NodeBase):
    KIND: ClassVar[Kind] = Kind.NEW
    FIELDS: ClassVar[Tuple[Tuple[Slot, str], ...]] = ((Slot.ARGUMENTS, "arguments"),)
    LOCALS: ClassVar[Tuple[str, ...]] = ("type_name",)
    type_name: str
    arguments: List[Expr] = field(default_factory=list)

Stmt: TypeAlias = Union[
    Block, IfStmt, SwitchStmt, SwitchCase, ForStmt, ForEachStmt, WhileStmt,
    DoStmt, TryStmt, ReturnStmt, ThrowStmt, BreakStmt, ContinueStmt, VarDecl,
    ExprStmt, EmptyStmt,
]

Expr: TypeAlias = Union[
    Literal, Name, ThisExpr, FieldAccess, MethodCall, InfixExpr, PrefixExpr,
    PostfixExpr, Assignment, ParenExpr, CastExpr, InstanceOfExpr,
    ConditionalExpr, ArrayAccess, NewObject,
]

Node: TypeAlias = Union[Stmt, Expr, VarFragment, CatchClause]

STATEMENT_TYPES: Tuple[type, ...] = (
    Block, IfStmt, SwitchStmt, SwitchCase, ForStmt, ForEachStmt, WhileStmt,
    DoStmt, TryStmt, ReturnStmt, ThrowStmt, BreakStmt, ContinueStmt, VarDecl,
    ExprStmt, EmptyStmt,
)

EXPRESSION_TYPES: Tuple[type, ...] = (
    Literal, Name, ThisExpr, FieldAccess, MethodCall, InfixExpr, PrefixExpr,
    PostfixExpr, Assignment, ParenExpr, CastExpr, InstanceOfExpr,
    ConditionalExpr, ArrayAccess, NewObject,
)

NODE_TYPES: Tuple[type, ...] = STATEMENT_TYPES + EXPRESSION_TYPES + (VarFragment, CatchClause)

LOOP_KINDS: FrozenSet[Kind] = frozenset({Kind.FOR, Kind.FOREACH, Kind.WHILE, Kind.DO})
COND_KINDS: FrozenSet[Kind] = frozenset({Kind.IF, Kind.SWITCH, Kind.CONDITIONAL})
OPERATOR_KINDS: FrozenSet[Kind] = frozenset({Kind.INFIX, Kind.PREFIX, Kind.POSTFIX, Kind.ASSIGN})
OTHER_KINDS: FrozenSet[Kind] = frozenset({
    Kind.RETURN, Kind.THROW, Kind.BREAK, Kind.CONTINUE, Kind.TRY, Kind.CAST,
    Kind.INSTANCEOF, Kind.NEW, Kind.ARRAY_ACCESS, Kind.FIELD_ACCESS,
})

# ---------- Exceptions ----------

class GraftError(Exception):
    pass

class MalformedTreeError(GraftError):
    """Input tree violates a structural invariant (missing slot, shared child...)."""

class ParseError(GraftError):
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = super().__str__()

        if self.line is None:
            return msg

        if self.column is None:
            return f"{msg} (line {self.line})"

        return f"{msg} (line {self.line}, col {self.column})"

class RenamingConflict(Exception):
    """Internal signal: a candidate binding contradicts one already committed."""
    def __init__(self, donor_name: str, target_name: str):
        super().__init__(f"cannot bind {donor_name!r} to {target_name!r}")
        self.donor_name = donor_name
        self.target_name = target_name
