from __future__ import annotations

from typing import List, Optional

from lark import Token, Transformer, Tree
from lark.visitors import v_args

from .nodes import (
    NO_SPAN,
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
    Expr,
    ExprStmt,
    FieldAccess,
    ForEachStmt,
    ForStmt,
    IfStmt,
    InfixExpr,
    InstanceOfExpr,
    Literal,
    LiteralKind,
    MethodCall,
    Name,
    NewObject,
    Node,
    ParenExpr,
    PostfixExpr,
    PrefixExpr,
    ReturnStmt,
    Span,
    SwitchCase,
    SwitchStmt,
    ThisExpr,
    ThrowStmt,
    TryStmt,
    VarDecl,
    VarFragment,
    WhileStmt,
)


def _span(meta) -> Span:
    if getattr(meta, "empty", True):
        return NO_SPAN

    return Span(meta.line, meta.end_line)

def _token_span(tok: Token) -> Span:
    if tok.line is None:
        return NO_SPAN

    end = tok.end_line if tok.end_line is not None else tok.line
    return Span(tok.line, end)

def _name(tok: Token) -> Name:
    return Name(str(tok), span=_token_span(tok))

def number_kind(text: str) -> LiteralKind:
    """Literal kind from a Java numeric literal's spelling."""
    lowered = text.lower()

    if lowered.startswith("0x"):
        return LiteralKind.LONG if lowered.endswith("l") else LiteralKind.INT

    match lowered[-1]:
        case "l":
            return LiteralKind.LONG
        case "f":
            return LiteralKind.FLOAT
        case "d":
            return LiteralKind.DOUBLE

    if "." in lowered or "e" in lowered:
        return LiteralKind.DOUBLE

    return LiteralKind.INT


@v_args(inline=True, meta=True)
class Lower(Transformer):
    """Parse tree -> syntax nodes. Spans come from lark's propagated positions."""

    # ---------- entry points ----------

    def start(self, meta, *stmts) -> Block:
        return Block(list(stmts), braced=False, span=_span(meta))

    def single_statement(self, meta, stmt):
        return stmt

    def single_expression(self, meta, expr):
        return expr

    # ---------- statements ----------

    def block(self, meta, *stmts) -> Block:
        return Block(list(stmts), span=_span(meta))

    def if_stmt(self, meta, condition, then_branch, else_branch) -> IfStmt:
        return IfStmt(condition, then_branch, else_branch, span=_span(meta))

    def else_branch(self, meta, stmt) -> Node:
        return stmt

    def switch_stmt(self, meta, expression, *items) -> SwitchStmt:
        return SwitchStmt(expression, list(items), span=_span(meta))

    def switch_case(self, meta, expression) -> SwitchCase:
        return SwitchCase(expression, span=_span(meta))

    def switch_default(self, meta) -> SwitchCase:
        return SwitchCase(None, span=_span(meta))

    def for_stmt(self, meta, init, condition, update, body) -> ForStmt:
        return ForStmt(init or [], condition, update or [], body, span=_span(meta))

    def for_init(self, meta, *items) -> List[Node]:
        for item in items:
            if isinstance(item, VarDecl):
                item.terminated = False
        return list(items)

    def for_update(self, meta, *exprs) -> List[Expr]:
        return list(exprs)

    def foreach_stmt(self, meta, var_type, ident, iterable, body) -> ForEachStmt:
        return ForEachStmt(var_type, _name(ident), iterable, body, span=_span(meta))

    def while_stmt(self, meta, condition, body) -> WhileStmt:
        return WhileStmt(condition, body, span=_span(meta))

    def do_stmt(self, meta, body, condition) -> DoStmt:
        return DoStmt(body, condition, span=_span(meta))

    def try_stmt(self, meta, body, *rest) -> TryStmt:
        *catches, finally_block = rest
        return TryStmt(body, list(catches), finally_block, span=_span(meta))

    def catch_clause(self, meta, exc_type, ident, body) -> CatchClause:
        return CatchClause(exc_type, _name(ident), body, span=_span(meta))

    def return_stmt(self, meta, expression) -> ReturnStmt:
        return ReturnStmt(expression, span=_span(meta))

    def throw_stmt(self, meta, expression) -> ThrowStmt:
        return ThrowStmt(expression, span=_span(meta))

    def break_stmt(self, meta, label) -> BreakStmt:
        return BreakStmt(None if label is None else str(label), span=_span(meta))

    def continue_stmt(self, meta, label) -> ContinueStmt:
        return ContinueStmt(None if label is None else str(label), span=_span(meta))

    def var_decl_stmt(self, meta, decl: VarDecl) -> VarDecl:
        decl.span = _span(meta)
        return decl

    def local_var_decl(self, meta, var_type, *fragments) -> VarDecl:
        return VarDecl(var_type, list(fragments), span=_span(meta))

    def var_fragment(self, meta, ident, initializer) -> VarFragment:
        return VarFragment(_name(ident), initializer, span=_span(meta))

    def expr_stmt(self, meta, expression) -> ExprStmt:
        return ExprStmt(expression, span=_span(meta))

    def empty_stmt(self, meta) -> EmptyStmt:
        return EmptyStmt(span=_span(meta))

    # ---------- types (lowered to their spelling) ----------

    def type_name(self, meta, qualified: str, args: Optional[List[str]], *dims) -> str:
        text = qualified
        if args is not None:
            text += "<" + ", ".join(args) + ">"
        return text + "[]" * len(dims)

    def qualified(self, meta, *idents) -> str:
        return ".".join(str(i) for i in idents)

    def type_args(self, meta, *types) -> List[str]:
        return list(types)

    # ---------- expressions ----------

    def assign(self, meta, target, op, value) -> Assignment:
        return Assignment(target, str(op), value, span=_span(meta))

    def conditional(self, meta, condition, _q, then_expr, _colon, else_expr) -> ConditionalExpr:
        return ConditionalExpr(condition, then_expr, else_expr, span=_span(meta))

    def infix(self, meta, left, op, right) -> InfixExpr:
        return InfixExpr(left, str(op), right, span=_span(meta))

    def instanceof(self, meta, expression, _kw, type_name) -> InstanceOfExpr:
        return InstanceOfExpr(expression, type_name, span=_span(meta))

    def prefix(self, meta, op, operand) -> PrefixExpr:
        return PrefixExpr(str(op), operand, span=_span(meta))

    def cast(self, meta, _lpar, type_name, _rpar, expression) -> CastExpr:
        return CastExpr(type_name, expression, span=_span(meta))

    def postfix(self, meta, operand, op) -> PostfixExpr:
        return PostfixExpr(operand, str(op), span=_span(meta))

    def field_access(self, meta, target, ident) -> FieldAccess:
        return FieldAccess(target, str(ident), span=_span(meta))

    def method_call(self, meta, receiver, ident, args) -> MethodCall:
        return MethodCall(receiver, str(ident), args or [], span=_span(meta))

    def local_call(self, meta, ident, args) -> MethodCall:
        return MethodCall(None, str(ident), args or [], span=_span(meta))

    def array_access(self, meta, array, index) -> ArrayAccess:
        return ArrayAccess(array, index, span=_span(meta))

    def new_object(self, meta, type_name, args) -> NewObject:
        return NewObject(type_name, args or [], span=_span(meta))

    def arguments(self, meta, *exprs) -> List[Expr]:
        return list(exprs)

    def paren(self, meta, expression) -> ParenExpr:
        return ParenExpr(expression, span=_span(meta))

    def name(self, meta, ident) -> Name:
        return Name(str(ident), span=_span(meta))

    def this(self, meta) -> ThisExpr:
        return ThisExpr(span=_span(meta))

    # ---------- literals ----------

    def number(self, meta, tok) -> Literal:
        return Literal(str(tok), number_kind(str(tok)), span=_span(meta))

    def string(self, meta, tok) -> Literal:
        return Literal(str(tok), LiteralKind.STRING, span=_span(meta))

    def char(self, meta, tok) -> Literal:
        return Literal(str(tok), LiteralKind.CHAR, span=_span(meta))

    def true(self, meta) -> Literal:
        return Literal("true", LiteralKind.BOOL, span=_span(meta))

    def false(self, meta) -> Literal:
        return Literal("false", LiteralKind.BOOL, span=_span(meta))

    def null(self, meta) -> Literal:
        return Literal("null", LiteralKind.NULL, span=_span(meta))


def lower(tree: Tree) -> Node:
    return Lower().transform(tree)
