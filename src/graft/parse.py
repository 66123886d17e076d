from __future__ import annotations

from pathlib import Path
from typing import Optional

from lark import Lark, UnexpectedInput

from .lower import lower
from .nodes import Expr, Node, ParseError
from .tree import SyntaxTree

GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
START_SYMBOLS = ["start", "single_statement", "single_expression"]

_parser: Optional[Lark] = None


def _read_grammar(grammar_path: Optional[str] = None) -> str:
    path = Path(grammar_path) if grammar_path else GRAMMAR_PATH
    if not path.exists():
        raise FileNotFoundError(f"grammar not found: {path}")

    return path.read_text(encoding="utf-8")

def build_parser(grammar_text: str) -> Lark:
    return Lark(
        grammar_text,
        parser="earley",
        lexer="basic",
        start=START_SYMBOLS,
        maybe_placeholders=True,
        propagate_positions=True,
    )

def get_parser() -> Lark:
    global _parser

    if _parser is None:
        _parser = build_parser(_read_grammar())

    return _parser

def _position(value: Optional[int]) -> Optional[int]:
    # lark reports -1 for end-of-input errors
    if value is None or value < 0:
        return None
    return value

def _parse(text: str, start: str) -> Node:
    try:
        tree = get_parser().parse(text, start=start)
    except UnexpectedInput as exc:
        line = _position(getattr(exc, "line", None))
        column = _position(getattr(exc, "column", None))
        raise ParseError(f"Syntax error: {type(exc).__name__}", line, column) from exc

    return lower(tree)

def parse_source(text: str, path: Optional[str] = None) -> SyntaxTree:
    """Parse a run of statements; the root is an unbraced Block."""
    return SyntaxTree(_parse(text, "start"), source=text, path=path)

def parse_statement(text: str) -> Node:
    return _parse(text, "single_statement")

def parse_expression(text: str) -> Expr:
    return _parse(text, "single_expression")  # type: ignore[return-value]

def parse_file(path: str) -> SyntaxTree:
    source = Path(path).read_text(encoding="utf-8")
    return parse_source(source, path=path)
