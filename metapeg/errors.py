# metapeg/errors.py
"""Errors raised by the grammar front end.

Every error is a `SyntaxError` so callers that only care about "the grammar
is bad" can keep catching that. The subclasses carry the position (`tok`) and,
for token-level failures, the aggregated set of token kinds that would have
been accepted at that position.
"""

from __future__ import annotations
from typing import Optional, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .lex import Tok


# ---------- snippet utils ----------
def _line_bounds(src: str, pos: int) -> Tuple[int, int]:
    """[start, end) of the line holding pos"""
    start = src.rfind("\n", 0, pos)
    if start == -1:
        start = 0
    else:
        start += 1
    end = src.find("\n", pos)
    if end == -1:
        end = len(src)
    return start, end

def snippet_with_caret(src: str, pos: int) -> str:
    """Source line around offset `pos` with a caret under it."""
    start, end = _line_bounds(src, pos)
    line_text = src[start:end]
    caret = " " * (pos - start) + "^"
    return f"{line_text}\n{caret}"


# Display names for token kinds in messages.
KIND_NAMES = {
    "IDENT":    "identifier",
    "STRING":   "string literal",
    "ARROW":    "'=>'",
    "COLON2":   "'::'",
    "ELLIPSIS": "'...'",
    "EQ":       "'='",
    "COLON":    "':'",
    "OR":       "'|'",
    "LPAREN":   "'('",
    "RPAREN":   "')'",
    "LT":       "'<'",
    "GT":       "'>'",
    "AMP":      "'&'",
    "BANG":     "'!'",
    "QMARK":    "'?'",
    "STAR":     "'*'",
    "PLUS":     "'+'",
    "LBRACK":   "'['",
    "RBRACK":   "']'",
    "COMMA":    "','",
    "DOT":      "'.'",
    "LBRACE":   "'{'",
    "RBRACE":   "'}'",
    "CODE":     "code block",
    "EOF":      "end of input",
}

def describe_kind(kind: str) -> str:
    return KIND_NAMES.get(kind, kind)

def describe_tok(tok: "Tok") -> str:
    if tok.kind == "EOF":
        return "end of input"
    if tok.kind == "IDENT":
        return f"identifier '{tok.lexeme}'"
    if tok.kind == "STRING":
        return f"string literal {tok.lexeme}"
    return describe_kind(tok.kind)


class GrammarError(SyntaxError):
    """Base class: something in the grammar source could not be accepted."""

    def __init__(self, message: str, tok: Optional["Tok"] = None, src: str = ""):
        self.message = message
        self.tok = tok
        self.src = src
        text = message
        if tok is not None:
            text = f"{message} at {tok.line}:{tok.col}"
            if src:
                text += "\n" + snippet_with_caret(src, tok.start)
        super().__init__(text)

    @property
    def line(self) -> Optional[int]:
        return self.tok.line if self.tok is not None else None

    @property
    def col(self) -> Optional[int]:
        return self.tok.col if self.tok is not None else None


class LexError(GrammarError):
    pass


class UnexpectedToken(GrammarError):
    """The current token is none of the kinds the parser could accept here."""

    def __init__(self, tok: "Tok", src: str, expected: Sequence[str] = (), *, prefix: str = ""):
        self.expected: Tuple[str, ...] = tuple(expected)
        self.found = tok
        names = [describe_kind(k) for k in self.expected]
        if not names:
            wanted = "unexpected token"
        elif len(names) == 1:
            wanted = f"expected {names[0]}"
        else:
            wanted = "expected one of " + ", ".join(names)
        message = f"{wanted}, found {describe_tok(tok)}"
        if prefix:
            message = f"{prefix}: {message}"
        super().__init__(message, tok, src)

    @property
    def at_eof(self) -> bool:
        return self.found.kind == "EOF"


class MissingHeaderPart(UnexpectedToken):
    """A rule header lacks its name, its type after ':', or its '='."""

    def __init__(self, tok: "Tok", src: str, expected: Sequence[str] = (), *, part: str):
        self.part = part
        super().__init__(tok, src, expected, prefix=f"rule header is missing {part}")


class UnterminatedCapture(UnexpectedToken):
    def __init__(self, tok: "Tok", src: str, expected: Sequence[str] = (), *, opened: "Tok"):
        self.opened = opened
        super().__init__(
            tok, src, expected,
            prefix=f"capture opened at {opened.line}:{opened.col} is not closed",
        )


class EmptySequence(GrammarError):
    def __init__(self, tok: "Tok", src: str):
        super().__init__("a sequence needs at least one element", tok, src)


class NestingTooDeep(GrammarError):
    def __init__(self, tok: "Tok", src: str, limit: int):
        self.limit = limit
        super().__init__(f"grouping/capture nesting exceeds the limit of {limit}", tok, src)


class FragmentError(GrammarError):
    """The host language rejected an embedded type or code block."""

    def __init__(self, kind: str, reason: str, tok: "Tok", src: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"invalid {kind} fragment ({reason})", tok, src)
