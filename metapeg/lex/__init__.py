# metapeg/lex/__init__.py
"""metapeg scanner: grammar source -> token list, plus the read cursor.

Matching order
--------------
 1) whitespace and comments (`//...`, `/* ... */`) are skipped
 2) `{` starts a raw code block: the brace-balanced body is captured as one
    CODE token between LBRACE and RBRACE (quotes and `#` comments inside the
    body do not count toward the balance)
 3) otherwise the master regex, punctuation longest first
 4) nothing matches -> LexError

API
---
- `Tok(kind, lexeme, start, end, line, col)`
- `scan(src) -> List[Tok]`, always terminated by one EOF token
- `TokenStream(toks, src)`: cursor with `la/peek/match/eat/fork`
"""

from __future__ import annotations
import ast as _pyast
import copy
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple
import regex as re

from ..errors import LexError, UnexpectedToken


@dataclass(frozen=True)
class Tok:
    kind: str
    lexeme: str     # raw source text (decoded value for STRING lives in `value`)
    start: int      # 0-based offset
    end: int
    line: int       # 1-based
    col: int        # 1-based
    value: Optional[str] = None


_TOKEN_SPEC = [
    ("WS",       r"[ \t\f\r\n]+"),
    ("COMMENT",  r"//[^\n]*"),
    ("MCOMMENT", r"/\*.*?\*/"),
    ("ARROW",    r"=>"),
    ("COLON2",   r"::"),
    ("ELLIPSIS", r"\.\.\."),
    ("EQ",       r"="),
    ("COLON",    r":"),
    ("OR",       r"\|"),
    ("LPAREN",   r"\("),
    ("RPAREN",   r"\)"),
    ("LT",       r"<"),
    ("GT",       r">"),
    ("AMP",      r"&"),
    ("BANG",     r"!"),
    ("QMARK",    r"\?"),
    ("STAR",     r"\*"),
    ("PLUS",     r"\+"),
    ("LBRACK",   r"\["),
    ("RBRACK",   r"\]"),
    ("COMMA",    r","),
    ("DOT",      r"\."),
    ("STRING",   r'[rR]?"(?:\\.|[^"\\\n])*"'),
    ("SSTRING",  r"[rR]?'(?:\\.|[^'\\\n])*'"),
    ("IDENT",    r"[\p{XID_Start}_]\p{XID_Continue}*"),
]
MASTER_RE = re.compile("|".join(f"(?P<{n}>{p})" for n, p in _TOKEN_SPEC), re.S)

_SKIP = ("WS", "COMMENT", "MCOMMENT")

# Python string literals inside a code block, triple quotes first.
_PY_STRING_RE = re.compile(
    r'"""(?:\\.|[^\\])*?"""'
    r"|'''(?:\\.|[^\\])*?'''"
    r'|"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'",
    re.S,
)


def _advance_linecol_by(text: str, line: int, col: int) -> Tuple[int, int]:
    nl = text.count("\n")
    if nl == 0:
        return line, col + len(text)
    last_nl = text.rfind("\n")
    return line + nl, len(text) - last_nl


def _decode_string(lexeme: str, src: str, tok: Tok) -> str:
    try:
        value = _pyast.literal_eval(lexeme)
    except (SyntaxError, ValueError) as e:
        raise LexError(f"invalid string literal ({e})", tok, src) from None
    return value


def _scan_block(src: str, i: int, line: int, col: int):
    """
    src[i] is '{'. Returns ([LBRACE, CODE, RBRACE], new_i, new_line, new_col).
    """
    open_tok = Tok("LBRACE", "{", i, i + 1, line, col)
    body_start = i + 1
    body_line, body_col = line, col + 1
    depth = 1
    j = body_start
    while j < len(src):
        ch = src[j]
        if ch in "\"'":
            m = _PY_STRING_RE.match(src, j)
            if not m:
                bad_line, bad_col = _advance_linecol_by(src[body_start:j], body_line, body_col)
                raise LexError("unterminated string in code block",
                               Tok("CODE", ch, j, j + 1, bad_line, bad_col), src)
            j = m.end()
            continue
        if ch == "#":
            nl = src.find("\n", j)
            j = len(src) if nl == -1 else nl
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                body = src[body_start:j]
                close_line, close_col = _advance_linecol_by(body, body_line, body_col)
                toks = [
                    open_tok,
                    Tok("CODE", body, body_start, j, body_line, body_col),
                    Tok("RBRACE", "}", j, j + 1, close_line, close_col),
                ]
                return toks, j + 1, close_line, close_col + 1
        j += 1
    raise LexError("unterminated code block (missing '}')", open_tok, src)


def scan(src: str) -> List[Tok]:
    """Comments and whitespace only update line/col, they are not emitted."""
    toks: List[Tok] = []
    line = col = 1
    i = 0
    while i < len(src):
        if src[i] == "{":
            block_toks, i, line, col = _scan_block(src, i, line, col)
            toks.extend(block_toks)
            continue

        m = MASTER_RE.match(src, i)
        if not m:
            bad = Tok("ERROR", src[i], i, i + 1, line, col)
            if src.startswith("/*", i):
                raise LexError("unclosed block comment", bad, src)
            if src[i] in "\"'":
                raise LexError("unterminated string literal", bad, src)
            raise LexError(f"unexpected character {src[i]!r}", bad, src)
        kind = m.lastgroup or ""
        lex = m.group(0)
        start, end = i, m.end()

        if kind not in _SKIP:
            if kind in ("STRING", "SSTRING"):
                tok = Tok("STRING", lex, start, end, line, col)
                tok = replace(tok, value=_decode_string(lex, src, tok))
            else:
                tok = Tok(kind, lex, start, end, line, col)
            toks.append(tok)

        line, col = _advance_linecol_by(lex, line, col)
        i = end

    toks.append(Tok("EOF", "", len(src), len(src), line, col))
    return toks


class TokenStream:
    """Read cursor over an immutable token list.

    Every `peek(kind)` made at the current index is remembered, so an error
    raised there can report all the kinds that would have been accepted.
    `fork()` gives an independent cursor; nothing done on it moves this one.
    """

    def __init__(self, toks: Sequence[Tok], src: str = "", i: int = 0):
        if not toks or toks[-1].kind != "EOF":
            raise ValueError("token list must end with an EOF token")
        self.toks = tuple(toks)
        self.src = src
        self.i = i
        self._expected: List[str] = []
        self._expected_at = i

    def la(self) -> Tok:
        return self.toks[self.i]

    def _note(self, kind: str) -> None:
        if self._expected_at != self.i:
            self._expected = []
            self._expected_at = self.i
        if kind not in self._expected:
            self._expected.append(kind)

    def peek(self, kind: str) -> bool:
        self._note(kind)
        return self.la().kind == kind

    def peek2(self, kind: str) -> bool:
        j = min(self.i + 1, len(self.toks) - 1)
        return self.toks[j].kind == kind

    def at_eof(self) -> bool:
        return self.la().kind == "EOF"

    def bump(self) -> Tok:
        """Consume the current token whatever its kind (EOF is never passed)."""
        t = self.la()
        if t.kind != "EOF":
            self.i += 1
        return t

    def match(self, kind: str) -> Optional[Tok]:
        if self.peek(kind):
            return self.bump()
        return None

    def eat(self, kind: str) -> Tok:
        if not self.peek(kind):
            raise self.error()
        return self.bump()

    def prev(self) -> Tok:
        return self.toks[self.i - 1] if self.i > 0 else self.la()

    def fork(self) -> "TokenStream":
        other = copy.copy(self)
        other._expected = []
        other._expected_at = self.i
        return other

    def expected(self) -> Tuple[str, ...]:
        if self._expected_at != self.i:
            return ()
        return tuple(self._expected)

    def error(self, cls=UnexpectedToken, **kw) -> UnexpectedToken:
        return cls(self.la(), self.src, self.expected(), **kw)
