# metapeg/grammar/fragments.py
"""Host-language fragments embedded in a grammar.

A rule may declare a result type (`name: TYPE = ...`) and a sequence may
carry an action (`... => { CODE }`). The grammar parser does not know the
language these are written in; it hands the cursor to a `FragmentParser`,
which consumes exactly one fragment and returns an opaque `Fragment`.

`PythonFragments` is the default: types are Python annotation expressions,
actions are Python expressions or statement suites.
"""

from __future__ import annotations
import ast as _pyast
import textwrap
from typing import List, Optional

from ..errors import FragmentError, NestingTooDeep
from ..lex import Tok, TokenStream
from .ast import Fragment, Span

# nesting limit for groups, captures and type brackets
DEFAULT_MAX_DEPTH = 100


def _span(first: Tok, last: Tok) -> Span:
    return Span(first.start, last.end, first.line, first.col)


class FragmentParser:
    """Interface the grammar parser expects from a host-language parser.

    Both methods start at the current token, consume one fragment and leave
    the cursor right after it. Failures raise `UnexpectedToken` (from the
    cursor) or `FragmentError`.
    """
    def parse_type(self, ts: TokenStream) -> Fragment:
        raise NotImplementedError

    def parse_block(self, ts: TokenStream) -> Fragment:
        raise NotImplementedError


class PythonFragments(FragmentParser):
    """
    TYPE   := primary ('|' primary)*
    primary:= IDENT ('.' IDENT)* ('[' list ']')? | STRING | '...' | '[' list? ']'
    list   := TYPE (',' TYPE)* ','?

    With `validate` the captured text is compiled with `ast.parse`, and the
    resulting tree is kept on the fragment.
    """

    def __init__(self, validate: bool = True):
        self.validate = validate

    # ---- types ----
    def parse_type(self, ts: TokenStream) -> Fragment:
        first = ts.la()
        self._union(ts, 0)
        last = ts.prev()
        text = ts.src[first.start:last.end]
        tree = None
        if self.validate:
            try:
                tree = _pyast.parse(text, mode="eval")
            except SyntaxError as e:
                raise FragmentError("type", e.msg, first, ts.src) from None
        return Fragment("type", text, _span(first, last), tree)

    def _union(self, ts: TokenStream, depth: int) -> None:
        self._primary(ts, depth)
        while ts.match("OR"):
            self._primary(ts, depth)

    def _open(self, ts: TokenStream, depth: int) -> int:
        """Consume '[' and return the new bracket depth."""
        limit = getattr(ts, "max_depth", DEFAULT_MAX_DEPTH)
        if depth + 1 > limit:
            raise NestingTooDeep(ts.la(), ts.src, limit)
        ts.eat("LBRACK")
        return depth + 1

    def _primary(self, ts: TokenStream, depth: int) -> None:
        if ts.match("STRING") or ts.match("ELLIPSIS"):
            return
        if ts.peek("LBRACK"):
            inner = self._open(ts, depth)
            if not ts.peek("RBRACK"):
                self._list(ts, inner)
            ts.eat("RBRACK")
            return
        ts.eat("IDENT")
        while ts.match("DOT"):
            ts.eat("IDENT")
        if ts.peek("LBRACK"):
            self._list(ts, self._open(ts, depth))
            ts.eat("RBRACK")

    def _list(self, ts: TokenStream, depth: int) -> None:
        self._union(ts, depth)
        while ts.match("COMMA"):
            if ts.peek("RBRACK"):
                break
            self._union(ts, depth)

    # ---- action blocks ----
    def parse_block(self, ts: TokenStream) -> Fragment:
        lbrace = ts.eat("LBRACE")
        body = ts.eat("CODE")
        rbrace = ts.eat("RBRACE")
        tree = self._compile_block(body, ts.src) if self.validate else None
        return Fragment("block", body.lexeme, _span(lbrace, rbrace), tree)

    @staticmethod
    def _block_sources(text: str) -> List[str]:
        """Candidate Python sources for a block body, most literal first."""
        head, _, tail = text.partition("\n")
        if not head.strip():
            return [textwrap.dedent(tail).strip()]
        # inline header: the tail keeps its own indentation (suite of `if x:`)
        # or is aligned with the header (plain statements)
        return [
            (head.strip() + "\n" + tail).rstrip(),
            (head.strip() + "\n" + textwrap.dedent(tail)).rstrip(),
        ]

    def _compile_block(self, body: Tok, src: str) -> Optional[_pyast.AST]:
        first_error = None
        for code in self._block_sources(body.lexeme):
            for mode in ("eval", "exec"):
                try:
                    return _pyast.parse(code, mode=mode)
                except SyntaxError as e:
                    if first_error is None and mode == "exec":
                        first_error = e
        raise FragmentError("block", first_error.msg, body, src)
