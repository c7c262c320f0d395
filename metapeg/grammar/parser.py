# metapeg/grammar/parser.py
"""metapeg grammar parser.

Grammar we parse:
  grammar    := definition+
  definition := IDENT (':' TYPE)? '=' expression
  expression := sequence ('|' sequence)*
  sequence   := element+ ('=>' CODE_BLOCK)?
  element    := prefix? atom postfix?
  prefix     := '&' | '!'
  postfix    := '?' | '*' | '+'
  atom       := IDENT              # non-terminal, unless it starts a new definition
              | '::' IDENT         # external call
              | STRING             # terminal
              | '(' expression ')' # grouping, no node of its own
              | '<' (IDENT ':')? element '>'   # capture

Rules are not terminated, so where a rule body ends is decided by trial
parsing: an identifier that begins a complete header `IDENT (':' TYPE)? '='`
starts the next definition and ends the current sequence.

TYPE and CODE_BLOCK are delegated to a `FragmentParser`.
"""

from __future__ import annotations
from typing import List, Optional, Sequence as Seq

from ..errors import (
    GrammarError, EmptySequence, MissingHeaderPart, NestingTooDeep,
    UnexpectedToken, UnterminatedCapture,
)
from ..lex import Tok, TokenStream, scan
from .ast import (
    Call, Capture, Choice, DefinitionList, Many0, Many1, Node, NonTerminal,
    Not, ParserDefinition, Peek, Sequence, Span, Terminal,
)
from .ast import Optional as Opt
from .fragments import DEFAULT_MAX_DEPTH, FragmentParser, PythonFragments


class _Cursor(TokenStream):
    """TokenStream plus the per-parse options (copied along on `fork`)."""

    def __init__(self, toks: Seq[Tok], src: str,
                 fragments: Optional[FragmentParser] = None,
                 max_depth: int = DEFAULT_MAX_DEPTH):
        super().__init__(toks, src)
        self.fragments = fragments if fragments is not None else PythonFragments()
        self.max_depth = max_depth


def make_stream(src: str, *, fragments: Optional[FragmentParser] = None,
                max_depth: int = DEFAULT_MAX_DEPTH) -> _Cursor:
    return _Cursor(scan(src), src, fragments, max_depth)


def _span(first: Tok, last: Tok) -> Span:
    return Span(first.start, last.end, first.line, first.col)


# --- prefix / postfix ---

class Prefix:
    PEEK = "&"
    NOT  = "!"

class Postfix:
    OPTIONAL = "?"
    MANY0    = "*"
    MANY1    = "+"

_PREFIX_NODE  = {Prefix.PEEK: Peek, Prefix.NOT: Not}
_POSTFIX_NODE = {Postfix.OPTIONAL: Opt, Postfix.MANY0: Many0, Postfix.MANY1: Many1}


def parse_prefix(ts: TokenStream) -> Optional[str]:
    """Consume '&' or '!' if present. Absence is not an error."""
    if ts.match("AMP"):
        return Prefix.PEEK
    if ts.match("BANG"):
        return Prefix.NOT
    return None

def parse_postfix(ts: TokenStream) -> Optional[str]:
    """Consume '?', '*' or '+' if present. Absence is not an error."""
    if ts.match("QMARK"):
        return Postfix.OPTIONAL
    if ts.match("STAR"):
        return Postfix.MANY0
    if ts.match("PLUS"):
        return Postfix.MANY1
    return None


# --- rule boundary ---

def _parse_header(ts: _Cursor):
    """IDENT (':' TYPE)? '=' ; returns (name_tok, type_fragment)."""
    if not ts.peek("IDENT"):
        raise ts.error(MissingHeaderPart, part="rule name")
    name = ts.bump()
    rtype = None
    if ts.match("COLON"):
        before = ts.i
        try:
            rtype = ts.fragments.parse_type(ts)
        except UnexpectedToken:
            if ts.i == before:
                raise ts.error(MissingHeaderPart, part="type") from None
            raise
    if not ts.peek("EQ"):
        raise ts.error(MissingHeaderPart, part="'='")
    ts.bump()
    return name, rtype

def looks_like_definition(ts: _Cursor) -> bool:
    """True if a full rule header starts at the current token.

    Runs on a fork: the cursor passed in never moves.
    """
    try:
        _parse_header(ts.fork())
    except NestingTooDeep:
        raise
    except GrammarError:
        return False
    return True


# --- element ---

def _enter(ts: _Cursor, depth: int) -> int:
    depth += 1
    if depth > ts.max_depth:
        raise NestingTooDeep(ts.la(), ts.src, ts.max_depth)
    return depth

def _parse_capture(ts: _Cursor, depth: int) -> Capture:
    depth = _enter(ts, depth)
    lt = ts.eat("LT")
    name = None
    if ts.peek("IDENT") and ts.peek2("COLON"):
        name = ts.bump().lexeme
        ts.eat("COLON")
    inner = parse_element(ts, depth)
    if inner is None:
        raise ts.error()
    if not ts.peek("GT"):
        raise ts.error(UnterminatedCapture, opened=lt)
    gt = ts.bump()
    return Capture(inner, name, span=_span(lt, gt))

def _parse_atom(ts: _Cursor, depth: int) -> Optional[Node]:
    if ts.peek("IDENT"):
        if looks_like_definition(ts):
            return None
        t = ts.bump()
        return NonTerminal(t.lexeme, span=_span(t, t))
    if ts.peek("COLON2"):
        colons = ts.bump()
        name = ts.eat("IDENT")
        return Call(name.lexeme, span=_span(colons, name))
    if ts.peek("STRING"):
        t = ts.bump()
        return Terminal(t.value, span=_span(t, t))
    if ts.peek("LPAREN"):
        inner_depth = _enter(ts, depth)
        ts.bump()
        expr = parse_expression(ts, inner_depth)
        ts.eat("RPAREN")
        return expr
    if ts.peek("LT"):
        return _parse_capture(ts, depth)
    return None

def parse_element(ts: _Cursor, depth: int = 0) -> Optional[Node]:
    """One atom with its prefix/postfix operators.

    Returns None, having consumed nothing, when no element starts here
    (including an identifier that begins the next definition).
    """
    prefix = parse_prefix(ts)
    node = _parse_atom(ts, depth)
    if node is None:
        if prefix is None:
            return None
        # a consumed prefix needs its operand, even before a new rule header
        raise ts.error()

    postfix = parse_postfix(ts)
    if postfix is not None:
        node = _POSTFIX_NODE[postfix](node)
    if prefix is not None:
        node = _PREFIX_NODE[prefix](node)
    return node


# --- sequence / expression ---

def parse_sequence(ts: _Cursor, depth: int = 0) -> Sequence:
    first = ts.la()
    items: List[Node] = []
    while not ts.at_eof():
        e = parse_element(ts, depth)
        if e is None:
            break
        items.append(e)

    if not items:
        raise EmptySequence(ts.la(), ts.src)

    action = None
    if ts.match("ARROW"):
        action = ts.fragments.parse_block(ts)

    return Sequence(tuple(items), action, span=_span(first, ts.prev()))

def parse_expression(ts: _Cursor, depth: int = 0) -> Node:
    alts = [parse_sequence(ts, depth)]
    while ts.match("OR"):
        alts.append(parse_sequence(ts, depth))
    if len(alts) == 1:
        return alts[0]
    return Choice(tuple(alts))


# --- definitions ---

def parse_definition(ts: _Cursor) -> ParserDefinition:
    name, rtype = _parse_header(ts)
    body = parse_expression(ts)
    return ParserDefinition(name.lexeme, rtype, body, span=_span(name, ts.prev()))

def parse_definitions(ts: _Cursor) -> DefinitionList:
    defs = [parse_definition(ts)]
    while not ts.at_eof():
        defs.append(parse_definition(ts))
    return DefinitionList(tuple(defs))


# --- entry points ---

def parse_tokens(toks: Seq[Tok], src: str, *,
                 fragments: Optional[FragmentParser] = None,
                 max_depth: int = DEFAULT_MAX_DEPTH) -> DefinitionList:
    """Parse an already scanned token list; `src` is the text it came from."""
    return parse_definitions(_Cursor(toks, src, fragments, max_depth))

def parse_grammar(src: str, *,
                  fragments: Optional[FragmentParser] = None,
                  max_depth: int = DEFAULT_MAX_DEPTH) -> DefinitionList:
    return parse_tokens(scan(src), src, fragments=fragments, max_depth=max_depth)
