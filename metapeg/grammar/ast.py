# metapeg/grammar/ast.py
"""Parse tree of a metapeg grammar.

One frozen dataclass per construct. Children are held in tuples and owned by
their parent; the tree is built once by the parser and never mutated.
Source positions (`span`) and pre-parsed host values are kept out of
equality, so two parses of the same text compare equal.
"""

from __future__     import annotations
import ast as _pyast
from dataclasses    import dataclass, field
from typing         import Iterator, List, Tuple, Union

@dataclass(frozen=True)
class Span:
    start: int
    end: int
    line: int
    col: int

@dataclass(frozen=True)
class Fragment:
    """Opaque host-language fragment: a rule's result type or an action block.

    - kind: "type" | "block"
    - text: exact source text (for blocks, the body between the braces)
    - tree: host value pre-parsed by the fragment parser, if any
    """
    kind: str
    text: str
    span: "Span | None" = field(default=None, compare=False, repr=False)
    tree: "_pyast.AST | None" = field(default=None, compare=False, repr=False)


# ---- nodes ----

@dataclass(frozen=True)
class NonTerminal:
    name: str
    span: "Span | None" = field(default=None, compare=False, repr=False)

@dataclass(frozen=True)
class Call:
    """`::name`, a parsing function supplied from outside the grammar."""
    name: str
    span: "Span | None" = field(default=None, compare=False, repr=False)

@dataclass(frozen=True)
class Terminal:
    value: str  # decoded text
    span: "Span | None" = field(default=None, compare=False, repr=False)

@dataclass(frozen=True)
class Empty:
    """Zero-width match. Never produced by the parser; kept for consumers."""

@dataclass(frozen=True)
class Capture:
    node: "Node"
    name: "str | None" = None
    span: "Span | None" = field(default=None, compare=False, repr=False)

@dataclass(frozen=True)
class Sequence:
    items: Tuple["Node", ...]
    action: "Fragment | None" = None
    span: "Span | None" = field(default=None, compare=False, repr=False)

@dataclass(frozen=True)
class Choice:
    alts: Tuple["Node", ...]  # priority order

@dataclass(frozen=True)
class Many0:
    node: "Node"

@dataclass(frozen=True)
class Many1:
    node: "Node"

@dataclass(frozen=True)
class Optional:
    node: "Node"

@dataclass(frozen=True)
class Peek:
    node: "Node"  # positive lookahead (&)

@dataclass(frozen=True)
class Not:
    node: "Node"  # negative lookahead (!)

Node = Union[NonTerminal, Call, Terminal, Empty, Capture, Sequence, Choice,
             Many0, Many1, Optional, Peek, Not]

@dataclass(frozen=True)
class ParserDefinition:
    name: str
    type: "Fragment | None"
    body: Node
    span: "Span | None" = field(default=None, compare=False, repr=False)

@dataclass(frozen=True)
class DefinitionList:
    definitions: Tuple[ParserDefinition, ...]

    def names(self) -> List[str]:
        return [d.name for d in self.definitions]

    def require_rule(self, name: str) -> ParserDefinition:
        for d in self.definitions:
            if d.name == name:
                return d
        raise KeyError(f"undefined rule '{name}'")


_WRAPPERS = (Capture, Many0, Many1, Optional, Peek, Not)

def children(node) -> tuple:
    if isinstance(node, DefinitionList):
        return node.definitions
    if isinstance(node, ParserDefinition):
        return (node.body,)
    if isinstance(node, Sequence):
        return node.items
    if isinstance(node, Choice):
        return node.alts
    if isinstance(node, _WRAPPERS):
        return (node.node,)
    return ()

def walk(node) -> Iterator:
    """Pre-order traversal, the node itself first."""
    stack = [node]
    while stack:
        n = stack.pop()
        yield n
        stack.extend(reversed(children(n)))


# ---- dump ----

def _label(node) -> str:
    if isinstance(node, ParserDefinition):
        if node.type is not None:
            return f"ParserDefinition {node.name}: {node.type.text}"
        return f"ParserDefinition {node.name}"
    if isinstance(node, (NonTerminal, Call)):
        return f"{type(node).__name__} {node.name}"
    if isinstance(node, Terminal):
        return f"Terminal {node.value!r}"
    if isinstance(node, Capture):
        return f"Capture {node.name}" if node.name is not None else "Capture"
    if isinstance(node, Sequence) and node.action is not None:
        body = " ".join(node.action.text.split())
        if len(body) > 40:
            body = body[:37] + "..."
        return f"Sequence => {{ {body} }}"
    return type(node).__name__

def format_tree(node, indent: str = "  ") -> str:
    """One line per node, children indented under their parent."""
    lines: List[str] = []
    stack = [(node, 0)]
    while stack:
        n, depth = stack.pop()
        lines.append(indent * depth + _label(n))
        stack.extend((c, depth + 1) for c in reversed(children(n)))
    return "\n".join(lines)
