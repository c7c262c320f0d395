# metapeg/grammar/__init__.py
"""Grammar front end: parse tree types, fragment parsers, and the parser."""

from .ast import (
    Span, Fragment, DefinitionList, ParserDefinition, Capture, NonTerminal,
    Call, Sequence, Empty, Terminal, Choice, Many0, Many1, Optional, Peek, Not,
    Node, children, walk, format_tree,
)
from .fragments import FragmentParser, PythonFragments
from .parser import (
    DEFAULT_MAX_DEPTH, Prefix, Postfix, make_stream, parse_prefix,
    parse_postfix, looks_like_definition, parse_element, parse_sequence,
    parse_expression, parse_definition, parse_definitions, parse_tokens,
    parse_grammar,
)
from .loader import load_grammar_text, parse_grammar_file
