# metapeg/__init__.py
"""metapeg: front end for a PEG-style meta-grammar.

Reads grammar text such as

    number: int = <d: digits> => { int(d) }
    digits = "0"+

and returns a `DefinitionList` parse tree.
"""

from .errors import (
    GrammarError, LexError, UnexpectedToken, MissingHeaderPart,
    UnterminatedCapture, EmptySequence, NestingTooDeep, FragmentError,
)
from .lex import Tok, TokenStream, scan
from .grammar import (
    Span, Fragment, DefinitionList, ParserDefinition, Capture, NonTerminal,
    Call, Sequence, Empty, Terminal, Choice, Many0, Many1, Optional, Peek, Not,
    children, walk, format_tree,
    FragmentParser, PythonFragments,
    DEFAULT_MAX_DEPTH, parse_tokens, parse_grammar,
    load_grammar_text, parse_grammar_file,
)
