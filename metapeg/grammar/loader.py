"""Grammar file loading."""

from __future__ import annotations
from pathlib    import Path

from .ast import DefinitionList


def load_grammar_text(path: str) -> str:
    """
    Read a grammar file as UTF-8 with newlines normalized to '\\n'.
    """
    text = Path(path).read_text(encoding="utf-8")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_grammar_file(path: str, **options) -> DefinitionList:
    """`load_grammar_text` + `parse_grammar`; options go to `parse_grammar`."""
    from .parser import parse_grammar
    return parse_grammar(load_grammar_text(path), **options)
