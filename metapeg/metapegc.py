# metapeg/metapegc.py
"""metapegc – metapeg CLI

Usage)
    $ python -m metapeg.metapegc check grammar.peg -D
    $ python -m metapeg.metapegc dump grammar.peg --rule expr
    $ python -m metapeg.metapegc lex grammar.peg

Commands
--------
- check : parse the grammar and print a one-line summary
- dump  : print the parse tree (whole grammar or one rule)
- lex   : print the token stream

With -D/--debug the pipeline stages are reported on stderr.
"""

from __future__ import annotations
import argparse
import sys
from collections import Counter
from typing import Optional

# ------------------------------
# helpers
# ------------------------------

def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)

# ------------------------------
# pipeline
# ------------------------------

def _load_tree(args):
    """.peg file -> tokens -> DefinitionList"""
    from .grammar.loader import load_grammar_text
    from .grammar.fragments import PythonFragments
    from .grammar.parser import parse_tokens
    from .lex import scan

    src = load_grammar_text(args.file)
    toks = scan(src)
    if args.debug: _eprint("[DEBUG] tokens=%d" % (len(toks) - 1))

    tree = parse_tokens(
        toks, src,
        fragments=PythonFragments(validate=not args.no_validate),
        max_depth=args.max_depth,
    )
    if args.debug: _eprint("[DEBUG] parse tree ready | rules=%d" % len(tree.definitions))
    return tree

def _report(fn, args) -> int:
    try:
        return fn(args)
    except SyntaxError as e:
        _eprint("[SYNTAX ERROR]")
        _eprint(str(e))
        return 2
    except Exception as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2

# ------------------------------
# commands
# ------------------------------

def cmd_check(args) -> int:
    from .grammar.ast import walk

    tree = _load_tree(args)
    kinds = Counter(type(n).__name__ for n in walk(tree))
    if args.debug:
        for name, count in sorted(kinds.items()):
            _eprint(f"[DEBUG] {name:>16} : {count}")
    print(f"[CHECK OK] rules={len(tree.definitions)} nodes={sum(kinds.values())}")
    return 0


def cmd_dump(args) -> int:
    from .grammar.ast import format_tree

    tree = _load_tree(args)
    node = tree.require_rule(args.rule) if args.rule else tree
    print(format_tree(node))
    return 0


def cmd_lex(args) -> int:
    """Print one token per line with its position."""
    from .grammar.loader import load_grammar_text
    from .lex import scan

    src = load_grammar_text(args.file)
    for i, tok in enumerate(scan(src)):
        if tok.kind == "EOF":
            break
        print(f"{i:03d}: {tok.kind:<8} {tok.lexeme!r}  @{tok.line}:{tok.col}")
    return 0


# ------------------------------
# entry point
# ------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    from .grammar.parser import DEFAULT_MAX_DEPTH

    ap = argparse.ArgumentParser(prog="metapegc", description="metapeg grammar front end CLI")
    sub = ap.add_subparsers(dest="cmd", required=True)

    def _parse_opts(p) -> None:
        p.add_argument("file", help="grammar file")
        p.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                       help="maximum nesting of groups and captures")
        p.add_argument("--no-validate", action="store_true",
                       help="do not compile types and action blocks as Python")
        p.add_argument("-D", "--debug", action="store_true", help="report pipeline stages on stderr")

    p_check = sub.add_parser("check", help="parse the grammar and summarize it")
    _parse_opts(p_check)
    p_check.set_defaults(func=cmd_check)

    p_dump = sub.add_parser("dump", help="print the parse tree")
    _parse_opts(p_dump)
    p_dump.add_argument("--rule", help="print only this rule")
    p_dump.set_defaults(func=cmd_dump)

    p_lex = sub.add_parser("lex", help="print the token stream of the grammar file")
    p_lex.add_argument("file", help="grammar file")
    p_lex.set_defaults(func=cmd_lex)

    args = ap.parse_args(argv)
    return int(_report(args.func, args))

if __name__ == "__main__":
    sys.exit(main())
