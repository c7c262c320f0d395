"""
$  pytest -v metapeg/tests.py
"""

import pytest

from metapeg import metapegc
from metapeg.grammar import load_grammar_text, parse_grammar_file


GRAMMAR = '''\
list: List[int] = "[" <first: item> <rest: ("," item)*> "]" => { [first, *rest] }
item = ::number
'''


@pytest.fixture
def grammar_file(tmp_path):
    p = tmp_path / "list.peg"
    p.write_bytes(GRAMMAR.replace("\n", "\r\n").encode("utf-8"))
    return p


def test_loader_normalizes_newlines(grammar_file):
    assert load_grammar_text(str(grammar_file)) == GRAMMAR

def test_parse_grammar_file(grammar_file):
    tree = parse_grammar_file(str(grammar_file))
    assert tree.names() == ["list", "item"]

def test_cli_check(grammar_file, capsys):
    assert metapegc.main(["check", str(grammar_file)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("[CHECK OK] rules=2 nodes=")

def test_cli_check_debug(grammar_file, capsys):
    assert metapegc.main(["check", "-D", str(grammar_file)]) == 0
    err = capsys.readouterr().err
    assert "[DEBUG] parse tree ready | rules=2" in err

def test_cli_dump_rule(grammar_file, capsys):
    assert metapegc.main(["dump", str(grammar_file), "--rule", "item"]) == 0
    assert capsys.readouterr().out == "ParserDefinition item\n  Sequence\n    Call number\n"

def test_cli_lex(grammar_file, capsys):
    assert metapegc.main(["lex", str(grammar_file)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "000: IDENT    'list'  @1:1"
    assert lines[-1].split()[1:3] == ["IDENT", "'number'"]

def test_cli_syntax_error(tmp_path, capsys):
    p = tmp_path / "bad.peg"
    p.write_text("a = <b\n", encoding="utf-8")
    assert metapegc.main(["check", str(p)]) == 2
    err = capsys.readouterr().err
    assert err.startswith("[SYNTAX ERROR]\n")
    assert "capture opened at 1:5 is not closed" in err

def test_cli_no_validate(tmp_path, capsys):
    p = tmp_path / "raw.peg"
    p.write_text("a = b => { not python ( }\n", encoding="utf-8")
    assert metapegc.main(["check", str(p)]) == 2
    capsys.readouterr()
    assert metapegc.main(["check", "--no-validate", str(p)]) == 0

def test_cli_max_depth(tmp_path, capsys):
    p = tmp_path / "deep.peg"
    p.write_text("a = ((((b))))\n", encoding="utf-8")
    assert metapegc.main(["check", "--max-depth", "3", str(p)]) == 2
    assert "nesting exceeds the limit of 3" in capsys.readouterr().err

def test_cli_unknown_rule(grammar_file, capsys):
    assert metapegc.main(["dump", str(grammar_file), "--rule", "nope"]) == 2
    assert "[ERROR] KeyError" in capsys.readouterr().err
