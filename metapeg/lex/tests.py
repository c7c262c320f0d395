"""
$  pytest -v metapeg/lex/tests.py
"""

import pytest

from metapeg.errors import LexError, UnexpectedToken
from metapeg.lex import TokenStream, scan


def kinds(src):
    return [t.kind for t in scan(src)]


def test_punctuation_longest_first():
    assert kinds("=> = :: : ... .") == [
        "ARROW", "EQ", "COLON2", "COLON", "ELLIPSIS", "DOT", "EOF",
    ]

def test_operators_and_brackets():
    assert kinds("& ! ? * + | ( ) < > [ ] ,") == [
        "AMP", "BANG", "QMARK", "STAR", "PLUS", "OR", "LPAREN", "RPAREN",
        "LT", "GT", "LBRACK", "RBRACK", "COMMA", "EOF",
    ]

def test_no_space_needed_between_tokens():
    assert kinds("a=b=>{x}") == ["IDENT", "EQ", "IDENT", "ARROW", "LBRACE", "CODE", "RBRACE", "EOF"]

def test_unicode_identifiers():
    toks = scan("règle _x1 名前")
    assert [t.lexeme for t in toks[:-1]] == ["règle", "_x1", "名前"]
    assert all(t.kind == "IDENT" for t in toks[:-1])

def test_strings_are_decoded():
    toks = scan(r'''"a\"b" 'c\n' r"\d+"''')
    assert [t.value for t in toks[:-1]] == ['a"b', "c\n", "\\d+"]
    assert toks[0].lexeme == r'"a\"b"'

def test_comments_and_positions():
    toks = scan("a // one\n/* two\n lines */ b")
    assert [t.lexeme for t in toks] == ["a", "b", ""]
    b = toks[1]
    assert (b.line, b.col) == (3, 11)
    assert toks[-1].kind == "EOF"

def test_code_block_is_one_raw_token():
    src = 'x => { {"k": "}"} # }\n }'
    toks = scan(src)
    assert [t.kind for t in toks] == ["IDENT", "ARROW", "LBRACE", "CODE", "RBRACE", "EOF"]
    assert toks[3].lexeme == ' {"k": "}"} # }\n '
    assert (toks[4].line, toks[4].col) == (2, 2)

def test_code_block_triple_quoted_string():
    toks = scan('{ """ } \n""" }')
    assert toks[1].lexeme == ' """ } \n""" '

def test_empty_code_block():
    toks = scan("{}")
    assert toks[1].kind == "CODE"
    assert toks[1].lexeme == ""

@pytest.mark.parametrize("src, message", [
    ("a = @", "unexpected character"),
    ('a = "open', "unterminated string literal"),
    ("/* open", "unclosed block comment"),
    ("{ x", "unterminated code block"),
    ("{ 'x }", "unterminated string in code block"),
    ("}", "unexpected character"),
    (r'"\x"', "invalid string literal"),
])
def test_lex_errors(src, message):
    with pytest.raises(LexError) as exc:
        scan(src)
    assert message in str(exc.value)

def test_lex_error_position():
    with pytest.raises(LexError) as exc:
        scan("a =\n  b $")
    assert (exc.value.line, exc.value.col) == (2, 5)
    assert str(exc.value).endswith("  b $\n    ^")


#####
#####  TokenStream
#####

def test_stream_requires_eof():
    with pytest.raises(ValueError):
        TokenStream(scan("a")[:-1])

def test_fork_is_independent():
    ts = TokenStream(scan("a b c"), "a b c")
    f = ts.fork()
    f.eat("IDENT")
    f.eat("IDENT")
    assert f.la().lexeme == "c"
    assert ts.la().lexeme == "a"

def test_bump_stops_at_eof():
    ts = TokenStream(scan("a"))
    ts.bump()
    assert ts.at_eof()
    ts.bump()
    assert ts.at_eof()

def test_expected_collects_peeks_at_one_position():
    ts = TokenStream(scan("a )"), "a )")
    ts.peek("STRING")
    ts.eat("IDENT")
    ts.peek("OR")
    ts.match("ARROW")
    with pytest.raises(UnexpectedToken) as exc:
        ts.eat("GT")
    assert exc.value.expected == ("OR", "ARROW", "GT")
    assert "expected one of '|', '=>', '>'" in str(exc.value)

def test_expected_resets_after_advance():
    ts = TokenStream(scan("a b"))
    ts.peek("STRING")
    ts.bump()
    assert ts.expected() == ()
