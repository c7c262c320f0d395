"""
$  pytest -v metapeg/grammar/tests.py
"""

import pytest

from metapeg.errors import (
    EmptySequence, FragmentError, GrammarError, MissingHeaderPart,
    NestingTooDeep, UnexpectedToken, UnterminatedCapture,
)
from metapeg.grammar import (
    Call, Capture, Choice, DefinitionList, Empty, Fragment, Many0, Many1,
    NonTerminal, Not, Optional, ParserDefinition, Peek, PythonFragments,
    Sequence, Terminal, children, format_tree, looks_like_definition,
    make_stream, parse_element, parse_expression, parse_grammar,
    parse_postfix, parse_prefix, parse_sequence, parse_tokens, walk,
    Prefix, Postfix,
)
from metapeg.lex import scan


def body(src, rule=0):
    return parse_grammar(src).definitions[rule].body

def seq(*items, action=None):
    return Sequence(tuple(items), action)

def nt(name):
    return NonTerminal(name)


#####
#####  prefix / postfix
#####

@pytest.mark.parametrize("src, expected", [
    ("&", Prefix.PEEK),
    ("!", Prefix.NOT),
    ("x", None),
    ("?", None),
])
def test_prefix_classifier(src, expected):
    ts = make_stream(src)
    assert parse_prefix(ts) == expected
    assert ts.i == (1 if expected else 0)

@pytest.mark.parametrize("src, expected", [
    ("?", Postfix.OPTIONAL),
    ("*", Postfix.MANY0),
    ("+", Postfix.MANY1),
    ("&", None),
    ("", None),
])
def test_postfix_classifier(src, expected):
    ts = make_stream(src)
    assert parse_postfix(ts) == expected
    assert ts.i == (1 if expected else 0)


#####
#####  elements
#####

def test_single_terminal_rule():
    tree = parse_grammar('name = "lit"')
    assert isinstance(tree, DefinitionList)
    assert len(tree.definitions) == 1
    d = tree.definitions[0]
    assert d == ParserDefinition("name", None, seq(Terminal("lit")))
    assert d.body.action is None

def test_terminal_is_decoded():
    assert body(r'a = "tab\there" ' + "'q'") == seq(Terminal("tab\there"), Terminal("q"))

def test_prefix_wraps_postfix():
    assert body("r = !a*") == seq(Not(Many0(nt("a"))))
    assert body("r = &a?") == seq(Peek(Optional(nt("a"))))
    assert body("r = a+") == seq(Many1(nt("a")))

def test_capture_with_postfix_outside():
    assert body("r = <x: a>*") == seq(Many0(Capture(nt("a"), "x")))

def test_capture_anonymous_with_prefix_and_postfix():
    assert body("r = &<x>*") == seq(Peek(Many0(Capture(nt("x"), None))))

def test_capture_inner_operators_resolve_before_close():
    assert body("r = <v: !a+>") == seq(Capture(Not(Many1(nt("a"))), "v"))

def test_capture_of_group():
    assert body('r = <g: (a | "b")>') == seq(
        Capture(Choice((seq(nt("a")), seq(Terminal("b")))), "g"))

def test_external_call():
    assert body("r = ::digit+ a") == seq(Many1(Call("digit")), nt("a"))

def test_parse_element_stops_without_consuming():
    ts = make_stream("| a")
    assert parse_element(ts) is None
    assert ts.i == 0

def test_parse_element_at_definition_start():
    ts = make_stream('b = "x"')
    assert parse_element(ts) is None
    assert ts.i == 0


#####
#####  sequences / alternation / grouping
#####

def test_single_sequence_is_not_wrapped_in_choice():
    b = body("r = a b")
    assert b == seq(nt("a"), nt("b"))
    assert not any(isinstance(n, Choice) for n in walk(b))

def test_choice_keeps_source_order():
    assert body('r = a | "b" | ::c') == Choice((
        seq(nt("a")), seq(Terminal("b")), seq(Call("c")),
    ))

def test_group_is_transparent():
    assert body("r = x (a | b) y") == seq(
        nt("x"), Choice((seq(nt("a")), seq(nt("b")))), nt("y"))

def test_single_element_group_keeps_sequence():
    assert body("r = (a)*") == seq(Many0(seq(nt("a"))))

def test_action_fragment():
    b = body("r = a b => { (a, b) }")
    assert b.items == (nt("a"), nt("b"))
    assert isinstance(b.action, Fragment)
    assert b.action.kind == "block"
    assert b.action.text == " (a, b) "

def test_action_per_alternative():
    b = body("r = a => { 1 } | b => { 2 }")
    assert isinstance(b, Choice)
    assert [s.action.text for s in b.alts] == [" 1 ", " 2 "]

def test_multiline_statement_action():
    src = (
        "r = a => {\n"
        "    x = a\n"
        "    if x:\n"
        "        y = x\n"
        "}\n"
    )
    action = body(src).action
    assert "if x:" in action.text
    assert action.tree is not None

def test_suite_header_on_brace_line():
    action = body("a = b => { if b:\n        y = b\n }").action
    assert action.tree is not None
    assert action.text == " if b:\n        y = b\n "

def test_statements_aligned_under_inline_first_line():
    action = body("a = b => { x = b\n           y = x }").action
    assert action.tree is not None

def test_parse_expression_directly():
    ts = make_stream("a | b )")
    assert parse_expression(ts) == Choice((seq(nt("a")), seq(nt("b"))))
    assert ts.la().kind == "RPAREN"

def test_parse_sequence_directly():
    ts = make_stream("a b | c")
    assert parse_sequence(ts) == seq(nt("a"), nt("b"))
    assert ts.la().kind == "OR"


#####
#####  rule boundaries
#####

def test_two_element_body_before_next_rule():
    tree = parse_grammar('a = b c\nb = "x"')
    assert tree.names() == ["a", "b"]
    assert tree.definitions[0].body == seq(nt("b"), nt("c"))
    assert tree.definitions[1].body == seq(Terminal("x"))

def test_reference_not_swallowed_into_next_rule():
    tree = parse_grammar('a = b\nb = "x"')
    assert tree.definitions[0].body == seq(nt("b"))
    assert tree.definitions[1] == ParserDefinition("b", None, seq(Terminal("x")))

def test_typed_header_ends_previous_rule():
    tree = parse_grammar("a = b c\nc: List[int] = d")
    assert tree.names() == ["a", "c"]
    assert tree.definitions[0].body == seq(nt("b"))
    assert tree.definitions[1].type.text == "List[int]"

def test_rules_on_one_line():
    tree = parse_grammar("a = x b = y c = z")
    assert tree.names() == ["a", "b", "c"]

def test_arrow_is_not_a_header():
    tree = parse_grammar("a = b => { b }\nc = d")
    assert tree.definitions[0].body == seq(nt("b"), action=Fragment("block", " b "))

def test_looks_like_definition_does_not_move_cursor():
    ts = make_stream("c: Dict[str, int] = d")
    assert looks_like_definition(ts)
    assert ts.i == 0
    ts = make_stream("c: Dict[str, = d")
    assert not looks_like_definition(ts)
    assert ts.i == 0
    ts = make_stream("c d")
    assert not looks_like_definition(ts)


#####
#####  declared types
#####

@pytest.mark.parametrize("text", [
    "int",
    "Optional[str]",
    "typing.Tuple[int, ...]",
    "int | None",
    "Callable[[int, str], bool]",
    "'Forward'",
])
def test_declared_type(text):
    d = parse_grammar(f"r: {text} = a").definitions[0]
    assert d.type == Fragment("type", text)
    assert d.type.tree is not None

def test_unvalidated_fragments_keep_text_only():
    tree = parse_grammar("r: int = a => { not python ( }", fragments=PythonFragments(validate=False))
    d = tree.definitions[0]
    assert d.type.tree is None
    assert d.body.action.text == " not python ( "


#####
#####  errors
#####

def test_action_without_elements_is_empty_sequence():
    with pytest.raises(EmptySequence):
        parse_grammar("name = => { }")

@pytest.mark.parametrize("src", ["a =", "a = | b", "a = b | ", "a = ()"])
def test_empty_sequences(src):
    with pytest.raises(EmptySequence):
        parse_grammar(src)

def test_unterminated_capture():
    with pytest.raises(UnterminatedCapture) as exc:
        parse_grammar("a = <x: b c>")
    assert exc.value.found.lexeme == "c"
    assert "GT" in exc.value.expected
    assert exc.value.opened.col == 5

def test_unterminated_capture_at_eof():
    with pytest.raises(UnterminatedCapture) as exc:
        parse_grammar("a = <b")
    assert exc.value.at_eof

@pytest.mark.parametrize("src, part", [
    ('"x" = a', "rule name"),
    ("a: = b", "type"),
    ("a b", "'='"),
    ("a", "'='"),
    ("", "rule name"),
])
def test_missing_header_parts(src, part):
    with pytest.raises(MissingHeaderPart) as exc:
        parse_grammar(src)
    assert exc.value.part == part

def test_trailing_junk_reports_expected_set():
    with pytest.raises(MissingHeaderPart) as exc:
        parse_grammar("a = b ?? c")
    err = exc.value
    assert err.found.kind == "QMARK"
    for kind in ("IDENT", "STRING", "LPAREN", "LT", "OR", "ARROW"):
        assert kind in err.expected
    assert "1:8" in str(err)
    assert str(err).endswith("a = b ?? c\n       ^")

def test_unclosed_group():
    with pytest.raises(UnexpectedToken) as exc:
        parse_grammar("a = (b c")
    assert exc.value.at_eof
    assert "RPAREN" in exc.value.expected

def test_prefix_without_element_is_an_error():
    with pytest.raises(UnexpectedToken):
        parse_grammar('a = x !\nb = "y"')

def test_call_needs_a_name():
    with pytest.raises(UnexpectedToken) as exc:
        parse_grammar('a = :: "x"')
    assert exc.value.expected == ("IDENT",)

def test_arrow_needs_a_block():
    with pytest.raises(UnexpectedToken) as exc:
        parse_grammar("a = b => c")
    assert exc.value.expected == ("LBRACE",)

def test_invalid_action_block():
    with pytest.raises(FragmentError) as exc:
        parse_grammar("a = b => { 1 + }")
    assert exc.value.kind == "block"

def test_errors_are_syntax_errors():
    with pytest.raises(SyntaxError):
        parse_grammar("a = <b")
    assert issubclass(GrammarError, SyntaxError)

def test_nesting_limit():
    src = "a = " + "(" * 30 + "b" + ")" * 30
    assert parse_grammar(src, max_depth=30)
    with pytest.raises(NestingTooDeep) as exc:
        parse_grammar(src, max_depth=29)
    assert exc.value.limit == 29

def test_nesting_limit_counts_captures():
    src = "a = " + "<" * 10 + "b" + ">" * 10
    assert parse_grammar(src, max_depth=10)
    with pytest.raises(NestingTooDeep):
        parse_grammar(src, max_depth=9)

def test_default_limit_guards_deep_input():
    src = "a = " + "(" * 500 + "b" + ")" * 500
    with pytest.raises(NestingTooDeep):
        parse_grammar(src)

def deep_type(n):
    return "List[" * n + "int" + "]" * n

def test_nesting_limit_counts_type_brackets():
    assert parse_grammar(f"a: {deep_type(3)} = b", max_depth=3)
    with pytest.raises(NestingTooDeep):
        parse_grammar(f"a: {deep_type(3)} = b", max_depth=2)

def test_deep_declared_type():
    with pytest.raises(NestingTooDeep):
        parse_grammar(f"a: {deep_type(400)} = b")

def test_deep_declared_type_after_a_rule_body():
    with pytest.raises(NestingTooDeep):
        parse_grammar(f"a = x\nc: {deep_type(400)} = b")


#####
#####  whole grammars
#####

CALC = '''
// arithmetic
expr: int = <l: term> "+" <r: expr> => { l + r }
          | term
term: int = <n: ::number>
          | "(" <e: expr> ")" => { e }
ws = (" " | "\\t")*     /* unused */
'''

def test_calc_grammar():
    tree = parse_grammar(CALC)
    assert tree.names() == ["expr", "term", "ws"]
    expr = tree.require_rule("expr")
    assert expr.type.text == "int"
    assert expr.body == Choice((
        seq(Capture(nt("term"), "l"), Terminal("+"), Capture(nt("expr"), "r"),
            action=Fragment("block", " l + r ")),
        seq(nt("term")),
    ))
    term = tree.require_rule("term")
    assert term.body.alts[0] == seq(Capture(Call("number"), "n"))
    ws = tree.require_rule("ws")
    assert ws.body == seq(Many0(Choice((seq(Terminal(" ")), seq(Terminal("\t"))))))

def test_parsing_is_deterministic():
    assert parse_grammar(CALC) == parse_grammar(CALC)
    toks = scan(CALC)
    assert parse_tokens(toks, CALC) == parse_tokens(toks, CALC)

def test_require_rule_unknown():
    with pytest.raises(KeyError):
        parse_grammar(CALC).require_rule("nope")

def test_spans_point_into_source():
    tree = parse_grammar(CALC)
    term = tree.require_rule("term")
    assert (term.span.line, term.span.col) == (5, 1)
    call = term.body.alts[0].items[0].node
    assert CALC[call.span.start:call.span.end] == "::number"


#####
#####  tree utilities
#####

def test_walk_and_children():
    b = body("r = !a <x: b>")
    assert [type(n).__name__ for n in walk(b)] == [
        "Sequence", "Not", "NonTerminal", "Capture", "NonTerminal",
    ]
    assert children(Terminal("x")) == ()
    assert children(Empty()) == ()

def test_format_tree():
    tree = parse_grammar('r: int = !a <x: "b"> => { 1 } | ::c')
    assert format_tree(tree) == "\n".join([
        "DefinitionList",
        "  ParserDefinition r: int",
        "    Choice",
        "      Sequence => { 1 }",
        "        Not",
        "          NonTerminal a",
        "        Capture x",
        "          Terminal 'b'",
        "      Sequence",
        "        Call c",
    ])
