import pytest

from reed import (
    LENGTH,
    MISMATCH,
    TREE,
    GrammarError,
    Matcher,
    Rule,
    at_least,
    char_range,
    char_set,
    choice,
    literal,
    one_or_more,
    optional,
    separated_by,
    sequence,
    zero_or_more,
)


class Counting(Matcher):
    """Wraps a matcher and counts how often it is applied."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = 0

    def _apply(self, text, pos, mode):
        self.calls += 1
        return self.inner.apply(text, pos, mode)


def test_identifier(name):
    assert name("_foo") == 4
    assert name("foo_1 bar") == 5
    assert name("0f") == MISMATCH


def test_type_with_optional_qualifier(name):
    type_ = optional("const" & one_or_more(" ")) & name
    assert type_("const baf") == 9
    assert type_("baf") == 3


def test_misspelled_qualifier_is_not_salvaged(name):
    type_ = optional("const" & one_or_more(" ")) & name
    # only "cnost" is taken, as a plain name
    assert type_("cnost foo") == 5
    assert optional("const" & one_or_more(" "))("cnost foo") == 0


def test_sequence_is_additive(letter, digit):
    seq = letter & digit
    text = "a1b"
    assert seq(text) == letter(text) + digit(text, letter(text))
    assert seq("ab") == MISMATCH
    assert seq("1a") == MISMATCH


def test_sequence_does_not_backtrack():
    assert sequence(zero_or_more("a"), "a")("aaa") == MISMATCH


def test_sequence_and_choice_take_many_operands():
    assert sequence("a", "b", "c")("abcd") == 3
    assert choice("a", "ab", "abc")("abcd") == 3
    assert choice("x", "y", "z")("abc") == MISMATCH


@pytest.mark.parametrize("build", [sequence, choice])
def test_variadic_constructors_reject_bad_operands(build):
    with pytest.raises(GrammarError):
        build()
    with pytest.raises(GrammarError):
        build(1)


def test_choice_takes_longest():
    assert (literal("a") | literal("ab"))("abc") == 2
    assert (literal("ab") | literal("a"))("abc") == 2
    assert (literal("x") | literal("a"))("abc") == 1


def test_choice_tie_goes_to_first_alternative():
    first = Rule("first", "ab")
    second = Rule("second", "ab")
    assert (first | second).match("ab").name == "first"
    assert (second | first).match("ab").name == "second"


def test_choice_evaluates_both_sides():
    a = Counting(literal("abc"))
    b = Counting(literal("a"))
    assert (a | b)("abc") == 3
    assert a.calls == 1
    assert b.calls == 1


def test_optional_never_mismatches():
    opt = optional("x")
    assert opt("x") == 1
    assert opt("y") == 0
    assert opt("") == 0
    assert (-literal("x"))("y") == 0


def test_at_least():
    twice = at_least(2, "a")
    assert twice("aaab") == 3
    assert twice("aab") == 2
    assert twice("ab") == MISMATCH
    assert (2 + literal("a"))("aaab") == 3


def test_zero_and_one_or_more(letter):
    assert zero_or_more(letter)("123") == 0
    assert zero_or_more(letter)("ab1") == 2
    assert one_or_more(letter)("123") == MISMATCH
    assert one_or_more(letter)("abc1") == 3
    assert (+letter)("abc1") == 3


def test_repetition_stops_on_empty_match():
    assert zero_or_more(optional("a"))("bbb") == 0
    assert zero_or_more(literal(""))("abc") == 0
    assert zero_or_more(optional("a"))("aab") == 2


def test_empty_iteration_satisfies_remaining_minimum():
    assert at_least(3, optional("a"))("a") == 1


def test_at_least_rejects_negative_minimum():
    with pytest.raises(GrammarError):
        at_least(-1, "a")


def test_separated_list_leaves_dangling_separator(letter):
    items = letter % ","
    assert items("a,b,") == 3
    assert items("a,b,c") == 5
    assert items("a") == 1
    assert items(",a") == MISMATCH
    assert separated_by(letter, ",")("a,,b") == 1


def test_separated_list_stops_on_empty_pairs():
    assert separated_by(optional("x"), optional(","))("yyy") == 0
    assert separated_by(optional("x"), optional(","))("x,x") == 3


def test_string_operands_are_literals(name):
    group = "(" & name & ")"
    assert group("(abc)") == 5
    assert (name | "_")("_") == 1


def test_unsupported_operands():
    with pytest.raises(GrammarError):
        literal("a") & 3
    with pytest.raises(TypeError):
        "a" + literal("b")


def test_sign_set(digit):
    number = optional(char_set("+-")) & one_or_more(digit)
    assert number("-42") == 3
    assert number("42") == 2
    assert number("+") == MISMATCH


@pytest.mark.parametrize("text", ["_foo", "a1 b2", "", "0f", "a,b,"])
def test_matchers_are_pure(text, name, letter):
    for matcher in [name, letter % ",", optional(name), zero_or_more(letter | " ")]:
        assert matcher(text) == matcher(text)


def test_rule_free_combinators_run_in_length_mode(name):
    assert name.apply("_foo", 0, TREE) == 4
    assert name.apply("_foo", 0, LENGTH) == 4
    node = name.match("_foo")
    assert node.literal == "_foo"
    assert node.rule is None


def test_repr():
    expr = literal("a") & -char_range("0", "9")
    assert repr(expr) == "(literal('a') & optional(char_range('0', '9')))"


def test_wide_choice_is_flat():
    keywords = choice(*["kw%d" % i for i in range(1000)])
    assert len(keywords.items) == 1000
    assert keywords("kw1") == 3
    assert keywords("kw999;") == 5
    assert keywords("kx") == MISMATCH


def test_long_sequence_is_flat():
    run = sequence(*["a"] * 1000)
    assert run("a" * 1000) == 1000
    assert run("a" * 999) == MISMATCH


def test_chained_operators_extend_one_node():
    chain = literal("a")
    for _ in range(999):
        chain = chain & "a"
    assert len(chain.items) == 1000
    assert chain("a" * 1000) == 1000

    alts = literal("x") | "y" | "z"
    assert len(alts.items) == 3
    assert (alts | ("a" | literal("b"))).items[-1].text == "b"


def test_wide_choice_keeps_first_on_tie():
    rules = [Rule("r%d" % i, "ab") for i in range(50)]
    assert choice(*rules).match("ab").name == "r0"
