import pytest

from reed import Rule, char_range, char_set, optional, zero_or_more


@pytest.fixture
def letter():
    return char_range("a", "z") | char_range("A", "Z")


@pytest.fixture
def digit():
    return char_range("0", "9")


@pytest.fixture
def name(letter, digit):
    return (letter | "_") & zero_or_more(letter | digit | "_")


@pytest.fixture
def arithmetic(name):
    """Sums and products of names, with parenthesized groups."""
    expr = Rule("expr")
    sum_ = Rule("sum")
    term = Rule("term")
    prefixed = optional(char_set("+-")) & expr
    expr.define(name | ("(" & sum_ & ")"))
    term.define(prefixed % char_set("*/"))
    sum_.define(term % char_set("+-"))
    return {"expr": expr, "sum": sum_, "term": term}
