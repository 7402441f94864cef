"""Composable matchers for grammars written directly in Python.

Matchers answer one question: how much of ``text`` starting at ``pos`` does
this rule cover? Results come in two modes. ``LENGTH`` returns an int
(``-1`` for a mismatch); ``TREE`` returns ``Match`` nodes for every ``Rule``
that matched. The combinators behave identically in both.

There is no memoization, so heavily nested choices can be slow.
"""

from .core import (
    AtLeast,
    CharRange,
    CharSet,
    Choice,
    Fixed,
    GrammarError,
    Literal,
    Matcher,
    Optional,
    Rule,
    SeparatedBy,
    Sequence,
    at_least,
    char_range,
    char_set,
    choice,
    fixed,
    literal,
    one_or_more,
    optional,
    separated_by,
    sequence,
    zero_or_more,
)
from .grammar import Grammar, ParseError
from .results import LENGTH, MISMATCH, TREE, LengthMode, Match, ResultMode, TreeMode

__all__ = [
    "AtLeast",
    "CharRange",
    "CharSet",
    "Choice",
    "Fixed",
    "Grammar",
    "GrammarError",
    "LENGTH",
    "LengthMode",
    "Literal",
    "MISMATCH",
    "Match",
    "Matcher",
    "Optional",
    "ParseError",
    "ResultMode",
    "Rule",
    "SeparatedBy",
    "Sequence",
    "TREE",
    "TreeMode",
    "at_least",
    "char_range",
    "char_set",
    "choice",
    "fixed",
    "literal",
    "one_or_more",
    "optional",
    "separated_by",
    "sequence",
    "zero_or_more",
]
