import warnings
from typing import Dict, Iterator, List, Optional

from .core import GrammarError, Rule, _coerce, log
from .results import TREE, Result, ResultMode, length_of


class ParseError(Exception):
    """The start rule did not cover the whole input; ``pos`` is where it stopped."""

    def __init__(self, message: str, pos: int):
        super().__init__(f"{message} at offset {pos}")
        self.pos = pos


# ---------------- Grammar: a table of named rules ----------------
class Grammar:
    """Rules looked up by name, created on first mention.

    Attribute access returns the named rule (unbound until defined) and
    attribute assignment defines it, so a grammar reads top-down even when
    rules refer to each other::

        g = Grammar()
        g.top = g.expr
        g.expr = g.term % char_set("+-")
        g.term = g.atom % char_set("*/")
        g.atom = one_or_more(char_range("0", "9")) | ("(" & g.expr & ")")

    Names that collide with methods (``parse``, ``define`` ...) are reached
    through ``g["parse"]`` and ``g.define("parse", ...)`` instead.

    Any attribute read creates a rule, including ``hasattr(g, "x")`` and
    ``getattr(g, "x", None)``; a rule created that way and never defined is
    listed by ``undefined()`` and makes ``parse`` warn. Use ``"x" in g`` to
    test for a rule without creating it.
    """

    def __init__(self, skip_whitespace: bool = False, start: str = "top"):
        self._skip_whitespace = skip_whitespace
        self._start = start
        self._rules: Dict[str, Rule] = {}

    @property
    def skip_whitespace(self) -> bool:
        return self._skip_whitespace

    @property
    def start(self) -> str:
        return self._start

    # ---- rule table ----
    def rule(self, name: str) -> Rule:
        if name not in self._rules:
            self._rules[name] = Rule(name)
        return self._rules[name]

    def define(self, name: str, expr) -> Rule:
        return self.rule(name).define(_coerce(expr))

    def undefined(self) -> List[str]:
        return [name for name, r in self._rules.items() if not r.bound]

    def __getitem__(self, name: str) -> Rule:
        return self.rule(name)

    def __setitem__(self, name: str, expr):
        self.define(name, expr)

    def __getattr__(self, name: str) -> Rule:
        # only called when normal lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        return self.rule(name)

    def __setattr__(self, name: str, value):
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        if hasattr(type(self), name):
            raise GrammarError(
                f"'{name}' is reserved on Grammar; use grammar.define({name!r}, ...)"
            )
        self.define(name, value)

    def __contains__(self, name: str) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self):
        return f"Grammar(rules={list(self._rules)!r}, start={self._start!r})"

    def _skip_ws(self, text: str, pos: int) -> int:
        if self._skip_whitespace:
            while pos < len(text) and text[pos].isspace():
                pos += 1
        return pos

    # public parse entrypoint: the whole input must match
    def parse(
        self, text: str, start: Optional[str] = None, mode: ResultMode = TREE
    ) -> Result:
        if start is None:
            start = self._start
        if start not in self._rules:
            raise RuntimeError(f"Grammar has no start rule '{start}'")

        missing = self.undefined()
        if missing:
            warnings.warn(
                f"Grammar rules referenced but never defined: {', '.join(missing)}"
                " (they never match)",
                UserWarning,
                stacklevel=2,
            )

        log.debug("parsing %d chars from rule '%s' in %r", len(text), start, mode)
        start_pos = self._skip_ws(text, 0)
        result = self._rules[start].apply(text, start_pos, mode)
        if mode.is_mismatch(result):
            raise ParseError(f"Rule '{start}' does not match", start_pos)

        pos = self._skip_ws(text, start_pos + length_of(result))
        if pos != len(text):
            raise ParseError("Unconsumed input", pos)
        log.debug("parsed %d chars from rule '%s'", pos, start)
        return result
