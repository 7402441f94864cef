import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional as Opt, Union

from .results import LENGTH, TREE, Match, Result, ResultMode, length_of


log = logging.getLogger("reed")


class GrammarError(ValueError):
    pass


# ---------------- matcher base ----------------
class Matcher(ABC):
    """Something that can be applied to ``text`` at ``pos``.

    Matchers never raise on bad input: a mismatch is a result value. They hold
    no state between calls, so applying one twice gives the same answer.

    Operators build combinators::

        a & b      sequence
        a | b      longest-match choice
        -a         optional
        +a         one or more
        n + a      at least n
        a % sep    a, separated by sep

    A plain ``str`` on either side of ``&`` or ``|`` is read as a literal.
    Chains of ``&`` or ``|`` build one flat ``Sequence`` or ``Choice``.
    """

    # True when a Rule can be reached through this matcher. Rule-free
    # matchers are always run in LENGTH mode.
    structural = False

    def apply(self, text: str, pos: int = 0, mode: ResultMode = LENGTH) -> Result:
        return self._apply(text, pos, mode if self.structural else LENGTH)

    __call__ = apply

    def match(self, text: str, pos: int = 0) -> Match:
        """Apply in TREE mode and always hand back a ``Match``."""
        result = self.apply(text, pos, TREE)
        if isinstance(result, Match):
            return result
        if result < 0:
            return TREE.mismatch()
        return Match(start=pos, length=result, literal=text[pos : pos + result])

    @abstractmethod
    def _apply(self, text: str, pos: int, mode: ResultMode) -> Result:
        """Match at ``pos``; ``mode`` is already LENGTH for rule-free matchers.

        Combinators call their children's ``_apply`` directly, picking the
        child's mode themselves, so each level of a grammar costs one frame.
        """

    # ---- operator sugar ----
    def __and__(self, other):
        return _join(Sequence, [self, _coerce(other)])

    def __rand__(self, other):
        return _join(Sequence, [_coerce(other), self])

    def __or__(self, other):
        return _join(Choice, [self, _coerce(other)])

    def __ror__(self, other):
        return _join(Choice, [_coerce(other), self])

    def __mod__(self, sep):
        return SeparatedBy(self, _coerce(sep))

    def __radd__(self, minimum):
        if not isinstance(minimum, int) or isinstance(minimum, bool):
            return NotImplemented
        return AtLeast(minimum, self)

    def __pos__(self):
        return AtLeast(1, self)

    def __neg__(self):
        return Optional(self)


def _coerce(value) -> Matcher:
    if isinstance(value, Matcher):
        return value
    if isinstance(value, str):
        return Literal(value)
    raise GrammarError(f"Cannot use {value!r} as a matcher")


def _join(cls, matchers: List[Matcher]) -> Matcher:
    # a & (b & c) and (a & b) & c both become one three-item Sequence
    items: List[Matcher] = []
    for m in matchers:
        if type(m) is cls:
            items.extend(m.items)
        else:
            items.append(m)
    if len(items) == 1:
        return items[0]
    return cls(*items)


def _single_char(value, what: str) -> str:
    if not isinstance(value, str) or len(value) != 1:
        raise GrammarError(f"{what} must be a single character, got {value!r}")
    return value


# ---------------- primitive matchers ----------------
class CharRange(Matcher):
    __slots__ = ("low", "high")

    def __init__(self, low: str, high: str):
        self.low = _single_char(low, "low")
        self.high = _single_char(high, "high")
        if self.low > self.high:
            raise GrammarError(f"Empty character range {low!r}..{high!r}")

    def _apply(self, text, pos, mode):
        if pos < len(text) and self.low <= text[pos] <= self.high:
            return mode.terminal(text, pos, 1)
        return mode.mismatch()

    def __repr__(self):
        return f"char_range({self.low!r}, {self.high!r})"


class CharSet(Matcher):
    __slots__ = ("chars",)

    def __init__(self, *chars: str):
        members = set()
        for item in chars:
            if not isinstance(item, str):
                raise GrammarError(f"char_set() takes strings, got {item!r}")
            members.update(item)
        if not members:
            raise GrammarError("char_set() needs at least one character")
        self.chars = frozenset(members)

    def _apply(self, text, pos, mode):
        if pos < len(text) and text[pos] in self.chars:
            return mode.terminal(text, pos, 1)
        return mode.mismatch()

    def __repr__(self):
        return f"char_set({''.join(sorted(self.chars))!r})"


class Fixed(Matcher):
    """A short run of characters compared one position at a time."""

    __slots__ = ("chars",)

    def __init__(self, *chars: str):
        if not chars:
            raise GrammarError("fixed() needs at least one character")
        self.chars = tuple(_single_char(c, "fixed() argument") for c in chars)

    def _apply(self, text, pos, mode):
        n = len(self.chars)
        if len(text) - pos < n:
            return mode.mismatch()
        for i, c in enumerate(self.chars):
            if text[pos + i] != c:
                return mode.mismatch()
        return mode.terminal(text, pos, n)

    def __repr__(self):
        return f"fixed({', '.join(repr(c) for c in self.chars)})"


class Literal(Matcher):
    __slots__ = ("text",)

    def __init__(self, text: str):
        if not isinstance(text, str):
            raise GrammarError(f"literal() takes a string, got {text!r}")
        self.text = text

    def _apply(self, text, pos, mode):
        if pos <= len(text) and text.startswith(self.text, pos):
            return mode.terminal(text, pos, len(self.text))
        return mode.mismatch()

    def __repr__(self):
        return f"literal({self.text!r})"


# ---------------- structural combinators ----------------
class Sequence(Matcher):
    """Each item in turn on what the previous ones left. No backtracking."""

    def __init__(self, *items: Matcher):
        if not items:
            raise GrammarError("Sequence needs at least one item")
        self.items = tuple(items)
        self.structural = any(m.structural for m in self.items)

    def _apply(self, text, pos, mode):
        result = mode.zero(pos)
        cur = pos
        for m in self.items:
            step = m._apply(text, cur, mode if m.structural else LENGTH)
            if mode.is_mismatch(step):
                return mode.mismatch()
            result = mode.concat(result, step)
            cur += length_of(step)
        return result

    def __repr__(self):
        return f"({' & '.join(repr(m) for m in self.items)})"


class Choice(Matcher):
    """Longest of the alternatives; the earliest wins a tie.

    Every alternative always runs on the same input. Nested choices therefore
    re-evaluate shared sub-expressions, and there is no cache to stop that.
    """

    def __init__(self, *items: Matcher):
        if not items:
            raise GrammarError("Choice needs at least one alternative")
        self.items = tuple(items)
        self.structural = any(m.structural for m in self.items)

    def _apply(self, text, pos, mode):
        result = mode.mismatch()
        for m in self.items:
            step = m._apply(text, pos, mode if m.structural else LENGTH)
            result = mode.best(result, step)
        return result

    def __repr__(self):
        return f"({' | '.join(repr(m) for m in self.items)})"


class Optional(Matcher):
    def __init__(self, expr: Matcher):
        self.expr = expr
        self.structural = expr.structural

    def _apply(self, text, pos, mode):
        result = self.expr._apply(text, pos, mode)
        if mode.is_mismatch(result):
            return mode.empty(pos)
        return result

    def __repr__(self):
        return f"optional({self.expr!r})"


class AtLeast(Matcher):
    """``expr`` repeated ``minimum`` or more times, greedily."""

    def __init__(self, minimum: int, expr: Matcher):
        if minimum < 0:
            raise GrammarError(f"Repetition minimum must be >= 0, got {minimum}")
        self.minimum = minimum
        self.expr = expr
        self.structural = expr.structural

    def _apply(self, text, pos, mode):
        result = mode.zero(pos)
        count = 0
        cur = pos
        while True:
            step = self.expr._apply(text, cur, mode)
            if mode.is_mismatch(step):
                return result if count >= self.minimum else mode.mismatch()
            result = mode.concat(result, step)
            count += 1
            if mode.is_empty(step):
                # a nullable expr would match empty forever here
                return result
            cur += length_of(step)

    def __repr__(self):
        return f"at_least({self.minimum}, {self.expr!r})"


class SeparatedBy(Matcher):
    """One or more ``item`` with ``sep`` between them.

    A trailing separator with no item after it is left unconsumed.
    """

    def __init__(self, item: Matcher, sep: Matcher):
        self.item = item
        self.sep = sep
        self.structural = item.structural or sep.structural

    def _apply(self, text, pos, mode):
        item_mode = mode if self.item.structural else LENGTH
        sep_mode = mode if self.sep.structural else LENGTH
        first = self.item._apply(text, pos, item_mode)
        if mode.is_mismatch(first):
            return mode.mismatch()
        result = mode.concat(mode.zero(pos), first)
        cur = pos + length_of(first)
        while True:
            sep = self.sep._apply(text, cur, sep_mode)
            if mode.is_mismatch(sep):
                return result
            item = self.item._apply(text, cur + length_of(sep), item_mode)
            if mode.is_mismatch(item):
                return result
            result = mode.concat(mode.concat(result, sep), item)
            if mode.is_empty(sep) and mode.is_empty(item):
                return result
            cur += length_of(sep) + length_of(item)

    def __repr__(self):
        return f"({self.item!r} % {self.sep!r})"


# ---------------- rules ----------------
class Rule(Matcher):
    """A named slot that can be used before it is given an expression.

    Every combinator that captured the rule sees later ``define`` calls, which
    is how recursive and mutually recursive grammars are written::

        expr = Rule("expr")
        atom = name | ("(" & expr & ")")
        expr.define(atom % "+")

    Applying a rule with no expression is a mismatch. All ``define`` calls
    must happen before matching starts; once built, a grammar may be shared
    by threads for matching, but redefining a rule while a match is running
    is not supported.
    """

    structural = True

    def __init__(self, name: Opt[str] = None, expr=None):
        self.name = name
        self.expr: Opt[Matcher] = None
        if expr is not None:
            self.define(expr)

    @property
    def bound(self) -> bool:
        return self.expr is not None

    def define(self, expr) -> "Rule":
        expr = _coerce(expr)
        if self.expr is not None:
            log.debug("redefining rule %s", self._label())
        else:
            log.debug("defining rule %s", self._label())
        self.expr = expr
        return self

    def _apply(self, text, pos, mode):
        expr = self.expr
        if expr is None:
            log.debug("unbound rule %s applied at %d", self._label(), pos)
            return mode.mismatch()
        result = expr._apply(text, pos, mode if expr.structural else LENGTH)
        return mode.named(self, text, pos, result)

    def _label(self) -> str:
        return repr(self.name) if self.name else f"<anonymous at {id(self):#x}>"

    def __repr__(self):
        # never print the expression: it may contain this rule
        return f"Rule({self._label()})"


# ---------------- constructors ----------------
def char_range(low: str, high: str) -> Matcher:
    return CharRange(low, high)


def char_set(*chars: str) -> Matcher:
    return CharSet(*chars)


def fixed(*chars: str) -> Matcher:
    return Fixed(*chars)


def literal(text: str) -> Matcher:
    return Literal(text)


def _operands(items: Iterable[Union[Matcher, str]], what: str) -> List[Matcher]:
    matchers = [_coerce(i) for i in items]
    if not matchers:
        raise GrammarError(f"{what}() needs at least one operand")
    return matchers


def sequence(*items: Union[Matcher, str]) -> Matcher:
    return _join(Sequence, _operands(items, "sequence"))


def choice(*items: Union[Matcher, str]) -> Matcher:
    return _join(Choice, _operands(items, "choice"))


def optional(expr: Union[Matcher, str]) -> Matcher:
    return Optional(_coerce(expr))


def at_least(minimum: int, expr: Union[Matcher, str]) -> Matcher:
    return AtLeast(minimum, _coerce(expr))


def zero_or_more(expr: Union[Matcher, str]) -> Matcher:
    return AtLeast(0, _coerce(expr))


def one_or_more(expr: Union[Matcher, str]) -> Matcher:
    return AtLeast(1, _coerce(expr))


def separated_by(item: Union[Matcher, str], sep: Union[Matcher, str]) -> Matcher:
    return SeparatedBy(_coerce(item), _coerce(sep))
