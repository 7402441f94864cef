"""Result algebra shared by every matcher.

A matcher never builds its return value directly. It asks a ``ResultMode``
for the pieces (a zero accumulator, a mismatch, the value a primitive
produces) and combines them with ``concat`` and ``best``. Two modes exist:

* ``LENGTH``: results are plain ints, ``-1`` means mismatch.
* ``TREE``: results are ``Match`` nodes that remember which rule produced
  them, the literal text for leaf rules and the child rule nodes.

Rule-free sub-expressions are always run in ``LENGTH`` mode, so inside a
``TREE`` computation a result can be either an int or a ``Match``. The helpers
below accept both.
"""

import weakref
from abc import ABC, abstractmethod
from typing import List, Optional, Union


MISMATCH = -1


class Match:
    """One node of a parse tree.

    ``length`` is ``MISMATCH`` for a failed match. ``literal`` is set when no
    child rule node took part in the match, either because the owning rule
    wraps a rule-free expression or because its rule operands all came out
    empty or unmatched. Otherwise the children are in ``parts``.
    """

    __slots__ = ("start", "length", "literal", "parts", "_rule")

    def __init__(
        self,
        start: int = 0,
        length: int = 0,
        literal: Optional[str] = None,
        parts: Optional[List["Match"]] = None,
        rule=None,
    ):
        self.start = start
        self.length = length
        self.literal = literal
        self.parts = parts if parts is not None else []
        # non-owning: the tree must not keep a grammar alive
        self._rule = weakref.ref(rule) if rule is not None else None

    @property
    def rule(self):
        """The rule that produced this node, or None if anonymous or collected."""
        if self._rule is None:
            return None
        return self._rule()

    @property
    def name(self) -> Optional[str]:
        rule = self.rule
        return rule.name if rule is not None else None

    @property
    def end(self) -> int:
        return self.start + max(self.length, 0)

    def __bool__(self):
        return self.length >= 0

    def __len__(self):
        return max(self.length, 0)

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return (
            self.start == other.start
            and self.length == other.length
            and self.literal == other.literal
            and self.parts == other.parts
            and self.rule is other.rule
        )

    __hash__ = None

    def __repr__(self):
        if self.length < 0:
            return "Match(<mismatch>)"
        fields = [f"start={self.start}", f"length={self.length}"]
        if self.name is not None:
            fields.insert(0, f"name={self.name!r}")
        if self.literal is not None:
            fields.append(f"literal={self.literal!r}")
        if self.parts:
            fields.append(f"parts={self.parts!r}")
        return f"Match({', '.join(fields)})"

    def find(self, name: str) -> List["Match"]:
        """All descendant nodes (self included) produced by rules called ``name``."""
        found = []
        stack = [self]
        while stack:
            node = stack.pop()
            if node.name == name:
                found.append(node)
            stack.extend(reversed(node.parts))
        return found

    def pretty(self, indent: int = 0) -> str:
        pad = "  " * indent
        label = self.name or "<anon>"
        line = f"{pad}{label} [{self.start}:{self.end}]"
        if self.literal is not None:
            line += f" {self.literal!r}"
        lines = [line]
        for part in self.parts:
            lines.append(part.pretty(indent + 1))
        return "\n".join(lines)


Result = Union[int, Match]


def length_of(result: Result) -> int:
    if isinstance(result, Match):
        return result.length
    return result


# ---------------- result modes ----------------
class ResultMode(ABC):
    """The operations every combinator is written against."""

    name = "abstract"

    @abstractmethod
    def zero(self, pos: int) -> Result:
        """Start accumulator for a concatenation loop beginning at ``pos``."""

    @abstractmethod
    def mismatch(self) -> Result:
        pass

    @abstractmethod
    def terminal(self, text: str, pos: int, length: int) -> Result:
        """What a primitive matcher returns after measuring ``length``."""

    @abstractmethod
    def concat(self, left: Result, right: Result) -> Result:
        pass

    @abstractmethod
    def named(self, rule, text: str, pos: int, result: Result) -> Result:
        """Wrap what a bound rule's expression returned."""

    def empty(self, pos: int) -> Result:
        return self.zero(pos)

    def is_mismatch(self, result: Result) -> bool:
        return length_of(result) < 0

    def is_empty(self, result: Result) -> bool:
        return length_of(result) == 0

    def best(self, first: Result, second: Result) -> Result:
        # ties go to the first operand
        if length_of(second) > length_of(first):
            return second
        return first

    def __repr__(self):
        return f"<{self.name} mode>"


class LengthMode(ResultMode):
    name = "length"

    def zero(self, pos):
        return 0

    def mismatch(self):
        return MISMATCH

    def terminal(self, text, pos, length):
        return length

    def concat(self, left, right):
        return length_of(left) + length_of(right)

    def named(self, rule, text, pos, result):
        return length_of(result)


class TreeMode(ResultMode):
    name = "tree"

    def zero(self, pos):
        return Match(start=pos)

    def mismatch(self):
        return Match(length=MISMATCH)

    def terminal(self, text, pos, length):
        # leaves stay plain lengths until a rule names them
        return length

    def concat(self, left, right):
        if not isinstance(left, Match):
            left = Match(length=left)
        combined = Match(
            start=left.start,
            length=left.length + length_of(right),
            literal=left.literal,
            parts=list(left.parts),
            rule=left.rule,
        )
        if isinstance(right, Match) and right.length > 0:
            if right.rule is None:
                combined.parts.extend(right.parts)
            else:
                combined.parts.append(right)
        return combined

    def named(self, rule, text, pos, result):
        if self.is_mismatch(result):
            return self.mismatch()
        length = length_of(result)
        node = Match(start=pos, length=length, rule=rule)
        if not isinstance(result, Match):
            node.literal = text[pos : pos + length]
        elif result.rule is None:
            if result.parts:
                node.parts = list(result.parts)
            else:
                # only unnamed pieces matched
                node.literal = text[pos : pos + length]
        elif length > 0:
            node.parts = [result]
        return node


LENGTH = LengthMode()
TREE = TreeMode()
