"""
In-memory S-expression values.

A tree value is one of three immutable variants:

    Atom("F.Cu")                      leaf text, quoted or bare in the source
    SList((Atom("layer"), Atom("F.Cu")))   ordered children
    EMPTY                             result of parsing an empty document

Atoms always hold text. Numeric and boolean meaning is derived on demand
by the accessors, so "2.0" and "0402" keep their exact spelling when
written back out.

Example::

    pad = parse_string("(pad 1 smd rect (at 0.5 0) (layer F.Cu))")
    pad.list_name()                  # "pad"
    pad.find("layer").named_value_string("layer")  # "F.Cu"
    pad.find("at").slice_after_tag_with_arity("at", 2)[0].as_float()  # 0.5
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union

from kicad_sexp.exceptions import (
    ArityMismatchError,
    BoolConversionError,
    EmptyListError,
    FloatConversionError,
    IntConversionError,
    NotAListError,
    NotANamedValueError,
    NotAStringError,
    TagMismatchError,
)

INT_RE = re.compile(r"[+-]?[0-9]+")
# Integers are 64-bit signed, as KiCad writes them
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1
FLOAT_RE = re.compile(
    r"""
    [+-]?(?:
        (?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?
      | inf(?:inity)?
      | nan
    )
    """,
    re.VERBOSE | re.IGNORECASE,
)

TRUE_WORDS = frozenset({"yes", "true"})
FALSE_WORDS = frozenset({"no", "false"})


class SExp:
    """
    Base class of the three tree value variants.

    Accessors never mutate; each either returns a projection of the value
    or raises a specific SexpError subclass.
    """

    __slots__ = ()

    @property
    def is_atom(self) -> bool:
        return False

    @property
    def is_list(self) -> bool:
        return False

    @property
    def is_empty(self) -> bool:
        return False

    # Scalar projections

    def as_list(self) -> tuple[SExp, ...]:
        """Children of a list value."""
        raise NotAListError(f"Not a list: {self!r}")

    def as_string(self) -> str:
        """Text of an atom value."""
        raise NotAStringError(f"Not a string: {self!r}")

    def as_float(self) -> float:
        text = self.as_string()
        if not FLOAT_RE.fullmatch(text):
            raise FloatConversionError(text)
        return float(text)

    def as_int(self) -> int:
        text = self.as_string()
        if not INT_RE.fullmatch(text):
            raise IntConversionError(text)
        value = int(text)
        if not INT_MIN <= value <= INT_MAX:
            raise IntConversionError(text, context={"range": f"{INT_MIN}..{INT_MAX}"})
        return value

    def as_bool(self) -> bool:
        """KiCad-style boolean: yes/true or no/false."""
        text = self.as_string()
        lowered = text.lower()
        if lowered in TRUE_WORDS:
            return True
        if lowered in FALSE_WORDS:
            return False
        raise BoolConversionError(text)

    # Tagged list access

    def list_name(self) -> str:
        """Text of the first child, the list's tag."""
        items = self.as_list()
        if not items:
            raise EmptyListError("Empty list has no name")
        return items[0].as_string()

    def slice_after_tag(self, tag: str) -> tuple[SExp, ...]:
        """
        Children following the tag, after checking the tag.

        Raises:
            TagMismatchError: If the first child is not ``tag``
        """
        items = self.as_list()
        if not items:
            raise TagMismatchError(tag, "")
        actual = items[0].as_string()
        if actual != tag:
            raise TagMismatchError(tag, actual)
        return items[1:]

    def slice_after_tag_with_arity(self, tag: str, arity: int) -> tuple[SExp, ...]:
        """Like slice_after_tag() but requires exactly ``arity`` children after the tag."""
        rest = self.slice_after_tag(tag)
        if len(rest) != arity:
            raise ArityMismatchError(tag, arity, len(rest))
        return rest

    def named_value(self, tag: str) -> SExp:
        """The value of a ``(tag value)`` pair."""
        items = self.as_list()
        if len(items) != 2:
            raise NotANamedValueError(
                f"List {self!r} is not a named value ({tag} <value>)",
                context={"tag": tag, "elements": len(items)},
            )
        return self.slice_after_tag(tag)[0]

    def named_value_int(self, tag: str) -> int:
        return self.named_value(tag).as_int()

    def named_value_float(self, tag: str) -> float:
        return self.named_value(tag).as_float()

    def named_value_string(self, tag: str) -> str:
        return self.named_value(tag).as_string()

    # Navigation

    def find(self, tag: str) -> Optional[SList]:
        """First child list whose tag is ``tag``, or None."""
        for child in self.children:
            if child.has_tag(tag):
                return child
        return None

    def find_all(self, tag: str) -> list[SList]:
        """All child lists whose tag is ``tag``, in document order."""
        return [child for child in self.children if child.has_tag(tag)]

    def has_tag(self, tag: str) -> bool:
        """True if this is a list starting with the atom ``tag``."""
        return False

    @property
    def children(self) -> tuple[SExp, ...]:
        """Children of a list, empty for atoms and EMPTY."""
        return ()

    def iter_all(self) -> Iterator[SExp]:
        """Iterate over this value and all descendants, depth first."""
        stack: list[SExp] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_string(self, rules: Any = None, indent: str = "  ") -> str:
        """Serialize, optionally with formatting rules."""
        from kicad_sexp.formatter import Serializer

        return Serializer(rules, indent=indent).serialize(self)

    def __str__(self) -> str:
        return self.to_string()

    # Convenience constructors

    @staticmethod
    def atom(value: Union[str, int, float, bool]) -> Atom:
        """Create an atom from a string or number."""
        return to_sexp(value)

    @staticmethod
    def list(tag: str, *children: Any) -> SList:
        """Create a tagged list, converting plain Python children."""
        return SList((Atom(tag),) + tuple(to_sexp(child) for child in children))


@dataclass(frozen=True, repr=False)
class Atom(SExp):
    """Leaf text. Empty text is only produced by an empty quoted string."""

    text: str

    @property
    def is_atom(self) -> bool:
        return True

    def as_string(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Atom({self.text!r})"


@dataclass(frozen=True, repr=False)
class SList(SExp):
    """Ordered, possibly empty sequence of values."""

    items: tuple[SExp, ...] = ()

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    @property
    def is_list(self) -> bool:
        return True

    def as_list(self) -> tuple[SExp, ...]:
        return self.items

    @property
    def children(self) -> tuple[SExp, ...]:
        return self.items

    def has_tag(self, tag: str) -> bool:
        return bool(self.items) and isinstance(self.items[0], Atom) and self.items[0].text == tag

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __iter__(self) -> Iterator[SExp]:
        return iter(self.items)

    def __repr__(self) -> str:
        if self.items and isinstance(self.items[0], Atom):
            return f"SList({self.items[0].text!r}, [{len(self.items) - 1} items])"
        return f"SList([{len(self.items)} items])"


class Empty(SExp):
    """The value of an empty document. Serializes to the empty string."""

    __slots__ = ()

    _instance: Optional[Empty] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def is_empty(self) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Empty)

    def __hash__(self) -> int:
        return hash(Empty)

    def __repr__(self) -> str:
        return "EMPTY"

    def __reduce__(self):
        return (Empty, ())


EMPTY = Empty()


def to_sexp(obj: Any) -> SExp:
    """
    Convert a Python value to a tree value.

    - SExp values are returned unchanged
    - None becomes EMPTY
    - bool becomes ``yes``/``no``
    - str, int and float become atoms
    - list and tuple become lists, converting each element
    - objects with a ``to_sexp()`` method are asked to convert themselves

    Raises:
        TypeError: For values with no S-expression form
    """
    if isinstance(obj, SExp):
        return obj
    if obj is None:
        return EMPTY
    if isinstance(obj, bool):
        return Atom("yes" if obj else "no")
    if isinstance(obj, str):
        return Atom(obj)
    if isinstance(obj, (int, float)):
        return Atom(repr(obj))
    if isinstance(obj, (list, tuple)):
        return SList(tuple(to_sexp(item) for item in obj))
    to_sexp_method = getattr(obj, "to_sexp", None)
    if callable(to_sexp_method):
        return to_sexp_method()
    raise TypeError(f"Cannot convert {type(obj).__name__} to an S-expression")
