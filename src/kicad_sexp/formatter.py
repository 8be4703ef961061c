"""
Serializer for S-expression tree values.

Without rules every list is written on one line. A rule ``(tag, k)``
keeps the first ``k`` children after ``tag`` on the tag's line and puts
each later child on its own line, indented one level deeper than the
list itself. With ``Rules({"module": 1})``::

    (module SILABS_EFM32_QFM24
      (layer F.Cu)
      (descr "QFN 24"))

Rules are looked up by the tag of the list being written and apply to
every list with that tag, wherever it appears in the tree.
"""

from __future__ import annotations

from typing import Iterator, Mapping, Optional, Union

from kicad_sexp.exceptions import SerializeError
from kicad_sexp.value import Atom, Empty, SExp

# Characters that force an atom to be quoted
QUOTE_TRIGGERS = frozenset(" \t\r\n()")


class Rules:
    """
    Formatting rules: tag name to the number of children kept inline.

    Example::

        rules = Rules()
        rules.insert("kicad_pcb", 2)
        rules.insert("general", 0)
    """

    def __init__(self, mapping: Optional[Mapping[str, int]] = None):
        self._arity: dict[str, int] = {}
        if mapping:
            self.update(mapping)

    def insert(self, tag: str, arity: int) -> None:
        """Add or replace the rule for ``tag``."""
        if isinstance(arity, bool) or not isinstance(arity, int) or arity < 0:
            raise ValueError(f"Arity for '{tag}' must be a non-negative integer, got {arity!r}")
        self._arity[tag] = arity

    def update(self, mapping: Mapping[str, int]) -> None:
        for tag, arity in mapping.items():
            self.insert(tag, arity)

    def get(self, tag: str) -> Optional[int]:
        """Number of inline children for ``tag``, or None without a rule."""
        return self._arity.get(tag)

    def copy(self) -> Rules:
        return Rules(self._arity)

    def items(self):
        return self._arity.items()

    def __contains__(self, tag: object) -> bool:
        return tag in self._arity

    def __len__(self) -> int:
        return len(self._arity)

    def __iter__(self) -> Iterator[str]:
        return iter(self._arity)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Rules):
            return self._arity == other._arity
        return NotImplemented

    def __repr__(self) -> str:
        return f"Rules({self._arity!r})"


# Layout of KiCad 4/5 board and footprint files
KICAD_RULES = {
    "kicad_pcb": 2,
    "kicad_sch": 0,
    "module": 1,
    "footprint": 1,
    "general": 0,
    "layers": 0,
    "setup": 0,
    "lib_symbols": 0,
    "net_class": 1,
}

PRESETS: dict[str, Mapping[str, int]] = {
    "none": {},
    "kicad": KICAD_RULES,
}


def rules_from_preset(name: str) -> Rules:
    """
    Build a fresh Rules object from a named preset.

    Raises:
        ValueError: If the preset is unknown
    """
    try:
        return Rules(PRESETS[name])
    except KeyError:
        raise ValueError(f"Unknown rules preset '{name}'. Available: {', '.join(PRESETS)}") from None


def format_atom(text: str) -> str:
    """
    Render atom text, quoting it when a bare atom would not read back the same.

    Raises:
        SerializeError: If the text needs quoting but contains a quote
    """
    needs_quotes = not text or any(c in QUOTE_TRIGGERS for c in text)
    if needs_quotes or text.startswith('"'):
        if '"' in text:
            raise SerializeError(
                "Atom text with a double quote cannot be written back",
                context={"text": text},
                suggestions=["Quoted atoms have no escape sequences; remove the quote character"],
            )
        return f'"{text}"'
    return text


class Serializer:
    """
    Writes tree values as text.

    Args:
        rules: Rules object or plain mapping of tag to inline child count
        indent: String used for one level of indentation
    """

    def __init__(self, rules: Union[Rules, Mapping[str, int], None] = None, indent: str = "  "):
        if rules is None:
            rules = Rules()
        elif not isinstance(rules, Rules):
            rules = Rules(rules)
        self.rules = rules
        self.indent = indent

    def serialize(self, sexp: SExp) -> str:
        """Serialize a tree value. EMPTY gives the empty string."""
        out: list[str] = []
        # Work items are literal text or (value, depth) pairs, popped LIFO
        work: list[Union[str, tuple[SExp, int]]] = [(sexp, 0)]

        while work:
            item = work.pop()
            if isinstance(item, str):
                out.append(item)
                continue

            node, depth = item
            if isinstance(node, Empty):
                continue
            if isinstance(node, Atom):
                out.append(format_atom(node.text))
                continue

            work.extend(reversed(self._list_pieces(node, depth)))

        return "".join(out)

    def _list_pieces(self, node: SExp, depth: int) -> list[Union[str, tuple[SExp, int]]]:
        children = [child for child in node.children if not isinstance(child, Empty)]
        inline = None
        if children and isinstance(children[0], Atom):
            inline = self.rules.get(children[0].text)

        line_break = "\n" + self.indent * (depth + 1)
        pieces: list[Union[str, tuple[SExp, int]]] = ["("]
        for i, child in enumerate(children):
            if i > 0:
                pieces.append(line_break if inline is not None and i > inline else " ")
            pieces.append((child, depth + 1))
        pieces.append(")")
        return pieces


def serialize(sexp: SExp, rules: Union[Rules, Mapping[str, int], None] = None, indent: str = "  ") -> str:
    """Serialize a tree value, optionally with formatting rules."""
    return Serializer(rules, indent=indent).serialize(sexp)


def to_string(sexp: SExp) -> str:
    """Single-line canonical text."""
    return Serializer().serialize(sexp)


def to_string_with_rules(sexp: SExp, rules: Union[Rules, Mapping[str, int]], indent: str = "  ") -> str:
    return Serializer(rules, indent=indent).serialize(sexp)
