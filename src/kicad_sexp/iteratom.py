"""
Cursor decoder for hand-written decoders.

IterAtom walks the children of a tagged list once, mixing positional
reads with lookups of named entries::

    pad = parse_string("(pad 1 smd rect (at 0.5 0) (size 1.2 1.2) (layers F.Cu))")
    it = IterAtom(pad, "pad")
    number = it.next_string()                        # "1"
    kind = it.next_string()                          # "smd"
    at = it.decode_named("at", tuple_of("at", float, float))
    layers = it.decode_named("layers", tuple_of("layers", str))

Named lookups mark their match as consumed without touching the list, so
positional reads skip it and a second lookup of the same name finds the
next occurrence.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from kicad_sexp.decode import attach_field, decoder_for
from kicad_sexp.exceptions import NamedEntryNotFoundError, OutOfElementsError, SexpError
from kicad_sexp.value import SExp


class IterAtom:
    """
    One-pass consumer over the children of ``(tag ...)``.

    Not safe to share between concurrent decodes; create one per decode.

    Raises:
        TagMismatchError: If the list does not start with ``tag``
    """

    def __init__(self, sexp: SExp, tag: str):
        self.sexp = sexp
        self.tag = tag
        self.items = sexp.slice_after_tag(tag)
        self._consumed: set[int] = set()
        self._cursor = 0

    # Positional

    def next_as(self, target: Any) -> Any:
        """Decode the next unconsumed child as ``target``."""
        index = self._next_index()
        if index is None:
            raise OutOfElementsError(
                f"No elements left in ({self.tag} ...)",
                context={"tag": self.tag, "consumed": len(self._consumed)},
            )
        value = self._decode_at(index, decoder_for(target))
        self._cursor = index + 1
        return value

    def next_string(self) -> str:
        return self.next_as(str)

    def next_int(self) -> int:
        return self.next_as(int)

    def next_float(self) -> float:
        return self.next_as(float)

    # Named

    def decode_named(self, name: str, target: Any) -> Any:
        """
        Find the first unconsumed ``(name ...)`` entry and decode the whole
        entry as ``target``.

        Raises:
            NamedEntryNotFoundError: If no such entry remains
        """
        return self._decode_at(self._require_named(name), decoder_for(target), name)

    def maybe_decode_named(self, name: str, target: Any, default: Any = None) -> Any:
        """Like decode_named() but returns ``default`` when the entry is absent."""
        index = self._find_named(name)
        if index is None:
            return default
        return self._decode_at(index, decoder_for(target), name)

    def string_in_named_list(self, name: str) -> str:
        """Value of the next ``(name value)`` entry as a string."""
        return self._decode_at(self._require_named(name), lambda e: e.named_value_string(name), name)

    def int_in_named_list(self, name: str) -> int:
        return self._decode_at(self._require_named(name), lambda e: e.named_value_int(name), name)

    def float_in_named_list(self, name: str) -> float:
        return self._decode_at(self._require_named(name), lambda e: e.named_value_float(name), name)

    def all_named(self, name: str, target: Any) -> list:
        """Decode and consume every remaining ``(name ...)`` entry, in order."""
        decoder = decoder_for(target)
        results = []
        while (index := self._find_named(name)) is not None:
            results.append(self._decode_at(index, decoder, name))
        return results

    # Remainder

    def remaining(self) -> tuple[SExp, ...]:
        """Unconsumed children in document order."""
        return tuple(item for i, item in enumerate(self.items) if i not in self._consumed)

    def rest_as(self, target: Any) -> list:
        """Decode and consume all unconsumed children as ``target``."""
        decoder = decoder_for(target)
        results = []
        for i in range(len(self.items)):
            if i not in self._consumed:
                results.append(self._decode_at(i, decoder))
        self._cursor = len(self.items)
        return results

    @property
    def is_exhausted(self) -> bool:
        return len(self._consumed) == len(self.items)

    def _next_index(self) -> Optional[int]:
        for i in range(self._cursor, len(self.items)):
            if i not in self._consumed:
                return i
        return None

    def _find_named(self, name: str) -> Optional[int]:
        for i in range(self._cursor, len(self.items)):
            if i not in self._consumed and self.items[i].has_tag(name):
                return i
        return None

    def _require_named(self, name: str) -> int:
        index = self._find_named(name)
        if index is None:
            raise NamedEntryNotFoundError(
                f"No ({name} ...) entry left in ({self.tag} ...)",
                context={"tag": self.tag},
                field=name,
            )
        return index

    def _decode_at(self, index: int, decode_item: Callable[[SExp], Any], name: Optional[str] = None) -> Any:
        """Decode one child, consuming it only if decoding succeeds."""
        try:
            value = decode_item(self.items[index])
        except SexpError as e:
            if name is None:
                e.context.setdefault("index", index)
            else:
                attach_field(e, name)
            raise
        self._consumed.add(index)
        return value

    def __repr__(self) -> str:
        return f"IterAtom({self.tag!r}, {len(self.items) - len(self._consumed)} left)"
