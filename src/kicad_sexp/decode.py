"""
Typed decoding of tree values.

A decoder is any callable taking a tree value and returning a Python
value, or raising a SexpError subclass. Types join in by providing a
``from_sexp`` classmethod; composite decoders are built by combining the
decoders of their parts, never by inspecting type annotations.

Example::

    @sexp_record("point", x=int, y=int)
    @dataclass
    class Point:
        x: int
        y: int

    decode(parse_string("(point (x 1) (y 2))"), Point)   # Point(x=1, y=2)
    decode(parse_string("(4 5 42)"), sequence_of(int))   # [4, 5, 42]

    at = tuple_of("at", float, float, float)      # (at 1.5 2 90)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol, TypeVar, Union, runtime_checkable

from kicad_sexp.exceptions import (
    DecodeError,
    MissingFieldError,
    NotAListError,
    SexpError,
    UnitDecodeError,
)
from kicad_sexp.value import Atom, Empty, SExp

T = TypeVar("T")

Decoder = Callable[[SExp], Any]


@runtime_checkable
class Decodable(Protocol):
    """Capability of constructing an instance from a tree value."""

    @classmethod
    def from_sexp(cls, sexp: SExp) -> Any: ...


def decode_str(sexp: SExp) -> str:
    return sexp.as_string()


def decode_int(sexp: SExp) -> int:
    return sexp.as_int()


def decode_float(sexp: SExp) -> float:
    return sexp.as_float()


def decode_bool(sexp: SExp) -> bool:
    return sexp.as_bool()


def decode_unit(sexp: SExp) -> None:
    """The unit value: decodes only from EMPTY."""
    if not isinstance(sexp, Empty):
        raise UnitDecodeError(f"Expected an empty document, got {sexp!r}")
    return None


def decode_sexp(sexp: SExp) -> SExp:
    return sexp


_BUILTIN_DECODERS: dict[Any, Decoder] = {
    str: decode_str,
    int: decode_int,
    float: decode_float,
    bool: decode_bool,
    None: decode_unit,
    type(None): decode_unit,
    SExp: decode_sexp,
}


def decoder_for(target: Any) -> Decoder:
    """
    Resolve a decode target to a decoder function.

    Accepts a class providing ``from_sexp``, one of str/int/float/bool,
    None for the unit value, SExp for the raw value, or a decoder callable.
    """
    from_sexp = getattr(target, "from_sexp", None)
    if from_sexp is not None:
        return from_sexp
    try:
        builtin = _BUILTIN_DECODERS.get(target)
    except TypeError:
        builtin = None
    if builtin is not None:
        return builtin
    if callable(target):
        return target
    raise TypeError(f"No decoder for {target!r}; provide a from_sexp classmethod or a decoder function")


def attach_field(error: SexpError, name: str) -> None:
    """
    Record the field being decoded on an error raised while decoding it.

    The innermost field wins, so a failure deep in nested records names
    the entry that actually failed. The error keeps its own type.
    """
    error.context.setdefault("field", name)
    if isinstance(error, DecodeError) and error.field is None:
        error.field = name


def decode(sexp: SExp, target: Any) -> Any:
    """Decode a tree value into ``target``."""
    return decoder_for(target)(sexp)


def _require_list(sexp: SExp, what: str) -> tuple[SExp, ...]:
    if not sexp.is_list:
        raise NotAListError(f"Cannot decode {what} from {sexp!r}: not a list")
    return sexp.as_list()


def sequence_of(item: Any) -> Decoder:
    """Decoder for a list whose every child decodes as ``item``."""
    item_decoder = decoder_for(item)

    def decode_sequence(sexp: SExp) -> list:
        return [item_decoder(child) for child in _require_list(sexp, "a sequence")]

    return decode_sequence


def tuple_of(tag: Optional[str], *items: Any) -> Decoder:
    """
    Decoder for a fixed-arity list ``(tag a b ...)``.

    The tag is checked when given; with ``None`` the first child is
    skipped unchecked. Raises ArityMismatchError on a wrong element count.
    """
    item_decoders = [decoder_for(item) for item in items]

    def decode_tuple(sexp: SExp) -> tuple:
        if tag is None:
            actual_tag = sexp.list_name()
            values = sexp.slice_after_tag_with_arity(actual_tag, len(item_decoders))
        else:
            values = sexp.slice_after_tag_with_arity(tag, len(item_decoders))
        return tuple(decoder(value) for decoder, value in zip(item_decoders, values))

    return decode_tuple


_MISSING = object()


@dataclass(frozen=True)
class Field:
    """
    How one record field is found and decoded.

    Attributes:
        target: Decode target for the value
        key: Entry name in the S-expression, defaults to the field name
        default: Value used when the entry is absent; required if unset
        whole_entry: Pass the whole ``(key ...)`` list to the decoder
            instead of the single value of a ``(key value)`` pair
    """

    target: Any
    key: Optional[str] = None
    default: Any = _MISSING
    whole_entry: bool = False

    @property
    def required(self) -> bool:
        return self.default is _MISSING


def optional(target: Any, default: Any = None) -> Field:
    """Field that falls back to ``default`` when its entry is absent."""
    return Field(target, default=default)


def entry(target: Any, default: Any = _MISSING) -> Field:
    """Field decoded from the whole entry, e.g. ``(at 1 2 0)`` with tuple_of."""
    return Field(target, default=default, whole_entry=True)


def _as_field(spec: Union[Field, Any]) -> Field:
    return spec if isinstance(spec, Field) else Field(spec)


def find_entry(entries: tuple[SExp, ...], name: str) -> Optional[SExp]:
    """First list among ``entries`` whose tag is ``name``."""
    for candidate in entries:
        if candidate.has_tag(name):
            return candidate
    return None


def record(
    tag: Optional[str],
    factory: Callable[..., T] = dict,
    /,
    **fields: Any,
) -> Callable[[SExp], T]:
    """
    Decoder for a list of named entries ``(tag (field value) ...)``.

    Entries may appear in any order; the first entry with a field's name
    wins and unknown entries are ignored. The result is
    ``factory(**values)``.

    Args:
        tag: Expected tag, or None to accept any leading atom
        factory: Called with the decoded fields as keyword arguments
        **fields: Field name to decode target or Field spec
    """
    specs = {name: _as_field(spec) for name, spec in fields.items()}
    decoders = {name: decoder_for(spec.target) for name, spec in specs.items()}

    def decode_record(sexp: SExp) -> T:
        if tag is None:
            children = _require_list(sexp, "a record")
            entries = children[1:] if children and isinstance(children[0], Atom) else children
        else:
            entries = sexp.slice_after_tag(tag)

        values: dict[str, Any] = {}
        for name, spec in specs.items():
            key = spec.key or name
            found = find_entry(entries, key)
            if found is None:
                if spec.required:
                    raise MissingFieldError(
                        f"Missing field '{key}' in ({tag or 'record'} ...)",
                        field=key,
                    )
                values[name] = spec.default
                continue
            try:
                value = found if spec.whole_entry else found.named_value(key)
                values[name] = decoders[name](value)
            except SexpError as e:
                attach_field(e, key)
                raise

        return factory(**values)

    return decode_record


def sexp_record(tag: Optional[str], **fields: Any):
    """
    Class decorator installing a ``from_sexp`` classmethod that decodes a
    record and calls the class with the fields as keyword arguments.
    """

    def wrap(cls):
        cls.from_sexp = classmethod(lambda klass, sexp: record(tag, klass, **fields)(sexp))
        return cls

    return wrap


def sexp_tuple(tag: Optional[str], *items: Any):
    """Class decorator installing a ``from_sexp`` that calls ``cls(*values)``."""

    def wrap(cls):
        decode_items = tuple_of(tag, *items)
        cls.from_sexp = classmethod(lambda klass, sexp: klass(*decode_items(sexp)))
        return cls

    return wrap


def named_values(mapping: Mapping[str, Any]) -> Decoder:
    """
    Decoder for a list of ``(name value)`` pairs into a dict, e.g. KiCad's
    ``(general (links 0) (no_connects 0))`` with a value target per name.
    Names not in ``mapping`` are ignored.
    """
    return record(None, dict, **{name: optional(target) for name, target in mapping.items()})
