"""
Exception hierarchy for kicad-sexp.

Every error carries a message, a context dictionary and a list of
suggestions, so callers can render a precise diagnostic without
re-parsing the input:

- ParseError: structural problems with position (line, column)
- DecodeError: the tree does not have the shape a decoder expects
- NumericConversionError: atom text is not a valid number
- SexpIOError / TextEncodingError: reading a file failed

Example::

    from kicad_sexp import parse_string
    from kicad_sexp.exceptions import ParseError

    try:
        parse_string('(module "R1')
    except ParseError as e:
        print(f"{e.line}:{e.column}: {e.message}")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class SexpError(Exception):
    """
    Base exception for all kicad-sexp errors.

    Also used directly for failures that have no more specific kind.

    Attributes:
        message: Short description of the failure
        context: Dictionary of contextual information (file, line, tag, etc.)
        suggestions: List of actionable suggestions for fixing the error
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context and suggestions."""
        parts = [self.message]

        if self.context:
            parts.append("\n\nContext:")
            for key, value in self.context.items():
                parts.append(f"\n  {key}: {value}")

        if self.suggestions:
            parts.append("\n\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"\n  - {suggestion}")

        return "".join(parts)

    def __str__(self) -> str:
        return self._format_message()


class ParseError(SexpError):
    """
    S-expression text could not be parsed.

    Line and column are 1-based and point at the place where the failure
    was detected. Both are None for structural errors raised on an
    already-parsed tree (tag or arity mismatch).

    Example::

        raise ParseError(
            "Unexpected ')'",
            line=3,
            column=7,
            suggestions=["Check for an extra closing parenthesis"],
        )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        file_path: Optional[Union[str, Path]] = None,
    ):
        self.line = line
        self.column = column
        ctx = context or {}
        if file_path and "file" not in ctx:
            ctx["file"] = str(file_path)
        if line is not None and "line" not in ctx:
            ctx["line"] = line
        if column is not None and "column" not in ctx:
            ctx["column"] = column

        super().__init__(message, ctx, suggestions)

    @property
    def position(self) -> Optional[tuple[int, int]]:
        """(line, column) if known."""
        if self.line is None or self.column is None:
            return None
        return (self.line, self.column)


class UnexpectedTokenError(ParseError):
    """A token appeared where it is not allowed, e.g. a stray ')'."""


class IncompleteInputError(ParseError):
    """End of input reached inside a list or a quoted string."""


class NestingDepthError(ParseError):
    """Lists are nested deeper than the parser allows."""


class DecodeError(SexpError):
    """
    A tree value does not have the shape a decoder expects.

    Attributes:
        field: Name of the field being decoded, if any
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        field: Optional[str] = None,
    ):
        self.field = field
        ctx = context or {}
        if field is not None and "field" not in ctx:
            ctx["field"] = field
        super().__init__(message, ctx, suggestions)


class NotAListError(DecodeError):
    """A list was required but an atom or empty value was found."""


class NotAStringError(DecodeError):
    """An atom was required but a list or empty value was found."""


class NotANamedValueError(DecodeError):
    """A ``(tag value)`` pair was required."""


class EmptyListError(DecodeError):
    """The list has no first element to act as a tag."""


class MissingFieldError(DecodeError):
    """A required named field is absent."""


class NamedEntryNotFoundError(MissingFieldError):
    """No unconsumed entry with the requested name remains in the cursor."""


class OutOfElementsError(DecodeError):
    """The cursor has no unconsumed elements left."""


class UnitDecodeError(DecodeError):
    """The unit value only decodes from an empty document."""


class TagMismatchError(ParseError, DecodeError):
    """
    A list does not start with the expected tag.

    Attributes:
        expected: Tag the caller asked for
        actual: Tag the list actually starts with
    """

    def __init__(self, expected: str, actual: str, context: Optional[Dict[str, Any]] = None):
        self.expected = expected
        self.actual = actual
        ctx = dict(context or {})
        ctx.setdefault("expected", expected)
        ctx.setdefault("got", actual)
        super().__init__(f"List starts with '{actual}', expected '{expected}'", ctx)


class ArityMismatchError(ParseError, DecodeError):
    """
    A list has the wrong number of elements after its tag.

    Attributes:
        tag: Tag of the list
        expected: Number of elements required after the tag
        actual: Number of elements found after the tag
    """

    def __init__(self, tag: str, expected: int, actual: int, context: Optional[Dict[str, Any]] = None):
        self.tag = tag
        self.expected = expected
        self.actual = actual
        ctx = dict(context or {})
        ctx.setdefault("tag", tag)
        ctx.setdefault("expected", expected)
        ctx.setdefault("got", actual)
        super().__init__(f"List ({tag} ...) has {actual} element(s) after the tag, expected {expected}", ctx)


class NumericConversionError(SexpError):
    """
    Atom text is not a valid numeric literal.

    Attributes:
        text: The offending atom text
    """

    kind = "number"

    def __init__(self, text: str, context: Optional[Dict[str, Any]] = None):
        self.text = text
        super().__init__(f"Cannot parse {self.kind} from {text!r}", context)


class FloatConversionError(NumericConversionError):
    """Atom text is not a valid float literal."""

    kind = "float"


class IntConversionError(NumericConversionError):
    """Atom text is not a valid integer literal."""

    kind = "int"


class BoolConversionError(SexpError):
    """Atom text is not one of yes/no/true/false."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(
            f"Cannot parse boolean from {text!r}",
            suggestions=["Use one of: yes, no, true, false"],
        )


class SexpIOError(SexpError):
    """
    Reading an input file failed.

    The underlying OSError is available as ``__cause__``.
    """

    def __init__(self, message: str, path: Union[str, Path], reason: str):
        self.path = Path(path)
        super().__init__(message, context={"file": str(path), "reason": reason})


class TextEncodingError(SexpError):
    """
    Input file is not valid UTF-8.

    The underlying UnicodeDecodeError is available as ``__cause__``.
    """

    def __init__(self, path: Union[str, Path], offset: int, reason: str):
        self.path = Path(path)
        self.offset = offset
        super().__init__(
            "File is not valid UTF-8",
            context={"file": str(path), "byte_offset": offset, "reason": reason},
            suggestions=["Re-save the file with UTF-8 encoding"],
        )


class SerializeError(SexpError):
    """An atom's text cannot be written back as valid S-expression text."""


class ConfigError(SexpError):
    """Configuration is invalid or unreadable."""


__all__ = [
    "SexpError",
    "ParseError",
    "UnexpectedTokenError",
    "IncompleteInputError",
    "NestingDepthError",
    "DecodeError",
    "NotAListError",
    "NotAStringError",
    "NotANamedValueError",
    "EmptyListError",
    "MissingFieldError",
    "NamedEntryNotFoundError",
    "OutOfElementsError",
    "UnitDecodeError",
    "TagMismatchError",
    "ArityMismatchError",
    "NumericConversionError",
    "FloatConversionError",
    "IntConversionError",
    "BoolConversionError",
    "SexpIOError",
    "TextEncodingError",
    "SerializeError",
    "ConfigError",
]
