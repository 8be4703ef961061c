"""
S-expression parser for KiCad-style files.

Grammar::

    sexp   := [space] (list | atom) [space] [newlines]
    list   := '(' sexp* [space] ')'
    atom   := '"' <any char except '"'>* '"'  |  <chars except ( ) space newline>+

Quoted atoms have no escape sequences and may span lines. Bare atoms are
kept as text; "1.27" is not turned into a number until an accessor asks.

Usage:
    from kicad_sexp import parse_string, parse_file

    doc = parse_string('(kicad_pcb (version 4) (host pcbnew "4.0.7"))')
    doc = parse_file("board.kicad_pcb")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from kicad_sexp.exceptions import (
    IncompleteInputError,
    NestingDepthError,
    SexpIOError,
    TextEncodingError,
    UnexpectedTokenError,
)
from kicad_sexp.value import EMPTY, Atom, SExp, SList

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10000

WHITESPACE = " \t\r\n"
# Characters that end a bare atom; tabs included, so "a\tb" is two atoms
DELIMITERS = " \t\r\n()"


class Parser:
    """
    S-expression parser with line/column diagnostics.

    Lists are built with an explicit stack, so nesting depth is limited by
    ``max_depth`` rather than by the interpreter's recursion limit.
    """

    def __init__(self, text: str, max_depth: int = DEFAULT_MAX_DEPTH, source: Optional[str] = None):
        self.text = text
        self.pos = 0
        self.length = len(text)
        self.max_depth = max_depth
        self.source = source

    def parse(self) -> SExp:
        """Parse the whole text into a single tree value."""
        if not self.text:
            return EMPTY

        # Open lists and the offsets of their '('
        stack: list[list[SExp]] = []
        openings: list[int] = []

        while True:
            self._skip_whitespace()

            if self.pos >= self.length:
                if stack:
                    raise self._error(
                        IncompleteInputError,
                        "End of file reached, expected ')'",
                        context={"opened_at": self._describe_offset(openings[-1])},
                        suggestions=["Check for a missing closing parenthesis"],
                    )
                raise self._error(IncompleteInputError, "End of file reached, expected an expression")

            char = self.text[self.pos]

            if char == "(":
                if len(stack) >= self.max_depth:
                    raise self._error(
                        NestingDepthError,
                        f"Lists nested deeper than {self.max_depth} levels",
                        suggestions=["Raise max_depth if the input is trusted"],
                    )
                openings.append(self.pos)
                stack.append([])
                self.pos += 1
                continue

            if char == ")":
                if not stack:
                    raise self._error(UnexpectedTokenError, "Unexpected )")
                self.pos += 1
                openings.pop()
                value: SExp = SList(tuple(stack.pop()))
            elif char == '"':
                value = self._parse_quoted()
            else:
                value = self._parse_bare()

            if not stack:
                break
            stack[-1].append(value)

        self._skip_whitespace()
        if self.pos < self.length:
            raise self._error(
                UnexpectedTokenError,
                f"Unexpected {self.text[self.pos]!r} after the end of the expression",
                suggestions=["A document holds a single top-level expression"],
            )
        return value

    def _parse_quoted(self) -> Atom:
        """Parse a quoted atom; no escape processing."""
        end = self.text.find('"', self.pos + 1)
        if end < 0:
            self.pos = self.length
            raise self._error(
                IncompleteInputError,
                "End of file reached inside a quoted string",
                suggestions=["Check for a missing closing quote"],
            )
        atom = Atom(self.text[self.pos + 1 : end])
        self.pos = end + 1
        return atom

    def _parse_bare(self) -> Atom:
        """Parse an unquoted atom up to the next delimiter."""
        start = self.pos
        while self.pos < self.length and self.text[self.pos] not in DELIMITERS:
            self.pos += 1
        return Atom(self.text[start : self.pos])

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def line_column(self, offset: int) -> tuple[int, int]:
        """Translate a character offset into a 1-based (line, column)."""
        line = self.text.count("\n", 0, offset) + 1
        column = offset - (self.text.rfind("\n", 0, offset) + 1) + 1
        return line, column

    def _describe_offset(self, offset: int) -> str:
        line, column = self.line_column(offset)
        return f"line {line}, column {column}"

    def _error(self, cls, message: str, context=None, suggestions=None):
        line, column = self.line_column(self.pos)
        return cls(
            message,
            context=context,
            suggestions=suggestions,
            line=line,
            column=column,
            file_path=self.source,
        )


def parse_string(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> SExp:
    """Parse S-expression text. Empty text gives EMPTY."""
    return Parser(text, max_depth=max_depth).parse()


# Name used by older callers
parse_str = parse_string


def read_file(path: str | Path) -> str:
    """
    Read a whole file as UTF-8 text.

    Raises:
        SexpIOError: If the file cannot be read
        TextEncodingError: If the file is not valid UTF-8
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SexpIOError(f"Cannot read {path}", path, e.strerror or str(e)) from e

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TextEncodingError(path, e.start, e.reason) from e

    logger.debug(f"Read {len(text)} characters from {path}")
    return text


def parse_file(path: str | Path, max_depth: int = DEFAULT_MAX_DEPTH) -> SExp:
    """Read a UTF-8 file and parse it. Parse errors name the file in their context."""
    text = read_file(path)
    return Parser(text, max_depth=max_depth, source=str(path)).parse()
