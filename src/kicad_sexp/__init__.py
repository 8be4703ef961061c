"""
kicad-sexp: S-expression parsing, formatting and typed decoding for KiCad files.

Modules:
    value: Tree values (Atom, SList, EMPTY) and their accessors
    parser: Text to tree, with line/column diagnostics
    formatter: Tree to text, with per-tag layout rules
    decode: Typed decoding of trees into application objects
    iteratom: Cursor decoder for hand-written decoders
    exceptions: Error hierarchy shared by all modules

Quick Start::

    from kicad_sexp import parse_string, serialize, Rules, IterAtom

    doc = parse_string("(module R_0402 (layer F.Cu) (descr \\"0402 resistor\\"))")
    doc.list_name()                                   # "module"
    doc.find("layer").named_value_string("layer")     # "F.Cu"

    serialize(doc, Rules({"module": 1}))
    # (module R_0402
    #   (layer F.Cu)
    #   (descr "0402 resistor"))
"""

__version__ = "0.1.0"

from kicad_sexp.decode import (
    Decodable,
    Field,
    decode,
    attach_field,
    decoder_for,
    entry,
    named_values,
    optional,
    record,
    sequence_of,
    sexp_record,
    sexp_tuple,
    tuple_of,
)
from kicad_sexp.exceptions import (
    ArityMismatchError,
    DecodeError,
    FloatConversionError,
    IncompleteInputError,
    IntConversionError,
    MissingFieldError,
    NumericConversionError,
    ParseError,
    SexpError,
    SexpIOError,
    TagMismatchError,
    TextEncodingError,
    UnexpectedTokenError,
)
from kicad_sexp.formatter import (
    KICAD_RULES,
    Rules,
    Serializer,
    rules_from_preset,
    serialize,
    to_string,
    to_string_with_rules,
)
from kicad_sexp.iteratom import IterAtom
from kicad_sexp.parser import Parser, parse_file, parse_str, parse_string, read_file
from kicad_sexp.value import EMPTY, Atom, Empty, SExp, SList, to_sexp

__all__ = [
    # Version
    "__version__",
    # Values
    "SExp",
    "Atom",
    "SList",
    "Empty",
    "EMPTY",
    "to_sexp",
    # Parsing
    "Parser",
    "parse_string",
    "parse_str",
    "parse_file",
    "read_file",
    # Formatting
    "Rules",
    "Serializer",
    "KICAD_RULES",
    "rules_from_preset",
    "serialize",
    "to_string",
    "to_string_with_rules",
    # Decoding
    "Decodable",
    "Field",
    "attach_field",
    "decode",
    "decoder_for",
    "entry",
    "named_values",
    "optional",
    "record",
    "sequence_of",
    "sexp_record",
    "sexp_tuple",
    "tuple_of",
    "IterAtom",
    # Errors
    "SexpError",
    "ParseError",
    "UnexpectedTokenError",
    "IncompleteInputError",
    "DecodeError",
    "MissingFieldError",
    "TagMismatchError",
    "ArityMismatchError",
    "NumericConversionError",
    "FloatConversionError",
    "IntConversionError",
    "SexpIOError",
    "TextEncodingError",
]
