"""Tests for the serializer and formatting rules."""

import pytest

from kicad_sexp.exceptions import SerializeError
from kicad_sexp.formatter import (
    KICAD_RULES,
    Rules,
    Serializer,
    format_atom,
    rules_from_preset,
    serialize,
    to_string,
    to_string_with_rules,
)
from kicad_sexp.parser import parse_string
from kicad_sexp.value import EMPTY, Atom, SExp, SList, to_sexp


def round_trip(text, rules=None):
    return serialize(parse_string(text), rules)


class TestSingleLine:
    """Tests for serialization without rules."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            '(hello "")',
            "()",
            "hello",
            '"hello world"',
            '"hello(world)"',
            "1.3",
            "2.0",
            "(())",
            "(world)",
            "(42)",
            "(12.7)",
            '("(()")',
            "567A_WZ",
            "(a (b (c d)) e)",
        ],
    )
    def test_round_trip(self, text):
        """Canonical text reads back unchanged."""
        assert round_trip(text) == text

    def test_footprint_round_trip(self, footprint_text):
        """Single-line footprint reads back unchanged."""
        assert round_trip(footprint_text) == footprint_text

    def test_needless_quotes_dropped(self):
        """Quotes are only written when required."""
        assert round_trip('"hello"') == "hello"
        assert round_trip('("world")') == "(world)"

    def test_layout_collapsed(self):
        """Line breaks collapse to single spaces."""
        assert round_trip("(hello\n\nworld)") == "(hello world)"
        assert round_trip("(a\n  (b c)\n  )") == "(a (b c))"

    def test_numbers_keep_spelling(self):
        """Numeric atoms are written as they were read."""
        assert round_trip("(at 0402 2.0 -0.0)") == "(at 0402 2.0 -0.0)"

    def test_empty_children_skipped(self):
        """EMPTY inside a list writes nothing."""
        assert to_string(SList((Atom("a"), EMPTY, Atom("b")))) == "(a b)"

    def test_empty_document(self):
        """EMPTY writes the empty string."""
        assert to_string(EMPTY) == ""

    def test_deep_nesting(self):
        """Deep trees serialize without recursion."""
        depth = 5000
        text = "(" * depth + ")" * depth
        assert round_trip(text) == text


class TestRules:
    """Tests for rule-driven multi-line layout."""

    def test_multiline(self):
        """Children past the inline count go on their own lines."""
        text = '(hello "test it"\n  (foo bar)\n  (mars venus))'
        assert round_trip(text, {"hello": 1}) == text

    def test_zero_inline(self):
        """Zero keeps only the tag on the first line."""
        assert round_trip("(general (links 0) (no_connects 0))", {"general": 0}) == (
            "(general\n  (links 0)\n  (no_connects 0))"
        )

    def test_rule_without_enough_children(self):
        """A rule never breaks a short list."""
        assert round_trip("(general)", {"general": 0}) == "(general)"
        assert round_trip("(module X)", {"module": 1}) == "(module X)"

    def test_nested_indentation(self, pcb_header_text, pcb_header_rules):
        """Nested rules indent one level per depth."""
        assert round_trip(pcb_header_text, pcb_header_rules) == pcb_header_text

    def test_rules_apply_at_any_depth(self):
        """Rules match by tag, not by position in the tree."""
        result = round_trip("(a (b x y))", {"b": 0})
        assert result == "(a (b\n    x\n    y))"

    def test_untagged_list_ignores_rules(self):
        """Lists starting with a list have no tag."""
        assert round_trip("((a) b)", {"a": 0}) == "((a) b)"

    def test_custom_indent(self):
        """Indent string is configurable."""
        result = serialize(parse_string("(a b)"), {"a": 0}, indent="\t")
        assert result == "(a\n\tb)"

    def test_idempotent(self, pcb_header_text, pcb_header_rules):
        """Formatting formatted text changes nothing."""
        once = round_trip(pcb_header_text, pcb_header_rules)
        assert round_trip(once, pcb_header_rules) == once

    @pytest.mark.parametrize(
        ("value", "rules"),
        [
            (EMPTY, None),
            (Atom(""), None),
            (SExp.list("descr", "", "a b", "x(y)", "tab\there"), None),
            (SExp.list("ref", 'b"c', "R1"), None),
            (SList((Atom("a"), EMPTY, SList((EMPTY,)), Atom("b"))), None),
            (to_sexp(["module", "R 1", ["layer", "F.Cu"], ["at", 1.5, -2]]), {"module": 1}),
            (SExp.list("general", None, ["links", 0], ["area", "", 2.0]), {"general": 0, "area": 0}),
            (to_sexp([["a", "b"], "c"]), {"a": 0}),
        ],
    )
    def test_idempotent_built_values(self, value, rules):
        """Written built values read back to text that writes the same."""
        once = serialize(value, rules)
        assert serialize(parse_string(once), rules) == once

    def test_parse_of_formatted_equals_tree(self, footprint_text):
        """Layout never changes the tree."""
        tree = parse_string(footprint_text)
        formatted = to_string_with_rules(tree, KICAD_RULES)
        assert parse_string(formatted) == tree


class TestKicadPreset:
    """Tests for the kicad rules preset."""

    def test_module(self):
        """Footprint name stays on the tag line."""
        text = "(module SILABS_EFM32_QFM24\n  (layer F.Cu))"
        assert round_trip(text, rules_from_preset("kicad")) == text

    def test_pcb_header(self):
        """Version and host stay on the tag line."""
        text = '(kicad_pcb (version 4) (host pcbnew "(2015-05-31 BZR 5692)-product")\n  (general))'
        assert round_trip(text, rules_from_preset("kicad")) == text

    def test_footprint_layout(self, footprint_text):
        """Each footprint item is on its own line."""
        lines = round_trip(footprint_text, rules_from_preset("kicad")).split("\n")
        assert lines[0] == "(module SWITCH_3W_SIDE_MMP221-R"
        assert lines[1] == "  (layer F.Cu)"
        assert len(lines) == 9

    def test_none_preset_is_empty(self):
        """The none preset has no rules."""
        assert len(rules_from_preset("none")) == 0

    def test_preset_copies(self):
        """Changing preset rules leaves the preset untouched."""
        rules = rules_from_preset("kicad")
        rules.insert("module", 5)
        assert KICAD_RULES["module"] == 1

    def test_unknown_preset(self):
        """Unknown preset names are rejected."""
        with pytest.raises(ValueError, match="Unknown rules preset"):
            rules_from_preset("eagle")


class TestRulesObject:
    """Tests for the Rules mapping."""

    def test_insert_and_get(self):
        """Inserted rules are retrievable."""
        rules = Rules()
        rules.insert("kicad_pcb", 2)
        assert rules.get("kicad_pcb") == 2
        assert rules.get("general") is None
        assert "kicad_pcb" in rules

    def test_insert_replaces(self):
        """Inserting a tag again replaces its rule."""
        rules = Rules({"a": 1})
        rules.insert("a", 3)
        assert rules.get("a") == 3
        assert len(rules) == 1

    @pytest.mark.parametrize("arity", [-1, 1.5, "2", True])
    def test_invalid_arity(self, arity):
        """Arity must be a non-negative integer."""
        with pytest.raises(ValueError):
            Rules().insert("a", arity)

    def test_equality(self):
        """Rules compare by content."""
        assert Rules({"a": 1}) == Rules({"a": 1})
        assert Rules({"a": 1}) != Rules({"a": 2})

    def test_copy_is_independent(self):
        """copy() does not share state."""
        rules = Rules({"a": 1})
        clone = rules.copy()
        clone.insert("b", 0)
        assert "b" not in rules

    def test_serializer_accepts_mapping(self):
        """A plain dict works as rules."""
        assert Serializer({"a": 0}).rules == Rules({"a": 0})


class TestQuoting:
    """Tests for atom quoting."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("F.Cu", "F.Cu"),
            ("", '""'),
            ("a b", '"a b"'),
            ("a(b", '"a(b"'),
            ("a)b", '"a)b"'),
            ("two\nlines", '"two\nlines"'),
            ("tab\there", '"tab\there"'),
            ('b"c', 'b"c'),
        ],
    )
    def test_format_atom(self, text, expected):
        """Quote only when a bare atom would read back differently."""
        assert format_atom(text) == expected

    def test_quote_in_quoted_text(self):
        """A quote inside text that needs quoting cannot be written."""
        with pytest.raises(SerializeError):
            to_string(Atom('say "hi" now'))

    def test_leading_quote(self):
        """Text starting with a quote cannot be written."""
        with pytest.raises(SerializeError):
            format_atom('"abc')

    def test_to_string_method(self):
        """SExp.to_string accepts rules."""
        tree = parse_string("(a b c)")
        assert tree.to_string() == "(a b c)"
        assert tree.to_string({"a": 1}) == "(a b\n  c)"
