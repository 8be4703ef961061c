"""Pytest fixtures for kicad-sexp tests."""

import pytest

# KiCad 4 footprint written on a single line
FOOTPRINT_ONE_LINE = (
    "(module SWITCH_3W_SIDE_MMP221-R (layer F.Cu) (descr \"\") "
    "(pad 1 thru_hole rect (size 1.2 1.2) (at -2.5 -1.6 0) (layers *.Cu *.Mask) (drill 0.8)) "
    "(pad 2 thru_hole rect (size 1.2 1.2) (at 0.0 -1.6 0) (layers *.Cu *.Mask) (drill 0.8)) "
    "(pad 3 thru_hole rect (size 1.2 1.2) (at 2.5 -1.6 0) (layers *.Cu *.Mask) (drill 0.8)) "
    "(fp_line (start -4.5 -1.75) (end 4.5 -1.75) (layer F.SilkS) (width 0.127)) "
    "(fp_line (start 4.5 -1.75) (end 4.5 1.75) (layer F.SilkS) (width 0.127)))"
)

# Board header laid out the way pcbnew writes it
PCB_HEADER = """(kicad_pcb (version 4) (host pcbnew "(2015-05-31 BZR 5692)-product")
  (general
    (links 0)
    (no_connects 0)
    (thickness 1.6))
  (layers
    (0 F.Cu signal)
    (31 B.Cu signal)))"""

PCB_HEADER_RULES = {"kicad_pcb": 2, "general": 0, "layers": 0}


@pytest.fixture
def footprint_text():
    """Single-line footprint."""
    return FOOTPRINT_ONE_LINE


@pytest.fixture
def pcb_header_text():
    """Multi-line board header."""
    return PCB_HEADER


@pytest.fixture
def pcb_header_rules():
    """Rules matching PCB_HEADER's layout."""
    return dict(PCB_HEADER_RULES)


@pytest.fixture
def footprint_file(tmp_path):
    """Footprint written to a temporary .kicad_mod file."""
    path = tmp_path / "switch.kicad_mod"
    path.write_text(FOOTPRINT_ONE_LINE, encoding="utf-8")
    return path
