from __future__ import annotations

import numpy as np
import pytest

from bead_map import BeadPatternEngine
from bead_map import tool_mode as tm
from bead_map.core_types import TRANSPARENT, hex_to_rgb
from bead_map.errors import (
    NO_REMAP_TARGET,
    NOT_EXCLUDED,
    EmptyPaletteError,
    InvariantViolation,
    PreconditionNotMet,
)

from conftest import A, B, C, G, R, assert_counts_consistent


def _image(rows):
    """One pixel per future grid cell."""
    return np.array([[hex_to_rgb(h) for h in row] for row in rows], dtype=np.uint8)


IMG = _image([[A, A, B], [R, R, B]])
OTHER = _image([[C, C], [C, R]])


@pytest.fixture
def engine(registry):
    eng = BeadPatternEngine(registry)
    eng.regenerate(IMG, n=3, threshold=0)
    return eng


def test_queries_before_generation(registry):
    eng = BeadPatternEngine(registry)
    for call in (eng.current_grid, eng.current_counts, eng.current_total, eng.refresh):
        with pytest.raises(PreconditionNotMet):
            call()
    with pytest.raises(PreconditionNotMet):
        eng.exclude(A)
    with pytest.raises(PreconditionNotMet):
        eng.erase(0, 0)


def test_regenerate(registry):
    eng = BeadPatternEngine(registry)
    result = eng.regenerate(IMG, n=3, threshold=0)
    assert result.grid.shape == (2, 3)
    assert result.counts == {A: 2, B: 2, R: 2}
    assert result.initial_colours == frozenset({A, B, R})
    assert eng.current_total() == 6
    assert_counts_consistent(eng.current_grid())


def test_regenerate_merges_similar_colours(registry):
    eng = BeadPatternEngine(registry)
    result = eng.regenerate(IMG, n=3, threshold=30)
    assert eng.current_counts() == {A: 4, R: 2}
    assert result.merge.absorbed == {B: A}
    assert result.initial_colours == frozenset({A, R})


def test_empty_palette_is_refused_and_state_kept(engine):
    grid = engine.current_grid()
    before = engine.selections
    with pytest.raises(EmptyPaletteError):
        engine.set_selections({})
    assert engine.current_grid() is grid
    assert engine.selections == before


def test_empty_palette_before_any_grid(registry):
    eng = BeadPatternEngine(registry, selections={A: False, R: False})
    assert eng.active_palette() == []
    with pytest.raises(EmptyPaletteError):
        eng.regenerate(IMG, n=3)
    with pytest.raises(PreconditionNotMet):
        eng.current_grid()


def test_set_selections_counts_dropped_keys(engine):
    dropped = engine.set_selections({A: True, R: True, "nope": True})
    assert dropped == 1
    assert engine.dropped_selection_keys == 1
    assert [c.identity for c in engine.active_palette()] == [A, R]
    assert engine.current_counts() == {A: 4, R: 2}


def test_exclude_then_include(engine):
    result = engine.exclude(B)
    assert result.replacement == A
    assert engine.current_counts() == {A: 4, R: 2}
    assert engine.excluded == frozenset({B})
    assert B not in {c.identity for c in engine.active_palette()}

    engine.include(B)
    assert engine.excluded == frozenset()
    assert engine.current_counts() == {A: 2, B: 2, R: 2}


def test_include_of_active_colour_is_refused(engine):
    with pytest.raises(InvariantViolation) as exc_info:
        engine.include(A)
    assert exc_info.value.reason == NOT_EXCLUDED


def test_include_all(engine):
    assert engine.include_all() is None
    engine.exclude(B)
    engine.exclude(R)
    result = engine.include_all()
    assert result is not None
    assert engine.excluded == frozenset()
    assert result.counts == {A: 2, B: 2, R: 2}


def test_last_remaining_colour_cannot_be_excluded(engine):
    engine.exclude(B)
    engine.exclude(R)
    with pytest.raises(InvariantViolation) as exc_info:
        engine.exclude(A)
    assert exc_info.value.reason == NO_REMAP_TARGET
    assert engine.current_counts() == {A: 6}


def test_same_image_keeps_exclusions(engine):
    engine.exclude(B)
    result = engine.regenerate(IMG, n=3, threshold=0)
    assert engine.excluded == frozenset({B})
    assert result.counts == {A: 4, R: 2}
    assert result.initial_colours == frozenset({A, R})


def test_new_image_clears_exclusions(engine):
    engine.exclude(B)
    engine.regenerate(OTHER, n=2, threshold=0)
    assert engine.excluded == frozenset()
    assert engine.current_counts() == {C: 3, R: 1}


def test_edits_keep_counts_consistent(engine):
    assert engine.erase(0, 0) == 2
    assert engine.replace_colour(R, G) == 2
    assert engine.paint(0, 0, C) is True
    assert engine.current_counts() == {C: 1, B: 2, G: 2}
    assert engine.auto_remove_background() == 2
    assert_counts_consistent(engine.current_grid())


def test_load_grid_and_refresh(registry):
    eng = BeadPatternEngine(registry)
    rows = [["external", A, A], [R, C, A]]
    eng.load_grid(rows)
    assert eng.current_counts() == {A: 3, R: 1, C: 1}
    assert eng.initial_colours == frozenset({A, R, C})
    assert eng.exclude(R).replacement == A
    eng.include(R)
    assert eng.current_grid().to_hex_rows() == rows


def test_erase_tool_click(engine):
    engine.toggle_erase_mode()
    before = engine.click(0, 0)
    assert before.identity == A
    assert engine.current_grid().identity_at(0, 1) == TRANSPARENT
    assert engine.tool == tm.NEUTRAL


def test_erase_tool_ignores_empty_cells(engine):
    engine.erase(0, 0)
    engine.toggle_erase_mode()
    engine.click(0, 0)
    assert isinstance(engine.tool, tm.Erase)
    assert engine.current_total() == 4


def test_colour_replace_flow(engine):
    engine.toggle_colour_replace()
    engine.click(1, 0)
    assert tm.awaiting_replace_target(engine.tool)
    assert engine.choose_colour(C) == 2
    assert engine.current_counts() == {A: 2, B: 2, C: 2}
    assert engine.tool == tm.NEUTRAL


def test_manual_colouring_flow(engine):
    engine.choose_colour(G)
    assert engine.tool == tm.ManualColouring(selected=G)
    engine.click(0, 2)
    engine.choose_colour(TRANSPARENT)
    engine.click(1, 2)
    assert engine.current_counts() == {A: 2, G: 1, R: 2}


def test_exclude_resets_tool(engine):
    engine.toggle_manual_colouring()
    engine.exclude(B)
    assert engine.tool == tm.NEUTRAL


def test_reports(registry):
    eng = BeadPatternEngine(registry)
    eng.regenerate(_image([[C, G, A, R], [R, R, G, A]]), n=4, threshold=0)
    assert eng.colours_by_hue() == [R, G, A, C]
    assert eng.usage_report()[0] == (R, "R", 3)
    assert eng.summary() == {
        "width": 4,
        "height": 2,
        "colours": 4,
        "beads": 8,
        "excluded": 0,
    }


def test_all_invalid_selection_keys_enable_everything(registry):
    eng = BeadPatternEngine(registry, selections={"#ffffff": True, "nope": False})
    assert eng.dropped_selection_keys == 2
    assert [c.identity for c in eng.active_palette()] == [A, B, C, R, G]
    assert eng.set_selections({"bad": True}) == 1
    assert len(eng.active_palette()) == 5


def test_loaded_grid_keeps_erased_cells_across_regeneration(registry):
    eng = BeadPatternEngine(registry)
    rows = [[A, None, A], [R, A, "external"]]
    eng.load_grid(rows)
    eng.exclude(R)
    eng.include(R)
    assert eng.current_grid().to_hex_rows() == rows
    assert eng.current_total() == 4
    assert eng.initial_colours == frozenset({A, R})
    eng.refresh()
    assert eng.current_grid().to_hex_rows() == rows


def test_include_resets_tool(engine):
    engine.exclude(B)
    engine.choose_colour(R)
    assert isinstance(engine.tool, tm.ManualColouring)
    engine.include(B)
    assert engine.tool == tm.NEUTRAL


def test_region_select_and_paint(engine):
    with pytest.raises(PreconditionNotMet):
        engine.paint_region(C)
    engine.toggle_region_select()
    engine.click(1, 2)
    assert engine.selected_region() is None
    engine.click(0, 1)
    assert engine.selected_region() == (0, 1, 1, 2)
    assert engine.paint_region(C) == 4
    assert engine.current_counts() == {A: 1, C: 4, R: 1}
    assert_counts_consistent(engine.current_grid())
