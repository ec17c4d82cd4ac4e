from __future__ import annotations

import pytest

from bead_map.merge import colours_by_frequency, merge_similar_colours
from bead_map.palette_data import build_registry

from conftest import A, B, C, R, assert_counts_consistent, flat_grid, make_grid


def test_frequency_biased_merge(registry):
    cells = [A] * 100 + [B] * 5 + [C] * 50
    grid = flat_grid(cells, 5, registry)
    result = merge_similar_colours(grid, 20)
    assert grid.counts == {A: 105, C: 50}
    assert result.absorbed == {B: A}
    assert result.cells_rewritten == 5
    assert (result.colours_before, result.colours_after) == (3, 2)
    assert_counts_consistent(grid)


def test_zero_threshold_is_a_no_op(registry):
    grid = make_grid([[A, B], [C, A]], registry)
    before = grid.to_hex_rows()
    result = merge_similar_colours(grid, 0)
    assert grid.to_hex_rows() == before
    assert result.absorbed == {}


def test_negative_threshold_rejected(registry):
    with pytest.raises(ValueError):
        merge_similar_colours(make_grid([[A]], registry), -1)


def test_distance_equal_to_threshold_stays_apart():
    reg = build_registry([("#000000", "P"), ("#030400", "Q")])
    grid = make_grid([["#000000", "#000000", "#030400"]], reg)
    merge_similar_colours(grid, 5)
    assert grid.counts == {"#000000": 2, "#030400": 1}
    merge_similar_colours(grid, 5.01)
    assert grid.counts == {"#000000": 3}


def test_absorbed_colour_never_absorbs():
    p, q, s = "#000000", "#0a0000", "#140000"
    reg = build_registry([(p, "P"), (q, "Q"), (s, "S")])
    grid = flat_grid([p] * 6 + [q] * 4 + [s] * 2, 4, reg)
    result = merge_similar_colours(grid, 15)
    assert result.absorbed == {q: p}
    assert grid.counts == {p: 10, s: 2}


def test_equal_counts_first_occurrence_survives():
    d, e = "#000000", "#050000"
    reg = build_registry([(d, "D"), (e, "E")])
    grid = make_grid([[e, d]], reg)
    assert colours_by_frequency(grid) == [e, d]
    merge_similar_colours(grid, 10)
    assert grid.counts == {e: 2}


def test_merge_is_idempotent(registry):
    grid = flat_grid([A] * 6 + [B] * 3 + [C] * 3, 4, registry)
    merge_similar_colours(grid, 20)
    once = grid.to_hex_rows()
    second = merge_similar_colours(grid, 20)
    assert grid.to_hex_rows() == once
    assert second.absorbed == {}


def test_larger_threshold_never_leaves_more_colours(registry):
    cells = [A] * 4 + [B] * 3 + [C] * 2 + [R] * 3
    distinct = []
    for t in (0, 10, 20, 200, 500):
        grid = flat_grid(cells, 4, registry)
        merge_similar_colours(grid, t)
        distinct.append(len(grid.counts))
    assert distinct == sorted(distinct, reverse=True)
    assert distinct[-1] == 1


def test_unresolvable_identity_warns_once_and_is_kept(registry, capsys):
    grid = make_grid([[A, A, B], [B, C, C]], registry)
    palette = [registry.get(A), registry.get(C)]
    merge_similar_colours(grid, 50, palette)
    out = capsys.readouterr().out
    assert out.count("[warn]") == 1
    assert B in out
    assert grid.counts[B] == 2


def test_external_and_erased_cells_untouched(registry):
    grid = make_grid([["external", A, None], [B, A, A]], registry)
    merge_similar_colours(grid, 20)
    assert grid.get(0, 0).is_external
    assert grid.get(0, 2).is_transparent
    assert grid.counts == {A: 4}
    assert_counts_consistent(grid)


def test_empty_grid_is_skipped(registry):
    grid = make_grid([[None, "external"]], registry)
    result = merge_similar_colours(grid, 30)
    assert result.colours_before == 0
    assert grid.total == 0
