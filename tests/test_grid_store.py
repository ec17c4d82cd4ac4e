from __future__ import annotations

import numpy as np
import pytest

from bead_map.core_types import EXTERNAL_MARKER, TRANSPARENT
from bead_map.grid_store import ColourCounts, GridStore

from conftest import A, B, C, R, assert_counts_consistent, make_grid

X = EXTERNAL_MARKER


def test_counts_skip_external_and_transparent(registry):
    grid = make_grid([[A, A, None], [X, B, A]], registry)
    assert grid.shape == (2, 3)
    assert grid.counts == {A: 3, B: 1}
    assert grid.total == 4
    assert grid.get(1, 0).is_external
    assert grid.get(0, 2).identity == TRANSPARENT
    assert_counts_consistent(grid)


def test_recount_orders_by_first_occurrence(registry):
    grid = make_grid([[C, A], [A, A]], registry)
    assert list(grid.counts) == [C, A]


def test_set_applies_delta(registry):
    grid = make_grid([[A, A], [B, C]], registry)
    assert grid.set(0, 0, C) is True
    assert grid.counts == {A: 1, B: 1, C: 2}
    assert grid.set(1, 0, TRANSPARENT) is True
    assert grid.counts == {A: 1, C: 2}
    assert grid.total == 3
    assert_counts_consistent(grid)


def test_set_same_identity_is_a_no_op(registry):
    grid = make_grid([[A, B]], registry)
    before = grid.counts
    assert grid.set(0, 0, A) is False
    assert grid.counts == before
    assert grid.total == 2


def test_set_refuses_external_cell(registry):
    grid = make_grid([[X, A]], registry)
    with pytest.raises(ValueError):
        grid.set(0, 0, A)
    assert grid.counts == {A: 1}


def test_set_out_of_bounds(registry):
    grid = make_grid([[A]], registry)
    with pytest.raises(IndexError):
        grid.set(1, 0, A)


def test_rewrite_bulk_delta(registry):
    grid = make_grid([[A, B, C], [A, B, R]], registry)
    mask = np.array([[True, True, False], [True, False, False]])
    assert grid.rewrite(mask, R) == 3
    assert grid.counts == {B: 1, C: 1, R: 4}
    assert_counts_consistent(grid)


def test_rewrite_skips_cells_already_holding_identity(registry):
    grid = make_grid([[A, A]], registry)
    assert grid.rewrite(np.ones((1, 2), dtype=bool), A) == 0
    assert grid.counts == {A: 2}


def test_rewrite_rejects_external(registry):
    grid = make_grid([[X, A]], registry)
    with pytest.raises(ValueError):
        grid.rewrite(np.ones((1, 2), dtype=bool), B)
    assert grid.identity_at(0, 1) == A


def test_unknown_hex_rejected(registry):
    with pytest.raises(ValueError):
        make_grid([[A, "#123456"]], registry)


def test_ragged_rows_rejected(registry):
    with pytest.raises(ValueError):
        make_grid([[A, A], [A]], registry)


def test_views_are_read_only(registry):
    grid = make_grid([[A, B]], registry)
    with pytest.raises(ValueError):
        grid.codes[0, 0] = 2
    with pytest.raises(ValueError):
        grid.external[0, 0] = True


def test_to_hex_rows_matches_input(registry):
    rows = [[A, None], [X, C]]
    assert make_grid(rows, registry).to_hex_rows() == rows


def test_rgb_image_uses_background_for_empty_cells(registry):
    grid = make_grid([[R, None]], registry)
    img = grid.rgb_image(background=(1, 2, 3))
    assert img.shape == (1, 2, 3)
    assert tuple(img[0, 0]) == (255, 0, 0)
    assert tuple(img[0, 1]) == (1, 2, 3)


def test_grid_codes_must_be_in_registry(registry):
    with pytest.raises(ValueError):
        GridStore(registry, np.array([[len(registry)]]))


class TestColourCounts:
    def test_remove_to_zero_drops_entry(self):
        counts = ColourCounts()
        counts.add(A, 2)
        counts.remove(A, 2)
        assert A not in counts
        assert counts.total == 0

    def test_remove_more_than_present_raises(self):
        counts = ColourCounts()
        counts.add(A)
        with pytest.raises(ValueError):
            counts.remove(A, 2)
        assert counts.get(A) == 1

    def test_transparent_is_never_counted(self):
        counts = ColourCounts()
        counts.add(TRANSPARENT, 5)
        counts.move(A, TRANSPARENT, 0)
        assert len(counts) == 0
        assert counts.total == 0

    def test_move_between_identities(self):
        counts = ColourCounts()
        counts.add(A, 3)
        counts.move(A, B, 2)
        counts.move(B, B, 1)
        assert counts.as_dict() == {A: 1, B: 2}
        assert counts.total == 3
