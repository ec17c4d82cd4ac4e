from __future__ import annotations

import pytest

from bead_map.core_types import TRANSPARENT, TRANSPARENT_CODE
from bead_map.palette_data import PALETTE, build_registry

from conftest import A, B, C, R


def test_default_palette_is_unique_and_complete():
    registry = build_registry()
    assert len(registry) == len(PALETTE)
    assert len(set(registry.identities)) == len(registry)
    assert all(c.identity == c.identity.lower() for c in registry)


def test_codes_follow_registry_order(registry):
    assert registry.code_of(A) == 0
    assert registry.code_of(R) == 3
    assert registry.identity_at(2) == C
    assert registry.code_of(TRANSPARENT) == TRANSPARENT_CODE
    assert registry.identity_at(TRANSPARENT_CODE) == TRANSPARENT
    with pytest.raises(ValueError):
        registry.code_of("#123456")


def test_subset_keeps_registry_order(registry):
    assert [c.identity for c in registry.subset([R, A, "#123456"])] == [A, R]


def test_rgb_array_is_read_only(registry):
    assert registry.rgb_array.shape == (5, 3)
    with pytest.raises(ValueError):
        registry.rgb_array[0, 0] = 1


def test_bad_and_duplicate_entries_skipped(capsys):
    registry = build_registry([("#FF0000", "R1"), ("zzz", "Z"), ("#ff0000", "R2"), (B, "B")])
    assert registry.identities == (R, B)
    assert registry.key_of[R] == "R1"
    assert capsys.readouterr().out.count("[warn]") == 2
