# bead_map/selections.py
from __future__ import annotations

"""
Persisted palette selections: a JSON object {"#rrggbb": true|false, ...}.

Keys must be strict '#rrggbb' hex strings naming a registry colour; anything
else is dropped and counted. If nothing valid survives, every colour is enabled.
"""

import json
from pathlib import Path
from typing import Any, Mapping, Tuple

from .core_types import Selections, is_strict_hex, normalise_hex
from .palette_data import PaletteRegistry
from .utils import warn


def all_enabled(registry: PaletteRegistry) -> Selections:
    return {identity: True for identity in registry.identities}


def validate_selections(
    raw: Mapping[str, Any], registry: PaletteRegistry
) -> Tuple[Selections, int]:
    """Return (valid selections, number of dropped entries)."""
    valid: Selections = {}
    dropped = 0
    for key, value in raw.items():
        if not isinstance(key, str) or not is_strict_hex(key):
            dropped += 1
            continue
        identity = normalise_hex(key)
        if identity not in registry:
            dropped += 1
            continue
        valid[identity] = bool(value)
    return valid, dropped


def load_selections(path: Path, registry: PaletteRegistry) -> Tuple[Selections, int]:
    """
    Read selections from `path`.

    Missing files give all-enabled selections with zero dropped. Unreadable
    or non-object JSON counts as one dropped entry and falls back the same way.
    """
    if not path.exists():
        return all_enabled(registry), 0
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        warn(f"selections: cannot read {path}: {exc}")
        return all_enabled(registry), 1
    if not isinstance(raw, dict):
        warn(f"selections: {path} does not hold a JSON object")
        return all_enabled(registry), 1

    valid, dropped = validate_selections(raw, registry)
    if dropped:
        warn(f"selections: dropped {dropped} invalid key(s) from {path.name}")
    if not valid:
        return all_enabled(registry), dropped
    return valid, dropped


def save_selections(path: Path, selections: Mapping[str, bool]) -> Path:
    path.write_text(json.dumps(dict(selections), indent=2, sort_keys=True), encoding="utf-8")
    return path


__all__ = ["all_enabled", "validate_selections", "load_selections", "save_selections"]
