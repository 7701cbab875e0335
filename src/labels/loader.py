from __future__ import annotations
from typing import List, Optional
from pathlib import Path

import yaml


def load_presets(path: Optional[str | Path]) -> List[str]:
    """
    Load extra preset labels from a YAML file (optional).
    Accepts either a plain list or a mapping with a `presets` list.
    Returns [] if path is not given or missing.
    """
    if not path:
        return []
    p = Path(path)
    if not p.exists() or not p.is_file():
        return []
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or []
    if isinstance(data, dict):
        data = data.get("presets", [])
    if not isinstance(data, list):
        raise ValueError(f"{p}: expected a list of preset labels")
    presets: List[str] = []
    for item in data:
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"{p}: preset labels must be non-empty strings, got {item!r}")
        presets.append(item.strip())
    return presets
