from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple
from pathlib import Path

from state.protocol import LabelRegistryProtocol
from .normalize import normalize_name, normalize_indent
from .presets import BUILTIN_PRESETS, CUSTOM
from .loader import load_presets

def _lc(x: Any) -> str:
    return str(x).strip().lower()

class LabelRegistry(LabelRegistryProtocol):
    """
    Concrete label registry with:
      - Built-in preset catalogue
      - Optional YAML presets file (appended)
      - Optional extra presets list (for tests)
    """

    def __init__(self, presets_file: Optional[str | Path] = None, extra_presets: Optional[Iterable[str]] = None):
        self._presets: List[str] = []
        self._index: Dict[str, str] = {}

        for label in BUILTIN_PRESETS:
            self._register(label)
        for label in extra_presets or ():
            self._register(label)
        for label in load_presets(presets_file):
            self._register(label)

    @property
    def presets(self) -> List[str]:
        return list(self._presets)

    def is_preset(self, name: str) -> bool:
        return _lc(name) in self._index

    # ----- Protocol methods -----

    def resolve_preset(self, token: str) -> Optional[str]:
        if not token or token == CUSTOM:
            return None
        return self._index.get(_lc(token))

    def validate_name(self, value: Any) -> Tuple[bool, Any, Optional[str]]:
        return normalize_name(value)

    def validate_indent(self, index: int, value: Any) -> Tuple[bool, Any, Optional[str]]:
        ok, indent, err = normalize_indent(value)
        if not ok:
            return ok, indent, err
        if index == 0 and indent == 1:
            return False, None, "The first page cannot be nested."
        return True, indent, None

    # ----- internal plumbing -----

    def _register(self, label: str) -> None:
        key = _lc(label)
        if key in self._index:
            return  # first writer wins
        self._index[key] = label
        self._presets.append(label)
