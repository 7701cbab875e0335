"""
Public API for the labels package.
Usage:
    from labels import LabelRegistry, normalize_page_names
"""
from .registry import LabelRegistry
from .normalize import normalize_page_names, normalize_name, normalize_indent
from .presets import CUSTOM, BUILTIN_PRESETS

__all__ = [
    "LabelRegistry", "normalize_page_names", "normalize_name", "normalize_indent",
    "CUSTOM", "BUILTIN_PRESETS",
]
