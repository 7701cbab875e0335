from __future__ import annotations
from typing import Any, List, Optional, Tuple

from state.model import PageLabel, default_label

MAX_NAME_LENGTH = 120


def normalize_name(value: Any) -> Tuple[bool, Any, Optional[str]]:
    if value is None:
        return False, None, "Label is required."
    name = " ".join(str(value).split())
    if not name:
        return False, None, "Label cannot be empty."
    if len(name) > MAX_NAME_LENGTH:
        return False, None, f"Label is longer than {MAX_NAME_LENGTH} characters."
    return True, name, None

def normalize_indent(value: Any) -> Tuple[bool, Any, Optional[str]]:
    if value in (0, 1) and not isinstance(value, float):
        return True, int(value), None
    s = str(value).strip().lower()
    if s in {"0", "no", "false", "top"}:
        return True, 0, None
    if s in {"1", "yes", "true", "nested"}:
        return True, 1, None
    return False, None, f"Invalid indent: {value}"

def normalize_page_names(raw: Any, count: int) -> List[PageLabel]:
    """
    Coerce stored labels into exactly `count` PageLabel rows.
    Accepts the legacy list of strings, the current list of {name, indent}
    dicts, or anything else (treated as missing). Missing or empty names get
    the default "Page N"; indent is coerced to 0/1.
    """
    items = raw if isinstance(raw, list) else []
    out: List[PageLabel] = []
    for i in range(max(0, count)):
        item = items[i] if i < len(items) else None
        if isinstance(item, dict) and "name" in item:
            ok, indent, _ = normalize_indent(item.get("indent") or 0)
            out.append(PageLabel(name=item.get("name") or default_label(i).name,
                                 indent=indent if ok else 0))
        elif isinstance(item, str):
            out.append(PageLabel(name=item if item.strip() else default_label(i).name, indent=0))
        else:
            out.append(default_label(i))
    if out:
        out[0].indent = 0
    return out
