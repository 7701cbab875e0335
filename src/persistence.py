# src/persistence.py
from __future__ import annotations

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from state import NetworkError


# ---------------------------
# Label store
# ---------------------------

class JsonLabelStore:
    """
    Page labels kept in `<root>/<document_id>.labels.json`.

    Every persist replaces the whole array; there is no per-row patching.

    Typical usage:
        store = JsonLabelStore("proposals/")
        await store.persist("q3-offer", [{"name": "INTRODUCTION", "indent": 0}])
        raw = await store.load("q3-offer")
    """

    def __init__(self, root: str | Path, pretty: bool = True):
        self.root = Path(root)
        self.pretty = pretty

    def path_for(self, document_id: str) -> Path:
        return self.root / f"{sanitize_id(document_id)}.labels.json"

    async def load(self, document_id: str) -> Optional[List[Any]]:
        data = await asyncio.to_thread(_read_json, self.path_for(document_id))
        if data is None:
            return None
        names = data.get("page_names") if isinstance(data, dict) else data
        return names if isinstance(names, list) else None

    async def persist(self, document_id: str, labels: List[Dict[str, Any]]) -> None:
        payload = {"document_id": document_id, "page_names": list(labels)}
        await asyncio.to_thread(_write_json, self.path_for(document_id), payload, self.pretty)

    async def delete(self, document_id: str) -> None:
        """Labels are destroyed together with their document."""
        await asyncio.to_thread(_unlink, self.path_for(document_id))


# ---------------------------
# Pricing store
# ---------------------------

class JsonPricingStore:
    """
    Pricing records kept in `<root>/<document_id>.pricing.json`.

    Only `enabled` and `position` are written; every other key of the record
    (title, line items, tax settings, ...) is carried through untouched.
    """

    def __init__(self, root: str | Path, pretty: bool = True):
        self.root = Path(root)
        self.pretty = pretty

    def path_for(self, document_id: str) -> Path:
        return self.root / f"{sanitize_id(document_id)}.pricing.json"

    async def load(self, document_id: str) -> Optional[Dict[str, Any]]:
        data = await asyncio.to_thread(_read_json, self.path_for(document_id))
        return data if isinstance(data, dict) else None

    async def save(self, document_id: str, enabled: bool, position: int) -> None:
        path = self.path_for(document_id)

        def _merge() -> None:
            record = _read_json(path)
            if not isinstance(record, dict):
                record = {"document_id": document_id}
            record["enabled"] = bool(enabled)
            record["position"] = int(position)
            _write_json(path, record, self.pretty)

        await asyncio.to_thread(_merge)


# ---------------------------
# Helpers
# ---------------------------

def sanitize_id(document_id: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", document_id or "").strip("._")
    if not cleaned:
        raise ValueError(f"Invalid document id: {document_id!r}")
    return cleaned

def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise NetworkError(f"cannot read {path.name}: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise NetworkError(f"{path.name} is not valid JSON: {e}") from e

def _write_json(path: Path, data: Any, pretty: bool) -> None:
    text = json.dumps(data, indent=2, ensure_ascii=False) if pretty else json.dumps(data, separators=(",", ":"))
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    except OSError as e:
        raise NetworkError(f"cannot write {path.name}: {e}") from e

def _unlink(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        raise NetworkError(f"cannot delete {path.name}: {e}") from e
