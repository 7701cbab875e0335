from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple


@dataclass
class PageMutation:
    """What the document store reports after a page-count-changing call."""
    total_pages: int
    pages_inserted: int = 0


class DocumentStore(Protocol):
    """
    Owner of the page bytes. Page numbers are 1-based, `after` counts the
    pages preceding an insert (0 = at start). Failures raise NetworkError.
    """
    async def page_count(self, document_id: str) -> int: ...
    async def insert_page(self, document_id: str, after: int, data: bytes) -> PageMutation: ...
    async def delete_page(self, document_id: str, number: int) -> PageMutation: ...
    async def replace_page(self, document_id: str, number: int, data: bytes) -> None: ...
    async def reorder_pages(self, document_id: str, order: Sequence[int]) -> None: ...


class LabelStore(Protocol):
    """Full-array replace only; position-indexed data has no per-row key."""
    async def load(self, document_id: str) -> Optional[List[Any]]: ...
    async def persist(self, document_id: str, labels: List[Dict[str, Any]]) -> None: ...


class PricingStore(Protocol):
    """
    Narrow view of the pricing subsystem: only `enabled` and `position` are
    read or written. `load` returns None when no pricing record exists.
    """
    async def load(self, document_id: str) -> Optional[Dict[str, Any]]: ...
    async def save(self, document_id: str, enabled: bool, position: int) -> None: ...


class ConfirmPrompt(Protocol):
    async def __call__(self, title: str, message: str, confirm_label: str = "OK",
                       destructive: bool = False) -> bool: ...


class Notifier(Protocol):
    def success(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class PreviewRenderer(Protocol):
    """Renders a 1-based page; `version` invalidates anything cached for older bytes."""
    def render(self, document_id: str, version: int, page_number: int) -> bytes: ...


class LabelRegistryProtocol(Protocol):
    """
    Minimal contract used by the autosave controller to stay decoupled from
    the preset catalogue.

    Implementations must provide:
      - resolve_preset(token) -> canonical preset label | None
      - validate_name(value) -> (ok, normalized, error)
      - validate_indent(index, value) -> (ok, normalized, error)
    """
    def resolve_preset(self, token: str) -> Optional[str]: ...
    def validate_name(self, value: Any) -> Tuple[bool, Any, Optional[str]]: ...
    def validate_indent(self, index: int, value: Any) -> Tuple[bool, Any, Optional[str]]: ...
