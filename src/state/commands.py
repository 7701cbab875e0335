from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .model import Mode, PageLabel, Unit


class Command:
    """Marker base class for all commands (intents)."""
    pass


@dataclass
class LoadDocument(Command):
    """Seed the editor for a document; labels must already be normalized to page_count."""
    document_id: str
    page_count: int
    labels: List[PageLabel] = field(default_factory=list)


@dataclass
class CloseDocument(Command):
    """Drop the session; late results for the old document are ignored."""


@dataclass
class SyncPageCount(Command):
    """Pad with default labels or truncate so len(labels) == page_count."""
    page_count: int


@dataclass
class UpdateLabel(Command):
    index: int
    name: Optional[str] = None
    indent: Optional[int] = None


@dataclass
class MarkDirty(Command):
    index: int


@dataclass
class MarkArrayDirty(Command):
    """The whole label array changed shape and must be persisted."""


@dataclass
class MarkSaving(Command):
    """Start a save; its token is left in `save_seq`."""
    rows: Iterable[int]


@dataclass
class MarkSaved(Command):
    """Every row still SAVING under `token` becomes SAVED, wherever it moved to."""
    token: int
    when: float = 0.0


@dataclass
class ClearRowStatus(Command):
    rows: Iterable[int] = ()
    token: Optional[int] = None  # also clear rows still SAVING under this save


@dataclass
class InsertLabels(Command):
    at: int          # number of pages preceding the first inserted page
    count: int
    total_pages: int  # authoritative count reported by the document store


@dataclass
class RemoveLabel(Command):
    index: int
    total_pages: int


@dataclass
class PermuteLabels(Command):
    order: List[int]  # order[new_index] = old_index


@dataclass
class SetPricing(Command):
    exists: Optional[bool] = None
    enabled: Optional[bool] = None
    position: Optional[int] = None


@dataclass
class SelectUnit(Command):
    unit: Unit


@dataclass
class BumpVersion(Command):
    """Page bytes changed; previews must reload."""


@dataclass
class BeginOperation(Command):
    mode: Mode


@dataclass
class EndOperation(Command):
    """Return to Mode.IDLE."""
