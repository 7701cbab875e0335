from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Set


class Mode(Enum):
    IDLE = auto()
    MUTATING = auto()     # insert / replace / delete in flight
    REORDERING = auto()   # drag reorder in flight


class SaveStatus(Enum):
    SAVING = auto()
    SAVED = auto()


class UnitKind(Enum):
    PAGE = auto()
    PRICING = auto()


PRICING_LAST = -1  # anchor meaning "after the last page"


@dataclass
class PageLabel:
    name: str
    indent: int = 0  # 0 = top level, 1 = nested under the previous page

    def as_dict(self) -> Dict[str, object]:
        return {"name": self.name, "indent": self.indent}


@dataclass(frozen=True)
class Unit:
    """One slot of the composed sequence: a page (by index) or the pricing marker."""
    kind: UnitKind
    page_index: int = -1

    @classmethod
    def page(cls, index: int) -> "Unit":
        return cls(UnitKind.PAGE, index)

    @classmethod
    def pricing(cls) -> "Unit":
        return cls(UnitKind.PRICING, -1)

    @property
    def is_pricing(self) -> bool:
        return self.kind is UnitKind.PRICING

    @property
    def key(self) -> str:
        return "pricing" if self.is_pricing else f"page-{self.page_index}"


@dataclass
class PricingState:
    exists: bool = False
    enabled: bool = False
    position: int = PRICING_LAST

    @property
    def active(self) -> bool:
        return self.exists and self.enabled


@dataclass
class RowSave:
    status: SaveStatus
    since: float = 0.0
    token: int = 0  # the save that owns a SAVING row; travels with the row through shifts


@dataclass
class EditorState:
    document_id: Optional[str] = None
    labels: List[PageLabel] = field(default_factory=list)
    page_count: int = 0
    pricing: PricingState = field(default_factory=PricingState)
    selected: Unit = field(default_factory=lambda: Unit.page(0))
    mode: Mode = Mode.IDLE
    version: int = 0  # bumped whenever page bytes change
    dirty_rows: Set[int] = field(default_factory=set)
    array_dirty: bool = False  # whole array needs persisting (structural change)
    row_saves: Dict[int, RowSave] = field(default_factory=dict)
    save_seq: int = 0  # token of the latest MarkSaving

    @property
    def busy(self) -> bool:
        return self.mode is not Mode.IDLE

    @property
    def selected_page(self) -> int:
        """Selected page index, or -1 when the pricing unit is selected."""
        return self.selected.page_index

    def label_dicts(self) -> List[Dict[str, object]]:
        return [lb.as_dict() for lb in self.labels]


def default_label(index: int) -> PageLabel:
    """Default label for the page at 0-based `index`."""
    return PageLabel(name=f"Page {index + 1}", indent=0)
