# src/editor.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from autosave import LabelAutosaveController
from labels import LabelRegistry
from operations import PageOperations
from pricing import PricingPositionTracker
from reorder import ReorderCoordinator
from session import EditorSession
from state import (
    Composition, EditorState, LabelRegistryProtocol, PreviewRenderer,
    SaveStatus, SelectUnit, Unit,
)

logger = logging.getLogger(__name__)


# -------------------------
# Row view model
# -------------------------

@dataclass
class RowView:
    key: str                 # "page-N" or "pricing"
    visual_number: int       # 1-based position in the composed list
    page_index: int          # -1 for the pricing row
    name: str
    indent: int
    status: Optional[SaveStatus]
    selected: bool
    can_delete: bool
    can_indent: bool
    busy: bool               # structural operation in flight; page controls disabled


class RowBuilder:
    def __init__(self, autosave: LabelAutosaveController, pricing_title: str = "Pricing"):
        self.autosave = autosave
        self.pricing_title = pricing_title

    def build(self, state: EditorState) -> List[RowView]:
        rows: List[RowView] = []
        can_delete = state.page_count > 1
        for visual, unit in enumerate(Composition.of(state)):
            if unit.is_pricing:
                rows.append(RowView(
                    key=unit.key, visual_number=visual + 1, page_index=-1,
                    name=self.pricing_title, indent=0, status=None,
                    selected=state.selected == unit,
                    can_delete=False, can_indent=False, busy=state.busy,
                ))
                continue
            label = state.labels[unit.page_index]
            rows.append(RowView(
                key=unit.key,
                visual_number=visual + 1,
                page_index=unit.page_index,
                name=label.name,
                indent=label.indent,
                status=self.autosave.status(unit.page_index),
                selected=state.selected == unit,
                can_delete=can_delete and not state.busy,
                can_indent=unit.page_index > 0,
                busy=state.busy,
            ))
        return rows


# -------------------------
# Toasts
# -------------------------

class ToastNotifier:
    """Notification sink keeping the latest messages until they expire."""

    def __init__(self, ttl: float = 2.5, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock
        self._toasts: List[Tuple[str, str, float]] = []  # (kind, message, expires_at)

    def success(self, message: str) -> None:
        self._push("success", message)

    def error(self, message: str) -> None:
        self._push("error", message)

    def _push(self, kind: str, message: str) -> None:
        self._toasts.append((kind, message, self._clock() + self.ttl))
        logger.debug("toast[%s] %s", kind, message)

    def active(self, limit: int = 3) -> List[Tuple[str, str]]:
        now = self._clock()
        self._toasts = [t for t in self._toasts if t[2] > now]
        return [(k, m) for (k, m, _) in self._toasts[-limit:]]


# -------------------------
# Editor facade
# -------------------------

class PageEditor:
    """
    One editing session over a paginated document with an optional pricing
    section spliced into the page list.

    Typical usage:
        editor = PageEditor(session, registry)
        await editor.open("q3-offer")
        editor.rename(0, "INTRODUCTION")
        await editor.move(3, 1)
        await editor.done()
    """

    def __init__(
        self,
        session: EditorSession,
        registry: Optional[LabelRegistryProtocol] = None,
        renderer: Optional[PreviewRenderer] = None,
        text_delay: float = 0.8,
        structural_delay: float = 0.0,
        saved_display: float = 2.0,
    ):
        self.session = session
        self.registry = registry or LabelRegistry()
        self.renderer = renderer
        self.autosave = LabelAutosaveController(
            session, self.registry,
            text_delay=text_delay,
            structural_delay=structural_delay,
            saved_display=saved_display,
        )
        self.pricing = PricingPositionTracker(session)
        self.pages = PageOperations(session, self.autosave)
        self.reorderer = ReorderCoordinator(session, self.autosave, self.pricing)
        self.rows_builder = RowBuilder(self.autosave)

    @property
    def state(self) -> EditorState:
        return self.session.state

    # ------------- lifecycle -------------

    async def open(self, document_id: str) -> EditorState:
        if self.session.document_id not in (None, document_id):
            await self.close()
        await self.session.load(document_id)
        await self.pricing.load()
        return self.state

    async def done(self) -> None:
        """Persist everything still pending before leaving the editor."""
        await self.autosave.flush()

    async def close(self) -> None:
        await self.done()
        self.autosave.close()
        self.session.close()

    # ------------- view -------------

    def composition(self) -> Composition:
        return Composition.of(self.state)

    def rows(self) -> List[RowView]:
        return self.rows_builder.build(self.state)

    def preview(self, unit: Optional[Unit] = None) -> Optional[bytes]:
        """PNG of the selected (or given) page; None for the pricing unit."""
        unit = unit or self.state.selected
        if unit.is_pricing or self.renderer is None:
            return None
        doc_id = self.session.require_document()
        return self.renderer.render(doc_id, self.state.version, unit.page_index + 1)

    # ------------- selection -------------

    def select(self, unit: Unit) -> None:
        self.session.store.apply(SelectUnit(unit))

    def select_visual(self, visual: int) -> Unit:
        unit = self.composition().unit_at(visual)
        self.select(unit)
        return unit

    def go_prev(self) -> Unit:
        comp = self.composition()
        idx = comp.visual_index_of(self.state.selected)
        if idx > 0:
            self.select(comp.unit_at(idx - 1))
        return self.state.selected

    def go_next(self) -> Unit:
        comp = self.composition()
        idx = comp.visual_index_of(self.state.selected)
        if 0 <= idx < len(comp) - 1:
            self.select(comp.unit_at(idx + 1))
        return self.state.selected

    # ------------- labels -------------

    def rename(self, index: int, name: str) -> str:
        return self.autosave.rename(index, name)

    def choose_preset(self, index: int, token: str) -> Optional[str]:
        return self.autosave.choose_preset(index, token)

    def toggle_indent(self, index: int) -> int:
        return self.autosave.toggle_indent(index)

    # ------------- pages -------------

    async def insert_page(self, after: int, data: bytes) -> bool:
        return await self.pages.insert(after, data)

    async def replace_page(self, index: int, data: bytes) -> bool:
        return await self.pages.replace(index, data)

    async def delete_page(self, index: int) -> bool:
        return await self.pages.delete(index)

    async def move(self, src: int, dst: int) -> bool:
        return await self.reorderer.move(src, dst)

    # ------------- pricing -------------

    async def add_pricing(self) -> bool:
        added = await self.pricing.enable()
        if added:
            self.select(Unit.pricing())
        return added

    async def remove_pricing(self) -> bool:
        removed = await self.pricing.disable()
        if removed:
            self.select(Unit.page(0))
        return removed

