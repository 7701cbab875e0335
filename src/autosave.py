# src/autosave.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Set

from labels import CUSTOM
from session import EditorSession
from state import (
    LabelRegistryProtocol, SaveStatus, ValidationError, NetworkError,
    UpdateLabel, MarkDirty, MarkArrayDirty, MarkSaving, MarkSaved, ClearRowStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class _PendingSave:
    deadline: float
    handle: asyncio.TimerHandle


class LabelAutosaveController:
    """
    Debounced, batched persistence of the page label array.

    - Edits mark their row dirty and re-arm one shared timer: `text_delay`
      for typing, `structural_delay` for indent toggles and shape changes.
    - When the timer fires the whole array is snapshotted and persisted
      (full replace); dirty rows go saving → saved.
    - `flush()` cancels the timer and awaits the save inline. Saves are
      serialized, so a flush also waits for any save already in flight.
    - Failures notify, clear the saving rows and are not retried.
    - `hold()` parks saves while the label array is optimistically
      permuted; `release()` re-arms anything that piled up meanwhile.
    """

    def __init__(
        self,
        session: EditorSession,
        registry: LabelRegistryProtocol,
        text_delay: float = 0.8,
        structural_delay: float = 0.0,
        saved_display: float = 2.0,
    ):
        self._session = session
        self._registry = registry
        self.text_delay = text_delay
        self.structural_delay = structural_delay
        self.saved_display = saved_display
        self._pending: Optional[_PendingSave] = None
        self._inflight: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._held = False

    # ------------- edits -------------

    def rename(self, index: int, name: Any) -> str:
        ok, normalized, err = self._registry.validate_name(name)
        if not ok:
            raise ValidationError(err or f"Invalid label: {name!r}")
        self._session.store.apply(UpdateLabel(index, name=normalized))
        self._mark(index, self.text_delay)
        return normalized

    def choose_preset(self, index: int, token: str) -> Optional[str]:
        """Apply a preset label; the CUSTOM sentinel leaves the row untouched."""
        if token == CUSTOM:
            return None
        label = self._registry.resolve_preset(token)
        if label is None:
            raise ValidationError(f"Unknown preset label: {token}")
        return self.rename(index, label)

    def set_indent(self, index: int, indent: Any) -> int:
        ok, normalized, err = self._registry.validate_indent(index, indent)
        if not ok:
            raise ValidationError(err or f"Invalid indent: {indent!r}")
        self._session.store.apply(UpdateLabel(index, indent=normalized))
        self._mark(index, self.structural_delay)
        return normalized

    def toggle_indent(self, index: int) -> int:
        labels = self._session.state.labels
        if index < 0 or index >= len(labels):
            raise ValidationError(f"Page index {index} out of range.")
        return self.set_indent(index, 0 if labels[index].indent else 1)

    def hold(self) -> None:
        self._held = True

    def release(self) -> None:
        self._held = False
        state = self._session.state
        if state.document_id is not None and (state.dirty_rows or state.array_dirty):
            self._arm(self.structural_delay)

    def mark_structural_change(self) -> None:
        """The array changed shape (insert/delete/reorder); persist it soon."""
        self._session.store.apply(MarkArrayDirty())
        self._arm(self.structural_delay)

    def _mark(self, index: int, delay: float) -> None:
        self._session.store.apply(MarkDirty(index))
        self._arm(delay)

    # ------------- status -------------

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def deadline(self) -> Optional[float]:
        return self._pending.deadline if self._pending else None

    def status(self, index: int) -> Optional[SaveStatus]:
        rs = self._session.state.row_saves.get(index)
        if rs is None:
            return None
        if rs.status is SaveStatus.SAVED and self._session.clock() - rs.since >= self.saved_display:
            return None
        return rs.status

    def expire_saved(self) -> None:
        now = self._session.clock()
        stale = [i for i, rs in self._session.state.row_saves.items()
                 if rs.status is SaveStatus.SAVED and now - rs.since >= self.saved_display]
        if stale:
            self._session.store.apply(ClearRowStatus(stale))

    # ------------- scheduling -------------

    def _arm(self, delay: float) -> None:
        loop = asyncio.get_running_loop()
        self._cancel()
        delay = max(0.0, delay)
        handle = loop.call_later(delay, self._on_timer)
        self._pending = _PendingSave(deadline=loop.time() + delay, handle=handle)
        logger.debug("label save armed in %.3fs", delay)

    def _cancel(self) -> None:
        if self._pending is not None:
            self._pending.handle.cancel()
            self._pending = None

    def _on_timer(self) -> None:
        self._pending = None
        self._inflight = asyncio.ensure_future(self._save())
        self._inflight.add_done_callback(_log_unexpected)

    async def flush(self) -> bool:
        """Cancel the pending timer and save now. No-op (no request) when nothing is dirty."""
        self._cancel()
        return await self._save()

    def close(self) -> None:
        """Teardown: cancel the pending timer outright; in-flight saves finish on their own."""
        self._cancel()

    # ------------- persistence -------------

    async def _save(self) -> bool:
        async with self._lock:
            self.expire_saved()
            state = self._session.state
            doc_id = state.document_id
            rows: Set[int] = set(state.dirty_rows)
            if doc_id is None or (not rows and not state.array_dirty):
                return True
            if self._held:
                logger.debug("label save parked until the reorder settles")
                return True
            payload = state.label_dicts()
            token = self._session.store.apply(MarkSaving(rows)).save_seq
            try:
                await self._session.labels.persist(doc_id, payload)
            except NetworkError as e:
                logger.error("label save failed for %s: %s", doc_id, e)
                if self._session.is_current(doc_id):
                    self._session.store.apply(ClearRowStatus(token=token))
                self._session.notifier.error("Failed to save")
                return False
            if self._session.is_current(doc_id):
                self._session.store.apply(MarkSaved(token, when=self._session.clock()))
            logger.debug("saved %d labels for %s (%d dirty rows)", len(payload), doc_id, len(rows))
            return True


def _log_unexpected(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("label autosave crashed", exc_info=task.exception())
