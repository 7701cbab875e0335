# src/reorder.py
from __future__ import annotations

import logging
from typing import List

from autosave import LabelAutosaveController
from pricing import PricingPositionTracker
from session import EditorSession
from state import (
    Composition, Mode, NetworkError, ValidationError,
    PermuteLabels, BumpVersion, page_order, is_identity,
)

logger = logging.getLogger(__name__)


class ReorderCoordinator:
    """
    Turn a drag over the composed sequence into a page permutation and/or a
    new pricing anchor.

    Steps, all under the processing gate:
      1. flush pending label saves
      2. move the unit in the composed order
      3. persist the pricing anchor right away if it changed
      4. if the page sub-sequence is not the identity, permute the labels
         optimistically and send the permutation to the document store
      5. success bumps the document version; failure reloads labels and
         page count from the stores (no local undo)

    Label saves are held from step 4 until the store answers, so a failed
    reorder never leaves the permuted labels persisted.
    """

    def __init__(
        self,
        session: EditorSession,
        autosave: LabelAutosaveController,
        pricing: PricingPositionTracker,
    ):
        self._session = session
        self._autosave = autosave
        self._pricing = pricing

    async def move(self, src: int, dst: int) -> bool:
        """Drag the unit at visual index `src` onto visual index `dst`. True if anything changed."""
        if src == dst:
            return False
        size = len(Composition.of(self._session.state))
        if not (0 <= src < size and 0 <= dst < size):
            raise ValidationError(f"Cannot move unit {src} to {dst}: sequence has {size} units.")

        async with self._session.exclusive(Mode.REORDERING) as doc_id:
            await self._autosave.flush()
            units = Composition.of(self._session.state).moved(src, dst)

            moved_pricing = False
            anchor = self._pricing.anchor_for(units)
            if anchor is not None:
                moved_pricing = await self._pricing.move_to(anchor)

            order = page_order(units)
            if is_identity(order):
                return moved_pricing

            # Label saves wait until the store has accepted or rejected the permutation.
            self._autosave.hold()
            try:
                self._session.store.apply(PermuteLabels(order))
                try:
                    await self._session.documents.reorder_pages(doc_id, order)
                except NetworkError as e:
                    logger.error("reorder failed for %s: %s", doc_id, e)
                    self._session.notifier.error("Failed to reorder pages")
                    await self._discard_optimistic(doc_id, order)
                    return False

                if not self._session.is_current(doc_id):
                    return False
                self._session.store.apply(BumpVersion())
                self._autosave.mark_structural_change()
            finally:
                self._autosave.release()
            logger.info("reordered %s: %s", doc_id, order)
            return True

    async def _discard_optimistic(self, doc_id: str, order: List[int]) -> None:
        if not self._session.is_current(doc_id):
            return
        try:
            await self._session.reload()
        except NetworkError as e:
            logger.error("reload after failed reorder failed for %s: %s", doc_id, e)
            self._session.notifier.error("Could not reload pages; reopen the document")
            if self._session.is_current(doc_id):
                inverse = [0] * len(order)
                for new, old in enumerate(order):
                    inverse[old] = new
                self._session.store.apply(PermuteLabels(inverse))
