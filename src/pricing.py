# src/pricing.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from session import EditorSession
from state import (
    NetworkError, PRICING_LAST, PricingState, SetPricing, Unit,
    anchor_of, resolve_anchor,
)

logger = logging.getLogger(__name__)


class PricingPositionTracker:
    """
    Owns the pricing unit's anchor and enabled flag.

    The anchor counts the pages preceding the unit (PRICING_LAST = after all
    pages). It is stored as-is and only clamped when resolved against the
    current page count, so a stale anchor never raises. Disabling keeps the
    anchor and the rest of the pricing record so a later enable restores it.
    Position writes go straight to the pricing store (no debounce).
    """

    def __init__(self, session: EditorSession):
        self._session = session

    @property
    def pricing(self) -> PricingState:
        return self._session.state.pricing

    @property
    def position(self) -> int:
        return self.pricing.position

    @property
    def resolved_position(self) -> int:
        return resolve_anchor(self.pricing.position, self._session.state.page_count)

    async def load(self) -> PricingState:
        doc_id = self._session.require_document()
        data = await self._session.pricing.load(doc_id)
        if not self._session.is_current(doc_id):
            return self.pricing
        if data is None:
            self._session.store.apply(SetPricing(exists=False, enabled=False, position=PRICING_LAST))
        else:
            position = data.get("position")
            self._session.store.apply(SetPricing(
                exists=True,
                enabled=bool(data.get("enabled", False)),
                position=PRICING_LAST if position is None else max(PRICING_LAST, int(position)),
            ))
        return self.pricing

    async def enable(self) -> bool:
        """Add (first time, anchored last) or re-enable (previous anchor kept)."""
        if self.pricing.active:
            return False
        before = replace(self.pricing)
        position = before.position if before.exists else PRICING_LAST
        self._session.store.apply(SetPricing(exists=True, enabled=True, position=position))
        if not await self._persist(before):
            return False
        self._session.notifier.success("Pricing page added")
        return True

    async def disable(self) -> bool:
        if not self.pricing.active:
            return False
        ok = await self._session.confirm(
            "Remove pricing page?",
            "This will disable the pricing page. Your pricing data will be preserved "
            "and can be re-enabled later.",
            confirm_label="Remove",
            destructive=True,
        )
        if not ok:
            return False
        before = replace(self.pricing)
        self._session.store.apply(SetPricing(enabled=False))
        if not await self._persist(before):
            return False
        self._session.notifier.success("Pricing page removed")
        return True

    def anchor_for(self, units: Sequence[Unit]) -> Optional[int]:
        """Anchor implied by a (reordered) unit list, None if it has no pricing unit."""
        return anchor_of(units)

    async def move_to(self, position: int) -> bool:
        """Persist a new anchor immediately. Returns True if it changed and was stored."""
        if not self.pricing.active or position == self.pricing.position:
            return False
        before = replace(self.pricing)
        self._session.store.apply(SetPricing(position=position))
        logger.debug("pricing anchor %d -> %d", before.position, position)
        return await self._persist(before)

    async def _persist(self, before: PricingState) -> bool:
        doc_id = self._session.require_document()
        current = self.pricing
        try:
            await self._session.pricing.save(doc_id, current.enabled, current.position)
        except NetworkError as e:
            logger.error("pricing save failed for %s: %s", doc_id, e)
            if self._session.is_current(doc_id):
                self._session.store.apply(SetPricing(
                    exists=before.exists, enabled=before.enabled, position=before.position,
                ))
            self._session.notifier.error("Failed to save pricing")
            return False
        return True
