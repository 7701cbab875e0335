"""
Derive the single visually-ordered sequence of units from editor state.

The pricing unit occupies a visual slot without occupying a page index, so
every lookup that starts from a visual index goes through `Composition`.
Nothing here mutates state; build a fresh `Composition` after every change.
"""
from __future__ import annotations
from typing import List, Optional, Sequence

from .model import EditorState, PricingState, Unit, PRICING_LAST


def resolve_anchor(position: int, page_count: int) -> int:
    """Clamp a stored pricing anchor into [0, page_count]; -1 means last."""
    if position == PRICING_LAST or position >= page_count:
        return page_count
    return max(0, position)


def compose(page_count: int, pricing: PricingState) -> List[Unit]:
    units = [Unit.page(i) for i in range(page_count)]
    if pricing.active:
        units.insert(resolve_anchor(pricing.position, page_count), Unit.pricing())
    return units


def anchor_of(units: Sequence[Unit]) -> Optional[int]:
    """
    Pricing anchor implied by a unit order: pages preceding the pricing unit,
    or PRICING_LAST when it is the final unit. None when no pricing unit.
    """
    for idx, unit in enumerate(units):
        if unit.is_pricing:
            if idx == len(units) - 1:
                return PRICING_LAST
            return sum(1 for u in units[:idx] if not u.is_pricing)
    return None


def page_order(units: Sequence[Unit]) -> List[int]:
    """Page sub-sequence of a unit order, as a permutation of page indices."""
    return [u.page_index for u in units if not u.is_pricing]


def is_identity(order: Sequence[int]) -> bool:
    return all(v == i for i, v in enumerate(order))


def array_move(items: Sequence, src: int, dst: int) -> list:
    out = list(items)
    out.insert(dst, out.pop(src))
    return out


class Composition:
    def __init__(self, page_count: int, pricing: PricingState):
        self.page_count = page_count
        self.pricing = pricing
        self.units: List[Unit] = compose(page_count, pricing)

    @classmethod
    def of(cls, state: EditorState) -> "Composition":
        return cls(len(state.labels), state.pricing)

    def __len__(self) -> int:
        return len(self.units)

    def __iter__(self):
        return iter(self.units)

    def unit_at(self, visual: int) -> Unit:
        if visual < 0 or visual >= len(self.units):
            raise IndexError(f"visual index {visual} out of range (0..{len(self.units) - 1})")
        return self.units[visual]

    def page_index_at(self, visual: int) -> Optional[int]:
        """Underlying page index for a visual slot, None for the pricing slot."""
        unit = self.unit_at(visual)
        return None if unit.is_pricing else unit.page_index

    def visual_index_of(self, unit: Unit) -> int:
        try:
            return self.units.index(unit)
        except ValueError:
            return -1

    def pricing_index(self) -> int:
        return self.visual_index_of(Unit.pricing())

    def moved(self, src: int, dst: int) -> List[Unit]:
        """Unit order after dragging the unit at `src` onto slot `dst`."""
        self.unit_at(src)
        self.unit_at(dst)
        return array_move(self.units, src, dst)
