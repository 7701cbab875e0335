from __future__ import annotations
from typing import Dict, List, Set
import copy

from .model import (
    EditorState, PageLabel, RowSave, SaveStatus, Mode, Unit, default_label,
)
from .commands import (
    Command, LoadDocument, CloseDocument, SyncPageCount, UpdateLabel,
    MarkDirty, MarkArrayDirty, MarkSaving, MarkSaved, ClearRowStatus,
    InsertLabels, RemoveLabel, PermuteLabels, SetPricing, SelectUnit,
    BumpVersion, BeginOperation, EndOperation,
)
from .errors import BusyError, ValidationError


def reduce(state: EditorState, cmd: Command) -> EditorState:
    """
    Pure state transformer. Never mutates the input state.
    Raises ValidationError on impossible transitions and BusyError when a
    structural operation is started while another one is in flight.
    """
    s = copy.deepcopy(state)

    # --- Session ---
    if isinstance(cmd, LoadDocument):
        # A reload of the same document keeps pricing, selection and the version counter.
        same = s.document_id == cmd.document_id
        fresh = EditorState(document_id=cmd.document_id)
        if same:
            fresh.pricing = s.pricing
            fresh.selected = s.selected
            fresh.version = s.version
            fresh.mode = s.mode
            fresh.save_seq = s.save_seq
        s = fresh
        s.labels = [PageLabel(lb.name, lb.indent) for lb in cmd.labels]
        s.page_count = cmd.page_count
        _fit_labels(s, cmd.page_count)
        _pin_first(s)
        _clamp_selection(s)
        return s

    if isinstance(cmd, CloseDocument):
        return EditorState()

    if isinstance(cmd, SyncPageCount):
        if cmd.page_count < 0:
            raise ValidationError("Page count cannot be negative.")
        before = len(s.labels)
        s.page_count = cmd.page_count
        _fit_labels(s, cmd.page_count)
        if len(s.labels) != before:
            s.array_dirty = True
        _drop_rows_beyond(s, cmd.page_count)
        _clamp_selection(s)
        return s

    # --- Label edits ---
    if isinstance(cmd, UpdateLabel):
        _check_index(s, cmd.index)
        label = s.labels[cmd.index]
        if cmd.name is not None:
            label.name = cmd.name
        if cmd.indent is not None:
            if cmd.indent not in (0, 1):
                raise ValidationError(f"Indent must be 0 or 1, got {cmd.indent}.")
            if cmd.index == 0 and cmd.indent == 1:
                raise ValidationError("The first page cannot be nested.")
            label.indent = cmd.indent
        return s

    # --- Autosave bookkeeping ---
    if isinstance(cmd, MarkDirty):
        _check_index(s, cmd.index)
        s.dirty_rows.add(cmd.index)
        return s

    if isinstance(cmd, MarkArrayDirty):
        s.array_dirty = True
        return s

    if isinstance(cmd, MarkSaving):
        rows = set(cmd.rows)
        s.dirty_rows -= rows
        s.array_dirty = False
        s.save_seq += 1
        for i in rows:
            s.row_saves[i] = RowSave(SaveStatus.SAVING, token=s.save_seq)
        return s

    if isinstance(cmd, MarkSaved):
        for i in _saving_under(s, cmd.token):
            s.row_saves[i] = RowSave(SaveStatus.SAVED, since=cmd.when)
        return s

    if isinstance(cmd, ClearRowStatus):
        rows = set(cmd.rows)
        if cmd.token is not None:
            rows.update(_saving_under(s, cmd.token))
        for i in rows:
            s.row_saves.pop(i, None)
        return s

    # --- Structural mutations (always in lockstep with the document store) ---
    if isinstance(cmd, InsertLabels):
        at = max(0, min(cmd.at, len(s.labels)))
        fresh = [default_label(at + k) for k in range(max(0, cmd.count))]
        s.labels[at:at] = fresh
        s.dirty_rows = _shift_set(s.dirty_rows, at, len(fresh))
        s.row_saves = _shift_dict(s.row_saves, at, len(fresh))
        s.page_count = cmd.total_pages
        _fit_labels(s, cmd.total_pages)
        _drop_rows_beyond(s, cmd.total_pages)
        _pin_first(s)
        s.array_dirty = True
        if fresh:
            s.selected = Unit.page(min(at, s.page_count - 1))
        return s

    if isinstance(cmd, RemoveLabel):
        _check_index(s, cmd.index)
        del s.labels[cmd.index]
        s.dirty_rows = _shift_set(s.dirty_rows - {cmd.index}, cmd.index + 1, -1)
        s.row_saves.pop(cmd.index, None)
        s.row_saves = _shift_dict(s.row_saves, cmd.index + 1, -1)
        s.page_count = cmd.total_pages
        _fit_labels(s, cmd.total_pages)
        _drop_rows_beyond(s, cmd.total_pages)
        _pin_first(s)
        s.array_dirty = True
        _clamp_selection(s)
        return s

    if isinstance(cmd, PermuteLabels):
        order = list(cmd.order)
        if sorted(order) != list(range(len(s.labels))):
            raise ValidationError("Order must contain each page index exactly once.")
        s.labels = [s.labels[old] for old in order]
        new_of = {old: new for new, old in enumerate(order)}
        s.dirty_rows = {new_of[i] for i in s.dirty_rows}
        s.row_saves = {new_of[i]: rs for i, rs in s.row_saves.items() if i in new_of}
        if not s.selected.is_pricing and s.selected.page_index in new_of:
            s.selected = Unit.page(new_of[s.selected.page_index])
        if _pin_first(s):
            s.array_dirty = True
        return s

    # --- Pricing ---
    if isinstance(cmd, SetPricing):
        if cmd.exists is not None:
            s.pricing.exists = cmd.exists
        if cmd.enabled is not None:
            s.pricing.enabled = cmd.enabled
        if cmd.position is not None:
            if cmd.position < -1:
                raise ValidationError(f"Invalid pricing position: {cmd.position}")
            s.pricing.position = cmd.position
        if s.selected.is_pricing and not s.pricing.active:
            s.selected = Unit.page(0)
        return s

    # --- Selection & preview (not dirty) ---
    if isinstance(cmd, SelectUnit):
        if cmd.unit.is_pricing:
            if not s.pricing.active:
                raise ValidationError("Pricing section is not enabled.")
        else:
            _check_index(s, cmd.unit.page_index)
        s.selected = cmd.unit
        return s

    if isinstance(cmd, BumpVersion):
        s.version += 1
        return s

    # --- Processing gate ---
    if isinstance(cmd, BeginOperation):
        if cmd.mode is Mode.IDLE:
            raise ValueError("BeginOperation requires a non-idle mode.")
        if s.mode is not Mode.IDLE:
            raise BusyError(f"Another page operation is in progress ({s.mode.name.lower()}).")
        s.mode = cmd.mode
        return s

    if isinstance(cmd, EndOperation):
        s.mode = Mode.IDLE
        return s

    # Unhandled command → no-op
    return s


# ----- helpers -----

def _check_index(s: EditorState, index: int) -> None:
    if index < 0 or index >= len(s.labels):
        raise ValidationError(f"Page index {index} out of range (document has {len(s.labels)} pages).")

def _fit_labels(s: EditorState, count: int) -> None:
    while len(s.labels) < count:
        s.labels.append(default_label(len(s.labels)))
    del s.labels[count:]

def _pin_first(s: EditorState) -> bool:
    """Keep the first page at top level; returns True if it had to change."""
    if s.labels and s.labels[0].indent != 0:
        s.labels[0].indent = 0
        return True
    return False

def _drop_rows_beyond(s: EditorState, count: int) -> None:
    s.dirty_rows = {i for i in s.dirty_rows if i < count}
    s.row_saves = {i: rs for i, rs in s.row_saves.items() if i < count}

def _clamp_selection(s: EditorState) -> None:
    if s.selected.is_pricing:
        return
    if s.selected.page_index > s.page_count - 1:
        s.selected = Unit.page(max(0, s.page_count - 1))

def _saving_under(s: EditorState, token: int) -> List[int]:
    return [i for i, rs in s.row_saves.items()
            if rs.status is SaveStatus.SAVING and rs.token == token]

def _shift_set(rows: Set[int], start: int, delta: int) -> Set[int]:
    return {(i + delta if i >= start else i) for i in rows}

def _shift_dict(rows: Dict[int, RowSave], start: int, delta: int) -> Dict[int, RowSave]:
    return {(i + delta if i >= start else i): rs for i, rs in rows.items()}
