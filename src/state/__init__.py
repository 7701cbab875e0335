"""
Public API for the state package.

Import from here everywhere else, so you can refactor internals freely:
    from state import (
        EditorState, PageLabel, PricingState, Unit, Mode, SaveStatus,
        LoadDocument, UpdateLabel, InsertLabels, RemoveLabel, PermuteLabels,
        Composition, reduce, Store, ValidationError, NetworkError
    )
"""
from .model import (
    EditorState, PageLabel, PricingState, RowSave, Unit, UnitKind,
    Mode, SaveStatus, PRICING_LAST, default_label,
)
from .commands import (
    Command,
    LoadDocument, CloseDocument, SyncPageCount, UpdateLabel,
    MarkDirty, MarkArrayDirty, MarkSaving, MarkSaved, ClearRowStatus,
    InsertLabels, RemoveLabel, PermuteLabels, SetPricing, SelectUnit,
    BumpVersion, BeginOperation, EndOperation,
)
from .composition import (
    Composition, compose, resolve_anchor, anchor_of, page_order, is_identity, array_move,
)
from .errors import (
    ComposerError, ValidationError, BusyError, NetworkError, ConsistencyError,
)
from .protocol import (
    PageMutation, DocumentStore, LabelStore, PricingStore,
    ConfirmPrompt, Notifier, PreviewRenderer, LabelRegistryProtocol,
)
from .reducer import reduce
from .store import Store

__all__ = [
    # model
    "EditorState", "PageLabel", "PricingState", "RowSave", "Unit", "UnitKind",
    "Mode", "SaveStatus", "PRICING_LAST", "default_label",
    # commands
    "Command",
    "LoadDocument", "CloseDocument", "SyncPageCount", "UpdateLabel",
    "MarkDirty", "MarkArrayDirty", "MarkSaving", "MarkSaved", "ClearRowStatus",
    "InsertLabels", "RemoveLabel", "PermuteLabels", "SetPricing", "SelectUnit",
    "BumpVersion", "BeginOperation", "EndOperation",
    # composition
    "Composition", "compose", "resolve_anchor", "anchor_of", "page_order",
    "is_identity", "array_move",
    # errors
    "ComposerError", "ValidationError", "BusyError", "NetworkError", "ConsistencyError",
    # protocols & reducer & store
    "PageMutation", "DocumentStore", "LabelStore", "PricingStore",
    "ConfirmPrompt", "Notifier", "PreviewRenderer", "LabelRegistryProtocol",
    "reduce", "Store",
]
