# src/session.py
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from labels import normalize_page_names
from state import (
    Store, EditorState, Mode, LoadDocument, CloseDocument, BeginOperation, EndOperation,
    DocumentStore, LabelStore, PricingStore, ConfirmPrompt, Notifier,
)

logger = logging.getLogger(__name__)


class EditorSession:
    """
    Everything the editor components share for one open document: the state
    store, the external collaborators and the processing gate.

    Results of awaited calls are applied only while `is_current(doc_id)`
    holds for the id captured before the await; a closed or switched session
    silently drops them.
    """

    def __init__(
        self,
        documents: DocumentStore,
        labels: LabelStore,
        pricing: PricingStore,
        notifier: Notifier,
        confirm: ConfirmPrompt,
        store: Optional[Store] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.documents = documents
        self.labels = labels
        self.pricing = pricing
        self.notifier = notifier
        self.confirm = confirm
        self.store = store or Store()
        self.clock = clock

    @property
    def state(self) -> EditorState:
        return self.store.state

    @property
    def document_id(self) -> Optional[str]:
        return self.store.state.document_id

    def require_document(self) -> str:
        doc_id = self.document_id
        if doc_id is None:
            raise RuntimeError("No document is open.")
        return doc_id

    def is_current(self, document_id: Optional[str]) -> bool:
        return document_id is not None and self.document_id == document_id

    # ------------- lifecycle -------------

    async def load(self, document_id: str) -> EditorState:
        """Fetch page count and labels from the stores and seed the state."""
        count = await self.documents.page_count(document_id)
        raw = await self.labels.load(document_id)
        labels = normalize_page_names(raw, count)
        state = self.store.apply(LoadDocument(document_id, count, labels))
        logger.debug("loaded %s: %d pages", document_id, count)
        return state

    async def reload(self) -> Optional[EditorState]:
        """Replace local labels and page count with the stores' authoritative copy."""
        doc_id = self.require_document()
        count = await self.documents.page_count(doc_id)
        raw = await self.labels.load(doc_id)
        if not self.is_current(doc_id):
            logger.debug("dropping reload for stale session %s", doc_id)
            return None
        state = self.store.apply(LoadDocument(doc_id, count, normalize_page_names(raw, count)))
        logger.info("resynchronized %s from stores (%d pages)", doc_id, count)
        return state

    def close(self) -> None:
        self.store.apply(CloseDocument())

    # ------------- processing gate -------------

    @asynccontextmanager
    async def exclusive(self, mode: Mode) -> AsyncIterator[str]:
        """
        Hold the processing gate for one structural operation.
        Raises BusyError when another one is in flight; always returns to IDLE.
        """
        doc_id = self.require_document()
        self.store.apply(BeginOperation(mode))
        try:
            yield doc_id
        finally:
            if self.is_current(doc_id):
                self.store.apply(EndOperation())
