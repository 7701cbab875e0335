# src/operations.py
from __future__ import annotations

import logging

from autosave import LabelAutosaveController
from session import EditorSession
from state import (
    Mode, NetworkError, ValidationError, ConsistencyError,
    InsertLabels, RemoveLabel, SyncPageCount, BumpVersion,
)

logger = logging.getLogger(__name__)


class PageOperations:
    """
    Insert / replace / delete a single page through the document store.

    Each operation holds the processing gate, flushes pending label saves,
    then calls the store. On success the label array is spliced in lockstep
    and the page count is taken from the store's answer; on failure the user
    is notified and local state is resynchronized from the stores.
    """

    def __init__(self, session: EditorSession, autosave: LabelAutosaveController):
        self._session = session
        self._autosave = autosave

    @property
    def can_delete(self) -> bool:
        return self._session.state.page_count > 1

    # ------------- insert -------------

    async def insert(self, after: int, data: bytes) -> bool:
        """Insert the pages of `data` so that `after` pages precede them (0 = at start)."""
        self._check_position(after)
        async with self._session.exclusive(Mode.MUTATING) as doc_id:
            await self._autosave.flush()
            self._check_position(after)
            expected_before = self._session.state.page_count
            try:
                result = await self._session.documents.insert_page(doc_id, after, data)
            except NetworkError as e:
                return await self._failed(doc_id, "Failed to insert page", e)
            if not self._session.is_current(doc_id):
                return False
            delta = result.total_pages - expected_before
            if result.pages_inserted and delta != result.pages_inserted:
                self._log_mismatch(ConsistencyError(expected_before + result.pages_inserted, result.total_pages))
            self._session.store.apply(InsertLabels(at=after, count=max(0, delta), total_pages=result.total_pages))
            self._session.store.apply(BumpVersion())
            self._autosave.mark_structural_change()
        self._session.notifier.success("Page inserted" if delta <= 1 else f"{delta} pages inserted")
        logger.info("inserted %d page(s) after %d in %s", delta, after, doc_id)
        return True

    # ------------- replace -------------

    async def replace(self, index: int, data: bytes) -> bool:
        """Swap the bytes of one page; labels and page count stay as they are."""
        self._check_index(index)
        async with self._session.exclusive(Mode.MUTATING) as doc_id:
            await self._autosave.flush()
            self._check_index(index)
            try:
                await self._session.documents.replace_page(doc_id, index + 1, data)
            except NetworkError as e:
                return await self._failed(doc_id, "Failed to replace page", e)
            if not self._session.is_current(doc_id):
                return False
            self._session.store.apply(BumpVersion())
        self._session.notifier.success(f"Page {index + 1} replaced")
        return True

    # ------------- delete -------------

    async def delete(self, index: int) -> bool:
        """
        Delete one page after an explicit confirmation. The only remaining
        page is refused locally and no request is sent.
        """
        if not self.can_delete:
            self._session.notifier.error("Cannot delete the only remaining page")
            return False
        self._check_index(index)
        ok = await self._session.confirm(
            "Delete page?",
            f"This will permanently remove page {index + 1} from the document. This cannot be undone.",
            confirm_label="Delete",
            destructive=True,
        )
        if not ok:
            return False
        async with self._session.exclusive(Mode.MUTATING) as doc_id:
            await self._autosave.flush()
            # another operation may have finished while the prompt was open
            if not self.can_delete:
                self._session.notifier.error("Cannot delete the only remaining page")
                return False
            self._check_index(index)
            expected = self._session.state.page_count - 1
            try:
                result = await self._session.documents.delete_page(doc_id, index + 1)
            except NetworkError as e:
                return await self._failed(doc_id, "Failed to delete page", e)
            if not self._session.is_current(doc_id):
                return False
            if result.total_pages != expected:
                self._log_mismatch(ConsistencyError(expected, result.total_pages))
            self._session.store.apply(RemoveLabel(index, total_pages=result.total_pages))
            self._session.store.apply(BumpVersion())
            self._autosave.mark_structural_change()
        self._session.notifier.success(f"Page {index + 1} deleted")
        logger.info("deleted page %d of %s", index + 1, doc_id)
        return True

    # ------------- helpers -------------

    def _check_position(self, after: int) -> None:
        count = self._session.state.page_count
        if after < 0 or after > count:
            raise ValidationError(f"Invalid position. Document has {count} pages.")

    def _check_index(self, index: int) -> None:
        count = self._session.state.page_count
        if index < 0 or index >= count:
            raise ValidationError(f"Invalid page number. Document has {count} pages.")

    def _log_mismatch(self, err: ConsistencyError) -> None:
        # The store is authoritative; the label array is padded or trimmed to its count.
        logger.warning("page count mismatch: %s", err)

    async def _failed(self, doc_id: str, message: str, err: NetworkError) -> bool:
        logger.error("%s (%s): %s", message, doc_id, err)
        self._session.notifier.error(f"{message}: {err}" if str(err) else message)
        if self._session.is_current(doc_id):
            try:
                await self._resync()
            except NetworkError as e:
                logger.error("resync after failure failed for %s: %s", doc_id, e)
        return False

    async def _resync(self) -> None:
        doc_id = self._session.require_document()
        count = await self._session.documents.page_count(doc_id)
        if self._session.is_current(doc_id) and count != self._session.state.page_count:
            self._log_mismatch(ConsistencyError(self._session.state.page_count, count))
            self._session.store.apply(SyncPageCount(count))
            self._session.store.apply(BumpVersion())
            self._autosave.mark_structural_change()
