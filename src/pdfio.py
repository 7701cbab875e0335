# src/pdfio.py
from __future__ import annotations

import asyncio
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple, TypeVar

import fitz  # PyMuPDF

from persistence import sanitize_id
from state import NetworkError, PageMutation

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------
# Document store
# ---------------------------

class PdfDocumentStore:
    """
    Local document store over a directory of `<document_id>.pdf` files.

    - page_count(id)
    - insert_page(id, after, data)   # every page of `data`; after=0 inserts at start
    - delete_page(id, number)        # 1-based; the only page cannot be deleted
    - replace_page(id, number, data) # first page of `data` replaces page `number`
    - reorder_pages(id, order)       # order[new] = old, 0-based full permutation

    PyMuPDF work runs in a worker thread; one lock serializes writers.
    Every failure surfaces as NetworkError, like a rejected request would.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self._lock = threading.Lock()

    def path_for(self, document_id: str) -> Path:
        return self.root / f"{sanitize_id(document_id)}.pdf"

    # ------------- reads -------------

    async def page_count(self, document_id: str) -> int:
        return await asyncio.to_thread(self._read, document_id, lambda doc: doc.page_count)

    def open_document(self, document_id: str) -> fitz.Document:
        path = self.path_for(document_id)
        if not path.exists():
            raise NetworkError(f"Document not found: {document_id}")
        try:
            return fitz.open(path)
        except (RuntimeError, ValueError) as e:
            raise NetworkError(f"Cannot open {path.name}: {e}") from e

    # ------------- mutations -------------

    async def insert_page(self, document_id: str, after: int, data: bytes) -> PageMutation:
        def _insert(doc: fitz.Document) -> PageMutation:
            total = doc.page_count
            if after < 0 or after > total:
                raise NetworkError(f"Invalid position. PDF has {total} pages.")
            src = _open_upload(data)
            try:
                inserted = src.page_count
                doc.insert_pdf(src, from_page=0, to_page=inserted - 1, start_at=after if after < total else -1)
            finally:
                src.close()
            return PageMutation(total_pages=doc.page_count, pages_inserted=inserted)

        result = await asyncio.to_thread(self._edit, document_id, _insert)
        logger.info("%s: inserted %d page(s) after %d", document_id, result.pages_inserted, after)
        return result

    async def delete_page(self, document_id: str, number: int) -> PageMutation:
        def _delete(doc: fitz.Document) -> PageMutation:
            total = doc.page_count
            if number < 1 or number > total:
                raise NetworkError(f"Invalid page number. PDF has {total} pages.")
            if total <= 1:
                raise NetworkError("Cannot delete the only remaining page.")
            doc.delete_page(number - 1)
            return PageMutation(total_pages=doc.page_count)

        return await asyncio.to_thread(self._edit, document_id, _delete)

    async def replace_page(self, document_id: str, number: int, data: bytes) -> None:
        def _replace(doc: fitz.Document) -> None:
            total = doc.page_count
            if number < 1 or number > total:
                raise NetworkError(f"Invalid page number. PDF has {total} pages.")
            src = _open_upload(data)
            try:
                doc.insert_pdf(src, from_page=0, to_page=0, start_at=number - 1)
            finally:
                src.close()
            doc.delete_page(number)  # the old page slid one slot down

        await asyncio.to_thread(self._edit, document_id, _replace)

    async def reorder_pages(self, document_id: str, order: Sequence[int]) -> None:
        order = [int(i) for i in order]

        def _reorder(doc: fitz.Document) -> bool:
            total = doc.page_count
            if len(order) != total:
                raise NetworkError(f"page_order length ({len(order)}) must match PDF page count ({total})")
            if sorted(order) != list(range(total)):
                raise NetworkError("page_order must contain each page index exactly once (0-based)")
            if all(v == i for i, v in enumerate(order)):
                return False
            doc.select(order)
            return True

        changed = await asyncio.to_thread(self._edit, document_id, _reorder)
        if changed:
            logger.info("%s: pages reordered %s", document_id, order)

    async def create(self, document_id: str, data: bytes) -> int:
        """Store a new document from PDF bytes; returns its page count."""
        def _create() -> int:
            doc = _open_upload(data)
            try:
                count = doc.page_count
                with self._lock:
                    _write_bytes(self.path_for(document_id), doc.tobytes(garbage=3, deflate=True))
                return count
            finally:
                doc.close()

        return await asyncio.to_thread(_create)

    # ------------- internals -------------

    def _read(self, document_id: str, fn: Callable[[fitz.Document], T]) -> T:
        doc = self.open_document(document_id)
        try:
            return fn(doc)
        finally:
            doc.close()

    def _edit(self, document_id: str, fn: Callable[[fitz.Document], T]) -> T:
        """Open, apply `fn`, write back atomically. Nothing is written if `fn` raises."""
        with self._lock:
            doc = self.open_document(document_id)
            try:
                result = fn(doc)
                payload = doc.tobytes(garbage=3, deflate=True)
            except (RuntimeError, ValueError) as e:
                raise NetworkError(f"PDF operation failed: {e}") from e
            finally:
                doc.close()
            _write_bytes(self.path_for(document_id), payload)
            return result


def _open_upload(data: bytes) -> fitz.Document:
    if not data:
        raise NetworkError("Uploaded file is empty.")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise NetworkError(f"Uploaded file is not a readable PDF: {e}") from e
    if doc.page_count < 1:
        doc.close()
        raise NetworkError("Uploaded PDF has no pages.")
    return doc

def _write_bytes(path: Path, payload: bytes) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(payload)
        os.replace(tmp, path)
    except OSError as e:
        raise NetworkError(f"cannot write {path.name}: {e}") from e


# ---------------------------
# Preview renderer
# ---------------------------

@dataclass
class _RenderCache:
    # key: (document_id, version, page_index, scale_bucket)
    images: Dict[Tuple[str, int, int, float], bytes] = field(default_factory=dict)
    order: List[Tuple[str, int, int, float]] = field(default_factory=list)
    capacity: int = 12

    def get(self, key):
        return self.images.get(key)

    def put(self, key, img: bytes):
        if key in self.images:
            # move to end
            self.order.remove(key)
            self.order.append(key)
            self.images[key] = img
            return
        self.images[key] = img
        self.order.append(key)
        while len(self.order) > self.capacity:
            k = self.order.pop(0)
            self.images.pop(k, None)

    def drop_older(self, document_id: str, version: int):
        """Forget every image rendered from older bytes of this document."""
        stale = [k for k in self.order if k[0] == document_id and k[1] < version]
        for k in stale:
            self.order.remove(k)
            self.images.pop(k, None)


class PdfPreviewRenderer:
    """
    PNG previews of single pages at a fixed scale (1.0 = 72dpi).
    The document version is part of the cache key, so bumping it after any
    byte change forces a fresh render.
    """

    def __init__(self, documents: PdfDocumentStore, scale: float = 1.5, cache_pages: int = 12):
        self._documents = documents
        self.scale = max(0.25, min(scale, 8.0))
        self._cache = _RenderCache(capacity=cache_pages)
        self._lock = threading.Lock()

    def render(self, document_id: str, version: int, page_number: int) -> bytes:
        scale_b = round(self.scale, 3)
        key = (document_id, version, page_number - 1, scale_b)
        with self._lock:
            self._cache.drop_older(document_id, version)
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        doc = self._documents.open_document(document_id)
        try:
            if page_number < 1 or page_number > doc.page_count:
                raise IndexError(f"page {page_number} out of range (1..{doc.page_count})")
            page = doc.load_page(page_number - 1)
            pix = page.get_pixmap(matrix=fitz.Matrix(scale_b, scale_b), alpha=False)
            img = pix.tobytes("png")
        finally:
            doc.close()

        with self._lock:
            self._cache.put(key, img)
        return img
