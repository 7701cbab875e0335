import asyncio
import pytest
import fitz  # PyMuPDF

from pdfio import PdfDocumentStore, PdfPreviewRenderer
from state import NetworkError


def make_pdf(tag, pages):
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=200, height=200)
        page.insert_text((20, 60), f"{tag}{i + 1}", fontsize=18)
    data = doc.tobytes()
    doc.close()
    return data


def page_texts(store, document_id):
    doc = store.open_document(document_id)
    try:
        return [doc.load_page(i).get_text().strip() for i in range(doc.page_count)]
    finally:
        doc.close()


@pytest.fixture
def store(tmp_path):
    s = PdfDocumentStore(tmp_path)
    assert asyncio.run(s.create("offer", make_pdf("A", 3))) == 3
    return s


def test_page_count_and_missing_document(store):
    assert asyncio.run(store.page_count("offer")) == 3
    with pytest.raises(NetworkError):
        asyncio.run(store.page_count("missing"))


@pytest.mark.parametrize("after,expected", [
    (0, ["B1", "B2", "A1", "A2", "A3"]),
    (1, ["A1", "B1", "B2", "A2", "A3"]),
    (3, ["A1", "A2", "A3", "B1", "B2"]),
])
def test_insert_every_uploaded_page(store, after, expected):
    result = asyncio.run(store.insert_page("offer", after, make_pdf("B", 2)))
    assert result.total_pages == 5
    assert result.pages_inserted == 2
    assert page_texts(store, "offer") == expected


def test_insert_rejects_bad_upload_and_position(store):
    with pytest.raises(NetworkError):
        asyncio.run(store.insert_page("offer", 1, b"not a pdf"))
    with pytest.raises(NetworkError):
        asyncio.run(store.insert_page("offer", 9, make_pdf("B", 1)))
    assert page_texts(store, "offer") == ["A1", "A2", "A3"]


def test_delete_page(store):
    result = asyncio.run(store.delete_page("offer", 2))
    assert result.total_pages == 2
    assert page_texts(store, "offer") == ["A1", "A3"]


def test_the_only_page_cannot_be_deleted(tmp_path):
    s = PdfDocumentStore(tmp_path)
    asyncio.run(s.create("single", make_pdf("S", 1)))
    with pytest.raises(NetworkError):
        asyncio.run(s.delete_page("single", 1))
    assert asyncio.run(s.page_count("single")) == 1


def test_replace_uses_first_uploaded_page(store):
    asyncio.run(store.replace_page("offer", 2, make_pdf("R", 2)))
    assert page_texts(store, "offer") == ["A1", "R1", "A3"]


def test_reorder_pages(store):
    asyncio.run(store.reorder_pages("offer", [2, 0, 1]))
    assert page_texts(store, "offer") == ["A3", "A1", "A2"]


@pytest.mark.parametrize("order", [[0, 1], [0, 0, 1], [1, 2, 3]])
def test_reorder_requires_full_permutation(store, order):
    with pytest.raises(NetworkError):
        asyncio.run(store.reorder_pages("offer", order))
    assert page_texts(store, "offer") == ["A1", "A2", "A3"]


def test_render_png_and_version_cache(store):
    renderer = PdfPreviewRenderer(store, scale=0.5, cache_pages=4)
    png = renderer.render("offer", 0, 1)
    assert png.startswith(b"\x89PNG")
    assert renderer.render("offer", 0, 1) is png

    asyncio.run(store.replace_page("offer", 1, make_pdf("R", 1)))
    fresh = renderer.render("offer", 1, 1)
    assert fresh is not png
    with pytest.raises(IndexError):
        renderer.render("offer", 1, 4)
