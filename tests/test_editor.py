
from editor import ToastNotifier
from state import Unit


class RecordingRenderer:
    def __init__(self):
        self.calls = []

    def render(self, document_id, version, page_number):
        self.calls.append((document_id, version, page_number))
        return b"\x89PNG fake"


def test_rows_follow_the_composed_order(harness, run):
    async def scenario():
        h = harness(pages=3, labels=["A", {"name": "B", "indent": 1}, "C"],
                    pricing={"enabled": True, "position": 2})
        ed = await h.open()
        ed.rename(0, "Intro")
        return ed.rows()

    rows = run(scenario())
    assert [r.visual_number for r in rows] == [1, 2, 3, 4]
    assert [r.key for r in rows] == ["page-0", "page-1", "pricing", "page-2"]
    assert [r.page_index for r in rows] == [0, 1, -1, 2]
    assert rows[0].name == "Intro" and rows[0].status is None
    assert rows[1].indent == 1
    assert rows[0].can_indent is False and rows[1].can_indent is True
    assert rows[2].can_delete is False and rows[3].can_delete is True
    assert rows[0].selected is True


def test_prev_next_walk_through_pricing(harness, run):
    async def scenario():
        h = harness(pages=2, pricing={"enabled": True, "position": 1})
        ed = await h.open()
        seen = [ed.state.selected]
        for _ in range(3):
            seen.append(ed.go_next())
        assert ed.go_prev() == Unit.pricing()
        ed.select_visual(0)
        assert ed.go_prev() == Unit.page(0)
        return seen

    seen = run(scenario())
    assert seen == [Unit.page(0), Unit.pricing(), Unit.page(1), Unit.page(1)]


def test_preview_uses_version_and_skips_pricing(harness, run):
    async def scenario():
        h = harness(pages=2, pricing={"enabled": True, "position": -1})
        await h.open()
        renderer = RecordingRenderer()
        h.editor.renderer = renderer
        assert h.editor.preview() == b"\x89PNG fake"
        await h.editor.replace_page(1, b"%PDF")
        h.editor.select(Unit.page(1))
        h.editor.preview()
        assert h.editor.preview(Unit.pricing()) is None
        return renderer

    renderer = run(scenario())
    assert renderer.calls == [("doc-1", 0, 1), ("doc-1", 1, 2)]


def test_close_flushes_pending_edits(harness, run):
    async def scenario():
        h = harness(pages=2)
        ed = await h.open()
        ed.rename(1, "Scope")
        await ed.close()
        assert not ed.autosave.pending
        return h

    h = run(scenario())
    assert h.label_store.stored[1] == {"name": "Scope", "indent": 0}
    assert h.session.document_id is None


def test_toasts_expire():
    now = [0.0]
    toasts = ToastNotifier(ttl=2.0, clock=lambda: now[0])
    toasts.success("Page inserted")
    now[0] = 1.0
    toasts.error("Failed to save")
    assert toasts.active() == [("success", "Page inserted"), ("error", "Failed to save")]
    now[0] = 2.5
    assert toasts.active() == [("error", "Failed to save")]
    for i in range(5):
        toasts.success(f"t{i}")
    assert len(toasts.active(limit=3)) == 3
