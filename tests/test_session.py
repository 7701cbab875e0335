import asyncio
import pytest

from state import BusyError, Mode


def test_exclusive_returns_to_idle_after_errors(harness, run):
    async def scenario():
        h = harness(pages=2)
        await h.open()
        with pytest.raises(RuntimeError):
            async with h.session.exclusive(Mode.MUTATING):
                assert h.state.busy
                raise RuntimeError("boom")
        assert h.state.mode is Mode.IDLE
        async with h.session.exclusive(Mode.REORDERING):
            with pytest.raises(BusyError):
                async with h.session.exclusive(Mode.MUTATING):
                    pass
        assert h.state.mode is Mode.IDLE

    run(scenario())


def test_results_for_a_closed_session_are_dropped(harness, run):
    async def scenario():
        h = harness(pages=2, labels=["A", "B"])
        ed = await h.open()
        task = asyncio.ensure_future(ed.insert_page(1, b"%PDF"))
        await asyncio.sleep(0)
        h.session.close()
        assert await task is False
        return h

    h = run(scenario())
    assert h.state.document_id is None
    assert h.state.labels == []
    assert h.notifier.successes == []


def test_no_document_means_no_operations(harness, run):
    async def scenario():
        h = harness(pages=2)
        with pytest.raises(RuntimeError):
            h.session.require_document()
        assert h.session.is_current(None) is False
        # nothing open, nothing to save
        assert await h.editor.done() is None
        return h

    h = run(scenario())
    assert h.label_store.saves == []


def test_reload_replaces_local_labels(harness, run):
    async def scenario():
        h = harness(pages=2, labels=["A", "B"])
        ed = await h.open()
        ed.rename(0, "local")
        h.label_store.stored = [{"name": "server", "indent": 0}]
        h.documents.pages.append("p3")
        await h.session.reload()
        ed.autosave.close()
        return h

    h = run(scenario())
    assert h.names() == ["server", "Page 2", "Page 3"]
    assert h.state.dirty_rows == set()
