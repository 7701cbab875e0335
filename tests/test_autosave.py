import asyncio
import pytest

from labels import CUSTOM
from state import SaveStatus, ValidationError


def test_typing_coalesces_into_one_save(harness, run):
    async def scenario():
        h = harness(pages=3)
        ed = await h.open()
        ed.rename(0, "I")
        ed.rename(0, "In")
        ed.rename(0, "Intro")
        assert h.label_store.saves == []
        assert ed.autosave.pending
        await asyncio.sleep(0.15)
        assert not ed.autosave.pending
        return h

    h = run(scenario())
    assert len(h.label_store.saves) == 1
    assert h.label_store.saves[0] == [
        {"name": "Intro", "indent": 0},
        {"name": "Page 2", "indent": 0},
        {"name": "Page 3", "indent": 0},
    ]


def test_saved_status_expires_after_display_interval(harness, run):
    async def scenario():
        h = harness(pages=2)
        ed = await h.open()
        ed.rename(1, "Scope")
        await ed.done()
        assert ed.autosave.status(1) is SaveStatus.SAVED
        assert ed.autosave.status(0) is None
        h.clock.now += 2.5
        assert ed.autosave.status(1) is None
        ed.autosave.expire_saved()
        assert h.state.row_saves == {}

    run(scenario())


def test_flush_with_nothing_dirty_sends_nothing(harness, run):
    async def scenario():
        h = harness(pages=2)
        ed = await h.open()
        assert await ed.autosave.flush() is True
        return h

    h = run(scenario())
    assert h.label_store.saves == []


def test_failed_save_clears_status_and_notifies(harness, run):
    async def scenario():
        h = harness(pages=2)
        ed = await h.open()
        h.label_store.fail = True
        ed.rename(0, "Intro")
        ok = await ed.autosave.flush()
        assert ok is False
        assert ed.autosave.status(0) is None
        # not retried
        await ed.autosave.flush()
        return h

    h = run(scenario())
    assert len(h.label_store.saves) == 1
    assert h.notifier.errors == ["Failed to save"]


def test_indent_toggle_saves_without_text_delay(harness, run):
    async def scenario():
        h = harness(pages=3)
        ed = await h.open()
        assert ed.toggle_indent(2) == 1
        await asyncio.sleep(0.01)
        return h

    h = run(scenario())
    assert h.label_store.saves[-1][2] == {"name": "Page 3", "indent": 1}


def test_first_page_indent_is_rejected(harness, run):
    async def scenario():
        h = harness(pages=2)
        ed = await h.open()
        with pytest.raises(ValidationError):
            ed.toggle_indent(0)
        assert not ed.autosave.pending

    run(scenario())


def test_empty_label_is_rejected_before_any_save(harness, run):
    async def scenario():
        h = harness(pages=2, labels=["Intro", "Scope"])
        ed = await h.open()
        with pytest.raises(ValidationError):
            ed.rename(0, "   ")
        await ed.done()
        return h

    h = run(scenario())
    assert h.label_store.saves == []
    assert h.names() == ["Intro", "Scope"]


def test_presets_and_custom_sentinel(harness, run):
    async def scenario():
        h = harness(pages=2, labels=["Intro", "Scope"])
        ed = await h.open()
        assert ed.choose_preset(1, "faq") == "FAQ"
        assert ed.choose_preset(0, CUSTOM) is None
        with pytest.raises(ValidationError):
            ed.choose_preset(0, "no such preset")
        assert h.names() == ["Intro", "FAQ"]

    run(scenario())


def test_edit_during_inflight_save_is_saved_next(harness, run):
    async def scenario():
        h = harness(pages=2)
        ed = await h.open()
        h.label_store.delay = 0.05
        ed.rename(0, "A")
        first = asyncio.ensure_future(ed.autosave.flush())
        await asyncio.sleep(0)
        ed.rename(0, "B")
        await ed.done()
        assert await first is True
        return h

    h = run(scenario())
    assert [s[0]["name"] for s in h.label_store.saves] == ["A", "B"]
    assert h.label_store.stored[0]["name"] == "B"


@pytest.mark.parametrize("fail,expected", [(False, SaveStatus.SAVED), (True, None)])
def test_save_outcome_reaches_row_shifted_by_a_delete(harness, run, fail, expected):
    async def scenario():
        h = harness(pages=3)
        ed = await h.open()
        h.documents.delay = 0.05
        h.label_store.delay = 0.05
        h.label_store.fail = fail
        deleting = asyncio.ensure_future(ed.delete_page(0))
        await asyncio.sleep(0.01)
        ed.toggle_indent(2)
        await asyncio.sleep(0.01)
        assert ed.autosave.status(2) is SaveStatus.SAVING
        assert await deleting is True
        await ed.done()
        return ed, h

    ed, h = run(scenario())
    assert h.names() == ["Page 2", "Page 3"]
    assert h.state.labels[1].indent == 1
    assert ed.autosave.status(1) is expected
    assert all(rs.status is not SaveStatus.SAVING for rs in h.state.row_saves.values())


def test_negative_delay_arms_for_now(harness, run):
    async def scenario():
        h = harness(pages=2)
        ed = await h.open()
        ed.autosave.text_delay = -0.5
        before = asyncio.get_running_loop().time()
        ed.rename(1, "Scope")
        assert before <= ed.autosave.deadline <= asyncio.get_running_loop().time()
        await asyncio.sleep(0.01)
        return h

    h = run(scenario())
    assert h.label_store.saves[0][1]["name"] == "Scope"
