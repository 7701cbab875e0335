# tests/conftest.py
import asyncio
import copy
import sys
from pathlib import Path
import pytest

# Make "src" importable
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from editor import PageEditor
from labels import LabelRegistry
from session import EditorSession
from state import NetworkError, PageMutation


# ---------------------------
# Recording fakes of the external collaborators
# ---------------------------

class FakeDocumentStore:
    """Pages are tracked by identity so reorders and inserts can be asserted."""

    def __init__(self, pages=3):
        self.pages = [f"p{i + 1}" for i in range(pages)]
        self.calls = []
        self.fail = set()
        self.upload_pages = 1
        self.report_total = None  # force a disagreeing total_pages
        self.delay = 0.0  # seconds each page mutation takes
        self._uploads = 0

    def _check(self, name):
        if name in self.fail:
            raise NetworkError(f"{name} failed")

    async def page_count(self, document_id):
        await asyncio.sleep(0)
        self._check("page_count")
        return len(self.pages)

    async def insert_page(self, document_id, after, data):
        self.calls.append(("insert_page", after))
        await asyncio.sleep(self.delay)
        self._check("insert_page")
        self._uploads += 1
        new = [f"new{self._uploads}.{k}" for k in range(self.upload_pages)]
        self.pages[after:after] = new
        total = self.report_total if self.report_total is not None else len(self.pages)
        return PageMutation(total_pages=total, pages_inserted=len(new))

    async def delete_page(self, document_id, number):
        self.calls.append(("delete_page", number))
        await asyncio.sleep(self.delay)
        self._check("delete_page")
        del self.pages[number - 1]
        total = self.report_total if self.report_total is not None else len(self.pages)
        return PageMutation(total_pages=total)

    async def replace_page(self, document_id, number, data):
        self.calls.append(("replace_page", number))
        await asyncio.sleep(self.delay)
        self._check("replace_page")
        self.pages[number - 1] = self.pages[number - 1] + "'"

    async def reorder_pages(self, document_id, order):
        self.calls.append(("reorder_pages", list(order)))
        await asyncio.sleep(self.delay)
        self._check("reorder_pages")
        self.pages = [self.pages[i] for i in order]


class FakeLabelStore:
    def __init__(self, labels=None):
        self.stored = copy.deepcopy(labels)
        self.saves = []
        self.fail = False
        self.delay = 0.0

    async def load(self, document_id):
        await asyncio.sleep(0)
        return copy.deepcopy(self.stored)

    async def persist(self, document_id, labels):
        self.saves.append(copy.deepcopy(labels))
        await asyncio.sleep(self.delay)
        if self.fail:
            raise NetworkError("label store unavailable")
        self.stored = copy.deepcopy(labels)


class FakePricingStore:
    def __init__(self, record=None):
        self.record = copy.deepcopy(record)
        self.saves = []
        self.fail = False

    async def load(self, document_id):
        await asyncio.sleep(0)
        return copy.deepcopy(self.record)

    async def save(self, document_id, enabled, position):
        self.saves.append((enabled, position))
        await asyncio.sleep(0)
        if self.fail:
            raise NetworkError("pricing store unavailable")
        record = self.record or {"title": "Project Investment"}
        record.update(enabled=enabled, position=position)
        self.record = record


class RecordingNotifier:
    def __init__(self):
        self.successes = []
        self.errors = []

    def success(self, message):
        self.successes.append(message)

    def error(self, message):
        self.errors.append(message)


class ScriptedConfirm:
    def __init__(self, answer=True):
        self.answer = answer
        self.prompts = []
        self.delays = []  # per-prompt seconds before answering

    async def __call__(self, title, message, confirm_label="OK", destructive=False):
        self.prompts.append((title, destructive))
        if self.delays:
            await asyncio.sleep(self.delays.pop(0))
        return self.answer


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class Harness:
    """Editor wired to fakes; build it inside the running event loop."""

    def __init__(self, pages=3, labels=None, pricing=None):
        self.documents = FakeDocumentStore(pages)
        self.label_store = FakeLabelStore(labels)
        self.pricing_store = FakePricingStore(pricing)
        self.notifier = RecordingNotifier()
        self.confirm = ScriptedConfirm()
        self.clock = FakeClock()
        self.session = EditorSession(
            documents=self.documents,
            labels=self.label_store,
            pricing=self.pricing_store,
            notifier=self.notifier,
            confirm=self.confirm,
            clock=self.clock,
        )
        self.editor = PageEditor(
            self.session, LabelRegistry(),
            text_delay=0.05, structural_delay=0.0, saved_display=2.0,
        )

    async def open(self, document_id="doc-1"):
        await self.editor.open(document_id)
        return self.editor

    @property
    def state(self):
        return self.session.state

    def names(self):
        return [lb.name for lb in self.state.labels]


@pytest.fixture(scope="session")
def registry():
    return LabelRegistry()

@pytest.fixture
def harness():
    # Fresh fakes per test; pass keyword args to override the defaults
    return Harness

@pytest.fixture
def run():
    return asyncio.run
