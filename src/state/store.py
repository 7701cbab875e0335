from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List

from .model import EditorState
from .commands import Command
from .reducer import reduce


Listener = Callable[[EditorState], None]


@dataclass
class Store:
    """
    Small wrapper around the pure reducer that holds the current state and
    tells listeners about every change.

    Usage:
        store = Store()
        store.apply(LoadDocument("doc-1", 3))
        store.subscribe(lambda s: print(s.page_count))
    """
    state: EditorState = field(default_factory=EditorState)
    _listeners: List[Listener] = field(default_factory=list)

    def apply(self, cmd: Command) -> EditorState:
        self.state = reduce(self.state, cmd)
        for fn in list(self._listeners):
            fn(self.state)
        return self.state

    def subscribe(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)

        def _unsubscribe() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)
        return _unsubscribe
