from __future__ import annotations


class ComposerError(Exception):
    """Base class for every error raised by the page composer."""


class ValidationError(ComposerError, ValueError):
    """Rejected client-side before any request is sent (empty label, last page, ...)."""


class BusyError(ComposerError):
    """A structural operation was requested while another one is in flight."""


class NetworkError(ComposerError):
    """A store round-trip failed: transport error, I/O error or a rejected request."""


class ConsistencyError(ComposerError):
    """The store reported a page count that disagrees with the local expectation."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"expected {expected} pages, store reports {actual}")
        self.expected = expected
        self.actual = actual
