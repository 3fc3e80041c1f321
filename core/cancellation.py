import threading
from typing import Optional


class CancellationToken:
    """Cooperative cancellation flag shared by crawl and probe tasks.

    A child token reports cancelled when it or any ancestor was cancelled.
    Workers check it between tasks; in-flight requests are never interrupted.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None):
        self._parent = parent
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def child(self) -> "CancellationToken":
        return CancellationToken(parent=self)
