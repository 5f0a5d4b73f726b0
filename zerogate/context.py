"""
Cancellation and deadline tokens for API calls.

A Context is handed to every call. It can be cancelled explicitly from any
thread, it can carry a deadline, and it is cancelled whenever its parent is.
"""

import threading
import time
from typing import Callable, List, Optional

from .exceptions import Canceled, CancellationError, DeadlineExceeded


class Context:
    """
    Cancellation token with an optional deadline.

    Use the constructors rather than instantiating directly:

        ctx = Context.background()
        ctx, cancel = Context.with_timeout(ctx, 5)
    """

    def __init__(self, parent: Optional['Context'] = None, deadline: Optional[float] = None,
                 cancellable: bool = True):
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._err: Optional[CancellationError] = None
        self._cancellable = cancellable
        self._detach: Optional[Callable[[], None]] = None

        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

        if parent is not None and parent._cancellable:
            self._detach = parent.on_done(lambda: self._finish(parent.err()))

    @classmethod
    def background(cls) -> 'Context':
        """Return a context that is never cancelled and has no deadline."""
        return cls(cancellable=False)

    @classmethod
    def with_cancel(cls, parent: Optional['Context'] = None):
        """Return a child context and the function that cancels it."""
        ctx = cls(parent)
        return ctx, ctx.cancel

    @classmethod
    def with_deadline(cls, parent: Optional['Context'], deadline: float):
        """Return a child context that expires at ``deadline`` (time.monotonic clock)."""
        ctx = cls(parent, deadline=deadline)
        return ctx, ctx.cancel

    @classmethod
    def with_timeout(cls, parent: Optional['Context'], timeout: float):
        """Return a child context that expires ``timeout`` seconds from now."""
        return cls.with_deadline(parent, time.monotonic() + timeout)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def cancellable(self) -> bool:
        return self._cancellable or self._deadline is not None

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self):
        if self._cancellable:
            self._finish(Canceled())

    def err(self) -> Optional[CancellationError]:
        """Return the reason the context is done, or None while it is live."""
        if self._err is None and self._deadline is not None and time.monotonic() >= self._deadline:
            self._finish(DeadlineExceeded())
        return self._err

    def done(self) -> bool:
        return self.err() is not None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the context is done or ``timeout`` elapses."""
        remaining = self.remaining()
        if remaining is not None and (timeout is None or remaining < timeout):
            timeout = remaining
        self._event.wait(timeout)
        return self.done()

    def on_done(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Run ``callback`` once the context is cancelled (immediately if it already is).

        Deadline expiry runs the callbacks only once it is observed through
        err() or done(), so waiters should bound their wait with remaining().
        Returns a function that unregisters the callback.
        """
        with self._lock:
            if self._err is None:
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return lambda: None

    def _unregister(self, callback: Callable[[], None]):
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    def _finish(self, err: Optional[CancellationError]):
        with self._lock:
            if self._err is not None or err is None:
                return
            self._err = err
            callbacks, self._callbacks = self._callbacks, []
            self._event.set()
            detach, self._detach = self._detach, None
        if detach is not None:
            detach()
        for callback in callbacks:
            callback()
