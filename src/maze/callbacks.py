"""Bridge push-style callbacks into the polling model.

The runtime client reports streamed output and asynchronous completions by
calling ``on_next`` / ``on_error`` / ``on_complete`` from its own transport
thread. The callbacks here accumulate those events behind a lock and expose
completion through a ``threading.Event``, so the test thread can wait for
them with the same sleep-then-recheck loop used everywhere else.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from maze.errors import WaitTimeoutError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

DEFAULT_AWAIT_INTERVAL_S = 0.1


@runtime_checkable
class ResultCallback[T](Protocol):
    """Receiver for one asynchronous operation's events."""

    def on_start(self, closeable: Any) -> None: ...  # noqa: D102
    def on_next(self, item: T) -> None: ...  # noqa: D102
    def on_error(self, error: BaseException) -> None: ...  # noqa: D102
    def on_complete(self) -> None: ...  # noqa: D102
    def close(self) -> None: ...  # noqa: D102


class PollingCallback[T]:
    """Shared machinery: a completion flag and a guarded item buffer.

    ``on_error`` and ``on_complete`` both mark the operation done; an error
    is recorded, never raised on the transport thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._items: list[T] = []
        self._error: BaseException | None = None
        self._closeable: Any = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def error(self) -> BaseException | None:
        with self._lock:
            return self._error

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def items(self) -> list[T]:
        """Return a snapshot of the items received so far, in arrival order."""
        with self._lock:
            return list(self._items)

    def on_start(self, closeable: Any) -> None:
        with self._lock:
            self._closeable = closeable

    def on_next(self, item: T) -> None:
        with self._lock:
            self._items.append(item)

    def on_error(self, error: BaseException) -> None:
        logger.debug("%s received error: %r", type(self).__name__, error)
        with self._lock:
            self._error = error
        self._done.set()

    def on_complete(self) -> None:
        self._done.set()

    def close(self) -> None:
        with self._lock:
            closeable = self._closeable
            self._closeable = None
        close = getattr(closeable, "close", None)
        if callable(close):
            close()

    def wait_done(
        self,
        *,
        poll_interval_s: float = DEFAULT_AWAIT_INTERVAL_S,
        timeout_s: float | None = None,
    ) -> int:
        """Poll the completion flag; return how many polls found it unset.

        Without *timeout_s* this waits for as long as the operation takes.
        """
        started = time.monotonic()
        polls = 0
        while not self._done.is_set():
            if timeout_s is not None and time.monotonic() - started >= timeout_s:
                label = type(self).__name__
                raise WaitTimeoutError(
                    f"{label} did not complete within {timeout_s}s",
                    label=label,
                    last_message=f"{self.count} item(s) received",
                    max_duration_s=timeout_s,
                )
            time.sleep(poll_interval_s)
            polls += 1
        return polls


class LogAppender(PollingCallback[bytes | str]):
    """Concatenate streamed output frames into text.

    ``on_start`` clears anything accumulated so far; an error is appended to
    the text so it shows up in the captured output.
    """

    def on_start(self, closeable: Any) -> None:
        with self._lock:
            self._items.clear()
            self._closeable = closeable

    def on_error(self, error: BaseException) -> None:
        with self._lock:
            self._items.append(f"An error occurred: {error}")
        super().on_error(error)

    @property
    def result(self) -> str:
        with self._lock:
            frames = list(self._items)
        return "".join(
            f.decode("utf-8", errors="replace") if isinstance(f, bytes) else f
            for f in frames
        )

    def lines(self) -> list[str]:
        """Return the output split on newlines, with CRLF normalized.

        Trailing empty lines are dropped, so ``"a\\n"`` yields ``["a"]``.
        """
        parts = self.result.replace("\r\n", "\n").split("\n")
        while len(parts) > 1 and not parts[-1]:
            parts.pop()
        return parts

    def await_completion(
        self,
        *,
        poll_interval_s: float = DEFAULT_AWAIT_INTERVAL_S,
        timeout_s: float | None = None,
    ) -> LogAppender:
        self.wait_done(poll_interval_s=poll_interval_s, timeout_s=timeout_s)
        return self


class CompletionCallback[T](PollingCallback[T]):
    """Collect discrete events, such as image pull progress records."""

    def await_completion(
        self,
        *,
        poll_interval_s: float = DEFAULT_AWAIT_INTERVAL_S,
        timeout_s: float | None = None,
    ) -> list[T]:
        self.wait_done(poll_interval_s=poll_interval_s, timeout_s=timeout_s)
        return self.items()


def pump[T](
    stream: Iterable[T],
    callback: ResultCallback[T],
    *,
    name: str = "maze-pump",
    closeable: Any = None,
    on_finish: Callable[[], None] | None = None,
) -> threading.Thread:
    """Feed *stream* into *callback* from a daemon thread.

    ``on_finish`` runs on the pump thread after the stream is exhausted and
    before ``on_complete``, for work such as reaping a subprocess.
    """

    def drain() -> None:
        callback.on_start(closeable)
        try:
            for item in stream:
                callback.on_next(item)
            if on_finish is not None:
                on_finish()
        except Exception as exc:
            callback.on_error(exc)
            return
        callback.on_complete()

    thread = threading.Thread(target=drain, name=name, daemon=True)
    thread.start()
    return thread
