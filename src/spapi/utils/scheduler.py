from __future__ import annotations

import threading
from collections.abc import Callable


def run_periodic(
    action: Callable[[], None],
    next_delay: Callable[[], float],
    cancel: threading.Event,
    on_error: Callable[[Exception], None] | None = None,
) -> None:
    """Run ``action`` whenever ``next_delay()`` reports it is due, until ``cancel`` is set.

    ``next_delay`` is re-evaluated on every wake, so it may depend on state the
    action itself changes. Cancellation is checked at the top of each
    iteration; waiting is done on ``cancel`` so a pending sleep ends as soon
    as it is set, while an ``action`` already running is allowed to finish.

    Exceptions raised by ``action`` are handed to ``on_error`` and the loop
    continues. Without a handler they propagate and end the loop.
    """

    while not cancel.is_set():
        delay = next_delay()
        if delay > 0:
            cancel.wait(delay)
            continue
        try:
            action()
        except Exception as exc:
            if on_error is None:
                raise
            on_error(exc)


def start_periodic(
    action: Callable[[], None],
    next_delay: Callable[[], float],
    cancel: threading.Event,
    on_error: Callable[[Exception], None] | None = None,
    *,
    name: str | None = None,
    on_exit: Callable[[], None] | None = None,
) -> threading.Thread:
    """Run :func:`run_periodic` on a daemon thread and return the started thread.

    ``on_exit`` runs on that thread once the loop has ended, however it ended.
    """

    def target() -> None:
        try:
            run_periodic(action, next_delay, cancel, on_error)
        finally:
            if on_exit is not None:
                on_exit()

    thread = threading.Thread(
        target=target,
        name=name,
        daemon=True,
    )
    thread.start()
    return thread


__all__ = ["run_periodic", "start_periodic"]
