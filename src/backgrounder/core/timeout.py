"""Deadline enforcement for handler steps that can block indefinitely.

The call runs on a daemon thread while the caller waits up to *timeout*
seconds.  On expiry :class:`HandlerTimeout` is raised and the thread is
abandoned: it cannot be interrupted, but being a daemon it never keeps the
interpreter alive at exit.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, TypeVar

from backgrounder.core.errors import HandlerTimeout

T = TypeVar("T")


def call_with_timeout(
    func: Callable[..., T],
    *args: Any,
    timeout: float | None,
    operation: str = "operation",
    **kwargs: Any,
) -> T:
    """Call ``func(*args, **kwargs)`` and give up after *timeout* seconds.

    A *timeout* of ``None`` or ``<= 0`` calls *func* directly in the current
    thread.  Exceptions raised by *func* propagate unchanged.
    """
    if timeout is None or timeout <= 0:
        return func(*args, **kwargs)

    outcome: dict[str, Any] = {}

    def run() -> None:
        try:
            outcome["result"] = func(*args, **kwargs)
        except BaseException as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=run, name=f"backgrounder-{operation}", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise HandlerTimeout(operation, timeout)
    if "error" in outcome:
        raise outcome["error"]
    return outcome["result"]
