"""Notifies developers about errors through an external channel.

The channel is a *notifier* callable, ``notify(subject, body)``, supplied by
the application (mail, chat webhook, incident tool).  Without one, the
notification is written to the ``backgrounder.notifications`` logger.
A notifier that itself fails is logged and does not interrupt dispatch.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Callable

from backgrounder.reporters.base import Reporter

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], Any]

_fallback_logger = logging.getLogger("backgrounder.notifications")


def format_notification(error: BaseException) -> tuple[str, str]:
    """Return ``(subject, body)`` describing *error* and its traceback."""
    subject = f"[backgrounder] {type(error).__qualname__}: {error}".splitlines()[0][:200]
    body = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return subject, body


class NotificationReporter(Reporter):
    name = "notification"
    description = "Send the error with its traceback to a notifier"

    def __init__(self, notifier: Notifier | None = None) -> None:
        self.notifier = notifier

    def report(self, error: BaseException) -> None:
        subject, body = format_notification(error)
        if self.notifier is None:
            _fallback_logger.error("%s\n%s", subject, body)
            return
        try:
            self.notifier(subject, body)
        except Exception:
            logger.exception("Notifier failed while reporting %s", type(error).__qualname__)
