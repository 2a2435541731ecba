"""Publishes the capture to a message broker.

The broker is reached through a single *publisher* callable,
``publish(queue_name, payload_bytes)``, supplied by the application (a thin
wrapper around its broker client).  Publishing runs under a timeout; a
broker that is down, slow, or missing makes this handler fail so the chain
can fall back, typically to ``disk``.  A publish that outlives its timeout
is abandoned, not cancelled: if it completes later the work is delivered
twice, once by the broker and once by the fallback handler.

Consumers turn a received payload back into work with
:func:`execute_message`.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from typing import Any, Callable, Mapping

from backgrounder.capture.models import Capture
from backgrounder.capture.serializer import dumps, loads
from backgrounder.capture.tasks import TaskRegistry, default_tasks
from backgrounder.core.errors import HandlerError
from backgrounder.core.timeout import call_with_timeout
from backgrounder.handlers.base import Handler

logger = logging.getLogger(__name__)

Publisher = Callable[[str, bytes], Any]


class MessageQueueHandler(Handler):
    """Options:

    queue::   queue name, defaults to the configured ``message_queue.queue``.
    timeout:: seconds allowed for the publish call.
    """

    name = "message_queue"
    description = "Publish the task to a message broker queue"

    def __init__(
        self,
        publisher: Publisher | None = None,
        *,
        default_queue: str = "background",
        timeout: float = 10.0,
    ) -> None:
        self.publisher = publisher
        self._default_queue = default_queue
        self._timeout = timeout

    def handle(self, capture: Capture, options: Mapping[str, Any]) -> None:
        if self.publisher is None:
            raise HandlerError("No message queue publisher is configured")

        queue = str(options.get("queue") or self._default_queue)
        timeout = options.get("timeout", self._timeout)
        call_with_timeout(
            self.publisher,
            queue,
            dumps(capture),
            timeout=timeout,
            operation=f"publish to {queue}",
        )
        logger.info("Published %s to queue %s", capture.task, queue)


def execute_message(payload: bytes, tasks: TaskRegistry | None = None) -> Any:
    """Consumer side: decode a published payload and run it in-process."""
    capture = loads(payload)
    logger.info("Executing %s from message (capture %s)", capture.task, capture.id)
    return (tasks if tasks is not None else default_tasks).execute(capture)


class InMemoryBroker:
    """Process-local stand-in for a broker, for development and tests.

    Usage::

        broker = InMemoryBroker()
        context = create_context(publisher=broker.publish)
        ...
        for payload in broker.drain("background"):
            execute_message(payload, context.tasks)
    """

    def __init__(self) -> None:
        self._queues: dict[str, deque[bytes]] = defaultdict(deque)
        self._lock = threading.Lock()

    def publish(self, queue: str, payload: bytes) -> None:
        with self._lock:
            self._queues[queue].append(payload)

    def pending(self, queue: str) -> int:
        with self._lock:
            return len(self._queues.get(queue, ()))

    def drain(self, queue: str) -> list[bytes]:
        """Remove and return everything published to *queue*, oldest first."""
        with self._lock:
            messages = list(self._queues.pop(queue, ()))
        return messages
