"""Persists the capture to the durable disk queue for a later recovery sweep."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from backgrounder.capture.models import Capture
from backgrounder.capture.store import DiskQueue
from backgrounder.handlers.base import Handler

logger = logging.getLogger(__name__)


class DiskHandler(Handler):
    """Stores captures as files.

    Options:

    directory:: write to this directory instead of the configured queue.
    """

    name = "disk"
    description = "Persist the task to the disk queue for later recovery"

    def __init__(self, queue: DiskQueue) -> None:
        self.queue = queue

    def queue_for(self, options: Mapping[str, Any]) -> DiskQueue:
        directory = options.get("directory")
        if directory:
            return self.queue.with_directory(Path(directory))
        return self.queue

    def handle(self, capture: Capture, options: Mapping[str, Any]) -> None:
        path = self.queue_for(options).put(capture)
        logger.info("Queued %s on disk as %s", capture.task, path.name)
