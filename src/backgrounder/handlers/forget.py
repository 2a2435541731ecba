"""Drops the capture.  Most useful as the last entry of a chain."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from backgrounder.capture.models import Capture
from backgrounder.handlers.base import Handler

logger = logging.getLogger(__name__)


class ForgetHandler(Handler):
    name = "forget"
    description = "Discard the task; always succeeds"

    def handle(self, capture: Capture, options: Mapping[str, Any]) -> None:
        logger.debug("Forgetting capture %s (%s)", capture.id, capture.task)
