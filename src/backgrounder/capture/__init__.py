"""Capture module -- deferred work, its codec, the task registry and the disk queue.

Decorators::

    from backgrounder.capture import deferred, task

Models::

    from backgrounder.capture.models import Capture, WorkItem

Store::

    from backgrounder.capture.store import DiskQueue

Recovery::

    from backgrounder.capture.recovery import RecoverySweep, RecoveryReport
"""

from backgrounder.capture.decorators import deferred
from backgrounder.capture.models import Capture, WorkItem
from backgrounder.capture.recovery import RecoveryReport, RecoverySweep
from backgrounder.capture.store import DiskQueue
from backgrounder.capture.tasks import TaskRegistry, default_tasks, task

__all__ = [
    "deferred",
    "task",
    "Capture",
    "DiskQueue",
    "RecoveryReport",
    "RecoverySweep",
    "TaskRegistry",
    "WorkItem",
    "default_tasks",
]
