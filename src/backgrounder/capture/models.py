"""Data models for deferred work: work items and captures."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WorkItem:
    """A task reference plus the ordered positional arguments to call it with.

    ``task`` is either a name registered in a :class:`TaskRegistry` or an
    importable ``"package.module:Qualified.name"`` reference.
    """

    task: str
    args: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if not self.task:
            raise ValueError("WorkItem.task must be a non-empty task name")
        object.__setattr__(self, "args", tuple(self.args))

    def to_dict(self) -> dict[str, Any]:
        return {"task": self.task, "args": list(self.args)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkItem:
        return cls(task=data["task"], args=tuple(data.get("args", ())))


@dataclass(frozen=True)
class Capture:
    """Immutable, self-contained snapshot of work to execute later.

    Executing a capture calls the work item's task with ``owner`` (when not
    ``None``) as the first positional argument, then ``work.args``, then
    ``values`` as keyword arguments.  Every part must be serializable so the
    capture can cross process boundaries or sit on disk; build captures with
    :func:`backgrounder.capture.serializer.make_capture` to have that checked.
    """

    work: WorkItem
    values: dict[str, Any] = field(default_factory=dict)
    owner: Any = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", dict(self.values))

    @property
    def task(self) -> str:
        return self.work.task

    @property
    def call_args(self) -> tuple[Any, ...]:
        """Positional arguments the task receives, owner first."""
        if self.owner is None:
            return self.work.args
        return (self.owner, *self.work.args)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict (datetime -> ISO string).

        Argument and value objects are kept as-is; the dict is meant for a
        lossless codec, not for JSON.
        """
        return {
            "id": self.id,
            "work": self.work.to_dict(),
            "values": dict(self.values),
            "owner": self.owner,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Capture:
        """Reconstruct from a dict produced by :meth:`to_dict`."""
        ts = data.get("created_at")
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)
        elif ts is None:
            ts = _utcnow()
        return cls(
            work=WorkItem.from_dict(data["work"]),
            values=data.get("values", {}),
            owner=data.get("owner"),
            id=data.get("id", uuid.uuid4().hex),
            created_at=ts,
        )
