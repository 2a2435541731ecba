"""Capture codecs and safe previews.

Two very different jobs live here:

* the **lossless codec** (:func:`dumps` / :func:`loads`, plus the base64 text
  form :func:`encode` / :func:`decode`) used by the disk, runner and message
  queue handlers, built on :mod:`pickle` so arguments survive unchanged;
* the **safe preview** (:func:`safe_serialize`) used when captures are shown
  to humans.  Objects that are not JSON-serialisable are converted to
  strings and values whose keys match known sensitive patterns are replaced
  with ``"<REDACTED>"``.
"""

from __future__ import annotations

import base64
import binascii
import json
import pickle
import re
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID

from backgrounder.capture.models import Capture, WorkItem
from backgrounder.core.errors import CaptureDecodeError, CaptureError

FORMAT_VERSION = 1

# ---------------------------------------------------------------------------
# Lossless codec
# ---------------------------------------------------------------------------


def ensure_serializable(value: Any, what: str = "value") -> None:
    """Raise :class:`CaptureError` if *value* cannot be pickled."""
    try:
        pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as exc:
        raise CaptureError(f"{what} is not serializable: {exc}") from exc


def make_capture(
    task: str,
    args: tuple | list = (),
    values: dict[str, Any] | None = None,
    owner: Any = None,
) -> Capture:
    """Build a :class:`Capture`, checking that every part is serializable."""
    values = dict(values or {})
    for index, arg in enumerate(args):
        ensure_serializable(arg, f"Argument {index} of task {task!r}")
    for key, value in values.items():
        ensure_serializable(value, f"Value {key!r} of task {task!r}")
    if owner is not None:
        ensure_serializable(owner, f"Owner of task {task!r}")
    return Capture(work=WorkItem(task=task, args=tuple(args)), values=values, owner=owner)


def dumps(capture: Capture) -> bytes:
    """Serialise *capture* to bytes."""
    envelope = {"format": FORMAT_VERSION, "capture": capture.to_dict()}
    try:
        return pickle.dumps(envelope, protocol=pickle.HIGHEST_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as exc:
        raise CaptureError(f"Capture {capture.id} is not serializable: {exc}") from exc


def loads(data: bytes) -> Capture:
    """Inverse of :func:`dumps`.  Any malformed input raises :class:`CaptureDecodeError`."""
    try:
        envelope = pickle.loads(data)
    except Exception as exc:  # unpickling can raise nearly anything
        raise CaptureDecodeError(f"Payload is not a serialized capture: {exc}") from exc

    if not isinstance(envelope, dict) or "capture" not in envelope:
        raise CaptureDecodeError("Payload is not a capture envelope")
    if envelope.get("format") != FORMAT_VERSION:
        raise CaptureDecodeError(f"Unsupported capture format {envelope.get('format')!r}")
    if not isinstance(envelope["capture"], dict):
        raise CaptureDecodeError("Capture envelope does not hold a capture")
    try:
        return Capture.from_dict(envelope["capture"])
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CaptureDecodeError(f"Capture envelope is incomplete: {exc}") from exc


def encode(capture: Capture) -> str:
    """Serialise *capture* to URL-safe base64 text, fit for a command line."""
    return base64.urlsafe_b64encode(dumps(capture)).decode("ascii")


def decode(text: str) -> Capture:
    """Inverse of :func:`encode`."""
    try:
        raw = base64.urlsafe_b64decode(text.strip().encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError) as exc:
        raise CaptureDecodeError(f"Payload is not valid base64: {exc}") from exc
    return loads(raw)


# ---------------------------------------------------------------------------
# Sensitive-key patterns
# ---------------------------------------------------------------------------

SENSITIVE_PATTERNS: list[str] = [
    r"api[_-]?key",
    r"secret",
    r"password",
    r"token",
    r"private[_-]?key",
    r"credential",
    r"auth",
]

_SENSITIVE_RE = re.compile("|".join(SENSITIVE_PATTERNS), re.IGNORECASE)

REDACTED_PLACEHOLDER = "<REDACTED>"


def _is_sensitive_key(key: str) -> bool:
    return bool(_SENSITIVE_RE.search(str(key)))


def redact_value(value: Any) -> Any:
    """Return *value* with sensitive mapping entries replaced, recursively."""
    if isinstance(value, dict):
        return {
            key: REDACTED_PLACEHOLDER if _is_sensitive_key(key) else redact_value(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_value(item) for item in value]
    return value


class _SafeEncoder(json.JSONEncoder):
    """JSONEncoder that converts non-serialisable objects to strings."""

    def default(self, o: Any) -> Any:  # noqa: ANN401
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, (UUID, Path)):
            return str(o)
        if isinstance(o, bytes):
            return o.decode("utf-8", errors="replace")
        if isinstance(o, (set, frozenset)):
            return sorted(str(i) for i in o)
        if isinstance(o, type):
            return f"{o.__module__}.{o.__qualname__}"
        return repr(o)


def safe_serialize(obj: Any, *, redact: bool = True, max_bytes: int = 0) -> str:
    """Serialise *obj* to a JSON string for display.

    When *max_bytes* > 0 the result is truncated to that many UTF-8 bytes and
    a ``"<truncated>"`` marker is appended.
    """
    if redact:
        obj = redact_value(obj)

    try:
        result = json.dumps(obj, cls=_SafeEncoder)
    except (TypeError, ValueError, OverflowError):
        result = json.dumps(repr(obj))

    if max_bytes > 0 and len(result.encode("utf-8")) > max_bytes:
        encoded = result.encode("utf-8")[:max_bytes]
        result = encoded.decode("utf-8", errors="ignore") + '..."<truncated>"'

    return result


def preview_capture(capture: Capture, *, max_bytes: int = 200) -> dict[str, Any]:
    """Return a JSON-safe, redacted summary of *capture* for listings."""
    return {
        "id": capture.id,
        "task": capture.task,
        "created_at": capture.created_at.isoformat(),
        "args": safe_serialize(list(capture.work.args), max_bytes=max_bytes),
        "values": safe_serialize(capture.values, max_bytes=max_bytes),
        "owner": None if capture.owner is None else safe_serialize(capture.owner, max_bytes=max_bytes),
    }
