"""Durable disk queue: one file per persisted capture.

Files live in ``{project_root}/.backgrounder/queue`` by default and are named
``background_<ns timestamp>_<random>.capture`` so that a lexical sort is the
order of creation.  Each file is written under a hidden temporary name and
renamed into place, so readers never observe a partial capture.  Payloads
are optionally Fernet-encrypted before they hit disk.

Sweeps are serialised with an ``fcntl`` lock, so backgrounder runs on POSIX
systems only.
"""

from __future__ import annotations

import fcntl
import logging
import os
import re
import threading
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from backgrounder.capture.models import Capture
from backgrounder.capture.serializer import dumps, loads
from backgrounder.core.config import BackgroundConfig
from backgrounder.core.crypto import decrypt_payload, encrypt_payload

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FILE_PREFIX = "background_"
FILE_SUFFIX = ".capture"
SWEEP_LOCK_FILENAME = ".sweep.lock"

_FILENAME_RE = re.compile(r"^background_\d{20}_[0-9a-f]{8}\.capture$")

# Names must keep increasing within this process even if the clock does not.
_name_lock = threading.Lock()
_last_ns = 0


def _next_filename() -> str:
    global _last_ns
    with _name_lock:
        ns = time.time_ns()
        if ns <= _last_ns:
            ns = _last_ns + 1
        _last_ns = ns
    return f"{FILE_PREFIX}{ns:020d}_{uuid.uuid4().hex[:8]}{FILE_SUFFIX}"


def is_queue_file(name: str) -> bool:
    """Return ``True`` when *name* follows the queue's file naming pattern."""
    return bool(_FILENAME_RE.match(name))


class DiskQueue:
    """Directory-backed FIFO of captures.

    Usage::

        queue = DiskQueue(Path(".backgrounder/queue"))
        path = queue.put(capture)
        for path in queue.paths():        # oldest first
            capture = queue.read(path)
            ...
            queue.delete(path)
    """

    def __init__(
        self,
        directory: Path,
        *,
        encrypt: bool = False,
        key_dir: Path | None = None,
    ) -> None:
        self._directory = Path(directory)
        self._encrypt = encrypt
        self._key_dir = key_dir or self._directory.parent

    @classmethod
    def from_config(cls, config: BackgroundConfig) -> DiskQueue:
        directory = config.queue_directory
        return cls(directory, encrypt=config.disk.encrypt, key_dir=directory.parent)

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def encrypt(self) -> bool:
        return self._encrypt

    def with_directory(self, directory: Path) -> DiskQueue:
        """Return a queue with the same settings rooted at *directory*."""
        return DiskQueue(Path(directory), encrypt=self._encrypt, key_dir=self._key_dir)

    # ------------------------------------------------------------------
    # Payload helpers
    # ------------------------------------------------------------------

    def _encode(self, capture: Capture) -> bytes:
        raw = dumps(capture)
        if self._encrypt:
            return encrypt_payload(raw, self._key_dir)
        return raw

    def _decode(self, blob: bytes) -> Capture:
        if self._encrypt:
            blob = decrypt_payload(blob, self._key_dir)
        return loads(blob)

    # ------------------------------------------------------------------
    # Queue operations
    # ------------------------------------------------------------------

    def put(self, capture: Capture) -> Path:
        """Persist *capture* and return the path of its file."""
        payload = self._encode(capture)
        self._directory.mkdir(parents=True, exist_ok=True)

        name = _next_filename()
        final_path = self._directory / name
        tmp_path = self._directory / f".{name}.tmp"
        try:
            with open(tmp_path, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, final_path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug("Persisted capture %s (%s) to %s", capture.id, capture.task, final_path.name)
        return final_path

    def paths(self) -> list[Path]:
        """Return queued files, oldest first."""
        if not self._directory.is_dir():
            return []
        names = sorted(name for name in os.listdir(self._directory) if is_queue_file(name))
        return [self._directory / name for name in names]

    def read(self, path: Path) -> Capture:
        """Load the capture stored at *path*.

        Raises ``FileNotFoundError`` if the file is gone and
        :class:`~backgrounder.core.errors.CaptureDecodeError` if it is corrupt.
        """
        return self._decode(Path(path).read_bytes())

    def delete(self, path: Path) -> bool:
        """Remove *path*.  Returns ``False`` if it was already gone."""
        path = Path(path)
        existed = path.exists()
        path.unlink(missing_ok=True)
        return existed

    def __len__(self) -> int:
        return len(self.paths())

    @contextmanager
    def sweep_lock(self) -> Iterator[None]:
        """Hold an exclusive advisory lock that serialises recovery sweeps."""
        self._directory.mkdir(parents=True, exist_ok=True)
        with open(self._directory / SWEEP_LOCK_FILENAME, "a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
