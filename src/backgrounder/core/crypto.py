"""Fernet encryption for persisted queue payloads.

The key lives in a single file beside the queue directory.  Several processes
may write to the same queue, so the key is published with a hard link from a
fully written private temp file: the first process to link wins and every
other process reads the winner's key.  Nobody ever sees a partial key file or
replaces a key that captures were already encrypted with.
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from backgrounder.core.errors import CaptureDecodeError

logger = logging.getLogger(__name__)

KEY_FILENAME = "key"


def _publish_key(key_file: Path, key: bytes) -> bool:
    """Link a private copy of *key* into place.  ``False`` if another key won."""
    tmp_file = key_file.with_name(f".{KEY_FILENAME}.{os.getpid()}.{uuid.uuid4().hex[:8]}.tmp")
    fd = os.open(tmp_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(key)
            f.flush()
            os.fsync(f.fileno())
        os.link(tmp_file, key_file)
    except FileExistsError:
        return False
    finally:
        tmp_file.unlink(missing_ok=True)
    return True


def load_or_create_key(key_dir: Path) -> bytes:
    """Return the queue key kept in *key_dir*, creating it on first use."""
    key_file = key_dir / KEY_FILENAME
    if not key_file.exists():
        key_dir.mkdir(parents=True, exist_ok=True)
        if _publish_key(key_file, Fernet.generate_key()):
            logger.info("Created queue encryption key %s", key_file)
    return key_file.read_bytes().strip()


def get_fernet(key_dir: Path) -> Fernet:
    """Build a :class:`Fernet` from the key file.

    Raises ``ValueError`` when the key file does not hold a Fernet key.
    """
    return Fernet(load_or_create_key(key_dir))


def encrypt_payload(data: bytes, key_dir: Path) -> bytes:
    return get_fernet(key_dir).encrypt(data)


def decrypt_payload(token: bytes, key_dir: Path) -> bytes:
    """Decrypt *token*.  A wrong or unusable key, or a tampered payload, is a decode error."""
    try:
        fernet = get_fernet(key_dir)
    except ValueError as exc:
        raise CaptureDecodeError(f"Queue key in {key_dir} is not a valid Fernet key: {exc}") from exc
    try:
        return fernet.decrypt(token)
    except InvalidToken as exc:
        raise CaptureDecodeError("Payload could not be decrypted") from exc
