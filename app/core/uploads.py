from __future__ import annotations

import logging
import os
import tempfile
import uuid
from contextlib import contextmanager
from typing import Iterator

from app.services.exceptions import InternalError

logger = logging.getLogger(__name__)


@contextmanager
def stored_upload(payload: bytes, filename: str, uploads_dir: str | None = None) -> Iterator[str]:
    """
    Write an uploaded payload to disk for the duration of the block and yield its path.

    The file is removed exactly once when the block exits, whatever the exit path.
    A missing uploads_dir falls back to the system temp directory.
    """

    target_dir = uploads_dir or tempfile.gettempdir()
    safe_name = os.path.basename(filename or "") or "upload.csv"
    stored_path = os.path.join(target_dir, f"{uuid.uuid4()}_{safe_name}")

    try:
        os.makedirs(target_dir, exist_ok=True)
        with open(stored_path, "wb") as f:
            f.write(payload)
    except OSError as e:
        _remove_quietly(stored_path)
        raise InternalError(f"Failed to store file: {e}") from e

    try:
        yield stored_path
    finally:
        _remove_quietly(stored_path)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove temporary upload %s: %s", path, e)
