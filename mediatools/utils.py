"""Utility functions for mediatools."""

import base64
import os
import logging
import tempfile
from datetime import datetime
from typing import Any, Iterable, Optional, Tuple

from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists. Creates it if it doesn't.

    Args:
        dir_path: The path to the directory.

    Raises:
        FileSystemError: If the directory cannot be created due to permissions
                         or if the path exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e

def derive_path(path: str, suffix: str = "", extension: Optional[str] = None) -> str:
    """
    Builds a sibling path of `path`: same directory and base name, with
    `suffix` appended to the base name and the extension optionally replaced.

    >>> derive_path("/a/b/photo.jpg", "_modified")
    '/a/b/photo_modified.jpg'
    >>> derive_path("/a/b/talk.mp3", extension=".txt")
    '/a/b/talk.txt'
    """
    base, ext = os.path.splitext(path)
    return f"{base}{suffix}{ext if extension is None else extension}"

def sidecar_path(path: str) -> str:
    """Path of the JSON metadata sidecar that belongs next to `path`."""
    return derive_path(path, "_metadata", ".json")

def json_default(value: Any) -> Any:
    """`default=` hook for json.dumps covering the metadata value types."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

def _stage(path: str, data: bytes) -> str:
    target_dir = os.path.dirname(os.path.abspath(path))
    ensure_dir_exists(target_dir)
    fd, tmp_path = tempfile.mkstemp(dir=target_dir, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except Exception:
        os.remove(tmp_path)
        raise
    return tmp_path

def write_files_atomically(files: Iterable[Tuple[str, bytes]]) -> None:
    """
    Writes every (path, data) pair so that either all files appear or none do.

    Each payload goes to a temporary file in its target directory first; the
    temporaries are renamed into place only once all of them were written.
    If a rename fails, files committed before it are removed again and any
    file they replaced is restored.
    """
    staged = []
    committed = []
    try:
        for path, data in files:
            staged.append((_stage(path, data), path))

        for tmp_path, path in staged:
            backup = None
            if os.path.isfile(path):
                backup = _stage(path, b"")
                os.replace(path, backup)
            try:
                os.replace(tmp_path, path)
            except Exception:
                if backup:
                    os.replace(backup, path)
                raise
            committed.append((path, backup))
            logger.debug(f"Committed {path}")
    except Exception:
        for path, backup in reversed(committed):
            if backup:
                os.replace(backup, path)
            elif os.path.exists(path):
                os.remove(path)
        for tmp_path, _ in staged:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        raise

    for _, backup in committed:
        if backup:
            os.remove(backup)
