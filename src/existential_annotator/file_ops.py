"""
File operations for the existential annotator.

Sources are handled as raw bytes end to end, so a rewritten file keeps the
encoding of the original.
"""

import os
import tempfile
from pathlib import Path

from .exceptions import FileAccessError, WriteError


def read_source_bytes(filepath: Path) -> bytes:
    """
    Read a source file as bytes.

    Raises:
        FileAccessError: If file cannot be read
    """
    try:
        return filepath.read_bytes()
    except OSError as e:
        raise FileAccessError(filepath, f"OS error: {e}")


def atomic_write_bytes(filepath: Path, content: bytes) -> None:
    """
    Replace a file's contents atomically, keeping its permission bits.

    The new content goes to a temporary file in the same directory which
    then replaces the target, so readers never observe a partial write.
    Symlinks are resolved first: the file they point to is replaced and the
    link itself is left in place.

    Raises:
        WriteError: If the file cannot be written
    """
    tmp_path = None
    try:
        target = filepath.resolve()
        existing_mode = None
        if target.exists():
            existing_mode = target.stat().st_mode & 0o777

        with tempfile.NamedTemporaryFile("wb", delete=False, dir=target.parent) as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = Path(tmp.name)

        if existing_mode is not None:
            os.chmod(tmp_path, existing_mode)
        os.replace(tmp_path, target)
        tmp_path = None
    except (OSError, RuntimeError) as e:
        raise WriteError(filepath, f"Write failed: {e}")
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass
