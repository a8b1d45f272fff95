"""
Upload intake: persist an uploaded image to a request-scoped temporary file.

Each upload gets its own uniquely named file inside the configured upload
directory. `UploadIntake.scoped` hands the path to the caller and always
removes the file afterwards, whether processing succeeded or not.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from pathlib import Path
import shutil
import time
from typing import BinaryIO, Callable, Iterator, Optional, Union
import uuid

logger = logging.getLogger(__name__)

NameFactory = Callable[[str], str]


def timestamped_name(extension: str) -> str:
    """Millisecond timestamp plus a random suffix, so same-millisecond uploads never collide."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}{extension}"


def safe_delete(path: Union[str, Path]) -> bool:
    """
    Delete `path` if it exists.

    Returns True when a file was removed. Failures are logged and swallowed:
    releasing a temporary file must never fail the request that owned it.
    """
    path = Path(path)
    try:
        if path.exists():
            path.unlink()
            logger.info("Deleted: %s", path)
            return True
    except OSError as exc:
        logger.warning("Failed to delete file %s: %s", path, exc)
    return False


def _extension_of(filename: Optional[str]) -> str:
    if not filename:
        return ""
    # Only the suffix of the client-supplied name is ever used.
    return Path(filename.replace("\\", "/")).suffix


class UploadIntake:
    """Stores uploads under `upload_dir` using names from `name_factory`."""

    def __init__(self, upload_dir: Union[str, Path], name_factory: NameFactory = timestamped_name):
        self.upload_dir = Path(upload_dir)
        self.name_factory = name_factory
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def store(self, filename: Optional[str], stream: BinaryIO) -> Path:
        """Copy `stream` into a new file and return its path."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / self.name_factory(_extension_of(filename))
        # "xb" refuses to overwrite another request's file.
        with open(path, "xb") as fh:
            try:
                shutil.copyfileobj(stream, fh)
            except BaseException:
                fh.close()
                safe_delete(path)
                raise
        return path

    @contextmanager
    def scoped(self, filename: Optional[str], stream: BinaryIO) -> Iterator[Path]:
        """Yield the stored upload path; the file is deleted on every exit path."""
        path = self.store(filename, stream)
        try:
            yield path
        finally:
            safe_delete(path)
