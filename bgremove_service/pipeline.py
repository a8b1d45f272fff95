"""
Processing adapter between an uploaded file and the background remover.

`remove_background_from_path` is the main entry point used by both the HTTP
API and the local test script. It keeps orchestration simple:
path in -> bytes -> external remover -> PNG bytes out.
"""

from __future__ import annotations

import base64
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from io import BytesIO
import logging
from pathlib import Path
from threading import Lock
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .remover import BackgroundRemover

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
DATA_URL_PREFIX = "data:image/png;base64,"

MAX_TIMED_WORKERS = 4
TIMED_THREAD_PREFIX = "bg-remover"

_EXECUTOR: Optional[ThreadPoolExecutor] = None
_EXECUTOR_LOCK = Lock()


class ProcessingError(RuntimeError):
    """Raised when an image could not be turned into a background-free PNG."""


def _get_executor() -> ThreadPoolExecutor:
    global _EXECUTOR
    if _EXECUTOR is not None:
        return _EXECUTOR

    with _EXECUTOR_LOCK:
        if _EXECUTOR is None:
            _EXECUTOR = ThreadPoolExecutor(max_workers=MAX_TIMED_WORKERS, thread_name_prefix=TIMED_THREAD_PREFIX)
    return _EXECUTOR


def _call_remover(remover: BackgroundRemover, image_bytes: bytes, timeout: Optional[float]) -> bytes:
    """
    Call the remover, bounded by `timeout` seconds when one is set.

    Timed calls share one executor of MAX_TIMED_WORKERS threads. A call that
    overruns its budget cannot be interrupted: it keeps its worker until the
    remover returns, so at most MAX_TIMED_WORKERS such calls run at once and
    further requests queue behind them (time spent queued counts against
    their own timeout).
    """
    if timeout is None:
        return remover.remove(image_bytes)

    future = _get_executor().submit(remover.remove, image_bytes)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        # Drops the call if it never left the queue.
        future.cancel()
        raise ProcessingError(f"Background removal timed out after {timeout:g}s") from exc


def _ensure_png(result: bytes) -> bytes:
    """Validate the remover output and re-encode anything that is not already PNG."""
    if not result:
        raise ProcessingError("Background remover returned no data")
    if result.startswith(PNG_SIGNATURE):
        return result
    try:
        with Image.open(BytesIO(result)) as img:
            img.load()
            output = BytesIO()
            img.convert("RGBA").save(output, format="PNG")
    except (UnidentifiedImageError, OSError) as exc:
        raise ProcessingError("Background remover returned unreadable image data") from exc
    return output.getvalue()


def remove_background_from_path(
    path: Union[str, Path],
    remover: BackgroundRemover,
    timeout: Optional[float] = None,
) -> bytes:
    """
    Run the external remover on the image stored at `path`.

    The file is read completely before the remover is invoked, so the caller
    may delete it as soon as this function returns or raises.

    Raises:
        ProcessingError: when the file cannot be read, the remover fails or
            times out, or its output is not a decodable image.
    """
    try:
        image_bytes = Path(path).read_bytes()
    except OSError as exc:
        raise ProcessingError(f"Could not read uploaded image: {exc}") from exc

    try:
        result = _call_remover(remover, image_bytes, timeout)
    except ProcessingError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ProcessingError(str(exc) or "Something went wrong") from exc

    return _ensure_png(result)


def encode_base64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


def to_data_url(png_bytes: bytes) -> str:
    return DATA_URL_PREFIX + encode_base64(png_bytes)
