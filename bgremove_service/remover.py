"""
Boundary to the external background-removal capability.

The service never segments images itself; it hands raw image bytes to a
`BackgroundRemover` and gets PNG bytes (with transparency) back. The default
implementation wraps `rembg` and keeps a single shared model session that is
created on first use, to avoid reloading the model on every request.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Optional, Protocol

from rembg import new_session, remove

logger = logging.getLogger(__name__)


class BackgroundRemover(Protocol):
    def remove(self, image_bytes: bytes) -> bytes:
        """Return processed image bytes with the background removed."""
        ...


class RembgBackgroundRemover:
    """`rembg` backed remover with a lazily created, shared session."""

    def __init__(self, model_name: str = "u2net"):
        self.model_name = model_name
        self._session: Optional[Any] = None
        self._lock = Lock()

    def get_session(self) -> Any:
        if self._session is not None:
            return self._session

        with self._lock:
            if self._session is None:
                logger.info("Creating rembg session for model %s", self.model_name)
                self._session = new_session(self.model_name)
        return self._session

    def remove(self, image_bytes: bytes) -> bytes:
        return remove(image_bytes, session=self.get_session())
