"""Shared fixtures: fake removers and a configured test client."""

from __future__ import annotations

from io import BytesIO
import threading
import time

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from bgremove_service.api import create_app
from bgremove_service.config import Settings
from bgremove_service.intake import UploadIntake


def make_image_bytes(color=(255, 0, 0), size=(16, 16), fmt: str = "PNG") -> bytes:
    """Create a solid colour image encoded as `fmt`."""
    img = Image.new("RGB", size, color=color)
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


class EchoRemover:
    """Returns the input image as an RGBA PNG, so each output is traceable to its input."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def remove(self, image_bytes: bytes) -> bytes:
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        with Image.open(BytesIO(image_bytes)) as img:
            output = BytesIO()
            img.convert("RGBA").save(output, format="PNG")
        return output.getvalue()


class FailingRemover:
    def __init__(self, message: str = "Unsupported image format"):
        self.message = message
        self.calls = 0

    def remove(self, image_bytes: bytes) -> bytes:
        self.calls += 1
        raise RuntimeError(self.message)


class RecordingIntake(UploadIntake):
    """UploadIntake that remembers every path it handed out."""

    def __init__(self, upload_dir):
        super().__init__(upload_dir)
        self.paths = []

    def store(self, filename, stream):
        path = super().store(filename, stream)
        self.paths.append(path)
        return path


@pytest.fixture
def settings(tmp_path):
    return Settings(upload_dir=tmp_path / "uploads", outputs_dir=tmp_path / "outputs")


@pytest.fixture
def intake(settings):
    return RecordingIntake(settings.upload_dir)


@pytest.fixture
def remover():
    return EchoRemover()


@pytest.fixture
def client(settings, remover, intake):
    return TestClient(create_app(settings=settings, remover=remover, intake=intake))
