"""
Optional persistence of processed images.

By default nothing is kept: the processed image only travels back in the
response body. Setting OUTPUT_STORE=local keeps a copy under OUTPUTS_DIR,
OUTPUT_STORE=r2 uploads it to an S3-compatible bucket. Stored copies are
never cleaned up by the service.
"""

from __future__ import annotations

import logging
from pathlib import Path
import time
from typing import Callable, Optional, Union
from urllib.parse import urljoin
import uuid

import boto3
from botocore.client import Config as BotoConfig

from . import config

logger = logging.getLogger(__name__)


class OutputStoreError(RuntimeError):
    """Raised when a processed image could not be persisted."""


def output_name() -> str:
    return f"output-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.png"


class LocalOutputStore:
    """Writes processed images to a local directory and returns their path."""

    def __init__(self, outputs_dir: Union[str, Path], name_factory: Callable[[], str] = output_name):
        self.outputs_dir = Path(outputs_dir)
        self.name_factory = name_factory

    def save(self, png_bytes: bytes) -> str:
        path = self.outputs_dir / self.name_factory()
        try:
            self.outputs_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(png_bytes)
        except OSError as exc:
            raise OutputStoreError(f"Failed to write output file {path}") from exc
        logger.info("Saved output to %s", path)
        return str(path)


class R2OutputStore:
    """Uploads processed images to Cloudflare R2 (or any S3-compatible bucket)."""

    prefix = "outputs/"

    def __init__(self, settings: config.Settings, name_factory: Callable[[], str] = output_name, client=None):
        self.settings = settings
        self.name_factory = name_factory
        self._client = client

    def _get_s3_client(self):
        if self._client is not None:
            return self._client
        required = [
            self.settings.r2_endpoint,
            self.settings.r2_access_key_id,
            self.settings.r2_secret_access_key,
            self.settings.r2_bucket_name,
        ]
        if any(v is None for v in required):
            raise RuntimeError("R2 configuration is incomplete; check env vars.")
        session = boto3.session.Session()
        self._client = session.client(
            service_name="s3",
            aws_access_key_id=self.settings.r2_access_key_id,
            aws_secret_access_key=self.settings.r2_secret_access_key,
            endpoint_url=self.settings.r2_endpoint,
            config=BotoConfig(signature_version="s3v4"),
        )
        return self._client

    def _build_public_url(self, key: str) -> str:
        if self.settings.r2_public_base_url:
            return urljoin(self.settings.r2_public_base_url.rstrip("/") + "/", key)
        return self._get_s3_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": self.settings.r2_bucket_name, "Key": key},
            ExpiresIn=3600,
        )

    def save(self, png_bytes: bytes) -> str:
        key = self.prefix + self.name_factory()
        try:
            client = self._get_s3_client()
            client.put_object(
                Bucket=self.settings.r2_bucket_name,
                Key=key,
                Body=png_bytes,
                ContentType="image/png",
            )
            url = self._build_public_url(key)
        except Exception as exc:  # noqa: BLE001
            raise OutputStoreError("Upload to storage failed") from exc
        logger.info("Uploaded output to %s", key)
        return url


def build_output_store(settings: config.Settings) -> Optional[Union[LocalOutputStore, R2OutputStore]]:
    """Return the configured store, or None when outputs are not kept."""
    if settings.output_store == "local":
        return LocalOutputStore(settings.outputs_dir)
    if settings.output_store == "r2":
        return R2OutputStore(settings)
    return None
