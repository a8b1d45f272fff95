"""
FastAPI layer exposing background removal for uploaded images.

Endpoints:
 - GET /health
 - GET /
 - POST /remove-bg  (multipart field "image")
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Optional, Union

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .intake import UploadIntake
from .pipeline import remove_background_from_path, to_data_url
from .remover import BackgroundRemover, RembgBackgroundRemover
from .storage import LocalOutputStore, R2OutputStore, build_output_store

logger = logging.getLogger(__name__)

NO_FILE_MESSAGE = "No image file uploaded!"
SUCCESS_MESSAGE = "Background removed successfully!"
GENERIC_FAILURE_MESSAGE = "Background removal failed"


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class RootResponse(BaseModel):
    message: str
    endpoint: str
    status: str


class RemoveBgResponse(BaseModel):
    success: bool
    message: str
    base64: str
    outputPath: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class FailureResponse(BaseModel):
    success: bool = False
    error: str


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_app(
    settings: Optional[config.Settings] = None,
    remover: Optional[BackgroundRemover] = None,
    intake: Optional[UploadIntake] = None,
    output_store: Optional[Union[LocalOutputStore, R2OutputStore]] = None,
) -> FastAPI:
    """
    Build the service application.

    Collaborators default to the configured implementations; tests inject
    their own remover, intake directory or output store.
    """
    settings = settings or config.get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    if remover is None:
        remover = RembgBackgroundRemover(settings.rembg_model)
    if intake is None:
        intake = UploadIntake(settings.upload_dir)
    if output_store is None:
        output_store = build_output_store(settings)

    app = FastAPI(title="Background Removal Service", version="0.1.0")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        # The only validated input is the "image" upload.
        logger.info("Rejected upload: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": NO_FILE_MESSAGE})

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(status="ok", timestamp=_utc_timestamp())

    @app.get("/", response_model=RootResponse)
    def root():
        return RootResponse(message="Background Removal API", endpoint="POST /remove-bg", status="running")

    @app.post(
        "/remove-bg",
        response_model=RemoveBgResponse,
        response_model_exclude_none=True,
        responses={400: {"model": ErrorResponse}, 500: {"model": FailureResponse}},
    )
    def remove_bg(image: Optional[UploadFile] = File(None)):
        if image is None or not image.filename:
            return JSONResponse(status_code=400, content={"error": NO_FILE_MESSAGE})

        try:
            with intake.scoped(image.filename, image.file) as input_path:
                logger.info("Processing: %s", input_path)
                png_bytes = remove_background_from_path(
                    input_path, remover, timeout=settings.process_timeout_seconds
                )
            output_path = output_store.save(png_bytes) if output_store is not None else None
        except Exception as exc:  # noqa: BLE001
            logger.exception("Background removal failed for upload %r: %s", image.filename, exc)
            message = str(exc) if settings.expose_error_detail and str(exc) else GENERIC_FAILURE_MESSAGE
            return JSONResponse(status_code=500, content=FailureResponse(error=message).model_dump())

        return RemoveBgResponse(
            success=True,
            message=SUCCESS_MESSAGE,
            base64=to_data_url(png_bytes),
            outputPath=output_path,
        )

    return app
