"""PDF Image Extractor Python Server"""

import sys
import logging
import asyncio
import os
import socket
import tempfile
from typing import Optional

import uvicorn
from fastapi import FastAPI, UploadFile, File, Query, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rich.console import Console
from rich.logging import RichHandler

from models.pdf_types import (
    ExtractedImageData,
    ExtractionResponse,
    PdfImageExtractionOptions,
)
from extractors.image_extractor import (
    config_from_options,
    detect_image_mime_type,
    extract_images,
    to_data_uri,
)
from utils import raster_codec
from utils.endpoint_decorators import handle_pdf_processing

API_VERSION = "1.0.0"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
DEFAULT_TIMEOUT_SECONDS = 300
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600

# Files are written as image-1.png, image-2.jpg, ... inside a per-request directory
OUTPUT_PREFIX = "image"
OUTPUT_FORMATS = ("png", "jpg", "jp2", "tiff")

logger = logging.getLogger("rich")

app = FastAPI(
    title="PDF Image Extractor API",
    description="Writes out the images embedded in PDF documents",
    version=API_VERSION
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {
        "message": "PDF Image Extractor API",
        "version": API_VERSION,
        "features": [
            "Image XObjects, inline images and form XObjects",
            "Images inside tiling patterns and soft masks",
            "Direct JPEG / JPEG 2000 stream copies",
            "Bitonal CCITT images as Group 4 TIFF",
            "Resolution (DPI) estimation",
        ]
    }


@app.get("/health")
async def health_check():
    """Report library versions and which output encoders this Pillow build has."""
    try:
        import PIL
        import pikepdf
        import numpy
    except ImportError as e:
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": f"Missing dependency: {e}"})

    return {
        "status": "healthy",
        "version": API_VERSION,
        "encoders": {fmt: raster_codec.is_format_available(fmt) for fmt in OUTPUT_FORMATS},
        "dependencies": {
            "pikepdf": pikepdf.__version__,
            "qpdf": pikepdf.__libqpdf_version__,
            "Pillow": PIL.__version__,
            "numpy": numpy.__version__,
        }
    }


def _extract_to_response(pdf_path: str, options: PdfImageExtractionOptions,
                         password: Optional[str]) -> ExtractionResponse:
    """Run an extraction into a scratch directory and collect the written files."""
    with tempfile.TemporaryDirectory(prefix="pdf-images-") as output_dir:
        config = config_from_options(options, os.path.join(output_dir, OUTPUT_PREFIX), password)
        result = extract_images(pdf_path, config)

        images = []
        for entry in result.images:
            with open(entry.fileName, 'rb') as f:
                img_bytes = f.read()
            fields = entry.model_dump()
            fields['fileName'] = os.path.basename(entry.fileName)
            images.append(ExtractedImageData(
                **fields,
                mimeType=detect_image_mime_type(img_bytes),
                data=to_data_uri(img_bytes) if options.include_image_data else None,
            ))

    return ExtractionResponse(
        images=images,
        totalPages=result.totalPages,
        pagesProcessed=result.pagesProcessed,
        failedImages=result.failedImages,
    )


@app.post("/extract-pdf-images", response_model=ExtractionResponse)
@handle_pdf_processing
async def extract_pdf_images(
    *,
    request: Request,
    file: UploadFile = File(...),
    direct_jpeg: Optional[bool] = Form(False, description="Copy JPEG/JPX streams as-is regardless of color space"),
    no_color_convert: Optional[bool] = Form(False, description="Keep the image's own color space"),
    include_density: Optional[bool] = Form(False, description="Re-encode every image to write its estimated DPI"),
    include_image_data: Optional[bool] = Form(False, description="Include base64-encoded image data in response"),
    password: Optional[str] = Form(None, description="Password to decrypt the document"),
    start_page: Optional[int] = Query(1, ge=1, description="Starting page number (1-based)"),
    end_page: Optional[int] = Query(None, ge=1, description="Ending page number (1-based), None for all pages"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Extract the embedded images of a PDF.

    **Configuration:**
    - `direct_jpeg`, `no_color_convert`, `include_density`: output format switches
    - `include_image_data=true`: Includes base64-encoded file data

    **Returns:**
    - One entry per written image with name, page, dimensions, suffix and DPI

    **Errors:** 403 when the document forbids extraction, 422 when it cannot be
    opened (corrupt file or wrong password), 400 for invalid uploads.
    """
    options = PdfImageExtractionOptions(
        direct_jpeg=bool(direct_jpeg),
        no_color_convert=bool(no_color_convert),
        include_density=bool(include_density),
        include_image_data=bool(include_image_data),
        start_page=start_page or 1,
        end_page=end_page,
    )
    logger.info(f"Extracting images from PDF ({options.model_dump()})")

    response = await asyncio.to_thread(_extract_to_response, request.state.temp_file_path, options, password)

    logger.info(f"Extracted {len(response.images)} images from {response.pagesProcessed} pages")
    return response


class _ShutdownFilter(logging.Filter):
    """Drops the tracebacks uvicorn logs when the server is stopped with Ctrl+C."""

    def filter(self, record):
        if record.exc_info and record.exc_info[0] in (KeyboardInterrupt, asyncio.CancelledError):
            return False
        message = str(record.msg)
        return "CancelledError" not in message and "KeyboardInterrupt" not in message


def _configure_server_logging() -> Console:
    console = Console(force_terminal=True)
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    rich_handler = RichHandler(console=console, rich_tracebacks=True, show_time=False, show_path=True)
    rich_handler.addFilter(_ShutdownFilter())

    # Third-party loggers stay at WARNING
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler])
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).setLevel(logging.INFO)
    for name in ("main", "rich", "engine", "extractors", "processors", "utils"):
        logging.getLogger(name).setLevel(log_level)

    return console


def _find_free_port(start_port: int = 8000, attempts: int = 100) -> int:
    """First port from start_port on that can be bound on localhost"""
    for port in range(start_port, start_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind(('localhost', port))
            except OSError:
                continue
            return port
    return start_port


server_console = _configure_server_logging()

if __name__ == "__main__":
    free_port = _find_free_port()
    server_console.print(f"[bold green]Starting server on http://localhost:{free_port}[/bold green]")

    try:
        uvicorn.run("main:app", host="0.0.0.0", port=free_port, reload=True, log_config=None)
    except KeyboardInterrupt:
        server_console.print("\n[bold yellow]Server stopped.[/bold yellow]")
        sys.exit(0)
