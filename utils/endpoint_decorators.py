"""
Decorators for the FastAPI extraction endpoints.

`handle_pdf_processing` validates the upload, parks it in a temporary file
for the duration of the request, bounds the processing time and turns
extraction errors into HTTP responses.
"""

import os
import tempfile
import logging
import asyncio
from functools import wraps
from typing import Callable, List, Tuple, Type
from fastapi import UploadFile, HTTPException, Request

from utils.validation import (
    validate_file_content,
    PdfValidationError,
    ProcessingTimeoutError,
    DocumentAccessError,
    DocumentOpenError,
    VALIDATION_CONSTANTS
)

logger = logging.getLogger(__name__)

# Extraction errors and the status code each one is reported with, first match wins
ERROR_STATUS_CODES: List[Tuple[Type[Exception], int]] = [
    (DocumentAccessError, 403),
    (DocumentOpenError, 422),
    (PdfValidationError, 400),
    (ProcessingTimeoutError, 408),
]


def _status_for(error: Exception) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


async def _read_upload(upload: UploadFile) -> bytes:
    """Read and check an uploaded PDF; raises HTTPException(400) when unusable."""
    if not upload.filename or not upload.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    try:
        content = await upload.read()
    except Exception as e:
        logger.error(f"Error reading uploaded file {upload.filename}: {e}")
        raise HTTPException(status_code=400, detail=f"Error reading uploaded file: {e}")

    is_valid, error = validate_file_content(content, max_size_mb=VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB'])
    if not is_valid:
        logger.warning(f"Rejected upload {upload.filename}: {error}")
        raise HTTPException(status_code=400, detail=error)
    return content


def _write_temp_pdf(content: bytes) -> str:
    fd, path = tempfile.mkstemp(suffix='.pdf')
    with os.fdopen(fd, 'wb') as out:
        out.write(content)
    return path


def _remove_temp_pdf(path: str) -> None:
    try:
        os.unlink(path)
        logger.debug(f"Removed temporary upload {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove temporary upload {path}: {e}")


def handle_pdf_processing(func: Callable) -> Callable:
    """
    Wrap an endpoint that processes one uploaded PDF.

    The endpoint must take `request: Request` and `file: UploadFile` as keyword
    arguments; an optional `processing_timeout` (seconds) overrides the default
    limit. The temporary PDF path is handed over in `request.state.temp_file_path`
    and the file is removed once the endpoint returns.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request = kwargs.get('request')
        upload: UploadFile = kwargs.get('file')
        if request is None:
            raise HTTPException(status_code=500, detail="Endpoint is missing its 'request' parameter")
        if upload is None:
            raise HTTPException(status_code=400, detail="File parameter is required")

        timeout_seconds = kwargs.get('processing_timeout') or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']
        content = await _read_upload(upload)

        temp_path = _write_temp_pdf(content)
        request.state.temp_file_path = temp_path
        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Processing of {upload.filename} timed out after {timeout_seconds}s")
            raise HTTPException(status_code=408, detail=f"PDF processing timed out after {timeout_seconds} seconds.")
        except HTTPException:
            raise
        except Exception as e:
            status_code = _status_for(e)
            if status_code == 500:
                logger.exception(f"Unexpected error processing {upload.filename}: {e}")
                raise HTTPException(status_code=500, detail=f"Internal server error during PDF processing: {e}")
            logger.warning(f"{upload.filename}: {e} (HTTP {status_code})")
            raise HTTPException(status_code=status_code, detail=str(e))
        finally:
            _remove_temp_pdf(temp_path)

    return wrapper
