"""
PDF File Validation and Error Types
Input validation, environment checks and the exception taxonomy for image extraction.
"""

import os
from typing import Optional, Tuple, Dict, Any
import logging

import psutil

logger = logging.getLogger(__name__)

# Validation constants
VALIDATION_CONSTANTS = {
    'PDF_SIGNATURE': b'%PDF',
    'MAX_FILE_SIZE_MB': 200,
    'MAX_PROCESSING_TIME_SECONDS': 300,  # 5 minutes
    'MIN_FREE_DISK_MB': 50,
    'SUPPORTED_PDF_VERSIONS': ['1.0', '1.1', '1.2', '1.3', '1.4', '1.5', '1.6', '1.7', '2.0'],
}


class PdfValidationError(Exception):
    """Input file or configuration rejected before extraction starts"""
    pass


class ProcessingTimeoutError(Exception):
    """Processing exceeded its time budget"""
    pass


class ExtractionError(Exception):
    """Base class for errors that abort a whole extraction run"""
    pass


class DocumentAccessError(ExtractionError):
    """Document permissions forbid content extraction"""
    pass


class DocumentOpenError(ExtractionError):
    """Document cannot be parsed or the password is wrong"""
    pass


def _read_header(file_path: str, length: int = 8) -> bytes:
    with open(file_path, 'rb') as f:
        return f.read(length)


def validate_pdf_signature(file_path: str) -> Tuple[bool, Optional[str]]:
    """
    Check the %PDF magic bytes. An unknown version number only logs a warning.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        header = _read_header(file_path)
    except FileNotFoundError:
        return False, f"File not found: {file_path}"
    except OSError as e:
        return False, f"Cannot read {file_path}: {e}"

    if not header.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
        return False, f"Not a PDF file (header {header[:4]!r}): {file_path}"

    version = header[5:8].decode('ascii', errors='replace')
    if version not in VALIDATION_CONSTANTS['SUPPORTED_PDF_VERSIONS']:
        logger.warning(f"Unexpected PDF version '{version}' in {file_path}, trying anyway")

    return True, None


def validate_file_size(file_path: str, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Returns:
        Tuple of (is_valid, error_message)
    """
    limit_mb = max_size_mb or VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']
    try:
        size_mb = os.path.getsize(file_path) / (1024 * 1024)
    except OSError as e:
        return False, f"Cannot determine size of {file_path}: {e}"

    if size_mb > limit_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {limit_mb}MB)"
    return True, None


def validate_file_content(content: bytes, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Same checks as the file validators, for an upload still in memory.

    Returns:
        Tuple of (is_valid, error_message)
    """
    limit_mb = max_size_mb or VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']
    size_mb = len(content) / (1024 * 1024)
    if size_mb > limit_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {limit_mb}MB)"

    if not content.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
        return False, "Invalid PDF signature in uploaded content"

    return True, None


def validate_output_environment(output_dir: str) -> Tuple[bool, Optional[str]]:
    """
    Check that the directory receiving extracted images exists and has free space

    Returns:
        Tuple of (is_valid, error_message)
    """
    target = output_dir or os.curdir
    if not os.path.isdir(target):
        return False, f"Output directory does not exist: {target}"

    try:
        free_mb = psutil.disk_usage(target).free / (1024 * 1024)
    except OSError as e:
        return False, f"Error checking disk space in {target}: {e}"

    if free_mb < VALIDATION_CONSTANTS['MIN_FREE_DISK_MB']:
        return False, (
            f"Insufficient disk space in {target}: {free_mb:.1f}MB "
            f"(need at least {VALIDATION_CONSTANTS['MIN_FREE_DISK_MB']}MB)"
        )

    logger.debug(f"{free_mb:.1f}MB free in {target}")
    return True, None


def comprehensive_pdf_validation(file_path: str, output_dir: str = "",
                                 max_size_mb: Optional[int] = None) -> Dict[str, Any]:
    """
    Run every input and output check before a document is opened.

    Returns:
        {'is_valid': bool, 'errors': [str, ...], 'file_info': {'size_mb': float}}
    """
    if not os.path.exists(file_path):
        return {'is_valid': False, 'errors': [f"File not found: {file_path}"], 'file_info': {}}

    checks = [
        validate_file_size(file_path, max_size_mb),
        validate_pdf_signature(file_path),
        validate_output_environment(output_dir),
    ]
    errors = [error for is_valid, error in checks if not is_valid]

    return {
        'is_valid': not errors,
        'errors': errors,
        'file_info': {'size_mb': round(os.path.getsize(file_path) / (1024 * 1024), 2)},
    }


__all__ = [
    'validate_pdf_signature',
    'validate_file_size',
    'validate_file_content',
    'validate_output_environment',
    'comprehensive_pdf_validation',
    'PdfValidationError',
    'ProcessingTimeoutError',
    'ExtractionError',
    'DocumentAccessError',
    'DocumentOpenError',
    'VALIDATION_CONSTANTS'
]
