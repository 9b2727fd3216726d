"""
PDF Input Validation and Resource Management Utilities
Validation, resource monitoring, and the error taxonomy for phone number replacement.
"""

import time
import psutil
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)

# Validation constants
VALIDATION_CONSTANTS = {
    'PDF_SIGNATURE': b'%PDF',
    'MAX_FILE_SIZE_MB': 50,
    'MAX_PROCESSING_TIME_SECONDS': 300,  # 5 minutes
    'MAX_MEMORY_USAGE_MB': 1000,  # 1GB
    'MIN_AVAILABLE_MEMORY_MB': 100,
    'SUPPORTED_PDF_VERSIONS': ['1.0', '1.1', '1.2', '1.3', '1.4', '1.5', '1.6', '1.7', '2.0'],
}

class PdfValidationError(Exception):
    """Input bytes are not an acceptable PDF (signature, size)"""
    pass

class PdfExtractionError(PdfValidationError):
    """The source document cannot be parsed into pages and text"""
    pass

class FontEmbeddingError(Exception):
    """The replacement font cannot be resolved or installed on a page"""
    pass

class ProcessingTimeoutError(Exception):
    """A document exceeded its processing time budget"""
    pass

class MemoryLimitError(Exception):
    """A document exceeded the memory budget"""
    pass

def validate_pdf_header(content: bytes) -> Tuple[bool, Optional[str]]:
    """
    Validate PDF signature (magic bytes) and version

    Args:
        content: Raw document bytes

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(content) < 4:
        return False, "File too small to be a valid PDF"

    if not content.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
        return False, f"Invalid PDF signature. Expected {VALIDATION_CONSTANTS['PDF_SIGNATURE']}, got {content[:4]}"

    if len(content) >= 8:
        try:
            version_str = content[5:8].decode('ascii')
            if version_str not in VALIDATION_CONSTANTS['SUPPORTED_PDF_VERSIONS']:
                logger.warning(f"Unsupported PDF version: {version_str}")
                # Continue processing - many PDFs work even with unsupported versions
        except UnicodeDecodeError:
            logger.warning("Could not decode PDF version")

    return True, None

def validate_file_content(content: bytes, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate uploaded file content before processing

    Args:
        content: Raw file content bytes
        max_size_mb: Maximum file size in MB

    Returns:
        Tuple of (is_valid, error_message)
    """
    if max_size_mb is None:
        max_size_mb = VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']

    size_mb = len(content) / (1024 * 1024)
    if size_mb > max_size_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {max_size_mb}MB)"

    return validate_pdf_header(content)

def validate_replacement_number(replacement: Optional[str]) -> str:
    """
    Normalize the replacement number supplied by the caller

    Raises:
        ValueError: If the replacement is missing or blank
    """
    cleaned = (replacement or "").strip()
    if not cleaned:
        raise ValueError("Replacement phone number must not be empty")
    return cleaned

def validate_processing_environment() -> Tuple[bool, Optional[str]]:
    """
    Validate that the system has sufficient resources for PDF processing

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        memory = psutil.virtual_memory()
        available_mb = memory.available / (1024 * 1024)

        if available_mb < VALIDATION_CONSTANTS['MIN_AVAILABLE_MEMORY_MB']:
            return False, f"Insufficient memory available: {available_mb:.1f}MB (need at least {VALIDATION_CONSTANTS['MIN_AVAILABLE_MEMORY_MB']}MB)"

        logger.debug(f"Environment validation passed: {available_mb:.1f}MB memory available")
        return True, None

    except Exception as e:
        return False, f"Error checking system resources: {str(e)}"

class ResourceManager:
    """
    Time and memory budget for processing one document.

    Page loops call check_limits() so a runaway document fails with a
    ProcessingTimeoutError or MemoryLimitError instead of stalling the worker.
    """

    def __init__(self, max_memory_mb: Optional[int] = None, max_time_seconds: Optional[int] = None,
                 label: str = "document"):
        self.label = label
        self.max_memory_mb = max_memory_mb or VALIDATION_CONSTANTS['MAX_MEMORY_USAGE_MB']
        self.max_time_seconds = max_time_seconds or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']
        self.start_time = None
        self.start_memory = None

    def __enter__(self):
        self.start_time = time.time()
        self.start_memory = psutil.Process().memory_info().rss / (1024 * 1024)
        logger.debug(f"Processing {self.label} starting at {self.start_memory:.1f}MB RSS")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            processing_time = time.time() - self.start_time
            current_memory = psutil.Process().memory_info().rss / (1024 * 1024)
            memory_delta = current_memory - self.start_memory if self.start_memory else 0

            logger.info(f"Processed {self.label} in {processing_time:.2f}s ({memory_delta:+.1f}MB RSS)")
        return False

    def check_limits(self):
        """Check if resource limits have been exceeded"""
        current_time = time.time()

        if self.start_time and (current_time - self.start_time) > self.max_time_seconds:
            raise ProcessingTimeoutError(
                f"Processing {self.label} took {current_time - self.start_time:.1f}s "
                f"(max: {self.max_time_seconds}s)"
            )

        try:
            current_memory = psutil.Process().memory_info().rss / (1024 * 1024)
        except psutil.Error as e:
            logger.warning(f"Could not check memory usage: {e}")
            return

        if current_memory > self.max_memory_mb:
            raise MemoryLimitError(
                f"Processing {self.label} used {current_memory:.1f}MB "
                f"(max: {self.max_memory_mb}MB)"
            )

__all__ = [
    'validate_pdf_header',
    'validate_file_content',
    'validate_replacement_number',
    'validate_processing_environment',
    'ResourceManager',
    'PdfValidationError',
    'PdfExtractionError',
    'FontEmbeddingError',
    'ProcessingTimeoutError',
    'MemoryLimitError',
    'VALIDATION_CONSTANTS'
]
