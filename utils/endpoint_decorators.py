"""
Decorators for FastAPI endpoint error handling and resource management.

This module provides decorators to handle common patterns in PDF processing endpoints,
such as upload validation, processing timeouts, and mapping core errors to HTTP statuses.
"""

import logging
import asyncio
from functools import wraps
from typing import Callable, Optional
from fastapi import UploadFile, HTTPException, Request

from utils.validation import (
    validate_file_content,
    PdfValidationError,
    FontEmbeddingError,
    ProcessingTimeoutError,
    MemoryLimitError,
    VALIDATION_CONSTANTS
)

logger = logging.getLogger(__name__)


def processing_error_to_http(error: Exception, filename: str) -> HTTPException:
    """
    Map an exception raised by the core to the HTTPException returned to the client.

    Args:
        error: Exception raised while processing
        filename: Upload name used in log messages

    Returns:
        HTTPException with the status code for the error category
    """
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, asyncio.TimeoutError):
        logger.error(f"Processing timed out for {filename}")
        return HTTPException(status_code=408, detail="PDF processing timed out.")
    if isinstance(error, PdfValidationError):
        logger.warning(f"PDF validation failed for {filename}: {error}")
        return HTTPException(status_code=400, detail=f"PDF validation failed: {str(error)}")
    if isinstance(error, ValueError):
        logger.warning(f"Invalid request for {filename}: {error}")
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, FontEmbeddingError):
        logger.error(f"Replacement font unavailable for {filename}: {error}")
        return HTTPException(status_code=422, detail=f"Replacement font unavailable: {str(error)}")
    if isinstance(error, ProcessingTimeoutError):
        logger.error(f"Processing timeout for {filename}: {error}")
        return HTTPException(status_code=408, detail=f"Processing timeout: {str(error)}")
    if isinstance(error, MemoryLimitError):
        logger.error(f"Memory limit exceeded for {filename}: {error}")
        return HTTPException(status_code=507, detail=f"Memory limit exceeded: {str(error)}")

    logger.error(f"Unexpected error processing {filename}: {error}")
    logger.exception("Full exception details:", exc_info=error)
    return HTTPException(
        status_code=500,
        detail=f"Internal server error during PDF processing: {str(error)}"
    )


def handle_pdf_processing(func: Callable) -> Callable:
    """
    Decorator to handle common PDF processing patterns:
    - File type validation
    - File content reading and validation
    - Processing timeout management
    - Standardized error handling

    The decorated function must accept `request: Request` as a keyword argument.
    The decorator stores the raw bytes of the upload in `request.state.file_content`.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request = kwargs.get('request')
        if not request:
            raise HTTPException(
                status_code=500,
                detail="Endpoint decorated with handle_pdf_processing must accept 'request: Request'"
            )

        file: UploadFile = kwargs.get('file')
        if not file:
            raise HTTPException(
                status_code=400,
                detail="File parameter is required"
            )

        # Get timeout value (defaults to configured max if not provided)
        processing_timeout: Optional[int] = kwargs.get('processing_timeout')
        timeout_seconds = processing_timeout or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']

        # Step 1: Validate file type
        if not file.filename or not file.filename.lower().endswith('.pdf'):
            raise HTTPException(
                status_code=400,
                detail="Only PDF files are supported"
            )

        # Step 2: Read and validate file content
        try:
            content = await file.read()
        except Exception as e:
            logger.error(f"Error reading uploaded file: {e}")
            raise HTTPException(
                status_code=400,
                detail=f"Error reading uploaded file: {str(e)}"
            )

        is_valid_content, content_error = validate_file_content(
            content,
            max_size_mb=VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']
        )

        if not is_valid_content:
            logger.warning(f"File content validation failed for {file.filename}: {content_error}")
            raise HTTPException(
                status_code=400,
                detail=content_error
            )

        request.state.file_content = content

        # Step 3: Run the endpoint under the timeout
        try:
            return await asyncio.wait_for(
                func(*args, **kwargs),
                timeout=timeout_seconds
            )
        except Exception as e:
            raise processing_error_to_http(e, file.filename) from e

    return wrapper
