"""PDF Phone Number Replacer Python Server"""

import logging
import asyncio
from pathlib import PurePath
from typing import Optional, List
import os

import uvicorn
from fastapi import FastAPI, UploadFile, File, HTTPException, Query, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from rich.console import Console
from rich.logging import RichHandler

from models.pdf_types import BatchResponse, RenderMode
from extractors.phone_replacer import (
    DEFAULT_REPLACEMENT_NUMBER,
    process_documents,
    replace_phone_numbers_detailed,
)
from utils.endpoint_decorators import handle_pdf_processing
from utils.font_metrics import load_replacement_font
from utils.validation import FontEmbeddingError, validate_processing_environment, validate_replacement_number

API_VERSION = "1.0.0"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
DEFAULT_TIMEOUT_SECONDS = 300
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600
REPLACEMENT_COUNT_HEADER = "X-Phone-Replacements"

logger = logging.getLogger("rich")

app = FastAPI(
    title="PDF Phone Number Replacer API",
    description="Find phone numbers in PDF files and replace them",
    version=API_VERSION
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REPLACEMENT_COUNT_HEADER, "Content-Disposition"],
)


def _output_filename(filename: Optional[str], mode: RenderMode) -> str:
    stem = PurePath(filename or "document.pdf").stem or "document"
    return f"{stem}-{mode.value}.pdf"


async def _read_font(font: Optional[UploadFile]) -> Optional[bytes]:
    """Bytes of an optional font upload; an empty upload counts as none."""
    if font is None:
        return None
    return await font.read() or None


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "message": "PDF Phone Number Replacer API",
        "version": API_VERSION,
        "features": [
            "Phone number detection (separator noise, vanity toll-free numbers)",
            "In-place replacement keeping the original layout",
            "Presentable reflow with heading, bullets and paragraphs",
            "Batch processing with per-document errors"
        ]
    }


@app.get("/health")
async def health_check():
    """Health check with dependency verification"""
    try:
        import pdfminer
        import pdfplumber
        import fontTools
        import pikepdf
        import pydantic
    except ImportError as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": f"Missing dependency: {str(e)}"
            }
        )

    environment_ok, environment_error = validate_processing_environment()
    if not environment_ok:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": environment_error
            }
        )

    return {
        "status": "healthy",
        "version": API_VERSION,
        "features": {
            "text_extraction": "pdfminer.six",
            "page_geometry": "pdfplumber",
            "pdf_manipulation": "pikepdf",
            "font_embedding": "fonttools"
        },
        "dependencies": {
            "pdfminer": pdfminer.__version__,
            "pdfplumber": pdfplumber.__version__,
            "pikepdf": pikepdf.__version__,
            "fonttools": fontTools.version,
            "pydantic": pydantic.VERSION
        }
    }


@app.post("/replace-phone-numbers")
@handle_pdf_processing
async def replace_phone_numbers_endpoint(
    *,
    request: Request,
    file: UploadFile = File(...),
    replacement: str = Form(DEFAULT_REPLACEMENT_NUMBER, description="Phone number drawn in place of every match"),
    mode: str = Form(RenderMode.INPLACE.value, description="'inplace' keeps the layout, 'presentable' reflows the text"),
    font: Optional[UploadFile] = File(None, description="TrueType font for drawn text, needed for characters outside WinAnsi"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Replace every phone number in a PDF.

    **Modes:**
    - `inplace`: Paints over each number on the original pages and draws the replacement on top
    - `presentable`: Re-composes the document as its heading plus bullets and paragraphs on fresh pages

    An optional `font` upload (.ttf) is embedded and used for all drawn text.

    **Returns:**
    - The output PDF; the `X-Phone-Replacements` header carries the number of replacements
    """
    content = request.state.file_content
    render_mode = RenderMode(mode)
    font_bytes = await _read_font(font)

    logger.info(f"Replacing phone numbers in {file.filename} (mode={render_mode.value})")

    outcome = await asyncio.to_thread(
        replace_phone_numbers_detailed,
        content,
        replacement,
        render_mode,
        name=file.filename,
        font_bytes=font_bytes,
    )

    logger.info(f"Replaced {outcome.replacements} phone number(s) in {file.filename}")
    return Response(
        content=outcome.pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{_output_filename(file.filename, render_mode)}"',
            REPLACEMENT_COUNT_HEADER: str(outcome.replacements),
        }
    )


@app.post("/replace-phone-numbers/batch", response_model=BatchResponse)
async def replace_phone_numbers_batch(
    files: List[UploadFile] = File(...),
    replacement: str = Form(DEFAULT_REPLACEMENT_NUMBER, description="Phone number drawn in place of every match"),
    mode: str = Form(RenderMode.INPLACE.value, description="'inplace' or 'presentable'"),
    font: Optional[UploadFile] = File(None, description="TrueType font shared by every document"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds for the whole batch")
):
    """
    Replace phone numbers in several PDFs.

    Each document is processed on its own; a document that fails is reported
    with its error and the rest of the batch still completes.

    **Returns:**
    - One result per file with the base64-encoded output PDF or the error
    """
    try:
        replacement = validate_replacement_number(replacement)
        render_mode = RenderMode(mode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    font_bytes = await _read_font(font)
    if font_bytes:
        # Reject a bad font once instead of failing every document with it
        try:
            load_replacement_font(font_bytes=font_bytes)
        except FontEmbeddingError as e:
            raise HTTPException(status_code=422, detail=f"Replacement font unavailable: {str(e)}")

    documents = []
    for upload in files:
        documents.append((upload.filename or "document.pdf", await upload.read()))

    logger.info(f"Batch of {len(documents)} document(s) (mode={render_mode.value})")

    try:
        results = await asyncio.wait_for(
            asyncio.to_thread(process_documents, documents, replacement, render_mode, font_bytes=font_bytes),
            timeout=processing_timeout
        )
    except asyncio.TimeoutError:
        logger.error(f"Batch timed out after {processing_timeout}s")
        raise HTTPException(
            status_code=408,
            detail=f"Batch processing timed out after {processing_timeout} seconds."
        )

    succeeded = sum(1 for result in results if result.success)
    return BatchResponse(results=results, succeeded=succeeded, failed=len(results) - succeeded)


def _configure_server_logging():
    """Configure logging with Rich handler and filters for clean output"""
    console = Console(force_terminal=True)

    # Get level from env, default to INFO
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    class ShutdownFilter(logging.Filter):
        """Filter out shutdown-related log messages"""
        def filter(self, record):
            if record.exc_info and record.exc_info[0] in (KeyboardInterrupt, asyncio.CancelledError):
                return False
            if "CancelledError" in str(record.msg) or "KeyboardInterrupt" in str(record.msg):
                return False
            return True

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=True
    )
    rich_handler.addFilter(ShutdownFilter())

    # Silence everything by default
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler])

    # Allow server startup logs
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)

    # Set specific module log levels
    for module_name in ["main", "rich", "engine", "extractors", "processors", "utils"]:
        logging.getLogger(module_name).setLevel(log_level)

    return console


def _find_free_port(start_port: int = 8000) -> int:
    """Find an available port starting from the given port"""
    import socket

    port = start_port
    max_port = start_port + 100

    while port < max_port:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(('localhost', port))
                return port
        except OSError:
            port += 1

    return start_port


server_console = _configure_server_logging()

if __name__ == "__main__":
    free_port = _find_free_port()
    server_console.print(f"[bold green]🚀 Starting server on http://localhost:{free_port}[/bold green]")

    try:
        uvicorn.run("main:app", host="0.0.0.0", port=free_port, reload=True, log_config=None)
    except KeyboardInterrupt:
        server_console.print("\n[bold yellow]🛑 Server stopped.[/bold yellow]")
