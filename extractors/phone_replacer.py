"""
Phone Number Replacement Module

Public API for replacing phone numbers in PDFs. Each call opens its own
PDFEngine, so documents never share state and a batch can record one
document's failure and carry on with the rest.
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from engine import PDFEngine, EngineConfig
from models.pdf_types import Block, DocumentResult, RenderMode
from utils.validation import validate_replacement_number

logger = logging.getLogger(__name__)

DEFAULT_REPLACEMENT_NUMBER = "+1-000-000-0000"


@dataclass
class ReplacementOutcome:
    """Output document plus the intermediate artifacts that produced it"""
    pdf_bytes: bytes
    mode: RenderMode
    replacements: int
    pages: int
    title: Optional[str] = None  # Presentable mode only
    blocks: List[Block] = field(default_factory=list)  # Presentable mode only


def replace_phone_numbers_detailed(
        pdf_bytes: bytes,
        replacement: str,
        mode: Union[RenderMode, str] = RenderMode.INPLACE,
        config: Optional[EngineConfig] = None,
        name: str = "document.pdf",
        font_bytes: Optional[bytes] = None,
) -> ReplacementOutcome:
    """
    Replace every phone number in a PDF.

    Args:
        pdf_bytes: Source PDF content
        replacement: Replacement phone number, drawn verbatim after trimming
        mode: "inplace" to paint over the source pages, "presentable" to
              re-compose title and body onto fresh pages
        config: Engine configuration (uses defaults if None)
        name: Display name used in logs
        font_bytes: TrueType font to embed for drawn text, for characters
                    the standard fonts cannot encode

    Returns:
        ReplacementOutcome with the output bytes, match count and, for
        presentable mode, the title and blocks

    Raises:
        ValueError: If the replacement is blank or the mode is unknown
        PdfValidationError: If the bytes are not an acceptable PDF
        PdfExtractionError: If the PDF cannot be parsed
        FontEmbeddingError: If the replacement font cannot be used
    """
    replacement = validate_replacement_number(replacement)
    mode = RenderMode(mode)

    logger.info(f"Replacing phone numbers in {name} ({mode.value} mode)")

    with PDFEngine(pdf_bytes, config=config, name=name, font_bytes=font_bytes) as engine:
        if mode == RenderMode.INPLACE:
            count = engine.redactor.redact_document(replacement)
            output = engine.save()
            return ReplacementOutcome(
                pdf_bytes=output,
                mode=mode,
                replacements=count,
                pages=engine.get_page_count(),
            )

        result = engine.reflow_renderer.render(replacement)
        return ReplacementOutcome(
            pdf_bytes=result.pdf_bytes,
            mode=mode,
            replacements=result.replacements,
            pages=result.page_count,
            title=result.title,
            blocks=result.blocks,
        )


def replace_phone_numbers_in_pdf(
        pdf_bytes: bytes,
        replacement: str,
        mode: Union[RenderMode, str] = RenderMode.INPLACE,
        config: Optional[EngineConfig] = None,
        font_bytes: Optional[bytes] = None,
) -> bytes:
    """
    Replace every phone number in a PDF and return the output document.

    See replace_phone_numbers_detailed for arguments and errors.
    """
    return replace_phone_numbers_detailed(pdf_bytes, replacement, mode, config, font_bytes=font_bytes).pdf_bytes


def process_documents(
        documents: Sequence[Tuple[str, bytes]],
        replacement: str,
        mode: Union[RenderMode, str] = RenderMode.INPLACE,
        config: Optional[EngineConfig] = None,
        font_bytes: Optional[bytes] = None,
) -> List[DocumentResult]:
    """
    Process several documents one after another.

    A failing document is recorded with its error and never stops the
    documents after it.

    Args:
        documents: (name, pdf bytes) pairs
        replacement: Replacement phone number
        mode: Output mode for every document
        config: Engine configuration shared by every document
        font_bytes: TrueType font shared by every document

    Returns:
        One DocumentResult per input, in input order
    """
    mode = RenderMode(mode)
    results = []
    for name, pdf_bytes in documents:
        try:
            outcome = replace_phone_numbers_detailed(
                pdf_bytes, replacement, mode, config, name=name, font_bytes=font_bytes)
        except Exception as e:
            logger.error(f"Failed to process {name}: {e}", exc_info=True)
            results.append(DocumentResult(name=name, success=False, mode=mode, error=str(e)))
            continue

        results.append(DocumentResult(
            name=name,
            success=True,
            mode=mode,
            pdf=base64.b64encode(outcome.pdf_bytes).decode('ascii'),
            replacements=outcome.replacements,
            pages=outcome.pages,
            title=outcome.title,
        ))

    succeeded = sum(1 for result in results if result.success)
    logger.info(f"Batch complete: {succeeded}/{len(results)} document(s) processed")
    return results
