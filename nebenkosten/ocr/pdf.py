"""PDF bills: render the leading pages and recognize them one by one.

Pages are rasterized with PyMuPDF and handed to the configured OCR engine
like any scanned image, so scanned and digitally generated statements
take the same path.
"""

import logging
import tempfile
from pathlib import Path

import fitz
from PIL import Image

from nebenkosten.ocr.factory import TextExtractor
from nebenkosten.ocr.service import OCRResult, ProgressCallback
from nebenkosten.shared.config import Settings
from nebenkosten.shared.exceptions import DocumentRenderError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def is_pdf(filename: str | None, content_type: str | None) -> bool:
    return content_type == PDF_CONTENT_TYPE or (filename or "").lower().endswith(".pdf")


def render_pages(pdf_bytes: bytes, max_pages: int, dpi: int) -> list[Image.Image]:
    """Rasterize the first `max_pages` pages as RGB images.

    Raises:
        DocumentRenderError: If the PDF is corrupt, encrypted or empty
    """
    try:
        document = fitz.open(stream=pdf_bytes, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise DocumentRenderError(f"PDF could not be opened: {e}") from e

    with document:
        if document.needs_pass:
            raise DocumentRenderError("PDF is password protected")
        if document.page_count == 0:
            raise DocumentRenderError("PDF has no pages")

        images = []
        for page in document.pages(0, min(max_pages, document.page_count)):
            pixmap = page.get_pixmap(dpi=dpi)
            images.append(Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples))

    logger.debug(f"Rendered {len(images)} of {document.page_count} PDF pages at {dpi} dpi")
    return images


def _page_progress(
    progress: ProgressCallback | None, index: int, count: int
) -> ProgressCallback | None:
    if progress is None:
        return None
    return lambda fraction: progress((index + fraction) / count)


def recognize_pdf(
    ocr_service: TextExtractor,
    pdf_bytes: bytes,
    settings: Settings,
    progress: ProgressCallback | None = None,
) -> OCRResult:
    """Recognize the leading pages of a PDF bill and join their text.

    Progress fractions cover all pages. The first page that fails to
    recognize fails the whole document.

    Raises:
        DocumentRenderError: If the PDF cannot be rendered
    """
    pages = render_pages(pdf_bytes, settings.pdf_max_pages, settings.pdf_render_dpi)

    texts: list[str] = []
    confidences: list[float] = []
    with tempfile.TemporaryDirectory() as workdir:
        for index, page in enumerate(pages):
            page_path = Path(workdir) / f"page-{index + 1}.png"
            page.save(page_path)
            result = ocr_service.extract_text(
                page_path, progress=_page_progress(progress, index, len(pages))
            )
            if not result.success:
                return OCRResult.failure(f"Page {index + 1}: {result.error}")
            texts.append(result.text)
            if result.confidence is not None:
                confidences.append(result.confidence)

    return OCRResult(
        text="\n\n".join(texts),
        success=True,
        confidence=sum(confidences) / len(confidences) if confidences else None,
    )
