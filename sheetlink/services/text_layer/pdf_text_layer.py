"""Text layer provider backed by pdfplumber.

Loads a plan PDF from a URL or local path and yields one :class:`PageText`
per page. pdfplumber reports word boxes top-down; they are converted back to
PDF text matrices so that every text source goes through the same geometry
extraction as any other PDF text layer.
"""

from io import BytesIO
from pathlib import Path
from typing import List

import httpx
import pdfplumber

from sheetlink.core.exceptions import TextExtractionError
from sheetlink.models.sheet_models import PageText, TextRun
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)


class PdfTextLayerProvider:
    """Extracts per-page text runs from a PDF document.

    The document is loaded once with :meth:`open`; pages are then extracted one
    at a time so a failure on one page never affects the others.
    """

    def __init__(self, http_timeout: float = 60.0):
        self.http_timeout = http_timeout
        self._pdf = None

    async def open(self, document_url: str) -> int:
        """Load the PDF and return its page count."""
        pdf_bytes = await self._load_pdf(document_url)
        try:
            self._pdf = pdfplumber.open(BytesIO(pdf_bytes))
        except Exception as e:
            raise TextExtractionError(f"Failed to open PDF: {e}", original_error=e) from e

        page_count = len(self._pdf.pages)
        logger.info(
            f"Opened plan document with {page_count} pages",
            extra={"document_url": document_url, "size_bytes": len(pdf_bytes)}
        )
        return page_count

    def close(self) -> None:
        if self._pdf is not None:
            self._pdf.close()
            self._pdf = None

    async def __aenter__(self) -> "PdfTextLayerProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def extract_page(self, page_number: int) -> PageText:
        """Extract the text layer of one 1-indexed page.

        Raises:
            TextExtractionError: If the document is not open or the page fails
        """
        if self._pdf is None:
            raise TextExtractionError("No document open", page_number=page_number)

        try:
            page = self._pdf.pages[page_number - 1]
            return PageText(
                page_number=page_number,
                viewport_width=float(page.width),
                viewport_height=float(page.height),
                runs=self._page_runs(page),
            )
        except Exception as e:
            raise TextExtractionError(
                f"Failed to extract text from page {page_number}: {e}",
                page_number=page_number,
                original_error=e,
            ) from e

    @staticmethod
    def _page_runs(page) -> List[TextRun]:
        page_height = float(page.height)
        runs: List[TextRun] = []

        for word in page.extract_words(keep_blank_chars=True, use_text_flow=True):
            x0, x1 = float(word["x0"]), float(word["x1"])
            top, bottom = float(word["top"]), float(word["bottom"])
            height = bottom - top
            runs.append(
                TextRun(
                    text=word["text"],
                    transform=[height, 0.0, 0.0, height, x0, page_height - bottom],
                    width=x1 - x0,
                    height=height,
                )
            )
        return runs

    async def _load_pdf(self, document_url: str) -> bytes:
        """Load PDF bytes from an http(s) URL or a local path."""
        if document_url.startswith(("http://", "https://")):
            logger.debug("Downloading PDF from URL", extra={"url": document_url})
            async with httpx.AsyncClient(timeout=self.http_timeout) as client:
                response = await client.get(document_url)
                response.raise_for_status()
                return response.content

        path = Path(document_url)
        if not path.exists():
            raise TextExtractionError(f"PDF file not found: {document_url}")
        return path.read_bytes()
