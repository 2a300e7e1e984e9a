"""Client for the external title-block OCR service.

The service reads a page's title block and answers with a JSON object holding
``sheet_number``, ``sheet_title``, ``discipline`` and ``confidence``. The reply
text is returned as-is; ``parse_title_block_response`` interprets it.
"""

from typing import Optional

import httpx

from sheetlink.utils.logging import get_logger

LOGGER = get_logger(__name__)


class TitleBlockClient:
    """Fetches title-block replies for single pages of a plan document."""

    def __init__(self, service_url: str, timeout: int = 60):
        """Initialize the client.

        Args:
            service_url: Endpoint of the title-block OCR service
            timeout: Request timeout in seconds
        """
        self.service_url = service_url
        self.timeout = timeout

    async def fetch(self, document_url: str, page_number: int) -> Optional[str]:
        """Raw reply for one page, or None when the service could not answer.

        A failed page falls back to a "Sheet N" record, so errors are logged
        and not raised.
        """
        payload = {"document_url": document_url, "page_number": page_number}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.service_url, json=payload)
                response.raise_for_status()
                return response.text

            except httpx.HTTPStatusError as e:
                LOGGER.warning(
                    f"Title block service returned HTTP {e.response.status_code} for page {page_number}",
                    extra={"page_number": page_number, "status_code": e.response.status_code},
                )
            except httpx.RequestError as e:
                LOGGER.warning(
                    f"Title block service unreachable for page {page_number}: {e}",
                    extra={"page_number": page_number, "error": str(e)},
                )
        return None
