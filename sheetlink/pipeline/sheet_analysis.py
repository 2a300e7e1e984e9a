"""Sheet analysis orchestration.

Wraps the pure ``analyze_plan`` function with the I/O around it: the per-plan
run lock, text extraction, page index persistence and link replacement.

A run never fails because of a single page. Pages whose text cannot be
extracted continue with zero runs and a fallback record, and a failed link
write is reported rather than raised so the page index survives.
"""

from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from sheetlink.core.config import DetectionSettings, settings
from sheetlink.core.exceptions import AnalysisInProgressError, LinkPersistenceError, TextExtractionError
from sheetlink.database.models import Plan
from sheetlink.models.sheet_models import AnalysisReport, PageRecord, PageText
from sheetlink.pipeline.analysis import analyze_plan, build_default_detectors
from sheetlink.repositories.page_link_repository import PageLinkRepository
from sheetlink.repositories.page_revision_repository import PageRevisionRepository
from sheetlink.repositories.plan_page_repository import PlanPageRepository
from sheetlink.repositories.plan_repository import PlanRepository
from sheetlink.services.detection.base import ReferenceDetector
from sheetlink.services.metadata.page_metadata import (
    fallback_page_record,
    infer_discipline,
    record_from_title_block,
)
from sheetlink.services.metadata.title_block_client import TitleBlockClient
from sheetlink.services.text_layer.pdf_text_layer import PdfTextLayerProvider
from sheetlink.utils.logging import get_logger

LOGGER = get_logger(__name__)

ProgressCallback = Callable[[int, int], Union[None, Awaitable[None]]]
StartAnalysis = Callable[[UUID], Awaitable[str]]


class SheetAnalysisPipeline:
    """Runs sheet analysis for one plan and persists the result.

    Steps:
    1. Acquire the plan's analysis lock
    2. Extract the text layer of every page
    3. Upsert the page index and commit
    4. Detect, resolve and link references
    5. Replace the plan's automatic links and revision rows
    6. Release the lock
    """

    def __init__(
        self,
        session: AsyncSession,
        text_provider: Optional[PdfTextLayerProvider] = None,
        detectors: Optional[Sequence[ReferenceDetector]] = None,
        detection: Optional[DetectionSettings] = None,
        title_blocks: Optional[TitleBlockClient] = None,
    ):
        self.session = session
        self.detection = detection or settings.detection
        self.text_provider = text_provider or PdfTextLayerProvider(http_timeout=settings.http_timeout)
        self.detectors = list(detectors) if detectors is not None else build_default_detectors(self.detection)
        if title_blocks is None and settings.title_block_service_url:
            title_blocks = TitleBlockClient(settings.title_block_service_url, timeout=settings.http_timeout)
        self.title_blocks = title_blocks

        self.plans = PlanRepository(session)
        self.pages = PlanPageRepository(session)
        self.links = PageLinkRepository(session)
        self.revisions = PageRevisionRepository(session)

    async def run(
        self,
        plan_id: UUID,
        document_url: str,
        progress: Optional[ProgressCallback] = None,
    ) -> AnalysisReport:
        """Analyze a plan end to end.

        Raises:
            AnalysisInProgressError: If another run holds the plan's lock
            PlanNotFoundError: If the plan does not exist
            TextExtractionError: If the document itself cannot be opened
        """
        version = await self.plans.try_begin_analysis(plan_id)
        total_pages = 0
        succeeded = False
        try:
            total_pages = await self.text_provider.open(document_url)
            try:
                page_texts, records, failed_pages = await self._extract_pages(
                    plan_id, document_url, total_pages, progress
                )
            finally:
                self.text_provider.close()

            await self.pages.upsert_pages(plan_id, records)
            await self.session.commit()

            result = analyze_plan(
                page_texts,
                records,
                detectors=self.detectors,
                plan_id=plan_id,
                unresolved_limit=self.detection.unresolved_reference_limit,
            )

            links_written = 0
            link_write_failed = False
            try:
                links_written = await self.links.replace_auto_links(plan_id, result.links)
                await self.revisions.replace_revisions(plan_id, result.revisions)
            except LinkPersistenceError as e:
                link_write_failed = True
                LOGGER.warning(
                    f"Link write failed for plan {plan_id}, keeping page index: {e}",
                    extra={"plan_id": str(plan_id), "links": len(result.links)}
                )

            report = AnalysisReport(
                plan_id=plan_id,
                analysis_version=version,
                total_pages=total_pages,
                failed_pages=failed_pages,
                links_written=links_written,
                link_write_failed=link_write_failed,
                unresolved=result.unresolved,
                revisions=result.revisions,
            )
            LOGGER.info(
                f"Sheet analysis complete for plan {plan_id}",
                extra={
                    "plan_id": str(plan_id),
                    "analysis_version": version,
                    "total_pages": total_pages,
                    "failed_pages": len(failed_pages),
                    "links_written": links_written,
                    "unresolved": len(result.unresolved),
                }
            )
            succeeded = True
            return report
        except Exception:
            # An aborted transaction would reject the lock release below
            await self.session.rollback()
            raise
        finally:
            await self.plans.finish_analysis(
                plan_id, version, page_count=total_pages or None, succeeded=succeeded
            )

    async def _extract_pages(
        self,
        plan_id: UUID,
        document_url: str,
        total_pages: int,
        progress: Optional[ProgressCallback],
    ) -> tuple[List[PageText], List[PageRecord], List[int]]:
        stored: Dict[int, PageRecord] = {
            record.page_number: record for record in await self.pages.get_pages(plan_id)
        }

        page_texts: List[PageText] = []
        records: List[PageRecord] = []
        failed_pages: List[int] = []

        for page_number in range(1, total_pages + 1):
            try:
                page_texts.append(await self.text_provider.extract_page(page_number))
            except TextExtractionError as e:
                LOGGER.warning(
                    f"Text extraction failed for page {page_number}, continuing without text: {e}",
                    extra={"plan_id": str(plan_id), "page_number": page_number}
                )
                failed_pages.append(page_number)
                page_texts.append(PageText(page_number=page_number, viewport_width=0, viewport_height=0))

            record = stored.get(page_number)
            if record is None and self.title_blocks is not None:
                reply = await self.title_blocks.fetch(document_url, page_number)
                record = record_from_title_block(page_number, reply, plan_id)
            record = record or fallback_page_record(page_number, plan_id)
            record = record.model_copy(update={"plan_id": plan_id})
            if not record.page_title:
                record.page_title = f"Sheet {page_number}"
            if not record.discipline:
                record.discipline = infer_discipline(record.sheet_number, record.page_title)
            records.append(record)

            if progress is not None:
                outcome = progress(page_number, total_pages)
                if outcome is not None:
                    await outcome

        return page_texts, records, failed_pages


async def ensure_plan_analyzed(
    plan: Plan,
    pages: PlanPageRepository,
    start_analysis: StartAnalysis,
) -> Optional[str]:
    """Start analysis once for a plan that has never been indexed.

    A plan qualifies when it has no indexed pages and no run has ever taken
    its lock. A manual start is needed to analyze it again after that.

    Returns:
        Whatever ``start_analysis`` returned (the workflow id), or None when
        nothing was started
    """
    if plan.analysis_in_progress or plan.analysis_version > 0:
        return None

    page_count = await pages.count_for_plan(plan.id)
    if page_count > 0:
        LOGGER.debug(
            f"Plan {plan.id} already indexed, skipping auto analysis",
            extra={"plan_id": str(plan.id), "pages": page_count}
        )
        return None

    try:
        started = await start_analysis(plan.id)
    except AnalysisInProgressError:
        return None

    LOGGER.info(
        f"Auto-started analysis for unindexed plan {plan.id}",
        extra={"plan_id": str(plan.id)}
    )
    return started
