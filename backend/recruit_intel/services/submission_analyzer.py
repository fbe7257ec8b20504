"""
Submission Analyzer - per-submission analysis work run through the BatchQueue

Routing for one submission:
    1. Text content → analyze_text_submission
    2. Else the first attachment is downloaded:
       - PDF         → pdfplumber text extraction, analyzed as text; when no
                       text comes out, analyze_document_submission on the
                       leniently decoded bytes
       - image/video → base64 → analyze_image_submission
       - anything else → strict UTF-8 decode, analyzed as text
    3. Nothing usable → low-confidence placeholder analysis

Placeholder confidences:
    no content at all            0.1
    attachment without a URL     0.2
    download/decode failure      0.2
    unsupported file type        0.3

Errors from the AI gateway are not converted into placeholders. They
propagate out of the queued task, are logged per submission, and the
submission stays unanalyzed so a later run can retry it.
"""

import asyncio
import base64
import io
import logging
from typing import Awaitable, Callable, Dict, List, Optional

import httpx
import pdfplumber

from recruit_intel.middleware.metrics import record_placeholder_analysis
from recruit_intel.models import Assignment, Submission
from recruit_intel.schemas.analysis import SubmissionAnalysis
from recruit_intel.services.ai_analysis import AIAnalysisService
from recruit_intel.services.batch_queue import BatchQueue
from recruit_intel.services.lms import LMSClient, LMSError
from recruit_intel.services.storage import Storage

logger = logging.getLogger(__name__)

# Progress band owned by submission analysis within a job
PROGRESS_START = 20
PROGRESS_SPAN = 60

ProgressCallback = Callable[[int, int], Awaitable[None]]


def placeholder_analysis(
    summary: str,
    improvements: List[str],
    confidence: float,
    reason: str,
    strengths: Optional[List[str]] = None,
    skills: Optional[List[str]] = None,
) -> SubmissionAnalysis:
    record_placeholder_analysis(reason)
    return SubmissionAnalysis(
        summary=summary,
        strengths=strengths or [],
        improvements=improvements,
        skills_identified=skills or [],
        confidence=confidence,
    )


def extract_pdf_text(data: bytes) -> str:
    """Extract text from every page of a PDF with pdfplumber."""
    text = ""
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text += page_text + "\n"
    return text.strip()


def assignment_context(assignment: Assignment) -> str:
    return f"{assignment.name}: {assignment.description or ''}"


def analysis_progress(done: int, total: int) -> int:
    if total <= 0:
        return PROGRESS_START + PROGRESS_SPAN
    return PROGRESS_START + round(done / total * PROGRESS_SPAN)


class SubmissionAnalyzer:
    """
    Analyze submissions through the AI gateway, one queued task each.

    Attributes:
        storage: Entity store, used to read pending work and record results
        ai: Rate-limited AI gateway
        lms: Client used to download attachments
        queue: Process-wide batch queue
    """

    def __init__(
        self,
        storage: Storage,
        ai: AIAnalysisService,
        lms: LMSClient,
        queue: BatchQueue,
    ):
        self.storage = storage
        self.ai = ai
        self.lms = lms
        self.queue = queue

    async def analyze(self, submission: Submission, assignment: Assignment) -> SubmissionAnalysis:
        context = assignment_context(assignment)
        rubric = assignment.rubric_data or None

        if submission.content:
            return await self.ai.analyze_text_submission(submission.content, context, rubric)

        if submission.attachments:
            return await self._analyze_attachment(submission.attachments[0], context, rubric)

        return placeholder_analysis(
            summary="No content to analyze",
            improvements=["No submission content found"],
            confidence=0.1,
            reason="no_content",
        )

    async def _analyze_attachment(
        self,
        attachment: dict,
        context: str,
        rubric: Optional[list],
    ) -> SubmissionAnalysis:
        name = attachment.get("name") or "attachment"
        content_type = attachment.get("type") or ""
        url = attachment.get("url")

        if not url:
            return placeholder_analysis(
                summary="File attachment without URL",
                strengths=["File submitted"],
                improvements=["Attachment URL not available for analysis"],
                skills=["File submission"],
                confidence=0.2,
                reason="missing_url",
            )

        logger.info(f"Processing attachment: {name} ({content_type})")
        try:
            data = await self.lms.download_attachment(url)
        except (LMSError, httpx.HTTPError) as e:
            logger.error(f"Error downloading attachment {name}: {e}")
            return placeholder_analysis(
                summary="File analysis failed",
                strengths=["File submitted"],
                improvements=[f"File analysis failed: {e}"],
                skills=["File submission"],
                confidence=0.2,
                reason="download_failed",
            )

        if "pdf" in content_type:
            return await self._analyze_pdf(data, context, rubric)

        if content_type.startswith("video/"):
            # Only the file details reach the model for video
            return await self.ai.analyze_image_submission(
                "", context, rubric, mime_type=content_type, file_name=name, size_bytes=len(data)
            )

        if content_type.startswith("image/"):
            encoded = base64.b64encode(data).decode("ascii")
            return await self.ai.analyze_image_submission(
                encoded, context, rubric, mime_type=content_type, file_name=name
            )

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.info(f"Attachment {name} is not UTF-8 text")
            text = ""
        if text.strip():
            return await self.ai.analyze_text_submission(text, context, rubric)

        return placeholder_analysis(
            summary=f"File submitted: {name}",
            strengths=["File submitted on time"],
            improvements=[f"Unable to analyze {content_type or 'unknown'} file type automatically"],
            skills=["File management"],
            confidence=0.3,
            reason="unsupported_type",
        )

    async def _analyze_pdf(self, data: bytes, context: str, rubric: Optional[list]) -> SubmissionAnalysis:
        # pdfplumber is synchronous; keep it off the event loop
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, extract_pdf_text, data)
        except Exception as e:
            logger.warning(f"pdfplumber failed: {e}")
            text = ""

        if text:
            return await self.ai.analyze_text_submission(text, context, rubric)

        logger.info("PDF text extraction yielded nothing, using document analysis")
        return await self.ai.analyze_document_submission(
            data.decode("utf-8", errors="replace"), context, rubric
        )

    async def _analyze_and_record(self, submission: Submission, assignment: Assignment) -> SubmissionAnalysis:
        analysis = await self.analyze(submission, assignment)
        recorded = await self.storage.record_analysis(
            submission.id, analysis.model_dump(by_alias=True, exclude_none=True)
        )
        if not recorded:
            logger.info(f"Submission {submission.id} was already analyzed, result discarded")
        return analysis

    async def analyze_pending(
        self,
        course_id: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Queue every unanalyzed submission of a course and wait for all of them.

        Args:
            course_id: Local course id
            on_progress: Awaited with (settled, total) after each submission
                settles, in order, whether it succeeded or not

        Returns:
            Number of submissions analyzed successfully
        """
        pending = await self.storage.list_submissions(course_id=course_id, analyzed=False)
        assignments: Dict[int, Assignment] = {
            a.id: a for a in await self.storage.list_assignments(course_id=course_id)
        }
        total = len(pending)
        if not total:
            logger.info(f"No unanalyzed submissions for course {course_id}")
            return 0

        logger.info(f"Starting batch analysis of {total} submissions")
        settled = 0
        progress_lock = asyncio.Lock()

        async def report() -> None:
            nonlocal settled
            async with progress_lock:
                settled += 1
                if on_progress is not None:
                    await on_progress(settled, total)

        def make_task(submission: Submission) -> Callable[[], Awaitable[Optional[SubmissionAnalysis]]]:
            async def task() -> Optional[SubmissionAnalysis]:
                try:
                    assignment = assignments.get(submission.assignment_id)
                    if assignment is None:
                        logger.warning(f"No assignment found for submission {submission.id}")
                        return None
                    analysis = await self._analyze_and_record(submission, assignment)
                    logger.info(f"Analyzed submission {submission.id}")
                    return analysis
                finally:
                    await report()

            return task

        futures = [self.queue.submit(make_task(submission)) for submission in pending]
        results = await asyncio.gather(*futures, return_exceptions=True)

        analyzed = 0
        for submission, result in zip(pending, results):
            if isinstance(result, Exception):
                logger.error(f"Error analyzing submission {submission.id}: {result}")
            elif result is not None:
                analyzed += 1

        logger.info(f"Analyzed {analyzed}/{total} submissions for course {course_id}")
        return analyzed
