"""
Tests for per-submission analysis routing

Tests cover:
- Text, PDF, image/video and plain-text attachment routing
- Placeholder analyses (no content, missing URL, download failure, unsupported type)
- analyze_pending: queueing, write-once recording, per-submission failure isolation
"""

from unittest.mock import AsyncMock, patch

import pytest

from recruit_intel.models import Assignment, Submission
from recruit_intel.schemas.analysis import SubmissionAnalysis
from recruit_intel.services.ai_analysis import AIResponseParseError
from recruit_intel.services.batch_queue import BatchQueue
from recruit_intel.services.lms import LMSRequestError
from recruit_intel.services.submission_analyzer import SubmissionAnalyzer, analysis_progress

AI_RESULT = SubmissionAnalysis(summary="Looks good", confidence=0.8)


def make_ai() -> AsyncMock:
    ai = AsyncMock()
    ai.analyze_text_submission.return_value = AI_RESULT
    ai.analyze_document_submission.return_value = AI_RESULT
    ai.analyze_image_submission.return_value = AI_RESULT
    return ai


def make_assignment(**kwargs) -> Assignment:
    kwargs.setdefault("id", 1)
    return Assignment(name="Essay", description="Describe a dataset", **kwargs)


def attachment_submission(url="https://files.test/1", content_type="application/pdf", name="report.pdf"):
    return Submission(id=1, content="", attachments=[{"name": name, "url": url, "type": content_type}])


@pytest.fixture
def ai():
    return make_ai()


@pytest.fixture
def analyzer(storage, ai, fake_lms):
    return SubmissionAnalyzer(storage, ai, fake_lms, BatchQueue(batch_size=3, batch_delay=0))


class TestRouting:
    @pytest.mark.asyncio
    async def test_text_content(self, analyzer, ai):
        """Should analyze text content with the assignment context and rubric."""
        rubric = [{"id": "c1", "description": "Clarity", "points": 5, "ratings": []}]
        submission = Submission(id=1, content="My answer", attachments=[])

        result = await analyzer.analyze(submission, make_assignment(rubric_data=rubric))

        assert result is AI_RESULT
        ai.analyze_text_submission.assert_awaited_once_with(
            "My answer", "Essay: Describe a dataset", rubric
        )

    @pytest.mark.asyncio
    async def test_no_content(self, analyzer, ai):
        """Should return the 0.1 placeholder without calling the AI."""
        result = await analyzer.analyze(Submission(id=1, content="", attachments=[]), make_assignment())

        assert result.confidence == 0.1
        assert result.summary == "No content to analyze"
        ai.analyze_text_submission.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_attachment_without_url(self, analyzer):
        """Should return the 0.2 placeholder for an attachment with no URL."""
        result = await analyzer.analyze(attachment_submission(url=""), make_assignment())

        assert result.confidence == 0.2
        assert "URL" in result.improvements[0]

    @pytest.mark.asyncio
    async def test_download_failure(self, analyzer, fake_lms):
        """Should convert a download error into the 0.2 placeholder."""
        fake_lms.failures["download:https://files.test/1"] = LMSRequestError(500, "Internal Server Error")

        result = await analyzer.analyze(attachment_submission(), make_assignment())

        assert result.confidence == 0.2
        assert result.summary == "File analysis failed"

    @pytest.mark.asyncio
    async def test_pdf_with_text(self, analyzer, ai, fake_lms):
        """Should analyze extracted PDF text as a text submission."""
        fake_lms.attachments["https://files.test/1"] = b"%PDF-1.4 ..."

        with patch(
            "recruit_intel.services.submission_analyzer.extract_pdf_text",
            return_value="Extracted report text",
        ):
            await analyzer.analyze(attachment_submission(), make_assignment())

        ai.analyze_text_submission.assert_awaited_once()
        assert ai.analyze_text_submission.call_args.args[0] == "Extracted report text"
        ai.analyze_document_submission.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pdf_without_text_uses_document_analysis(self, analyzer, ai, fake_lms):
        """Should fall back to document analysis when extraction yields nothing."""
        fake_lms.attachments["https://files.test/1"] = b"%PDF-1.4 scanned"

        with patch("recruit_intel.services.submission_analyzer.extract_pdf_text", return_value=""):
            await analyzer.analyze(attachment_submission(), make_assignment())

        ai.analyze_document_submission.assert_awaited_once()
        assert ai.analyze_document_submission.call_args.args[0] == "%PDF-1.4 scanned"

    @pytest.mark.asyncio
    async def test_unreadable_pdf_uses_document_analysis(self, analyzer, ai, fake_lms):
        """Should treat an extraction error like an empty extraction."""
        fake_lms.attachments["https://files.test/1"] = b"not really a pdf"

        with patch(
            "recruit_intel.services.submission_analyzer.extract_pdf_text",
            side_effect=ValueError("no /Root object"),
        ):
            await analyzer.analyze(attachment_submission(), make_assignment())

        ai.analyze_document_submission.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_image(self, analyzer, ai, fake_lms):
        """Should base64-encode images and pass the MIME type."""
        fake_lms.attachments["https://files.test/1"] = b"hello"

        await analyzer.analyze(
            attachment_submission(content_type="image/png", name="poster.png"), make_assignment()
        )

        args = ai.analyze_image_submission.call_args
        assert args.args[0] == "aGVsbG8="
        assert args.kwargs["mime_type"] == "image/png"
        assert args.kwargs["file_name"] == "poster.png"

    @pytest.mark.asyncio
    async def test_video(self, analyzer, ai, fake_lms):
        """Should pass only the file size for video, never the encoded bytes."""
        fake_lms.attachments["https://files.test/1"] = b"\x00\x00\x00\x18ftypmp42" * 200

        await analyzer.analyze(attachment_submission(content_type="video/mp4", name="demo.mp4"), make_assignment())

        args = ai.analyze_image_submission.call_args
        assert args.args[0] == ""
        assert args.kwargs["mime_type"] == "video/mp4"
        assert args.kwargs["size_bytes"] == 2400

    @pytest.mark.asyncio
    async def test_plain_text_attachment(self, analyzer, ai, fake_lms):
        """Should decode other files as UTF-8 and analyze them as text."""
        fake_lms.attachments["https://files.test/1"] = "print('olá')".encode("utf-8")

        await analyzer.analyze(attachment_submission(content_type="text/x-python", name="main.py"), make_assignment())

        assert ai.analyze_text_submission.call_args.args[0] == "print('olá')"

    @pytest.mark.asyncio
    async def test_binary_attachment(self, analyzer, ai, fake_lms):
        """Should return the 0.3 placeholder naming the unsupported type."""
        fake_lms.attachments["https://files.test/1"] = b"PK\x03\x04\xff\xfe\x00"

        result = await analyzer.analyze(
            attachment_submission(content_type="application/zip", name="code.zip"), make_assignment()
        )

        assert result.confidence == 0.3
        assert result.summary == "File submitted: code.zip"
        assert "application/zip" in result.improvements[0]
        ai.analyze_text_submission.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ai_errors_propagate(self, analyzer, ai):
        """Should not turn AI failures into placeholders."""
        ai.analyze_text_submission.side_effect = AIResponseParseError("bad reply")

        with pytest.raises(AIResponseParseError):
            await analyzer.analyze(Submission(id=1, content="text", attachments=[]), make_assignment())


class TestAnalyzePending:
    @pytest.mark.asyncio
    async def test_records_results_and_isolates_failures(self, storage, seeded, analyzer, ai):
        """Should analyze each pending submission once and leave failures unanalyzed."""
        candidate = seeded["candidate"]
        first, second = seeded["assignments"]
        good = await storage.create_submission(
            external_id="s-1", assignment_id=first.id, candidate_id=candidate.id, content="fine"
        )
        empty = await storage.create_submission(
            external_id="s-2", assignment_id=second.id, candidate_id=candidate.id
        )
        bad = await storage.create_submission(
            external_id="s-3", assignment_id=first.id, candidate_id=candidate.id, content="bad"
        )

        async def analyze_text(content, context, rubric=None):
            if content == "bad":
                raise AIResponseParseError("Failed to parse AI response")
            return AI_RESULT

        ai.analyze_text_submission.side_effect = analyze_text
        progress = []

        async def on_progress(done, total):
            progress.append((done, total))

        analyzed = await analyzer.analyze_pending(seeded["course"].id, on_progress=on_progress)

        assert analyzed == 2
        assert progress == [(1, 3), (2, 3), (3, 3)]
        assert (await storage.get_submission(good.id)).ai_analysis["summary"] == "Looks good"
        empty_row = await storage.get_submission(empty.id)
        assert empty_row.is_analyzed is True
        assert empty_row.ai_analysis["confidence"] == 0.1
        bad_row = await storage.get_submission(bad.id)
        assert bad_row.is_analyzed is False
        assert bad_row.ai_analysis is None

    @pytest.mark.asyncio
    async def test_skips_already_analyzed(self, storage, seeded, analyzer, ai):
        """Should not queue submissions that already carry an analysis."""
        submission = await storage.create_submission(
            external_id="s-1",
            assignment_id=seeded["assignments"][0].id,
            candidate_id=seeded["candidate"].id,
            content="done",
        )
        await storage.record_analysis(submission.id, {"summary": "old", "confidence": 0.5})

        assert await analyzer.analyze_pending(seeded["course"].id) == 0
        ai.analyze_text_submission.assert_not_awaited()

    def test_progress_band(self):
        """Should map analysis progress onto 20-80."""
        assert analysis_progress(0, 4) == 20
        assert analysis_progress(2, 4) == 50
        assert analysis_progress(4, 4) == 80
