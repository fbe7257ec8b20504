"""
Tests for LMS record reconciliation

Tests cover:
- End-to-end course sync with the identity fallback chain
- Idempotent re-sync
- Create-once assignments and refreshed candidate identity
- Per-assignment submission fetch failures
- Job-tracked sync through the pipeline
"""

import logging

import pytest

from recruit_intel.config import Settings
from recruit_intel.dependencies import build_services
from recruit_intel.models import JobType
from recruit_intel.services.lms import LMSRequestError
from recruit_intel.services.reconciler import Reconciler


def course_payload(course_id, name="Data Bootcamp"):
    return {
        "id": course_id,
        "name": name,
        "course_code": f"DB-{course_id}",
        "workflow_state": "available",
        "total_students": 2,
    }


@pytest.fixture
def lms(fake_lms):
    fake_lms.courses = [course_payload(101)]
    fake_lms.students["101"] = [
        {"id": 9001, "name": "Ana Silva", "email": "ana@example.com"},
        {"id": 9100, "name": "Bruno Costa", "login_id": "bruno@example.com"},
    ]
    fake_lms.assignments["101"] = [
        {
            "id": 501,
            "name": "Essay",
            "description": "Describe a dataset",
            "points_possible": 10,
            "submission_types": ["online_text_entry"],
            "rubric": [
                {
                    "id": "_c1",
                    "description": "Clarity",
                    "points": 5,
                    "ratings": [{"id": "_r1", "description": "Clear", "points": 5}],
                }
            ],
        },
        {"id": 502, "name": "Quiz on paper", "submission_types": ["on_paper"]},
    ]
    fake_lms.submissions["501"] = [
        {
            "id": 7001,
            "user_id": 9001,
            "user": {"id": 9001, "name": "Ana Silva", "email": "ana@example.com"},
            "body": "My essay",
            "score": 8,
            "submitted_at": "2024-03-01T10:00:00Z",
        },
        {
            # Roster reports Bruno as 9100; submissions report a different id
            "id": 7002,
            "user": {"id": 9002, "name": "bruno costa ", "email": None},
            "attachments": [
                {"id": 1, "display_name": "report.pdf", "url": "https://files/1", "content-type": "application/pdf"}
            ],
            "submitted_at": "2024-03-02T10:00:00Z",
        },
        {
            "id": 7003,
            "user": {"id": 9999, "name": "Zed Unknown"},
            "body": "Who am I",
            "submitted_at": "2024-03-02T11:00:00Z",
        },
        {"id": 7004, "user_id": 9001},
    ]
    return fake_lms


@pytest.fixture
def reconciler(storage, lms):
    return Reconciler(storage, lms)


class TestCourseSync:
    @pytest.mark.asyncio
    async def test_end_to_end(self, storage, reconciler, caplog):
        """Should link submissions by id and by name, skipping the unknown user."""
        caplog.set_level(logging.INFO)

        results = await reconciler.sync_all()

        assert len(results) == 1
        result = results[0]
        assert result.candidates_created == 2
        assert result.assignments_created == 1
        assert result.submissions_created == 2
        assert result.unmatched == 1

        course = await storage.get_course_by_external_id("101")
        assert course.name == "Data Bootcamp"
        assert course.assignment_count == 1
        assert course.enrollment_count == 2
        assert course.is_active is True

        candidates = await storage.list_candidates(course_id=course.id)
        assert [c.external_user_id for c in candidates] == ["9001", "9100"]
        assert candidates[1].email == "bruno@example.com"
        assert all(c.status == "in_progress" for c in candidates)

        assignments = await storage.list_assignments(course_id=course.id)
        assert len(assignments) == 1
        assert assignments[0].has_rubric is True
        assert assignments[0].rubric_data[0]["id"] == "_c1"

        submissions = await storage.list_submissions(course_id=course.id)
        by_external = {s.external_id: s for s in submissions}
        assert set(by_external) == {"7001", "7002"}
        assert by_external["7001"].candidate_id == candidates[0].id
        assert by_external["7001"].content == "My essay"
        assert by_external["7002"].candidate_id == candidates[1].id
        assert by_external["7002"].attachments == [
            {"name": "report.pdf", "url": "https://files/1", "type": "application/pdf"}
        ]
        assert not any(s.is_analyzed for s in submissions)

        warnings = [r for r in caplog.records if "No candidate found" in r.getMessage()]
        assert len(warnings) == 1
        assert "Zed Unknown" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_resync_is_idempotent(self, storage, reconciler):
        """Should create nothing new on a second identical sync."""
        await reconciler.sync_all()

        result = (await reconciler.sync_all())[0]

        assert result.candidates_created == 0
        assert result.candidates_updated == 2
        assert result.assignments_created == 0
        assert result.submissions_created == 0
        assert result.assignments[0].existing == 2
        assert len(await storage.list_courses()) == 1
        assert len(await storage.list_candidates()) == 2
        assert len(await storage.list_submissions()) == 2

    @pytest.mark.asyncio
    async def test_assignment_is_never_updated(self, storage, reconciler, lms):
        await reconciler.sync_all()
        lms.assignments["101"][0]["name"] = "Essay (renamed)"

        await reconciler.sync_all()

        assignment = await storage.get_assignment_by_external_id("501")
        assert assignment.name == "Essay"

    @pytest.mark.asyncio
    async def test_candidate_identity_is_refreshed(self, storage, reconciler, lms):
        await reconciler.sync_all()
        lms.students["101"][0]["name"] = "Ana M. Silva"
        lms.courses[0]["name"] = "Data Bootcamp 2"

        await reconciler.sync_all()

        candidate = await storage.get_candidate_by_external_user_id("9001")
        assert candidate.name == "Ana M. Silva"
        course = await storage.get_course_by_external_id("101")
        assert course.name == "Data Bootcamp 2"

    @pytest.mark.asyncio
    async def test_submission_fetch_failure_moves_on(self, storage, reconciler, lms):
        """Should log the failed assignment and still sync the next one."""
        lms.assignments["101"].append(
            {"id": 503, "name": "Project", "submission_types": ["online_upload"]}
        )
        lms.submissions["503"] = [
            {"id": 7101, "user": {"id": 9001, "name": "Ana Silva"}, "body": "Project", "score": 9},
        ]
        lms.failures["submissions:501"] = LMSRequestError(500, "Internal Server Error")

        result = await reconciler.sync_course("101")

        assert [stats.fetch_failed for stats in result.assignments] == [True, False]
        assert result.assignments_created == 2
        assert result.submissions_created == 1
        assert [s.external_id for s in await storage.list_submissions()] == ["7101"]

    @pytest.mark.asyncio
    async def test_unknown_course(self, reconciler):
        with pytest.raises(LMSRequestError):
            await reconciler.sync_course("404")


class TestPipelineSync:
    @pytest.fixture
    def services(self, session_factory, lms):
        return build_services(Settings(openai_api_key=""), session_factory, lms=lms)

    @pytest.mark.asyncio
    async def test_all_courses_complete(self, services, lms):
        """Should finish at 100 with both courses processed."""
        lms.courses.append(course_payload(102, "ML Bootcamp"))
        job = await services.tracker.create(JobType.COURSE_SYNC)

        result = await services.pipeline.run_course_sync(job.id)

        assert result.status == "completed"
        assert result.progress == 100
        assert result.processed_items == 2
        assert result.total_items == 2
        assert len(await services.storage.list_courses()) == 2

    @pytest.mark.asyncio
    async def test_course_failure_fails_job(self, services, lms):
        """Should fail the whole job with the LMS error message."""
        lms.courses.append(course_payload(102, "ML Bootcamp"))
        error = LMSRequestError(500, "Internal Server Error")
        lms.failures["students:102"] = error
        job = await services.tracker.create(JobType.COURSE_SYNC)

        result = await services.pipeline.run_course_sync(job.id)

        assert result.status == "failed"
        assert result.error == str(error)
        assert result.processed_items == 1
        # Work done before the failure is kept
        assert await services.storage.get_course_by_external_id("101") is not None

    @pytest.mark.asyncio
    async def test_single_course_job(self, services):
        job = await services.pipeline.start_course_sync("101")
        await services.pipeline.wait_idle()

        stored = await services.tracker.get(job.id)
        assert stored.status == "completed"
        assert stored.job_metadata == {"externalId": "101"}
        assert stored.total_items == 1
