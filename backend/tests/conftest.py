"""
Shared fixtures: a temporary SQLite-backed Storage and an in-memory LMS client.
"""

from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from recruit_intel.database import create_engine, create_session_factory, init_db
from recruit_intel.schemas.lms import LMSAssignment, LMSCourse, LMSSubmission, LMSUser
from recruit_intel.services.lms import LMSClient, LMSRequestError
from recruit_intel.services.storage import Storage


class FakeLMSClient(LMSClient):
    """In-memory LMS: tests fill the dicts with raw Canvas-shaped payloads."""

    source = "fake"

    def __init__(self):
        self.courses: List[dict] = []
        self.assignments: Dict[str, List[dict]] = {}
        self.students: Dict[str, List[dict]] = {}
        self.submissions: Dict[str, List[dict]] = {}
        self.attachments: Dict[str, bytes] = {}
        # Keys: "courses", "students:<course>", "submissions:<assignment>"
        self.failures: Dict[str, Exception] = {}

    def _maybe_fail(self, key: str) -> None:
        if key in self.failures:
            raise self.failures[key]

    async def get_courses(self) -> List[LMSCourse]:
        self._maybe_fail("courses")
        return [LMSCourse.model_validate(c) for c in self.courses]

    async def get_course(self, course_id: str) -> LMSCourse:
        for course in self.courses:
            if str(course["id"]) == course_id:
                return LMSCourse.model_validate(course)
        raise LMSRequestError(404, "Not Found")

    async def get_course_assignments(self, course_id: str) -> List[LMSAssignment]:
        assignments = [LMSAssignment.model_validate(a) for a in self.assignments.get(course_id, [])]
        return [a for a in assignments if a.accepts_online_submissions()]

    async def get_course_students(self, course_id: str) -> List[LMSUser]:
        self._maybe_fail(f"students:{course_id}")
        return [LMSUser.model_validate(u) for u in self.students.get(course_id, [])]

    async def get_assignment_submissions(self, course_id: str, assignment_id: str) -> List[LMSSubmission]:
        self._maybe_fail(f"submissions:{assignment_id}")
        submissions = [LMSSubmission.model_validate(s) for s in self.submissions.get(assignment_id, [])]
        return [s for s in submissions if s.user_ref and s.has_activity()]

    async def download_attachment(self, url: str) -> bytes:
        self._maybe_fail(f"download:{url}")
        if url not in self.attachments:
            raise LMSRequestError(404, "Not Found", url=url)
        return self.attachments[url]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def storage(session_factory):
    return Storage(session_factory)


@pytest.fixture
def fake_lms():
    return FakeLMSClient()


@pytest_asyncio.fixture
async def seeded(storage):
    """One course with two assignments and one candidate."""
    course = await storage.create_course(external_id="c-1", name="Data Bootcamp", code="DB-1")
    first = await storage.create_assignment(
        external_id="a-1", course_id=course.id, name="Essay", description="Describe a dataset"
    )
    second = await storage.create_assignment(
        external_id="a-2", course_id=course.id, name="Project", description="Build a pipeline"
    )
    candidate = await storage.create_candidate(
        external_user_id="u-1", name="Ana Silva", email="ana@example.com", course_id=course.id
    )
    return {"course": course, "assignments": [first, second], "candidate": candidate}


def analysis_dict(confidence: float, summary: Optional[str] = None) -> dict:
    return {
        "summary": summary or f"Analysis at {confidence}",
        "strengths": ["clear writing"],
        "improvements": ["more tests"],
        "skillsIdentified": ["python"],
        "confidence": confidence,
    }


@pytest.fixture
def make_analysis():
    return analysis_dict
