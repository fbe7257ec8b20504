"""
Snapshot Loader - read-only startup hydration from a flat JSON file

The snapshot is a single JSON object with optional "courses", "candidates",
"assignments" and "submissions" arrays. Records use camelCase keys; the
external identifiers may appear as "externalId"/"externalUserId" or in the
legacy "canvasId"/"canvasUserId" spelling. Local ids are preserved so that
cross-references inside the snapshot stay valid.

The running process never writes this file. A missing file is an empty
starting state, not an error.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from recruit_intel.models import Assignment, Candidate, Course, Submission
from recruit_intel.schemas.analysis import ReadinessLevel
from recruit_intel.services.storage import Storage

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when the snapshot file exists but cannot be decoded."""


class _SnapshotRecord(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


class CourseRecord(_SnapshotRecord):
    id: int
    external_id: str = Field(validation_alias=AliasChoices("externalId", "canvasId", "external_id"))
    name: str
    code: Optional[str] = None
    enrollment_count: Optional[int] = 0
    assignment_count: Optional[int] = 0
    is_active: Optional[bool] = True
    created_at: Optional[datetime] = None


class CandidateRecord(_SnapshotRecord):
    id: int
    external_user_id: str = Field(
        validation_alias=AliasChoices("externalUserId", "canvasUserId", "external_user_id")
    )
    name: str
    email: str = ""
    course_id: Optional[int] = None
    overall_score: Optional[float] = None
    submission_count: Optional[int] = 0
    completion_rate: Optional[float] = 0.0
    status: Optional[ReadinessLevel] = "in_progress"
    strengths: Optional[List[str]] = None
    weaknesses: Optional[List[str]] = None
    interview_focus: Optional[List[str]] = None
    ai_insights: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssignmentRecord(_SnapshotRecord):
    id: int
    external_id: str = Field(validation_alias=AliasChoices("externalId", "canvasId", "external_id"))
    course_id: int
    name: str
    description: Optional[str] = None
    points_possible: Optional[float] = None
    due_at: Optional[datetime] = None
    submission_types: Optional[List[str]] = None
    has_rubric: Optional[bool] = False
    rubric_data: Optional[List[Dict[str, Any]]] = None
    created_at: Optional[datetime] = None


class SubmissionRecord(_SnapshotRecord):
    id: int
    external_id: str = Field(validation_alias=AliasChoices("externalId", "canvasId", "external_id"))
    assignment_id: int
    candidate_id: int
    score: Optional[float] = None
    grade: Optional[str] = None
    submission_type: Optional[str] = None
    content: Optional[str] = ""
    attachments: Optional[List[Dict[str, Any]]] = None
    submitted_at: Optional[datetime] = None
    ai_analysis: Optional[Dict[str, Any]] = None
    rubric_assessment: Optional[Dict[str, Any]] = None
    is_analyzed: Optional[bool] = False
    created_at: Optional[datetime] = None


class Snapshot(BaseModel):
    courses: List[CourseRecord] = Field(default_factory=list)
    candidates: List[CandidateRecord] = Field(default_factory=list)
    assignments: List[AssignmentRecord] = Field(default_factory=list)
    submissions: List[SubmissionRecord] = Field(default_factory=list)


def read_snapshot(path: Path) -> Optional[Snapshot]:
    """Parse the snapshot file, or return None when it does not exist."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Snapshot.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise SnapshotError(f"Invalid storage snapshot {path}: {e}") from e


def _row_fields(record: BaseModel) -> dict:
    # Drop unset/None values so model column defaults apply
    return {key: value for key, value in record.model_dump().items() if value is not None}


async def load_snapshot(storage: Storage, path: Union[str, Path]) -> Dict[str, int]:
    """
    Hydrate storage from a JSON snapshot.

    Records whose local id already exists are skipped, so loading the same
    snapshot twice is a no-op.

    Returns:
        Number of rows inserted per entity type
    """
    path = Path(path)
    snapshot = read_snapshot(path)
    counts = {"courses": 0, "candidates": 0, "assignments": 0, "submissions": 0}
    if snapshot is None:
        logger.info(f"No storage snapshot at {path}, starting fresh")
        return counts

    # Parents first so foreign keys resolve
    plan = [
        ("courses", Course, snapshot.courses),
        ("candidates", Candidate, snapshot.candidates),
        ("assignments", Assignment, snapshot.assignments),
        ("submissions", Submission, snapshot.submissions),
    ]
    async with storage.session_factory() as session:
        for key, model, records in plan:
            for record in records:
                if await session.get(model, record.id) is not None:
                    continue
                session.add(model(**_row_fields(record)))
                counts[key] += 1
            await session.flush()
        await session.commit()

    logger.info(
        f"Loaded {counts['courses']} courses, {counts['candidates']} candidates, "
        f"{counts['assignments']} assignments, {counts['submissions']} submissions from {path}"
    )
    return counts
