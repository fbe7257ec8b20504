from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from recruit_intel.schemas.course import AssignmentResponse


class SubmissionResponse(BaseModel):
    id: int
    external_id: str
    assignment_id: int
    candidate_id: int
    score: Optional[float] = None
    grade: Optional[str] = None
    submission_type: Optional[str] = None
    content: str
    attachments: list[dict]
    submitted_at: Optional[datetime] = None
    ai_analysis: Optional[dict] = None
    rubric_assessment: Optional[dict] = None
    is_analyzed: bool
    created_at: Optional[datetime] = None
    assignment: Optional[AssignmentResponse] = None

    class Config:
        from_attributes = True


class CandidateResponse(BaseModel):
    id: int
    external_user_id: str
    name: str
    email: str
    course_id: Optional[int] = None
    overall_score: Optional[float] = None
    submission_count: int
    completion_rate: float
    status: str
    strengths: list[str]
    weaknesses: list[str]
    interview_focus: list[str]
    ai_insights: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CandidateDetailResponse(CandidateResponse):
    submissions: list[SubmissionResponse] = []
