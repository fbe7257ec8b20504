"""
Candidate Model - SQLAlchemy ORM model for course students under review

Identity fields (name, email, course link) are refreshed by the reconciler;
aggregate and insight fields are written only by the insight aggregator.

Status Flow:
    in_progress → interview_ready | needs_review (re-evaluated on each aggregation)
"""

from enum import Enum

from sqlalchemy import Column, String, Integer, Float, Text, DateTime, JSON, ForeignKey, CheckConstraint
from recruit_intel.database import Base, utcnow


class CandidateStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    INTERVIEW_READY = "interview_ready"
    NEEDS_REVIEW = "needs_review"


CANDIDATE_STATUSES = tuple(status.value for status in CandidateStatus)


class Candidate(Base):
    """
    Candidate entity with AI-derived readiness insights.

    Attributes:
        external_user_id: LMS user ID (unique across candidates)
        overall_score: Mean analysis confidence across analyzed submissions
        completion_rate: Submissions / course assignments (may exceed 1.0)
        status: One of CANDIDATE_STATUSES
        strengths/weaknesses/interview_focus: JSON lists from the insight model
        ai_insights: Free-text readiness assessment
    """

    __tablename__ = "candidates"
    __table_args__ = (
        CheckConstraint(
            "status IN ('in_progress', 'interview_ready', 'needs_review')",
            name="ck_candidates_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_user_id = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(500), nullable=False)
    email = Column(String(500), nullable=False, default="")
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True, index=True)
    overall_score = Column(Float, nullable=True)
    submission_count = Column(Integer, nullable=False, default=0)
    completion_rate = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default=CandidateStatus.IN_PROGRESS.value)
    strengths = Column(JSON, nullable=False, default=list)
    weaknesses = Column(JSON, nullable=False, default=list)
    interview_focus = Column(JSON, nullable=False, default=list)
    ai_insights = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
