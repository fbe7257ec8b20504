"""
Submission Model - SQLAlchemy ORM model for assignment submissions

A submission is created once per external ID and is otherwise immutable,
except for the (ai_analysis, is_analyzed) pair which the analysis phase
writes exactly once, flipping is_analyzed from False to True.
"""

from sqlalchemy import Column, String, Integer, Float, Text, DateTime, Boolean, JSON, ForeignKey
from recruit_intel.database import Base, utcnow


class Submission(Base):
    """
    Attributes:
        external_id: LMS submission ID (unique)
        assignment_id/candidate_id: Both always resolved when persisted
        content: Text body (or submitted URL) of the submission
        attachments: JSON list of {"name", "url", "type"}
        ai_analysis: Serialized SubmissionAnalysis, None until analyzed
        rubric_assessment: Raw rubric assessment reported by the LMS
    """

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(64), nullable=False, unique=True, index=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False, index=True)
    score = Column(Float, nullable=True)
    grade = Column(String(50), nullable=True)
    submission_type = Column(String(50), nullable=True)
    content = Column(Text, nullable=False, default="")
    attachments = Column(JSON, nullable=False, default=list)
    submitted_at = Column(DateTime, nullable=True)
    ai_analysis = Column(JSON, nullable=True)
    rubric_assessment = Column(JSON, nullable=True)
    is_analyzed = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=utcnow)
