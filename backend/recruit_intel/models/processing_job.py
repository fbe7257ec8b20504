"""
ProcessingJob Model - progress record for long-running pipeline operations

Status Flow:
    processing → completed | failed

Jobs are created already in the processing state and never leave a
terminal state; retrying means creating a new job.
"""

from enum import Enum

from sqlalchemy import Column, String, Integer, Float, Text, DateTime, JSON
from recruit_intel.database import Base, utcnow


class JobType(str, Enum):
    COURSE_SYNC = "course_sync"
    SUBMISSION_ANALYSIS = "submission_analysis"
    CANDIDATE_ANALYSIS = "candidate_analysis"


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProcessingJob(Base):
    __tablename__ = "processing_jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(40), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=JobStatus.PROCESSING.value)
    progress = Column(Float, nullable=False, default=0.0)
    total_items = Column(Integer, nullable=False, default=0)
    processed_items = Column(Integer, nullable=False, default=0)
    job_metadata = Column("metadata", JSON, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED.value, JobStatus.FAILED.value)
