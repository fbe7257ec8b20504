from recruit_intel.models.course import Course
from recruit_intel.models.candidate import Candidate, CandidateStatus, CANDIDATE_STATUSES
from recruit_intel.models.assignment import Assignment
from recruit_intel.models.submission import Submission
from recruit_intel.models.processing_job import ProcessingJob, JobType, JobStatus

__all__ = [
    "Course",
    "Candidate",
    "CandidateStatus",
    "CANDIDATE_STATUSES",
    "Assignment",
    "Submission",
    "ProcessingJob",
    "JobType",
    "JobStatus",
]
