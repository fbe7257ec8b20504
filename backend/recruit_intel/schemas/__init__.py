from recruit_intel.schemas.analysis import (
    RubricRating,
    RubricCriterion,
    RubricAssessment,
    SubmissionAnalysis,
    CandidateInsights,
    SubmissionHistoryItem,
)
from recruit_intel.schemas.lms import (
    LMSCourse,
    LMSAssignment,
    LMSUser,
    LMSSubmission,
    LMSAttachment,
)
from recruit_intel.schemas.course import CourseResponse, AssignmentResponse
from recruit_intel.schemas.candidate import CandidateResponse, CandidateDetailResponse, SubmissionResponse
from recruit_intel.schemas.processing_job import ProcessingJobResponse, JobStartedResponse, StatusResponse

__all__ = [
    "RubricRating",
    "RubricCriterion",
    "RubricAssessment",
    "SubmissionAnalysis",
    "CandidateInsights",
    "SubmissionHistoryItem",
    "LMSCourse",
    "LMSAssignment",
    "LMSUser",
    "LMSSubmission",
    "LMSAttachment",
    "CourseResponse",
    "AssignmentResponse",
    "CandidateResponse",
    "CandidateDetailResponse",
    "SubmissionResponse",
    "ProcessingJobResponse",
    "JobStartedResponse",
    "StatusResponse",
]
