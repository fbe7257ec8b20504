from abc import ABC, abstractmethod
from typing import List, Optional

from recruit_intel.schemas.lms import LMSAssignment, LMSCourse, LMSSubmission, LMSUser


class LMSError(Exception):
    """Base class for learning-management-system client errors."""


class LMSConfigurationError(LMSError):
    """Raised when the LMS credentials are missing."""


class LMSRequestError(LMSError):
    """Raised for non-2xx responses and transport failures."""

    def __init__(self, status_code: Optional[int], reason: str, url: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.url = url
        if status_code is None:
            message = f"LMS API request failed: {reason}"
        else:
            message = f"LMS API request failed: {status_code} {reason}"
        super().__init__(message)


class LMSDecodeError(LMSError):
    """Raised when an LMS payload does not match the expected shape."""


class LMSClient(ABC):
    """Base class for learning-management-system clients"""

    source: str = "unknown"

    @property
    def is_configured(self) -> bool:
        return True

    def ensure_configured(self) -> None:
        """Raise LMSConfigurationError when credentials are missing"""
        pass

    @abstractmethod
    async def get_courses(self) -> List[LMSCourse]:
        """List courses visible to the configured token"""
        pass

    @abstractmethod
    async def get_course(self, course_id: str) -> LMSCourse:
        """Fetch a single course by external id"""
        pass

    @abstractmethod
    async def get_course_assignments(self, course_id: str) -> List[LMSAssignment]:
        """List assignments (with rubrics) that accept online submissions"""
        pass

    @abstractmethod
    async def get_course_students(self, course_id: str) -> List[LMSUser]:
        """List the course's student roster"""
        pass

    @abstractmethod
    async def get_assignment_submissions(self, course_id: str, assignment_id: str) -> List[LMSSubmission]:
        """List submissions that show any student activity"""
        pass

    @abstractmethod
    async def download_attachment(self, url: str) -> bytes:
        """Download a submission attachment"""
        pass
