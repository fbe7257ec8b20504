import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from recruit_intel.schemas.lms import LMSAssignment, LMSCourse, LMSSubmission, LMSUser
from recruit_intel.services.lms.base import (
    LMSClient,
    LMSConfigurationError,
    LMSDecodeError,
    LMSRequestError,
)

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)

COURSE_PAGE_LIMIT = 50


class CanvasClient(LMSClient):
    """
    Canvas REST API client.

    Paginated endpoints follow the rel="next" URL of the Link header until
    it disappears or the per-endpoint page cap is reached. Every payload is
    validated into a schema model on receipt.
    """

    source = "canvas"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        student_page_limit: int = 50,
        submission_page_limit: int = 10,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.student_page_limit = student_page_limit
        self.submission_page_limit = submission_page_limit
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise LMSConfigurationError(
                "Canvas API key not configured. Set CANVAS_API_KEY to enable Canvas integration."
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    async def _request(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            response = await client.get(url, params=params)
        except httpx.TransportError as e:
            logger.error(f"Canvas transport error for {url}: {e}")
            raise LMSRequestError(None, str(e) or e.__class__.__name__, url=url) from e

        if not response.is_success:
            logger.error(
                f"Canvas REST API error: {response.status_code} {response.reason_phrase} "
                f"for {url}: {response.text[:500]}"
            )
            raise LMSRequestError(response.status_code, response.reason_phrase, url=url)
        return response

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.ensure_configured()
        async with self._client() as client:
            response = await self._request(client, path, params)
            return response.json()

    async def _get_paginated(
        self,
        path: str,
        params: Dict[str, Any],
        max_pages: int,
    ) -> List[Any]:
        self.ensure_configured()
        items: List[Any] = []
        next_url: Optional[str] = path
        request_params: Optional[Dict[str, Any]] = params
        pages = 0

        async with self._client() as client:
            while next_url:
                if pages >= max_pages:
                    logger.warning(f"Reached page limit ({max_pages}) for {path}, results truncated")
                    break

                response = await self._request(client, next_url, request_params)
                page = response.json()
                if not isinstance(page, list):
                    raise LMSDecodeError(f"Expected a JSON array from {path}, got {type(page).__name__}")
                pages += 1
                items.extend(page)
                logger.debug(f"Fetched page {pages} of {path} with {len(page)} items. Total: {len(items)}")

                if not page:
                    break
                # The next link already carries the query string
                next_url = response.links.get("next", {}).get("url")
                request_params = None

        return items

    @staticmethod
    def _decode(model: Type[PayloadT], payload: Any) -> PayloadT:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise LMSDecodeError(f"Malformed {model.__name__} payload: {e}") from e

    async def get_courses(self) -> List[LMSCourse]:
        raw = await self._get_paginated(
            "/api/v1/courses",
            {"include[]": ["total_students"], "per_page": 100},
            max_pages=COURSE_PAGE_LIMIT,
        )
        return [self._decode(LMSCourse, course) for course in raw]

    async def get_course(self, course_id: str) -> LMSCourse:
        raw = await self._get_json(
            f"/api/v1/courses/{course_id}",
            {"include[]": ["total_students"]},
        )
        return self._decode(LMSCourse, raw)

    async def get_course_assignments(self, course_id: str) -> List[LMSAssignment]:
        raw = await self._get_paginated(
            f"/api/v1/courses/{course_id}/assignments",
            {"include[]": ["rubric"], "per_page": 100},
            max_pages=COURSE_PAGE_LIMIT,
        )
        assignments = [self._decode(LMSAssignment, assignment) for assignment in raw]
        return [a for a in assignments if a.accepts_online_submissions()]

    async def get_course_students(self, course_id: str) -> List[LMSUser]:
        raw = await self._get_paginated(
            f"/api/v1/courses/{course_id}/users",
            {
                "enrollment_type[]": ["student"],
                "include[]": ["enrollments", "email"],
                "per_page": 100,
            },
            max_pages=self.student_page_limit,
        )
        students = [self._decode(LMSUser, user) for user in raw]
        logger.info(f"Total students fetched for course {course_id}: {len(students)}")
        return students

    async def get_assignment_submissions(self, course_id: str, assignment_id: str) -> List[LMSSubmission]:
        raw = await self._get_paginated(
            f"/api/v1/courses/{course_id}/assignments/{assignment_id}/submissions",
            {
                "include[]": ["user", "attachments", "rubric_assessment"],
                "per_page": 100,
            },
            max_pages=self.submission_page_limit,
        )
        submissions = [self._decode(LMSSubmission, submission) for submission in raw]
        # Rows without a user or any activity are placeholders Canvas creates for every student
        kept = [s for s in submissions if s.user_ref and s.has_activity()]
        logger.info(
            f"Fetched {len(submissions)} submissions for assignment {assignment_id}, "
            f"{len(kept)} with activity"
        )
        return kept

    async def download_attachment(self, url: str) -> bytes:
        self.ensure_configured()
        async with self._client() as client:
            response = await self._request(client, url)
            return response.content
