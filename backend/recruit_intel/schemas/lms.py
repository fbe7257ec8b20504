"""
LMS payload schemas - typed boundary for the Canvas REST API

Every JSON object returned by the LMS is validated into one of these models
as soon as it is received. Canvas returns numeric IDs, so ID fields are
coerced to strings; optional fields default to empty values instead of
leaking None deeper into the reconciler.
"""

from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, Field, field_validator, model_validator

from recruit_intel.schemas.analysis import RubricCriterion


def _stringify_id(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    return value


ExternalId = Annotated[str, BeforeValidator(_stringify_id)]


class LMSCourse(BaseModel):
    id: ExternalId
    name: str = "Untitled course"
    course_code: Optional[str] = None
    workflow_state: Optional[str] = None
    total_students: int = 0

    @field_validator("total_students", mode="before")
    @classmethod
    def _default_students(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def is_active(self) -> bool:
        return self.workflow_state == "available"


class LMSAssignment(BaseModel):
    id: ExternalId
    name: str
    description: Optional[str] = None
    points_possible: Optional[float] = None
    due_at: Optional[datetime] = None
    submission_types: List[str] = Field(default_factory=list)
    rubric: Optional[List[RubricCriterion]] = None

    @field_validator("submission_types", mode="before")
    @classmethod
    def _default_types(cls, value: Any) -> Any:
        return value or []

    @field_validator("rubric", mode="before")
    @classmethod
    def _normalize_rubric(cls, value: Any) -> Any:
        if not value:
            return None
        if not isinstance(value, list):
            raise ValueError("rubric must be a list of criteria")
        criteria = []
        for criterion in value:
            if not isinstance(criterion, dict):
                raise ValueError(f"malformed rubric criterion: {criterion!r}")
            ratings = criterion.get("ratings") or []
            if not isinstance(ratings, list) or not all(isinstance(r, dict) for r in ratings):
                raise ValueError(f"malformed ratings in rubric criterion: {criterion!r}")
            criteria.append({
                "id": str(criterion.get("_id") or criterion.get("id") or ""),
                "description": criterion.get("description") or "",
                "points": criterion.get("points") or 0,
                "ratings": [
                    {
                        "id": str(rating.get("_id") or rating.get("id") or ""),
                        "description": rating.get("description") or "",
                        "points": rating.get("points") or 0,
                    }
                    for rating in ratings
                ],
            })
        return criteria

    def accepts_online_submissions(self) -> bool:
        return any(t in ("online_upload", "online_text_entry") for t in self.submission_types)


class LMSUser(BaseModel):
    id: ExternalId
    name: str = ""
    email: str = ""
    login_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _fill_identity(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("name"):
            first = data.get("first_name") or ""
            last = data.get("last_name") or ""
            data["name"] = f"{first} {last}".strip()
        if not data.get("email"):
            data["email"] = data.get("login_id") or ""
        return data


class LMSSubmissionUser(BaseModel):
    id: ExternalId = ""
    name: str = ""
    email: str = ""

    @field_validator("name", "email", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or ""


class LMSAttachment(BaseModel):
    id: ExternalId
    display_name: str = ""
    url: str = ""
    content_type: str = Field(default="", validation_alias=AliasChoices("content-type", "content_type"))

    @field_validator("display_name", "url", "content_type", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or ""

    def to_record(self) -> dict:
        return {"name": self.display_name, "url": self.url, "type": self.content_type}


class LMSRubricAssessmentEntry(BaseModel):
    criterion_id: str
    points: float = 0.0
    comments: str = ""


class LMSRubricAssessment(BaseModel):
    score: float = 0.0
    data: List[LMSRubricAssessmentEntry] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_canvas_mapping(cls, data: Any) -> Any:
        # Canvas keys the assessment by criterion id: {"_123": {"points": 3, ...}}
        if not isinstance(data, dict) or "data" in data:
            return data
        score = data.get("score")
        entries = [
            {
                "criterion_id": criterion_id,
                "points": (value or {}).get("points") or 0,
                "comments": (value or {}).get("comments") or "",
            }
            for criterion_id, value in data.items()
            if criterion_id != "score" and isinstance(value, dict)
        ]
        return {"score": score or 0, "data": entries}


class LMSSubmission(BaseModel):
    id: ExternalId
    user_id: Optional[ExternalId] = None
    user: Optional[LMSSubmissionUser] = None
    score: Optional[float] = None
    grade: Optional[str] = None
    submission_type: Optional[str] = None
    body: Optional[str] = None
    url: Optional[str] = None
    submitted_at: Optional[datetime] = None
    attachments: List[LMSAttachment] = Field(default_factory=list)
    rubric_assessment: Optional[LMSRubricAssessment] = None

    @field_validator("attachments", mode="before")
    @classmethod
    def _default_attachments(cls, value: Any) -> Any:
        return value or []

    @property
    def user_ref(self) -> str:
        """External user id, preferring the embedded user object."""
        if self.user and self.user.id:
            return self.user.id
        return self.user_id or ""

    @property
    def user_name(self) -> str:
        return self.user.name if self.user else ""

    @property
    def user_email(self) -> str:
        return self.user.email if self.user else ""

    def has_activity(self) -> bool:
        return bool(
            self.submitted_at
            or self.body
            or self.attachments
            or self.score is not None
            or self.grade is not None
        )
