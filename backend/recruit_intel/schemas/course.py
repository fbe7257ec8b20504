from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class CourseResponse(BaseModel):
    id: int
    external_id: str
    name: str
    code: Optional[str] = None
    enrollment_count: int
    assignment_count: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssignmentResponse(BaseModel):
    id: int
    external_id: str
    course_id: int
    name: str
    description: Optional[str] = None
    points_possible: Optional[float] = None
    due_at: Optional[datetime] = None
    submission_types: list[str]
    has_rubric: bool
    rubric_data: Optional[list[dict]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
