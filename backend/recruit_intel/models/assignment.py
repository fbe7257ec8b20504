from sqlalchemy import Column, String, Integer, Float, Text, DateTime, Boolean, JSON, ForeignKey
from recruit_intel.database import Base, utcnow


class Assignment(Base):
    """
    Assignment synchronized from the LMS.

    Created once per external assignment and never updated afterwards,
    so rubric edits made in the LMS after the first sync are not picked up.
    rubric_data holds the serialized RubricCriterion list.
    """

    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(64), nullable=False, unique=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    points_possible = Column(Float, nullable=True)
    due_at = Column(DateTime, nullable=True)
    submission_types = Column(JSON, nullable=False, default=list)
    has_rubric = Column(Boolean, nullable=False, default=False)
    rubric_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)
