"""
Course Model - SQLAlchemy ORM model for LMS courses

Courses are created and refreshed only by the reconciler during a sync
and are never deleted.
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime
from recruit_intel.database import Base, utcnow


class Course(Base):
    """
    Course synchronized from the LMS.

    Attributes:
        id: Local integer primary key
        external_id: LMS course ID (unique, used for reconciliation)
        name: Display name
        code: Short course code
        enrollment_count: Students enrolled according to the LMS
        assignment_count: Assignments kept during the last sync
        is_active: True when the LMS workflow state is "available"
    """

    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(500), nullable=False)
    code = Column(String(200), nullable=True)
    enrollment_count = Column(Integer, nullable=False, default=0)
    assignment_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
