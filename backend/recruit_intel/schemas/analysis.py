"""
AI analysis schemas

These models validate the JSON the language model returns. The model is
prompted with camelCase keys (skillsIdentified, rubricAssessments, ...),
so every model accepts both the camelCase alias and the snake_case name.
Rubric criteria are shared with the LMS boundary and the Assignment row.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RubricRating(CamelModel):
    id: str = ""
    description: str = ""
    points: float = 0.0


class RubricCriterion(CamelModel):
    id: str = ""
    description: str = ""
    points: float = 0.0
    ratings: List[RubricRating] = Field(default_factory=list)


class RubricAssessment(CamelModel):
    criteria_id: str
    points: float
    rating_description: str = ""
    comments: Optional[str] = None


class SubmissionAnalysis(CamelModel):
    summary: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    skills_identified: List[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    rubric_assessments: Optional[List[RubricAssessment]] = None
    overall_rubric_score: Optional[float] = None
    max_possible_score: Optional[float] = None


ReadinessLevel = Literal["interview_ready", "needs_review", "in_progress"]


class CandidateInsights(CamelModel):
    overall_assessment: str
    top_strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    interview_focus: List[str] = Field(default_factory=list)
    readiness_level: ReadinessLevel
    confidence_score: float = Field(ge=0.0, le=1.0)


class SubmissionHistoryItem(BaseModel):
    """One analyzed submission fed into candidate-level insight generation."""

    analysis: SubmissionAnalysis
    assignment_name: str
    score: float = 0.0
