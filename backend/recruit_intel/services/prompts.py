"""
Prompt templates for submission analysis and candidate insights.

All prompts ask for a bare JSON object whose keys match the schemas in
recruit_intel.schemas.analysis.
"""

import json
from typing import List, Optional, Sequence

from recruit_intel.schemas.analysis import RubricCriterion, SubmissionHistoryItem

ANALYSIS_FIELDS = """- summary: A brief overall assessment
- strengths: Array of specific strengths identified
- improvements: Array of areas that need improvement
- skillsIdentified: Array of skills demonstrated
- confidence: Confidence score of your analysis (0-1)"""

RUBRIC_FIELDS = """- rubricAssessments: Array of objects with {criteriaId, points, ratingDescription, comments}
- overallRubricScore: Total points earned
- maxPossibleScore: Maximum possible points"""

JSON_ONLY = "Return ONLY valid JSON, with no text before or after the object."

SUBMISSION_INTROS = {
    "text": "You are an expert evaluator analyzing a student's written submission.",
    "document": "You are an expert evaluator analyzing a document submission for an assignment.",
    "image": "You are an expert evaluator analyzing a visual (image) submission for an assignment.",
    "video": "You are an expert evaluator assessing a video submission for an assignment.",
}

GENERAL_FOCUS = {
    "text": "Provide a general analysis focusing on content quality, understanding demonstrated, and areas for improvement.",
    "document": "Analyze this document focusing on content quality, understanding demonstrated, and areas for improvement.",
    "image": "Analyze the attached image and provide detailed feedback on what it demonstrates.",
    "video": (
        "The video itself cannot be attached. Assess what can be inferred from the file "
        "details below and keep your confidence score low."
    ),
}

CANDIDATE_INSIGHTS_PROMPT = """You are an expert technical recruiter analyzing a candidate's performance across multiple assignments.

Candidate Submission History:
{history}

Based on this data, provide insights for interview preparation. Consider:
1. Overall technical competency
2. Consistency across assignments
3. Growth and learning trajectory
4. Interview readiness
5. Specific areas to focus on during interviews

Respond with a JSON object containing:
- overallAssessment: Comprehensive assessment paragraph
- topStrengths: Array of top 3-5 strengths
- areasForImprovement: Array of key improvement areas
- interviewFocus: Array of topics to focus on during interviews
- readinessLevel: One of "interview_ready", "needs_review", or "in_progress"
- confidenceScore: Overall confidence in this assessment (0-1)

{json_only}"""


def media_kind(mime_type: str) -> str:
    return "video" if (mime_type or "").startswith("video/") else "image"


def build_rubric_section(criteria: Optional[Sequence[RubricCriterion]]) -> str:
    if not criteria:
        return ""
    blocks: List[str] = []
    for criterion in criteria:
        lines = [f"{criterion.description} (id: {criterion.id}, {criterion.points:g} points max):"]
        lines.extend(f"- {rating.description} ({rating.points:g} pts)" for rating in criterion.ratings)
        blocks.append("\n".join(lines))
    return "RUBRIC CRITERIA:\n" + "\n\n".join(blocks)


def build_submission_prompt(
    kind: str,
    assignment_context: str,
    content: Optional[str],
    rubric: Optional[Sequence[RubricCriterion]] = None,
) -> str:
    """
    Build the analysis prompt for one submission.

    Args:
        kind: "text", "document", "image" or "video"; selects the wording
        assignment_context: "<assignment name>: <description>"
        content: Submission text, or a file description for media
        rubric: Optional rubric criteria to score against
    """
    sections = [SUBMISSION_INTROS[kind], f"Assignment Context: {assignment_context}"]

    rubric_section = build_rubric_section(rubric)
    if rubric_section:
        sections.append(rubric_section)

    if content:
        label = "Document Content" if kind == "document" else "Student Submission"
        if kind in ("image", "video"):
            label = "File Details"
        sections.append(f"{label}:\n{content}")

    if rubric_section:
        sections.append(
            "Analyze this submission against the provided rubric criteria. For each criterion, "
            "determine which rating level best fits the submission and provide specific feedback."
        )
        fields = f"{ANALYSIS_FIELDS}\n{RUBRIC_FIELDS}"
    else:
        sections.append(GENERAL_FOCUS[kind])
        fields = ANALYSIS_FIELDS

    sections.append(f"Respond with a JSON object containing:\n{fields}")
    sections.append(JSON_ONLY)
    return "\n\n".join(sections)


def format_history(history: Sequence[SubmissionHistoryItem]) -> str:
    summaries = [
        {
            "assignment": item.assignment_name,
            "score": item.score,
            "summary": item.analysis.summary,
            "strengths": item.analysis.strengths,
            "improvements": item.analysis.improvements,
            "skills": item.analysis.skills_identified,
        }
        for item in history
    ]
    return json.dumps(summaries, indent=2)


def build_insights_prompt(history_json: str) -> str:
    return CANDIDATE_INSIGHTS_PROMPT.format(history=history_json, json_only=JSON_ONLY)
