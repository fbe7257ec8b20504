"""
AI Analysis Service - Rate-Limited LLM Gateway for Submission Scoring

This service sends submissions to an OpenAI chat model and parses the
structured JSON it returns.

Operations:
- analyze_text_submission(): free-text submissions
- analyze_document_submission(): text recovered from uploaded documents
- analyze_image_submission(): base64 image/video payloads (MIME type picks the wording)
- generate_candidate_insights(): aggregate readiness assessment from analysis history

Every operation:
- Fails fast with AIConfigurationError when no API key is configured
- Truncates oversized text, preferring a paragraph or sentence boundary
- Waits on a shared RateLimiter so call starts are at least
  `min_interval` seconds apart across the whole process
- Validates the reply with pydantic; bad JSON or shape raises AIResponseParseError

Usage:
    from recruit_intel.services.ai_analysis import AIAnalysisService
    from recruit_intel.services.rate_limiter import RateLimiter

    service = AIAnalysisService(api_key=key, rate_limiter=RateLimiter(1.0))
    analysis = await service.analyze_text_submission(text, "Essay 1: Describe ...")
"""

import json
import logging
import time
from typing import Any, List, Optional, Sequence, Type, TypeVar, Union

import openai
from pydantic import BaseModel, ValidationError

from recruit_intel.middleware.metrics import record_ai_call_latency
from recruit_intel.schemas.analysis import (
    CandidateInsights,
    RubricCriterion,
    SubmissionAnalysis,
    SubmissionHistoryItem,
)
from recruit_intel.services.prompts import (
    build_insights_prompt,
    build_submission_prompt,
    format_history,
    media_kind,
)
from recruit_intel.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)
RubricInput = Optional[Sequence[Union[RubricCriterion, dict]]]

DEFAULT_MODEL = "gpt-4o-mini"
TRUNCATION_MARKER = "\n\n[... content truncated ...]"
# Boundaries searched for in the last 20% of the truncation window, latest wins
TRUNCATION_BOUNDARIES = ("\n\n", "\n", ". ", "! ", "? ")
BOUNDARY_WINDOW = 0.2

SYSTEM_PROMPT = "You are an expert assessment assistant. Return only valid JSON."


class AIAnalysisError(Exception):
    """Base class for AI gateway errors."""


class AIConfigurationError(AIAnalysisError):
    """Raised when the AI API key is not configured."""


class AIRequestError(AIAnalysisError):
    """Raised when the AI API returns an error status or cannot be reached."""

    def __init__(self, status_code: Optional[int], message: str):
        self.status_code = status_code
        prefix = f"AI API request failed: {status_code}" if status_code else "AI API request failed"
        super().__init__(f"{prefix} {message}".strip())


class AIResponseParseError(AIAnalysisError):
    """Raised when the model reply is not valid JSON or has an unexpected shape."""


def truncate_content(text: str, max_chars: int) -> str:
    """
    Bound text to max_chars, appending TRUNCATION_MARKER when cut.

    The cut lands on the latest paragraph/sentence boundary within the last
    20% of the window; failing that, on the last whitespace in that same
    stretch; failing that, exactly at max_chars.
    """
    if len(text) <= max_chars:
        return text

    window = text[:max_chars]
    floor = int(max_chars * (1 - BOUNDARY_WINDOW))

    cut = -1
    for boundary in TRUNCATION_BOUNDARIES:
        index = window.rfind(boundary, floor)
        if index != -1:
            # Keep sentence punctuation, drop the trailing whitespace
            cut = max(cut, index + len(boundary.rstrip()))

    if cut <= 0:
        whitespace = max(window.rfind(" ", floor), window.rfind("\n", floor))
        cut = whitespace if whitespace > 0 else max_chars

    return window[:cut].rstrip() + TRUNCATION_MARKER


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        lines = content.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        content = "\n".join(lines)
    return content


def parse_model_reply(content: Optional[str], model: Type[ResultT]) -> ResultT:
    """
    Parse a model reply into a validated schema object.

    Raises:
        AIResponseParseError: reply missing, not JSON, or wrong shape
    """
    if not content:
        raise AIResponseParseError("Unexpected response format from AI: empty reply")
    try:
        data = json.loads(_strip_code_fence(content))
        return model.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Failed to parse AI response as {model.__name__}: {content[:100]}")
        raise AIResponseParseError(f"Failed to parse AI response: {e}") from e


class AIAnalysisService:
    """
    Gateway to the generative-AI API.

    Attributes:
        api_key: OpenAI API key; empty means unconfigured
        model: Chat model used for every call
        rate_limiter: Shared cooldown between call starts
        max_content_chars: Truncation threshold for text inputs
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 2048,
        temperature: float = 0.2,
        rate_limiter: Optional[RateLimiter] = None,
        max_content_chars: int = 50000,
        client: Any = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.rate_limiter = rate_limiter or RateLimiter(1.0)
        self.max_content_chars = max_content_chars
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise AIConfigurationError("OPENAI_API_KEY is required for AI analysis")

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def _complete(self, operation: str, content: Union[str, List[dict]]) -> Optional[str]:
        """Send one rate-limited chat completion and return the reply text."""
        client = self._get_client()
        await self.rate_limiter.wait()

        start = time.perf_counter()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": content},
                ],
            )
        except openai.APIStatusError as e:
            logger.error(f"AI API error during {operation}: {e.status_code} {e.message}")
            raise AIRequestError(e.status_code, e.message) from e
        except openai.APIConnectionError as e:
            logger.error(f"AI API connection failed during {operation}: {e}")
            raise AIRequestError(None, str(e)) from e
        finally:
            record_ai_call_latency(operation, time.perf_counter() - start)

        try:
            return response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise AIResponseParseError("Unexpected response format from AI") from e

    @staticmethod
    def _rubric(rubric: RubricInput) -> Optional[List[RubricCriterion]]:
        if not rubric:
            return None
        return [
            criterion if isinstance(criterion, RubricCriterion) else RubricCriterion.model_validate(criterion)
            for criterion in rubric
        ]

    async def _analyze(
        self,
        operation: str,
        kind: str,
        content: str,
        assignment_context: str,
        rubric: RubricInput,
    ) -> SubmissionAnalysis:
        self.ensure_configured()
        prompt = build_submission_prompt(
            kind,
            assignment_context,
            truncate_content(content, self.max_content_chars),
            self._rubric(rubric),
        )
        reply = await self._complete(operation, prompt)
        return parse_model_reply(reply, SubmissionAnalysis)

    async def analyze_text_submission(
        self,
        content: str,
        assignment_context: str,
        rubric: RubricInput = None,
    ) -> SubmissionAnalysis:
        return await self._analyze("text", "text", content, assignment_context, rubric)

    async def analyze_document_submission(
        self,
        content: str,
        assignment_context: str,
        rubric: RubricInput = None,
    ) -> SubmissionAnalysis:
        return await self._analyze("document", "document", content, assignment_context, rubric)

    async def analyze_image_submission(
        self,
        base64_data: str,
        assignment_context: str,
        rubric: RubricInput = None,
        mime_type: str = "image/jpeg",
        file_name: Optional[str] = None,
        size_bytes: Optional[int] = None,
    ) -> SubmissionAnalysis:
        """
        Analyze an image or video submission.

        Images travel as a base64 data URL next to the prompt. Chat messages
        cannot carry video, so for video/* types only the file details are
        sent (base64_data may be empty, with size_bytes giving the file size)
        and the prompt asks for a low-confidence assessment.
        """
        self.ensure_configured()
        kind = media_kind(mime_type)
        if size_bytes is None:
            size_bytes = len(base64_data) * 3 // 4
        size_kb = size_bytes // 1024
        details = f"{file_name or 'submission'} ({mime_type}, ~{size_kb} KB)"
        prompt = build_submission_prompt(kind, assignment_context, details, self._rubric(rubric))

        if kind == "video":
            content: Union[str, List[dict]] = prompt
        else:
            content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{base64_data}"}},
            ]

        reply = await self._complete(kind, content)
        return parse_model_reply(reply, SubmissionAnalysis)

    async def generate_candidate_insights(
        self,
        history: Sequence[SubmissionHistoryItem],
    ) -> CandidateInsights:
        self.ensure_configured()
        history_json = truncate_content(format_history(history), self.max_content_chars)
        prompt = build_insights_prompt(history_json)
        reply = await self._complete("insights", prompt)
        return parse_model_reply(reply, CandidateInsights)
