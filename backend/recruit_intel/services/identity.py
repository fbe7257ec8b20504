"""
Identity Matcher - resolve an LMS user to a known candidate

The LMS has been observed to report different numeric user IDs for the same
person across endpoints (roster vs. submissions), so matching falls back
through progressively weaker keys:

    1. ID     - exact external user ID
    2. EMAIL  - exact email, case-sensitive, only when an email is supplied
    3. NAME   - exact display name, case-sensitive and untrimmed
    4. FUZZY  - lower-cased, trimmed names that are equal or contain one another

The fuzzy tier has a real false-positive risk: "Ana Silva" matches
"Ana Silva Costa". It is kept for compatibility with existing data and the
chosen tier is reported so callers can log or count weak matches.

Whether "no match" means "create a candidate" (roster sync) or "skip the
record" (submission sync) is the caller's decision.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from recruit_intel.models import Candidate


class MatchStrategy(str, Enum):
    ID = "id"
    EMAIL = "email"
    NAME = "name"
    FUZZY = "fuzzy"


@dataclass
class CandidateMatch:
    candidate: Candidate
    strategy: MatchStrategy


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def match_candidate(
    candidates: Iterable[Candidate],
    user_id: Optional[str],
    name: Optional[str],
    email: Optional[str] = None,
) -> Optional[CandidateMatch]:
    """
    Find the candidate an LMS user record refers to.

    Each tier is evaluated over the whole candidate set before falling back
    to the next, so an exact ID match always wins over an email or name
    match elsewhere in the list. Within a tier the first candidate wins.

    Args:
        candidates: Locally known candidates (normally scoped to one course)
        user_id: External user ID from the LMS record
        name: Display name from the LMS record
        email: Email from the LMS record, if any

    Returns:
        CandidateMatch with the matching tier, or None
    """
    pool = list(candidates)

    if user_id:
        for candidate in pool:
            if candidate.external_user_id == user_id:
                return CandidateMatch(candidate, MatchStrategy.ID)

    if email:
        for candidate in pool:
            if candidate.email == email:
                return CandidateMatch(candidate, MatchStrategy.EMAIL)

    if name:
        for candidate in pool:
            if candidate.name == name:
                return CandidateMatch(candidate, MatchStrategy.NAME)

    target = normalize_name(name)
    if target:
        for candidate in pool:
            known = normalize_name(candidate.name)
            if not known:
                continue
            if known == target or target in known or known in target:
                return CandidateMatch(candidate, MatchStrategy.FUZZY)

    return None
