"""
Tests for the candidate identity matcher

Tests cover:
- Tier precedence (ID > email > exact name > fuzzy name)
- Email tier only used when an email is supplied
- Fuzzy tier normalization and substring matching
- No-match results
"""

from recruit_intel.models import Candidate
from recruit_intel.services.identity import MatchStrategy, match_candidate, normalize_name


def make_candidate(user_id: str, name: str, email: str = "") -> Candidate:
    return Candidate(external_user_id=user_id, name=name, email=email)


class TestMatchPrecedence:
    """Test that stronger tiers always win."""

    def test_exact_id_wins_over_email_and_name(self):
        """Should return the ID match even when others match email and name."""
        by_email = make_candidate("10", "Ana Silva", "ana@example.com")
        by_id = make_candidate("42", "Someone Else", "other@example.com")

        match = match_candidate([by_email, by_id], "42", "Ana Silva", "ana@example.com")

        assert match.candidate is by_id
        assert match.strategy == MatchStrategy.ID

    def test_email_wins_over_name(self):
        """Should prefer an email match over an exact name match."""
        by_name = make_candidate("1", "Ana Silva", "ana.silva@example.com")
        by_email = make_candidate("2", "A. Silva", "ana@example.com")

        match = match_candidate([by_name, by_email], "999", "Ana Silva", "ana@example.com")

        assert match.candidate is by_email
        assert match.strategy == MatchStrategy.EMAIL

    def test_exact_name_wins_over_fuzzy(self):
        """Should return the exact case-sensitive name over a substring match listed first."""
        fuzzy = make_candidate("1", "Ana Silva Costa")
        exact = make_candidate("2", "Ana Silva")

        match = match_candidate([fuzzy, exact], "999", "Ana Silva")

        assert match.candidate is exact
        assert match.strategy == MatchStrategy.NAME


class TestEmailTier:
    """Test email matching rules."""

    def test_email_is_case_sensitive(self):
        """Should not match emails that differ only in case."""
        candidate = make_candidate("1", "Bruno Costa", "Bruno@Example.com")

        match = match_candidate([candidate], "999", "Someone", "bruno@example.com")

        assert match is None

    def test_empty_email_never_matches_blank_candidate_email(self):
        """Should skip the email tier when no email is supplied."""
        candidate = make_candidate("1", "Bruno Costa", "")

        assert match_candidate([candidate], "999", "Zed", "") is None
        assert match_candidate([candidate], "999", "Zed", None) is None


class TestFuzzyTier:
    """Test normalized name matching."""

    def test_normalize_name_trims_and_lowercases(self):
        """Should lower-case and strip surrounding whitespace."""
        assert normalize_name("  Ana SILVA ") == "ana silva"
        assert normalize_name(None) == ""

    def test_fuzzy_matches_case_and_whitespace_differences(self):
        """Should match names equal after normalization."""
        candidate = make_candidate("1", "Bruno Costa")

        match = match_candidate([candidate], "9002", " bruno costa ")

        assert match.candidate is candidate
        assert match.strategy == MatchStrategy.FUZZY

    def test_fuzzy_matches_substrings_both_ways(self):
        """Should match when either normalized name contains the other."""
        long_name = make_candidate("1", "Ana Silva Costa")
        short_name = make_candidate("2", "Bruno")

        assert match_candidate([long_name], "x", "ana silva").candidate is long_name
        assert match_candidate([short_name], "x", "Bruno Costa").candidate is short_name

    def test_empty_name_does_not_fuzzy_match(self):
        """Should not treat an empty name as a substring of every name."""
        candidate = make_candidate("1", "Ana Silva")

        assert match_candidate([candidate], "x", "   ") is None
        assert match_candidate([candidate], "x", None) is None

    def test_blank_candidate_names_are_ignored(self):
        """Should not match candidates whose name normalizes to empty."""
        blank = make_candidate("1", " ")

        assert match_candidate([blank], "x", "Ana") is None


class TestNoMatch:
    def test_returns_none_when_nothing_matches(self):
        """Should return None for an unknown user."""
        pool = [make_candidate("1", "Ana Silva", "ana@example.com")]

        assert match_candidate(pool, "777", "Zed Unknown", "zed@example.com") is None

    def test_empty_pool(self):
        """Should return None for an empty candidate set."""
        assert match_candidate([], "1", "Ana") is None
