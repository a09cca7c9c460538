"""Inspection scoring rules."""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

from ..common.rounding import round_half_up
from ..common.validators import optional_enum, require_enum, require_max_length, require_non_empty
from ..core.constants import PASS_SCORE, RECHECK_SCORE
from ..core.enums import IssueCategory, IssueSeverity, VerificationResult
from ..core.exceptions import ValidationError
from .model import Issue, VerificationReport

RATING_FIELDS = ("cleanliness", "completeness", "quality")


def overall_score(cleanliness: int, completeness: int, quality: int) -> float:
    return round_half_up((cleanliness + completeness + quality) / 3, 1)


def result_for(score: float) -> VerificationResult:
    if score >= PASS_SCORE:
        return VerificationResult.PASS
    if score >= RECHECK_SCORE:
        return VerificationResult.RECHECK
    return VerificationResult.FAIL


def _rating(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError("All ratings must be whole numbers between 1 and 5")
    return value


def parse_issues(raw: Optional[Sequence[Any]]) -> Tuple[Issue, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValidationError("Issues must be a list")
    issues = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError("Each issue must be an object")
        issues.append(
            Issue(
                category=require_enum(IssueCategory, item.get("category"), "issue category"),
                description=require_max_length(
                    require_non_empty(item.get("description"), "Issue description"), "Issue description", 200
                ),
                severity=optional_enum(IssueSeverity, item.get("severity"), "issue severity") or IssueSeverity.MEDIUM,
            )
        )
    return tuple(issues)


def build_report(payload: dict) -> VerificationReport:
    """Validate a submitted inspection and score it.

    Ratings must be JSON integers 1-5; numeric strings are rejected.
    """
    if not all(payload.get(name) for name in RATING_FIELDS):
        raise ValidationError("All ratings required (1-5 whole numbers)")
    cleanliness, completeness, quality = (_rating(payload[name]) for name in RATING_FIELDS)
    score = overall_score(cleanliness, completeness, quality)
    return VerificationReport(
        cleanliness=cleanliness,
        completeness=completeness,
        quality=quality,
        overall_score=score,
        result=result_for(score),
        comments=require_max_length(payload.get("comments"), "Comments", 500).strip(),
        issues=parse_issues(payload.get("issues")),
    )
