from __future__ import annotations

import pytest

from src.staff_management.staff_management.core.enums import IssueCategory, IssueSeverity, VerificationResult
from src.staff_management.staff_management.core.exceptions import ValidationError
from src.staff_management.staff_management.verification.scoring import build_report, overall_score, result_for


def test_overall_score_rounds_to_one_decimal():
    assert overall_score(5, 4, 4) == 4.3
    assert overall_score(1, 1, 2) == 1.3


@pytest.mark.parametrize(
    "score, expected",
    [
        (4.0, VerificationResult.PASS),
        (3.9, VerificationResult.RECHECK),
        (2.5, VerificationResult.RECHECK),
        (2.4, VerificationResult.FAIL),
    ],
)
def test_result_thresholds(score, expected):
    assert result_for(score) == expected


def test_build_report_scores_and_parses_issues():
    report = build_report(
        {
            "cleanliness": 5,
            "completeness": 4,
            "quality": 3,
            "comments": "  Corners missed  ",
            "issues": [{"category": "incomplete", "description": "Back corner", "severity": "low"}],
        }
    )

    assert report.overall_score == 4.0
    assert report.result == VerificationResult.PASS
    assert report.comments == "Corners missed"
    assert report.issues[0].category == IssueCategory.INCOMPLETE
    assert report.issues[0].severity == IssueSeverity.LOW


def test_issue_severity_defaults_to_medium():
    report = build_report(
        {"cleanliness": 2, "completeness": 2, "quality": 2, "issues": [{"category": "damage", "description": "Chair"}]}
    )
    assert report.result == VerificationResult.FAIL
    assert report.issues[0].severity == IssueSeverity.MEDIUM


@pytest.mark.parametrize(
    "payload",
    [
        {"cleanliness": 5, "completeness": 4},
        {"cleanliness": "5", "completeness": 4, "quality": 4},
        {"cleanliness": 6, "completeness": 4, "quality": 4},
        {"cleanliness": 4.5, "completeness": 4, "quality": 4},
        {"cleanliness": True, "completeness": 4, "quality": 4},
        {"cleanliness": 4, "completeness": 4, "quality": 4, "issues": [{"category": "mess", "description": "x"}]},
        {"cleanliness": 4, "completeness": 4, "quality": 4, "issues": "dirty"},
    ],
)
def test_build_report_rejects_invalid_input(payload):
    with pytest.raises(ValidationError):
        build_report(payload)
