from datetime import datetime

import pytest

from app.services.eligibility import (
    CHECK_SUGGESTIONS, SUBMISSION_SUGGESTIONS, duplicate_window_start, eligibility_snapshot,
    evaluate_eligibility, is_eligible, status_change_fields, status_history_entry
)


@pytest.mark.parametrize("gpa, ielts, expected", [
    (3.5, 7.0, True),   # equal to both minimums
    (3.49, 7.0, False),
    (3.5, 6.5, False),
    (4.0, 9.0, True),
])
def test_is_eligible_boundaries(gpa, ielts, expected):
    assert is_eligible(gpa, ielts, 3.5, 7.0) is expected


def test_eligible_result_has_single_reason_and_no_suggestions():
    result = evaluate_eligibility(3.8, 7.5, 3.5, 7.0)
    assert result.is_eligible
    assert result.reasons == ["All requirements met"]
    assert result.suggestions == []


def test_ineligible_gpa_reason():
    result = evaluate_eligibility(3.0, 7.5, 3.5, 7.0)
    assert not result.is_eligible
    assert result.reasons == ["Your GPA (3) is below the minimum requirement (3.5)"]
    assert result.suggestions == CHECK_SUGGESTIONS


def test_both_scores_failing_give_two_reasons():
    result = evaluate_eligibility(2.5, 5.5, 3.0, 6.5, suggestions=SUBMISSION_SUGGESTIONS)
    assert len(result.reasons) == 2
    assert "IELTS score (5.5)" in result.reasons[1]
    assert result.suggestions == SUBMISSION_SUGGESTIONS


def test_eligibility_snapshot_notes():
    now = datetime(2026, 1, 1)
    passed = eligibility_snapshot(evaluate_eligibility(3.6, 7, 3.5, 7), 3.6, 7, 3.5, 7, now)
    assert passed == {"passed": True, "checkedAt": now, "notes": "Meets all eligibility criteria"}

    failed = eligibility_snapshot(evaluate_eligibility(3.0, 7, 3.5, 7), 3.0, 7, 3.5, 7, now)
    assert failed["passed"] is False
    assert failed["notes"] == "Failed eligibility: GPA (3/3.5), IELTS (7/7)"


def test_duplicate_window_start():
    assert duplicate_window_start(datetime(2026, 3, 31), 30) == datetime(2026, 3, 1)


def test_status_history_entry_default_notes():
    now = datetime(2026, 1, 1)
    assert status_history_entry("shortlisted", now)["notes"] == "Status changed to shortlisted"
    assert status_history_entry("shortlisted", now, "Strong profile")["notes"] == "Strong profile"


@pytest.mark.parametrize("status, stamped", [
    ("accepted", True),
    ("rejected", True),
    ("waitlisted", False),
    ("under_review", False),
])
def test_decision_date_only_for_final_statuses(status, stamped):
    fields = status_change_fields(status, datetime(2026, 1, 1))
    assert fields["status"] == status
    assert ("decisionDate" in fields) is stamped
