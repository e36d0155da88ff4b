"""
Eligibility & Application Lifecycle Rules

Pure functions, no database access:
- GPA / IELTS eligibility against a university's minimums
- status history entries and decision dates
- the rolling duplicate-submission window
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

# Statuses that close an application and stamp decisionDate
DECISION_STATUSES = {"accepted", "rejected"}

CHECK_SUGGESTIONS = [
    "Consider improving your test scores",
    "Look for universities with lower requirements",
    "Consider taking additional courses to improve your profile",
]

SUBMISSION_SUGGESTIONS = [
    "Consider improving your test scores",
    "Look for universities with lower requirements",
    "Contact university admission office for special consideration",
]

ELIGIBLE_NOTE = "Meets all eligibility criteria"


@dataclass
class EligibilityResult:
    is_eligible: bool
    reasons: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def is_eligible(gpa: float, ielts: float, min_gpa: float, min_ielts: float) -> bool:
    """Both scores must reach the minimum; equality counts."""
    return gpa >= min_gpa and ielts >= min_ielts


def evaluate_eligibility(gpa: float, ielts: float, min_gpa: float, min_ielts: float,
                         suggestions: Optional[List[str]] = None) -> EligibilityResult:
    """
    Compare an applicant against a university's minimum GPA / IELTS.

    Returns one reason per failing criterion, or ["All requirements met"]
    when the applicant is eligible. Suggestions are only given on failure.
    """
    if is_eligible(gpa, ielts, min_gpa, min_ielts):
        return EligibilityResult(is_eligible=True, reasons=["All requirements met"])

    reasons = []
    if gpa < min_gpa:
        reasons.append(f"Your GPA ({gpa:g}) is below the minimum requirement ({min_gpa:g})")
    if ielts < min_ielts:
        reasons.append(f"Your IELTS score ({ielts:g}) is below the minimum requirement ({min_ielts:g})")

    return EligibilityResult(
        is_eligible=False,
        reasons=reasons,
        suggestions=list(suggestions if suggestions is not None else CHECK_SUGGESTIONS)
    )


def eligibility_snapshot(result: EligibilityResult, gpa: float, ielts: float,
                         min_gpa: float, min_ielts: float, now: datetime) -> dict:
    """The eligibilityCheck sub-document stored on an application."""
    if result.is_eligible:
        notes = ELIGIBLE_NOTE
    else:
        notes = f"Failed eligibility: GPA ({gpa:g}/{min_gpa:g}), IELTS ({ielts:g}/{min_ielts:g})"
    return {"passed": result.is_eligible, "checkedAt": now, "notes": notes}


def duplicate_window_start(now: datetime, days: int = 30) -> datetime:
    """Applications created at or after this instant count as duplicates."""
    return now - timedelta(days=days)


def status_history_entry(status: str, now: datetime, notes: Optional[str] = None) -> dict:
    return {
        "status": status,
        "changedAt": now,
        "notes": notes or f"Status changed to {status}"
    }


def status_change_fields(status: str, now: datetime) -> dict:
    """Fields to $set when an application moves to `status`."""
    fields = {"status": status, "updatedAt": now}
    if status in DECISION_STATUSES:
        fields["decisionDate"] = now
    return fields
