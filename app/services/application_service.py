"""
Application Service - submission, review workflow and statistics
for the applications collection.

Submission order:
1. the university must exist and be active
2. no application for the same email + university in the last 30 days
3. the applicant must meet the university's GPA / IELTS minimums

After creation an application only changes through status updates,
assignment and review notes. statusHistory and reviewNotes are only
ever appended to; applications are never deleted.
"""

import logging
from typing import List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from app.core.errors import BusinessRuleError, NotFound
from app.db.mongodb import get_collection
from app.schemas.schemas import ApplicationCreate
from app.services.eligibility import (
    SUBMISSION_SUGGESTIONS, duplicate_window_start, eligibility_snapshot,
    evaluate_eligibility, status_change_fields, status_history_entry
)
from app.services.mongo_service import attach_reference, lookup_by_ids, naive_utc_fields, utcnow
from app.services.query_builder import active_only, require_object_id, skip_for

logger = logging.getLogger(__name__)

UNIVERSITY_SUMMARY = {"name": 1, "country": 1}
UNIVERSITY_WITH_LOGO = {"name": 1, "country": 1, "logoUrl": 1}
ASSIGNEE_SUMMARY = {"name": 1, "email": 1}
ASSIGNEE_DETAIL = {"name": 1, "email": 1, "role": 1}


def _round(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


class ApplicationService:
    """
    Handles application documents.

    University and reviewer references are resolved with explicit
    lookups. Soft-deleted universities are still resolved so that
    historical applications keep their university details.
    """

    def __init__(self, db: Database, duplicate_window_days: int = 30):
        self.collection: Collection = get_collection(db, "applications")
        self.universities: Collection = get_collection(db, "universities")
        self.users: Collection = get_collection(db, "users")
        self.duplicate_window_days = duplicate_window_days

    # ------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------

    def _with_university(self, docs: List[dict], projection: Optional[dict]) -> List[dict]:
        return attach_reference(docs, "universityId", "university", self.universities, projection)

    def _with_assignee(self, docs: List[dict], projection: dict) -> List[dict]:
        # documents without an assignee keep assignedTo = None
        found = lookup_by_ids(self.users, (d.get("assignedTo") for d in docs), projection)
        for doc in docs:
            if doc.get("assignedTo") is not None:
                doc["assignedTo"] = found.get(doc["assignedTo"])
        return docs

    def _get(self, application_id: str) -> dict:
        oid = require_object_id(application_id, "application id")
        doc = self.collection.find_one({"_id": oid})
        if doc is None:
            raise NotFound("Application not found")
        return doc

    # ------------------------------------------------------------
    # submission
    # ------------------------------------------------------------

    def submit(self, data: ApplicationCreate) -> dict:
        """
        Create an application after the duplicate and eligibility checks.

        Raises:
            NotFound: university missing or soft deleted
            BusinessRuleError: duplicate within the window, or not eligible
        """
        university_oid = require_object_id(data.university_id, "universityId")
        university = self.universities.find_one(active_only({"_id": university_oid}))
        if university is None:
            raise NotFound("University not found")

        now = utcnow()
        recent = self.collection.find_one({
            "email": data.email,
            "universityId": university_oid,
            "createdAt": {"$gte": duplicate_window_start(now, self.duplicate_window_days)}
        })
        if recent is not None:
            logger.info("Duplicate application from %s for university %s", data.email, university_oid)
            raise BusinessRuleError(
                "You have already applied to this university recently. "
                f"Please wait {self.duplicate_window_days} days before applying again."
            )

        result = evaluate_eligibility(
            data.gpa, data.ielts, university["minGPA"], university["minIELTS"],
            suggestions=SUBMISSION_SUGGESTIONS
        )
        if not result.is_eligible:
            logger.info("Ineligible application from %s for university %s", data.email, university_oid)
            raise BusinessRuleError("Not eligible for this university", data={
                "studentGPA": data.gpa,
                "requiredGPA": university["minGPA"],
                "studentIELTS": data.ielts,
                "requiredIELTS": university["minIELTS"],
                "reasons": result.reasons,
                "suggestions": result.suggestions
            })

        doc = data.model_dump(by_alias=True, exclude_none=True)
        naive_utc_fields(doc, "dateOfBirth")
        doc.update({
            "universityId": university_oid,
            "status": "submitted",
            "statusHistory": [status_history_entry("submitted", now, "Application submitted")],
            "reviewNotes": [],
            "isEligible": True,
            "eligibilityCheck": eligibility_snapshot(
                result, data.gpa, data.ielts, university["minGPA"], university["minIELTS"], now
            ),
            "createdAt": now,
            "updatedAt": now
        })
        inserted = self.collection.insert_one(doc)
        doc["_id"] = inserted.inserted_id
        doc["university"] = {"_id": university["_id"], "name": university["name"],
                             "country": university.get("country")}
        logger.info("Application %s submitted by %s", inserted.inserted_id, data.email)
        return doc

    # ------------------------------------------------------------
    # reads
    # ------------------------------------------------------------

    def list(self, query: dict, sort: List[Tuple[str, int]], page: int, limit: int) -> Tuple[list, int]:
        docs = list(
            self.collection.find(query)
            .sort(sort)
            .skip(skip_for(page, limit))
            .limit(limit)
        )
        total = self.collection.count_documents(query)
        self._with_university(docs, UNIVERSITY_SUMMARY)
        self._with_assignee(docs, ASSIGNEE_SUMMARY)
        return docs, total

    def get(self, application_id: str) -> dict:
        doc = self._get(application_id)
        self._with_university([doc], None)
        self._with_assignee([doc], ASSIGNEE_DETAIL)
        return doc

    def list_by_email(self, email: str) -> list:
        """All applications for a student email, newest first."""
        docs = list(
            self.collection.find({"email": email.strip().lower()})
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        )
        return self._with_university(docs, UNIVERSITY_WITH_LOGO)

    # ------------------------------------------------------------
    # review workflow
    # ------------------------------------------------------------

    def update_status(self, application_id: str, status: str, notes: Optional[str] = None) -> dict:
        """
        Set a new status. Any status is accepted at any time; each call
        appends exactly one statusHistory entry and accepted/rejected
        stamp decisionDate.
        """
        oid = require_object_id(application_id, "application id")
        now = utcnow()
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {
                "$set": status_change_fields(status, now),
                "$push": {"statusHistory": status_history_entry(status, now, notes)}
            },
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFound("Application not found")
        logger.info("Application %s status -> %s", oid, status)
        return self._with_university([doc], {"name": 1})[0]

    def assign(self, application_id: str, assignee_id: str) -> dict:
        """Assign to a staff user and move the application to under_review."""
        oid = require_object_id(application_id, "application id")
        assignee_oid = require_object_id(assignee_id, "assignedTo")
        if self.users.find_one({"_id": assignee_oid}, {"_id": 1}) is None:
            raise NotFound("Reviewer not found")

        now = utcnow()
        fields = status_change_fields("under_review", now)
        fields["assignedTo"] = assignee_oid
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {
                "$set": fields,
                "$push": {"statusHistory": status_history_entry("under_review", now, "Assigned for review")}
            },
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFound("Application not found")
        logger.info("Application %s assigned to %s", oid, assignee_oid)
        return self._with_assignee([doc], ASSIGNEE_SUMMARY)[0]

    def add_note(self, application_id: str, note: str, reviewer: str) -> list:
        """Append a review note and return all notes."""
        oid = require_object_id(application_id, "application id")
        now = utcnow()
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {
                "$push": {"reviewNotes": {"note": note, "reviewer": reviewer, "createdAt": now}},
                "$set": {"updatedAt": now}
            },
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFound("Application not found")
        return doc.get("reviewNotes", [])

    # ------------------------------------------------------------
    # statistics
    # ------------------------------------------------------------

    def stats(self) -> dict:
        overview_rows = list(self.collection.aggregate([
            {
                "$group": {
                    "_id": None,
                    "totalApplications": {"$sum": 1},
                    "averageGPA": {"$avg": "$gpa"},
                    "averageIELTS": {"$avg": "$ielts"},
                    "totalApplicationFees": {"$sum": "$applicationFee"}
                }
            }
        ]))
        overview = {}
        if overview_rows:
            row = overview_rows[0]
            total = row["totalApplications"]
            eligible = self.collection.count_documents({"isEligible": True})
            overview = {
                "totalApplications": total,
                "eligibleApplications": eligible,
                "ineligibleApplications": total - eligible,
                "eligibilityRate": _round(eligible / total * 100) if total else 0,
                "averageGPA": _round(row.get("averageGPA")),
                "averageIELTS": _round(row.get("averageIELTS")),
                "totalApplicationFees": row.get("totalApplicationFees", 0)
            }

        by_status = list(self.collection.aggregate([
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}}
        ]))

        by_university = list(self.collection.aggregate([
            {"$group": {"_id": "$universityId", "count": {"$sum": 1}, "averageGPA": {"$avg": "$gpa"}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": 10}
        ]))
        # names include soft-deleted universities
        names = lookup_by_ids(self.universities, (row["_id"] for row in by_university), UNIVERSITY_SUMMARY)
        for row in by_university:
            university = names.get(row["_id"])
            row["averageGPA"] = _round(row.get("averageGPA"))
            row["universityName"] = university["name"] if university else "Unknown"
            row["country"] = university.get("country", "Unknown") if university else "Unknown"

        # latest 12 months, returned oldest first
        monthly = list(self.collection.aggregate([
            {
                "$group": {
                    "_id": {"year": {"$year": "$createdAt"}, "month": {"$month": "$createdAt"}},
                    "count": {"$sum": 1}
                }
            },
            {"$sort": {"_id.year": -1, "_id.month": -1}},
            {"$limit": 12}
        ]))
        monthly.reverse()

        return {
            "overview": overview,
            "byStatus": by_status,
            "byUniversity": by_university,
            "monthlyTrend": monthly
        }
