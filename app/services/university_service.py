"""
University Service - CRUD, comparison, eligibility and statistics
for the universities collection.

Soft delete: universities are never removed, only flagged isActive=False,
and every read below goes through active_only().
"""

import logging
from typing import List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from app.core.errors import BusinessRuleError, NotFound
from app.db.mongodb import get_collection
from app.schemas.schemas import UniversityCreate, UniversityUpdate
from app.services.eligibility import evaluate_eligibility
from app.services.mongo_service import naive_utc_fields, utcnow
from app.services.query_builder import (
    active_only, parse_object_id, require_object_id, skip_for
)

logger = logging.getLogger(__name__)

MAX_COMPARE = 5
MIN_COMPARE = 2

COMPARE_PROJECTION = {
    "name": 1, "country": 1, "degreeLevel": 1, "minGPA": 1, "minIELTS": 1,
    "tuitionFee": 1, "programs": 1, "ranking": 1, "website": 1, "description": 1
}
SIMILAR_PROJECTION = {"name": 1, "country": 1, "tuitionFee": 1, "minGPA": 1, "minIELTS": 1}


def _round(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


class UniversityService:
    """
    Handles university documents.
    """

    def __init__(self, db: Database):
        self.collection: Collection = get_collection(db, "universities")
        self.applications: Collection = get_collection(db, "applications")

    def _get_active(self, university_id: str) -> dict:
        oid = require_object_id(university_id, "university id")
        doc = self.collection.find_one(active_only({"_id": oid}))
        if doc is None:
            raise NotFound("University not found")
        return doc

    def list(self, query: dict, sort: List[Tuple[str, int]], page: int, limit: int) -> Tuple[list, int]:
        """One page of universities matching `query` plus the total match count."""
        cursor = (
            self.collection.find(query)
            .sort(sort)
            .skip(skip_for(page, limit))
            .limit(limit)
        )
        docs = list(cursor)
        total = self.collection.count_documents(query)
        return docs, total

    def get_detail(self, university_id: str) -> dict:
        """
        University with its application count and up to 3 similar
        universities (same country and degree level).
        """
        doc = self._get_active(university_id)
        doc["applicationCount"] = self.applications.count_documents({"universityId": doc["_id"]})
        similar = self.collection.find(
            active_only({
                "country": doc.get("country"),
                "degreeLevel": doc.get("degreeLevel"),
                "_id": {"$ne": doc["_id"]}
            }),
            SIMILAR_PROJECTION
        ).limit(3)
        doc["similarUniversities"] = list(similar)
        return doc

    def create(self, data: UniversityCreate) -> dict:
        now = utcnow()
        doc = data.model_dump(by_alias=True, exclude_none=True)
        naive_utc_fields(doc, "applicationDeadline")
        doc.update({"isActive": True, "createdAt": now, "updatedAt": now})
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Created university %s (%s)", doc["name"], result.inserted_id)
        return doc

    def update(self, university_id: str, data: UniversityUpdate) -> dict:
        oid = require_object_id(university_id, "university id")
        changes = data.to_document()
        naive_utc_fields(changes, "applicationDeadline")
        changes["updatedAt"] = utcnow()
        doc = self.collection.find_one_and_update(
            active_only({"_id": oid}),
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFound("University not found")
        logger.info("Updated university %s: %s", oid, sorted(changes))
        return doc

    def soft_delete(self, university_id: str):
        """Mark a university inactive; its applications are kept."""
        oid = require_object_id(university_id, "university id")
        result = self.collection.update_one(
            active_only({"_id": oid}),
            {"$set": {"isActive": False, "updatedAt": utcnow()}}
        )
        if result.matched_count == 0:
            raise NotFound("University not found")
        logger.info("Soft deleted university %s", oid)

    def compare(self, ids: Optional[str]) -> list:
        """
        Universities for the comparison table.

        Only the first MAX_COMPARE ids are used; fewer than MIN_COMPARE
        matching universities is an error.
        """
        if not ids or not ids.strip():
            raise BusinessRuleError("University IDs are required for comparison")

        requested = [i.strip() for i in ids.split(",") if i.strip()][:MAX_COMPARE]
        oids = [oid for oid in (parse_object_id(i) for i in requested) if oid is not None]

        docs = list(self.collection.find(active_only({"_id": {"$in": oids}}), COMPARE_PROJECTION))
        if len(docs) < MIN_COMPARE:
            raise BusinessRuleError("At least 2 universities are required for comparison")

        # keep the order the client asked for
        position = {oid: index for index, oid in enumerate(oids)}
        docs.sort(key=lambda d: position.get(d["_id"], len(position)))
        return docs

    def check_eligibility(self, university_id: str, gpa: float, ielts: float) -> dict:
        university = self._get_active(university_id)
        result = evaluate_eligibility(gpa, ielts, university["minGPA"], university["minIELTS"])
        return {
            "isEligible": result.is_eligible,
            "university": {
                "name": university["name"],
                "minGPA": university["minGPA"],
                "minIELTS": university["minIELTS"]
            },
            "student": {"gpa": gpa, "ielts": ielts},
            "reasons": result.reasons,
            "suggestions": result.suggestions
        }

    def stats(self) -> dict:
        """Overview, top countries and degree breakdown of active universities."""
        match = {"$match": active_only()}

        overview_rows = list(self.collection.aggregate([
            match,
            {
                "$group": {
                    "_id": None,
                    "totalUniversities": {"$sum": 1},
                    "averageTuition": {"$avg": "$tuitionFee"},
                    "minTuition": {"$min": "$tuitionFee"},
                    "maxTuition": {"$max": "$tuitionFee"},
                    "averageGPA": {"$avg": "$minGPA"},
                    "averageIELTS": {"$avg": "$minIELTS"}
                }
            }
        ]))
        overview = {}
        if overview_rows:
            row = overview_rows[0]
            overview = {
                "totalUniversities": row["totalUniversities"],
                "averageTuition": _round(row.get("averageTuition")),
                "minTuition": row.get("minTuition"),
                "maxTuition": row.get("maxTuition"),
                "averageGPA": _round(row.get("averageGPA")),
                "averageIELTS": _round(row.get("averageIELTS"))
            }

        by_country = list(self.collection.aggregate([
            match,
            {"$group": {"_id": "$country", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": 10}
        ]))

        by_degree = list(self.collection.aggregate([
            match,
            {"$group": {"_id": "$degreeLevel", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}}
        ]))

        return {"overview": overview, "byCountry": by_country, "byDegree": by_degree}
