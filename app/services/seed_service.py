"""
Seed Service - sample universities and a first admin account.

Used by scripts/seed_database.py. Safe to run more than once:
universities are matched by name and the admin by email.
"""

import logging
from datetime import datetime
from typing import Optional

from pymongo.database import Database

from app.db.mongodb import get_collection
from app.schemas.schemas import RegisterRequest, UniversityCreate, UserRole
from app.services.university_service import UniversityService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

SAMPLE_UNIVERSITIES = [
    {
        "name": "Harvard University", "country": "USA", "city": "Cambridge",
        "description": "Research university known for excellence in teaching, research and learning.",
        "degreeLevel": "Masters",
        "programs": ["Computer Science", "Business Administration", "Law", "Medicine", "Engineering"],
        "minGPA": 3.7, "minIELTS": 7.5, "tuitionFee": 52000, "scholarshipsAvailable": True,
        "applicationDeadline": datetime(2026, 7, 15), "intakeSeasons": ["Fall"], "ranking": 1,
        "website": "https://www.harvard.edu", "contactEmail": "admissions@harvard.edu"
    },
    {
        "name": "University of Toronto", "country": "Canada", "city": "Toronto",
        "description": "Canada's largest research university.",
        "degreeLevel": "Masters",
        "programs": ["Computer Science", "Business", "Engineering", "Life Sciences", "Social Sciences"],
        "minGPA": 3.3, "minIELTS": 7.0, "tuitionFee": 45000, "scholarshipsAvailable": True,
        "applicationDeadline": datetime(2026, 5, 30), "intakeSeasons": ["Fall", "Winter"], "ranking": 18,
        "website": "https://www.utoronto.ca", "contactEmail": "ask@utoronto.ca"
    },
    {
        "name": "University of Oxford", "country": "UK", "city": "Oxford",
        "description": "The oldest university in the English-speaking world.",
        "degreeLevel": "Masters",
        "programs": ["Computer Science", "Mathematics", "Physics", "Economics", "Law"],
        "minGPA": 3.6, "minIELTS": 7.5, "tuitionFee": 32000, "scholarshipsAvailable": True,
        "applicationDeadline": datetime(2026, 8, 15), "intakeSeasons": ["Fall"], "ranking": 3,
        "website": "https://www.ox.ac.uk", "contactEmail": "admissions@ox.ac.uk"
    },
    {
        "name": "Technical University of Munich", "country": "Germany", "city": "Munich",
        "description": "Leading technical university with low tuition fees.",
        "degreeLevel": "Masters",
        "programs": ["Engineering", "Informatics", "Physics", "Management"],
        "minGPA": 3.0, "minIELTS": 6.5, "tuitionFee": 3000, "scholarshipsAvailable": False,
        "intakeSeasons": ["Fall", "Spring"], "ranking": 37,
        "website": "https://www.tum.de", "contactEmail": "studium@tum.de"
    },
    {
        "name": "University of Melbourne", "country": "Australia", "city": "Melbourne",
        "description": "Public research university and one of Australia's oldest.",
        "degreeLevel": "Bachelors",
        "programs": ["Arts", "Commerce", "Science", "Biomedicine", "Design"],
        "minGPA": 3.0, "minIELTS": 6.5, "tuitionFee": 38000, "scholarshipsAvailable": True,
        "intakeSeasons": ["Spring", "Summer"], "ranking": 14,
        "website": "https://www.unimelb.edu.au", "contactEmail": "future@unimelb.edu.au"
    },
    {
        "name": "University of British Columbia", "country": "Canada", "city": "Vancouver",
        "description": "Global centre for research and teaching.",
        "degreeLevel": "Masters",
        "programs": ["Computer Science", "Business", "Forestry", "Arts", "Science"],
        "minGPA": 3.2, "minIELTS": 6.5, "tuitionFee": 42000, "scholarshipsAvailable": True,
        "applicationDeadline": datetime(2026, 8, 15), "intakeSeasons": ["Fall"], "ranking": 34,
        "website": "https://www.ubc.ca", "contactEmail": "international.reception@ubc.ca"
    },
    {
        "name": "Imperial College London", "country": "UK", "city": "London",
        "description": "Science, engineering, medicine and business university.",
        "degreeLevel": "Masters",
        "programs": ["Engineering", "Medicine", "Business", "Natural Sciences", "Computing"],
        "minGPA": 3.5, "minIELTS": 7.0, "tuitionFee": 35000, "scholarshipsAvailable": True,
        "applicationDeadline": datetime(2026, 5, 15), "intakeSeasons": ["Fall"], "ranking": 7,
        "website": "https://www.imperial.ac.uk", "contactEmail": "admissions@imperial.ac.uk"
    },
]


def seed_database(db: Database, admin_email: Optional[str] = None,
                  admin_password: Optional[str] = None, admin_name: str = "Administrator") -> dict:
    """
    Insert sample universities that are not there yet and, when
    credentials are given, an admin user.

    Returns counts: {"universities": inserted, "admin": created?}
    """
    universities = UniversityService(db)
    existing = {doc["name"] for doc in get_collection(db, "universities").find({}, {"name": 1})}

    inserted = 0
    for sample in SAMPLE_UNIVERSITIES:
        if sample["name"] in existing:
            continue
        universities.create(UniversityCreate(**sample))
        inserted += 1
    logger.info("Seeded %d universities", inserted)

    admin_created = False
    if admin_email and admin_password:
        users = get_collection(db, "users")
        if users.find_one({"email": admin_email.lower()}, {"_id": 1}) is None:
            UserService(db).register(RegisterRequest(
                name=admin_name, email=admin_email, password=admin_password, role=UserRole.admin
            ))
            admin_created = True
            logger.info("Created admin user %s", admin_email)

    return {"universities": inserted, "admin": admin_created}
