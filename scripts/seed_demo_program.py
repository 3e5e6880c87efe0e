"""
Seed Demo Scholarship Program

Creates a sample scholarship program with its document requirements and
prints an administrator access token for local testing.
Run this script once after ``alembic upgrade head``.

Usage:
    python scripts/seed_demo_program.py
"""

import asyncio
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import select

from iskolar.core.auth import ADMIN_ROLE
from iskolar.core.database import async_session_maker, close_db
from iskolar.core.security import create_access_token
from iskolar.modules.programs.models import (
    DocumentRequirement,
    ScholarshipProgram,
    SchoolTypeEligibility,
)

PROGRAM_NAME = "Iskolar ng Bayan Grant"

REQUIREMENTS = [
    ("Certificate of Enrollment", "Current semester certificate of enrollment", True),
    ("Report Card / Transcript", "Grades from the previous semester", True),
    ("Barangay Certificate of Indigency", "Issued within the last 6 months", True),
    ("Recommendation Letter", "From a teacher or school official", False),
]


async def seed_demo_program() -> None:
    """Create the demo program if it doesn't exist."""
    async with async_session_maker() as db:
        result = await db.execute(
            select(ScholarshipProgram).where(ScholarshipProgram.name == PROGRAM_NAME)
        )
        existing = result.scalar_one_or_none()

        if existing:
            print(f"Demo program already exists: {existing.id}")
        else:
            program = ScholarshipProgram(
                name=PROGRAM_NAME,
                description="Financial assistance for students in exchange for community service.",
                total_budget=Decimal("500000.00"),
                per_student_budget=Decimal("10000.00"),
                available_slots=50,
                school_type_eligibility=SchoolTypeEligibility.BOTH,
                min_gpa=Decimal("85.00"),
                semester="First Semester",
                academic_year="2026-2027",
                application_deadline=date.today() + timedelta(days=60),
                community_service_days=6,
                active=True,
            )
            db.add(program)
            await db.flush()

            for name, description, is_required in REQUIREMENTS:
                db.add(
                    DocumentRequirement(
                        scholarship_program_id=program.id,
                        name=name,
                        description=description,
                        is_required=is_required,
                    )
                )

            await db.commit()
            print("Demo program created successfully!")
            print(f"  ID: {program.id}")
            print(f"  Requirements: {len(REQUIREMENTS)}")

    token = create_access_token(str(uuid4()), ADMIN_ROLE)
    print(f"Admin access token (local testing only):\n  {token}")

    await close_db()


if __name__ == "__main__":
    asyncio.run(seed_demo_program())
