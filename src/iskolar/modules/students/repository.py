"""
Student Profile Repository

Read access to student profiles.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import StudentProfile


async def get_by_id(db: AsyncSession, id: UUID) -> StudentProfile | None:
    """Get profile by ID."""
    return await db.get(StudentProfile, id)


async def get_by_user_id(db: AsyncSession, user_id: UUID) -> StudentProfile | None:
    """Get the profile linked to a user account."""
    result = await db.execute(select(StudentProfile).where(StudentProfile.user_id == user_id))
    return result.scalar_one_or_none()
