"""
Unit tests for the scholarship programs service layer.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from iskolar.core.auth import StudentActor
from iskolar.core.exceptions import NotFoundError
from iskolar.modules.programs.eligibility import IneligibilityReason
from iskolar.modules.programs.models import ScholarshipProgram, SchoolTypeEligibility
from iskolar.modules.programs.service import get_program, list_programs


@pytest.fixture
def second_program(program):
    p = MagicMock(spec=ScholarshipProgram)
    p.id = uuid4()
    p.name = "Senior High Support Grant"
    p.available_slots = 2
    p.school_type_eligibility = SchoolTypeEligibility.HIGH_SCHOOL
    p.application_deadline = program.application_deadline
    p.community_service_days = 3
    p.active = True
    return p


@pytest.fixture
def repos(profile):
    with (
        patch("iskolar.modules.programs.service.repository") as programs_repo,
        patch("iskolar.modules.programs.service.applications_repository") as applications_repo,
        patch("iskolar.modules.programs.service.students_repository") as students_repo,
    ):
        students_repo.get_by_id = AsyncMock(return_value=profile)
        applications_repo.list_program_ids_for_student = AsyncMock(return_value=set())
        applications_repo.get_for_student_and_program = AsyncMock(return_value=None)
        programs_repo.count_slot_holders_by_program = AsyncMock(return_value={})
        programs_repo.count_slot_holders = AsyncMock(return_value=0)
        programs_repo.get_requirements = AsyncMock(return_value=[])
        yield MagicMock(
            programs=programs_repo, applications=applications_repo, students=students_repo
        )


class TestListPrograms:
    """Tests for list_programs."""

    @pytest.mark.asyncio
    async def test_flags_per_program(
        self, mock_db, actor, clock, program, second_program, repos,
    ):
        repos.programs.list_open = AsyncMock(return_value=[program, second_program])
        repos.applications.list_program_ids_for_student = AsyncMock(return_value={program.id})
        repos.programs.count_slot_holders_by_program = AsyncMock(
            return_value={program.id: 4, second_program.id: 2}
        )

        first, second = await list_programs(mock_db, actor, clock)

        assert first.remaining_slots == 6
        assert first.has_applied is True
        assert first.reasons == [IneligibilityReason.ALREADY_APPLIED]
        assert first.can_apply is False

        assert second.remaining_slots == 0
        assert second.has_applied is False
        assert second.reasons == [
            IneligibilityReason.NO_SLOTS_REMAINING,
            IneligibilityReason.SCHOOL_TYPE_MISMATCH,
        ]
        repos.programs.list_open.assert_awaited_once_with(mock_db, clock.now().date())

    @pytest.mark.asyncio
    async def test_without_profile(self, mock_db, clock, program, repos):
        actor = StudentActor(user_id=uuid4(), student_profile_id=None)
        repos.programs.list_open = AsyncMock(return_value=[program])

        (listing,) = await list_programs(mock_db, actor, clock)

        assert listing.reasons == [IneligibilityReason.PROFILE_REQUIRED]
        repos.applications.list_program_ids_for_student.assert_not_awaited()


class TestGetProgram:
    @pytest.mark.asyncio
    async def test_includes_requirements(
        self, mock_db, actor, clock, program, make_requirement, repos,
    ):
        requirements = [make_requirement("ID"), make_requirement("Report Card")]
        repos.programs.get_by_id = AsyncMock(return_value=program)
        repos.programs.get_requirements = AsyncMock(return_value=requirements)

        listing = await get_program(mock_db, actor, program.id, clock)

        assert listing.requirements == requirements
        assert listing.can_apply is True
        assert listing.remaining_slots == 10

    @pytest.mark.asyncio
    async def test_unknown_program(self, mock_db, actor, clock, repos):
        repos.programs.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await get_program(mock_db, actor, uuid4(), clock)
