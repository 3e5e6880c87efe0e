"""
Unit tests for time-tracked community service sessions.
"""

from datetime import date, time
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from iskolar.core.exceptions import (
    DuplicateActiveSessionError,
    InvalidIntervalError,
    InvalidTransitionError,
    StorageFailureError,
    TooManyPhotosError,
    ValidationError,
)
from iskolar.core.storage import UploadedFile
from iskolar.modules.applications.models import ApplicationStatus
from iskolar.modules.community_service import repository as service_repository
from iskolar.modules.community_service.models import EntryStatus
from iskolar.modules.community_service.service import cancel_entry, end_entry, start_entry

S = ApplicationStatus
TODAY = date(2026, 3, 10)


def _photo(name: str = "cleanup.jpg") -> UploadedFile:
    return UploadedFile(filename=name, content=b"\xff\xd8\xff jpeg")


@pytest.fixture
def entries_repo():
    with patch("iskolar.modules.community_service.service.repository") as mock_repo:
        mock_repo.get_active_entry = AsyncMock(return_value=None)
        mock_repo.complete_entry = AsyncMock(side_effect=service_repository.complete_entry)
        mock_repo.delete_entry = AsyncMock()
        yield mock_repo


class TestStartEntry:
    """Tests for start_entry."""

    @pytest.mark.asyncio
    async def test_start(
        self, mock_db, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY)
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.create_entry = AsyncMock(return_value=entry)

        result = await start_entry(
            mock_db, actor, app.id, TODAY, time(8, 0), "  Tree planting at the river park  ", clock
        )

        assert result is entry
        entries_repo.create_entry.assert_awaited_once_with(
            mock_db, app.id, TODAY, time(8, 0), "Tree planting at the river park"
        )
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_one_active_session_per_date(
        self, mock_db, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_active_entry = AsyncMock(return_value=make_entry(app, TODAY))
        entries_repo.create_entry = AsyncMock()

        with pytest.raises(DuplicateActiveSessionError):
            await start_entry(
                mock_db, actor, app.id, TODAY, time(13, 0), "Afternoon tree planting", clock
            )

        entries_repo.create_entry.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_start(
        self, mock_db, actor, clock, make_application, application_repo, entries_repo,
    ):
        """The partial unique index rejects a second in-progress session."""
        app = make_application(S.ENROLLED)
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.create_entry = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("duplicate key"))
        )

        with pytest.raises(DuplicateActiveSessionError):
            await start_entry(
                mock_db, actor, app.id, TODAY, time(8, 0), "Tree planting at the park", clock
            )

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_future_date(self, mock_db, actor, clock, make_application, application_repo):
        app = make_application(S.ENROLLED)

        with pytest.raises(ValidationError):
            await start_entry(
                mock_db, actor, app.id, date(2026, 3, 11), time(8, 0), "Tree planting drive", clock
            )

    @pytest.mark.asyncio
    async def test_short_task_description(
        self, mock_db, actor, clock, make_application, application_repo,
    ):
        app = make_application(S.ENROLLED)

        with pytest.raises(ValidationError):
            await start_entry(mock_db, actor, app.id, TODAY, time(8, 0), "Planting", clock)

    @pytest.mark.asyncio
    async def test_not_enrolled(
        self, mock_db, actor, clock, make_application, application_repo, entries_repo,
    ):
        app = make_application(S.APPROVED)
        application_repo.get_by_id = AsyncMock(return_value=app)

        with pytest.raises(InvalidTransitionError):
            await start_entry(
                mock_db, actor, app.id, TODAY, time(8, 0), "Tree planting drive", clock
            )


class TestEndEntry:
    """Tests for end_entry."""

    @pytest.mark.asyncio
    async def test_end_with_time_out_and_photos(
        self, mock_db, store, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY, time(8, 0))
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)

        result = await end_entry(
            mock_db, store, actor, entry.id, time(12, 0),
            "Learned how to prepare seedlings", [_photo(), _photo("team.png")], clock,
        )

        assert result.status == EntryStatus.COMPLETED
        assert result.hours_completed == Decimal("4.00")
        assert result.time_out == time(12, 0)
        assert len(result.photos) == 2
        assert all(store.exists(ref) for ref in result.photos)
        assert all(ref.startswith(f"service-photos/{app.id}/") for ref in result.photos)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_end_live_session(
        self, mock_db, store, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        entry = make_entry(app, TODAY, time(13, 0))
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)

        result = await end_entry(mock_db, store, actor, entry.id, None, None, [], clock)

        assert result.hours_completed == Decimal("1.50")
        assert result.time_out == time(14, 30)

    @pytest.mark.asyncio
    async def test_invalid_interval(
        self, mock_db, store, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY, time(9, 0))
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)

        with pytest.raises(InvalidIntervalError):
            await end_entry(mock_db, store, actor, entry.id, time(9, 0), None, [], clock)

        assert entry.status == EntryStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_already_completed(
        self, mock_db, store, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY, status=EntryStatus.COMPLETED, hours="4.00")
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)

        with pytest.raises(InvalidTransitionError):
            await end_entry(mock_db, store, actor, entry.id, time(17, 0), None, [], clock)

        assert entry.hours_completed == Decimal("4.00")

    @pytest.mark.asyncio
    async def test_too_many_photos(
        self, mock_db, store, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY)
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)

        with pytest.raises(TooManyPhotosError):
            await end_entry(
                mock_db, store, actor, entry.id, time(12, 0), None,
                [_photo(f"p{i}.jpg") for i in range(6)], clock,
            )

        assert store.files == {}

    @pytest.mark.asyncio
    async def test_photo_type(
        self, mock_db, store, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY)
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)

        with pytest.raises(ValidationError):
            await end_entry(
                mock_db, store, actor, entry.id, time(12, 0), None, [_photo("clip.gif")], clock
            )

    @pytest.mark.asyncio
    async def test_photo_storage_failure(
        self, mock_db, store, actor, clock, make_application, make_entry,
        application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY)
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)
        store.fail_store = True

        with pytest.raises(StorageFailureError):
            await end_entry(
                mock_db, store, actor, entry.id, time(12, 0), None, [_photo()], clock
            )

        entries_repo.complete_entry.assert_not_awaited()
        assert entry.status == EntryStatus.IN_PROGRESS


class TestCancelEntry:
    @pytest.mark.asyncio
    async def test_cancel_in_progress(
        self, mock_db, actor, make_application, make_entry, application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY)
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)

        await cancel_entry(mock_db, actor, entry.id)

        entries_repo.delete_entry.assert_awaited_once_with(mock_db, entry)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_completed_entry_is_kept(
        self, mock_db, actor, make_application, make_entry, application_repo, entries_repo,
    ):
        app = make_application(S.ENROLLED)
        entry = make_entry(app, TODAY, status=EntryStatus.COMPLETED, hours="2.00")
        application_repo.get_by_id = AsyncMock(return_value=app)
        entries_repo.get_entry = AsyncMock(return_value=entry)

        with pytest.raises(InvalidTransitionError):
            await cancel_entry(mock_db, actor, entry.id)

        entries_repo.delete_entry.assert_not_awaited()
