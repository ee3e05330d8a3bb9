"""Tests for Google sign-in user upsert and public user output."""

import pytest
from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import OperationalError

from core.users import public_user, touch_last_seen, upsert_google_user


@pytest.fixture
def mock_tx():
    with patch("core.users.get_transaction") as mock_tx:
        mock_conn = AsyncMock()
        mock_tx.return_value.__aenter__ = AsyncMock(return_value=mock_conn)
        mock_tx.return_value.__aexit__ = AsyncMock(return_value=False)
        yield mock_conn


class TestUpsertGoogleUser:
    @pytest.mark.asyncio
    async def test_creates_user_with_refresh_token(self, mock_tx):
        with (
            patch(
                "core.users.user_queries.find_google_user", new_callable=AsyncMock
            ) as mock_find,
            patch(
                "core.users.user_queries.create_user", new_callable=AsyncMock
            ) as mock_create,
        ):
            mock_find.return_value = None
            mock_create.return_value = {"user_id": 1, "email": "ada@example.com"}

            user = await upsert_google_user(
                "g-1", "ada@example.com", name="Ada", refresh_token="rt"
            )

        assert user["user_id"] == 1
        kwargs = mock_create.call_args.kwargs
        assert kwargs["email"] == "ada@example.com"
        assert kwargs["refresh_token"] == "rt"
        assert kwargs["google_id"] == "g-1"

    @pytest.mark.asyncio
    async def test_keeps_existing_refresh_token_when_none_returned(self, mock_tx):
        existing = {
            "user_id": 1,
            "google_id": "g-1",
            "email": "ada@example.com",
            "name": "Ada",
            "avatar": None,
            "refresh_token": "old-rt",
        }
        with (
            patch(
                "core.users.user_queries.find_google_user", new_callable=AsyncMock
            ) as mock_find,
            patch(
                "core.users.user_queries.update_user", new_callable=AsyncMock
            ) as mock_update,
        ):
            mock_find.return_value = existing

            user = await upsert_google_user("g-1", "ada@example.com", name="Ada")

        assert user == existing
        mock_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_new_refresh_token_replaces_old(self, mock_tx):
        existing = {"user_id": 1, "google_id": "g-1", "email": "ada@example.com"}
        with (
            patch(
                "core.users.user_queries.find_google_user", new_callable=AsyncMock
            ) as mock_find,
            patch(
                "core.users.user_queries.update_user", new_callable=AsyncMock
            ) as mock_update,
        ):
            mock_find.return_value = existing

            await upsert_google_user("g-1", "ada@example.com", refresh_token="new-rt")

        assert mock_update.call_args.kwargs == {"refresh_token": "new-rt"}

    @pytest.mark.asyncio
    async def test_new_user_without_email_rejected(self, mock_tx):
        with patch(
            "core.users.user_queries.find_google_user", new_callable=AsyncMock
        ) as mock_find:
            mock_find.return_value = None

            with pytest.raises(ValueError):
                await upsert_google_user("g-2", None)


class TestPublicUser:
    def test_hides_refresh_token(self):
        data = public_user({"user_id": 1, "email": "a@b.c", "refresh_token": "rt"})

        assert "refresh_token" not in data
        assert data["calendar_connected"] is True


class TestTouchLastSeen:
    @pytest.mark.asyncio
    async def test_database_errors_are_swallowed(self, mock_tx):
        with patch(
            "core.users.user_queries.touch_last_seen", new_callable=AsyncMock
        ) as mock_touch:
            mock_touch.side_effect = OperationalError("UPDATE", {}, Exception("down"))

            await touch_last_seen(1)

    @pytest.mark.asyncio
    async def test_connection_refused_is_swallowed(self):
        with patch("core.users.get_transaction") as mock_tx:
            mock_tx.return_value.__aenter__ = AsyncMock(
                side_effect=ConnectionRefusedError("connect call failed")
            )
            mock_tx.return_value.__aexit__ = AsyncMock(return_value=False)

            await touch_last_seen(1)
