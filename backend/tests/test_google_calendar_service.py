"""Renovação do token do Google Calendar (google-auth mockado, sem rede)."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials

from leadnurture.domain.entities import as_utc
from leadnurture.domain.exceptions import CalendarSyncError
from leadnurture.infrastructure.services import google_calendar_service
from tests.utils import make_user


async def connected_user(db, expires_in: timedelta):
    user = await make_user(db)
    user.google_access_token = "ya29.old"
    user.google_refresh_token = "1//refresh"
    user.google_token_expiry = datetime.now(timezone.utc) + expires_in
    await db.flush()
    return user


@pytest.mark.asyncio
async def test_valid_token_is_not_refreshed(db_session, monkeypatch):
    user = await connected_user(db_session, timedelta(hours=1))
    refresh = Mock()
    monkeypatch.setattr(Credentials, "refresh", refresh)

    await google_calendar_service.refresh_if_needed(db_session, user)

    assert refresh.call_count == 0
    assert user.google_access_token == "ya29.old"


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_with_google_auth(db_session, monkeypatch):
    user = await connected_user(db_session, timedelta(minutes=-5))
    new_expiry = datetime(2030, 1, 1, 12, 0)

    def fake_refresh(self, request):
        assert self.refresh_token == "1//refresh"
        self.token = "ya29.new"
        self.expiry = new_expiry

    monkeypatch.setattr(Credentials, "refresh", fake_refresh)

    await google_calendar_service.refresh_if_needed(db_session, user)

    assert user.google_access_token == "ya29.new"
    assert user.google_refresh_token == "1//refresh"
    assert as_utc(user.google_token_expiry) == new_expiry.replace(tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_refresh_rejected_by_google(db_session, monkeypatch):
    user = await connected_user(db_session, timedelta(minutes=-5))
    monkeypatch.setattr(Credentials, "refresh", Mock(side_effect=RefreshError("invalid_grant")))

    with pytest.raises(CalendarSyncError, match="refresh failed"):
        await google_calendar_service.refresh_if_needed(db_session, user)

    assert user.google_access_token == "ya29.old"


@pytest.mark.asyncio
async def test_refresh_without_connection(db_session):
    user = await make_user(db_session)

    with pytest.raises(CalendarSyncError) as exc:
        await google_calendar_service.refresh_if_needed(db_session, user)

    assert exc.value.status_code == 400
