import asyncio
from datetime import datetime, timedelta

import httpx
import pytest

from backoffice.models_google_calendar import GoogleOAuthCredential
from backoffice.services.credential_vault import (
    DatabaseTokenStore,
    get_calendar_handle,
    revoke_credential,
    save_credential,
)
from backoffice.services.google_calendar_service import GOOGLE_TOKEN_URL, OAuthTokens
from backoffice.shared.errors import CalendarNotConnected


def tokens(**overrides) -> OAuthTokens:
    values = {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expiry": datetime(2030, 1, 1),
        "scopes": ["https://www.googleapis.com/auth/calendar"],
    }
    values.update(overrides)
    return OAuthTokens(**values)


class TestDatabaseTokenStore:
    """Tokens are stored encrypted"""

    def test_round_trip(self, db, user):
        store = DatabaseTokenStore(db)
        save_credential(store, user.id, tokens())

        loaded = store.load(user.id)
        assert loaded.access_token == "access-1"
        assert loaded.refresh_token == "refresh-1"
        assert loaded.expiry == datetime(2030, 1, 1)
        assert loaded.calendar_id == "primary"

    def test_never_stored_in_plaintext(self, db, user):
        save_credential(DatabaseTokenStore(db), user.id, tokens())
        row = db.query(GoogleOAuthCredential).filter(GoogleOAuthCredential.user_id == user.id).one()
        assert "access-1" not in row.access_token
        assert "refresh-1" not in row.refresh_token
        assert ":" in row.access_token

    def test_keeps_refresh_token_when_none_given(self, db, user):
        store = DatabaseTokenStore(db)
        store.save(user.id, tokens())
        store.save(user.id, tokens(access_token="access-2", refresh_token=None))

        loaded = store.load(user.id)
        assert loaded.access_token == "access-2"
        assert loaded.refresh_token == "refresh-1"
        assert db.query(GoogleOAuthCredential).count() == 1

    def test_inactive_rows_are_ignored(self, db, user):
        store = DatabaseTokenStore(db)
        store.save(user.id, tokens())
        db.query(GoogleOAuthCredential).update({GoogleOAuthCredential.is_active: False})
        db.commit()
        assert store.load(user.id) is None

    def test_revoke(self, db, user):
        save_credential(DatabaseTokenStore(db), user.id, tokens())
        assert revoke_credential(db, user.id) is True
        assert revoke_credential(db, user.id) is False
        assert DatabaseTokenStore(db).load(user.id) is None


class TestGetCalendarHandle:
    def test_not_connected(self, db, user):
        with pytest.raises(CalendarNotConnected):
            asyncio.run(get_calendar_handle(user.id, DatabaseTokenStore(db)))

    def test_undecryptable_tokens(self, db, user):
        DatabaseTokenStore(db).save(user.id, tokens())
        db.query(GoogleOAuthCredential).update({GoogleOAuthCredential.access_token: "00" * 16 + ":" + "00" * 15})
        db.commit()

        with pytest.raises(CalendarNotConnected):
            asyncio.run(get_calendar_handle(user.id, DatabaseTokenStore(db)))

    def test_refreshed_tokens_are_persisted(self, db, user):
        store = DatabaseTokenStore(db)
        store.save(user.id, tokens(expiry=datetime.utcnow() - timedelta(minutes=1)))

        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == GOOGLE_TOKEN_URL:
                return httpx.Response(200, json={"access_token": "access-2", "expires_in": 3600})
            return httpx.Response(200, json={"items": []})

        async def run():
            calendar = await get_calendar_handle(user.id, store, transport=httpx.MockTransport(handler))
            return await calendar.list_events(datetime(2026, 1, 1), datetime(2026, 2, 1))

        assert asyncio.run(run()) == []
        loaded = store.load(user.id)
        assert loaded.access_token == "access-2"
        assert loaded.refresh_token == "refresh-1"
        assert loaded.expiry > datetime.utcnow()
