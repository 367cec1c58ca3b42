"""
Credential Vault
Encrypted storage of Google OAuth tokens and construction of calendar handles
"""
import logging
from typing import Optional, Protocol

import httpx
from sqlalchemy.orm import Session

from ..models_google_calendar import GoogleOAuthCredential
from ..shared.errors import CalendarNotConnected
from ..utils.encryption import EncryptionKeyError, TokenCipher, TokenDecryptionError, get_token_cipher
from .google_calendar_service import GoogleCalendarClient, OAuthTokens

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
    """Where an account's OAuth tokens live"""

    def load(self, user_id: int) -> Optional[OAuthTokens]:
        ...

    def save(self, user_id: int, tokens: OAuthTokens) -> None:
        ...


class DatabaseTokenStore:
    """TokenStore backed by google_oauth_credentials; tokens never touch the table in plaintext"""

    def __init__(self, db: Session, cipher: Optional[TokenCipher] = None):
        self.db = db
        self._cipher = cipher

    @property
    def cipher(self) -> TokenCipher:
        if self._cipher is None:
            self._cipher = get_token_cipher()
        return self._cipher

    def _row(self, user_id: int) -> Optional[GoogleOAuthCredential]:
        return self.db.query(GoogleOAuthCredential).filter(GoogleOAuthCredential.user_id == user_id).first()

    def load(self, user_id: int) -> Optional[OAuthTokens]:
        row = self._row(user_id)
        if not row or not row.is_active:
            return None
        return OAuthTokens(
            access_token=self.cipher.decrypt(row.access_token),
            refresh_token=self.cipher.decrypt(row.refresh_token) if row.refresh_token else None,
            expiry=row.token_expiry,
            scopes=list(row.scope or []),
            calendar_id=row.calendar_id or "primary",
        )

    def save(self, user_id: int, tokens: OAuthTokens) -> None:
        """Upsert the credential row, keeping the stored refresh token if none is given"""
        row = self._row(user_id)
        encrypted_access = self.cipher.encrypt(tokens.access_token)
        encrypted_refresh = self.cipher.encrypt(tokens.refresh_token) if tokens.refresh_token else None

        if row is None:
            row = GoogleOAuthCredential(user_id=user_id, refresh_token=encrypted_refresh)
            self.db.add(row)
        elif encrypted_refresh:
            row.refresh_token = encrypted_refresh

        row.access_token = encrypted_access
        row.token_expiry = tokens.expiry
        row.scope = list(tokens.scopes)
        row.calendar_id = tokens.calendar_id or "primary"
        row.is_active = True
        self.db.commit()

    def delete(self, user_id: int) -> bool:
        deleted = (
            self.db.query(GoogleOAuthCredential)
            .filter(GoogleOAuthCredential.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return bool(deleted)


def save_credential(token_store: TokenStore, user_id: int, tokens: OAuthTokens) -> None:
    """Store tokens obtained from a (re)connection"""
    token_store.save(user_id, tokens)
    logger.info(f"✅ Google Calendar credentials saved for user {user_id}")


def revoke_credential(db: Session, user_id: int) -> bool:
    """Delete the account's credential row. Sync records are kept."""
    deleted = DatabaseTokenStore(db).delete(user_id)
    if deleted:
        logger.info(f"✅ Google Calendar credentials removed for user {user_id}")
    return deleted


async def get_calendar_handle(
    user_id: int,
    token_store: TokenStore,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GoogleCalendarClient:
    """Authenticated calendar client for the account.

    Refreshed tokens are written back through ``token_store``.
    Raises CalendarNotConnected when there is no usable credential.
    """
    try:
        tokens = token_store.load(user_id)
    except EncryptionKeyError as e:
        logger.error(f"❌ Token encryption is not configured: {e}")
        raise CalendarNotConnected("Google Calendar integration is not configured") from e
    except TokenDecryptionError as e:
        logger.error(f"❌ Stored Google credentials for user {user_id} could not be decrypted: {e}")
        raise CalendarNotConnected("Stored Google Calendar credentials are unreadable, please reconnect") from e

    if tokens is None:
        raise CalendarNotConnected()

    def persist_refreshed(refreshed: OAuthTokens) -> None:
        token_store.save(user_id, refreshed)
        logger.info(f"✅ Persisted refreshed Google token for user {user_id}")

    return GoogleCalendarClient(tokens, on_refresh=persist_refreshed, transport=transport)
