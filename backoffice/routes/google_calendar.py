"""
Google Calendar Integration Routes
Handles OAuth connection, push-notification channels and the webhook
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import GOOGLE_CALENDAR_WEBHOOK_URL, GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET
from ..database import get_db
from ..models import User
from ..models_google_calendar import GoogleOAuthCredential
from ..services.credential_vault import (
    DatabaseTokenStore,
    get_calendar_handle,
    revoke_credential,
    save_credential,
)
from ..services.google_calendar_service import (
    CalendarAPIError,
    build_authorization_url,
    exchange_authorization_code,
    revoke_token,
)
from ..shared.errors import CalendarNotConnected
from ..utils.encryption import EncryptionKeyError, TokenDecryptionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/google-calendar", tags=["google-calendar"])

CHANNEL_PREFIX = "user-"


class OAuthCallbackRequest(BaseModel):
    code: str


class StopWatchRequest(BaseModel):
    resourceId: str


def get_oauth_transport() -> Optional[httpx.AsyncBaseTransport]:
    """HTTP transport for Google calls; None means the default network transport"""
    return None


def channel_id_for(user_id: int) -> str:
    return f"{CHANNEL_PREFIX}{user_id}"


def user_id_from_channel(channel_id: Optional[str]) -> Optional[int]:
    if not channel_id or not channel_id.startswith(CHANNEL_PREFIX):
        return None
    try:
        return int(channel_id[len(CHANNEL_PREFIX):])
    except ValueError:
        return None


@router.get("/status")
async def get_google_calendar_status(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get Google Calendar connection status"""
    credential = (
        db.query(GoogleOAuthCredential).filter(GoogleOAuthCredential.user_id == current_user.id).first()
    )

    if not credential or not credential.is_active:
        return {"connected": False, "calendar_id": None, "scopes": [], "token_expiry": None}

    return {
        "connected": True,
        "calendar_id": credential.calendar_id,
        "scopes": credential.scope or [],
        "token_expiry": credential.token_expiry,
    }


@router.get("/connect")
async def initiate_google_calendar_oauth(current_user: User = Depends(get_current_user)):
    """Initiate Google Calendar OAuth flow"""
    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        raise HTTPException(status_code=500, detail="Google Calendar not configured")

    logger.info(f"Google Calendar OAuth initiated for user: {current_user.id}")
    return {"authorization_url": build_authorization_url(state=current_user.auth_uid)}


@router.post("/callback")
async def handle_google_calendar_callback(
    data: OAuthCallbackRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_oauth_transport),
):
    """Exchange the authorization code and store the encrypted tokens"""
    try:
        tokens = await exchange_authorization_code(data.code, transport=transport)
    except CalendarAPIError as e:
        raise HTTPException(status_code=400, detail=e.message) from e

    try:
        save_credential(DatabaseTokenStore(db), current_user.id, tokens)
    except EncryptionKeyError as e:
        logger.error(f"❌ Cannot store Google tokens: {e}")
        raise HTTPException(status_code=500, detail="Google Calendar integration is not configured") from e

    logger.info(f"✅ Google Calendar connected for user {current_user.id}")
    return {"success": True, "message": "Google Calendar connected successfully"}


@router.post("/disconnect")
async def disconnect_google_calendar(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_oauth_transport),
):
    """Revoke the tokens at Google (best effort) and forget them locally"""
    try:
        tokens = DatabaseTokenStore(db).load(current_user.id)
    except (EncryptionKeyError, TokenDecryptionError) as e:
        logger.warning(f"⚠️ Could not read stored tokens for revocation: {e}")
        tokens = None

    if tokens:
        await revoke_token(tokens.refresh_token or tokens.access_token, transport=transport)

    if not revoke_credential(db, current_user.id):
        raise HTTPException(status_code=404, detail="Google Calendar is not connected")
    return {"success": True, "message": "Google Calendar disconnected"}


@router.post("/watch")
async def setup_google_calendar_watch(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_oauth_transport),
):
    """Ask Google to notify the webhook about changes in the user's calendar"""
    if not GOOGLE_CALENDAR_WEBHOOK_URL:
        raise HTTPException(status_code=500, detail="Google Calendar webhook URL not configured")

    try:
        calendar = await get_calendar_handle(current_user.id, DatabaseTokenStore(db), transport=transport)
        channel = await calendar.watch_events(channel_id_for(current_user.id), GOOGLE_CALENDAR_WEBHOOK_URL)
    except CalendarNotConnected as e:
        raise HTTPException(status_code=409, detail=e.message) from e
    except CalendarAPIError as e:
        raise HTTPException(status_code=502, detail=e.message) from e

    if not channel.get("resourceId"):
        raise HTTPException(status_code=502, detail="Google did not return a watch channel")

    logger.info(f"✅ Watch channel {channel.get('id')} registered for user {current_user.id}")
    return {
        "channel_id": channel.get("id"),
        "resource_id": channel.get("resourceId"),
        "expiration": channel.get("expiration"),
    }


@router.post("/watch/stop")
async def stop_google_calendar_watch(
    data: StopWatchRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_oauth_transport),
):
    try:
        calendar = await get_calendar_handle(current_user.id, DatabaseTokenStore(db), transport=transport)
        await calendar.stop_channel(channel_id_for(current_user.id), data.resourceId)
    except CalendarNotConnected as e:
        raise HTTPException(status_code=409, detail=e.message) from e
    except CalendarAPIError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    return {"success": True}


@router.post("/webhook")
async def google_calendar_webhook(
    x_goog_channel_id: Optional[str] = Header(None),
    x_goog_resource_state: Optional[str] = Header(None),
    x_goog_resource_id: Optional[str] = Header(None),
):
    """Change notifications from Google. Acknowledged and logged only."""
    logger.info(
        f"📥 Google Calendar webhook: channel={x_goog_channel_id} state={x_goog_resource_state} resource={x_goog_resource_id}"
    )

    if x_goog_resource_state == "sync":
        return {"success": True, "message": "Sync acknowledged"}

    if x_goog_resource_state == "exists":
        user_id = user_id_from_channel(x_goog_channel_id)
        if user_id is None:
            raise HTTPException(status_code=400, detail="Invalid channel ID")
        # TODO: run pull_from_external for user_id once notifications carry a verified channel token
        logger.info(f"ℹ️ Calendar changes detected for user {user_id}")

    return {"success": True}


@router.get("/webhook")
async def google_calendar_webhook_info():
    return {"success": True, "message": "Google Calendar webhook endpoint"}
