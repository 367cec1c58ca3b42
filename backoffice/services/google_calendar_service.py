"""
Google Calendar Service
Thin async client over the Calendar v3 REST API plus the OAuth endpoints
"""
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from urllib.parse import quote, urlencode

import httpx

from ..config import GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI
from ..shared.dates import format_rfc3339, utcnow
from ..shared.errors import ExternalServiceError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105 - OAuth endpoint URL
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]

# Refresh when the access token expires within this margin
REFRESH_MARGIN = timedelta(minutes=5)
REQUEST_TIMEOUT = 30.0
MAX_PAGE_SIZE = 250


class CalendarAPIError(ExternalServiceError):
    """Google Calendar answered with an error"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CalendarEventNotFound(CalendarAPIError):
    """The event no longer exists (404/410)"""


class CalendarAuthError(CalendarAPIError):
    """Tokens were rejected and could not be refreshed"""


@dataclass
class OAuthTokens:
    access_token: str
    refresh_token: Optional[str] = None
    expiry: Optional[datetime] = None  # naive UTC
    scopes: list[str] = field(default_factory=list)
    calendar_id: str = "primary"


def _tokens_from_response(payload: dict[str, Any], fallback_refresh_token: Optional[str] = None) -> OAuthTokens:
    access_token = payload.get("access_token")
    if not access_token:
        raise CalendarAuthError("No access token in Google response")
    expires_in = int(payload.get("expires_in", 3600))
    scope = payload.get("scope")
    return OAuthTokens(
        access_token=access_token,
        # Google omits the refresh token when refreshing
        refresh_token=payload.get("refresh_token") or fallback_refresh_token,
        expiry=utcnow() + timedelta(seconds=expires_in),
        scopes=scope.split() if scope else [],
    )


class GoogleCalendarClient:
    """Authenticated handle on one account's calendar.

    ``on_refresh`` is called with the new OAuthTokens whenever the access
    token is refreshed, either proactively before it expires or after a 401.
    """

    def __init__(
        self,
        tokens: OAuthTokens,
        on_refresh: Optional[Callable[[OAuthTokens], Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.tokens = tokens
        self.calendar_id = tokens.calendar_id or "primary"
        self._on_refresh = on_refresh
        self._transport = transport

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=REQUEST_TIMEOUT)

    def _events_path(self) -> str:
        return f"/calendars/{quote(self.calendar_id, safe='')}/events"

    def _token_expiring(self) -> bool:
        return self.tokens.expiry is not None and self.tokens.expiry <= utcnow() + REFRESH_MARGIN

    async def refresh(self) -> OAuthTokens:
        """Exchange the refresh token for a new access token"""
        if not self.tokens.refresh_token:
            raise CalendarAuthError("Google Calendar session expired, please reconnect")

        logger.info("🔄 Google Calendar token expired, refreshing...")
        try:
            async with self._http() as client:
                response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": GOOGLE_CLIENT_ID,
                        "client_secret": GOOGLE_CLIENT_SECRET,
                        "refresh_token": self.tokens.refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
        except httpx.HTTPError as e:
            raise CalendarAuthError(f"Token refresh failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"❌ Token refresh failed: {response.text}")
            raise CalendarAuthError("Google Calendar session expired, please reconnect", response.status_code)

        refreshed = _tokens_from_response(response.json(), self.tokens.refresh_token)
        refreshed.scopes = refreshed.scopes or self.tokens.scopes
        refreshed.calendar_id = self.calendar_id
        self.tokens = refreshed
        logger.info("✅ Google Calendar token refreshed successfully")

        if self._on_refresh is not None:
            result = self._on_refresh(refreshed)
            if inspect.isawaitable(result):
                await result
        return refreshed

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
        retry_on_401: bool = True,
    ) -> dict[str, Any]:
        if self._token_expiring():
            await self.refresh()

        headers = {"Authorization": f"Bearer {self.tokens.access_token}"}
        try:
            async with self._http() as client:
                response = await client.request(
                    method, f"{GOOGLE_CALENDAR_API}{path}", headers=headers, params=params, json=json
                )
        except httpx.HTTPError as e:
            raise CalendarAPIError(f"Google Calendar request failed: {e}") from e

        if response.status_code == 401 and retry_on_401:
            await self.refresh()
            return await self._request(method, path, params=params, json=json, retry_on_401=False)
        if response.status_code in (404, 410):
            raise CalendarEventNotFound("Calendar event not found", response.status_code)
        if response.status_code >= 400:
            logger.error(f"❌ Google Calendar API error {response.status_code}: {response.text[:500]}")
            raise CalendarAPIError(
                f"Google Calendar API error {response.status_code}", response.status_code
            )
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        max_results: Optional[int] = None,
        single_events: bool = True,
        order_by: str = "startTime",
    ) -> list[dict[str, Any]]:
        """Events between time_min and time_max, following pagination"""
        params: dict[str, Any] = {
            "timeMin": format_rfc3339(time_min),
            "timeMax": format_rfc3339(time_max),
            "singleEvents": "true" if single_events else "false",
            "maxResults": min(max_results or MAX_PAGE_SIZE, MAX_PAGE_SIZE),
        }
        if single_events and order_by:
            params["orderBy"] = order_by

        events: list[dict[str, Any]] = []
        while True:
            page = await self._request("GET", self._events_path(), params=params)
            events.extend(page.get("items", []))
            page_token = page.get("nextPageToken")
            if not page_token or (max_results and len(events) >= max_results):
                break
            params["pageToken"] = page_token

        return events[:max_results] if max_results else events

    async def insert_event(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", self._events_path(), json=body)

    async def update_event(self, event_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"{self._events_path()}/{quote(event_id, safe='')}", json=body)

    async def delete_event(self, event_id: str) -> None:
        await self._request("DELETE", f"{self._events_path()}/{quote(event_id, safe='')}")

    async def watch_events(self, channel_id: str, address: str, token: Optional[str] = None) -> dict[str, Any]:
        """Register a push-notification channel for this calendar"""
        body = {"id": channel_id, "type": "web_hook", "address": address}
        if token:
            body["token"] = token
        return await self._request("POST", f"{self._events_path()}/watch", json=body)

    async def stop_channel(self, channel_id: str, resource_id: str) -> None:
        await self._request("POST", "/channels/stop", json={"id": channel_id, "resourceId": resource_id})


def build_authorization_url(state: str) -> str:
    """Consent screen URL for the calendar scopes"""
    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(GOOGLE_CALENDAR_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "state": state,
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_authorization_code(
    code: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> OAuthTokens:
    """Authorization code → tokens"""
    try:
        async with httpx.AsyncClient(transport=transport, timeout=REQUEST_TIMEOUT) as client:
            response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "redirect_uri": GOOGLE_REDIRECT_URI,
                    "grant_type": "authorization_code",
                },
            )
    except httpx.HTTPError as e:
        raise CalendarAuthError(f"Token exchange failed: {e}") from e

    if response.status_code != 200:
        logger.error(f"❌ Token exchange failed: {response.text}")
        raise CalendarAuthError("Failed to exchange authorization code", response.status_code)
    return _tokens_from_response(response.json())


async def revoke_token(token: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    """Best-effort revocation at Google; returns whether Google accepted it"""
    try:
        async with httpx.AsyncClient(transport=transport, timeout=REQUEST_TIMEOUT) as client:
            response = await client.post(GOOGLE_REVOKE_URL, params={"token": token})
    except httpx.HTTPError as e:
        logger.warning(f"⚠️ Failed to revoke Google token: {e}")
        return False
    if response.status_code != 200:
        logger.warning(f"⚠️ Google token revocation returned {response.status_code}")
        return False
    return True
