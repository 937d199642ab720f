import logging
from typing import Any, List, Optional

import httpx

from santa_board.client.errors import (
    StoreAuthError,
    StoreRequestError,
    StoreTransportError,
)
from santa_board.client.models import (
    EventRecord,
    GiftDraft,
    GiftRecord,
    ImageRecord,
    JoinedSession,
    ParticipantRecord,
)
from santa_board.constants import NotificationsData
from santa_board.core.environs import EVENT_CODE

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8005"


def _error_detail(resp: httpx.Response) -> Optional[str]:
    try:
        detail = resp.json().get("detail")
    except ValueError:
        return resp.text or None
    if isinstance(detail, list):
        return "; ".join(str(item.get("msg", item)) for item in detail)
    return detail


class RemoteStore:
    """
    Gift board store backed by the JSON API.

    Every mutation carries the participant id and player key of the joined
    session. A session without a key is rejected before any request is made.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        event_code: str = EVENT_CODE,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.event_code = event_code
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout_seconds
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _request(
        self, method: str, path: str, json: Optional[dict] = None
    ) -> Any:
        params = {"event_code": self.event_code} if method == "GET" else None
        try:
            resp = await self.client.request(
                method, f"/api{path}", json=json, params=params
            )
        except httpx.HTTPError as e:
            logger.error("Store request %s %s failed: %s", method, path, e)
            raise StoreTransportError(status_code=None) from e

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.warning(
                "Store request %s %s rejected (%s): %s",
                method,
                path,
                resp.status_code,
                detail,
            )
            if resp.status_code in (401, 403):
                raise StoreAuthError(detail, resp.status_code)
            if resp.status_code >= 500:
                raise StoreTransportError(detail, resp.status_code)
            raise StoreRequestError(detail, resp.status_code)
        return resp.json()

    @staticmethod
    def _signed(session: JoinedSession, **payload) -> dict:
        if not session.has_key:
            raise StoreAuthError(NotificationsData.SESSION_EXPIRED, 401)
        return {**session.credentials(), **payload}

    async def join(
        self, event_code: str, passcode: str, display_name: str
    ) -> JoinedSession:
        data = await self._request(
            "POST",
            "/join",
            {
                "event_code": event_code,
                "passcode": passcode,
                "display_name": display_name,
            },
        )
        self.event_code = event_code
        return JoinedSession(
            event_code=event_code,
            display_name=data["display_name"],
            participant_id=data["participant_id"],
            player_key=data["player_key"],
        )

    async def get_event(self) -> EventRecord:
        return EventRecord.from_dict(await self._request("GET", "/event"))

    async def list_participants(self) -> List[ParticipantRecord]:
        data = await self._request("GET", "/participants")
        return [ParticipantRecord.from_dict(item) for item in data]

    async def list_gifts(self) -> List[GiftRecord]:
        data = await self._request("GET", "/gifts")
        return [GiftRecord.from_dict(item) for item in data]

    async def add_gift(
        self, session: JoinedSession, recipient: ParticipantRecord, draft: GiftDraft
    ) -> GiftRecord:
        payload = self._signed(
            session,
            to_participant_id=recipient.id,
            status=draft.status,
            images=[image.to_dict() for image in draft.images],
            message=draft.message,
            is_unlocked=draft.is_unlocked,
        )
        return GiftRecord.from_dict(await self._request("POST", "/gifts", payload))

    async def set_gift_unlocked(
        self, session: JoinedSession, gift_id: Any, is_unlocked: bool
    ) -> GiftRecord:
        payload = self._signed(session, is_unlocked=is_unlocked)
        data = await self._request("POST", f"/gifts/{gift_id}/unlocked", payload)
        return GiftRecord.from_dict(data)

    async def update_gift(
        self,
        session: JoinedSession,
        gift_id: Any,
        status: Optional[str] = None,
        message: Optional[str] = None,
        images: Optional[List[ImageRecord]] = None,
    ) -> GiftRecord:
        changes = {}
        if status is not None:
            changes["status"] = status
        if message is not None:
            changes["message"] = message
        if images is not None:
            changes["images"] = [image.to_dict() for image in images]
        payload = self._signed(session, **changes)
        data = await self._request("POST", f"/gifts/{gift_id}/update", payload)
        return GiftRecord.from_dict(data)

    async def delete_gift(self, session: JoinedSession, gift_id: Any) -> None:
        await self._request("POST", f"/gifts/{gift_id}/delete", self._signed(session))

    async def rename(
        self, session: JoinedSession, display_name: str
    ) -> ParticipantRecord:
        payload = self._signed(session, display_name=display_name)
        data = await self._request("POST", "/participants/me/rename", payload)
        return ParticipantRecord.from_dict(data)

    async def remove_participant(self, session: JoinedSession) -> None:
        payload = self._signed(session, target_participant_id=session.participant_id)
        await self._request("POST", "/participants/me/leave", payload)

    async def mark_ready(
        self, session: JoinedSession, is_ready: bool
    ) -> ParticipantRecord:
        payload = self._signed(session, is_ready=is_ready)
        data = await self._request("POST", "/participants/me/ready", payload)
        return ParticipantRecord.from_dict(data)

    async def request_reveal(self, session: JoinedSession) -> bool:
        data = await self._request("POST", "/event/reveal", self._signed(session))
        return bool(data["revealed"])
