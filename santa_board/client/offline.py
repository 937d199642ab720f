"""Single-device store kept in a local JSON file.

Offline mode has no passcode and no player keys: participants are plain
display names, gifts are addressed by names, and ownership is decided by
comparing the acting name with the gift's sender.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from santa_board.client.errors import StoreAuthError, StoreRequestError
from santa_board.client.models import (
    EventRecord,
    GiftDraft,
    GiftRecord,
    ImageRecord,
    JoinedSession,
    ParticipantRecord,
)
from santa_board.client.storage import KeyValueFile, OfflineStorageKeys
from santa_board.constants import GiftStatus, NotificationsData
from santa_board.core.policy import display_name_key, normalize_display_name

logger = logging.getLogger(__name__)

OFFLINE_EVENT_CODE = "LOCAL"


class OfflineStore:
    def __init__(
        self, storage: KeyValueFile, keys: OfflineStorageKeys = OfflineStorageKeys()
    ):
        self.storage = storage
        self.keys = keys

    def _names(self) -> List[str]:
        return list(self.storage.get(self.keys.participants, []))

    def _ready(self) -> List[str]:
        return list(self.storage.get(self.keys.ready, []))

    def _gift_rows(self) -> List[dict]:
        return list(self.storage.get(self.keys.gifts, []))

    def _find_name(self, name: str) -> Optional[str]:
        key = display_name_key(name)
        for existing in self._names():
            if display_name_key(existing) == key:
                return existing
        return None

    def _owned_row(self, rows: List[dict], session: JoinedSession, gift_id: Any) -> dict:
        for row in rows:
            if row["id"] == gift_id:
                if display_name_key(row["from_name"]) != display_name_key(
                    session.display_name
                ):
                    logger.warning(
                        "Offline user %s tried to change gift %s",
                        session.display_name,
                        gift_id,
                    )
                    raise StoreAuthError(NotificationsData.ONLY_OWN_GIFTS, 403)
                return row
        raise StoreRequestError("Gift not found", 404)

    async def join(
        self, event_code: str, passcode: str, display_name: str
    ) -> JoinedSession:
        name = normalize_display_name(display_name)
        if len(name) < 2:
            raise StoreRequestError("Display name must be at least 2 characters", 400)
        existing = self._find_name(name)
        if existing is None:
            self.storage.set(self.keys.participants, self._names() + [name])
            existing = name
        return JoinedSession(event_code=OFFLINE_EVENT_CODE, display_name=existing)

    async def get_event(self) -> EventRecord:
        names = self._names()
        return EventRecord(
            code=OFFLINE_EVENT_CODE,
            name="Secret Santa",
            is_revealed=bool(self.storage.get(self.keys.revealed, False)),
            participant_count=len(names),
            ready_count=len([name for name in self._ready() if name in names]),
        )

    async def list_participants(self) -> List[ParticipantRecord]:
        ready = set(self._ready())
        return [
            ParticipantRecord(display_name=name, is_ready=name in ready)
            for name in self._names()
        ]

    async def list_gifts(self) -> List[GiftRecord]:
        return [GiftRecord.from_dict(row) for row in self._gift_rows()]

    async def add_gift(
        self, session: JoinedSession, recipient: ParticipantRecord, draft: GiftDraft
    ) -> GiftRecord:
        if self.storage.get(self.keys.revealed, False):
            raise StoreRequestError("Gifts can't be added after the reveal", 400)
        if display_name_key(recipient.display_name) == display_name_key(
            session.display_name
        ):
            raise StoreRequestError("You can't send a gift to yourself", 400)
        if draft.status not in GiftStatus.ALL:
            raise StoreRequestError("Unknown gift status", 400)

        gift = GiftRecord(
            id=uuid.uuid4().hex,
            status=draft.status,
            is_unlocked=draft.is_unlocked,
            images=list(draft.images),
            message=draft.message,
            from_name=session.display_name,
            to_name=recipient.display_name,
            created_at=datetime.now(timezone.utc),
        )
        self.storage.set(self.keys.gifts, self._gift_rows() + [gift.to_dict()])
        return gift

    async def set_gift_unlocked(
        self, session: JoinedSession, gift_id: Any, is_unlocked: bool
    ) -> GiftRecord:
        rows = self._gift_rows()
        row = self._owned_row(rows, session, gift_id)
        row["is_unlocked"] = is_unlocked
        self.storage.set(self.keys.gifts, rows)
        return GiftRecord.from_dict(row)

    async def update_gift(
        self,
        session: JoinedSession,
        gift_id: Any,
        status: Optional[str] = None,
        message: Optional[str] = None,
        images: Optional[List[ImageRecord]] = None,
    ) -> GiftRecord:
        rows = self._gift_rows()
        row = self._owned_row(rows, session, gift_id)
        if status is not None:
            if status not in GiftStatus.ALL:
                raise StoreRequestError("Unknown gift status", 400)
            row["status"] = status
        if message is not None:
            row["message"] = message or None
        if images is not None:
            row["images"] = [image.to_dict() for image in images]
        self.storage.set(self.keys.gifts, rows)
        return GiftRecord.from_dict(row)

    async def delete_gift(self, session: JoinedSession, gift_id: Any) -> None:
        rows = self._gift_rows()
        row = self._owned_row(rows, session, gift_id)
        rows.remove(row)
        self.storage.set(self.keys.gifts, rows)

    async def rename(
        self, session: JoinedSession, display_name: str
    ) -> ParticipantRecord:
        name = normalize_display_name(display_name)
        if len(name) < 2:
            raise StoreRequestError("Display name must be at least 2 characters", 400)
        old_key = display_name_key(session.display_name)
        taken = self._find_name(name)
        if taken is not None and display_name_key(taken) != old_key:
            raise StoreRequestError("This name is already taken", 409)

        def swap(value):
            return name if display_name_key(value) == old_key else value

        self.storage.set(self.keys.participants, [swap(n) for n in self._names()])
        self.storage.set(self.keys.ready, [swap(n) for n in self._ready()])
        rows = self._gift_rows()
        for row in rows:
            row["from_name"] = swap(row["from_name"])
            row["to_name"] = swap(row["to_name"])
        self.storage.set(self.keys.gifts, rows)
        return ParticipantRecord(display_name=name, is_ready=name in self._ready())

    async def remove_participant(self, session: JoinedSession) -> None:
        key = display_name_key(session.display_name)
        self.storage.set(
            self.keys.participants,
            [n for n in self._names() if display_name_key(n) != key],
        )
        self.storage.set(
            self.keys.ready, [n for n in self._ready() if display_name_key(n) != key]
        )
        kept = []
        for row in self._gift_rows():
            if key not in (
                display_name_key(row["from_name"]),
                display_name_key(row["to_name"]),
            ):
                kept.append(row)
        self.storage.set(self.keys.gifts, kept)

    async def mark_ready(
        self, session: JoinedSession, is_ready: bool
    ) -> ParticipantRecord:
        name = self._find_name(session.display_name)
        if name is None:
            raise StoreAuthError(NotificationsData.SESSION_EXPIRED, 401)
        ready = [n for n in self._ready() if n != name]
        if is_ready:
            ready.append(name)
        self.storage.set(self.keys.ready, ready)
        return ParticipantRecord(display_name=name, is_ready=is_ready)

    async def request_reveal(self, session: JoinedSession) -> bool:
        """Offline reveal is a single-device demo and is always granted"""
        self.storage.set(self.keys.revealed, True)
        return True
