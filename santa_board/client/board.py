"""Client-side gift board.

``GiftBoard`` keeps the last confirmed copy of the participants, the gifts
and the event reveal flag. Input is validated before anything is sent;
local state changes only after the store confirms a mutation, and a failed
call leaves it exactly as it was. The reveal flag is a latch: once a
refresh has observed it, later reads never switch it back off.
"""

import logging
from typing import Any, List, Optional, Sequence, Union

from santa_board.client.directory import ParticipantDirectory
from santa_board.client.errors import StoreAuthError, StoreError
from santa_board.client.models import (
    EventRecord,
    GiftDraft,
    GiftRecord,
    ImageRecord,
    JoinedSession,
    ParticipantRecord,
)
from santa_board.client.notifier import Notifier
from santa_board.client.storage import SessionStorage
from santa_board.constants import GiftStatus, NotificationsData, RevealOutcome
from santa_board.core.environs import MAX_IMAGES_PER_GIFT
from santa_board.core.policy import (
    GiftCardView,
    Party,
    display_name_key,
    is_owner,
    normalize_display_name,
    present_gift,
    same_party,
    sort_for_viewer,
)

logger = logging.getLogger(__name__)


class GiftBoard:
    def __init__(
        self,
        store,
        session: JoinedSession,
        notifier: Optional[Notifier] = None,
        session_storage: Optional[SessionStorage] = None,
    ):
        self.store = store
        self.session: Optional[JoinedSession] = session
        self.notifier = notifier or Notifier()
        self.session_storage = session_storage
        self.directory = ParticipantDirectory(store.list_participants)
        self.participants: List[ParticipantRecord] = []
        self.gifts: List[GiftRecord] = []
        self.event = EventRecord()
        self.is_revealed = False

    @classmethod
    async def join(
        cls,
        store,
        event_code: str,
        passcode: str,
        display_name: str,
        notifier: Optional[Notifier] = None,
        session_storage: Optional[SessionStorage] = None,
    ) -> "GiftBoard":
        """
        Joins the event and opens a board for the new participant.

        Store errors are reported through the notifier and re-raised, since
        there is no board to fall back to.
        """
        notifier = notifier or Notifier()
        if len(normalize_display_name(display_name)) < 2:
            notifier.error(NotificationsData.NAME_TOO_SHORT)
            raise StoreError(NotificationsData.NAME_TOO_SHORT)
        try:
            session = await store.join(event_code, passcode, display_name)
        except StoreError as e:
            notifier.error(e.detail or NotificationsData.JOIN_FAILED)
            raise

        if session_storage is not None:
            session_storage.save(session)
        board = cls(store, session, notifier, session_storage)
        notifier.success(NotificationsData.JOINED)
        await board.refresh_quietly()
        return board

    @property
    def viewer(self) -> Party:
        if self.session is None:
            return Party()
        return Party(
            participant_id=self.session.participant_id,
            name=self.session.display_name,
        )

    @property
    def is_signed_in(self) -> bool:
        return self.session is not None

    def _party(self, participant: ParticipantRecord) -> Party:
        return Party(participant_id=participant.id, name=participant.display_name)

    @property
    def me(self) -> Optional[ParticipantRecord]:
        for participant in self.participants:
            if same_party(self._party(participant), self.viewer):
                return participant
        return None

    def recipients(self) -> List[ParticipantRecord]:
        """Everybody the viewer may send a gift to"""
        viewer = self.viewer
        return [p for p in self.participants if not same_party(self._party(p), viewer)]

    def _observe_reveal(self, is_revealed: bool) -> None:
        self.is_revealed = self.is_revealed or bool(is_revealed)

    def _find_gift(self, gift_id: Any) -> Optional[GiftRecord]:
        for gift in self.gifts:
            if gift.id == gift_id:
                return gift
        return None

    def _replace_gift(self, updated: GiftRecord) -> None:
        self.gifts = [updated if gift.id == updated.id else gift for gift in self.gifts]

    def _report(self, error: StoreError, fallback: str) -> None:
        if isinstance(error, StoreAuthError):
            logger.warning("Store refused the action: %s", error.detail)
        else:
            logger.error("Store call failed (%s): %s", error.status_code, error.detail)
        self.notifier.error(error.detail or fallback)
        if error.detail == NotificationsData.SESSION_EXPIRED:
            self.sign_out()

    def _ensure_session(self) -> bool:
        if self.session is None:
            self.notifier.error(NotificationsData.SESSION_EXPIRED)
            return False
        return True

    def _owned_gift(self, gift_id: Any) -> Optional[GiftRecord]:
        gift = self._find_gift(gift_id)
        if gift is None:
            self.notifier.error("Gift not found")
            return None
        if not is_owner(gift, self.viewer):
            self.notifier.error(NotificationsData.ONLY_OWN_GIFTS)
            return None
        return gift

    def _recipient_name(self, gift: GiftRecord) -> str:
        return (
            self.directory.cached_name(gift.to_participant_id)
            or gift.to_name
            or "your recipient"
        )

    async def refresh(self) -> None:
        """Re-reads participants, gifts and the reveal flag; errors propagate"""
        participants = await self.store.list_participants()
        gifts = await self.store.list_gifts()
        event = await self.store.get_event()

        self.directory.replace(participants)
        ids = [gift.from_participant_id for gift in gifts]
        ids += [gift.to_participant_id for gift in gifts]
        reloaded = await self.directory.resolve(ids)
        if reloaded is not None:
            participants = reloaded

        self.participants = participants
        self.gifts = gifts
        self.event = event
        self._observe_reveal(event.is_revealed)

    async def refresh_quietly(self) -> bool:
        try:
            await self.refresh()
        except StoreError as e:
            logger.error("Board refresh failed: %s", e.detail or e)
            return False
        return True

    def cards(self) -> List[GiftCardView]:
        """Gift cards as the current viewer may see them, own gifts first"""
        viewer = self.viewer
        return [
            present_gift(
                gift,
                viewer,
                self.is_revealed,
                sender_name=self.directory.cached_name(gift.from_participant_id),
                recipient_name=self.directory.cached_name(gift.to_participant_id),
            )
            for gift in sort_for_viewer(self.gifts, viewer)
        ]

    async def add_gift(
        self,
        recipient: Optional[ParticipantRecord],
        status: str = GiftStatus.PENDING,
        images: Sequence[Union[ImageRecord, str]] = (),
        message: Optional[str] = None,
        is_unlocked: bool = False,
    ) -> Optional[GiftRecord]:
        if not self._ensure_session():
            return None
        if recipient is None:
            self.notifier.error(NotificationsData.SELECT_RECIPIENT)
            return None
        if same_party(self._party(recipient), self.viewer):
            self.notifier.error(NotificationsData.SELF_GIFT)
            return None
        if self.is_revealed:
            self.notifier.error(NotificationsData.EVENT_ALREADY_REVEALED)
            return None
        if status not in GiftStatus.ALL:
            self.notifier.error("Invalid delivery status")
            return None
        if len(images) > MAX_IMAGES_PER_GIFT:
            self.notifier.error(
                NotificationsData.TOO_MANY_IMAGES.format(count=MAX_IMAGES_PER_GIFT)
            )
            return None

        draft = GiftDraft(
            status=status,
            images=[
                image if isinstance(image, ImageRecord) else ImageRecord(url=image)
                for image in images
            ],
            message=(message or "").strip() or None,
            is_unlocked=is_unlocked,
        )
        try:
            gift = await self.store.add_gift(self.session, recipient, draft)
        except StoreError as e:
            self._report(e, NotificationsData.ADD_GIFT_FAILED)
            return None

        self.gifts = self.gifts + [gift]
        self.notifier.success(
            NotificationsData.GIFT_WRAPPED.format(name=recipient.display_name)
        )
        return gift

    async def toggle_lock(self, gift_id: Any) -> bool:
        if not self._ensure_session():
            return False
        gift = self._owned_gift(gift_id)
        if gift is None:
            return False

        try:
            updated = await self.store.set_gift_unlocked(
                self.session, gift_id, not gift.is_unlocked
            )
        except StoreError as e:
            self._report(e, NotificationsData.UPDATE_GIFT_FAILED)
            return False

        self._replace_gift(updated)
        text = (
            NotificationsData.GIFT_REVEALED_TO
            if updated.is_unlocked
            else NotificationsData.GIFT_HIDDEN_FROM
        )
        self.notifier.success(text.format(name=self._recipient_name(updated)))
        return True

    async def set_status(self, gift_id: Any, status: str) -> bool:
        if not self._ensure_session():
            return False
        if status not in GiftStatus.ALL:
            self.notifier.error("Invalid delivery status")
            return False
        if self._owned_gift(gift_id) is None:
            return False

        try:
            updated = await self.store.update_gift(self.session, gift_id, status=status)
        except StoreError as e:
            self._report(e, NotificationsData.UPDATE_GIFT_FAILED)
            return False

        self._replace_gift(updated)
        self.notifier.success(NotificationsData.GIFT_STATUS_UPDATED)
        return True

    async def delete_gift(self, gift_id: Any) -> bool:
        if not self._ensure_session():
            return False
        if self._owned_gift(gift_id) is None:
            return False

        try:
            await self.store.delete_gift(self.session, gift_id)
        except StoreError as e:
            self._report(e, NotificationsData.REMOVE_GIFT_FAILED)
            return False

        self.gifts = [gift for gift in self.gifts if gift.id != gift_id]
        self.notifier.success(NotificationsData.GIFT_REMOVED)
        return True

    async def mark_ready(self, is_ready: bool = True) -> bool:
        if not self._ensure_session():
            return False
        if self.is_revealed:
            self.notifier.error(NotificationsData.EVENT_ALREADY_REVEALED)
            return False

        try:
            updated = await self.store.mark_ready(self.session, is_ready)
        except StoreError as e:
            self._report(e, "Failed to update readiness")
            return False

        me = self.me
        self.participants = [
            updated if participant is me else participant
            for participant in self.participants
        ]
        self.notifier.success(
            NotificationsData.READY if is_ready else NotificationsData.NOT_READY
        )
        return True

    async def end_event(self) -> str:
        """
        Asks the store for the group reveal.

        :return str: a ``RevealOutcome``; ``NOT_READY`` means the store
            declined because somebody is not ready yet, which is not an error
        """
        if self.is_revealed:
            return RevealOutcome.REVEALED
        if not self._ensure_session():
            return RevealOutcome.FAILED

        try:
            revealed = await self.store.request_reveal(self.session)
        except StoreError as e:
            self._report(e, NotificationsData.END_EVENT_FAILED)
            return RevealOutcome.FAILED

        if not revealed:
            self.notifier.info(NotificationsData.NOT_EVERYONE_READY)
            return RevealOutcome.NOT_READY

        self._observe_reveal(True)
        self.notifier.success(NotificationsData.BIG_REVEAL)
        await self.refresh_quietly()
        return RevealOutcome.REVEALED

    async def rename(self, display_name: str) -> bool:
        if not self._ensure_session():
            return False
        name = normalize_display_name(display_name)
        if len(name) < 2:
            self.notifier.error(NotificationsData.NAME_TOO_SHORT)
            return False
        if display_name_key(name) == display_name_key(self.session.display_name):
            return True

        try:
            updated = await self.store.rename(self.session, name)
        except StoreError as e:
            self._report(e, "Failed to rename")
            return False

        self.session.display_name = updated.display_name
        if self.session_storage is not None:
            self.session_storage.save(self.session)
        self.notifier.success(
            NotificationsData.PARTICIPANT_RENAMED.format(name=updated.display_name)
        )
        await self.refresh_quietly()
        return True

    async def leave(self) -> bool:
        """Removes the viewer from the event and signs out"""
        if not self._ensure_session():
            return False
        name = self.session.display_name

        try:
            await self.store.remove_participant(self.session)
        except StoreError as e:
            self._report(e, "Failed to leave the event")
            return False

        self.notifier.success(NotificationsData.PARTICIPANT_LEFT.format(name=name))
        self.sign_out()
        return True

    def sign_out(self) -> None:
        """Forgets the joined session; the board is empty afterwards"""
        if self.session_storage is not None:
            self.session_storage.clear()
        self.session = None
        self.participants = []
        self.gifts = []
        self.directory.invalidate()
        logger.info("Signed out")
