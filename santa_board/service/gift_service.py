import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from santa_board.constants import GiftStatus, NotificationsData
from santa_board.core.auth import Identity
from santa_board.core.environs import MAX_IMAGES_PER_GIFT
from santa_board.core.media import is_acceptable_image_url
from santa_board.core.policy import (
    GiftCardView,
    Party,
    present_gift,
    sort_for_viewer,
)
from santa_board.db.models import Gift, GiftImage, Participant
from santa_board.exceptions import AccessDeniedError, InvalidInputError, NotFoundError
from santa_board.schemas.gifts import (
    NOT_PROVIDED,
    GiftCreateData,
    GiftImageData,
    GiftUpdateData,
)
from santa_board.service.participant_service import ParticipantService

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000


class GiftService:
    @staticmethod
    def _validate_status(status: str) -> str:
        status = (status or "").lower().strip()
        if status not in GiftStatus.ALL:
            raise InvalidInputError("Invalid delivery status")
        return status

    @staticmethod
    def _validate_message(message: Optional[str]) -> Optional[str]:
        message = (message or "").strip()
        if len(message) > MAX_MESSAGE_LENGTH:
            raise InvalidInputError("The message is too long")
        return message or None

    @staticmethod
    def _build_images(images: List[GiftImageData]) -> List[GiftImage]:
        if len(images) > MAX_IMAGES_PER_GIFT:
            raise InvalidInputError(
                NotificationsData.TOO_MANY_IMAGES.format(count=MAX_IMAGES_PER_GIFT)
            )

        result = []
        for position, image in enumerate(images):
            url = (image.url or "").strip()
            if not is_acceptable_image_url(url):
                raise InvalidInputError("Unsupported screenshot address")
            caption = (image.caption or "").strip() or None
            result.append(GiftImage(position=position, url=url, caption=caption))
        return result

    @staticmethod
    def _get_owned_gift(db: Session, identity: Identity, gift_id: int) -> Gift:
        """Loads a gift, making sure the caller is the one who sent it"""
        participant = ParticipantService.authenticate(db, identity)
        gift = GiftService.get_gift_by_id(db, gift_id)

        if gift.from_participant_id != participant.id:
            logger.warning(
                "Participant %s tried to change gift %s of participant %s",
                participant.id,
                gift.id,
                gift.from_participant_id,
            )
            raise AccessDeniedError(NotificationsData.ONLY_OWN_GIFTS)
        return gift

    @staticmethod
    def create_gift(db: Session, identity: Identity, gift_data: GiftCreateData) -> Gift:
        """Records a gift sent by the authenticated participant"""
        sender = ParticipantService.authenticate(db, identity)

        if sender.event.is_revealed:
            raise InvalidInputError(NotificationsData.EVENT_ALREADY_REVEALED)

        if gift_data.to_participant_id is None:
            raise InvalidInputError(NotificationsData.SELECT_RECIPIENT)

        recipient = db.get(Participant, gift_data.to_participant_id)
        if not recipient or recipient.event_id != sender.event_id:
            raise NotFoundError("Recipient is not part of this event")

        if recipient.id == sender.id:
            raise InvalidInputError(NotificationsData.SELF_GIFT)

        gift = Gift(
            event_id=sender.event_id,
            from_participant_id=sender.id,
            to_participant_id=recipient.id,
            status=GiftService._validate_status(gift_data.status),
            message=GiftService._validate_message(gift_data.message),
            is_unlocked=bool(gift_data.is_unlocked),
            images=GiftService._build_images(gift_data.images),
        )

        db.add(gift)
        db.commit()
        db.refresh(gift)

        logger.info(
            "Gift %s created by participant %s for participant %s",
            gift.id,
            sender.id,
            recipient.id,
        )
        return gift

    @staticmethod
    def get_gift_by_id(db: Session, gift_id: int) -> Gift:
        gift = db.get(Gift, gift_id)
        if not gift:
            raise NotFoundError("Gift not found")
        return gift

    @staticmethod
    def list_gifts(db: Session, event_id: int) -> List[Gift]:
        """Gifts of an event in creation order"""
        return (
            db.query(Gift)
            .filter(Gift.event_id == event_id)
            .order_by(Gift.created_at.asc(), Gift.id.asc())
            .all()
        )

    @staticmethod
    def set_unlocked(
        db: Session, identity: Identity, gift_id: int, is_unlocked: bool
    ) -> Gift:
        """Locks or unlocks a gift's contents for its recipient"""
        gift = GiftService._get_owned_gift(db, identity, gift_id)
        return GiftService._store_lock_state(db, gift, is_unlocked)

    @staticmethod
    def toggle_lock(db: Session, identity: Identity, gift_id: int) -> Gift:
        gift = GiftService._get_owned_gift(db, identity, gift_id)
        return GiftService._store_lock_state(db, gift, not gift.is_unlocked)

    @staticmethod
    def _store_lock_state(db: Session, gift: Gift, is_unlocked: bool) -> Gift:
        gift.is_unlocked = bool(is_unlocked)
        db.commit()
        db.refresh(gift)

        logger.info(
            "Gift %s %s by its sender",
            gift.id,
            "unlocked" if gift.is_unlocked else "locked",
        )
        return gift

    @staticmethod
    def update_gift(
        db: Session, identity: Identity, gift_id: int, new_gift_data: GiftUpdateData
    ) -> Gift:
        gift = GiftService._get_owned_gift(db, identity, gift_id)

        if new_gift_data.status is not NOT_PROVIDED:
            gift.status = GiftService._validate_status(new_gift_data.status)

        if new_gift_data.message is not NOT_PROVIDED:
            gift.message = GiftService._validate_message(new_gift_data.message)

        if new_gift_data.images is not NOT_PROVIDED:
            gift.images = GiftService._build_images(new_gift_data.images or [])

        db.commit()
        db.refresh(gift)

        return gift

    @staticmethod
    def update_gift_status(
        db: Session, identity: Identity, gift_id: int, new_status: str
    ) -> Gift:
        return GiftService.update_gift(
            db, identity, gift_id, GiftUpdateData(status=new_status)
        )

    @staticmethod
    def delete_gift(db: Session, identity: Identity, gift_id: int) -> str:
        gift = GiftService._get_owned_gift(db, identity, gift_id)
        db.delete(gift)
        db.commit()

        logger.info("Gift %s removed by participant %s", gift_id, identity.participant_id)
        return NotificationsData.GIFT_REMOVED

    @staticmethod
    def get_board_cards(db: Session, viewer: Participant) -> List[GiftCardView]:
        """Gift cards of the viewer's event, filtered through the visibility policy"""
        party = Party(participant_id=viewer.id, name=viewer.display_name)
        gifts = sort_for_viewer(GiftService.list_gifts(db, viewer.event_id), party)
        return [
            present_gift(gift, party, viewer.event.is_revealed) for gift in gifts
        ]
