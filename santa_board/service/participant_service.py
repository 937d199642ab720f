import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from santa_board.constants import NotificationsData
from santa_board.core.auth import Identity
from santa_board.core.environs import EVENT_CODE
from santa_board.core.policy import display_name_key, normalize_display_name
from santa_board.core.security import generate_player_key, hash_secret, verify_secret
from santa_board.db.models import Participant
from santa_board.exceptions import (
    AccessDeniedError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from santa_board.schemas.participants import JoinData, JoinResult

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50


class ParticipantService:
    @staticmethod
    def _validate_display_name(display_name: str) -> str:
        name = normalize_display_name(display_name)
        if not name:
            raise InvalidInputError("Please enter your name")
        if len(name) < MIN_NAME_LENGTH:
            raise InvalidInputError(NotificationsData.NAME_TOO_SHORT)
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidInputError("Name must be at most 50 characters")
        return name

    @staticmethod
    def _commit_name(db: Session) -> None:
        """Commits a new or changed display name; a concurrent claim on it is a conflict"""
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Display name claimed concurrently, rejecting")
            raise ConflictError(NotificationsData.NAME_TAKEN)

    @staticmethod
    def name_taken(
        db: Session, event_id: int, display_name: str, exclude_id: Optional[int] = None
    ) -> bool:
        query = db.query(Participant).filter(
            Participant.event_id == event_id,
            Participant.name_key == display_name_key(display_name),
        )
        if exclude_id is not None:
            query = query.filter(Participant.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def join_event(db: Session, join_data: JoinData) -> JoinResult:
        """
        Joins the event by passcode and mints the participant's identity.

        The returned player key is the only proof of identity the caller
        gets; only its hash is stored.
        """
        # avoid a circular import with EventService
        from santa_board.service.event_service import EventService

        if not (join_data.event_code or "").strip():
            raise InvalidInputError("Missing event code. Please use the invite link.")
        if not join_data.passcode:
            raise InvalidInputError("Please enter the event passcode")
        display_name = ParticipantService._validate_display_name(join_data.display_name)

        if join_data.event_code.strip() == EVENT_CODE:
            event = EventService.get_or_create_event(db)
        else:
            event = EventService.get_event_by_code(db, join_data.event_code)
        if not event:
            raise NotFoundError("Event not found. Check your invite link.")

        if not verify_secret(join_data.passcode, event.passcode_hash):
            logger.warning("Rejected join to event %s: wrong passcode", event.id)
            raise AccessDeniedError("Wrong passcode. Check it and try again.")

        if ParticipantService.name_taken(db, event.id, display_name):
            raise ConflictError(NotificationsData.NAME_TAKEN)

        player_key = generate_player_key()
        participant = Participant(
            event_id=event.id,
            display_name=display_name,
            name_key=display_name_key(display_name),
            player_key_hash=hash_secret(player_key),
        )
        db.add(participant)
        ParticipantService._commit_name(db)
        db.refresh(participant)

        logger.info("Participant %s joined event %s", participant.id, event.id)
        return JoinResult(event=event, participant=participant, player_key=player_key)

    @staticmethod
    def authenticate(db: Session, identity: Identity) -> Participant:
        """Resolves the participant behind an identity, checking its player key"""
        participant = db.get(Participant, identity.participant_id)
        if not participant or not verify_secret(
            identity.player_key, participant.player_key_hash
        ):
            logger.warning(
                "Rejected stale or invalid key for participant %s",
                identity.participant_id,
            )
            raise AccessDeniedError(NotificationsData.SESSION_EXPIRED)
        return participant

    @staticmethod
    def get_participant_by_id(db: Session, participant_id: int) -> Participant:
        participant = db.get(Participant, participant_id)
        if not participant:
            raise NotFoundError("Participant not found")
        return participant

    @staticmethod
    def list_participants(db: Session, event_id: int) -> List[Participant]:
        """Participants of an event in join order"""
        return (
            db.query(Participant)
            .filter(Participant.event_id == event_id)
            .order_by(Participant.created_at.asc(), Participant.id.asc())
            .all()
        )

    @staticmethod
    def rename(db: Session, identity: Identity, display_name: str) -> Participant:
        participant = ParticipantService.authenticate(db, identity)
        name = ParticipantService._validate_display_name(display_name)

        if ParticipantService.name_taken(
            db, participant.event_id, name, exclude_id=participant.id
        ):
            raise ConflictError(NotificationsData.NAME_TAKEN)

        participant.display_name = name
        participant.name_key = display_name_key(name)
        ParticipantService._commit_name(db)
        db.refresh(participant)
        return participant

    @staticmethod
    def remove_participant(
        db: Session, identity: Identity, participant_id: Optional[int] = None
    ) -> str:
        """Removes the caller from the event, together with their gifts"""
        participant = ParticipantService.authenticate(db, identity)

        if participant_id is not None and participant_id != participant.id:
            raise AccessDeniedError("You can only remove yourself")

        event_id = participant.event_id
        name = participant.display_name
        db.delete(participant)
        db.commit()

        logger.info("Participant %s left event %s", identity.participant_id, event_id)
        return NotificationsData.PARTICIPANT_LEFT.format(name=name)
