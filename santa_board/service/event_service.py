import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from santa_board.constants import NotificationsData
from santa_board.core.auth import Identity
from santa_board.core.environs import EVENT_CODE, EVENT_NAME, EVENT_PASSCODE
from santa_board.core.security import hash_secret
from santa_board.db.models import Event, Participant, now
from santa_board.exceptions import InvalidInputError, NotFoundError
from santa_board.schemas.events import EventState
from santa_board.service.participant_service import ParticipantService

logger = logging.getLogger(__name__)


class EventService:
    @staticmethod
    def get_event_by_code(db: Session, code: str) -> Optional[Event]:
        return db.query(Event).filter(Event.code == code.strip()).first()

    @staticmethod
    def get_or_create_event(db: Session, code: str = EVENT_CODE) -> Event:
        """Returns the shared event, creating it with the configured passcode"""
        event = EventService.get_event_by_code(db, code)
        if event:
            return event

        event = Event(
            code=code.strip(),
            name=EVENT_NAME,
            passcode_hash=hash_secret(EVENT_PASSCODE),
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info("Created event %s (%s)", event.id, event.code)
        return event

    @staticmethod
    def get_event(db: Session, event_id: int) -> Event:
        event = db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    @staticmethod
    def get_event_state(db: Session, event_id: int) -> EventState:
        """Reveal flag together with the readiness counters"""
        event = EventService.get_event(db, event_id)
        participant_count = (
            db.query(func.count(Participant.id))
            .filter(Participant.event_id == event.id)
            .scalar()
        )
        ready_count = (
            db.query(func.count(Participant.id))
            .filter(Participant.event_id == event.id, Participant.is_ready.is_(True))
            .scalar()
        )
        return EventState(
            event=event, participant_count=participant_count, ready_count=ready_count
        )

    @staticmethod
    def set_ready(db: Session, identity: Identity, is_ready: bool = True) -> Participant:
        """Signals (or withdraws) a participant's readiness for the reveal"""
        participant = ParticipantService.authenticate(db, identity)

        if participant.event.is_revealed:
            raise InvalidInputError(NotificationsData.EVENT_ALREADY_REVEALED)

        participant.is_ready = bool(is_ready)
        db.commit()
        db.refresh(participant)
        return participant

    @staticmethod
    def request_reveal(db: Session, identity: Identity) -> bool:
        """
        Asks for the group reveal.

        The reveal is granted only when every participant of the event has
        signalled readiness; otherwise nothing changes and ``False`` is
        returned. Once revealed, the event stays revealed.
        """
        participant = ParticipantService.authenticate(db, identity)
        event = participant.event

        if event.is_revealed:
            return True

        state = EventService.get_event_state(db, event.id)
        if not state.everyone_ready:
            logger.info(
                "Reveal of event %s refused: %s of %s participants ready",
                event.id,
                state.ready_count,
                state.participant_count,
            )
            return False

        event.is_revealed = True
        event.revealed_at = now()
        db.commit()
        db.refresh(event)
        logger.info("Event %s revealed by participant %s", event.id, participant.id)
        return True
