from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from santa_board.core.environs import EVENT_CODE
from santa_board.db.models import Event
from santa_board.dependencies import get_db
from santa_board.exceptions import NotFoundError, SecretSantaError
from santa_board.schemas.api import (
    EventOut,
    GiftCreateIn,
    GiftOut,
    GiftUnlockIn,
    GiftUpdateIn,
    IdentityIn,
    JoinIn,
    JoinOut,
    LeaveIn,
    OkOut,
    ParticipantOut,
    ReadyIn,
    RenameIn,
    RevealOut,
)
from santa_board.schemas.gifts import GiftCreateData, GiftImageData, GiftUpdateData
from santa_board.schemas.participants import JoinData
from santa_board.service.event_service import EventService
from santa_board.service.gift_service import GiftService
from santa_board.service.participant_service import ParticipantService

router = APIRouter(prefix="/api", tags=["api"])


def _http_error(error: SecretSantaError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=str(error))


def _resolve_event(db: Session, event_code: str) -> Event:
    if event_code == EVENT_CODE:
        return EventService.get_or_create_event(db)
    event = EventService.get_event_by_code(db, event_code)
    if not event:
        raise _http_error(NotFoundError("Event not found"))
    return event


def _images(images) -> List[GiftImageData]:
    return [GiftImageData(url=image.url, caption=image.caption) for image in images]


@router.get("/event", response_model=EventOut)
def read_event(event_code: str = EVENT_CODE, db: Session = Depends(get_db)):
    """Reveal flag and readiness of the event"""
    event = _resolve_event(db, event_code)
    state = EventService.get_event_state(db, event.id)
    return EventOut(
        id=event.id,
        code=event.code,
        name=event.name,
        is_revealed=event.is_revealed,
        status=event.status,
        participant_count=state.participant_count,
        ready_count=state.ready_count,
    )


@router.get("/participants", response_model=List[ParticipantOut])
def read_participants(event_code: str = EVENT_CODE, db: Session = Depends(get_db)):
    """Participants in join order"""
    event = _resolve_event(db, event_code)
    return ParticipantService.list_participants(db, event.id)


@router.get("/gifts", response_model=List[GiftOut])
def read_gifts(event_code: str = EVENT_CODE, db: Session = Depends(get_db)):
    """Gift rows in creation order"""
    event = _resolve_event(db, event_code)
    return GiftService.list_gifts(db, event.id)


@router.post("/join", response_model=JoinOut)
def join_event(body: JoinIn, db: Session = Depends(get_db)):
    try:
        result = ParticipantService.join_event(
            db,
            JoinData(
                event_code=body.event_code,
                passcode=body.passcode,
                display_name=body.display_name,
            ),
        )
    except SecretSantaError as e:
        raise _http_error(e)

    return JoinOut(
        event_id=result.event.id,
        participant_id=result.participant.id,
        player_key=result.player_key,
        display_name=result.participant.display_name,
    )


@router.post("/gifts", response_model=GiftOut)
def add_gift(body: GiftCreateIn, db: Session = Depends(get_db)):
    try:
        return GiftService.create_gift(
            db,
            body.to_identity(),
            GiftCreateData(
                to_participant_id=body.to_participant_id,
                status=body.status,
                images=_images(body.images),
                message=body.message,
                is_unlocked=body.is_unlocked,
            ),
        )
    except SecretSantaError as e:
        raise _http_error(e)


@router.post("/gifts/{gift_id}/unlocked", response_model=GiftOut)
def set_gift_unlocked(
    gift_id: int, body: GiftUnlockIn, db: Session = Depends(get_db)
):
    try:
        return GiftService.set_unlocked(
            db, body.to_identity(), gift_id, body.is_unlocked
        )
    except SecretSantaError as e:
        raise _http_error(e)


@router.post("/gifts/{gift_id}/update", response_model=GiftOut)
def update_gift(gift_id: int, body: GiftUpdateIn, db: Session = Depends(get_db)):
    update_data = GiftUpdateData()
    if "status" in body.model_fields_set:
        update_data.status = body.status
    if "message" in body.model_fields_set:
        update_data.message = body.message
    if "images" in body.model_fields_set:
        update_data.images = _images(body.images or [])

    try:
        return GiftService.update_gift(db, body.to_identity(), gift_id, update_data)
    except SecretSantaError as e:
        raise _http_error(e)


@router.post("/gifts/{gift_id}/delete", response_model=OkOut)
def delete_gift(gift_id: int, body: IdentityIn, db: Session = Depends(get_db)):
    try:
        detail = GiftService.delete_gift(db, body.to_identity(), gift_id)
    except SecretSantaError as e:
        raise _http_error(e)
    return OkOut(detail=detail)


@router.post("/participants/me/rename", response_model=ParticipantOut)
def rename_participant(body: RenameIn, db: Session = Depends(get_db)):
    try:
        return ParticipantService.rename(db, body.to_identity(), body.display_name)
    except SecretSantaError as e:
        raise _http_error(e)


@router.post("/participants/me/leave", response_model=OkOut)
def remove_participant(body: LeaveIn, db: Session = Depends(get_db)):
    try:
        detail = ParticipantService.remove_participant(
            db, body.to_identity(), body.target_participant_id
        )
    except SecretSantaError as e:
        raise _http_error(e)
    return OkOut(detail=detail)


@router.post("/participants/me/ready", response_model=ParticipantOut)
def mark_ready(body: ReadyIn, db: Session = Depends(get_db)):
    try:
        return EventService.set_ready(db, body.to_identity(), body.is_ready)
    except SecretSantaError as e:
        raise _http_error(e)


@router.post("/event/reveal", response_model=RevealOut)
def request_reveal(body: IdentityIn, db: Session = Depends(get_db)):
    """Reveal is granted only once everyone is ready; otherwise revealed=false"""
    try:
        return RevealOut(revealed=EventService.request_reveal(db, body.to_identity()))
    except SecretSantaError as e:
        raise _http_error(e)
