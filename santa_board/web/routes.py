import logging
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.responses import HTMLResponse, RedirectResponse
from starlette.templating import Jinja2Templates

from santa_board.constants import GiftStatus, NotificationsData
from santa_board.core.auth import SESSION_COOKIE, Identity, create_session_token
from santa_board.core.environs import EVENT_CODE, POLL_INTERVAL_SECONDS
from santa_board.core.media import read_screenshot, to_data_url
from santa_board.dependencies import get_db, get_session_identity
from santa_board.exceptions import (
    AccessDeniedError,
    InvalidInputError,
    SecretSantaError,
)
from santa_board.schemas.gifts import GiftCreateData, GiftImageData
from santa_board.schemas.participants import JoinData
from santa_board.service.event_service import EventService
from santa_board.service.gift_service import GiftService
from santa_board.service.participant_service import ParticipantService

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter()


def _redirect(url: str, **params) -> RedirectResponse:
    query = {key: value for key, value in params.items() if value}
    if query:
        url = f"{url}?{urlencode(query)}"
    return RedirectResponse(url=url, status_code=302)


def _signed_out(message: Optional[str] = None) -> RedirectResponse:
    response = _redirect("/join", error=message)
    response.delete_cookie(SESSION_COOKIE)
    return response


def _recipient_id(value: str) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidInputError(NotificationsData.SELECT_RECIPIENT)


def _render_board(
    request: Request,
    db: Session,
    identity: Identity,
    message: Optional[str] = None,
    error: Optional[str] = None,
    status_code: int = 200,
):
    participant = ParticipantService.authenticate(db, identity)
    state = EventService.get_event_state(db, participant.event_id)
    participants = ParticipantService.list_participants(db, participant.event_id)

    return templates.TemplateResponse(
        request,
        "board.html",
        {
            "current_participant": participant,
            "event": state.event,
            "event_state": state,
            "participants": participants,
            "recipients": [p for p in participants if p.id != participant.id],
            "cards": GiftService.get_board_cards(db, participant),
            "statuses": GiftStatus.ALL,
            "status_labels": GiftStatus.LABELS,
            "status_icons": GiftStatus.ICONS,
            "poll_interval": POLL_INTERVAL_SECONDS,
            "message": message,
            "error": error,
        },
        status_code=status_code,
    )


def _action_failed(request: Request, db: Session, identity: Identity, error: Exception):
    """Re-renders the board with the error, or signs out a stale session"""
    expired = str(error) == NotificationsData.SESSION_EXPIRED
    if isinstance(error, AccessDeniedError) and expired:
        return _signed_out(str(error))
    if isinstance(error, SQLAlchemyError):
        logger.exception("Database error while handling %s", request.url.path)
        db.rollback()
        return templates.TemplateResponse(
            request,
            "error.html",
            {"error": NotificationsData.DATABASE_ERROR},
            status_code=500,
        )
    status_code = getattr(error, "status_code", 400)
    return _render_board(request, db, identity, error=str(error), status_code=status_code)


@router.get("/", response_class=HTMLResponse)
def read_board(
    request: Request,
    message: Optional[str] = None,
    error: Optional[str] = None,
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    """Gift board of the joined participant"""
    if identity is None:
        return _redirect("/join")
    try:
        return _render_board(request, db, identity, message=message, error=error)
    except AccessDeniedError as e:
        return _signed_out(str(e))


@router.get("/join", response_class=HTMLResponse)
def join_form(
    request: Request,
    event: str = EVENT_CODE,
    error: Optional[str] = None,
    identity: Optional[Identity] = Depends(get_session_identity),
):
    """Join page, the event code is prefilled from the invite link"""
    if identity is not None:
        return _redirect("/")
    return templates.TemplateResponse(
        request, "join.html", {"event_code": event, "error": error}
    )


@router.post("/join", response_class=HTMLResponse)
def join_form_submit(
    request: Request,
    event_code: str = Form(""),
    passcode: str = Form(""),
    display_name: str = Form(""),
    db: Session = Depends(get_db),
):
    """Process joining the event"""
    try:
        result = ParticipantService.join_event(
            db,
            JoinData(event_code=event_code, passcode=passcode, display_name=display_name),
        )
    except SecretSantaError as e:
        return templates.TemplateResponse(
            request,
            "join.html",
            {"event_code": event_code, "display_name": display_name, "error": str(e)},
            status_code=e.status_code,
        )
    except SQLAlchemyError:
        logger.exception("Database error while joining")
        return templates.TemplateResponse(
            request,
            "join.html",
            {"event_code": event_code, "error": NotificationsData.DATABASE_ERROR},
            status_code=500,
        )

    token = create_session_token(
        Identity(participant_id=result.participant.id, player_key=result.player_key)
    )
    response = _redirect("/", message=NotificationsData.JOINED)
    response.set_cookie(key=SESSION_COOKIE, value=token, httponly=True)
    return response


@router.get("/logout")
def logout():
    """Signing out forgets the session cookie"""
    return _signed_out()


@router.post("/gifts", response_class=HTMLResponse)
def add_gift_submit(
    request: Request,
    to_participant_id: str = Form(""),
    status: str = Form(GiftStatus.PENDING),
    message: str = Form(""),
    image_urls: str = Form(""),
    images: Optional[List[UploadFile]] = File(None),
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    """Process the add gift form"""
    if identity is None:
        return _redirect("/join")
    try:
        gift_images = [
            GiftImageData(url=url.strip())
            for url in image_urls.splitlines()
            if url.strip()
        ]
        for upload in images or []:
            if not upload.filename:
                continue
            content = read_screenshot(upload)
            gift_images.append(
                GiftImageData(
                    url=to_data_url(content, upload.content_type),
                    caption=upload.filename,
                )
            )

        gift = GiftService.create_gift(
            db,
            identity,
            GiftCreateData(
                to_participant_id=_recipient_id(to_participant_id),
                status=status,
                images=gift_images,
                message=message,
            ),
        )
        return _redirect(
            "/", message=NotificationsData.GIFT_WRAPPED.format(name=gift.to_name)
        )
    except (ValueError, SQLAlchemyError) as e:
        return _action_failed(request, db, identity, e)


@router.post("/gifts/{gift_id}/toggle-lock", response_class=HTMLResponse)
def toggle_gift_lock(
    request: Request,
    gift_id: int,
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    """Reveal the gift to its recipient, or hide it again"""
    if identity is None:
        return _redirect("/join")
    try:
        gift = GiftService.toggle_lock(db, identity, gift_id)
        text = (
            NotificationsData.GIFT_REVEALED_TO
            if gift.is_unlocked
            else NotificationsData.GIFT_HIDDEN_FROM
        )
        return _redirect("/", message=text.format(name=gift.to_name))
    except (ValueError, SQLAlchemyError) as e:
        return _action_failed(request, db, identity, e)


@router.post("/gifts/{gift_id}/status", response_class=HTMLResponse)
def update_gift_status(
    request: Request,
    gift_id: int,
    new_status: str = Form(...),
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    """Process updating gift delivery status"""
    if identity is None:
        return _redirect("/join")
    try:
        GiftService.update_gift_status(db, identity, gift_id, new_status)
        return _redirect("/", message=NotificationsData.GIFT_STATUS_UPDATED)
    except (ValueError, SQLAlchemyError) as e:
        return _action_failed(request, db, identity, e)


@router.post("/gifts/{gift_id}/delete", response_class=HTMLResponse)
def delete_gift(
    request: Request,
    gift_id: int,
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    """Delete gift"""
    if identity is None:
        return _redirect("/join")
    try:
        detail = GiftService.delete_gift(db, identity, gift_id)
        return _redirect("/", message=detail)
    except (ValueError, SQLAlchemyError) as e:
        return _action_failed(request, db, identity, e)


@router.post("/ready", response_class=HTMLResponse)
def mark_ready(
    request: Request,
    is_ready: bool = Form(True),
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    if identity is None:
        return _redirect("/join")
    try:
        participant = EventService.set_ready(db, identity, is_ready)
        text = (
            NotificationsData.READY
            if participant.is_ready
            else NotificationsData.NOT_READY
        )
        return _redirect("/", message=text)
    except (ValueError, SQLAlchemyError) as e:
        return _action_failed(request, db, identity, e)


@router.post("/end-event", response_class=HTMLResponse)
def end_event(
    request: Request,
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    """Ask for the big reveal"""
    if identity is None:
        return _redirect("/join")
    try:
        if EventService.request_reveal(db, identity):
            return _redirect("/", message=NotificationsData.BIG_REVEAL)
        return _redirect("/", error=NotificationsData.NOT_EVERYONE_READY)
    except (ValueError, SQLAlchemyError) as e:
        return _action_failed(request, db, identity, e)


@router.post("/rename", response_class=HTMLResponse)
def rename_submit(
    request: Request,
    display_name: str = Form(""),
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    if identity is None:
        return _redirect("/join")
    try:
        participant = ParticipantService.rename(db, identity, display_name)
        return _redirect(
            "/",
            message=NotificationsData.PARTICIPANT_RENAMED.format(
                name=participant.display_name
            ),
        )
    except (ValueError, SQLAlchemyError) as e:
        return _action_failed(request, db, identity, e)


@router.post("/leave")
def leave_event(
    request: Request,
    identity: Optional[Identity] = Depends(get_session_identity),
    db: Session = Depends(get_db),
):
    """Remove yourself from the event"""
    if identity is None:
        return _redirect("/join")
    try:
        ParticipantService.remove_participant(db, identity)
    except (ValueError, SQLAlchemyError) as e:
        return _action_failed(request, db, identity, e)
    return _signed_out()
