from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, Request
from jose import JWTError, jwt

from santa_board.constants import NotificationsData
from santa_board.core.environs import ACCESS_TOKEN_EXPIRE_MINUTES, SECRET_KEY

ALGORITHM = "HS256"
SESSION_COOKIE = "santa_session"


@dataclass(frozen=True)
class Identity:
    """Joined participant as proven by the caller-held player key"""

    participant_id: int
    player_key: str


def create_session_token(identity: Identity, expires_delta: timedelta = None) -> str:
    """Creates a signed token carrying the participant id and player key"""
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(identity.participant_id),
        "key": identity.player_key,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Identity:
    """
    Reads the identity back from a session token

    :param token:
    :return Identity:
    """
    credential_exception = HTTPException(
        status_code=401, detail=NotificationsData.SESSION_EXPIRED
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        participant_id = payload.get("sub")
        player_key = payload.get("key")
        if not participant_id or not player_key:
            raise credential_exception
        return Identity(participant_id=int(participant_id), player_key=player_key)
    except (JWTError, ValueError):
        raise credential_exception


def get_identity_from_cookie(request: Request) -> Identity:
    """
    Gets the joined identity from the session cookie.

    :param request:
    :return Identity:
    """
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="Session cookie not found")
    return decode_session_token(token)
