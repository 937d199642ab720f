import secrets

from passlib.context import CryptContext

from santa_board.core.environs import HASH_ROUNDS

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=HASH_ROUNDS,
)

PLAYER_KEY_BYTES = 32


def hash_secret(secret: str) -> str:
    """
    Hashes a passcode or player key using pbkdf2_sha256

    :param secret:
    :return hashed secret:
    """
    return pwd_context.hash(secret)


def verify_secret(secret: str, hashed_secret: str) -> bool:
    """Checks whether a secret matches its hash"""
    if not secret or not hashed_secret:
        return False
    return pwd_context.verify(secret, hashed_secret)


def generate_player_key() -> str:
    """Mints the caller-held key that authorizes a participant's mutations"""
    return secrets.token_urlsafe(PLAYER_KEY_BYTES)
