import base64

from santa_board.core.environs import MAX_IMAGE_MB
from santa_board.exceptions import InvalidInputError

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MAX_IMAGE_BYTES = int(MAX_IMAGE_MB * 1024 * 1024)


def _too_large() -> InvalidInputError:
    return InvalidInputError(f"A screenshot may not exceed {MAX_IMAGE_MB} MB")


def read_screenshot(upload) -> bytes:
    """
    Reads an uploaded screenshot, never more than one byte past the limit.

    The declared size is checked first so oversized uploads are refused
    without being read at all.
    """
    if upload.size is not None and upload.size > MAX_IMAGE_BYTES:
        raise _too_large()
    return upload.file.read(MAX_IMAGE_BYTES + 1)


def to_data_url(content: bytes, content_type: str) -> str:
    """Encodes an uploaded screenshot the way a browser FileReader would"""
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidInputError("Only JPEG, PNG, WebP or GIF screenshots are supported")

    if len(content) > MAX_IMAGE_BYTES:
        raise _too_large()

    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def is_acceptable_image_url(url: str) -> bool:
    return url.startswith(("https://", "http://", "data:image/"))
