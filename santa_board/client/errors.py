from typing import Optional


class StoreError(RuntimeError):
    """A store call failed; ``detail`` is the message meant for the user"""

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(detail or "Store request failed")
        self.detail = detail
        self.status_code = status_code


class StoreAuthError(StoreError):
    """The caller could not prove ownership, or its key is stale"""


class StoreRequestError(StoreError):
    """The store rejected the request (validation, missing record, conflict)"""


class StoreTransportError(StoreError):
    """The store could not be reached or failed internally"""
