"""Local persistence for the client.

A ``KeyValueFile`` is a small JSON document used the way a browser uses
local storage. Which keys are used is never global: each component gets
its key names through a frozen keys dataclass passed to its constructor.

Lifecycle of the joined session: ``SessionStorage.save`` is called once a
join succeeds (app start reads it back with ``load``), and ``clear`` is
called on sign-out or when the participant leaves the event.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from santa_board.client.models import JoinedSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageKeys:
    event_code: str = "ss.eventCode.v1"
    display_name: str = "ss.displayName.v1"
    participant_id: str = "ss.participantId.v1"
    player_key: str = "ss.playerKey.v1"


@dataclass(frozen=True)
class OfflineStorageKeys:
    participants: str = "secret-santa-participants"
    gifts: str = "secret-santa-gifts"
    ready: str = "secret-santa-ready"
    revealed: str = "secret-santa-revealed"


class KeyValueFile:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable storage file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, *keys: str) -> None:
        data = self._read()
        for key in keys:
            data.pop(key, None)
        self._write(data)


class SessionStorage:
    """Keeps the joined identity between runs"""

    def __init__(self, storage: KeyValueFile, keys: StorageKeys = StorageKeys()):
        self.storage = storage
        self.keys = keys

    def load(self) -> Optional[JoinedSession]:
        display_name = self.storage.get(self.keys.display_name)
        event_code = self.storage.get(self.keys.event_code)
        if not display_name or not event_code:
            return None
        return JoinedSession(
            event_code=event_code,
            display_name=display_name,
            participant_id=self.storage.get(self.keys.participant_id),
            player_key=self.storage.get(self.keys.player_key),
        )

    def save(self, session: JoinedSession) -> None:
        self.storage.set(self.keys.event_code, session.event_code)
        self.storage.set(self.keys.display_name, session.display_name)
        self.storage.set(self.keys.participant_id, session.participant_id)
        self.storage.set(self.keys.player_key, session.player_key)

    def clear(self) -> None:
        self.storage.remove(
            self.keys.event_code,
            self.keys.display_name,
            self.keys.participant_id,
            self.keys.player_key,
        )
