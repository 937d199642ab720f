import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from santa_board.client.models import ParticipantRecord
from santa_board.constants import UNKNOWN_PARTICIPANT_LABEL

logger = logging.getLogger(__name__)


class ParticipantDirectory:
    """
    Read-through cache of participant id -> display name.

    Names are for display only; ownership is always decided by ids. The
    whole cache is replaced every time the participant list is refreshed.
    """

    def __init__(self, loader: Callable[[], Awaitable[List[ParticipantRecord]]]):
        self._loader = loader
        self._names: Dict[int, str] = {}

    def replace(self, participants: Iterable[ParticipantRecord]) -> None:
        self._names = {p.id: p.display_name for p in participants if p.id is not None}

    def invalidate(self) -> None:
        self._names = {}

    def cached_name(self, participant_id: Optional[int]) -> Optional[str]:
        if participant_id is None:
            return None
        return self._names.get(participant_id)

    async def resolve(
        self, participant_ids: Iterable[Optional[int]]
    ) -> Optional[List[ParticipantRecord]]:
        """
        Reloads the participant list once if any of the ids is not cached.

        Returns the reloaded participants, or None when every id was known.
        """
        missing = {pid for pid in participant_ids if pid is not None} - set(self._names)
        if not missing:
            return None
        logger.debug("Participants %s not cached, reloading", sorted(missing))
        participants = await self._loader()
        self.replace(participants)
        return participants

    async def name_for(self, participant_id: Optional[int]) -> str:
        await self.resolve([participant_id])
        if participant_id is None:
            return UNKNOWN_PARTICIPANT_LABEL
        return self._names.get(participant_id, UNKNOWN_PARTICIPANT_LABEL)
