from __future__ import annotations
import logging
from typing import Dict, List, Tuple

from .errors import ConcurrentUpdate, GameNotFound
from .schemas import GameSession

logger = logging.getLogger(__name__)


def changed_fields(before: GameSession, after: GameSession) -> List[str]:
    """Dotted paths of the fields that differ, e.g. ``playerData.<uid>.score``."""
    old = before.model_dump()
    new = after.model_dump()
    paths: List[str] = []
    for name in new:
        if name == 'playerData':
            for uid, pdata in new[name].items():
                prev = old[name].get(uid, {})
                paths.extend(f'playerData.{uid}.{k}' for k, v in pdata.items() if prev.get(k) != v)
        elif old.get(name) != new[name]:
            paths.append(name)
    return paths


class GameStore:
    """In-memory game documents with optimistic, versioned writes."""

    def __init__(self):
        self._docs: Dict[str, Tuple[GameSession, int]] = {}

    def __contains__(self, game_id: str) -> bool:
        return game_id in self._docs

    def create(self, session: GameSession) -> None:
        if session.id in self._docs:
            raise ValueError(f'game {session.id} already exists')
        self._docs[session.id] = (session.model_copy(deep=True), 1)

    def get(self, game_id: str) -> Tuple[GameSession, int]:
        try:
            session, version = self._docs[game_id]
        except KeyError:
            raise GameNotFound() from None
        return session.model_copy(deep=True), version

    def commit(self, game_id: str, session: GameSession, expected_version: int) -> int:
        current, version = self._docs.get(game_id, (None, 0))
        if current is None:
            raise GameNotFound()
        if version != expected_version:
            raise ConcurrentUpdate()
        if logger.isEnabledFor(logging.DEBUG):
            fields = changed_fields(current, session)
            logger.debug('Game %s v%d -> v%d: %s', game_id, version, version + 1, ', '.join(fields) or 'no changes')
        self._docs[game_id] = (session.model_copy(deep=True), version + 1)
        return version + 1

