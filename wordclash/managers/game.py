from __future__ import annotations
import asyncio
import inspect
import logging
import random
from typing import Callable, Dict, List, Optional, Sequence

from .. import turns
from ..config import MAX_COMMIT_ATTEMPTS
from ..errors import ConcurrentUpdate, NotParticipant
from ..schemas import GameSession, PlacedTile, PlayerView, PublicGameState, Tile
from ..store import GameStore

logger = logging.getLogger(__name__)

Transition = Callable[[GameSession], object]


class GameManager:
    def __init__(self, sio, assistant, bot_uid: str, store: Optional[GameStore] = None,
                 auto_bot: bool = True, rng: Optional[random.Random] = None):
        self.sio = sio
        self.assistant = assistant
        self.bot_uid = bot_uid
        self.store = store or GameStore()
        self.auto_bot = auto_bot
        self.rng = rng
        self._bot_tasks: Dict[str, asyncio.Task] = {}

    async def create_game(self, players: Sequence[str], display_names: Optional[Dict[str, str]] = None,
                          difficulty: str = 'Medium') -> GameSession:
        session = turns.new_game(players, display_names, difficulty, rng=self.rng)
        self.store.create(session)
        await self._after_commit(session)
        return session

    def get(self, game_id: str) -> GameSession:
        session, _ = self.store.get(game_id)
        return session

    def view(self, game_id: str, uid: str) -> PlayerView:
        session = self.get(game_id)
        if uid not in session.players:
            raise NotParticipant()
        public = PublicGameState.from_session(session)
        return PlayerView(**public.model_dump(), rack=session.playerData[uid].rack)

    async def apply(self, game_id: str, transition: Transition) -> GameSession:
        """Run a transition against the latest document and commit it.

        On a concurrent write the transition is re-derived from a fresh read,
        never re-applied to a stale result.
        """
        for attempt in range(1, MAX_COMMIT_ATTEMPTS + 1):
            session, version = self.store.get(game_id)
            result = transition(session)
            if inspect.isawaitable(result):
                result = await result
            try:
                self.store.commit(game_id, result, version)
            except ConcurrentUpdate:
                logger.info('Game %s: concurrent update, retrying (attempt %d)', game_id, attempt)
                continue
            await self._after_commit(result)
            return result
        raise ConcurrentUpdate()

    async def play(self, game_id: str, uid: str, pending: List[PlacedTile]) -> GameSession:
        return await self.apply(game_id, lambda s: turns.play(s, uid, pending, self.assistant))

    async def pass_turn(self, game_id: str, uid: str) -> GameSession:
        return await self.apply(game_id, lambda s: turns.pass_turn(s, uid))

    async def exchange(self, game_id: str, uid: str, tiles: List[Tile]) -> GameSession:
        return await self.apply(game_id, lambda s: turns.exchange(s, uid, tiles, self.rng))

    async def bot_move(self, game_id: str) -> GameSession:
        return await self.apply(game_id, lambda s: turns.bot_move(s, self.assistant, self.bot_uid))

    async def hint(self, game_id: str, uid: str) -> List[str]:
        suggestions: List[str] = []

        async def transition(session: GameSession) -> GameSession:
            nxt, found = await turns.use_hint(session, uid, self.assistant)
            suggestions[:] = found
            return nxt

        await self.apply(game_id, transition)
        return suggestions

    async def broadcast(self, session: GameSession):
        if self.sio is None:
            return
        state = PublicGameState.from_session(session)
        await self.sio.emit('game:state', state.model_dump(by_alias=True), room=session.id)

    async def _after_commit(self, session: GameSession):
        await self.broadcast(session)
        await self._maybe_schedule_bot_move(session)

    async def _maybe_schedule_bot_move(self, session: GameSession):
        if not self.auto_bot or session.status != 'active' or session.currentTurn != self.bot_uid:
            return
        task = self._bot_tasks.get(session.id)
        if task and not task.done():
            task.cancel()
        delay = self._bot_delay(session.difficulty)
        self._bot_tasks[session.id] = asyncio.create_task(self._bot_move_after(session.id, delay))

    def _bot_delay(self, difficulty: str) -> float:
        if difficulty == 'Easy':
            return random.uniform(1.0, 2.0)
        if difficulty == 'Medium':
            return random.uniform(1.5, 3.0)
        return random.uniform(2.0, 4.0)

    async def _bot_move_after(self, game_id: str, delay: float):
        await asyncio.sleep(delay)
        try:
            await self.bot_move(game_id)
        except Exception:
            logger.exception('Game %s: scheduled bot move failed', game_id)
