"""Turn state machine.

Every transition takes a GameSession and returns a new one; the input is
never modified. Rejected transitions raise a GameError after doing nothing,
so a caller can always retry from the session it already holds.
"""
from __future__ import annotations
import logging
import random
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from .board import in_bounds, merge, serialize_board, tile_at
from .config import CENTER, MIN_BAG_FOR_EXCHANGE, PASSES_TO_END, RACK_SIZE
from .errors import (
    AssistantUnavailable, BagTooSmall, EmptyMove, GameError, GameNotActive,
    HintAlreadyUsed, InvalidPlacement, InvalidWord, NotParticipant, NotYourTurn,
)
from .game_logic import (
    create_tile_bag, draw_tiles, rack_letters, rack_value, refill_rack,
    remove_tiles, return_and_reshuffle,
)
from .schemas import (
    BotMoveProposal, GameSession, MoveRecord, PlacedTile, PlayerData, Tile,
)
from .scoring import move_total, score_breakdown
from .words import FoundWord, extract_words

logger = logging.getLogger(__name__)

DRAW = 'draw'


def new_game(players: Sequence[str], display_names: Optional[Dict[str, str]] = None,
             difficulty: str = 'Medium', rng: Optional[random.Random] = None,
             game_id: Optional[str] = None) -> GameSession:
    if len(players) != 2 or players[0] == players[1]:
        raise ValueError('a game needs exactly two distinct players')
    display_names = display_names or {}
    bag = create_tile_bag(rng)
    player_data = {}
    for uid in players:
        rack, bag = draw_tiles(bag, RACK_SIZE)
        player_data[uid] = PlayerData(displayName=display_names.get(uid, uid), rack=rack)
    session = GameSession(
        id=game_id or uuid.uuid4().hex,
        players=list(players),
        playerData=player_data,
        board={},
        tileBag=bag,
        currentTurn=players[0],
        difficulty=difficulty,
    )
    logger.info('Game %s started: %s vs %s', session.id, players[0], players[1])
    return session


def tile_count(session: GameSession) -> int:
    return len(session.tileBag) + len(session.board) + sum(len(p.rack) for p in session.playerData.values())


def _check_turn(session: GameSession, uid: str) -> None:
    if uid not in session.players:
        raise NotParticipant()
    if session.currentTurn != uid:
        raise NotYourTurn()
    if session.status != 'active':
        raise GameNotActive()


def finish_game(session: GameSession, emptier: Optional[str] = None) -> GameSession:
    """End the game and decide the winner.

    When `emptier` went out with the bag empty, every other rack's value moves
    from its holder to the emptier first. The double-pass ending calls this
    without an emptier, so stored scores are compared as they are.
    """
    done = session.model_copy(deep=True)
    if emptier is not None:
        for uid in done.players:
            if uid == emptier:
                continue
            leftover = rack_value(done.playerData[uid].rack)
            done.playerData[uid].score -= leftover
            done.playerData[emptier].score += leftover
    first, second = done.players
    first_score = done.playerData[first].score
    second_score = done.playerData[second].score
    if first_score > second_score:
        done.winner = first
    elif second_score > first_score:
        done.winner = second
    else:
        done.winner = DRAW
    done.status = 'finished'
    logger.info('Game %s finished: winner=%s (%d-%d)', done.id, done.winner, first_score, second_score)
    return done


def _require_connection(placed: Sequence[PlacedTile], words: Sequence[FoundWord], board) -> None:
    if not words:
        raise InvalidPlacement('Your tiles must form a word of at least two letters.')
    if not board:
        if not any((t.row, t.col) == CENTER for t in placed):
            raise InvalidPlacement('The first word must cover the centre square.')
        return
    new_cells = {(t.row, t.col) for t in placed}
    touches_board = any((t.row, t.col) not in new_cells for w in words for t in w.tiles)
    if not touches_board:
        raise InvalidPlacement('Your word must connect to tiles already on the board.')


async def _validate_words(words: Sequence[FoundWord], assistant) -> None:
    for found in words:
        try:
            result = await assistant.validate_word(found.word)
        except Exception as e:
            logger.exception('Word validation failed for %s', found.word)
            raise AssistantUnavailable() from e
        if not result.isValid:
            raise InvalidWord(found.word, result.reason)


async def play(session: GameSession, uid: str, pending: Sequence[PlacedTile], assistant) -> GameSession:
    _check_turn(session, uid)
    if not pending:
        raise EmptyMove('No tiles to play.')

    player = session.playerData[uid]
    pending = [t.model_copy(update={'letter': t.letter.upper()}) for t in pending]
    remaining, consumed = remove_tiles(player.rack, pending)
    # Letter values come from the rack, not from the request.
    placed = [
        p.model_copy(update={'score': 0 if c.isBlank else c.score, 'isBlank': c.isBlank})
        for p, c in zip(pending, consumed)
    ]

    words = extract_words(placed, session.board)
    _require_connection(placed, words, session.board)
    await _validate_words(words, assistant)

    breakdown = score_breakdown(placed, session.board, words)
    points = move_total(breakdown, len(placed))

    nxt = session.model_copy(deep=True)
    nxt.board = merge(session.board, placed)
    drawn, nxt.tileBag = draw_tiles(session.tileBag, len(placed))
    mover = nxt.playerData[uid]
    mover.rack = refill_rack(remaining, drawn)
    mover.score += points
    nxt.consecutivePasses = 0
    nxt.lastMove = MoveRecord(playerId=uid, action='play', words=[w for w, _ in breakdown],
                              score=points, tiles=placed)
    logger.info('Game %s: %s played %s for %d', session.id, uid, ', '.join(w for w, _ in breakdown), points)

    if not mover.rack and not nxt.tileBag:
        return finish_game(nxt, emptier=uid)
    nxt.currentTurn = session.opponent_of(uid)
    return nxt


def pass_turn(session: GameSession, uid: str) -> GameSession:
    _check_turn(session, uid)
    nxt = session.model_copy(deep=True)
    nxt.consecutivePasses += 1
    nxt.currentTurn = session.opponent_of(uid)
    nxt.lastMove = MoveRecord(playerId=uid, action='pass')
    logger.info('Game %s: %s passed (%d in a row)', session.id, uid, nxt.consecutivePasses)
    if nxt.consecutivePasses >= PASSES_TO_END:
        return finish_game(nxt)
    return nxt


def exchange(session: GameSession, uid: str, tiles: Sequence[Tile],
             rng: Optional[random.Random] = None) -> GameSession:
    _check_turn(session, uid)
    if not tiles:
        raise EmptyMove('No tiles selected for exchange.')
    if len(session.tileBag) < MIN_BAG_FOR_EXCHANGE:
        raise BagTooSmall()
    remaining, returned = remove_tiles(session.playerData[uid].rack, tiles)

    nxt = session.model_copy(deep=True)
    drawn, bag = draw_tiles(session.tileBag, len(returned))
    nxt.tileBag = return_and_reshuffle(bag, returned, rng)
    nxt.playerData[uid].rack = refill_rack(remaining, drawn)
    nxt.currentTurn = session.opponent_of(uid)
    nxt.consecutivePasses = 0
    nxt.lastMove = MoveRecord(playerId=uid, action='exchange')
    logger.info('Game %s: %s exchanged %d tiles', session.id, uid, len(returned))
    return nxt


def decode_bot_move(proposal: BotMoveProposal, session: GameSession, bot_uid: str) -> Optional[List[PlacedTile]]:
    """Turn a proposed word into tiles from the bot's rack.

    Occupied cells must already hold the proposed letter; empty cells take a
    rack tile with that letter, else a blank. Returns None when the proposal
    leaves the board, contradicts the board or needs a tile the bot lacks.
    """
    word = proposal.word.strip().upper()
    if not word.isalpha():
        return None
    dr, dc = (0, 1) if proposal.direction == 'horizontal' else (1, 0)
    working = list(session.playerData[bot_uid].rack)
    pending: List[PlacedTile] = []
    for i, letter in enumerate(word):
        row, col = proposal.startRow + i * dr, proposal.startCol + i * dc
        if not in_bounds(row, col):
            return None
        existing = tile_at(session.board, row, col)
        if existing is not None:
            if existing.letter != letter:
                return None
            continue
        idx = next((j for j, t in enumerate(working) if not t.isBlank and t.letter == letter), None)
        if idx is None:
            idx = next((j for j, t in enumerate(working) if t.isBlank), None)
        if idx is None:
            return None
        tile = working.pop(idx)
        pending.append(PlacedTile(letter=letter, score=0 if tile.isBlank else tile.score,
                                  isBlank=tile.isBlank, row=row, col=col))
    return pending


async def bot_move(session: GameSession, assistant, bot_uid: str) -> GameSession:
    _check_turn(session, bot_uid)
    rack = session.playerData[bot_uid].rack
    try:
        proposal = await assistant.generate_bot_move(rack_letters(rack), serialize_board(session.board),
                                                     session.difficulty)
    except Exception:
        logger.exception('Game %s: bot move generation failed', session.id)
        proposal = None

    if proposal is None:
        logger.info('Game %s: bot found no move', session.id)
        return pass_turn(session, bot_uid)

    pending = decode_bot_move(proposal, session, bot_uid)
    if not pending:
        logger.warning('Game %s: bot proposed unplayable %s at (%d,%d) %s', session.id, proposal.word,
                       proposal.startRow, proposal.startCol, proposal.direction)
        return pass_turn(session, bot_uid)
    try:
        return await play(session, bot_uid, pending, assistant)
    except GameError as e:
        logger.warning('Game %s: bot move %s rejected (%s), passing', session.id, proposal.word, e.code)
        return pass_turn(session, bot_uid)


async def use_hint(session: GameSession, uid: str, assistant) -> Tuple[GameSession, List[str]]:
    if uid not in session.players:
        raise NotParticipant()
    if session.status != 'active':
        raise GameNotActive()
    player = session.playerData[uid]
    if player.hintUsed:
        raise HintAlreadyUsed()
    try:
        result = await assistant.suggest_word(rack_letters(player.rack), serialize_board(session.board))
    except Exception as e:
        logger.exception('Game %s: hint lookup failed', session.id)
        raise AssistantUnavailable('Hints are unavailable right now. Please try again.') from e
    nxt = session.model_copy(deep=True)
    nxt.playerData[uid].hintUsed = True
    return nxt, list(result.suggestions)
