from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from ..managers.game import GameManager
from ..schemas import ExchangeRequest, NewGameRequest, PlayerView, PlayRequest, PublicGameState

router = APIRouter(prefix='/games', tags=['games'])


def get_manager(request: Request) -> GameManager:
    return request.app.state.games


def current_uid(authorization: Optional[str] = Header(None)) -> str:
    # The bearer token is the player id; real authentication lives upstream.
    if not authorization or not authorization.startswith('Bearer '):
        raise HTTPException(status_code=401, detail='Unauthorized')
    uid = authorization[len('Bearer '):].strip()
    if not uid:
        raise HTTPException(status_code=401, detail='Unauthorized')
    return uid


@router.post('', status_code=201)
async def create_game(body: NewGameRequest, uid: str = Depends(current_uid),
                      games: GameManager = Depends(get_manager)) -> PublicGameState:
    if uid not in body.players:
        raise HTTPException(status_code=403, detail='You can only start games you play in.')
    session = await games.create_game(body.players, body.displayNames, body.difficulty)
    return PublicGameState.from_session(session)


@router.get('/{game_id}')
async def get_game(game_id: str, uid: str = Depends(current_uid),
                   games: GameManager = Depends(get_manager)) -> PlayerView:
    return games.view(game_id, uid)


@router.post('/{game_id}/play')
async def play(game_id: str, body: PlayRequest, uid: str = Depends(current_uid),
               games: GameManager = Depends(get_manager)):
    session = await games.play(game_id, uid, body.pendingTiles)
    move = session.lastMove
    return {'score': move.score if move else 0, 'words': move.words if move else [],
            'status': session.status, 'winner': session.winner}


@router.post('/{game_id}/pass')
async def pass_turn(game_id: str, uid: str = Depends(current_uid),
                    games: GameManager = Depends(get_manager)):
    session = await games.pass_turn(game_id, uid)
    return {'consecutivePasses': session.consecutivePasses, 'status': session.status,
            'winner': session.winner}


@router.post('/{game_id}/exchange')
async def exchange(game_id: str, body: ExchangeRequest, uid: str = Depends(current_uid),
                   games: GameManager = Depends(get_manager)):
    await games.exchange(game_id, uid, body.tiles)
    return {'exchanged': len(body.tiles)}


@router.post('/{game_id}/bot-move')
async def bot_move(game_id: str, games: GameManager = Depends(get_manager)):
    session = await games.bot_move(game_id)
    move = session.lastMove
    if move is None or move.action != 'play':
        return {'message': 'Bot passed.', 'status': session.status}
    return {'score': move.score, 'words': move.words, 'status': session.status}


@router.post('/{game_id}/hint')
async def hint(game_id: str, uid: str = Depends(current_uid),
               games: GameManager = Depends(get_manager)):
    suggestions = await games.hint(game_id, uid)
    return {'suggestions': suggestions}
