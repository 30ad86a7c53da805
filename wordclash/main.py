from __future__ import annotations
import logging
from typing import Dict

import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .ai import build_assistant
from .config import settings
from .errors import AssistantUnavailable, GameError
from .managers.game import GameManager
from .routers import games as games_router
from .schemas import Bot, ExchangeRequest, PlayRequest, PublicGameState

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO),
                    format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Socket.IO server (ASGI)
sio = socketio.AsyncServer(async_mode='asgi', cors_allowed_origins=settings.cors_origins)
app = FastAPI(title="WordClash Server", version="0.1.0")

# Mount Socket.IO ASGI application
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)

# CORS for REST
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

games = GameManager(sio, build_assistant(settings), settings.bot_uid)
app.state.games = games
app.include_router(games_router.router)

AVAILABLE_BOTS = [
    Bot(id=settings.bot_uid, name='Bitty Botty', difficulty='Easy', avatar='🤖',
        description='Plays short, common words.'),
    Bot(id=settings.bot_uid, name='Bitty Botty', difficulty='Medium', avatar='🤖',
        description='Makes simple but solid moves.'),
    Bot(id=settings.bot_uid, name='Bitty Botty', difficulty='Hard', avatar='🤖',
        description='Hunts for bonus squares and big scores.'),
]

@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    logger.info('Rejected %s %s: %s', request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# REST Endpoints
@app.get('/bots')
async def list_bots() -> Dict[str, list]:
    return { 'bots': [b.model_dump() for b in AVAILABLE_BOTS] }

# Dictionary validation REST endpoint
@app.get('/dict/validate')
async def validate_word(word: str, request: Request):
    # Same assistant the rules engine validates plays with
    assistant = request.app.state.games.assistant
    try:
        result = await assistant.validate_word(word)
    except Exception as e:
        logger.exception('Word validation failed for %s', word)
        raise AssistantUnavailable() from e
    return { 'word': word.upper(), 'valid': result.isValid, 'reason': result.reason }

# Socket.IO Events
@sio.event
async def connect(sid, environ, auth):
    # Save player id from auth token (client uses token as player id)
    uid = None
    if isinstance(auth, dict):
        token = auth.get('token')
        if isinstance(token, str) and token.strip():
            uid = token.strip()
    await sio.save_session(sid, { 'uid': uid })
    await sio.emit('pong', to=sid)

@sio.on('ping')
async def on_ping(sid):
    await sio.emit('pong', to=sid)

@sio.on('join-game')
async def join_game(sid, game_id: str):
    try:
        session = games.get(game_id)
    except GameError as e:
        await sio.emit('game:error', e.to_dict(), to=sid)
        return
    await sio.enter_room(sid, game_id)
    sess = await sio.get_session(sid) or {}
    await sio.save_session(sid, { **sess, 'game_id': game_id })
    await sio.emit('game:state', PublicGameState.from_session(session).model_dump(), to=sid)

async def _caller(sid):
    sess = await sio.get_session(sid) or {}
    return sess.get('uid'), sess.get('game_id')

async def _run(sid, action):
    uid, game_id = await _caller(sid)
    if not uid or not game_id:
        await sio.emit('game:error', {'error': 'not_joined', 'message': 'Join a game first.'}, to=sid)
        return
    try:
        await action(uid, game_id)
    except GameError as e:
        await sio.emit('game:error', e.to_dict(), to=sid)
    except ValidationError as e:
        await sio.emit('game:error', {'error': 'bad_request', 'message': str(e)}, to=sid)

@sio.on('game:play')
async def place_tiles(sid, payload):
    async def action(uid, game_id):
        body = PlayRequest.model_validate(payload)
        session = await games.play(game_id, uid, body.pendingTiles)
        await sio.emit('game:moveValidated', session.lastMove.model_dump(), to=sid)
    await _run(sid, action)

@sio.on('game:pass')
async def pass_turn(sid):
    async def action(uid, game_id):
        await games.pass_turn(game_id, uid)
    await _run(sid, action)

@sio.on('game:exchange')
async def exchange_tiles(sid, payload):
    async def action(uid, game_id):
        body = ExchangeRequest.model_validate(payload)
        await games.exchange(game_id, uid, body.tiles)
    await _run(sid, action)

# Export ASGI app for uvicorn
application = asgi_app

# For local running: uvicorn wordclash.main:application --reload --host 0.0.0.0 --port 8000
