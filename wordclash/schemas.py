from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Literal, Optional

Direction = Literal['horizontal', 'vertical']
Difficulty = Literal['Easy', 'Medium', 'Hard']
GameStatus = Literal['active', 'finished']

BLANK_LETTER = ' '

class Tile(BaseModel):
    letter: str
    score: int = Field(0, ge=0)
    isBlank: bool = False

    def to_tile(self) -> 'Tile':
        return Tile(letter=self.letter, score=self.score, isBlank=self.isBlank)

class PlacedTile(Tile):
    row: int
    col: int

class PlayerData(BaseModel):
    displayName: str = ''
    rack: List[Tile] = []
    score: int = 0
    hintUsed: bool = False

class MoveRecord(BaseModel):
    playerId: str
    action: Literal['play', 'pass', 'exchange']
    words: List[str] = []
    score: int = 0
    tiles: List[PlacedTile] = []

class GameSession(BaseModel):
    id: str = ''
    players: List[str]
    playerData: Dict[str, PlayerData]
    board: Dict[str, Tile] = {}
    tileBag: List[Tile] = []
    currentTurn: str
    status: GameStatus = 'active'
    consecutivePasses: int = 0
    winner: Optional[str] = None
    difficulty: Difficulty = 'Medium'
    lastMove: Optional[MoveRecord] = None

    @field_validator('board')
    @classmethod
    def _board_keys_on_board(cls, board: Dict[str, Tile]) -> Dict[str, Tile]:
        from .board import parse_key
        for key in board:
            parse_key(key)
        return board

    def opponent_of(self, uid: str) -> str:
        return next(p for p in self.players if p != uid)

# Assistant contracts

class WordValidation(BaseModel):
    isValid: bool
    reason: str = ''

class WordSuggestions(BaseModel):
    suggestions: List[str] = []

class BotMoveProposal(BaseModel):
    word: str
    startRow: int
    startCol: int
    direction: Direction

# Request / response bodies

class NewGameRequest(BaseModel):
    players: List[str] = Field(..., min_length=2, max_length=2)
    displayNames: Dict[str, str] = {}
    difficulty: Difficulty = 'Medium'

    @field_validator('players')
    @classmethod
    def _distinct_players(cls, players: List[str]) -> List[str]:
        if len(set(players)) != len(players):
            raise ValueError('a game needs two distinct players')
        return players

class PlayRequest(BaseModel):
    pendingTiles: List[PlacedTile] = []

class ExchangeRequest(BaseModel):
    tiles: List[Tile] = []

class PublicPlayer(BaseModel):
    id: str
    displayName: str
    score: int
    rackCount: int
    hintUsed: bool

class PublicGameState(BaseModel):
    id: str
    players: List[PublicPlayer]
    board: Dict[str, Tile]
    bagCount: int
    currentTurn: str
    status: GameStatus
    consecutivePasses: int
    winner: Optional[str] = None
    lastMove: Optional[MoveRecord] = None

    @classmethod
    def from_session(cls, session: GameSession) -> 'PublicGameState':
        return cls(
            id=session.id,
            players=[
                PublicPlayer(
                    id=uid,
                    displayName=session.playerData[uid].displayName,
                    score=session.playerData[uid].score,
                    rackCount=len(session.playerData[uid].rack),
                    hintUsed=session.playerData[uid].hintUsed,
                )
                for uid in session.players
            ],
            board=session.board,
            bagCount=len(session.tileBag),
            currentTurn=session.currentTurn,
            status=session.status,
            consecutivePasses=session.consecutivePasses,
            winner=session.winner,
            lastMove=session.lastMove,
        )

class PlayerView(PublicGameState):
    rack: List[Tile] = []

class Bot(BaseModel):
    id: str
    name: str
    difficulty: Difficulty
    avatar: str
    description: str
