from __future__ import annotations
import json
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from .config import BOARD_SIZE
from .schemas import PlacedTile, Tile

BoardState = Dict[str, Tile]


class Bonus(str, Enum):
    NONE = ''
    DL = 'DL'
    TL = 'TL'
    DW = 'DW'
    TW = 'TW'
    START = 'START'


_ = Bonus.NONE
DL, TL, DW, TW, ST = Bonus.DL, Bonus.TL, Bonus.DW, Bonus.TW, Bonus.START

BOARD_LAYOUT = (
    (TW, _, _, DL, _, _, _, TW, _, _, _, DL, _, _, TW),
    (_, DW, _, _, _, TL, _, _, _, TL, _, _, _, DW, _),
    (_, _, DW, _, _, _, DL, _, DL, _, _, _, DW, _, _),
    (DL, _, _, DW, _, _, _, DL, _, _, _, DW, _, _, DL),
    (_, _, _, _, DW, _, _, _, _, _, DW, _, _, _, _),
    (_, TL, _, _, _, TL, _, _, _, TL, _, _, _, TL, _),
    (_, _, DL, _, _, _, DL, _, DL, _, _, _, DL, _, _),
    (TW, _, _, DL, _, _, _, ST, _, _, _, DL, _, _, TW),
    (_, _, DL, _, _, _, DL, _, DL, _, _, _, DL, _, _),
    (_, TL, _, _, _, TL, _, _, _, TL, _, _, _, TL, _),
    (_, _, _, _, DW, _, _, _, _, _, DW, _, _, _, _),
    (DL, _, _, DW, _, _, _, DL, _, _, _, DW, _, _, DL),
    (_, _, DW, _, _, _, DL, _, DL, _, _, _, DW, _, _),
    (_, DW, _, _, _, TL, _, _, _, TL, _, _, _, DW, _),
    (TW, _, _, DL, _, _, _, TW, _, _, _, DL, _, _, TW),
)


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def bonus_at(row: int, col: int) -> Bonus:
    if not in_bounds(row, col):
        return Bonus.NONE
    return BOARD_LAYOUT[row][col]


def cell_key(row: int, col: int) -> str:
    return f'{row}-{col}'


def parse_key(key: str) -> Tuple[int, int]:
    """Decode a "row-col" board key, rejecting off-board coordinates."""
    row_s, sep, col_s = key.partition('-')
    if not sep:
        raise ValueError(f'malformed board key: {key!r}')
    try:
        row, col = int(row_s), int(col_s)
    except ValueError:
        raise ValueError(f'malformed board key: {key!r}') from None
    if cell_key(row, col) != key:
        raise ValueError(f'non-canonical board key: {key!r}')
    if not in_bounds(row, col):
        raise ValueError(f'board key out of range: {key!r}')
    return row, col


def tile_at(board: BoardState, row: int, col: int) -> Optional[Tile]:
    return board.get(cell_key(row, col))


def merge(board: BoardState, placed: Iterable[PlacedTile]) -> BoardState:
    # Commit primitive: callers check occupancy beforehand.
    merged = dict(board)
    for t in placed:
        merged[cell_key(t.row, t.col)] = Tile(letter=t.letter, score=t.score, isBlank=t.isBlank)
    return merged


def serialize_board(board: BoardState) -> str:
    return json.dumps({k: v.model_dump() for k, v in board.items()}, sort_keys=True)
