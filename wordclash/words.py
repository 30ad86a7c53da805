"""Word extraction.

Given the tiles placed this turn and the board as it stood before the move,
work out every word the placement forms: the main word along the line of
play and any perpendicular cross words.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .board import BoardState, cell_key, in_bounds
from .config import BOARD_SIZE
from .errors import InvalidPlacement
from .schemas import PlacedTile, Tile

HORIZONTAL = 'horizontal'
VERTICAL = 'vertical'


@dataclass
class FoundWord:
    word: str
    tiles: List[PlacedTile] = field(default_factory=list)


def check_placement(placed: Sequence[PlacedTile], board: BoardState) -> Optional[str]:
    """Reject geometrically illegal placements.

    Returns the line direction for multi-tile moves, None for a single tile.
    """
    seen = set()
    for t in placed:
        if not in_bounds(t.row, t.col):
            raise InvalidPlacement(f'Tile at ({t.row},{t.col}) is off the board.')
        key = cell_key(t.row, t.col)
        if key in seen:
            raise InvalidPlacement(f'Two tiles were placed on ({t.row},{t.col}).')
        if key in board:
            raise InvalidPlacement(f'Square ({t.row},{t.col}) is already occupied.')
        if len(t.letter) != 1 or not ('A' <= t.letter.upper() <= 'Z'):
            raise InvalidPlacement('Every placed tile needs a letter; choose one for each blank.')
        seen.add(key)

    if len(placed) < 2:
        return None

    if all(t.row == placed[0].row for t in placed):
        direction = HORIZONTAL
        row = placed[0].row
        cols = [t.col for t in placed]
        span = [cell_key(row, c) for c in range(min(cols), max(cols) + 1)]
    elif all(t.col == placed[0].col for t in placed):
        direction = VERTICAL
        col = placed[0].col
        rows = [t.row for t in placed]
        span = [cell_key(r, col) for r in range(min(rows), max(rows) + 1)]
    else:
        raise InvalidPlacement('Tiles must all be in one row or one column.')

    for key in span:
        if key not in seen and key not in board:
            raise InvalidPlacement('Tiles must form a single continuous line.')
    return direction


def _walk(start: PlacedTile, direction: str, cells: Dict[str, Tile]) -> FoundWord:
    dr, dc = (0, 1) if direction == HORIZONTAL else (1, 0)

    r, c = start.row - dr, start.col - dc
    while r >= 0 and c >= 0 and cell_key(r, c) in cells:
        r, c = r - dr, c - dc
    r, c = r + dr, c + dc

    tiles: List[PlacedTile] = []
    while r < BOARD_SIZE and c < BOARD_SIZE and cell_key(r, c) in cells:
        tile = cells[cell_key(r, c)]
        tiles.append(PlacedTile(letter=tile.letter, score=tile.score, isBlank=tile.isBlank, row=r, col=c))
        r, c = r + dr, c + dc
    return FoundWord(word=''.join(t.letter for t in tiles), tiles=tiles)


def _has_neighbour(tile: PlacedTile, direction: str, board: BoardState) -> bool:
    if direction == HORIZONTAL:
        return cell_key(tile.row, tile.col - 1) in board or cell_key(tile.row, tile.col + 1) in board
    return cell_key(tile.row - 1, tile.col) in board or cell_key(tile.row + 1, tile.col) in board


def extract_words(placed: Sequence[PlacedTile], board: BoardState) -> List[FoundWord]:
    """Return every word of two or more letters formed by `placed`.

    Raises InvalidPlacement for tiles that are not in one gap-free line.
    Cross words whose letters duplicate an already found word are skipped.
    """
    if not placed:
        return []

    placed = [t.model_copy(update={'letter': t.letter.upper()}) for t in placed]
    direction = check_placement(placed, board)
    if direction is None:
        only = placed[0]
        if _has_neighbour(only, HORIZONTAL, board) or not _has_neighbour(only, VERTICAL, board):
            direction = HORIZONTAL
        else:
            direction = VERTICAL

    cells: Dict[str, Tile] = dict(board)
    for t in placed:
        cells[cell_key(t.row, t.col)] = t

    words: List[FoundWord] = []
    main = _walk(placed[0], direction, cells)
    if len(main.tiles) > 1:
        words.append(main)

    cross_direction = VERTICAL if direction == HORIZONTAL else HORIZONTAL
    for t in placed:
        cross = _walk(t, cross_direction, cells)
        if len(cross.tiles) > 1 and not any(w.word == cross.word for w in words):
            words.append(cross)

    return [w for w in words if len(w.word) > 1]
