from __future__ import annotations
from typing import List, Optional, Sequence, Set, Tuple

from .board import Bonus, BoardState, bonus_at
from .config import BINGO_BONUS, RACK_SIZE
from .schemas import PlacedTile
from .words import FoundWord, extract_words

LETTER_MULTIPLIERS = {Bonus.DL: 2, Bonus.TL: 3}
WORD_MULTIPLIERS = {Bonus.DW: 2, Bonus.START: 2, Bonus.TW: 3}


def score_word(found: FoundWord, new_cells: Set[Tuple[int, int]]) -> int:
    """Score one word. Bonus squares only count under tiles placed this turn."""
    total = 0
    word_multiplier = 1
    for tile in found.tiles:
        value = 0 if tile.isBlank else tile.score
        if (tile.row, tile.col) in new_cells:
            bonus = bonus_at(tile.row, tile.col)
            value *= LETTER_MULTIPLIERS.get(bonus, 1)
            word_multiplier *= WORD_MULTIPLIERS.get(bonus, 1)
        total += value
    return total * word_multiplier


def score_breakdown(placed: Sequence[PlacedTile], board: BoardState,
                    words: Optional[List[FoundWord]] = None) -> List[Tuple[str, int]]:
    if words is None:
        words = extract_words(placed, board)
    new_cells = {(t.row, t.col) for t in placed}
    return [(w.word, score_word(w, new_cells)) for w in words]


def move_total(breakdown: Sequence[Tuple[str, int]], tiles_placed: int) -> int:
    if not breakdown:
        return 0
    total = sum(points for _, points in breakdown)
    if tiles_placed == RACK_SIZE:
        total += BINGO_BONUS
    return total


def score_move(placed: Sequence[PlacedTile], board: BoardState) -> int:
    """Total points for placing `placed` on `board` (the board before the move)."""
    return move_total(score_breakdown(placed, board), len(placed))
