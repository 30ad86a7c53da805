from __future__ import annotations
import random
from typing import List, Optional, Sequence, Tuple

from .config import RACK_SIZE
from .errors import TilesNotOwned
from .schemas import BLANK_LETTER, Tile


# letter -> (count, value); '?' is the blank
TILE_DISTRIBUTION = {
    'A': (9, 1), 'B': (2, 3), 'C': (2, 3), 'D': (4, 2), 'E': (12, 1),
    'F': (2, 4), 'G': (3, 2), 'H': (2, 4), 'I': (9, 1), 'J': (1, 8),
    'K': (1, 5), 'L': (4, 1), 'M': (2, 3), 'N': (6, 1), 'O': (8, 1),
    'P': (2, 3), 'Q': (1, 10), 'R': (6, 1), 'S': (4, 1), 'T': (6, 1),
    'U': (4, 1), 'V': (2, 4), 'W': (2, 4), 'X': (1, 8), 'Y': (2, 4),
    'Z': (1, 10), '?': (2, 0),
}
TOTAL_TILES = sum(count for count, _ in TILE_DISTRIBUTION.values())
LETTER_VALUES = {letter: value for letter, (_, value) in TILE_DISTRIBUTION.items() if letter != '?'}

Rack = List[Tile]

# Tile bag

def make_tile(letter: str) -> Tile:
    if letter in ('?', BLANK_LETTER):
        return Tile(letter=BLANK_LETTER, score=0, isBlank=True)
    letter = letter.upper()
    return Tile(letter=letter, score=LETTER_VALUES[letter])

def create_tile_bag(rng: Optional[random.Random] = None) -> List[Tile]:
    """Build the full tile set and shuffle it."""
    bag = [make_tile(letter) for letter, (count, _) in TILE_DISTRIBUTION.items() for _ in range(count)]
    (rng or random).shuffle(bag)
    return bag

def draw_tiles(bag: Sequence[Tile], count: int) -> Tuple[List[Tile], List[Tile]]:
    """Draw up to `count` tiles from the end of the bag.

    Returns (drawn, remaining). A short bag yields a short draw.
    """
    remaining = list(bag)
    drawn: List[Tile] = []
    for _ in range(max(0, count)):
        if not remaining:
            break
        drawn.append(remaining.pop())
    return drawn, remaining

def return_and_reshuffle(bag: Sequence[Tile], returned: Sequence[Tile],
                         rng: Optional[random.Random] = None) -> List[Tile]:
    combined = list(bag) + [t.to_tile() for t in returned]
    (rng or random).shuffle(combined)
    return combined

# Rack

def _matches(rack_tile: Tile, wanted: Tile) -> bool:
    if rack_tile.isBlank:
        return wanted.isBlank
    return not wanted.isBlank and rack_tile.letter == wanted.letter.upper()

def remove_tiles(rack: Sequence[Tile], to_remove: Sequence[Tile]) -> Tuple[Rack, Rack]:
    """Remove one rack tile per requested tile.

    A blank request (a blank already given a letter on the board) consumes a
    rack blank; anything else consumes a rack tile with the same letter.
    Returns (remaining, consumed) and raises TilesNotOwned without touching
    `rack` if any request cannot be matched.
    """
    remaining = list(rack)
    consumed: Rack = []
    for wanted in to_remove:
        idx = next((i for i, t in enumerate(remaining) if _matches(t, wanted)), None)
        if idx is None:
            label = 'blank' if wanted.isBlank else repr(wanted.letter)
            raise TilesNotOwned(f'Played tiles do not match your rack (no {label} tile available).')
        consumed.append(remaining.pop(idx))
    return remaining, consumed

def refill_rack(rack: Sequence[Tile], drawn: Sequence[Tile]) -> Rack:
    refilled = list(rack) + list(drawn)
    assert len(refilled) <= RACK_SIZE, f'rack overflow: {len(refilled)} tiles'
    return refilled

def rack_value(rack: Sequence[Tile]) -> int:
    return sum(0 if t.isBlank else t.score for t in rack)

def rack_letters(rack: Sequence[Tile]) -> str:
    return ''.join(BLANK_LETTER if t.isBlank else t.letter for t in rack)
