from __future__ import annotations
import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Optional, Set

from .schemas import BLANK_LETTER, BotMoveProposal, WordSuggestions, WordValidation

logger = logging.getLogger(__name__)

# Word-list assistant for development and tests.
# Production games validate through the language-model assistant in ai.py.

DEFAULT_WORDS = {
    # Common short words (2-3 letters)
    'AA','AB','AD','AE','AG','AH','AI','AL','AM','AN','AR','AS','AT','AW','AX','AY',
    'BA','BE','BI','BO','BY',
    'DO','ED','EF','EH','EL','EM','EN','ER','ES','ET','EX',
    'FA','GO','HA','HE','HI','HM','HO','ID','IF','IN','IS','IT','JO','KA','KI','LA','LI','LO',
    'MA','ME','MI','MM','MO','MU','MY','NA','NE','NO','NU','OD','OE','OF','OH','OI','OM','ON','OP','OR','OS','OW','OX','OY',
    'PA','PE','PI','QI','RE','SH','SI','SO','TA','TI','TO','UH','UM','UN','UP','US','UT','WE','WO','XI','XU','YA','YE','YO',
    'ACT','ATE','BAT','CAT','COT','DOG','EAT','HAT','OAT','RAT','SAT','TAB','TAN','TEA','TOE','ZOO',
    # Some 4-7 letter common words
    'HELLO','WORLD','SCRABBLE','TILE','BOARD','WORD','PLAY','GAME','POINT','QUIZ','JAZZ','FUZZ','PUZZLE','BLANK',
    'CATS','COAT','FISH','BIRD','HOUSE','MOUSE','TABLE','CHAIR','ECHO','RHYTHM','STONE','NOTES','ONSET',
}

MAX_SUGGESTIONS = 5

def load_wordlist(path: Path) -> Set[str]:
    with open(path, 'r', encoding='utf-8') as f:
        words = {line.strip().upper() for line in f if len(line.strip()) >= 2 and line.strip().isalpha()}
    logger.info('Loaded %d words from %s', len(words), path)
    return words

class DictionaryService:
    def __init__(self, words: Optional[Iterable[str]] = None):
        # Store uppercase words
        self._words: Set[str] = {w.upper() for w in (words or DEFAULT_WORDS)}

    @classmethod
    def from_path(cls, path: Optional[str]) -> 'DictionaryService':
        if not path:
            return cls()
        try:
            return cls(load_wordlist(Path(path)))
        except OSError as e:
            logger.warning('Could not read word list %s (%s); using built-in words', path, e)
            return cls()

    def is_valid(self, word: str) -> bool:
        if not word or len(word) < 2:
            return False
        return word.upper() in self._words

    def playable_from(self, tiles: str) -> List[str]:
        """Words in the list that can be spelled from `tiles` (blanks are wildcards)."""
        available = Counter(tiles.upper())
        blanks = available.pop(BLANK_LETTER, 0)
        found = []
        for word in self._words:
            if len(word) > len(tiles):
                continue
            need = Counter(word)
            missing = sum(max(0, n - available[ch]) for ch, n in need.items())
            if missing <= blanks:
                found.append(word)
        found.sort(key=lambda w: (-len(w), w))
        return found

    # Assistant interface

    async def validate_word(self, word: str) -> WordValidation:
        if not word or len(word) < 2:
            return WordValidation(isValid=False, reason='Words must be at least 2 letters long.')
        if self.is_valid(word):
            return WordValidation(isValid=True, reason=f'{word.upper()} is in the word list.')
        return WordValidation(isValid=False, reason=f'{word.upper()} is not in the word list.')

    async def suggest_word(self, tiles: str, board_state: str) -> WordSuggestions:
        return WordSuggestions(suggestions=self.playable_from(tiles)[:MAX_SUGGESTIONS])

    async def generate_bot_move(self, tiles: str, board_state: str, difficulty: str) -> Optional[BotMoveProposal]:
        # No move search here; the bot passes.
        return None
