from __future__ import annotations
from typing import Optional


class GameError(Exception):
    """Base for every rejected game transition.

    A GameError always means the session was left untouched.
    """
    code = 'game_error'
    status_code = 400
    default_message = 'The move could not be applied.'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'error': self.code, 'message': self.message}


class NotYourTurn(GameError):
    code = 'not_your_turn'
    status_code = 409
    default_message = "It's not your turn."


class GameNotActive(GameError):
    code = 'game_not_active'
    status_code = 409
    default_message = 'The game is not currently active.'


class InvalidPlacement(GameError):
    code = 'invalid_placement'
    default_message = 'Tiles must form a single continuous line.'


class InvalidWord(GameError):
    code = 'invalid_word'

    def __init__(self, word: str, reason: str = ''):
        self.word = word
        self.reason = reason
        super().__init__(f'"{word}" is not a valid word. {reason}'.strip())

    def to_dict(self) -> dict:
        return {**super().to_dict(), 'word': self.word, 'reason': self.reason}


class TilesNotOwned(GameError):
    code = 'tiles_not_owned'
    default_message = 'Played tiles do not match your rack.'


class BagTooSmall(GameError):
    code = 'bag_too_small'
    default_message = 'Not enough tiles left in the bag to exchange.'


class EmptyMove(GameError):
    code = 'empty_move'
    default_message = 'No tiles selected.'


class NotParticipant(GameError):
    code = 'not_participant'
    status_code = 403
    default_message = 'You are not a participant in this game.'


class HintAlreadyUsed(GameError):
    code = 'hint_already_used'
    status_code = 409
    default_message = 'You have already used your hint for this game.'


class GameNotFound(GameError):
    code = 'game_not_found'
    status_code = 404
    default_message = 'Game not found.'


class AssistantUnavailable(GameError):
    code = 'assistant_unavailable'
    status_code = 503
    default_message = 'Word validation is unavailable right now. Please try again.'


class ConcurrentUpdate(GameError):
    code = 'concurrent_update'
    status_code = 409
    default_message = 'The game was updated by someone else. Please retry.'
