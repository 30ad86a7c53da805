"""Tests for the turn state machine."""

import random

import pytest

from wordclash import turns
from wordclash.errors import (
    AssistantUnavailable, BagTooSmall, EmptyMove, GameNotActive, HintAlreadyUsed,
    InvalidPlacement, InvalidWord, NotParticipant, NotYourTurn, TilesNotOwned,
)
from wordclash.game_logic import make_tile, rack_letters
from wordclash.schemas import Tile

from factories import (
    BOT, P1, P2, StubAssistant, board_with, make_session, placed, proposal,
    rack, run, word_at,
)


def play(session, uid, tiles, assistant=None):
    return run(turns.play(session, uid, tiles, assistant or StubAssistant()))


class TestNewGame:
    def test_racks_are_dealt_from_one_bag(self, rng):
        session = turns.new_game([P1, P2], {P1: 'Alice'}, 'Hard', rng=rng)
        assert len(session.playerData[P1].rack) == 7
        assert len(session.playerData[P2].rack) == 7
        assert len(session.tileBag) == 86
        assert turns.tile_count(session) == 100
        assert session.currentTurn == P1
        assert session.status == 'active'
        assert session.difficulty == 'Hard'
        assert session.playerData[P1].displayName == 'Alice'
        assert session.playerData[P2].displayName == P2

    def test_needs_two_distinct_players(self):
        with pytest.raises(ValueError):
            turns.new_game([P1, P1])


class TestPlay:
    def test_opening_play(self, session):
        result = play(session, P1, word_at('CAT', 7, 7))
        assert result.playerData[P1].score == 10
        assert set(result.board) == {'7-7', '7-8', '7-9'}
        assert len(result.playerData[P1].rack) == 7
        assert len(result.tileBag) == 12
        assert result.currentTurn == P2
        assert result.consecutivePasses == 0
        assert result.lastMove.words == ['CAT']
        assert result.lastMove.score == 10

    def test_words_are_extracted_once(self, session, monkeypatch):
        calls = []
        real = turns.extract_words

        def counting(*args):
            calls.append(args)
            return real(*args)

        monkeypatch.setattr(turns, 'extract_words', counting)
        monkeypatch.setattr('wordclash.scoring.extract_words', counting)
        result = play(session, P1, word_at('CAT', 7, 7))
        assert result.lastMove.score == 10
        assert len(calls) == 1

    def test_input_session_is_untouched(self, session):
        before = session.model_dump()
        play(session, P1, word_at('CAT', 7, 7))
        assert session.model_dump() == before

    def test_rack_values_override_claimed_scores(self, session):
        tiles = [t.model_copy(update={'score': 99}) for t in word_at('CAT', 7, 7)]
        assert play(session, P1, tiles).playerData[P1].score == 10

    def test_blank_play(self):
        session = make_session(rack1='?ATSDOG')
        tiles = [placed('C', 7, 7, blank=True)] + word_at('AT', 7, 8)
        result = play(session, P1, tiles)
        assert result.playerData[P1].score == 4
        assert result.board['7-7'].isBlank
        assert result.board['7-7'].letter == 'C'
        assert not any(t.isBlank for t in result.playerData[P1].rack)

    def test_every_word_is_validated(self):
        board = board_with(*word_at('CAT', 7, 7))
        session = make_session(rack1='ONXXXXX', board=board)
        assistant = StubAssistant()
        play(session, P1, [placed('O', 8, 8), placed('N', 8, 9)], assistant)
        assert assistant.validated == ['ON', 'AO', 'TN']

    def test_play_resets_consecutive_passes(self):
        session = make_session(consecutivePasses=1)
        assert play(session, P1, word_at('CAT', 7, 7)).consecutivePasses == 0

    def test_not_your_turn(self, session):
        with pytest.raises(NotYourTurn):
            play(session, P2, word_at('QI', 7, 7))

    def test_outsider_is_rejected(self, session):
        with pytest.raises(NotParticipant):
            play(session, 'mallory', word_at('CAT', 7, 7))

    def test_finished_game(self):
        session = make_session(status='finished')
        with pytest.raises(GameNotActive):
            play(session, P1, word_at('CAT', 7, 7))

    def test_no_tiles(self, session):
        with pytest.raises(EmptyMove):
            play(session, P1, [])

    def test_invalid_word_carries_word_and_reason(self, session):
        with pytest.raises(InvalidWord) as excinfo:
            play(session, P1, word_at('CAT', 7, 7), StubAssistant(valid={'DOG'}))
        assert excinfo.value.word == 'CAT'
        assert excinfo.value.reason == 'Not in the dictionary.'
        assert session.board == {}

    def test_unowned_tile(self):
        session = make_session(rack1='Q')
        with pytest.raises(TilesNotOwned):
            play(session, P1, [placed('Z', 7, 7)])
        assert session.board == {}
        assert rack_letters(session.playerData[P1].rack) == 'Q'

    def test_tiles_off_one_line(self, session):
        with pytest.raises(InvalidPlacement):
            play(session, P1, [placed('C', 7, 7), placed('A', 8, 8)])

    def test_gap_in_line(self, session):
        with pytest.raises(InvalidPlacement):
            play(session, P1, [placed('C', 7, 7), placed('T', 7, 9)])

    def test_single_letter_is_not_a_word(self, session):
        with pytest.raises(InvalidPlacement):
            play(session, P1, [placed('C', 7, 7)])

    def test_opening_word_must_cover_centre(self, session):
        with pytest.raises(InvalidPlacement):
            play(session, P1, word_at('CAT', 0, 0))

    def test_later_word_must_touch_the_board(self):
        session = make_session(board=board_with(*word_at('CAT', 7, 7)))
        with pytest.raises(InvalidPlacement):
            play(session, P1, word_at('DOG', 0, 0))

    def test_validator_outage_fails_cleanly(self, session):
        with pytest.raises(AssistantUnavailable):
            play(session, P1, word_at('CAT', 7, 7), StubAssistant(fail=True))
        assert session.board == {}

    def test_going_out_with_empty_bag_ends_the_game(self):
        session = make_session(rack1='CAT', rack2='QUIZ', bag='', scores=(5, 5))
        result = play(session, P1, word_at('CAT', 7, 7))
        assert result.status == 'finished'
        # 5 + 10 for CAT + 22 from the opponent's rack
        assert result.playerData[P1].score == 37
        assert result.playerData[P2].score == 5 - 22
        assert result.winner == P1
        assert result.currentTurn == P1

    def test_empty_rack_with_tiles_in_bag_continues(self):
        session = make_session(rack1='CAT', bag='EE')
        result = play(session, P1, word_at('CAT', 7, 7))
        assert result.status == 'active'
        assert rack_letters(result.playerData[P1].rack) == 'EE'

    def test_bingo(self):
        session = make_session(rack1='NOTESAR')
        result = play(session, P1, word_at('NOTESAR', 7, 4))
        assert result.playerData[P1].score == 64


class TestPass:
    def test_pass_switches_turn(self, session):
        result = turns.pass_turn(session, P1)
        assert result.currentTurn == P2
        assert result.consecutivePasses == 1
        assert result.status == 'active'

    def test_pass_out_of_turn(self, session):
        with pytest.raises(NotYourTurn):
            turns.pass_turn(session, P2)

    def test_two_passes_end_the_game(self):
        session = make_session(scores=(12, 30))
        result = turns.pass_turn(turns.pass_turn(session, P1), P2)
        assert result.status == 'finished'
        assert result.winner == P2

    def test_double_pass_keeps_stored_scores(self):
        session = make_session(rack1='QZ', rack2='E', scores=(10, 8))
        result = turns.pass_turn(turns.pass_turn(session, P1), P2)
        assert result.playerData[P1].score == 10
        assert result.playerData[P2].score == 8
        assert result.winner == P1

    def test_double_pass_tie_is_a_draw(self):
        session = make_session(scores=(7, 7))
        result = turns.pass_turn(turns.pass_turn(session, P1), P2)
        assert result.winner == 'draw'

    def test_no_moves_after_game_over(self):
        session = make_session()
        finished = turns.pass_turn(turns.pass_turn(session, P1), P2)
        with pytest.raises(GameNotActive):
            turns.pass_turn(finished, finished.currentTurn)


class TestExchange:
    def test_exchange(self, session, rng):
        result = turns.exchange(session, P1, rack('CA'), rng)
        player_rack = result.playerData[P1].rack
        assert len(player_rack) == 7
        assert 'C' not in rack_letters(player_rack)
        assert len(result.tileBag) == 15
        assert any(t.letter == 'C' for t in result.tileBag)
        assert result.currentTurn == P2
        assert turns.tile_count(result) == turns.tile_count(session)

    def test_exchange_resets_passes(self, rng):
        session = make_session(consecutivePasses=1)
        assert turns.exchange(session, P1, rack('C'), rng).consecutivePasses == 0

    def test_bag_too_small(self):
        session = make_session(bag='EEEEE')
        with pytest.raises(BagTooSmall):
            turns.exchange(session, P1, rack('C'))
        assert len(session.tileBag) == 5
        assert rack_letters(session.playerData[P1].rack) == 'CATSDOG'

    def test_exchange_unowned(self, session):
        with pytest.raises(TilesNotOwned):
            turns.exchange(session, P1, [make_tile('Z')])

    def test_exchange_blank(self, rng):
        session = make_session(rack1='?ATSDOG')
        result = turns.exchange(session, P1, [Tile(letter=' ', isBlank=True)], rng)
        assert sum(t.isBlank for t in result.tileBag) == 1

    def test_exchange_nothing(self, session):
        with pytest.raises(EmptyMove):
            turns.exchange(session, P1, [])


class TestBotMove:
    @pytest.fixture
    def bot_session(self):
        return make_session(players=(P1, BOT), current=BOT, rack2='CATSDOG')

    def test_no_proposal_is_a_pass(self, bot_session):
        result = run(turns.bot_move(bot_session, StubAssistant(), BOT))
        assert result.currentTurn == P1
        assert result.consecutivePasses == 1
        assert result.board == {}

    def test_bot_plays_proposal(self, bot_session):
        assistant = StubAssistant(bot_moves=[proposal('cat', 7, 7)])
        result = run(turns.bot_move(bot_session, assistant, BOT))
        assert result.playerData[BOT].score == 10
        assert set(result.board) == {'7-7', '7-8', '7-9'}
        assert result.currentTurn == P1

    def test_bot_reuses_board_letters(self):
        board = board_with(*word_at('CAT', 7, 7))
        session = make_session(players=(P1, BOT), current=BOT, rack2='SXXXXXX', board=board)
        assistant = StubAssistant(bot_moves=[proposal('CATS', 7, 7)])
        result = run(turns.bot_move(session, assistant, BOT))
        assert result.lastMove.words == ['CATS']
        assert result.playerData[BOT].score == 6

    def test_bot_uses_blank_for_missing_letter(self):
        session = make_session(players=(P1, BOT), current=BOT, rack2='?ATXXXX')
        assistant = StubAssistant(bot_moves=[proposal('CAT', 7, 7)])
        result = run(turns.bot_move(session, assistant, BOT))
        assert result.board['7-7'].isBlank
        assert result.playerData[BOT].score == 4

    def test_missing_tile_becomes_a_pass(self, bot_session):
        assistant = StubAssistant(bot_moves=[proposal('ZAP', 7, 7)])
        result = run(turns.bot_move(bot_session, assistant, BOT))
        assert result.board == {}
        assert result.consecutivePasses == 1
        assert rack_letters(result.playerData[BOT].rack) == 'CATSDOG'

    def test_off_board_proposal_becomes_a_pass(self, bot_session):
        assistant = StubAssistant(bot_moves=[proposal('CAT', 7, 13)])
        result = run(turns.bot_move(bot_session, assistant, BOT))
        assert result.board == {}
        assert result.currentTurn == P1

    def test_conflicting_board_letter_becomes_a_pass(self):
        board = board_with(*word_at('CAT', 7, 7))
        session = make_session(players=(P1, BOT), current=BOT, rack2='DOGSXXX', board=board)
        assistant = StubAssistant(bot_moves=[proposal('DOGS', 7, 7)])
        result = run(turns.bot_move(session, assistant, BOT))
        assert result.board == board

    def test_invalid_bot_word_becomes_a_pass(self, bot_session):
        assistant = StubAssistant(valid={'DOG'}, bot_moves=[proposal('CAT', 7, 7)])
        result = run(turns.bot_move(bot_session, assistant, BOT))
        assert result.board == {}
        assert result.lastMove.action == 'pass'

    def test_generator_failure_becomes_a_pass(self, bot_session):
        result = run(turns.bot_move(bot_session, StubAssistant(fail=True), BOT))
        assert result.lastMove.action == 'pass'

    def test_bot_pass_can_end_the_game(self):
        session = make_session(players=(P1, BOT), current=BOT, consecutivePasses=1, scores=(3, 9))
        result = run(turns.bot_move(session, StubAssistant(), BOT))
        assert result.status == 'finished'
        assert result.winner == BOT

    def test_only_on_the_bots_turn(self):
        session = make_session(players=(P1, BOT))
        with pytest.raises(NotYourTurn):
            run(turns.bot_move(session, StubAssistant(), BOT))


class TestHint:
    def test_hint_marks_usage(self, session):
        result, suggestions = run(turns.use_hint(session, P2, StubAssistant(suggestions=['QUIZ'])))
        assert suggestions == ['QUIZ']
        assert result.playerData[P2].hintUsed
        assert not session.playerData[P2].hintUsed

    def test_one_hint_per_game(self, session):
        result, _ = run(turns.use_hint(session, P1, StubAssistant()))
        with pytest.raises(HintAlreadyUsed):
            run(turns.use_hint(result, P1, StubAssistant()))

    def test_hint_for_outsider(self, session):
        with pytest.raises(NotParticipant):
            run(turns.use_hint(session, 'mallory', StubAssistant()))

    def test_hint_outage(self, session):
        with pytest.raises(AssistantUnavailable):
            run(turns.use_hint(session, P1, StubAssistant(fail=True)))


def test_tiles_are_conserved_through_a_game():
    rng = random.Random(7)
    session = turns.new_game([P1, P2], rng=rng)
    history = [session]

    first_two = session.playerData[P1].rack[:2]
    tiles = [
        placed('E' if t.isBlank else t.letter, 7, 7 + i, blank=t.isBlank)
        for i, t in enumerate(first_two)
    ]
    session = play(session, P1, tiles)
    history.append(session)
    assert session.currentTurn == P2

    session = turns.exchange(session, P2, session.playerData[P2].rack[:3], rng)
    history.append(session)
    assert session.currentTurn == P1

    session = turns.pass_turn(session, P1)
    history.append(session)
    session = turns.pass_turn(session, P2)
    history.append(session)

    assert session.status == 'finished'
    assert all(turns.tile_count(s) == 100 for s in history)
