"""Tests for the game progression engine."""

import pytest

from skiblo.errors import InvalidNameError, NotEnoughPlayersError
from skiblo.game.engine import GameEngine, is_correct_guess, sanitize_settings
from skiblo.game.models import (
    DrawingPhase,
    GameMode,
    Phase,
    RoomSettings,
    RoundEndPhase,
    WordSelectionPhase,
)


def assert_invariants(engine):
    st = engine.state
    drawing = [p for p in st.roster if p.is_drawing]
    if st.phase in (Phase.WORD_SELECTION, Phase.DRAWING):
        assert len(drawing) == 1
        assert drawing[0].id == st.current_drawer_id
    else:
        assert drawing == []
    assert (st.word_to_guess is not None) == (st.phase in (Phase.DRAWING, Phase.ROUND_END))
    assert bool(st.word_options) == (st.phase == Phase.WORD_SELECTION)
    if st.phase != Phase.GAME_END:
        assert st.current_round <= st.total_rounds
    assert st.time_left >= 0
    if st.current_drawer_id is not None:
        assert st.current_drawer_id in st.roster


def play_ticks(engine, scheduler, n):
    for _ in range(n):
        scheduler.advance(1)
        assert_invariants(engine)


class TestJoinAndLobby:
    def test_initial_state_is_login(self, engine):
        assert engine.state.phase == Phase.LOGIN
        assert len(engine.state.roster) == 0
        assert engine.state.winner_id is None

    def test_create_join_makes_host_and_enters_lobby(self, engine):
        a = engine.submit_join("A", "🐱", mode="create")
        assert engine.state.phase == Phase.LOBBY
        assert a.is_host is True
        assert a.score == 0

    def test_join_mode_is_not_host(self, engine):
        p = engine.submit_join("B", mode="join")
        assert engine.state.phase == Phase.LOBBY
        assert p.is_host is False

    def test_later_joins_are_never_host(self, lobby):
        engine, a, b, c = lobby
        assert [p.is_host for p in engine.state.roster] == [True, False, False]

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected_without_mutation(self, engine, name):
        with pytest.raises(InvalidNameError):
            engine.submit_join(name)
        assert engine.state.phase == Phase.LOGIN
        assert len(engine.state.roster) == 0
        assert len(engine.state.transcript) == 0

    def test_start_requires_two_players(self, engine):
        engine.submit_join("A")
        before = len(engine.state.transcript)
        with pytest.raises(NotEnoughPlayersError):
            engine.start_game()
        assert engine.state.phase == Phase.LOBBY
        assert len(engine.state.transcript) == before

    def test_start_outside_lobby_is_noop(self, engine):
        assert engine.start_game() is False
        assert engine.state.phase == Phase.LOGIN

    def test_add_bot_only_in_lobby(self, lobby):
        engine, *_ = lobby
        bot = engine.add_bot()
        assert bot.name.endswith("(Bot)")
        assert len(engine.state.roster) == 4
        engine.start_game()
        assert engine.add_bot() is None


class TestSettings:
    def test_update_in_lobby(self, lobby):
        engine, *_ = lobby
        assert engine.update_settings(rounds=5, time_per_round=80, game_mode="Speed Mode")
        st = engine.state
        assert st.settings.rounds == 5
        assert st.total_rounds == 5
        assert st.settings.time_per_round == 80
        assert st.settings.game_mode is GameMode.SPEED

    def test_values_are_clamped(self):
        s = sanitize_settings(RoomSettings(), time_per_round=9999, rounds=0, word_count=50, hint_reveal_time=500)
        assert s.time_per_round == 300
        assert s.rounds == 1
        assert s.word_count == 10
        assert s.hint_reveal_time == 300

    def test_bad_values_fall_back(self):
        s = sanitize_settings(RoomSettings(), rounds="many", game_mode="Nope", difficulty="HARD", bogus=1)
        assert s.rounds == 3
        assert s.game_mode is GameMode.CLASSIC
        assert s.difficulty.value == "hard"

    def test_custom_words_normalized(self):
        s = sanitize_settings(RoomSettings(), custom_words=" Drop, drop ,,Stroopwafel")
        assert s.custom_words == ("Drop", "Stroopwafel")

    def test_frozen_after_start(self, lobby):
        engine, *_ = lobby
        engine.start_game()
        assert engine.update_settings(rounds=9) is False
        assert engine.state.settings.rounds == 2

    def test_custom_words_are_offered(self, engine):
        engine.submit_join("A")
        engine.submit_join("B")
        engine.update_settings(custom_words=["Drop"], word_count=10)
        engine.start_game()
        assert "Drop" in engine.state.word_options


class TestTurnFlow:
    def test_start_selects_first_drawer(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        st = engine.state
        assert st.phase == Phase.WORD_SELECTION
        assert st.current_round == 1
        assert st.current_drawer_id == a.id
        assert st.time_left == 15
        assert len(st.word_options) == 3
        assert st.word_to_guess is None
        assert "Ronde 1! A is aan de beurt" in st.transcript[-1].text
        assert_invariants(engine)

    def test_select_word_by_drawer(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        assert engine.select_word(a.id, "fiets") is True
        st = engine.state
        assert isinstance(st.stage, DrawingPhase)
        assert st.word_to_guess == "Fiets"
        assert st.word_length == 5
        assert st.time_left == 60
        assert st.word_options == ()
        assert "5 letters" in st.transcript[-1].text
        assert_invariants(engine)

    def test_select_word_out_of_turn_is_ignored(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        assert engine.select_word(b.id, "Fiets") is False
        assert engine.select_word(a.id, "Olifant") is False
        assert engine.state.phase == Phase.WORD_SELECTION

    def test_word_selection_timeout_picks_first_option(self, lobby, scheduler):
        engine, a, *_ = lobby
        engine.start_game()
        first = engine.state.word_options[0]
        play_ticks(engine, scheduler, 14)
        assert engine.state.phase == Phase.WORD_SELECTION
        assert engine.state.time_left == 1
        scheduler.advance(1)
        assert engine.state.phase == Phase.DRAWING
        assert engine.state.word_to_guess == first

    def test_ticks_are_noops_outside_active_phases(self, lobby):
        engine, *_ = lobby
        before = len(engine.state.transcript)
        engine.tick()
        assert engine.state.phase == Phase.LOBBY
        assert engine.state.time_left == 0
        assert len(engine.state.transcript) == before

    def test_wrong_guess_is_echoed(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        msg = engine.submit_guess(b.id, "auto")
        assert msg.text == "auto"
        assert msg.is_correct_guess is False
        assert b.score == 0

    def test_correct_guess_hides_the_word(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        msg = engine.submit_guess(b.id, "  FIETS ")
        assert msg.is_correct_guess is True
        assert "Fiets" not in msg.text and "FIETS" not in msg.text
        assert b.has_guessed is True
        assert b.score == 150
        assert a.score == 20

    def test_second_correct_guess_is_plain_chat(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        engine.submit_guess(b.id, "fiets")
        again = engine.submit_guess(b.id, "fiets")
        assert again.is_correct_guess is False
        assert again.text == "fiets"
        assert b.score == 150
        assert a.score == 20

    def test_drawer_cannot_score(self, lobby):
        engine, a, *_ = lobby
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        msg = engine.submit_guess(a.id, "Fiets")
        assert msg.is_correct_guess is False
        assert a.score == 0

    def test_guess_outside_drawing_is_chat(self, lobby):
        engine, a, b, c = lobby
        msg = engine.submit_guess(b.id, "hoi")
        assert msg.text == "hoi"
        assert engine.state.transcript[-1] is msg

    def test_unknown_or_blank_guess_is_ignored(self, lobby):
        engine, a, b, c = lobby
        n = len(engine.state.transcript)
        assert engine.submit_guess("ghost", "hallo") is None
        assert engine.submit_guess(b.id, "   ") is None
        assert engine.submit_guess(b.id, "\t\n") is None
        assert len(engine.state.transcript) == n

        assert engine.submit_guess(b.id, "hallo") is not None
        assert len(engine.state.transcript) == n + 1

    def test_everyone_guessed_ends_round_early(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        engine.submit_guess(b.id, "fiets")
        assert engine.state.phase == Phase.DRAWING
        engine.submit_guess(c.id, "Fiets")
        st = engine.state
        assert isinstance(st.stage, RoundEndPhase)
        assert st.time_left == 5
        assert a.score == 40
        reveals = [m for m in st.transcript if m.is_system and "Het woord was: Fiets" in m.text]
        assert len(reveals) == 1
        assert_invariants(engine)

    def test_has_guessed_reset_each_turn(self, lobby, scheduler):
        engine, a, b, c = lobby
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        engine.submit_guess(b.id, "fiets")
        engine.submit_guess(c.id, "fiets")
        play_ticks(engine, scheduler, 5)
        assert engine.state.phase == Phase.WORD_SELECTION
        assert not any(p.has_guessed for p in engine.state.roster)


class TestEndToEnd:
    def test_three_player_scenario(self, lobby, scheduler):
        engine, a, b, c = lobby
        engine.start_game()
        assert engine.state.current_drawer_id == a.id

        engine.select_word(a.id, "Fiets")
        play_ticks(engine, scheduler, 20)
        assert engine.state.time_left == 40

        engine.submit_guess(b.id, " fiets ")
        assert b.score == 117
        assert a.score == 20
        assert c.score == 0

        play_ticks(engine, scheduler, 40)
        st = engine.state
        assert st.phase == Phase.ROUND_END
        assert st.word_to_guess == "Fiets"
        assert "Tijd is om! Het woord was: Fiets" in st.transcript[-1].text

        play_ticks(engine, scheduler, 5)
        st = engine.state
        assert st.phase == Phase.WORD_SELECTION
        assert st.current_drawer_id == b.id
        assert st.current_round == 1

    def test_full_game_ends_with_winner(self, lobby, scheduler):
        engine, a, b, c = lobby
        engine.start_game()
        turns = 0
        while engine.state.phase != Phase.GAME_END:
            stage = engine.state.stage
            if isinstance(stage, WordSelectionPhase):
                turns += 1
                engine.select_word(stage.drawer_id, stage.word_options[0])
                if turns == 2:
                    engine.submit_guess(c.id, engine.state.word_to_guess)
            play_ticks(engine, scheduler, 1)

        st = engine.state
        assert turns == 6
        assert st.current_round == 2
        assert st.winner_id == c.id
        assert not scheduler.running
        assert "C wint" in st.transcript[-1].text

    def test_winner_tie_goes_to_first_in_roster(self, lobby, scheduler):
        engine, a, b, c = lobby
        engine.start_game()
        play_ticks(engine, scheduler, 6 * 80)
        st = engine.state
        assert st.phase == Phase.GAME_END
        assert st.winner_id == a.id

    def test_last_turn_goes_straight_to_game_end(self, engine, scheduler):
        a = engine.submit_join("A")
        b = engine.submit_join("B")
        engine.update_settings(rounds=1)
        engine.start_game()
        play_ticks(engine, scheduler, 80)
        assert engine.state.current_drawer_id == b.id
        b.score = 5
        play_ticks(engine, scheduler, 80)
        st = engine.state
        assert st.phase == Phase.GAME_END
        assert st.winner_id == b.id
        assert st.current_round == 1
        assert st.time_left == 0

    def test_reset_to_lobby(self, lobby, scheduler):
        engine, a, *_ = lobby
        assert engine.reset_to_lobby() is False
        engine.start_game()
        play_ticks(engine, scheduler, 6 * 80)
        a.score = 99
        assert engine.reset_to_lobby() is True
        st = engine.state
        assert st.phase == Phase.LOBBY
        assert st.current_round == 0
        assert all(p.score == 0 for p in st.roster)
        assert engine.start_game() is True


class TestParticipantRemoval:
    def test_remove_in_lobby(self, lobby):
        engine, a, b, c = lobby
        assert engine.remove_participant(b.id) is True
        assert engine.remove_participant(b.id) is False
        assert [p.name for p in engine.state.roster] == ["A", "C"]

    def test_guesser_leaving_can_complete_round(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        engine.submit_guess(b.id, "fiets")
        engine.remove_participant(c.id)
        # two players left is still a game, and everyone left has guessed
        assert engine.state.phase == Phase.ROUND_END

    def test_drawer_leaving_during_drawing_skips_turn(self, lobby):
        engine, a, b, c = lobby
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        engine.remove_participant(a.id)
        st = engine.state
        assert st.phase == Phase.WORD_SELECTION
        assert st.current_drawer_id == b.id
        assert st.current_round == 1
        assert any("Het woord was: Fiets" in m.text for m in st.transcript)
        assert b.is_host is True
        assert_invariants(engine)

    def test_last_drawer_leaving_wraps_round(self, lobby, scheduler):
        engine, a, b, c = lobby
        engine.start_game()
        play_ticks(engine, scheduler, 160)
        assert engine.state.current_drawer_id == c.id
        engine.remove_participant(c.id)
        st = engine.state
        assert st.phase == Phase.WORD_SELECTION
        assert st.current_drawer_id == a.id
        assert st.current_round == 2

    def test_drawer_leaving_during_round_end_keeps_rotation(self, lobby, scheduler):
        engine, a, b, c = lobby
        engine.start_game()
        play_ticks(engine, scheduler, 75)
        assert engine.state.phase == Phase.ROUND_END
        engine.remove_participant(a.id)
        assert engine.state.phase == Phase.ROUND_END
        assert engine.state.current_drawer_id is None
        play_ticks(engine, scheduler, 5)
        assert engine.state.current_drawer_id == b.id
        assert engine.state.current_round == 1

    def test_too_few_players_ends_game(self, engine):
        a = engine.submit_join("A")
        b = engine.submit_join("B")
        engine.start_game()
        engine.select_word(a.id, "Fiets")
        engine.submit_guess(b.id, "fiets")
        engine.remove_participant(a.id)
        st = engine.state
        assert st.phase == Phase.GAME_END
        assert st.winner_id == b.id


class TestListeners:
    def test_listeners_notified_on_change(self, lobby, scheduler):
        engine, a, *_ = lobby
        seen = []
        unsubscribe = engine.subscribe(lambda e: seen.append(e.state.phase))
        engine.start_game()
        scheduler.advance(1)
        assert seen == [Phase.WORD_SELECTION, Phase.WORD_SELECTION]
        unsubscribe()
        scheduler.advance(1)
        assert len(seen) == 2

    def test_failing_listener_does_not_break_engine(self, lobby):
        engine, *_ = lobby

        def boom(_):
            raise RuntimeError("boom")

        engine.subscribe(boom)
        assert engine.start_game() is True


def test_is_correct_guess():
    assert is_correct_guess("  fiets\n", "Fiets")
    assert not is_correct_guess("fietsen", "Fiets")


def test_engine_defaults_come_from_config():
    engine = GameEngine()
    assert engine.state.settings.time_per_round == 60
    assert engine.choose_duration == 15
    assert engine.reveal_duration == 5
