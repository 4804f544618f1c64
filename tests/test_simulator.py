"""
Tests for the game loop and batch statistics, run on the bundled deck.
"""

import pytest

from src.game.rng import GameRng
from src.game.simulator import (
    MAX_TURNS,
    BatchStats,
    GameResult,
    Simulator,
    compare_decks,
    run_batch,
    run_game,
    setup_game,
)
from src.game.turns import HAND_LIMIT, begin_turn, execute_turn


class TestSetup:
    def test_opening_hand(self, deck):
        state = setup_game(deck.cards, 42)
        assert 4 <= len(state.hand) <= 7
        assert len(state.hand) + len(state.library) == 60
        assert state.turn == 0
        assert state.life == 20
        assert state.opponent_life == 20

    def test_play_or_draw_from_first_rng_value(self, deck):
        for seed in range(10):
            expected = GameRng(seed).random() < 0.5
            assert setup_game(deck.cards, seed).on_the_play == expected


class TestTurns:
    def test_no_draw_on_the_play_turn_one(self, deck):
        state = setup_game(deck.cards, 42)
        state.on_the_play = True
        hand_before = len(state.hand)
        begin_turn(state)
        assert state.turn == 1
        assert len(state.hand) == hand_before

    def test_draw_on_the_draw_turn_one(self, deck):
        state = setup_game(deck.cards, 42)
        state.on_the_play = False
        hand_before = len(state.hand)
        begin_turn(state)
        assert len(state.hand) == hand_before + 1

    def test_draw_from_empty_library_is_a_noop(self, state):
        assert len(state.library) == 0
        begin_turn(state)
        assert state.turn == 2
        assert len(state.hand) == 0

    def test_hand_size_after_turn(self, deck):
        state = setup_game(deck.cards, 7)
        for _ in range(6):
            execute_turn(state)
            assert len(state.hand) <= HAND_LIMIT

    def test_cards_are_conserved(self, deck):
        for seed in range(20):
            result = run_game(deck.cards, seed)
            assert result.final_state.card_count() == 60


class TestRunGame:
    def test_deterministic(self, deck):
        a = run_game(deck.cards, 42)
        b = run_game(deck.cards, 42)
        assert a.win_turn == b.win_turn
        assert a.ubg_turn == b.ubg_turn
        assert a.to_dict() == b.to_dict()

    def test_turn_ceiling(self, deck):
        result = Simulator(max_turns=1).run_game(deck.cards, 3)
        assert result.final_state.turn == 1
        assert not result.won

    def test_win_means_opponent_dead(self, deck):
        for seed in range(20):
            result = run_game(deck.cards, seed)
            if result.won:
                assert result.final_state.opponent_life <= 0
                assert result.win_turn == result.final_state.turn
            else:
                assert result.final_state.turn == MAX_TURNS

    def test_to_dict(self, deck):
        data = run_game(deck.cards, 1).to_dict()
        assert set(data) == {"seed", "win_turn", "ubg_turn", "on_the_play", "board"}
        assert data["board"]["turn"] >= 1


class TestBatch:
    def test_batch_stats(self, deck):
        stats = run_batch(deck.cards, 20, seed=1000)

        assert stats.games == 20
        assert stats.base_seed == 1000
        assert stats.wins + stats.no_win == 20
        assert sum(stats.turn_distribution.values()) == stats.wins
        assert all(1 <= turn <= MAX_TURNS for turn in stats.turn_distribution)

    def test_batch_matches_individual_games(self, deck):
        stats = run_batch(deck.cards, 5, seed=200)
        wins = [run_game(deck.cards, 200 + i).win_turn for i in range(5)]
        assert stats.wins == sum(1 for w in wins if w is not None)

    def test_batch_reproducible(self, deck):
        assert run_batch(deck.cards, 10, 5).to_dict() == run_batch(deck.cards, 10, 5).to_dict()

    def test_unseeded_batch_reports_seed(self, deck):
        stats = run_batch(deck.cards, 2)
        assert stats.base_seed is not None

    def test_progress_bar(self, deck, capsys):
        shown = run_batch(deck.cards, 4, seed=8, show_progress=True)
        assert "Simulating games" in capsys.readouterr().err
        assert shown.to_dict() == run_batch(deck.cards, 4, seed=8).to_dict()

    def test_rejects_empty_batch(self, deck):
        with pytest.raises(ValueError):
            run_batch(deck.cards, 0, seed=1)

    def test_compare_uses_same_seeds(self, deck):
        first, second = compare_decks(deck.cards, deck.cards, 10, seed=77)
        assert first.to_dict() == second.to_dict()


class TestBatchStats:
    def test_empty(self):
        stats = BatchStats()
        assert stats.win_rate == 0.0
        assert stats.avg_win_turn is None
        assert stats.avg_ubg_turn is None

    def test_averages(self, deck):
        stats = BatchStats(base_seed=0)
        state = setup_game(deck.cards, 0)
        stats.add(GameResult(seed=0, win_turn=4, ubg_turn=2, on_the_play=True, final_state=state))
        stats.add(GameResult(seed=1, win_turn=6, ubg_turn=None, on_the_play=False, final_state=state))
        stats.add(GameResult(seed=2, win_turn=None, ubg_turn=4, on_the_play=True, final_state=state))

        assert stats.wins == 2
        assert stats.no_win == 1
        assert stats.avg_win_turn == 5.0
        assert stats.avg_ubg_turn == 3.0
        assert stats.turn_distribution == {4: 1, 6: 1}
        assert stats.win_rate == pytest.approx(2 / 3)
