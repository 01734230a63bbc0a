"""Tests for the voting strategies and their shared helpers."""

import math
import random

import pytest

from models import AgentState, Skip, VoteAction
from strategies.aggressive import AggressiveStrategy
from strategies.base import (
    Strategy,
    find_safest_direction,
    get_option,
    score_direction_safety,
    should_play,
)
from strategies.conservative import ConservativeStrategy
from strategies.expected_value import (
    ExpectedValueStrategy,
    base_win_probability,
    calculate_expected_value,
    counter_win_probability,
)
from strategies.random_strategy import RandomStrategy
from strategies.underdog import UnderdogStrategy
from tests.scripted import make_state
from view import parse_game_state


def view_of(**kwargs):
    return parse_game_state(make_state(**kwargs))


class TestBaseHelpers:
    def test_get_option(self):
        assert get_option(None, 'x', 3) == 3
        assert get_option({'x': None}, 'x', 3) == 3
        assert get_option({'x': 0}, 'x', 3) == 0

    def test_should_play(self):
        view = view_of(min_bid=2)
        assert should_play(view, 2)
        assert not should_play(view, 1)
        assert not should_play(None, 10)

    def test_should_not_play_without_moves(self):
        # Head boxed in by its own body on a radius-1 board
        view = view_of(body=[(0, -1), (-1, 0), (0, 0), (1, -1)], radius=1)
        assert view.valid_directions == ()
        assert not should_play(view, 10)

    def test_safest_direction_prefers_open_space(self):
        view = view_of(body=[(2, -2)], radius=2)
        assert find_safest_direction(view) == 'sw'
        assert score_direction_safety('sw', view) == 5

    def test_protocol(self):
        for cls in (ExpectedValueStrategy, AggressiveStrategy, ConservativeStrategy,
                    UnderdogStrategy, RandomStrategy):
            assert isinstance(cls(), Strategy)
        assert not isinstance(object(), Strategy)


class TestWinProbability:
    @pytest.mark.parametrize("needed,dist,expected", [
        (1, 1, 0.9), (1, 3, 0.6), (1, 4, 0.3), (2, 2, 0.35), (2, 5, 0.2), (3, 1, 0.1),
    ])
    def test_base_bands(self, needed, dist, expected):
        assert base_win_probability(needed, dist) == expected

    def test_bands_decrease_with_distance_and_need(self):
        for needed in (1, 2, 3):
            probs = [base_win_probability(needed, d) for d in range(1, 8)]
            assert probs == sorted(probs, reverse=True)
        for dist in range(1, 8):
            probs = [base_win_probability(n, dist) for n in (1, 2, 3)]
            assert probs == sorted(probs, reverse=True)

    @pytest.mark.parametrize("needed,dist,expected", [
        (0, 1, 0.0), (1, 1, 0.9), (1, 2, 0.7), (1, 5, 0.5), (2, 2, 0.4), (2, 3, 0.25), (3, 1, 0.15), (4, 1, 0.1),
    ])
    def test_counter_bands(self, needed, dist, expected):
        assert counter_win_probability(needed, dist) == expected


class TestExpectedValue:
    def test_joining_an_empty_board(self):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(2, 0)]}, scores={'A': 2})
        team = view.get_team('A')
        assert calculate_expected_value(team, view, False, 1) == pytest.approx(4.5)
        assert calculate_expected_value(team, view, True, 1) == pytest.approx(9.0)

    def test_pools_split_the_payout(self):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(2, 0)]}, scores={'A': 2},
                       pools={'A': 4}, round=2)
        assert calculate_expected_value(view.get_team('A'), view, False, 1) == pytest.approx(3.0)
        # 0.1 * (0.7 + 0.3 * 0.4) * 10 / 2
        assert calculate_expected_value(view.get_team('B'), view) == pytest.approx(0.41)

    def test_no_value_without_a_path_or_once_won(self):
        view = view_of(fruits={'A': [(0, -1)]}, scores={'A': 3})
        assert calculate_expected_value(view.get_team('A'), view) == 0.0
        view = view_of(fruits={'A': [(0, -1)]})
        assert calculate_expected_value(view.get_team('A'), view, bfs_dist=math.inf) == 0.0
        assert calculate_expected_value(view.get_team('B'), view) == 0.0


class TestExpectedValueVote:
    def test_eats_adjacent_fruit(self, rng):
        view = view_of(fruits={'A': [(0, -1)]}, scores={'A': 2})
        vote = ExpectedValueStrategy().compute_vote(view, 10, AgentState(), rng)
        assert vote == VoteAction(direction='n', team='A', amount=1, reason=vote.reason, target=(0, -1))

    def test_votes_at_current_min_bid(self, rng):
        view = view_of(fruits={'A': [(0, -1)]}, min_bid=4)
        assert ExpectedValueStrategy().compute_vote(view, 10, AgentState(), rng).amount == 4

    def test_avoids_a_rivals_fruit(self, rng):
        view = view_of(fruits={'A': [(0, -3)], 'B': [(0, -1)]}, scores={'A': 2})
        vote = ExpectedValueStrategy().compute_vote(view, 10, AgentState(), rng)
        assert vote.team == 'A'
        assert vote.direction != 'n'

    def test_avoids_a_dead_end(self, rng):
        # 'up' enters a one-cell pocket walled in by the body
        body = [(0, 0), (1, 0), (1, -1), (1, -2), (0, -2), (-1, -2), (-1, -1)]
        view = view_of(body=body, fruits={'A': [(-1, 2)], 'B': [(2, 2)]}, radius=2,
                       grid_type='cartesian', direction='left')
        assert 'up' in view.valid_directions
        vote = ExpectedValueStrategy().compute_vote(view, 10, AgentState(), rng)
        assert vote.direction != 'up'

    def test_skips_without_fruit(self, rng):
        result = ExpectedValueStrategy().compute_vote(view_of(), 10, AgentState(), rng)
        assert result == Skip(reason='no_teams_with_fruits')

    def test_sits_out_when_broke(self, rng):
        view = view_of(fruits={'A': [(0, -1)]})
        assert ExpectedValueStrategy().compute_vote(view, 0, AgentState(), rng) is None

    def test_sits_out_finished_game(self, rng):
        view = parse_game_state(dict(make_state(fruits={'A': [(0, -1)]}).to_snapshot(),
                                     gameActive=False))
        assert ExpectedValueStrategy().compute_vote(view, 10, AgentState(), rng) is None

    def test_comparable_teams_are_picked_at_random(self):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(0, 1)]})
        strategy = ExpectedValueStrategy()
        teams = {strategy.compute_vote(view, 10, AgentState(), random.Random(seed)).team
                 for seed in range(40)}
        assert teams == {'A', 'B'}

    def test_same_seed_same_vote(self):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(0, 1)]})
        strategy = ExpectedValueStrategy()
        a = strategy.compute_vote(view, 10, AgentState(), random.Random(3))
        b = strategy.compute_vote(view, 10, AgentState(), random.Random(3))
        assert a == b

    def test_contrarian_backs_the_unpopular_team(self, rng):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(0, 1)]}, pools={'A': 5})
        analysis = ExpectedValueStrategy({'contrarian': True}).analyze_teams(view, None, rng)
        assert analysis.recommended_team.id == 'B'

    def test_defect_reason(self, rng):
        view = view_of(fruits={'A': [(0, -1)]}, scores={'A': 2})
        analysis = ExpectedValueStrategy().analyze_teams(view, 'B', rng)
        assert analysis.reason.startswith('defect(A')
        assert analysis.bfs_dist == 1
        assert analysis.bfs_closest_fruit == (0, -1)


class TestExpectedValueCounterBid:
    OUR_VOTE = VoteAction(direction='n', team='A', amount=1, target=(0, -1))

    def counter(self, rng, balance=20, budget=5, **kwargs):
        params = dict(fruits={'A': [(0, -1)], 'B': [(2, 0)]}, scores={'A': 2},
                      prize_pool=20, min_bid=2)
        params.update(kwargs)
        state = AgentState(current_team='A', round_spend=1, round_vote_count=1,
                           round_budget_remaining=budget)
        return ExpectedValueStrategy().should_counter_bid(view_of(**params), balance, state,
                                                          self.OUR_VOTE, rng)

    def test_counters_a_sure_thing(self, rng):
        vote = self.counter(rng)
        assert vote.direction == 'n'
        assert vote.team == 'A'
        assert vote.amount == 2
        assert vote.target == (0, -1)

    def test_declines_when_unaffordable(self, rng):
        assert self.counter(rng, balance=1) is None
        assert self.counter(rng, budget=1) is None

    def test_declines_when_fruit_is_far(self, rng):
        far = VoteAction(direction='n', team='A', amount=1, target=(0, -3))
        view = view_of(fruits={'A': [(0, -3)]}, scores={'A': 2}, prize_pool=100, min_bid=2)
        state = AgentState(round_vote_count=1, round_budget_remaining=5)
        assert ExpectedValueStrategy().should_counter_bid(view, 20, state, far, rng) is None

    def test_declines_when_return_is_thin(self, rng):
        # 0.9 * 12 / 2 = 5.4 does not beat 3 * 2
        assert self.counter(rng, prize_pool=12) is None


class TestAggressive:
    def test_backs_the_leader(self, rng):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(0, 2)]}, scores={'A': 1, 'B': 2})
        vote = AggressiveStrategy().compute_vote(view, 10, AgentState(), rng)
        assert vote.team == 'B'
        assert vote.direction == 's'

    def test_counters_within_limits(self, rng):
        vote = VoteAction(direction='n', team='A', amount=1)
        state = AgentState(round_budget_remaining=20)
        strategy = AggressiveStrategy()
        assert strategy.should_counter_bid(view_of(min_bid=2), 100, state, vote, rng).amount == 2
        # Three extensions deep
        assert strategy.should_counter_bid(view_of(min_bid=8), 100, state, vote, rng) is None
        # Cost above 30% of balance
        assert strategy.should_counter_bid(view_of(min_bid=2), 5, state, vote, rng) is None

    def test_extension_limit_option(self, rng):
        vote = VoteAction(direction='n', team='A', amount=1)
        state = AgentState(round_budget_remaining=20)
        strategy = AggressiveStrategy({'max_counter_extensions': 3})
        assert strategy.should_counter_bid(view_of(min_bid=8), 100, state, vote, rng) is not None


class TestConservative:
    def test_skips_when_behind(self, rng):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(0, 2)]}, scores={'B': 2})
        state = AgentState(current_team='A')
        assert ConservativeStrategy().compute_vote(view, 10, state, rng) is None
        assert ConservativeStrategy({'skip_if_behind': False}).compute_vote(view, 10, state, rng)

    def test_plays_safe_toward_leader(self, rng):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(0, 2)]}, scores={'B': 1})
        vote = ConservativeStrategy().compute_vote(view, 10, AgentState(current_team='B'), rng)
        assert vote.team == 'B'
        assert vote.amount == 1
        assert vote.direction in view.valid_directions


class TestUnderdog:
    def test_prefers_the_small_pool(self, rng):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(0, 2)]}, pools={'A': 8}, prize_pool=20)
        vote = UnderdogStrategy().compute_vote(view, 10, AgentState(), rng)
        assert vote.team == 'B'
        assert vote.reason.startswith('underdog')

    def test_falls_back_to_smallest_pool(self, rng):
        view = view_of(fruits={'A': [(0, -1)], 'B': [(0, 2)]}, pools={'A': 12, 'B': 11},
                       prize_pool=30)
        vote = UnderdogStrategy().compute_vote(view, 10, AgentState(), rng)
        assert vote.team == 'B'
        assert vote.reason == 'fallback_smallest_pool'


class TestRandom:
    def test_legal_and_seeded(self):
        view = view_of(body=[(0, 0), (0, -1)], fruits={'A': [(2, 0)]})
        strategy = RandomStrategy()
        votes = [strategy.compute_vote(view, 10, AgentState(), random.Random(seed)) for seed in range(20)]
        assert all(v.direction in view.valid_directions for v in votes)
        assert all(v.team == 'A' for v in votes)
        assert votes[0] == strategy.compute_vote(view, 10, AgentState(), random.Random(0))
