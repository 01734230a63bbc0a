"""Tests for snapshot parsing into ParsedView."""

import pytest

from models import CARTESIAN, GridSpec
from tests.scripted import make_state
from view import find_closest_fruit, get_team_by_id, parse_game_state


def minimal_snapshot(**extra):
    snapshot = {'snake': {'body': [{'q': 0, 'r': 0}]}}
    snapshot.update(extra)
    return snapshot


class TestParseGameState:
    def test_from_game_state(self):
        state = make_state(body=[(0, 0), (0, 1)], fruits={'A': [(0, -2)], 'B': [(2, 0), (1, -1)]},
                           scores={'A': 1}, pools={'B': 4}, round=3, prize_pool=14)
        view = parse_game_state(state)
        assert view.head == (0, 0)
        assert view.body == ((0, 0), (0, 1))
        assert view.snake_length == 2
        assert view.round == 3
        assert view.prize_pool == 14
        assert view.grid_radius == 3
        assert view.grid_type == 'hexagonal'
        assert [t.id for t in view.teams] == ['A', 'B']
        assert view.get_team('A').score == 1
        assert view.get_team('B').pool == 4
        assert view.get_team('B').closest_fruit.fruit == (1, -1)
        assert view.get_team('B').closest_fruit.distance == 1
        assert 's' not in view.valid_directions

    def test_from_wire_dict(self):
        view = parse_game_state(make_state(fruits={'A': [(0, -2)]}).to_snapshot())
        assert view.fruits['A'] == ((0, -2),)
        assert view.fruit_owner((0, -2)) == 'A'
        assert view.all_fruits() == [(0, -2)]

    def test_defaults(self):
        view = parse_game_state(minimal_snapshot())
        assert view.active
        assert view.round == 0
        assert view.prize_pool == 10
        assert view.min_bid == 1
        assert view.initial_min_bid == 1
        assert view.countdown == 10
        assert view.fruits_to_win == 3
        assert view.grid == GridSpec(radius=3)
        assert view.teams == ()
        assert view.extensions == 0
        assert not view.in_extension_window
        assert view.winner is None

    def test_zero_prize_pool_uses_default(self):
        assert parse_game_state(minimal_snapshot(prizePool=0)).prize_pool == 10

    @pytest.mark.parametrize("countdown,in_window", [(0, False), (3, True), (5, True), (6, False)])
    def test_extension_window(self, countdown, in_window):
        view = parse_game_state(minimal_snapshot(countdown=countdown))
        assert view.countdown == countdown
        assert view.in_extension_window is in_window

    @pytest.mark.parametrize("min_bid,initial,expected", [(1, 1, 0), (2, 1, 1), (4, 1, 2), (8, 2, 2)])
    def test_extensions_from_min_bid(self, min_bid, initial, expected):
        view = parse_game_state(minimal_snapshot(minBid=min_bid, config={'initialMinBid': initial}))
        assert view.extensions == expected

    def test_grid_type_from_config(self):
        view = parse_game_state(minimal_snapshot(config={'gridType': CARTESIAN}, gridSize={'radius': 2}))
        assert view.grid == GridSpec(type=CARTESIAN, radius=2)
        assert view.valid_directions == ('up', 'down', 'left', 'right')

    def test_list_coordinates(self):
        view = parse_game_state({'snake': {'body': [[1, 0], [1, 1]]}, 'apples': {'A': [[0, 0]]}})
        assert view.head == (1, 0)
        assert view.fruits['A'] == ((0, 0),)

    def test_inactive_game(self):
        assert not parse_game_state(minimal_snapshot(gameActive=False, winner='A')).active


class TestUnusableSnapshots:
    @pytest.mark.parametrize("raw", [
        None,
        [],
        'snapshot',
        {},
        {'snake': {}},
        {'snake': {'body': []}},
        {'snake': {'body': [{'q': 'a', 'r': 0}]}},
        {'snake': {'body': [{'q': True, 'r': 0}]}},
        {'snake': {'body': [{'q': 0}]}},
        {'snake': {'body': [[0, 0, 0]]}},
        {'snake': 'body'},
        {'snake': {'body': [{'q': 0, 'r': 0}]}, 'minBid': 10 ** 400},
        {'snake': {'body': [{'q': 0, 'r': 0}]}, 'gridSize': {'radius': float('inf')}},
        {'snake': {'body': [{'q': 0, 'r': 0}]}, 'round': float('inf')},
        {'snake': {'body': [{'q': 0, 'r': 0}]}, 'prizePool': float('nan')},
    ])
    def test_returns_none(self, raw):
        assert parse_game_state(raw) is None

    def test_error_marker(self):
        assert parse_game_state(minimal_snapshot(error='server down')) is None

    def test_unknown_grid_type(self):
        assert parse_game_state(minimal_snapshot(gridSize={'type': 'triangle'})) is None

    def test_malformed_fruit(self):
        assert parse_game_state(minimal_snapshot(apples={'A': [{'q': 1}]})) is None
        assert parse_game_state(minimal_snapshot(apples={'A': 'nope'})) is None

    def test_malformed_number(self):
        assert parse_game_state(minimal_snapshot(minBid='lots')) is None


class TestHelpers:
    def test_closest_fruit_ties_keep_list_order(self):
        grid = GridSpec(radius=3)
        closest = find_closest_fruit((0, 0), {'A': ((0, -2), (2, 0), (0, 1))}, 'A', grid)
        assert closest.fruit == (0, 1)
        assert closest.distance == 1
        closest = find_closest_fruit((0, 0), {'A': ((0, -2), (2, 0))}, 'A', grid)
        assert closest.fruit == (0, -2)

    def test_closest_fruit_without_fruit(self):
        assert find_closest_fruit((0, 0), {}, 'A', GridSpec()) is None

    def test_get_team_by_id(self):
        view = parse_game_state(make_state())
        assert get_team_by_id(view, 'A').name == 'Blue'
        assert get_team_by_id(view, 'Q') is None
        assert get_team_by_id(view, None) is None
