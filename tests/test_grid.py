"""Tests for grid geometry, BFS pathfinding and flood fill."""

import math

import pytest

from grid import (
    best_direction_toward,
    bfs_distance,
    count_exits,
    flood_fill_size,
    get_neighbors,
    grid_distance,
    hex_distance,
    is_in_bounds,
    manhattan_distance,
    opposite,
    step,
    total_cells,
    valid_directions,
)
from models import CARTESIAN, HEXAGONAL, GridSpec

HEX2 = GridSpec(type=HEXAGONAL, radius=2)
HEX3 = GridSpec(type=HEXAGONAL, radius=3)
CART1 = GridSpec(type=CARTESIAN, radius=1)
CART2 = GridSpec(type=CARTESIAN, radius=2)

# A vertical wall through the middle of a 5x5 board, head at the top
WALL = ((0, -2), (0, -1), (0, 0), (0, 1), (0, 2))


class TestGeometry:
    def test_hex_distance(self):
        assert hex_distance((0, 0), (2, -1)) == 2
        assert hex_distance((1, -1), (-1, 1)) == 2
        assert hex_distance((0, 0), (0, 0)) == 0

    def test_manhattan_distance(self):
        assert manhattan_distance((0, 0), (2, -1)) == 3

    def test_grid_distance_follows_grid_type(self):
        assert grid_distance((0, 0), (2, -1), HEXAGONAL) == 2
        assert grid_distance((0, 0), (2, -1), CARTESIAN) == 3

    def test_bounds(self):
        assert is_in_bounds(2, -2, 2)
        assert not is_in_bounds(2, 1, 2)  # |q+r| = 3
        assert is_in_bounds(2, 2, 2, CARTESIAN)
        assert not is_in_bounds(3, 0, 2, CARTESIAN)

    @pytest.mark.parametrize("radius,grid_type,expected", [
        (2, HEXAGONAL, 19),
        (3, HEXAGONAL, 37),
        (4, HEXAGONAL, 61),
        (2, CARTESIAN, 25),
    ])
    def test_total_cells(self, radius, grid_type, expected):
        assert total_cells(radius, grid_type) == expected
        assert len(list(GridSpec(type=grid_type, radius=radius).cells())) == expected

    def test_step_and_opposite(self):
        assert step((0, 0), 'ne') == (1, -1)
        assert step((0, 0), 'left') == (-1, 0)
        for direction in ('n', 'ne', 'se', 's', 'sw', 'nw', 'up', 'left'):
            assert step(step((0, 0), direction), opposite(direction)) == (0, 0)

    def test_neighbors_at_corner(self):
        neighbors = get_neighbors((2, -2), HEX2)
        assert [d for d, _ in neighbors] == ['s', 'sw', 'nw']

    def test_neighbors_in_canonical_order(self):
        assert [d for d, _ in get_neighbors((0, 0), HEX2)] == ['n', 'ne', 'se', 's', 'sw', 'nw']
        assert [d for d, _ in get_neighbors((0, 0), CART1)] == ['up', 'down', 'left', 'right']


class TestMoves:
    def test_valid_directions_skip_the_neck(self):
        assert valid_directions((0, 0), [(0, 0), (0, -1)], HEX2) == ['ne', 'se', 's', 'sw', 'nw']

    def test_valid_directions_respect_bounds(self):
        assert valid_directions((2, -2), [(2, -2)], HEX2) == ['s', 'sw', 'nw']

    def test_count_exits(self):
        assert count_exits((0, 0), [], HEX2) == 6
        assert count_exits((0, 0), [(0, -1)], HEX2) == 5
        assert count_exits((0, 0), [], HEX2, exclude_dir='s') == 5

    def test_best_direction_toward(self):
        assert best_direction_toward((0, 0), (0, -2), ['s', 'n', 'ne'], HEX2) == 'n'
        assert best_direction_toward((0, 0), (0, -2), [], HEX2) is None


class TestBfs:
    def test_open_board_matches_grid_distance(self):
        for cell in HEX3.cells():
            if cell == (0, 0):
                continue
            result = bfs_distance((0, 0), cell, [(0, 0)], HEX3)
            assert result.distance == HEX3.distance((0, 0), cell)
            assert result.first_dir is not None

    def test_first_step_lies_on_a_shortest_path(self):
        result = bfs_distance((0, 0), (2, -2), [(0, 0)], HEX3)
        first = step((0, 0), result.first_dir)
        assert HEX3.distance(first, (2, -2)) == result.distance - 1

    def test_start_is_goal(self):
        result = bfs_distance((1, 1), (1, 1), [], HEX3)
        assert result.distance == 0
        assert result.first_dir is None

    def test_routes_around_the_body(self):
        result = bfs_distance((0, 0), (0, -2), [(0, 0), (0, -1)], HEX3)
        assert result.distance == 3
        assert result.first_dir in ('ne', 'nw')

    def test_unreachable(self):
        result = bfs_distance((-1, 0), (1, 0), WALL, CART2, exclude_head=False)
        assert result.distance == math.inf
        assert result.first_dir is None
        assert not result.reachable

    def test_head_is_not_an_obstacle_by_default(self):
        # Only the head cell (0, -2) stays open, so the path goes over the top
        result = bfs_distance((-1, -2), (1, -2), WALL, CART2)
        assert result.distance == 2
        assert result.first_dir == 'right'


class TestTimeAwareBfs:
    def test_passes_through_the_vacating_tail(self):
        # Tail (0, 2) clears after one move
        assert bfs_distance((-1, 2), (1, 2), WALL, CART2, exclude_head=False).distance == math.inf
        result = bfs_distance((-1, 2), (1, 2), WALL, CART2, exclude_head=False, time_aware=True)
        assert result.distance == 2
        assert result.first_dir == 'right'

    def test_cell_blocked_until_its_clear_time(self):
        # (0, 1) clears after two moves, so the direct route at distance 1 is shut
        result = bfs_distance((-1, 1), (1, 1), WALL, CART2, exclude_head=False, time_aware=True)
        assert result.distance == 4

    def test_never_longer_than_static_search(self):
        body = [(0, 0), (0, -1), (1, -1), (1, 0), (0, 1)]
        for cell in HEX3.cells():
            if cell in body:
                continue
            static = bfs_distance((0, 0), cell, body, HEX3)
            timed = bfs_distance((0, 0), cell, body, HEX3, time_aware=True)
            assert timed.distance <= static.distance


class TestFloodFill:
    def test_open_board(self):
        assert flood_fill_size((0, 0), [], HEX2) == 19

    def test_excluded_first_step_on_open_board(self):
        assert flood_fill_size((0, 0), [], HEX2, exclude_dir='n') == 19

    def test_trapped_corner_counts_itself(self):
        assert flood_fill_size((-2, -2), [(-1, -2), (-2, -1)], CART2) == 1

    def test_exclude_dir_only_applies_to_the_first_step(self):
        body = [(-1, 0), (0, 0)]
        assert flood_fill_size((-1, -1), body, CART1) == 7
        assert flood_fill_size((-1, -1), body, CART1, exclude_dir='right') == 1

    def test_adding_obstacles_never_grows_the_area(self):
        cells = [(1, -1), (1, 0), (0, 1), (-1, 1), (-1, 0), (0, -1)]
        previous = flood_fill_size((0, 0), [], HEX2)
        for i in range(1, len(cells) + 1):
            size = flood_fill_size((0, 0), cells[:i], HEX2)
            assert 1 <= size <= previous
            previous = size
        assert previous == 1
