"""
Grid geometry and pathfinding for the snake rodeo.
Implements bounds, distance metrics, breadth-first shortest paths and
flood-fill trap detection on hexagonal (axial) and cartesian grids.

Every function here is pure: obstacles come in as the snake body
(head first) and the grid as a GridSpec, nothing is mutated.
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from models import (
    ALL_DIRECTION_OFFSETS,
    CARTESIAN,
    HEXAGONAL,
    OPPOSITE_DIRECTIONS,
    GridSpec,
    Position,
)


@dataclass(frozen=True)
class BfsResult:
    """Shortest path length and the first step to take, or (inf, None)."""
    distance: float
    first_dir: Optional[str]

    @property
    def reachable(self) -> bool:
        return self.distance != math.inf


def step(pos: Position, direction: str) -> Position:
    """Get the neighbouring position one step in a direction."""
    dq, dr = ALL_DIRECTION_OFFSETS[direction]
    return (pos[0] + dq, pos[1] + dr)


def opposite(direction: str) -> str:
    return OPPOSITE_DIRECTIONS[direction]


def get_neighbors(pos: Position, grid: GridSpec) -> List[Tuple[str, Position]]:
    """
    Get the in-bounds neighbours of a position.

    Args:
        pos: Centre position
        grid: Grid the position lives on

    Returns:
        List of (direction, position) pairs in canonical direction order
    """
    neighbors = []
    for direction, (dq, dr) in grid.directions():
        nxt = (pos[0] + dq, pos[1] + dr)
        if grid.in_bounds(nxt):
            neighbors.append((direction, nxt))
    return neighbors


def is_in_bounds(q: int, r: int, radius: int, grid_type: str = HEXAGONAL) -> bool:
    """
    Check if coordinates are within grid bounds.

    Hex: |q| <= R, |r| <= R, |q+r| <= R
    Cartesian: |q| <= R, |r| <= R
    """
    return GridSpec(type=grid_type, radius=radius).in_bounds((q, r))


def hex_distance(a: Position, b: Position) -> int:
    """Cube distance between two axial positions: max(|dq|, |dr|, |dq+dr|)."""
    dq = a[0] - b[0]
    dr = a[1] - b[1]
    return max(abs(dq), abs(dr), abs(dq + dr))


def manhattan_distance(a: Position, b: Position) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def grid_distance(a: Position, b: Position, grid_type: str = HEXAGONAL) -> int:
    """Distance using the metric of the grid type."""
    if grid_type == CARTESIAN:
        return manhattan_distance(a, b)
    return hex_distance(a, b)


def total_cells(radius: int, grid_type: str = HEXAGONAL) -> int:
    return GridSpec(type=grid_type, radius=radius).total_cells()


def valid_directions(head: Position, body: Sequence[Position], grid: GridSpec) -> List[str]:
    """
    Get the directions the head can legally move in.

    A move is legal when it stays in bounds and does not land on any body
    cell other than the head itself.

    Args:
        head: Current head position
        body: Snake body, head first
        grid: Playing field

    Returns:
        Legal direction names in canonical order
    """
    occupied = set(body[1:])
    valid = []
    for direction, (dq, dr) in grid.directions():
        nxt = (head[0] + dq, head[1] + dr)
        if not grid.in_bounds(nxt):
            continue
        if nxt in occupied:
            continue
        valid.append(direction)
    return valid


def count_exits(
    pos: Position,
    body: Sequence[Position],
    grid: GridSpec,
    exclude_dir: Optional[str] = None
) -> int:
    """
    Count free neighbouring cells of a position (a one-step safety metric).

    Args:
        pos: Position to inspect
        body: Snake body; every segment counts as an obstacle
        grid: Playing field
        exclude_dir: Direction not to count (usually the way back)

    Returns:
        Number of in-bounds neighbours not on the body
    """
    occupied = set(body)
    exits = 0
    for direction, nxt in get_neighbors(pos, grid):
        if exclude_dir and direction == exclude_dir:
            continue
        if nxt in occupied:
            continue
        exits += 1
    return exits


def best_direction_toward(
    head: Position,
    target: Position,
    directions: Sequence[str],
    grid: GridSpec
) -> Optional[str]:
    """Pick the direction whose resulting cell is closest to target by grid metric."""
    best_dir = None
    best_dist = math.inf
    for direction in directions:
        dist = grid.distance(step(head, direction), target)
        if dist < best_dist:
            best_dist = dist
            best_dir = direction
    return best_dir


def _clear_times(
    body: Sequence[Position],
    exclude_head: bool,
    time_aware: bool
) -> Dict[Position, float]:
    """
    Map each obstacle cell to the number of moves after which it is free.

    Segment body[i] clears after len(body) - i moves: the tail in one move,
    the segment before it in two. Without time awareness nothing clears.
    """
    start_idx = 1 if exclude_head else 0
    clear: Dict[Position, float] = {}
    for idx in range(start_idx, len(body)):
        seg = body[idx]
        clear_time = (len(body) - idx) if time_aware else math.inf
        if seg not in clear or clear_time < clear[seg]:
            clear[seg] = clear_time
    return clear


def bfs_distance(
    start: Position,
    goal: Position,
    body: Sequence[Position],
    grid: GridSpec,
    exclude_head: bool = True,
    time_aware: bool = False
) -> BfsResult:
    """
    Breadth-first shortest path from start to goal around the snake body.

    When time_aware is set, a body cell is passable at search distance d
    once d >= its clear time, which lets paths run through cells the tail
    will have vacated by the time the path gets there.

    Args:
        start: Starting position
        goal: Target position
        body: Snake body, head first
        grid: Playing field
        exclude_head: Leave the head cell out of the obstacles
        time_aware: Let body cells clear as the snake moves

    Returns:
        BfsResult with the move count and first direction, or (inf, None)
    """
    if start == goal:
        return BfsResult(0, None)

    clear_time = _clear_times(body, exclude_head, time_aware)

    def blocked(pos: Position, dist: int) -> bool:
        return pos in clear_time and dist < clear_time[pos]

    visited = {start}
    queue = deque()

    for direction, nxt in get_neighbors(start, grid):
        if blocked(nxt, 1):
            continue
        if nxt == goal:
            return BfsResult(1, direction)
        visited.add(nxt)
        queue.append((nxt, 1, direction))

    while queue:
        current, dist, first_dir = queue.popleft()
        new_dist = dist + 1
        for _, nxt in get_neighbors(current, grid):
            if nxt in visited:
                continue
            if blocked(nxt, new_dist):
                continue
            if nxt == goal:
                return BfsResult(new_dist, first_dir)
            visited.add(nxt)
            queue.append((nxt, new_dist, first_dir))

    return BfsResult(math.inf, None)


def flood_fill_size(
    pos: Position,
    body: Sequence[Position],
    grid: GridSpec,
    exclude_dir: Optional[str] = None
) -> int:
    """
    Count the cells reachable from pos without crossing the snake body.

    Used as a proxy for how trapped a position is. The start cell always
    counts. exclude_dir is forbidden only as the very first step.

    Args:
        pos: Position to fill from
        body: Snake body; every segment is an obstacle
        grid: Playing field
        exclude_dir: Direction not taken from the start cell

    Returns:
        Number of reachable cells, at least 1
    """
    obstacles = set(body)
    visited = {pos}
    queue = deque([pos])
    is_start = True

    while queue:
        current = queue.popleft()
        for direction, nxt in get_neighbors(current, grid):
            if is_start and exclude_dir and direction == exclude_dir:
                continue
            if nxt in obstacles or nxt in visited:
                continue
            visited.add(nxt)
            queue.append(nxt)
        is_start = False

    return len(visited)
