"""
Decision-ready view of a game snapshot.

The wire snapshot (camelCase dict as served by the game server, or a
GameState converted with to_snapshot) is checked here once; everything
downstream works on the typed ParsedView and never re-validates.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from grid import valid_directions
from models import CARTESIAN, HEXAGONAL, GameState, GridSpec, Position

# Round timing, must match the server
ROUND_TIMING = {
    'base_duration_sec': 10,
    'extension_period_sec': 5,
}


class _MalformedSnapshot(Exception):
    pass


@dataclass(frozen=True)
class ClosestFruit:
    fruit: Position
    distance: int


@dataclass(frozen=True)
class ParsedTeam:
    """A team with its score, pool and the fruit nearest to the head."""
    id: str
    name: str = ''
    color: str = ''
    emoji: str = ''
    score: int = 0
    pool: float = 0
    closest_fruit: Optional[ClosestFruit] = None


@dataclass(frozen=True)
class ParsedView:
    """Read-only projection of one snapshot used by strategies."""
    active: bool
    round: int
    prize_pool: float
    min_bid: int
    initial_min_bid: int
    countdown: int
    in_extension_window: bool
    extensions: int
    fruits_to_win: int
    grid: GridSpec
    head: Position
    body: Tuple[Position, ...]
    current_direction: Optional[str]
    controlling_team: Optional[str]
    teams: Tuple[ParsedTeam, ...]
    valid_directions: Tuple[str, ...]
    fruits: Dict[str, Tuple[Position, ...]]
    votes: Dict[str, Any] = field(default_factory=dict)
    winner: Optional[str] = None

    @property
    def snake_length(self) -> int:
        return len(self.body)

    @property
    def grid_radius(self) -> int:
        return self.grid.radius

    @property
    def grid_type(self) -> str:
        return self.grid.type

    def get_team(self, team_id: Optional[str]) -> Optional[ParsedTeam]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def fruit_owner(self, pos: Position) -> Optional[str]:
        """Native team of the fruit at a position, if any."""
        for team_id, positions in self.fruits.items():
            if pos in positions:
                return team_id
        return None

    def all_fruits(self) -> List[Position]:
        return [pos for positions in self.fruits.values() for pos in positions]


def _position(raw: Any) -> Position:
    if isinstance(raw, Mapping):
        q, r = raw.get('q'), raw.get('r')
    elif isinstance(raw, (list, tuple)) and len(raw) == 2:
        q, r = raw
    else:
        raise _MalformedSnapshot(f"bad position {raw!r}")
    if isinstance(q, bool) or isinstance(r, bool) or not isinstance(q, int) or not isinstance(r, int):
        raise _MalformedSnapshot(f"bad coordinates {raw!r}")
    return (q, r)


def _number(raw: Any, default: Union[int, float], zero_means_default: bool = True):
    if raw is None:
        return default
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise _MalformedSnapshot(f"bad number {raw!r}")
    if isinstance(raw, float) and not math.isfinite(raw):
        raise _MalformedSnapshot(f"non-finite number {raw!r}")
    if zero_means_default and not raw:
        return default
    return raw


def _mapping(raw: Any) -> Mapping:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise _MalformedSnapshot(f"expected an object, got {raw!r}")
    return raw


def find_closest_fruit(
    head: Position,
    fruits: Mapping[str, Tuple[Position, ...]],
    team_id: str,
    grid: GridSpec
) -> Optional[ClosestFruit]:
    """
    Find the team's fruit nearest to the head by the grid metric.

    Ties keep the first fruit in list order.
    """
    closest = None
    min_dist = math.inf
    for fruit in fruits.get(team_id, ()):
        dist = grid.distance(head, fruit)
        if dist < min_dist:
            min_dist = dist
            closest = fruit
    if closest is None:
        return None
    return ClosestFruit(fruit=closest, distance=min_dist)


def get_team_by_id(view: ParsedView, team_id: Optional[str]) -> Optional[ParsedTeam]:
    return view.get_team(team_id)


def _parse(raw: Mapping) -> Optional[ParsedView]:
    snake = _mapping(raw.get('snake'))
    raw_body = snake.get('body')
    if not raw_body or not isinstance(raw_body, (list, tuple)):
        return None
    body = tuple(_position(seg) for seg in raw_body)
    head = body[0]

    grid_size = _mapping(raw.get('gridSize'))
    config = _mapping(raw.get('config'))
    grid_type = grid_size.get('type') or config.get('gridType') or HEXAGONAL
    if grid_type not in (HEXAGONAL, CARTESIAN):
        raise _MalformedSnapshot(f"unknown grid type {grid_type!r}")
    grid = GridSpec(type=grid_type, radius=int(_number(grid_size.get('radius'), 3)))

    fruits: Dict[str, Tuple[Position, ...]] = {}
    for team_id, positions in _mapping(raw.get('apples')).items():
        if not isinstance(positions, (list, tuple)):
            raise _MalformedSnapshot(f"bad fruit list for {team_id}")
        fruits[team_id] = tuple(_position(p) for p in positions)

    scores = _mapping(raw.get('fruitScores'))
    pools = _mapping(raw.get('teamPools'))
    teams = []
    for team in raw.get('teams') or []:
        team = _mapping(team)
        team_id = team.get('id')
        if not isinstance(team_id, str):
            raise _MalformedSnapshot(f"bad team {team!r}")
        teams.append(ParsedTeam(
            id=team_id,
            name=team.get('name') or '',
            color=team.get('color') or '',
            emoji=team.get('emoji') or '',
            score=_number(scores.get(team_id), 0),
            pool=_number(pools.get(team_id), 0),
            closest_fruit=find_closest_fruit(head, fruits, team_id, grid),
        ))

    countdown = _number(raw.get('countdown'), ROUND_TIMING['base_duration_sec'],
                        zero_means_default=False)
    initial_min_bid = _number(config.get('initialMinBid'), 1)
    min_bid = _number(raw.get('minBid'), 1)

    # minBid doubles on every extension
    extensions = 0
    if min_bid > initial_min_bid:
        extensions = round(math.log2(min_bid / initial_min_bid))

    in_extension_window = 0 < countdown <= ROUND_TIMING['extension_period_sec']

    return ParsedView(
        active=bool(raw.get('gameActive', True)),
        round=int(_number(raw.get('round'), 0, zero_means_default=False)),
        prize_pool=_number(raw.get('prizePool'), 10),
        min_bid=min_bid,
        initial_min_bid=initial_min_bid,
        countdown=countdown,
        in_extension_window=in_extension_window,
        extensions=extensions,
        fruits_to_win=_number(config.get('fruitsToWin'), 3),
        grid=grid,
        head=head,
        body=body,
        current_direction=snake.get('currentDirection'),
        controlling_team=snake.get('currentWinningTeam'),
        teams=tuple(teams),
        valid_directions=tuple(valid_directions(head, body, grid)),
        fruits=fruits,
        votes=dict(_mapping(raw.get('votes'))),
        winner=raw.get('winner'),
    )


def parse_game_state(raw: Union[Mapping, GameState, None]) -> Optional[ParsedView]:
    """
    Parse a snapshot into a ParsedView.

    Args:
        raw: Wire snapshot dict, or a GameState

    Returns:
        ParsedView, or None when the snapshot carries an error marker, has no
        snake head, or is otherwise malformed. Callers treat None as
        "skip this tick".
    """
    if isinstance(raw, GameState):
        raw = raw.to_snapshot()
    if not isinstance(raw, Mapping) or raw.get('error'):
        return None
    try:
        return _parse(raw)
    except (_MalformedSnapshot, TypeError, ValueError, OverflowError):
        return None
