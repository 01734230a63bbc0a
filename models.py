# Models for the snake rodeo: grid, snake, teams, snapshots and votes

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

Position = Tuple[int, int]  # Axial (q, r) on hex grids, (x, y) on cartesian grids

HEXAGONAL = 'hexagonal'
CARTESIAN = 'cartesian'

# Offsets are ordered: the first legal entry is the fallback move
HEX_DIRECTIONS: Dict[str, Position] = {
    'n': (0, -1),
    'ne': (1, -1),
    'se': (1, 0),
    's': (0, 1),
    'sw': (-1, 1),
    'nw': (-1, 0),
}

CARTESIAN_DIRECTIONS: Dict[str, Position] = {
    'up': (0, -1),
    'down': (0, 1),
    'left': (-1, 0),
    'right': (1, 0),
}

OPPOSITE_DIRECTIONS: Dict[str, str] = {
    'n': 's', 's': 'n',
    'ne': 'sw', 'sw': 'ne',
    'se': 'nw', 'nw': 'se',
    'up': 'down', 'down': 'up',
    'left': 'right', 'right': 'left',
}

ALL_DIRECTION_OFFSETS: Dict[str, Position] = {**HEX_DIRECTIONS, **CARTESIAN_DIRECTIONS}


@dataclass(frozen=True)
class GridSpec:
    """Bounded playing field: a hexagon of the given radius or a square of side 2R+1."""
    type: str = HEXAGONAL  # 'hexagonal' or 'cartesian'
    radius: int = 3

    @property
    def is_cartesian(self) -> bool:
        return self.type == CARTESIAN

    def in_bounds(self, pos: Position) -> bool:
        """Check if a position lies inside the grid."""
        q, r = pos
        if self.is_cartesian:
            return abs(q) <= self.radius and abs(r) <= self.radius
        return abs(q) <= self.radius and abs(r) <= self.radius and abs(q + r) <= self.radius

    def distance(self, a: Position, b: Position) -> int:
        """Cube distance on hex grids, Manhattan distance on cartesian grids."""
        dq = a[0] - b[0]
        dr = a[1] - b[1]
        if self.is_cartesian:
            return abs(dq) + abs(dr)
        return max(abs(dq), abs(dr), abs(dq + dr))

    def directions(self) -> List[Tuple[str, Position]]:
        """Direction name and offset pairs for this grid type, in canonical order."""
        table = CARTESIAN_DIRECTIONS if self.is_cartesian else HEX_DIRECTIONS
        return list(table.items())

    def total_cells(self) -> int:
        if self.is_cartesian:
            return (2 * self.radius + 1) ** 2
        return 3 * self.radius * (self.radius + 1) + 1

    def cells(self) -> Iterator[Position]:
        """All in-bounds positions, scanning q then r from -radius."""
        for q in range(-self.radius, self.radius + 1):
            for r in range(-self.radius, self.radius + 1):
                if self.in_bounds((q, r)):
                    yield (q, r)


@dataclass(frozen=True)
class Team:
    """Team display metadata. Scores and pools live on the GameState."""
    id: str
    name: str = ''
    color: str = ''
    emoji: str = ''


@dataclass(frozen=True)
class Snake:
    """
    The shared snake. body[0] is the head; consecutive cells are one
    direction offset apart and no cell repeats.
    """
    body: Tuple[Position, ...]
    current_direction: str = 'n'
    controlling_team: Optional[str] = None  # Team credited for the current round

    @property
    def head(self) -> Position:
        return self.body[0]

    @property
    def tail(self) -> Position:
        return self.body[-1]

    def __len__(self) -> int:
        return len(self.body)


@dataclass(frozen=True)
class EatenFruit:
    """A fruit removed from the board, in eating order."""
    position: Position
    team: Optional[str]  # Team credited (the controlling team, else the native team)
    native_team: str  # Team the fruit belonged to
    order: int


@dataclass(frozen=True)
class RodeoConfig:
    """Configuration of one game ("rodeo cycle")."""
    name: str = 'Custom'
    number_of_teams: int = 2
    hex_radius: int = 2
    fruits_per_team: int = 1
    fruits_to_win: int = 3
    starting_balance: int = 5
    initial_min_bid: int = 1
    initial_snake_length: int = 1
    respawn: bool = True
    grid_type: str = HEXAGONAL

    @property
    def grid(self) -> GridSpec:
        return GridSpec(type=self.grid_type, radius=self.hex_radius)


@dataclass(frozen=True)
class GameState:
    """
    One immutable snapshot of a game.

    Rounds never mutate a snapshot: every transition builds a new one with
    dataclasses.replace, copying the mappings it changes.
    """
    snake: Snake
    grid: GridSpec
    teams: Tuple[Team, ...]
    fruits: Dict[str, Tuple[Position, ...]]  # Team id -> native fruit positions
    fruit_scores: Dict[str, int]
    team_pools: Dict[str, float]
    config: RodeoConfig
    round: int = 0
    countdown: int = 10
    min_bid: int = 1
    prize_pool: float = 0
    active: bool = True
    winner: Optional[str] = None
    eaten_fruits: Tuple[EatenFruit, ...] = ()
    nonce: int = 0

    @property
    def body(self) -> Tuple[Position, ...]:
        return self.snake.body

    @property
    def head(self) -> Position:
        return self.snake.head

    def all_fruits(self) -> List[Position]:
        """Every fruit on the board, team order then placement order."""
        return [pos for team in self.teams for pos in self.fruits.get(team.id, ())]

    def fruit_owner(self, pos: Position) -> Optional[str]:
        """Get the native team of the fruit at a position, if any."""
        for team_id, positions in self.fruits.items():
            if pos in positions:
                return team_id
        return None

    def get_team_by_id(self, team_id: str) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def to_snapshot(self) -> Dict:
        """Serialize to the wire shape served by the game server."""
        return {
            'snake': {
                'body': [{'q': q, 'r': r} for q, r in self.snake.body],
                'currentDirection': self.snake.current_direction,
                'currentWinningTeam': self.snake.controlling_team,
            },
            'gridSize': {'type': self.grid.type, 'radius': self.grid.radius},
            'teams': [
                {'id': t.id, 'name': t.name, 'color': t.color, 'emoji': t.emoji}
                for t in self.teams
            ],
            'fruitScores': dict(self.fruit_scores),
            'teamPools': dict(self.team_pools),
            'apples': {
                team_id: [{'q': q, 'r': r} for q, r in positions]
                for team_id, positions in self.fruits.items()
            },
            'votes': {},
            'round': self.round,
            'countdown': self.countdown,
            'minBid': self.min_bid,
            'prizePool': self.prize_pool,
            'gameActive': self.active,
            'winner': self.winner,
            'config': {
                'initialMinBid': self.config.initial_min_bid,
                'fruitsToWin': self.config.fruits_to_win,
                'fruitsPerTeam': self.config.fruits_per_team,
                'startingBalance': self.config.starting_balance,
                'numberOfTeams': self.config.number_of_teams,
                'respawn': self.config.respawn,
                'gridType': self.grid.type,
                'auctionMode': 'all-pay-auction',
            },
        }


@dataclass(frozen=True)
class VoteAction:
    """A vote: steer the snake in `direction` on behalf of `team`."""
    direction: str
    team: str  # Team id
    amount: int
    reason: str = ''  # Diagnostic only
    target: Optional[Position] = None  # Fruit the policy steered toward

    def to_dict(self) -> Dict:
        return {
            'direction': self.direction,
            'team': self.team,
            'amount': self.amount,
            'reason': self.reason,
            'target': list(self.target) if self.target else None,
        }


@dataclass(frozen=True)
class Skip:
    """An explicit abstention."""
    reason: str = ''

    def to_dict(self) -> Dict:
        return {'skip': True, 'reason': self.reason}


VoteResult = Union[VoteAction, Skip, None]


@dataclass
class AgentState:
    """Per-agent counters handed to a strategy alongside the view."""
    current_team: Optional[str] = None
    round_spend: float = 0
    round_vote_count: int = 0
    round_budget_remaining: float = 0
    games_played: int = 0
    votes_placed: int = 0
    wins: int = 0
