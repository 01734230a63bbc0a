"""
Game setup for the snake rodeo.
Implements configuration loading, the rodeo cycle presets, seeded fruit
placement and creation of the opening GameState.

Grid: hexagonal (axial) or cartesian, radius 2-4 in the presets
Snake: starts as a single cell at the centre heading north
Fruit: fruits_per_team per team, never on the snake or another fruit
"""

from __future__ import annotations
import json
import math
import os
import random
from typing import Dict, List, Optional, Sequence

from models import (
    CARTESIAN,
    GameState,
    GridSpec,
    Position,
    RodeoConfig,
    Snake,
    Team,
)

CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'config.json')

DEFAULT_CONFIG = {
    'max_rounds': 200,  # Safety valve per simulated game
    'max_extensions': 5,  # Counter-bid iterations per round
    'max_round_budget_pct': 0.2,  # Share of balance an agent may spend in one round
    'balance_multiplier': 2,  # Agents start each game with starting_balance * this
    'default_games': 50,  # Games per config in a tournament
}

# Team display metadata, matching the server
TEAM_CONFIG: List[Team] = [
    Team(id='A', name='Blue', color='#0066FF', emoji='\U0001FAD0'),
    Team(id='B', name='Red', color='#FF0000', emoji='\U0001F34E'),
    Team(id='C', name='Yellow', color='#FFDD00', emoji='\U0001F34C'),
    Team(id='D', name='Green', color='#00CC00', emoji='\U0001F95D'),
    Team(id='E', name='Purple', color='#9900FF', emoji='\U0001F347'),
    Team(id='F', name='Orange', color='#FF6600', emoji='\U0001F34A'),
]

# Rodeo cycles, matching the server
RODEO_CYCLES: List[RodeoConfig] = [
    RodeoConfig(name='Small', number_of_teams=2, hex_radius=2, fruits_per_team=1,
                fruits_to_win=3, starting_balance=5, initial_min_bid=1),
    RodeoConfig(name='Medium', number_of_teams=3, hex_radius=3, fruits_per_team=2,
                fruits_to_win=3, starting_balance=10, initial_min_bid=1),
    RodeoConfig(name='Large', number_of_teams=4, hex_radius=4, fruits_per_team=3,
                fruits_to_win=4, starting_balance=15, initial_min_bid=1),
]


class UnknownConfigError(Exception):
    """Exception raised when a rodeo configuration name is not known."""
    pass


def load_config(path: Optional[str] = None) -> Dict:
    """
    Load simulation settings, falling back to defaults.

    Args:
        path: JSON file to read (default: config.json next to this module)

    Returns:
        DEFAULT_CONFIG updated with any keys found in the file
    """
    config = dict(DEFAULT_CONFIG)
    try:
        with open(path or CONFIG_PATH, 'r') as f:
            config.update(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError):
        # Use defaults if config file is missing or invalid
        pass
    return config


def get_rodeo_config(name: str) -> RodeoConfig:
    """Look up a rodeo cycle by name, case-insensitively."""
    for config in RODEO_CYCLES:
        if config.name.lower() == name.lower():
            return config
    available = ', '.join(c.name.lower() for c in RODEO_CYCLES)
    raise UnknownConfigError(f"Unknown config: {name}. Available: {available}, all")


def resolve_configs(name: str) -> List[RodeoConfig]:
    """Resolve 'all' to every preset, anything else to a single preset."""
    if name.lower() == 'all':
        return list(RODEO_CYCLES)
    return [get_rodeo_config(name)]


def min_distance_from_center(radius: int) -> int:
    """Fruit keeps away from the centre where the snake starts."""
    if radius == 2:
        return 1
    if radius == 3:
        return 2
    return int(radius * 0.5)


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def generate_fruit_position(
    snake_body: Sequence[Position],
    existing_fruits: Sequence[Position],
    grid: GridSpec,
    rng: random.Random,
    max_attempts: int = 1000
) -> Optional[Position]:
    """
    Place a fruit by rejection sampling, with an exhaustive scan as fallback.

    Candidates are drawn at a random angle and a random distance between the
    minimum distance from centre and the radius, then rejected when out of
    bounds or on the snake or another fruit.

    Args:
        snake_body: Cells occupied by the snake
        existing_fruits: Cells already holding fruit
        grid: Playing field
        rng: Seeded random source
        max_attempts: Sampling attempts before scanning

    Returns:
        A free position, or None when the board is full
    """
    radius = grid.radius
    taken = set(snake_body) | set(existing_fruits)
    min_dist = min_distance_from_center(radius)

    for _ in range(max_attempts):
        angle = rng.random() * 2 * math.pi
        distance = min_dist + rng.random() * (radius - min_dist)
        q = _round_half_up(distance * math.cos(angle))
        if grid.type == CARTESIAN:
            r = _round_half_up(distance * math.sin(angle))
        else:
            r = _round_half_up(distance * math.sin(angle) - q / 2)
        pos = (q, r)

        if not grid.in_bounds(pos):
            continue
        if pos in taken:
            continue
        return pos

    # Fallback: first free cell in scan order
    for pos in grid.cells():
        if pos not in taken:
            return pos
    return None


def initialize_game(config: RodeoConfig, rng: random.Random) -> GameState:
    """
    Create the opening GameState for a rodeo cycle.

    The snake starts as a single cell at (0, 0) heading north; every team
    gets fruits_per_team fruits placed with the seeded rng.

    Args:
        config: Rodeo cycle settings
        rng: Seeded random source, shared with the rest of the game

    Returns:
        New GameState ready for round 0
    """
    teams = tuple(TEAM_CONFIG[:config.number_of_teams])
    grid = config.grid
    body = ((0, 0),)
    heading = 'up' if grid.type == CARTESIAN else 'n'

    fruits: Dict[str, tuple] = {}
    placed: List[Position] = []
    for team in teams:
        team_fruits = []
        for _ in range(config.fruits_per_team):
            fruit = generate_fruit_position(body, placed, grid, rng)
            if fruit is None:
                break
            team_fruits.append(fruit)
            placed.append(fruit)
        fruits[team.id] = tuple(team_fruits)

    return GameState(
        snake=Snake(body=body, current_direction=heading, controlling_team=None),
        grid=grid,
        teams=teams,
        fruits=fruits,
        fruit_scores={team.id: 0 for team in teams},
        team_pools={team.id: 0 for team in teams},
        config=config,
        round=0,
        countdown=10,
        min_bid=config.initial_min_bid,
        prize_pool=config.starting_balance,
        active=True,
        winner=None,
    )


def get_game_summary(game_state: GameState) -> Dict:
    """
    Get a compact summary of a game state for results and API responses.

    Args:
        game_state: Current game state

    Returns:
        Dictionary with round, scores, pools and snake position
    """
    return {
        'round': game_state.round,
        'active': game_state.active,
        'winner': game_state.winner,
        'prize_pool': game_state.prize_pool,
        'fruit_scores': dict(game_state.fruit_scores),
        'team_pools': dict(game_state.team_pools),
        'snake': [list(pos) for pos in game_state.body],
        'direction': game_state.snake.current_direction,
        'fruits': {
            team_id: [list(pos) for pos in positions]
            for team_id, positions in game_state.fruits.items()
        },
    }
