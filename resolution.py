"""
Move resolution for the snake rodeo.
Advances the snake one cell, handles fruit, growth and the win check.

Illegal moves (off the grid, or onto the body other than a vacating tail)
leave the state untouched and come back tagged with an event code.
"""

import random
from dataclasses import dataclass, replace
from typing import Optional

from grid import step
from models import EatenFruit, GameState, Position, Snake
from state import generate_fruit_position
from upkeep import check_victory

MOVED = 'moved'
ATE_FRUIT = 'ate_fruit'
COLLISION_BOUNDARY = 'collision_boundary'
COLLISION_SELF = 'collision_self'
UNKNOWN_DIRECTION = 'unknown_direction'


@dataclass(frozen=True)
class MoveResult:
    state: GameState
    event: str
    ate_fruit: Optional[Position] = None
    ate_team: Optional[str] = None  # Native team of the eaten fruit
    winner: Optional[str] = None

    @property
    def moved(self) -> bool:
        return self.event in (MOVED, ATE_FRUIT)


def keeps_tail(game_state: GameState, ate_fruit: bool) -> bool:
    """The snake grows on a fruit, and during the first two rounds from a short start."""
    if ate_fruit:
        return True
    return len(game_state.body) < 3 and game_state.round < 2


def advance_round(
    game_state: GameState,
    direction: str,
    controlling_team: Optional[str],
    rng: random.Random
) -> MoveResult:
    """
    Move the snake one cell and produce the next snapshot.

    A fruit under the new head is removed and scores one point for the
    controlling team, whichever team the fruit belonged to. With respawn
    on, the fruit's native team gets a replacement placed with rng.

    Args:
        game_state: Current game state (not modified)
        direction: Direction to move
        controlling_team: Team credited this round, or None
        rng: Seeded random source for fruit respawn

    Returns:
        MoveResult with the new state and an event code
    """
    grid = game_state.grid
    # Unknown names and directions of the other grid type
    if direction not in dict(grid.directions()):
        return MoveResult(game_state, UNKNOWN_DIRECTION)

    new_head = step(game_state.head, direction)
    if not grid.in_bounds(new_head):
        return MoveResult(game_state, COLLISION_BOUNDARY)

    # The tail vacates this move unless the snake is growing
    blocked = game_state.body[:-1]
    if keeps_tail(game_state, ate_fruit=False):
        blocked = game_state.body
    if new_head in blocked:
        return MoveResult(game_state, COLLISION_SELF)

    new_body = (new_head,) + game_state.body
    fruits = dict(game_state.fruits)
    fruit_scores = dict(game_state.fruit_scores)
    eaten_fruits = game_state.eaten_fruits

    ate_team = game_state.fruit_owner(new_head)
    ate_fruit = new_head if ate_team is not None else None

    if ate_fruit is not None:
        fruits[ate_team] = tuple(f for f in fruits[ate_team] if f != ate_fruit)
        if controlling_team:
            fruit_scores[controlling_team] = fruit_scores.get(controlling_team, 0) + 1
        eaten_fruits = eaten_fruits + (EatenFruit(
            position=ate_fruit,
            team=controlling_team or ate_team,
            native_team=ate_team,
            order=len(eaten_fruits) + 1,
        ),)

        if game_state.config.respawn:
            existing = [pos for positions in fruits.values() for pos in positions]
            replacement = generate_fruit_position(new_body, existing, grid, rng)
            if replacement is not None:
                fruits[ate_team] = fruits[ate_team] + (replacement,)

    if not keeps_tail(game_state, ate_fruit is not None):
        new_body = new_body[:-1]

    team_order = [t.id for t in game_state.teams]
    winner = check_victory(fruit_scores, game_state.config.fruits_to_win, team_order)

    new_state = replace(
        game_state,
        snake=Snake(body=new_body, current_direction=direction, controlling_team=controlling_team),
        fruits=fruits,
        fruit_scores=fruit_scores,
        eaten_fruits=eaten_fruits,
        round=game_state.round + 1,
        winner=winner,
        active=winner is None,
        nonce=game_state.nonce + 1,
    )
    return MoveResult(
        state=new_state,
        event=ATE_FRUIT if ate_fruit is not None else MOVED,
        ate_fruit=ate_fruit,
        ate_team=ate_team,
        winner=winner,
    )
