"""
Aggressive strategy: backs the leading team and fights for the last word.
Counter-bids up to a configurable extension depth while the cost stays
under 30% of balance.
"""

import math
import random
from typing import Any, Dict, Optional

from grid import count_exits, opposite, step
from models import AgentState, Position, Skip, VoteAction, VoteResult
from strategies.base import get_option, should_play
from view import ParsedView


class AggressiveStrategy:
    name = "aggressive"
    description = "Backs leaders, counter-bids aggressively. Gets the last word."

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = dict(options or {})
        self.max_counter_extensions = int(get_option(self.options, 'max_counter_extensions', 2))
        self.max_balance_share = float(get_option(self.options, 'max_balance_share', 0.3))

    def compute_vote(self, view: ParsedView, balance: float, state: AgentState,
                     rng: random.Random) -> VoteResult:
        if not should_play(view, balance):
            return None

        with_fruit = [t for t in view.teams if t.closest_fruit is not None]
        if not with_fruit:
            return Skip(reason='no_teams_with_fruits')

        # Leader first, nearer fruit breaks ties
        target = sorted(with_fruit, key=lambda t: (-t.score, t.closest_fruit.distance))[0]
        fruit = target.closest_fruit.fruit
        direction = self.find_best_direction(view, fruit)
        if direction is None:
            return None

        return VoteAction(
            direction=direction,
            team=target.id,
            amount=view.min_bid,
            reason=f"backing_leader (score:{target.score}, cost:{view.min_bid})",
            target=fruit,
        )

    def should_counter_bid(self, view: ParsedView, balance: float, state: AgentState,
                           our_vote: VoteAction, rng: random.Random) -> VoteResult:
        if view.extensions > self.max_counter_extensions:
            return None
        if view.min_bid > balance * self.max_balance_share:
            return None
        if state.round_budget_remaining < view.min_bid:
            return None

        return VoteAction(
            direction=our_vote.direction,
            team=our_vote.team,
            amount=view.min_bid,
            reason=f"counter-agg (ext:{view.extensions}, cost:{view.min_bid})",
            target=our_vote.target,
        )

    def find_best_direction(self, view: ParsedView, target_fruit: Optional[Position]) -> Optional[str]:
        best = None
        best_score = -math.inf
        for direction in view.valid_directions:
            new_pos = step(view.head, direction)
            score = 0
            if target_fruit is not None:
                dist = view.grid.distance(new_pos, target_fruit)
                score += 1000 if dist == 0 else (10 - dist) * 10
            score += count_exits(new_pos, view.body, view.grid, opposite(direction)) * 3
            if score > best_score:
                best_score = score
                best = direction
        return best
