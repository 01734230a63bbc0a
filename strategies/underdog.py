"""
Underdog strategy: backs teams with small pools for bigger payouts.
Payout multiplier matters more than win probability here.
"""

import math
import random
from typing import Any, Dict, Optional

from grid import count_exits, opposite, step
from models import AgentState, Position, VoteAction, VoteResult
from strategies.base import get_option, should_play
from view import ParsedView


class UnderdogStrategy:
    name = "underdog"
    description = "Backs teams with small pools for bigger payouts."

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = dict(options or {})
        self.max_pool_size = float(get_option(self.options, 'max_pool_size', 10))
        self.min_payout_multiplier = float(get_option(self.options, 'min_payout_multiplier', 2.0))

    def compute_vote(self, view: ParsedView, balance: float, state: AgentState,
                     rng: random.Random) -> VoteResult:
        if not should_play(view, balance):
            return None

        candidates = []
        for team in view.teams:
            if team.closest_fruit is None or team.pool > self.max_pool_size:
                continue
            multiplier = view.prize_pool / (team.pool + 1)
            if multiplier >= self.min_payout_multiplier:
                candidates.append((multiplier, team))

        if candidates:
            multiplier, target = max(candidates, key=lambda c: c[0])
            reason = f"underdog ({multiplier:.1f}x payout)"
        else:
            # Smallest pool that can still score
            with_fruit = [t for t in view.teams if t.closest_fruit is not None]
            if not with_fruit:
                return None
            target = min(with_fruit, key=lambda t: t.pool)
            reason = 'fallback_smallest_pool'

        fruit = target.closest_fruit.fruit
        direction = self.find_best_direction(view, fruit)
        if direction is None:
            return None
        return VoteAction(direction=direction, team=target.id, amount=view.min_bid,
                          reason=reason, target=fruit)

    def find_best_direction(self, view: ParsedView, target_fruit: Optional[Position]) -> Optional[str]:
        best = None
        best_score = -math.inf
        for direction in view.valid_directions:
            new_pos = step(view.head, direction)
            score = 0
            if target_fruit is not None:
                score += (10 - view.grid.distance(new_pos, target_fruit)) * 5
            score += count_exits(new_pos, view.body, view.grid, opposite(direction)) * 8
            if score > best_score:
                best_score = score
                best = direction
        return best
