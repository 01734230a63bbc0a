"""
Conservative strategy: minimum bids, safe moves, sits out when behind.
"""

import math
import random
from typing import Any, Dict, Optional

from grid import count_exits, opposite, step
from models import AgentState, Position, VoteAction, VoteResult
from strategies.base import find_safest_direction, get_option, should_play
from view import ParsedView


class ConservativeStrategy:
    name = "conservative"
    description = "Minimum bids, prioritizes safety. Risk-averse."

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = dict(options or {})
        self.skip_if_behind = bool(get_option(self.options, 'skip_if_behind', True))

    def should_play(self, view: ParsedView, balance: float, state: AgentState) -> bool:
        if not should_play(view, balance):
            return False

        if self.skip_if_behind and state.current_team:
            ours = view.get_team(state.current_team)
            leader = max(view.teams, key=lambda t: t.score, default=None)
            # More than one fruit behind
            if ours and leader and leader.score - ours.score > 1:
                return False
        return True

    def compute_vote(self, view: ParsedView, balance: float, state: AgentState,
                     rng: random.Random) -> VoteResult:
        if not self.should_play(view, balance, state):
            return None

        with_fruit = [t for t in view.teams if t.closest_fruit is not None]
        if not with_fruit:
            direction = find_safest_direction(view)
            if direction is None or not view.teams:
                return None
            return VoteAction(direction=direction, team=view.teams[0].id,
                              amount=view.min_bid, reason='safest_direction')

        target = sorted(with_fruit, key=lambda t: (-t.score, t.closest_fruit.distance))[0]
        fruit = target.closest_fruit.fruit
        direction = self.find_safe_direction_toward(view, fruit)
        if direction is None:
            return None

        return VoteAction(direction=direction, team=target.id, amount=view.min_bid,
                          reason='safe_play', target=fruit)

    def find_safe_direction_toward(self, view: ParsedView,
                                   target_fruit: Optional[Position]) -> Optional[str]:
        """Best move with at least two exits, weighting safety over progress."""
        best = None
        best_score = -math.inf
        for direction in view.valid_directions:
            new_pos = step(view.head, direction)
            safety = count_exits(new_pos, view.body, view.grid, opposite(direction))
            score = safety * 15
            if target_fruit is not None:
                score += (10 - view.grid.distance(new_pos, target_fruit)) * 3
            if safety >= 2 and score > best_score:
                best_score = score
                best = direction

        if best is None:
            best = find_safest_direction(view)
        return best
