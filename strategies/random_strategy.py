import random
from typing import Any, Dict, Optional

from models import AgentState, VoteAction, VoteResult
from strategies.base import should_play
from view import ParsedView


class RandomStrategy:
    """Random legal moves. The lower bound for every other strategy."""
    name = "random"
    description = "Random valid moves. For testing or chaos."

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = dict(options or {})

    def compute_vote(self, view: ParsedView, balance: float, state: AgentState,
                     rng: random.Random) -> VoteResult:
        if not should_play(view, balance) or not view.teams:
            return None

        direction = rng.choice(view.valid_directions)
        with_fruit = [t for t in view.teams if t.closest_fruit is not None]
        team = rng.choice(with_fruit) if with_fruit else view.teams[0]

        return VoteAction(direction=direction, team=team.id, amount=view.min_bid,
                          reason='random')
