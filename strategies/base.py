"""
Strategy interface and shared helpers.

A strategy is any object with `name`, `description` and
`compute_vote(view, balance, state, rng)`. The rest is optional and looked
up with getattr by the simulator:

    should_counter_bid(view, balance, state, our_vote, rng) -> VoteResult
    on_game_start(view, state)
    on_game_end(view, state, did_win)
    on_round_end(view, state)

Key mechanics every strategy plays against:
- Last vote wins the direction (not the highest amount)
- Payout is per vote count, not cumulative amount
- A vote in the extension window doubles minBid
- All-pay: everyone pays regardless of outcome
"""

import random
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from grid import count_exits, opposite, step
from models import AgentState, VoteResult
from view import ParsedView


@runtime_checkable
class Strategy(Protocol):
    name: str
    description: str

    def compute_vote(self, view: ParsedView, balance: float, state: AgentState,
                     rng: random.Random) -> VoteResult:
        """Return a VoteAction, a Skip, or None (treated as Skip)."""
        ...


def get_option(options: Optional[Dict[str, Any]], key: str, default: Any) -> Any:
    """Option value, falling back to the default when absent or None."""
    if not options:
        return default
    value = options.get(key)
    return default if value is None else value


def should_play(view: Optional[ParsedView], balance: float) -> bool:
    """Play when the game is live, a move exists and we can afford minBid."""
    if view is None or not view.active:
        return False
    if not view.valid_directions:
        return False
    if balance < view.min_bid:
        return False
    return True


def score_direction_safety(direction: str, view: ParsedView) -> int:
    """Exits from the cell the move lands on, not counting the way back."""
    new_pos = step(view.head, direction)
    return count_exits(new_pos, view.body, view.grid, opposite(direction))


def find_safest_direction(view: ParsedView) -> Optional[str]:
    """Legal direction with the most exits; ties keep canonical order."""
    best = None
    best_safety = -1
    for direction in view.valid_directions:
        safety = score_direction_safety(direction, view)
        if safety > best_safety:
            best_safety = safety
            best = direction
    return best
