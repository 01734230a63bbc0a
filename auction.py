"""
Vote auction for one round of the snake rodeo.

- Every agent sees the same snapshot and votes or abstains, in a shuffled order
- The chronologically last vote decides direction and team, not the highest amount
- Overridden agents may counter-bid; each iteration with a counter doubles
  the min bid, up to max_extensions iterations
- An accepted counter is the new last vote at once, visible to agents later
  in the same iteration
"""

import random
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from grid import valid_directions
from models import GameState, VoteAction
from view import parse_game_state


@dataclass(frozen=True)
class CastVote:
    """A vote and the agent that placed it."""
    agent: Any  # SimAgent
    vote: VoteAction
    counter: bool = False


@dataclass
class AuctionOutcome:
    votes: List[CastVote]  # Initial votes, then counters in the order accepted
    last_vote: CastVote
    extensions: int = 0
    min_bid: int = 1  # Min bid reached; resets after the round
    counters: List[Tuple[int, CastVote]] = field(default_factory=list)  # (extension, vote)

    @property
    def direction(self) -> str:
        return self.last_vote.vote.direction

    @property
    def team(self) -> str:
        return self.last_vote.vote.team


def collect_votes(agents: Sequence, game_state: GameState, rng: random.Random) -> List[CastVote]:
    """
    Ask every agent for a vote on the current snapshot.

    Args:
        agents: SimAgents taking part
        game_state: Snapshot shown to every agent
        rng: Seeded random source for the fairness shuffle and the strategies

    Returns:
        Votes in submission order
    """
    order = list(agents)
    rng.shuffle(order)
    view = parse_game_state(game_state)

    votes = []
    for agent in order:
        vote = agent.compute_vote(view, rng)
        if vote is not None:
            votes.append(CastVote(agent, vote))
    return votes


def resolve_last_vote(votes: Sequence[CastVote]) -> Optional[CastVote]:
    """Last vote wins, whatever the amounts."""
    return votes[-1] if votes else None


def resolve_round_direction(
    votes: Sequence[CastVote],
    game_state: GameState
) -> Tuple[Optional[str], Optional[str]]:
    """
    Direction and controlling team for the round.

    With no votes the snake keeps its heading when legal, else takes the
    first legal direction and nobody controls it. (None, None) means a
    dead end.
    """
    last = resolve_last_vote(votes)
    if last is not None:
        return last.vote.direction, last.vote.team

    legal = valid_directions(game_state.head, game_state.body, game_state.grid)
    if not legal:
        return None, None
    if game_state.snake.current_direction in legal:
        return game_state.snake.current_direction, None
    return legal[0], None


def _latest_per_agent(votes: Sequence[CastVote]) -> List[CastVote]:
    latest: Dict[int, CastVote] = {}
    for cast in votes:
        latest[id(cast.agent)] = cast
    return list(latest.values())


def _with_leader(game_state: GameState, min_bid: int, leader: CastVote) -> GameState:
    snake = replace(game_state.snake,
                    current_direction=leader.vote.direction,
                    controlling_team=leader.vote.team)
    return replace(game_state, min_bid=min_bid, snake=snake)


def run_counter_bid_loop(
    votes: Sequence[CastVote],
    game_state: GameState,
    rng: random.Random,
    max_extensions: int = 5
) -> AuctionOutcome:
    """
    Run the counter-bid extension loop after the initial votes.

    Each iteration shows agents a snapshot with the doubled min bid and
    the current winning direction and team, then offers every agent whose
    latest vote points elsewhere (in shuffled order) a counter at that cost.

    Args:
        votes: Initial votes in submission order, at least one
        game_state: Snapshot the initial votes were cast on
        rng: Seeded random source
        max_extensions: Cap on iterations

    Returns:
        AuctionOutcome with every vote, the deciding vote and the extension count
    """
    votes = list(votes)
    last = votes[-1]
    current_min_bid = game_state.min_bid
    extensions = 0
    counters: List[Tuple[int, CastVote]] = []

    for _ in range(max_extensions):
        cost = current_min_bid * 2
        shown = _with_leader(game_state, cost, last)

        overridden = [c for c in _latest_per_agent(votes)
                      if c.agent is not last.agent and c.vote.direction != last.vote.direction]
        if not overridden:
            break
        rng.shuffle(overridden)

        any_countered = False
        for previous in overridden:
            # An earlier counter this iteration may already point our way
            if previous.agent is last.agent or previous.vote.direction == last.vote.direction:
                continue
            counter = previous.agent.compute_counter_bid(parse_game_state(shown), previous.vote, rng)
            if counter is None:
                continue
            cast = CastVote(previous.agent, counter, counter=True)
            votes.append(cast)
            counters.append((extensions + 1, cast))
            last = cast
            shown = _with_leader(shown, cost, last)
            any_countered = True

        if not any_countered:
            break
        extensions += 1
        current_min_bid = cost

    return AuctionOutcome(
        votes=votes,
        last_vote=last,
        extensions=extensions,
        min_bid=current_min_bid,
        counters=counters,
    )
