"""
End-of-round bookkeeping for the snake rodeo.
Handles stake settlement, the min bid reset, victory checks and payouts.

- Every stake (initial vote or counter-bid) goes to its team pool and the
  prize pool; nothing is refunded (all-pay)
- The min bid returns to the configured initial value after every round
- A team wins the instant its score reaches fruits_to_win
- The winning team's voters split the whole prize pool by vote count
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from models import GameState


def settle_stakes(game_state: GameState, votes: Iterable) -> GameState:
    """
    Add every stake of the round to its team pool and the prize pool.

    Args:
        game_state: Current game state
        votes: CastVote records (initial and counter), anything with .vote

    Returns:
        New GameState with updated pools
    """
    team_pools = dict(game_state.team_pools)
    prize_pool = game_state.prize_pool
    for cast in votes:
        vote = cast.vote
        team_pools[vote.team] = team_pools.get(vote.team, 0) + vote.amount
        prize_pool += vote.amount
    return replace(game_state, team_pools=team_pools, prize_pool=prize_pool)


def reset_min_bid(game_state: GameState) -> GameState:
    """Restore the configured initial min bid for the next round."""
    return replace(game_state, min_bid=game_state.config.initial_min_bid or 1)


def check_victory(
    fruit_scores: Mapping[str, int],
    fruits_to_win: int,
    team_order: Sequence[str]
) -> Optional[str]:
    """
    Check whether any team has reached the winning score.

    Args:
        fruit_scores: Team id -> fruits scored
        fruits_to_win: Winning threshold
        team_order: Team ids in display order; the first qualifying team wins

    Returns:
        Winning team id, or None
    """
    for team_id in team_order:
        if fruit_scores.get(team_id, 0) >= fruits_to_win:
            return team_id
    return None


def distribute_payout(agents: Sequence, winner: str, prize_pool: float) -> Dict[str, float]:
    """
    Split the prize pool among the winning team's voters.

    Each agent's share is its number of votes on the winning team over
    the team's total; agents with votes on the winner are credited a win.

    Args:
        agents: SimAgents with votes_by_team tallies for the game
        winner: Winning team id
        prize_pool: Pool to distribute

    Returns:
        Agent id -> amount paid
    """
    backers: List = [a for a in agents if a.votes_by_team.get(winner, 0) > 0]
    total_votes = sum(a.votes_by_team[winner] for a in backers)
    payouts: Dict[str, float] = {}
    if total_votes == 0:
        return payouts

    for agent in backers:
        share = agent.votes_by_team[winner] / total_votes
        amount = prize_pool * share
        agent.record_win(amount)
        payouts[agent.id] = amount
    return payouts
