"""
Expected value strategy.

Backs the team with the best expected payout per vote and steers toward
its fruit with BFS pathfinding and dead-end avoidance.

All-pay payout flow:
  1. Every voter pays minBid regardless of outcome
  2. All stakes from all teams go into the prize pool
  3. When a team wins, the whole pool is split among that team's voters
     in proportion to their vote counts

So a crowded team has a high win chance but a thin slice per voter, and
an empty team keeps everything if it wins. When several teams have
comparable EV the pick is randomized (weighted by EV) so identical agents
do not all pile onto the same team.

Counter-bids are surgical: only when the target fruit is one step away
and the expected return covers several times the escalated cost.
"""

import math
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from grid import bfs_distance, count_exits, flood_fill_size, opposite, step
from models import AgentState, Position, Skip, VoteAction, VoteResult
from strategies.base import find_safest_direction, get_option, should_play
from view import ParsedTeam, ParsedView


@dataclass
class TeamStat:
    team: ParsedTeam
    ev: float
    is_current_team: bool
    bfs_dist: float
    bfs_closest_fruit: Optional[Position]


@dataclass
class TeamAnalysis:
    """Which team to back and why."""
    should_play: bool
    recommended_team: Optional[ParsedTeam]
    reason: str
    team_ev: float = 0.0
    bfs_dist: float = math.inf
    bfs_closest_fruit: Optional[Position] = None


def base_win_probability(fruits_needed: int, dist: float) -> float:
    """Banded win probability from fruits still needed and path distance."""
    if fruits_needed == 1 and dist <= 1:
        return 0.9
    if fruits_needed == 1 and dist <= 3:
        return 0.6
    if fruits_needed == 1:
        return 0.3
    if fruits_needed == 2 and dist <= 2:
        return 0.35
    if fruits_needed == 2:
        return 0.2
    return 0.1


def counter_win_probability(fruits_needed: int, dist: float) -> float:
    """Win probability bands used when deciding a counter-bid."""
    if fruits_needed <= 0:
        return 0.0
    if fruits_needed == 1 and dist <= 1:
        return 0.9
    if fruits_needed == 1 and dist <= 2:
        return 0.7
    if fruits_needed == 1:
        return 0.5
    if fruits_needed == 2 and dist <= 2:
        return 0.4
    if fruits_needed == 2:
        return 0.25
    if fruits_needed == 3:
        return 0.15
    return 0.1


def calculate_expected_value(
    team: ParsedTeam,
    view: ParsedView,
    is_current_team: bool = False,
    bfs_dist: Optional[float] = None
) -> float:
    """
    Expected value of one vote on a team: P(win) x prize pool x our share.

    Args:
        team: Team to evaluate
        view: Parsed snapshot
        is_current_team: True when we already back this team
        bfs_dist: Path distance to the team's fruit (default: grid distance)

    Returns:
        EV in balance units, 0 when the team cannot score
    """
    fruits_needed = view.fruits_to_win - team.score
    if team.closest_fruit is None or fruits_needed <= 0:
        return 0.0
    dist = bfs_dist if bfs_dist is not None else team.closest_fruit.distance
    if dist == math.inf:
        return 0.0

    base_prob = base_win_probability(fruits_needed, dist)

    # Control share counts the stake we would add by joining
    n_teams = len(view.teams)
    total_pools = sum(t.pool for t in view.teams)
    min_bid = view.initial_min_bid or 1
    our_stake = 0 if is_current_team else min_bid
    effective_total = total_pools + our_stake
    if effective_total == 0:
        control_share = 1 / n_teams
    else:
        control_share = (team.pool + our_stake) / effective_total

    control_boost = min(control_share * n_teams, 1)
    win_prob = base_prob * (0.7 + 0.3 * control_boost)

    # The same voters come back every round, so the pool overcounts voters
    votes_per_voter = max(view.round, 1)
    estimated_voters = max(team.pool / (min_bid * votes_per_voter), 1)
    total_voters = estimated_voters + (0 if is_current_team else 1)

    return win_prob * view.prize_pool / total_voters


class ExpectedValueStrategy:
    """Maximizes expected value per vote. BFS pathfinding with dead-end avoidance."""
    name = "expected-value"
    description = "Maximizes expected value per vote. BFS pathfinding with dead-end avoidance."

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = dict(options or {})
        self.contrarian = bool(get_option(self.options, 'contrarian', False))
        self.defect_threshold = float(get_option(self.options, 'defect_threshold', 0.4))
        self.counter_return_multiple = float(get_option(self.options, 'counter_return_multiple', 3))

    def compute_vote(self, view: ParsedView, balance: float, state: AgentState,
                     rng: random.Random) -> VoteResult:
        if not should_play(view, balance):
            return None

        analysis = self.analyze_teams(view, state.current_team, rng)
        if not analysis.should_play:
            return Skip(reason=analysis.reason)

        target_team = analysis.recommended_team
        target_fruit = analysis.bfs_closest_fruit
        if target_fruit is None and target_team.closest_fruit:
            target_fruit = target_team.closest_fruit.fruit

        if analysis.bfs_dist == math.inf:
            # Nothing reachable for this team, just stay alive
            direction = find_safest_direction(view)
            reason = f"{analysis.reason} safest"
        else:
            scored = [(self.score_direction(d, view, target_team, target_fruit), d)
                      for d in view.valid_directions]
            # Stable: the first direction wins ties
            direction = max(scored, key=lambda s: s[0])[1] if scored else None
            new_dist = view.grid.distance(step(view.head, direction), target_fruit) if direction else '?'
            reason = f"{analysis.reason} d:{analysis.bfs_dist}->{new_dist}"

        if direction is None:
            return None

        return VoteAction(
            direction=direction,
            team=target_team.id,
            amount=view.min_bid,
            reason=reason,
            target=target_fruit,
        )

    def should_counter_bid(self, view: ParsedView, balance: float, state: AgentState,
                           our_vote: VoteAction, rng: random.Random) -> VoteResult:
        """
        Counter only when the fruit is one step away and the return justifies it.

        Broad counter-bidding spends more than it earns back, so the bar is
        an affordable cost, a target at path distance <= 1 and an expected
        return above counter_return_multiple times the cost.
        """
        cost = view.min_bid
        if cost > balance:
            return None
        if state.round_budget_remaining < cost:
            return None

        team = view.get_team(our_vote.team)
        if team is None:
            return None
        target = our_vote.target
        if target is None and team.closest_fruit:
            target = team.closest_fruit.fruit
        if target is None:
            return None

        fruit_dist = bfs_distance(view.head, target, view.body, view.grid,
                                  exclude_head=True, time_aware=True).distance
        if fruit_dist > 1:
            return None

        win_prob = counter_win_probability(view.fruits_to_win - team.score, fruit_dist)
        team_voters = max(state.round_vote_count + 1, 2)
        expected_return = win_prob * view.prize_pool / team_voters
        if expected_return <= cost * self.counter_return_multiple:
            return None

        return VoteAction(
            direction=our_vote.direction,
            team=our_vote.team,
            amount=cost,
            reason=f"counter(cost:{cost},d:{fruit_dist},ev:{expected_return:.1f})",
            target=target,
        )

    def analyze_teams(self, view: ParsedView, current_team: Optional[str],
                      rng: random.Random) -> TeamAnalysis:
        """
        Rank teams with fruit by EV and pick one to back.

        Teams whose EV is within defect_threshold of the best are all
        viable; among several viable teams the pick is EV-weighted random.
        """
        stats: List[TeamStat] = []
        for team in view.teams:
            if team.closest_fruit is None:
                continue
            is_current = team.id == current_team

            # BFS-closest fruit may differ from the grid-closest one
            bfs_dist = math.inf
            bfs_fruit = None
            for fruit in view.fruits.get(team.id, ()):
                result = bfs_distance(view.head, fruit, view.body, view.grid,
                                      exclude_head=True, time_aware=True)
                if result.distance < bfs_dist:
                    bfs_dist = result.distance
                    bfs_fruit = fruit

            ev = calculate_expected_value(team, view, is_current, bfs_dist)
            stats.append(TeamStat(team, ev, is_current, bfs_dist, bfs_fruit))

        if not stats:
            return TeamAnalysis(should_play=False, recommended_team=None,
                                reason='no_teams_with_fruits')

        if self.contrarian:
            pick = self._contrarian_pick(stats)
        else:
            pick = self._ev_pick(stats, rng)

        verb = 'back' if not current_team or pick.team.id == current_team else 'defect'
        reason = f"{verb}({pick.team.id},s:{pick.team.score},d:{pick.bfs_dist},ev:{pick.ev:.1f})"
        return TeamAnalysis(
            should_play=True,
            recommended_team=pick.team,
            reason=reason,
            team_ev=pick.ev,
            bfs_dist=pick.bfs_dist,
            bfs_closest_fruit=pick.bfs_closest_fruit,
        )

    def _contrarian_pick(self, stats: List[TeamStat]) -> TeamStat:
        # Unpopular teams with reachable fruit first
        reachable = [s for s in stats if s.bfs_dist < math.inf]
        if not reachable:
            return stats[0]
        return max(reachable,
                   key=lambda s: s.team.score * 20 - s.team.pool * 15 - s.bfs_dist * 20)

    def _ev_pick(self, stats: List[TeamStat], rng: random.Random) -> TeamStat:
        reachable = [s for s in stats if s.bfs_dist < math.inf and s.ev > 0]
        if not reachable:
            return stats[0]

        best = reachable[0]
        for s in reachable[1:]:
            if s.ev > best.ev:
                best = s

        viable = [s for s in reachable if s.ev >= best.ev * self.defect_threshold]
        if len(viable) <= 1:
            return best

        total_ev = sum(s.ev for s in viable)
        roll = rng.random() * total_ev
        cumulative = 0.0
        for s in viable:
            cumulative += s.ev
            if roll < cumulative:
                return s
        return viable[-1]

    def score_direction(self, direction: str, view: ParsedView, target_team: ParsedTeam,
                        target_fruit: Optional[Position] = None) -> float:
        """
        Score one legal move.

        Considers time-aware BFS distance to the target fruit, nearby fruit,
        landing on a rival's fruit, flood-fill trap detection, exits and a
        slight pull toward the centre.
        """
        grid = view.grid
        new_pos = step(view.head, direction)
        score = 0.0

        if target_fruit is None and target_team.closest_fruit:
            target_fruit = target_team.closest_fruit.fruit

        if target_fruit is not None:
            if new_pos == target_fruit:
                score += 5000
            else:
                path = bfs_distance(new_pos, target_fruit, view.body, grid,
                                    exclude_head=False, time_aware=True)
                if path.reachable:
                    score += max(0, 1000 - path.distance * 100)

        # Being near any fruit keeps options open
        if target_fruit is None or grid.distance(new_pos, target_fruit) > 3:
            for fruit in view.all_fruits():
                if fruit == new_pos:
                    continue
                d = grid.distance(new_pos, fruit)
                if d <= 2:
                    score += (3 - d) * 10

        # Eating a rival's fruit helps whoever steers, usually not us
        owner = view.fruit_owner(new_pos)
        if owner is not None and owner != target_team.id:
            score -= 2000

        back = opposite(direction)
        reachable = flood_fill_size(new_pos, view.body, grid, back)
        if reachable <= 2:
            score -= 3000
        elif reachable <= view.snake_length + 2:
            score -= 1000
        else:
            score += reachable / grid.total_cells() * 100

        score += count_exits(new_pos, view.body, grid, back) * 10
        score += (grid.radius - grid.distance(new_pos, (0, 0))) * 2
        return score
