"""
Offline game simulator for the snake rodeo.

Plays full games between SimAgents with the same auction rules as the
live server. Every random draw (agent order, fruit placement, strategy
choices) comes from one random.Random seeded per game, so a seed and an
agent line-up reproduce a game exactly.

Each round:
1. Reset per-round budgets
2. Agents vote on the snapshot in shuffled order
3. Last vote wins; overridden agents may counter-bid (min bid doubles)
4. Stakes go to the pools, the min bid resets
5. The snake moves; fruit, growth and the win check are applied
6. Winners split the prize pool by vote count
"""

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from auction import collect_votes, resolve_round_direction, run_counter_bid_loop
from grid import valid_directions
from models import AgentState, GameState, RodeoConfig, VoteAction
from resolution import ATE_FRUIT, MOVED, advance_round
from state import get_game_summary, initialize_game, load_config
from telemetry import GameTrace, RoundLogEntry, VoteRecord, log_event
from upkeep import distribute_payout, reset_min_bid, settle_stakes
from view import ParsedView, parse_game_state


class SimAgent:
    """A simulated player: a strategy plus the balance and stats that outlive games."""

    def __init__(self, id: str, name: str, strategy: Any, balance: float = 100):
        self.id = id
        self.name = name
        self.strategy = strategy
        self.balance = balance
        self.current_team: Optional[str] = None
        self.total_spent = 0.0
        self.total_earned = 0.0
        # Across games, kept through reset()
        self.cumulative_spent = 0.0
        self.cumulative_earned = 0.0
        self.votes_placed = 0
        self.votes_by_team: Dict[str, int] = {}
        self.wins = 0
        self.games_played = 0
        self.round_spend = 0.0
        self.round_vote_count = 0
        self.max_round_budget_pct = 0.2

    def reset(self, balance: float = 100) -> None:
        """Start a new game with a fresh balance."""
        self.balance = balance
        self.current_team = None
        self.total_spent = 0.0
        self.total_earned = 0.0
        self.votes_placed = 0
        self.votes_by_team = {}

    def reset_round(self) -> None:
        self.round_spend = 0.0
        self.round_vote_count = 0

    def agent_state(self) -> AgentState:
        round_budget = self.balance * self.max_round_budget_pct
        return AgentState(
            current_team=self.current_team,
            round_spend=self.round_spend,
            round_vote_count=self.round_vote_count,
            round_budget_remaining=max(0.0, round_budget - self.round_spend),
            games_played=self.games_played,
            votes_placed=self.votes_placed,
            wins=self.wins,
        )

    def _place(self, vote: VoteAction) -> None:
        self.current_team = vote.team
        self.balance -= vote.amount
        self.total_spent += vote.amount
        self.votes_placed += 1
        self.votes_by_team[vote.team] = self.votes_by_team.get(vote.team, 0) + 1
        self.round_spend += vote.amount
        self.round_vote_count += 1

    def compute_vote(self, view: Optional[ParsedView], rng: random.Random) -> Optional[VoteAction]:
        """Ask the strategy for a vote and pay for it. Skips come back as None."""
        if view is None or not view.active:
            return None
        result = self.strategy.compute_vote(view, self.balance, self.agent_state(), rng)
        if not isinstance(result, VoteAction):
            return None
        self._place(result)
        return result

    def compute_counter_bid(self, view: Optional[ParsedView], previous_vote: VoteAction,
                            rng: random.Random) -> Optional[VoteAction]:
        """Offer a counter-bid after being overridden; strategies without one decline."""
        should_counter_bid = getattr(self.strategy, 'should_counter_bid', None)
        if should_counter_bid is None:
            return None
        if view is None or not view.active:
            return None
        if self.balance < view.min_bid:
            return None
        result = should_counter_bid(view, self.balance, self.agent_state(), previous_vote, rng)
        if not isinstance(result, VoteAction):
            return None
        self._place(result)
        return result

    def record_win(self, payout: float) -> None:
        self.wins += 1
        self.total_earned += payout
        self.balance += payout

    def finish_game(self) -> None:
        self.cumulative_spent += self.total_spent
        self.cumulative_earned += self.total_earned

    def call_hook(self, hook: str, *args) -> None:
        """Call an optional lifecycle hook on the strategy."""
        method = getattr(self.strategy, hook, None)
        if method is not None:
            method(*args)

    def __repr__(self) -> str:
        return f"SimAgent({self.name!r}, {self.strategy.name!r}, balance={self.balance})"


@dataclass
class SimulateOptions:
    """Per-game settings; None falls back to config.json."""
    max_rounds: Optional[int] = None
    verbose: bool = False
    seed: Optional[int] = None
    max_extensions: Optional[int] = None


@dataclass
class GameResult:
    state: GameState
    winner: Optional[str]
    rounds: int
    fruit_scores: Dict[str, int]
    trace: GameTrace
    seed: int
    payouts: Dict[str, float] = field(default_factory=dict)

    @property
    def round_log(self) -> List[RoundLogEntry]:
        return self.trace.rounds

    def to_dict(self) -> Dict:
        return {
            'winner': self.winner,
            'rounds': self.rounds,
            'fruit_scores': dict(self.fruit_scores),
            'seed': self.seed,
            'payouts': dict(self.payouts),
            'final_state': get_game_summary(self.state),
            'trace': self.trace.to_dict(),
        }


def new_seed() -> int:
    """A fresh 32-bit seed from the OS, for runs without one."""
    return random.SystemRandom().randrange(2 ** 32)


def _vote_records(votes) -> List[VoteRecord]:
    return [
        VoteRecord(agent=c.agent.name, direction=c.vote.direction, team=c.vote.team,
                   amount=c.vote.amount, counter=c.counter)
        for c in votes
    ]


def simulate_game(
    agents: List[SimAgent],
    config: RodeoConfig,
    options: Optional[SimulateOptions] = None,
    initial_state: Optional[GameState] = None
) -> GameResult:
    """
    Run one simulated game.

    Args:
        agents: Players; their balances are reset for this game
        config: Rodeo cycle to play
        options: Round cap, extension cap, seed and verbosity
        initial_state: Start from this snapshot instead of a fresh game

    Returns:
        GameResult with the final state, winner, round count and trace
    """
    options = options or SimulateOptions()
    settings = load_config()
    max_rounds = options.max_rounds if options.max_rounds is not None else settings['max_rounds']
    max_extensions = (options.max_extensions if options.max_extensions is not None
                      else settings['max_extensions'])
    seed = options.seed if options.seed is not None else new_seed()
    rng = random.Random(seed)

    game_state = initial_state if initial_state is not None else initialize_game(config, rng)

    for agent in agents:
        agent.reset(config.starting_balance * settings['balance_multiplier'])
        agent.max_round_budget_pct = settings['max_round_budget_pct']
        agent.games_played += 1

    trace = GameTrace(seed=seed, config=config.name, agents=[a.name for a in agents])
    payouts: Dict[str, float] = {}

    start_view = parse_game_state(game_state)
    for agent in agents:
        agent.call_hook('on_game_start', start_view, agent.agent_state())

    for round_index in range(max_rounds):
        if not game_state.active:
            break

        # No legal move left: the game ends before anyone stakes
        if not valid_directions(game_state.head, game_state.body, game_state.grid):
            log_event(trace.events, round_index, 'dead_end')
            if options.verbose:
                print(f"Round {round_index}: Dead end!")
            break

        for agent in agents:
            agent.reset_round()

        votes = collect_votes(agents, game_state, rng)

        if not votes:
            # Nobody voted: the snake keeps going and nobody pays
            direction, team = resolve_round_direction(votes, game_state)
            log_event(trace.events, round_index, 'no_votes', direction=direction)
            extensions = 0
            min_bid = game_state.min_bid
            cast = []
        else:
            outcome = run_counter_bid_loop(votes, game_state, rng, max_extensions)
            for extension, counter in outcome.counters:
                log_event(trace.events, round_index, 'counter_bid', agent=counter.agent.name,
                          direction=counter.vote.direction, team=counter.vote.team,
                          amount=counter.vote.amount, extension=extension)
            game_state = reset_min_bid(settle_stakes(game_state, outcome.votes))
            direction, team = outcome.direction, outcome.team
            extensions = outcome.extensions
            min_bid = outcome.min_bid
            cast = outcome.votes

        result = advance_round(game_state, direction, team, rng)
        game_state = result.state

        if result.event == ATE_FRUIT:
            log_event(trace.events, round_index, 'ate_fruit', team=team,
                      native_team=result.ate_team, position=list(result.ate_fruit))
        elif result.event != MOVED:
            log_event(trace.events, round_index, result.event, direction=direction, team=team)

        trace.add_round(RoundLogEntry(
            round=round_index,
            direction=direction,
            winning_team=team,
            event=result.event,
            votes=_vote_records(cast),
            extensions=extensions,
            min_bid=min_bid,
            scores=dict(game_state.fruit_scores),
        ))

        if options.verbose:
            ext = f" ({extensions} ext)" if extensions else ''
            if result.event == ATE_FRUIT:
                print(f"Round {round_index}: {team} ate fruit!{ext} Scores: {game_state.fruit_scores}")
            elif extensions:
                print(f"Round {round_index}: {direction} -> {team}{ext}")

        round_view = parse_game_state(game_state)
        for agent in agents:
            agent.call_hook('on_round_end', round_view, agent.agent_state())

        if result.winner:
            payouts = distribute_payout(agents, result.winner, game_state.prize_pool)
            log_event(trace.events, round_index, 'win', team=result.winner,
                      prize_pool=game_state.prize_pool)
            names = {a.id: a.name for a in agents}
            for agent_id, amount in payouts.items():
                log_event(trace.events, round_index, 'payout', agent=names[agent_id],
                          agent_id=agent_id, amount=amount)
            if options.verbose:
                print(f"Game over! Winner: {result.winner} in {game_state.round} rounds "
                      f"(pool: {game_state.prize_pool}, {len(payouts)} agents paid)")
            break

    end_view = parse_game_state(game_state)
    for agent in agents:
        did_win = bool(game_state.winner) and agent.votes_by_team.get(game_state.winner, 0) > 0
        agent.call_hook('on_game_end', end_view, agent.agent_state(), did_win)
        agent.finish_game()

    trace.winner = game_state.winner
    trace.total_rounds = game_state.round
    trace.prize_pool = game_state.prize_pool

    return GameResult(
        state=game_state,
        winner=game_state.winner,
        rounds=game_state.round,
        fruit_scores=dict(game_state.fruit_scores),
        trace=trace,
        seed=seed,
        payouts=payouts,
    )
