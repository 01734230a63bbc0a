"""
Tournament runner: many seeded games across rodeo configurations.

The whole tournament reproduces from one master seed; each game's seed is
drawn from a master random.Random in order.

Usage:
    registry = build_default_registry()
    agents = create_agents_from_specs(['ev', 'aggressive'], registry)
    results = run_tournament(agents, RODEO_CYCLES, games_per_config=50,
                             options=SimulateOptions(seed=42))
    print(format_results(results))
"""

import random
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from models import RodeoConfig
from simulator import SimAgent, SimulateOptions, new_seed, simulate_game
from state import RODEO_CYCLES, TEAM_CONFIG, load_config
from strategies.registry import StrategyRegistry, build_default_registry, parse_agent_spec


@dataclass
class ConfigResult:
    """Outcome counts and round statistics for one configuration."""
    config: str
    games: int = 0
    wins: Dict[str, int] = field(default_factory=dict)
    no_winner: int = 0
    rounds: List[int] = field(default_factory=list)

    @property
    def avg_rounds(self) -> float:
        return float(np.mean(self.rounds)) if self.rounds else 0.0

    @property
    def std_rounds(self) -> float:
        return float(np.std(self.rounds)) if self.rounds else 0.0

    @property
    def median_rounds(self) -> float:
        return float(np.median(self.rounds)) if self.rounds else 0.0

    def to_dict(self) -> Dict:
        return {
            'config': self.config,
            'games': self.games,
            'wins': dict(self.wins),
            'no_winner': self.no_winner,
            'avg_rounds': round(self.avg_rounds, 2),
            'std_rounds': round(self.std_rounds, 2),
            'median_rounds': self.median_rounds,
        }


@dataclass
class AgentStats:
    name: str
    strategy: str
    games_played: int
    wins: int
    total_spent: float
    total_earned: float

    @property
    def win_rate(self) -> float:
        return self.wins / self.games_played if self.games_played else 0.0

    @property
    def profit(self) -> float:
        return self.total_earned - self.total_spent

    @property
    def roi(self) -> float:
        return self.profit / self.total_spent if self.total_spent > 0 else 0.0

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'strategy': self.strategy,
            'games_played': self.games_played,
            'wins': self.wins,
            'win_rate': round(self.win_rate, 4),
            'total_spent': round(self.total_spent, 2),
            'total_earned': round(self.total_earned, 2),
            'profit': round(self.profit, 2),
            'roi': round(self.roi, 4),
        }


@dataclass
class StrategyGroup:
    """Agent stats summed over every agent sharing a spec label."""
    label: str
    wins: int
    games: int
    total_spent: float
    total_earned: float

    @property
    def win_rate(self) -> float:
        return self.wins / self.games if self.games else 0.0

    @property
    def profit(self) -> float:
        return self.total_earned - self.total_spent

    @property
    def roi(self) -> float:
        return self.profit / self.total_spent if self.total_spent > 0 else 0.0

    def to_dict(self) -> Dict:
        return {
            'label': self.label,
            'wins': self.wins,
            'games': self.games,
            'win_rate': round(self.win_rate, 4),
            'total_spent': round(self.total_spent, 2),
            'total_earned': round(self.total_earned, 2),
            'profit': round(self.profit, 2),
            'roi': round(self.roi, 4),
        }


@dataclass
class TournamentResults:
    seed: int
    total_games: int = 0
    wins: Dict[str, int] = field(default_factory=dict)
    config_results: List[ConfigResult] = field(default_factory=list)
    agent_stats: List[AgentStats] = field(default_factory=list)
    rounds: List[int] = field(default_factory=list)

    @property
    def avg_rounds(self) -> float:
        return float(np.mean(self.rounds)) if self.rounds else 0.0

    def to_dict(self) -> Dict:
        return {
            'seed': self.seed,
            'total_games': self.total_games,
            'wins': dict(self.wins),
            'avg_rounds': round(self.avg_rounds, 2),
            'config_results': [c.to_dict() for c in self.config_results],
            'agent_stats': [a.to_dict() for a in self.agent_stats],
            'strategies': [g.to_dict() for g in aggregate_by_strategy(self)],
        }


def create_agents_from_specs(
    specs: Sequence[str],
    registry: Optional[StrategyRegistry] = None,
    balance: float = 100
) -> List[SimAgent]:
    """
    Build one SimAgent per spec string, e.g. ['ev', 'ev:contrarian', 'agg'].

    Agents are named '<label>#<index>' so duplicates stay distinguishable.

    Raises:
        UnknownStrategyError: If a spec names an unregistered strategy
    """
    registry = registry or build_default_registry()
    agents = []
    for i, raw in enumerate(specs):
        spec = parse_agent_spec(raw)
        strategy = registry.create(spec.strategy_name, spec.options)
        agents.append(SimAgent(f"agent-{i}", f"{spec.label}#{i}", strategy, balance))
    return agents


def run_tournament(
    agents: List[SimAgent],
    configs: Sequence[RodeoConfig],
    games_per_config: Optional[int] = None,
    options: Optional[SimulateOptions] = None
) -> TournamentResults:
    """
    Play games_per_config games for every configuration with the same agents.

    Args:
        agents: Players, reused across games (cumulative stats carry over)
        configs: Rodeo cycles to play
        games_per_config: Games per configuration (default from config.json)
        options: Master seed, round and extension caps, verbosity

    Returns:
        TournamentResults with per-config and per-agent statistics
    """
    options = options or SimulateOptions()
    if games_per_config is None:
        games_per_config = load_config()['default_games']
    master_seed = options.seed if options.seed is not None else new_seed()
    master_rng = random.Random(master_seed)

    results = TournamentResults(seed=master_seed)
    results.wins = {team.id: 0 for team in TEAM_CONFIG}

    for config in configs:
        config_result = ConfigResult(
            config=config.name,
            wins={team.id: 0 for team in TEAM_CONFIG[:config.number_of_teams]},
        )

        for _ in range(games_per_config):
            game_seed = master_rng.randrange(2 ** 32)
            game_options = SimulateOptions(
                max_rounds=options.max_rounds,
                verbose=options.verbose,
                seed=game_seed,
                max_extensions=options.max_extensions,
            )
            result = simulate_game(agents, config, game_options)

            results.total_games += 1
            results.rounds.append(result.rounds)
            config_result.games += 1
            config_result.rounds.append(result.rounds)

            if result.winner:
                results.wins[result.winner] = results.wins.get(result.winner, 0) + 1
                config_result.wins[result.winner] = config_result.wins.get(result.winner, 0) + 1
            else:
                config_result.no_winner += 1

        results.config_results.append(config_result)

    results.agent_stats = [
        AgentStats(
            name=a.name,
            strategy=a.strategy.name,
            games_played=a.games_played,
            wins=a.wins,
            total_spent=a.cumulative_spent,
            total_earned=a.cumulative_earned,
        )
        for a in agents
    ]
    return results


def aggregate_by_strategy(results: TournamentResults) -> List[StrategyGroup]:
    """Group agent stats by spec label (the name without its '#n' suffix)."""
    groups: Dict[str, StrategyGroup] = {}
    for stat in results.agent_stats:
        label = re.sub(r'#\d+$', '', stat.name)
        group = groups.get(label)
        if group is None:
            group = groups[label] = StrategyGroup(label, 0, 0, 0.0, 0.0)
        group.wins += stat.wins
        group.games += stat.games_played
        group.total_spent += stat.total_spent
        group.total_earned += stat.total_earned
    return list(groups.values())


def format_results(results: TournamentResults) -> str:
    """Render results as a plain-text report."""
    lines = [
        "",
        "Tournament Results",
        "=" * 70,
        f"  Games: {results.total_games}  |  Avg rounds: {results.avg_rounds:.1f}  |  Seed: {results.seed}",
        "",
    ]

    for cr in results.config_results:
        win_parts = ' '.join(f"{t}:{w}" for t, w in cr.wins.items() if w > 0)
        draws = f"  ({cr.no_winner} draws)" if cr.no_winner else ''
        lines.append(
            f"  {cr.config:<8} {cr.games} games, avg {cr.avg_rounds:.1f} rounds "
            f"(median {cr.median_rounds:.0f}, sd {cr.std_rounds:.1f}) - wins: {win_parts}{draws}")

    lines += [
        "",
        "  Strategy Performance:",
        "  " + "-" * 68,
        f"  {'Strategy':<22} {'Wins':>10}  {'Win%':>6}  {'Spent':>7}  {'Earned':>7}  {'ROI':>7}",
        "  " + "-" * 68,
    ]
    groups = sorted(aggregate_by_strategy(results), key=lambda g: g.roi, reverse=True)
    for g in groups:
        lines.append(
            f"  {g.label:<22} {g.wins:>4}/{g.games:<5}  {g.win_rate * 100:>5.1f}%  "
            f"{round(g.total_spent):>7}  {round(g.total_earned):>7}  {g.roi * 100:>6.1f}%")

    if len(groups) == 2:
        a, b = groups
        lines += ["", "  Head-to-Head:", f"  {a.label}: {a.wins}  vs  {b.label}: {b.wins}"]
        if a.wins != b.wins:
            leader, trailer = (a, b) if a.wins > b.wins else (b, a)
            lines.append(f"  -> {leader.label} wins by "
                         f"{(leader.win_rate - trailer.win_rate) * 100:.1f} percentage points")
        else:
            lines.append("  -> Dead even!")

    lines.append(f"\n  Seed: {results.seed} (rerun with the same seed to reproduce)")
    return "\n".join(lines)


if __name__ == '__main__':
    demo_agents = create_agents_from_specs(['ev', 'aggressive', 'underdog', 'conservative'])
    demo = run_tournament(demo_agents, RODEO_CYCLES, games_per_config=20,
                          options=SimulateOptions(seed=42))
    print(format_results(demo))
