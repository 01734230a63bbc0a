"""
Round telemetry for simulated games.

Every round of a simulated game produces one RoundLogEntry; notable
happenings (fruit eaten, collisions, counter-bids, dead ends, wins and
payouts) go through log_event as flat dicts. A GameTrace collects both
and serializes to JSONL, one JSON object per line.

Two games run from the same seed and agents produce byte-identical
to_jsonl() output.

Usage:
    trace = GameTrace(seed=42, config='Small', agents=['ev#0', 'agg#1'])
    log_event(trace.events, 3, 'ate_fruit', team='A', position=[1, -1])
    trace.write_jsonl('logs/game_42.jsonl')
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any


def log_event(events: list[dict[str, Any]], round_index: int, event: str, **kwargs) -> None:
    """
    Add an event to a game's event log.

    Args:
        events: Event list to append to
        round_index: Round the event happened in
        event: Event code
        **kwargs: Additional event data to include
    """
    log_entry = {
        'round': round_index,
        'event': event,
        **kwargs
    }
    events.append(log_entry)


@dataclass
class VoteRecord:
    """One vote cast in a round, initial or counter."""

    agent: str
    direction: str
    team: str
    amount: float
    counter: bool = False

    def to_dict(self) -> dict:
        return {
            "agent": self.agent,
            "dir": self.direction,
            "team": self.team,
            "amount": self.amount,
            "counter": self.counter,
        }


@dataclass
class RoundLogEntry:
    """Outcome of one round: the resolved move and the votes behind it."""

    round: int
    direction: str | None
    winning_team: str | None
    event: str
    votes: list[VoteRecord] = field(default_factory=list)
    extensions: int = 0
    min_bid: int = 1  # Min bid reached by the counter-bid loop
    scores: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "round": self.round,
            "direction": self.direction,
            "winning_team": self.winning_team,
            "event": self.event,
            "votes": [v.to_dict() for v in self.votes],
            "extensions": self.extensions,
            "min_bid": self.min_bid,
            "scores": dict(self.scores),
        }


@dataclass
class GameTrace:
    """Complete record of a single simulated game."""

    seed: int = 0
    config: str = ""
    agents: list[str] = field(default_factory=list)
    rounds: list[RoundLogEntry] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)
    winner: str | None = None
    total_rounds: int = 0
    prize_pool: float = 0

    def add_round(self, entry: RoundLogEntry) -> None:
        self.rounds.append(entry)

    def events_of(self, event: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e['event'] == event]

    def to_dict(self) -> dict:
        return {
            "seed": self.seed,
            "config": self.config,
            "agents": list(self.agents),
            "winner": self.winner,
            "rounds": self.total_rounds,
            "prize_pool": self.prize_pool,
            "round_log": [r.to_dict() for r in self.rounds],
            "events": list(self.events),
        }

    def to_jsonl(self) -> str:
        """Serialize as JSONL: a header line, then rounds and events in order."""
        lines = []
        header = {
            "type": "game_header",
            "seed": self.seed,
            "config": self.config,
            "agents": self.agents,
            "winner": self.winner,
            "rounds": self.total_rounds,
            "prize_pool": self.prize_pool,
        }
        lines.append(json.dumps(header, sort_keys=True))
        for entry in self.rounds:
            line = {"type": "round"}
            line.update(entry.to_dict())
            lines.append(json.dumps(line, sort_keys=True))
        for event in self.events:
            line = {"type": "event"}
            line.update(event)
            lines.append(json.dumps(line, sort_keys=True))
        return "\n".join(lines)

    def write_jsonl(self, filepath: str) -> None:
        """Write the trace to a JSONL file."""
        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
        with open(filepath, "w") as f:
            f.write(self.to_jsonl())
            f.write("\n")
