"""
Strategy registry.

A StrategyRegistry is a plain value: build one with build_default_registry()
at startup and pass it to whoever needs to create strategies.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from strategies.aggressive import AggressiveStrategy
from strategies.base import Strategy
from strategies.conservative import ConservativeStrategy
from strategies.expected_value import ExpectedValueStrategy
from strategies.random_strategy import RandomStrategy
from strategies.underdog import UnderdogStrategy

StrategyFactory = Callable[[Optional[Dict[str, Any]]], Strategy]

DEFAULT_ALIASES = {
    'ev': 'expected-value',
    'agg': 'aggressive',
    'und': 'underdog',
    'con': 'conservative',
    'rand': 'random',
    'default': 'expected-value',
}


class UnknownStrategyError(Exception):
    """Exception raised when a strategy name or alias is not registered."""
    pass


@dataclass(frozen=True)
class StrategyInfo:
    name: str
    description: str
    aliases: Tuple[str, ...]

    def to_dict(self) -> Dict:
        return {'name': self.name, 'description': self.description, 'aliases': list(self.aliases)}


@dataclass(frozen=True)
class AgentSpec:
    """One parsed agent spec such as 'ev:contrarian:defect_threshold=0.5'."""
    label: str
    strategy_name: str
    options: Dict[str, Any]


class StrategyRegistry:
    """Strategy factories by name, plus aliases."""

    def __init__(self):
        self._factories: Dict[str, StrategyFactory] = {}
        self._descriptions: Dict[str, str] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, name: str, factory: StrategyFactory, description: str = '',
                 aliases: Tuple[str, ...] = ()) -> None:
        self._factories[name] = factory
        self._descriptions[name] = description or getattr(factory, 'description', '')
        for alias in aliases:
            self._aliases[alias] = name

    def add_alias(self, alias: str, name: str) -> None:
        if name not in self._factories:
            raise UnknownStrategyError(f"Cannot alias unknown strategy: {name}")
        self._aliases[alias] = name

    def resolve(self, name: str) -> str:
        """Canonical strategy name for a name or alias."""
        resolved = self._aliases.get(name, name)
        if resolved not in self._factories:
            raise UnknownStrategyError(
                f"Unknown strategy: {name}. Available: {', '.join(self.names())}")
        return resolved

    def create(self, name: str, options: Optional[Dict[str, Any]] = None) -> Strategy:
        """
        Create a strategy instance.

        Args:
            name: Strategy name or alias
            options: Strategy options (defaults apply for missing keys)

        Returns:
            New strategy instance

        Raises:
            UnknownStrategyError: If the name is not registered
        """
        return self._factories[self.resolve(name)](options or {})

    def names(self) -> List[str]:
        return list(self._factories)

    def info(self, name: str) -> StrategyInfo:
        resolved = self.resolve(name)
        aliases = tuple(a for a, target in self._aliases.items() if target == resolved)
        return StrategyInfo(resolved, self._descriptions[resolved], aliases)

    def list_info(self) -> List[StrategyInfo]:
        return [self.info(name) for name in self.names()]

    def __contains__(self, name: str) -> bool:
        return self._aliases.get(name, name) in self._factories


def build_default_registry() -> StrategyRegistry:
    """Registry with the built-in strategies and their short aliases."""
    registry = StrategyRegistry()
    for cls in (ExpectedValueStrategy, AggressiveStrategy, UnderdogStrategy,
                ConservativeStrategy, RandomStrategy):
        registry.register(cls.name, cls, cls.description)
    for alias, name in DEFAULT_ALIASES.items():
        registry.add_alias(alias, name)
    return registry


def _coerce(value: str) -> Any:
    lowered = value.lower()
    if lowered in ('true', 'yes'):
        return True
    if lowered in ('false', 'no'):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def parse_agent_spec(spec: str) -> AgentSpec:
    """
    Parse 'strategy[:option[:key=value]]'.

    A bare option is a boolean flag; values are coerced to bool, int or
    float where they look like one. The full spec is the label.
    """
    spec = spec.strip()
    name, *parts = spec.split(':')
    options: Dict[str, Any] = {}
    for part in parts:
        if not part:
            continue
        if '=' in part:
            key, value = part.split('=', 1)
            options[key] = _coerce(value)
        else:
            options[part] = True
    return AgentSpec(label=spec, strategy_name=name, options=options)
