"""
Configuration of the agents.

Agents are configured by whitespace-separated ``key=value`` tokens, e.g.
``"init=65536,65536,65536,65536 alpha=0.1 lambda=0.9 learning=1 penalty=0.7 bonus=1000 save=stage1.w"``.
The tokens are parsed once into a typed record; unknown keys are kept aside untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ntuple.features import SYMMETRIES
from ntuple.learner import DEFAULT_UPDATE_SYMMETRIES, TerminalRewards, TraceMode
from ntuple.policy import DANGER_SCALE
from tilegame.core.rules import DEFAULT_TARGET

_TRUE = frozenset({'1', 'true', 'yes', 'on'})
_FALSE = frozenset({'0', 'false', 'no', 'off'})

KNOWN_KEYS = frozenset(
    {
        'name',
        'role',
        'init',
        'load',
        'save',
        'alpha',
        'lambda',
        'decay',
        'learning',
        'penalty',
        'bonus',
        'scale',
        'target',
        'seed',
        'traces',
        'update',
        'journal',
        'win_reward',
        'near_win_reward',
        'next_tier_reward',
        'completion_reward',
    }
)


class ConfigError(ValueError):
    """Raised when a configuration value cannot be converted to its type."""


class AgentArgs(dict):
    """
    Raw ``key=value`` pairs with typed accessors.

    Later tokens override earlier ones. A token without ``=`` is stored with itself as the value.
    """

    @classmethod
    def parse(cls, args: str) -> AgentArgs:
        pairs = cls()
        for token in args.split():
            key, sep, value = token.partition('=')
            pairs[key] = value if sep else token
        return pairs

    def get_str(self, key: str, default: str | None = None) -> str | None:
        return self.get(key, default)

    def get_float(self, key: str, default: float) -> float:
        if key not in self:
            return default
        try:
            return float(self[key])
        except ValueError as error:
            raise ConfigError(f'{key}={self[key]!r} is not a number') from error

    def get_int(self, key: str, default: int | None) -> int | None:
        if key not in self:
            return default
        try:
            return int(self[key])
        except ValueError as error:
            raise ConfigError(f'{key}={self[key]!r} is not an integer') from error

    def get_bool(self, key: str, default: bool) -> bool:
        if key not in self:
            return default
        value = self[key].lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        raise ConfigError(f'{key}={self[key]!r} is not a boolean')


def _parse_sizes(value: str) -> tuple[int, ...]:
    try:
        sizes = tuple(int(size) for size in value.split(',') if size)
    except ValueError as error:
        raise ConfigError(f'init={value!r} must be comma-separated table sizes') from error
    if any(size < 0 for size in sizes):
        raise ConfigError(f'init={value!r} has a negative table size')
    return sizes


def _parse_update(value: str) -> tuple[tuple[str, float], ...]:
    symmetries = []
    for item in value.split(','):
        name, _, scale = item.partition(':')
        if name not in SYMMETRIES:
            raise ConfigError(f'update={value!r} names an unknown symmetry {name!r}')
        try:
            symmetries.append((name, float(scale) if scale else 1.0))
        except ValueError as error:
            raise ConfigError(f'update={value!r} has a bad scale for {name!r}') from error
    return tuple(symmetries)


@dataclass
class AgentConfig:
    """
    Typed configuration of an agent.

    Attributes are named after their keys, except ``discount`` which is read from ``lambda``.
    """

    # ##>: Identity.
    name: str = 'unknown'
    role: str = 'unknown'

    # ##>: Weight tables.
    init: tuple[int, ...] = ()  # Sizes of freshly created tables
    load: str | None = None  # Weight file read at construction
    save: str | None = None  # Weight file written when the agent closes

    # ##>: Learning.
    alpha: float = 0.0  # Learning rate
    discount: float = 0.9  # λ
    decay: float = 0.8  # Eligibility trace decay
    learning: bool = True
    traces: TraceMode = TraceMode.REPLACE
    update: tuple[tuple[str, float], ...] = DEFAULT_UPDATE_SYMMETRIES
    rewards: TerminalRewards = field(default_factory=TerminalRewards)

    # ##>: Shaping of the policy.
    penalty: float = 0.7  # Danger penalty factor
    bonus: float = 1000.0  # Survival bonus per empty cell
    scale: float = DANGER_SCALE
    target: int = DEFAULT_TARGET  # Exponent of the win tile

    # ##>: Miscellaneous.
    seed: int | None = None
    journal: str | None = None  # Directory of the game journal
    extras: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, args: str = '', defaults: str = '') -> AgentConfig:
        """
        Parse ``key=value`` tokens.

        Parameters
        ----------
        args : str
            User tokens.
        defaults : str, optional
            Tokens placed before the user tokens, e.g. ``"name=strategic role=slider"``.

        Returns
        -------
        AgentConfig
            The typed configuration.

        Raises
        ------
        ConfigError
            If a recognised key holds a malformed value.
        """
        pairs = AgentArgs.parse(f'name=unknown role=unknown {defaults} {args}')

        traces = pairs.get_str('traces', TraceMode.REPLACE.value)
        try:
            trace_mode = TraceMode(traces)
        except ValueError as error:
            raise ConfigError(f'traces={traces!r} must be one of replace, accumulate') from error

        defaults_rewards = TerminalRewards()
        return cls(
            name=pairs.get_str('name'),
            role=pairs.get_str('role'),
            init=_parse_sizes(pairs['init']) if 'init' in pairs else (),
            load=pairs.get_str('load'),
            save=pairs.get_str('save'),
            alpha=pairs.get_float('alpha', 0.0),
            discount=pairs.get_float('lambda', 0.9),
            decay=pairs.get_float('decay', 0.8),
            learning=pairs.get_bool('learning', True),
            traces=trace_mode,
            update=_parse_update(pairs['update']) if 'update' in pairs else DEFAULT_UPDATE_SYMMETRIES,
            rewards=TerminalRewards(
                win=pairs.get_float('win_reward', defaults_rewards.win),
                near_win=pairs.get_float('near_win_reward', defaults_rewards.near_win),
                next_tier=pairs.get_float('next_tier_reward', defaults_rewards.next_tier),
                completion=pairs.get_float('completion_reward', defaults_rewards.completion),
            ),
            penalty=pairs.get_float('penalty', 0.7),
            bonus=pairs.get_float('bonus', 1000.0),
            scale=pairs.get_float('scale', DANGER_SCALE),
            target=pairs.get_int('target', DEFAULT_TARGET),
            seed=pairs.get_int('seed', None),
            journal=pairs.get_str('journal'),
            extras={key: value for key, value in pairs.items() if key not in KNOWN_KEYS},
        )
