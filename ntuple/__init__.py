"""
N-tuple network agent for the 2048 variant where two 8192 tiles end the game.

This package provides the learning side of the project:
- Feature extraction over 2x2 patterns and the eight board symmetries
- NTupleNetwork: weight tables and the symmetric value function
- StrategicPolicy: greedy slide selection with danger and survival shaping
- TDLearner: online and end-of-episode TD(λ) updates with eligibility traces
- Agents, configuration, weight files, metrics, statistics and the training script

Submodules
----------
features : Patterns, symmetries and feature indices
network : Weight tables and value function
policy : Slide selection
learner : TD(λ) learning
trajectory : Steps of the current episode
agents : RandomPlacer, RandomSlider, StrategicSlider
config : Typed agent configuration
persistence : Weight files
metrics : Learning counters and game journal
statistics : Game statistics
arena : Episode loop
train : Command line entry point
"""

from .agents import AGENTS, RandomPlacer, RandomSlider, StrategicSlider
from .config import AgentConfig, ConfigError
from .features import DEFAULT_PATTERNS, SYMMETRIES, FeatureExtractor, feature_index
from .learner import TDLearner, TerminalRewards, TraceMode
from .network import NTupleNetwork
from .persistence import WeightFileError, load_weights, save_weights
from .policy import StrategicPolicy
from .trajectory import GameStep, Trajectory

__all__ = [
    'AGENTS',
    'RandomPlacer',
    'RandomSlider',
    'StrategicSlider',
    'AgentConfig',
    'ConfigError',
    'DEFAULT_PATTERNS',
    'SYMMETRIES',
    'FeatureExtractor',
    'feature_index',
    'TDLearner',
    'TerminalRewards',
    'TraceMode',
    'NTupleNetwork',
    'WeightFileError',
    'load_weights',
    'save_weights',
    'StrategicPolicy',
    'GameStep',
    'Trajectory',
]
