"""
TD(λ) learning of the N-tuple weights with eligibility traces.

The learner runs online after every slide, bootstrapping on the value of the next state, and once more at the
end of the episode with a backward pass seeded by a terminal reward.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from numpy import ndarray, zeros_like

from ntuple.metrics import LearningMetrics
from ntuple.network import NTupleNetwork
from ntuple.trajectory import GameStep, Trajectory
from tilegame.core.gameboard import GameBoard
from tilegame.core.rules import DEFAULT_TARGET

logger = logging.getLogger(__name__)

# ##>: Symmetries receiving updates and the scale of their share of the error.
DEFAULT_UPDATE_SYMMETRIES: tuple[tuple[str, float], ...] = (
    ('identity', 1.0),
    ('reflect_horizontal', 0.125),
    ('transpose', 0.125),
)


class TraceMode(str, Enum):
    """
    How a touched cell's eligibility trace changes.

    REPLACE: the trace is set to 1.0 and only the touched cells are updated.
    ACCUMULATE: the trace is incremented and every cell is updated in proportion to its trace.
    """

    REPLACE = 'replace'
    ACCUMULATE = 'accumulate'


class LearnerPhase(str, Enum):
    """Phase of the learner within an episode."""

    IDLE = 'idle'
    ACTIVE = 'active'
    FINALIZING = 'finalizing'


@dataclass(frozen=True)
class TerminalRewards:
    """
    Rewards seeding the backward pass, by outcome.

    Attributes
    ----------
    win : float
        The win condition was reached, the outcome the agent must avoid.
    near_win : float
        Game over holding exactly one target tile.
    next_tier : float
        Game over with no target tile but a next-tier tile.
    completion : float
        Any other game over.
    """

    win: float = -50000.0
    near_win: float = 10000.0
    next_tier: float = 5000.0
    completion: float = 1000.0


class TDLearner:
    """
    Online TD(λ) learner over the weight tables of a network.

    The learner owns one eligibility trace table per weight table; the traces are zeroed at the start of every
    episode. ``discount`` is the λ of the bootstrapped target ``reward + λ * value(next)`` and of the backward
    pass; ``decay`` multiplies every trace after each online update.
    """

    def __init__(
        self,
        network: NTupleNetwork,
        alpha: float = 0.0,
        discount: float = 0.9,
        decay: float = 0.8,
        update_symmetries: Sequence[tuple[str, float]] = DEFAULT_UPDATE_SYMMETRIES,
        trace_mode: TraceMode = TraceMode.REPLACE,
        target: int = DEFAULT_TARGET,
        rewards: TerminalRewards | None = None,
        metrics: LearningMetrics | None = None,
    ):
        """
        Initialize the learner.

        Parameters
        ----------
        network : NTupleNetwork
            Network whose tables are updated in place.
        alpha : float, optional
            Learning rate, by default 0.
        discount : float, optional
            λ, by default 0.9.
        decay : float, optional
            Eligibility trace decay, by default 0.8.
        update_symmetries : Sequence[tuple[str, float]], optional
            Symmetries receiving updates with their error scale; by default the identity at full scale and the
            horizontal mirror and the transpose at one eighth.
        trace_mode : TraceMode, optional
            Replacing (default) or accumulating traces.
        target : int, optional
            Exponent of the win tile, by default 13.
        rewards : TerminalRewards, optional
            Terminal rewards, by default ``TerminalRewards()``.
        metrics : LearningMetrics, optional
            Counters receiving every online TD error.
        """
        self.network = network
        self.alpha = alpha
        self.discount = discount
        self.decay = decay
        self.update_symmetries = tuple(update_symmetries)
        self.trace_mode = TraceMode(trace_mode)
        self.target = target
        self.rewards = rewards or TerminalRewards()
        self.metrics = metrics
        self.traces: list[ndarray] = [zeros_like(table) for table in network.tables]
        self.phase = LearnerPhase.IDLE

    def open_episode(self) -> None:
        """Zero every trace and start collecting updates."""
        self.clear_traces()
        self.phase = LearnerPhase.ACTIVE

    def clear_traces(self) -> None:
        for traces in self.traces:
            traces.fill(0.0)

    def td_error(self, previous: GameStep, state: GameBoard) -> float:
        """Error of the previous step against ``reward + λ * value(state)``."""
        target = previous.reward + self.discount * self.network.value(state)
        return target - previous.evaluation

    def update(self, state: GameBoard, error: float) -> None:
        """
        Move the weights indexed by a state in the direction of an error.

        Parameters
        ----------
        state : GameBoard
            Board whose features receive the update.
        error : float
            TD error, scaled per symmetry by the update set.

        Raises
        ------
        RuntimeError
            If no episode is open.
        """
        if self.phase is LearnerPhase.IDLE:
            raise RuntimeError('Learner has no open episode. Call open_episode() first.')

        extractor = self.network.extractor
        for pattern_no in self.network.active():
            weights, traces = self.network.tables[pattern_no], self.traces[pattern_no]
            for symmetry, scale in self.update_symmetries:
                index = extractor.index(state, pattern_no, symmetry)
                if index >= weights.size:
                    continue

                if self.trace_mode is TraceMode.REPLACE:
                    traces[index] = 1.0
                    weights[index] += self.alpha * (error * scale) * traces[index]
                else:
                    traces[index] += scale

        if self.trace_mode is TraceMode.ACCUMULATE:
            for pattern_no in self.network.active():
                self.network.tables[pattern_no] += self.alpha * error * self.traces[pattern_no]

    def decay_traces(self) -> None:
        for traces in self.traces:
            traces *= self.decay

    def learn_online(self, trajectory: Trajectory, state: GameBoard) -> float | None:
        """
        Learn from the step before last, now that its successor state is known.

        Parameters
        ----------
        trajectory : Trajectory
            Trajectory whose last step starts at ``state``.
        state : GameBoard
            The current board.

        Returns
        -------
        float | None
            The TD error applied, or None when the trajectory has fewer than two steps.
        """
        if len(trajectory) < 2:
            return None

        previous = trajectory[-2]
        error = self.td_error(previous, state)
        self.update(previous.state, error)
        self.decay_traces()

        if self.metrics is not None:
            average = self.metrics.record_td_error(error)
            if average is not None:
                logger.info('TD error=%.2f alpha=%s', average, self.alpha)
        return error

    def final_reward(self, tag: str, final_state: GameBoard) -> float:
        """
        Terminal reward of an episode.

        Parameters
        ----------
        tag : str
            Outcome label, ``"win"`` or ``"lose"``.
        final_state : GameBoard
            Board after the last slide.

        Returns
        -------
        float
            The win penalty, or for a game over a bonus that grows as the agent held on closer to the win tile
            without reaching the win condition. Zero for any other tag.
        """
        if tag == 'win':
            return self.rewards.win
        if tag == 'lose':
            count_target = final_state.count_tile(self.target)
            if count_target == 1:
                return self.rewards.near_win
            if count_target == 0 and final_state.max_tile() >= self.target - 1:
                return self.rewards.next_tier
            return self.rewards.completion
        return 0.0

    def finalize(self, trajectory: Trajectory, tag: str) -> float | None:
        """
        Run the backward pass over a finished episode.

        The error of the last step is seeded by the terminal reward (the terminal state is worth zero); step
        ``i`` receives it discounted by ``λ**(n - 1 - i)``, and before moving to step ``i - 1`` the error is
        rolled back as ``reward_i + λ * error``.

        Parameters
        ----------
        trajectory : Trajectory
            Steps of the episode.
        tag : str
            Outcome label.

        Returns
        -------
        float | None
            The terminal reward, or None for an empty trajectory.
        """
        if not trajectory:
            self.phase = LearnerPhase.IDLE
            return None

        self.phase = LearnerPhase.FINALIZING
        final_reward = self.final_reward(tag, trajectory.last.next_state)
        error = final_reward - trajectory.last.evaluation

        length = len(trajectory)
        for i in range(length - 1, -1, -1):
            step = trajectory[i]
            if self.trace_mode is TraceMode.ACCUMULATE:
                # ##>: Each step of the backward pass updates its own features only.
                self.clear_traces()
            self.update(step.state, error * self.discount ** (length - 1 - i))
            if i > 0:
                error = step.reward + self.discount * error

        self.phase = LearnerPhase.IDLE
        logger.debug('Final TD update: length=%d final reward=%.1f', length, final_reward)
        return final_reward
