"""
Agents playing the 2048 variant: the random tile placer, the random slider, and the learning slider.

Every agent implements the ``tilegame.envs.Agent`` protocol (``open_episode``, ``close_episode``,
``take_action``, ``check_for_win``).
"""

from __future__ import annotations

import logging

from numpy.random import default_rng

from ntuple.config import AgentConfig
from ntuple.features import table_size
from ntuple.learner import TDLearner
from ntuple.metrics import GameJournal, LearningMetrics
from ntuple.network import NTupleNetwork
from ntuple.persistence import load_weights, save_weights
from ntuple.policy import StrategicPolicy
from ntuple.trajectory import Trajectory
from tilegame.core.gameboard import NUM_CELLS, GameBoard
from tilegame.core.gamemove import Action, legal_actions
from tilegame.core.rules import WinCondition, danger_level

logger = logging.getLogger(__name__)


def _configure(args: str | AgentConfig, defaults: str) -> AgentConfig:
    if isinstance(args, AgentConfig):
        return args
    return AgentConfig.parse(args, defaults=defaults)


class RandomPlacer:
    """
    Environment adding a tile to a random empty cell: a 2-tile with probability 9/10, else a 4-tile.
    """

    def __init__(self, args: str | AgentConfig = ''):
        self.config = _configure(args, 'name=place role=placer')
        self.rng = default_rng(self.config.seed)

    def open_episode(self, tag: str = '') -> None:
        pass

    def close_episode(self, tag: str = '') -> None:
        pass

    def take_action(self, board: GameBoard) -> Action | None:
        for pos in self.rng.permutation(NUM_CELLS):
            if board[int(pos)] != 0:
                continue
            tile = 1 if self.rng.integers(0, 10) else 2
            return Action.place(int(pos), tile)
        return None

    def check_for_win(self, board: GameBoard) -> bool:
        return False


class RandomSlider:
    """Player picking a legal slide uniformly at random."""

    def __init__(self, args: str | AgentConfig = ''):
        self.config = _configure(args, 'name=slide role=slider')
        self.rng = default_rng(self.config.seed)
        self.win_condition = WinCondition(target=self.config.target)

    def open_episode(self, tag: str = '') -> None:
        pass

    def close_episode(self, tag: str = '') -> None:
        pass

    def take_action(self, board: GameBoard) -> Action | None:
        legal = legal_actions(board)
        if not legal:
            return None
        return Action.slide(int(self.rng.choice(legal)))

    def check_for_win(self, board: GameBoard) -> bool:
        return self.win_condition(board)


def build_network(config: AgentConfig) -> NTupleNetwork:
    """
    Create the weight tables described by a configuration.

    ``init`` creates zero tables; ``load`` then replaces them with the tables of a weight file. A legacy file
    is read with the ``init`` sizes, or one full table per default pattern when ``init`` is absent.

    Raises
    ------
    WeightFileError
        If ``load`` names a file that cannot be read.
    """
    network = NTupleNetwork.from_sizes(config.init)
    if config.load is not None:
        sizes = list(config.init) or [table_size(pattern) for pattern in network.patterns]
        network = NTupleNetwork(load_weights(config.load, legacy_sizes=sizes))
    return network


class StrategicSlider:
    """
    Learning player for the rule where two target tiles end the game.

    The slider evaluates every slide with an N-tuple network and danger shaping, records the chosen transitions,
    and learns from them with TD(λ) online and at the end of every episode. Weights are written to the ``save``
    file when the slider is closed.
    """

    def __init__(
        self,
        args: str | AgentConfig = '',
        metrics: LearningMetrics | None = None,
        journal: GameJournal | None = None,
    ):
        """
        Initialize the slider.

        Parameters
        ----------
        args : str | AgentConfig
            ``key=value`` tokens, or a parsed configuration.
        metrics : LearningMetrics, optional
            Counters shared with the driver; a private instance by default.
        journal : GameJournal, optional
            Game journal; by default one writing to the ``journal`` directory, if configured.
        """
        self.config = _configure(args, 'name=strategic role=slider')
        self.network = build_network(self.config)
        self.metrics = metrics if metrics is not None else LearningMetrics()
        self.journal = journal if journal is not None else GameJournal(self.config.journal)
        self.win_condition = WinCondition(target=self.config.target)
        self.policy = StrategicPolicy(
            self.network,
            penalty=self.config.penalty,
            bonus=self.config.bonus,
            scale=self.config.scale,
            target=self.config.target,
        )
        self.learner = TDLearner(
            self.network,
            alpha=self.config.alpha,
            discount=self.config.discount,
            decay=self.config.decay,
            update_symmetries=self.config.update,
            trace_mode=self.config.traces,
            target=self.config.target,
            rewards=self.config.rewards,
            metrics=self.metrics,
        )
        self.trajectory = Trajectory()
        self.game_count = 0
        self.move_count = 0

    @property
    def learning(self) -> bool:
        return self.config.learning

    def open_episode(self, tag: str = '') -> None:
        self.game_count += 1
        self.move_count = 0
        self.trajectory.clear()
        self.learner.open_episode()
        self.journal.open_game(self.game_count)

    def take_action(self, board: GameBoard) -> Action | None:
        """
        Choose a slide, then learn from the previous one.

        Parameters
        ----------
        board : GameBoard
            The current board.

        Returns
        -------
        Action | None
            The chosen slide, or None when the board is stuck.
        """
        self.move_count += 1
        danger = danger_level(board, self.config.target)
        self.journal.record_move(self.move_count, board, danger, self.config.target)

        action = self.policy.act(board, self.trajectory)
        if action is None or not self.learning:
            return action

        error = self.learner.learn_online(self.trajectory, board)
        if error is not None and self.game_count % 100 == 0 and self.move_count % 50 == 0:
            self.journal.note(f'[TD update] error={error:.6f} value={self.network.value(board):.6f}')
        return action

    def check_for_win(self, board: GameBoard) -> bool:
        won = self.win_condition(board)
        if won:
            self.journal.record_win()
        return won

    def close_episode(self, tag: str = '') -> None:
        """
        Finish the episode: backward TD pass, learning summary, and journal.

        Parameters
        ----------
        tag : str
            Outcome label, ``"win"`` or ``"lose"``.
        """
        if self.learning and self.trajectory:
            final_reward = self.learner.finalize(self.trajectory, tag)
            self.journal.note(f'[final TD update] length={len(self.trajectory)} final reward={final_reward:.1f}')

        dangers = [danger_level(step.state, self.config.target) for step in self.trajectory]
        mean_danger = sum(dangers) / len(dangers) if dangers else 0.0
        summary = self.metrics.record_episode(tag, self.move_count, mean_danger)
        if summary is not None and self.learning:
            logger.info(
                'Learning summary, games %d-%d: average steps=%d avoidance=%.1f%% average danger=%.3f alpha=%s',
                summary.first_game,
                summary.last_game,
                int(summary.average_steps),
                summary.avoidance_rate,
                summary.average_danger,
                self.learner.alpha,
            )

        self.journal.close_game(self.game_count, self.move_count, tag)

    def save(self, path: str | None = None) -> None:
        """Write the weights to ``path``, or to the ``save`` file of the configuration."""
        path = path or self.config.save
        if path is not None:
            save_weights(path, self.network.tables)

    def close(self) -> None:
        self.save()

    def __enter__(self) -> StrategicSlider:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


AGENTS = {
    'placer': RandomPlacer,
    'slider': RandomSlider,
    'strategic': StrategicSlider,
}
