"""
Running counters of the learning agent and the text journal of notable games.

Both objects are owned by the driver and handed to the agent, so that their lifetime and resets are explicit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from tilegame.core.gameboard import DIRECTIONS, GameBoard
from tilegame.core.gamemove import illegal_actions

logger = logging.getLogger(__name__)

_DIRECTION_NAMES = {opcode: name for name, opcode in DIRECTIONS.items()}


@dataclass
class LearningSummary:
    """Aggregate of a window of finished games."""

    first_game: int
    last_game: int
    average_steps: float
    avoidance_rate: float
    average_danger: float


@dataclass
class LearningMetrics:
    """
    Counters of TD errors and game outcomes.

    Attributes
    ----------
    report_every : int
        Number of online updates averaged per TD error report.
    summary_every : int
        Number of games per learning summary.
    """

    report_every: int = 100
    summary_every: int = 50
    td_error_total: float = 0.0
    td_update_count: int = 0
    games: int = 0
    wins: int = 0
    losses: int = 0
    total_steps: int = 0
    total_danger: float = 0.0

    def record_td_error(self, error: float) -> float | None:
        """
        Add the magnitude of a TD error.

        Returns
        -------
        float | None
            The mean absolute error of the window when it completes, None otherwise.
        """
        self.td_error_total += abs(error)
        self.td_update_count += 1
        if self.td_update_count < self.report_every:
            return None
        average = self.td_error_total / self.td_update_count
        self.td_error_total = 0.0
        self.td_update_count = 0
        return average

    def record_episode(self, tag: str, steps: int, mean_danger: float) -> LearningSummary | None:
        """
        Add a finished game.

        Parameters
        ----------
        tag : str
            Outcome label, ``"win"`` counting as a failure to avoid the win condition.
        steps : int
            Number of slides played.
        mean_danger : float
            Mean danger level over the states of the game.

        Returns
        -------
        LearningSummary | None
            The summary of the window when it completes, None otherwise.
        """
        self.games += 1
        if tag == 'win':
            self.wins += 1
        else:
            self.losses += 1
        self.total_steps += steps
        self.total_danger += mean_danger

        if self.games % self.summary_every:
            return None

        played = self.wins + self.losses
        summary = LearningSummary(
            first_game=self.games - played + 1,
            last_game=self.games,
            average_steps=self.total_steps / played,
            avoidance_rate=100.0 - self.wins / played * 100.0,
            average_danger=self.total_danger / played,
        )
        self.wins = self.losses = self.total_steps = 0
        self.total_danger = 0.0
        return summary

    def reset(self) -> None:
        """Forget every counter, keeping the window sizes."""
        self.td_error_total = 0.0
        self.td_update_count = 0
        self.games = self.wins = self.losses = self.total_steps = 0
        self.total_danger = 0.0


@dataclass
class GameJournal:
    """
    Text record of the games played by the learning agent.

    The record of the game in progress is appended to ``win_games.log`` as soon as the win condition fires, and
    the accumulated records are appended to ``normal_games.log`` every ``flush_every`` games. A journal without a
    directory records nothing.
    """

    directory: Path | None = None
    flush_every: int = 10
    record_every: int = 50
    _record: list[str] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if self.directory is not None:
            self.directory = Path(self.directory)
            self.directory.mkdir(parents=True, exist_ok=True)

    @property
    def enabled(self) -> bool:
        return self.directory is not None

    def open_game(self, game: int) -> None:
        # ##>: Only the current game is buffered.
        self._record = [f'Game {game} started']

    def record_move(self, move: int, board: GameBoard, danger: float, target: int) -> None:
        """Write the tile counts of a state, and the board with its blocked slides at notable moments."""
        if not self.enabled:
            return
        self._record.append(
            f'Move {move}: target tiles={board.count_tile(target)} next tier tiles={board.count_tile(target - 1)} '
            f'max tile=2^{board.max_tile()} danger={danger:.6f}'
        )

        if danger > 0.3:
            label = '[danger]'
        elif board.max_tile() >= 8:
            label = '[notable]'
        elif move % self.record_every == 0:
            label = '[periodic]'
        else:
            return
        blocked = ', '.join(_DIRECTION_NAMES[opcode] for opcode in illegal_actions(board)) or 'none'
        self._record.append(f'{label} board:\n{board}\nblocked slides: {blocked}\n')

    def note(self, text: str) -> None:
        if self.enabled:
            self._record.append(text)

    def record_win(self) -> None:
        """Append the current game to the win journal."""
        self.note('[win condition reached] two target tiles on the board')
        self._write('win_games.log', 'Win game')

    def close_game(self, game: int, moves: int, tag: str) -> None:
        self.note(f'Game over after {moves} moves\nResult: {tag}\n')
        if game % self.flush_every == 0:
            self._write('normal_games.log', 'Game')

    def _write(self, filename: str, title: str) -> None:
        if not self.enabled:
            return
        path = self.directory / filename
        with path.open('a', encoding='utf-8') as journal:
            journal.write(f'=== {title} ===\n')
            journal.write('\n'.join(self._record) + '\n')
            journal.write('================================\n\n')
        logger.debug('Game record appended to %s', path)
