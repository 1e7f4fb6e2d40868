"""
Trajectory of the current episode: the transitions chosen by the learning agent, in order.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import NamedTuple

from tilegame.core.gameboard import GameBoard
from tilegame.core.gamemove import Action


class GameStep(NamedTuple):
    """
    One transition of an episode.

    Attributes
    ----------
    state : GameBoard
        Board before the slide.
    action : Action
        The slide taken.
    reward : int
        Merge score returned by applying the slide.
    next_state : GameBoard
        Board after the slide, before the placer adds a tile.
    evaluation : float
        Value of ``state`` when the slide was selected.
    """

    state: GameBoard
    action: Action
    reward: int
    next_state: GameBoard
    evaluation: float


class Trajectory:
    """
    Ordered buffer of the steps of one episode.

    Steps are appended while the episode is running and read forward or in reverse; they are never modified.
    """

    def __init__(self):
        self._steps: list[GameStep] = []

    def __len__(self) -> int:
        return len(self._steps)

    def __bool__(self) -> bool:
        return bool(self._steps)

    def __iter__(self) -> Iterator[GameStep]:
        return iter(self._steps)

    def __reversed__(self) -> Iterator[GameStep]:
        return reversed(self._steps)

    def __getitem__(self, index: int) -> GameStep:
        return self._steps[index]

    def append(self, step: GameStep) -> None:
        self._steps.append(step)

    def clear(self) -> None:
        self._steps.clear()

    @property
    def last(self) -> GameStep:
        """Most recent step. Raises IndexError on an empty trajectory."""
        return self._steps[-1]

    @property
    def total_reward(self) -> int:
        return sum(step.reward for step in self._steps)
