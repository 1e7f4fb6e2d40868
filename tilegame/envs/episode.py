"""Record of one game played between a slider and a placer."""

from __future__ import annotations

import time
from typing import NamedTuple, Protocol

from tilegame.core.gameboard import ILLEGAL_MOVE, GameBoard
from tilegame.core.gamemove import Action, ActionKind


class Agent(Protocol):
    """Contract shared by every slider and placer."""

    def open_episode(self, tag: str = '') -> None: ...

    def close_episode(self, tag: str = '') -> None: ...

    def take_action(self, board: GameBoard) -> Action | None: ...

    def check_for_win(self, board: GameBoard) -> bool: ...


class Move(NamedTuple):
    """One applied action with its reward and the time spent choosing it (milliseconds)."""

    action: Action
    reward: int
    duration: float


class Episode:
    """
    A game in progress or finished.

    This class holds the board, the score, and the list of applied moves, and decides whose turn it is: the
    placer opens with two tiles, then the slider and the placer alternate.
    """

    def __init__(self):
        """Initialize an empty game."""
        self._board = GameBoard()
        self._score = 0
        self._moves: list[Move] = []
        self._turn_start = 0.0
        self._open_tag = ''
        self._close_tag = ''
        self._open_time = 0.0
        self._close_time = 0.0

    @property
    def state(self) -> GameBoard:
        """
        Get the current board.

        Returns
        -------
        GameBoard
            The live board of the game. Agents receive copies.
        """
        return self._board

    @property
    def score(self) -> int:
        """Sum of the rewards of every applied move."""
        return self._score

    @property
    def moves(self) -> list[Move]:
        return list(self._moves)

    @property
    def tags(self) -> tuple[str, str]:
        """Opening and closing tags of the game."""
        return self._open_tag, self._close_tag

    def open_episode(self, tag: str = '') -> None:
        self._open_tag = tag
        self._open_time = time.perf_counter()

    def close_episode(self, tag: str = '') -> None:
        self._close_tag = tag
        self._close_time = time.perf_counter()

    def take_turns(self, slider: Agent, placer: Agent) -> Agent:
        """
        Return the agent to move next and start its clock.

        The placer plays the first two turns, then the slider plays every odd turn.
        """
        self._turn_start = time.perf_counter()
        return slider if max(len(self._moves) + 1, 2) % 2 else placer

    def apply_action(self, action: Action | None) -> bool:
        """
        Apply an action to the board.

        Parameters
        ----------
        action : Action | None
            The action chosen by the agent whose turn it is; ``None`` means it had no move.

        Returns
        -------
        bool
            False if there was no action or the action was illegal; the board is then unchanged.
        """
        if action is None:
            return False
        reward = action.apply(self._board)
        if reward == ILLEGAL_MOVE:
            return False
        duration = (time.perf_counter() - self._turn_start) * 1000.0
        self._moves.append(Move(action=action, reward=reward, duration=duration))
        self._score += reward
        return True

    def step(self, kind: ActionKind | None = None) -> int:
        """Number of applied moves, optionally restricted to one kind of action."""
        if kind is None:
            return len(self._moves)
        return sum(1 for move in self._moves if move.action.kind is kind)

    def time(self, kind: ActionKind | None = None) -> float:
        """Milliseconds spent, overall or choosing one kind of action."""
        if kind is None:
            return (self._close_time - self._open_time) * 1000.0
        return sum(move.duration for move in self._moves if move.action.kind is kind)
