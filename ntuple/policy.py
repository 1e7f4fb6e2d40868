"""
Greedy slide selection: learned value plus shaping that steers away from the win condition.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

from ntuple.network import NTupleNetwork
from ntuple.trajectory import GameStep, Trajectory
from tilegame.core.gameboard import DIRECTIONS, GameBoard, legal_actions_mask
from tilegame.core.gamemove import Action
from tilegame.core.rules import DEFAULT_TARGET, danger_level

# ##>: Multiplier turning a danger level into the order of magnitude of a game score.
DANGER_SCALE = 10000.0

CANONICAL_ORDER: tuple[int, ...] = tuple(DIRECTIONS.values())


class Candidate(NamedTuple):
    """A legal slide with its simulated outcome and score."""

    opcode: int
    reward: int
    after: GameBoard
    score: float


class StrategicPolicy:
    """
    Choose the slide maximising ``reward + value(after) - danger(after) * penalty * scale + empty(after) * bonus``.

    Directions are scanned in a fixed order and compared with a strict greater-than, so the first direction
    reaching the best score wins ties.
    """

    def __init__(
        self,
        network: NTupleNetwork,
        penalty: float = 0.7,
        bonus: float = 1000.0,
        scale: float = DANGER_SCALE,
        target: int = DEFAULT_TARGET,
        order: Sequence[int] = CANONICAL_ORDER,
    ):
        self.network = network
        self.penalty = penalty
        self.bonus = bonus
        self.scale = scale
        self.target = target
        self.order = tuple(order)

    def score(self, after: GameBoard, reward: int) -> float:
        """
        Score the outcome of a slide.

        Parameters
        ----------
        after : GameBoard
            Board after the slide.
        reward : int
            Merge score of the slide.

        Returns
        -------
        float
            The candidate score.
        """
        value = float(reward) + self.network.value(after)
        penalty = danger_level(after, self.target) * self.penalty * self.scale
        survival = after.empty_count() * self.bonus
        return value - penalty + survival

    def candidates(self, board: GameBoard) -> list[Candidate]:
        """Simulate every direction and keep the legal ones, in scan order."""
        mask = legal_actions_mask(board.grid)
        result = []
        for opcode in self.order:
            if not mask[opcode]:
                continue
            after = board.copy()
            reward = after.slide(opcode)
            result.append(Candidate(opcode=opcode, reward=reward, after=after, score=self.score(after, reward)))
        return result

    def select(self, board: GameBoard) -> Candidate | None:
        """
        Pick the best legal slide.

        Returns
        -------
        Candidate | None
            The first candidate with the highest score, or None when the board is stuck.
        """
        best = None
        for candidate in self.candidates(board):
            if best is None or candidate.score > best.score:
                best = candidate
        return best

    def act(self, board: GameBoard, trajectory: Trajectory) -> Action | None:
        """
        Select a slide and record it.

        The recorded step holds the board and reward obtained by applying the chosen action to a fresh copy of
        ``board``, and the value of ``board`` under the current weights.

        Parameters
        ----------
        board : GameBoard
            The current board.
        trajectory : Trajectory
            Trajectory of the episode, receiving the step.

        Returns
        -------
        Action | None
            The slide, or None when no direction is legal (the game is lost).
        """
        best = self.select(board)
        if best is None:
            return None

        action = Action.slide(best.opcode)
        next_state = board.copy()
        reward = action.apply(next_state)
        trajectory.append(
            GameStep(
                state=board.copy(),
                action=action,
                reward=reward,
                next_state=next_state,
                evaluation=self.network.value(board),
            )
        )
        return action
