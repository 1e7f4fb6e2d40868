"""
Game move utilities: the action type shared by sliders and placers, and legal move detection.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tilegame.core.gameboard import DIRECTIONS, GameBoard, legal_actions_mask

_OPCODE_NAMES = {opcode: name for name, opcode in DIRECTIONS.items()}


class ActionKind(str, Enum):
    """Kind of an action: a slide by the player, or a tile placement by the environment."""

    SLIDE = 'slide'
    PLACE = 'place'


@dataclass(frozen=True)
class Action:
    """
    A move in the game. Carries no board state.

    Attributes
    ----------
    kind : ActionKind
        Slide or place.
    opcode : int
        Slide direction (``0`` up, ``1`` right, ``2`` down, ``3`` left); unused by placements.
    position : int
        Cell index of a placement; unused by slides.
    tile : int
        Exponent placed (``1`` or ``2``); unused by slides.
    """

    kind: ActionKind
    opcode: int = 0
    position: int = 0
    tile: int = 0

    @classmethod
    def slide(cls, opcode: int) -> Action:
        return cls(kind=ActionKind.SLIDE, opcode=opcode & 0b11)

    @classmethod
    def place(cls, position: int, tile: int) -> Action:
        return cls(kind=ActionKind.PLACE, position=position, tile=tile)

    def apply(self, board: GameBoard) -> int:
        """
        Apply the action to the board in place.

        Returns
        -------
        int
            The reward of the action, or ``ILLEGAL_MOVE``.
        """
        if self.kind is ActionKind.SLIDE:
            return board.slide(self.opcode)
        return board.place(self.position, self.tile)

    def __str__(self) -> str:
        if self.kind is ActionKind.SLIDE:
            return f'#{_OPCODE_NAMES[self.opcode][0].upper()}'
        return f'{self.position:X}{1 << self.tile}'


def legal_actions(board: GameBoard) -> list[int]:
    """
    Determine the slide opcodes that change the board, in canonical order.

    Parameters
    ----------
    board : GameBoard
        The current board.

    Returns
    -------
    list[int]
        Legal opcodes (``0`` up, ``1`` right, ``2`` down, ``3`` left).
    """
    mask = legal_actions_mask(board.grid)
    return [opcode for opcode in range(4) if mask[opcode]]


def illegal_actions(board: GameBoard) -> list[int]:
    """
    Determine the slide opcodes that leave the board unchanged.

    Parameters
    ----------
    board : GameBoard
        The current board.

    Returns
    -------
    list[int]
        Illegal opcodes (``0`` up, ``1`` right, ``2`` down, ``3`` left).
    """
    mask = legal_actions_mask(board.grid)
    return [opcode for opcode in range(4) if not mask[opcode]]
