# -*- coding: utf-8 -*-
"""
This module provides the board engine of the game.

It includes the board of tile exponents with placement, slides and symmetry transforms, the action type,
legal move detection, the pluggable win condition, and the danger heuristic.
"""

from .gameboard import (
    BOARD_SIZE,
    DIRECTIONS,
    DOWN,
    ILLEGAL_MOVE,
    LEFT,
    MAX_EXPONENT,
    NUM_CELLS,
    RIGHT,
    UP,
    GameBoard,
    legal_actions_mask,
    merge_row,
    slide_and_merge,
)
from .gamemove import Action, ActionKind, illegal_actions, legal_actions
from .rules import DEFAULT_TARGET, WinCondition, danger_level

__all__ = [
    "BOARD_SIZE",
    "NUM_CELLS",
    "ILLEGAL_MOVE",
    "MAX_EXPONENT",
    "DIRECTIONS",
    "UP",
    "RIGHT",
    "DOWN",
    "LEFT",
    "GameBoard",
    "merge_row",
    "slide_and_merge",
    "Action",
    "ActionKind",
    "legal_actions",
    "illegal_actions",
    "legal_actions_mask",
    "DEFAULT_TARGET",
    "WinCondition",
    "danger_level",
]
