"""
Terminal rule and danger heuristic of the variant where holding two high tiles ends the game.
"""

from dataclasses import dataclass

from tilegame.core.gameboard import GameBoard

# ##>: 8192 = 2**13.
DEFAULT_TARGET = 13


@dataclass(frozen=True)
class WinCondition:
    """
    Predicate satisfied when at least ``count`` cells hold the ``target`` exponent.

    The default is two 8192 tiles. The learning agent treats reaching it as the bad outcome.
    """

    target: int = DEFAULT_TARGET
    count: int = 2

    def __call__(self, board: GameBoard) -> bool:
        return board.count_tile(self.target) >= self.count


def danger_level(board: GameBoard, target: int = DEFAULT_TARGET) -> float:
    """
    Estimate how close the board is to the win condition.

    Parameters
    ----------
    board : GameBoard
        The board to inspect.
    target : int, optional
        Exponent of the win tile, by default 13.

    Returns
    -------
    float
        ``1.0`` with one win tile and two next-tier tiles, ``0.7`` with one win tile and one next-tier tile,
        ``0.4`` with three next-tier tiles, ``0.0`` otherwise.
    """
    count_target = board.count_tile(target)
    count_next = board.count_tile(target - 1)

    if count_target >= 1 and count_next >= 2:
        return 1.0
    if count_target >= 1 and count_next >= 1:
        return 0.7
    if count_next >= 3:
        return 0.4
    return 0.0
