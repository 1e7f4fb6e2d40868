"""
N-tuple patterns, board symmetries and feature indices.

A pattern is an ordered tuple of cell positions. Its feature index on a board is
``sum(min(e[pos_i], 15) * 16**i)``, so a pattern of length ``k`` always indexes a table of ``16**k`` weights.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from numpy import arange, fliplr, flipud, ndarray

from tilegame.core.gameboard import BOARD_SIZE, MAX_EXPONENT, GameBoard

Pattern = tuple[int, ...]

# ##>: Four non-overlapping 2x2 quadrants.
DEFAULT_PATTERNS: tuple[Pattern, ...] = (
    (0, 1, 4, 5),
    (2, 3, 6, 7),
    (8, 9, 12, 13),
    (10, 11, 14, 15),
)

# ##>: One digit per cell; exponents are clamped to MAX_EXPONENT so that indices stay inside their table.
INDEX_BASE = MAX_EXPONENT + 1

# ##>: The eight rigid transforms of the square: identity, three rotations, and their horizontal mirrors.
SYMMETRIES: dict[str, Callable[[ndarray], ndarray]] = {
    'identity': lambda grid: grid,
    'rotate_clockwise': lambda grid: fliplr(grid.T),
    'reverse': lambda grid: flipud(fliplr(grid)),
    'rotate_counterclockwise': lambda grid: flipud(grid.T),
    'reflect_horizontal': fliplr,
    'anti_transpose': lambda grid: flipud(fliplr(grid.T)),
    'reflect_vertical': flipud,
    'transpose': lambda grid: grid.T,
}

_POSITIONS = arange(BOARD_SIZE * BOARD_SIZE).reshape(BOARD_SIZE, BOARD_SIZE)


def symmetry_map(name: str) -> tuple[int, ...]:
    """
    Source cell of every position under a symmetry.

    Parameters
    ----------
    name : str
        Name of the transform, a key of ``SYMMETRIES``.

    Returns
    -------
    tuple[int, ...]
        ``mapping`` such that ``transformed[i] == board[mapping[i]]`` for every cell ``i``.
    """
    if name not in SYMMETRIES:
        raise KeyError(f'Unknown symmetry: {name!r}')
    return tuple(int(pos) for pos in SYMMETRIES[name](_POSITIONS).ravel())


def table_size(pattern: Sequence[int]) -> int:
    """Number of weights needed by a pattern."""
    return INDEX_BASE ** len(pattern)


def feature_index(cells: Sequence[int] | ndarray, pattern: Sequence[int]) -> int:
    """
    Compute the feature index of a pattern on a board.

    Parameters
    ----------
    cells : Sequence[int] | ndarray
        The sixteen exponents of the board, row-major.
    pattern : Sequence[int]
        Ordered cell positions of the pattern.

    Returns
    -------
    int
        The index, in ``[0, 16**len(pattern))``.

    Notes
    -----
    Exponents are clamped to ``[0, 15]``; this is a silent normalisation, not an error.
    """
    index = 0
    multiplier = 1
    for pos in pattern:
        index += max(0, min(int(cells[pos]), MAX_EXPONENT)) * multiplier
        multiplier *= INDEX_BASE
    return index


class FeatureExtractor:
    """
    Map a board, or one of its symmetric images, to one feature index per pattern.

    Symmetric images are never materialised: every pattern is precomputed as its isomorphic pattern on the
    original board, which yields the same indices as transforming the board first.
    """

    def __init__(self, patterns: Sequence[Sequence[int]] = DEFAULT_PATTERNS):
        self.patterns: tuple[Pattern, ...] = tuple(tuple(int(pos) for pos in pattern) for pattern in patterns)
        self._isomorphic: dict[str, tuple[Pattern, ...]] = {}
        for name in SYMMETRIES:
            mapping = symmetry_map(name)
            self._isomorphic[name] = tuple(tuple(mapping[pos] for pos in pattern) for pattern in self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def isomorphic_patterns(self, symmetry: str = 'identity') -> tuple[Pattern, ...]:
        """Patterns rewritten on the original board for a symmetry."""
        return self._isomorphic[symmetry]

    def index(self, board: GameBoard, pattern_no: int, symmetry: str = 'identity') -> int:
        """Feature index of one pattern on the symmetric image of a board."""
        return feature_index(board.cells, self._isomorphic[symmetry][pattern_no])

    def indices(self, board: GameBoard, symmetry: str = 'identity') -> list[int]:
        """
        Feature indices of every pattern on the symmetric image of a board.

        Parameters
        ----------
        board : GameBoard
            The board.
        symmetry : str, optional
            Name of the transform applied to the board first, by default the identity.

        Returns
        -------
        list[int]
            One index per pattern, in pattern order.
        """
        cells = board.cells.tolist()
        return [feature_index(cells, pattern) for pattern in self._isomorphic[symmetry]]
