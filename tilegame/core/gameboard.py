"""
Core functionality of the 2048 board: a 4x4 grid of tile exponents with placement, slides and symmetries.

Cells are indexed in row-major order::

     (0)  (1)  (2)  (3)
     (4)  (5)  (6)  (7)
     (8)  (9) (10) (11)
    (12) (13) (14) (15)

A cell stores the exponent ``e`` of its tile (value ``2**e``), ``0`` meaning empty.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from numpy import array, array_equal, asarray, count_nonzero, fliplr, flipud, int64, log2, ndarray, zeros, zeros_like

# ##>: Sentinel reward of an illegal placement or slide.
ILLEGAL_MOVE = -1

BOARD_SIZE = 4
NUM_CELLS = BOARD_SIZE * BOARD_SIZE

# ##>: Largest exponent a cell can hold (32768); two such tiles do not merge.
MAX_EXPONENT = 15

# ##>: Slide opcodes, in the canonical scan order.
UP, RIGHT, DOWN, LEFT = 0, 1, 2, 3
DIRECTIONS = {'up': UP, 'right': RIGHT, 'down': DOWN, 'left': LEFT}


def merge_row(row: ndarray) -> tuple[int, ndarray]:
    """
    Compress a row of exponents to the left and merge adjacent equal tiles.

    Parameters
    ----------
    row : ndarray
        A 1D array of exponents representing one row of the board.

    Returns
    -------
    score : int
        The sum of the values ``2**(e+1)`` of every merged tile.
    merged_row : ndarray
        The compressed row, without trailing empty cells.

    Notes
    -----
    - Empty cells are dropped before merging.
    - Merging proceeds from the start of the row towards the end.
    - A merged tile does not merge again within the same call.
    - Tiles at ``MAX_EXPONENT`` never merge.
    """
    # ##: Handle rows with nothing to merge.
    non_zero = row[row != 0]
    if len(non_zero) <= 1:
        return 0, non_zero

    result = []
    score = 0

    # ##: Iterate over the row and merge exponents.
    i = 0
    while i < len(non_zero) - 1:
        if non_zero[i] == non_zero[i + 1] and non_zero[i] < MAX_EXPONENT:
            merged = int(non_zero[i]) + 1
            result.append(merged)
            score += 1 << merged
            i += 2
        else:
            result.append(non_zero[i])
            i += 1

    if i == len(non_zero) - 1:
        result.append(non_zero[-1])

    return score, array(result, dtype=row.dtype)


def slide_and_merge(grid: ndarray) -> tuple[int, ndarray]:
    """
    Slide every row of the grid to the left, merge adjacent cells, and compute the score.

    Parameters
    ----------
    grid : ndarray
        A 4x4 array of exponents.

    Returns
    -------
    score : int
        The total score obtained from all merges.
    updated_grid : ndarray
        A new grid after sliding and merging.

    Notes
    -----
    For other directions, orient the grid before calling this function.
    """
    result = zeros_like(grid)
    score = 0

    for i, row in enumerate(grid):
        score_row, merged_row = merge_row(row)
        score += score_row
        result[i, : len(merged_row)] = merged_row

    return score, result


def legal_actions_mask(grid: ndarray) -> tuple[bool, bool, bool, bool]:
    """
    Get a boolean mask for all four directions in a single pass.

    Parameters
    ----------
    grid : ndarray
        A 4x4 array of exponents.

    Returns
    -------
    tuple[bool, bool, bool, bool]
        Mask for (up, right, down, left) where True means the slide changes the board.

    Notes
    -----
    A slide is legal when a tile can move into an empty cell, or when two adjacent equal tiles below
    ``MAX_EXPONENT`` can merge along the slide axis.
    """
    # ##>: Compute horizontal adjacency once for left/right.
    left_cols, right_cols = grid[:, :-1], grid[:, 1:]
    h_can_merge = (left_cols != 0) & (left_cols < MAX_EXPONENT) & (left_cols == right_cols)

    # ##>: Compute vertical adjacency once for up/down.
    top_rows, bottom_rows = grid[:-1, :], grid[1:, :]
    v_can_merge = (top_rows != 0) & (top_rows < MAX_EXPONENT) & (top_rows == bottom_rows)

    # ##>: Check slide conditions per direction.
    left = (left_cols == 0) & (right_cols != 0)
    right = (right_cols == 0) & (left_cols != 0)
    up = (top_rows == 0) & (bottom_rows != 0)
    down = (bottom_rows == 0) & (top_rows != 0)

    return (
        bool(up.any() or v_can_merge.any()),
        bool(right.any() or h_can_merge.any()),
        bool(down.any() or v_can_merge.any()),
        bool(left.any() or h_can_merge.any()),
    )


def _rotate_clockwise(grid: ndarray) -> ndarray:
    return fliplr(grid.T)


def _rotate_counterclockwise(grid: ndarray) -> ndarray:
    return flipud(grid.T)


# ##>: Each opcode maps to (orient, restore) so that the slide becomes a left slide.
_ORIENTATIONS: dict[int, tuple[Callable[[ndarray], ndarray], Callable[[ndarray], ndarray]]] = {
    UP: (lambda g: fliplr(_rotate_clockwise(g)), lambda g: _rotate_counterclockwise(fliplr(g))),
    RIGHT: (fliplr, fliplr),
    DOWN: (_rotate_clockwise, _rotate_counterclockwise),
    LEFT: (lambda g: g, lambda g: g),
}


class GameBoard:
    """
    A 4x4 board of tile exponents.

    The board behaves as a value: ``copy()`` gives an independent board, equality compares cells. It is mutated
    only by ``place`` and ``slide``; the symmetry transforms return new boards.
    """

    __slots__ = ('_tiles',)

    def __init__(self, tiles: Iterable[int] | ndarray | None = None):
        """
        Create a board.

        Parameters
        ----------
        tiles : Iterable[int] | ndarray, optional
            Sixteen exponents in row-major order, or a 4x4 array. An empty board by default.

        Raises
        ------
        ValueError
            If an exponent is outside ``[0, MAX_EXPONENT]``.
        """
        if tiles is None:
            self._tiles = zeros((BOARD_SIZE, BOARD_SIZE), dtype=int64)
            return

        grid = asarray(list(tiles) if not isinstance(tiles, ndarray) else tiles, dtype=int64)
        grid = grid.reshape(BOARD_SIZE, BOARD_SIZE)
        if grid.min() < 0 or grid.max() > MAX_EXPONENT:
            raise ValueError(f'Exponents must be in [0, {MAX_EXPONENT}], got {grid.ravel().tolist()}')
        self._tiles = grid.copy()

    @classmethod
    def _wrap(cls, grid: ndarray) -> GameBoard:
        """Build a board from a grid already known to be valid."""
        board = cls.__new__(cls)
        board._tiles = grid.copy()
        return board

    @classmethod
    def from_values(cls, values: Iterable[int] | ndarray) -> GameBoard:
        """
        Build a board from displayed tile values (``0, 2, 4, 8, ...``).

        Parameters
        ----------
        values : Iterable[int] | ndarray
            Sixteen tile values, or a 4x4 array of them.

        Returns
        -------
        GameBoard
            The board holding ``log2`` of every non-empty value.
        """
        grid = asarray(list(values) if not isinstance(values, ndarray) else values, dtype='float64')
        exponents = log2(grid, where=grid != 0, out=zeros_like(grid))
        return cls(exponents.astype(int64))

    @property
    def grid(self) -> ndarray:
        """Read-only 4x4 view of the exponents."""
        view = self._tiles.view()
        view.flags.writeable = False
        return view

    @property
    def cells(self) -> ndarray:
        """Read-only row-major view of the sixteen exponents."""
        view = self._tiles.ravel()
        view.flags.writeable = False
        return view

    def __getitem__(self, pos: int) -> int:
        return int(self._tiles.flat[pos])

    def __iter__(self) -> Iterator[int]:
        return (int(cell) for cell in self._tiles.flat)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameBoard):
            return NotImplemented
        return array_equal(self._tiles, other._tiles)

    __hash__ = None  # type: ignore[assignment]

    def copy(self) -> GameBoard:
        """Return an independent copy of the board."""
        return GameBoard._wrap(self._tiles)

    # ##: Actions.

    def place(self, pos: int, tile: int) -> int:
        """
        Place a tile exponent on an empty cell.

        Parameters
        ----------
        pos : int
            Cell index in ``[0, 16)``.
        tile : int
            Tile exponent, ``1`` (a 2-tile) or ``2`` (a 4-tile).

        Returns
        -------
        int
            ``0`` on success, ``ILLEGAL_MOVE`` if the cell is out of range, occupied, or the tile is invalid.
        """
        if not 0 <= pos < NUM_CELLS or self._tiles.flat[pos]:
            return ILLEGAL_MOVE
        if tile not in (1, 2):
            return ILLEGAL_MOVE
        self._tiles.flat[pos] = tile
        return 0

    def slide(self, opcode: int) -> int:
        """
        Slide the board in a direction.

        Parameters
        ----------
        opcode : int
            Direction, ``0`` up, ``1`` right, ``2`` down, ``3`` left. Only the two low bits are used.

        Returns
        -------
        int
            The merge score of the slide, or ``ILLEGAL_MOVE`` if the board did not change.
        """
        orient, restore = _ORIENTATIONS[opcode & 0b11]
        score, updated = slide_and_merge(orient(self._tiles))
        updated = restore(updated)
        if array_equal(updated, self._tiles):
            return ILLEGAL_MOVE
        self._tiles = updated.copy()
        return score

    def slide_up(self) -> int:
        return self.slide(UP)

    def slide_right(self) -> int:
        return self.slide(RIGHT)

    def slide_down(self) -> int:
        return self.slide(DOWN)

    def slide_left(self) -> int:
        return self.slide(LEFT)

    # ##: Symmetries.

    def transpose(self) -> GameBoard:
        return GameBoard._wrap(self._tiles.T)

    def reflect_horizontal(self) -> GameBoard:
        """Mirror the columns (left <-> right)."""
        return GameBoard._wrap(fliplr(self._tiles))

    def reflect_vertical(self) -> GameBoard:
        """Mirror the rows (top <-> bottom)."""
        return GameBoard._wrap(flipud(self._tiles))

    def rotate_clockwise(self) -> GameBoard:
        return self.transpose().reflect_horizontal()

    def rotate_counterclockwise(self) -> GameBoard:
        return self.transpose().reflect_vertical()

    def reverse(self) -> GameBoard:
        return self.reflect_horizontal().reflect_vertical()

    def rotate(self, clockwise_count: int = 1) -> GameBoard:
        """Rotate clockwise ``clockwise_count`` quarter turns; negative counts turn counterclockwise."""
        turns = clockwise_count % 4
        if turns == 1:
            return self.rotate_clockwise()
        if turns == 2:
            return self.reverse()
        if turns == 3:
            return self.rotate_counterclockwise()
        return self.copy()

    # ##: Queries.

    def count_tile(self, exponent: int) -> int:
        """Number of cells holding ``exponent``."""
        return int(count_nonzero(self._tiles == exponent))

    def max_tile(self) -> int:
        """Largest exponent on the board."""
        return int(self._tiles.max())

    def empty_count(self) -> int:
        """Number of empty cells."""
        return int(count_nonzero(self._tiles == 0))

    def is_stuck(self) -> bool:
        """True when no slide changes the board."""
        return not any(legal_actions_mask(self._tiles))

    def __str__(self) -> str:
        lines = ['+------------------------+']
        for row in self._tiles.tolist():
            lines.append('|' + ''.join(f'{(1 << e) if e else 0:>6}' for e in row) + '|')
        lines.append('+------------------------+')
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f'GameBoard({self._tiles.ravel().tolist()})'
