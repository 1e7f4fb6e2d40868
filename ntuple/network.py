"""
N-tuple value function: one weight table per pattern, evaluated as a sum over the eight board symmetries.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from numpy import float32, ndarray, zeros

from ntuple.features import DEFAULT_PATTERNS, SYMMETRIES, FeatureExtractor, feature_index, table_size
from tilegame.core.gameboard import GameBoard


class NTupleNetwork:
    """
    Weight tables of an N-tuple network and the value function they define.

    ``value(board) = sum_p sum_t W[p][index(p, t(board))]`` over the patterns ``p`` and the eight symmetries
    ``t``. Only the first ``min(len(patterns), len(tables))`` patterns take part. A table smaller than
    ``16**len(pattern)`` contributes nothing for the indices it does not hold.
    """

    def __init__(self, tables: Iterable[ndarray] = (), patterns: Sequence[Sequence[int]] = DEFAULT_PATTERNS):
        """
        Initialize the network.

        Parameters
        ----------
        tables : Iterable[ndarray], optional
            Weight tables, converted to ``float32``. No tables by default: the value is then always zero.
        patterns : Sequence[Sequence[int]], optional
            Patterns indexing the tables, by default the four 2x2 quadrants.
        """
        self.extractor = FeatureExtractor(patterns)
        self.tables: list[ndarray] = [table.astype(float32, copy=True).ravel() for table in tables]

    @classmethod
    def from_sizes(cls, sizes: Iterable[int], patterns: Sequence[Sequence[int]] = DEFAULT_PATTERNS) -> NTupleNetwork:
        """Create zero-initialised tables of the given sizes."""
        return cls([zeros(size, dtype=float32) for size in sizes], patterns)

    @classmethod
    def full(cls, patterns: Sequence[Sequence[int]] = DEFAULT_PATTERNS) -> NTupleNetwork:
        """Create one zero-initialised table of ``16**len(pattern)`` weights per pattern."""
        return cls.from_sizes([table_size(pattern) for pattern in patterns], patterns)

    @property
    def patterns(self) -> tuple[tuple[int, ...], ...]:
        return self.extractor.patterns

    @property
    def sizes(self) -> list[int]:
        return [table.size for table in self.tables]

    def __len__(self) -> int:
        return len(self.tables)

    def active(self) -> range:
        """Numbers of the patterns that have a table."""
        return range(min(len(self.extractor), len(self.tables)))

    def value(self, board: GameBoard) -> float:
        """
        Evaluate a board.

        Parameters
        ----------
        board : GameBoard
            The board to evaluate.

        Returns
        -------
        float
            The sum of the weights indexed by every pattern on every symmetric image of the board.

        Notes
        -----
        Pure: the weights are only read.
        """
        if not self.tables:
            return 0.0

        cells = board.cells.tolist()
        value = 0.0
        for pattern_no in self.active():
            table = self.tables[pattern_no]
            if table.size == 0:
                continue
            for symmetry in SYMMETRIES:
                index = feature_index(cells, self.extractor.isomorphic_patterns(symmetry)[pattern_no])
                if index < table.size:
                    value += float(table[index])
        return value
