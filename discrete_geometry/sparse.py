"""Triplet-based sparse matrix assembly."""

import numpy as np
from scipy import sparse
from typing import Iterator, NamedTuple, Tuple


class Triplet(NamedTuple):
    """A single (row, col, value) entry of a sparse matrix."""

    row: int
    col: int
    value: float


class TripletMatrix:
    """
    Append-only sparse matrix builder.

    Entries are kept in insertion order. Repeated (row, col) pairs are not
    merged here; they are summed when the matrix is converted with
    :meth:`to_scipy` or handed to a solver.
    """

    def __init__(self, shape: Tuple[int, int]):
        """
        Args:
            shape: Matrix dimensions (n_rows, n_cols)
        """
        self.shape = (int(shape[0]), int(shape[1]))
        self.rows = []
        self.cols = []
        self.values = []

    def append(self, row: int, col: int, value: float):
        """Add an entry; indices outside :attr:`shape` raise ``ValueError``."""
        if not (0 <= row < self.shape[0] and 0 <= col < self.shape[1]):
            raise ValueError(
                f"Entry ({row}, {col}) is outside a {self.shape[0]}x{self.shape[1]} matrix"
            )
        self.rows.append(int(row))
        self.cols.append(int(col))
        self.values.append(float(value))

    @property
    def nnz(self) -> int:
        """Number of stored entries, duplicates included."""
        return len(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Triplet]:
        for row, col, value in zip(self.rows, self.cols, self.values):
            yield Triplet(row, col, value)

    def to_scipy(self) -> sparse.csr_matrix:
        """Convert to CSR, summing duplicate entries."""
        return sparse.coo_matrix(
            (np.array(self.values, dtype=float), (np.array(self.rows, dtype=int), np.array(self.cols, dtype=int))),
            shape=self.shape
        ).tocsr()

    def to_dense(self) -> np.ndarray:
        """Dense copy with duplicates summed."""
        return self.to_scipy().toarray()

    def __repr__(self) -> str:
        return f"TripletMatrix(shape={self.shape}, nnz={self.nnz})"


class LinearSystem:
    """
    Coefficient matrix ``A`` and right-hand side ``B`` of ``A X = B``.

    ``n`` is the number of unknowns (columns of ``A``), ``m`` the number of
    right-hand side columns.
    """

    def __init__(self, A: TripletMatrix, B: TripletMatrix):
        if A.shape[0] != B.shape[0]:
            raise ValueError(
                f"Row count mismatch: A has {A.shape[0]} rows, B has {B.shape[0]}"
            )
        self.A = A
        self.B = B

    @property
    def n(self) -> int:
        """Number of unknowns."""
        return self.A.shape[1]

    @property
    def m(self) -> int:
        """Number of right-hand side columns."""
        return self.B.shape[1]

    def __repr__(self) -> str:
        return f"LinearSystem(n={self.n}, m={self.m}, nnz_A={self.A.nnz}, nnz_B={self.B.nnz})"
