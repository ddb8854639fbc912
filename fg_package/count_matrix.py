"""Sparse genes x cells container shared by every stage of the pipeline"""

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
from scipy import sparse

from fg_package.exceptions import FormatError

RowSelector = Union[int, str, Sequence[Union[int, str]], range]


@dataclass(frozen=True)
class CountMatrix:
    data: sparse.csc_matrix
    row_labels: np.ndarray
    col_labels: np.ndarray

    def __post_init__(self):
        n_rows, n_cols = self.data.shape
        if len(self.row_labels) != n_rows:
            raise FormatError(
                f"Matrix has {n_rows} rows but {len(self.row_labels)} row labels."
            )
        if len(self.col_labels) != n_cols:
            raise FormatError(
                f"Matrix has {n_cols} columns but {len(self.col_labels)} column labels."
            )

    @property
    def n_genes(self) -> int:
        return self.data.shape[0]

    @property
    def n_cells(self) -> int:
        return self.data.shape[1]

    def todense(self) -> np.ndarray:
        return self.data.toarray()

    def subset_rows(self, positions) -> "CountMatrix":
        """Keep the rows at the given positions, in the given order."""
        positions = np.asarray(positions, dtype=np.int64)
        return CountMatrix(
            data=sparse.csc_matrix(self.data[positions, :]),
            row_labels=self.row_labels[positions],
            col_labels=self.col_labels.copy(),
        )

    def relabel(self, row_labels=None, col_labels=None) -> "CountMatrix":
        return CountMatrix(
            data=self.data.copy(),
            row_labels=self.row_labels.copy()
            if row_labels is None
            else np.asarray(row_labels),
            col_labels=self.col_labels.copy()
            if col_labels is None
            else np.asarray(col_labels),
        )


def sparsify(dense, row_labels, col_labels) -> CountMatrix:
    """Build a CountMatrix from a dense array. Zeros are not stored.

    Args:
        dense (array-like): genes x cells values
        row_labels (list): Gene labels
        col_labels (list): Cell labels

    Returns:
        CountMatrix: The sparse matrix
    """
    values = np.asarray(dense)
    if values.ndim != 2:
        raise FormatError(f"Expected a 2-D table, got {values.ndim} dimension(s).")
    data = sparse.csc_matrix(values)
    data.eliminate_zeros()
    return CountMatrix(
        data=data,
        row_labels=np.asarray(row_labels, dtype=object),
        col_labels=np.asarray(col_labels, dtype=object),
    )


def densify(matrix: CountMatrix) -> np.ndarray:
    return matrix.todense()


def resolve_rows(matrix: CountMatrix, rows: RowSelector) -> list[int]:
    """Turn a row selector into row positions.

    A selector is a single position, a single label, or a sequence mixing
    both. Labels resolve to their first occurrence, a row selected twice is
    only returned once.

    Args:
        matrix (CountMatrix): Matrix holding the rows
        rows (RowSelector): Positions and/or labels

    Raises:
        IndexError: If a position is out of range or a label is unknown

    Returns:
        list[int]: Distinct row positions in selector order
    """
    if isinstance(rows, (int, np.integer, str)):
        rows = [rows]
    label_positions = {}
    for position, label in enumerate(matrix.row_labels):
        label_positions.setdefault(str(label), position)
    positions = []
    for row in rows:
        if isinstance(row, (int, np.integer)) and not isinstance(row, bool):
            if row < 0 or row >= matrix.n_genes:
                raise IndexError(
                    f"Row {row} does not exist in a matrix with {matrix.n_genes} rows."
                )
            position = int(row)
        elif isinstance(row, str):
            if row not in label_positions:
                raise IndexError(f"Row {row} does not exist in the matrix.")
            position = label_positions[row]
        else:
            raise IndexError(f"Cannot select a row with {row!r}.")
        if position not in positions:
            positions.append(position)
    return positions


def drop_rows(matrix: CountMatrix, rows: RowSelector) -> CountMatrix:
    """Remove the selected rows, e.g. metadata rows stored among the counts."""
    dropped = set(resolve_rows(matrix, rows))
    return matrix.subset_rows(
        [position for position in range(matrix.n_genes) if position not in dropped]
    )
