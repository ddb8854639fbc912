"""Cell identifiers and cell metadata extraction"""

import numpy as np
import polars as pl

from fg_package.count_matrix import CountMatrix, RowSelector, resolve_rows
from fg_package.exceptions import FormatError
from fg_package.constants import (
    CELL_ID_COLUMN,
    CELL_NAME_COLUMN,
    DEFAULT_META_ROWS,
    TOKEN_PREFIX,
)


def _cell_ids(matrix: CountMatrix) -> pl.Series:
    return pl.Series(CELL_ID_COLUMN, np.arange(matrix.n_cells), dtype=pl.Int64)


def assign_cell_ids(matrix: CountMatrix) -> tuple[CountMatrix, pl.DataFrame]:
    """Assign cellIds to the count matrix columns.

    The cellId of a column is its position. Columns are not reordered, the
    original column labels are kept as cellName. Must run on the matrix as
    read, since the column labels become the cellNames.

    Args:
        matrix (CountMatrix): Matrix with cell labels as columns

    Returns:
        tuple[CountMatrix, pl.DataFrame]: Matrix with cellIds as column labels, cell mapping
    """
    cell_metadata = pl.DataFrame(
        [
            _cell_ids(matrix),
            pl.Series(
                CELL_NAME_COLUMN,
                [str(label) for label in matrix.col_labels],
                dtype=pl.String,
            ),
        ]
    )
    relabeled = matrix.relabel(col_labels=np.arange(matrix.n_cells))
    return relabeled, cell_metadata


def get_meta_from_matrix(
    matrix: CountMatrix, lines: RowSelector = DEFAULT_META_ROWS
) -> pl.DataFrame:
    """Prepare a metadata table from rows of the count matrix holding metadata.

    Args:
        matrix (CountMatrix): Matrix holding counts and metadata rows
        lines (RowSelector): Row positions and/or labels. Defaults to the first five rows.

    Raises:
        IndexError: If a requested row doesn't exist
        FormatError: If two selected rows share a label, or a row is labelled
            like a cell metadata column

    Returns:
        pl.DataFrame: cellId and one column per selected row
    """
    positions = resolve_rows(matrix, lines)
    meta_labels = [str(label) for label in matrix.row_labels[positions]]
    reserved = {CELL_ID_COLUMN, CELL_NAME_COLUMN}.intersection(meta_labels)
    if reserved:
        raise FormatError(
            f"Metadata rows can't be named {sorted(reserved)}, these names are "
            f"reserved for the cell metadata."
        )
    if len(set(meta_labels)) != len(meta_labels):
        raise FormatError(f"Metadata rows {meta_labels} don't have distinct labels.")
    meta_values = matrix.data[positions, :].toarray()
    columns = [_cell_ids(matrix)]
    for label, values in zip(meta_labels, meta_values):
        columns.append(pl.Series(label, values))
    return pl.DataFrame(columns)


def get_meta_from_colnames(matrix: CountMatrix, sep: str = "_") -> pl.DataFrame:
    """Prepare a metadata table from the count matrix column names.

    Each column name is split on `sep`, a trailing separator doesn't start
    an extra empty token. Only as many metadata columns as
    the shortest column name has tokens are created, extra tokens of longer
    names are dropped.

    Args:
        matrix (CountMatrix): Matrix with the original cell labels as columns
        sep (str): Separator of the metadata in the column names. Defaults to "_".

    Raises:
        FormatError: If the separator is empty or a column name has no token

    Returns:
        pl.DataFrame: cellId, cellName and V1..Vn token columns
    """
    if not sep:
        raise FormatError("The metadata separator can't be empty.")
    names_df = pl.DataFrame(
        [
            _cell_ids(matrix),
            pl.Series(
                CELL_NAME_COLUMN,
                [str(label) for label in matrix.col_labels],
                dtype=pl.String,
            ),
        ]
    )
    empty_names = names_df.filter(pl.col(CELL_NAME_COLUMN) == "")
    if empty_names.height > 0:
        raise FormatError(
            f"Cells {empty_names[CELL_ID_COLUMN].to_list()} have no metadata "
            f"token in their name."
        )
    tokens = pl.col(CELL_NAME_COLUMN).str.strip_suffix(sep).str.split(sep)
    if names_df.height == 0:
        return names_df
    column_count = names_df.select(tokens.list.len().min()).item()
    return names_df.with_columns(
        [
            tokens.list.get(i).alias(f"{TOKEN_PREFIX}{i + 1}")
            for i in range(column_count)
        ]
    )
