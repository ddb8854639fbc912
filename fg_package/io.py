import os
import zipfile
from pathlib import Path

import numpy as np
import polars as pl
from scipy import sparse

from fg_package.count_matrix import CountMatrix, sparsify
from fg_package.exceptions import FormatError
from fg_package.constants import (
    DEFAULT_SEPARATOR,
    UNHEADED_PREFIX,
    CELL_ID_COLUMN,
    CELL_ID_HEADER,
    GENE_ID_HEADER,
    GENE_NAME_HEADER,
    EXPRESSION_HEADER,
    EXPRESSION_DATA,
    CELL_METADATA,
    GENE_METADATA,
)


def check_file(file_str: str, path: str | None = None) -> Path:
    """Resolve a file against an optional base directory and check it exists.

    Args:
        file_str (str): File name or path
        path (str | None): Base directory the file name is relative to

    Raises:
        FileNotFoundError: If the file does not exist

    Returns:
        Path: Path to the file
    """
    file_path = Path(file_str)
    if path is not None:
        file_path = Path(path) / file_path
    if not file_path.is_file():
        raise FileNotFoundError(f"{file_path} doesn't exist")
    return file_path


def read_count_matrix(
    file: str,
    path: str | None = None,
    row_names: int = 0,
    header: bool = True,
    sep: str = DEFAULT_SEPARATOR,
) -> CountMatrix:
    """Read a dense count table from disk into a sparse CountMatrix.

    The working directory is never changed, `path` is joined to `file`
    instead. Labels are kept as written in the file. A header with one
    field less than the rows (as written by R) holds only cell labels, the
    gene labels are then the first column.

    Args:
        file (str): Name of the file holding the count table
        path (str | None): Directory holding the file
        row_names (int): Column holding the gene labels. Defaults to 0.
        header (bool): Whether the first line holds cell labels. Defaults to True.
        sep (str): Column separator. Defaults to tab.

    Raises:
        FileNotFoundError: If the file can't be found
        FormatError: If the table is ragged, its header doesn't fit the rows
            or it holds non numeric counts

    Returns:
        CountMatrix: genes x cells counts
    """
    file_path = check_file(file, path)
    header_fields = None
    try:
        if header:
            header_fields = [
                "" if field is None else field
                for field in pl.read_csv(
                    file_path,
                    separator=sep,
                    has_header=False,
                    n_rows=1,
                    infer_schema_length=0,
                ).row(0)
            ]
        counts_df = pl.read_csv(
            file_path,
            separator=sep,
            has_header=False,
            skip_rows=1 if header else 0,
            infer_schema_length=0,
        )
    except pl.exceptions.NoDataError as err:
        if not header_fields:
            raise FormatError(f"Count matrix {file_path} is empty.") from err
        counts_df = pl.DataFrame(
            schema={f"column_{i + 1}": pl.String for i in range(len(header_fields))}
        )
    except pl.exceptions.ComputeError as err:
        raise FormatError(f"Could not parse count matrix {file_path}: {err}") from err

    label_position = row_names
    if header_fields is None:
        names = [f"{UNHEADED_PREFIX}{i + 1}" for i in range(counts_df.width)]
    elif len(header_fields) == counts_df.width - 1:
        # Tables written by R's write.table have no header field for the row names
        names = [""] + header_fields
        label_position = 0
    elif len(header_fields) == counts_df.width:
        names = header_fields
    else:
        raise FormatError(
            f"The header of {file_path} has {len(header_fields)} field(s) "
            f"but the rows have {counts_df.width}."
        )
    if label_position < 0 or label_position >= counts_df.width:
        raise FormatError(
            f"Row name column {row_names} is missing from {file_path}, "
            f"which has {counts_df.width} column(s)."
        )

    gene_labels = counts_df.get_column(counts_df.columns[label_position])
    if gene_labels.null_count() > 0:
        raise FormatError(f"Some rows of {file_path} have no gene label.")
    cell_positions = [i for i in range(counts_df.width) if i != label_position]
    counts = pl.DataFrame(
        [
            _as_counts(counts_df.get_column(counts_df.columns[i]), names[i], file_path)
            for i in cell_positions
        ]
    )
    if counts.width and counts.null_count().sum_horizontal().item() > 0:
        raise FormatError(
            f"Some rows of {file_path} have fewer values than there are cells."
        )
    values = counts.to_numpy() if counts.width else np.zeros((counts_df.height, 0))
    return sparsify(
        values,
        row_labels=gene_labels.to_list(),
        col_labels=[names[i] for i in cell_positions],
    )


def _as_counts(column: pl.Series, cell_label: str, file_path: Path) -> pl.Series:
    """Cast a column of count strings to integers, or to floats if needed"""
    for dtype in (pl.Int64, pl.Float64):
        try:
            return column.cast(dtype)
        except (pl.exceptions.InvalidOperationError, pl.exceptions.ComputeError):
            continue
    raise FormatError(
        f"Column {cell_label} of {file_path} does not hold numeric counts."
    )


def _as_ids(labels: np.ndarray, kind: str) -> np.ndarray:
    try:
        ids = np.asarray(labels).astype(np.int64)
    except (TypeError, ValueError) as err:
        raise FormatError(f"All {kind} identifiers must be integers.") from err
    if (ids < 0).any():
        raise FormatError(f"All {kind} identifiers must be unsigned integers.")
    return ids


def create_triples(
    matrix: CountMatrix, gene_column: str = GENE_ID_HEADER
) -> pl.DataFrame:
    """Turn a cell and gene identified matrix into (cellId, geneId, value) triples.

    Triples are cell-major: all entries of cell 0 come before cell 1, and
    within a cell the stored order is kept. Zeros are never emitted.

    Args:
        matrix (CountMatrix): Matrix with integer cell labels
        gene_column (str): Header of the gene column. Integer gene labels are
            required for `geneId*Integer`, any label is kept for `gene*String`.

    Returns:
        pl.DataFrame: One row per non zero entry
    """
    data = matrix.data.copy()
    data.eliminate_zeros()
    coo = data.tocoo()
    cell_ids = _as_ids(matrix.col_labels, "cell")
    if gene_column == GENE_NAME_HEADER:
        genes = pl.Series(
            gene_column,
            [str(label) for label in matrix.row_labels[coo.row]],
            dtype=pl.String,
        )
    else:
        genes = pl.Series(
            gene_column, _as_ids(matrix.row_labels, "gene")[coo.row], dtype=pl.Int64
        )
    return pl.DataFrame(
        [
            pl.Series(CELL_ID_HEADER, cell_ids[coo.col], dtype=pl.Int64),
            genes,
            pl.Series(EXPRESSION_HEADER, coo.data),
        ]
    )


def triples_to_matrix(
    triples: pl.DataFrame, row_labels, col_labels
) -> CountMatrix:
    """Rebuild a CountMatrix from triples and the labels of its rows and columns.

    Args:
        triples (pl.DataFrame): Triples as produced by create_triples
        row_labels (list): Gene identifiers, in row order
        col_labels (list): Cell identifiers, in column order

    Raises:
        FormatError: If a triple references an unknown gene or cell

    Returns:
        CountMatrix: Sparse matrix holding the triples
    """
    cell_column, gene_column, value_column = triples.columns
    row_positions = {str(label): i for i, label in enumerate(row_labels)}
    col_positions = {int(label): i for i, label in enumerate(col_labels)}
    try:
        rows = [row_positions[str(gene)] for gene in triples[gene_column]]
        cols = [col_positions[int(cell)] for cell in triples[cell_column]]
    except KeyError as err:
        raise FormatError(f"Triple references unknown identifier {err}") from err
    data = sparse.coo_matrix(
        (triples[value_column].to_numpy(), (rows, cols)),
        shape=(len(row_labels), len(col_labels)),
    ).tocsc()
    return CountMatrix(
        data=data,
        row_labels=np.asarray(row_labels, dtype=object),
        col_labels=np.asarray(col_labels, dtype=object),
    )


def write_expression_data(
    matrix: CountMatrix,
    outfolder: str,
    filename: str = EXPRESSION_DATA,
    gene_column: str = GENE_ID_HEADER,
) -> Path:
    """Write a matrix as a tab separated sparse triple file

    Args:
        matrix (CountMatrix): Matrix with integer cell labels
        outfolder (str): Output folder
        filename (str): Filename
        gene_column (str): Header of the gene column

    Returns:
        Path: Path of the written file
    """
    os.makedirs(outfolder, exist_ok=True)
    out_path = Path(outfolder) / filename
    create_triples(matrix, gene_column=gene_column).write_csv(
        out_path, separator="\t", quote_style="never"
    )
    return out_path


def read_expression_data(file_path: str) -> pl.DataFrame:
    triples = pl.read_csv(file_path, separator="\t", infer_schema_length=None)
    if (
        triples.width != 3
        or triples.columns[0] != CELL_ID_HEADER
        or triples.columns[1] not in (GENE_ID_HEADER, GENE_NAME_HEADER)
        or triples.columns[2] != EXPRESSION_HEADER
    ):
        raise FormatError(f"{file_path} does not have a valid expression header.")
    return triples


def write_cell_metadata(
    cell_metadata: pl.DataFrame, outfolder: str, filename: str = CELL_METADATA
) -> Path:
    os.makedirs(outfolder, exist_ok=True)
    out_path = Path(outfolder) / filename
    cell_metadata.rename({CELL_ID_COLUMN: CELL_ID_HEADER}).write_csv(
        out_path, separator="\t", quote_style="never"
    )
    return out_path


def write_gene_metadata(
    gene_metadata: pl.DataFrame,
    outfolder: str,
    filename: str = GENE_METADATA,
    id_header: str = GENE_ID_HEADER,
) -> Path:
    """Write gene metadata with its first column named after the gene id type

    Args:
        gene_metadata (pl.DataFrame): First column holds the gene identifiers
        outfolder (str): Output folder
        filename (str): Filename
        id_header (str): `geneId*Integer` for mapped genes, `gene*String` otherwise

    Returns:
        Path: Path of the written file
    """
    os.makedirs(outfolder, exist_ok=True)
    out_path = Path(outfolder) / filename
    gene_metadata.rename({gene_metadata.columns[0]: id_header}).write_csv(
        out_path, separator="\t", quote_style="never"
    )
    return out_path


def bundle_package(
    outfolder: str, archive_name: str, package_files: list[Path]
) -> Path:
    """Zip the files of a package into a single archive

    Only the given files are bundled, other files lying in outfolder
    (e.g. from an earlier run) are left out.

    Args:
        outfolder (str): Folder the archive is written to
        archive_name (str): Name of the archive
        package_files (list[Path]): Files written for this package

    Returns:
        Path: Path to the archive
    """
    archive_path = Path(outfolder) / archive_name
    with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as archive:
        for file_path in sorted(Path(file_path) for file_path in package_files):
            archive.write(file_path, arcname=file_path.name)
    return archive_path
