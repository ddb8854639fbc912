"""Mapping module. Holds all code related to mapping gene IDs to canonical IDs
"""
from dataclasses import dataclass
from typing import Callable, Iterable

import numpy as np
import polars as pl

from fg_package.count_matrix import CountMatrix
from fg_package.constants import (
    ORIGINAL_ID_COLUMN,
    MAPPED_ID_COLUMN,
    MAPPING_LOG_COLUMN,
    CANDIDATES_COLUMN,
    N_CANDIDATES_COLUMN,
    MAPPED_ID_SEPARATOR,
    UNASSIGNED,
    MULTI_MAPPED,
    COLLISION,
    RESOLVED,
)

SINGLE_ID_COLUMN = "single_id"

Lookup = Callable[[str], Iterable[str]]


@dataclass(frozen=True)
class GenePartition:
    resolved: CountMatrix
    excluded: CountMatrix
    log: pl.DataFrame
    resolved_rows: np.ndarray
    excluded_rows: np.ndarray


def lookup_candidates(labels: list[str], lookup: Lookup) -> list[list[str]]:
    """Query the lookup for every label.

    Missing values returned by the lookup are dropped and candidates are
    sorted so the log doesn't depend on set ordering.

    Args:
        labels (list[str]): Original gene labels
        lookup (Lookup): Callable returning the canonical IDs of a label

    Raises:
        LookupError: If the lookup can't be reached

    Returns:
        list[list[str]]: Sorted canonical candidates per label
    """
    candidates = []
    for label in labels:
        try:
            found = lookup(label)
        except OSError as err:
            raise LookupError(f"Could not look up gene {label}: {err}") from err
        candidates.append(
            sorted({str(gene_id) for gene_id in found if gene_id not in (None, "")})
        )
    return candidates


def classify_mappings(labels: list[str], candidates: list[list[str]]) -> pl.DataFrame:
    """Give every gene its mapping disposition.

    First every row is classified on its own candidates. Then, among rows
    with a single candidate, canonical IDs claimed by several rows are
    counted over the whole gene set, and all of those rows are flagged.

    Args:
        labels (list[str]): Original gene labels, in row order
        candidates (list[list[str]]): Canonical candidates per label

    Returns:
        pl.DataFrame: originalID, mappedID and mappingLog in row order
    """
    mapping_df = pl.DataFrame(
        [
            pl.Series(ORIGINAL_ID_COLUMN, labels, dtype=pl.String),
            pl.Series(CANDIDATES_COLUMN, candidates, dtype=pl.List(pl.String)),
        ]
    ).with_columns(
        pl.col(CANDIDATES_COLUMN).list.len().alias(N_CANDIDATES_COLUMN),
        pl.col(CANDIDATES_COLUMN)
        .list.join(MAPPED_ID_SEPARATOR)
        .alias(MAPPED_ID_COLUMN),
    )
    # Second pass, over the complete set of single-mapped rows
    mapping_df = mapping_df.with_columns(
        pl.when(pl.col(N_CANDIDATES_COLUMN) == 1)
        .then(pl.col(MAPPED_ID_COLUMN))
        .alias(SINGLE_ID_COLUMN)
    )
    is_collision = (pl.col(N_CANDIDATES_COLUMN) == 1) & (
        pl.col(ORIGINAL_ID_COLUMN).count().over(SINGLE_ID_COLUMN) > 1
    )
    return mapping_df.with_columns(
        pl.when(pl.col(N_CANDIDATES_COLUMN) == 0)
        .then(pl.lit(UNASSIGNED))
        .when(pl.col(N_CANDIDATES_COLUMN) > 1)
        .then(pl.lit(MULTI_MAPPED))
        .when(is_collision)
        .then(pl.lit(COLLISION))
        .otherwise(pl.lit(RESOLVED))
        .alias(MAPPING_LOG_COLUMN)
    ).select(ORIGINAL_ID_COLUMN, MAPPED_ID_COLUMN, MAPPING_LOG_COLUMN)


def map_gene_ids(matrix: CountMatrix, lookup: Lookup) -> GenePartition:
    """Map the gene labels of a count matrix to canonical IDs and split the
    matrix into uniquely mapped genes and all other genes.

    Args:
        matrix (CountMatrix): Matrix with original gene labels as rows
        lookup (Lookup): Callable returning the canonical IDs of a label

    Returns:
        GenePartition: Resolved genes relabeled with their canonical ID,
            excluded genes with their original label, and the mapping log
    """
    print("Mapping gene IDs")
    labels = [str(label) for label in matrix.row_labels]
    mapping_log = classify_mappings(labels, lookup_candidates(labels, lookup))
    is_resolved = (mapping_log[MAPPING_LOG_COLUMN] == RESOLVED).to_numpy()
    resolved_rows = np.flatnonzero(is_resolved)
    excluded_rows = np.flatnonzero(~is_resolved)
    resolved = matrix.subset_rows(resolved_rows)
    resolved = resolved.relabel(
        row_labels=np.asarray(
            mapping_log[MAPPED_ID_COLUMN].gather(resolved_rows).to_list(),
            dtype=object,
        )
    )
    for disposition, count in (
        mapping_log.group_by(MAPPING_LOG_COLUMN, maintain_order=True)
        .len()
        .iter_rows()
    ):
        print(f"{count} gene(s): {disposition}")
    print("Mapping done")
    return GenePartition(
        resolved=resolved,
        excluded=matrix.subset_rows(excluded_rows),
        log=mapping_log,
        resolved_rows=resolved_rows,
        excluded_rows=excluded_rows,
    )


def create_gene_metadata(partition: GenePartition) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Split the mapping log into metadata tables for mapped and unconsidered genes

    Args:
        partition (GenePartition): Result of map_gene_ids

    Returns:
        tuple[pl.DataFrame, pl.DataFrame]: resolved gene metadata keyed by
            canonical ID, excluded gene metadata keyed by original ID
    """
    resolved_metadata = partition.log.filter(
        pl.col(MAPPING_LOG_COLUMN) == RESOLVED
    ).select(
        pl.col(MAPPED_ID_COLUMN).cast(pl.Int64),
        ORIGINAL_ID_COLUMN,
    )
    excluded_metadata = partition.log.filter(
        pl.col(MAPPING_LOG_COLUMN) != RESOLVED
    ).select(ORIGINAL_ID_COLUMN, MAPPED_ID_COLUMN, MAPPING_LOG_COLUMN)
    return resolved_metadata, excluded_metadata
