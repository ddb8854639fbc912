import pytest
import numpy as np
import polars as pl
from polars.testing import assert_frame_equal

from fg_package import mapping
from fg_package.count_matrix import sparsify
from fg_package.constants import (
    ORIGINAL_ID_COLUMN,
    MAPPED_ID_COLUMN,
    MAPPING_LOG_COLUMN,
    UNASSIGNED,
    MULTI_MAPPED,
    COLLISION,
    RESOLVED,
)


def make_lookup(table):
    return lambda label: set(table.get(label, ()))


@pytest.fixture
def count_matrix():
    return sparsify(
        np.array(
            [
                [1, 0, 0],
                [0, 2, 0],
                [0, 0, 3],
                [4, 5, 6],
                [7, 0, 8],
            ]
        ),
        row_labels=["A", "B", "C", "D", "E"],
        col_labels=[0, 1, 2],
    )


@pytest.fixture
def lookup():
    return make_lookup(
        {
            "B": {"100"},
            "C": {"100"},
            "D": {"200"},
            "E": {"300", "301"},
        }
    )


def test_map_gene_ids(count_matrix, lookup):
    partition = mapping.map_gene_ids(count_matrix, lookup)
    expected_log = pl.DataFrame(
        {
            ORIGINAL_ID_COLUMN: ["A", "B", "C", "D", "E"],
            MAPPED_ID_COLUMN: ["", "100", "100", "200", "300 // 301"],
            MAPPING_LOG_COLUMN: [UNASSIGNED, COLLISION, COLLISION, RESOLVED, MULTI_MAPPED],
        }
    )
    assert_frame_equal(partition.log, expected_log)
    assert list(partition.resolved.row_labels) == ["200"]
    assert list(partition.excluded.row_labels) == ["A", "B", "C", "E"]
    np.testing.assert_array_equal(partition.resolved.todense(), [[4, 5, 6]])
    np.testing.assert_array_equal(
        partition.excluded.todense(), count_matrix.todense()[[0, 1, 2, 4]]
    )
    assert list(partition.resolved_rows) == [3]
    assert list(partition.excluded_rows) == [0, 1, 2, 4]


def test_collision_keeps_unique_mapping():
    matrix = sparsify(np.eye(3), ["B", "C", "F"], [0, 1, 2])
    partition = mapping.map_gene_ids(
        matrix, make_lookup({"B": {"X"}, "C": {"X"}, "F": {"Y"}})
    )
    assert partition.log[MAPPING_LOG_COLUMN].to_list() == [COLLISION, COLLISION, RESOLVED]
    assert list(partition.resolved.row_labels) == ["Y"]


@pytest.mark.parametrize(
    "table",
    [
        {},
        {label: {"1"} for label in "ABCDE"},
        {"A": {"1", "2"}, "B": {"1"}, "C": {"1"}, "D": {"3"}},
    ],
)
def test_partition_is_total(count_matrix, table):
    partition = mapping.map_gene_ids(count_matrix, make_lookup(table))
    resolved = set(partition.resolved_rows)
    excluded = set(partition.excluded_rows)
    assert resolved | excluded == set(range(count_matrix.n_genes))
    assert not resolved & excluded
    assert len(set(partition.resolved.row_labels)) == partition.resolved.n_genes
    assert partition.log.height == count_matrix.n_genes


def test_all_unassigned(count_matrix):
    partition = mapping.map_gene_ids(count_matrix, make_lookup({}))
    assert partition.resolved.n_genes == 0
    assert partition.log[MAPPING_LOG_COLUMN].to_list() == [UNASSIGNED] * 5


def test_all_collide(count_matrix):
    partition = mapping.map_gene_ids(
        count_matrix, make_lookup({label: {"1"} for label in "ABCDE"})
    )
    assert partition.resolved.n_genes == 0
    assert partition.log[MAPPING_LOG_COLUMN].to_list() == [COLLISION] * 5


def test_multi_mapped_not_counted_as_collision():
    matrix = sparsify(np.eye(2), ["E", "G"], [0, 1])
    partition = mapping.map_gene_ids(
        matrix, make_lookup({"E": {"300", "301"}, "G": {"300"}})
    )
    assert partition.log[MAPPING_LOG_COLUMN].to_list() == [MULTI_MAPPED, RESOLVED]


def test_order_independence(count_matrix, lookup):
    order = [4, 2, 0, 3, 1]
    shuffled = count_matrix.subset_rows(order)
    partition = mapping.map_gene_ids(count_matrix, lookup)
    shuffled_partition = mapping.map_gene_ids(shuffled, lookup)
    dispositions = dict(
        zip(partition.log[ORIGINAL_ID_COLUMN], partition.log[MAPPING_LOG_COLUMN])
    )
    shuffled_dispositions = dict(
        zip(
            shuffled_partition.log[ORIGINAL_ID_COLUMN],
            shuffled_partition.log[MAPPING_LOG_COLUMN],
        )
    )
    assert dispositions == shuffled_dispositions
    assert shuffled_partition.log[ORIGINAL_ID_COLUMN].to_list() == ["E", "C", "A", "D", "B"]


def test_missing_values_are_dropped():
    matrix = sparsify(np.eye(2), ["A", "B"], [0, 1])
    partition = mapping.map_gene_ids(
        matrix, make_lookup({"A": {None}, "B": {"7", None}})
    )
    assert partition.log[MAPPING_LOG_COLUMN].to_list() == [UNASSIGNED, RESOLVED]


def test_empty_matrix(lookup):
    matrix = sparsify(np.zeros((0, 3)), [], [0, 1, 2])
    partition = mapping.map_gene_ids(matrix, lookup)
    assert partition.resolved.n_genes == 0
    assert partition.excluded.n_genes == 0
    assert partition.log.height == 0
    assert partition.log.columns == [
        ORIGINAL_ID_COLUMN,
        MAPPED_ID_COLUMN,
        MAPPING_LOG_COLUMN,
    ]


def test_unreachable_lookup(count_matrix):
    def offline_lookup(label):
        raise ConnectionError("annotation service unreachable")

    with pytest.raises(LookupError):
        mapping.map_gene_ids(count_matrix, offline_lookup)


def test_create_gene_metadata(count_matrix, lookup):
    partition = mapping.map_gene_ids(count_matrix, lookup)
    resolved_metadata, excluded_metadata = mapping.create_gene_metadata(partition)
    assert_frame_equal(
        resolved_metadata,
        pl.DataFrame(
            {MAPPED_ID_COLUMN: [200], ORIGINAL_ID_COLUMN: ["D"]},
            schema={MAPPED_ID_COLUMN: pl.Int64, ORIGINAL_ID_COLUMN: pl.String},
        ),
    )
    assert excluded_metadata[ORIGINAL_ID_COLUMN].to_list() == ["A", "B", "C", "E"]
    assert excluded_metadata.columns == [
        ORIGINAL_ID_COLUMN,
        MAPPED_ID_COLUMN,
        MAPPING_LOG_COLUMN,
    ]
