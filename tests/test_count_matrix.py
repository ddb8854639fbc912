import pytest
import numpy as np

from fg_package.count_matrix import (
    CountMatrix,
    sparsify,
    densify,
    resolve_rows,
    drop_rows,
)
from fg_package.exceptions import FormatError


@pytest.fixture
def dense_counts():
    return np.array(
        [
            [0, 3, 0, 1],
            [2, 0, 0, 0],
            [0, 0, 0, 0],
            [5, 1, 7, 0],
        ]
    )


@pytest.fixture
def count_matrix(dense_counts):
    return sparsify(
        dense_counts,
        row_labels=["Actb", "Gapdh", "Mt1", "Xist"],
        col_labels=["c1", "c2", "c3", "c4"],
    )


def test_sparsify_densify(count_matrix, dense_counts):
    np.testing.assert_array_equal(densify(count_matrix), dense_counts)
    assert count_matrix.data.nnz == np.count_nonzero(dense_counts)
    assert count_matrix.n_genes == 4
    assert count_matrix.n_cells == 4


def test_sparsify_keeps_float_values():
    dense = np.array([[0.0, 1.25], [3.5e-7, 0.0]])
    matrix = sparsify(dense, ["a", "b"], ["c1", "c2"])
    np.testing.assert_array_equal(densify(matrix), dense)


def test_label_length_mismatch(count_matrix):
    with pytest.raises(FormatError):
        CountMatrix(
            data=count_matrix.data,
            row_labels=np.array(["Actb"], dtype=object),
            col_labels=count_matrix.col_labels,
        )
    with pytest.raises(FormatError):
        sparsify(np.zeros((2, 2)), ["a", "b"], ["c1"])


def test_resolve_rows_mixed(count_matrix):
    assert resolve_rows(count_matrix, [3, "Actb", 1]) == [3, 0, 1]
    assert resolve_rows(count_matrix, "Mt1") == [2]
    assert resolve_rows(count_matrix, 0) == [0]
    assert resolve_rows(count_matrix, range(2)) == [0, 1]


def test_resolve_rows_missing(count_matrix):
    with pytest.raises(IndexError):
        resolve_rows(count_matrix, [4])
    with pytest.raises(IndexError):
        resolve_rows(count_matrix, [-1])
    with pytest.raises(IndexError):
        resolve_rows(count_matrix, ["Unknown"])


def test_subset_rows_keeps_order(count_matrix, dense_counts):
    subset = count_matrix.subset_rows([3, 0])
    assert list(subset.row_labels) == ["Xist", "Actb"]
    np.testing.assert_array_equal(subset.todense(), dense_counts[[3, 0]])
    # The source matrix is left untouched
    assert list(count_matrix.row_labels) == ["Actb", "Gapdh", "Mt1", "Xist"]


def test_subset_rows_empty(count_matrix):
    subset = count_matrix.subset_rows([])
    assert subset.n_genes == 0
    assert subset.n_cells == 4


def test_drop_rows(count_matrix):
    dropped = drop_rows(count_matrix, ["Gapdh", 2])
    assert list(dropped.row_labels) == ["Actb", "Xist"]


def test_resolve_rows_selected_twice(count_matrix):
    assert resolve_rows(count_matrix, [0, "Actb", 2, 0]) == [0, 2]
    assert drop_rows(count_matrix, [1, "Gapdh"]).row_labels.tolist() == [
        "Actb",
        "Mt1",
        "Xist",
    ]
