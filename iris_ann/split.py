from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from iris_ann.config import TRAIN_FRACTION
from iris_ann.dataset import TabularDataset


def train_count(row_count: int, train_fraction: float) -> int:
    """Number of training rows: row_count * fraction rounded half up, at least 1."""
    if not 0.0 < train_fraction <= 1.0:
        raise ValueError(f"train_fraction must be in (0, 1], got {train_fraction}")
    if row_count < 1:
        raise ValueError("cannot split an empty data set")
    n = int(row_count * train_fraction + 0.5)
    return min(max(n, 1), row_count)


def split_indices(
    row_count: int,
    *,
    train_fraction: float = TRAIN_FRACTION,
    train_rows: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    if train_rows is not None:
        if not 1 <= train_rows <= row_count:
            raise ValueError(f"train_rows must be in [1, {row_count}], got {train_rows}")
        n_train = train_rows
    else:
        n_train = train_count(row_count, train_fraction)

    rows = np.arange(row_count, dtype=np.int64)
    return rows[:n_train], rows[n_train:]


def split_dataset(
    data: TabularDataset,
    *,
    train_fraction: float = TRAIN_FRACTION,
    train_rows: Optional[int] = None,
) -> Tuple[TabularDataset, TabularDataset]:
    """
    Leading rows train, the remainder test.
    Rows are already shuffled by load_csv so no reshuffle happens here.
    """
    train_idx, test_idx = split_indices(
        data.row_count, train_fraction=train_fraction, train_rows=train_rows
    )
    return data.take(train_idx), data.take(test_idx)
