# Tabular data loading for the iris pipeline.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from iris_ann.config import CLASSIFYING

# appended to every line before parsing, see load_csv
_ROW_END = "__row_end__"


class DatasetError(ValueError):
    """Raised when a data file does not match its declared column types."""


class ColumnType(str, Enum):
    DECIMAL = "D"
    NOMINAL = "N"
    SKIP = "-"


def parse_types(types: Union[str, Sequence[str]]) -> List[ColumnType]:
    parsed = []
    for code in types:
        try:
            parsed.append(ColumnType(code))
        except ValueError:
            raise DatasetError(f"bad type '{code}'") from None
    return parsed


@dataclass
class TabularDataset:
    """
    Column-major view of a loaded CSV.
    Skipped columns are gone; decimal columns are float64, nominal are object.
    """
    headers: List[str]
    types: List[ColumnType]
    columns: Dict[str, np.ndarray]
    label: str = CLASSIFYING
    path: Optional[Path] = field(default=None, repr=False)

    @property
    def row_count(self) -> int:
        if not self.headers:
            return 0
        return int(self.columns[self.headers[0]].shape[0])

    @property
    def input_headers(self) -> List[str]:
        return [h for h, t in zip(self.headers, self.types) if t == ColumnType.DECIMAL]

    def subtypes(self) -> List[str]:
        """Distinct values of the label column, e.g. setosa/versicolor/virginica."""
        return sorted(set(self.columns[self.label].tolist()))

    def one_of_n(self) -> Dict[str, List[int]]:
        """Maps each subtype to its 1-of-n code of +1 / -1."""
        subtypes = self.subtypes()
        return {
            name: [1 if k == j else -1 for k in range(len(subtypes))]
            for j, name in enumerate(subtypes)
        }

    def take(self, rows) -> "TabularDataset":
        rows = np.asarray(rows, dtype=np.int64)
        return TabularDataset(
            headers=list(self.headers),
            types=list(self.types),
            columns={h: col[rows] for h, col in self.columns.items()},
            label=self.label,
            path=self.path,
        )


def default_iris_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "iris.csv"


def _read_lines(path: Path) -> List[str]:
    with open(path, "r", newline="") as f:
        return [line.rstrip("\r\n") for line in f if line.strip()]


def load_csv(
    path: Union[str, Path],
    types: Union[str, Sequence[str]],
    *,
    label: str = CLASSIFYING,
    seed: Optional[int] = 0,
) -> TabularDataset:
    """
    Loads a CSV whose first row is the header.

    types has one entry per column: D decimal, N nominal, - skip.
    Data rows are shuffled with a seeded generator before conversion so the
    same file + seed always gives the same order (seed=None keeps file order).
    """
    path = Path(path)
    col_types = parse_types(types)

    lines = _read_lines(path)
    if not lines:
        raise DatasetError(f"empty file: {path}")

    header, rows = lines[0], lines[1:]
    if not rows:
        raise DatasetError(f"no data rows in {path}")

    if seed is not None:
        order = np.random.default_rng(seed).permutation(len(rows))
        rows = [rows[i] for i in order]

    # pandas does the parsing; everything comes in as text and is typed below.
    # header=None so the header line fixes the width and longer rows raise.
    # Every line gets a trailing marker field: a short row shifts it left,
    # which tells padding apart from a genuinely blank field.
    try:
        raw_df = pd.read_csv(
            StringIO("\n".join(f"{line},{_ROW_END}" for line in [header] + rows)),
            header=None,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except pd.errors.ParserError as e:
        raise DatasetError(f"fields mismatch: {e}") from e

    ends = raw_df.iloc[:, -1]
    raw_df = raw_df.iloc[:, :-1]

    titles = [str(c).strip() for c in raw_df.iloc[0].tolist()]
    if len(titles) != len(col_types):
        raise DatasetError(
            f"fields mismatch row 0: header has {len(titles)} columns, "
            f"{len(col_types)} types given"
        )
    dupes = sorted({t for t in titles if titles.count(t) > 1})
    if dupes:
        raise DatasetError(f"duplicate column {dupes}")

    short = (ends.iloc[1:] != _ROW_END).to_numpy()
    if short.any():
        row = int(np.flatnonzero(short)[0]) + 1
        raise DatasetError(f"fields mismatch row {row}")

    df = raw_df.iloc[1:].reset_index(drop=True)
    df.columns = titles

    headers: List[str] = []
    kept_types: List[ColumnType] = []
    columns: Dict[str, np.ndarray] = {}

    for title, col_type in zip(titles, col_types):
        if col_type == ColumnType.SKIP:
            continue

        raw = df[title].str.strip()
        blank = (raw == "").to_numpy()
        if col_type == ColumnType.DECIMAL:
            if blank.any():
                row = int(np.flatnonzero(blank)[0]) + 1
                raise DatasetError(f"column '{title}' is not decimal: blank value at row {row}")
            try:
                values = pd.to_numeric(raw, errors="raise").to_numpy(dtype=np.float64)
            except (ValueError, TypeError) as e:
                raise DatasetError(f"column '{title}' is not decimal: {e}") from e
        else:
            if title != label:
                raise DatasetError(
                    f"nominal column '{title}' is not the label column '{label}'"
                )
            if blank.any():
                row = int(np.flatnonzero(blank)[0]) + 1
                raise DatasetError(f"column '{title}' has a blank label at row {row}")
            values = raw.to_numpy(dtype=object)

        headers.append(title)
        kept_types.append(col_type)
        columns[title] = values

    if label not in columns:
        raise DatasetError(f"label column '{label}' missing or not nominal")

    return TabularDataset(
        headers=headers,
        types=kept_types,
        columns=columns,
        label=label,
        path=path,
    )
