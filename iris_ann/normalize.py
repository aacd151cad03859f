# Input scaling + label encoding.
# Ranges ("hilos") are fit on the training rows only and reused for test rows.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import numpy as np

from iris_ann.config import NORM_HIGH, NORM_LOW
from iris_ann.dataset import TabularDataset


@dataclass
class MinMaxRange:
    low: float
    high: float


def fit_range(values: np.ndarray) -> MinMaxRange:
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        raise ValueError("cannot fit a range on zero rows")
    return MinMaxRange(low=float(values.min()), high=float(values.max()))


def normalize(values, rng: MinMaxRange, *, low: float = NORM_LOW, high: float = NORM_HIGH) -> np.ndarray:
    """
    Min-max scale into [low, high] using the fitted range.
    Values outside the fitted range are not clipped.
    """
    values = np.asarray(values, dtype=np.float64)
    span = rng.high - rng.low
    if span == 0:
        # constant column carries no information
        return np.full_like(values, (high + low) / 2.0)
    return (values - rng.low) / span * (high - low) + low


def denormalize(values, rng: MinMaxRange, *, low: float = NORM_LOW, high: float = NORM_HIGH) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    return (values - low) / (high - low) * (rng.high - rng.low) + rng.low


class Equilateral:
    """
    Equilateral encoding (Guiver & Klimasauskas).

    Encodes n classes into n-1 outputs so that every pair of codewords is the
    same distance apart. Decoding picks the nearest codeword.
    """
    name = "equilateral"

    def __init__(self, count: int, low: float = NORM_LOW, high: float = NORM_HIGH):
        if count < 2:
            raise ValueError(f"equilateral encoding needs at least 2 classes, got {count}")
        self.count = count
        self.low = low
        self.high = high
        self.codewords = self._build(count, low, high)

    @property
    def width(self) -> int:
        return self.count - 1

    @staticmethod
    def _build(n: int, low: float, high: float) -> np.ndarray:
        # start from the 2-class simplex on [-1, 1] and add one vertex per class
        m = np.zeros((n, n - 1), dtype=np.float64)
        m[0, 0] = -1.0
        m[1, 0] = 1.0

        for k in range(2, n):
            # shrink existing vertices so the new one can sit at distance 1
            f = np.sqrt(k * k - 1.0) / k
            m[:k, : k - 1] *= f
            m[:k, k - 1] = -1.0 / k
            m[k, : k - 1] = 0.0
            m[k, k - 1] = 1.0

        # rescale from [-1, 1] to [low, high]
        return (m + 1.0) / 2.0 * (high - low) + low

    def encode(self, index: int) -> np.ndarray:
        if not 0 <= index < self.count:
            raise IndexError(f"class index {index} out of range 0..{self.count - 1}")
        return self.codewords[index].copy()

    def distance(self, activations, index: int) -> float:
        a = np.asarray(activations, dtype=np.float64)
        return float(np.linalg.norm(a - self.codewords[index]))

    def decode(self, activations) -> int:
        """Index of the nearest codeword (lowest index on ties)."""
        a = np.asarray(activations, dtype=np.float64)
        d = np.linalg.norm(self.codewords - a, axis=1)
        return int(np.argmin(d))

    def decode_batch(self, activations: np.ndarray) -> np.ndarray:
        a = np.asarray(activations, dtype=np.float64)
        if a.shape[0] == 0:
            return np.zeros(0, dtype=np.int64)
        # (N, 1, W) - (1, K, W) -> (N, K)
        d = np.linalg.norm(a[:, None, :] - self.codewords[None, :, :], axis=2)
        return np.argmin(d, axis=1).astype(np.int64)


class OneOfN(Equilateral):
    """high at the class index, low everywhere else."""
    name = "one-of-n"

    def __init__(self, count: int, low: float = NORM_LOW, high: float = NORM_HIGH):
        if count < 1:
            raise ValueError(f"one-of-n encoding needs at least 1 class, got {count}")
        self.count = count
        self.low = low
        self.high = high
        self.codewords = np.where(np.eye(count, dtype=bool), high, low).astype(np.float64)

    @property
    def width(self) -> int:
        return self.count

    def decode(self, activations) -> int:
        return int(np.argmax(np.asarray(activations, dtype=np.float64)))

    def decode_batch(self, activations: np.ndarray) -> np.ndarray:
        a = np.asarray(activations, dtype=np.float64)
        if a.shape[0] == 0:
            return np.zeros(0, dtype=np.int64)
        return np.argmax(a, axis=1).astype(np.int64)


ENCODERS = {
    Equilateral.name: Equilateral,
    OneOfN.name: OneOfN,
}

LabelEncoder = Union[Equilateral, OneOfN]


def make_encoder(encoding: str, count: int, low: float = NORM_LOW, high: float = NORM_HIGH) -> LabelEncoder:
    try:
        cls = ENCODERS[encoding]
    except KeyError:
        raise ValueError(f"unknown encoding '{encoding}' (choose from {sorted(ENCODERS)})") from None
    return cls(count, low, high)


@dataclass
class Normalizer:
    """Per-column ranges + label encoder, fit once on the training split."""
    ranges: Dict[str, MinMaxRange]
    subtypes: List[str]
    encoder: LabelEncoder
    low: float = NORM_LOW
    high: float = NORM_HIGH
    input_headers: List[str] = field(default_factory=list)

    @classmethod
    def fit(
        cls,
        train: TabularDataset,
        *,
        subtypes: Optional[List[str]] = None,
        encoding: str = "equilateral",
        low: float = NORM_LOW,
        high: float = NORM_HIGH,
    ) -> "Normalizer":
        """
        subtypes defaults to the training rows' labels; pass the full data
        set's list so a class that only shows up in the test rows still gets
        a codeword.
        """
        headers = train.input_headers
        ranges = {h: fit_range(train.columns[h]) for h in headers}
        subtypes = list(subtypes) if subtypes is not None else train.subtypes()
        encoder = make_encoder(encoding, len(subtypes), low, high)
        return cls(
            ranges=ranges,
            subtypes=subtypes,
            encoder=encoder,
            low=low,
            high=high,
            input_headers=list(headers),
        )

    def transform_inputs(self, data: TabularDataset) -> np.ndarray:
        """(N, F) row-major matrix ready for the network."""
        cols = [
            normalize(data.columns[h], self.ranges[h], low=self.low, high=self.high)
            for h in self.input_headers
        ]
        if not cols:
            return np.zeros((data.row_count, 0), dtype=np.float32)
        return np.stack(cols, axis=1).astype(np.float32)

    def class_indices(self, data: TabularDataset) -> np.ndarray:
        lookup = {name: i for i, name in enumerate(self.subtypes)}
        out = np.empty(data.row_count, dtype=np.int64)
        for row, nominal in enumerate(data.columns[data.label]):
            if nominal not in lookup:
                raise ValueError(f"unknown label '{nominal}' at row {row}")
            out[row] = lookup[nominal]
        return out

    def transform_ideals(self, data: TabularDataset) -> np.ndarray:
        """(N, width) encoded targets."""
        idx = self.class_indices(data)
        return self.encoder.codewords[idx].astype(np.float32)

    def to_meta(self) -> dict:
        return {
            "type": "minmax",
            "low": self.low,
            "high": self.high,
            "ranges": {h: {"low": r.low, "high": r.high} for h, r in self.ranges.items()},
            "inputs": list(self.input_headers),
            "encoding": self.encoder.name,
            "subtypes": list(self.subtypes),
            "codewords": self.encoder.codewords.tolist(),
        }
