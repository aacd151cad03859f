# Pipeline knobs shared by the CLI and the process runner.
# These may need to change for a different data set.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Header column in iris.csv we're classifying
CLASSIFYING = "iris"

# Column types in iris.csv: 4 decimal measurements + the nominal species
IRIS_TYPES = "DDDDN"

# Data handling
SEED = 0                # row shuffle + weight init
TRAIN_FRACTION = 0.8    # 120 of 150 iris rows

# Network
NUM_HIDDEN = 4          # neurons in the (one) hidden layer
ENCODING = "equilateral"
NORM_LOW = -1.0
NORM_HIGH = 1.0

# Training
TRAIN_THRESHOLD = 0.01  # stop once mean squared error drops to this
MAX_EPOCHS = 5000       # hard cap
LEARNING_RATE = 0.1     # initial rprop step size
LOG_EVERY = 1           # print every n-th epoch


@dataclass
class PipelineConfig:
    data: Optional[Path] = None     # None -> bundled iris.csv
    types: str = IRIS_TYPES
    label: str = CLASSIFYING
    seed: Optional[int] = SEED
    train_fraction: float = TRAIN_FRACTION
    train_rows: Optional[int] = None
    encoding: str = ENCODING
    hidden: int = NUM_HIDDEN
    threshold: float = TRAIN_THRESHOLD
    max_epochs: int = MAX_EPOCHS
    learning_rate: float = LEARNING_RATE
    log_every: int = LOG_EVERY
    device: str = field(default="cpu")
