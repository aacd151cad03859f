"""
Neural process for the iris data.

Stages run in this order, each one needs the previous:
    normalize_data -> create_training_data -> create_network
    -> train_network -> test_network
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import torch

from iris_ann.config import PipelineConfig
from iris_ann.dataset import TabularDataset, default_iris_path, load_csv
from iris_ann.normalize import Normalizer
from iris_ann.split import split_dataset
from iris_ann.trainers.rprop_trainer import (
    Evaluation,
    IrisNet,
    build_network,
    evaluate,
    train_network,
)


class IrisProcess:
    def __init__(self, config: Optional[PipelineConfig] = None, *,
                 dataset: Optional[TabularDataset] = None, verbose: bool = True):
        self.config = config or PipelineConfig()
        self.verbose = verbose
        self.device = torch.device(self.config.device)
        # weight init seed; an unshuffled load (seed=None) still needs one
        self.seed = self.config.seed if self.config.seed is not None else 0

        if dataset is None:
            path = Path(self.config.data) if self.config.data else default_iris_path()
            dataset = load_csv(path, self.config.types, label=self.config.label, seed=self.config.seed)
        self.dataset = dataset

        self.train: Optional[TabularDataset] = None
        self.test: Optional[TabularDataset] = None
        self.normalizer: Optional[Normalizer] = None

        # row-major: inputs[i] is the i-th training row
        self.inputs: Optional[np.ndarray] = None
        self.ideals: Optional[np.ndarray] = None

        self.X_train = None
        self.Y_train = None
        self.network: Optional[IrisNet] = None
        self.history = []
        self.converged = False
        self.evaluation: Optional[Evaluation] = None

    def _log(self, msg: str):
        if self.verbose:
            print(f"[iris] {msg}")

    def _require(self, value, stage: str):
        if value is None:
            raise RuntimeError(f"{stage}() must run first")

    def normalize_data(self):
        """Splits rows, fits ranges + encoder on the training rows, builds inputs and ideals."""
        cfg = self.config
        self.train, self.test = split_dataset(
            self.dataset, train_fraction=cfg.train_fraction, train_rows=cfg.train_rows
        )
        self.normalizer = Normalizer.fit(
            self.train, subtypes=self.dataset.subtypes(), encoding=cfg.encoding
        )
        self.inputs = self.normalizer.transform_inputs(self.train)
        self.ideals = self.normalizer.transform_ideals(self.train)

        self._log(f"rows: {self.dataset.row_count} (train {self.train.row_count}, test {self.test.row_count})")
        self._log(f"subtypes: {self.normalizer.subtypes} encoding: {self.normalizer.encoder.name}")

    def create_training_data(self):
        self._require(self.inputs, "normalize_data")
        assert self.inputs.shape[0] == self.ideals.shape[0] and self.inputs.shape[0] > 0

        self.X_train = np.ascontiguousarray(self.inputs, dtype=np.float32)
        self.Y_train = np.ascontiguousarray(self.ideals, dtype=np.float32)

    def create_network(self):
        self._require(self.X_train, "create_training_data")
        self.network = build_network(
            self.X_train.shape[1],
            self.Y_train.shape[1],
            n_hidden=self.config.hidden,
            seed=self.seed,
            device=self.device,
        )
        if self.verbose:
            print(self.network)

    def train_network(self):
        self._require(self.network, "create_network")
        cfg = self.config

        self.network, self.history, self.converged = train_network(
            X=self.X_train,
            Y=self.Y_train,
            model=self.network,
            threshold=cfg.threshold,
            max_epochs=cfg.max_epochs,
            learning_rate=cfg.learning_rate,
            log_every=cfg.log_every,
            device=self.device,
            verbose=self.verbose,
        )

    def test_network(self) -> Evaluation:
        self._require(self.network, "create_network")
        if not self.history:
            raise RuntimeError("train_network() must run first")

        X_test = self.normalizer.transform_inputs(self.test)
        y_test = self.normalizer.class_indices(self.test)

        self.evaluation = evaluate(
            self.network, X_test, y_test, self.normalizer.encoder,
            subtypes=self.normalizer.subtypes, device=self.device,
        )
        ev = self.evaluation
        self._log(f"test accuracy {ev.accuracy:.3f} ({ev.correct}/{ev.total}), "
                  f"balanced {ev.balanced_accuracy:.3f}")
        return ev

    def run(self) -> Evaluation:
        self.normalize_data()
        self.create_training_data()
        self.create_network()
        self.train_network()
        return self.test_network()
