# trainers/rprop_trainer.py

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import torch
import torch.nn as nn

import iris_ann.utils.utils as utils
from iris_ann.config import LEARNING_RATE, LOG_EVERY, MAX_EPOCHS, NUM_HIDDEN, TRAIN_THRESHOLD


# FEED-FORWARD MODEL DEFINITION
# CURRENT ARCHITECTURE
#   - input layer: one neuron per normalized measurement (4 for iris)
#   - hidden layer: NUM_HIDDEN tanh neurons
#   - output layer: one tanh neuron per encoded label value
#     (k-1 for equilateral, k for one-of-n), targets live in [-1, 1]
class IrisNet(nn.Module):
    def __init__(self, n_inputs: int, n_outputs: int, n_hidden: int = NUM_HIDDEN):
        super().__init__()
        self.n_inputs = n_inputs
        self.n_outputs = n_outputs
        self.n_hidden = n_hidden

        self.layers = nn.Sequential(
            nn.Linear(n_inputs, n_hidden),
            nn.Tanh(),
            nn.Linear(n_hidden, n_outputs),
            nn.Tanh(),
        )

    def forward(self, x):
        # x: (B, F) -> (B, W)
        return self.layers(x)


def run_epoch(model, X, Y, *, optimizer, criterion) -> float:
    """One full-batch rprop iteration. Returns the error before the weight update."""
    model.train()
    optimizer.zero_grad()

    out = model(X)              # (N, W)
    loss = criterion(out, Y)    # scalar
    loss.backward()
    optimizer.step()

    return float(loss.item())


def run_training_to_threshold(model, X, Y, *, optimizer, criterion,
                              threshold, max_epochs, log_every=LOG_EVERY, verbose=True):
    """
    Iterates until the error drops to threshold or max_epochs is hit.
    Returns: (history_list, converged)
    """
    history = []
    converged = False

    for ep in range(1, max_epochs + 1):
        err = run_epoch(model, X, Y, optimizer=optimizer, criterion=criterion)
        history.append({"epoch": ep, "error": err})

        converged = err <= threshold

        if verbose and (converged or ep % max(1, log_every) == 0):
            print(f"Epoch {ep:04d} | train error {err:.6f}")

        if converged:
            break

    if verbose:
        if converged:
            print(f"Converged at epoch {len(history)} (error {history[-1]['error']:.6f} <= {threshold}).")
        else:
            print(f"WARNING: stopped at max_epochs={max_epochs} with error "
                  f"{history[-1]['error']:.6f} > {threshold}.")

    return history, converged


def build_network(n_inputs: int, n_outputs: int, *, n_hidden: int = NUM_HIDDEN, seed: int = 0,
                  device: torch.device = torch.device("cpu")) -> IrisNet:
    """Fresh network with seeded initial weights."""
    # Make training repeatable across runs
    torch.manual_seed(seed)
    return IrisNet(n_inputs=n_inputs, n_outputs=n_outputs, n_hidden=n_hidden).to(device)


def train_network(
    *,
    X: np.ndarray,             # (N, F) float32, already normalized
    Y: np.ndarray,             # (N, W) float32 encoded ideals
    n_hidden: int = NUM_HIDDEN,
    seed: int = 0,
    threshold: float = TRAIN_THRESHOLD,
    max_epochs: int = MAX_EPOCHS,
    learning_rate: float = LEARNING_RATE,
    log_every: int = LOG_EVERY,
    device: torch.device = torch.device("cpu"),
    verbose: bool = True,
    model: Optional[IrisNet] = None,
) -> Tuple[IrisNet, List[Dict[str, float]], bool]:
    """
    Trains model in place when given (n_hidden and seed are then unused),
    otherwise builds one with build_network.

    Returns:
      model (trained weights),
      history (list of dicts),
      converged (error reached threshold before max_epochs)
    """
    assert X.ndim == 2 and Y.ndim == 2
    assert X.shape[0] == Y.shape[0], f"X has N={X.shape[0]} rows but Y has {Y.shape[0]} ideals"
    if X.shape[0] == 0:
        raise ValueError("no training rows")
    if max_epochs < 1:
        raise ValueError(f"max_epochs must be >= 1, got {max_epochs}")

    X_t = torch.from_numpy(np.ascontiguousarray(X, dtype=np.float32)).to(device)
    Y_t = torch.from_numpy(np.ascontiguousarray(Y, dtype=np.float32)).to(device)

    if model is None:
        model = build_network(X.shape[1], Y.shape[1], n_hidden=n_hidden, seed=seed, device=device)
        if verbose:
            print(model)
    elif (model.n_inputs, model.n_outputs) != (X.shape[1], Y.shape[1]):
        raise ValueError(
            f"network is {model.n_inputs}->{model.n_outputs} but data is {X.shape[1]}->{Y.shape[1]}"
        )

    # resilient propagation uses gradient signs only, so full batch
    # lr is the initial per-weight step size
    criterion = nn.MSELoss()
    optimizer = torch.optim.Rprop(model.parameters(), lr=learning_rate)

    history, converged = run_training_to_threshold(
        model, X_t, Y_t,
        optimizer=optimizer, criterion=criterion,
        threshold=threshold, max_epochs=max_epochs,
        log_every=log_every, verbose=verbose,
    )

    model.eval()
    return model, history, converged


def predict(model: IrisNet, X: np.ndarray, *, device: torch.device = torch.device("cpu")) -> np.ndarray:
    """Raw output activations (N, W)."""
    model.eval()
    with torch.no_grad():
        xb = torch.from_numpy(np.ascontiguousarray(X, dtype=np.float32)).to(device)
        out = model(xb)
    return out.cpu().numpy()


@dataclass
class Evaluation:
    accuracy: float
    balanced_accuracy: float
    correct: int
    total: int
    predictions: np.ndarray
    confusion: np.ndarray
    subtypes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "accuracy": self.accuracy,
            "balanced_accuracy": self.balanced_accuracy,
            "correct": self.correct,
            "total": self.total,
            "confusion": self.confusion.tolist(),
            "subtypes": list(self.subtypes),
        }


def evaluate(
    model: IrisNet,
    X: np.ndarray,
    y_cls: np.ndarray,
    encoder,
    *,
    subtypes: Optional[List[str]] = None,
    device: torch.device = torch.device("cpu"),
) -> Evaluation:
    """Classify each row by the nearest codeword and score against y_cls."""
    n_classes = encoder.count
    y_cls = np.asarray(y_cls, dtype=np.int64)

    if X.shape[0] == 0:
        y_pred = np.zeros(0, dtype=np.int64)
    else:
        y_pred = encoder.decode_batch(predict(model, X, device=device))

    correct = int((y_pred == y_cls).sum())
    total = int(y_cls.shape[0])
    return Evaluation(
        accuracy=utils.accuracy(y_cls, y_pred),
        balanced_accuracy=utils.balanced_accuracy(y_cls, y_pred, n_classes),
        correct=correct,
        total=total,
        predictions=y_pred,
        confusion=utils.confusion_matrix(y_cls, y_pred, n_classes),
        subtypes=list(subtypes or []),
    )


def export_model(*, model: IrisNet, out_path: Path) -> Path:
    """Writes the trained weights (state_dict) plus layer sizes."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    torch.save(
        {
            "n_inputs": model.n_inputs,
            "n_hidden": model.n_hidden,
            "n_outputs": model.n_outputs,
            "state_dict": {k: v.detach().cpu() for k, v in model.state_dict().items()},
        },
        str(out_path),
    )
    print("Exported model ->", str(out_path.resolve()))
    return out_path


def load_model(path: Path) -> IrisNet:
    ckpt = torch.load(str(path), map_location="cpu")
    model = IrisNet(n_inputs=ckpt["n_inputs"], n_outputs=ckpt["n_outputs"], n_hidden=ckpt["n_hidden"])
    model.load_state_dict(ckpt["state_dict"])
    model.eval()
    return model
