"""
Training figures.

Outputs:
 - Semilog error-per-epoch curve with the stopping threshold marked
"""

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt


def plot_training_error(history, out_path: Path, *, threshold: Optional[float] = None) -> Path:
    """Saves the error curve from train_network's history as a PNG."""
    if not history:
        raise ValueError("empty training history, nothing to plot")

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    epochs = [h["epoch"] for h in history]
    errors = [h["error"] for h in history]

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.semilogy(epochs, errors, label="train error (MSE)")
    if threshold is not None:
        ax.axhline(threshold, color="k", linestyle="--", alpha=0.5, label=f"threshold {threshold}")

    ax.set_xlabel("Epoch")
    ax.set_ylabel("Error")
    ax.set_title("Resilient propagation training error")
    ax.grid(True, which="both", alpha=0.3)
    ax.legend()
    fig.tight_layout()

    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    print(f"  Saved {out_path}")
    return out_path
