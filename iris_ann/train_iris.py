#!/usr/bin/env python3
"""
train_iris.py

Trains a feed-forward network on the iris measurements and reports
accuracy on the held-out rows.

- Loads a CSV with a header row and one type code per column
  (D decimal, N nominal, - skip), shuffled with --seed
- Min-max scales the decimal columns to [-1, 1] (ranges from training rows)
- Encodes the label column (--encoding equilateral | one-of-n)
- Splits leading rows for training (--train_fraction or --train_rows)
- Trains with resilient propagation until the error is <= --threshold
- Saves (optional, --model <dir>):
  - iris_model.pt (weights)
  - meta.json (ranges, subtypes, codewords, result)

Usage:
    iris-ann
    iris-ann --data path/to/iris.csv --encoding one-of-n --model out/
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

from iris_ann import config
from iris_ann.config import PipelineConfig
from iris_ann.normalize import ENCODERS
from iris_ann.process import IrisProcess
from iris_ann.trainers.rprop_trainer import export_model


# ------------------------------
# CLI ARG PARSER
# ------------------------------
def get_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Train an iris classifier with resilient propagation."
    )

    # data
    parser.add_argument(
        "--data",
        type=str,
        default=None,
        help="CSV file to train on (default: bundled iris.csv).",
    )
    parser.add_argument(
        "--types",
        type=str,
        default=config.IRIS_TYPES,
        help="One type code per column: D decimal, N nominal, - skip.",
    )
    parser.add_argument("--label", type=str, default=config.CLASSIFYING,
                        help="Header of the nominal column being classified.")
    parser.add_argument("--seed", type=int, default=config.SEED)

    # split
    parser.add_argument("--train_fraction", type=float, default=config.TRAIN_FRACTION)
    parser.add_argument("--train_rows", type=int, default=None,
                        help="Fixed number of training rows (overrides --train_fraction).")

    # network + training knobs
    parser.add_argument("--encoding", type=str, default=config.ENCODING, choices=sorted(ENCODERS))
    parser.add_argument("--hidden", type=int, default=config.NUM_HIDDEN)
    parser.add_argument("--threshold", type=float, default=config.TRAIN_THRESHOLD)
    parser.add_argument("--max_epochs", type=int, default=config.MAX_EPOCHS)
    parser.add_argument("--lr", type=float, default=config.LEARNING_RATE)
    parser.add_argument("--log_every", type=int, default=config.LOG_EVERY)

    # outputs
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Output directory where weights + meta.json are written.",
    )
    parser.add_argument("--plot", type=str, default=None,
                        help="Save the training error curve to this PNG.")

    return parser.parse_args(argv)


def config_from_args(args) -> PipelineConfig:
    return PipelineConfig(
        data=Path(args.data) if args.data else None,
        types=args.types,
        label=args.label,
        seed=args.seed,
        train_fraction=args.train_fraction,
        train_rows=args.train_rows,
        encoding=args.encoding,
        hidden=args.hidden,
        threshold=args.threshold,
        max_epochs=args.max_epochs,
        learning_rate=args.lr,
        log_every=args.log_every,
    )


def write_meta(out_dir: Path, *, process: IrisProcess) -> Path:
    cfg = process.config
    meta = {
        "created_at": datetime.now(timezone.utc).isoformat(),
        "data": str(process.dataset.path) if process.dataset.path else None,
        "seed": cfg.seed,
        "network": {
            "inputs": process.network.n_inputs,
            "hidden": process.network.n_hidden,
            "outputs": process.network.n_outputs,
        },
        "split": {
            "train_rows": process.train.row_count,
            "test_rows": process.test.row_count,
        },
        "training": {
            "threshold": cfg.threshold,
            "epochs": len(process.history),
            "final_error": process.history[-1]["error"],
            "converged": process.converged,
        },
        "normalization": process.normalizer.to_meta(),
        "evaluation": process.evaluation.to_dict(),
    }
    out_path = out_dir / "meta.json"
    out_path.write_text(json.dumps(meta, indent=2))
    print(f"[iris] wrote meta -> {out_path.resolve()}")
    return out_path


# -----------------------------
# Orchestrator
# -----------------------------
def main(argv=None):
    args = get_args(argv)
    cfg = config_from_args(args)

    print("[iris] ================= START TRAINING =================")
    print(f"[iris] Data:      {cfg.data or 'bundled iris.csv'}")
    print(f"[iris] Encoding:  {cfg.encoding}")
    print(f"[iris] Threshold: {cfg.threshold}")

    process = IrisProcess(cfg)
    ev = process.run()

    if args.plot:
        # matplotlib only when asked for
        from iris_ann.plots import plot_training_error
        plot_training_error(process.history, Path(args.plot), threshold=cfg.threshold)

    if args.model:
        out_dir = Path(args.model)
        out_dir.mkdir(parents=True, exist_ok=True)
        export_model(model=process.network, out_path=out_dir / "iris_model.pt")
        write_meta(out_dir, process=process)

    print(f"[iris] accuracy: {ev.accuracy:.4f} ({ev.correct}/{ev.total})")
    print("[iris] =============== TRAINING DONE ================")
    return 0


def cli():
    try:
        sys.exit(main())
    except Exception as e:
        print(f"[iris] FATAL TRAINING ERROR: {e}", file=sys.stderr)
        sys.exit(1)


# ENTRY POINT
if __name__ == "__main__":
    cli()
