import pytest

from iris_ann.plots import plot_training_error


def test_plot_without_threshold(tmp_path):
    history = [{"epoch": 1, "error": 0.5}, {"epoch": 2, "error": 0.1}]
    out = plot_training_error(history, tmp_path / "figs" / "error.png")
    assert out.exists()


def test_plot_empty_history(tmp_path):
    with pytest.raises(ValueError, match="empty training history"):
        plot_training_error([], tmp_path / "error.png")
