import numpy as np

import iris_ann.utils.utils as utils


def test_accuracy():
    assert utils.accuracy(np.array([0, 1, 2, 2]), np.array([0, 1, 1, 2])) == 0.75
    assert utils.accuracy(np.array([]), np.array([])) == 0.0


def test_balanced_accuracy_skips_absent_classes():
    y_true = np.array([0, 0, 0, 0, 1])
    y_pred = np.array([0, 0, 0, 0, 0])
    # class 0 recall 1.0, class 1 recall 0.0, class 2 absent
    assert utils.balanced_accuracy(y_true, y_pred, 3) == 0.5
    assert utils.balanced_accuracy(np.array([]), np.array([]), 3) == 0.0


def test_confusion_matrix():
    cm = utils.confusion_matrix(np.array([0, 1, 2, 2]), np.array([0, 2, 2, 1]), 3)
    np.testing.assert_array_equal(cm, [[1, 0, 0], [0, 0, 1], [0, 1, 1]])
