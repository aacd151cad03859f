import json
from itertools import combinations

import numpy as np
import pytest

from iris_ann.dataset import load_csv
from iris_ann.normalize import (
    Equilateral,
    MinMaxRange,
    Normalizer,
    OneOfN,
    denormalize,
    fit_range,
    make_encoder,
    normalize,
)
from iris_ann.split import split_dataset


def test_normalize_maps_range_to_unit_interval():
    rng = fit_range([4.3, 5.0, 7.9])
    assert rng == MinMaxRange(low=4.3, high=7.9)
    out = normalize([4.3, 6.1, 7.9], rng)
    np.testing.assert_allclose(out, [-1.0, 0.0, 1.0], atol=1e-12)


def test_normalize_custom_bounds():
    out = normalize([0.0, 5.0, 10.0], MinMaxRange(0.0, 10.0), low=0.0, high=1.0)
    np.testing.assert_allclose(out, [0.0, 0.5, 1.0], atol=1e-12)


def test_normalize_does_not_clip():
    out = normalize([-10.0, 20.0], MinMaxRange(0.0, 10.0))
    np.testing.assert_allclose(out, [-3.0, 3.0])


def test_constant_column_goes_to_midpoint():
    out = normalize([2.0, 2.0], MinMaxRange(2.0, 2.0))
    np.testing.assert_allclose(out, [0.0, 0.0])


def test_denormalize_inverts():
    rng = MinMaxRange(1.0, 6.9)
    values = np.array([1.0, 3.3, 6.9])
    np.testing.assert_allclose(denormalize(normalize(values, rng), rng), values)


def test_fit_range_rejects_empty():
    with pytest.raises(ValueError):
        fit_range([])


def test_equilateral_three_classes():
    eq = Equilateral(3)
    s = np.sqrt(3) / 2
    np.testing.assert_allclose(eq.codewords, [[-s, -0.5], [s, -0.5], [0.0, 1.0]], atol=1e-12)
    assert eq.width == 2


def test_equilateral_two_classes():
    np.testing.assert_allclose(Equilateral(2).codewords, [[-1.0], [1.0]])


@pytest.mark.parametrize("count", [2, 3, 4, 5, 7])
def test_equilateral_codewords_equidistant_and_bounded(count):
    eq = Equilateral(count, -1.0, 1.0)
    assert eq.codewords.shape == (count, count - 1)
    assert eq.codewords.min() >= -1.0 - 1e-12
    assert eq.codewords.max() <= 1.0 + 1e-12

    dists = [np.linalg.norm(eq.codewords[i] - eq.codewords[j])
             for i, j in combinations(range(count), 2)]
    np.testing.assert_allclose(dists, dists[0])


def test_equilateral_rescales_to_bounds():
    eq = Equilateral(3, low=0.0, high=1.0)
    np.testing.assert_allclose(eq.encode(2), [0.5, 1.0])


def test_equilateral_decode_nearest():
    eq = Equilateral(3)
    for i in range(3):
        assert eq.decode(eq.encode(i)) == i
        assert eq.decode(eq.encode(i) * 0.6) == i
        assert eq.distance(eq.encode(i), i) == pytest.approx(0.0)
    # tie -> lowest index
    assert Equilateral(2).decode([0.0]) == 0


def test_equilateral_decode_batch():
    eq = Equilateral(4)
    acts = eq.codewords[[3, 0, 2]] * 0.9
    assert eq.decode_batch(acts).tolist() == [3, 0, 2]
    assert eq.decode_batch(np.zeros((0, 3))).shape == (0,)


def test_equilateral_errors():
    with pytest.raises(ValueError):
        Equilateral(1)
    with pytest.raises(IndexError):
        Equilateral(3).encode(3)


def test_one_of_n():
    enc = OneOfN(3)
    assert enc.width == 3
    np.testing.assert_array_equal(enc.encode(1), [-1.0, 1.0, -1.0])
    assert enc.decode([0.1, -0.4, 0.3]) == 2
    assert enc.decode_batch(np.array([[0.9, 0.0, 0.0], [0.0, 0.0, 0.2]])).tolist() == [0, 2]


def test_make_encoder():
    assert isinstance(make_encoder("equilateral", 3), Equilateral)
    assert isinstance(make_encoder("one-of-n", 3), OneOfN)
    with pytest.raises(ValueError, match="unknown encoding"):
        make_encoder("binary", 3)


def test_normalizer_fits_on_training_rows_only(small_csv):
    data = load_csv(small_csv, "-DDN", seed=None)
    train, test = split_dataset(data, train_rows=4)
    norm = Normalizer.fit(train, subtypes=data.subtypes())

    assert norm.ranges["a"] == MinMaxRange(1.0, 4.0)
    X_train = norm.transform_inputs(train)
    assert X_train.shape == (4, 2)
    assert X_train.dtype == np.float32
    assert X_train.min() >= -1.0 and X_train.max() <= 1.0

    # test rows reuse the training ranges, so they land above 1
    X_test = norm.transform_inputs(test)
    np.testing.assert_allclose(X_test[:, 0], [5.0 / 3.0, 7.0 / 3.0], rtol=1e-6)


def test_normalizer_ideals_and_indices(small_csv):
    data = load_csv(small_csv, "-DDN", seed=None)
    norm = Normalizer.fit(data)

    assert norm.subtypes == ["x", "y"]
    assert norm.class_indices(data).tolist() == [0, 1, 0, 1, 0, 1]
    ideals = norm.transform_ideals(data)
    assert ideals.shape == (6, 1)
    np.testing.assert_allclose(ideals[:, 0], [-1, 1, -1, 1, -1, 1])


def test_normalizer_one_of_n_width(iris):
    norm = Normalizer.fit(iris, encoding="one-of-n")
    assert norm.transform_ideals(iris).shape == (150, 3)


def test_normalizer_unknown_label(small_csv):
    data = load_csv(small_csv, "-DDN", seed=None)
    train = data.take([0, 2, 4])       # only "x"
    norm = Normalizer.fit(train, encoding="one-of-n")
    with pytest.raises(ValueError, match="unknown label 'y'"):
        norm.class_indices(data)


def test_normalizer_meta_is_json(iris):
    meta = Normalizer.fit(iris).to_meta()
    meta = json.loads(json.dumps(meta))
    assert meta["encoding"] == "equilateral"
    assert meta["subtypes"] == ["setosa", "versicolor", "virginica"]
    assert meta["ranges"]["sepal length"] == {"low": 4.3, "high": 7.9}
    assert len(meta["codewords"]) == 3
