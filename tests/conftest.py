import pytest

from iris_ann.dataset import default_iris_path, load_csv


@pytest.fixture
def write_csv(tmp_path):
    """Writes text to a temporary CSV file and returns its path."""
    def _write(text, name="data.csv"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return _write


@pytest.fixture
def small_csv(write_csv):
    """Six rows, two classes, one skipped id column."""
    return write_csv(
        "id,a,b,iris\n"
        "1,1.0,10.0,x\n"
        "2,2.0,20.0,y\n"
        "3,3.0,30.0,x\n"
        "4,4.0,40.0,y\n"
        "5,5.0,50.0,x\n"
        "6,6.0,60.0,y\n"
    )


@pytest.fixture
def iris():
    return load_csv(default_iris_path(), "DDDDN")
