import pytest
from pathlib import Path
import numpy as np

from pydtd.core_functionality.data_processing import DataProcessingCSV
from pydtd.core_functionality.exceptions import DataError


REFERENCE = "gene,T,B\ng1,1.0,0.5\ng2,2.0,1.5\ng3,0.2,3.0\n"
MIXTURES = "gene,s1,s2\ng3,1.0,2.0\ng1,3.0,4.0\ng2,5.0,6.0\n"
TRUTH = "type,s2,s1\nB,0.4,0.3\nT,0.6,0.7\n"


def create_csv_file(path: Path, content: str):
    path.write_text(content)
    return str(path)


@pytest.fixture
def csv_files(tmp_path):
    return (
        create_csv_file(tmp_path / "reference.csv", REFERENCE),
        create_csv_file(tmp_path / "mixtures.csv", MIXTURES),
        create_csv_file(tmp_path / "truth.csv", TRUTH),
    )


def test_csv_loading_aligns_rows_and_columns(csv_files):
    dp = DataProcessingCSV(*csv_files)

    assert dp.feature_names == ["g1", "g2", "g3"]
    assert dp.cell_types == ["T", "B"]
    assert dp.sample_names == ["s1", "s2"]
    np.testing.assert_array_equal(dp.mixtures.to_numpy(), [[3.0, 4.0], [5.0, 6.0], [1.0, 2.0]])
    np.testing.assert_array_equal(dp.truth.to_numpy(), [[0.7, 0.6], [0.3, 0.4]])
    assert list(dp.truth.index) == ["T", "B"]


def test_csv_loading_without_truth(csv_files):
    reference, mixtures, _ = csv_files
    dp = DataProcessingCSV(reference, mixtures)

    assert dp.truth is None
    assert dp.reference.shape == (3, 2)


def test_csv_loading_with_other_delimiter(tmp_path):
    reference = create_csv_file(tmp_path / "reference.tsv", REFERENCE.replace(",", "\t"))
    mixtures = create_csv_file(tmp_path / "mixtures.tsv", MIXTURES.replace(",", "\t"))

    dp = DataProcessingCSV(reference, mixtures, delimiter="\t")

    assert dp.sample_names == ["s1", "s2"]


def test_numeric_labels_become_strings(tmp_path):
    reference = create_csv_file(tmp_path / "reference.csv", "id,1,2\n10,1.0,2.0\n20,3.0,1.0\n")
    mixtures = create_csv_file(tmp_path / "mixtures.csv", "id,a\n20,1.0\n10,2.0\n")

    dp = DataProcessingCSV(reference, mixtures)

    assert dp.feature_names == ["10", "20"]
    assert dp.cell_types == ["1", "2"]
    np.testing.assert_array_equal(dp.mixtures["a"].to_numpy(), [2.0, 1.0])


def test_missing_feature_raises(tmp_path, csv_files):
    reference, _, _ = csv_files
    mixtures = create_csv_file(tmp_path / "short.csv", "gene,s1\ng1,1.0\ng2,2.0\n")

    with pytest.raises(DataError, match="g3"):
        DataProcessingCSV(reference, mixtures)


def test_truth_missing_sample_raises(tmp_path, csv_files):
    reference, mixtures, _ = csv_files
    truth = create_csv_file(tmp_path / "truth_short.csv", "type,s1\nT,0.5\nB,0.5\n")

    with pytest.raises(DataError, match="s2"):
        DataProcessingCSV(reference, mixtures, truth)


def test_truth_missing_cell_type_raises(tmp_path, csv_files):
    reference, mixtures, _ = csv_files
    truth = create_csv_file(tmp_path / "truth_types.csv", "type,s1,s2\nT,0.5,0.5\n")

    with pytest.raises(DataError, match="cell types"):
        DataProcessingCSV(reference, mixtures, truth)


def test_non_numeric_values_raise(tmp_path, csv_files):
    _, mixtures, _ = csv_files
    reference = create_csv_file(tmp_path / "bad.csv", "gene,T,B\ng1,1.0,abc\ng2,2.0,1.5\ng3,0.2,3.0\n")

    with pytest.raises(DataError, match="non-numeric"):
        DataProcessingCSV(reference, mixtures)


def test_duplicate_labels_raise(tmp_path, csv_files):
    _, mixtures, _ = csv_files
    reference = create_csv_file(tmp_path / "dup.csv", "gene,T,B\ng1,1.0,0.5\ng1,2.0,1.5\ng3,0.2,3.0\n")

    with pytest.raises(DataError, match="duplicate"):
        DataProcessingCSV(reference, mixtures)


def test_unreadable_file_raises(tmp_path, csv_files):
    _, mixtures, _ = csv_files

    with pytest.raises(DataError):
        DataProcessingCSV(str(tmp_path / "does_not_exist.csv"), mixtures)


def test_empty_file_raises(tmp_path, csv_files):
    _, mixtures, _ = csv_files
    reference = create_csv_file(tmp_path / "empty.csv", "")

    with pytest.raises(DataError):
        DataProcessingCSV(reference, mixtures)


if __name__ == "__main__":
    pytest.main([__file__])
