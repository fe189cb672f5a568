#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
File created to decouple the optimizer from reading matrices from files.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 22, 2026"
__updated__ = "September 27, 2026"

# built-in modules
from pathlib import Path
from typing import List, Optional

# third-party modules
import pandas as pd

# project modules
from pydtd.core_functionality.exceptions import DataError


class DataProcessingCSV:
    """
    Load the reference matrix X, the mixtures Y and optionally the true composition C
    from CSV files (first column = row labels, header row = column labels), and line them up:
    the rows of Y follow the feature order of X, the rows of C follow the columns of X and
    the columns of C follow the columns of Y.
    """

    def __init__(
        self,
        reference_file: str,
        mixtures_file: str,
        truth_file: Optional[str] = None,
        delimiter: str = ",",
    ):
        """ Initialize the DataProcessingCSV instance.

        Args:
            reference_file (str): CSV with features as rows and cell types as columns.
            mixtures_file (str): CSV with features as rows and samples as columns.
            truth_file (Optional[str], optional): CSV with cell types as rows and samples as columns.
                Defaults to None.
            delimiter (str, optional): Field separator of all files. Defaults to ",".

        Raises:
            DataError: If a file cannot be read, holds non-numeric values, or labels do not match.
        """
        self.reference_file = Path(reference_file)
        self.mixtures_file = Path(mixtures_file)
        self.truth_file = None if truth_file is None else Path(truth_file)
        self.delimiter = delimiter

        reference = self._load_matrix_csv(self.reference_file)
        mixtures = self._load_matrix_csv(self.mixtures_file)
        self._reference = reference
        self._mixtures = self._align_rows(mixtures, reference.index, self.mixtures_file, "features")
        self._truth = None
        if self.truth_file is not None:
            truth = self._load_matrix_csv(self.truth_file)
            truth = self._align_rows(truth, reference.columns, self.truth_file, "cell types")
            missing = [c for c in mixtures.columns if c not in truth.columns]
            if missing:
                raise DataError(f"{self.truth_file.name} is missing samples: {', '.join(map(str, missing))}")
            self._truth = truth[mixtures.columns]

    def _load_matrix_csv(self, fpath: Path) -> pd.DataFrame:
        """ Load one labelled matrix from a CSV file.

        Raises:
            DataError: If the file cannot be read, is empty, has duplicate labels or non-numeric entries.

        Returns:
            pd.DataFrame: The matrix with string row and column labels.
        """
        try:
            df = pd.read_csv(fpath, sep=self.delimiter, index_col=0)
        except Exception as e:
            raise DataError(f"Failed to read {fpath.name}: {e}")

        if df.empty:
            raise DataError(f"{fpath.name} does not contain any values")
        df.index = df.index.map(str)
        df.columns = df.columns.map(str)
        for axis_name, labels in (("row", df.index), ("column", df.columns)):
            if labels.duplicated().any():
                duplicates = labels[labels.duplicated()].unique()
                raise DataError(f"{fpath.name} has duplicate {axis_name} labels: {', '.join(duplicates)}")

        numeric = df.apply(pd.to_numeric, errors="coerce")
        if numeric.isna().to_numpy().any():
            raise DataError(f"{fpath.name} contains missing or non-numeric values")
        return numeric.astype(float)

    @staticmethod
    def _align_rows(df: pd.DataFrame, labels: pd.Index, fpath: Path, what: str) -> pd.DataFrame:
        missing = [label for label in labels if label not in df.index]
        if missing:
            shown = ", ".join(missing[:10]) + (" ..." if len(missing) > 10 else "")
            raise DataError(f"{fpath.name} is missing {len(missing)} {what}: {shown}")
        return df.loc[labels]

    @property
    def reference(self) -> pd.DataFrame:
        """X, features x cell types."""
        return self._reference

    @property
    def mixtures(self) -> pd.DataFrame:
        """Y, features x samples, rows in the order of X."""
        return self._mixtures

    @property
    def truth(self) -> Optional[pd.DataFrame]:
        """C, cell types x samples, or None when no truth file was given."""
        return self._truth

    @property
    def feature_names(self) -> List[str]:
        return list(self._reference.index)

    @property
    def cell_types(self) -> List[str]:
        return list(self._reference.columns)

    @property
    def sample_names(self) -> List[str]:
        return list(self._mixtures.columns)
