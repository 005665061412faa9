"""
Training data ingestion and preparation
"""

import os
from types import MappingProxyType
from typing import List, Optional, TextIO

import numpy as np
import pandas as pd
import structlog

from .errors import ConfigError, DimensionError

logger = structlog.get_logger(__name__)

# ESOM column type marking a data column
LRN_DATA_COLUMN = 1


def load_csv(source) -> np.ndarray:
    """
    Load headerless numeric CSV data, one sample per row

    Raises:
        DimensionError: if a field is not numeric or the file holds no rows
    """
    try:
        frame = pd.read_csv(source, header=None, dtype=np.float64)
    except pd.errors.EmptyDataError as e:
        raise DimensionError("CSV data set is empty") from e
    except ValueError as e:
        raise DimensionError(f"Invalid CSV data: {e}") from e
    return frame.to_numpy(dtype=np.float64)


def _header_value(line: str) -> str:
    return line[1:].strip()


def load_lrn(reader: TextIO) -> np.ndarray:
    """
    Load data in the ESOM ``.lrn`` format

    Four ``%`` header lines give the number of rows, the number of columns,
    the tab separated column types and the column names. Only columns of
    type 1 are data, the rest (keys, ignored columns) are skipped. Lines
    starting with ``#`` are comments.

    Raises:
        DimensionError: on a malformed header or body
    """
    headers: List[str] = []
    column_types: List[int] = []
    rows: List[List[float]] = []
    n_rows = 0

    for line_no, line in enumerate(reader, start=1):
        line = line.rstrip("\r\n")
        if not line.strip() or line.startswith("#"):
            continue
        if line.startswith("%"):
            headers.append(_header_value(line))
            if len(headers) == 1:
                try:
                    n_rows = int(headers[0])
                except ValueError as e:
                    raise DimensionError("Dataset size information missing") from e
            elif len(headers) == 3:
                try:
                    # real files tend to carry trailing tabs
                    column_types = [int(t) for t in headers[2].split("\t") if t]
                except ValueError as e:
                    raise DimensionError(f"Invalid column types: {headers[2]}") from e
            continue

        if len(headers) < 4:
            raise DimensionError("Invalid header")
        if len(rows) >= n_rows:
            raise DimensionError("Too many data rows")

        values = line.split("\t")
        if len(values) > len(column_types):
            raise DimensionError(f"Too many columns at line {line_no}")
        try:
            rows.append(
                [
                    float(value)
                    for value, col_type in zip(values, column_types)
                    if col_type == LRN_DATA_COLUMN
                ]
            )
        except ValueError as e:
            raise DimensionError(f"Problem parsing value at line {line_no}") from e

    if len(rows) != n_rows:
        raise DimensionError(
            f"Wrong number of data rows. Expecting {n_rows}, but was {len(rows)}"
        )
    n_cols = column_types.count(LRN_DATA_COLUMN)
    if any(len(row) != n_cols for row in rows):
        raise DimensionError("Data rows have inconsistent number of data columns")
    return np.array(rows, dtype=np.float64).reshape(n_rows, n_cols)


def load_cls(reader: TextIO) -> np.ndarray:
    """
    Load ESOM ``.cls`` class labels

    Body rows are ``index<TAB>class``. Labels are returned ordered by index.
    """
    indices: List[int] = []
    labels: List[int] = []
    for line_no, line in enumerate(reader, start=1):
        line = line.strip()
        if not line or line.startswith("#") or line.startswith("%"):
            continue
        fields = line.split()
        if len(fields) < 2:
            raise DimensionError(f"Invalid classification row at line {line_no}")
        try:
            indices.append(int(fields[0]))
            labels.append(int(fields[1]))
        except ValueError as e:
            raise DimensionError(f"Invalid classification row at line {line_no}") from e

    order = np.argsort(indices, kind="stable")
    return np.asarray(labels, dtype=np.int64)[order]


LOADERS = MappingProxyType({".csv": load_csv, ".lrn": load_lrn})


def _open_checked(path: str):
    if not os.path.exists(path):
        raise FileNotFoundError(f"Data file not found: {path}")
    return open(path, "r", encoding="utf-8")


def scale(data: np.ndarray) -> np.ndarray:
    """
    Centre every column to zero mean and divide by its sample standard
    deviation. Constant columns are only centred. The input is not modified.
    """
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2 or data.shape[0] == 0:
        raise DimensionError(f"Invalid data matrix shape: {data.shape}")
    mean = data.mean(axis=0)
    if data.shape[0] > 1:
        std = data.std(axis=0, ddof=1)
    else:
        std = np.ones(data.shape[1])
    std = np.where(std > 0, std, 1.0)
    return (data - mean) / std


class DataSet:
    """Training data loaded from a file, with optional class labels"""

    def __init__(self, data: np.ndarray, classes: Optional[np.ndarray] = None):
        self.data = np.asarray(data, dtype=np.float64)
        self.classes = classes
        if classes is not None and len(classes) != self.data.shape[0]:
            raise DimensionError(
                f"{len(classes)} class labels for {self.data.shape[0]} samples"
            )

    @classmethod
    def from_file(cls, path: str, cls_path: Optional[str] = None) -> "DataSet":
        """
        Load a data set, the format is inferred from the file extension

        Raises:
            ConfigError: on an unsupported extension
            FileNotFoundError: if a file does not exist
            DimensionError: on malformed content
        """
        extension = os.path.splitext(path)[1].lower()
        loader = LOADERS.get(extension)
        if loader is None:
            raise ConfigError(f"Unsupported file type: {extension}")

        with _open_checked(path) as f:
            data = loader(f)

        classes = None
        if cls_path:
            with _open_checked(cls_path) as f:
                classes = load_cls(f)

        logger.info(
            "Data set loaded", path=path, samples=data.shape[0], features=data.shape[1]
        )
        return cls(data, classes)

    @property
    def shape(self):
        return self.data.shape

    def scale(self) -> "DataSet":
        """Return a scaled copy of the data set"""
        return DataSet(scale(self.data), self.classes)


def create_clustered_data(
    rows: int,
    cols: int,
    clusters: int,
    max_value: float,
    min_value: float,
    max_offset: float,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Random samples grouped in hypercube clusters

    Cluster centres are drawn uniformly from [min_value, max_value] in every
    dimension and each sample lies within max_offset of its centre in every
    dimension. Samples are assigned to clusters round-robin.

    Args:
        rows: number of samples
        cols: number of features
        clusters: number of clusters
        max_value, min_value: bounds of the cluster centres
        max_offset: largest per-dimension distance from a centre
        seed: random seed

    Returns:
        rows x cols data matrix
    """
    if rows <= 0 or cols <= 0 or clusters <= 0:
        raise ConfigError(
            f"Invalid clustered data shape: rows={rows} cols={cols} clusters={clusters}"
        )
    rng = np.random.RandomState(seed)
    centres = rng.uniform(min_value, max_value, size=(clusters, cols))
    offsets = rng.uniform(-max_offset, max_offset, size=(rows, cols))
    return centres[np.arange(rows) % clusters] + offsets


def parse_dims(dims: str) -> Optional[List[int]]:
    """Parse comma separated integers, an empty string gives None"""
    if not dims:
        return None
    try:
        return [int(d) for d in dims.split(",")]
    except ValueError as e:
        raise ConfigError(f"Invalid dimensions: {dims}") from e
