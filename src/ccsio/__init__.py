"""ccsio package."""

from .chemistry import DataSet, load_dataset, valid_base_features
from .errors import CcsIoError, CyclicReference, InvalidReference
from .fofn import resolve_references
from .matrix import MatrixView, ScaledMatrix, counter_weight_undo, write_matrix
from .paths import absolute_path, file_exists, file_extension

__all__ = [
    "CcsIoError",
    "CyclicReference",
    "DataSet",
    "InvalidReference",
    "MatrixView",
    "ScaledMatrix",
    "absolute_path",
    "counter_weight_undo",
    "file_exists",
    "file_extension",
    "load_dataset",
    "resolve_references",
    "valid_base_features",
    "write_matrix",
]

__version__ = "0.1.0"
