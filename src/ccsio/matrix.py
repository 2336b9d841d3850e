from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol, Sequence, TextIO

import numpy as np

from .schemas import validate_matrix_payload

ScaleUndo = Callable[[int], float]


class MatrixView(Protocol):
    @property
    def rows(self) -> int: ...

    @property
    def columns(self) -> int: ...

    def used_row_range(self, j: int) -> tuple[int, int]: ...

    def get_log_scale(self, j: int) -> float: ...

    def get(self, i: int, j: int) -> float: ...


@dataclass(frozen=True)
class ScaledMatrix:
    """Dense matrix of linear values with a log-scale factor per column.

    ``used_rows[j]`` is the half-open row range holding meaningful values
    for column ``j``.
    """

    values: np.ndarray
    log_scales: np.ndarray
    used_rows: tuple[tuple[int, int], ...]

    def __post_init__(self) -> None:
        if self.values.ndim != 2:
            raise ValueError("Matrix values must be a 2D array.")
        n_cols = int(self.values.shape[1])
        if self.log_scales.shape != (n_cols,):
            raise ValueError(
                f"Expected {n_cols} log scales, got shape {self.log_scales.shape}."
            )
        if len(self.used_rows) != n_cols:
            raise ValueError(f"Expected {n_cols} used row ranges, got {len(self.used_rows)}.")
        for j, (begin, end) in enumerate(self.used_rows):
            if not 0 <= begin <= end <= self.rows:
                raise ValueError(f"Used row range ({begin}, {end}) out of bounds for column {j}.")

    @property
    def rows(self) -> int:
        return int(self.values.shape[0])

    @property
    def columns(self) -> int:
        return int(self.values.shape[1])

    def used_row_range(self, j: int) -> tuple[int, int]:
        return self.used_rows[j]

    def get_log_scale(self, j: int) -> float:
        return float(self.log_scales[j])

    def get(self, i: int, j: int) -> float:
        return float(self.values[i, j])

    @classmethod
    def create(
        cls,
        values: Sequence[Sequence[float]] | np.ndarray,
        log_scales: Sequence[float] | np.ndarray | None = None,
        used_rows: Sequence[Sequence[int]] | None = None,
    ) -> "ScaledMatrix":
        arr = np.array(values, dtype=float)
        if arr.ndim != 2:
            raise ValueError("Matrix values must be a 2D array.")
        n_rows, n_cols = arr.shape
        scales = np.zeros(n_cols, dtype=float) if log_scales is None else np.array(log_scales, dtype=float)
        if used_rows is None:
            ranges = tuple((0, int(n_rows)) for _ in range(n_cols))
        else:
            ranges = tuple((int(r[0]), int(r[1])) for r in used_rows)
        return cls(values=arr, log_scales=scales, used_rows=ranges)

    def to_dict(self) -> dict[str, object]:
        return {
            "values": self.values.tolist(),
            "log_scales": self.log_scales.tolist(),
            "used_rows": [list(r) for r in self.used_rows],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ScaledMatrix":
        return cls.create(
            payload["values"],
            log_scales=payload.get("log_scales"),
            used_rows=payload.get("used_rows"),
        )


def counter_weight_undo(weights: Sequence[float] | np.ndarray) -> ScaleUndo:
    """Scale-undo that adds back a fixed per-position counter weight."""
    arr = np.asarray(weights, dtype=float)

    def _undo(position: int) -> float:
        return float(arr[position])

    return _undo


def no_scale_undo(position: int) -> float:
    return 0.0


def _fixed(value: float) -> str:
    return f"{value:.3f}"


def _log(value: float) -> float:
    if value == 0.0:
        return -math.inf
    if value < 0.0:
        return math.nan
    return math.log(value)


def write_matrix(
    matrix: MatrixView,
    scale_undo: ScaleUndo,
    *,
    offset: int = 0,
    reverse: bool = False,
    out: TextIO | None = None,
) -> str:
    """Render ``matrix`` as a log-domain transcript.

    Lines, in order: ``(rows, columns)``; the used row range of every column;
    ``lg:`` with each column's log scale; ``lgS:`` with the running sum of
    log scales; then one line per row holding
    ``ln(get(i, col)) + get_log_scale(col) + scale_undo(col + offset)``.
    With ``reverse`` the row values are emitted from the last column to the
    first. Numbers use fixed notation with three decimals.

    The transcript is returned, and also written to ``out`` when given.
    """
    n_rows = matrix.rows
    n_cols = matrix.columns
    scales = [matrix.get_log_scale(j) for j in range(n_cols)]

    lines = [f"({n_rows}, {n_cols})"]
    ranges = []
    for j in range(n_cols):
        begin, end = matrix.used_row_range(j)
        ranges.append(f" ({int(begin)}, {int(end)})")
    lines.append("".join(ranges))
    lines.append("lg: " + "".join(f"\t{_fixed(s)}" for s in scales))
    cumulative = np.cumsum(np.asarray(scales, dtype=float))
    lines.append("lgS: " + "".join(f"\t{_fixed(float(s))}" for s in cumulative))

    for i in range(n_rows):
        cells = []
        for j in range(n_cols):
            col = n_cols - 1 - j if reverse else j
            value = _log(matrix.get(i, col)) + scales[col] + scale_undo(col + offset)
            cells.append(f"\t{_fixed(value)}")
        lines.append("".join(cells))

    text = "\n".join(lines) + "\n"
    if out is not None:
        out.write(text)
    return text


def load_matrix_payload(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Matrix file must be a JSON object: {p}")
    validate_matrix_payload(payload)
    return payload
