import io
import json
import math
from pathlib import Path

import numpy as np
import pytest

from ccsio.matrix import (
    ScaledMatrix,
    counter_weight_undo,
    load_matrix_payload,
    no_scale_undo,
    write_matrix,
)


def _row_values(line: str) -> list[float]:
    return [float(x) for x in line.split("\t")[1:]]


def test_unit_matrix_transcript() -> None:
    matrix = ScaledMatrix.create([[1.0, 1.0], [1.0, 1.0]])
    text = write_matrix(matrix, no_scale_undo)
    assert text.splitlines() == [
        "(2, 2)",
        " (0, 2) (0, 2)",
        "lg: \t0.000\t0.000",
        "lgS: \t0.000\t0.000",
        "\t0.000\t0.000",
        "\t0.000\t0.000",
    ]


def test_reverse_emits_columns_last_to_first() -> None:
    matrix = ScaledMatrix.create([[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]], log_scales=[0.5, 1.0, 2.0])
    forward = write_matrix(matrix, no_scale_undo).splitlines()
    backward = write_matrix(matrix, no_scale_undo, reverse=True).splitlines()
    # scale and range lines always run forward
    assert forward[:4] == backward[:4]
    for f_line, b_line in zip(forward[4:], backward[4:]):
        assert _row_values(f_line) == [0.5, 1.0, 2.0]
        assert _row_values(b_line) == _row_values(f_line)[::-1]


def test_cumulative_scale_is_running_sum() -> None:
    scales = [0.25, -1.5, 3.0, 0.125]
    matrix = ScaledMatrix.create(np.ones((1, 4)), log_scales=scales)
    lines = write_matrix(matrix, no_scale_undo).splitlines()
    assert lines[2] == "lg: \t0.250\t-1.500\t3.000\t0.125"
    cumulative = _row_values(lines[3])
    for k in range(len(scales)):
        assert cumulative[k] == pytest.approx(round(sum(scales[: k + 1]), 3))


def test_values_are_log_transformed_with_scale_and_undo() -> None:
    values = [[math.e, 1.0], [1.0, math.exp(2.0)]]
    matrix = ScaledMatrix.create(values, log_scales=[10.0, 20.0], used_rows=[[0, 1], [1, 2]])
    undo = counter_weight_undo([100.0, 0.0, 0.5, 0.25])
    lines = write_matrix(matrix, undo, offset=2).splitlines()
    assert lines[1] == " (0, 1) (1, 2)"
    assert lines[4] == "\t11.500\t20.250"
    assert lines[5] == "\t10.500\t22.250"


def test_reverse_applies_offset_to_effective_column() -> None:
    matrix = ScaledMatrix.create([[1.0, 1.0]])
    undo = counter_weight_undo([0.0, 1.0, 2.0])
    lines = write_matrix(matrix, undo, offset=1, reverse=True).splitlines()
    assert lines[4] == "\t2.000\t1.000"


def test_zero_value_renders_negative_infinity() -> None:
    matrix = ScaledMatrix.create([[0.0, 1.0]])
    assert write_matrix(matrix, no_scale_undo).splitlines()[4] == "\t-inf\t0.000"


def test_transcript_is_written_to_sink_and_input_untouched() -> None:
    values = np.array([[0.5, 2.0]])
    matrix = ScaledMatrix.create(values)
    sink = io.StringIO()
    text = write_matrix(matrix, no_scale_undo, out=sink)
    assert sink.getvalue() == text
    assert text.endswith("\n")
    assert np.array_equal(matrix.values, values)
    assert write_matrix(matrix, no_scale_undo) == text


def test_scaled_matrix_rejects_mismatched_shapes() -> None:
    with pytest.raises(ValueError, match="log scales"):
        ScaledMatrix.create([[1.0, 1.0]], log_scales=[0.0])
    with pytest.raises(ValueError, match="out of bounds"):
        ScaledMatrix.create([[1.0]], used_rows=[[0, 3]])


def test_matrix_dict_round_trip() -> None:
    matrix = ScaledMatrix.create([[1.0, 2.0]], log_scales=[0.1, 0.2], used_rows=[[0, 1], [0, 1]])
    again = ScaledMatrix.from_dict(matrix.to_dict())
    assert write_matrix(again, no_scale_undo) == write_matrix(matrix, no_scale_undo)


def test_load_matrix_payload_validates_scale_undo_length(tmp_path: Path) -> None:
    path = tmp_path / "m.json"
    path.write_text(
        json.dumps({"values": [[1.0, 1.0]], "scale_undo": [0.0, 0.0], "offset": 1}),
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="scale_undo"):
        load_matrix_payload(path)


def test_load_matrix_payload_rejects_ragged_values(tmp_path: Path) -> None:
    path = tmp_path / "m.json"
    path.write_text(json.dumps({"values": [[1.0, 1.0], [1.0]]}), encoding="utf-8")
    with pytest.raises(ValueError, match="equal length"):
        load_matrix_payload(path)


class _IntegerBoundsView:
    """Minimal view whose row ranges come back as numpy integers."""

    rows = 1
    columns = 2

    def used_row_range(self, j: int) -> tuple[np.int64, np.int64]:
        return np.int64(0), np.int64(j + 1)

    def get_log_scale(self, j: int) -> float:
        return 0.0

    def get(self, i: int, j: int) -> float:
        return 1.0


def test_used_row_ranges_render_as_plain_integers() -> None:
    lines = write_matrix(_IntegerBoundsView(), no_scale_undo).splitlines()
    assert lines[1] == " (0, 1) (0, 2)"


def test_reverse_reads_values_at_effective_column() -> None:
    matrix = ScaledMatrix.create([[math.e, math.e**2, math.e**3]])
    assert write_matrix(matrix, no_scale_undo).splitlines()[4] == "\t1.000\t2.000\t3.000"
    assert write_matrix(matrix, no_scale_undo, reverse=True).splitlines()[4] == "\t3.000\t2.000\t1.000"


def test_negative_value_renders_nan() -> None:
    matrix = ScaledMatrix.create([[-1.0, 1.0]])
    assert write_matrix(matrix, no_scale_undo).splitlines()[4] == "\tnan\t0.000"
