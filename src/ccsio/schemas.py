from __future__ import annotations

from typing import Any


def _ensure_type(payload: Any, expected: type, label: str) -> None:
    if not isinstance(payload, expected):
        raise ValueError(f"{label} must be {expected.__name__}.")


def _require_keys(payload: dict[str, Any], keys: list[str], label: str) -> None:
    missing = [k for k in keys if k not in payload]
    if missing:
        raise ValueError(f"{label} missing required keys: {', '.join(missing)}")


def validate_matrix_payload(payload: dict[str, Any]) -> None:
    _ensure_type(payload, dict, "matrix payload")
    _require_keys(payload, ["values"], "matrix payload")
    values = payload["values"]
    _ensure_type(values, list, "values")
    if not values:
        raise ValueError("values must contain at least one row.")
    widths = set()
    for row in values:
        _ensure_type(row, list, "values row")
        widths.add(len(row))
    if len(widths) != 1:
        raise ValueError("All rows in values must have equal length.")
    n_cols = widths.pop()
    n_rows = len(values)

    log_scales = payload.get("log_scales")
    if log_scales is not None:
        _ensure_type(log_scales, list, "log_scales")
        if len(log_scales) != n_cols:
            raise ValueError(f"log_scales must have {n_cols} entries, got {len(log_scales)}.")

    used_rows = payload.get("used_rows")
    if used_rows is not None:
        _ensure_type(used_rows, list, "used_rows")
        if len(used_rows) != n_cols:
            raise ValueError(f"used_rows must have {n_cols} entries, got {len(used_rows)}.")
        for item in used_rows:
            if not isinstance(item, list) or len(item) != 2:
                raise ValueError("Each used_rows entry must be a [begin, end] pair.")
            if not 0 <= int(item[0]) <= int(item[1]) <= n_rows:
                raise ValueError(f"used_rows entry {item} out of bounds for {n_rows} rows.")

    scale_undo = payload.get("scale_undo")
    if scale_undo is not None:
        _ensure_type(scale_undo, list, "scale_undo")
        offset = int(payload.get("offset", 0))
        if offset < 0:
            raise ValueError("offset must be >= 0.")
        if len(scale_undo) < n_cols + offset:
            raise ValueError(
                f"scale_undo must cover columns up to {n_cols + offset - 1}; "
                f"got {len(scale_undo)} entries."
            )


def validate_dataset_payload(payload: dict[str, Any]) -> None:
    _ensure_type(payload, dict, "dataset payload")
    _require_keys(payload, ["bam_files"], "dataset payload")
    _ensure_type(payload["bam_files"], list, "bam_files")
    for bam in payload["bam_files"]:
        _ensure_type(bam, dict, "bam_files entry")
        _require_keys(bam, ["path", "read_groups"], "bam_files entry")
        _ensure_type(bam["read_groups"], list, "read_groups")
        for rg in bam["read_groups"]:
            _ensure_type(rg, dict, "read group")
            _require_keys(rg, ["id", "sequencing_chemistry"], "read group")
            features = rg.get("base_features", [])
            _ensure_type(features, list, "base_features")
